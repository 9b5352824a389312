# -*- coding: utf-8 -*-
"""
A demonstration script for the flow editor.

This script creates an instance of the MainWindow, populates it with a small
voice assistant flow, and runs the Qt application. Flows are saved to the
per-user QSettings store.
"""

import json
import sys
from typing import Any, Dict

from PyQt5.QtCore import QPointF
from PyQt5.QtWidgets import QApplication
from flowbuilder.engine import MainWindow

def print_flow(flow: Dict[str, Any]) -> str:
    """A stand-in executor: prints the flow it receives and reports its size."""
    print(json.dumps(flow, indent=2, ensure_ascii=False))
    return f"{len(flow['blocks'])} blocks, {len(flow['connections'])} connections"

def setup_demo_flow(main_window: MainWindow) -> None:
    """
    Populates the main window with a demo flow.

    This function uses the editor API to build the graph, then resets the
    history so the demo itself cannot be undone.
    """
    editor = main_window.editor
    voice = editor.add_block('voiceInput', QPointF(100, 100))
    inference = editor.add_block('aevInference', QPointF(400, 100))
    condition = editor.add_block('condition', QPointF(700, 100))
    speak = editor.add_block('voiceOutput', QPointF(1000, 40))
    notify = editor.add_block('notification', QPointF(1000, 200))

    if all([voice, inference, condition, speak, notify]):
        editor.connect_ports(voice, 0, inference, 0)
        editor.connect_ports(inference, 0, condition, 0)
        editor.connect_ports(condition, 0, speak, 0)
        editor.connect_ports(condition, 1, notify, 0)
        editor.set_config(inference, 'modelPath', 'models/assistant.aev')

    editor.history.reset(editor.history.current)
    main_window.refresh()

def main() -> int:
    # A QApplication instance must be created before any QWidget.
    app = QApplication(sys.argv)
    main_window = MainWindow(enable_logging=True, executor=print_flow)
    setup_demo_flow(main_window)
    return main_window.start()

if __name__ == "__main__":
    sys.exit(main())
