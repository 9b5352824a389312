from __future__ import annotations

from PyQt5.QtCore import QPointF, Qt

import flowbuilder.conf as conf
from flowbuilder.editor import FlowEditor
from flowbuilder.interaction import InteractionState
from flowbuilder.model import PortRef


# With the default viewport (no pan, zoom 1) screen and world coordinates coincide.
# A block at (x, y) has its first input at (x, y + 20) and its first output at (x + 200, y + 20).


def drag(editor: FlowEditor, start: QPointF, end: QPointF, button=Qt.LeftButton, modifiers=Qt.NoModifier) -> bool:
    editor.pointer_down(start, button, modifiers)
    editor.pointer_move(end)
    return editor.pointer_up(end)


def test_drag_output_to_input_creates_connection(editor: FlowEditor, notifications) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    b = editor.add_block("aevInference", QPointF(400, 100))
    history_length = len(editor.history)

    editor.pointer_down(QPointF(300, 120))
    assert editor.state is InteractionState.CONNECTING_PORT
    editor.pointer_move(QPointF(398, 118))
    assert editor.controller.target_port is not None
    committed = editor.pointer_up(QPointF(401, 121))

    assert committed is True
    assert editor.state is InteractionState.IDLE
    [connection] = editor.graph.connections
    assert connection.source == PortRef(a, 0)
    assert connection.destination == PortRef(b, 0)
    assert len(editor.history) == history_length + 1
    assert notifications[-1] == (conf.UI.Notify.CONNECTED_TITLE, "Text Input:text → AEV Inference:query")


def test_drag_input_to_output_creates_connection(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    b = editor.add_block("aevInference", QPointF(400, 100))

    assert drag(editor, QPointF(400, 120), QPointF(300, 120)) is True

    [connection] = editor.graph.connections
    assert connection.source == PortRef(a, 0)
    assert connection.destination == PortRef(b, 0)


def test_drag_output_to_output_is_rejected(editor: FlowEditor, notifications) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    editor.add_block("voiceInput", QPointF(100, 300))
    history_length = len(editor.history)

    assert drag(editor, QPointF(300, 120), QPointF(300, 320)) is False

    assert editor.graph.connections == []
    assert len(editor.history) == history_length
    assert notifications[-1][0] == conf.UI.Notify.CONNECTION_REJECTED_TITLE


def test_release_on_empty_canvas_creates_nothing(editor: FlowEditor) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    assert drag(editor, QPointF(300, 120), QPointF(700, 700)) is False

    assert editor.graph.connections == []
    assert len(editor.history) == history_length


def test_dragging_a_block_moves_it_and_commits_once(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    editor.pointer_down(QPointF(150, 150))
    assert editor.state is InteractionState.DRAGGING_BLOCK
    assert editor.selected_block_id == a
    editor.pointer_move(QPointF(200, 170))
    editor.pointer_move(QPointF(253, 195))
    assert len(editor.history) == history_length
    assert editor.pointer_up(QPointF(253, 195)) is True

    assert editor.graph.get_block(a).position == QPointF(200, 140)
    assert len(editor.history) == history_length + 1


def test_click_without_moving_commits_nothing(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    assert drag(editor, QPointF(150, 150), QPointF(150, 150)) is False

    assert editor.selected_block_id == a
    assert len(editor.history) == history_length


def test_click_on_empty_canvas_clears_selection(editor: FlowEditor) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    drag(editor, QPointF(150, 150), QPointF(150, 150))

    drag(editor, QPointF(700, 700), QPointF(700, 700))

    assert editor.selected_block_id is None


def test_escape_during_drag_restores_position(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    history_length = len(editor.history)

    editor.pointer_down(QPointF(150, 150))
    editor.pointer_move(QPointF(450, 350))
    assert editor.handle_key(Qt.Key_Escape) is True

    assert editor.state is InteractionState.IDLE
    assert editor.selected_block_id is None
    assert editor.graph.get_block(a).position == QPointF(100, 100)
    assert len(editor.history) == history_length
    assert editor.pointer_up(QPointF(450, 350)) is False


def test_escape_during_connection_creates_nothing(editor: FlowEditor) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    editor.add_block("aevInference", QPointF(400, 100))

    editor.pointer_down(QPointF(300, 120))
    editor.pointer_move(QPointF(400, 120))
    editor.handle_key(Qt.Key_Escape)
    editor.pointer_up(QPointF(400, 120))

    assert editor.graph.connections == []


def test_middle_button_pans_without_history(editor: FlowEditor) -> None:
    history_length = len(editor.history)

    editor.pointer_down(QPointF(500, 500), Qt.MiddleButton)
    assert editor.state is InteractionState.PANNING_CANVAS
    editor.pointer_move(QPointF(550, 520))
    editor.pointer_up(QPointF(550, 520))

    assert editor.viewport.pan == QPointF(50, 20)
    assert len(editor.history) == history_length


def test_shift_drag_on_empty_canvas_pans(editor: FlowEditor) -> None:
    editor.pointer_down(QPointF(600, 600), Qt.LeftButton, Qt.ShiftModifier)
    assert editor.state is InteractionState.PANNING_CANVAS
    editor.pointer_move(QPointF(580, 610))
    editor.handle_key(Qt.Key_Escape)

    assert editor.viewport.pan == QPointF(0, 0)


def test_blocks_are_hit_through_pan_and_zoom(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    editor.viewport.set_pan(QPointF(-50, 30))
    editor.viewport.zoom = 2.0

    # World (150, 150) is at screen (250, 330).
    editor.pointer_down(QPointF(250, 330))

    assert editor.selected_block_id == a


def test_port_hit_radius_is_constant_on_screen(editor: FlowEditor) -> None:
    editor.add_block("textInput", QPointF(100, 100))
    editor.viewport.zoom = 2.0
    # The output port at world (300, 120) is at screen (600, 240).

    editor.pointer_down(QPointF(611, 240))
    assert editor.state is InteractionState.IDLE
    editor.pointer_up(QPointF(611, 240))

    editor.pointer_down(QPointF(609, 240))
    assert editor.state is InteractionState.CONNECTING_PORT


def test_delete_key_removes_selected_block(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))
    b = editor.add_block("aevInference", QPointF(400, 100))
    editor.connect_ports(a, 0, b, 0)
    editor.select(b)
    history_length = len(editor.history)

    assert editor.handle_key(Qt.Key_Delete) is True

    assert editor.graph.get_block(b) is None
    assert editor.graph.connections == []
    assert editor.selected_block_id is None
    assert len(editor.history) == history_length + 1


def test_delete_key_is_ignored_during_a_gesture(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))

    editor.pointer_down(QPointF(150, 150))
    assert editor.handle_key(Qt.Key_Delete) is False
    editor.pointer_up(QPointF(150, 150))

    assert editor.graph.get_block(a) is not None


def test_hover_tracks_block_and_port(editor: FlowEditor) -> None:
    a = editor.add_block("textInput", QPointF(100, 100))

    assert editor.pointer_move(QPointF(150, 150)) is True
    assert editor.controller.hover_block_id == a
    assert editor.controller.hover_port is None

    editor.pointer_move(QPointF(302, 121))
    assert editor.controller.hover_port is not None
    assert editor.controller.hover_port.block_id == a

    assert editor.pointer_move(QPointF(900, 900)) is True
    assert editor.controller.hover_block_id is None
