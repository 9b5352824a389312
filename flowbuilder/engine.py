# -*- coding: utf-8 -*-
"""
The Qt5 front end of the flow editor.

This module provides the following classes:
- `FlowCanvas`: A QWidget that paints a `FlowEditor` and forwards input to it.
- `MinimapWidget`: A small overview of the whole graph and the visible area.
- `BlockPalette`: A tree of block types, grouped by category, that can be
  dragged onto the canvas.
- `QuickAddDialog`: A searchable list of block types (Ctrl+K).
- `PropertiesPanel`: Editors for the selected block's config values.
- `MainWindow`: A QMainWindow hosting all of the above.
"""

from typing import Any, Callable, Dict, List, Optional

from PyQt5.QtWidgets import (
    QAbstractItemView, QAction, QApplication, QCheckBox, QDialog, QDockWidget, QDoubleSpinBox, QFileDialog,
    QFormLayout, QInputDialog, QLabel, QLineEdit, QListWidget, QListWidgetItem, QMainWindow, QMessageBox,
    QShortcut, QSpinBox, QStatusBar, QTreeWidget, QTreeWidgetItem, QVBoxLayout, QWidget
)
from PyQt5.QtCore import Qt, QMimeData, QPointF, QSizeF, QTimer, pyqtSignal
from PyQt5.QtGui import (
    QCloseEvent, QDragEnterEvent, QDragMoveEvent, QDropEvent, QKeyEvent, QKeySequence, QMouseEvent, QPainter,
    QPaintEvent, QResizeEvent, QWheelEvent
)

import flowbuilder.conf as conf
from flowbuilder.editor import FlowEditor
from flowbuilder.model import Block
from flowbuilder.persistence import PersistenceAdapter, StorageSink, SettingsStorage
from flowbuilder.registry import BlockTypeRegistry, ConfigValue
from flowbuilder.render import paint_calls
from flowbuilder.validation import ValidationReport

class FlowCanvas(QWidget):
    """
    The editing surface.

    Painting is delegated to the editor's renderer; mouse, wheel and key
    events are forwarded to the editor.

    Signals:
        changed: Emitted after any input that may have changed the graph,
            the selection or the viewport.
    """
    changed = pyqtSignal()

    def __init__(self, editor: FlowEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.editor = editor
        self.setMouseTracking(True) # Hover and connection preview need moves without a button held
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAcceptDrops(True)
        self.setMinimumSize(conf.MINIMAP_WIDTH, conf.MINIMAP_HEIGHT)

    def refresh(self) -> None:
        self.update()
        self.changed.emit()

    def resizeEvent(self, event: QResizeEvent) -> None:
        self.editor.set_canvas_size(QSizeF(event.size()))
        super().resizeEvent(event)

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        paint_calls(painter, self.editor.render())
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.setFocus()
        if self.editor.pointer_down(QPointF(event.pos()), event.button(), event.modifiers()):
            self.refresh()
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self.editor.pointer_move(QPointF(event.pos())):
            self.update()
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        self.editor.pointer_up(QPointF(event.pos()))
        self.refresh()
        event.accept()

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Zooms about the canvas center while the zoom modifier is held."""
        if self.editor.wheel(event.angleDelta().y(), event.modifiers()):
            self.refresh()
            event.accept()
        else:
            event.ignore()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if self.editor.handle_key(event.key(), event.modifiers()):
            self.refresh()
            event.accept()
        else:
            super().keyPressEvent(event)

    def dragEnterEvent(self, event: QDragEnterEvent) -> None:
        if event.mimeData().hasFormat(conf.PALETTE_MIME_TYPE):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event: QDragMoveEvent) -> None:
        if event.mimeData().hasFormat(conf.PALETTE_MIME_TYPE):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent) -> None:
        """Adds the dropped palette block at the drop position."""
        mime = event.mimeData()
        if not mime.hasFormat(conf.PALETTE_MIME_TYPE):
            event.ignore()
            return
        type_key = bytes(mime.data(conf.PALETTE_MIME_TYPE)).decode('utf-8')
        self.editor.add_block_at_screen(type_key, QPointF(event.pos()))
        event.acceptProposedAction()
        self.refresh()

class MinimapWidget(QWidget):
    """Paints the editor's minimap."""

    def __init__(self, editor: FlowEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.editor = editor
        self.setFixedSize(conf.MINIMAP_WIDTH, conf.MINIMAP_HEIGHT)

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        paint_calls(painter, self.editor.render_minimap(QSizeF(self.size())))
        painter.end()

class BlockPalette(QTreeWidget):
    """
    Block types grouped by category.

    Items can be dragged onto a `FlowCanvas`; their MIME data carries the
    block type key under `conf.PALETTE_MIME_TYPE`. Double-clicking an item
    emits `blockActivated` with its key.
    """
    blockActivated = pyqtSignal(str)

    def __init__(self, registry: BlockTypeRegistry, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setHeaderHidden(True)
        self.setDragEnabled(True)
        self.setDragDropMode(QAbstractItemView.DragOnly)
        self.populate(registry)
        self.itemDoubleClicked.connect(self._on_item_double_clicked)

    def populate(self, registry: BlockTypeRegistry) -> None:
        self.clear()
        for category, block_types in registry.by_category().items():
            category_item = QTreeWidgetItem(self, [category])
            category_item.setFlags(Qt.ItemIsEnabled)
            for block_type in block_types:
                item = QTreeWidgetItem(category_item, [f"{block_type.icon} {block_type.name}"])
                item.setToolTip(0, block_type.description)
                item.setData(0, Qt.UserRole, block_type.key)
                item.setFlags(Qt.ItemIsEnabled | Qt.ItemIsSelectable | Qt.ItemIsDragEnabled)
        self.expandAll()

    def mimeData(self, items: List[QTreeWidgetItem]) -> QMimeData:
        mime = QMimeData()
        keys = [item.data(0, Qt.UserRole) for item in items if item.data(0, Qt.UserRole)]
        if keys:
            mime.setData(conf.PALETTE_MIME_TYPE, keys[0].encode('utf-8'))
        return mime

    def mimeTypes(self) -> List[str]:
        return [conf.PALETTE_MIME_TYPE]

    def _on_item_double_clicked(self, item: QTreeWidgetItem, column: int) -> None:
        key = item.data(0, Qt.UserRole)
        if key:
            self.blockActivated.emit(key)

class QuickAddDialog(QDialog):
    """
    A search box over the block registry.

    The list is filtered by `BlockTypeRegistry.search` as the user types.
    Enter or double-click accepts the highlighted type, available afterwards
    from `selected_type_key()`.
    """
    def __init__(self, registry: BlockTypeRegistry, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.registry = registry
        self.setWindowTitle(conf.UI.Dialog.QUICK_ADD_TITLE)

        self.search_edit = QLineEdit(self)
        self.search_edit.setPlaceholderText(conf.UI.Dialog.QUICK_ADD_PLACEHOLDER)
        self.results = QListWidget(self)

        layout = QVBoxLayout(self)
        layout.addWidget(self.search_edit)
        layout.addWidget(self.results)

        self.search_edit.textChanged.connect(self.update_results)
        self.search_edit.returnPressed.connect(self._accept_current)
        self.results.itemActivated.connect(lambda item: self._accept_current())
        self.update_results('')

    def update_results(self, query: str) -> None:
        self.results.clear()
        for block_type in self.registry.search(query):
            item = QListWidgetItem(conf.UI.Dialog.QUICK_ADD_ITEM.format(icon=block_type.icon,
                                                                        name=block_type.name,
                                                                        category=block_type.category))
            item.setData(Qt.UserRole, block_type.key)
            item.setToolTip(block_type.description)
            self.results.addItem(item)
        if self.results.count():
            self.results.setCurrentRow(0)

    def selected_type_key(self) -> Optional[str]:
        item = self.results.currentItem()
        return item.data(Qt.UserRole) if item is not None else None

    def _accept_current(self) -> None:
        if self.selected_type_key() is not None:
            self.accept()

class PropertiesPanel(QWidget):
    """
    Editors for the config of the selected block.

    Booleans get a check box, integers and floats a spin box, everything
    else a line edit. Each finished edit goes through
    `FlowEditor.set_config`, so it is one undoable step.

    Signals:
        configChanged: Emitted after a value was written to the graph.
    """
    configChanged = pyqtSignal()

    def __init__(self, editor: FlowEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.editor = editor
        self.block_id: Optional[str] = None
        self.shown_config: Dict[str, ConfigValue] = {}
        self.form = QFormLayout(self)
        self.show_block(None)

    def _clear(self) -> None:
        while self.form.rowCount():
            self.form.removeRow(0)

    def sync(self, block: Optional[Block]) -> None:
        """Rebuilds the editors only if `block` or its config differs from what is shown."""
        if block is None and self.block_id is None:
            return
        if block is not None and block.id == self.block_id and block.config == self.shown_config:
            return
        self.show_block(block)

    def show_block(self, block: Optional[Block]) -> None:
        """Rebuilds the editors for `block`, or shows a hint when nothing is selected."""
        self._clear()
        self.block_id = block.id if block is not None else None
        self.shown_config = dict(block.config) if block is not None else {}
        if block is None:
            self.form.addRow(QLabel(conf.UI.PROPERTIES_EMPTY, self))
            return
        block_type = self.editor.graph.block_type(block)
        title = QLabel(f"{block_type.icon} {block_type.name}" if block_type else block.type_key, self)
        title.setStyleSheet("font-weight: bold")
        self.form.addRow(title)
        for key, value in block.config.items():
            self.form.addRow(key, self._editor_for(key, value))

    def _editor_for(self, key: str, value: ConfigValue) -> QWidget:
        if isinstance(value, bool):
            check_box = QCheckBox(self)
            check_box.setChecked(value)
            check_box.toggled.connect(lambda checked: self._write(key, bool(checked)))
            return check_box
        if isinstance(value, int):
            spin_box = QSpinBox(self)
            spin_box.setRange(-conf.PROPERTY_INT_LIMIT, conf.PROPERTY_INT_LIMIT)
            spin_box.setValue(value)
            spin_box.editingFinished.connect(lambda: self._write(key, spin_box.value()))
            return spin_box
        if isinstance(value, float):
            double_box = QDoubleSpinBox(self)
            double_box.setDecimals(conf.PROPERTY_FLOAT_DECIMALS)
            double_box.setRange(-conf.PROPERTY_FLOAT_LIMIT, conf.PROPERTY_FLOAT_LIMIT)
            double_box.setValue(value)
            double_box.editingFinished.connect(lambda: self._write(key, double_box.value()))
            return double_box
        line_edit = QLineEdit('' if value is None else str(value), self)
        line_edit.editingFinished.connect(lambda: self._write(key, line_edit.text()))
        return line_edit

    def _write(self, key: str, value: ConfigValue) -> None:
        block = self.editor.graph.get_block(self.block_id)
        if block is None or block.config.get(key) == value:
            return
        if self.editor.set_config(block.id, key, value):
            self.shown_config[key] = value
            self.configChanged.emit()

class MainWindow(QMainWindow):
    """
    The main application window for the flow editor.

    The canvas fills the window; the palette, the properties panel and the
    minimap live in dock widgets. Saved flows go to QSettings unless another
    storage sink is given.
    """
    def __init__(self,
                 enable_logging: bool = True,
                 storage: Optional[StorageSink] = None,
                 registry: Optional[BlockTypeRegistry] = None,
                 executor: Optional[Callable[[Dict[str, Any]], Any]] = None) -> None:
        """
        Initializes the MainWindow.

        Args:
            enable_logging (bool, optional): If True, enables printing log
                messages to the console. Defaults to True.
            storage (StorageSink, optional): Where flows are saved. Defaults
                to `SettingsStorage()`.
            registry (BlockTypeRegistry, optional): Block types offered in the
                palette. Defaults to the standard set.
            executor (Callable, optional): Receives the serialized flow when
                "Execute" is triggered. If omitted, the action is not shown.
        """
        super().__init__()
        self.setWindowTitle(conf.UI.MAIN_WINDOW_TITLE)
        self.setGeometry(conf.MAIN_WINDOW_DEFAULT_X, conf.MAIN_WINDOW_DEFAULT_Y,
                         conf.MAIN_WINDOW_DEFAULT_WIDTH, conf.MAIN_WINDOW_DEFAULT_HEIGHT)

        self.log_enabled = enable_logging
        self.executor = executor
        persistence = PersistenceAdapter(storage if storage is not None else SettingsStorage(),
                                         log_func=self.log_message)
        self.editor = FlowEditor(registry=registry,
                                 persistence=persistence,
                                 log_func=self.log_message,
                                 notify_func=self.notify)
        self.editor.on_save = self.save_flow
        self.editor.on_quick_add = self.show_quick_add

        self.canvas = FlowCanvas(self.editor, self)
        self.setCentralWidget(self.canvas)
        self.canvas.changed.connect(self.refresh)

        self.block_palette = BlockPalette(self.editor.registry, self)
        self.block_palette.blockActivated.connect(self.quick_add)
        self._add_dock(self.block_palette, conf.UI.PALETTE_TITLE, Qt.LeftDockWidgetArea)

        self.properties = PropertiesPanel(self.editor, self)
        self.properties.configChanged.connect(self.refresh)
        self._add_dock(self.properties, conf.UI.PROPERTIES_TITLE, Qt.RightDockWidgetArea)

        self.minimap = MinimapWidget(self.editor, self)
        self._add_dock(self.minimap, conf.UI.MINIMAP_TITLE, Qt.RightDockWidgetArea)

        self._create_toolbar()

        # --- Status Bar ---
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.zoom_label = QLabel()
        self.block_count_label = QLabel()
        self.status_bar.addPermanentWidget(self.zoom_label)
        self.status_bar.addPermanentWidget(self.block_count_label)

        self.autosave_timer = QTimer(self)
        self.autosave_timer.setInterval(conf.AUTOSAVE_INTERVAL_MS)
        self.autosave_timer.timeout.connect(self.autosave)
        self.autosave_timer.start()

        # Brings the editor back from anywhere in the application.
        self.open_shortcut = QShortcut(QKeySequence(conf.SHORTCUT_OPEN_EDITOR), self)
        self.open_shortcut.setContext(Qt.ApplicationShortcut)
        self.open_shortcut.activated.connect(self.open_editor)

        self.refresh()

    def _add_dock(self, widget: QWidget, title: str, area: Qt.DockWidgetArea) -> QDockWidget:
        dock = QDockWidget(title, self)
        dock.setObjectName(title)
        dock.setWidget(widget)
        self.addDockWidget(area, dock)
        return dock

    def _create_toolbar(self) -> None:
        """Creates the toolbar. Shortcuts are handled by the canvas, not by these actions."""
        toolbar = self.addToolBar(conf.UI.Menu.TOOLBAR_ACTIONS)
        toolbar.setMovable(False)
        entries = [
            (conf.UI.Menu.NEW_FLOW, self.new_flow),
            (conf.UI.Menu.SAVE_FLOW, self.save_flow),
            (conf.UI.Menu.LOAD_FLOW, self.load_flow),
            (conf.UI.Menu.RESTORE_AUTOSAVE, self.restore_autosave),
            (conf.UI.Menu.SAVE_TEMPLATE, self.save_template),
            (conf.UI.Menu.LOAD_TEMPLATE, self.load_template),
            None,
            (conf.UI.Menu.UNDO, self.undo),
            (conf.UI.Menu.REDO, self.redo),
            (conf.UI.Menu.DELETE_BLOCK, self.delete_selected_block),
            (conf.UI.Menu.DISCONNECT_ALL, self.disconnect_selected_block),
            None,
            (conf.UI.Menu.ZOOM_IN, self.zoom_in),
            (conf.UI.Menu.ZOOM_OUT, self.zoom_out),
            (conf.UI.Menu.TOGGLE_GRID, self.toggle_grid),
            (conf.UI.Menu.AUTO_ALIGN, self.auto_align),
            (conf.UI.Menu.AUTO_CONNECT, self.auto_connect),
            (conf.UI.Menu.QUICK_ADD, self.show_quick_add),
            None,
            (conf.UI.Menu.TEST_FLOW, self.test_flow),
            (conf.UI.Menu.EXPORT_FLOW, self.export_flow),
            (conf.UI.Menu.IMPORT_FLOW, self.import_flow),
        ]
        if self.executor is not None:
            entries.append((conf.UI.Menu.EXECUTE_FLOW, self.execute_flow))
        self.actions_by_name: Dict[str, QAction] = {}
        for entry in entries:
            if entry is None:
                toolbar.addSeparator()
                continue
            text, slot = entry
            action = toolbar.addAction(text)
            action.triggered.connect(lambda checked=False, slot=slot: slot())
            self.actions_by_name[text] = action

    def log_message(self, message: str) -> None:
        """
        Prints a message to the console if logging is enabled.

        Args:
            message (str): The message to log.
        """
        if self.log_enabled:
            print(message)

    def show_status_message(self, message: str, timeout: int = 0) -> None:
        """Shows a message in the status bar for a specified duration."""
        self.status_bar.showMessage(message, timeout)

    def notify(self, title: str, message: str) -> None:
        """Shows an editor notification in the status bar; storage failures also get a warning box."""
        self.show_status_message(f"{title}: {message}", conf.STATUS_BAR_TIMEOUT_MS)
        if title == conf.UI.Notify.STORAGE_FAILED_TITLE:
            QMessageBox.warning(self, conf.UI.Dialog.STORAGE_FAILED_TITLE, message)

    def refresh(self) -> None:
        """Brings the status bar, the properties panel and the minimap in line with the editor."""
        editor = self.editor
        self.zoom_label.setText(conf.UI.ZOOM_LABEL.format(percent=round(editor.viewport.zoom * 100)))
        self.block_count_label.setText(conf.UI.BLOCK_COUNT_LABEL.format(count=len(editor.graph.blocks)))
        actions = self.actions_by_name
        actions[conf.UI.Menu.UNDO].setEnabled(editor.history.can_undo)
        actions[conf.UI.Menu.REDO].setEnabled(editor.history.can_redo)

        self.properties.sync(editor.graph.get_block(editor.selected_block_id))
        self.minimap.update()
        self.canvas.update()

    # --- Actions ---

    def new_flow(self) -> None:
        if not self.editor.graph.is_empty():
            answer = QMessageBox.question(self, conf.UI.Dialog.NEW_FLOW_TITLE, conf.UI.Dialog.NEW_FLOW_CONFIRM,
                                          QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
            if answer != QMessageBox.Yes:
                return
        self.editor.new_flow()
        self.refresh()

    def save_flow(self) -> None:
        name, ok = QInputDialog.getText(self, conf.UI.Dialog.SAVE_FLOW_TITLE, conf.UI.Dialog.SAVE_FLOW_LABEL,
                                        text=self.editor.current_flow_name)
        if ok and name.strip():
            self.editor.save(name.strip())
            self.refresh()

    def load_flow(self) -> None:
        flows = self.editor.list_flows()
        if not flows:
            self.show_status_message(conf.UI.Log.FLOW_NOT_FOUND.format(flow_id='*'), conf.STATUS_BAR_TIMEOUT_MS)
            return
        labels = [conf.UI.Dialog.LOAD_FLOW_ITEM.format(name=flow.name, id=flow.id) for flow in flows]
        label, ok = QInputDialog.getItem(self, conf.UI.Dialog.LOAD_FLOW_TITLE, conf.UI.Dialog.LOAD_FLOW_LABEL,
                                         labels, 0, False)
        if ok and label in labels:
            self.editor.load(flows[labels.index(label)].id)
            self.refresh()

    def save_template(self) -> None:
        name, ok = QInputDialog.getText(self, conf.UI.Dialog.SAVE_TEMPLATE_TITLE, conf.UI.Dialog.SAVE_TEMPLATE_LABEL,
                                        text=self.editor.current_flow_name)
        if ok and name.strip():
            self.editor.save_template(name.strip())

    def load_template(self) -> None:
        templates = self.editor.list_templates()
        if not templates:
            self.show_status_message(conf.UI.Log.TEMPLATE_NOT_FOUND.format(template_id='*'),
                                     conf.STATUS_BAR_TIMEOUT_MS)
            return
        labels = [conf.UI.Dialog.LOAD_FLOW_ITEM.format(name=template.name, id=template.id) for template in templates]
        label, ok = QInputDialog.getItem(self, conf.UI.Dialog.LOAD_TEMPLATE_TITLE, conf.UI.Dialog.LOAD_TEMPLATE_LABEL,
                                         labels, 0, False)
        if ok and label in labels:
            self.editor.load_template(templates[labels.index(label)].id)
            self.refresh()

    def restore_autosave(self) -> None:
        if self.editor.restore_autosave():
            self.refresh()

    def autosave(self) -> None:
        if self.editor.autosave() is not None:
            self.show_status_message(conf.UI.Notify.AUTOSAVED, conf.STATUS_BAR_TIMEOUT_MS)

    def undo(self) -> None:
        self.editor.undo()
        self.refresh()

    def redo(self) -> None:
        self.editor.redo()
        self.refresh()

    def delete_selected_block(self) -> None:
        block_id = self.editor.selected_block_id
        if block_id is not None and self.editor.delete_block(block_id):
            self.refresh()

    def disconnect_selected_block(self) -> None:
        """Removes every connection attached to the selected block as one undoable step."""
        block_id = self.editor.selected_block_id
        if block_id is None:
            return
        if self.editor.disconnect_block(block_id):
            self.refresh()

    def zoom_in(self) -> None:
        self.editor.zoom_in()
        self.refresh()

    def zoom_out(self) -> None:
        self.editor.zoom_out()
        self.refresh()

    def toggle_grid(self) -> None:
        self.editor.toggle_grid()
        self.refresh()

    def auto_align(self) -> None:
        self.editor.auto_align()
        self.refresh()

    def auto_connect(self) -> None:
        if self.editor.auto_connect():
            self.refresh()

    def quick_add(self, type_key: str) -> None:
        block_id = self.editor.quick_add(type_key)
        if block_id is not None:
            self.editor.select(block_id)
        self.refresh()

    def show_quick_add(self) -> None:
        dialog = QuickAddDialog(self.editor.registry, self)
        if dialog.exec_() == QDialog.Accepted:
            type_key = dialog.selected_type_key()
            if type_key is not None:
                self.quick_add(type_key)

    def test_flow(self) -> ValidationReport:
        report = self.editor.test_flow()
        lines = [conf.UI.Dialog.TEST_RESULT_ERROR.format(message=issue.message) for issue in report.errors]
        lines += [conf.UI.Dialog.TEST_RESULT_WARNING.format(message=issue.message) for issue in report.warnings]
        QMessageBox.information(self, conf.UI.Dialog.TEST_RESULT_TITLE,
                                '\n'.join(lines) or conf.UI.Dialog.TEST_RESULT_CLEAN)
        return report

    def execute_flow(self) -> Any:
        if self.executor is None:
            return None
        result = self.editor.execute(self.executor)
        if result is not None:
            QMessageBox.information(self, conf.UI.Dialog.EXECUTE_RESULT_TITLE, str(result))
        return result

    def export_flow(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(self, conf.UI.Dialog.EXPORT_DIALOG_TITLE, "",
                                                   conf.UI.Dialog.JSON_FILTER)
        if not file_path:
            return
        if not file_path.lower().endswith('.json'):
            file_path += '.json'
        self.editor.export_flow(file_path)

    def import_flow(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, conf.UI.Dialog.IMPORT_DIALOG_TITLE, "",
                                                   conf.UI.Dialog.JSON_FILTER)
        if file_path and self.editor.import_flow(file_path):
            self.refresh()

    def open_editor(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()
        self.canvas.setFocus()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Writes a final autosave before the window closes."""
        self.autosave_timer.stop()
        self.editor.autosave()
        event.accept()

    def start(self) -> int:
        """
        Shows the window and starts the Qt application event loop.

        This method requires that a QApplication instance has already been
        created. It should be called after the window has been populated.

        Returns:
            int: The exit status from the application.
        """
        app = QApplication.instance()
        if not app:
            raise RuntimeError(conf.UI.Log.QAPP_INSTANCE_REQUIRED)

        self.show()
        self.canvas.setFocus()
        return app.exec_()
