# -*- coding: utf-8 -*-
"""
The flow editor: one graph, its camera, its history and its input handling.

`FlowEditor` is independent of any widget. The Qt front end in
`flowbuilder.engine` forwards events to it and paints what it renders, and
tests drive it directly.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from PyQt5.QtCore import QPointF, QSizeF, Qt

import flowbuilder.conf as conf
from flowbuilder.errors import StorageError
from flowbuilder.history import HistoryManager, HistorySnapshot
from flowbuilder.interaction import InteractionController, InteractionState
from flowbuilder.model import Graph, PortDirection, PortHandle
from flowbuilder.persistence import FlowRecord, MemoryStorage, PersistenceAdapter
from flowbuilder.registry import BlockType, BlockTypeRegistry, ConfigValue, default_registry
from flowbuilder.render import DrawCall, Renderer
from flowbuilder.validation import ValidationReport, validate_flow
from flowbuilder.viewport import Viewport

class FlowEditor:
    """
    An editor instance owning a graph, a viewport and an undo history.

    Every successful structural edit made through the editor commits exactly
    one history snapshot. Camera changes are never recorded.

    Attributes:
        registry (BlockTypeRegistry): The block types available to the palette.
        persistence (PersistenceAdapter): Where flows are saved.
        viewport (Viewport): Pan, zoom and grid settings.
        graph (Graph): The live graph.
        history (HistoryManager): Snapshots for undo/redo.
        controller (InteractionController): Pointer gesture state machine.
        renderer (Renderer): Produces draw calls for the canvas and minimap.
        canvas_size (QSizeF): Current canvas size in pixels.
        current_flow (Optional[FlowRecord]): The last flow saved or loaded.
        on_save (Optional[Callable[[], None]]): Called for Ctrl+S instead of
            saving directly, e.g. to ask the user for a name.
        on_quick_add (Optional[Callable[[], None]]): Called for Ctrl+K.
    """
    def __init__(self,
                 registry: Optional[BlockTypeRegistry] = None,
                 persistence: Optional[PersistenceAdapter] = None,
                 log_func: Optional[Callable[[str], None]] = None,
                 notify_func: Optional[Callable[[str, str], None]] = None,
                 history_length: int = conf.HISTORY_MAX_LENGTH,
                 allow_duplicate_connections: bool = False) -> None:
        self.log_func: Callable[[str], None] = log_func or print
        self.notify_func: Callable[[str, str], None] = notify_func or (lambda title, message: None)
        self.registry = registry if registry is not None else default_registry()
        self.persistence = persistence if persistence is not None else PersistenceAdapter(MemoryStorage(),
                                                                                          log_func=self.log_func)
        self.viewport = Viewport()
        self.graph = Graph(self.registry,
                           snap_func=self.viewport.snap_to_grid,
                           log_func=self.log_func,
                           allow_duplicate_connections=allow_duplicate_connections)
        self.history = HistoryManager(history_length)
        self.controller = InteractionController(self.graph, self.viewport, self.history,
                                                log_func=self.log_func, notify_func=self.notify_func)
        self.renderer = Renderer()
        self.canvas_size = QSizeF(conf.MAIN_WINDOW_DEFAULT_WIDTH, conf.MAIN_WINDOW_DEFAULT_HEIGHT)
        self.current_flow: Optional[FlowRecord] = None
        self.on_save: Optional[Callable[[], None]] = None
        self.on_quick_add: Optional[Callable[[], None]] = None
        self.history.reset(HistorySnapshot.capture(self.graph))

    @property
    def selected_block_id(self) -> Optional[str]:
        return self.controller.selected_block_id

    @property
    def current_flow_name(self) -> str:
        return self.current_flow.name if self.current_flow else conf.DEFAULT_FLOW_NAME

    def _commit(self) -> None:
        self.controller.commit()

    # --- Graph edits ---

    def add_block(self, type_key: str, world_pos: QPointF) -> Optional[str]:
        block_id = self.graph.add_block(type_key, world_pos)
        if block_id is not None:
            self._commit()
        return block_id

    def add_block_at_screen(self, type_key: str, screen_pos: QPointF) -> Optional[str]:
        """Adds a block where a palette item was dropped on the canvas."""
        return self.add_block(type_key, self.viewport.screen_to_world(screen_pos))

    def quick_add(self, type_key: str) -> Optional[str]:
        """Adds a block at the center of the visible canvas."""
        return self.add_block(type_key, self.viewport.world_center(self.canvas_size))

    def search_blocks(self, query: str) -> List[BlockType]:
        return self.registry.search(query)

    def delete_block(self, block_id: str) -> bool:
        if not self.graph.delete_block(block_id):
            return False
        self.controller.sync_with_graph()
        self._commit()
        return True

    def move_block(self, block_id: str, world_pos: QPointF) -> bool:
        block = self.graph.get_block(block_id)
        if block is None:
            self.log_func(conf.UI.Log.BLOCK_NOT_FOUND.format(block_id=block_id))
            return False
        before = QPointF(block.position)
        self.graph.move_block(block_id, world_pos)
        if block.position == before:
            return False
        self._commit()
        return True

    def set_config(self, block_id: str, key: str, value: ConfigValue) -> bool:
        if not self.graph.set_config(block_id, key, value):
            return False
        self._commit()
        return True

    def connect(self, start: PortHandle, end: PortHandle) -> Optional[str]:
        connection_id = self.graph.connect(start, end)
        if connection_id is not None:
            self._commit()
        return connection_id

    def connect_ports(self, from_block_id: str, from_port_index: int,
                      to_block_id: str, to_port_index: int) -> Optional[str]:
        connection_id = self.graph.connect_ports(from_block_id, from_port_index, to_block_id, to_port_index)
        if connection_id is not None:
            self._commit()
        return connection_id

    def disconnect(self, connection_id: str) -> bool:
        if not self.graph.disconnect(connection_id):
            return False
        self._commit()
        return True

    def disconnect_block(self, block_id: str) -> int:
        """Removes every connection attached to a block as one undoable step. Returns how many were removed."""
        removed = [conn.id for conn in self.graph.connections_for(block_id) if self.graph.disconnect(conn.id)]
        if removed:
            self._commit()
        return len(removed)

    def select(self, block_id: Optional[str]) -> None:
        self.controller.select(block_id)

    def auto_align(self) -> int:
        """Lays blocks out in category columns. Returns the number of columns."""
        if self.graph.is_empty():
            return 0
        columns = self.graph.auto_align()
        self._commit()
        self.notify_func(conf.UI.Notify.ALIGNED_TITLE,
                         conf.UI.Notify.ALIGNED.format(count=len(self.graph.blocks)))
        return columns

    def auto_connect(self) -> List[str]:
        """Wires consecutive compatible blocks as one undoable step. Returns the new connection ids."""
        created = self.graph.auto_connect()
        if created:
            self._commit()
        self.notify_func(conf.UI.Notify.AUTO_CONNECTED_TITLE,
                         conf.UI.Notify.AUTO_CONNECTED.format(count=len(created)))
        return created

    def suggest_connection(self, block_id: str, direction: PortDirection) -> Optional[str]:
        return self.graph.suggest_connection(block_id, direction)

    # --- History ---

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self.graph.load_dict(snapshot.to_dict())
        self.controller.sync_with_graph()

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            self.log_func(conf.UI.Log.UNDO_UNAVAILABLE)
            return False
        self._restore(snapshot)
        self.notify_func(conf.UI.Notify.UNDO_TITLE, conf.UI.Notify.UNDO)
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            self.log_func(conf.UI.Log.REDO_UNAVAILABLE)
            return False
        self._restore(snapshot)
        self.notify_func(conf.UI.Notify.REDO_TITLE, conf.UI.Notify.REDO)
        return True

    # --- Flows ---

    def new_flow(self) -> None:
        """Replaces the graph with an empty one and starts a fresh history."""
        self.graph.clear()
        self.controller.sync_with_graph()
        self.controller.selected_block_id = None
        self.current_flow = None
        self.history.reset(HistorySnapshot.capture(self.graph))
        self.log_func(conf.UI.Log.NEW_FLOW)

    def _report_storage_failure(self, error: Exception) -> None:
        self.log_func(conf.UI.Log.STORAGE_FAILED.format(error=error))
        self.notify_func(conf.UI.Notify.STORAGE_FAILED_TITLE, str(error))

    def save(self, name: Optional[str] = None) -> Optional[FlowRecord]:
        """
        Saves the graph under `name` (default: the current flow's name).

        Re-saving a flow that was saved or loaded before keeps its id.

        Returns:
            FlowRecord or None: The saved record, or None if storage failed.
        """
        flow_id = self.current_flow.id if self.current_flow and self.current_flow.id != conf.AUTOSAVE_FLOW_ID else None
        try:
            record = self.persistence.save(self.graph, name or self.current_flow_name, flow_id=flow_id)
        except StorageError as e:
            self._report_storage_failure(e)
            return None
        self.current_flow = record
        self.notify_func(conf.UI.Notify.SAVED_TITLE, conf.UI.Notify.SAVED.format(name=record.name))
        return record

    def autosave(self) -> Optional[FlowRecord]:
        """Writes the autosave record if the graph is non-empty. History is not touched."""
        try:
            record = self.persistence.autosave(self.graph)
        except StorageError as e:
            self._report_storage_failure(e)
            return None
        return record

    def list_flows(self) -> List[FlowRecord]:
        try:
            return self.persistence.list_flows()
        except StorageError as e:
            self._report_storage_failure(e)
            return []

    def delete_flow(self, flow_id: str) -> bool:
        try:
            return self.persistence.delete(flow_id)
        except StorageError as e:
            self._report_storage_failure(e)
            return False

    def _apply_record(self, record: FlowRecord) -> bool:
        try:
            self.graph.load_dict(record.graph_data())
        except (KeyError, TypeError, ValueError) as e:
            self.log_func(conf.UI.Log.RECORD_MALFORMED.format(error=e))
            self.notify_func(conf.UI.Notify.STORAGE_FAILED_TITLE, str(e))
            return False
        self.controller.sync_with_graph()
        self.controller.selected_block_id = None
        self.history.reset(HistorySnapshot.capture(self.graph))
        self.current_flow = record
        self.log_func(conf.UI.Log.FLOW_LOADED.format(name=record.name, flow_id=record.id))
        self.notify_func(conf.UI.Notify.LOADED_TITLE, conf.UI.Notify.LOADED.format(name=record.name))
        return True

    def load(self, flow_id: str) -> bool:
        """
        Replaces the live graph with a saved flow.

        The history is reset to a single snapshot of the loaded state.

        Returns:
            bool: True if the flow was found and loaded.
        """
        try:
            record = self.persistence.load(flow_id)
        except StorageError as e:
            self._report_storage_failure(e)
            return False
        if record is None:
            return False
        return self._apply_record(record)

    def restore_autosave(self) -> bool:
        try:
            record = self.persistence.load_autosave()
        except StorageError as e:
            self._report_storage_failure(e)
            return False
        if record is None:
            return False
        return self._apply_record(record)

    def save_template(self, name: str) -> Optional[FlowRecord]:
        """Stores the graph as a template. The current flow and history are untouched."""
        try:
            record = self.persistence.save_template(self.graph, name)
        except StorageError as e:
            self._report_storage_failure(e)
            return None
        self.notify_func(conf.UI.Notify.TEMPLATE_SAVED_TITLE, conf.UI.Notify.TEMPLATE_SAVED.format(name=record.name))
        return record

    def list_templates(self) -> List[FlowRecord]:
        return self.persistence.list_templates()

    def load_template(self, template_id: str) -> bool:
        """
        Replaces the live graph with a copy of a template.

        The result is an unsaved flow: saving it afterwards creates a new
        flow rather than changing the template.
        """
        record = self.persistence.load_template(template_id)
        if record is None or not self._apply_record(record):
            return False
        self.current_flow = None
        self.notify_func(conf.UI.Notify.TEMPLATE_LOADED_TITLE, conf.UI.Notify.TEMPLATE_LOADED.format(name=record.name))
        return True

    def export_flow(self, path: str, name: Optional[str] = None) -> Optional[FlowRecord]:
        try:
            record = self.persistence.export_flow(self.graph, name or self.current_flow_name, path)
        except StorageError as e:
            self._report_storage_failure(e)
            return None
        self.notify_func(conf.UI.Notify.EXPORTED_TITLE, conf.UI.Notify.EXPORTED.format(path=path))
        return record

    def import_flow(self, path: str) -> bool:
        try:
            record = self.persistence.import_flow(path)
        except StorageError as e:
            self._report_storage_failure(e)
            return False
        if not self._apply_record(record):
            return False
        self.notify_func(conf.UI.Notify.IMPORTED_TITLE, conf.UI.Notify.IMPORTED.format(path=path))
        return True

    # --- Test / execute ---

    def test_flow(self) -> ValidationReport:
        report = validate_flow(self.graph)
        self.log_func(conf.UI.Log.VALIDATION_RESULT.format(errors=len(report.errors), warnings=len(report.warnings)))
        if report.valid:
            message = conf.UI.Notify.TEST_PASSED.format(warnings=len(report.warnings))
        else:
            message = conf.UI.Notify.TEST_FAILED.format(errors=len(report.errors), warnings=len(report.warnings))
        self.notify_func(conf.UI.Notify.TEST_TITLE, message)
        return report

    def execute(self, executor: Callable[[Dict[str, Any]], Any]) -> Any:
        """
        Hands a copy of the graph to an external executor.

        The editor defines no execution semantics of its own; it only checks
        that the flow validates and passes the serialized blocks and
        connections on.

        Args:
            executor (Callable[[Dict[str, Any]], Any]): Receives the output of
                `Graph.to_dict()`.

        Returns:
            Any: The executor's result, or None if validation failed.
        """
        report = validate_flow(self.graph)
        if not report.valid:
            self.notify_func(conf.UI.Notify.EXECUTE_TITLE, conf.UI.Notify.EXECUTE_REFUSED)
            return None
        data = self.graph.to_dict()
        self.log_func(conf.UI.Log.EXECUTION_HANDOFF.format(blocks=len(data[conf.Key.BLOCKS])))
        return executor(data)

    # --- Camera ---

    def set_canvas_size(self, size: QSizeF) -> None:
        self.canvas_size = QSizeF(size)

    def zoom_in(self) -> bool:
        return self.viewport.zoom_in(self.canvas_size)

    def zoom_out(self) -> bool:
        return self.viewport.zoom_out(self.canvas_size)

    def zoom_at(self, factor: float, screen_anchor: Optional[QPointF] = None) -> bool:
        """Zooms by `factor` keeping the world point under `screen_anchor` fixed (default: canvas center)."""
        if screen_anchor is None:
            screen_anchor = QPointF(self.canvas_size.width() / 2, self.canvas_size.height() / 2)
        return self.viewport.zoom_by(factor, screen_anchor)

    def wheel(self, delta_y: float, modifiers: Union[int, Qt.KeyboardModifiers]) -> bool:
        """Zooms about the canvas center when the zoom modifier is held. Returns True if handled."""
        if not int(modifiers) & int(conf.ZOOM_MODIFIER):
            return False
        if delta_y > 0:
            self.zoom_in()
        elif delta_y < 0:
            self.zoom_out()
        return True

    def toggle_grid(self) -> bool:
        visible = self.viewport.toggle_grid()
        self.notify_func(conf.UI.Notify.GRID_TITLE,
                         conf.UI.Notify.GRID_VISIBLE if visible else conf.UI.Notify.GRID_HIDDEN)
        return visible

    # --- Input ---

    def pointer_down(self, screen_pos: QPointF, button: int = Qt.LeftButton,
                     modifiers: Union[int, Qt.KeyboardModifiers] = Qt.NoModifier) -> bool:
        return self.controller.pointer_down(screen_pos, button, modifiers)

    def pointer_move(self, screen_pos: QPointF) -> bool:
        return self.controller.pointer_move(screen_pos)

    def pointer_up(self, screen_pos: QPointF) -> bool:
        return self.controller.pointer_up(screen_pos)

    def handle_key(self, key: int, modifiers: Union[int, Qt.KeyboardModifiers] = Qt.NoModifier) -> bool:
        """
        Applies the editor's keyboard shortcuts.

        Args:
            key (int): A `Qt.Key` value.
            modifiers (Qt.KeyboardModifiers): Keyboard modifiers held.

        Returns:
            bool: True if the key was handled.
        """
        ctrl = bool(int(modifiers) & int(Qt.ControlModifier))
        if key == Qt.Key_Escape:
            self.controller.cancel()
            return True
        if key == Qt.Key_Delete and not ctrl:
            return self.controller.delete_selected()
        if not ctrl:
            return False
        if key == Qt.Key_Z:
            self.undo()
        elif key == Qt.Key_Y:
            self.redo()
        elif key == Qt.Key_S:
            if self.on_save is not None:
                self.on_save()
            else:
                self.save()
        elif key == Qt.Key_K:
            if self.on_quick_add is None:
                return False
            self.on_quick_add()
        elif key in (Qt.Key_Plus, Qt.Key_Equal):
            self.zoom_in()
        elif key == Qt.Key_Minus:
            self.zoom_out()
        else:
            return False
        return True

    @property
    def state(self) -> InteractionState:
        return self.controller.state

    # --- Rendering ---

    def render(self, canvas_size: Optional[QSizeF] = None) -> List[DrawCall]:
        if canvas_size is not None:
            self.set_canvas_size(canvas_size)
        controller = self.controller
        return self.renderer.render(self.graph, self.viewport, self.canvas_size,
                                    selected_block_id=controller.selected_block_id,
                                    hover_block_id=controller.hover_block_id,
                                    hover_port=controller.hover_port,
                                    preview=controller.connection_preview,
                                    target_port=controller.target_port)

    def render_minimap(self, minimap_size: Optional[QSizeF] = None) -> List[DrawCall]:
        size = minimap_size or QSizeF(conf.MINIMAP_WIDTH, conf.MINIMAP_HEIGHT)
        return self.renderer.render_minimap(self.graph, self.viewport, self.canvas_size, size)
