# -*- coding: utf-8 -*-
"""
Translates pointer and key input into graph and viewport changes.

The controller is a small state machine:

    IDLE ──press on port──────────────────▶ CONNECTING_PORT
    IDLE ──press on block body────────────▶ DRAGGING_BLOCK
    IDLE ──middle press / Shift+press─────▶ PANNING_CANVAS
    any  ──release────────────────────────▶ IDLE  (commit if the graph changed)
    any  ──Escape─────────────────────────▶ IDLE  (gesture undone, nothing committed)

Positions arrive in screen pixels and are converted with the viewport.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from PyQt5.QtCore import QPointF, Qt

import flowbuilder.conf as conf
from flowbuilder.history import HistoryManager, HistorySnapshot
from flowbuilder.model import Graph, PortDirection, PortHandle
from flowbuilder.viewport import Viewport

class InteractionState(Enum):
    """The controller's current gesture."""
    IDLE = 0
    DRAGGING_BLOCK = 1
    PANNING_CANVAS = 2
    CONNECTING_PORT = 3

@dataclass
class BlockDrag:
    block_id: str
    grab_offset: QPointF # Pointer minus block origin, in world units
    start_position: QPointF

@dataclass
class CanvasPan:
    anchor_screen: QPointF
    anchor_pan: QPointF

@dataclass
class PortConnection:
    origin: PortHandle
    preview: QPointF # Dangling end of the preview curve, in world coordinates

Gesture = Union[BlockDrag, CanvasPan, PortConnection]

def _has_modifier(modifiers: Union[int, Qt.KeyboardModifiers], modifier: int) -> bool:
    return bool(int(modifiers) & int(modifier))

class InteractionController:
    """
    Owns the in-progress gesture, the selection and the hover state of one canvas.

    Attributes:
        graph (Graph): The live graph being edited.
        viewport (Viewport): The camera used to map pointer positions.
        history (HistoryManager): Receives one snapshot per committed edit.
        selected_block_id (Optional[str]): The selected block, if any.
        hover_block_id (Optional[str]): The block under the pointer, if any.
        hover_port (Optional[PortHandle]): The port under the pointer, if any.
        target_port (Optional[PortHandle]): While connecting, the compatible
            port under the pointer that a release would connect to.
        log_func (callable): A function for logging messages.
        notify_func (callable): Receives `(title, message)` for user-facing
            notifications.
    """
    def __init__(self,
                 graph: Graph,
                 viewport: Viewport,
                 history: HistoryManager,
                 log_func: Optional[Callable[[str], None]] = None,
                 notify_func: Optional[Callable[[str, str], None]] = None) -> None:
        self.graph = graph
        self.viewport = viewport
        self.history = history
        self.log_func: Callable[[str], None] = log_func or print
        self.notify_func: Callable[[str, str], None] = notify_func or (lambda title, message: None)

        self.gesture: Optional[Gesture] = None
        self.selected_block_id: Optional[str] = None
        self.hover_block_id: Optional[str] = None
        self.hover_port: Optional[PortHandle] = None
        self.target_port: Optional[PortHandle] = None

    @property
    def state(self) -> InteractionState:
        if isinstance(self.gesture, BlockDrag):
            return InteractionState.DRAGGING_BLOCK
        if isinstance(self.gesture, CanvasPan):
            return InteractionState.PANNING_CANVAS
        if isinstance(self.gesture, PortConnection):
            return InteractionState.CONNECTING_PORT
        return InteractionState.IDLE

    @property
    def connection_preview(self) -> Optional[PortConnection]:
        return self.gesture if isinstance(self.gesture, PortConnection) else None

    def hit_radius(self) -> float:
        """Port hit radius in world units, constant on screen at any zoom."""
        return conf.PORT_HIT_RADIUS / self.viewport.zoom

    # --- Pointer input ---

    def pointer_down(self, screen_pos: QPointF,
                     button: int = Qt.LeftButton,
                     modifiers: Union[int, Qt.KeyboardModifiers] = Qt.NoModifier) -> bool:
        """
        Starts a gesture.

        Args:
            screen_pos (QPointF): Pointer position in canvas pixels.
            button (Qt.MouseButton): The pressed button.
            modifiers (Qt.KeyboardModifiers): Keyboard modifiers held.

        Returns:
            bool: True if a redraw is needed.
        """
        if self.gesture is not None:
            return False
        world = self.viewport.screen_to_world(screen_pos)

        if button == Qt.MiddleButton:
            self._start_pan(screen_pos)
            return True
        if button != Qt.LeftButton:
            return False

        port = self.graph.port_at(world, self.hit_radius())
        if port is not None:
            self.gesture = PortConnection(origin=port, preview=world)
            return True

        block = self.graph.block_at(world)
        if block is not None:
            self.selected_block_id = block.id
            self.gesture = BlockDrag(
                block_id=block.id,
                grab_offset=QPointF(world.x() - block.position.x(), world.y() - block.position.y()),
                start_position=QPointF(block.position),
            )
            return True

        if _has_modifier(modifiers, conf.PAN_MODIFIER):
            self._start_pan(screen_pos)
            return True

        changed = self.selected_block_id is not None
        self.selected_block_id = None
        return changed

    def pointer_move(self, screen_pos: QPointF) -> bool:
        """
        Advances the current gesture and refreshes hover state.

        Nothing is committed to history here; a drag is committed once, on release.

        Returns:
            bool: True if a redraw is needed.
        """
        world = self.viewport.screen_to_world(screen_pos)
        changed = self._update_hover(world)

        if isinstance(self.gesture, BlockDrag):
            drag = self.gesture
            self.graph.move_block(drag.block_id, QPointF(world.x() - drag.grab_offset.x(),
                                                         world.y() - drag.grab_offset.y()))
            return True
        if isinstance(self.gesture, CanvasPan):
            pan = self.gesture
            self.viewport.set_pan(QPointF(pan.anchor_pan.x() + screen_pos.x() - pan.anchor_screen.x(),
                                          pan.anchor_pan.y() + screen_pos.y() - pan.anchor_screen.y()))
            return True
        if isinstance(self.gesture, PortConnection):
            self.gesture.preview = world
            self.target_port = self.graph.port_at(world, self.hit_radius(),
                                                  self.gesture.origin.direction.opposite)
            return True
        return changed

    def pointer_up(self, screen_pos: QPointF) -> bool:
        """
        Finishes the current gesture and returns to IDLE.

        Returns:
            bool: True if a history snapshot was committed.
        """
        gesture, self.gesture = self.gesture, None
        self.target_port = None
        if isinstance(gesture, BlockDrag):
            block = self.graph.get_block(gesture.block_id)
            if block is not None and block.position != gesture.start_position:
                self.log_func(conf.UI.Log.BLOCK_MOVED.format(block_id=block.id,
                                                             x=block.position.x(), y=block.position.y()))
                self.commit()
                return True
            return False
        if isinstance(gesture, PortConnection):
            return self._finish_connection(gesture, self.viewport.screen_to_world(screen_pos))
        return False

    def _finish_connection(self, gesture: PortConnection, world: QPointF) -> bool:
        origin = gesture.origin
        target = self.graph.port_at(world, self.hit_radius(), origin.direction.opposite)
        if target is None:
            if self.graph.port_at(world, self.hit_radius(), origin.direction) is not None:
                self.notify_func(conf.UI.Notify.CONNECTION_REJECTED_TITLE,
                                 conf.UI.Log.WIRE_CREATION_FAILED_PIN_TYPE)
            self.log_func(conf.UI.Log.NO_VALID_PORT)
            return False
        connection_id = self.graph.connect(origin, target)
        if connection_id is None:
            return False
        self.commit()
        source, destination = (origin, target) if origin.direction is PortDirection.OUTPUT else (target, origin)
        self.notify_func(conf.UI.Notify.CONNECTED_TITLE,
                         conf.UI.Notify.CONNECTED.format(source=self.graph.describe_port(source),
                                                         destination=self.graph.describe_port(destination)))
        return True

    def _start_pan(self, screen_pos: QPointF) -> None:
        self.gesture = CanvasPan(anchor_screen=QPointF(screen_pos), anchor_pan=QPointF(self.viewport.pan))

    def _update_hover(self, world: QPointF) -> bool:
        block = self.graph.block_at(world)
        hover_block_id = block.id if block else None
        hover_port = self.graph.port_at(world, self.hit_radius())
        changed = hover_block_id != self.hover_block_id or hover_port != self.hover_port
        self.hover_block_id = hover_block_id
        self.hover_port = hover_port
        return changed

    # --- Keyboard-driven actions ---

    def cancel(self) -> None:
        """
        Abandons the current gesture and clears the selection (Escape).

        A dragged block returns to where the drag started and a pan returns
        to its starting offset. Nothing is committed.
        """
        gesture, self.gesture = self.gesture, None
        if isinstance(gesture, BlockDrag):
            self.graph.move_block(gesture.block_id, gesture.start_position)
        elif isinstance(gesture, CanvasPan):
            self.viewport.set_pan(gesture.anchor_pan)
        if gesture is not None:
            self.log_func(conf.UI.Log.GESTURE_CANCELLED)
        self.target_port = None
        self.selected_block_id = None

    def delete_selected(self) -> bool:
        """Deletes the selected block and commits one snapshot (Delete)."""
        if self.gesture is not None or self.selected_block_id is None:
            return False
        block_id, self.selected_block_id = self.selected_block_id, None
        if not self.graph.delete_block(block_id):
            return False
        if self.hover_block_id == block_id:
            self.hover_block_id = None
        if self.hover_port is not None and self.hover_port.block_id == block_id:
            self.hover_port = None
        self.commit()
        return True

    def select(self, block_id: Optional[str]) -> None:
        self.selected_block_id = block_id if self.graph.get_block(block_id) else None

    def sync_with_graph(self) -> None:
        """Drops references to blocks that no longer exist, e.g. after undo or load."""
        if self.graph.get_block(self.selected_block_id) is None:
            self.selected_block_id = None
        if self.graph.get_block(self.hover_block_id) is None:
            self.hover_block_id = None
        if self.hover_port is not None and self.graph.port_spec(self.hover_port) is None:
            self.hover_port = None
        self.gesture = None
        self.target_port = None

    def commit(self) -> None:
        """Pushes one snapshot of the live graph onto the history."""
        self.history.push(HistorySnapshot.capture(self.graph))
        self.log_func(conf.UI.Log.HISTORY_COMMITTED.format(index=self.history.index + 1,
                                                           length=len(self.history)))
