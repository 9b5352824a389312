# -*- coding: utf-8 -*-
"""
The graph data store: blocks, ports and connections.

This module provides the following classes:
- `PortDirection`: Whether a port is an output (right edge) or an input (left edge).
- `PortRef`: One endpoint of a stored connection.
- `PortHandle`: A port found by hit-testing, carrying its direction.
- `Block`: A placed instance of a registry block type.
- `Connection`: A directed edge from an output port to an input port.
- `Graph`: The mutable block/connection store and its operations.

The graph never records history itself; callers commit snapshots after each
successful mutation.
"""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from PyQt5.QtCore import QPointF, QRectF, QSizeF

import flowbuilder.conf as conf
from flowbuilder.registry import BlockType, BlockTypeRegistry, ConfigValue, PortSpec

class PortDirection(Enum):
    """Defines the role of a port, either as an output or an input."""
    OUTPUT = 0
    INPUT = 1

    @property
    def opposite(self) -> 'PortDirection':
        return PortDirection.INPUT if self is PortDirection.OUTPUT else PortDirection.OUTPUT

@dataclass(frozen=True)
class PortRef:
    """A `(block_id, port_index)` pair naming one end of a connection."""
    block_id: str
    port_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {conf.Key.BLOCK_ID: self.block_id, conf.Key.PORT_INDEX: self.port_index}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PortRef':
        return cls(block_id=str(data[conf.Key.BLOCK_ID]), port_index=int(data[conf.Key.PORT_INDEX]))

@dataclass(frozen=True)
class PortHandle:
    """A port located on the canvas: its block, its index and its direction."""
    block_id: str
    port_index: int
    direction: PortDirection

    def ref(self) -> PortRef:
        return PortRef(self.block_id, self.port_index)

@dataclass
class Block:
    """
    A placed node.

    `id` and `type_key` are fixed at creation; ports are copied from the
    registry entry and never change afterwards. Port index 0 is the port
    nearest the top edge.
    """
    id: str
    type_key: str
    position: QPointF
    size: QSizeF = field(default_factory=lambda: QSizeF(conf.BLOCK_WIDTH, conf.BLOCK_HEIGHT))
    config: Dict[str, ConfigValue] = field(default_factory=dict)
    inputs: Tuple[PortSpec, ...] = ()
    outputs: Tuple[PortSpec, ...] = ()

    def rect(self) -> QRectF:
        return QRectF(self.position, self.size)

    def ports(self, direction: PortDirection) -> Tuple[PortSpec, ...]:
        return self.outputs if direction is PortDirection.OUTPUT else self.inputs

    def has_port(self, direction: PortDirection, index: int) -> bool:
        return 0 <= index < len(self.ports(direction))

    def port_position(self, direction: PortDirection, index: int) -> QPointF:
        """Returns the world position of a port's center."""
        x = self.position.x() + (self.size.width() if direction is PortDirection.OUTPUT else 0.0)
        y = self.position.y() + conf.PORT_TOP_PADDING + index * conf.PORT_VERTICAL_SPACING
        return QPointF(x, y)

    def contains(self, point: QPointF) -> bool:
        x, y = point.x(), point.y()
        left, top = self.position.x(), self.position.y()
        return left <= x <= left + self.size.width() and top <= y <= top + self.size.height()

    def to_dict(self) -> Dict[str, Any]:
        return {
            conf.Key.ID: self.id,
            conf.Key.TYPE: self.type_key,
            conf.Key.X: self.position.x(),
            conf.Key.Y: self.position.y(),
            conf.Key.WIDTH: self.size.width(),
            conf.Key.HEIGHT: self.size.height(),
            conf.Key.CONFIG: dict(self.config),
            conf.Key.INPUTS: [port.to_dict() for port in self.inputs],
            conf.Key.OUTPUTS: [port.to_dict() for port in self.outputs],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Block':
        return cls(
            id=str(data[conf.Key.ID]),
            type_key=str(data[conf.Key.TYPE]),
            position=QPointF(float(data[conf.Key.X]), float(data[conf.Key.Y])),
            size=QSizeF(float(data.get(conf.Key.WIDTH, conf.BLOCK_WIDTH)),
                        float(data.get(conf.Key.HEIGHT, conf.BLOCK_HEIGHT))),
            config=dict(data.get(conf.Key.CONFIG) or {}),
            inputs=tuple(PortSpec.from_dict(port) for port in data.get(conf.Key.INPUTS) or ()),
            outputs=tuple(PortSpec.from_dict(port) for port in data.get(conf.Key.OUTPUTS) or ()),
        )

@dataclass(frozen=True)
class Connection:
    """A directed edge from `source` (an output port) to `destination` (an input port)."""
    id: str
    source: PortRef
    destination: PortRef

    def touches(self, block_id: str) -> bool:
        return self.source.block_id == block_id or self.destination.block_id == block_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            conf.Key.ID: self.id,
            conf.Key.FROM: self.source.to_dict(),
            conf.Key.TO: self.destination.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Connection':
        return cls(
            id=str(data[conf.Key.ID]),
            source=PortRef.from_dict(data[conf.Key.FROM]),
            destination=PortRef.from_dict(data[conf.Key.TO]),
        )

def _identity(point: QPointF) -> QPointF:
    return QPointF(point)

class Graph:
    """
    The live set of blocks and connections.

    Blocks are kept in z-order: the last block is drawn on top and is the
    first one found by hit-testing. Every mutating method returns a falsy
    value instead of raising when it names a block, port or connection that
    does not exist.

    Attributes:
        registry (BlockTypeRegistry): Source of block types for `add_block`.
        snap_func (Callable[[QPointF], QPointF]): Applied to every position
            written by `add_block` and `move_block`.
        log_func (Callable[[str], None]): A function for logging messages.
        allow_duplicate_connections (bool): If False, a second connection
            between the same two ports is rejected.
    """
    def __init__(self,
                 registry: BlockTypeRegistry,
                 snap_func: Optional[Callable[[QPointF], QPointF]] = None,
                 log_func: Optional[Callable[[str], None]] = None,
                 allow_duplicate_connections: bool = False) -> None:
        self.registry = registry
        self.snap_func: Callable[[QPointF], QPointF] = snap_func or _identity
        self.log_func: Callable[[str], None] = log_func or print
        self.allow_duplicate_connections = allow_duplicate_connections
        self._blocks: Dict[str, Block] = {}
        self._connections: Dict[str, Connection] = {}

    # --- Queries ---

    @property
    def blocks(self) -> List[Block]:
        return list(self._blocks.values())

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def get_block(self, block_id: Optional[str]) -> Optional[Block]:
        if block_id is None:
            return None
        return self._blocks.get(block_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def connections_for(self, block_id: str) -> List[Connection]:
        return [conn for conn in self._connections.values() if conn.touches(block_id)]

    def is_empty(self) -> bool:
        return not self._blocks

    def block_type(self, block: Block) -> Optional[BlockType]:
        return self.registry.get(block.type_key)

    def port_spec(self, handle: PortHandle) -> Optional[PortSpec]:
        block = self._blocks.get(handle.block_id)
        if block is None or not block.has_port(handle.direction, handle.port_index):
            return None
        return block.ports(handle.direction)[handle.port_index]

    def port_position(self, handle: PortHandle) -> Optional[QPointF]:
        block = self._blocks.get(handle.block_id)
        if block is None:
            return None
        return block.port_position(handle.direction, handle.port_index)

    def bounding_rect(self) -> QRectF:
        """
        Returns the smallest rectangle that contains every block.

        Returns:
            QRectF: The bounding rectangle, or an empty QRectF if the graph
            has no blocks.
        """
        total = QRectF()
        for block in self._blocks.values():
            total = block.rect() if total.isNull() else total.united(block.rect())
        return total

    def block_at(self, world_pos: QPointF) -> Optional[Block]:
        """Returns the topmost block whose body contains `world_pos`."""
        for block in reversed(list(self._blocks.values())):
            if block.contains(world_pos):
                return block
        return None

    def port_at(self, world_pos: QPointF, radius: float,
                direction: Optional[PortDirection] = None) -> Optional[PortHandle]:
        """
        Hit-tests ports around `world_pos`.

        Blocks are visited from topmost to bottom; within a block, output
        ports are checked before input ports.

        Args:
            world_pos (QPointF): The point to test, in world coordinates.
            radius (float): The hit radius, in world units.
            direction (PortDirection, optional): If given, only ports of this
                direction can match.

        Returns:
            PortHandle or None: The first port whose center lies strictly
            within `radius`.
        """
        if direction is None:
            directions: Tuple[PortDirection, ...] = (PortDirection.OUTPUT, PortDirection.INPUT)
        else:
            directions = (direction,)
        for block in reversed(list(self._blocks.values())):
            for port_direction in directions:
                for index in range(len(block.ports(port_direction))):
                    center = block.port_position(port_direction, index)
                    if math.hypot(world_pos.x() - center.x(), world_pos.y() - center.y()) < radius:
                        return PortHandle(block.id, index, port_direction)
        return None

    # --- Mutations ---

    def add_block(self, type_key: str, world_pos: QPointF) -> Optional[str]:
        """
        Instantiates a block of `type_key` at the snapped `world_pos`.

        Returns:
            str or None: The new block's id, or None if `type_key` is unknown.
        """
        block_type = self.registry.get(type_key)
        if block_type is None:
            self.log_func(conf.UI.Log.UNKNOWN_BLOCK_TYPE.format(type_key=type_key))
            return None
        position = self.snap_func(world_pos)
        block = Block(
            id=self._new_id(conf.BLOCK_ID_PREFIX, self._blocks),
            type_key=type_key,
            position=position,
            size=QSizeF(conf.BLOCK_WIDTH, conf.BLOCK_HEIGHT),
            config=block_type.default_config(),
            inputs=block_type.inputs,
            outputs=block_type.outputs,
        )
        self._blocks[block.id] = block
        self.log_func(conf.UI.Log.BLOCK_ADDED.format(name=block_type.name, block_id=block.id,
                                                     x=position.x(), y=position.y()))
        return block.id

    def delete_block(self, block_id: str) -> bool:
        """Removes a block together with every connection that references it."""
        if block_id not in self._blocks:
            self.log_func(conf.UI.Log.BLOCK_NOT_FOUND.format(block_id=block_id))
            return False
        attached = [conn.id for conn in self._connections.values() if conn.touches(block_id)]
        for connection_id in attached:
            del self._connections[connection_id]
        del self._blocks[block_id]
        self.log_func(conf.UI.Log.BLOCK_DELETED.format(block_id=block_id, count=len(attached)))
        return True

    def move_block(self, block_id: str, world_pos: QPointF) -> bool:
        """Sets a block's position, snapped. Overlap with other blocks is allowed."""
        block = self._blocks.get(block_id)
        if block is None:
            self.log_func(conf.UI.Log.BLOCK_NOT_FOUND.format(block_id=block_id))
            return False
        block.position = self.snap_func(world_pos)
        return True

    def set_config(self, block_id: str, key: str, value: ConfigValue) -> bool:
        """Overwrites an existing config entry. Unknown blocks and keys are ignored."""
        block = self._blocks.get(block_id)
        if block is None:
            self.log_func(conf.UI.Log.BLOCK_NOT_FOUND.format(block_id=block_id))
            return False
        if key not in block.config:
            self.log_func(conf.UI.Log.CONFIG_KEY_UNKNOWN.format(block_id=block_id, key=key))
            return False
        block.config[key] = value
        self.log_func(conf.UI.Log.CONFIG_UPDATED.format(block_id=block_id, key=key, value=value))
        return True

    def connect(self, start: PortHandle, end: PortHandle) -> Optional[str]:
        """
        Connects two ports.

        The direction of `start` (the port the user dragged from) decides
        which end is the source: an output start connects to an input end
        and an input start connects from an output end.

        Args:
            start (PortHandle): The port where the drag began.
            end (PortHandle): The port where the drag was released.

        Returns:
            str or None: The new connection's id, or None if both ports have
            the same direction, an endpoint does not resolve, or the
            connection already exists.
        """
        if start.direction is end.direction:
            self.log_func(conf.UI.Log.WIRE_CREATION_FAILED_PIN_TYPE)
            return None
        source, destination = (start, end) if start.direction is PortDirection.OUTPUT else (end, start)
        for handle in (source, destination):
            block = self._blocks.get(handle.block_id)
            if block is None or not block.has_port(handle.direction, handle.port_index):
                self.log_func(conf.UI.Log.WIRE_CREATION_FAILED_NO_PORT.format(
                    block_id=handle.block_id, port_index=handle.port_index))
                return None
        if not self.allow_duplicate_connections and self._find_connection(source.ref(), destination.ref()):
            self.log_func(conf.UI.Log.CONNECTION_EXISTS)
            return None

        connection = Connection(
            id=self._new_id(conf.CONNECTION_ID_PREFIX, self._connections),
            source=source.ref(),
            destination=destination.ref(),
        )
        self._connections[connection.id] = connection
        self.log_func(conf.UI.Log.WIRE_CONNECTED.format(connection_id=connection.id,
                                                        source_desc=self.describe_port(source),
                                                        dest_desc=self.describe_port(destination)))
        return connection.id

    def connect_ports(self, from_block_id: str, from_port_index: int,
                      to_block_id: str, to_port_index: int) -> Optional[str]:
        """Connects output `from_port_index` of one block to input `to_port_index` of another."""
        return self.connect(PortHandle(from_block_id, from_port_index, PortDirection.OUTPUT),
                            PortHandle(to_block_id, to_port_index, PortDirection.INPUT))

    def disconnect(self, connection_id: str) -> bool:
        if self._connections.pop(connection_id, None) is None:
            self.log_func(conf.UI.Log.CONNECTION_NOT_FOUND.format(connection_id=connection_id))
            return False
        self.log_func(conf.UI.Log.CONNECTION_REMOVED.format(connection_id=connection_id))
        return True

    def clear(self) -> None:
        self._blocks.clear()
        self._connections.clear()

    def suggest_connection(self, block_id: str, direction: PortDirection) -> Optional[str]:
        """
        Picks a block to wire to one side of `block_id`.

        For `PortDirection.INPUT` the candidates are the other blocks with at
        least one output port, and a candidate whose category may feed this
        block is preferred. `PortDirection.OUTPUT` is the mirror image.
        Without a compatible candidate the first candidate in z-order wins.

        Returns:
            str or None: The suggested block's id, or None if there is no
            candidate or `block_id` is unknown.
        """
        block = self._blocks.get(block_id)
        if block is None:
            self.log_func(conf.UI.Log.BLOCK_NOT_FOUND.format(block_id=block_id))
            return None
        candidates = [other for other in self._blocks.values()
                      if other.id != block_id and other.ports(direction.opposite)]
        if not candidates:
            return None
        for other in candidates:
            if direction is PortDirection.INPUT:
                compatible = self.registry.are_compatible(other.type_key, block.type_key)
            else:
                compatible = self.registry.are_compatible(block.type_key, other.type_key)
            if compatible:
                return other.id
        return candidates[0].id

    def auto_connect(self) -> List[str]:
        """
        Wires consecutive blocks together.

        Each block is connected from its first output to the first input of
        the next block in z-order when the two categories are compatible.
        Pairs that are already connected are left alone.

        Returns:
            List[str]: The ids of the connections created.
        """
        created = []
        blocks = list(self._blocks.values())
        for source, destination in zip(blocks, blocks[1:]):
            if not source.outputs or not destination.inputs:
                continue
            if not self.registry.are_compatible(source.type_key, destination.type_key):
                continue
            if self._find_connection(PortRef(source.id, 0), PortRef(destination.id, 0)):
                continue
            connection_id = self.connect_ports(source.id, 0, destination.id, 0)
            if connection_id is not None:
                created.append(connection_id)
        self.log_func(conf.UI.Log.AUTO_CONNECTED.format(count=len(created)))
        return created

    def auto_align(self) -> int:
        """
        Arranges blocks in one column per category.

        Categories are laid out left to right in the order they are first
        met; blocks keep their relative order within a column.

        Returns:
            int: The number of columns created.
        """
        columns: Dict[str, List[Block]] = {}
        for block in self._blocks.values():
            block_type = self.registry.get(block.type_key)
            category = block_type.category if block_type else block.type_key
            columns.setdefault(category, []).append(block)

        x = conf.AUTO_ALIGN_START_X
        for blocks in columns.values():
            y = conf.AUTO_ALIGN_START_Y
            for block in blocks:
                block.position = self.snap_func(QPointF(x, y))
                y += block.size.height() + conf.AUTO_ALIGN_ROW_GAP
            x += conf.AUTO_ALIGN_COLUMN_STEP
        self.log_func(conf.UI.Log.ALIGNED.format(count=len(self._blocks), columns=len(columns)))
        return len(columns)

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            conf.Key.BLOCKS: [block.to_dict() for block in self._blocks.values()],
            conf.Key.CONNECTIONS: [conn.to_dict() for conn in self._connections.values()],
        }

    def load_dict(self, data: Mapping[str, Any]) -> None:
        """
        Replaces the graph's contents in place.

        Connections whose endpoints do not resolve are dropped so that no
        dangling reference survives a load.

        Raises:
            KeyError, TypeError, ValueError: If `data` is malformed. The graph
            is left unchanged in that case.
        """
        blocks = [Block.from_dict(item) for item in data.get(conf.Key.BLOCKS) or ()]
        connections = [Connection.from_dict(item) for item in data.get(conf.Key.CONNECTIONS) or ()]
        by_id = {block.id: block for block in blocks}

        def resolves(ref: PortRef, direction: PortDirection) -> bool:
            block = by_id.get(ref.block_id)
            return block is not None and block.has_port(direction, ref.port_index)

        self._blocks = by_id
        self._connections = {}
        for conn in connections:
            if resolves(conn.source, PortDirection.OUTPUT) and resolves(conn.destination, PortDirection.INPUT):
                self._connections[conn.id] = conn
            else:
                self.log_func(conf.UI.Log.CONNECTION_NOT_FOUND.format(connection_id=conn.id))

    # --- Helpers ---

    def _find_connection(self, source: PortRef, destination: PortRef) -> Optional[Connection]:
        for conn in self._connections.values():
            if conn.source == source and conn.destination == destination:
                return conn
        return None

    def describe_port(self, handle: PortHandle) -> str:
        spec = self.port_spec(handle)
        port_name = spec.name if spec else str(handle.port_index)
        block = self._blocks.get(handle.block_id)
        block_type = self.registry.get(block.type_key) if block else None
        block_name = block_type.name if block_type else handle.block_id
        return f"{block_name}:{port_name}"

    @staticmethod
    def _new_id(prefix: str, existing: Iterable[str]) -> str:
        taken = set(existing)
        while True:
            candidate = f"{prefix}{uuid.uuid4().hex[:9]}"
            if candidate not in taken:
                return candidate
