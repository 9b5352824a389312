# -*- coding: utf-8 -*-
"""
Immediate-mode drawing of the canvas and the minimap.

`Renderer.render` is a pure function of the graph, the viewport and the
interaction state: it returns a list of draw calls in screen coordinates,
ordered back to front. `paint_calls` replays such a list on a `QPainter`.

Frame order:
    background and grid → connections → connection preview → blocks
    → port markers → hovered port label
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Set, Tuple, Union

from PyQt5.QtCore import QLineF, QPointF, QRectF, QSizeF, Qt
from PyQt5.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen, QPolygonF

import flowbuilder.conf as conf
from flowbuilder.interaction import PortConnection
from flowbuilder.model import Block, Graph, PortDirection, PortHandle
from flowbuilder.viewport import Viewport

class Layer(IntEnum):
    """Draw layers, back to front."""
    BACKGROUND = 0
    GRID = 1
    CONNECTION = 2
    PREVIEW = 3
    BLOCK = 4
    PORT = 5
    LABEL = 6

@dataclass(frozen=True)
class Line:
    layer: Layer
    start: QPointF
    end: QPointF
    color: QColor
    width: float = conf.PEN_WIDTH_GRID

@dataclass(frozen=True)
class Rect:
    layer: Layer
    rect: QRectF
    fill: Optional[QColor] = None
    border: Optional[QColor] = None
    border_width: float = conf.PEN_WIDTH_NORMAL
    radius: float = 0.0

@dataclass(frozen=True)
class Bezier:
    layer: Layer
    start: QPointF
    control1: QPointF
    control2: QPointF
    end: QPointF
    color: QColor
    width: float = conf.PEN_WIDTH_CONNECTION
    dashed: bool = False

@dataclass(frozen=True)
class Polygon:
    layer: Layer
    points: Tuple[QPointF, ...]
    fill: QColor

@dataclass(frozen=True)
class Circle:
    layer: Layer
    center: QPointF
    radius: float
    fill: QColor

@dataclass(frozen=True)
class Text:
    layer: Layer
    position: QPointF # Left end of the baseline
    text: str
    color: QColor
    pixel_size: float
    bold: bool = False

DrawCall = Union[Line, Rect, Bezier, Polygon, Circle, Text]

@dataclass(frozen=True)
class MinimapProjection:
    """
    Maps world coordinates onto the minimap with one uniform scale.

    Attributes:
        bounds (QRectF): The world rectangle being projected.
        scale (float): Minimap pixels per world unit.
        margin (float): Offset of the projected bounds from the minimap's corner.
    """
    bounds: QRectF
    scale: float
    margin: float = conf.MINIMAP_MARGIN

    @classmethod
    def fit(cls, bounds: QRectF, minimap_size: QSizeF) -> 'MinimapProjection':
        """Chooses the scale so that `bounds` fits the minimap with room to spare."""
        scale = min(minimap_size.width() / bounds.width(),
                    minimap_size.height() / bounds.height()) * conf.MINIMAP_FILL_RATIO
        return cls(bounds=QRectF(bounds), scale=scale)

    def map_point(self, point: QPointF) -> QPointF:
        return QPointF((point.x() - self.bounds.left()) * self.scale + self.margin,
                       (point.y() - self.bounds.top()) * self.scale + self.margin)

    def map_rect(self, rect: QRectF) -> QRectF:
        return QRectF(self.map_point(rect.topLeft()),
                      QSizeF(rect.width() * self.scale, rect.height() * self.scale))

def _offset(point: QPointF, dx: float, dy: float = 0.0) -> QPointF:
    return QPointF(point.x() + dx, point.y() + dy)

def _color(value: str) -> QColor:
    color = QColor(value)
    return color if color.isValid() else QColor(conf.DEFAULT_ACCENT_COLOR)

def _truncate(text: str, limit: int) -> str:
    return text[:limit] + '...' if len(text) > limit else text

class Renderer:
    """Produces draw calls for the canvas and the minimap."""

    def render(self,
               graph: Graph,
               viewport: Viewport,
               canvas_size: QSizeF,
               selected_block_id: Optional[str] = None,
               hover_block_id: Optional[str] = None,
               hover_port: Optional[PortHandle] = None,
               preview: Optional[PortConnection] = None,
               target_port: Optional[PortHandle] = None) -> List[DrawCall]:
        """
        Draws one frame.

        Args:
            graph (Graph): The blocks and connections to draw.
            viewport (Viewport): The camera mapping world to screen.
            canvas_size (QSizeF): The canvas size in pixels.
            selected_block_id (str, optional): Block drawn with the selection border.
            hover_block_id (str, optional): Block drawn with the hover border.
            hover_port (PortHandle, optional): Port that gets a name label.
            preview (PortConnection, optional): The connection being dragged.
            target_port (PortHandle, optional): Port highlighted as the drop target.

        Returns:
            List[DrawCall]: Calls in screen coordinates, back to front.
        """
        calls: List[DrawCall] = [Rect(Layer.BACKGROUND, QRectF(QPointF(0, 0), canvas_size),
                                      fill=conf.CANVAS_BACKGROUND_COLOR)]
        if viewport.grid_visible:
            calls.extend(self._grid(viewport, canvas_size))
        for connection in graph.connections:
            calls.extend(self._connection(graph, viewport, connection.source.block_id, connection.source.port_index,
                                          connection.destination.block_id, connection.destination.port_index))
        if preview is not None:
            calls.extend(self._preview(graph, viewport, preview))
        for block in graph.blocks:
            calls.extend(self._block(graph, viewport, block,
                                     selected=block.id == selected_block_id,
                                     hovered=block.id == hover_block_id))
        highlighted = {port for port in (target_port, preview.origin if preview else None) if port is not None}
        for block in graph.blocks:
            calls.extend(self._ports(viewport, block, highlighted))
        if hover_port is not None:
            calls.extend(self._port_label(graph, viewport, hover_port))
        return calls

    def _grid(self, viewport: Viewport, canvas_size: QSizeF) -> List[DrawCall]:
        spacing = viewport.grid_size * viewport.zoom
        if spacing < 2:
            return []
        width, height = canvas_size.width(), canvas_size.height()
        lines: List[DrawCall] = []
        x = viewport.pan.x() % spacing
        while x < width:
            lines.append(Line(Layer.GRID, QPointF(x, 0), QPointF(x, height), conf.GRID_COLOR))
            x += spacing
        y = viewport.pan.y() % spacing
        while y < height:
            lines.append(Line(Layer.GRID, QPointF(0, y), QPointF(width, y), conf.GRID_COLOR))
            y += spacing
        return lines

    def _connection(self, graph: Graph, viewport: Viewport,
                    source_id: str, source_index: int, dest_id: str, dest_index: int) -> List[DrawCall]:
        source_block = graph.get_block(source_id)
        dest_block = graph.get_block(dest_id)
        if source_block is None or dest_block is None:
            return []
        start = viewport.world_to_screen(source_block.port_position(PortDirection.OUTPUT, source_index))
        end = viewport.world_to_screen(dest_block.port_position(PortDirection.INPUT, dest_index))
        offset = conf.BEZIER_CONTROL_OFFSET * viewport.zoom
        tip = _offset(end, -conf.PORT_RADIUS)
        base = tip.x() - conf.ARROW_LENGTH
        return [
            Bezier(Layer.CONNECTION, start, _offset(start, offset), _offset(end, -offset), end,
                   conf.CONNECTION_COLOR),
            Polygon(Layer.CONNECTION,
                    (tip, QPointF(base, tip.y() - conf.ARROW_HALF_WIDTH), QPointF(base, tip.y() + conf.ARROW_HALF_WIDTH)),
                    conf.CONNECTION_ARROW_COLOR),
        ]

    def _preview(self, graph: Graph, viewport: Viewport, preview: PortConnection) -> List[DrawCall]:
        origin = graph.port_position(preview.origin)
        if origin is None:
            return []
        start = viewport.world_to_screen(origin)
        end = viewport.world_to_screen(preview.preview)
        offset = conf.BEZIER_CONTROL_OFFSET * viewport.zoom
        # The free end bends toward the side a compatible port would be on.
        if preview.origin.direction is PortDirection.OUTPUT:
            control1, control2 = _offset(start, offset), _offset(end, -offset)
        else:
            control1, control2 = _offset(start, -offset), _offset(end, offset)
        return [
            Bezier(Layer.PREVIEW, start, control1, control2, end, conf.CONNECTION_PREVIEW_COLOR, dashed=True),
            Circle(Layer.PREVIEW, end, conf.PREVIEW_ENDPOINT_RADIUS, conf.CONNECTION_PREVIEW_COLOR),
        ]

    def _block(self, graph: Graph, viewport: Viewport, block: Block, selected: bool, hovered: bool) -> List[DrawCall]:
        zoom = viewport.zoom
        rect = viewport.world_rect_to_screen(block.rect())
        if selected:
            fill, border, width = conf.BLOCK_SELECTED_FILL_COLOR, conf.BLOCK_SELECTED_BORDER_COLOR, conf.PEN_WIDTH_HIGHLIGHT
        elif hovered:
            fill, border, width = conf.BLOCK_HOVER_FILL_COLOR, conf.BLOCK_HOVER_BORDER_COLOR, conf.PEN_WIDTH_NORMAL
        else:
            fill, border, width = conf.BLOCK_FILL_COLOR, conf.BLOCK_BORDER_COLOR, conf.PEN_WIDTH_NORMAL

        block_type = graph.block_type(block)
        title = f"{block_type.icon} {block_type.name}" if block_type else block.type_key
        description = _truncate(block_type.description, conf.BLOCK_DESCRIPTION_MAX_CHARS) if block_type else ''
        accent = _color(block_type.color if block_type else conf.DEFAULT_ACCENT_COLOR)
        text_x = rect.left() + conf.BLOCK_TEXT_LEFT_PADDING * zoom

        calls: List[DrawCall] = [
            Rect(Layer.BLOCK, rect, fill=fill, border=border, border_width=width,
                 radius=conf.BLOCK_CORNER_RADIUS * zoom),
            Rect(Layer.BLOCK, QRectF(rect.left(), rect.top(), rect.width(), conf.BLOCK_ACCENT_HEIGHT * zoom),
                 fill=accent),
            Text(Layer.BLOCK, QPointF(text_x, rect.top() + conf.BLOCK_TITLE_BASELINE * zoom), title,
                 conf.BLOCK_TITLE_COLOR, conf.FONT_SIZE_BLOCK_TITLE * zoom, bold=True),
        ]
        if description:
            calls.append(Text(Layer.BLOCK, QPointF(text_x, rect.top() + conf.BLOCK_DESCRIPTION_BASELINE * zoom),
                              description, conf.BLOCK_DESCRIPTION_COLOR, conf.FONT_SIZE_BLOCK_DESCRIPTION * zoom))
        return calls

    def _ports(self, viewport: Viewport, block: Block, highlighted: Set[PortHandle]) -> List[DrawCall]:
        calls: List[DrawCall] = []
        for direction, color in ((PortDirection.INPUT, conf.INPUT_PORT_COLOR),
                                 (PortDirection.OUTPUT, conf.OUTPUT_PORT_COLOR)):
            for index in range(len(block.ports(direction))):
                if PortHandle(block.id, index, direction) in highlighted:
                    fill = conf.PORT_HIGHLIGHT_COLOR
                else:
                    fill = color
                center = viewport.world_to_screen(block.port_position(direction, index))
                calls.append(Circle(Layer.PORT, center, conf.PORT_RADIUS, fill))
        return calls

    def _port_label(self, graph: Graph, viewport: Viewport, handle: PortHandle) -> List[DrawCall]:
        spec = graph.port_spec(handle)
        center = graph.port_position(handle)
        if spec is None or center is None:
            return []
        center = viewport.world_to_screen(center)
        text_width = len(spec.name) * conf.PORT_LABEL_CHAR_WIDTH + 10
        if handle.direction is PortDirection.OUTPUT:
            left = center.x() + conf.PORT_LABEL_OFFSET
            color = conf.OUTPUT_PORT_COLOR
        else:
            left = center.x() - conf.PORT_LABEL_OFFSET - text_width
            color = conf.INPUT_PORT_COLOR
        tag = QRectF(left, center.y() - conf.PORT_LABEL_HEIGHT / 2, text_width, conf.PORT_LABEL_HEIGHT)
        return [
            Rect(Layer.LABEL, tag, fill=conf.PORT_LABEL_BACKGROUND),
            Text(Layer.LABEL, QPointF(left + 5, center.y() + 4), spec.name, color, conf.FONT_SIZE_PORT_LABEL),
        ]

    def render_minimap(self,
                       graph: Graph,
                       viewport: Viewport,
                       canvas_size: QSizeF,
                       minimap_size: QSizeF) -> List[DrawCall]:
        """
        Draws the minimap: every block as a scaled rectangle plus an outline
        of the area currently visible on the canvas.

        Returns:
            List[DrawCall]: Calls in minimap coordinates. Only the background
            is drawn when the graph has no blocks.
        """
        calls: List[DrawCall] = [Rect(Layer.BACKGROUND, QRectF(QPointF(0, 0), minimap_size),
                                      fill=conf.MINIMAP_BACKGROUND_COLOR)]
        bounds = graph.bounding_rect()
        if bounds.isEmpty():
            return calls
        projection = MinimapProjection.fit(bounds, minimap_size)
        for block in graph.blocks:
            calls.append(Rect(Layer.BLOCK, projection.map_rect(block.rect()), fill=conf.MINIMAP_BLOCK_COLOR))
        calls.append(Rect(Layer.LABEL, projection.map_rect(viewport.visible_world_rect(canvas_size)),
                          border=conf.MINIMAP_VIEWPORT_COLOR, border_width=conf.PEN_WIDTH_NORMAL))
        return calls

def paint_calls(painter: QPainter, calls: Sequence[DrawCall]) -> None:
    """
    Replays draw calls on a QPainter.

    Args:
        painter (QPainter): An active painter on the target device.
        calls (Sequence[DrawCall]): Calls produced by `Renderer`.
    """
    painter.save()
    painter.setRenderHint(QPainter.Antialiasing)
    for call in calls:
        if isinstance(call, Line):
            painter.setPen(QPen(call.color, call.width))
            painter.drawLine(QLineF(call.start, call.end))
        elif isinstance(call, Rect):
            painter.setPen(QPen(call.border, call.border_width) if call.border is not None else Qt.NoPen)
            painter.setBrush(QBrush(call.fill) if call.fill is not None else Qt.NoBrush)
            if call.radius > 0:
                painter.drawRoundedRect(call.rect, call.radius, call.radius)
            else:
                painter.drawRect(call.rect)
        elif isinstance(call, Bezier):
            pen = QPen(call.color, call.width)
            pen.setCapStyle(Qt.RoundCap)
            if call.dashed:
                pen.setStyle(conf.PEN_STYLE_DASH)
            painter.setPen(pen)
            painter.setBrush(Qt.NoBrush)
            path = QPainterPath(call.start)
            path.cubicTo(call.control1, call.control2, call.end)
            painter.drawPath(path)
        elif isinstance(call, Polygon):
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(call.fill))
            painter.drawPolygon(QPolygonF(list(call.points)))
        elif isinstance(call, Circle):
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(call.fill))
            painter.drawEllipse(call.center, call.radius, call.radius)
        elif isinstance(call, Text):
            font = QFont(conf.FONT_FAMILY)
            font.setPixelSize(max(1, int(round(call.pixel_size))))
            if call.bold:
                font.setWeight(conf.FONT_WEIGHT_BLOCK_TITLE)
            painter.setFont(font)
            painter.setPen(QPen(call.color))
            painter.drawText(call.position, call.text)
    painter.restore()
