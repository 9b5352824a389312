# -*- coding: utf-8 -*-
"""
The camera over the graph: pan, zoom and the grid.

`Viewport` maps between screen pixels and world (graph) coordinates:

    screen = world * zoom + pan
    world = (screen - pan) / zoom

Camera state is never recorded in the undo history.
"""

from typing import Optional

from PyQt5.QtCore import QPointF, QRectF, QSizeF

import flowbuilder.conf as conf

def clamp_zoom(zoom: float) -> float:
    """Clamps a zoom factor to [MIN_ZOOM_FACTOR, MAX_ZOOM_FACTOR]."""
    return max(conf.MIN_ZOOM_FACTOR, min(zoom, conf.MAX_ZOOM_FACTOR))

class Viewport:
    """
    Pan/zoom state plus the grid settings of one canvas.

    Attributes:
        pan (QPointF): Screen-space offset of the world origin.
        zoom (float): Scale factor, always within the configured limits.
        grid_size (int): Grid spacing in world units.
        snap_enabled (bool): If True, `snap_to_grid` rounds to the grid.
        grid_visible (bool): If True, the renderer draws the grid.
    """
    def __init__(self,
                 pan: Optional[QPointF] = None,
                 zoom: float = conf.INITIAL_ZOOM_FACTOR,
                 grid_size: int = conf.GRID_SIZE,
                 snap_enabled: bool = conf.GRID_SNAP_ENABLED,
                 grid_visible: bool = conf.GRID_VISIBLE) -> None:
        if grid_size <= 0:
            raise ValueError("grid_size must be positive")
        self.pan = QPointF(pan) if pan is not None else QPointF(0.0, 0.0)
        self._zoom = clamp_zoom(zoom)
        self.grid_size = grid_size
        self.snap_enabled = snap_enabled
        self.grid_visible = grid_visible

    @property
    def zoom(self) -> float:
        return self._zoom

    @zoom.setter
    def zoom(self, value: float) -> None:
        self._zoom = clamp_zoom(value)

    def world_to_screen(self, point: QPointF) -> QPointF:
        return QPointF(point.x() * self._zoom + self.pan.x(), point.y() * self._zoom + self.pan.y())

    def screen_to_world(self, point: QPointF) -> QPointF:
        return QPointF((point.x() - self.pan.x()) / self._zoom, (point.y() - self.pan.y()) / self._zoom)

    def world_rect_to_screen(self, rect: QRectF) -> QRectF:
        top_left = self.world_to_screen(rect.topLeft())
        return QRectF(top_left, QSizeF(rect.width() * self._zoom, rect.height() * self._zoom))

    def snap_to_grid(self, point: QPointF) -> QPointF:
        """
        Rounds each axis to the nearest multiple of the grid size.

        Returns a copy of `point` unchanged when snapping is disabled. The
        result is a fixed point of this function, so snapping twice is the
        same as snapping once.
        """
        if not self.snap_enabled:
            return QPointF(point)
        size = self.grid_size
        return QPointF(round(point.x() / size) * size, round(point.y() / size) * size)

    def pan_by(self, delta: QPointF) -> None:
        self.pan = QPointF(self.pan.x() + delta.x(), self.pan.y() + delta.y())

    def set_pan(self, pan: QPointF) -> None:
        self.pan = QPointF(pan)

    def zoom_by(self, factor: float, anchor: Optional[QPointF] = None) -> bool:
        """
        Multiplies the zoom by `factor`, keeping the world point under
        `anchor` fixed on screen.

        Args:
            factor (float): The multiplicative zoom step, e.g. 1.2 to zoom in.
            anchor (QPointF, optional): Screen position to zoom about.
                Defaults to the screen origin.

        Returns:
            bool: True if the zoom changed, False if it was already at a limit.
        """
        target = clamp_zoom(self._zoom * factor)
        if abs(target - self._zoom) < conf.FLOAT_COMPARISON_EPSILON:
            return False
        if anchor is not None:
            world_anchor = self.screen_to_world(anchor)
            self._zoom = target
            self.pan = QPointF(anchor.x() - world_anchor.x() * target, anchor.y() - world_anchor.y() * target)
        else:
            self._zoom = target
        return True

    def zoom_in(self, canvas_size: Optional[QSizeF] = None) -> bool:
        return self.zoom_by(conf.ZOOM_STEP_FACTOR, self._center(canvas_size))

    def zoom_out(self, canvas_size: Optional[QSizeF] = None) -> bool:
        return self.zoom_by(1 / conf.ZOOM_STEP_FACTOR, self._center(canvas_size))

    def _center(self, canvas_size: Optional[QSizeF]) -> Optional[QPointF]:
        if canvas_size is None:
            return None
        return QPointF(canvas_size.width() / 2, canvas_size.height() / 2)

    def visible_world_rect(self, canvas_size: QSizeF) -> QRectF:
        """Returns the rectangle of world space currently shown on the canvas."""
        top_left = self.screen_to_world(QPointF(0.0, 0.0))
        return QRectF(top_left, QSizeF(canvas_size.width() / self._zoom, canvas_size.height() / self._zoom))

    def world_center(self, canvas_size: QSizeF) -> QPointF:
        """Returns the world position at the center of the canvas."""
        return self.screen_to_world(QPointF(canvas_size.width() / 2, canvas_size.height() / 2))

    def toggle_grid(self) -> bool:
        self.grid_visible = not self.grid_visible
        return self.grid_visible

    def set_snap_enabled(self, enabled: bool) -> None:
        self.snap_enabled = enabled

    def reset(self) -> None:
        self.pan = QPointF(0.0, 0.0)
        self._zoom = conf.INITIAL_ZOOM_FACTOR
