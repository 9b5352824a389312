from __future__ import annotations

import pytest
from PyQt5.QtCore import QPointF, QSizeF

import flowbuilder.conf as conf
from flowbuilder.viewport import Viewport, clamp_zoom


@pytest.mark.parametrize(
    "pan, zoom",
    [
        (QPointF(0, 0), 1.0),
        (QPointF(-130.5, 42.0), 0.1),
        (QPointF(250.0, -75.25), 1.7),
        (QPointF(3.0, 4.0), 3.0),
    ],
)
def test_screen_world_round_trip(pan: QPointF, zoom: float) -> None:
    viewport = Viewport(pan=pan, zoom=zoom)

    for point in (QPointF(0, 0), QPointF(123.4, -56.7), QPointF(-1000, 2500)):
        back = viewport.screen_to_world(viewport.world_to_screen(point))
        assert back.x() == pytest.approx(point.x())
        assert back.y() == pytest.approx(point.y())


def test_world_to_screen_applies_zoom_then_pan() -> None:
    viewport = Viewport(pan=QPointF(10, 20), zoom=2.0)

    assert viewport.world_to_screen(QPointF(5, 5)) == QPointF(20, 30)
    assert viewport.screen_to_world(QPointF(20, 30)) == QPointF(5, 5)


def test_snap_is_idempotent() -> None:
    viewport = Viewport()

    for point in (QPointF(0, 0), QPointF(9.9, 10.1), QPointF(-31, 47), QPointF(1234.5, -0.4)):
        once = viewport.snap_to_grid(point)
        assert viewport.snap_to_grid(once) == once
        assert once.x() % conf.GRID_SIZE == 0
        assert once.y() % conf.GRID_SIZE == 0


def test_snap_disabled_returns_point_unchanged() -> None:
    viewport = Viewport(snap_enabled=False)

    assert viewport.snap_to_grid(QPointF(13, 27)) == QPointF(13, 27)

    viewport.set_snap_enabled(True)
    assert viewport.snap_to_grid(QPointF(13, 27)) == QPointF(20, 20)


def test_zoom_is_clamped() -> None:
    viewport = Viewport()

    viewport.zoom = 50
    assert viewport.zoom == conf.MAX_ZOOM_FACTOR
    viewport.zoom = 0.0001
    assert viewport.zoom == conf.MIN_ZOOM_FACTOR
    assert clamp_zoom(1.5) == 1.5


def test_zoom_by_stops_at_limits() -> None:
    viewport = Viewport(zoom=conf.MAX_ZOOM_FACTOR)

    assert viewport.zoom_by(conf.ZOOM_STEP_FACTOR) is False
    assert viewport.zoom == conf.MAX_ZOOM_FACTOR
    assert viewport.zoom_by(1 / conf.ZOOM_STEP_FACTOR) is True
    assert viewport.zoom == pytest.approx(conf.MAX_ZOOM_FACTOR / conf.ZOOM_STEP_FACTOR)


def test_zoom_keeps_anchor_fixed() -> None:
    viewport = Viewport(pan=QPointF(37, -12), zoom=0.8)
    anchor = QPointF(300, 200)
    world_before = viewport.screen_to_world(anchor)

    viewport.zoom_by(conf.ZOOM_STEP_FACTOR, anchor)

    world_after = viewport.screen_to_world(anchor)
    assert world_after.x() == pytest.approx(world_before.x())
    assert world_after.y() == pytest.approx(world_before.y())


def test_zoom_in_and_out_about_canvas_center() -> None:
    viewport = Viewport()
    size = QSizeF(800, 600)
    center_before = viewport.world_center(size)

    assert viewport.zoom_in(size)
    assert viewport.zoom == pytest.approx(conf.ZOOM_STEP_FACTOR)
    center = viewport.world_center(size)
    assert center.x() == pytest.approx(center_before.x())
    assert center.y() == pytest.approx(center_before.y())

    assert viewport.zoom_out(size)
    assert viewport.zoom == pytest.approx(1.0)


def test_visible_world_rect() -> None:
    viewport = Viewport(pan=QPointF(-100, -50), zoom=2.0)

    rect = viewport.visible_world_rect(QSizeF(400, 300))

    assert rect.left() == pytest.approx(50)
    assert rect.top() == pytest.approx(25)
    assert rect.width() == pytest.approx(200)
    assert rect.height() == pytest.approx(150)


def test_toggle_grid_and_reset() -> None:
    viewport = Viewport(pan=QPointF(5, 5), zoom=2.0)

    assert viewport.toggle_grid() is False
    assert viewport.toggle_grid() is True

    viewport.reset()
    assert viewport.pan == QPointF(0, 0)
    assert viewport.zoom == 1.0


def test_grid_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Viewport(grid_size=0)
