"""Tests for the pan/zoom view transform."""

import pytest

from whiteboard import ViewTransform


class TestViewTransform:
    def test_defaults(self, view):
        assert (view.offsetX, view.offsetY, view.scale) == (0.0, 0.0, 1.0)
        assert (view.minScale, view.maxScale) == (0.25, 3.0)

    def test_to_world_and_back(self, view):
        view.setOffset(40, -20)
        view.zoomAt(0, 0, 2.0)
        wx, wy = view.to_world(300, 200)
        assert view.to_screen(wx, wy) == pytest.approx((300, 200))

    def test_qml_point_helpers(self, view):
        view.setOffset(10, 20)
        point = view.toWorld(30, 50)
        assert (point.x(), point.y()) == (20.0, 30.0)
        back = view.toScreen(20, 30)
        assert (back.x(), back.y()) == (30.0, 50.0)

    def test_pan_keeps_scale(self, view):
        view.zoomAt(0, 0, 1.5)
        view.pan(15, -5)
        assert view.scale == 1.5
        assert (view.offsetX, view.offsetY) == (15, -5)

    @pytest.mark.parametrize("factor", [0.5, 1.3, 2.0, 10.0])
    def test_zoom_keeps_point_under_cursor(self, view, factor):
        view.setOffset(-120, 35)
        before = view.to_world(400, 250)
        view.zoomAt(400, 250, factor)
        assert view.to_world(400, 250) == pytest.approx(before)

    def test_scale_is_clamped(self, view):
        for _ in range(20):
            view.zoomAt(100, 100, 1.5)
        assert view.scale == 3.0
        for _ in range(40):
            view.zoomAt(100, 100, 0.5)
        assert view.scale == 0.25

    def test_wheel_with_ctrl_zooms(self, view):
        view.wheel(200, 100, 0, -100, True)
        assert view.scale == pytest.approx(1.5)
        assert view.to_world(200, 100) == pytest.approx((200, 100))

    def test_wheel_without_ctrl_pans(self, view):
        view.wheel(200, 100, 10, 30, False)
        assert view.scale == 1.0
        assert (view.offsetX, view.offsetY) == (-10, -30)

    def test_changed_only_emitted_on_change(self, view):
        calls = []
        view.changed.connect(lambda: calls.append(1))
        view.pan(0, 0)
        view.zoomAt(0, 0, 1.0)
        assert calls == []
        view.pan(1, 0)
        assert len(calls) == 1

    def test_reset(self, view):
        view.pan(50, 50)
        view.zoomAt(0, 0, 2.0)
        view.reset()
        assert (view.offsetX, view.offsetY, view.scale) == (0.0, 0.0, 1.0)

    def test_custom_bounds(self, app):
        narrow = ViewTransform(min_scale=0.5, max_scale=2.0)
        narrow.zoomAt(0, 0, 100)
        assert narrow.scale == 2.0
