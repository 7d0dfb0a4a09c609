"""Viewport <-> page transforms and scale-to-fit."""
from __future__ import annotations

import pytest

from pdf_overlay.logic.geometry import (
    clamp_scale,
    rect_to_page,
    scale_to_fit,
    to_page_x,
    to_page_y,
    to_viewport_x,
    to_viewport_y,
)
from pdf_overlay.models.geometry_types import Rect, Size


@pytest.mark.parametrize("scale", [0.5, 0.8, 1.0, 1.2, 1.7, 2.0])
@pytest.mark.parametrize("page_h", [842.0, 612.0])
def test_y_roundtrip(scale: float, page_h: float) -> None:
    for y in (0.0, 13.5, 400.0, page_h * scale):
        assert to_viewport_y(to_page_y(y, page_h, scale), page_h, scale) == pytest.approx(y)
        assert to_page_y(to_viewport_y(y / 2, page_h, scale), page_h, scale) == pytest.approx(y / 2)
    assert to_viewport_x(to_page_x(77.0, scale), scale) == pytest.approx(77.0)


def test_rect_flip_uses_bottom_edge() -> None:
    r = rect_to_page(Rect(100, 100, 200, 100), 842, 1.0)
    assert (r.x, r.y, r.width, r.height) == (100, 642, 200, 100)

    r = rect_to_page(Rect(100, 100, 200, 100), 842, 2.0)
    assert (r.x, r.y, r.width, r.height) == (50, 842 - 50 - 50, 100, 50)


@pytest.mark.parametrize("src", [Size(100, 50), Size(2000, 1000), Size(595, 842), Size(300, 3000)])
def test_scale_to_fit_never_upscales_and_centres(src: Size) -> None:
    frame = Size(595, 842)
    box = scale_to_fit(src, frame)
    assert box.width <= src.width and box.height <= src.height
    assert box.width <= frame.width + 1e-9 and box.height <= frame.height + 1e-9
    assert box.x + box.width / 2 == pytest.approx(frame.width / 2)
    assert box.y + box.height / 2 == pytest.approx(frame.height / 2)
    assert box.width / box.height == pytest.approx(src.width / src.height)


def test_scale_to_fit_small_image_keeps_native_size() -> None:
    box = scale_to_fit(Size(100, 50), Size(595, 842))
    assert (box.width, box.height) == (100, 50)
    assert (box.x, box.y) == (247.5, 396)


def test_clamp_scale() -> None:
    assert clamp_scale(0.1, 0.5, 2.0) == 0.5
    assert clamp_scale(5, 0.5, 2.0) == 2.0
    assert clamp_scale(1.2 + 0.1, 0.5, 2.0) == 1.3
