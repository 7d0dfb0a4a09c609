"""
Viewport <-> page coordinate conversion.

Viewport: Pixel, Ursprung oben links, y nach unten, skaliert mit dem Zoom.
Seite:    PDF-Punkte, Ursprung unten links, y nach oben, unskaliert.
"""
from __future__ import annotations

from ..models.geometry_types import Rect, Size


def to_page_x(x: float, scale: float) -> float:
    return x / scale


def to_page_y(y: float, page_height: float, scale: float) -> float:
    return page_height - y / scale


def to_viewport_x(px: float, scale: float) -> float:
    return px * scale


def to_viewport_y(py: float, page_height: float, scale: float) -> float:
    """Inverse of :func:`to_page_y`."""
    return (page_height - py) * scale


def rect_to_page(rect: Rect, page_height: float, scale: float) -> Rect:
    """
    Viewport rectangle -> page rectangle with its bottom-left draw origin.
    The flip uses the bottom edge; flipping only the top would anchor the
    image one height too high.
    """
    w = rect.width / scale
    h = rect.height / scale
    return Rect(rect.x / scale, page_height - rect.y / scale - h, w, h)


def scale_to_fit(source: Size, frame: Size) -> Rect:
    """
    Uniform fit of *source* into *frame*, never upscaled, centred in the frame.
    Returned rect uses frame units; y is symmetric so the axis direction does not matter.
    """
    if source.width <= 0 or source.height <= 0:
        raise ValueError(f"Invalid source size: {source}")
    factor = min(frame.width / source.width, frame.height / source.height, 1.0)
    w = source.width * factor
    h = source.height * factor
    return Rect((frame.width - w) / 2, (frame.height - h) / 2, w, h)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_scale(scale: float, min_scale: float, max_scale: float) -> float:
    # round to avoid 1.2000000000000002 after repeated zoom steps
    return round(clamp(scale, min_scale, max_scale), 4)
