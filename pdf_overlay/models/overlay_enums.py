# pdf_overlay/models/overlay_enums.py
from __future__ import annotations
from enum import Enum


class AnnotationKind(str, Enum):
    """Tag of the annotation union (also used in the clipboard slot)."""
    TEXT = "text"
    SIGNATURE = "signature"


class DragMode(str, Enum):
    MOVE = "move"
    RESIZE = "resize"


class CropState(str, Enum):
    IDLE = "idle"
    CROPPING = "cropping"
    APPLIED = "applied"
    CANCELLED = "cancelled"


class Corner(str, Enum):
    """Crop handle; each corner moves two of the four edges."""
    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"


class WarningKind(str, Enum):
    GLYPH_FALLBACK = "glyph_fallback"
    GLYPH_DROPPED = "glyph_dropped"
    IMAGE_DROPPED = "image_dropped"
