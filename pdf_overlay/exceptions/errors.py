"""PDF overlay feature exceptions."""
from __future__ import annotations


class OverlayError(Exception):
    """Base exception for the PDF overlay feature."""


class DocumentDecodeError(OverlayError):
    """Raised when source bytes are not a readable PDF."""


class ImageDecodeError(OverlayError):
    """Raised when a raster cannot be decoded."""


class GlyphSupportError(OverlayError):
    """Raised when text contains characters the base font cannot draw."""

    def __init__(self, text: str, font: str) -> None:
        super().__init__(f"Text not representable in font {font!r}: {text!r}")
        self.text = text
        self.font = font


class InvalidAnnotationError(OverlayError):
    """Raised on unknown ids or invariant violations (size, font size, page)."""


class ExportInProgressError(OverlayError):
    """Raised when a second export/composition is requested while one runs."""


class ExportError(OverlayError):
    """Raised when an export fails as a whole; no output is produced."""


class EmptyCompositionError(ExportError):
    """Raised when no image of a batch could be embedded."""
