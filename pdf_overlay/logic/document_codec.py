"""
pdf_overlay/logic/document_codec.py
===================================

Thin adapter over pypdf (read/merge/write) and reportlab (overlay drawing).

Overlays are drawn page by page on a reportlab canvas of the target page's
size and merged on top of the source page; the source content is never
modified otherwise.
"""
from __future__ import annotations

import io
from typing import Dict, Tuple

from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..exceptions.errors import DocumentDecodeError, GlyphSupportError
from .text_fallback import is_encodable

PDF_MAGIC = b"%PDF"


class OverlayCanvas:
    """One overlay page (same size as the target page)."""

    def __init__(self, page_width: float, page_height: float, *,
                 base_font: str = "Helvetica", encoding: str = "cp1252") -> None:
        self._buf = io.BytesIO()
        self._c = canvas.Canvas(self._buf, pagesize=(page_width, page_height))
        self._font = base_font
        self._encoding = encoding
        self.empty = True

    def draw_text(self, text: str, x: float, y: float, size: float, color: str = "#000000") -> None:
        """Draws *text* with its baseline at (x, y); raises GlyphSupportError."""
        if not is_encodable(text, self._encoding):
            raise GlyphSupportError(text, self._font)
        try:
            fill = colors.HexColor(color)
        except ValueError:
            fill = colors.black
        self._c.setFillColor(fill)
        self._c.setFont(self._font, size)
        self._c.drawString(x, y, text)
        self.empty = False

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        self._c.drawImage(ImageReader(image), x, y, width=width, height=height, mask="auto")
        self.empty = False

    def finish(self) -> bytes:
        self._c.showPage()
        self._c.save()
        return self._buf.getvalue()


class SourceDocument:
    """Parsed source PDF; pages are addressed 1-based."""

    def __init__(self, reader: PdfReader) -> None:
        self._reader = reader

    @classmethod
    def load(cls, data: bytes) -> "SourceDocument":
        if not data or data.lstrip()[:4] != PDF_MAGIC:
            raise DocumentDecodeError("Source is not a PDF document")
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise DocumentDecodeError("Encrypted PDFs are not supported")
            _ = len(reader.pages)
        except DocumentDecodeError:
            raise
        except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
            raise DocumentDecodeError(f"Cannot read PDF: {exc}") from exc
        return cls(reader)

    @property
    def page_count(self) -> int:
        return len(self._reader.pages)

    def has_page(self, page_index: int) -> bool:
        return 1 <= page_index <= self.page_count

    def page_size(self, page_index: int) -> Tuple[float, float]:
        box = self._reader.pages[page_index - 1].mediabox
        return float(box.width), float(box.height)

    def save_with_overlays(self, overlays: Dict[int, bytes]) -> bytes:
        """
        Merges the single-page overlay PDFs (keyed by 1-based page index)
        and serialises every page, annotated or not.
        """
        writer = PdfWriter()
        for i, page in enumerate(self._reader.pages, start=1):
            overlay = overlays.get(i)
            if overlay is not None:
                box = page.mediabox
                overlay_page = PdfReader(io.BytesIO(overlay)).pages[0]
                # overlay origin is (0,0); shift onto mediaboxes not starting there
                page.merge_translated_page(overlay_page, float(box.left), float(box.bottom))
            writer.add_page(page)
        out = io.BytesIO()
        writer.write(out)
        return out.getvalue()


def open_overlays(doc: SourceDocument, *, base_font: str, encoding: str) -> Dict[int, OverlayCanvas]:
    """One lazily used canvas per page."""
    result: Dict[int, OverlayCanvas] = {}
    for i in range(1, doc.page_count + 1):
        w, h = doc.page_size(i)
        result[i] = OverlayCanvas(w, h, base_font=base_font, encoding=encoding)
    return result


def finish_overlays(canvases: Dict[int, OverlayCanvas]) -> Dict[int, bytes]:
    return {i: c.finish() for i, c in canvases.items() if not c.empty}

