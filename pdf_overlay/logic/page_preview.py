"""
Display-only page rasteriser (pypdfium2). Not used by the export path.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

import pypdfium2 as pdfium
from PIL import Image

from ..exceptions.errors import DocumentDecodeError

log = logging.getLogger(__name__)


class PagePreview:
    def __init__(self) -> None:
        self._pdf: Optional[pdfium.PdfDocument] = None
        self._page_count: Optional[int] = None
        self._listeners: List[Callable[[int], None]] = []

    # ------------------------------------------------------------------ #
    def open(self, data: bytes) -> int:
        """Loads *data* and notifies page-count listeners once."""
        self.close()
        try:
            self._pdf = pdfium.PdfDocument(data)
        except pdfium.PdfiumError as exc:
            raise DocumentDecodeError(f"Cannot render PDF: {exc}") from exc
        self._page_count = len(self._pdf)
        for cb in list(self._listeners):
            cb(self._page_count)
        return self._page_count

    def close(self) -> None:
        if self._pdf is not None:
            self._pdf.close()
        self._pdf = None
        self._page_count = None

    @property
    def page_count(self) -> Optional[int]:
        return self._page_count

    def on_page_count_known(self, callback: Callable[[int], None]) -> None:
        """Fires on every load; immediately if a document is already open."""
        self._listeners.append(callback)
        if self._page_count is not None:
            callback(self._page_count)

    # ------------------------------------------------------------------ #
    def _page(self, page_index: int) -> "pdfium.PdfPage":
        if self._pdf is None:
            raise DocumentDecodeError("No document loaded")
        if not 1 <= page_index <= (self._page_count or 0):
            raise IndexError(f"Page {page_index} outside 1..{self._page_count}")
        return self._pdf[page_index - 1]

    def viewport_size(self, page_index: int, scale: float) -> Tuple[float, float]:
        """Size in viewport pixels of the page rendered at *scale*."""
        page = self._page(page_index)
        try:
            w, h = page.get_size()
        finally:
            page.close()
        return w * scale, h * scale

    def render(self, page_index: int, scale: float) -> Image.Image:
        page = self._page(page_index)
        try:
            return page.render(scale=scale).to_pil()
        finally:
            page.close()
