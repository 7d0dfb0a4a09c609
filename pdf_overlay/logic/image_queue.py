"""
User-orderable list of images for the image-to-page compositor.

ordinal_position is renumbered 0..n-1 after every change.
"""
from __future__ import annotations

import logging
import mimetypes
import threading
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ..exceptions.errors import ExportInProgressError
from ..models.image_item import ImageItem
from ..models.output_artifact import ExportResult
from .id_generator import new_id
from .image_compositor import ImageCompositor

log = logging.getLogger(__name__)


class ImageQueue:
    def __init__(self) -> None:
        self._items: List[ImageItem] = []
        self._busy = threading.Lock()

    # ------------------------------------------------------------------ #
    @property
    def items(self) -> List[ImageItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def _renumber(self) -> None:
        self._items = [replace(it, ordinal_position=i) for i, it in enumerate(self._items)]

    # ------------------------------------------------------------------ #
    def add(self, raw: bytes, mime_type: str, name: str = "") -> Optional[ImageItem]:
        """Appends an image; anything not image/* is ignored (returns None)."""
        if not (mime_type or "").lower().startswith("image/"):
            log.debug("Ignoring non-image input %r (%s)", name, mime_type)
            return None
        item = ImageItem(id=new_id("image"), raw_bytes=bytes(raw), mime_type=mime_type.lower(),
                         ordinal_position=len(self._items), name=name)
        self._items.append(item)
        return item

    def add_file(self, path: Path | str) -> Optional[ImageItem]:
        p = Path(path)
        mime, _ = mimetypes.guess_type(p.name)
        with open(p, "rb") as f:
            return self.add(f.read(), mime or "", p.name)

    def remove(self, item_id: str) -> None:
        self._items = [it for it in self._items if it.id != item_id]
        self._renumber()

    def clear(self) -> None:
        self._items = []

    def move(self, from_index: int, to_index: int) -> None:
        """Drag reorder: the item at from_index ends up at to_index."""
        n = len(self._items)
        if not (0 <= from_index < n and 0 <= to_index < n):
            raise IndexError(f"Move {from_index} -> {to_index} outside 0..{n - 1}")
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)
        self._renumber()

    def move_up(self, index: int) -> None:
        if index > 0:
            self.move(index, index - 1)

    def move_down(self, index: int) -> None:
        if index < len(self._items) - 1:
            self.move(index, index + 1)

    # ------------------------------------------------------------------ #
    def compose(self, compositor: ImageCompositor, name: Optional[str] = None) -> ExportResult:
        if not self._busy.acquire(blocking=False):
            raise ExportInProgressError("Image composition already running")
        try:
            return compositor.compose(self.items, name=name)
        finally:
            self._busy.release()
