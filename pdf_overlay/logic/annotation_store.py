"""
pdf_overlay/logic/annotation_store.py
=====================================

In-memory collection of positioned overlay elements for one editing session.

- Insertion order is preserved (dict order) and is the draw/export order
- Updates replace the frozen dataclass in place, keeping its position
- Copy/paste goes through the injected SettingsManager slot
  ("clipboard", "copied_annotation"); no ambient globals
"""
from __future__ import annotations

import logging
from dataclasses import replace
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple

from core.config.config_service import AnnotationConfig, config_service
from core.settings.logic.settings_manager import SettingsManager

from ..exceptions.errors import InvalidAnnotationError
from ..models.annotation import (
    Annotation,
    SignatureAnnotation,
    TextAnnotation,
    annotation_from_dict,
    annotation_to_dict,
)
from .id_generator import new_id

log = logging.getLogger(__name__)

CLIPBOARD_NS = "clipboard"
CLIPBOARD_KEY = "copied_annotation"


class AnnotationStore:
    def __init__(
        self,
        settings: Optional[SettingsManager] = None,
        *,
        page_count: Optional[int] = None,
        config: Optional[AnnotationConfig] = None,
    ) -> None:
        self._settings = settings or SettingsManager()
        self._cfg = config or config_service.annotations
        self._lock = RLock()
        self._items: Dict[str, Annotation] = {}
        self._selected_id: Optional[str] = None
        self.page_count = page_count

    # ------------------------------------------------------------------ #
    #  Validation                                                        #
    # ------------------------------------------------------------------ #
    def _check_page(self, page_index: int) -> None:
        if page_index < 1:
            raise InvalidAnnotationError(f"Page index must be >= 1, got {page_index}")
        if self.page_count is not None and page_index > self.page_count:
            raise InvalidAnnotationError(
                f"Page index {page_index} out of range (document has {self.page_count} pages)"
            )

    def _validate(self, ann: Annotation) -> None:
        self._check_page(ann.page_index)
        if isinstance(ann, TextAnnotation):
            if ann.font_size <= 0:
                raise InvalidAnnotationError(f"Font size must be > 0, got {ann.font_size}")
        elif ann.width <= 0 or ann.height <= 0:
            raise InvalidAnnotationError(
                f"Signature size must be > 0, got {ann.width}x{ann.height}"
            )

    # ------------------------------------------------------------------ #
    #  Add / update / remove                                             #
    # ------------------------------------------------------------------ #
    def add(self, ann: Annotation) -> Annotation:
        """Inserts a prepared annotation (id must be new)."""
        self._validate(ann)
        with self._lock:
            if ann.id in self._items:
                raise InvalidAnnotationError(f"Duplicate annotation id: {ann.id}")
            self._items[ann.id] = ann
        return ann

    def add_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font_size: Optional[float] = None,
        color: Optional[str] = None,
        font_family: Optional[str] = None,
        page_index: int = 1,
    ) -> TextAnnotation:
        ann = TextAnnotation(
            id=new_id("text"),
            text=text,
            x=float(x),
            y=float(y),
            font_size=float(font_size if font_size is not None else self._cfg.default_font_size),
            color=color or self._cfg.default_color,
            font_family=font_family or self._cfg.default_font_family,
            page_index=page_index,
        )
        self.add(ann)
        return ann

    def add_signature(
        self,
        image_data: bytes,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        page_index: int = 1,
    ) -> SignatureAnnotation:
        ann = SignatureAnnotation(
            id=new_id("signature"),
            image_data=bytes(image_data),
            x=float(x),
            y=float(y),
            width=float(width),
            height=float(height),
            page_index=page_index,
        )
        self.add(ann)
        return ann

    def _update(self, ann_id: str, cls: type, patch: Dict[str, Any]) -> Any:
        if "id" in patch:
            raise InvalidAnnotationError("The id of an annotation cannot be changed")
        with self._lock:
            current = self._items.get(ann_id)
            if not isinstance(current, cls):
                raise InvalidAnnotationError(f"No {cls.__name__} with id {ann_id!r}")
            try:
                updated = replace(current, **patch)
            except TypeError as exc:
                raise InvalidAnnotationError(str(exc)) from exc
            self._validate(updated)
            self._items[ann_id] = updated
            return updated

    def update_text(self, ann_id: str, **patch: Any) -> TextAnnotation:
        return self._update(ann_id, TextAnnotation, patch)

    def update_signature(self, ann_id: str, **patch: Any) -> SignatureAnnotation:
        return self._update(ann_id, SignatureAnnotation, patch)

    def update(self, ann_id: str, **patch: Any) -> Annotation:
        """Type-agnostic update (used by drag/crop)."""
        ann = self.get(ann_id)
        return self._update(ann_id, type(ann), patch)

    def remove(self, ann_id: str) -> None:
        with self._lock:
            if self._items.pop(ann_id, None) is None:
                raise InvalidAnnotationError(f"No annotation with id {ann_id!r}")
            if self._selected_id == ann_id:
                self._selected_id = None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._selected_id = None

    # ------------------------------------------------------------------ #
    #  Queries                                                           #
    # ------------------------------------------------------------------ #
    def get(self, ann_id: str) -> Annotation:
        with self._lock:
            ann = self._items.get(ann_id)
        if ann is None:
            raise InvalidAnnotationError(f"No annotation with id {ann_id!r}")
        return ann

    def __contains__(self, ann_id: object) -> bool:
        return ann_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def list_for_page(self, page_index: int) -> List[Annotation]:
        with self._lock:
            return [a for a in self._items.values() if a.page_index == page_index]

    def all(self) -> List[Annotation]:
        with self._lock:
            return list(self._items.values())

    def texts(self) -> List[TextAnnotation]:
        return [a for a in self.all() if isinstance(a, TextAnnotation)]

    def signatures(self) -> List[SignatureAnnotation]:
        return [a for a in self.all() if isinstance(a, SignatureAnnotation)]

    def snapshot(self) -> Tuple[Annotation, ...]:
        """Immutable copy for the compositor (entries are frozen dataclasses)."""
        with self._lock:
            return tuple(self._items.values())

    # ------------------------------------------------------------------ #
    #  Selection                                                         #
    # ------------------------------------------------------------------ #
    def select(self, ann_id: Optional[str]) -> None:
        with self._lock:
            if ann_id is not None and ann_id not in self._items:
                raise InvalidAnnotationError(f"No annotation with id {ann_id!r}")
            self._selected_id = ann_id

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Annotation]:
        with self._lock:
            return self._items.get(self._selected_id) if self._selected_id else None

    # ------------------------------------------------------------------ #
    #  Clipboard                                                         #
    # ------------------------------------------------------------------ #
    def clipboard_copy(self, selected_id: Optional[str] = None) -> bool:
        """Stores the given (or currently selected) annotation; False if nothing to copy."""
        ann_id = selected_id if selected_id is not None else self._selected_id
        if ann_id is None or ann_id not in self._items:
            return False
        self._settings.set(CLIPBOARD_NS, CLIPBOARD_KEY, annotation_to_dict(self.get(ann_id)))
        return True

    def clipboard_paste(self) -> Optional[Annotation]:
        """
        Inserts a copy of the clipboard entry shifted by the paste offset, with a
        fresh id, on the page it was copied from. No clamping to page bounds.
        """
        payload = self._settings.get(CLIPBOARD_NS, CLIPBOARD_KEY)
        if not payload:
            return None
        try:
            source = annotation_from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Ignoring unreadable clipboard entry: %s", exc)
            return None
        off = self._cfg.paste_offset
        pasted = replace(
            source,
            id=new_id(source.kind.value),
            x=source.x + off,
            y=source.y + off,
        )
        return self.add(pasted)

    def clear_clipboard(self) -> None:
        self._settings.remove(CLIPBOARD_NS, CLIPBOARD_KEY)

    # ------------------------------------------------------------------ #
    #  Zoom                                                              #
    # ------------------------------------------------------------------ #
    def rescale(self, factor: float) -> None:
        """
        Multiplies every stored viewport coordinate (and signature size) by
        *factor*. Font sizes are page points and stay unchanged.
        """
        if factor <= 0:
            raise ValueError(f"Scale factor must be > 0, got {factor}")
        with self._lock:
            for ann_id, ann in list(self._items.items()):
                if isinstance(ann, SignatureAnnotation):
                    self._items[ann_id] = replace(
                        ann, x=ann.x * factor, y=ann.y * factor,
                        width=ann.width * factor, height=ann.height * factor,
                    )
                else:
                    self._items[ann_id] = replace(ann, x=ann.x * factor, y=ann.y * factor)
