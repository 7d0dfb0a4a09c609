"""
Pointer drag abstraction: begin / update (cumulative delta) / end.

Only one drag is active at a time; updates carrying another pointer id are ignored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config.config_service import AnnotationConfig, config_service

from ..exceptions.errors import InvalidAnnotationError
from ..models.annotation import Annotation, SignatureAnnotation, TextAnnotation
from ..models.overlay_enums import DragMode
from .annotation_store import AnnotationStore
from .geometry import clamp

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _DragState:
    pointer_id: int
    annotation_id: str
    mode: DragMode
    origin: Annotation          # annotation as it was at begin_drag


class DragController:
    def __init__(self, store: AnnotationStore, config: Optional[AnnotationConfig] = None) -> None:
        self._store = store
        self._cfg = config or config_service.annotations
        self._state: Optional[_DragState] = None

    @property
    def active(self) -> bool:
        return self._state is not None

    def begin_drag(self, pointer_id: int, annotation_id: str, mode: DragMode = DragMode.MOVE) -> None:
        """Starts a drag; also selects the annotation (raises for unknown ids)."""
        origin = self._store.get(annotation_id)
        self._store.select(annotation_id)
        self._state = _DragState(pointer_id, annotation_id, DragMode(mode), origin)

    def update_drag(self, pointer_id: int, dx: float, dy: float) -> Optional[Annotation]:
        st = self._state
        if st is None or st.pointer_id != pointer_id:
            return None
        if st.annotation_id not in self._store:
            # removed while dragging
            self._state = None
            return None

        o = st.origin
        if st.mode is DragMode.MOVE:
            return self._store.update(st.annotation_id, x=o.x + dx, y=o.y + dy)

        if isinstance(o, TextAnnotation):
            size = clamp(o.font_size + dy / 2, self._cfg.min_font_size, self._cfg.max_font_size)
            return self._store.update_text(st.annotation_id, font_size=size)

        if isinstance(o, SignatureAnnotation):
            aspect = o.width / o.height
            width = max(self._cfg.signature_min_width, o.width + max(dx, dy))
            return self._store.update_signature(st.annotation_id, width=width, height=width / aspect)

        self._state = None
        raise InvalidAnnotationError(f"Cannot resize {type(o).__name__} {st.annotation_id!r}")

    def end_drag(self, pointer_id: int) -> None:
        if self._state is not None and self._state.pointer_id == pointer_id:
            self._state = None

    def cancel(self) -> None:
        self._state = None
