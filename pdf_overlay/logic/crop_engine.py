"""
pdf_overlay/logic/crop_engine.py
================================

Interactive crop of a signature annotation's raster.

State machine: IDLE -> CROPPING -> (APPLIED | CANCELLED) -> IDLE.
APPLIED/CANCELLED are reported through ``last_outcome``; ``state`` is back to
IDLE as soon as either happens.

The crop rectangle lives in *displayed* pixels relative to the top-left of the
annotation (0..width, 0..height). Handle drags are cumulative from the rect at
handle-drag start.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Optional

from PIL import Image, UnidentifiedImageError

from core.config.config_service import CropConfig, config_service
from core.logging.logic.logger import logger as audit_logger

from ..exceptions.errors import ImageDecodeError, InvalidAnnotationError
from ..models.annotation import SignatureAnnotation
from ..models.geometry_types import Rect
from ..models.overlay_enums import Corner, CropState
from .annotation_store import AnnotationStore

log = logging.getLogger(__name__)

FEATURE = "PdfOverlay"


class CropEngine:
    def __init__(
        self,
        store: AnnotationStore,
        *,
        config: Optional[CropConfig] = None,
        audit: Any = None,
    ) -> None:
        self._store = store
        self._cfg = config or config_service.crop
        self._audit = audit if audit is not None else audit_logger
        self._reset()
        self.last_outcome: Optional[CropState] = None

    # ------------------------------------------------------------------ #
    #  State                                                             #
    # ------------------------------------------------------------------ #
    def _reset(self) -> None:
        self.state = CropState.IDLE
        self.annotation_id: Optional[str] = None
        self.rect: Optional[Rect] = None
        self._bounds: Optional[Rect] = None
        self._handle: Optional[Corner] = None
        self._handle_start: Optional[Rect] = None

    def _target(self) -> SignatureAnnotation:
        ann = self._store.get(self.annotation_id or "")
        if not isinstance(ann, SignatureAnnotation):
            raise InvalidAnnotationError(f"{ann.id!r} is not a signature")
        return ann

    def begin(self, annotation_id: str) -> Rect:
        """Enter CROPPING with the rect covering the full displayed image."""
        ann = self._store.get(annotation_id)
        if not isinstance(ann, SignatureAnnotation):
            raise InvalidAnnotationError(f"Only signatures can be cropped, got {ann.kind.value}")
        self._reset()
        self.state = CropState.CROPPING
        self.annotation_id = annotation_id
        self._bounds = Rect(0.0, 0.0, ann.width, ann.height)
        self.rect = self._bounds
        self.last_outcome = None
        return self.rect

    def cancel(self) -> None:
        if self.state is CropState.CROPPING:
            log.debug("Crop of %s cancelled", self.annotation_id)
            self.last_outcome = CropState.CANCELLED
        self._reset()

    # ------------------------------------------------------------------ #
    #  Pointer handling                                                  #
    # ------------------------------------------------------------------ #
    def handle_at(self, px: float, py: float) -> Optional[Corner]:
        """Corner handle under (px, py) in crop coordinates, if any."""
        if self.rect is None:
            return None
        r = self.rect
        corners = {
            Corner.TOP_LEFT: (r.x, r.y),
            Corner.TOP_RIGHT: (r.right, r.y),
            Corner.BOTTOM_LEFT: (r.x, r.bottom),
            Corner.BOTTOM_RIGHT: (r.right, r.bottom),
        }
        radius = self._cfg.handle_radius
        for corner, (cx, cy) in corners.items():
            if abs(px - cx) <= radius and abs(py - cy) <= radius:
                return corner
        return None

    def pointer_down(self, px: float, py: float) -> Optional[Corner]:
        """
        Pointer pressed while cropping. On a handle the handle drag starts;
        inside the rect nothing happens; anywhere else the crop is cancelled.
        """
        if self.state is not CropState.CROPPING or self.rect is None:
            return None
        corner = self.handle_at(px, py)
        if corner is not None:
            self.begin_handle_drag(corner)
            return corner
        if not self.rect.contains(px, py):
            self.cancel()
        return None

    def begin_handle_drag(self, corner: Corner) -> None:
        if self.state is not CropState.CROPPING:
            raise InvalidAnnotationError("No crop in progress")
        self._handle = Corner(corner)
        self._handle_start = self.rect

    def update_handle_drag(self, dx: float, dy: float) -> Rect:
        if self._handle is None or self._handle_start is None or self._bounds is None:
            raise InvalidAnnotationError("No crop handle is being dragged")
        self.rect = self._dragged(self._handle, self._handle_start, self._bounds, dx, dy)
        return self.rect

    def end_handle_drag(self) -> None:
        self._handle = None
        self._handle_start = None

    def _dragged(self, corner: Corner, s: Rect, bounds: Rect, dx: float, dy: float) -> Rect:
        # images smaller than the minimum keep their full size on that axis
        mw = min(self._cfg.min_size, bounds.width)
        mh = min(self._cfg.min_size, bounds.height)
        x, y, w, h = s.x, s.y, s.width, s.height

        if corner in (Corner.TOP_LEFT, Corner.BOTTOM_LEFT):
            x = max(0.0, min(s.x + dx, s.right - mw))
            w = s.width - (x - s.x)
        else:
            w = max(mw, min(s.width + dx, bounds.width - s.x))

        if corner in (Corner.TOP_LEFT, Corner.TOP_RIGHT):
            y = max(0.0, min(s.y + dy, s.bottom - mh))
            h = s.height - (y - s.y)
        else:
            h = max(mh, min(s.height + dy, bounds.height - s.y))

        return Rect(x, y, w, h)

    # ------------------------------------------------------------------ #
    #  Apply                                                             #
    # ------------------------------------------------------------------ #
    def apply(self) -> SignatureAnnotation:
        """
        Cuts the rect out of the native raster and stores it as PNG.
        The annotation keeps the rect's displayed size. On an undecodable
        source the engine returns to IDLE, the annotation is untouched and
        ImageDecodeError is raised.
        """
        if self.state is not CropState.CROPPING or self.rect is None:
            raise InvalidAnnotationError("No crop in progress")
        ann = self._target()
        rect = self.rect
        try:
            png = self._crop_png(ann, rect)
        except ImageDecodeError:
            log.warning("Crop of %s failed: image not decodable", ann.id)
            self._reset()
            raise

        updated = self._store.update_signature(
            ann.id, image_data=png, width=rect.width, height=rect.height
        )
        self.last_outcome = CropState.APPLIED
        self._reset()
        self._audit_event(ann.id, f"{rect.width:.0f}x{rect.height:.0f} px")
        return updated

    @staticmethod
    def _crop_png(ann: SignatureAnnotation, rect: Rect) -> bytes:
        try:
            with Image.open(io.BytesIO(ann.image_data)) as src:
                src.load()
                scale_x = src.width / ann.width
                scale_y = src.height / ann.height
                box = (
                    max(0, round(rect.x * scale_x)),
                    max(0, round(rect.y * scale_y)),
                    min(src.width, round(rect.right * scale_x)),
                    min(src.height, round(rect.bottom * scale_y)),
                )
                cropped = src.convert("RGBA").crop(box)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageDecodeError(f"Cannot decode signature image: {exc}") from exc

        buf = io.BytesIO()
        cropped.save(buf, format="PNG")
        return buf.getvalue()

    def _audit_event(self, ann_id: str, message: str) -> None:
        try:
            self._audit.log(FEATURE, "crop", reference_id=ann_id, message=message)
        except Exception as exc:  # audit is best-effort
            log.warning("Audit logging failed: %s", exc)
