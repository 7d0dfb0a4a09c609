"""
pdf_overlay/logic/editor_session.py
===================================

One editing session on one source PDF.

Bundles page navigation, zoom, the annotation store with its drag/crop
helpers, the signature library and the export. At most one export runs at a
time; a second request is rejected with ExportInProgressError.

Zoom: with ``rescale_annotations_on_zoom`` (default) every stored viewport
coordinate is rescaled when the scale changes, so the export (which divides
by the current scale) keeps annotations where they were placed. Without it
annotations keep their pixel values and drift on export after zooming.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Tuple

from core.config.config_service import AnnotationConfig, ViewportConfig, config_service
from core.logging.logic.logger import logger as audit_logger
from core.settings.logic.settings_manager import SettingsManager

from ..exceptions.errors import ExportInProgressError, OverlayError
from ..models.annotation import Annotation, SignatureAnnotation, TextAnnotation
from ..models.output_artifact import ExportResult
from .annotation_store import AnnotationStore
from .crop_engine import CropEngine
from .document_codec import SourceDocument
from .drag_controller import DragController
from .export_compositor import ExportCompositor
from .geometry import clamp_scale
from .signature_library import SignatureLibrary

log = logging.getLogger(__name__)

FEATURE = "PdfOverlay"


class EditorSession:
    def __init__(
        self,
        source: bytes,
        filename: str = "",
        *,
        settings: Optional[SettingsManager] = None,
        viewport: Optional[ViewportConfig] = None,
        annotations: Optional[AnnotationConfig] = None,
        exporter: Optional[ExportCompositor] = None,
        audit: Any = None,
    ) -> None:
        # raises DocumentDecodeError for non-PDF input
        doc = SourceDocument.load(source)
        self.source = bytes(source)
        self.filename = filename
        self.page_count = doc.page_count
        self.current_page = 1

        self._vp = viewport or config_service.viewport
        self._ann_cfg = annotations or config_service.annotations
        self._scale = clamp_scale(self._vp.default_scale, self._vp.min_scale, self._vp.max_scale)

        self.settings = settings or SettingsManager()
        self._audit = audit if audit is not None else audit_logger
        self.store = AnnotationStore(self.settings, page_count=self.page_count, config=self._ann_cfg)
        self.drag = DragController(self.store, self._ann_cfg)
        self.crop = CropEngine(self.store, audit=self._audit)
        self.signatures = SignatureLibrary(self.settings)
        self._exporter = exporter or ExportCompositor(audit=self._audit)
        self._export_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    #  Seiten                                                            #
    # ------------------------------------------------------------------ #
    def go_to_page(self, page_index: int) -> int:
        self.current_page = max(1, min(self.page_count, int(page_index)))
        return self.current_page

    def next_page(self) -> int:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self.current_page - 1)

    # ------------------------------------------------------------------ #
    #  Zoom                                                              #
    # ------------------------------------------------------------------ #
    @property
    def scale(self) -> float:
        return self._scale

    def set_scale(self, scale: float) -> float:
        new = clamp_scale(scale, self._vp.min_scale, self._vp.max_scale)
        if new != self._scale and self._vp.rescale_annotations_on_zoom:
            # running drag/crop gestures hold pre-zoom viewport pixels
            self.drag.cancel()
            self.crop.cancel()
            self.store.rescale(new / self._scale)
        self._scale = new
        return new

    def zoom_in(self) -> float:
        return self.set_scale(self._scale + self._vp.zoom_step)

    def zoom_out(self) -> float:
        return self.set_scale(self._scale - self._vp.zoom_step)

    # ------------------------------------------------------------------ #
    #  Annotationen                                                      #
    # ------------------------------------------------------------------ #
    def add_text(
        self,
        x: float,
        y: float,
        text: Optional[str] = None,
        *,
        font_size: Optional[float] = None,
        font_family: Optional[str] = None,
        color: Optional[str] = None,
    ) -> TextAnnotation:
        """Text on the current page at viewport position (x, y)."""
        return self.store.add_text(
            text if text is not None else self._ann_cfg.default_text,
            x, y,
            font_size=font_size,
            font_family=font_family,
            color=color,
            page_index=self.current_page,
        )

    def add_signature(self, image_data: bytes, viewport_size: Tuple[float, float]) -> SignatureAnnotation:
        """
        Places a signature with the default box centred in the visible page
        and remembers it in the signature library.
        """
        w = self._ann_cfg.signature_width
        h = self._ann_cfg.signature_height
        vw, vh = viewport_size
        ann = self.store.add_signature(
            image_data, vw / 2 - w / 2, vh / 2 - h / 2, w, h, page_index=self.current_page
        )
        self.signatures.add(ann.image_data)
        return ann

    def delete_selected(self) -> bool:
        if self.store.selected_id is None:
            return False
        self.store.remove(self.store.selected_id)
        return True

    def copy_selected(self) -> bool:
        return self.store.clipboard_copy()

    def paste(self) -> Optional[Annotation]:
        return self.store.clipboard_paste()

    # ------------------------------------------------------------------ #
    #  Export                                                            #
    # ------------------------------------------------------------------ #
    @property
    def busy(self) -> bool:
        return self._export_lock.locked()

    def _acquire(self) -> None:
        if not self._export_lock.acquire(blocking=False):
            raise ExportInProgressError("An export is already running")

    def export(self) -> ExportResult:
        self._acquire()
        try:
            return self._exporter.export(
                self.source, self.store.snapshot(), self._scale, source_name=self.filename
            )
        finally:
            self._export_lock.release()

    def export_in_background(
        self,
        on_done: Callable[[ExportResult], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> threading.Thread:
        """
        Runs the export in a daemon thread on a snapshot taken now.
        Raises ExportInProgressError right away if an export is running.
        """
        self._acquire()
        snapshot, scale = self.store.snapshot(), self._scale

        def worker() -> None:
            try:
                result = self._exporter.export(self.source, snapshot, scale, source_name=self.filename)
            except OverlayError as exc:
                log.warning("Background export failed: %s", exc)
                if on_error is not None:
                    on_error(exc)
                return
            finally:
                self._export_lock.release()
            on_done(result)

        t = threading.Thread(target=worker, daemon=True)
        t.start()
        return t

    # ------------------------------------------------------------------ #
    def reset(self) -> None:
        """Back to the entry point: drops annotations, clipboard and saved signatures."""
        self.drag.cancel()
        self.crop.cancel()
        self.store.clear()
        self.store.clear_clipboard()
        self.signatures.clear()
        try:
            self._audit.log(FEATURE, "reset", reference_id=self.filename or None)
        except Exception as exc:  # audit is best-effort
            log.warning("Audit logging failed: %s", exc)
