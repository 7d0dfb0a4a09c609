"""
pdf_overlay/logic/export_compositor.py
======================================

Merges text and signature annotations onto the pages of the source PDF.

Ablauf:
  1. Quelle frisch aus den Bytes parsen (jeder Export arbeitet auf einer eigenen Kopie)
  2. Texte, dann Signaturen, jeweils in Einfügereihenfolge, in Seitenkoordinaten planen
  3. Pro Seite ein reportlab-Overlay zeichnen und mit pypdf aufmergen
  4. Alle Seiten serialisieren

Annotations on a missing page are skipped (debug log only). Text outside the
base font's repertoire is retried with an ASCII fallback, then dropped with a
warning; an undecodable signature is dropped with a warning. Anything else
fails the export as a whole (ExportError, no output).
"""
from __future__ import annotations

import io
import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError
from pypdf.errors import PyPdfError

from core.config.config_service import CompositorConfig, config_service
from core.logging.logic.logger import logger as audit_logger

from ..exceptions.errors import ExportError, GlyphSupportError
from ..models.annotation import Annotation, SignatureAnnotation, TextAnnotation
from ..models.geometry_types import Rect
from ..models.output_artifact import DrawOp, ExportResult, ExportWarning, OutputArtifact
from ..models.overlay_enums import WarningKind
from .document_codec import OverlayCanvas, SourceDocument, finish_overlays, open_overlays
from .geometry import rect_to_page, to_page_x, to_page_y
from .naming_strategy import DefaultPrefixStrategy, NamingContext, NamingStrategy
from .text_fallback import ascii_fallback

log = logging.getLogger(__name__)

FEATURE = "PdfOverlay"


class ExportCompositor:
    def __init__(
        self,
        *,
        config: Optional[CompositorConfig] = None,
        naming: Optional[NamingStrategy] = None,
        audit: Any = None,
    ) -> None:
        self._cfg = config or config_service.compositor
        self._naming = naming or DefaultPrefixStrategy(self._cfg)
        self._audit = audit if audit is not None else audit_logger

    # ------------------------------------------------------------------ #
    #  Planning (pure geometry, no drawing)                              #
    # ------------------------------------------------------------------ #
    def plan(
        self,
        doc: SourceDocument,
        annotations: Iterable[Annotation],
        scale: float,
    ) -> Tuple[List[DrawOp], List[ExportWarning], List[str]]:
        """Returns (draw ops, warnings, skipped ids); texts come before signatures."""
        items = list(annotations)
        ops: List[DrawOp] = []
        warnings: List[ExportWarning] = []
        skipped: List[str] = []

        for ann in [a for a in items if isinstance(a, TextAnnotation)] + \
                   [a for a in items if isinstance(a, SignatureAnnotation)]:
            if not doc.has_page(ann.page_index):
                log.debug("Skipping %s: page %s not in document", ann.id, ann.page_index)
                skipped.append(ann.id)
                continue
            _, page_h = doc.page_size(ann.page_index)

            if isinstance(ann, TextAnnotation):
                ops.append(DrawOp(
                    annotation_id=ann.id,
                    page_index=ann.page_index,
                    x=to_page_x(ann.x, scale),
                    y=to_page_y(ann.y, page_h, scale),
                    text=ann.text,
                    font_size=ann.font_size,
                    color=ann.color,
                ))
                continue

            try:
                img = self._decode(ann.image_data)
            except (UnidentifiedImageError, OSError, ValueError) as exc:
                log.warning("Dropping signature %s: %s", ann.id, exc)
                warnings.append(ExportWarning(ann.id, WarningKind.IMAGE_DROPPED,
                                              f"Signature image not decodable: {exc}"))
                continue

            # drawn height follows the native aspect ratio, not the stored height
            view_h = ann.width * img.height / img.width
            target = rect_to_page(Rect(ann.x, ann.y, ann.width, view_h), page_h, scale)
            ops.append(DrawOp(
                annotation_id=ann.id,
                page_index=ann.page_index,
                x=target.x,
                y=target.y,
                width=target.width,
                height=target.height,
                image=img,
            ))
        return ops, warnings, skipped

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            if src.width <= 0 or src.height <= 0:
                raise ValueError("empty image")
            return src.convert("RGBA")

    # ------------------------------------------------------------------ #
    #  Drawing                                                           #
    # ------------------------------------------------------------------ #
    def _draw_text(self, canvas: OverlayCanvas, op: DrawOp) -> Optional[ExportWarning]:
        try:
            canvas.draw_text(op.text, op.x, op.y, op.font_size, op.color)
            return None
        except GlyphSupportError:
            pass

        substitute = ascii_fallback(op.text)
        try:
            canvas.draw_text(substitute, op.x, op.y, op.font_size, op.color)
        except GlyphSupportError as exc:
            log.warning("Dropping text %s: %s", op.annotation_id, exc)
            return ExportWarning(op.annotation_id, WarningKind.GLYPH_DROPPED, str(exc))
        log.info("Text %s drawn with ASCII fallback", op.annotation_id)
        return ExportWarning(op.annotation_id, WarningKind.GLYPH_FALLBACK,
                             f"Drawn as {substitute!r}")

    def render(
        self,
        source: bytes,
        annotations: Sequence[Annotation],
        scale: float,
    ) -> Tuple[bytes, List[ExportWarning], List[str], int]:
        """Returns (pdf bytes, warnings, skipped ids, page count)."""
        doc = SourceDocument.load(source)
        ops, warnings, skipped = self.plan(doc, annotations, scale)
        try:
            canvases = open_overlays(doc, base_font=self._cfg.base_font,
                                     encoding=self._cfg.text_encoding)
            for op in ops:
                canvas = canvases[op.page_index]
                if op.image is not None:
                    canvas.draw_image(op.image, op.x, op.y, op.width, op.height)
                    continue
                warning = self._draw_text(canvas, op)
                if warning is not None:
                    warnings.append(warning)
            data = doc.save_with_overlays(finish_overlays(canvases))
        except (PyPdfError, OSError, ValueError, KeyError) as exc:
            raise ExportError(f"Export failed: {exc}") from exc
        return data, warnings, skipped, doc.page_count

    # ------------------------------------------------------------------ #
    #  Öffentliche API                                                   #
    # ------------------------------------------------------------------ #
    def export(
        self,
        source: bytes,
        annotations: Sequence[Annotation],
        scale: float,
        *,
        source_name: Optional[str] = None,
    ) -> ExportResult:
        data, warnings, skipped, pages = self.render(source, annotations, scale)
        filename = self._naming.export_filename(NamingContext(source_name=source_name))
        result = ExportResult(
            artifact=OutputArtifact(data=data, filename=filename),
            warnings=tuple(warnings),
            skipped_ids=tuple(skipped),
            page_count=pages,
        )
        self._audit_event(filename, len(annotations), result)
        return result

    def _audit_event(self, filename: str, count: int, result: ExportResult) -> None:
        msg = (f"{count} annotations, {len(result.warnings)} warnings, "
               f"{len(result.skipped_ids)} skipped, {result.page_count} pages")
        try:
            self._audit.log(FEATURE, "export", reference_id=filename,
                            level="INFO" if result.ok else "WARNING", message=msg)
        except Exception as exc:  # audit is best-effort
            log.warning("Audit logging failed: %s", exc)
