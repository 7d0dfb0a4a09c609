"""
Image-to-page compositor: one A4 portrait page per image, fitted and centred.

PNG/JPEG bytes are embedded as they are; other rasters (GIF, BMP, WebP, ...)
are re-encoded to PNG first. An image that cannot be decoded is skipped with
a warning; the batch only fails if nothing could be embedded.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Iterable, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.config.config_service import CompositorConfig, config_service
from core.logging.logic.logger import logger as audit_logger

from ..exceptions.errors import EmptyCompositionError, ExportError
from ..models.geometry_types import Size
from ..models.image_item import ImageItem
from ..models.output_artifact import ExportResult, ExportWarning, OutputArtifact
from ..models.overlay_enums import WarningKind
from .geometry import scale_to_fit
from .naming_strategy import DefaultPrefixStrategy, NamingContext, NamingStrategy

log = logging.getLogger(__name__)

FEATURE = "PdfOverlay"
NATIVE_FORMATS = {"PNG", "JPEG"}


class ImageCompositor:
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
    def prepare(self, item: ImageItem) -> Tuple[bytes, Size]:
        """
        Decodes *item* and returns (embeddable bytes, native size).
        Raises UnidentifiedImageError/OSError/ValueError if undecodable.
        """
        with Image.open(io.BytesIO(item.raw_bytes)) as img:
            img.load()
            size = Size(float(img.width), float(img.height))
            if img.format in NATIVE_FORMATS:
                return item.raw_bytes, size
            # first frame only for animated input
            mode = "RGBA" if img.mode in ("RGBA", "LA", "P") else "RGB"
            buf = io.BytesIO()
            img.convert(mode).save(buf, format="PNG")
            return buf.getvalue(), size

    def compose(self, items: Iterable[ImageItem], *, name: Optional[str] = None) -> ExportResult:
        ordered = sorted(items, key=lambda i: i.ordinal_position)
        page = Size(self._cfg.page_width, self._cfg.page_height)
        warnings: List[ExportWarning] = []

        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=(page.width, page.height))
        pages = 0
        try:
            for item in ordered:
                try:
                    data, native = self.prepare(item)
                except (UnidentifiedImageError, OSError, ValueError) as exc:
                    log.warning("Skipping image %s (%s): %s", item.id, item.mime_type, exc)
                    warnings.append(ExportWarning(item.id, WarningKind.IMAGE_DROPPED,
                                                  f"Image not decodable: {exc}"))
                    continue
                box = scale_to_fit(native, page)
                c.drawImage(ImageReader(io.BytesIO(data)), box.x, box.y,
                            width=box.width, height=box.height, mask="auto")
                c.showPage()
                pages += 1
            if pages == 0:
                raise EmptyCompositionError("None of the images could be embedded")
            c.save()
        except EmptyCompositionError:
            raise
        except (OSError, ValueError) as exc:
            raise ExportError(f"Image composition failed: {exc}") from exc

        filename = self._naming.composition_filename(NamingContext(source_name=None, user_name=name))
        result = ExportResult(
            artifact=OutputArtifact(data=buf.getvalue(), filename=filename),
            warnings=tuple(warnings),
            page_count=pages,
        )
        try:
            self._audit.log(FEATURE, "compose_images", reference_id=filename,
                            level="INFO" if result.ok else "WARNING",
                            message=f"{pages} pages from {len(ordered)} images")
        except Exception as exc:  # audit is best-effort
            log.warning("Audit logging failed: %s", exc)
        return result
