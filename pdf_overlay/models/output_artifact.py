from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Tuple

from .overlay_enums import WarningKind

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class ExportWarning:
    """Per-item failure that did not abort the export (annotation or image id)."""
    item_id: str
    kind: WarningKind
    message: str


@dataclass(frozen=True)
class OutputArtifact:
    data: bytes
    filename: str
    mime_type: str = PDF_MIME_TYPE

    def save_to(self, directory: Path | str) -> Path:
        """Writes the buffer as <directory>/<filename> and returns the path."""
        target = Path(directory) / self.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as f:
            f.write(self.data)
        return target


@dataclass(frozen=True)
class ExportResult:
    artifact: OutputArtifact
    warnings: Tuple[ExportWarning, ...] = ()
    skipped_ids: Tuple[str, ...] = ()          # out-of-range page index
    page_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.warnings


@dataclass
class DrawOp:
    """Planned draw operation in page space (bottom-left origin, points)."""
    annotation_id: str
    page_index: int
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    font_size: float = 0.0
    color: str = "#000000"
    image: Any = None           # decoded PIL image for signatures
