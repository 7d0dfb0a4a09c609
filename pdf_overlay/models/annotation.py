# pdf_overlay/models/annotation.py
from __future__ import annotations

import base64
from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

from .overlay_enums import AnnotationKind


@dataclass(frozen=True)
class TextAnnotation:
    """
    Text overlay anchored to one page.

    x/y are viewport pixels (top-left of the rendered page is the origin) at the
    scale that was active when the annotation was last edited.
    """
    id: str
    text: str
    x: float
    y: float
    font_size: float
    color: str = "#000000"
    font_family: str = "Arial, sans-serif"
    page_index: int = 1

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.TEXT


@dataclass(frozen=True)
class SignatureAnnotation:
    """
    Raster overlay (PNG bytes) anchored to one page.
    width/height are displayed viewport pixels; the export derives the drawn
    height from the native aspect ratio of image_data.
    """
    id: str
    image_data: bytes
    x: float
    y: float
    width: float
    height: float
    page_index: int = 1

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.SIGNATURE


Annotation = Union[TextAnnotation, SignatureAnnotation]


# ------------------------------------------------------------------ #
#  Tagged (de)serialisation for the clipboard slot                    #
# ------------------------------------------------------------------ #
def annotation_to_dict(ann: Annotation) -> Dict[str, Any]:
    data = asdict(ann)
    if isinstance(ann, SignatureAnnotation):
        data["image_data"] = base64.b64encode(ann.image_data).decode("ascii")
    return {"type": ann.kind.value, "data": data}


def annotation_from_dict(payload: Dict[str, Any]) -> Annotation:
    """Inverse of :func:`annotation_to_dict`; raises ValueError on unknown tags."""
    kind = AnnotationKind(payload.get("type"))
    data = dict(payload.get("data") or {})
    if kind is AnnotationKind.SIGNATURE:
        data["image_data"] = base64.b64decode(data["image_data"])
        return SignatureAnnotation(**data)
    return TextAnnotation(**data)
