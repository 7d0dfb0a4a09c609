from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ImageItem:
    """One input image of the image-to-page compositor."""
    id: str
    raw_bytes: bytes
    mime_type: str
    ordinal_position: int
    name: str = ""
