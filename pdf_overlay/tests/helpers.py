"""In-process fixture documents and rasters (reportlab / Pillow)."""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image
from reportlab.pdfgen import canvas


def make_pdf(pages: int = 1, size: Tuple[float, float] = (595, 842)) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=size)
    for i in range(pages):
        c.setFont("Helvetica", 10)
        c.drawString(20, 20, f"Source page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image(fmt: str = "PNG", size: Tuple[int, int] = (40, 20),
               color=(200, 30, 30), mode: str = "RGB") -> bytes:
    img = Image.new(mode, size, color)
    if fmt == "GIF":
        img = img.convert("P")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def image_size(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


class AuditRecorder:
    """Stand-in for the audit logger; records calls."""

    def __init__(self) -> None:
        self.calls = []

    def log(self, feature, event, **kwargs) -> None:
        self.calls.append((feature, event, kwargs))

    @property
    def events(self):
        return [c[1] for c in self.calls]
