"""
pdf_overlay/logic/signature_library.py
======================================

Signature sources for the editor:
  • freehand strokes -> transparent PNG
  • uploaded raster  -> PNG
  • previously used signatures, kept in the injected SettingsManager
    (slot "signatures"/"saved"), Fernet-encrypted when configured
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import List, Optional, Sequence, Tuple

from cryptography.fernet import InvalidToken
from PIL import Image, ImageColor, ImageDraw, UnidentifiedImageError

from core.config.config_service import SignatureConfig, config_service
from core.settings.logic.settings_manager import SettingsManager

from ..exceptions.errors import ImageDecodeError
from .encryption import decrypt_bytes, encrypt_bytes, forget_key

log = logging.getLogger(__name__)

PEN_COLORS = ("#000000", "#0000FF", "#FF0000")
SAVED_NS = "signatures"
SAVED_KEY = "saved"

Stroke = Sequence[Tuple[float, float]]


def render_png_from_strokes(
    strokes: Sequence[Stroke],
    size: Tuple[int, int],
    stroke_width: int = 2,
    color: str = "#000000",
) -> bytes:
    """Convert freehand strokes (canvas pixels) into a transparent PNG."""
    w, h = size
    rgba = ImageColor.getrgb(color) + (255,)
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    drw = ImageDraw.Draw(img)
    for poly in strokes:
        points = [(float(x), float(y)) for x, y in poly]
        if len(points) >= 2:
            drw.line(points, fill=rgba, width=stroke_width, joint="curve")
        elif len(points) == 1:
            # a single click leaves a dot
            x, y = points[0]
            r = stroke_width / 2
            drw.ellipse((x - r, y - r, x + r, y + r), fill=rgba)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def normalize_upload(raw: bytes) -> bytes:
    """Any decodable raster -> PNG bytes; raises ImageDecodeError."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            mode = "RGBA" if img.mode in ("RGBA", "LA", "P", "PA") else "RGB"
            buf = io.BytesIO()
            img.convert(mode).save(buf, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"Unsupported signature image: {exc}") from exc
    return buf.getvalue()


class SignatureLibrary:
    def __init__(self, settings: SettingsManager, config: Optional[SignatureConfig] = None) -> None:
        self._sm = settings
        self._cfg = config or config_service.signatures

    # -------- capture --------------------------------------------------------
    def render_strokes(self, strokes: Sequence[Stroke], color: str = PEN_COLORS[0]) -> bytes:
        """Strokes captured on the default drawing canvas, default pen width."""
        return render_png_from_strokes(
            strokes,
            (self._cfg.canvas_width, self._cfg.canvas_height),
            self._cfg.pen_width,
            color,
        )

    # -------- saved signatures ----------------------------------------------
    def _entries(self) -> List[dict]:
        raw = self._sm.get(SAVED_NS, SAVED_KEY, [])
        return raw if isinstance(raw, list) else []

    def _decode(self, entry: dict) -> bytes:
        if entry.get("enc"):
            return decrypt_bytes(self._sm, entry["data"].encode("ascii"))
        return base64.b64decode(entry["data"], validate=True)

    def list(self) -> List[bytes]:
        """Saved PNGs, oldest first; unreadable entries are skipped."""
        result: List[bytes] = []
        for entry in self._entries():
            try:
                result.append(self._decode(entry))
            except (InvalidToken, KeyError, TypeError, ValueError, binascii.Error) as exc:
                log.warning("Skipping unreadable saved signature: %s", exc)
        return result

    def add(self, png: bytes) -> bool:
        """Saves *png* unless an identical one is already stored."""
        if png in self.list():
            return False
        if self._cfg.encrypt_saved:
            entry = {"enc": True, "data": encrypt_bytes(self._sm, png).decode("ascii")}
        else:
            entry = {"enc": False, "data": base64.b64encode(png).decode("ascii")}
        self._sm.set(SAVED_NS, SAVED_KEY, self._entries() + [entry])
        return True

    def remove(self, index: int) -> None:
        entries = self._entries()
        if not 0 <= index < len(entries):
            raise IndexError(f"No saved signature at {index}")
        del entries[index]
        self._sm.set(SAVED_NS, SAVED_KEY, entries)

    def clear(self) -> None:
        self._sm.remove(SAVED_NS, SAVED_KEY)
        forget_key(self._sm)
