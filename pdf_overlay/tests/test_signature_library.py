"""Signature capture, upload normalisation and the saved list."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from core.config.config_service import SignatureConfig
from core.settings.logic.settings_manager import SettingsManager
from pdf_overlay.exceptions.errors import ImageDecodeError
from pdf_overlay.logic.signature_library import (
    SAVED_KEY,
    SAVED_NS,
    SignatureLibrary,
    normalize_upload,
    render_png_from_strokes,
)

from helpers import make_image


def _open(png: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(png))
    img.load()
    return img


def test_strokes_render_to_transparent_png() -> None:
    png = render_png_from_strokes([[(10, 10), (100, 50), (150, 20)], [(5, 5)]], (200, 100), 2, "#0000FF")
    img = _open(png)
    assert img.format == "PNG"
    assert img.size == (200, 100)
    assert img.getpixel((199, 99))[3] == 0
    assert img.getpixel((5, 5)) == (0, 0, 255, 255)


def test_library_uses_default_canvas() -> None:
    lib = SignatureLibrary(SettingsManager(), SignatureConfig())
    assert _open(lib.render_strokes([[(0, 0), (10, 10)]])).size == (600, 300)


def test_upload_is_normalised_to_png() -> None:
    assert _open(normalize_upload(make_image("JPEG"))).format == "PNG"
    with pytest.raises(ImageDecodeError):
        normalize_upload(b"not an image")


@pytest.mark.parametrize("encrypt", [True, False])
def test_saved_signatures_dedupe_and_clear(encrypt: bool) -> None:
    sm = SettingsManager()
    lib = SignatureLibrary(sm, SignatureConfig(encrypt_saved=encrypt))
    first, second = make_image(color=(1, 2, 3)), make_image(color=(4, 5, 6))
    assert lib.add(first)
    assert not lib.add(first)
    assert lib.add(second)
    assert lib.list() == [first, second]

    stored = sm.get(SAVED_NS, SAVED_KEY)
    assert all(e["enc"] is encrypt for e in stored)
    if encrypt:
        assert all(first not in e["data"].encode("ascii") for e in stored)

    lib.remove(0)
    assert lib.list() == [second]
    lib.clear()
    assert lib.list() == []
    assert sm.get("signatures", "fernet_key") is None


def test_unreadable_entries_are_skipped() -> None:
    sm = SettingsManager()
    lib = SignatureLibrary(sm, SignatureConfig())
    png = make_image()
    lib.add(png)
    sm.set(SAVED_NS, SAVED_KEY, sm.get(SAVED_NS, SAVED_KEY) + [{"enc": True, "data": "garbage"}])
    assert lib.list() == [png]
