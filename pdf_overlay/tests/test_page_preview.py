"""Page rasterising for display."""
from __future__ import annotations

import pytest

from pdf_overlay.exceptions.errors import DocumentDecodeError
from pdf_overlay.logic.page_preview import PagePreview

from helpers import make_pdf


def test_page_count_listener_and_render() -> None:
    preview = PagePreview()
    seen = []
    preview.on_page_count_known(seen.append)
    assert preview.open(make_pdf(pages=2, size=(200, 100))) == 2
    assert seen == [2]

    late = []
    preview.on_page_count_known(late.append)
    assert late == [2]

    assert preview.viewport_size(1, 1.5) == pytest.approx((300, 150))
    img = preview.render(2, 2.0)
    assert img.size == (400, 200)
    with pytest.raises(IndexError):
        preview.render(3, 1.0)
    preview.close()
    assert preview.page_count is None


def test_garbage_is_rejected() -> None:
    with pytest.raises(DocumentDecodeError):
        PagePreview().open(b"definitely not a pdf")
