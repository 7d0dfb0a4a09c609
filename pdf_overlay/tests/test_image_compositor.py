"""Image-to-page composition and the image queue."""
from __future__ import annotations

import io
import threading

import pytest
from pypdf import PdfReader

from core.config.config_service import CompositorConfig
from pdf_overlay.exceptions.errors import EmptyCompositionError, ExportInProgressError
from pdf_overlay.logic.image_compositor import ImageCompositor
from pdf_overlay.logic.image_queue import ImageQueue
from pdf_overlay.models.image_item import ImageItem
from pdf_overlay.models.overlay_enums import WarningKind

from helpers import AuditRecorder, make_image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def compositor() -> ImageCompositor:
    return ImageCompositor(config=CompositorConfig(), audit=AuditRecorder())


def _page_image_sizes(data: bytes):
    sizes = []
    for page in PdfReader(io.BytesIO(data)).pages:
        xobjects = page["/Resources"]["/XObject"]
        img = next(iter(xobjects.values())).get_object()
        sizes.append((int(img["/Width"]), int(img["/Height"])))
    return sizes


def _queue_of(*entries) -> ImageQueue:
    queue = ImageQueue()
    for raw, mime in entries:
        queue.add(raw, mime)
    return queue


def test_png_jpeg_gif_become_three_pages_in_order(compositor: ImageCompositor) -> None:
    queue = _queue_of(
        (make_image("PNG", (100, 50)), "image/png"),
        (make_image("JPEG", (60, 120)), "image/jpeg"),
        (make_image("GIF", (80, 80)), "image/gif"),
    )
    result = compositor.compose(queue.items, name="scan")
    reader = PdfReader(io.BytesIO(result.artifact.data))
    assert len(reader.pages) == 3
    assert all(float(p.mediabox.width) == 595 and float(p.mediabox.height) == 842 for p in reader.pages)
    assert _page_image_sizes(result.artifact.data) == [(100, 50), (60, 120), (80, 80)]
    assert result.artifact.filename == "scan.pdf"
    assert result.ok


def test_gif_is_reencoded_and_native_formats_pass_through(compositor: ImageCompositor) -> None:
    png = make_image("PNG")
    jpeg = make_image("JPEG")
    gif = make_image("GIF")
    assert compositor.prepare(ImageItem("a", png, "image/png", 0))[0] == png
    assert compositor.prepare(ImageItem("b", jpeg, "image/jpeg", 1))[0] == jpeg
    data, size = compositor.prepare(ImageItem("c", gif, "image/gif", 2))
    assert data.startswith(PNG_SIGNATURE)
    assert (size.width, size.height) == (40, 20)


def test_broken_image_is_skipped(compositor: ImageCompositor) -> None:
    queue = _queue_of(
        (make_image("PNG", (100, 50)), "image/png"),
        (make_image("JPEG", (60, 120)), "image/jpeg"),
        (b"GIF89a-but-broken", "image/gif"),
    )
    broken_id = queue.items[2].id
    result = compositor.compose(queue.items)
    assert result.page_count == 2
    assert len(PdfReader(io.BytesIO(result.artifact.data)).pages) == 2
    assert [(w.item_id, w.kind) for w in result.warnings] == [(broken_id, WarningKind.IMAGE_DROPPED)]
    assert result.artifact.filename == "document.pdf"


def test_nothing_embeddable_fails(compositor: ImageCompositor) -> None:
    with pytest.raises(EmptyCompositionError):
        compositor.compose([ImageItem("x", b"nope", "image/png", 0)])
    with pytest.raises(EmptyCompositionError):
        compositor.compose([])


def test_queue_ignores_non_images_and_renumbers() -> None:
    queue = ImageQueue()
    a = queue.add(make_image(), "image/png", "a.png")
    assert queue.add(b"%PDF", "application/pdf", "x.pdf") is None
    b = queue.add(make_image(), "image/jpeg", "b.jpg")
    c = queue.add(make_image(), "image/gif", "c.gif")

    queue.move(2, 0)
    assert [i.id for i in queue.items] == [c.id, a.id, b.id]
    queue.move_down(0)
    queue.move_up(0)          # no-op at the top
    queue.move_down(2)        # no-op at the bottom
    assert [i.id for i in queue.items] == [a.id, c.id, b.id]
    assert [i.ordinal_position for i in queue.items] == [0, 1, 2]

    queue.remove(c.id)
    assert [(i.id, i.ordinal_position) for i in queue.items] == [(a.id, 0), (b.id, 1)]
    with pytest.raises(IndexError):
        queue.move(0, 5)
    queue.clear()
    assert len(queue) == 0


def test_queue_add_file(tmp_path) -> None:
    path = tmp_path / "photo.jpg"
    path.write_bytes(make_image("JPEG"))
    (tmp_path / "notes.txt").write_text("hi")
    queue = ImageQueue()
    assert queue.add_file(path).mime_type == "image/jpeg"
    assert queue.add_file(tmp_path / "notes.txt") is None


def test_queue_compose_rejects_parallel_runs() -> None:
    started, release = threading.Event(), threading.Event()

    class SlowCompositor:
        def compose(self, items, name=None):
            started.set()
            release.wait(5)
            return "done"

    queue = _queue_of((make_image(), "image/png"))
    results = []
    worker = threading.Thread(target=lambda: results.append(queue.compose(SlowCompositor())))
    worker.start()
    assert started.wait(5)
    assert queue.busy
    with pytest.raises(ExportInProgressError):
        queue.compose(SlowCompositor())
    release.set()
    worker.join(5)
    assert results == ["done"]
    assert not queue.busy
