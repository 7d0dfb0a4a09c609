"""Drag move / resize via the pointer abstraction."""
from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace

import pytest

from core.config.config_service import AnnotationConfig
from pdf_overlay.exceptions.errors import InvalidAnnotationError
from pdf_overlay.logic.annotation_store import AnnotationStore
from pdf_overlay.logic.drag_controller import DragController
from pdf_overlay.models.overlay_enums import DragMode

from helpers import make_image


@pytest.fixture
def store() -> AnnotationStore:
    return AnnotationStore(page_count=1, config=AnnotationConfig())


def test_move_is_cumulative_from_start(store: AnnotationStore) -> None:
    t = store.add_text("a", 10, 10)
    drag = DragController(store, AnnotationConfig())
    drag.begin_drag(1, t.id, DragMode.MOVE)
    drag.update_drag(1, 5, 5)
    drag.update_drag(1, 30, -20)
    drag.end_drag(1)
    assert (store.get(t.id).x, store.get(t.id).y) == (40, -10)
    assert store.selected_id == t.id
    assert not drag.active


def test_other_pointer_is_ignored(store: AnnotationStore) -> None:
    t = store.add_text("a", 10, 10)
    drag = DragController(store, AnnotationConfig())
    drag.begin_drag(1, t.id)
    assert drag.update_drag(2, 100, 100) is None
    drag.end_drag(2)
    assert drag.active
    assert store.get(t.id).x == 10


def test_text_resize_clamps_font_size(store: AnnotationStore) -> None:
    t = store.add_text("a", 0, 0, font_size=16)
    drag = DragController(store, AnnotationConfig())
    drag.begin_drag(7, t.id, DragMode.RESIZE)
    assert drag.update_drag(7, 0, 20).font_size == 26
    assert drag.update_drag(7, 0, -100).font_size == 8
    assert drag.update_drag(7, 0, 1000).font_size == 200


def test_signature_resize_locks_aspect(store: AnnotationStore) -> None:
    s = store.add_signature(make_image(), 0, 0, 200, 100)
    drag = DragController(store, AnnotationConfig())
    drag.begin_drag(1, s.id, DragMode.RESIZE)
    sig = drag.update_drag(1, 10, 40)
    assert (sig.width, sig.height) == (240, 120)
    sig = drag.update_drag(1, -500, -400)
    assert (sig.width, sig.height) == (50, 25)


def test_resize_of_unknown_annotation_type_is_rejected(store: AnnotationStore) -> None:
    t = store.add_text("a", 0, 0)
    drag = DragController(store, AnnotationConfig())
    drag.begin_drag(1, t.id, DragMode.RESIZE)
    # stored object of a type the controller cannot resize
    drag._state = replace(drag._state, origin=SimpleNamespace(id=t.id, x=0, y=0))
    with pytest.raises(InvalidAnnotationError):
        drag.update_drag(1, 10, 10)
    assert not drag.active
    assert store.get(t.id).font_size == 16
