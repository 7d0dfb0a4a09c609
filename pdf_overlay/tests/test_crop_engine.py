"""
pdf_overlay/tests/test_crop_engine.py

Crop state machine, handle clamping and the native-resolution cut.
"""

from __future__ import annotations

import itertools
import unittest

from core.config.config_service import CropConfig
from pdf_overlay.exceptions.errors import ImageDecodeError, InvalidAnnotationError
from pdf_overlay.logic.annotation_store import AnnotationStore
from pdf_overlay.logic.crop_engine import CropEngine
from pdf_overlay.models.geometry_types import Rect
from pdf_overlay.models.overlay_enums import Corner, CropState

from helpers import AuditRecorder, image_size, make_image


class TestCropEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.store = AnnotationStore(page_count=1)
        self.audit = AuditRecorder()
        self.engine = CropEngine(self.store, config=CropConfig(), audit=self.audit)
        self.sig = self.store.add_signature(make_image(size=(400, 200)), 30, 40, 200, 100)

    def test_begin_covers_full_image(self) -> None:
        rect = self.engine.begin(self.sig.id)
        self.assertEqual(rect, Rect(0, 0, 200, 100))
        self.assertEqual(self.engine.state, CropState.CROPPING)

    def test_only_signatures_can_be_cropped(self) -> None:
        t = self.store.add_text("x", 0, 0)
        with self.assertRaises(InvalidAnnotationError):
            self.engine.begin(t.id)

    def test_apply_cuts_native_pixels(self) -> None:
        self.engine.begin(self.sig.id)
        self.engine.rect = Rect(10, 10, 100, 50)
        updated = self.engine.apply()
        self.assertEqual(image_size(updated.image_data), (200, 100))
        self.assertEqual((updated.width, updated.height), (100, 50))
        self.assertEqual((updated.x, updated.y), (30, 40))
        self.assertEqual(self.engine.state, CropState.IDLE)
        self.assertEqual(self.engine.last_outcome, CropState.APPLIED)
        self.assertEqual(self.audit.events, ["crop"])

    def test_handle_drags_stay_in_bounds(self) -> None:
        deltas = [-500, -150, -60, -5, 0, 7, 45, 90, 180, 600]
        for corner in Corner:
            self.engine.begin(self.sig.id)
            self.engine.begin_handle_drag(Corner.BOTTOM_RIGHT)
            self.engine.update_handle_drag(-40, -30)        # start from a smaller rect
            self.engine.end_handle_drag()
            self.engine.begin_handle_drag(corner)
            for dx, dy in itertools.product(deltas, deltas):
                r = self.engine.update_handle_drag(dx, dy)
                self.assertGreaterEqual(r.x, 0)
                self.assertGreaterEqual(r.y, 0)
                self.assertLessEqual(r.right, 200 + 1e-9)
                self.assertLessEqual(r.bottom, 100 + 1e-9)
                self.assertGreaterEqual(r.width, 20)
                self.assertGreaterEqual(r.height, 20)
            self.engine.cancel()

    def test_top_left_handle_moves_two_edges(self) -> None:
        self.engine.begin(self.sig.id)
        self.engine.begin_handle_drag(Corner.TOP_LEFT)
        r = self.engine.update_handle_drag(30, 20)
        self.assertEqual(r, Rect(30, 20, 170, 80))
        r = self.engine.update_handle_drag(500, 500)
        self.assertEqual(r, Rect(180, 80, 20, 20))

    def test_pointer_outside_cancels(self) -> None:
        self.engine.begin(self.sig.id)
        self.assertEqual(self.engine.pointer_down(200, 100), Corner.BOTTOM_RIGHT)
        self.engine.end_handle_drag()
        self.assertIsNone(self.engine.pointer_down(100, 50))      # inside
        self.assertEqual(self.engine.state, CropState.CROPPING)
        self.engine.pointer_down(400, 400)
        self.assertEqual(self.engine.state, CropState.IDLE)
        self.assertEqual(self.engine.last_outcome, CropState.CANCELLED)
        self.assertIsNone(self.engine.rect)
        self.assertEqual(self.store.get(self.sig.id), self.sig)

    def test_undecodable_image_leaves_annotation_untouched(self) -> None:
        broken = self.store.add_signature(b"not an image", 0, 0, 50, 50)
        self.engine.begin(broken.id)
        with self.assertRaises(ImageDecodeError):
            self.engine.apply()
        self.assertEqual(self.engine.state, CropState.IDLE)
        self.assertEqual(self.store.get(broken.id), broken)
