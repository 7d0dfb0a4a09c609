"""
core/tests/test_config_service.py

Layering and typing of the ConfigService.
"""

from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from core.config.config_service import ConfigService


class TestConfigService(unittest.TestCase):
    def test_defaults_are_typed(self) -> None:
        cfg = ConfigService()
        self.assertEqual(cfg.viewport.min_scale, 0.5)
        self.assertEqual(cfg.viewport.max_scale, 2.0)
        self.assertAlmostEqual(cfg.viewport.default_scale, 1.2)
        self.assertIs(cfg.viewport.rescale_annotations_on_zoom, True)
        self.assertEqual(cfg.annotations.paste_offset, 20.0)
        self.assertEqual(cfg.crop.min_size, 20.0)
        self.assertEqual((cfg.compositor.page_width, cfg.compositor.page_height), (595.0, 842.0))
        self.assertEqual(cfg.compositor.export_prefix, "edited-")
        self.assertIsInstance(cfg.signatures.pen_width, int)
        self.assertIsInstance(cfg.logging.db_path, Path)

    def test_env_overlay_wins_over_defaults(self) -> None:
        env = {"PDFOVERLAY_VIEWPORT__MAX_SCALE": "3.5", "PDFOVERLAY_COMPOSITOR__BASE_FONT": "Courier"}
        with mock.patch.dict(os.environ, env):
            cfg = ConfigService()
        self.assertEqual(cfg.viewport.max_scale, 3.5)
        self.assertEqual(cfg.compositor.base_font, "Courier")
        self.assertEqual(cfg.meta_source("Viewport", "max_scale")["layer"], "env")

    def test_get_with_cast(self) -> None:
        cfg = ConfigService()
        self.assertEqual(cfg.get("Annotations", "max_font_size", cast=float), 200.0)
        self.assertEqual(cfg.get("Annotations", "default_color"), "#000000")
        self.assertIsNone(cfg.get("Nope", "missing"))
