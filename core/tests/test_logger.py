"""Audit logger against the in-memory database configured by conftest."""
from __future__ import annotations

import unittest

from core.logging.logic.logger import logger


class TestAuditLogger(unittest.TestCase):
    def setUp(self) -> None:
        logger.clear_logs()
        self._level = logger.min_level

    def tearDown(self) -> None:
        logger.min_level = self._level
        logger.clear_logs()

    def test_log_and_query(self) -> None:
        logger.log("PdfOverlay", "export", reference_id="edited-a.pdf", message="1 annotations")
        logger.log("PdfOverlay", "crop", level="WARNING", reference_id="signature-1")
        rows = logger.query_logs(feature="PdfOverlay", event="export")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].reference_id, "edited-a.pdf")
        self.assertEqual(len(logger.query_logs(level="WARNING")), 1)
        self.assertEqual(len(logger.fetch_logs()), 2)
        self.assertEqual(rows[0].as_dict()["event"], "export")

    def test_entries_below_level_are_dropped(self) -> None:
        logger.min_level = "WARNING"
        logger.log("PdfOverlay", "export")
        self.assertEqual(logger.entries, [])
        self.assertEqual(logger.fetch_logs(), [])
