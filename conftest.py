"""Test session setup: keep the audit log out of the project database."""
import os

# must happen before core.config is imported anywhere
os.environ.setdefault("PDFOVERLAY_LOGGING__DB_PATH", ":memory:")
