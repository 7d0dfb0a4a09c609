from __future__ import annotations

import time
from uuid import uuid4


def new_id(prefix: str) -> str:
    """Session-unique id: <prefix>-<monotonic ns>-<8 hex of a uuid4>."""
    return f"{prefix}-{time.monotonic_ns()}-{uuid4().hex[:8]}"
