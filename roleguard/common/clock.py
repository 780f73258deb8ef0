from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    return int(time.time() * 1000)


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = ["now_ms", "now_utc_iso"]
