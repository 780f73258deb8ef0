"""
Common utilities and shared components
"""
from .clock import now_ms, now_utc_iso

__all__ = ["now_ms", "now_utc_iso"]
