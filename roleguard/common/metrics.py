"""Lightweight in-memory Prometheus-compatible decision counters.

Thread-safe labeled counters for permission, route and role-state outcomes.
"""
from __future__ import annotations

import threading
from typing import Dict, Mapping, Tuple

LabelKey = Tuple[Tuple[str, str], ...]


def _label_key(labels: Mapping[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


class Counter:
    def __init__(self, name: str, help_text: str = ""):
        self.name = name
        self.help = help_text
        self._values: Dict[LabelKey, int] = {}
        self._lock = threading.Lock()

    def inc(self, labels: Mapping[str, str] | None = None, amount: int = 1) -> None:
        key = _label_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0) + amount

    def get(self, labels: Mapping[str, str] | None = None) -> int:
        with self._lock:
            return self._values.get(_label_key(labels), 0)

    def samples(self) -> Dict[LabelKey, int]:
        with self._lock:
            return dict(self._values)


class Registry:
    def __init__(self):
        self._counters: Dict[str, Counter] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, help_text)
            return self._counters[name]

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def render_text(self) -> str:
        """Render all counters in Prometheus text exposition format."""
        lines = []
        with self._lock:
            counters = list(self._counters.values())
        for c in counters:
            if c.help:
                lines.append(f"# HELP {c.name} {c.help}")
            lines.append(f"# TYPE {c.name} counter")
            for key, val in sorted(c.samples().items()):
                if key:
                    label_str = ",".join(f'{k}="{v}"' for k, v in key)
                    lines.append(f"{c.name}{{{label_str}}} {val}")
                else:
                    lines.append(f"{c.name} {val}")
        return "\n".join(lines) + "\n"


# Global singleton registry
REG = Registry()


def inc(name: str, labels: Mapping[str, str] | None = None, help_text: str = "") -> None:
    REG.counter(name, help_text).inc(labels)


__all__ = ["Counter", "Registry", "REG", "inc"]
