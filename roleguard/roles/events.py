"""Role-change notification bus: publish/subscribe by event name."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

log = logging.getLogger(__name__)

ROLE_SWITCHED = "role_switched"
ROLES_UPDATED = "roles_updated"

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """Synchronous fan-out. A failing handler is logged and does not stop delivery."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        self._handlers.setdefault(event, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: str, payload: Dict[str, Any]) -> int:
        """Deliver to every subscriber of ``event``; returns how many handlers ran cleanly."""
        delivered = 0
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(dict(payload))
                delivered += 1
            except Exception:
                log.exception("event_handler_failed", extra={"event": event})
        return delivered


__all__ = ["EventBus", "ROLE_SWITCHED", "ROLES_UPDATED", "Handler"]
