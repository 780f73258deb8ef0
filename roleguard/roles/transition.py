"""
Role transitions: persist the new selection, announce it and move the
principal to the new role's landing page.

State machine per coordinator::

    IDLE -> TRANSITIONING -> COMPLETED | ABORTED -> IDLE

While TRANSITIONING a record is kept in the session store under
``settings.TRANSITION_STATE_KEY``; it is removed on every exit.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from roleguard.access.roles import dashboard_path, normalize_role
from roleguard.common.clock import now_utc_iso
from roleguard.common.metrics import inc
from roleguard.config.settings import settings
from roleguard.roles.cache import KeyValueStore
from roleguard.roles.events import ROLE_SWITCHED, EventBus
from roleguard.roles.model import RoleTransitionState
from roleguard.roles.store import RoleStateStore

log = logging.getLogger(__name__)


class Navigator:
    """Host navigation hook."""

    async def navigate(self, path: str, shallow: bool = True) -> None:
        raise NotImplementedError

    def hard_redirect(self, path: str) -> None:
        raise NotImplementedError


class RecordingNavigator(Navigator):
    """Keeps requested paths; for headless hosts and tests."""

    def __init__(self) -> None:
        self.visited: list = []
        self.redirects: list = []

    async def navigate(self, path: str, shallow: bool = True) -> None:
        self.visited.append((path, shallow))

    def hard_redirect(self, path: str) -> None:
        self.redirects.append(path)


class TransitionPhase(str, Enum):
    IDLE = "idle"
    TRANSITIONING = "transitioning"
    COMPLETED = "completed"
    ABORTED = "aborted"


class RoleTransitionCoordinator:
    def __init__(
        self,
        store: RoleStateStore,
        session_store: KeyValueStore,
        events: EventBus,
        navigator: Navigator,
        *,
        state_key: Optional[str] = None,
    ) -> None:
        self.store = store
        self.session_store = session_store
        self.events = events
        self.navigator = navigator
        self.state_key = state_key or settings.TRANSITION_STATE_KEY
        self.phase = TransitionPhase.IDLE

    def is_transitioning(self) -> bool:
        return self.phase == TransitionPhase.TRANSITIONING

    def get_transition_state(self) -> Optional[Dict[str, Any]]:
        raw = self.session_store.get(self.state_key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            log.warning("transition_state_corrupt", extra={"key": self.state_key})
            return None

    def _clear_record(self) -> None:
        try:
            self.session_store.remove(self.state_key)
        except Exception:
            log.exception("transition_state_clear_failed", extra={"key": self.state_key})

    def _finish(self, phase: TransitionPhase) -> None:
        self.phase = phase
        self._clear_record()
        inc("roleguard_role_transitions_total", {"result": phase.value})
        self.phase = TransitionPhase.IDLE

    async def _persist(self, role) -> bool:
        if self.store.has_durable_principal:
            return await self.store.set_current_role_remote(role)
        return self.store.set_current_role_in_local_context(role)

    async def transition_to_role(self, current_role: Any, new_role: Any, preserve_path: bool = False) -> bool:
        source = normalize_role(current_role)
        target = normalize_role(new_role)
        if target is None:
            log.warning("role_invalid", extra={"role": new_role, "op": "transition"})
            return False
        if source == target:
            return True
        if self.is_transitioning():
            log.info("transition_in_flight", extra={"to": target.value})
            return False

        if self.get_transition_state() is not None:
            log.info("transition_stale_cleared", extra={"key": self.state_key})
            self._clear_record()

        landing = None if preserve_path else dashboard_path(target)
        record = RoleTransitionState(
            transitioning=True,
            fromRole=source.value if source else None,
            toRole=target.value,
            startTime=now_utc_iso(),
            targetPath=landing,
        )
        self.phase = TransitionPhase.TRANSITIONING
        try:
            self.session_store.set(self.state_key, json.dumps(record.to_dict()))
            persisted = await self._persist(target)
        except Exception:
            log.exception("transition_failed", extra={"from": record.fromRole, "to": target.value})
            self._finish(TransitionPhase.ABORTED)
            return False
        if not persisted:
            log.warning("transition_aborted", extra={"from": record.fromRole, "to": target.value})
            self._finish(TransitionPhase.ABORTED)
            return False

        # committed: the record is cleared on every path below
        try:
            self.events.publish(
                ROLE_SWITCHED,
                {
                    "from": record.fromRole,
                    "to": target.value,
                    "timestamp": self.store.get_role_data().timestamp,
                    "path": landing,
                },
            )
            if landing is not None:
                await self._navigate(landing)
            log.info("role_switched", extra={"from": record.fromRole, "to": target.value})
        finally:
            self._finish(TransitionPhase.COMPLETED)
        return True

    async def _navigate(self, landing: str) -> None:
        try:
            await self.navigator.navigate(landing, shallow=True)
            return
        except Exception:
            log.warning("transition_navigation_failed", extra={"path": landing}, exc_info=True)
        try:
            self.navigator.hard_redirect(landing)
        except Exception:
            log.exception("transition_redirect_failed", extra={"path": landing})


__all__ = ["Navigator", "RecordingNavigator", "TransitionPhase", "RoleTransitionCoordinator"]
