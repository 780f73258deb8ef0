"""
Principal-scoped role state.

RoleStateStore holds the current and available roles of one principal,
persists them to a local key-value cache and reconciles them with a remote
role authority. One instance per principal session, passed explicitly to the
components that need it (UI root, route guard).

Reconciliation rule for sync_with_server(): the remote authority wins for
which roles are available and its current role is adopted locally; when the
pre-sync local selection differs and is still available, that selection is
pushed back to the authority so the next sync converges on it.

Role identifiers are normalized on every way in and out (cache load, caller
input, remote response, comparison).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, Optional, Tuple

from pydantic import ValidationError

from roleguard.access.roles import Role, normalize_role, normalize_roles
from roleguard.common.clock import now_ms
from roleguard.common.metrics import inc
from roleguard.config.settings import settings
from roleguard.errors import AuthorityError, RoleDataInvalid
from roleguard.roles.authority import RoleAuthority
from roleguard.roles.cache import InMemoryKVStore, KeyValueStore
from roleguard.roles.events import ROLES_UPDATED, EventBus
from roleguard.roles.model import RoleData, RoleDataPayload

log = logging.getLogger(__name__)


class RoleStateStore:
    def __init__(
        self,
        cache: Optional[KeyValueStore] = None,
        authority: Optional[RoleAuthority] = None,
        *,
        principal_id: Optional[str] = None,
        default_role: Any = None,
        storage_key: Optional[str] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.cache = cache if cache is not None else InMemoryKVStore()
        self.authority = authority
        self.principal_id = principal_id
        self.default_role = normalize_role(default_role or settings.DEFAULT_ROLE) or Role.VIEWER
        self.storage_key = storage_key or settings.ROLE_STORAGE_KEY
        self.events = events
        self._clock = clock
        self._data: Optional[RoleData] = None
        self._load_from_cache()

    # ---- persistence -------------------------------------------------

    def _load_from_cache(self) -> None:
        try:
            raw = self.cache.get(self.storage_key)
        except Exception:
            log.exception("role_cache_read_failed", extra={"key": self.storage_key})
            return
        if raw is None:
            return
        try:
            self._data = self._validate(json.loads(raw))
        except ValueError as exc:
            log.warning("role_cache_corrupt", extra={"key": self.storage_key, "error": str(exc)})
            self._data = None
            self._remove_cached()

    def _persist(self, data: RoleData) -> None:
        try:
            self.cache.set(self.storage_key, json.dumps(data.to_dict()))
        except Exception:
            # memory state stays authoritative for this session
            log.exception("role_cache_write_failed", extra={"key": self.storage_key})

    def _remove_cached(self) -> None:
        try:
            self.cache.remove(self.storage_key)
        except Exception:
            log.exception("role_cache_remove_failed", extra={"key": self.storage_key})

    def _commit(self, data: RoleData) -> RoleData:
        self._data = data
        self._persist(data)
        return data

    # ---- validation --------------------------------------------------

    def _validate(self, data: Any) -> RoleData:
        if isinstance(data, RoleData):
            data = data.to_dict()
        try:
            payload = RoleDataPayload.model_validate(data)
        except ValidationError as exc:
            raise RoleDataInvalid(f"invalid role data: {exc.error_count()} error(s)") from exc

        current = normalize_role(payload.current_role)
        if current is None:
            log.info("role_current_unknown", extra={"role": payload.current_role, "fallback": self.default_role.value})
            current = self.default_role

        available = normalize_roles(payload.available_roles) or (self.default_role,)
        if current not in available:
            log.info("role_current_unavailable", extra={"role": current.value, "fallback": available[0].value})
            current = available[0]

        return RoleData(current_role=current, available_roles=available, timestamp=int(payload.timestamp))

    def _default_record(self) -> RoleData:
        return RoleData(
            current_role=self.default_role,
            available_roles=(self.default_role,),
            timestamp=self._clock(),
        )

    # ---- accessors ---------------------------------------------------

    def get_role_data(self) -> RoleData:
        if self._data is None:
            self._data = self._default_record()
        return self._data

    def set_role_data(self, data: Any) -> RoleData:
        """Validate, normalize and persist. Raises RoleDataInvalid on a malformed shape."""
        return self._commit(self._validate(data))

    @property
    def current_role(self) -> Role:
        return self.get_role_data().current_role

    @property
    def available_roles(self) -> Tuple[Role, ...]:
        return self.get_role_data().available_roles

    @property
    def has_durable_principal(self) -> bool:
        pid = self.principal_id
        return bool(pid) and self.authority is not None and not pid.startswith(settings.TEST_PRINCIPAL_PREFIX)

    def has_role(self, role: Any) -> bool:
        return normalize_role(role) == self.current_role

    def has_any_role(self, roles: Iterable[Any]) -> bool:
        return self.current_role in normalize_roles(roles)

    def is_role_available(self, role: Any) -> bool:
        target = normalize_role(role)
        return target is not None and target in self.available_roles

    # ---- mutations ---------------------------------------------------

    def set_current_role_in_local_context(self, role: Any) -> bool:
        target = normalize_role(role)
        if target is None:
            log.warning("role_invalid", extra={"role": role, "op": "set_current_role"})
            return False
        data = self.get_role_data()
        if target not in data.available_roles:
            log.info("role_not_available", extra={"role": target.value, "principal": self.principal_id})
            return False
        self._commit(RoleData(current_role=target, available_roles=data.available_roles, timestamp=self._clock()))
        return True

    async def set_current_role_remote(self, role: Any) -> bool:
        """Persist the selection at the authority first, then locally."""
        target = normalize_role(role)
        if target is None:
            log.warning("role_invalid", extra={"role": role, "op": "set_current_role_remote"})
            return False
        if self.authority is None:
            log.warning("role_authority_missing", extra={"principal": self.principal_id})
            return False
        if not self.is_role_available(target):
            log.info("role_not_available", extra={"role": target.value, "principal": self.principal_id})
            return False
        try:
            await self.authority.set_role(target)
        except AuthorityError as exc:
            log.warning("role_remote_set_failed", extra={"role": target.value, "error": str(exc)})
            return False
        return self.set_current_role_in_local_context(target)

    def set_available_roles(self, roles: Iterable[Any]) -> bool:
        normalized = normalize_roles(roles)
        if not normalized:
            log.warning("role_available_empty", extra={"principal": self.principal_id})
            return False
        data = self.get_role_data()
        current = data.current_role
        if current not in normalized:
            current = self.default_role if self.default_role in normalized else normalized[0]
        self._commit(RoleData(current_role=current, available_roles=normalized, timestamp=self._clock()))
        self._notify_roles_updated()
        return True

    def clear_role_data(self) -> None:
        self._data = None
        self._remove_cached()
        log.debug("role_data_cleared", extra={"principal": self.principal_id})

    def _notify_roles_updated(self) -> None:
        if self.events is None:
            return
        data = self.get_role_data()
        self.events.publish(
            ROLES_UPDATED,
            {
                "currentRole": data.current_role.value,
                "availableRoles": [r.value for r in data.available_roles],
                "timestamp": data.timestamp,
            },
        )

    # ---- reconciliation ----------------------------------------------

    async def sync_with_server(self) -> RoleData:
        """Adopt the authority's view; on any failure return the prior local state."""
        prior = self.get_role_data()
        if self.authority is None:
            return prior

        try:
            remote = await self.authority.fetch_role_data()
            adopted = self._validate(
                {
                    "currentRole": remote.current_role or prior.current_role.value,
                    "availableRoles": (
                        remote.available_roles
                        if remote.available_roles is not None
                        else [r.value for r in prior.available_roles]
                    ),
                    "timestamp": self._clock(),
                }
            )
        except (AuthorityError, RoleDataInvalid) as exc:
            log.warning("role_sync_failed", extra={"principal": self.principal_id, "error": str(exc)})
            inc("roleguard_role_sync_total", {"result": "failed"})
            return prior
        except Exception:
            log.exception("role_sync_failed", extra={"principal": self.principal_id})
            inc("roleguard_role_sync_total", {"result": "failed"})
            return prior

        self._commit(adopted)
        inc("roleguard_role_sync_total", {"result": "ok"})

        if adopted.available_roles != prior.available_roles:
            self._notify_roles_updated()

        remote_current = normalize_role(remote.current_role)
        if prior.current_role != remote_current and prior.current_role in adopted.available_roles:
            try:
                await self.authority.set_role(prior.current_role)
            except Exception as exc:
                log.warning("role_pushback_failed", extra={"role": prior.current_role.value, "error": str(exc)})

        return adopted


__all__ = ["RoleStateStore"]
