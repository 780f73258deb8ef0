from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

log = logging.getLogger(__name__)


class Role(str, Enum):
    VIEWER = "viewer"
    ADVERTISER = "advertiser"
    PUBLISHER = "publisher"
    ADMIN = "admin"
    STAKEHOLDER = "stakeholder"

    def __str__(self) -> str:
        return self.value


TOP_TIER_ROLE = Role.ADMIN

# Identifiers older clients and cached records still send.
LEGACY_ALIASES: Dict[str, Role] = {
    "user": Role.VIEWER,
}

# Legacy elevation table. Role-list membership is authoritative for
# permissions and routes; these levels only back meets_role_level().
ROLE_LEVELS: Dict[Role, int] = {
    Role.VIEWER: 1,
    Role.ADVERTISER: 2,
    Role.PUBLISHER: 2,
    Role.STAKEHOLDER: 3,
    Role.ADMIN: 4,
}

DASHBOARD_PATHS: Dict[Role, str] = {
    Role.VIEWER: "/dashboard/viewer",
    Role.ADVERTISER: "/dashboard/advertiser",
    Role.PUBLISHER: "/dashboard/publisher",
    Role.ADMIN: "/dashboard/admin",
    Role.STAKEHOLDER: "/dashboard/stakeholder",
}
FALLBACK_PATH = "/dashboard"

_BY_VALUE: Dict[str, Role] = {r.value: r for r in Role}


def normalize_role(value: Any) -> Optional[Role]:
    """Map a raw role identifier to its canonical Role, or None when unknown.

    Every boundary (deserialize, compare, persist) goes through here.
    """
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in _BY_VALUE:
        return _BY_VALUE[key]
    return LEGACY_ALIASES.get(key)


def normalize_roles(values: Iterable[Any]) -> Tuple[Role, ...]:
    """Normalize, drop unknown identifiers and de-duplicate, keeping first-seen order."""
    out: list[Role] = []
    for raw in values:
        role = normalize_role(raw)
        if role is None:
            log.debug("role_dropped_unknown", extra={"role": raw})
            continue
        if role not in out:
            out.append(role)
    return tuple(out)


def is_valid_role(value: Any) -> bool:
    return normalize_role(value) is not None


def all_roles() -> Tuple[Role, ...]:
    return tuple(Role)


def is_role_available(role: Any, available_roles: Iterable[Any]) -> bool:
    target = normalize_role(role)
    if target is None:
        log.warning("role_invalid", extra={"role": role, "op": "is_role_available"})
        return False
    return target in normalize_roles(available_roles)


def role_level(role: Any) -> int:
    target = normalize_role(role)
    return ROLE_LEVELS.get(target, 0) if target else 0


def meets_role_level(current: Any, required: Any) -> bool:
    """Legacy elevation check: current role level >= required role level."""
    have, need = role_level(current), role_level(required)
    if have == 0 or need == 0:
        return False
    return have >= need


def dashboard_path(role: Any) -> str:
    target = normalize_role(role)
    if target is None:
        log.warning("role_invalid", extra={"role": role, "op": "dashboard_path"})
        return FALLBACK_PATH
    return DASHBOARD_PATHS.get(target, FALLBACK_PATH)


__all__ = [
    "Role",
    "TOP_TIER_ROLE",
    "LEGACY_ALIASES",
    "ROLE_LEVELS",
    "normalize_role",
    "normalize_roles",
    "is_valid_role",
    "all_roles",
    "is_role_available",
    "role_level",
    "meets_role_level",
    "dashboard_path",
]
