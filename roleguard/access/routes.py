"""
Closed-world route gating.

Decision order for check_route_access(path, role):

1. strip query string / fragment
2. unknown role -> deny; top-tier role -> allow
3. public allow-list (exact) -> allow
4. exact grant-table match -> allow
5. any restricted prefix of the path that does not list the role -> deny
6. walk prefixes shortest -> longest; the first granting prefix wins
7. default deny

Prefixes are matched on segment boundaries: ``/dashboard/admin`` covers
``/dashboard/admin/users`` but not ``/dashboard/administrators``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

import yaml

from roleguard.access.roles import TOP_TIER_ROLE, Role, normalize_role
from roleguard.common.metrics import inc
from roleguard.config.settings import settings
from roleguard.errors import RegistryConfigError

log = logging.getLogger(__name__)

V, ADV, PUB, ADM, STK = Role.VIEWER, Role.ADVERTISER, Role.PUBLISHER, Role.ADMIN, Role.STAKEHOLDER
_ALL = (V, ADV, PUB, ADM, STK)


def _normalize_path(path: str) -> str:
    bare = path.split("?", 1)[0].split("#", 1)[0]
    parts = [p for p in bare.split("/") if p]
    return "/" + "/".join(parts)


def _prefixes(path: str) -> List[str]:
    """'/a/b/c' -> ['/a', '/a/b', '/a/b/c']"""
    out: List[str] = []
    current = ""
    for part in path.split("/"):
        if not part:
            continue
        current += "/" + part
        out.append(current)
    return out


@dataclass(frozen=True)
class RouteTable:
    public: FrozenSet[str] = frozenset()
    grants: Mapping[str, FrozenSet[Role]] = field(default_factory=dict)
    restricted: Mapping[str, FrozenSet[Role]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        public: Iterable[str] = (),
        grants: Optional[Mapping[str, Iterable[Any]]] = None,
        restricted: Optional[Mapping[str, Iterable[Any]]] = None,
    ) -> "RouteTable":
        return cls(
            public=frozenset(_normalize_path(p) for p in public),
            grants=_role_map(grants or {}, "routes"),
            restricted=_role_map(restricted or {}, "restricted"),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RouteTable":
        """Build from ``{"public": [...], "routes": {prefix: [roles]}, "restricted": {prefix: [roles]}}``."""
        if not isinstance(data, Mapping):
            raise RegistryConfigError("route table must be a mapping")
        return cls.build(
            public=data.get("public") or (),
            grants=data.get("routes") or {},
            restricted=data.get("restricted") or {},
        )


def _role_map(raw: Mapping[str, Iterable[Any]], section: str) -> Dict[str, FrozenSet[Role]]:
    out: Dict[str, FrozenSet[Role]] = {}
    for prefix, roles in raw.items():
        resolved = []
        for r in roles:
            role = normalize_role(r)
            if role is None:
                raise RegistryConfigError(f"{section}: prefix {prefix} lists unknown role {r!r}")
            resolved.append(role)
        out[_normalize_path(prefix)] = frozenset(resolved)
    return out


DEFAULT_PUBLIC_ROUTES = (
    "/",
    "/login",
    "/dashboard",
    "/dashboard/profile",
    "/dashboard/settings",
    "/dashboard/viewer",
)

# "/dashboard" itself is public (exact) and deliberately absent here: with a
# shortest-first walk, a grant on it would open every subtree.
DEFAULT_ROUTE_PERMISSIONS = {
    "/dashboard/profile": _ALL,
    "/dashboard/settings": _ALL,
    "/dashboard/viewer": _ALL,
    "/dashboard/advertiser": (ADV, ADM),
    "/dashboard/ads/create": (ADV, ADM),
    "/dashboard/ads/edit": (ADV, ADM),
    "/dashboard/ads/view": (ADV, ADM),
    "/dashboard/publisher": (PUB, ADM),
    "/dashboard/publisher/placements": (PUB, ADM),
    "/dashboard/publisher/earnings": (PUB, ADM),
    "/dashboard/admin": (ADM,),
    "/dashboard/users": (ADM,),
    "/dashboard/system": (ADM,),
    "/dashboard/stakeholder": (STK, ADM),
    "/dashboard/reports": (STK, ADM),
    "/dashboard/finance": (STK, ADM),
    "/dashboard/examples/role-access": _ALL,
}

DEFAULT_RESTRICTED_ROUTES = {
    "/dashboard/admin": (ADM,),
    "/dashboard/users": (ADM,),
    "/dashboard/system": (ADM,),
}


def load_route_table(path: str) -> RouteTable:
    with open(Path(path), "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return RouteTable.from_mapping(data)


@lru_cache(maxsize=1)
def default_route_table() -> RouteTable:
    """Table from ROLEGUARD_ROUTES_PATH when set, else the built-in marketplace routes."""
    path = settings.routes_path()
    if path:
        return load_route_table(path)
    return RouteTable.build(DEFAULT_PUBLIC_ROUTES, DEFAULT_ROUTE_PERMISSIONS, DEFAULT_RESTRICTED_ROUTES)


class RouteAccessMatcher:
    def __init__(self, table: Optional[RouteTable] = None):
        self.table = table if table is not None else default_route_table()

    def check_route_access(self, path: str, role: Any) -> bool:
        target = normalize_role(role)
        if target is None:
            log.warning("role_invalid", extra={"role": role, "op": "check_route_access"})
            return self._result(False, "invalid_role", path=path, role=role)
        return self._result(*self._decide(_normalize_path(path), target), path=path, role=target.value)

    def _result(self, allowed: bool, reason: str, path: str, role: Any) -> bool:
        inc("roleguard_route_checks_total", {"result": "allow" if allowed else "deny", "reason": reason})
        if not allowed:
            log.info("route_denied", extra={"path": path, "role": str(role), "reason": reason})
        return allowed

    def _decide(self, path: str, role: Role) -> tuple[bool, str]:
        t = self.table
        if role is TOP_TIER_ROLE:
            return True, "top_tier"
        if path in t.public:
            return True, "public"
        if role in t.grants.get(path, ()):
            return True, "exact"

        prefixes = _prefixes(path)
        for prefix in prefixes:
            allow = t.restricted.get(prefix)
            if allow is not None and role not in allow:
                return False, "restricted"

        # every restricted prefix is already resolved, so only grants can decide here
        for prefix in prefixes:
            if role in t.grants.get(prefix, ()):
                return True, "prefix"

        return False, "default_deny"


__all__ = [
    "RouteTable",
    "RouteAccessMatcher",
    "DEFAULT_PUBLIC_ROUTES",
    "DEFAULT_ROUTE_PERMISSIONS",
    "DEFAULT_RESTRICTED_ROUTES",
    "default_route_table",
    "load_route_table",
]
