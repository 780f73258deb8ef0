"""
Permission registry: the static catalog of guarded actions.

Each permission names the roles directly entitled to it and, optionally, a
parent permission it inherits from. The parent graph is validated when the
registry is built: every parent must resolve and the graph must be acyclic.
A violation is a configuration fault and raises RegistryConfigError.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from roleguard.access.roles import Role, normalize_role
from roleguard.errors import RegistryConfigError


class PermissionCategory(str, Enum):
    AD_MANAGEMENT = "AD_MANAGEMENT"
    PUBLISHER = "PUBLISHER"
    ADMIN = "ADMIN"
    ANALYTICS = "ANALYTICS"
    API = "API"
    PAYMENTS = "PAYMENTS"
    USER_MANAGEMENT = "USER_MANAGEMENT"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class Permission:
    id: str
    category: PermissionCategory
    description: str
    allowed_roles: FrozenSet[Role] = field(default_factory=frozenset)
    is_sensitive: bool = False
    parent: Optional[str] = None

    def allows(self, role: Role) -> bool:
        return role in self.allowed_roles


def _topological_order(perms: Mapping[str, Permission], declared: List[str]) -> Tuple[str, ...]:
    """Kahn's algorithm over parent -> child edges; ties keep declaration order."""
    children: Dict[str, List[str]] = {pid: [] for pid in declared}
    indegree: Dict[str, int] = {pid: 0 for pid in declared}
    for pid in declared:
        parent = perms[pid].parent
        if parent is not None:
            children[parent].append(pid)
            indegree[pid] += 1

    ready = [pid for pid in declared if indegree[pid] == 0]
    order: List[str] = []
    while ready:
        pid = ready.pop(0)
        order.append(pid)
        for child in children[pid]:
            indegree[child] -= 1
            if indegree[child] == 0:
                ready.append(child)

    if len(order) != len(declared):
        stuck = sorted(pid for pid in declared if indegree[pid] > 0)
        raise RegistryConfigError(f"permission parent cycle detected among: {', '.join(stuck)}")
    return tuple(order)


class PermissionRegistry:
    """Ordered, validated permission catalog."""

    def __init__(self, permissions: Iterable[Permission]):
        self._perms: Dict[str, Permission] = {}
        for perm in permissions:
            if perm.id in self._perms:
                raise RegistryConfigError(f"duplicate permission id: {perm.id}")
            self._perms[perm.id] = perm

        declared = list(self._perms)
        for pid in declared:
            parent = self._perms[pid].parent
            if parent is None:
                continue
            if parent == pid:
                raise RegistryConfigError(f"permission {pid} lists itself as parent")
            if parent not in self._perms:
                raise RegistryConfigError(f"permission {pid} references unknown parent {parent}")

        self._topo = _topological_order(self._perms, declared)

    def __iter__(self) -> Iterator[Permission]:
        return iter(self._perms.values())

    def __len__(self) -> int:
        return len(self._perms)

    def __contains__(self, permission_id: object) -> bool:
        return permission_id in self._perms

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._perms)

    def get(self, permission_id: str) -> Optional[Permission]:
        return self._perms.get(permission_id)

    def require(self, permission_id: str) -> Permission:
        perm = self._perms.get(permission_id)
        if perm is None:
            raise KeyError(permission_id)
        return perm

    def topological_order(self) -> Tuple[str, ...]:
        """Permission ids ordered so every parent precedes its children."""
        return self._topo

    def ancestors(self, permission_id: str) -> Tuple[str, ...]:
        """Parent chain nearest to furthest."""
        chain: List[str] = []
        parent = self.require(permission_id).parent
        while parent is not None:
            chain.append(parent)
            parent = self._perms[parent].parent
        return tuple(chain)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PermissionRegistry":
        """Build from ``{"permissions": {ID: {allowed_roles, description, category, sensitive, parent}}}``."""
        section = data.get("permissions") if isinstance(data, Mapping) else None
        if not isinstance(section, Mapping):
            raise RegistryConfigError("permissions section missing or not a mapping")

        perms: List[Permission] = []
        for pid, entry in section.items():
            if not isinstance(entry, Mapping):
                raise RegistryConfigError(f"permission {pid} must be a mapping")
            try:
                category = PermissionCategory(str(entry.get("category", "")).upper())
            except ValueError as exc:
                raise RegistryConfigError(f"permission {pid} has unknown category {entry.get('category')!r}") from exc
            roles = []
            for raw in entry.get("allowed_roles") or []:
                role = normalize_role(raw)
                if role is None:
                    raise RegistryConfigError(f"permission {pid} lists unknown role {raw!r}")
                roles.append(role)
            parent = entry.get("parent")
            perms.append(
                Permission(
                    id=str(pid),
                    category=category,
                    description=str(entry.get("description", "")),
                    allowed_roles=frozenset(roles),
                    is_sensitive=bool(entry.get("sensitive", False)),
                    parent=str(parent) if parent else None,
                )
            )
        return cls(perms)


def load_registry(path: str) -> PermissionRegistry:
    """Load a permission catalog from YAML."""
    with open(Path(path), "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return PermissionRegistry.from_mapping(data)


__all__ = ["PermissionCategory", "Permission", "PermissionRegistry", "load_registry"]
