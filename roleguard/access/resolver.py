"""
Capability resolution for roles.

check_permission() answers a single question (can this role do X?) and walks
the parent chain. get_role_capabilities() resolves the whole catalog for one
role in topological order, so the result does not depend on how the catalog
was declared:

    granted(p, r)  <=>  r in p.allowed_roles  or  granted(parent(p), r)

Unknown roles and unknown permission ids resolve to denial with a warning;
nothing here raises for bad input.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from roleguard.access.catalog import default_registry
from roleguard.access.registry import PermissionCategory, PermissionRegistry
from roleguard.access.roles import TOP_TIER_ROLE, Role, normalize_role
from roleguard.access.testmode import TEST_MODE, TestModeFlag
from roleguard.common.metrics import inc

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionContext:
    user_id: Optional[str] = None
    resource_id: Optional[str] = None
    allow_test_mode: bool = False
    bypass_sensitive_check: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class Capability:
    permission_id: str
    granted: bool
    category: PermissionCategory
    description: str
    is_sensitive: bool
    inherited_from: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permissionId": self.permission_id,
            "granted": self.granted,
            "category": self.category.value,
            "description": self.description,
            "isSensitive": self.is_sensitive,
            "inheritedFrom": list(self.inherited_from),
        }


CapabilityMap = Union[Dict[str, bool], Dict[str, Capability]]


class CapabilityResolver:
    def __init__(self, registry: Optional[PermissionRegistry] = None, test_mode: Optional[TestModeFlag] = None):
        self.registry = registry if registry is not None else default_registry()
        self.test_mode = test_mode if test_mode is not None else TEST_MODE

    def check_permission(self, permission_id: str, role: Any, context: Optional[PermissionContext] = None) -> bool:
        ctx = context or PermissionContext()
        target = normalize_role(role)
        if target is None:
            log.warning("role_invalid", extra={"role": role, "op": "check_permission"})
            inc("roleguard_permission_checks_total", {"result": "deny", "reason": "invalid_role"})
            return False

        allowed = self._check(permission_id, target, ctx)
        inc("roleguard_permission_checks_total", {"result": "allow" if allowed else "deny", "reason": "resolved"})
        return allowed

    def _check(self, permission_id: str, role: Role, ctx: PermissionContext) -> bool:
        perm = self.registry.get(permission_id)
        if perm is None:
            log.warning("permission_unknown", extra={"permission": permission_id})
            return False

        if role is TOP_TIER_ROLE:
            return True

        if ctx.allow_test_mode and self.test_mode.is_enabled():
            log.info("test_mode_bypass", extra={"permission": permission_id, "role": role.value})
            return True

        if perm.is_sensitive and not ctx.bypass_sensitive_check:
            # no step-up gate yet; logged for audit only
            log.info("sensitive_permission_check", extra={"permission": permission_id, "role": role.value})

        if perm.allows(role):
            return True

        if perm.parent is not None:
            return self._check(perm.parent, role, dataclasses.replace(ctx, bypass_sensitive_check=False))

        return False

    def get_role_capabilities(self, role: Any, include_metadata: bool = False) -> CapabilityMap:
        target = normalize_role(role)
        if target is None:
            log.warning("role_invalid", extra={"role": role, "op": "get_role_capabilities"})
            return {}

        caps: Dict[str, Capability] = {}
        for perm in self.registry:
            caps[perm.id] = Capability(
                permission_id=perm.id,
                granted=target is TOP_TIER_ROLE or perm.allows(target),
                category=perm.category,
                description=perm.description,
                is_sensitive=perm.is_sensitive,
            )

        order = self.registry.topological_order()

        # inheritance: parents are final before any child is visited
        for pid in order:
            parent = self.registry.require(pid).parent
            if parent is None or caps[pid].granted:
                continue
            if caps[parent].granted:
                caps[pid].granted = True
                caps[pid].inherited_from = (parent,)

        # flatten to the full chain, nearest ancestor first
        for pid in order:
            cap = caps[pid]
            if not cap.inherited_from:
                continue
            parent_chain = caps[cap.inherited_from[0]].inherited_from
            if parent_chain:
                cap.inherited_from = (cap.inherited_from[0],) + parent_chain

        if not include_metadata:
            return {pid: cap.granted for pid, cap in caps.items()}
        return caps


__all__ = ["PermissionContext", "Capability", "CapabilityMap", "CapabilityResolver"]
