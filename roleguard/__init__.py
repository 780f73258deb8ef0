"""
roleguard: permission-based access control for the marketplace dashboard.

Permission catalog with inheritance, per-role capability resolution,
closed-world route gating, and principal-scoped role state with
remote reconciliation and role transitions.
"""
from roleguard.access.resolver import CapabilityResolver, PermissionContext
from roleguard.access.roles import Role, normalize_role
from roleguard.access.routes import RouteAccessMatcher
from roleguard.roles.store import RoleStateStore
from roleguard.roles.transition import RoleTransitionCoordinator

__version__ = "0.3.0"

__all__ = [
    "CapabilityResolver",
    "PermissionContext",
    "Role",
    "normalize_role",
    "RouteAccessMatcher",
    "RoleStateStore",
    "RoleTransitionCoordinator",
]
