from .registry import Permission, PermissionCategory, PermissionRegistry, load_registry
from .resolver import Capability, CapabilityResolver, PermissionContext
from .roles import Role, normalize_role, normalize_roles
from .routes import RouteAccessMatcher, RouteTable

__all__ = [
    "Permission",
    "PermissionCategory",
    "PermissionRegistry",
    "load_registry",
    "Capability",
    "CapabilityResolver",
    "PermissionContext",
    "Role",
    "normalize_role",
    "normalize_roles",
    "RouteAccessMatcher",
    "RouteTable",
]
