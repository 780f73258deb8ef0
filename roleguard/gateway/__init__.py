from .guard import RouteAccessMiddleware, require_min_role, require_permission, resolve_role

__all__ = ["RouteAccessMiddleware", "require_min_role", "require_permission", "resolve_role"]
