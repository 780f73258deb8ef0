"""
FastAPI enforcement for dashboard routes and API permissions.

The caller role comes from ``request.state.role`` (set by upstream auth).
The ``X-Role`` header is honoured only while test mode is enabled, which is
never the case with ROLEGUARD_ENV=prod.
"""
from __future__ import annotations

import json
import logging
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from roleguard.access.resolver import CapabilityResolver
from roleguard.access.roles import Role, meets_role_level, normalize_role
from roleguard.access.routes import RouteAccessMatcher
from roleguard.access.testmode import TEST_MODE, TestModeFlag
from roleguard.common.metrics import inc
from roleguard.config.settings import settings

log = logging.getLogger(__name__)


def resolve_role(request: Request, test_mode: Optional[TestModeFlag] = None) -> Optional[Role]:
    flag = test_mode or TEST_MODE
    role = normalize_role(getattr(request.state, "role", None))
    if role is not None:
        return role
    if flag.is_enabled():
        hdr = request.headers.get("X-Role", "")
        if hdr:
            log.debug("guard_test_mode_role", extra={"role": hdr})
            return normalize_role(hdr)
    return None


def _forbidden(reason: str, **fields) -> Response:
    body = {"error": "forbidden", "reason": reason}
    body.update(fields)
    return Response(json.dumps(body), 403, media_type="application/json")


class RouteAccessMiddleware(BaseHTTPMiddleware):
    """Closed-world gate for paths under ``guarded_prefixes``; everything else passes."""

    def __init__(
        self,
        app,
        matcher: Optional[RouteAccessMatcher] = None,
        guarded_prefixes: Iterable[str] = ("/dashboard",),
        bypass_prefixes: Optional[Iterable[str]] = None,
        test_mode: Optional[TestModeFlag] = None,
    ):
        super().__init__(app)
        self.matcher = matcher or RouteAccessMatcher()
        self.guarded = tuple(guarded_prefixes)
        self.bypass = tuple(bypass_prefixes) if bypass_prefixes is not None else tuple(settings.get_bypass_prefixes())
        self.test_mode = test_mode

    def _is_guarded(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.guarded)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        for prefix in self.bypass:
            if path.startswith(prefix):
                inc("roleguard_guard_eval_total", {"result": "bypass"})
                return await call_next(request)
        if not self._is_guarded(path):
            return await call_next(request)

        role = resolve_role(request, self.test_mode)
        if role is None or not self.matcher.check_route_access(path, role):
            inc("roleguard_guard_eval_total", {"result": "deny"})
            log.warning("guard_deny_route", extra={"path": path, "role": role.value if role else None})
            return _forbidden("route.denied", path=path)

        inc("roleguard_guard_eval_total", {"result": "allow"})
        return await call_next(request)


def require_permission(permission_id: str, resolver: Optional[CapabilityResolver] = None):
    """FastAPI dependency: 403 unless the caller role holds ``permission_id``."""
    checker = resolver or CapabilityResolver()

    async def _dep(request: Request):
        role = resolve_role(request)
        if role is None or not checker.check_permission(permission_id, role):
            log.warning("guard_denied", extra={"permission": permission_id, "role": role.value if role else None})
            raise HTTPException(status_code=403, detail="forbidden")
        return role

    return Depends(_dep)


def require_min_role(required: str):
    """Legacy level gate; prefer require_permission for new endpoints."""

    async def _dep(request: Request):
        role = resolve_role(request)
        if role is None or not meets_role_level(role, required):
            log.warning("guard_denied", extra={"min_role": required, "role": role.value if role else None})
            raise HTTPException(status_code=403, detail="forbidden")
        return role

    return Depends(_dep)


__all__ = ["RouteAccessMiddleware", "require_permission", "require_min_role", "resolve_role"]
