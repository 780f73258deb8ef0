from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from roleguard.access.resolver import CapabilityResolver
from roleguard.access.roles import normalize_role
from roleguard.access.routes import RouteAccessMatcher
from roleguard.gateway.guard import require_permission

router = APIRouter(prefix="/api/v1/access", tags=["access"])


def get_resolver() -> CapabilityResolver:
    return CapabilityResolver()


def get_matcher() -> RouteAccessMatcher:
    return RouteAccessMatcher()


@router.get("/capabilities/{role}", dependencies=[require_permission("USE_API")])
async def role_capabilities(
    role: str,
    metadata: bool = Query(False),
    resolver: CapabilityResolver = Depends(get_resolver),
):
    target = normalize_role(role)
    if target is None:
        raise HTTPException(status_code=404, detail="unknown role")
    caps = resolver.get_role_capabilities(target, include_metadata=metadata)
    if metadata:
        caps = {pid: cap.to_dict() for pid, cap in caps.items()}
    return {"role": target.value, "capabilities": caps}


@router.get("/route", dependencies=[require_permission("USE_API")])
async def route_access(
    path: str = Query(...),
    role: str = Query(...),
    matcher: RouteAccessMatcher = Depends(get_matcher),
):
    return {"path": path, "role": role, "allowed": matcher.check_route_access(path, role)}
