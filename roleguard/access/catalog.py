from __future__ import annotations

from functools import lru_cache
from typing import Optional

from roleguard.access.registry import Permission, PermissionCategory as C, PermissionRegistry, load_registry
from roleguard.access.roles import Role
from roleguard.config.settings import settings

V, ADV, PUB, ADM, STK = Role.VIEWER, Role.ADVERTISER, Role.PUBLISHER, Role.ADMIN, Role.STAKEHOLDER


def _p(pid: str, roles, category: C, description: str, *, sensitive: bool = False, parent: Optional[str] = None) -> Permission:
    return Permission(
        id=pid,
        category=category,
        description=description,
        allowed_roles=frozenset(roles),
        is_sensitive=sensitive,
        parent=parent,
    )


DEFAULT_PERMISSIONS = (
    # Ad management
    _p("CREATE_ADS", (ADV, ADM), C.AD_MANAGEMENT, "Create new ad campaigns"),
    _p("EDIT_ADS", (ADV, ADM), C.AD_MANAGEMENT, "Edit existing ad campaigns"),
    _p("VIEW_OWN_ADS", (ADV, ADM), C.AD_MANAGEMENT, "View ads created by the user"),
    _p("DELETE_ADS", (ADV, ADM), C.AD_MANAGEMENT, "Delete existing ad campaigns", sensitive=True, parent="EDIT_ADS"),
    _p("APPROVE_ADS", (PUB, ADM), C.PUBLISHER, "Approve or reject ad submissions"),
    _p("VIEW_ALL_ADS", (ADM,), C.ADMIN, "View all ads in the system", sensitive=True),
    # Publisher
    _p("MANAGE_AD_PLACEMENTS", (PUB, ADM), C.PUBLISHER, "Manage ad placements on publisher sites"),
    _p("UPDATE_PLACEMENT_SETTINGS", (PUB, ADM), C.PUBLISHER, "Update settings for ad placements", parent="MANAGE_AD_PLACEMENTS"),
    _p("DELETE_PLACEMENT", (PUB, ADM), C.PUBLISHER, "Delete ad placements", sensitive=True, parent="MANAGE_AD_PLACEMENTS"),
    # Payments
    _p("VIEW_EARNINGS", (PUB, ADV, ADM), C.PAYMENTS, "View earnings from the platform"),
    _p("REQUEST_WITHDRAWAL", (PUB, ADV, ADM), C.PAYMENTS, "Request withdrawal of earnings", parent="VIEW_EARNINGS"),
    _p("MANAGE_PAYMENT_METHODS", (PUB, ADV, ADM), C.PAYMENTS, "Manage payment methods"),
    _p("VIEW_PAYMENT_HISTORY", (PUB, ADV, ADM), C.PAYMENTS, "View payment history"),
    # Admin
    _p("MANAGE_USERS", (ADM,), C.ADMIN, "Manage user accounts", sensitive=True),
    _p("MANAGE_ROLES", (ADM,), C.ADMIN, "Assign and change user roles", sensitive=True),
    _p("MANAGE_SYSTEM", (ADM,), C.SYSTEM, "Manage system settings and configuration", sensitive=True),
    _p("VIEW_SYSTEM_LOGS", (ADM,), C.SYSTEM, "View system logs", parent="MANAGE_SYSTEM"),
    _p("MANAGE_SYSTEM_SETTINGS", (ADM,), C.SYSTEM, "Manage system settings", parent="MANAGE_SYSTEM"),
    # Analytics
    _p("VIEW_ANALYTICS", (ADV, PUB, ADM, STK, V), C.ANALYTICS, "View general analytics"),
    _p("VIEW_BASIC_ANALYTICS", (ADV, PUB, ADM, STK, V), C.ANALYTICS, "View basic analytics dashboards"),
    _p("VIEW_ADVANCED_ANALYTICS", (ADV, PUB, ADM, STK), C.ANALYTICS, "View advanced analytics dashboards", parent="VIEW_BASIC_ANALYTICS"),
    _p("EXPORT_ANALYTICS", (ADV, PUB, ADM, STK), C.ANALYTICS, "Export analytics data", parent="VIEW_ADVANCED_ANALYTICS"),
    _p("VIEW_FINANCIAL_REPORTS", (STK, ADM), C.ANALYTICS, "View financial reports and forecasts", sensitive=True),
    # API
    _p("MANAGE_API_KEYS", (ADM, PUB, ADV), C.API, "Create and manage API keys"),
    _p("CREATE_API_KEY", (ADM, PUB, ADV), C.API, "Create new API keys", parent="MANAGE_API_KEYS"),
    _p("REVOKE_API_KEY", (ADM, PUB, ADV), C.API, "Revoke API keys", sensitive=True, parent="MANAGE_API_KEYS"),
    _p("USE_API", (V, ADV, PUB, ADM, STK), C.API, "Use the API with appropriate authentication"),
    # Campaigns
    _p("MANAGE_CAMPAIGNS", (ADV, ADM), C.AD_MANAGEMENT, "Manage advertising campaigns"),
    _p("CREATE_CAMPAIGN", (ADV, ADM), C.AD_MANAGEMENT, "Create new advertising campaigns", parent="MANAGE_CAMPAIGNS"),
    _p("EDIT_CAMPAIGN", (ADV, ADM), C.AD_MANAGEMENT, "Edit existing advertising campaigns", parent="MANAGE_CAMPAIGNS"),
    _p("DELETE_CAMPAIGN", (ADV, ADM), C.AD_MANAGEMENT, "Delete advertising campaigns", sensitive=True, parent="MANAGE_CAMPAIGNS"),
    # Publisher statistics
    _p("VIEW_PUBLISHER_STATS", (PUB, ADM), C.ANALYTICS, "View publisher statistics"),
)


@lru_cache(maxsize=1)
def default_registry() -> PermissionRegistry:
    """Catalog from ROLEGUARD_PERMISSIONS_PATH when set, else the built-in one."""
    path = settings.permissions_path()
    if path:
        return load_registry(path)
    return PermissionRegistry(DEFAULT_PERMISSIONS)


__all__ = ["DEFAULT_PERMISSIONS", "default_registry"]
