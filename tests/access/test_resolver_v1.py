import random

import pytest

pytestmark = [pytest.mark.access]

from roleguard.access.catalog import DEFAULT_PERMISSIONS, default_registry
from roleguard.access.registry import PermissionRegistry
from roleguard.access.resolver import Capability, CapabilityResolver, PermissionContext
from roleguard.access.roles import Role
from roleguard.access.testmode import TestModeFlag
from roleguard.common.metrics import REG
from roleguard.config.settings import Settings
from roleguard.errors import ProductionTestModeError


@pytest.fixture
def resolver():
    return CapabilityResolver(default_registry(), test_mode=TestModeFlag(Settings(ENV="dev", TEST_MODE=0)))


def test_direct_grants(resolver):
    assert resolver.check_permission("CREATE_ADS", "advertiser") is True
    assert resolver.check_permission("MANAGE_AD_PLACEMENTS", "publisher") is True
    assert resolver.check_permission("VIEW_PUBLISHER_STATS", "publisher") is True
    assert resolver.check_permission("MANAGE_USERS", "advertiser") is False
    assert resolver.check_permission("CREATE_ADS", "viewer") is False


def test_admin_holds_everything(resolver):
    caps = resolver.get_role_capabilities("admin")
    assert caps and all(caps.values())


def test_inherited_through_parent_chain(resolver):
    assert resolver.check_permission("EXPORT_ANALYTICS", "viewer") is True
    assert resolver.check_permission("DELETE_ADS", "viewer") is False


def test_unknown_permission_denied(resolver):
    assert resolver.check_permission("LAUNCH_ROCKETS", "publisher") is False
    assert resolver.check_permission("LAUNCH_ROCKETS", "admin") is False


def test_unknown_role_denied_and_counted(resolver):
    assert resolver.check_permission("USE_API", "wizard") is False
    assert resolver.get_role_capabilities("wizard") == {}
    counter = REG.counter("roleguard_permission_checks_total")
    assert counter.get({"result": "deny", "reason": "invalid_role"}) == 1


def test_legacy_user_alias_resolves_as_viewer(resolver):
    assert resolver.get_role_capabilities("user") == resolver.get_role_capabilities("viewer")


@pytest.mark.parametrize("role", list(Role))
def test_check_permission_agrees_with_capabilities(resolver, role):
    caps = resolver.get_role_capabilities(role)
    assert set(caps) == set(default_registry().ids())
    for pid, granted in caps.items():
        assert resolver.check_permission(pid, role) is granted, pid


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_capabilities_do_not_depend_on_declaration_order(seed):
    perms = list(DEFAULT_PERMISSIONS)
    random.Random(seed).shuffle(perms)
    shuffled = CapabilityResolver(PermissionRegistry(perms), test_mode=TestModeFlag(Settings(ENV="dev")))
    baseline = CapabilityResolver(default_registry(), test_mode=TestModeFlag(Settings(ENV="dev")))
    for role in Role:
        a = shuffled.get_role_capabilities(role, include_metadata=True)
        b = baseline.get_role_capabilities(role, include_metadata=True)
        assert {k: v.to_dict() for k, v in a.items()} == {k: v.to_dict() for k, v in b.items()}


def test_metadata_reports_full_inheritance_chain(resolver):
    caps = resolver.get_role_capabilities("viewer", include_metadata=True)
    export = caps["EXPORT_ANALYTICS"]
    assert isinstance(export, Capability)
    assert export.granted is True
    assert export.inherited_from == ("VIEW_ADVANCED_ANALYTICS", "VIEW_BASIC_ANALYTICS")
    assert caps["VIEW_ADVANCED_ANALYTICS"].inherited_from == ("VIEW_BASIC_ANALYTICS",)
    assert caps["VIEW_BASIC_ANALYTICS"].inherited_from == ()


def test_metadata_wire_shape(resolver):
    caps = resolver.get_role_capabilities("publisher", include_metadata=True)
    body = caps["DELETE_PLACEMENT"].to_dict()
    assert body == {
        "permissionId": "DELETE_PLACEMENT",
        "granted": True,
        "category": "PUBLISHER",
        "description": "Delete ad placements",
        "isSensitive": True,
        "inheritedFrom": [],
    }


def test_direct_grant_is_not_marked_inherited(resolver):
    caps = resolver.get_role_capabilities("advertiser", include_metadata=True)
    assert caps["DELETE_CAMPAIGN"].granted is True
    assert caps["DELETE_CAMPAIGN"].inherited_from == ()


def test_test_mode_bypass_needs_flag_and_opt_in():
    flag = TestModeFlag(Settings(ENV="dev"))
    resolver = CapabilityResolver(default_registry(), test_mode=flag)
    opt_in = PermissionContext(user_id="u1", allow_test_mode=True)

    assert resolver.check_permission("MANAGE_USERS", "viewer", opt_in) is False
    flag.enable()
    assert resolver.check_permission("MANAGE_USERS", "viewer") is False
    assert resolver.check_permission("MANAGE_USERS", "viewer", opt_in) is True
    # unknown permissions stay denied even with bypass
    assert resolver.check_permission("LAUNCH_ROCKETS", "viewer", opt_in) is False
    flag.disable()
    assert resolver.check_permission("MANAGE_USERS", "viewer", opt_in) is False


def test_test_mode_cannot_be_enabled_in_prod():
    flag = TestModeFlag(Settings(ENV="prod", TEST_MODE=1))
    assert flag.is_enabled() is False
    with pytest.raises(ProductionTestModeError):
        flag.enable()
    assert flag.is_enabled() is False


def test_sensitive_permission_follows_role_list(resolver):
    assert resolver.check_permission("VIEW_FINANCIAL_REPORTS", "stakeholder") is True
    assert resolver.check_permission("VIEW_FINANCIAL_REPORTS", "publisher") is False
