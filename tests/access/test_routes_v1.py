import pytest

pytestmark = [pytest.mark.access]

from roleguard.access.roles import Role
from roleguard.access.routes import RouteAccessMatcher, RouteTable, default_route_table, load_route_table
from roleguard.common.metrics import REG
from roleguard.errors import RegistryConfigError


@pytest.fixture
def matcher():
    return RouteAccessMatcher(default_route_table())


def test_admin_dashboard(matcher):
    assert matcher.check_route_access("/dashboard/admin", "admin") is True
    assert matcher.check_route_access("/dashboard/admin", "viewer") is False


def test_prefix_inheritance(matcher):
    assert matcher.check_route_access("/dashboard/advertiser/campaigns/new", "advertiser") is True
    assert matcher.check_route_access("/dashboard/advertiser/campaigns/new", "publisher") is False


def test_public_routes_open_to_every_role(matcher):
    for role in Role:
        assert matcher.check_route_access("/login", role) is True
        assert matcher.check_route_access("/dashboard", role) is True


def test_public_dashboard_does_not_open_subtrees(matcher):
    assert matcher.check_route_access("/dashboard/finance", "viewer") is False
    assert matcher.check_route_access("/dashboard/unlisted", "advertiser") is False


def test_restricted_subpaths_stay_closed(matcher):
    assert matcher.check_route_access("/dashboard/admin/users", "stakeholder") is False
    assert matcher.check_route_access("/dashboard/system/logs", "publisher") is False
    assert matcher.check_route_access("/dashboard/admin/users", "admin") is True


def test_segment_boundaries(matcher):
    assert matcher.check_route_access("/dashboard/publisher", "publisher") is True
    assert matcher.check_route_access("/dashboard/publishers-hub", "publisher") is False


def test_query_fragment_and_slashes_ignored(matcher):
    assert matcher.check_route_access("/dashboard/publisher/earnings?month=5#top", "publisher") is True
    assert matcher.check_route_access("//dashboard//stakeholder/", "stakeholder") is True


def test_unknown_role_denied(matcher):
    assert matcher.check_route_access("/login", "wizard") is False
    counter = REG.counter("roleguard_route_checks_total")
    assert counter.get({"result": "deny", "reason": "invalid_role"}) == 1


def test_unknown_path_default_deny(matcher):
    assert matcher.check_route_access("/reports/2024", "stakeholder") is False
    assert matcher.check_route_access("/reports/2024", "admin") is True


def test_repeated_checks_are_idempotent(matcher):
    cases = [
        ("/dashboard/admin", "viewer"),
        ("/dashboard/ads/edit/42", "advertiser"),
        ("/dashboard/reports", "stakeholder"),
    ]
    first = [matcher.check_route_access(p, r) for p, r in cases]
    second = [matcher.check_route_access(p, r) for p, r in cases]
    assert first == second == [False, True, True]


def test_restricted_deny_beats_broader_grant():
    table = RouteTable.build(
        public=[],
        grants={"/app": ["viewer", "publisher"], "/app/secret": ["viewer"]},
        restricted={"/app/secret": ["publisher"]},
    )
    m = RouteAccessMatcher(table)
    assert m.check_route_access("/app/other", "viewer") is True
    # exact grant is consulted before the restricted list
    assert m.check_route_access("/app/secret", "viewer") is True
    assert m.check_route_access("/app/secret/deeper", "viewer") is False
    assert m.check_route_access("/app/secret/deeper", "publisher") is True


def test_load_route_table_from_yaml(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text(
        "public: [/status]\n"
        "routes:\n"
        "  /shop: [advertiser]\n"
        "restricted:\n"
        "  /shop/ledger: [stakeholder]\n",
        encoding="utf-8",
    )
    m = RouteAccessMatcher(load_route_table(str(path)))
    assert m.check_route_access("/status", "viewer") is True
    assert m.check_route_access("/shop/items", "advertiser") is True
    assert m.check_route_access("/shop/ledger", "advertiser") is False


def test_route_table_rejects_unknown_role():
    with pytest.raises(RegistryConfigError):
        RouteTable.from_mapping({"routes": {"/x": ["wizard"]}})
