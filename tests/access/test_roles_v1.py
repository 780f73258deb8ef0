import pytest

pytestmark = [pytest.mark.access]

from roleguard.access.roles import (
    FALLBACK_PATH,
    Role,
    all_roles,
    dashboard_path,
    is_role_available,
    is_valid_role,
    meets_role_level,
    normalize_role,
    normalize_roles,
    role_level,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("admin", Role.ADMIN),
        ("  Publisher ", Role.PUBLISHER),
        ("STAKEHOLDER", Role.STAKEHOLDER),
        ("user", Role.VIEWER),
        (Role.ADVERTISER, Role.ADVERTISER),
    ],
)
def test_normalize_role_accepts_known_identifiers(raw, expected):
    assert normalize_role(raw) is expected


@pytest.mark.parametrize("raw", ["", "superuser", None, 3, ["admin"]])
def test_normalize_role_rejects_unknown(raw):
    assert normalize_role(raw) is None
    assert is_valid_role(raw) is False


def test_normalize_roles_drops_unknown_and_dedupes_in_order():
    assert normalize_roles(["publisher", "bogus", "Admin", "publisher", "user"]) == (
        Role.PUBLISHER,
        Role.ADMIN,
        Role.VIEWER,
    )


def test_all_roles_lists_five():
    assert len(all_roles()) == 5
    assert set(all_roles()) == set(Role)


def test_is_role_available():
    assert is_role_available("advertiser", ["viewer", "advertiser"]) is True
    assert is_role_available("admin", ["viewer", "advertiser"]) is False
    assert is_role_available("nope", ["viewer"]) is False


def test_role_levels_are_legacy_only():
    assert role_level("admin") == 4
    assert role_level("unknown") == 0
    assert meets_role_level("stakeholder", "advertiser") is True
    assert meets_role_level("viewer", "publisher") is False
    assert meets_role_level("admin", "bogus") is False
    assert meets_role_level("bogus", "viewer") is False


def test_dashboard_path_per_role_and_fallback():
    assert dashboard_path("advertiser") == "/dashboard/advertiser"
    assert dashboard_path(Role.ADMIN) == "/dashboard/admin"
    assert dashboard_path("user") == "/dashboard/viewer"
    assert dashboard_path("bogus") == FALLBACK_PATH
