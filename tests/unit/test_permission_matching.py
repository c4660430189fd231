import pytest

from app.adminhub.services.permission_resolver import matches_permission, permission_module


@pytest.mark.parametrize(
    "granted, code, expected",
    [
        ({"leads:read"}, "leads:read", True),
        ({"leads:read"}, "leads:update", False),
        ({"leads:*"}, "leads:delete", True),
        ({"leads:*"}, "notes:read", False),
        ({"admin:*"}, "projects:delete", True),
        ({"admin:*"}, "admin:read", True),
        (set(), "leads:read", False),
        ({"leads"}, "leads:read", False),
        ({"*"}, "leads:read", False),
        ({"customers:*"}, "customers:export", True),
    ],
)
def test_matches_permission(granted, code, expected):
    assert matches_permission(granted, code) is expected


def test_matches_permission_accepts_any_iterable():
    assert matches_permission(["notes:*"], "notes:read") is True
    assert matches_permission(("notes:read",), "notes:create") is False


def test_permission_module_uses_prefix_before_first_colon():
    assert permission_module("leads:read") == "leads"
    assert permission_module("reports:sales:export") == "reports"
    assert permission_module("leads") == "leads"
