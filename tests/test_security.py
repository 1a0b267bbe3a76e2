"""Authorization Tests."""

import pytest

from tron_security.authorizer import Authorizer, ClearanceAuthorizer, role_matches
from tron_security.levels import Credentials, SecurityLevel


def _credentials(level, roles=()):
    return Credentials(id="u1", security_level=level, roles=list(roles))


def test_role_matching():
    """Test role wildcard matching."""
    assert role_matches("ops", "ops") is True
    assert role_matches("ops.files", "ops.*") is True
    assert role_matches("ops.files", "*") is True
    assert role_matches("ops", "ops.*") is False
    assert role_matches("ops", "ops.files") is False
    assert role_matches("admin", "ops") is False


def test_security_levels_are_ordered():
    assert SecurityLevel.PUBLIC < SecurityLevel.LOW < SecurityLevel.MEDIUM
    assert SecurityLevel.HIGH < SecurityLevel.CRITICAL


@pytest.mark.parametrize(
    "held,required,expected",
    [
        (SecurityLevel.MEDIUM, SecurityLevel.LOW, True),
        (SecurityLevel.MEDIUM, SecurityLevel.MEDIUM, True),
        (SecurityLevel.MEDIUM, SecurityLevel.HIGH, False),
        (SecurityLevel.PUBLIC, SecurityLevel.PUBLIC, True),
    ],
)
def test_clearance_comparison(held, required, expected):
    assert ClearanceAuthorizer().authorize(_credentials(held), required) is expected


def test_required_roles_apply_at_and_above_level():
    """Test roles configured for a level gate that level and higher."""
    authorizer = ClearanceAuthorizer({SecurityLevel.HIGH: ["admin", "ops.*"]})

    # Below the configured level no role is needed
    assert authorizer.authorize(_credentials(SecurityLevel.CRITICAL), SecurityLevel.MEDIUM)

    assert not authorizer.authorize(_credentials(SecurityLevel.CRITICAL), SecurityLevel.HIGH)
    assert authorizer.authorize(
        _credentials(SecurityLevel.CRITICAL, ["admin"]), SecurityLevel.CRITICAL
    )
    assert authorizer.authorize(_credentials(SecurityLevel.HIGH, ["*"]), SecurityLevel.HIGH)


def test_roles_do_not_bypass_level():
    authorizer = ClearanceAuthorizer({SecurityLevel.HIGH: ["admin"]})

    assert not authorizer.authorize(_credentials(SecurityLevel.LOW, ["admin"]), SecurityLevel.HIGH)


def test_authorizer_protocol():
    assert isinstance(ClearanceAuthorizer(), Authorizer)


def test_credentials_are_immutable():
    credentials = _credentials(SecurityLevel.LOW)

    with pytest.raises(ValueError):
        credentials.security_level = SecurityLevel.CRITICAL
