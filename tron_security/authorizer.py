"""Authorization collaborator contract.

The engine asks one question: do these credentials clear a tool's
minimum security level? Token validation and freshness happen before
credentials are attached to a call.
"""

from typing import Protocol, runtime_checkable

from tron_security.levels import Credentials, SecurityLevel


@runtime_checkable
class Authorizer(Protocol):
    """Authorization interface consumed by the tool engine."""

    def authorize(self, credentials: Credentials, min_level: SecurityLevel) -> bool:
        """Return True if the credentials clear ``min_level``."""
        ...


def role_matches(required: str, granted: str) -> bool:
    """
    Check if a granted role satisfies a required role.

    Supports:
    - Exact match: "operator" == "operator"
    - Wildcard: "ops.*" matches "ops.files"
    - Admin: "*" matches everything

    Example:
        role_matches("ops.files", "ops.*")  # True
        role_matches("ops.files", "*")  # True
        role_matches("ops", "ops.files")  # False
    """
    if granted == "*":
        return True

    if required == granted:
        return True

    if granted.endswith(".*"):
        prefix = granted[:-2]
        if required.startswith(prefix + "."):
            return True

    return False


class ClearanceAuthorizer:
    """Default authorizer: security level comparison plus optional roles.

    ``required_roles`` maps a level to roles a caller must hold (any one of
    them) to access tools at that level or above, e.g.
    ``{SecurityLevel.CRITICAL: ["admin"]}``.
    """

    def __init__(self, required_roles: dict[SecurityLevel, list[str]] | None = None):
        self.required_roles = dict(required_roles or {})

    def authorize(self, credentials: Credentials, min_level: SecurityLevel) -> bool:
        if credentials.security_level < min_level:
            return False

        for level, roles in self.required_roles.items():
            if min_level < level or not roles:
                continue
            held = any(
                role_matches(required, granted)
                for required in roles
                for granted in credentials.roles
            )
            if not held:
                return False

        return True
