"""Authorization Gate.

Thin adapter between the pipeline and the external authorizer. The gate
does no authentication; it only asks whether attached credentials clear a
tool's minimum security level.
"""

from tron_security.authorizer import Authorizer
from tron_security.levels import Credentials
from tron_tools.base import ToolMetadata
from tron_tools.results import ErrorCode


class AuthorizationDenied:
    """Why a call was refused."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"AuthorizationDenied({self.code.value}, {self.message!r})"


class AuthorizationGate:
    """Checks a call's credentials against a tool's requirements."""

    def __init__(self, authorizer: Authorizer | None = None):
        self.authorizer = authorizer

    def check(
        self, metadata: ToolMetadata, credentials: Credentials | None
    ) -> AuthorizationDenied | None:
        """Return None if the call may proceed, otherwise the denial."""
        if not metadata.requires_auth:
            return None

        if self.authorizer is None:
            return AuthorizationDenied(
                ErrorCode.SECURITY_MODULE_NOT_CONFIGURED,
                "Security module is required but not configured",
            )

        if credentials is None:
            return AuthorizationDenied(
                ErrorCode.AUTHENTICATION_REQUIRED,
                f"Tool {metadata.name} requires authentication",
            )

        if not self.authorizer.authorize(credentials, metadata.min_security_level):
            return AuthorizationDenied(
                ErrorCode.INSUFFICIENT_SECURITY_LEVEL,
                f"Tool {metadata.name} requires security level "
                f"{metadata.min_security_level.name}",
            )

        return None
