"""Security levels and caller credentials."""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SecurityLevel(IntEnum):
    """Ordered clearance tiers gating tool access."""

    PUBLIC = 0  # Accessible to anyone
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4  # Restricted access


class AuthMethod(str, Enum):
    """How the caller was authenticated upstream."""

    NONE = "NONE"
    API_KEY = "API_KEY"
    JWT = "JWT"
    PASSWORD = "PASSWORD"
    CERTIFICATE = "CERTIFICATE"
    OAUTH = "OAUTH"


class Credentials(BaseModel):
    """Credentials resolved by the caller's authentication step.

    The engine never inspects ``auth_data``; it only compares clearance.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    auth_method: AuthMethod = AuthMethod.NONE
    auth_data: Any = None
    security_level: SecurityLevel = SecurityLevel.PUBLIC
    roles: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
