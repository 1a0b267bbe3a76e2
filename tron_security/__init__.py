"""
Tron Security Package.

Security levels, credentials and the authorization contract the tool
engine depends on.
"""

from tron_security.authorizer import Authorizer, ClearanceAuthorizer, role_matches
from tron_security.levels import AuthMethod, Credentials, SecurityLevel

__all__ = [
    "AuthMethod",
    "Authorizer",
    "ClearanceAuthorizer",
    "Credentials",
    "SecurityLevel",
    "role_matches",
]
