"""
Access-control outcomes raised by the guard and the resolver.

AuthenticationRequired and PermissionDenied are expected outcomes and map to
401 and 403. ResolutionFailure is an infrastructure fault and maps to 500;
it is never converted into an allow or deny decision.
"""
from typing import Optional


class AccessError(Exception):
    """Base class for access-control errors."""


class AuthenticationRequired(AccessError):
    """The caller is not authenticated."""

    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    ACCOUNT_DISABLED = "account_disabled"
    UNKNOWN_IDENTITY = "unknown_identity"

    def __init__(self, reason: str = MISSING_CREDENTIALS):
        super().__init__(f"Authentication required ({reason})")
        self.reason = reason


class PermissionDenied(AccessError):
    """
    The caller is authenticated but lacks the required capability.

    ``required`` and ``property_id`` are kept for server-side logs only and
    are never sent to the client.
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        required: Optional[str] = None,
        property_id: Optional[int] = None,
    ):
        super().__init__("Permission denied")
        self.user_id = user_id
        self.required = required
        self.property_id = property_id


class ResolutionFailure(AccessError):
    """Permission data could not be read."""

    def __init__(self, user_id: Optional[int] = None):
        super().__init__(f"Unable to resolve permissions for user {user_id}")
        self.user_id = user_id
