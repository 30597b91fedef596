"""Exception hierarchy for grantflow.

All exceptions inherit from :class:`GrantflowError`, which carries a
``category`` attribute naming the failure class.  Every public operation
either returns a typed result or raises exactly one of these, so callers can
catch :class:`GrantflowError` at their boundary and switch on the subclass
(or, for :class:`AuthorizationError`, on :attr:`AuthorizationError.reason`).

Subclass hierarchy::

    GrantflowError           (category "error")
    +-- AuthorizationError   (category "authorization")
    +-- HTTPError            (category "http")
    +-- TransportError       (category "transport")
    +-- FormEncodingError    (category "serialization")
    +-- SerializationError   (category "serialization")
    +-- PollingTooLongError  (category "polling")
    +-- ConfigError          (category "config")
"""

from __future__ import annotations

import enum
import json
from typing import Optional


class GrantflowError(Exception):
    """Base exception for all grantflow errors.

    Args:
        message: Human-readable error description.
    """

    category: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationFailureReason(str, enum.Enum):
    """Why an authorization step failed."""

    AUTH_CALLBACK_INVALID = "auth_callback_invalid"
    STATE_INCORRECT = "state_incorrect"
    AUTHORIZATION_ERROR = "authorization_error"
    ACCESS_TOKEN_INVALID = "access_token_invalid"
    NO_ACCESS_TOKEN = "no_access_token"
    REFRESH_TOKEN_INVALID_TYPE = "refresh_token_invalid_type"
    NO_REFRESH_TOKEN = "no_refresh_token"
    RESPONSE_INVALID = "response_invalid"
    DENIED = "denied"
    DEVICE_CODE_EXPIRED = "device_code_expired"
    RESPONSE_NOT_URL = "response_not_url"
    RESPONSE_NOT_DEVICE_FLOW_AUTH_RESPONSE = "response_not_device_flow_auth_response"

    @property
    def description(self) -> str:
        return _REASON_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS: dict[AuthorizationFailureReason, str] = {
    AuthorizationFailureReason.AUTH_CALLBACK_INVALID: (
        "The authorization callback URL is invalid."
    ),
    AuthorizationFailureReason.STATE_INCORRECT: (
        "The state returned in the callback URL does not match this flow's state. "
        "This may be caused by an attempted cross-site request forgery."
    ),
    AuthorizationFailureReason.AUTHORIZATION_ERROR: "Authorization failed with an error.",
    AuthorizationFailureReason.ACCESS_TOKEN_INVALID: (
        "The access token given by the server was invalid."
    ),
    AuthorizationFailureReason.NO_ACCESS_TOKEN: (
        "The secret store does not contain an access token."
    ),
    AuthorizationFailureReason.REFRESH_TOKEN_INVALID_TYPE: (
        "The refresh token must be a string."
    ),
    AuthorizationFailureReason.NO_REFRESH_TOKEN: (
        "The stored tokens do not include a refresh token."
    ),
    AuthorizationFailureReason.RESPONSE_INVALID: (
        "The response from the authorization endpoint is invalid or missing fields."
    ),
    AuthorizationFailureReason.DENIED: "The authorization request was denied.",
    AuthorizationFailureReason.DEVICE_CODE_EXPIRED: (
        "The device code has expired, please try again."
    ),
    AuthorizationFailureReason.RESPONSE_NOT_URL: (
        "This flow expects a callback URL response."
    ),
    AuthorizationFailureReason.RESPONSE_NOT_DEVICE_FLOW_AUTH_RESPONSE: (
        "This flow expects the DeviceAuthorizationSession returned by "
        "device_flow_authorization_request()."
    ),
}


class AuthorizationError(GrantflowError):
    """Raised when an authorization step fails.

    Args:
        reason: The specific failure kind.
        detail: Optional server-provided or contextual detail (for example the
            error carried in a callback URL fragment).
    """

    category = "authorization"

    def __init__(self, reason: AuthorizationFailureReason, detail: Optional[str] = None):
        message = reason.description
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


_OAUTH_ERROR_CODES = (
    "access_denied",
    "expired_token",
    "slow_down",
    "authorization_pending",
    "invalid_grant",
    "invalid_client",
    "invalid_request",
    "invalid_scope",
    "unauthorized_client",
    "unsupported_grant_type",
)


class HTTPError(GrantflowError):
    """Raised when a server answers with a non-2xx status.

    Args:
        status_code: The HTTP status code.
        body: The response body as text, or the status line when the body is
            empty or not decodable.
    """

    category = "http"

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body

    @property
    def error_code(self) -> Optional[str]:
        """The RFC 6749 ``error`` code carried in the body, if any.

        Reads the ``error`` field of a JSON body.  Bodies that are not JSON are
        scanned for a known OAuth error code.
        """
        try:
            data = json.loads(self.body)
        except ValueError:
            data = None
        if isinstance(data, dict):
            error = data.get("error")
            return error if isinstance(error, str) else None
        for code in _OAUTH_ERROR_CODES:
            if code in self.body:
                return code
        return None


class TransportError(GrantflowError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    category = "transport"


class FormEncodingError(GrantflowError):
    """Raised when a body cannot be encoded as ``application/x-www-form-urlencoded``."""

    category = "serialization"

    def __init__(self, message: str = "Encoding the body as form data failed."):
        super().__init__(message)


class SerializationError(GrantflowError):
    """Raised when structured data cannot be encoded or decoded.

    The underlying exception is available as ``__cause__``.
    """

    category = "serialization"


class PollingTooLongError(GrantflowError):
    """Raised when device-flow polling exceeds its wall-clock budget."""

    category = "polling"

    def __init__(self, max_duration: float):
        super().__init__(
            f"Polling for device authorization took longer than {max_duration:g} seconds."
        )
        self.max_duration = max_duration


class ConfigError(GrantflowError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    category = "config"
