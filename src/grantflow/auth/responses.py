"""Authorization evidence handed to ``authorization_response_handler``.

The evidence is a closed union of exactly two variants:

- :class:`CallbackResponse` -- the redirect URL the authorization server sent
  the user agent back to (Authorization Code and PKCE flows);
- :class:`DeviceAuthorizationSession` -- the result of
  :meth:`~grantflow.flows.device_code.DeviceCodeFlow.device_flow_authorization_request`
  (Device Authorization flow).

Example display for a device session, from :rfc:`8628`::

    +-----------------------------------------------+
    |                                               |
    |  Using a browser on another device, visit:    |
    |  https://example.com/device                   |
    |                                               |
    |  And enter the code:                          |
    |  WDJB-MJHT                                    |
    |                                               |
    +-----------------------------------------------+
"""

from __future__ import annotations

import time
from typing import Any, Optional, Union
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from grantflow.exceptions import AuthorizationError, AuthorizationFailureReason

EXPIRY_MARGIN = 5
"""Seconds of safety margin applied by :attr:`DeviceAuthorizationSession.is_expired`."""

DEFAULT_POLL_INTERVAL = 5


class CallbackResponse(BaseModel):
    """A redirect URL received by the client after user authorization."""

    model_config = ConfigDict(frozen=True)

    url: str

    @property
    def fragment(self) -> str:
        return urlsplit(self.url).fragment

    def query_params(self) -> dict[str, str]:
        """Return the first value of every query parameter."""
        parsed = parse_qs(urlsplit(self.url).query, keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}


class DeviceAuthorizationSession(BaseModel):
    """Device authorization response (:rfc:`8628` section 3.2).

    Show :attr:`user_code` and :attr:`verification_uri` to the user.
    :attr:`verification_uri_complete` should only be shown as a QR code, never
    as text; :attr:`qr_payload` picks the right URI for that.

    The device code is kept off ``repr`` and out of serialised output.
    """

    model_config = ConfigDict(frozen=True)

    device_code: str = Field(repr=False, exclude=True)
    user_code: str
    verification_uri: str
    verification_uri_complete: Optional[str] = None
    interval: int = DEFAULT_POLL_INTERVAL
    expires_in: float
    created_at: float = Field(default_factory=time.time)

    @property
    def expires_at(self) -> float:
        return self.created_at + self.expires_in

    def is_expired_at(self, now: float) -> bool:
        """True once ``now + 5s`` reaches :attr:`expires_at`."""
        return now + EXPIRY_MARGIN >= self.expires_at

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(time.time())

    @property
    def qr_payload(self) -> str:
        """The URI a QR code should encode."""
        return self.verification_uri_complete or self.verification_uri

    @classmethod
    def from_response(cls, data: Any, created_at: Optional[float] = None) -> DeviceAuthorizationSession:
        """Parse a device authorization endpoint JSON object.

        Accepts the non-standard ``verification_url`` key some servers send
        in place of ``verification_uri``.

        Raises:
            AuthorizationError: ``response_invalid`` if ``device_code``,
                ``user_code``, the verification URI, or ``expires_in`` is
                missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise AuthorizationError(AuthorizationFailureReason.RESPONSE_INVALID)

        verification_uri = data.get("verification_uri")
        if not isinstance(verification_uri, str):
            verification_uri = data.get("verification_url")

        device_code = data.get("device_code")
        user_code = data.get("user_code")
        expires_in = data.get("expires_in")
        if (
            not isinstance(device_code, str)
            or not isinstance(user_code, str)
            or not isinstance(verification_uri, str)
            or isinstance(expires_in, bool)
            or not isinstance(expires_in, (int, float))
        ):
            raise AuthorizationError(AuthorizationFailureReason.RESPONSE_INVALID)

        complete = data.get("verification_uri_complete")
        interval = data.get("interval")
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            interval = DEFAULT_POLL_INTERVAL

        return cls(
            device_code=device_code,
            user_code=user_code,
            verification_uri=verification_uri,
            verification_uri_complete=complete if isinstance(complete, str) else None,
            interval=interval,
            expires_in=float(expires_in),
            created_at=created_at if created_at is not None else time.time(),
        )


AuthorizationResponse = Union[CallbackResponse, DeviceAuthorizationSession]
"""Evidence accepted by :meth:`~grantflow.auth.base.AuthorizationFlow.authorization_response_handler`."""
