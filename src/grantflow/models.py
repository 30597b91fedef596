"""Canonical Pydantic models shared across grantflow modules.

**Configuration models** -- serialised as JSON in the user's config directory
and passed to the flow constructors:
    :class:`FlowType`, :class:`ClientConfig`, :class:`TransportConfig`.

Token and device-session models live next to the code that owns them
(:mod:`grantflow.auth.tokens`, :mod:`grantflow.auth.responses`).
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FlowType(str, enum.Enum):
    """The OAuth 2.0 grant a :class:`ClientConfig` is meant for."""

    AUTHORIZATION_CODE = "authorization_code"
    PKCE = "pkce"
    DEVICE_CODE = "device_code"


class ClientConfig(BaseModel):
    """Registration details of an OAuth 2.0 client at one authorization server.

    The model is frozen.  The additive parameter maps are plain dicts and may
    be filled in place by the owner before the first request; the flow keeps
    its own mutable copy of ``scopes``.

    Example::

        ClientConfig(
            client_id="9d73bfb50b304543b35f41d427e6b76c",
            authorization_endpoint="https://example.com/authorize",
            token_endpoint="https://example.com/token",
            redirect_uri="app://callback",
            scopes="read-email modify-account",
            flow=FlowType.PKCE,
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1, description="Client identifier issued by the server")
    client_secret: Optional[str] = Field(
        default=None, description="Client secret (Authorization Code flow only)"
    )
    authorization_endpoint: str = Field(
        description="Authorization endpoint, or device authorization endpoint for device_code"
    )
    token_endpoint: str
    redirect_uri: Optional[str] = None
    scopes: Optional[str] = Field(default=None, description="Space-delimited scope string")
    flow: FlowType = FlowType.AUTHORIZATION_CODE
    additional_authorization_params: dict[str, str] = Field(default_factory=dict)
    additional_token_params: dict[str, str] = Field(default_factory=dict)
    additional_refresh_params: dict[str, str] = Field(default_factory=dict)
    auth_header_token_type: Optional[str] = Field(
        default=None,
        description="Overrides the token type used in the Authorization header",
    )
    use_basic_authorization: bool = Field(
        default=True,
        description="Send the client secret as HTTP Basic credentials on code exchange",
    )


class TransportConfig(BaseModel):
    """Settings for the shared HTTP transport."""

    connect_timeout: float = Field(default=5.0, gt=0)
    timeout: Optional[float] = Field(
        default=30.0, description="Default read/write/pool timeout in seconds"
    )
    verify_ssl: bool = True
    follow_redirects: bool = False
