"""Token bundle returned by a token endpoint.

A :class:`TokenSet` is parsed from the token endpoint's JSON
(:meth:`TokenSet.from_response`), stored in a
:class:`~grantflow.auth.credential_store.SecretStore` under
``"<client_id>:tokens"`` as compact JSON (:meth:`TokenSet.encode`), and
replaced wholesale on every refresh.

``issued_at`` is not part of the server payload or of the encoded form.  It
is filled in from the store's per-key creation time when tokens are loaded,
and from the local clock when they are saved.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from grantflow.auth.credential_store import SecretStore
from grantflow.exceptions import (
    AuthorizationError,
    AuthorizationFailureReason,
    SerializationError,
)

logger = logging.getLogger(__name__)

NO_REFRESH_TOKEN = "null"
"""Sentinel stored in :attr:`TokenSet.refresh_token` when the server issued none."""

DEFAULT_EXPIRES_IN = 3600
REFRESH_MARGIN = 30
"""Seconds before expiry at which a token is treated as expired."""


def tokens_key(client_id: str) -> str:
    """The secret-store key for *client_id*'s tokens."""
    return f"{client_id}:tokens"


class TokenSet(BaseModel):
    """Access/refresh credential bundle.

    Attributes:
        access_token: The bearer credential.
        token_type: Scheme for the ``Authorization`` header.
        refresh_token: The refresh credential, or :data:`NO_REFRESH_TOKEN`.
        expires_in: Access token lifetime in seconds.
        issued_at: POSIX time the tokens were saved, when known.
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = NO_REFRESH_TOKEN
    expires_in: int = DEFAULT_EXPIRES_IN
    issued_at: Optional[float] = Field(default=None, exclude=True)

    @property
    def is_refreshable(self) -> bool:
        return self.refresh_token != NO_REFRESH_TOKEN

    def age(self, now: float) -> Optional[float]:
        """Seconds since :attr:`issued_at`, or ``None`` if unknown."""
        if self.issued_at is None:
            return None
        return now - self.issued_at

    def needs_refresh(self, now: float) -> bool:
        """True once the token is within :data:`REFRESH_MARGIN` seconds of expiry.

        Tokens without a refresh token or without a known issue time never
        need a refresh.
        """
        age = self.age(now)
        if not self.is_refreshable or age is None:
            return False
        return age >= self.expires_in - REFRESH_MARGIN

    @classmethod
    def from_response(cls, data: Any) -> TokenSet:
        """Build a :class:`TokenSet` from a token endpoint JSON object.

        Raises:
            AuthorizationError: ``access_token_invalid`` when ``access_token``
                is missing or not a string; ``refresh_token_invalid_type``
                when ``refresh_token`` is present but not a string.
        """
        if not isinstance(data, dict):
            raise AuthorizationError(AuthorizationFailureReason.ACCESS_TOKEN_INVALID)

        access_token = data.get("access_token")
        if not isinstance(access_token, str):
            raise AuthorizationError(AuthorizationFailureReason.ACCESS_TOKEN_INVALID)

        token_type = data.get("token_type")
        if not isinstance(token_type, str) or not token_type:
            token_type = "Bearer"

        refresh_token = NO_REFRESH_TOKEN
        if "refresh_token" in data:
            if not isinstance(data["refresh_token"], str):
                raise AuthorizationError(
                    AuthorizationFailureReason.REFRESH_TOKEN_INVALID_TYPE
                )
            refresh_token = data["refresh_token"]

        expires_in = data.get("expires_in")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            # Some servers send the lifetime as a numeric string.
            try:
                expires_in = int(str(expires_in))
            except ValueError:
                expires_in = DEFAULT_EXPIRES_IN
        elif not math.isfinite(expires_in):
            expires_in = DEFAULT_EXPIRES_IN

        return cls(
            access_token=access_token,
            token_type=token_type,
            refresh_token=refresh_token,
            expires_in=int(expires_in),
        )

    def encode(self) -> bytes:
        """Serialise to the byte form kept in the secret store."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def decode(cls, data: bytes) -> TokenSet:
        """Inverse of :meth:`encode`.

        Raises:
            SerializationError: If *data* is not a valid encoded token set.
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as exc:
            raise SerializationError(f"Stored tokens could not be decoded: {exc}") from exc


def save_tokens(
    tokens: TokenSet,
    client_id: str,
    store: SecretStore,
    clock: Callable[[], float] = time.time,
) -> TokenSet:
    """Persist *tokens* for *client_id* and return them stamped with ``issued_at``."""
    store.set(tokens_key(client_id), tokens.encode())
    issued_at = store.created_at(tokens_key(client_id))
    logger.info("Saved tokens for client %s", client_id)
    return tokens.model_copy(
        update={"issued_at": issued_at if issued_at is not None else clock()}
    )


def load_tokens(client_id: str, store: SecretStore) -> TokenSet:
    """Load the tokens previously saved for *client_id*.

    Raises:
        AuthorizationError: ``no_access_token`` if nothing is stored.
        SerializationError: If the stored value is corrupt.
    """
    key = tokens_key(client_id)
    data = store.get(key)
    if data is None:
        raise AuthorizationError(AuthorizationFailureReason.NO_ACCESS_TOKEN)
    tokens = TokenSet.decode(data)
    return tokens.model_copy(update={"issued_at": store.created_at(key)})
