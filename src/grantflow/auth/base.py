"""Abstract base class shared by every authorization flow.

:class:`AuthorizationFlow` is the capability contract.  Concrete flows supply
the protocol-specific pieces:

1. :attr:`~AuthorizationFlow.flow_type` -- the registry identifier.
2. :attr:`~AuthorizationFlow.authorization_params` and
   :attr:`~AuthorizationFlow.token_request_params`.
3. :meth:`~AuthorizationFlow.authorization_response_handler` -- turns
   authorization evidence into a :class:`~grantflow.auth.tokens.TokenSet`.

Everything else is implemented here once: token requests with a single
retry, refresh when the access token is about to expire, and authenticated
requests with a bearer header.

Refresh-and-save is serialised per ``(store, client_id)``.  A caller that
waited for another caller's refresh re-reads the store and reuses the fresh
tokens instead of refreshing a second time.

See Also:
    :mod:`grantflow.auth.manager` for flow registration and construction.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
import weakref
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Optional

from grantflow.auth.credential_store import SecretStore
from grantflow.auth.responses import AuthorizationResponse
from grantflow.auth.retry import retry_async
from grantflow.auth.tokens import TokenSet, load_tokens, save_tokens, tokens_key
from grantflow.client.request import HTTPRequest, HTTPResponse
from grantflow.client.transport import HTTPTransport
from grantflow.exceptions import (
    AuthorizationError,
    AuthorizationFailureReason,
    ConfigError,
)
from grantflow.models import ClientConfig, FlowType

logger = logging.getLogger(__name__)

TOKEN_REQUEST_ATTEMPTS = 2

_refresh_locks: weakref.WeakKeyDictionary[SecretStore, dict[str, asyncio.Lock]] = (
    weakref.WeakKeyDictionary()
)


def _refresh_lock(store: SecretStore, client_id: str) -> asyncio.Lock:
    locks = _refresh_locks.setdefault(store, {})
    lock = locks.get(client_id)
    if lock is None:
        lock = locks[client_id] = asyncio.Lock()
    return lock


def basic_authorization(client_id: str, client_secret: str) -> str:
    """Return an HTTP Basic ``Authorization`` header value."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class AuthorizationFlow(ABC):
    """Abstract base class for OAuth 2.0 authorization flows.

    Args:
        config: Client registration details.
        store: Where tokens are persisted.
        transport: Shared HTTP transport.
        clock: Source of POSIX timestamps, used for token age.

    Raises:
        ConfigError: If :meth:`validate_config` reports problems.
    """

    flow_type: ClassVar[FlowType]

    def __init__(
        self,
        config: ClientConfig,
        store: SecretStore,
        transport: HTTPTransport,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        problems = self.validate_config(config)
        if problems:
            raise ConfigError(
                f"Invalid {self.flow_type.value} configuration: " + "; ".join(problems)
            )
        self._config = config
        self._store = store
        self._transport = transport
        self._clock = clock
        self.scopes: Optional[str] = config.scopes

    # ------------------------------------------------------------------ #
    # Shared fields
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def client_id(self) -> str:
        return self._config.client_id

    @property
    def store(self) -> SecretStore:
        return self._store

    @property
    def transport(self) -> HTTPTransport:
        return self._transport

    @property
    def authorization_endpoint(self) -> str:
        return self._config.authorization_endpoint

    @property
    def token_endpoint(self) -> str:
        return self._config.token_endpoint

    @property
    def additional_authorization_params(self) -> dict[str, str]:
        return self._config.additional_authorization_params

    @property
    def additional_token_params(self) -> dict[str, str]:
        return self._config.additional_token_params

    @property
    def additional_refresh_params(self) -> dict[str, str]:
        return self._config.additional_refresh_params

    @property
    def auth_header_token_type(self) -> Optional[str]:
        return self._config.auth_header_token_type

    # ------------------------------------------------------------------ #
    # Flow-specific pieces
    # ------------------------------------------------------------------ #

    @property
    @abstractmethod
    def authorization_params(self) -> dict[str, str]:
        """Parameters sent to the authorization endpoint."""
        ...

    @property
    @abstractmethod
    def token_request_params(self) -> dict[str, str]:
        """Body parameters for the initial token request."""
        ...

    @abstractmethod
    async def authorization_response_handler(
        self, response: AuthorizationResponse
    ) -> TokenSet:
        """Exchange authorization evidence for tokens and persist them.

        Raises:
            AuthorizationError: If the evidence is the wrong variant for this
                flow or fails validation.
        """
        ...

    @classmethod
    def validate_config(cls, config: ClientConfig) -> list[str]:
        """Return human-readable problems with *config*; empty means valid."""
        errors: list[str] = []
        if not config.authorization_endpoint:
            errors.append(f"{cls.flow_type.value} requires 'authorization_endpoint'")
        if not config.token_endpoint:
            errors.append(f"{cls.flow_type.value} requires 'token_endpoint'")
        return errors

    def _scope_params(self) -> dict[str, str]:
        return {"scope": self.scopes} if self.scopes else {}

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    @property
    def is_authorized(self) -> bool:
        """True if tokens are stored for this client."""
        return self._store.contains(tokens_key(self.client_id))

    def load_tokens(self) -> TokenSet:
        """Return the stored tokens.

        Raises:
            AuthorizationError: ``no_access_token`` if none are stored.
        """
        return load_tokens(self.client_id, self._store)

    def sign_out(self) -> bool:
        """Forget the stored tokens.  Returns ``True`` if any were stored."""
        removed = self._store.delete(tokens_key(self.client_id))
        if removed:
            logger.info("Removed stored tokens for client %s", self.client_id)
        return removed

    async def token_request(
        self, request: HTTPRequest, attempts: int = TOKEN_REQUEST_ATTEMPTS
    ) -> TokenSet:
        """Send *request* to the token endpoint and persist the resulting tokens.

        Any failure is retried until *attempts* runs are used up; the default
        is one retry.

        Returns:
            The saved :class:`~grantflow.auth.tokens.TokenSet`.
        """

        async def attempt() -> TokenSet:
            response = await self._transport.send(request)
            tokens = TokenSet.from_response(response.json())
            return save_tokens(tokens, self.client_id, self._store, self._clock)

        return await retry_async(
            attempt, attempts, description=f"Token request to {request.endpoint}"
        )

    async def check_refresh_token(self, tokens: TokenSet) -> TokenSet:
        """Refresh *tokens* if they are within 30 seconds of expiring.

        Returns:
            The refreshed tokens, or *tokens* unchanged.
        """
        if not tokens.needs_refresh(self._clock()):
            return tokens

        async with _refresh_lock(self._store, self.client_id):
            current = tokens
            if self.is_authorized:
                current = self.load_tokens()
                if not current.needs_refresh(self._clock()):
                    logger.debug("Tokens for client %s were refreshed concurrently", self.client_id)
                    return current
            return await self.refresh_token(current)

    async def refresh_token(self, tokens: TokenSet) -> TokenSet:
        """Exchange the refresh token for a new :class:`TokenSet`.

        The client secret, when the flow has one and the additional token
        params do not override it, is sent as HTTP Basic credentials.

        Raises:
            AuthorizationError: ``no_refresh_token`` if *tokens* cannot be
                refreshed.
        """
        if not tokens.is_refreshable:
            raise AuthorizationError(AuthorizationFailureReason.NO_REFRESH_TOKEN)

        body: dict[str, str] = {
            "refresh_token": tokens.refresh_token,
            "grant_type": "refresh_token",
        }
        body.update(self.additional_refresh_params)

        headers: dict[str, str] = {}
        secret = self.token_request_params.get("client_secret")
        if secret is not None and "client_secret" not in self.additional_token_params:
            headers["Authorization"] = basic_authorization(self.client_id, secret)

        request = HTTPRequest(
            endpoint=self.token_endpoint, method="POST", body=body, headers=headers
        )
        logger.info("Refreshing tokens for client %s", self.client_id)
        return await self.token_request(request)

    async def authenticated_request(
        self, request: HTTPRequest, retries: int = 0
    ) -> HTTPResponse:
        """Send *request* with the stored access token.

        The stored tokens are refreshed first when they are about to expire.
        The ``Authorization`` header is merged over any headers already on
        *request*.

        Args:
            request: The outbound request.
            retries: Additional attempts after a failure.

        Raises:
            AuthorizationError: ``no_access_token`` if nothing is stored.
        """
        tokens = self.load_tokens()

        async def attempt() -> HTTPResponse:
            nonlocal tokens
            tokens = await self.check_refresh_token(tokens)
            token_type = self.auth_header_token_type or tokens.token_type
            authorized = request.with_headers(
                {"Authorization": f"{token_type} {tokens.access_token}"}
            )
            return await self._transport.send(authorized)

        return await retry_async(
            attempt, retries + 1, description=f"{request.method} {request.endpoint}"
        )
