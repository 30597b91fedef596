"""Behaviour shared by the redirect-based flows (Authorization Code and PKCE).

:class:`RedirectFlow` owns the redirect URI and the CSRF state nonce, renders
the authorization URL, and validates the callback URL the user agent is sent
back to.  Subclasses add their own parameters and decide how the code is
exchanged.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from grantflow.auth.base import AuthorizationFlow
from grantflow.auth.credential_store import SecretStore
from grantflow.auth.pkce import generate_state
from grantflow.auth.responses import AuthorizationResponse, CallbackResponse
from grantflow.client.request import with_query
from grantflow.client.transport import HTTPTransport
from grantflow.exceptions import AuthorizationError, AuthorizationFailureReason
from grantflow.models import ClientConfig

logger = logging.getLogger(__name__)

STATE_LENGTH = 8


class RedirectFlow(AuthorizationFlow):
    """Base for flows that receive an authorization code on a redirect URI."""

    def __init__(
        self,
        config: ClientConfig,
        store: SecretStore,
        transport: HTTPTransport,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config, store, transport, clock=clock)
        self._state = generate_state(STATE_LENGTH)

    @classmethod
    def validate_config(cls, config: ClientConfig) -> list[str]:
        errors = super().validate_config(config)
        if not config.redirect_uri:
            errors.append(f"{cls.flow_type.value} requires 'redirect_uri'")
        return errors

    @property
    def redirect_uri(self) -> str:
        # validate_config guarantees a redirect URI.
        return self._config.redirect_uri or ""

    @property
    def state(self) -> str:
        """The CSRF nonce generated for this flow instance."""
        return self._state

    def _base_authorization_params(self) -> dict[str, str]:
        return {
            "response_type": "code",
            "client_id": self.client_id,
            "state": self._state,
            "redirect_uri": self.redirect_uri,
        }

    @property
    def authorization_url(self) -> str:
        """The authorization endpoint with :attr:`authorization_params` in its query."""
        return with_query(self.authorization_endpoint, self.authorization_params)

    def _authorization_code(self, response: AuthorizationResponse) -> str:
        """Validate a callback and return its authorization code.

        Raises:
            AuthorizationError: ``response_not_url`` for the wrong evidence
                variant, ``authorization_error`` when the server reported an
                error, ``auth_callback_invalid`` when ``code`` or ``state`` is
                missing, ``state_incorrect`` on a state mismatch.
        """
        if not isinstance(response, CallbackResponse):
            raise AuthorizationError(AuthorizationFailureReason.RESPONSE_NOT_URL)

        if response.fragment:
            raise AuthorizationError(
                AuthorizationFailureReason.AUTHORIZATION_ERROR, response.fragment
            )

        params = response.query_params()
        if "error" in params:
            detail = params["error"]
            if params.get("error_description"):
                detail = f"{detail}: {params['error_description']}"
            raise AuthorizationError(AuthorizationFailureReason.AUTHORIZATION_ERROR, detail)

        code = params.get("code")
        state = params.get("state")
        if not code or state is None:
            raise AuthorizationError(AuthorizationFailureReason.AUTH_CALLBACK_INVALID)

        if state != self._state:
            logger.warning("Callback state mismatch for client %s", self.client_id)
            raise AuthorizationError(AuthorizationFailureReason.STATE_INCORRECT)

        return code
