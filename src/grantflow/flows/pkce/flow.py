"""Authorization Code grant with Proof Key for Code Exchange (:rfc:`7636`).

The flow generates a code verifier and its S256 challenge once, at
construction.  The challenge goes to the authorization endpoint; the
verifier proves possession at the token endpoint, so no client secret is
needed and none is ever sent.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from grantflow.auth.credential_store import SecretStore
from grantflow.auth.pkce import CODE_CHALLENGE_METHOD, generate_pkce_pair
from grantflow.auth.responses import AuthorizationResponse
from grantflow.auth.tokens import TokenSet
from grantflow.client.request import HTTPRequest
from grantflow.client.transport import HTTPTransport
from grantflow.flows.redirect import RedirectFlow
from grantflow.models import ClientConfig, FlowType

logger = logging.getLogger(__name__)


class PKCEAuthorizationFlow(RedirectFlow):
    """Authorization Code grant secured with PKCE (S256)."""

    flow_type = FlowType.PKCE

    def __init__(
        self,
        config: ClientConfig,
        store: SecretStore,
        transport: HTTPTransport,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config, store, transport, clock=clock)
        self._code_verifier, self._code_challenge = generate_pkce_pair()

    @property
    def code_verifier(self) -> str:
        return self._code_verifier

    @property
    def code_challenge(self) -> str:
        return self._code_challenge

    @property
    def authorization_params(self) -> dict[str, str]:
        params = self._base_authorization_params()
        params["code_challenge"] = self._code_challenge
        params["code_challenge_method"] = CODE_CHALLENGE_METHOD
        params.update(self._scope_params())
        params.update(self.additional_authorization_params)
        return params

    @property
    def token_request_params(self) -> dict[str, str]:
        params = {
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": self._code_verifier,
        }
        params.update(self.additional_token_params)
        return params

    async def authorization_response_handler(
        self, response: AuthorizationResponse
    ) -> TokenSet:
        code = self._authorization_code(response)

        body = self.token_request_params
        body["code"] = code
        request = HTTPRequest(endpoint=self.token_endpoint, method="POST", body=body)
        logger.debug("Exchanging authorization code with PKCE for client %s", self.client_id)
        return await self.token_request(request)
