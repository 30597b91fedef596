"""OAuth 2.0 Authorization Code grant (:rfc:`6749` section 4.1).

Authorization Code with a client secret is not safe for native
applications, which cannot keep the secret confidential.  Prefer
:class:`~grantflow.flows.pkce.PKCEAuthorizationFlow` whenever the server
supports :rfc:`7636`.

Flow:
    1. Send the user agent to :attr:`~AuthorizationCodeFlow.authorization_url`.
    2. Receive the redirect and wrap it in a
       :class:`~grantflow.auth.responses.CallbackResponse`.
    3. :meth:`~AuthorizationCodeFlow.authorization_response_handler` validates
       the state and exchanges the code for tokens.
"""

from __future__ import annotations

import logging

from grantflow.auth.base import basic_authorization
from grantflow.auth.responses import AuthorizationResponse
from grantflow.auth.tokens import TokenSet
from grantflow.client.request import HTTPRequest
from grantflow.flows.redirect import RedirectFlow
from grantflow.models import FlowType

logger = logging.getLogger(__name__)


class AuthorizationCodeFlow(RedirectFlow):
    """Authorization Code grant with a client secret.

    With :attr:`~grantflow.models.ClientConfig.use_basic_authorization`
    (the default) the secret travels as HTTP Basic credentials rather than in
    the token request body.

    Example::

        flow = AuthorizationCodeFlow(config, FileSecretStore(), transport)
        open_browser(flow.authorization_url)
        tokens = await flow.authorization_response_handler(
            CallbackResponse(url=redirected_to)
        )
    """

    flow_type = FlowType.AUTHORIZATION_CODE

    @property
    def client_secret(self) -> str:
        return self._config.client_secret or ""

    @property
    def use_basic_authorization(self) -> bool:
        return self._config.use_basic_authorization

    @property
    def authorization_params(self) -> dict[str, str]:
        params = self._base_authorization_params()
        params.update(self._scope_params())
        params.update(self.additional_authorization_params)
        return params

    @property
    def token_request_params(self) -> dict[str, str]:
        params = {
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        params.update(self.additional_token_params)
        return params

    async def authorization_response_handler(
        self, response: AuthorizationResponse
    ) -> TokenSet:
        code = self._authorization_code(response)

        body = self.token_request_params
        body["code"] = code
        headers: dict[str, str] = {}
        if self.use_basic_authorization:
            body.pop("client_secret", None)
            headers["Authorization"] = basic_authorization(self.client_id, self.client_secret)

        request = HTTPRequest(
            endpoint=self.token_endpoint, method="POST", body=body, headers=headers
        )
        logger.debug("Exchanging authorization code for client %s", self.client_id)
        return await self.token_request(request)
