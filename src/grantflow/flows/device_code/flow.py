"""OAuth 2.0 Device Authorization Grant (:rfc:`8628`).

For devices without a browser or with constrained input (TVs, consoles,
headless terminals).  The user authorizes on a second device while this one
polls the token endpoint.

Flow:
    1. :meth:`~DeviceCodeFlow.device_flow_authorization_request` POSTs to the
       device authorization endpoint and returns a
       :class:`~grantflow.auth.responses.DeviceAuthorizationSession`.
    2. Show ``user_code`` and ``verification_uri`` to the user.
    3. :meth:`~DeviceCodeFlow.authorization_response_handler` polls the token
       endpoint until the user approves, denies, or the code expires.

State machine (:class:`DeviceFlowState`)::

    idle -> requested -> polling -> authorized | denied | expired | timed_out

Polling honours ``authorization_pending`` (keep polling) and ``slow_down``
(wait 5 more seconds between polls) and gives up after 15 minutes.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Awaitable, Callable, Optional

from grantflow.auth.base import AuthorizationFlow
from grantflow.auth.credential_store import SecretStore
from grantflow.auth.responses import AuthorizationResponse, DeviceAuthorizationSession
from grantflow.auth.retry import PollStep, poll_until, retry_async
from grantflow.auth.tokens import TokenSet
from grantflow.client.request import HTTPRequest
from grantflow.client.transport import HTTPTransport
from grantflow.exceptions import (
    AuthorizationError,
    AuthorizationFailureReason,
    GrantflowError,
    HTTPError,
    PollingTooLongError,
)
from grantflow.models import ClientConfig, FlowType

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
MAX_POLL_DURATION = 900.0
SLOW_DOWN_INCREMENT = 5.0
AUTHORIZATION_REQUEST_ATTEMPTS = 2


class DeviceFlowState(str, enum.Enum):
    """Where a :class:`DeviceCodeFlow` is in its lifecycle."""

    IDLE = "idle"
    REQUESTED = "requested"
    POLLING = "polling"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    EXPIRED = "expired"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class DeviceCodeFlow(AuthorizationFlow):
    """Device Authorization Grant.

    ``authorization_endpoint`` in the config is the *device* authorization
    endpoint.

    Args:
        config: Client registration details.
        store: Where tokens are persisted.
        transport: Shared HTTP transport.
        clock: POSIX time source, used for session expiry and the polling
            budget.
        sleep: Awaitable sleep used between polls.

    Example::

        flow = DeviceCodeFlow(config, FileSecretStore(), transport)
        session = await flow.device_flow_authorization_request()
        print(f"Visit {session.verification_uri} and enter {session.user_code}")
        tokens = await flow.authorization_response_handler(session)
    """

    flow_type = FlowType.DEVICE_CODE

    def __init__(
        self,
        config: ClientConfig,
        store: SecretStore,
        transport: HTTPTransport,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        super().__init__(config, store, transport, clock=clock)
        self._sleep = sleep
        self._session: Optional[DeviceAuthorizationSession] = None
        self.state = DeviceFlowState.IDLE

    @property
    def authorization_params(self) -> dict[str, str]:
        params = {"client_id": self.client_id}
        params.update(self._scope_params())
        params.update(self.additional_authorization_params)
        return params

    @property
    def token_request_params(self) -> dict[str, str]:
        return self._device_token_params(self._session)

    def _device_token_params(
        self, session: Optional[DeviceAuthorizationSession]
    ) -> dict[str, str]:
        params = {
            "grant_type": DEVICE_CODE_GRANT_TYPE,
            "device_code": session.device_code if session is not None else "",
            "client_id": self.client_id,
        }
        params.update(self.additional_token_params)
        return params

    async def device_flow_authorization_request(self) -> DeviceAuthorizationSession:
        """Request a device code and user code.

        The request is retried once on failure.  The returned session is also
        cached for :attr:`token_request_params`.

        Raises:
            AuthorizationError: ``response_invalid`` if the response lacks
                required fields.
        """
        request = HTTPRequest(
            endpoint=self.authorization_endpoint,
            method="POST",
            body=self.authorization_params,
        )

        async def attempt() -> DeviceAuthorizationSession:
            response = await self._transport.send(request)
            return DeviceAuthorizationSession.from_response(
                response.json(), created_at=self._clock()
            )

        session = await retry_async(
            attempt,
            AUTHORIZATION_REQUEST_ATTEMPTS,
            description=f"Device authorization request to {self.authorization_endpoint}",
        )
        self._session = session
        self.state = DeviceFlowState.REQUESTED
        logger.info(
            "Device authorization requested for client %s; code expires in %gs",
            self.client_id,
            session.expires_in,
        )
        return session

    async def authorization_response_handler(
        self, response: AuthorizationResponse
    ) -> TokenSet:
        """Poll the token endpoint until the user finishes authorizing.

        Raises:
            AuthorizationError: ``response_not_device_flow_auth_response`` for
                the wrong evidence variant, ``denied`` if the user declined,
                ``device_code_expired`` if the code expired.
            PollingTooLongError: After 900 seconds of polling.
            HTTPError: For any other error the token endpoint reports.
        """
        if not isinstance(response, DeviceAuthorizationSession):
            raise AuthorizationError(
                AuthorizationFailureReason.RESPONSE_NOT_DEVICE_FLOW_AUTH_RESPONSE
            )
        session = response
        request = HTTPRequest(
            endpoint=self.token_endpoint,
            method="POST",
            body=self._device_token_params(session),
        )

        def check_expired() -> None:
            if session.is_expired_at(self._clock()):
                raise AuthorizationError(AuthorizationFailureReason.DEVICE_CODE_EXPIRED)

        async def attempt() -> PollStep[TokenSet]:
            try:
                # The poll loop is the retry: an immediate second request
                # would ignore the server's interval.
                tokens = await self.token_request(request, attempts=1)
            except HTTPError as exc:
                error = exc.error_code
                if error == "access_denied":
                    raise AuthorizationError(AuthorizationFailureReason.DENIED) from exc
                if error == "expired_token":
                    raise AuthorizationError(
                        AuthorizationFailureReason.DEVICE_CODE_EXPIRED
                    ) from exc
                if error == "slow_down":
                    return PollStep.slow_down()
                if error == "authorization_pending":
                    logger.debug("Authorization pending for client %s", self.client_id)
                    return PollStep.pending()
                raise
            return PollStep.done(tokens)

        self.state = DeviceFlowState.POLLING
        try:
            tokens = await poll_until(
                attempt,
                interval=session.interval,
                max_duration=MAX_POLL_DURATION,
                backoff=SLOW_DOWN_INCREMENT,
                before_attempt=check_expired,
                sleep=self._sleep,
                clock=self._clock,
            )
        except AuthorizationError as exc:
            if exc.reason is AuthorizationFailureReason.DENIED:
                self.state = DeviceFlowState.DENIED
            elif exc.reason is AuthorizationFailureReason.DEVICE_CODE_EXPIRED:
                self.state = DeviceFlowState.EXPIRED
            else:
                self.state = DeviceFlowState.FAILED
            raise
        except PollingTooLongError:
            self.state = DeviceFlowState.TIMED_OUT
            raise
        except GrantflowError:
            self.state = DeviceFlowState.FAILED
            raise

        self.state = DeviceFlowState.AUTHORIZED
        self._session = None
        logger.info("Device authorization completed for client %s", self.client_id)
        return tokens
