"""Asynchronous HTTP transport shared by every flow.

:class:`HTTPTransport` wraps a single :class:`httpx.AsyncClient` and turns an
:class:`~grantflow.client.request.HTTPRequest` into a network call.  Create
one per process and inject it into each flow; it is an async context manager
that closes the underlying client on exit.

Error mapping:

- network failures (connect errors, timeouts, protocol errors) raise
  :class:`~grantflow.exceptions.TransportError`;
- non-2xx answers raise :class:`~grantflow.exceptions.HTTPError` carrying the
  response body (or the status line when the body is empty or not text).
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from grantflow.client.request import HTTPRequest, HTTPResponse
from grantflow.exceptions import HTTPError, TransportError
from grantflow.models import TransportConfig

logger = logging.getLogger(__name__)


class HTTPTransport:
    """Async HTTP transport backed by :class:`httpx.AsyncClient`.

    Args:
        config: Connect timeout, default timeout, and TLS settings.
        transport: Optional low-level httpx transport.  Tests pass an
            :class:`httpx.MockTransport` here.
        client: Optional pre-built :class:`httpx.AsyncClient`.  When given,
            *config* and *transport* are ignored and the caller keeps
            ownership of the client.

    Example::

        async with HTTPTransport() as transport:
            flow = PKCEAuthorizationFlow(config, store, transport)
            print(flow.authorization_url)
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self._config.timeout, connect=self._config.connect_timeout
                ),
                verify=self._config.verify_ssl,
                follow_redirects=self._config.follow_redirects,
                transport=transport,
            )
        self._client: Optional[httpx.AsyncClient] = client

    async def __aenter__(self) -> HTTPTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    @property
    def closed(self) -> bool:
        return self._client is None

    async def send(self, request: HTTPRequest) -> HTTPResponse:
        """Send *request* and return the 2xx response.

        Raises:
            TransportError: On network failure or if the transport is closed.
            HTTPError: On a non-2xx status.
            FormEncodingError: If a form body cannot be encoded.
            SerializationError: If a JSON body cannot be encoded.
        """
        if self._client is None:
            raise TransportError("Transport is closed")

        content, content_type = request.encode_body()
        headers: dict[str, str] = {"Accept": "application/json"}
        if content_type is not None:
            headers["Content-Type"] = content_type
        headers.update(request.headers)

        kwargs: dict[str, object] = {}
        if request.timeout is not None:
            kwargs["timeout"] = httpx.Timeout(
                request.timeout, connect=self._config.connect_timeout
            )

        logger.debug("%s %s", request.method, request.endpoint)
        try:
            response = await self._client.request(
                request.method,
                request.url,
                content=content,
                headers=headers,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{request.method} {request.endpoint} failed: {exc!r}"
            ) from exc

        if not response.is_success:
            logger.debug(
                "%s %s returned HTTP %d", request.method, request.endpoint, response.status_code
            )
            raise HTTPError(response.status_code, _error_body(response))

        return HTTPResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )


def _error_body(response: httpx.Response) -> str:
    """Return the body of an error response, or its status line if unusable."""
    status_line = f"{response.status_code} {response.reason_phrase}".strip()
    if not response.content:
        return status_line
    try:
        text = response.content.decode("utf-8")
    except UnicodeDecodeError:
        return status_line
    return text if text.strip() else status_line
