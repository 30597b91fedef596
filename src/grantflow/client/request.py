"""Request and response value objects, plus body encoding.

:class:`HTTPRequest` describes an outbound call: endpoint, query items,
method, body map, body encoding, extra headers, and timeout.  It knows how to
render its full URL (:attr:`HTTPRequest.url`) and encode its body
(:meth:`HTTPRequest.encode_body`) but performs no I/O -- sending is the job of
:class:`~grantflow.client.transport.HTTPTransport`.

:class:`HTTPResponse` wraps the status, headers, and raw bytes of a 2xx
response and offers structured access via :meth:`HTTPResponse.json`.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, Field

from grantflow.exceptions import FormEncodingError, SerializationError


class BodyEncoding(str, enum.Enum):
    """How a request body map is serialised on the wire."""

    FORM = "form"
    JSON = "json"

    @property
    def content_type(self) -> str:
        if self is BodyEncoding.FORM:
            return "application/x-www-form-urlencoded"
        return "application/json"


def encode_form(body: dict[str, Any]) -> bytes:
    """Encode *body* as ``application/x-www-form-urlencoded``.

    Keys and values are UTF-8 encoded and percent-encoded with
    :func:`urllib.parse.quote_plus` (spaces become ``+``).

    Raises:
        FormEncodingError: If a key or value cannot be represented as UTF-8.
    """
    try:
        return urlencode(body, encoding="utf-8", errors="strict").encode("ascii")
    except (UnicodeError, TypeError) as exc:
        raise FormEncodingError() from exc


def encode_json(body: dict[str, Any]) -> bytes:
    """Encode *body* as compact UTF-8 JSON.

    Raises:
        SerializationError: Wrapping the underlying :mod:`json` failure.
    """
    try:
        return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError, UnicodeError) as exc:
        raise SerializationError(f"JSON serialization failed: {exc}") from exc


class HTTPRequest(BaseModel):
    """An outbound HTTP request description.

    Example::

        request = HTTPRequest(
            endpoint="https://api.example.com/me",
            query={"fields": "name,email"},
        )
        response = await flow.authenticated_request(request)
    """

    endpoint: str
    query: Optional[dict[str, str]] = None
    method: str = "GET"
    body: Optional[dict[str, Any]] = None
    body_encoding: BodyEncoding = BodyEncoding.FORM
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = Field(
        default=None, description="Per-request deadline in seconds"
    )

    @property
    def url(self) -> str:
        """The endpoint with :attr:`query` merged into its query string."""
        return with_query(self.endpoint, self.query)

    def encode_body(self) -> tuple[Optional[bytes], Optional[str]]:
        """Return ``(encoded_body, content_type)``, or ``(None, None)`` without a body."""
        if self.body is None:
            return None, None
        if self.body_encoding is BodyEncoding.FORM:
            return encode_form(self.body), self.body_encoding.content_type
        return encode_json(self.body), self.body_encoding.content_type

    def with_headers(self, headers: dict[str, str]) -> HTTPRequest:
        """Return a copy whose headers are this request's headers updated with *headers*."""
        return self.model_copy(update={"headers": {**self.headers, **headers}})


def with_query(endpoint: str, params: Optional[dict[str, str]]) -> str:
    """Return *endpoint* with *params* merged into its existing query string."""
    if not params:
        return endpoint
    return str(httpx.URL(endpoint).copy_merge_params(params))


class HTTPResponse:
    """A successful (2xx) response from the transport.

    Args:
        status_code: The HTTP status code.
        content: The raw response body.
        headers: Response headers.
    """

    def __init__(
        self,
        status_code: int,
        content: bytes,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            SerializationError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.content)
        except (ValueError, UnicodeDecodeError) as exc:
            raise SerializationError(f"Response body is not valid JSON: {exc}") from exc

    def __repr__(self) -> str:
        return f"HTTPResponse(status_code={self.status_code}, bytes={len(self.content)})"
