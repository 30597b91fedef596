"""HTTP layer for grantflow.

Classes:
    :class:`HTTPRequest` -- value object describing an outbound call.
    :class:`HTTPResponse` -- a successful response with JSON access.
    :class:`BodyEncoding` -- form or JSON body encoding.
    :class:`HTTPTransport` -- async transport backed by :class:`httpx.AsyncClient`.

Example::

    from grantflow.client import HTTPRequest, HTTPTransport

    async with HTTPTransport() as transport:
        response = await transport.send(HTTPRequest(endpoint="https://example.com"))
"""

from grantflow.client.request import BodyEncoding, HTTPRequest, HTTPResponse
from grantflow.client.transport import HTTPTransport

__all__ = ["BodyEncoding", "HTTPRequest", "HTTPResponse", "HTTPTransport"]
