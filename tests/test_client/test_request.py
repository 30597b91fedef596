"""Tests for request/response value objects and body encoding."""

from __future__ import annotations

import json

import httpx
import pytest

from grantflow.client.request import (
    BodyEncoding,
    HTTPRequest,
    HTTPResponse,
    encode_form,
    encode_json,
    with_query,
)
from grantflow.exceptions import FormEncodingError, SerializationError


class TestFormEncoding:
    def test_spaces_and_reserved_characters(self) -> None:
        encoded = encode_form({"scope": "read write", "redirect_uri": "app://cb?x=1&y"})
        assert encoded == b"scope=read+write&redirect_uri=app%3A%2F%2Fcb%3Fx%3D1%26y"

    def test_non_ascii(self) -> None:
        assert encode_form({"name": "café"}) == b"name=caf%C3%A9"

    def test_unencodable_text(self) -> None:
        with pytest.raises(FormEncodingError):
            encode_form({"bad": "\udc80"})


class TestJSONEncoding:
    def test_compact(self) -> None:
        assert encode_json({"a": 1, "b": ["x"]}) == b'{"a":1,"b":["x"]}'

    def test_unserializable(self) -> None:
        with pytest.raises(SerializationError) as exc_info:
            encode_json({"a": object()})
        assert isinstance(exc_info.value.__cause__, TypeError)


class TestHTTPRequest:
    def test_defaults(self) -> None:
        request = HTTPRequest(endpoint="https://example.com/me")
        assert request.method == "GET"
        assert request.body_encoding is BodyEncoding.FORM
        assert request.encode_body() == (None, None)
        assert request.url == "https://example.com/me"

    def test_query_merged_into_url(self) -> None:
        request = HTTPRequest(endpoint="https://example.com/me?a=1", query={"b": "two words"})
        params = httpx.URL(request.url).params
        assert params["a"] == "1"
        assert params["b"] == "two words"

    def test_form_body(self) -> None:
        request = HTTPRequest(endpoint="https://x", method="POST", body={"a": "b c"})
        assert request.encode_body() == (b"a=b+c", "application/x-www-form-urlencoded")

    def test_json_body(self) -> None:
        request = HTTPRequest(
            endpoint="https://x", method="POST", body={"a": 1}, body_encoding=BodyEncoding.JSON
        )
        assert request.encode_body() == (b'{"a":1}', "application/json")

    def test_with_headers_merges(self) -> None:
        request = HTTPRequest(endpoint="https://x", headers={"X-A": "1", "Authorization": "old"})
        updated = request.with_headers({"Authorization": "Bearer t"})
        assert updated.headers == {"X-A": "1", "Authorization": "Bearer t"}
        assert request.headers["Authorization"] == "old"


class TestWithQuery:
    def test_no_params(self) -> None:
        assert with_query("https://example.com/a", None) == "https://example.com/a"
        assert with_query("https://example.com/a", {}) == "https://example.com/a"


class TestHTTPResponse:
    def test_json(self) -> None:
        response = HTTPResponse(200, json.dumps({"a": 1}).encode())
        assert response.json() == {"a": 1}
        assert response.text == '{"a": 1}'

    def test_invalid_json(self) -> None:
        with pytest.raises(SerializationError):
            HTTPResponse(200, b"<html>").json()
