"""Tests for the Authorization Code flow."""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from grantflow.auth.responses import CallbackResponse, DeviceAuthorizationSession
from grantflow.exceptions import AuthorizationError, AuthorizationFailureReason
from grantflow.flows import AuthorizationCodeFlow
from grantflow.models import ClientConfig

TOKEN_URL = "https://auth.example.com/token"


def _make_config(**kwargs: Any) -> ClientConfig:
    defaults: dict[str, Any] = {
        "client_id": "abc",
        "client_secret": "s3cret",
        "authorization_endpoint": "https://auth.example.com/authorize",
        "token_endpoint": TOKEN_URL,
        "redirect_uri": "app://cb",
    }
    defaults.update(kwargs)
    return ClientConfig(**defaults)


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def token_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def flow(store, clock, make_transport, token_requests) -> AuthorizationCodeFlow:
    def handler(request: httpx.Request) -> httpx.Response:
        token_requests.append(request)
        return httpx.Response(
            200,
            json={
                "access_token": "at",
                "token_type": "Bearer",
                "refresh_token": "rt",
                "expires_in": 3600,
            },
        )

    return AuthorizationCodeFlow(_make_config(), store, make_transport(handler), clock=clock)


class TestAuthorizationURL:
    def test_params(self, store, make_transport) -> None:
        config = _make_config(
            scopes="read-email modify-account",
            additional_authorization_params={"prompt": "consent"},
        )
        flow = AuthorizationCodeFlow(config, store, make_transport(lambda r: httpx.Response(200)))

        url = httpx.URL(flow.authorization_url)
        assert url.host == "auth.example.com"
        assert url.path == "/authorize"
        assert dict(url.params) == {
            "response_type": "code",
            "client_id": "abc",
            "state": flow.state,
            "redirect_uri": "app://cb",
            "scope": "read-email modify-account",
            "prompt": "consent",
        }

    def test_scope_omitted_when_unset(self, flow: AuthorizationCodeFlow) -> None:
        assert "scope" not in flow.authorization_params

    def test_scopes_mutable_after_construction(self, flow: AuthorizationCodeFlow) -> None:
        flow.scopes = "openid"
        assert flow.authorization_params["scope"] == "openid"

    def test_state_is_eight_characters(self, flow: AuthorizationCodeFlow) -> None:
        assert len(flow.state) == 8

    def test_redirect_uri(self, flow: AuthorizationCodeFlow) -> None:
        assert flow.redirect_uri == "app://cb"

    def test_token_request_params(self, flow: AuthorizationCodeFlow) -> None:
        assert flow.token_request_params == {
            "grant_type": "authorization_code",
            "redirect_uri": "app://cb",
            "client_id": "abc",
            "client_secret": "s3cret",
        }

    def test_missing_secret_is_empty_string(self, store, make_transport) -> None:
        flow = AuthorizationCodeFlow(
            _make_config(client_secret=None), store, make_transport(lambda r: httpx.Response(200))
        )
        assert flow.client_secret == ""


class TestCodeExchange:
    @pytest.mark.asyncio
    async def test_end_to_end(self, flow: AuthorizationCodeFlow, token_requests, store) -> None:
        callback = CallbackResponse(url=f"app://cb?code=XYZ&state={flow.state}")

        tokens = await flow.authorization_response_handler(callback)

        request = token_requests[0]
        assert str(request.url) == TOKEN_URL
        assert request.method == "POST"
        assert _form(request) == {
            "grant_type": "authorization_code",
            "redirect_uri": "app://cb",
            "client_id": "abc",
            "code": "XYZ",
        }
        expected = "Basic " + base64.b64encode(b"abc:s3cret").decode()
        assert request.headers["Authorization"] == expected
        assert tokens.access_token == "at"
        assert store.contains("abc:tokens")
        assert flow.is_authorized is True

    @pytest.mark.asyncio
    async def test_secret_in_body_without_basic(self, store, make_transport, token_requests) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            token_requests.append(request)
            return httpx.Response(200, json={"access_token": "at"})

        config = _make_config(
            use_basic_authorization=False, additional_token_params={"audience": "api"}
        )
        flow = AuthorizationCodeFlow(config, store, make_transport(handler))

        await flow.authorization_response_handler(
            CallbackResponse(url=f"app://cb?code=XYZ&state={flow.state}")
        )

        body = _form(token_requests[0])
        assert body["client_secret"] == "s3cret"
        assert body["audience"] == "api"
        assert "Authorization" not in token_requests[0].headers


class TestCallbackValidation:
    @pytest.mark.asyncio
    async def test_state_mismatch(
        self, flow: AuthorizationCodeFlow, token_requests, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            with pytest.raises(AuthorizationError) as exc_info:
                await flow.authorization_response_handler(
                    CallbackResponse(url="app://cb?code=XYZ&state=forged00")
                )
        assert exc_info.value.reason is AuthorizationFailureReason.STATE_INCORRECT
        assert token_requests == []
        assert "state mismatch" in caplog.text

    @pytest.mark.asyncio
    async def test_fragment_is_an_error(self, flow: AuthorizationCodeFlow) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            await flow.authorization_response_handler(
                CallbackResponse(url="app://cb#error=access_denied")
            )
        assert exc_info.value.reason is AuthorizationFailureReason.AUTHORIZATION_ERROR
        assert exc_info.value.detail == "error=access_denied"

    @pytest.mark.asyncio
    async def test_query_error(self, flow: AuthorizationCodeFlow) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            await flow.authorization_response_handler(
                CallbackResponse(
                    url=f"app://cb?error=access_denied&error_description=nope&state={flow.state}"
                )
            )
        assert exc_info.value.reason is AuthorizationFailureReason.AUTHORIZATION_ERROR
        assert exc_info.value.detail == "access_denied: nope"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["code=XYZ", "state=abcdefgh", ""])
    async def test_missing_code_or_state(self, flow: AuthorizationCodeFlow, query: str) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            await flow.authorization_response_handler(CallbackResponse(url=f"app://cb?{query}"))
        assert exc_info.value.reason is AuthorizationFailureReason.AUTH_CALLBACK_INVALID

    @pytest.mark.asyncio
    async def test_wrong_evidence(self, flow: AuthorizationCodeFlow) -> None:
        session = DeviceAuthorizationSession(
            device_code="d", user_code="u", verification_uri="https://x", expires_in=60
        )
        with pytest.raises(AuthorizationError) as exc_info:
            await flow.authorization_response_handler(session)
        assert exc_info.value.reason is AuthorizationFailureReason.RESPONSE_NOT_URL
