"""Tests for authorization evidence models."""

from __future__ import annotations

import pytest

from grantflow.auth.responses import CallbackResponse, DeviceAuthorizationSession
from grantflow.exceptions import AuthorizationError, AuthorizationFailureReason


def _device_payload(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "device_code": "GmRhmhcxhwAzkoEqiMEg_DnyEysNkuNhszIySk9eS",
        "user_code": "WDJB-MJHT",
        "verification_uri": "https://example.com/device",
        "expires_in": 1800,
        "interval": 5,
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


class TestCallbackResponse:
    def test_query_params(self) -> None:
        response = CallbackResponse(url="app://cb?code=XYZ&state=abc&empty=")
        assert response.query_params() == {"code": "XYZ", "state": "abc", "empty": ""}
        assert response.fragment == ""

    def test_fragment(self) -> None:
        assert CallbackResponse(url="app://cb#error=denied").fragment == "error=denied"


class TestDeviceAuthorizationSession:
    def test_from_response(self) -> None:
        session = DeviceAuthorizationSession.from_response(
            _device_payload(verification_uri_complete="https://example.com/device?user_code=WDJB-MJHT"),
            created_at=100.0,
        )
        assert session.user_code == "WDJB-MJHT"
        assert session.interval == 5
        assert session.expires_at == 1900.0
        assert session.qr_payload == "https://example.com/device?user_code=WDJB-MJHT"

    def test_verification_url_fallback(self) -> None:
        session = DeviceAuthorizationSession.from_response(
            _device_payload(verification_uri=None, verification_url="https://example.com/dev")
        )
        assert session.verification_uri == "https://example.com/dev"
        assert session.qr_payload == "https://example.com/dev"

    def test_default_interval(self) -> None:
        session = DeviceAuthorizationSession.from_response(_device_payload(interval=None))
        assert session.interval == 5

    @pytest.mark.parametrize(
        "missing", ["device_code", "user_code", "verification_uri", "expires_in"]
    )
    def test_missing_required_field(self, missing: str) -> None:
        data = _device_payload()
        del data[missing]
        with pytest.raises(AuthorizationError) as exc_info:
            DeviceAuthorizationSession.from_response(data)
        assert exc_info.value.reason is AuthorizationFailureReason.RESPONSE_INVALID

    def test_wrong_type(self) -> None:
        with pytest.raises(AuthorizationError):
            DeviceAuthorizationSession.from_response(_device_payload(expires_in="1800"))

    def test_expiry_boundary(self) -> None:
        session = DeviceAuthorizationSession.from_response(
            _device_payload(expires_in=600), created_at=1000.0
        )
        # Expired once now + 5 reaches created_at + expires_in.
        assert session.is_expired_at(1594.0) is False
        assert session.is_expired_at(1595.0) is True

    def test_device_code_hidden(self) -> None:
        session = DeviceAuthorizationSession.from_response(_device_payload())
        assert "GmRhmhcx" not in repr(session)
        assert "device_code" not in session.model_dump()
