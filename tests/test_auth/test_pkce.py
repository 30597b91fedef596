"""Tests for PKCE proof material and state nonces."""

from __future__ import annotations

import logging
import re

import pytest

from grantflow.auth import pkce
from grantflow.auth.pkce import (
    VERIFIER_LENGTH,
    base64url_encode,
    code_challenge_for,
    generate_code_verifier,
    generate_pkce_pair,
    generate_state,
)

_UNRESERVED = re.compile(r"^[A-Za-z0-9\-._~]+$")


class TestCodeChallenge:
    def test_rfc7636_appendix_b_vector(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert code_challenge_for(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_deterministic(self) -> None:
        verifier = generate_code_verifier()
        assert code_challenge_for(verifier) == code_challenge_for(verifier)

    def test_no_padding(self) -> None:
        assert "=" not in base64url_encode(b"\x00")
        assert base64url_encode(b"\xfb\xff") == "-_8"


class TestCodeVerifier:
    def test_length_and_alphabet(self) -> None:
        verifier = generate_code_verifier()
        assert len(verifier) == VERIFIER_LENGTH == 128
        assert _UNRESERVED.match(verifier)

    def test_pair_matches(self) -> None:
        verifier, challenge = generate_pkce_pair()
        assert challenge == code_challenge_for(verifier)
        assert len(challenge) == 43

    def test_pairs_differ(self) -> None:
        assert generate_pkce_pair()[0] != generate_pkce_pair()[0]

    def test_weak_randomness_fallback_warns(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        def unavailable(n: int) -> bytes:
            raise NotImplementedError("no urandom")

        monkeypatch.setattr(pkce.secrets, "token_bytes", unavailable)
        with caplog.at_level(logging.WARNING, logger="grantflow.auth.pkce"):
            verifier = generate_code_verifier()

        assert len(verifier) == 128
        assert _UNRESERVED.match(verifier)
        assert "Secure randomness is unavailable" in caplog.text


class TestState:
    def test_default_length(self) -> None:
        state = generate_state()
        assert len(state) == 8
        assert state.isalnum()

    def test_custom_length(self) -> None:
        assert len(generate_state(32)) == 32

    def test_too_short_rejected(self) -> None:
        with pytest.raises(ValueError):
            generate_state(4)
