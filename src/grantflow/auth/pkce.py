"""PKCE (:rfc:`7636`) proof material and CSRF state nonces.

:func:`generate_pkce_pair` returns a ``(code_verifier, code_challenge)`` pair
using the S256 method.  The verifier is 96 random bytes encoded as base64url
without padding, which is exactly 128 characters -- the maximum the RFC
allows.

Randomness comes from :mod:`secrets`.  If the operating system cannot supply
secure randomness, verifier generation falls back to :mod:`random` and logs a
warning: the verifier then no longer meets the RFC's entropy requirement.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import random
import secrets
import string

logger = logging.getLogger(__name__)

VERIFIER_BYTES = 96
VERIFIER_LENGTH = 128
CODE_CHALLENGE_METHOD = "S256"

_STATE_ALPHABET = string.ascii_letters + string.digits
_VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-_"


def base64url_encode(data: bytes) -> str:
    """Base64url-encode *data* without ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def code_challenge_for(verifier: str) -> str:
    """Return the S256 code challenge for *verifier*."""
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64url_encode(digest)


def generate_code_verifier() -> str:
    """Return a 128-character code verifier."""
    try:
        return base64url_encode(secrets.token_bytes(VERIFIER_BYTES))
    except NotImplementedError:
        logger.warning(
            "Secure randomness is unavailable; generating the PKCE code verifier "
            "with a non-cryptographic generator. The verifier may be guessable."
        )
        return "".join(random.choices(_VERIFIER_ALPHABET, k=VERIFIER_LENGTH))


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE code_verifier and code_challenge (S256).

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    verifier = generate_code_verifier()
    return verifier, code_challenge_for(verifier)


def generate_state(length: int = 8) -> str:
    """Return a random alphanumeric CSRF state nonce of *length* characters."""
    if length < 8:
        raise ValueError("state nonce must be at least 8 characters")
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))
