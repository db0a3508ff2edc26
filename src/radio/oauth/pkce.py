"""CSRF state and PKCE material for a single login attempt.

Everything here draws from :mod:`secrets`; nothing is seeded and nothing
is cached, so every :class:`FlowState` is independent of the last one.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field


def generate_csrf_token() -> str:
    """Return a URL-safe, 128-bit random value for the ``state`` parameter."""
    return secrets.token_urlsafe(16)


def pkce_challenge(code_verifier: str) -> str:
    """Derive the S256 ``code_challenge`` for *code_verifier*.

    The challenge is the SHA-256 digest of the ASCII verifier, base64url
    encoded with the ``=`` padding stripped (:rfc:`7636#section-4.2`).
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE code_verifier and code_challenge (S256).

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    # 32 random bytes -> 43 characters, the RFC 7636 minimum length
    code_verifier = secrets.token_urlsafe(32)
    return code_verifier, pkce_challenge(code_verifier)


@dataclass(frozen=True)
class FlowState:
    """Per-attempt secrets: the CSRF token and the PKCE verifier/challenge.

    Owned by exactly one :class:`~radio.oauth.flow.LoginFlow` and dropped
    when it finishes. The verifier is kept out of ``repr()``.
    """

    csrf_token: str
    pkce_verifier: str = field(repr=False)
    pkce_challenge: str

    @classmethod
    def generate(cls) -> "FlowState":
        """Create a fresh state from the system's secure random source."""
        verifier, challenge = generate_pkce_pair()
        return cls(
            csrf_token=generate_csrf_token(),
            pkce_verifier=verifier,
            pkce_challenge=challenge,
        )
