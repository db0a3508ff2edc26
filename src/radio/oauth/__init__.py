"""OAuth2 Authorization Code login with PKCE over a loopback redirect.

Implements the interactive login used by every provider: a browser is
sent to the provider's authorization page, a one-shot listener on
``127.0.0.1:8080`` catches the redirect, the returned ``state`` is checked
against the one sent, and the authorization code is exchanged for a
bearer access token (:rfc:`6749`, :rfc:`7636`, :rfc:`8252`).

Exports:
    :func:`login` / :class:`LoginFlow` -- run a login attempt.
    :class:`FlowStage` -- lifecycle stages of a :class:`LoginFlow`.
    :class:`FlowState`, :func:`generate_pkce_pair`,
    :func:`generate_csrf_token` -- per-attempt secrets.
    :func:`build_authorize_url` -- authorization URL construction.
    :class:`RedirectListener`, :class:`RedirectResult`,
    :func:`parse_request_line` -- the redirect listener.
    :class:`TokenExchanger`, :class:`HttpTokenExchanger` -- token exchange.
"""

from radio.oauth.authorize import build_authorize_url
from radio.oauth.exchange import HttpTokenExchanger, TokenExchanger
from radio.oauth.flow import FlowStage, LoginFlow, announce_authorize_url, login
from radio.oauth.listener import (
    REDIRECT_HOST,
    REDIRECT_PORT,
    RedirectListener,
    RedirectResult,
    parse_request_line,
)
from radio.oauth.pkce import (
    FlowState,
    generate_csrf_token,
    generate_pkce_pair,
    pkce_challenge,
)

__all__ = [
    "REDIRECT_HOST",
    "REDIRECT_PORT",
    "FlowStage",
    "FlowState",
    "HttpTokenExchanger",
    "LoginFlow",
    "RedirectListener",
    "RedirectResult",
    "TokenExchanger",
    "announce_authorize_url",
    "build_authorize_url",
    "generate_csrf_token",
    "generate_pkce_pair",
    "login",
    "parse_request_line",
    "pkce_challenge",
]
