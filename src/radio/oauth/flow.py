"""Login flow orchestration: the OAuth2 Authorization Code grant with PKCE.

:class:`LoginFlow` runs one login attempt end to end:

1. Generates a fresh :class:`~radio.oauth.pkce.FlowState`.
2. Binds the :class:`~radio.oauth.listener.RedirectListener`.
3. Builds the authorization URL and hands it to the user (printed, and
   optionally opened in a browser).
4. Blocks until the provider redirects back, then checks ``state``.
5. Exchanges the code for an access token via a
   :class:`~radio.oauth.exchange.TokenExchanger`.

A flow is single-shot. Retrying means constructing a new ``LoginFlow``,
which draws new PKCE material.
"""

from __future__ import annotations

import enum
import logging
import secrets
import threading
import webbrowser
from typing import Any, Callable, Optional

from radio.exceptions import FlowError, StateMismatch, TokenExchangeFailure
from radio.models import AppCredentials, ServiceDescriptor
from radio.oauth.authorize import build_authorize_url
from radio.oauth.exchange import HttpTokenExchanger, TokenExchanger
from radio.oauth.listener import RedirectListener
from radio.oauth.pkce import FlowState
from radio.output import prompt

logger = logging.getLogger(__name__)


class FlowStage(str, enum.Enum):
    """Where a :class:`LoginFlow` is in its lifecycle."""

    START = "start"
    AWAITING_REDIRECT = "awaiting_redirect"
    STATE_MISMATCH = "state_mismatch"
    STATE_VALID = "state_valid"
    EXCHANGING = "exchanging"
    EXCHANGE_FAILED = "exchange_failed"
    SUCCESS = "success"
    FAILED = "failed"


_TERMINAL_STAGES = frozenset(
    {
        FlowStage.STATE_MISMATCH,
        FlowStage.EXCHANGE_FAILED,
        FlowStage.SUCCESS,
        FlowStage.FAILED,
    }
)


def announce_authorize_url(url: str, open_browser: bool = False) -> None:
    """Tell the user where to log in.

    The URL always goes to stderr. With *open_browser* it is also opened
    in the default browser from a daemon thread so a slow browser launch
    never delays the listener.
    """
    prompt(f"Browse to: {url}")
    if open_browser:
        threading.Thread(target=webbrowser.open, args=(url,), daemon=True).start()


def states_match(expected: str, received: str) -> bool:
    """Exact, constant-time comparison of two ``state`` values."""
    return secrets.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


class LoginFlow:
    """One OAuth2 Authorization Code + PKCE login attempt.

    Args:
        credentials: The app's client id and secret.
        service: Provider endpoints and scopes.
        exchanger: Token exchange capability. Defaults to an
            :class:`~radio.oauth.exchange.HttpTokenExchanger` bound to the
            listener's redirect URI.
        listener: Redirect listener to use. Defaults to one on
            ``127.0.0.1:8080`` with *timeout*.
        timeout: Seconds to wait for the redirect when no *listener* is
            given. ``None`` waits forever.
        emit: Called with the authorization URL right before the flow
            blocks. Defaults to :func:`announce_authorize_url`.
        state_factory: Source of the per-attempt :class:`FlowState`.

    Example::

        token = LoginFlow(credentials, service, timeout=300).run()
    """

    def __init__(
        self,
        credentials: AppCredentials,
        service: ServiceDescriptor,
        *,
        exchanger: Optional[TokenExchanger] = None,
        listener: Optional[RedirectListener] = None,
        timeout: Optional[float] = None,
        emit: Optional[Callable[[str], None]] = None,
        state_factory: Callable[[], FlowState] = FlowState.generate,
    ) -> None:
        self.credentials = credentials
        self.service = service
        self._exchanger = exchanger
        self._listener = listener if listener is not None else RedirectListener(timeout=timeout)
        self._emit = emit if emit is not None else announce_authorize_url
        self._state_factory = state_factory
        self.stage = FlowStage.START

    def run(self) -> str:
        """Perform the login and return the bearer access token.

        Raises:
            FlowError: If this flow has already been run.
            BindFailure: If the redirect listener cannot bind.
            NoConnectionAccepted: If no redirect arrives in time.
            MalformedRedirectRequest: If the redirect cannot be parsed.
            MissingQueryParameter: If ``code`` or ``state`` is absent.
            AuthorizationDenied: If the user or provider refused access.
            StateMismatch: If ``state`` differs from the one we sent. No
                token request is made in that case.
            TokenExchangeFailure: If the token endpoint call fails.
        """
        if self.stage is not FlowStage.START:
            raise FlowError("A login flow runs only once; start a new LoginFlow to retry")

        try:
            return self._run()
        except BaseException:
            if self.stage not in _TERMINAL_STAGES:
                self._advance(FlowStage.FAILED)
            raise

    def _run(self) -> str:
        flow_state = self._state_factory()

        with self._listener as listener:
            redirect_uri = listener.redirect_uri
            auth_url = build_authorize_url(
                self.service,
                self.credentials.client_id,
                redirect_uri,
                flow_state.csrf_token,
                flow_state.pkce_challenge,
            )
            self._advance(FlowStage.AWAITING_REDIRECT)
            self._emit(auth_url)
            redirect = listener.accept_one()

        if not states_match(flow_state.csrf_token, redirect.state):
            self._advance(FlowStage.STATE_MISMATCH)
            raise StateMismatch()
        self._advance(FlowStage.STATE_VALID)

        exchanger = self._exchanger
        if exchanger is None:
            exchanger = HttpTokenExchanger(self.service, self.credentials, redirect_uri)

        self._advance(FlowStage.EXCHANGING)
        try:
            token = exchanger.exchange(redirect.code, flow_state.pkce_verifier)
        except TokenExchangeFailure:
            self._advance(FlowStage.EXCHANGE_FAILED)
            raise

        self._advance(FlowStage.SUCCESS)
        return token

    def _advance(self, stage: FlowStage) -> None:
        logger.debug("Login flow: %s -> %s", self.stage.value, stage.value)
        self.stage = stage


def login(
    credentials: AppCredentials,
    service: ServiceDescriptor,
    **kwargs: Any,
) -> str:
    """Run a fresh :class:`LoginFlow` and return the access token.

    Keyword arguments are passed to :class:`LoginFlow`.
    """
    return LoginFlow(credentials, service, **kwargs).run()
