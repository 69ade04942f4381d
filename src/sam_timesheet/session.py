"""Session management for SAM portal authentication.

SessionManager owns the session token stored in the JSON store: it decides
when the token is stale, runs the form-login handshake, slides the expiry
window after successful requests and maintains the sticky error flag that
blocks further logins after the portal rejected the credentials.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

import httpx

from sam_timesheet.errors import AlreadyFlagged, CredentialsRejected
from sam_timesheet.logging import get_logger
from sam_timesheet.pages.timesheet import TimesheetPage
from sam_timesheet.store import JsonStore
from sam_timesheet.utils import first_cookie, send, unexpected_status

logger = get_logger(__name__)

LOGIN_PATH = "pkmslogin.form"
DEFAULT_TOKEN_TTL = timedelta(hours=1)


class TokenState(str, Enum):
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"
    ERROR_LOCKED = "error_locked"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Manages the portal session token persisted in the store.

    The portal exposes no expiry, so a token is considered valid for
    ``token_ttl`` after login or after the last successful data request.
    """

    def __init__(
        self,
        store: JsonStore,
        client: httpx.AsyncClient,
        username: str,
        password: str,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize SessionManager.

        Args:
            store: Store whose record holds token, expiry and error flag.
            client: Portal client (base URL set, redirects disabled).
            username: Portal username.
            password: Portal password.
            token_ttl: Validity window opened by login and each successful request.
            clock: Returns the current time (aware datetime).
        """
        self.store = store
        self.client = client
        self.username = username
        self.password = password
        self.token_ttl = token_ttl
        self.clock = clock

    @property
    def token(self) -> str | None:
        return self.store.data.token

    def state(self) -> TokenState:
        record = self.store.data
        if record.error:
            return TokenState.ERROR_LOCKED
        if record.token is None:
            return TokenState.NO_TOKEN
        if record.token_expired(self.clock()):
            return TokenState.EXPIRED
        return TokenState.VALID

    def needs_login(self) -> bool:
        return self.state() in (TokenState.NO_TOKEN, TokenState.EXPIRED)

    def check_not_flagged(self) -> None:
        """Raise AlreadyFlagged if a previous login was rejected."""
        if self.store.data.error:
            logger.warning("login_blocked", reason="error_flag_set", store=str(self.store.path))
            raise AlreadyFlagged(
                f"Password was incorrect last time, clear the error flag in {self.store.path}"
            )

    async def ensure_login(self) -> None:
        """Log in if the token is missing or expired."""
        self.check_not_flagged()
        if not self.needs_login():
            logger.debug("session_check", result=TokenState.VALID.value)
            return
        logger.info("session_check", result=self.state().value)
        await self.login()

    async def login(self) -> None:
        """Run the login handshake and persist the new token.

        Raises:
            AlreadyFlagged: If the sticky error flag is set (no request is made).
            CredentialsRejected: If the portal re-renders the login form.
            TransportError: On network failure or an unexpected status.
            ProtocolError: If the portal sets no cookie.
        """
        self.check_not_flagged()
        logger.info("authentication_started", username=self.username)

        pre_auth = await self._pre_auth_cookie()

        response = await send(
            self.client,
            "POST",
            LOGIN_PATH,
            data={
                "username": self.username,
                "password": self.password,
                "login-form-type": "pwd",
            },
            headers={"Cookie": pre_auth},
        )

        if response.status_code == 200:
            # Rejected credentials re-render the login form instead of redirecting
            self.store.data.flag_credentials_rejected()
            self.store.write()
            logger.error("authentication_failed", reason="credentials_rejected")
            raise CredentialsRejected("Password login failed")
        if response.status_code != 302:
            raise unexpected_status(response)

        self.store.data.accept_token(first_cookie(response), self.clock(), self.token_ttl)
        self.store.write()
        logger.info("authentication_succeeded", created=self.store.data.created)

    async def _pre_auth_cookie(self) -> str:
        # Start from an empty jar so the handshake really is unauthenticated
        self.client.cookies.clear()
        response = await send(self.client, "GET", TimesheetPage.URL_PATH)
        if response.status_code >= 400:
            raise unexpected_status(response)
        return first_cookie(response)

    def refresh(self) -> None:
        """Slide the expiry window after a successful authenticated request."""
        self.store.data.extend_expiry(self.clock(), self.token_ttl)
        self.store.write()
        logger.debug("session_refreshed", expiry=self.store.data.expiry)
