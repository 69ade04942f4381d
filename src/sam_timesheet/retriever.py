"""TimesheetRetriever - cache-aware retrieval of one month of shifts.

Serves a month from the store when the cache policy allows it, otherwise
fetches the calendar with the session token. When the portal drops the
session mid-flow (a JSON ``{"operation": "login"}`` body instead of HTML) the
retriever logs in again and retries the request, at most RELOGIN_RETRIES times.
"""

from datetime import date, datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from sam_timesheet.cache import DEFAULT_CACHE_EXPIRY, is_fresh, month_key
from sam_timesheet.config import SamConfig
from sam_timesheet.errors import ProtocolError
from sam_timesheet.logging import get_logger
from sam_timesheet.models import Month
from sam_timesheet.pages.timesheet import TimesheetPage
from sam_timesheet.session import SessionManager
from sam_timesheet.store import JsonStore
from sam_timesheet.utils import create_client, send, unexpected_status

logger = get_logger(__name__)

RELOGIN_RETRIES = 1


class SessionInvalidated(Exception):
    """Portal answered a data request with its login-required payload."""


class TimesheetRetriever:
    """Returns parsed months, from cache or from the portal."""

    def __init__(
        self,
        session: SessionManager,
        page: TimesheetPage | None = None,
        cache_expiry: timedelta = DEFAULT_CACHE_EXPIRY,
    ) -> None:
        self.session = session
        self.store: JsonStore = session.store
        self.client: httpx.AsyncClient = session.client
        self.page = page or TimesheetPage()
        self.cache_expiry = cache_expiry

    @classmethod
    def from_config(
        cls,
        config: SamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "TimesheetRetriever":
        tz = ZoneInfo(config.portal_timezone) if config.portal_timezone else None
        client = create_client(
            config.sam_url, timeout=config.request_timeout, transport=transport
        )
        session = SessionManager(
            JsonStore(config.store_path),
            client,
            config.ah_username,
            config.ah_password,
            token_ttl=timedelta(seconds=config.token_ttl),
            clock=lambda: datetime.now(tz) if tz else datetime.now().astimezone(),
        )
        return cls(
            session,
            page=TimesheetPage(tz),
            cache_expiry=timedelta(seconds=config.timesheet_cache),
        )

    @property
    def clock(self) -> Callable[[], datetime]:
        return self.session.clock

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "TimesheetRetriever":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def get(self, target: date | None = None) -> Month:
        """Return the month containing *target* (default: now).

        Raises:
            AlreadyFlagged: The sticky error flag is set; nothing is requested.
            CredentialsRejected: Login was refused; the flag is now set.
            TransportError: Network failure, timeout or unexpected status.
            ProtocolError: Unknown response shape, or the session was dropped
                again right after a fresh login.
            ParseError: The calendar HTML lacked expected date/time text.
        """
        now = self.clock()
        target = target or now
        self.store.read()

        await self.session.ensure_login()

        key = month_key(target)
        cached = self._fresh_month(key, target, now)
        if cached is not None:
            logger.info("cache_hit", month=key, updated=cached.updated.isoformat())
            return cached

        html = await self._fetch_html(key)
        month = Month(updated=self.clock(), parsed=self.page.parse(html))
        self.store.data.store_month(key, month)
        self.store.write()
        logger.info("timesheet_fetched", month=key, shifts=len(month.parsed))
        return month

    def get_cached(self, target: date | None = None) -> Month | None:
        """Return the cached month if present and fresh. Never makes a request."""
        now = self.clock()
        target = target or now
        self.store.read()

        key = month_key(target)
        cached = self._fresh_month(key, target, now)
        if cached is None:
            logger.info("cache_miss", month=key, cached_only=True)
        return cached

    def _fresh_month(self, key: str, target: date, now: datetime) -> Month | None:
        cached = self.store.data.cached_month(key)
        if cached is not None and is_fresh(cached, target, now, self.cache_expiry):
            return cached
        return None

    async def _fetch_html(self, key: str) -> str:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(RELOGIN_RETRIES + 1),
                retry=retry_if_exception_type(SessionInvalidated),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        await self.session.login()
                    html = await self._request_timesheet(key)
        except SessionInvalidated as e:
            raise ProtocolError(
                "Portal asked for login again right after a fresh login"
            ) from e
        return html

    async def _request_timesheet(self, key: str) -> str:
        response = await send(
            self.client,
            "GET",
            TimesheetPage.URL_PATH,
            params={TimesheetPage.MONTH_PARAM: key},
            headers={"Cookie": self.session.token or ""},
        )
        if not response.is_success:
            raise unexpected_status(response)

        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        if isinstance(payload, str):
            # HTML, or a bare JSON string
            self.session.refresh()
            return payload

        if isinstance(payload, dict) and payload.get("operation") == "login":
            logger.warning(
                "session_invalidated",
                month=key,
                expiry=self.store.data.expiry,
            )
            raise SessionInvalidated(key)

        logger.error("unexpected_response", month=key, body=str(payload)[:200])
        raise ProtocolError(f"Unrecognised timesheet response for {key}")
