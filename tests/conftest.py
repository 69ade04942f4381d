import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from sam_timesheet.logging import setup_logging
from sam_timesheet.pages.timesheet import TimesheetPage
from sam_timesheet.retriever import TimesheetRetriever
from sam_timesheet.session import SessionManager
from sam_timesheet.store import JsonStore
from sam_timesheet.utils import create_client

BASE_URL = "https://sam.example.test/"
PRE_AUTH_COOKIE = "JSESSIONID=pre-auth"
TOKEN = "PD-H-SESSION-ID=auth-token"
NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)

MONTH_HTML = """
<html><body>
<table class="calendar">
  <tr>
    <td class="calendarCellRegularPast">
      <table title="Details van 14-03-2024">
        <tr><td><p><span>09:00</span></p><p><span>17:00</span></p></td></tr>
      </table>
    </td>
    <td class="calendarCellRegular">
      <table title="Details van 15-03-2024">
        <tr><td><p><span>10:00</span></p><p><span>18:30</span></p></td></tr>
      </table>
    </td>
    <td class="calendarCellOtherMonth">
      <table title="Details van 01-04-2024">
        <tr><td><p><span>07:00</span></p><p><span>11:00</span></p></td></tr>
      </table>
    </td>
  </tr>
</table>
</body></html>
"""

EMPTY_MONTH_HTML = """
<html><body>
<table class="calendar">
  <tr><td class="calendarCellRegular"><div class="dayNumber">1</div></td></tr>
</table>
</body></html>
"""


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakePortal:
    """Stands in for the SAM portal behind httpx.MockTransport.

    ``timesheet_bodies`` is consumed front to back; the last body repeats.
    A str body is sent as HTML text, anything else as JSON.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.login_status = 302
        self.pre_auth_cookie: str | None = PRE_AUTH_COOKIE
        self.timesheet_status = 200
        self.timesheet_bodies: list = [MONTH_HTML]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("pkmslogin.form"):
            if self.login_status == 302:
                return httpx.Response(
                    302,
                    headers=[
                        ("location", "/wrkbrn_jct/etm/time/timesheet/etmTnsMonth.jsp"),
                        ("set-cookie", f"{TOKEN}; Path=/; Secure; HttpOnly"),
                    ],
                )
            return httpx.Response(self.login_status, text="<html><form>login</form></html>")

        if path.endswith(TimesheetPage.URL_PATH):
            if TimesheetPage.MONTH_PARAM not in request.url.params:
                headers = []
                if self.pre_auth_cookie:
                    headers.append(("set-cookie", f"{self.pre_auth_cookie}; Path=/"))
                return httpx.Response(200, headers=headers, text="<html>login</html>")

            if self.timesheet_status != 200:
                return httpx.Response(self.timesheet_status, text="nope")
            body = self.timesheet_bodies[0]
            if len(self.timesheet_bodies) > 1:
                self.timesheet_bodies.pop(0)
            if not isinstance(body, str):
                return httpx.Response(
                    200,
                    content=json.dumps(body).encode(),
                    headers={"content-type": "application/json"},
                )
            return httpx.Response(
                200, text=body, headers={"content-type": "text/html; charset=utf-8"}
            )

        return httpx.Response(404)

    def count(self, method: str, with_month: bool | None = None) -> int:
        total = 0
        for request in self.requests:
            if request.method != method:
                continue
            if with_month is not None and (
                (TimesheetPage.MONTH_PARAM in request.url.params) != with_month
            ):
                continue
            total += 1
        return total


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def portal():
    return FakePortal()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "store.json"


@pytest.fixture
def store(store_path):
    return JsonStore(store_path)


@pytest.fixture
def client(portal):
    return create_client(BASE_URL, transport=httpx.MockTransport(portal.handler))


@pytest.fixture
def session(store, client, clock):
    return SessionManager(store, client, "jan", "s3cret&more", clock=clock)


@pytest.fixture
def retriever(session):
    return TimesheetRetriever(session)


@pytest.fixture
def logged_in(store, clock):
    """Persist a token that is valid for the next hour."""
    store.data.accept_token(TOKEN, clock(), timedelta(hours=1))
    store.write()
    return store


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    setup_logging(log_level="WARNING")
