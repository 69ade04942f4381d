"""TimesheetPage - extracts scheduled shifts from the SAM month calendar.

The month view at etmTnsMonth.jsp renders one calendar cell per day.

DOM structure:
  td.calendarCellRegular...            one per day (class names vary by suffix)
    table[title="Details van 14-03-2024"]
      ... p > span "09:00"
      ... p > span "17:00"

The cell for today is rendered as td.calendarCellRegularCurrent and, once it
holds already-registered data (.calCellData), is excluded so the day isn't
parsed twice.
"""

from datetime import datetime, tzinfo

from bs4 import BeautifulSoup

from sam_timesheet.errors import ParseError
from sam_timesheet.logging import get_logger
from sam_timesheet.models import Shift

log = get_logger(__name__)

DATE_TIME_FORMATS = ("%d-%m-%Y %H:%M", "%d-%m-%Y %H:%M:%S")


class TimesheetPage:
    """Month calendar page at /wrkbrn_jct/etm/time/timesheet/etmTnsMonth.jsp."""

    URL_PATH = "wrkbrn_jct/etm/time/timesheet/etmTnsMonth.jsp"
    MONTH_PARAM = "NEW_MONTH_YEAR"

    DAY_TABLE = (
        "td[class*=calendarCellRegular]"
        ":not(.calendarCellRegularCurrent:has(.calCellData)) table"
    )
    TIME_SPAN = "p span"
    TITLE_PREFIX = "Details van "

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    def parse(self, html: str) -> list[Shift]:
        """Extract one Shift per day table, in document order.

        Raises:
            ParseError: If a day table lacks a title, a start/end pair or
                parsable date/time text.
        """
        soup = BeautifulSoup(html, "html.parser")
        shifts = [self._parse_day(table) for table in soup.select(self.DAY_TABLE)]
        log.debug("timesheet_parsed", shifts=len(shifts))
        return shifts

    def _parse_day(self, table) -> Shift:
        title = table.get("title")
        if not title:
            raise ParseError("Calendar day table has no title attribute")
        day = strip_title_prefix(title)

        times = [_first_text(span) for span in table.select(self.TIME_SPAN)]
        if len(times) < 2:
            raise ParseError(f"Expected start and end time for {day!r}, found {times!r}")

        return Shift(
            start=self._timestamp(day, times[0]),
            end=self._timestamp(day, times[1]),
        )

    def _timestamp(self, day: str, time_of_day: str) -> datetime:
        text = f"{day} {time_of_day}"
        for fmt in DATE_TIME_FORMATS:
            try:
                moment = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return moment.replace(tzinfo=self.tz) if self.tz else moment
        raise ParseError(f"Unparsable shift timestamp {text!r}")


def strip_title_prefix(title: str) -> str:
    """'Details van 14-03-2024' -> '14-03-2024'; other titles are only trimmed."""
    title = title.strip()
    if title.startswith(TimesheetPage.TITLE_PREFIX):
        title = title[len(TimesheetPage.TITLE_PREFIX):]
    return title.strip()


def _first_text(span) -> str:
    return next(span.strings, "").strip()


def parse_shifts(html: str, tz: tzinfo | None = None) -> list[Shift]:
    """Parse a month calendar into shifts. An empty month gives []."""
    return TimesheetPage(tz).parse(html)
