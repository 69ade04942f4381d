"""SAM portal timesheet client.

Logs in to the SAM timesheet portal, scrapes the month calendar into shifts
and caches parsed months in a JSON store.
"""

from sam_timesheet.errors import (
    AlreadyFlagged,
    CredentialsRejected,
    ParseError,
    ProtocolError,
    TimesheetError,
    TransportError,
)
from sam_timesheet.models import Month, Shift
from sam_timesheet.pages.timesheet import TimesheetPage, parse_shifts
from sam_timesheet.retriever import TimesheetRetriever
from sam_timesheet.session import SessionManager, TokenState

__all__ = [
    "TimesheetRetriever",
    "SessionManager",
    "TokenState",
    "TimesheetPage",
    "parse_shifts",
    "Month",
    "Shift",
    "TimesheetError",
    "TransportError",
    "CredentialsRejected",
    "AlreadyFlagged",
    "ProtocolError",
    "ParseError",
]
