"""Pydantic models for the persisted store record and parsed shifts.

All data structures use Pydantic v2 for validation, serialization, and type safety.
The JSON layout of StoreRecord is the on-disk format of store.json.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the epoch, as stored in ``expiry``."""
    return int(moment.timestamp() * 1000)


class Shift(BaseModel):
    """A single scheduled work interval from the calendar view."""

    start: datetime
    end: datetime


class Month(BaseModel):
    """Parsed shifts of one calendar month and when they were fetched."""

    updated: datetime
    parsed: list[Shift] = Field(default_factory=list)


class StoreRecord(BaseModel):
    """Session state and month cache, persisted together.

    Fields are mutated only through the methods below. Absent fields load as
    defaults; there is no schema version.
    """

    token: str | None = None
    expiry: int = 0  # epoch ms, 0 = already expired
    error: bool = False  # sticky: set on rejected credentials
    created: str | None = None  # diagnostic only
    shifts: dict[str, Month] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}

    # -- session ------------------------------------------------------------

    def token_expired(self, now: datetime) -> bool:
        return self.token is None or to_epoch_ms(now) > self.expiry

    def accept_token(self, token: str, now: datetime, ttl: timedelta) -> None:
        """Store a freshly harvested token and open its validity window."""
        self.token = token
        self.created = now.strftime(CREATED_FORMAT)
        self.extend_expiry(now, ttl)

    def extend_expiry(self, now: datetime, ttl: timedelta) -> None:
        self.expiry = to_epoch_ms(now + ttl)

    def flag_credentials_rejected(self) -> None:
        self.error = True

    def clear_error(self) -> None:
        """Operator reset of the sticky flag. Never called by the retriever."""
        self.error = False

    # -- month cache --------------------------------------------------------

    def cached_month(self, key: str) -> Month | None:
        return self.shifts.get(key)

    def store_month(self, key: str, month: Month) -> None:
        self.shifts[key] = month
