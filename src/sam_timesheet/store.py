"""JSON file store for the session token and month cache."""

from pathlib import Path

from sam_timesheet.logging import get_logger
from sam_timesheet.models import StoreRecord

logger = get_logger(__name__)


class JsonStore:
    """Loads and saves a StoreRecord as a single JSON document.

    ``data`` is the in-memory record between ``read()`` and ``write()``.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.data = StoreRecord()

    def read(self) -> StoreRecord:
        """Reload the record from disk. A missing file yields defaults."""
        if not self.path.exists():
            logger.debug("store_read", path=str(self.path), result="missing")
            self.data = StoreRecord()
            return self.data

        text = self.path.read_text(encoding="utf-8")
        self.data = StoreRecord.model_validate_json(text) if text.strip() else StoreRecord()
        logger.debug("store_read", path=str(self.path), months=len(self.data.shifts))
        return self.data

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.data.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("store_written", path=str(self.path))
