from datetime import date, datetime
from typing import Protocol


class ClockPort(Protocol):
    def now(self) -> datetime:
        """Return current server-local time."""
        ...

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...

    def now_ms(self) -> int:
        """Return milliseconds since the Unix epoch."""
        ...

    def today(self) -> date:
        """Return the server-local calendar date."""
        ...
