from datetime import UTC, date, datetime, timedelta


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()

    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_ms(self) -> int:
        return int(self.now_utc().timestamp() * 1000)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given instant; used by tests and one-shot CLI runs."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    def advance_ms(self, ms: int) -> None:
        self._instant = self._instant + timedelta(milliseconds=ms)

    def now(self) -> datetime:
        return self._instant.astimezone()

    def now_utc(self) -> datetime:
        return self._instant.astimezone(UTC)

    def now_ms(self) -> int:
        return int(self._instant.timestamp() * 1000)

    def today(self) -> date:
        return self.now().date()
