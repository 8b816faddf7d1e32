"""
SQLite storage adapter.

Owns the raw event log, real-time presence and the hourly/daily rollups.
Every method is synchronous and opens its own connection unless the
repository was handed one by a unit of work; SQLite (WAL + busy timeout)
serializes concurrent writers from the flush timer and the scheduler.

Invariants:
- I1: events are append-only; they are only read or bulk-deleted
- I2: one active_visitors row per fingerprint
- I3: one stats_hourly / stats_daily row per bucket key
- I4: top-N ties go to the row seen first in the window (lowest id)
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date
from typing import Any

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.core.entities import (
    PAGEVIEW,
    ActiveVisitor,
    DailyAggregate,
    Event,
    HourlyAggregate,
)
from minimal_metrics.core.periods import SECOND_MS, day_bounds, percent_change
from minimal_metrics.ports.clock import ClockPort

ACTIVE_WINDOW_SECONDS = 300
BUSY_TIMEOUT_MS = 5000

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_MS / 1000)
    conn.row_factory = dict_factory
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS};")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return connect(self.db_path)

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _fetch_all(self, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            if self._should_close():
                conn.close()

    def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row: dict[str, Any] | None = conn.execute(sql, params).fetchone()
            return row
        finally:
            if self._should_close():
                conn.close()

    def _write(self, sql: str, params: tuple[Any, ...]) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(sql, params)
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Raw Events + Active Visitors
# -----------------------------------------------------------------------------


class SQLiteEventRepo(SQLiteRepoBase):
    """Raw event log, presence table and the read-side queries over them."""

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        clock: ClockPort | None = None,
    ):
        super().__init__(db_path, connection)
        self._clock = clock or SystemClock()

    # --- Writes ---

    def insert_event(self, event: Event) -> int:
        return self._write(
            """
            INSERT INTO events (
                timestamp, page_url, referrer, session_hash,
                country, screen_size, timezone, event_name, event_props,
                utm_source, utm_medium, utm_campaign, utm_term, utm_content
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.timestamp,
                event.page_path,
                event.referrer_label,
                event.visitor_fingerprint,
                event.country,
                event.screen_size,
                event.timezone,
                event.event_name,
                json.dumps(event.event_properties) if event.event_properties else None,
                event.campaign_source,
                event.campaign_medium,
                event.campaign_name,
                event.campaign_term,
                event.campaign_content,
            ),
        )

    def upsert_active_visitor(
        self,
        fingerprint: str,
        page: str,
        country: str | None,
        last_seen: int | None = None,
    ) -> None:
        if last_seen is None:
            last_seen = self._clock.now_ms() // SECOND_MS
        self._write(
            """
            INSERT INTO active_visitors (session_hash, page_url, country, last_seen, page_count)
            VALUES (?, ?, ?, ?, 1)
            ON CONFLICT(session_hash) DO UPDATE SET
                page_url = excluded.page_url,
                country = excluded.country,
                last_seen = excluded.last_seen,
                page_count = page_count + 1
            """,
            (fingerprint, page, country, last_seen),
        )

    def delete_events_before(self, cutoff_ms: int) -> int:
        return self._write("DELETE FROM events WHERE timestamp < ?", (cutoff_ms,))

    # --- Presence ---

    def count_active_visitors(self, now_s: int | None = None) -> int:
        if now_s is None:
            now_s = self._clock.now_ms() // SECOND_MS
        row = self._fetch_one(
            "SELECT COUNT(*) AS count FROM active_visitors WHERE last_seen > ?",
            (now_s - ACTIVE_WINDOW_SECONDS,),
        )
        return row["count"] if row else 0

    def get_active_visitor(self, fingerprint: str) -> ActiveVisitor | None:
        row = self._fetch_one(
            "SELECT * FROM active_visitors WHERE session_hash = ?", (fingerprint,)
        )
        if not row:
            return None
        return ActiveVisitor(
            visitor_fingerprint=row["session_hash"],
            last_page=row["page_url"] or "",
            country=row["country"],
            last_seen=row["last_seen"],
            page_count=row["page_count"],
        )

    # --- Range queries (inclusive [start, end] in ms) ---

    def page_view_totals(self, start: int, end: int) -> dict[str, int]:
        row = self._fetch_one(
            """
            SELECT COUNT(*) AS page_views,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp BETWEEN ? AND ?
              AND event_name = ?
            """,
            (start, end, PAGEVIEW),
        )
        if not row:
            return {"page_views": 0, "unique_visitors": 0}
        return {
            "page_views": row["page_views"] or 0,
            "unique_visitors": row["unique_visitors"] or 0,
        }

    def top_pages(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT page_url,
                   COUNT(*) AS views,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp BETWEEN ? AND ?
              AND event_name = ?
            GROUP BY page_url
            ORDER BY views DESC, MIN(id) ASC
            LIMIT ?
            """,
            (start, end, PAGEVIEW, limit),
        )

    def top_referrers(self, start: int, end: int, limit: int = 10) -> list[dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT COALESCE(referrer, 'Direct') AS referrer,
                   COUNT(*) AS visits,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp BETWEEN ? AND ?
              AND event_name = ?
            GROUP BY COALESCE(referrer, 'Direct')
            ORDER BY visits DESC, MIN(id) ASC
            LIMIT ?
            """,
            (start, end, PAGEVIEW, limit),
        )

    def top_countries(
        self, start: int, end: int, limit: int | None = None
    ) -> list[dict[str, Any]]:
        # LIMIT -1 is unbounded in SQLite
        return self._fetch_all(
            """
            SELECT country,
                   COUNT(*) AS visits,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp BETWEEN ? AND ?
              AND event_name = ?
              AND country IS NOT NULL
            GROUP BY country
            ORDER BY visits DESC, MIN(id) ASC
            LIMIT ?
            """,
            (start, end, PAGEVIEW, -1 if limit is None else limit),
        )

    def top_campaigns(self, start: int, end: int, limit: int = 50) -> list[dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT utm_source, utm_medium, utm_campaign,
                   COUNT(*) AS visits,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp BETWEEN ? AND ?
              AND event_name = ?
              AND (utm_source IS NOT NULL
                   OR utm_medium IS NOT NULL
                   OR utm_campaign IS NOT NULL)
            GROUP BY utm_source, utm_medium, utm_campaign
            ORDER BY visits DESC, MIN(id) ASC
            LIMIT ?
            """,
            (start, end, PAGEVIEW, limit),
        )

    def period_comparison(self, start: int, end: int) -> dict[str, Any]:
        """Totals for [start, end] against the immediately preceding period."""
        duration = end - start
        current = self.page_view_totals(start, end)
        previous = self.page_view_totals(start - duration - 1, start - 1)
        return {
            "current": current,
            "previous": previous,
            "change": {
                "page_views": percent_change(current["page_views"], previous["page_views"]),
                "unique_visitors": percent_change(
                    current["unique_visitors"], previous["unique_visitors"]
                ),
            },
        }

    def hourly_breakdown(self, day: date) -> list[dict[str, Any]]:
        """
        24 zero-filled UTC hour buckets for a calendar day.

        Raw events and stored hourly rollups are merged per hour, taking the
        larger count, so days already purged from raw storage still report.
        """
        start, end = day_bounds(day)
        raw = self._fetch_all(
            """
            SELECT strftime('%H', timestamp / 1000, 'unixepoch') AS hour,
                   COUNT(*) AS page_views,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp >= ? AND timestamp < ?
              AND event_name = ?
            GROUP BY hour
            """,
            (start, end, PAGEVIEW),
        )
        rolled = self._fetch_all(
            """
            SELECT substr(hour, 12, 2) AS hour, page_views, unique_visitors
            FROM stats_hourly
            WHERE substr(hour, 1, 10) = ?
            """,
            (day.isoformat(),),
        )

        buckets = {
            f"{h:02d}": {"hour": f"{h:02d}", "page_views": 0, "unique_visitors": 0}
            for h in range(24)
        }
        for row in (*raw, *rolled):
            bucket = buckets.get(row["hour"])
            if bucket is None:
                continue
            bucket["page_views"] = max(bucket["page_views"], row["page_views"])
            bucket["unique_visitors"] = max(bucket["unique_visitors"], row["unique_visitors"])
        return list(buckets.values())

    # --- Aggregation source ---

    def hourly_buckets(self, window_start: int, select_before: int) -> list[HourlyAggregate]:
        """Pageview counts per UTC hour for raw events in [window_start, select_before)."""
        rows = self._fetch_all(
            """
            SELECT strftime('%Y-%m-%d %H:00:00', timestamp / 1000, 'unixepoch') AS hour,
                   COUNT(*) AS page_views,
                   COUNT(DISTINCT session_hash) AS unique_visitors
            FROM events
            WHERE timestamp >= ? AND timestamp < ?
              AND event_name = ?
            GROUP BY hour
            ORDER BY hour
            """,
            (window_start, select_before, PAGEVIEW),
        )
        return [HourlyAggregate(**row) for row in rows]

    def distinct_visitors_on(self, day: date, window_start: int, select_before: int) -> int:
        """Distinct fingerprints with a pageview on a UTC day, inside the window."""
        start, end = day_bounds(day)
        row = self._fetch_one(
            """
            SELECT COUNT(DISTINCT session_hash) AS visitors
            FROM events
            WHERE timestamp >= ? AND timestamp < ?
              AND event_name = ?
            """,
            (max(start, window_start), min(end, select_before), PAGEVIEW),
        )
        return row["visitors"] if row else 0

    def count_events(self) -> int:
        row = self._fetch_one("SELECT COUNT(*) AS count FROM events", ())
        return row["count"] if row else 0


# -----------------------------------------------------------------------------
# Hourly / Daily Rollups
# -----------------------------------------------------------------------------


class SQLiteAggregateRepo(SQLiteRepoBase):
    """Keyed rollup rows; writes are idempotent overwrites."""

    def upsert_hourly(self, aggregate: HourlyAggregate) -> None:
        self._write(
            """
            INSERT INTO stats_hourly (hour, page_views, unique_visitors)
            VALUES (?, ?, ?)
            ON CONFLICT(hour) DO UPDATE SET
                page_views = excluded.page_views,
                unique_visitors = excluded.unique_visitors
            """,
            (aggregate.hour, aggregate.page_views, aggregate.unique_visitors),
        )

    def sum_hourly_page_views(self, day: date) -> int:
        row = self._fetch_one(
            """
            SELECT COALESCE(SUM(page_views), 0) AS page_views
            FROM stats_hourly
            WHERE substr(hour, 1, 10) = ?
            """,
            (day.isoformat(),),
        )
        return row["page_views"] if row else 0

    def upsert_daily(self, aggregate: DailyAggregate) -> None:
        """Page views are overwritten; unique visitors only ever grow."""
        self._write(
            """
            INSERT INTO stats_daily (date, page_views, unique_visitors)
            VALUES (?, ?, ?)
            ON CONFLICT(date) DO UPDATE SET
                page_views = excluded.page_views,
                unique_visitors = MAX(stats_daily.unique_visitors, excluded.unique_visitors)
            """,
            (aggregate.date, aggregate.page_views, aggregate.unique_visitors),
        )

    def get_hourly(self, hour: str) -> HourlyAggregate | None:
        row = self._fetch_one("SELECT * FROM stats_hourly WHERE hour = ?", (hour,))
        return HourlyAggregate(**row) if row else None

    def get_daily(self, day: str) -> DailyAggregate | None:
        row = self._fetch_one("SELECT * FROM stats_daily WHERE date = ?", (day,))
        return DailyAggregate(**row) if row else None

    def list_daily(self, start_date: str, end_date: str) -> list[DailyAggregate]:
        rows = self._fetch_all(
            "SELECT * FROM stats_daily WHERE date BETWEEN ? AND ? ORDER BY date",
            (start_date, end_date),
        )
        return [DailyAggregate(**row) for row in rows]

    def delete_hourly_before(self, hour: str) -> int:
        return self._write("DELETE FROM stats_hourly WHERE hour < ?", (hour,))

    def delete_daily_before(self, day: str) -> int:
        return self._write("DELETE FROM stats_daily WHERE date < ?", (day,))


# -----------------------------------------------------------------------------
# Unit of Work
# -----------------------------------------------------------------------------


class SQLiteUnitOfWork:
    """
    SQLite Unit of Work implementation.

    Repositories obtained from a unit of work share one connection, so an
    aggregation cycle commits or rolls back as a whole.
    """

    def __init__(self, db_path: str, clock: ClockPort | None = None):
        self.db_path = db_path
        self._clock = clock
        self._conn: sqlite3.Connection | None = None

        # Lazy-initialized repositories
        self._events: SQLiteEventRepo | None = None
        self._aggregates: SQLiteAggregateRepo | None = None

    def __enter__(self) -> SQLiteUnitOfWork:
        self._conn = connect(self.db_path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_type is not None:
            self.rollback()
        if self._conn:
            self._conn.close()
            self._conn = None
        self._events = None
        self._aggregates = None

    def commit(self) -> None:
        if self._conn:
            self._conn.commit()

    def rollback(self) -> None:
        if self._conn:
            self._conn.rollback()

    @property
    def events(self) -> SQLiteEventRepo:
        if self._events is None:
            self._events = SQLiteEventRepo(self.db_path, self._conn, self._clock)
        return self._events

    @property
    def aggregates(self) -> SQLiteAggregateRepo:
        if self._aggregates is None:
            self._aggregates = SQLiteAggregateRepo(self.db_path, self._conn)
        return self._aggregates
