"""
Contract tests for the SQLite storage adapter.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from datetime import date

from conftest import NOW, to_ms

from minimal_metrics.adapters.sqlite_db import SQLiteAggregateRepo, SQLiteEventRepo
from minimal_metrics.core.entities import DailyAggregate, Event, HourlyAggregate

T0 = to_ms(NOW)


def _fp(n: int) -> str:
    return f"{n:016x}"


class TestEvents:
    """Raw event writes and range queries."""

    def test_insert_persists_all_columns(
        self, event_repo: SQLiteEventRepo, db_path: str, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(
            make_event(
                page_path="/a",
                referrer_label="Google",
                country="Germany",
                screen_size="1920x1080",
                timezone="Europe/Berlin",
                event_name="signup",
                event_properties={"plan": "pro"},
                campaign_source="news",
                campaign_medium="email",
                campaign_name="launch",
                campaign_term="t",
                campaign_content="c",
            )
        )

        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        row = conn.execute("SELECT * FROM events").fetchone()
        conn.close()

        assert row["page_url"] == "/a"
        assert row["session_hash"] == "a" * 16
        assert json.loads(row["event_props"]) == {"plan": "pro"}
        assert (row["utm_source"], row["utm_medium"], row["utm_campaign"]) == (
            "news",
            "email",
            "launch",
        )
        assert (row["utm_term"], row["utm_content"]) == ("t", "c")

    def test_empty_range_totals(self, event_repo: SQLiteEventRepo) -> None:
        assert event_repo.page_view_totals(T0, T0 + 1000) == {
            "page_views": 0,
            "unique_visitors": 0,
        }

    def test_top_pages_round_trip(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        """N events on one path report exactly N views."""
        for i in range(7):
            event_repo.insert_event(
                make_event(timestamp=T0 + i, page_path="/shared", visitor_fingerprint=_fp(i % 3))
            )

        pages = event_repo.top_pages(T0, T0 + 1000)
        assert pages == [{"page_url": "/shared", "views": 7, "unique_visitors": 3}]

    def test_custom_events_excluded_from_pageviews(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(event_name="signup"))
        event_repo.insert_event(make_event())
        assert event_repo.page_view_totals(T0, T0)["page_views"] == 1

    def test_range_is_inclusive(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(timestamp=T0))
        event_repo.insert_event(make_event(timestamp=T0 + 1000))
        event_repo.insert_event(make_event(timestamp=T0 + 1001))
        assert event_repo.page_view_totals(T0, T0 + 1000)["page_views"] == 2

    def test_top_n_ties_go_to_first_seen(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        for page in ("/b", "/a", "/a", "/b", "/c"):
            event_repo.insert_event(make_event(page_path=page))

        pages = event_repo.top_pages(T0, T0, limit=2)
        assert [p["page_url"] for p in pages] == ["/b", "/a"]

    def test_top_referrers_direct_label(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event())
        event_repo.insert_event(make_event(referrer_label="Google"))
        event_repo.insert_event(make_event(referrer_label="Google"))

        referrers = event_repo.top_referrers(T0, T0)
        assert referrers[0]["referrer"] == "Google"
        assert referrers[1] == {"referrer": "Direct", "visits": 1, "unique_visitors": 1}

    def test_top_countries_skips_unknown(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(country="France"))
        event_repo.insert_event(make_event(country=None))
        assert [c["country"] for c in event_repo.top_countries(T0, T0)] == ["France"]

    def test_top_campaigns(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(campaign_source="news", campaign_name="launch"))
        event_repo.insert_event(make_event(campaign_source="news", campaign_name="launch"))
        event_repo.insert_event(make_event())

        campaigns = event_repo.top_campaigns(T0, T0)
        assert campaigns == [
            {
                "utm_source": "news",
                "utm_medium": None,
                "utm_campaign": "launch",
                "visits": 2,
                "unique_visitors": 1,
            }
        ]

    def test_delete_events_before(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(timestamp=T0 - 1))
        event_repo.insert_event(make_event(timestamp=T0))
        assert event_repo.delete_events_before(T0) == 1
        assert event_repo.count_events() == 1


class TestComparison:
    def test_previous_zero_reports_100(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(timestamp=T0 + 500))
        result = event_repo.period_comparison(T0, T0 + 1000)
        assert result["current"]["page_views"] == 1
        assert result["previous"]["page_views"] == 0
        assert result["change"]["page_views"] == 100.0

    def test_previous_period_is_adjacent_and_same_length(
        self, event_repo: SQLiteEventRepo, make_event: Callable[..., Event]
    ) -> None:
        event_repo.insert_event(make_event(timestamp=T0 - 1, visitor_fingerprint=_fp(1)))
        event_repo.insert_event(make_event(timestamp=T0 - 1001, visitor_fingerprint=_fp(2)))
        event_repo.insert_event(make_event(timestamp=T0 - 1002, visitor_fingerprint=_fp(3)))
        event_repo.insert_event(make_event(timestamp=T0 + 10, visitor_fingerprint=_fp(1)))

        result = event_repo.period_comparison(T0, T0 + 1000)
        assert result["previous"]["page_views"] == 2
        assert result["change"]["page_views"] == -50.0

    def test_both_zero(self, event_repo: SQLiteEventRepo) -> None:
        result = event_repo.period_comparison(T0, T0 + 1000)
        assert result["change"] == {"page_views": 0.0, "unique_visitors": 0.0}


class TestActiveVisitors:
    def test_upsert_increments_page_count(self, event_repo: SQLiteEventRepo) -> None:
        event_repo.upsert_active_visitor(_fp(1), "/a", "Germany")
        event_repo.upsert_active_visitor(_fp(1), "/b", "Germany")

        row = event_repo.get_active_visitor(_fp(1))
        assert row is not None
        assert row.page_count == 2
        assert row.last_page == "/b"

    def test_count_uses_five_minute_window(self, event_repo: SQLiteEventRepo) -> None:
        now_s = T0 // 1000
        event_repo.upsert_active_visitor(_fp(1), "/", None, last_seen=now_s - 299)
        event_repo.upsert_active_visitor(_fp(2), "/", None, last_seen=now_s - 300)
        assert event_repo.count_active_visitors(now_s) == 1

    def test_stale_rows_pruned_on_new_visitor(self, event_repo: SQLiteEventRepo) -> None:
        now_s = T0 // 1000
        event_repo.upsert_active_visitor(_fp(1), "/", None, last_seen=now_s - 1000)
        event_repo.upsert_active_visitor(_fp(2), "/", None, last_seen=now_s)
        assert event_repo.get_active_visitor(_fp(1)) is None

    def test_default_last_seen_from_clock(self, event_repo: SQLiteEventRepo) -> None:
        event_repo.upsert_active_visitor(_fp(1), "/", None)
        row = event_repo.get_active_visitor(_fp(1))
        assert row is not None
        assert row.last_seen == T0 // 1000


class TestHourlyBreakdown:
    def test_zero_filled_24_buckets(self, event_repo: SQLiteEventRepo) -> None:
        hours = event_repo.hourly_breakdown(date(2026, 10, 18))
        assert [h["hour"] for h in hours] == [f"{h:02d}" for h in range(24)]
        assert all(h["page_views"] == 0 for h in hours)

    def test_merges_raw_and_rollups(
        self,
        event_repo: SQLiteEventRepo,
        aggregate_repo: SQLiteAggregateRepo,
        make_event: Callable[..., Event],
    ) -> None:
        event_repo.insert_event(make_event(timestamp=T0))  # 12:30 UTC
        aggregate_repo.upsert_hourly(
            HourlyAggregate(hour="2026-10-18 03:00:00", page_views=9, unique_visitors=4)
        )

        hours = {h["hour"]: h for h in event_repo.hourly_breakdown(date(2026, 10, 18))}
        assert hours["12"]["page_views"] == 1
        assert hours["03"] == {"hour": "03", "page_views": 9, "unique_visitors": 4}


class TestAggregates:
    def test_hourly_upsert_overwrites(self, aggregate_repo: SQLiteAggregateRepo) -> None:
        key = "2026-10-18 10:00:00"
        aggregate_repo.upsert_hourly(HourlyAggregate(hour=key, page_views=5, unique_visitors=2))
        aggregate_repo.upsert_hourly(HourlyAggregate(hour=key, page_views=3, unique_visitors=1))
        stored = aggregate_repo.get_hourly(key)
        assert stored == HourlyAggregate(hour=key, page_views=3, unique_visitors=1)

    def test_daily_unique_visitors_never_shrink(
        self, aggregate_repo: SQLiteAggregateRepo
    ) -> None:
        aggregate_repo.upsert_daily(
            DailyAggregate(date="2026-10-18", page_views=5, unique_visitors=4)
        )
        aggregate_repo.upsert_daily(
            DailyAggregate(date="2026-10-18", page_views=6, unique_visitors=2)
        )
        stored = aggregate_repo.get_daily("2026-10-18")
        assert stored == DailyAggregate(date="2026-10-18", page_views=6, unique_visitors=4)

    def test_list_and_delete(self, aggregate_repo: SQLiteAggregateRepo) -> None:
        for day in ("2026-10-16", "2026-10-17", "2026-10-18"):
            aggregate_repo.upsert_daily(DailyAggregate(date=day, page_views=1, unique_visitors=1))

        assert [d.date for d in aggregate_repo.list_daily("2026-10-17", "2026-10-18")] == [
            "2026-10-17",
            "2026-10-18",
        ]
        assert aggregate_repo.delete_daily_before("2026-10-17") == 1
        assert aggregate_repo.get_daily("2026-10-16") is None
