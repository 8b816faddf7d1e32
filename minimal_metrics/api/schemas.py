"""
HTTP response models for the stats and health endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    details: list[str] | None = None


class HealthResponse(BaseModel):
    status: str
    timestamp: int
    uptime: float


class RealtimeResponse(BaseModel):
    active_visitors: int
    timestamp: int


class PageRow(BaseModel):
    page_url: str
    views: int
    unique_visitors: int


class ReferrerRow(BaseModel):
    referrer: str
    visits: int
    unique_visitors: int


class CountryRow(BaseModel):
    country: str
    visits: int
    unique_visitors: int


class CampaignRow(BaseModel):
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    visits: int
    unique_visitors: int


class Comparison(BaseModel):
    page_views_change: float
    visitors_change: float


class OverviewResponse(BaseModel):
    period: str
    page_views: int
    unique_visitors: int
    pages_per_visitor: float
    top_pages: list[PageRow]
    top_referrers: list[ReferrerRow]
    comparison: Comparison | None = None
    timestamp: int


class PagesResponse(BaseModel):
    period: str
    pages: list[PageRow]
    timestamp: int


class ReferrersResponse(BaseModel):
    period: str
    referrers: list[ReferrerRow]
    timestamp: int


class CountriesResponse(BaseModel):
    period: str
    countries: list[CountryRow]
    timestamp: int


class CampaignsResponse(BaseModel):
    period: str
    campaigns: list[CampaignRow]
    timestamp: int


class HourBucket(BaseModel):
    hour: str
    page_views: int
    unique_visitors: int


class HourlyResponse(BaseModel):
    date: str
    hours: list[HourBucket]
    timestamp: int


class DayBucket(BaseModel):
    date: str
    page_views: int
    unique_visitors: int


class DailyResponse(BaseModel):
    days: list[DayBucket]
    timestamp: int
