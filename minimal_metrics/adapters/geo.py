"""
Caller address and coarse country from trusted proxy headers.

No geolocation database is consulted: the country comes from a CDN or
reverse-proxy header when present, otherwise from a local/private/unknown
classification of the caller address.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

LOCAL = "Local"
PRIVATE_NETWORK = "Private Network"
UNKNOWN = "Unknown"

COUNTRY_NAMES: dict[str, str] = {
    "US": "United States",
    "GB": "United Kingdom",
    "DE": "Germany",
    "FR": "France",
    "CA": "Canada",
    "AU": "Australia",
    "JP": "Japan",
    "CN": "China",
    "IN": "India",
    "BR": "Brazil",
    "MX": "Mexico",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "PL": "Poland",
    "RU": "Russia",
    "KR": "South Korea",
    "SG": "Singapore",
    "NZ": "New Zealand",
    "IE": "Ireland",
    "CH": "Switzerland",
    "AT": "Austria",
    "BE": "Belgium",
    "PT": "Portugal",
    "GR": "Greece",
    "CZ": "Czech Republic",
    "HU": "Hungary",
    "RO": "Romania",
    "IL": "Israel",
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
    "ZA": "South Africa",
    "EG": "Egypt",
    "NG": "Nigeria",
    "KE": "Kenya",
    "AR": "Argentina",
    "CL": "Chile",
    "CO": "Colombia",
    "PE": "Peru",
    "VE": "Venezuela",
    "MY": "Malaysia",
    "TH": "Thailand",
    "VN": "Vietnam",
    "PH": "Philippines",
    "ID": "Indonesia",
    "TR": "Turkey",
    "UA": "Ukraine",
    "PK": "Pakistan",
    "BD": "Bangladesh",
}

_LOOPBACK = {"::1", "127.0.0.1"}
_PRIVATE_PREFIXES = ("192.168.", "10.", "172.")


@dataclass(frozen=True)
class IpInfo:
    ip: str | None
    country: str


def country_name(code: str) -> str:
    code = code.strip().upper()
    return COUNTRY_NAMES.get(code, code)


def ip_from_headers(headers: Mapping[str, str]) -> str | None:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or headers.get("cf-connecting-ip") or None


def country_for(ip: str | None, headers: Mapping[str, str]) -> str:
    for header in ("cf-ipcountry", "x-country-code"):
        code = headers.get(header)
        if code:
            return country_name(code)

    if not ip or ip in _LOOPBACK:
        return LOCAL
    if ip.startswith(_PRIVATE_PREFIXES):
        return PRIVATE_NETWORK
    return UNKNOWN


def extract_ip_info(headers: Mapping[str, str], peer_address: str | None = None) -> IpInfo:
    """Resolve the caller address (proxy headers first) and its country label."""
    ip = ip_from_headers(headers) or peer_address
    return IpInfo(ip=ip, country=country_for(ip, headers))
