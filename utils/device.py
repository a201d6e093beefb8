from __future__ import annotations

from typing import Mapping, Tuple

from models.qr_analytics import DeviceType

UNKNOWN = "Unknown"

TABLET_MARKERS = ("ipad", "tablet", "kindle", "silk", "playbook")
MOBILE_MARKERS = ("mobile", "iphone", "ipod", "android", "phone")


def classify_device(user_agent: str | None) -> str:
    """
    Buckets a User-Agent into mobile / tablet / desktop.

    Tablet markers are checked first: "iPad" and Android tablets (which omit
    "Mobile") would otherwise match the broader mobile patterns.
    """
    ua = (user_agent or "").lower()
    if any(marker in ua for marker in TABLET_MARKERS):
        return DeviceType.TABLET
    if "android" in ua and "mobile" not in ua:
        return DeviceType.TABLET
    if any(marker in ua for marker in MOBILE_MARKERS):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP


def _first_header(headers: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = (headers.get(name) or "").strip()
        # Cloudflare sends XX / T1 for unknown or Tor traffic
        if value and value.upper() not in {"XX", "T1"}:
            return value
    return UNKNOWN


def extract_geo(headers: Mapping[str, str]) -> Tuple[str, str]:
    """(country, city) from edge-proxy headers; Unknown when absent."""
    country = _first_header(headers, "cf-ipcountry", "x-country")
    city = _first_header(headers, "cf-ipcity", "x-city")
    return country[:100], city[:100]
