import pytest

from models.qr_analytics import DeviceType
from utils.device import classify_device, extract_geo

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
IPAD = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
ANDROID_PHONE = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0 Mobile Safari/537.36"
ANDROID_TABLET = "Mozilla/5.0 (Linux; Android 13; SM-X700) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
KINDLE = "Mozilla/5.0 (Linux; Android 9; KFTRWI) AppleWebKit/537.36 Silk/112.0 like Chrome Safari/537.36"
DESKTOP = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        (IPHONE, DeviceType.MOBILE),
        (ANDROID_PHONE, DeviceType.MOBILE),
        (IPAD, DeviceType.TABLET),
        (ANDROID_TABLET, DeviceType.TABLET),
        (KINDLE, DeviceType.TABLET),
        (DESKTOP, DeviceType.DESKTOP),
        ("", DeviceType.DESKTOP),
        (None, DeviceType.DESKTOP),
    ],
)
def test_classify_device(user_agent, expected):
    assert classify_device(user_agent) == expected


def test_ipad_with_mobile_token_is_still_a_tablet():
    assert "Mobile" in IPAD
    assert classify_device(IPAD) == DeviceType.TABLET


def test_geo_from_cloudflare_headers():
    assert extract_geo({"cf-ipcountry": "DE", "cf-ipcity": "Berlin"}) == ("DE", "Berlin")


def test_geo_falls_back_to_generic_headers():
    assert extract_geo({"x-country": "FR", "x-city": "Lyon"}) == ("FR", "Lyon")


def test_geo_unknown_when_missing_or_placeholder():
    assert extract_geo({}) == ("Unknown", "Unknown")
    assert extract_geo({"cf-ipcountry": "XX"}) == ("Unknown", "Unknown")
