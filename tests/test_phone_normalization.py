import pytest

from app.utils.sms import normalize_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9876543210", "+919876543210"),
        ("+14155551234", "+14155551234"),
        ("919876543210", "+919876543210"),
        ("(987) 654-3210", "+919876543210"),
        ("+1 (415) 555-1234", "+14155551234"),
        ("12345", "+12345"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_ten_digits_with_plus_gets_no_country_code():
    assert normalize_phone("+9876543210") == "+9876543210"


def test_custom_default_country_code():
    assert normalize_phone("4155551234", default_country_code="1") == "+14155551234"
