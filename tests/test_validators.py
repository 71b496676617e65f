import pytest

from fieldkiosk.shared.validators import (
    format_phone_display,
    generate_employee_alias,
    normalize_sms_recipient,
    validate_email,
    validate_us_phone,
    validate_zip_code,
)


@pytest.mark.parametrize("raw", ["8505551234", "(850) 555-1234", "+1 850-555-1234", "1.850.555.1234"])
def test_validate_us_phone(raw):
    assert validate_us_phone(raw) == "+18505551234"


def test_validate_us_phone_rejects_short_numbers():
    with pytest.raises(ValueError):
        validate_us_phone("555-1234")
    assert validate_us_phone(None) is None


def test_format_phone_display():
    assert format_phone_display("+18505551234") == "(850) 555-1234"
    assert format_phone_display("12345") == "12345"
    assert format_phone_display("") == ""


def test_normalize_sms_recipient():
    assert normalize_sms_recipient("+447700900123") == "+447700900123"
    assert normalize_sms_recipient("18505551234") == "+18505551234"
    assert normalize_sms_recipient("850-555-1234") == "+18505551234"


def test_validate_email():
    assert validate_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"
    with pytest.raises(ValueError):
        validate_email("jane@")


def test_validate_zip_code():
    assert validate_zip_code("32501")
    assert not validate_zip_code("3250")
    assert not validate_zip_code(None)


def test_generate_employee_alias():
    assert generate_employee_alias("John", "Smith") == "JOSM"
    assert generate_employee_alias("Al", None) == "AL"
