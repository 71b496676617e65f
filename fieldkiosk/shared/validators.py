"""Phone, email, zip and alias helpers shared by the kiosk schemas and integrations"""

import re
from typing import Optional

EMAIL_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
ZIP_RE = re.compile(r"\d{5}")


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def us_national_digits(phone: Optional[str]) -> Optional[str]:
    """The 10-digit national number, dropping a leading country code 1; None if not a US number"""
    digits = digits_only(phone)
    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]
    return digits if len(digits) == 10 else None


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a US phone number to E.164 (+1XXXXXXXXXX).

    Empty values pass through; anything that is not 10 digits (after an
    optional leading 1) raises ValueError.
    """
    if not phone:
        return phone
    national = us_national_digits(phone)
    if national is None:
        raise ValueError("Phone number must be 10 digits for US numbers")
    return "+1" + national


def normalize_sms_recipient(phone: str) -> str:
    """Numbers without a leading + are treated as US numbers"""
    if phone.startswith("+"):
        return phone
    return "+1" + (us_national_digits(phone) or digits_only(phone))


def format_phone_display(phone: Optional[str]) -> Optional[str]:
    """(999) 999-9999 for US numbers; other inputs pass through"""
    national = us_national_digits(phone)
    if national is None:
        return phone
    return f"({national[:3]}) {national[3:6]}-{national[6:]}"


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return email
    normalized = email.strip().lower()
    if not EMAIL_RE.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


def validate_zip_code(zip_code: Optional[str]) -> bool:
    return bool(zip_code) and ZIP_RE.fullmatch(zip_code.strip()) is not None


def generate_employee_alias(first_name: Optional[str], last_name: Optional[str]) -> str:
    """First two letters of first and last name, uppercased (John Smith -> JOSM)"""
    return f"{(first_name or '')[:2]}{(last_name or '')[:2]}".upper()
