"""
Validation utilities
"""
import re
from datetime import datetime


def text_value(value):
    """Return ``value`` if it is a string, otherwise an empty string"""
    return value if isinstance(value, str) else ''


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_phone(phone):
    """
    Validate a Kenyan phone number (+254 7XX XXX XXX or 07XX XXX XXX)

    Args:
        phone (str): Phone number to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not phone:
        return False

    # Remove common separators
    cleaned = re.sub(r'[\s\-\(\)\.]', '', phone)

    pattern = r'^(\+?254|0)[17]\d{8}$'
    return bool(re.match(pattern, cleaned))


def parse_iso_date(value):
    """
    Parse a YYYY-MM-DD string

    Returns:
        datetime.date or None when the value is not a valid calendar date
    """
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_points(value):
    """Coerce a points amount from JSON (int or numeric string) to int.

    Returns 0 for anything that is not a whole number so that callers report
    the minimum-points error rather than a type error.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else 0
    if isinstance(value, str):
        value = value.strip()
        if re.match(r'^-?\d+$', value):
            return int(value)
    return 0
