"""
Egyptian mobile number helpers.
"""

import re

MOBILE_PATTERN = re.compile(r"01[0125][0-9]{8}")


def is_valid_phone(phone: str) -> bool:
    """True for an 11-digit local mobile number on the 010/011/012/015 networks."""
    return bool(phone) and MOBILE_PATTERN.fullmatch(phone) is not None


def format_phone(phone: str) -> str:
    """Normalise a mobile number to the backend's ``2``-prefixed form."""
    digits = re.sub(r"[^0-9]", "", phone or "")
    if digits.startswith("2"):
        return digits
    if digits.startswith("01"):
        return "2" + digits
    # Left for the backend to reject.
    return digits
