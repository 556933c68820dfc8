"""Contact key normalization used for duplicate matching."""

import re

_NON_DIGITS = re.compile(r'\D')


def normalize_phone(phone: str | None) -> str:
    """Reduce a phone number to its digits.

    Formatting is dropped entirely, country code included:
        +1 (555) 123-4567 → 15551234567
        555.123.4567      → 5551234567

    Returns:
        Digits only, or "" when there are none
    """
    if not phone:
        return ""
    return _NON_DIGITS.sub('', phone)


def normalize_email(email: str | None) -> str:
    """Lowercase and trim an email address.

    Returns:
        Normalized email, or "" when empty
    """
    if not email:
        return ""
    return email.strip().lower()


def phone_key(phone: str | None, min_digits: int = 1) -> str | None:
    """Build the match key for a phone, or None if it is too short to match."""
    digits = normalize_phone(phone)
    if not digits or len(digits) < max(min_digits, 1):
        return None
    return f"phone:{digits}"


def email_key(email: str | None) -> str | None:
    """Build the match key for an email, or None if empty."""
    normalized = normalize_email(email)
    if not normalized:
        return None
    return f"email:{normalized}"
