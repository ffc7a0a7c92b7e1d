"""Phone number normalization to E.164."""

from typing import Optional

import phonenumbers

from evite.config import settings
from evite.errors import InvalidPhoneNumber


def normalize_phone(raw: str, default_region: Optional[str] = None) -> str:
    """Normalize a phone number to E.164 (e.g. +40721234567).

    Numbers without a leading "+" are parsed in the default region
    (settings.default_region, "RO" out of the box) and must be valid there.
    Numbers with a country code are parsed in their own country's context.
    """
    phone = (raw or "").strip()
    region = default_region or settings.default_region

    try:
        num = phonenumbers.parse(phone, region)
    except phonenumbers.NumberParseException as e:
        raise InvalidPhoneNumber(raw, str(e)) from e

    if not phonenumbers.is_valid_number(num):
        raise InvalidPhoneNumber(raw)

    return phonenumbers.format_number(num, phonenumbers.PhoneNumberFormat.E164)
