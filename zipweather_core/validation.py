"""Postal code validation."""

from __future__ import annotations

import re
from typing import Final

ZIPCODE_PATTERN: Final = re.compile(r"^[0-9]{8}$", re.ASCII)


def is_valid_zipcode(zipcode: object) -> bool:
    """Return True if zipcode is a string of exactly eight digits."""
    if not isinstance(zipcode, str):
        return False
    # fullmatch so a trailing newline is not accepted by "$"
    return ZIPCODE_PATTERN.fullmatch(zipcode) is not None
