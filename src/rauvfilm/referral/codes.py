"""Referral code format.

A code is the event date as ``YYMMDD`` followed by the customer's name with
all whitespace removed, e.g. ``250122홍길동``. Collisions get a numeric suffix.
"""

import re
from datetime import date

_WHITESPACE = re.compile(r"\s+")


def normalize_code(code: str | None) -> str:
    """Canonical form of a code: all whitespace removed.

    Applied once when a code is written and to every incoming lookup, so
    ``"250122 홍길동"`` and ``"250122홍길동"`` resolve to the same referrer.
    """
    if not code:
        return ""
    return _WHITESPACE.sub("", code)


def generate_referral_code(event_date: date, name: str) -> str:
    """Build the base code for a reservation.

    Args:
        event_date: Wedding date
        name: Customer name (plaintext)

    Returns:
        Base code without collision suffix
    """
    clean_name = normalize_code(name)
    if not clean_name:
        raise ValueError("A name is required to generate a referral code")
    return f"{event_date:%y%m%d}{clean_name}"


def with_suffix(base_code: str, attempt: int) -> str:
    """Collision candidate: the base code for attempt 0, then ``base1``, ``base2``..."""
    if attempt <= 0:
        return base_code
    return f"{base_code}{attempt}"
