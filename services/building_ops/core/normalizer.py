"""
Time and text normalization helpers.

Raw events arrive with times encoded several different ways depending on
the source system ("2025-03-10T08:10:00Z", "9:00 am", "14:30:00", ...).
Everything that compares or renders times goes through the helpers here so
that every caller sees the same minute-of-day value for the same instant.

None of these functions raise on malformed input; unparseable values come
back as ``None`` (or the empty string for text helpers).
"""

import re
from typing import Optional, Set

_ISO_TIME_RE = re.compile(r"T(\d{2}):(\d{2})")
_TWENTY_FOUR_HOUR_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_TWELVE_HOUR_RE = re.compile(
    r"^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?$", re.IGNORECASE
)
_AM_PM_RE = re.compile(r"\b(am|pm)\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

MINUTES_PER_DAY = 24 * 60


def _to_minutes(hours: int, minutes: int) -> Optional[int]:
    if 0 <= hours < 24 and 0 <= minutes < 60:
        return hours * 60 + minutes
    return None


def parse_time_to_minutes(text: Optional[str]) -> Optional[int]:
    """
    Parse a time-of-day string into minutes since midnight.

    Accepted encodings:
        - ISO datetimes: ``"2025-03-10T08:10:00Z"`` -> 490
        - 12-hour: ``"9:00 am"``, ``"9am"``, ``"12:30 P.M."``
        - 24-hour: ``"14:30"``, ``"14:30:00"``

    Returns:
        Minutes since midnight, or None if the text is empty or unparseable.
    """
    if not text:
        return None
    raw = str(text).strip()
    if not raw:
        return None

    iso = _ISO_TIME_RE.search(raw)
    if iso:
        return _to_minutes(int(iso.group(1)), int(iso.group(2)))

    twelve = _TWELVE_HOUR_RE.match(raw)
    if twelve:
        hours = int(twelve.group(1))
        minutes = int(twelve.group(2) or 0)
        if not 1 <= hours <= 12:
            return None
        hours = hours % 12
        if twelve.group(3).lower() == "p":
            hours += 12
        return _to_minutes(hours, minutes)

    twenty_four = _TWENTY_FOUR_HOUR_RE.match(raw)
    if twenty_four:
        return _to_minutes(int(twenty_four.group(1)), int(twenty_four.group(2)))

    return None


def format_minutes_as_display(minutes: int, compact: bool = True) -> str:
    """
    Render minutes since midnight as a 12-hour clock string.

    The compact form drops ``:00`` and the space (``"9am"``, ``"8:10am"``);
    the long form always shows minutes (``"9:00 am"``). Pick one per
    rendering context and stick with it.
    """
    minutes = minutes % MINUTES_PER_DAY
    hours, mins = divmod(minutes, 60)
    suffix = "pm" if hours >= 12 else "am"
    display_hour = hours % 12 or 12
    if not compact:
        return f"{display_hour}:{mins:02d} {suffix}"
    if mins == 0:
        return f"{display_hour}{suffix}"
    return f"{display_hour}:{mins:02d}{suffix}"


def format_time_display(text: Optional[str]) -> str:
    """
    Render a stored time string for display.

    Strings that already carry am/pm are kept (whitespace collapsed); ISO
    datetimes and ``HH:MM[:SS]`` become compact 12-hour times; anything else
    is returned unchanged.
    """
    if not text:
        return ""
    raw = str(text).strip()
    if not raw:
        return ""

    if _AM_PM_RE.search(raw):
        return _WHITESPACE_RE.sub(" ", raw)

    if _ISO_TIME_RE.search(raw) or _TWENTY_FOUR_HOUR_RE.match(raw):
        minutes = parse_time_to_minutes(raw)
        if minutes is not None:
            return format_minutes_as_display(minutes)

    return raw


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and trim; None becomes the empty string."""
    if not text:
        return ""
    return str(text).strip().lower()


def tokenize(text: Optional[str], min_length: int = 1) -> Set[str]:
    """Split normalized text on whitespace into a set of tokens."""
    return {
        token
        for token in normalize_text(text).split()
        if len(token) >= min_length
    }
