"""
Name-based resource matching helpers.

These are the fuzzy fallbacks used where no alias exists yet: comparing a
reservation's resource name to a local resource, or deciding whether a free
text event location refers to a room. Exact resolution belongs to
``ResourceResolver``; callers should only reach for these when it returns
nothing.

Resource ids share one integer space with the reservation system, so a
numeric id on a foreign reservation is compared directly against local
resource ids.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

_LEADING_ROOM_NUMBER_RE = re.compile(r"^\d+\s+")
_NON_NAME_CHARS_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_FIRST_NUMBER_RE = re.compile(r"\d+")

# Characters that may follow an abbreviation for it to count as a whole word
_WORD_BOUNDARY_CHARS = {" ", "-", ",", "/"}


@dataclass(frozen=True)
class ForeignResourceInfo:
    name: str
    id: Optional[int]


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_foreign_resource_field(record: Mapping[str, Any]) -> ForeignResourceInfo:
    """
    Extract resource name and id from a foreign reservation record.

    ``record["resource"]`` may be a plain string or an embedded object
    (``{"id": 42, "description": "Beit Midrash"}``). A top-level
    ``resource_id`` wins over the embedded id.
    """
    raw = record.get("resource")
    if isinstance(raw, str):
        name = raw
    elif isinstance(raw, Mapping):
        name = raw.get("description") or raw.get("name") or ""
    else:
        name = ""

    resource_id = _as_int(record.get("resource_id"))
    if resource_id is None and isinstance(raw, Mapping):
        resource_id = _as_int(raw.get("id"))

    return ForeignResourceInfo(name=str(name).strip(), id=resource_id)


def normalize_resource_name(name: Optional[str]) -> str:
    """
    Normalize a resource name for comparison.

    Lowercases, strips a leading room number ("614 Science Lab" -> "science
    lab"), drops punctuation other than hyphens and collapses whitespace.
    """
    if not name:
        return ""
    value = name.lower().strip()
    value = _LEADING_ROOM_NUMBER_RE.sub("", value)
    value = _NON_NAME_CHARS_RE.sub("", value)
    return _WHITESPACE_RE.sub(" ", value).strip()


def resource_names_match(
    local_name: Optional[str], foreign_name: Optional[str]
) -> bool:
    """Equal once normalized, or one is the other plus words ("ulam" / "ulam 1")."""
    a = normalize_resource_name(local_name)
    b = normalize_resource_name(foreign_name)
    if not a or not b:
        return False
    if a == b:
        return True
    return a.startswith(b + " ") or b.startswith(a + " ")


def does_foreign_reservation_match_resource(
    record: Mapping[str, Any],
    local_resource_id: int,
    local_description: str,
    local_abbreviation: Optional[str] = None,
) -> bool:
    """
    Whether a foreign reservation belongs to a local resource.

    A numeric id on the reservation decides on its own; names are only
    compared when the reservation carries no id.
    """
    info = parse_foreign_resource_field(record)
    if info.id is not None:
        return info.id == local_resource_id
    if not info.name:
        return False
    if resource_names_match(local_description, info.name):
        return True
    return bool(local_abbreviation) and resource_names_match(
        local_abbreviation, info.name
    )


def is_word_boundary_match(haystack: str, needle: str) -> bool:
    """
    ``needle`` occurs in ``haystack`` and is not the prefix of a longer token.

    "101" matches in "101 beit midrash" but not in "1012 library".
    """
    idx = haystack.find(needle)
    if idx == -1:
        return False
    after = idx + len(needle)
    if after >= len(haystack):
        return True
    return haystack[after] in _WORD_BOUNDARY_CHARS


def location_fuzzy_match(
    event_location: Optional[str],
    resource_description: Optional[str],
    resource_abbreviation: Optional[str] = None,
) -> bool:
    """
    Whether a free-text event location refers to a resource.

    One-directional: the location must contain the resource description or
    abbreviation. The reverse is never checked since short generic
    locations would match many resources.
    """
    loc = (event_location or "").lower().strip()
    desc = (resource_description or "").lower().strip()
    if not loc or not desc:
        return False
    if loc == desc or desc in loc:
        return True
    if resource_abbreviation:
        abbr = resource_abbreviation.lower().strip()
        if abbr and (loc == abbr or is_word_boundary_match(loc, abbr)):
            return True
    return False


def locations_match(loc1: Optional[str], loc2: Optional[str]) -> bool:
    """
    Loose location comparison used when scoring match suggestions.

    Exact, containment in either direction, or the same leading room number.
    """
    clean1 = (loc1 or "").lower().strip()
    clean2 = (loc2 or "").lower().strip()
    if not clean1 or not clean2:
        return False
    if clean1 == clean2 or clean1 in clean2 or clean2 in clean1:
        return True
    num1 = _FIRST_NUMBER_RE.search(clean1)
    num2 = _FIRST_NUMBER_RE.search(clean2)
    return bool(num1 and num2 and num1.group(0) == num2.group(0))
