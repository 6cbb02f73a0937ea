"""Data models for seat autofill."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import math


# ----------------------------- constants -----------------------------
SEAT_MODE_DEFAULT = "default"
SEAT_MODE_HOST_ONLY = "host-only"
SEAT_MODE_EXTERNAL_ONLY = "external-only"
SEAT_MODES = (SEAT_MODE_DEFAULT, SEAT_MODE_HOST_ONLY, SEAT_MODE_EXTERNAL_ONLY)

SORT_FIELDS = ("name", "country", "organization", "ranking")
SORT_DIRECTIONS = ("asc", "desc")

VIOLATION_SIT_TOGETHER = "sit-together"
VIOLATION_SIT_AWAY = "sit-away"

# Seats without a number sort after every numbered seat.
MISSING_SEAT_NUMBER = 999

# seat id -> guest id, unlocked seats only
SeatAssignmentMap = Dict[str, str]


# ----------------------------- parsing helpers -----------------------------
def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


def parse_bool(value: object, default: bool = False) -> bool:
    """Parse common truthy strings into bool. Missing values use ``default``."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    return text in ("true", "1", "yes", "y")


def parse_optional_int(value: object) -> Optional[int]:
    """Return ``int(value)`` or ``None`` for blank and NaN cells."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return None
    return int(float(text))


def parse_sort_rule(text: str) -> "SortRule":
    """Parse ``field[:direction]`` such as ``ranking:desc``."""
    field_name, _, direction = text.partition(":")
    rule = SortRule(field=field_name.strip().lower(), direction=(direction.strip().lower() or "asc"))
    if rule.field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {rule.field}")
    if rule.direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {rule.direction}")
    return rule


def parse_ratio(text: str) -> Tuple[int, int]:
    """Parse ``host:external`` such as ``2:1``."""
    host, sep, external = text.partition(":")
    if not sep:
        raise ValueError(f"Ratio must look like HOST:EXTERNAL, got {text!r}")
    h, e = int(host), int(external)
    if h < 0 or e < 0 or h + e == 0:
        raise ValueError(f"Ratio needs non-negative parts with a positive sum, got {text!r}")
    return h, e


def parse_partition(text: str) -> "RandomizePartition":
    """Parse ``min-max`` into a half-open ranking band ``[min, max)``."""
    low, sep, high = text.partition("-")
    if not sep:
        raise ValueError(f"Partition must look like MIN-MAX, got {text!r}")
    return RandomizePartition(min_rank=int(low), max_rank=int(high))


# ----------------------------- records -----------------------------
@dataclass
class Guest:
    """A guest candidate. Treated as read-only for one run."""

    id: str
    name: str
    country: str = ""
    company: str = ""
    title: str = ""
    # Lower is higher priority; ``None`` means unranked.
    ranking: Optional[int] = None
    from_host: bool = True
    tags: List[str] = field(default_factory=list)
    deleted: bool = False


@dataclass
class Seat:
    """One seat. ``adjacent_seats`` is the only source of adjacency."""

    id: str
    seat_number: Optional[int] = None
    adjacent_seats: List[str] = field(default_factory=list)
    locked: bool = False
    assigned_guest_id: Optional[str] = None
    mode: str = SEAT_MODE_DEFAULT


@dataclass
class Table:
    """A table owning an ordered list of seats."""

    id: str
    table_number: int = 0
    seats: List[Seat] = field(default_factory=list)
    label: str = ""
    shape: str = "round"


@dataclass
class RatioRule:
    enabled: bool = False
    host_ratio: int = 50
    external_ratio: int = 50


@dataclass
class SpacingRule:
    enabled: bool = False
    spacing: int = 1
    start_with_external: bool = False


@dataclass
class TableRules:
    """Per-run distribution rules. Ratio wins when both are enabled."""

    ratio_rule: Optional[RatioRule] = None
    spacing_rule: Optional[SpacingRule] = None


@dataclass
class SortRule:
    field: str = "ranking"
    direction: str = "asc"


@dataclass
class ProximityRule:
    """An undirected guest pair used by both sit-together and sit-away lists."""

    id: str
    guest1_id: str
    guest2_id: str


@dataclass
class ProximityRules:
    sit_together: List[ProximityRule] = field(default_factory=list)
    sit_away: List[ProximityRule] = field(default_factory=list)


@dataclass
class TagSitTogetherGroup:
    id: str
    tag: str
    guest_ids: List[str] = field(default_factory=list)


@dataclass
class RandomizePartition:
    """Ranking band ``[min_rank, max_rank)``."""

    min_rank: int
    max_rank: int


@dataclass
class RandomizeOrderConfig:
    enabled: bool = False
    partitions: List[RandomizePartition] = field(default_factory=list)


@dataclass
class LockedGuestLocation:
    guest_id: str
    table_id: str
    seat_id: str
    seat: Seat
    table: Table


@dataclass
class Violation:
    """An unmet proximity rule in the final arrangement."""

    type: str
    guest1_id: str
    guest2_id: str
    guest1_name: str = ""
    guest2_name: str = ""
    table_id: Optional[str] = None
    table_label: Optional[str] = None
    seat1_id: Optional[str] = None
    seat2_id: Optional[str] = None
    reason: str = ""
