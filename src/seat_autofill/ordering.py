"""Guest ordering: multi-field comparators and rank-band randomization."""
from __future__ import annotations

import logging
import math
import random
from functools import cmp_to_key
from typing import Callable, List, Optional, Sequence, TypeVar, Union

from .models import Guest, RandomizeOrderConfig, SortRule

console_logger = logging.getLogger(__name__)

T = TypeVar("T")
Comparator = Callable[[Guest, Guest], int]

DEFAULT_SORT_RULES = [SortRule(field="ranking", direction="asc")]


def get_guest_field_value(guest: Guest, field: str) -> Union[str, float, None]:
    """Return the value a sort rule reads. ``organization`` maps to ``company``."""
    if field == "organization":
        return guest.company
    return getattr(guest, field, None)


def _ranking_key(value: object) -> float:
    # Unranked guests sort after every ranked guest in ascending order.
    if value is None:
        return math.inf
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.inf


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)


def make_comparator(rules: Optional[Sequence[SortRule]]) -> Comparator:
    """Compose field comparators in rule order.

    Ranking compares numerically, other fields compare as case-sensitive
    strings with missing values read as ``""``. Ties fall through to
    :func:`make_comparator_with_host_tie_break` so the order is total.
    """
    rules = list(rules or [])

    def base(a: Guest, b: Guest) -> int:
        for rule in rules:
            sign = -1 if rule.direction == "desc" else 1
            av = get_guest_field_value(a, rule.field)
            bv = get_guest_field_value(b, rule.field)
            if rule.field == "ranking":
                result = _cmp(_ranking_key(av), _ranking_key(bv))
            else:
                result = _cmp("" if av is None else str(av), "" if bv is None else str(bv))
            if result:
                return sign * result
        return 0

    return make_comparator_with_host_tie_break(base)


def make_comparator_with_host_tie_break(base: Comparator) -> Comparator:
    """Wrap ``base`` so that ties put hosts first, then the lower guest id."""

    def compare(a: Guest, b: Guest) -> int:
        result = base(a, b)
        if result:
            return result
        if a.from_host and not b.from_host:
            return -1
        if b.from_host and not a.from_host:
            return 1
        return _cmp(str(a.id or ""), str(b.id or ""))

    return compare


def sort_guests(guests: Sequence[Guest], comparator: Comparator) -> List[Guest]:
    return sorted(guests, key=cmp_to_key(comparator))


def shuffle_array(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a Fisher-Yates shuffled copy of ``items``."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def apply_randomize_order(
    sorted_guests: Sequence[Guest],
    config: Optional[RandomizeOrderConfig],
    rng: Optional[random.Random] = None,
) -> List[Guest]:
    """Shuffle guests inside each ``[min_rank, max_rank)`` band in place of their slots.

    Guests outside every band keep their exact positions.
    """
    if not config or not config.enabled or not config.partitions:
        return list(sorted_guests)

    result = list(sorted_guests)
    for partition in config.partitions:
        indices = [
            i for i, guest in enumerate(result)
            if guest.ranking is not None and partition.min_rank <= guest.ranking < partition.max_rank
        ]
        if len(indices) <= 1:
            continue
        shuffled = shuffle_array([result[i] for i in indices], rng)
        for slot, guest in zip(indices, shuffled):
            result[slot] = guest
        console_logger.debug(
            "Shuffled %d guests in ranking band [%d, %d)",
            len(indices), partition.min_rank, partition.max_rank,
        )
    return result


def is_randomize_order_applicable(sort_rules: Optional[Sequence[SortRule]]) -> bool:
    """Randomizing inside rank bands only makes sense when ranking is the sole key."""
    return bool(sort_rules) and len(sort_rules) == 1 and sort_rules[0].field == "ranking"
