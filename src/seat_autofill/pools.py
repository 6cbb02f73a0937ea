"""Candidate pools with rule-bound guests first."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Set, Tuple

from .models import Guest, ProximityRules
from .ordering import Comparator, sort_guests
from .rules import guests_in_rules

console_logger = logging.getLogger(__name__)


@dataclass
class PrioritizedPools:
    prioritized_host: List[Guest] = field(default_factory=list)
    prioritized_external: List[Guest] = field(default_factory=list)
    guests_in_proximity_rules: Set[str] = field(default_factory=set)


def _prioritize(candidates: Sequence[Guest], bound: Set[str], comparator: Comparator) -> Tuple[List[Guest], List[Guest]]:
    must_include = [g for g in candidates if g.id in bound]
    regular = [g for g in candidates if g.id not in bound]
    return sort_guests(must_include, comparator), sort_guests(regular, comparator)


def build_prioritized_guest_pools(
    host_candidates: Sequence[Guest],
    external_candidates: Sequence[Guest],
    proximity_rules: ProximityRules,
    comparator: Comparator,
    total_available_seats: int = 0,
) -> PrioritizedPools:
    """Sort each pool with rule-bound guests ahead of everyone else.

    ``total_available_seats`` is informational; pools are never truncated.
    """
    bound = guests_in_rules(proximity_rules)
    host_must, host_regular = _prioritize(host_candidates, bound, comparator)
    ext_must, ext_regular = _prioritize(external_candidates, bound, comparator)
    console_logger.info(
        "Guest pools: %d host (%d rule-bound), %d external (%d rule-bound), %d seats available",
        len(host_candidates), len(host_must), len(external_candidates), len(ext_must), total_available_seats,
    )
    return PrioritizedPools(
        prioritized_host=host_must + host_regular,
        prioritized_external=ext_must + ext_regular,
        guests_in_proximity_rules=bound,
    )
