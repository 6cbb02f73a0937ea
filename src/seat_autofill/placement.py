"""Greedy seat-by-seat initial placement.

Tables are visited by ``table_number`` and seats by ``seat_number``. Each
table is filled in one of three modes:

ratio
    Per-table host and external targets from ``host:external``. Once a
    target is met the seat goes to the other type, then to anyone.
spacing
    Alternates hosts and externals. ``spacing`` externals follow each host
    (or hosts follow externals when ``start_with_external`` is set). When
    either type runs out, the rest of the table is filled from whatever is
    left.
default
    Next candidate in priority order.

Host-only and external-only seats always take their own type. Locked seats
are skipped and never written into the assignment map.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Collection, List, Mapping, Optional, Sequence, Set

from .compatibility import get_next_compatible_guest, get_next_compatible_guest_of_type
from .models import (
    SEAT_MODE_EXTERNAL_ONLY,
    SEAT_MODE_HOST_ONLY,
    Guest,
    LockedGuestLocation,
    ProximityRules,
    RandomizeOrderConfig,
    Seat,
    SeatAssignmentMap,
    TableRules,
    Table,
    TagSitTogetherGroup,
)
from .locked import would_violate_sit_away_with_locked
from .ordering import Comparator, apply_randomize_order, make_comparator_with_host_tie_break, sort_guests
from .reordering import reorder_for_sit_together_clusters, reorder_for_tag_groups
from .seat_finder import sorted_seats, sorted_tables

console_logger = logging.getLogger(__name__)

MODE_RATIO = "ratio"
MODE_SPACING = "spacing"
MODE_DEFAULT = "default"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def table_mode(table_rules: Optional[TableRules]) -> str:
    """Ratio wins over spacing when both are enabled."""
    if table_rules is None:
        return MODE_DEFAULT
    if table_rules.ratio_rule is not None and table_rules.ratio_rule.enabled:
        return MODE_RATIO
    if table_rules.spacing_rule is not None and table_rules.spacing_rule.enabled:
        return MODE_SPACING
    return MODE_DEFAULT


def ratio_targets(unlocked_seats: int, host_ratio: int, external_ratio: int) -> tuple[int, int]:
    """``(host_target, external_target)`` for one table."""
    total = host_ratio + external_ratio
    if total <= 0:
        return 0, 0
    host = round_half_up(unlocked_seats * host_ratio / total)
    host = max(0, min(unlocked_seats, host))
    return host, unlocked_seats - host


def prepare_candidates(
    host_candidates: Sequence[Guest],
    external_candidates: Sequence[Guest],
    comparator: Optional[Comparator] = None,
    proximity_rules: Optional[ProximityRules] = None,
    tag_groups: Optional[Sequence[TagSitTogetherGroup]] = None,
    randomize_order: Optional[RandomizeOrderConfig] = None,
    guests_in_proximity_rules: Optional[Collection[str]] = None,
    rng: Optional[random.Random] = None,
) -> List[Guest]:
    """Merge both pools into the single stream placement consumes.

    Sit-together clusters and tag groups are pulled up behind their anchor.
    When a randomize config is given, rule-bound guests stay at the front in
    priority order and only the remaining guests are shuffled inside their
    ranking bands.
    """
    compare = make_comparator_with_host_tie_break(comparator or (lambda a, b: 0))
    candidates = sort_guests(list(host_candidates) + list(external_candidates), compare)

    if proximity_rules is not None and proximity_rules.sit_together:
        candidates = reorder_for_sit_together_clusters(candidates, proximity_rules.sit_together, compare)
    if tag_groups:
        candidates = reorder_for_tag_groups(candidates, tag_groups)

    if randomize_order is not None and randomize_order.enabled and randomize_order.partitions:
        bound = set(guests_in_proximity_rules or ())
        rule_bound = [g for g in candidates if g.id in bound]
        regular = [g for g in candidates if g.id not in bound]
        candidates = rule_bound + apply_randomize_order(regular, randomize_order, rng)
    return candidates


class _Placer:
    """Shared candidate selection for one placement run."""

    def __init__(
        self,
        candidates: Sequence[Guest],
        assigned: Set[str],
        locked_map: Optional[Mapping[str, LockedGuestLocation]],
        proximity_rules: Optional[ProximityRules],
    ) -> None:
        self.candidates = list(candidates)
        self.assigned = assigned
        self.locked_map = locked_map
        self.proximity_rules = proximity_rules

    def remaining(self, is_host: bool) -> bool:
        return any(g.id not in self.assigned and g.from_host == is_host for g in self.candidates)

    def pick(self, seat: Seat, table_seats: Sequence[Seat], is_host: Optional[bool] = None) -> Optional[Guest]:
        """First eligible candidate, skipping ones a locked neighbor must avoid.

        If every eligible candidate would sit next to a locked guest it must
        avoid, the first eligible one is returned anyway.
        """
        first = self._next(seat, is_host, self.assigned)
        if first is None or self.proximity_rules is None or not self.proximity_rules.sit_away:
            return first
        skipped = set(self.assigned)
        guest = first
        while guest is not None:
            if not would_violate_sit_away_with_locked(guest.id, seat, table_seats, self.locked_map, self.proximity_rules):
                if guest is not first:
                    console_logger.debug("Skipped %s at %s: sits away from a locked neighbor", first.id, seat.id)
                return guest
            skipped.add(guest.id)
            guest = self._next(seat, is_host, skipped)
        return first

    def _next(self, seat: Seat, is_host: Optional[bool], skipped: Collection[str]) -> Optional[Guest]:
        if is_host is None:
            return get_next_compatible_guest(self.candidates, skipped, seat)
        return get_next_compatible_guest_of_type(self.candidates, skipped, is_host, seat)


def _seat_type_restriction(seat: Seat) -> Optional[bool]:
    if seat.mode == SEAT_MODE_HOST_ONLY:
        return True
    if seat.mode == SEAT_MODE_EXTERNAL_ONLY:
        return False
    return None


def perform_initial_placement(
    tables: Sequence[Table],
    candidates: Sequence[Guest],
    locked_guest_ids: Collection[str] = (),
    locked_map: Optional[Mapping[str, LockedGuestLocation]] = None,
    table_rules: Optional[TableRules] = None,
    proximity_rules: Optional[ProximityRules] = None,
    seat_to_guest: Optional[SeatAssignmentMap] = None,
) -> SeatAssignmentMap:
    """Fill unlocked seats from ``candidates`` (already in priority order)."""
    seat_to_guest = {} if seat_to_guest is None else seat_to_guest
    assigned: Set[str] = set(locked_guest_ids) | set(seat_to_guest.values())
    placer = _Placer(candidates, assigned, locked_map, proximity_rules)
    mode = table_mode(table_rules)

    def commit(seat: Seat, guest: Optional[Guest]) -> bool:
        if guest is None:
            return False
        seat_to_guest[seat.id] = guest.id
        assigned.add(guest.id)
        return True

    for table in sorted_tables(tables):
        table_seats = sorted_seats(table)
        unlocked = [s for s in table_seats if not s.locked and s.id not in seat_to_guest]

        if mode == MODE_RATIO:
            rule = table_rules.ratio_rule
            host_target, external_target = ratio_targets(len(unlocked), rule.host_ratio, rule.external_ratio)
            host_placed = external_placed = 0
            for seat in unlocked:
                restricted = _seat_type_restriction(seat)
                if restricted is not None:
                    guest = placer.pick(seat, table_seats, restricted)
                elif host_placed < host_target and placer.remaining(True):
                    guest = placer.pick(seat, table_seats, True)
                elif external_placed < external_target and placer.remaining(False):
                    guest = placer.pick(seat, table_seats, False)
                else:
                    guest = placer.pick(seat, table_seats)
                if guest is None and restricted is None:
                    guest = placer.pick(seat, table_seats)
                if commit(seat, guest):
                    if guest.from_host:
                        host_placed += 1
                    else:
                        external_placed += 1
            console_logger.debug(
                "Table %s ratio fill: %d/%d host, %d/%d external",
                table.id, host_placed, host_target, external_placed, external_target,
            )

        elif mode == MODE_SPACING:
            rule = table_rules.spacing_rule
            spacing = max(1, int(rule.spacing))
            pattern_active = placer.remaining(True) and placer.remaining(False)
            position = 0
            idx = 0
            while idx < len(unlocked):
                seat = unlocked[idx]
                if pattern_active and not (placer.remaining(True) and placer.remaining(False)):
                    pattern_active = False
                restricted = _seat_type_restriction(seat)
                if restricted is not None:
                    commit(seat, placer.pick(seat, table_seats, restricted))
                elif pattern_active:
                    host_turn = position == spacing if rule.start_with_external else position == 0
                    if commit(seat, placer.pick(seat, table_seats, host_turn)):
                        position += 1
                        if position > spacing:
                            position = 0
                    else:
                        # Retry this seat without the pattern.
                        pattern_active = False
                        continue
                else:
                    commit(seat, placer.pick(seat, table_seats))
                idx += 1

        else:
            for seat in unlocked:
                commit(seat, placer.pick(seat, table_seats))

    console_logger.info("Initial placement filled %d seats", len(seat_to_guest))
    return seat_to_guest
