"""
Seat autofill solver.

Pipeline, run once per ``solve()``:
    1. index locked seats and filter candidates (deleted and locked guests
       are not candidates)
    2. build prioritized host and external pools
    3. clear unlocked seats and run the greedy initial placement
    4. sit-together local search
    5. sit-away local search
    6. tag group consolidation (optional)
    7. write assignments back to the seats
    8. final violation check
Unsatisfiable input never raises. It degrades to a partial assignment and a
non-empty violation list.
"""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from .locked import build_locked_guest_map
from .models import (
    VIOLATION_SIT_AWAY,
    VIOLATION_SIT_TOGETHER,
    Guest,
    LockedGuestLocation,
    ProximityRules,
    RandomizeOrderConfig,
    SeatAssignmentMap,
    SortRule,
    Table,
    TableRules,
    TagSitTogetherGroup,
    Violation,
)
from .ordering import DEFAULT_SORT_RULES, is_randomize_order_applicable, make_comparator
from .placement import perform_initial_placement, prepare_candidates
from .pools import build_prioritized_guest_pools
from .sit_away import apply_sit_away_optimization
from .sit_together import apply_sit_together_optimization
from .tag_groups import apply_tag_group_optimization
from .violations import find_invariant_breaches, perform_final_violation_check

console_logger = logging.getLogger(__name__)


def write_seat_assignments(tables: Sequence[Table], seat_to_guest: SeatAssignmentMap) -> None:
    """Copy the map onto unlocked seats. Locked seats are left untouched."""
    for table in tables:
        for seat in table.seats:
            if not seat.locked:
                seat.assigned_guest_id = seat_to_guest.get(seat.id)


# ----------------------------- model -----------------------------
class SeatingModel:
    """Priority-ordered greedy placement followed by rule-driven local search."""

    def __init__(
        self,
        include_host: bool = True,
        include_external: bool = True,
        sort_rules: Optional[List[SortRule]] = None,
        table_rules: Optional[TableRules] = None,
        randomize_order: Optional[RandomizeOrderConfig] = None,
        optimize_tag_groups: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        # Options
        self.include_host = include_host
        self.include_external = include_external
        self.sort_rules: List[SortRule] = list(sort_rules) if sort_rules else list(DEFAULT_SORT_RULES)
        self.table_rules = table_rules
        self.randomize_order = randomize_order
        self.optimize_tag_groups = optimize_tag_groups
        self.rng = rng or random.Random()
        # Inputs
        self.guests: List[Guest] = []
        self.tables: List[Table] = []
        self.proximity_rules = ProximityRules()
        self.tag_groups: List[TagSitTogetherGroup] = []
        self._built = False
        # Outputs
        self.seat_to_guest: SeatAssignmentMap = {}
        self.violations: List[Violation] = []
        self.locked_map: Dict[str, LockedGuestLocation] = {}
        self.stage_counts: Dict[str, int] = {}

    def build(
        self,
        guests: List[Guest],
        tables: List[Table],
        proximity_rules: Optional[ProximityRules] = None,
        tag_groups: Optional[List[TagSitTogetherGroup]] = None,
    ) -> None:
        """Store model data. Tables are mutated by ``solve()`` on write-back."""
        if not tables:
            raise ValueError("At least one table is required")
        seen = set()
        for table in tables:
            for seat in table.seats:
                if seat.id in seen:
                    raise ValueError(f"Duplicate seat id: {seat.id}")
                seen.add(seat.id)
        self.guests = guests
        self.tables = tables
        self.proximity_rules = proximity_rules or ProximityRules()
        self.tag_groups = list(tag_groups or [])
        self._built = True

    # ----------------------------- helpers -----------------------------
    def _pools(self) -> tuple[List[Guest], List[Guest]]:
        host = [g for g in self.guests if g.from_host and not g.deleted] if self.include_host else []
        external = [g for g in self.guests if not g.from_host and not g.deleted] if self.include_external else []
        return host, external

    def _record(self, stage: str) -> None:
        self.stage_counts[stage] = len(self.seat_to_guest)
        console_logger.debug("After %s: %d seats assigned", stage, len(self.seat_to_guest))

    # ----------------------------- solve -----------------------------
    def solve(self) -> SeatAssignmentMap:
        """Assign guests to unlocked seats and return ``seat id -> guest id``."""
        if not self._built:
            raise RuntimeError("build() must be called before solve()")
        self.seat_to_guest = {}
        self.violations = []
        self.stage_counts = {}

        if not self.include_host and not self.include_external:
            console_logger.warning("No guest lists selected; nothing to place")
            return self.seat_to_guest

        host_pool, external_pool = self._pools()
        all_guests = host_pool + external_pool
        guest_lookup = {g.id: g for g in all_guests}

        self.locked_map = build_locked_guest_map(self.tables)
        locked_ids = set(self.locked_map)
        total_available = sum(1 for t in self.tables for s in t.seats if not s.locked)
        comparator = make_comparator(self.sort_rules)

        pools = build_prioritized_guest_pools(
            [g for g in host_pool if g.id not in locked_ids],
            [g for g in external_pool if g.id not in locked_ids],
            self.proximity_rules,
            comparator,
            total_available,
        )
        randomize = self.randomize_order if is_randomize_order_applicable(self.sort_rules) else None
        if self.randomize_order is not None and self.randomize_order.enabled and randomize is None:
            console_logger.info("Randomize order ignored: ranking is not the only sort rule")

        write_seat_assignments(self.tables, {})
        candidates = prepare_candidates(
            pools.prioritized_host,
            pools.prioritized_external,
            comparator,
            self.proximity_rules,
            self.tag_groups if self.optimize_tag_groups else None,
            randomize,
            pools.guests_in_proximity_rules,
            self.rng,
        )
        perform_initial_placement(
            self.tables,
            candidates,
            locked_ids,
            self.locked_map,
            self.table_rules,
            self.proximity_rules,
            self.seat_to_guest,
        )
        self._record("placement")

        apply_sit_together_optimization(
            self.seat_to_guest, self.tables, self.proximity_rules, all_guests, comparator, self.locked_map
        )
        self._record("sit_together")
        apply_sit_away_optimization(
            self.seat_to_guest, self.tables, self.proximity_rules, all_guests, comparator, self.locked_map
        )
        self._record("sit_away")
        if self.optimize_tag_groups and self.tag_groups:
            apply_tag_group_optimization(
                self.seat_to_guest, self.tables, self.tag_groups, all_guests, comparator,
                self.locked_map, self.proximity_rules,
            )
            self._record("tag_groups")

        for breach in find_invariant_breaches(self.seat_to_guest, self.tables):
            console_logger.warning("Invariant breach: %s", breach)

        write_seat_assignments(self.tables, self.seat_to_guest)
        self.violations = perform_final_violation_check(self.tables, self.proximity_rules, guest_lookup)
        console_logger.info(
            "Autofill placed %d guests in %d available seats with %d violations",
            len(self.seat_to_guest), total_available, len(self.violations),
        )
        return self.seat_to_guest

    def stats(self) -> Dict[str, int]:
        """Counts describing the last run."""
        seats = [s for t in self.tables for s in t.seats]
        return {
            "guests": len([g for g in self.guests if not g.deleted]),
            "tables": len(self.tables),
            "seats": len(seats),
            "locked_seats": sum(1 for s in seats if s.locked),
            "assigned": len(self.seat_to_guest),
            "sit_together_violations": sum(1 for v in self.violations if v.type == VIOLATION_SIT_TOGETHER),
            "sit_away_violations": sum(1 for v in self.violations if v.type == VIOLATION_SIT_AWAY),
        }
