"""Final proximity rule check and arrangement sanity checks."""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .models import (
    VIOLATION_SIT_AWAY,
    VIOLATION_SIT_TOGETHER,
    Guest,
    ProximityRules,
    Table,
    Violation,
)
from .seat_finder import GuestSeat, build_guest_locations, get_seat_occupant, seats_are_adjacent

console_logger = logging.getLogger(__name__)


def _locations(tables: Sequence[Table], seat_to_guest: Optional[Mapping[str, str]]) -> Dict[str, GuestSeat]:
    if seat_to_guest is not None:
        return build_guest_locations(tables, seat_to_guest)
    locations: Dict[str, GuestSeat] = {}
    for table in tables:
        for seat in table.seats:
            if seat.assigned_guest_id:
                locations[seat.assigned_guest_id] = GuestSeat(table=table, seat=seat)
    return locations


def _adjacent(a: GuestSeat, b: GuestSeat) -> bool:
    return a.table.id == b.table.id and seats_are_adjacent(a.seat, b.seat)


def count_violations(
    seat_to_guest: Mapping[str, str],
    tables: Sequence[Table],
    proximity_rules: ProximityRules,
) -> int:
    """Number of unmet rules (not deduplicated) over the merged seat state.

    Rules naming the same guest twice are malformed and never count.
    """
    locations = build_guest_locations(tables, seat_to_guest)
    total = 0
    for rule in proximity_rules.sit_together:
        if rule.guest1_id == rule.guest2_id:
            continue
        a, b = locations.get(rule.guest1_id), locations.get(rule.guest2_id)
        if a is not None and b is not None and not _adjacent(a, b):
            total += 1
    for rule in proximity_rules.sit_away:
        if rule.guest1_id == rule.guest2_id:
            continue
        a, b = locations.get(rule.guest1_id), locations.get(rule.guest2_id)
        if a is not None and b is not None and _adjacent(a, b):
            total += 1
    return total


def perform_final_violation_check(
    tables: Sequence[Table],
    proximity_rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
    seat_to_guest: Optional[Mapping[str, str]] = None,
) -> List[Violation]:
    """List every unmet rule once per ``(type, unordered pair)``.

    Without ``seat_to_guest`` the seat records' ``assigned_guest_id`` are
    read, which is the state after assignments are written back. Rules
    naming an unknown or unseated guest, or the same guest twice, are
    skipped.
    """
    locations = _locations(tables, seat_to_guest)
    violations: List[Violation] = []
    seen: Set[str] = set()

    checks = [(VIOLATION_SIT_TOGETHER, "together", r) for r in proximity_rules.sit_together]
    checks += [(VIOLATION_SIT_AWAY, "away", r) for r in proximity_rules.sit_away]
    for kind, suffix, rule in checks:
        if rule.guest1_id == rule.guest2_id:
            console_logger.debug("Skipping rule %s: guest %s paired with itself", rule.id, rule.guest1_id)
            continue
        key = "|".join(sorted([rule.guest1_id, rule.guest2_id])) + "|" + suffix
        if key in seen:
            continue
        seen.add(key)

        guest1, guest2 = guest_lookup.get(rule.guest1_id), guest_lookup.get(rule.guest2_id)
        loc1, loc2 = locations.get(rule.guest1_id), locations.get(rule.guest2_id)
        if guest1 is None or guest2 is None or loc1 is None or loc2 is None:
            continue

        adjacent = _adjacent(loc1, loc2)
        if kind == VIOLATION_SIT_TOGETHER:
            if adjacent:
                continue
            if loc1.table.id != loc2.table.id:
                reason = (
                    f"{guest1.name} and {guest2.name} should sit together but are on different tables "
                    f"({loc1.table.label or loc1.table.id} vs {loc2.table.label or loc2.table.id})"
                )
            else:
                reason = f"{guest1.name} and {guest2.name} should sit together but are not adjacent"
        else:
            if not adjacent:
                continue
            reason = f"{guest1.name} and {guest2.name} should not sit together but are adjacent"

        violations.append(
            Violation(
                type=kind,
                guest1_id=rule.guest1_id,
                guest2_id=rule.guest2_id,
                guest1_name=guest1.name,
                guest2_name=guest2.name,
                table_id=loc1.table.id,
                table_label=loc1.table.label,
                seat1_id=loc1.seat.id,
                seat2_id=loc2.seat.id,
                reason=reason,
            )
        )
        console_logger.debug("Violation: %s", reason)

    console_logger.info("Final check found %d violations", len(violations))
    return violations


def find_invariant_breaches(seat_to_guest: Mapping[str, str], tables: Sequence[Table]) -> List[str]:
    """Describe every way the assignment map breaks the locked-seat contract.

    An empty list means the map only keys unlocked, known seats and seats
    each guest at most once, never a guest already locked elsewhere.
    """
    breaches: List[str] = []
    seats = {seat.id: seat for table in tables for seat in table.seats}
    locked_guests = {
        seat.assigned_guest_id for seat in seats.values() if seat.locked and seat.assigned_guest_id
    }
    seen: Dict[str, str] = {}
    for seat_id, guest_id in seat_to_guest.items():
        seat = seats.get(seat_id)
        if seat is None:
            breaches.append(f"Unknown seat {seat_id} holds guest {guest_id}")
        elif seat.locked:
            breaches.append(f"Locked seat {seat_id} appears in the assignment map")
        if guest_id in seen:
            breaches.append(f"Guest {guest_id} is seated in both {seen[guest_id]} and {seat_id}")
        seen.setdefault(guest_id, seat_id)
        if guest_id in locked_guests:
            breaches.append(f"Locked guest {guest_id} was placed again in {seat_id}")
    return breaches


def occupant_map(tables: Sequence[Table], seat_to_guest: Mapping[str, str]) -> Dict[str, str]:
    """``seat id -> guest id`` over every occupied seat, locked ones included."""
    occupied: Dict[str, str] = {}
    for table in tables:
        for seat in table.seats:
            gid = get_seat_occupant(seat, seat_to_guest)
            if gid:
                occupied[seat.id] = gid
    return occupied
