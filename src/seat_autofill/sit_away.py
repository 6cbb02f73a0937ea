"""Separate sit-away pairs with validated moves.

Each adjacent pair moves its lower priority unlocked guest. Candidate seats
are tried in order (same-table empty seats, same-table swaps, then other
tables) up to ``MAX_ATTEMPTS`` per rule. A move is kept only when it
lowers the total count of unmet sit-together and sit-away rules;
otherwise the two touched map entries are restored.
"""
from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import List, Mapping, Sequence, Tuple

from .compatibility import can_place_guest_in_seat
from .models import Guest, LockedGuestLocation, ProximityRules, Seat, SeatAssignmentMap, Table
from .ordering import Comparator
from .seat_finder import (
    are_guests_adjacent,
    find_guest_seat,
    get_adjacent_seats,
    get_seat_occupant,
    seat_sort_key,
)
from .violations import count_violations

console_logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 20


def _is_seat_adjacent_to_guest(seat: Seat, table: Table, guest_id: str, seat_to_guest: Mapping[str, str]) -> bool:
    return any(get_seat_occupant(adj, seat_to_guest) == guest_id for adj in get_adjacent_seats(seat, table.seats))


def _candidate_seats(
    guest: Guest,
    avoid_id: str,
    current_seat: Seat,
    current_table_id: str,
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
) -> List[Tuple[Seat, Table]]:
    candidates = []
    for table in tables:
        for seat in table.seats:
            if seat.locked or seat.id == current_seat.id or not can_place_guest_in_seat(guest, seat):
                continue
            if _is_seat_adjacent_to_guest(seat, table, avoid_id, seat_to_guest):
                continue
            other_table = 0 if table.id == current_table_id else 1
            occupied = 1 if seat_to_guest.get(seat.id) else 0
            candidates.append(((other_table, occupied, seat_sort_key(seat)), seat, table))
    candidates.sort(key=lambda c: c[0])
    return [(seat, table) for _, seat, table in candidates]


def apply_sit_away_optimization(
    seat_to_guest: SeatAssignmentMap,
    tables: Sequence[Table],
    proximity_rules: ProximityRules,
    all_guests: Sequence[Guest],
    comparator: Comparator,
    locked_map: Mapping[str, LockedGuestLocation],
) -> SeatAssignmentMap:
    """Try to split every adjacent sit-away pair, in place."""
    if not proximity_rules.sit_away:
        return seat_to_guest
    guest_lookup = {g.id: g for g in all_guests}

    pairs = []
    for rule in proximity_rules.sit_away:
        g1, g2 = guest_lookup.get(rule.guest1_id), guest_lookup.get(rule.guest2_id)
        if g1 is None or g2 is None:
            continue
        pairs.append((g1, g2) if comparator(g1, g2) <= 0 else (g2, g1))
    pairs.sort(key=cmp_to_key(lambda a, b: comparator(a[0], b[0])))

    for higher, lower in pairs:
        if higher.id in locked_map and lower.id in locked_map:
            console_logger.debug("Sit-away pair %s/%s is locked in place", higher.id, lower.id)
            continue
        higher_loc = find_guest_seat(higher.id, tables, seat_to_guest)
        lower_loc = find_guest_seat(lower.id, tables, seat_to_guest)
        if higher_loc is None or lower_loc is None or higher_loc.table.id != lower_loc.table.id:
            continue
        if not are_guests_adjacent(higher.id, lower.id, tables, seat_to_guest, locked_map):
            continue

        if lower.id in locked_map:
            moving, avoid, moving_loc = higher, lower, higher_loc
        else:
            moving, avoid, moving_loc = lower, higher, lower_loc

        baseline = count_violations(seat_to_guest, tables, proximity_rules)
        candidates = _candidate_seats(moving, avoid.id, moving_loc.seat, moving_loc.table.id, tables, seat_to_guest)
        origin = moving_loc.seat
        resolved = False

        for seat, _table in candidates[:MAX_ATTEMPTS]:
            target_guest_id = seat_to_guest.get(seat.id)
            if target_guest_id:
                target_guest = guest_lookup.get(target_guest_id)
                if target_guest is None or target_guest_id in locked_map:
                    continue
                if not can_place_guest_in_seat(target_guest, origin):
                    continue

            snapshot = {origin.id: seat_to_guest.get(origin.id), seat.id: target_guest_id}
            seat_to_guest[seat.id] = moving.id
            if target_guest_id:
                seat_to_guest[origin.id] = target_guest_id
            else:
                del seat_to_guest[origin.id]

            if count_violations(seat_to_guest, tables, proximity_rules) < baseline:
                console_logger.debug("Moved %s to %s away from %s", moving.id, seat.id, avoid.id)
                resolved = True
                break

            for seat_id, gid in snapshot.items():
                if gid is None:
                    seat_to_guest.pop(seat_id, None)
                else:
                    seat_to_guest[seat_id] = gid

        if not resolved:
            console_logger.debug("Could not separate %s and %s", higher.id, lower.id)
    return seat_to_guest
