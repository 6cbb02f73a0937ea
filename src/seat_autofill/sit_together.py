"""Local search that brings sit-together clusters next to each other.

Three passes run once per call:

1. Cross-table consolidation. A cluster spread over several tables is
   gathered on one target table: the table of a locked member, else the
   table holding the most members (lowest table id on ties).
2. Within-table adjacency. Each unlocked member not yet next to all of
   its on-table partners is swapped into the seat that touches the most
   partners.
3. Direct swaps. Every rule still unmet moves its lower priority guest
   next to the other one, across tables if needed, or the other way round.
   A swap is kept only when the number of unmet rules drops.

Guests of other clusters who already sit next to a partner are never
displaced by the first two passes. Moves are swaps or moves into empty
seats, so the number of seated guests never changes.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .clusters import build_sit_together_clusters, get_optimal_cluster_order
from .compatibility import can_place_guest_in_seat
from .models import Guest, LockedGuestLocation, ProximityRules, Seat, SeatAssignmentMap, Table
from .ordering import Comparator
from .rules import get_all_sit_together_partners
from .seat_finder import (
    are_guests_adjacent,
    build_guest_locations,
    find_guest_seat,
    get_adjacent_seats,
    get_seat_occupant,
    move_guest,
    seat_sort_key,
    seats_are_adjacent,
)
from .violations import count_violations

console_logger = logging.getLogger(__name__)


# ----------------------------- shared helpers -----------------------------
def find_best_target_table(
    member_ids: Sequence[str],
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    locked_map: Mapping[str, LockedGuestLocation],
) -> Optional[Table]:
    """Table of a locked member, else the table holding the most members.

    Ties on member count go to the lowest table id. Returns ``None`` when no
    member is seated.
    """
    by_id = {t.id: t for t in tables}
    for gid in member_ids:
        loc = locked_map.get(gid)
        if loc is not None and loc.table_id in by_id:
            return by_id[loc.table_id]

    counts: Dict[str, int] = {}
    for gid in member_ids:
        loc = find_guest_seat(gid, tables, seat_to_guest)
        if loc is not None:
            counts[loc.table.id] = counts.get(loc.table.id, 0) + 1
    if not counts:
        return None
    best_id = min(counts, key=lambda tid: (-counts[tid], tid))
    return by_id[best_id]


def perform_cross_table_move(
    guest_id: str,
    target_seat: Seat,
    tables: Sequence[Table],
    seat_to_guest: SeatAssignmentMap,
    guest_lookup: Mapping[str, Guest],
    locked_map: Mapping[str, LockedGuestLocation],
    protected_ids: Optional[Set[str]] = None,
) -> bool:
    """Move ``guest_id`` into ``target_seat``, swapping with its occupant.

    Fails without touching the map when either guest is locked, a seat mode
    forbids the move, or the occupant is in ``protected_ids``.
    """
    guest = guest_lookup.get(guest_id)
    if guest is None or guest_id in locked_map or target_seat.locked:
        return False
    if not can_place_guest_in_seat(guest, target_seat):
        return False
    current = find_guest_seat(guest_id, tables, seat_to_guest)
    if current is None or current.seat.locked or current.seat.id == target_seat.id:
        return False

    occupant_id = seat_to_guest.get(target_seat.id)
    if occupant_id:
        occupant = guest_lookup.get(occupant_id)
        if occupant is None or occupant_id in locked_map:
            return False
        if protected_ids and occupant_id in protected_ids:
            return False
        if not can_place_guest_in_seat(occupant, current.seat):
            return False
    move_guest(seat_to_guest, current.seat, target_seat)
    return True


def _seat_preference(seat: Seat, seat_to_guest: Mapping[str, str]) -> tuple:
    # Empty seats first, then by seat number.
    return (0 if not seat_to_guest.get(seat.id) else 1, seat_sort_key(seat))


def _count_adjacent_partners(
    guest_id: str, partners: Sequence[str], tables: Sequence[Table],
    seat_to_guest: Mapping[str, str], locked_map: Mapping[str, LockedGuestLocation],
) -> int:
    return sum(1 for pid in partners if are_guests_adjacent(guest_id, pid, tables, seat_to_guest, locked_map))


def settled_guests(
    proximity_rules: ProximityRules, tables: Sequence[Table], seat_to_guest: Mapping[str, str]
) -> Set[str]:
    """Guests currently sitting next to at least one sit-together partner."""
    locations = build_guest_locations(tables, seat_to_guest)
    settled: Set[str] = set()
    for rule in proximity_rules.sit_together:
        a, b = locations.get(rule.guest1_id), locations.get(rule.guest2_id)
        if a is None or b is None or rule.guest1_id == rule.guest2_id:
            continue
        if a.table.id == b.table.id and seats_are_adjacent(a.seat, b.seat):
            settled.add(rule.guest1_id)
            settled.add(rule.guest2_id)
    return settled


# ----------------------------- phase 1 -----------------------------
def _consolidate_cluster(
    member_ids: List[str],
    tables: Sequence[Table],
    seat_to_guest: SeatAssignmentMap,
    proximity_rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
    locked_map: Mapping[str, LockedGuestLocation],
) -> None:
    locations = {gid: find_guest_seat(gid, tables, seat_to_guest) for gid in member_ids}
    seated = {gid: loc for gid, loc in locations.items() if loc is not None}
    if len({loc.table.id for loc in seated.values()}) <= 1:
        return
    target = find_best_target_table(member_ids, tables, seat_to_guest, locked_map)
    if target is None:
        return

    members = set(member_ids)
    anchors = [gid for gid, loc in seated.items() if loc.table.id == target.id]
    to_move = [gid for gid, loc in seated.items() if loc.table.id != target.id and gid not in locked_map]
    console_logger.debug("Consolidating cluster %s on table %s", member_ids, target.id)

    for gid in to_move:
        guest = guest_lookup.get(gid)
        if guest is None:
            continue
        near: List[Seat] = []
        for anchor_id in anchors:
            loc = find_guest_seat(anchor_id, tables, seat_to_guest)
            if loc is None or loc.table.id != target.id:
                continue
            for adj in get_adjacent_seats(loc.seat, target.seats):
                if not adj.locked and can_place_guest_in_seat(guest, adj) and adj not in near:
                    near.append(adj)
        near.sort(key=lambda s: _seat_preference(s, seat_to_guest))
        rest = sorted(
            (s for s in target.seats if not s.locked and can_place_guest_in_seat(guest, s) and s not in near),
            key=lambda s: _seat_preference(s, seat_to_guest),
        )
        protected = members | settled_guests(proximity_rules, tables, seat_to_guest)
        for seat in near + rest:
            if perform_cross_table_move(gid, seat, tables, seat_to_guest, guest_lookup, locked_map, protected):
                anchors.append(gid)
                break
        else:
            console_logger.debug("No seat on table %s for cluster member %s", target.id, gid)


# ----------------------------- phase 2 -----------------------------
def _improve_table_adjacency(
    member_ids: List[str],
    table: Table,
    tables: Sequence[Table],
    seat_to_guest: SeatAssignmentMap,
    proximity_rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
    locked_map: Mapping[str, LockedGuestLocation],
) -> None:
    members = set(member_ids)
    on_table = []
    for gid in member_ids:
        loc = find_guest_seat(gid, tables, seat_to_guest)
        if loc is not None and loc.table.id == table.id:
            on_table.append(gid)
    if len(on_table) < 2:
        return

    for gid in on_table:
        guest = guest_lookup.get(gid)
        if guest is None or gid in locked_map:
            continue
        partners = [p for p in get_all_sit_together_partners(gid, proximity_rules.sit_together) if p in on_table]
        current = find_guest_seat(gid, tables, seat_to_guest)
        if not partners or current is None or current.table.id != table.id:
            continue
        before = _count_adjacent_partners(gid, partners, tables, seat_to_guest, locked_map)
        if before == len(partners):
            continue

        candidates: Dict[str, Seat] = {}
        for pid in partners:
            ploc = find_guest_seat(pid, tables, seat_to_guest)
            if ploc is None or ploc.table.id != table.id:
                continue
            for adj in get_adjacent_seats(ploc.seat, table.seats):
                if adj.locked or adj.id == current.seat.id or not can_place_guest_in_seat(guest, adj):
                    continue
                candidates[adj.id] = adj

        def rank(seat: Seat) -> tuple:
            occupant = seat_to_guest.get(seat.id)
            touching = sum(
                1 for s in get_adjacent_seats(seat, table.seats)
                if get_seat_occupant(s, seat_to_guest) in partners
            )
            # Empty seats, then non-cluster occupants, then cluster occupants.
            kind = 0 if not occupant else (2 if occupant in members else 1)
            return (-touching, kind, seat_sort_key(seat))

        for seat in sorted(candidates.values(), key=rank):
            occupant_id = seat_to_guest.get(seat.id)
            if occupant_id:
                occupant = guest_lookup.get(occupant_id)
                if occupant is None or occupant_id in locked_map:
                    continue
                if not can_place_guest_in_seat(occupant, current.seat):
                    continue
                other_partners = get_all_sit_together_partners(occupant_id, proximity_rules.sit_together)
                other_before = _count_adjacent_partners(occupant_id, other_partners, tables, seat_to_guest, locked_map)
            move_guest(seat_to_guest, current.seat, seat)
            after = _count_adjacent_partners(gid, partners, tables, seat_to_guest, locked_map)
            ok = after > before
            if ok and occupant_id:
                other_after = _count_adjacent_partners(occupant_id, other_partners, tables, seat_to_guest, locked_map)
                # Outsiders keep every partner they had; members may give up one.
                ok = other_after >= (other_before - 1 if occupant_id in members else other_before)
            if ok:
                console_logger.debug("Moved %s to %s next to %d partners", gid, seat.id, after)
                break
            move_guest(seat_to_guest, seat, current.seat)


# ----------------------------- phase 3 -----------------------------
def _join(
    moving: Guest,
    staying: Guest,
    tables: Sequence[Table],
    seat_to_guest: SeatAssignmentMap,
    proximity_rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
    locked_map: Mapping[str, LockedGuestLocation],
) -> bool:
    """Move ``moving`` next to ``staying`` if that lowers the unmet rule count."""
    if moving.id in locked_map:
        return False
    staying_loc = find_guest_seat(staying.id, tables, seat_to_guest)
    moving_loc = find_guest_seat(moving.id, tables, seat_to_guest)
    if staying_loc is None or moving_loc is None or moving_loc.seat.locked:
        return False

    neighbors = [s for s in get_adjacent_seats(staying_loc.seat, staying_loc.table.seats) if not s.locked]
    # Empty seats first, then swaps.
    neighbors.sort(key=lambda s: 0 if not seat_to_guest.get(s.id) else 1)
    baseline = count_violations(seat_to_guest, tables, proximity_rules)
    for seat in neighbors:
        if not can_place_guest_in_seat(moving, seat):
            continue
        occupant_id = seat_to_guest.get(seat.id)
        if occupant_id:
            occupant = guest_lookup.get(occupant_id)
            if occupant is None or occupant_id in locked_map:
                continue
            if not can_place_guest_in_seat(occupant, moving_loc.seat):
                continue
            if staying.id in get_all_sit_together_partners(occupant_id, proximity_rules.sit_together):
                continue
        move_guest(seat_to_guest, moving_loc.seat, seat)
        if count_violations(seat_to_guest, tables, proximity_rules) < baseline:
            console_logger.debug("Moved %s to %s next to %s", moving.id, seat.id, staying.id)
            return True
        move_guest(seat_to_guest, seat, moving_loc.seat)
    return False


def _direct_swap(
    rule_guest1: str,
    rule_guest2: str,
    tables: Sequence[Table],
    seat_to_guest: SeatAssignmentMap,
    proximity_rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
    comparator: Comparator,
    locked_map: Mapping[str, LockedGuestLocation],
) -> None:
    g1, g2 = guest_lookup.get(rule_guest1), guest_lookup.get(rule_guest2)
    if g1 is None or g2 is None or g1.id == g2.id:
        return
    if g1.id in locked_map and g2.id in locked_map:
        return
    if are_guests_adjacent(g1.id, g2.id, tables, seat_to_guest, locked_map):
        return

    staying, moving = (g1, g2) if comparator(g1, g2) <= 0 else (g2, g1)
    if moving.id in locked_map:
        staying, moving = moving, staying

    args = (tables, seat_to_guest, proximity_rules, guest_lookup, locked_map)
    if not _join(moving, staying, *args) and not _join(staying, moving, *args):
        console_logger.debug("Could not bring %s and %s together", staying.id, moving.id)


# ----------------------------- entry point -----------------------------
def apply_sit_together_optimization(
    seat_to_guest: SeatAssignmentMap,
    tables: Sequence[Table],
    proximity_rules: ProximityRules,
    all_guests: Sequence[Guest],
    comparator: Comparator,
    locked_map: Mapping[str, LockedGuestLocation],
) -> SeatAssignmentMap:
    """Run the three sit-together passes over ``seat_to_guest`` in place."""
    if not proximity_rules.sit_together:
        return seat_to_guest
    guest_lookup = {g.id: g for g in all_guests}
    clusters = build_sit_together_clusters(proximity_rules.sit_together)
    seated_before = len(seat_to_guest)

    for member_ids in clusters.values():
        if len(member_ids) < 2:
            continue
        ordered = get_optimal_cluster_order(member_ids, proximity_rules.sit_together, guest_lookup, comparator)
        _consolidate_cluster(ordered, tables, seat_to_guest, proximity_rules, guest_lookup, locked_map)

        table_ids: List[str] = []
        for gid in ordered:
            loc = find_guest_seat(gid, tables, seat_to_guest)
            if loc is not None and loc.table.id not in table_ids:
                table_ids.append(loc.table.id)
        for table in tables:
            if table.id in table_ids:
                _improve_table_adjacency(
                    ordered, table, tables, seat_to_guest, proximity_rules, guest_lookup, locked_map
                )

    for rule in proximity_rules.sit_together:
        _direct_swap(
            rule.guest1_id, rule.guest2_id, tables, seat_to_guest,
            proximity_rules, guest_lookup, comparator, locked_map,
        )

    if len(seat_to_guest) != seated_before:
        console_logger.warning(
            "Sit-together pass changed the seated count from %d to %d", seated_before, len(seat_to_guest)
        )
    return seat_to_guest
