"""Consolidate tag groups onto one table and into one chain of seats.

Tag groups are independent of pairwise proximity rules. For every group
with at least two seated members:

* Phase 1 gathers the members on one table (the table of a locked member,
  else the one holding the most members).
* Phase 2a places the members on a contiguous run of seats found by
  breadth-first search from a locked member or the highest priority one.
* Phase 2b falls back to up to three greedy adjacency passes when no
  contiguous run exists.
* Phase 3 tries direct swaps for member pairs that are still apart,
  only when Phase 2a did not succeed.

Members of other tag groups are never swapped away while a group is being
arranged. When proximity rules are given, a tag group move is undone if it
raises the number of unmet proximity rules.
"""
from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .compatibility import can_place_guest_in_seat
from .models import Guest, LockedGuestLocation, ProximityRules, Seat, SeatAssignmentMap, Table, TagSitTogetherGroup
from .ordering import Comparator
from .seat_finder import (
    are_guests_adjacent,
    find_contiguous_seats_for_cluster,
    find_guest_seat,
    get_adjacent_seats,
    get_seat_occupant,
    move_guest,
    seat_sort_key,
)
from .sit_together import find_best_target_table, perform_cross_table_move
from .violations import count_violations

console_logger = logging.getLogger(__name__)

MAX_ADJACENCY_PASSES = 3


class _GroupContext:
    """State shared by the phases for one tag group."""

    def __init__(
        self,
        seat_to_guest: SeatAssignmentMap,
        tables: Sequence[Table],
        guest_lookup: Mapping[str, Guest],
        comparator: Comparator,
        locked_map: Mapping[str, LockedGuestLocation],
        protected_ids: Set[str],
        proximity_rules: Optional[ProximityRules],
    ) -> None:
        self.seat_to_guest = seat_to_guest
        self.tables = tables
        self.guest_lookup = guest_lookup
        self.comparator = comparator
        self.locked_map = locked_map
        self.protected_ids = protected_ids
        self.proximity_rules = proximity_rules

    # ----------------------------- guarded changes -----------------------------
    def proximity_score(self) -> int:
        if self.proximity_rules is None:
            return 0
        return count_violations(self.seat_to_guest, self.tables, self.proximity_rules)

    def snapshot(self) -> Dict[str, str]:
        return dict(self.seat_to_guest)

    def restore(self, snapshot: Dict[str, str]) -> None:
        self.seat_to_guest.clear()
        self.seat_to_guest.update(snapshot)

    def can_displace(self, guest_id: str, members: Set[str]) -> bool:
        if guest_id in self.locked_map:
            return False
        return guest_id in members or guest_id not in self.protected_ids

    def locate(self, guest_id: str):
        return find_guest_seat(guest_id, self.tables, self.seat_to_guest)

    def members_on(self, member_ids: Sequence[str], table_id: str) -> List[str]:
        result = []
        for gid in member_ids:
            loc = self.locate(gid)
            if loc is not None and loc.table.id == table_id:
                result.append(gid)
        return result

    def adjacent_member_count(self, guest_id: str, member_ids: Sequence[str]) -> int:
        loc = self.locate(guest_id)
        if loc is None:
            return 0
        neighbors = {get_seat_occupant(s, self.seat_to_guest) for s in get_adjacent_seats(loc.seat, loc.table.seats)}
        return sum(1 for gid in member_ids if gid != guest_id and gid in neighbors)


# ----------------------------- phase 1 -----------------------------
def _consolidate(ctx: _GroupContext, member_ids: List[str]) -> None:
    tables_used = {ctx.locate(gid).table.id for gid in member_ids}
    if len(tables_used) <= 1:
        return
    target = find_best_target_table(member_ids, ctx.tables, ctx.seat_to_guest, ctx.locked_map)
    if target is None:
        return
    members = set(member_ids)
    blocked = ctx.protected_ids | members
    anchors = ctx.members_on(member_ids, target.id)
    to_move = [gid for gid in member_ids if gid not in anchors and gid not in ctx.locked_map]
    console_logger.debug("Gathering tag group members %s on table %s", to_move, target.id)

    for gid in to_move:
        guest = ctx.guest_lookup.get(gid)
        if guest is None:
            continue
        near: List[Seat] = []
        for anchor_id in anchors:
            loc = ctx.locate(anchor_id)
            if loc is None or loc.table.id != target.id:
                continue
            for adj in get_adjacent_seats(loc.seat, target.seats):
                if not adj.locked and can_place_guest_in_seat(guest, adj) and adj not in near:
                    near.append(adj)

        def preference(seat: Seat) -> tuple:
            return (1 if ctx.seat_to_guest.get(seat.id) else 0, seat_sort_key(seat))

        near.sort(key=preference)
        rest = sorted(
            (s for s in target.seats if not s.locked and can_place_guest_in_seat(guest, s) and s not in near),
            key=preference,
        )
        for seat in near + rest:
            before = ctx.proximity_score()
            saved = ctx.snapshot()
            if not perform_cross_table_move(
                gid, seat, ctx.tables, ctx.seat_to_guest, ctx.guest_lookup, ctx.locked_map, blocked
            ):
                continue
            if ctx.proximity_score() > before:
                ctx.restore(saved)
                continue
            anchors.append(gid)
            break


# ----------------------------- phase 2a -----------------------------
def _block_anchor(ctx: _GroupContext, member_ids: Sequence[str], table: Table) -> Optional[Seat]:
    for gid in member_ids:
        loc = ctx.locked_map.get(gid)
        if loc is not None and loc.table_id == table.id:
            return loc.seat
    known = [gid for gid in member_ids if gid in ctx.guest_lookup]
    if not known:
        return None
    best = min(known, key=cmp_to_key(lambda a, b: ctx.comparator(ctx.guest_lookup[a], ctx.guest_lookup[b])))
    loc = ctx.locate(best)
    return loc.seat if loc is not None else None


def _place_block(ctx: _GroupContext, member_ids: Sequence[str], table: Table) -> bool:
    members = set(member_ids)
    anchor = _block_anchor(ctx, member_ids, table)
    if anchor is None:
        return False

    def fits_some_member(seat: Seat) -> bool:
        occupant = ctx.seat_to_guest.get(seat.id)
        if occupant and not ctx.can_displace(occupant, members):
            return False
        return any(
            can_place_guest_in_seat(ctx.guest_lookup[gid], seat)
            for gid in member_ids if gid in ctx.guest_lookup
        )

    found = find_contiguous_seats_for_cluster(
        table,
        len(member_ids),
        ctx.seat_to_guest,
        member_ids,
        other_cluster_occupied=ctx.protected_ids,
        locked_map=ctx.locked_map,
        start_seat=anchor,
        seat_filter=fits_some_member,
    )
    if found is None:
        return False

    before = ctx.proximity_score()
    saved = ctx.snapshot()
    block_ids = {s.id for s in found.seats}
    open_seats = [s for s in found.seats if get_seat_occupant(s, ctx.seat_to_guest) not in members]
    for gid in member_ids:
        if gid in ctx.locked_map:
            continue
        loc = ctx.locate(gid)
        guest = ctx.guest_lookup.get(gid)
        if loc is None or guest is None or loc.seat.id in block_ids:
            continue
        for seat in open_seats:
            if not can_place_guest_in_seat(guest, seat):
                continue
            occupant_id = ctx.seat_to_guest.get(seat.id)
            if occupant_id:
                occupant = ctx.guest_lookup.get(occupant_id)
                if occupant is None or not can_place_guest_in_seat(occupant, loc.seat):
                    continue
            move_guest(ctx.seat_to_guest, loc.seat, seat)
            open_seats.remove(seat)
            break

    placed = _all_in_block(ctx, member_ids, block_ids)
    if not placed or ctx.proximity_score() > before:
        ctx.restore(saved)
        return False
    console_logger.debug("Tag group %s now sits in a contiguous block on %s", list(member_ids), table.id)
    return True


def _all_in_block(ctx: _GroupContext, member_ids: Sequence[str], block_ids: Set[str]) -> bool:
    for gid in member_ids:
        loc = ctx.locate(gid)
        if loc is None or loc.seat.id not in block_ids:
            return False
    return True


# ----------------------------- phase 2b -----------------------------
def _greedy_adjacency(ctx: _GroupContext, member_ids: Sequence[str], table: Table) -> int:
    """One greedy pass. Returns the number of moves kept."""
    members = set(member_ids)
    moves = 0
    for gid in member_ids:
        guest = ctx.guest_lookup.get(gid)
        if guest is None or gid in ctx.locked_map:
            continue
        loc = ctx.locate(gid)
        if loc is None or loc.table.id != table.id:
            continue
        before = ctx.adjacent_member_count(gid, member_ids)
        if before == len(member_ids) - 1:
            continue

        candidates: Dict[str, Seat] = {}
        for other in member_ids:
            if other == gid:
                continue
            other_loc = ctx.locate(other)
            if other_loc is None or other_loc.table.id != table.id:
                continue
            for adj in get_adjacent_seats(other_loc.seat, table.seats):
                if adj.locked or adj.id == loc.seat.id or not can_place_guest_in_seat(guest, adj):
                    continue
                occupant = ctx.seat_to_guest.get(adj.id)
                if occupant and not ctx.can_displace(occupant, members):
                    continue
                candidates[adj.id] = adj

        def touching(seat: Seat) -> int:
            neighbors = {get_seat_occupant(s, ctx.seat_to_guest) for s in get_adjacent_seats(seat, table.seats)}
            return sum(1 for other in member_ids if other != gid and other in neighbors)

        for seat in sorted(candidates.values(), key=lambda s: (-touching(s), seat_sort_key(s))):
            occupant_id = ctx.seat_to_guest.get(seat.id)
            if occupant_id:
                occupant = ctx.guest_lookup.get(occupant_id)
                if occupant is None or not can_place_guest_in_seat(occupant, loc.seat):
                    continue
            score_before = ctx.proximity_score()
            move_guest(ctx.seat_to_guest, loc.seat, seat)
            if ctx.adjacent_member_count(gid, member_ids) > before and ctx.proximity_score() <= score_before:
                moves += 1
                break
            move_guest(ctx.seat_to_guest, seat, loc.seat)
    return moves


# ----------------------------- phase 3 -----------------------------
def _direct_swaps(ctx: _GroupContext, member_ids: Sequence[str], table: Table) -> None:
    members = set(member_ids)
    for i, a_id in enumerate(member_ids):
        for b_id in member_ids[i + 1:]:
            if are_guests_adjacent(a_id, b_id, ctx.tables, ctx.seat_to_guest, ctx.locked_map):
                continue
            a, b = ctx.guest_lookup.get(a_id), ctx.guest_lookup.get(b_id)
            if a is None or b is None:
                continue
            if a_id in ctx.locked_map and b_id in ctx.locked_map:
                continue
            if a_id in ctx.locked_map:
                staying, moving = a, b
            elif b_id in ctx.locked_map:
                staying, moving = b, a
            else:
                staying, moving = (a, b) if ctx.comparator(a, b) <= 0 else (b, a)

            staying_loc, moving_loc = ctx.locate(staying.id), ctx.locate(moving.id)
            if staying_loc is None or moving_loc is None or staying_loc.table.id != moving_loc.table.id:
                continue
            neighbors = get_adjacent_seats(staying_loc.seat, table.seats)
            options = [s for s in neighbors if not s.locked and not ctx.seat_to_guest.get(s.id)]
            options += [s for s in neighbors if not s.locked and ctx.seat_to_guest.get(s.id)]
            for seat in options:
                if not can_place_guest_in_seat(moving, seat):
                    continue
                occupant_id = ctx.seat_to_guest.get(seat.id)
                if occupant_id:
                    occupant = ctx.guest_lookup.get(occupant_id)
                    if occupant is None or not ctx.can_displace(occupant_id, members):
                        continue
                    if not can_place_guest_in_seat(occupant, moving_loc.seat):
                        continue
                score_before = ctx.proximity_score()
                move_guest(ctx.seat_to_guest, moving_loc.seat, seat)
                if ctx.proximity_score() <= score_before:
                    break
                move_guest(ctx.seat_to_guest, seat, moving_loc.seat)


# ----------------------------- entry point -----------------------------
def apply_tag_group_optimization(
    seat_to_guest: SeatAssignmentMap,
    tables: Sequence[Table],
    tag_groups: Sequence[TagSitTogetherGroup],
    all_guests: Sequence[Guest],
    comparator: Comparator,
    locked_map: Mapping[str, LockedGuestLocation],
    proximity_rules: Optional[ProximityRules] = None,
) -> SeatAssignmentMap:
    """Arrange every tag group in place. Groups are handled in order."""
    if not tag_groups:
        return seat_to_guest
    guest_lookup = {g.id: g for g in all_guests}
    all_group_ids = {gid for group in tag_groups for gid in group.guest_ids}
    seated_before = len(seat_to_guest)

    for group in tag_groups:
        member_ids: List[str] = []
        for gid in group.guest_ids:
            if gid not in member_ids and find_guest_seat(gid, tables, seat_to_guest) is not None:
                member_ids.append(gid)
        if len(member_ids) < 2:
            console_logger.debug("Tag group %s has fewer than two seated members", group.id)
            continue

        ctx = _GroupContext(
            seat_to_guest, tables, guest_lookup, comparator, locked_map,
            all_group_ids - set(member_ids), proximity_rules,
        )
        _consolidate(ctx, member_ids)

        contiguous = False
        for table in tables:
            on_table = ctx.members_on(member_ids, table.id)
            if len(on_table) >= 2 and _place_block(ctx, on_table, table):
                contiguous = True
        if contiguous:
            continue

        for _ in range(MAX_ADJACENCY_PASSES):
            moves = 0
            for table in tables:
                on_table = ctx.members_on(member_ids, table.id)
                if len(on_table) >= 2:
                    moves += _greedy_adjacency(ctx, on_table, table)
            if moves == 0:
                break

        for table in tables:
            on_table = ctx.members_on(member_ids, table.id)
            if len(on_table) >= 2:
                _direct_swaps(ctx, on_table, table)

    if len(seat_to_guest) != seated_before:
        console_logger.warning(
            "Tag group pass changed the seated count from %d to %d", seated_before, len(seat_to_guest)
        )
    return seat_to_guest
