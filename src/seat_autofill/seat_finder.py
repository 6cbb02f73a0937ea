"""Adjacency queries, guest location lookup and contiguous seat search.

Every "who sits where" read merges two sources: the assignment map for
unlocked seats and ``Seat.assigned_guest_id`` for locked seats.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Collection, Dict, List, Mapping, Optional, Sequence, Set

from .models import MISSING_SEAT_NUMBER, LockedGuestLocation, Seat, SeatAssignmentMap, Table


@dataclass
class GuestSeat:
    table: Table
    seat: Seat


@dataclass
class ClusterSeats:
    anchor_seat: Seat
    seats: List[Seat]


# ----------------------------- basic lookups -----------------------------
def seat_sort_key(seat: Seat) -> int:
    return seat.seat_number if seat.seat_number is not None else MISSING_SEAT_NUMBER


def sorted_seats(table: Table) -> List[Seat]:
    return sorted(table.seats, key=seat_sort_key)


def sorted_tables(tables: Sequence[Table]) -> List[Table]:
    return sorted(tables, key=lambda t: t.table_number)


def all_seats(tables: Sequence[Table]) -> List[Seat]:
    return [seat for table in tables for seat in table.seats]


def get_seat_occupant(seat: Seat, seat_to_guest: Mapping[str, str]) -> Optional[str]:
    """Guest in ``seat``: locked seats read the seat record, others the map."""
    if seat.locked:
        return seat.assigned_guest_id or None
    return seat_to_guest.get(seat.id)


def get_adjacent_seats(seat: Seat, seats: Sequence[Seat]) -> List[Seat]:
    """Resolve ``seat.adjacent_seats``. Unknown ids are dropped."""
    if not seat.adjacent_seats:
        return []
    by_id = {s.id: s for s in seats}
    return [by_id[sid] for sid in seat.adjacent_seats if sid in by_id]


def seats_are_adjacent(a: Seat, b: Seat) -> bool:
    return b.id in a.adjacent_seats or a.id in b.adjacent_seats


def find_guest_seat(
    guest_id: str, tables: Sequence[Table], seat_to_guest: Mapping[str, str]
) -> Optional[GuestSeat]:
    """Locate a guest, checking the assignment map before locked seats."""
    for table in tables:
        for seat in table.seats:
            if not seat.locked and seat_to_guest.get(seat.id) == guest_id:
                return GuestSeat(table=table, seat=seat)
    for table in tables:
        for seat in table.seats:
            if seat.locked and seat.assigned_guest_id == guest_id:
                return GuestSeat(table=table, seat=seat)
    return None


def build_guest_locations(tables: Sequence[Table], seat_to_guest: Mapping[str, str]) -> Dict[str, GuestSeat]:
    """``guest id -> GuestSeat`` for everyone seated, in one pass."""
    locations: Dict[str, GuestSeat] = {}
    for table in tables:
        for seat in table.seats:
            if seat.locked and seat.assigned_guest_id:
                locations.setdefault(seat.assigned_guest_id, GuestSeat(table=table, seat=seat))
    for table in tables:
        for seat in table.seats:
            gid = None if seat.locked else seat_to_guest.get(seat.id)
            if gid:
                locations[gid] = GuestSeat(table=table, seat=seat)
    return locations


def are_guests_adjacent(
    guest1_id: str,
    guest2_id: str,
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    locked_map: Optional[Mapping[str, LockedGuestLocation]] = None,
) -> bool:
    """True iff both guests sit on the same table in neighboring seats.

    Adjacency is read from either seat's list.
    """
    loc1 = find_guest_seat(guest1_id, tables, seat_to_guest)
    loc2 = find_guest_seat(guest2_id, tables, seat_to_guest)
    if not loc1 or not loc2 or loc1.table.id != loc2.table.id:
        return False
    return seats_are_adjacent(loc1.seat, loc2.seat)


# ----------------------------- contiguous search -----------------------------
def find_contiguous_seats(
    start_seat: Seat,
    seats: Sequence[Seat],
    count: int,
    seat_to_guest: Mapping[str, str],
    exclude_ids: Collection[str] = (),
    locked_map: Optional[Mapping[str, LockedGuestLocation]] = None,
) -> List[Seat]:
    """Breadth-first run of free seats starting at ``start_seat``.

    A seat is free when it is unlocked and either empty or held by a guest
    in ``exclude_ids``. Returns at most ``count`` seats in visit order; the
    result may be shorter, so callers must check its length.
    """
    if count <= 0:
        return []
    by_id = {s.id: s for s in seats}
    result = [start_seat]
    visited = {start_seat.id}
    queue = deque([start_seat])
    while queue and len(result) < count:
        current = queue.popleft()
        for sid in current.adjacent_seats:
            adj = by_id.get(sid)
            if adj is None or adj.id in visited:
                continue
            visited.add(adj.id)
            if adj.locked:
                continue
            occupant = seat_to_guest.get(adj.id)
            if occupant and occupant not in exclude_ids:
                continue
            result.append(adj)
            queue.append(adj)
            if len(result) >= count:
                break
    return result


def find_contiguous_seats_for_cluster(
    table: Table,
    size: int,
    seat_to_guest: Mapping[str, str],
    cluster_guest_ids: Collection[str],
    other_cluster_occupied: Collection[str] = (),
    locked_map: Optional[Mapping[str, LockedGuestLocation]] = None,
    start_seat: Optional[Seat] = None,
    seat_filter: Optional[Callable[[Seat], bool]] = None,
) -> Optional[ClusterSeats]:
    """Find ``size`` connected seats on ``table`` for a cluster.

    When a cluster member is locked on this table the search is anchored at
    that seat; otherwise at ``start_seat`` when given, else every usable
    seat is tried as a start in seat order. A block never contains a locked
    seat of a non-member, a seat held by a guest in
    ``other_cluster_occupied``, or a seat rejected by ``seat_filter``.
    """
    if size <= 0:
        return None
    locked_map = locked_map or {}
    members = set(cluster_guest_ids)
    anchor: Optional[Seat] = None
    for gid in cluster_guest_ids:
        loc = locked_map.get(gid)
        if loc is not None and loc.table_id == table.id:
            anchor = loc.seat
            break

    by_id = {s.id: s for s in table.seats}

    def usable(seat: Seat) -> bool:
        if anchor is not None and seat.id == anchor.id:
            return True
        occupant = get_seat_occupant(seat, seat_to_guest)
        if seat.locked:
            return bool(occupant) and occupant in members
        if occupant and occupant in other_cluster_occupied and occupant not in members:
            return False
        return seat_filter is None or occupant in members or seat_filter(seat)

    if anchor is not None:
        starts = [anchor]
    elif start_seat is not None:
        starts = [start_seat]
    else:
        starts = [s for s in sorted_seats(table) if not s.locked and usable(s)]
    for start in starts:
        block: List[Seat] = []
        visited: Set[str] = {start.id}
        queue = deque([start])
        while queue and len(block) < size:
            current = queue.popleft()
            if not usable(current):
                continue
            block.append(current)
            for sid in current.adjacent_seats:
                adj = by_id.get(sid)
                if adj is not None and adj.id not in visited:
                    visited.add(adj.id)
                    queue.append(adj)
        if len(block) >= size:
            return ClusterSeats(anchor_seat=start, seats=block[:size])
    return None


# ----------------------------- table queries -----------------------------
def get_available_seats_on_table(table: Table, seat_to_guest: Mapping[str, str]) -> List[Seat]:
    """Unlocked seats of ``table``, occupied or not."""
    return [s for s in table.seats if not s.locked]


def count_cluster_guests_on_table(
    table_id: str,
    cluster_ids: Collection[str],
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    locked_map: Optional[Mapping[str, LockedGuestLocation]] = None,
) -> int:
    count = 0
    for gid in cluster_ids:
        loc = find_guest_seat(gid, tables, seat_to_guest)
        if loc and loc.table.id == table_id:
            count += 1
    return count


# ----------------------------- map mutation -----------------------------
def move_guest(seat_to_guest: SeatAssignmentMap, from_seat: Seat, to_seat: Seat) -> None:
    """Swap the occupants of two unlocked seats (either may be empty)."""
    a = seat_to_guest.pop(from_seat.id, None)
    b = seat_to_guest.pop(to_seat.id, None)
    if a is not None:
        seat_to_guest[to_seat.id] = a
    if b is not None:
        seat_to_guest[from_seat.id] = b
