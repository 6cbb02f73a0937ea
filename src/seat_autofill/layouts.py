"""Table builders producing seats with explicit adjacency lists."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .models import SEAT_MODE_DEFAULT, SEAT_MODES, Seat, Table


def _seat_id(table_id: str, number: int) -> str:
    return f"{table_id}-seat-{number}"


def _mode_for(number: int, seat_modes: Optional[Dict[int, str]]) -> str:
    mode = (seat_modes or {}).get(number, SEAT_MODE_DEFAULT)
    if mode not in SEAT_MODES:
        raise ValueError(f"Unknown seat mode for seat {number}: {mode}")
    return mode


def _link_chain(seats: Sequence[Seat], circular: bool) -> None:
    n = len(seats)
    for i, seat in enumerate(seats):
        neighbours: List[str] = []
        if circular:
            if n > 1:
                neighbours.append(seats[(i - 1) % n].id)
            if n > 2:
                neighbours.append(seats[(i + 1) % n].id)
        else:
            if i > 0:
                neighbours.append(seats[i - 1].id)
            if i < n - 1:
                neighbours.append(seats[i + 1].id)
        seat.adjacent_seats = neighbours


def make_round_table(
    table_id: str,
    seat_count: int,
    table_number: int = 0,
    label: str = "",
    seat_modes: Optional[Dict[int, str]] = None,
) -> Table:
    """Round table: seat n sits between n-1 and n+1, wrapping around."""
    if seat_count < 0:
        raise ValueError(f"Seat count must be non-negative for table {table_id}")
    seats = [
        Seat(id=_seat_id(table_id, n), seat_number=n, mode=_mode_for(n, seat_modes))
        for n in range(1, seat_count + 1)
    ]
    _link_chain(seats, circular=True)
    return Table(id=table_id, table_number=table_number, seats=seats, label=label or table_id, shape="round")


def make_rectangle_table(
    table_id: str,
    top: int = 0,
    right: int = 0,
    bottom: int = 0,
    left: int = 0,
    table_number: int = 0,
    label: str = "",
    seat_modes: Optional[Dict[int, str]] = None,
) -> Table:
    """Rectangle table numbered clockwise; neighbours only along the same side."""
    sides = [top, right, bottom, left]
    if any(count < 0 for count in sides):
        raise ValueError(f"Side counts must be non-negative for table {table_id}")
    seats: List[Seat] = []
    number = 1
    for count in sides:
        side = []
        for _ in range(count):
            side.append(Seat(id=_seat_id(table_id, number), seat_number=number, mode=_mode_for(number, seat_modes)))
            number += 1
        _link_chain(side, circular=False)
        seats.extend(side)
    return Table(id=table_id, table_number=table_number, seats=seats, label=label or table_id, shape="rectangle")


def lock_seat(table: Table, seat_number: int, guest_id: str) -> Seat:
    """Pin ``guest_id`` to a seat. Returns the locked seat."""
    for seat in table.seats:
        if seat.seat_number == seat_number:
            seat.locked = True
            seat.assigned_guest_id = guest_id
            return seat
    raise ValueError(f"Table {table.id} has no seat {seat_number}")
