"""Index of pre-locked guests."""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from .models import LockedGuestLocation, ProximityRules, Seat, Table
from .rules import get_sit_away_guests
from .seat_finder import get_adjacent_seats


def build_locked_guest_map(tables: Sequence[Table]) -> Dict[str, LockedGuestLocation]:
    """``guest id -> location`` for every locked seat that carries a guest."""
    locked: Dict[str, LockedGuestLocation] = {}
    for table in tables:
        for seat in table.seats:
            if seat.locked and seat.assigned_guest_id:
                locked[seat.assigned_guest_id] = LockedGuestLocation(
                    guest_id=seat.assigned_guest_id,
                    table_id=table.id,
                    seat_id=seat.id,
                    seat=seat,
                    table=table,
                )
    return locked


def would_violate_sit_away_with_locked(
    guest_id: str,
    seat: Seat,
    seats: Sequence[Seat],
    locked_map: Optional[Mapping[str, LockedGuestLocation]],
    proximity_rules: Optional[ProximityRules],
) -> bool:
    """True when a locked neighbor of ``seat`` must sit away from ``guest_id``."""
    if proximity_rules is None:
        return False
    away = get_sit_away_guests(guest_id, proximity_rules.sit_away)
    if not away:
        return False
    for adj in get_adjacent_seats(seat, seats):
        if adj.locked and adj.assigned_guest_id and adj.assigned_guest_id in away:
            return True
    return False
