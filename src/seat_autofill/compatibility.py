"""Seat mode checks and next-candidate selection."""
from __future__ import annotations

from typing import Collection, Optional, Sequence

from .models import SEAT_MODE_EXTERNAL_ONLY, SEAT_MODE_HOST_ONLY, Guest, Seat


def can_place_guest_in_seat(guest: Guest, seat: Seat) -> bool:
    mode = seat.mode or "default"
    if mode == SEAT_MODE_HOST_ONLY:
        return guest.from_host is True
    if mode == SEAT_MODE_EXTERNAL_ONLY:
        return guest.from_host is False
    return True


def get_next_compatible_guest(
    candidates: Sequence[Guest], assigned_ids: Collection[str], seat: Seat
) -> Optional[Guest]:
    for guest in candidates:
        if guest.id not in assigned_ids and can_place_guest_in_seat(guest, seat):
            return guest
    return None


def get_next_compatible_guest_of_type(
    candidates: Sequence[Guest], assigned_ids: Collection[str], is_host: bool, seat: Seat
) -> Optional[Guest]:
    for guest in candidates:
        if guest.id not in assigned_ids and guest.from_host == is_host and can_place_guest_in_seat(guest, seat):
            return guest
    return None


def get_next_guest_from_unified_list(
    candidates: Sequence[Guest], assigned_ids: Collection[str]
) -> Optional[Guest]:
    """First unassigned candidate, with no seat mode check."""
    for guest in candidates:
        if guest.id not in assigned_ids:
            return guest
    return None


def get_next_guest_of_type(
    candidates: Sequence[Guest], assigned_ids: Collection[str], is_host: bool
) -> Optional[Guest]:
    """First unassigned candidate of the given type, with no seat mode check."""
    for guest in candidates:
        if guest.id not in assigned_ids and guest.from_host == is_host:
            return guest
    return None
