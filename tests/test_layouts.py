import pytest

from seat_autofill.layouts import lock_seat, make_rectangle_table, make_round_table
from seat_autofill.models import SEAT_MODE_HOST_ONLY


def test_round_table_is_circular():
    table = make_round_table("t", 4)
    assert [s.id for s in table.seats] == ["t-seat-1", "t-seat-2", "t-seat-3", "t-seat-4"]
    assert table.seats[0].adjacent_seats == ["t-seat-4", "t-seat-2"]
    assert table.seats[3].adjacent_seats == ["t-seat-3", "t-seat-1"]


def test_tiny_round_tables():
    assert make_round_table("one", 1).seats[0].adjacent_seats == []
    two = make_round_table("two", 2)
    assert two.seats[0].adjacent_seats == ["two-seat-2"]
    assert two.seats[1].adjacent_seats == ["two-seat-1"]


def test_rectangle_links_within_a_side():
    table = make_rectangle_table("r", top=2, right=1, bottom=2, left=0)
    adjacency = {s.seat_number: s.adjacent_seats for s in table.seats}
    assert adjacency[1] == ["r-seat-2"]
    assert adjacency[2] == ["r-seat-1"]
    assert adjacency[3] == []
    assert adjacency[4] == ["r-seat-5"]
    assert table.shape == "rectangle"


def test_seat_modes_and_unknown_mode():
    table = make_round_table("t", 3, seat_modes={2: SEAT_MODE_HOST_ONLY})
    assert table.seats[1].mode == SEAT_MODE_HOST_ONLY
    with pytest.raises(ValueError):
        make_round_table("t", 3, seat_modes={1: "vip-only"})


def test_lock_seat():
    table = make_round_table("t", 3)
    locked = lock_seat(table, 2, "guest-9")
    assert locked.locked and locked.assigned_guest_id == "guest-9"
    with pytest.raises(ValueError):
        lock_seat(table, 7, "guest-9")
