from conftest import seat

from seat_autofill.layouts import lock_seat
from seat_autofill.locked import build_locked_guest_map, would_violate_sit_away_with_locked
from seat_autofill.models import ProximityRules


def test_locked_map_indexes_locked_seats(make_table):
    table = make_table(4)
    lock_seat(table, 2, "vip")
    seat(table, 3).assigned_guest_id = "stale"
    locked = build_locked_guest_map([table])
    assert list(locked) == ["vip"]
    assert locked["vip"].seat_id == seat(table, 2).id
    assert locked["vip"].table_id == table.id


def test_locked_seat_without_guest_is_ignored(make_table):
    table = make_table(4)
    seat(table, 1).locked = True
    assert build_locked_guest_map([table]) == {}


def test_sit_away_with_locked_neighbour(make_table, make_rule):
    table = make_table(4)
    lock_seat(table, 2, "boss")
    locked = build_locked_guest_map([table])
    rules = ProximityRules(sit_away=[make_rule("boss", "rival")])
    assert would_violate_sit_away_with_locked("rival", seat(table, 1), table.seats, locked, rules)
    assert would_violate_sit_away_with_locked("rival", seat(table, 3), table.seats, locked, rules)
    assert not would_violate_sit_away_with_locked("rival", seat(table, 4), table.seats, locked, rules)
    assert not would_violate_sit_away_with_locked("friend", seat(table, 1), table.seats, locked, rules)
    assert not would_violate_sit_away_with_locked("rival", seat(table, 1), table.seats, locked, None)
