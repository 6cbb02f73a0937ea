from conftest import place, seat

from seat_autofill.layouts import lock_seat
from seat_autofill.locked import build_locked_guest_map
from seat_autofill.models import ProximityRules, SortRule
from seat_autofill.ordering import make_comparator
from seat_autofill.seat_finder import are_guests_adjacent, find_guest_seat
from seat_autofill.sit_away import apply_sit_away_optimization
from seat_autofill.violations import count_violations


def guests_for(make_guest, *ids):
    return [make_guest(id=gid, ranking=i + 1) for i, gid in enumerate(ids)]


def run(seat_to_guest, tables, rules, guests):
    locked = build_locked_guest_map(tables)
    return apply_sit_away_optimization(
        seat_to_guest, tables, rules, guests, make_comparator([SortRule()]), locked
    )


def test_adjacent_pair_is_split_using_an_empty_seat(make_table, make_guest, make_rule):
    table = make_table(4)
    guests = guests_for(make_guest, "a", "b")
    seat_to_guest = place(table, {}, "a", "b")
    run(seat_to_guest, [table], ProximityRules(sit_away=[make_rule("a", "b")]), guests)
    assert not are_guests_adjacent("a", "b", [table], seat_to_guest)
    assert seat_to_guest == {seat(table, 1).id: "a", seat(table, 3).id: "b"}


def test_lower_priority_guest_moves(make_table, make_guest, make_rule):
    table = make_table(8)
    guests = guests_for(make_guest, *[f"h{i}" for i in range(8)])
    seat_to_guest = place(table, {}, *[f"h{i}" for i in range(8)])
    run(seat_to_guest, [table], ProximityRules(sit_away=[make_rule("h0", "h1")]), guests)
    assert seat_to_guest[seat(table, 1).id] == "h0"
    assert not are_guests_adjacent("h0", "h1", [table], seat_to_guest)
    assert len(seat_to_guest) == 8


def test_locked_lower_guest_makes_the_other_move(make_table, make_guest, make_rule):
    table = make_table(4)
    lock_seat(table, 2, "b")
    guests = guests_for(make_guest, "a", "b")
    seat_to_guest = place(table, {}, "a")
    run(seat_to_guest, [table], ProximityRules(sit_away=[make_rule("a", "b")]), guests)
    assert find_guest_seat("a", [table], seat_to_guest).seat.seat_number == 4


def test_both_locked_pair_is_not_moved(make_table, make_guest, make_rule):
    table = make_table(4)
    lock_seat(table, 1, "a")
    lock_seat(table, 2, "b")
    guests = guests_for(make_guest, "a", "b", "c")
    seat_to_guest = place(table, {}, None, None, "c")
    run(seat_to_guest, [table], ProximityRules(sit_away=[make_rule("a", "b")]), guests)
    assert seat_to_guest == {seat(table, 3).id: "c"}


def test_move_that_breaks_sit_together_is_rejected(make_table, make_guest, make_rule):
    table = make_table(3)
    guests = guests_for(make_guest, "a", "b", "c")
    seat_to_guest = place(table, {}, "a", "b", "c")
    rules = ProximityRules(sit_together=[make_rule("b", "c")], sit_away=[make_rule("a", "b")])
    before = count_violations(seat_to_guest, [table], rules)
    run(seat_to_guest, [table], rules, guests)
    assert count_violations(seat_to_guest, [table], rules) <= before
    assert len(seat_to_guest) == 3


def test_separated_pair_is_untouched(make_table, make_guest, make_rule):
    table = make_table(6)
    seat_to_guest = place(table, {}, "a", None, "b")
    before = dict(seat_to_guest)
    run(seat_to_guest, [table], ProximityRules(sit_away=[make_rule("a", "b")]), guests_for(make_guest, "a", "b"))
    assert seat_to_guest == before
