from conftest import seat

from seat_autofill.layouts import lock_seat, make_round_table
from seat_autofill.locked import build_locked_guest_map
from seat_autofill.models import (
    SEAT_MODE_EXTERNAL_ONLY,
    SEAT_MODE_HOST_ONLY,
    ProximityRules,
    RandomizeOrderConfig,
    RandomizePartition,
    RatioRule,
    SortRule,
    SpacingRule,
    TableRules,
)
from seat_autofill.ordering import make_comparator
from seat_autofill.placement import (
    MODE_DEFAULT,
    MODE_RATIO,
    MODE_SPACING,
    perform_initial_placement,
    prepare_candidates,
    ratio_targets,
    table_mode,
)


class _FirstSlot:
    def randint(self, low, high):
        return low


def by_seat(table, seat_to_guest):
    return [seat_to_guest.get(s.id) for s in table.seats]


def spacing(n, start_with_external=False):
    return TableRules(spacing_rule=SpacingRule(enabled=True, spacing=n, start_with_external=start_with_external))


def ratio(h, e):
    return TableRules(ratio_rule=RatioRule(enabled=True, host_ratio=h, external_ratio=e))


def hosts_and_externals(make_host, make_external, n_host, n_external):
    hosts = [make_host(id=f"h{i}", ranking=i + 1) for i in range(n_host)]
    externals = [make_external(id=f"e{i}", ranking=i + 1) for i in range(n_external)]
    return prepare_candidates(hosts, externals, make_comparator([SortRule()]))


def test_default_mode_fills_in_priority_order(make_table, make_guest):
    table = make_table(4)
    guests = [make_guest(id=f"g{r}", ranking=r) for r in (4, 3, 2, 1)]
    candidates = prepare_candidates(guests, [], make_comparator([SortRule()]))
    seat_to_guest = perform_initial_placement([table], candidates)
    assert by_seat(table, seat_to_guest) == ["g1", "g2", "g3", "g4"]


def test_tables_visited_by_table_number(make_guest):
    late = make_round_table("late", 1, table_number=2)
    early = make_round_table("early", 1, table_number=1)
    candidates = [make_guest(id="first"), make_guest(id="second")]
    seat_to_guest = perform_initial_placement([late, early], candidates)
    assert seat_to_guest == {"early-seat-1": "first", "late-seat-1": "second"}


def test_locked_seats_are_skipped(make_table, make_guest):
    table = make_table(3)
    lock_seat(table, 2, "vip")
    candidates = [make_guest(id="vip"), make_guest(id="a"), make_guest(id="b")]
    locked = build_locked_guest_map([table])
    seat_to_guest = perform_initial_placement([table], candidates, set(locked), locked)
    assert seat(table, 2).id not in seat_to_guest
    assert sorted(seat_to_guest.values()) == ["a", "b"]


def test_excess_guests_stay_unseated(make_table, make_guest):
    table = make_table(2)
    seat_to_guest = perform_initial_placement([table], [make_guest() for _ in range(3)])
    assert len(seat_to_guest) == 2


def test_mode_precedence():
    assert table_mode(None) == MODE_DEFAULT
    assert table_mode(TableRules()) == MODE_DEFAULT
    both = TableRules(ratio_rule=RatioRule(enabled=True), spacing_rule=SpacingRule(enabled=True))
    assert table_mode(both) == MODE_RATIO
    assert table_mode(spacing(1)) == MODE_SPACING
    assert table_mode(TableRules(ratio_rule=RatioRule(enabled=False), spacing_rule=SpacingRule(enabled=True))) == MODE_SPACING


def test_ratio_targets_round_half_up():
    assert ratio_targets(9, 2, 1) == (6, 3)
    assert ratio_targets(5, 1, 1) == (3, 2)
    assert ratio_targets(3, 2, 1) == (2, 1)
    assert ratio_targets(0, 1, 1) == (0, 0)
    assert ratio_targets(4, 0, 0) == (0, 0)


def test_ratio_fill(make_table, make_host, make_external):
    table = make_table(9)
    candidates = hosts_and_externals(make_host, make_external, 8, 8)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=ratio(2, 1))
    values = list(seat_to_guest.values())
    assert sum(1 for g in values if g.startswith("h")) == 6
    assert sum(1 for g in values if g.startswith("e")) == 3


def test_ratio_falls_back_when_a_type_runs_out(make_table, make_host, make_external):
    table = make_table(4)
    candidates = hosts_and_externals(make_host, make_external, 1, 5)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=ratio(1, 1))
    assert len(seat_to_guest) == 4
    assert sum(1 for g in seat_to_guest.values() if g.startswith("h")) == 1


def test_spacing_alternates(make_table, make_host, make_external):
    table = make_table(6)
    candidates = hosts_and_externals(make_host, make_external, 3, 3)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=spacing(1))
    assert [g[0] for g in by_seat(table, seat_to_guest)] == ["h", "e", "h", "e", "h", "e"]


def test_spacing_two(make_table, make_host, make_external):
    table = make_table(6)
    candidates = hosts_and_externals(make_host, make_external, 4, 4)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=spacing(2))
    assert [g[0] for g in by_seat(table, seat_to_guest)] == ["h", "e", "e", "h", "e", "e"]


def test_spacing_start_with_external(make_table, make_host, make_external):
    table = make_table(4)
    candidates = hosts_and_externals(make_host, make_external, 2, 2)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=spacing(1, True))
    assert [g[0] for g in by_seat(table, seat_to_guest)] == ["e", "h", "e", "h"]


def test_spacing_fills_rest_when_a_type_runs_out(make_table, make_host, make_external):
    table = make_table(4)
    candidates = hosts_and_externals(make_host, make_external, 1, 3)
    seat_to_guest = perform_initial_placement([table], candidates, table_rules=spacing(1))
    assert [g[0] for g in by_seat(table, seat_to_guest)] == ["h", "e", "e", "e"]


def test_restricted_seats_take_their_type(make_host, make_external):
    table = make_round_table("t", 3, seat_modes={1: SEAT_MODE_EXTERNAL_ONLY, 2: SEAT_MODE_HOST_ONLY})
    candidates = prepare_candidates(
        [make_host(id="h1", ranking=1), make_host(id="h2", ranking=2)],
        [make_external(id="e1", ranking=9)],
        make_comparator([SortRule()]),
    )
    seat_to_guest = perform_initial_placement([table], candidates)
    assert by_seat(table, seat_to_guest) == ["e1", "h1", "h2"]


def test_avoids_locked_sit_away_neighbour(make_table, make_guest, make_rule):
    table = make_table(4)
    lock_seat(table, 2, "boss")
    locked = build_locked_guest_map([table])
    candidates = [make_guest(id="rival", ranking=1), make_guest(id="b", ranking=2), make_guest(id="c", ranking=3)]
    rules = ProximityRules(sit_away=[make_rule("boss", "rival")])
    seat_to_guest = perform_initial_placement([table], candidates, set(locked), locked, proximity_rules=rules)
    assert by_seat(table, seat_to_guest) == ["b", None, "c", "rival"]


def test_skips_every_candidate_a_locked_neighbour_avoids(make_table, make_guest, make_rule):
    table = make_table(4)
    lock_seat(table, 2, "boss")
    locked = build_locked_guest_map([table])
    candidates = [make_guest(id=gid, ranking=r) for r, gid in enumerate(["r1", "r2", "c", "d"], start=1)]
    rules = ProximityRules(sit_away=[make_rule("boss", "r1"), make_rule("boss", "r2")])
    seat_to_guest = perform_initial_placement([table], candidates, set(locked), locked, proximity_rules=rules)
    assert by_seat(table, seat_to_guest) == ["c", None, "d", "r1"]


def test_prepare_candidates_groups_clusters(make_guest, make_rule):
    guests = [make_guest(id=f"g{r}", ranking=r) for r in range(1, 6)]
    rules = ProximityRules(sit_together=[make_rule("g1", "g5")])
    candidates = prepare_candidates(guests, [], make_comparator([SortRule()]), rules)
    assert [g.id for g in candidates] == ["g1", "g5", "g2", "g3", "g4"]


def test_prepare_candidates_randomizes_only_unbound(make_guest):
    guests = [make_guest(id=i, ranking=r) for i, r in (("a", 1), ("b", 2), ("c", 3), ("d", 4))]
    config = RandomizeOrderConfig(enabled=True, partitions=[RandomizePartition(1, 5)])
    candidates = prepare_candidates(
        guests, [], make_comparator([SortRule()]),
        randomize_order=config, guests_in_proximity_rules={"c"}, rng=_FirstSlot(),
    )
    assert [g.id for g in candidates] == ["c", "b", "d", "a"]
