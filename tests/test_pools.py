from seat_autofill.models import ProximityRules, SortRule
from seat_autofill.ordering import make_comparator
from seat_autofill.pools import build_prioritized_guest_pools


def ids(guests):
    return [g.id for g in guests]


def test_rule_bound_guests_lead_each_pool(make_host, make_external, make_rule):
    hosts = [make_host(id="h1", ranking=1), make_host(id="h2", ranking=2), make_host(id="h9", ranking=9)]
    externals = [make_external(id="e1", ranking=1), make_external(id="e7", ranking=7)]
    rules = ProximityRules(sit_together=[make_rule("h9", "e7")], sit_away=[make_rule("h2", "zz")])
    pools = build_prioritized_guest_pools(hosts, externals, rules, make_comparator([SortRule()]), 10)
    assert ids(pools.prioritized_host) == ["h2", "h9", "h1"]
    assert ids(pools.prioritized_external) == ["e7", "e1"]
    assert pools.guests_in_proximity_rules == {"h9", "e7", "h2", "zz"}


def test_pools_are_never_truncated(make_host):
    hosts = [make_host() for _ in range(5)]
    pools = build_prioritized_guest_pools(hosts, [], ProximityRules(), make_comparator([SortRule()]), 2)
    assert len(pools.prioritized_host) == 5
    assert pools.prioritized_external == []
