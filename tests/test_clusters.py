from seat_autofill.clusters import build_sit_together_clusters, get_optimal_cluster_order
from seat_autofill.models import SortRule
from seat_autofill.ordering import make_comparator


def test_clusters_are_transitive(make_rule):
    rules = [make_rule("a", "b"), make_rule("b", "c"), make_rule("d", "e")]
    clusters = sorted(sorted(members) for members in build_sit_together_clusters(rules).values())
    assert clusters == [["a", "b", "c"], ["d", "e"]]


def test_no_rules_no_clusters():
    assert build_sit_together_clusters([]) == {}


def test_pair_in_comparator_order(make_guest, make_rule):
    lookup = {g.id: g for g in [make_guest(id="a", ranking=3), make_guest(id="b", ranking=1)]}
    order = get_optimal_cluster_order(["a", "b"], [make_rule("a", "b")], lookup, make_comparator([SortRule()]))
    assert order == ["b", "a"]


def test_most_connected_member_sits_in_the_middle(make_guest, make_rule):
    guests = [make_guest(id="hub", ranking=1), make_guest(id="a", ranking=2), make_guest(id="c", ranking=3)]
    lookup = {g.id: g for g in guests}
    rules = [make_rule("a", "hub"), make_rule("hub", "c")]
    order = get_optimal_cluster_order(["a", "hub", "c"], rules, lookup, make_comparator([SortRule()]))
    assert order == ["a", "hub", "c"]


def test_unknown_members_go_last(make_guest, make_rule):
    lookup = {g.id: g for g in [make_guest(id="a", ranking=2), make_guest(id="b", ranking=1)]}
    rules = [make_rule("a", "ghost"), make_rule("b", "a")]
    order = get_optimal_cluster_order(["ghost", "a", "b"], rules, lookup, make_comparator([SortRule()]))
    assert order == ["b", "a", "ghost"]


def test_single_member_unchanged(make_guest):
    assert get_optimal_cluster_order(["a"], [], {}, make_comparator([SortRule()])) == ["a"]
