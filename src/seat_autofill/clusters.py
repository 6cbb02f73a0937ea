"""Sit-together clusters and their preferred seating order."""
from __future__ import annotations

from functools import cmp_to_key
from typing import Dict, List, Mapping, Sequence

from .models import Guest, ProximityRule
from .ordering import Comparator
from .union_find import UnionFind


def build_sit_together_clusters(rules: Sequence[ProximityRule]) -> Dict[str, List[str]]:
    """Union every sit-together pair. Returns ``root -> member ids``."""
    uf: UnionFind[str] = UnionFind()
    for rule in rules:
        uf.make_set(rule.guest1_id)
        uf.make_set(rule.guest2_id)
        uf.union(rule.guest1_id, rule.guest2_id)
    return uf.get_groups()


def _sort_ids(ids: Sequence[str], guest_lookup: Mapping[str, Guest], comparator: Comparator) -> List[str]:
    known = [gid for gid in ids if gid in guest_lookup]
    unknown = [gid for gid in ids if gid not in guest_lookup]
    known.sort(key=cmp_to_key(lambda a, b: comparator(guest_lookup[a], guest_lookup[b])))
    return known + unknown


def get_optimal_cluster_order(
    member_ids: Sequence[str],
    rules: Sequence[ProximityRule],
    guest_lookup: Mapping[str, Guest],
    comparator: Comparator,
) -> List[str]:
    """Order cluster members for a contiguous block of seats.

    Pairs come back in comparator order. For three or more members the one
    with the most in-cluster rules sits at ``len // 2`` and the rest fill
    the other slots in comparator order. Degree ties go to the
    comparator-earliest member; members missing from ``guest_lookup`` keep
    their input order after the known ones.
    """
    if len(member_ids) <= 1:
        return list(member_ids)

    base = _sort_ids(member_ids, guest_lookup, comparator)
    if len(base) == 2:
        return base

    members = set(base)
    degree = {gid: 0 for gid in base}
    for rule in rules:
        if rule.guest1_id in members and rule.guest2_id in members and rule.guest1_id != rule.guest2_id:
            degree[rule.guest1_id] += 1
            degree[rule.guest2_id] += 1

    # max() keeps the first of equal degrees, i.e. the comparator-earliest
    center = max(base, key=lambda gid: degree[gid])
    result = [gid for gid in base if gid != center]
    result.insert(len(base) // 2, center)
    return result
