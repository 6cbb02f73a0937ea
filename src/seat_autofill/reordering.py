"""Reorder sorted candidates so related guests follow their anchor.

Each relation (sit-together clusters, explicit tag groups, identical tag
sets) yields groups of guests. The group member at the earliest position
is the anchor and keeps its slot; the other members are pulled out of
their positions and inserted right after it. Guests that belong to no
group keep their relative order.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .clusters import build_sit_together_clusters
from .models import Guest, ProximityRule, TagSitTogetherGroup
from .ordering import Comparator


def build_tag_signature(guest: Guest) -> str:
    """Sorted tags joined with ``|``. Untagged guests give ``""``."""
    if not guest.tags:
        return ""
    return "|".join(sorted(guest.tags))


def _pull_up(
    candidates: Sequence[Guest],
    groups: Iterable[Sequence[str]],
    comparator: Optional[Comparator] = None,
) -> List[Guest]:
    position = {g.id: i for i, g in enumerate(candidates)}
    followers: Dict[str, List[Guest]] = {}
    pulled: Set[str] = set()

    for member_ids in groups:
        present = []
        for gid in member_ids:
            if gid in position and gid not in pulled and gid not in present:
                present.append(gid)
        if len(present) <= 1:
            continue
        anchor = min(present, key=lambda gid: position[gid])
        members = [candidates[position[gid]] for gid in present if gid != anchor]
        if comparator is not None:
            members.sort(key=cmp_to_key(comparator))
        else:
            members.sort(key=lambda g: position[g.id])
        followers.setdefault(anchor, []).extend(members)
        pulled.update(g.id for g in members)

    if not pulled:
        return list(candidates)

    result: List[Guest] = []

    def emit(guest: Guest) -> None:
        result.append(guest)
        for follower in followers.get(guest.id, []):
            emit(follower)

    for guest in candidates:
        if guest.id not in pulled:
            emit(guest)
    return result


def reorder_for_sit_together_clusters(
    candidates: Sequence[Guest],
    sit_together: Sequence[ProximityRule],
    comparator: Comparator,
) -> List[Guest]:
    """Group each sit-together cluster right after its best placed member.

    Pulled members follow the anchor in comparator order.
    """
    if not sit_together or not candidates:
        return list(candidates)
    clusters = build_sit_together_clusters(sit_together)
    return _pull_up(candidates, clusters.values(), comparator)


def reorder_for_tag_groups(
    candidates: Sequence[Guest],
    tag_groups: Sequence[TagSitTogetherGroup],
) -> List[Guest]:
    """Group explicit tag group members after their anchor, keeping relative order.

    Groups are processed in the given order; a guest already pulled up by an
    earlier group stays where that group put it.
    """
    if not tag_groups or not candidates:
        return list(candidates)
    return _pull_up(candidates, [group.guest_ids for group in tag_groups])


def reorder_for_tag_similarity(candidates: Sequence[Guest]) -> List[Guest]:
    """Place guests with identical tag sets next to each other."""
    by_signature: Dict[str, List[str]] = {}
    for guest in candidates:
        signature = build_tag_signature(guest)
        if signature:
            by_signature.setdefault(signature, []).append(guest.id)
    return _pull_up(candidates, by_signature.values())
