"""Lookups over proximity rules."""
from __future__ import annotations

from typing import List, Sequence, Set

from .models import Guest, ProximityRule, ProximityRules


def _is_pair(rule: ProximityRule, a: str, b: str) -> bool:
    return (rule.guest1_id == a and rule.guest2_id == b) or (rule.guest1_id == b and rule.guest2_id == a)


def should_sit_together(a: str, b: str, rules: Sequence[ProximityRule]) -> bool:
    return any(_is_pair(rule, a, b) for rule in rules)


def should_sit_away(a: str, b: str, rules: Sequence[ProximityRule]) -> bool:
    return any(_is_pair(rule, a, b) for rule in rules)


def get_all_sit_together_partners(guest_id: str, rules: Sequence[ProximityRule]) -> List[str]:
    """Partners in rule order, without duplicates."""
    partners: List[str] = []
    for rule in rules:
        if rule.guest1_id == guest_id and rule.guest2_id not in partners:
            partners.append(rule.guest2_id)
        if rule.guest2_id == guest_id and rule.guest1_id not in partners:
            partners.append(rule.guest1_id)
    return partners


def get_sit_away_guests(guest_id: str, rules: Sequence[ProximityRule]) -> List[str]:
    away: List[str] = []
    for rule in rules:
        if rule.guest1_id == guest_id:
            away.append(rule.guest2_id)
        if rule.guest2_id == guest_id:
            away.append(rule.guest1_id)
    return away


def is_vip(guest: Guest) -> bool:
    """Rankings 1 to 4 are VIP. Unranked guests are not."""
    return guest.ranking is not None and 1 <= guest.ranking <= 4


def guests_in_rules(proximity_rules: ProximityRules) -> Set[str]:
    """Every guest id named by a sit-together or sit-away rule."""
    ids: Set[str] = set()
    for rule in list(proximity_rules.sit_together) + list(proximity_rules.sit_away):
        ids.add(rule.guest1_id)
        ids.add(rule.guest2_id)
    return ids
