"""Seat autofill package."""
from .models import (
    Guest,
    ProximityRule,
    ProximityRules,
    RandomizeOrderConfig,
    RandomizePartition,
    RatioRule,
    Seat,
    SortRule,
    SpacingRule,
    Table,
    TableRules,
    TagSitTogetherGroup,
    Violation,
)
from .csv_loader import (
    build_tag_groups,
    load_all,
    load_guests,
    load_locks,
    load_rules,
    load_tables,
)
from .layouts import lock_seat, make_rectangle_table, make_round_table
from .solver import SeatingModel

__all__ = [
    "Guest",
    "Seat",
    "Table",
    "ProximityRule",
    "ProximityRules",
    "TagSitTogetherGroup",
    "SortRule",
    "RatioRule",
    "SpacingRule",
    "TableRules",
    "RandomizePartition",
    "RandomizeOrderConfig",
    "Violation",
    "load_guests",
    "load_tables",
    "load_locks",
    "load_rules",
    "load_all",
    "build_tag_groups",
    "make_round_table",
    "make_rectangle_table",
    "lock_seat",
    "SeatingModel",
]
