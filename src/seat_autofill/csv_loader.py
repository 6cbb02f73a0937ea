"""CSV loading utilities."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .layouts import lock_seat, make_rectangle_table, make_round_table
from .models import (
    SEAT_MODE_EXTERNAL_ONLY,
    SEAT_MODE_HOST_ONLY,
    Guest,
    ProximityRule,
    ProximityRules,
    Table,
    TagSitTogetherGroup,
    parse_bool,
    parse_optional_int,
    parse_pipe_list,
)

console_logger = logging.getLogger(__name__)

Source = Union[Path, str, IO[Any]]

RULE_TOGETHER = "together"
RULE_AWAY = "away"


def _read(path: Source, required: Sequence[str], what: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{what} is missing required columns: {', '.join(missing)}")
    return df


def _text(row: pd.Series, column: str, default: str = "") -> str:
    value = row.get(column, default)
    return str(value).strip() if value is not None else default


def load_guests(path: Source) -> List[Guest]:
    """Load guests from ``guests.csv``.

    Only ``id`` and ``name`` are required. ``tags`` is pipe separated and an
    empty ``from_host`` means host-side.
    """
    df = _read(path, ["id", "name"], "guests.csv")
    guests: List[Guest] = []
    seen = set()
    for _, row in df.iterrows():
        guest_id = _text(row, "id")
        if not guest_id:
            raise ValueError("Guest row without an id")
        if guest_id in seen:
            raise ValueError(f"Duplicate guest id: {guest_id}")
        seen.add(guest_id)
        guests.append(
            Guest(
                id=guest_id,
                name=_text(row, "name"),
                country=_text(row, "country"),
                company=_text(row, "company"),
                title=_text(row, "title"),
                ranking=parse_optional_int(row.get("ranking")),
                from_host=parse_bool(row.get("from_host"), default=True),
                tags=parse_pipe_list(row.get("tags")),
                deleted=parse_bool(row.get("deleted")),
            )
        )
    return guests


def _seat_modes(row: pd.Series) -> Dict[int, str]:
    modes: Dict[int, str] = {}
    for column, mode in (("host_only", SEAT_MODE_HOST_ONLY), ("external_only", SEAT_MODE_EXTERNAL_ONLY)):
        for part in parse_pipe_list(row.get(column)):
            number = int(part)
            if number in modes and modes[number] != mode:
                raise ValueError(f"Seat {number} of table {_text(row, 'id')} is both host-only and external-only")
            modes[number] = mode
    return modes


def _count(row: pd.Series, column: str) -> int:
    value = parse_optional_int(row.get(column))
    return value or 0


def _check_adjacency(tables: Iterable[Table]) -> None:
    seat_ids = {s.id for t in tables for s in t.seats}
    for table in tables:
        for seat in table.seats:
            for adj in seat.adjacent_seats:
                if adj not in seat_ids:
                    raise ValueError(f"Seat {seat.id} lists unknown neighbour {adj}")


def load_tables(path: Source) -> List[Table]:
    """Load table definitions and build their seats."""
    df = _read(path, ["id"], "tables.csv")
    tables: List[Table] = []
    for index, row in df.iterrows():
        table_id = _text(row, "id")
        shape = (_text(row, "shape") or "round").lower()
        number = parse_optional_int(row.get("table_number"))
        table_number = number if number is not None else index + 1
        label = _text(row, "label")
        modes = _seat_modes(row)
        if shape == "round":
            table = make_round_table(table_id, _count(row, "seats"), table_number, label, modes)
        elif shape == "rectangle":
            table = make_rectangle_table(
                table_id,
                top=_count(row, "top"),
                right=_count(row, "right"),
                bottom=_count(row, "bottom"),
                left=_count(row, "left"),
                table_number=table_number,
                label=label,
                seat_modes=modes,
            )
        else:
            raise ValueError(f"Unknown table shape for {table_id}: {shape}")
        unknown = [n for n in modes if n < 1 or n > len(table.seats)]
        if unknown:
            raise ValueError(f"Table {table_id} restricts seats it does not have: {unknown}")
        tables.append(table)
    _check_adjacency(tables)
    return tables


def load_locks(path: Source, tables: List[Table], guest_ids: Optional[set] = None) -> None:
    """Apply ``locks.csv`` (``table_id,seat_number,guest_id``) onto ``tables``."""
    df = _read(path, ["table_id", "seat_number", "guest_id"], "locks.csv")
    by_id = {t.id: t for t in tables}
    for _, row in df.iterrows():
        table_id = _text(row, "table_id")
        guest_id = _text(row, "guest_id")
        if table_id not in by_id:
            raise ValueError(f"Lock references unknown table: {table_id}")
        if guest_ids is not None and guest_id not in guest_ids:
            raise ValueError(f"Lock references unknown guest: {guest_id}")
        lock_seat(by_id[table_id], int(_text(row, "seat_number")), guest_id)


def load_rules(path: Source, guest_ids: Optional[set] = None) -> ProximityRules:
    """Load ``rules.csv``; ``rule`` is ``together`` or ``away``."""
    df = _read(path, ["guest1_id", "guest2_id", "rule"], "rules.csv")
    rules = ProximityRules()
    for index, row in df.iterrows():
        a = _text(row, "guest1_id")
        b = _text(row, "guest2_id")
        if guest_ids is not None and (a not in guest_ids or b not in guest_ids):
            raise ValueError(f"Rule references unknown guest: {a}, {b}")
        rule = ProximityRule(id=_text(row, "id") or f"rule-{index}", guest1_id=a, guest2_id=b)
        kind = _text(row, "rule").lower()
        if kind == RULE_TOGETHER:
            rules.sit_together.append(rule)
        elif kind == RULE_AWAY:
            rules.sit_away.append(rule)
        else:
            raise ValueError(f"Unknown rule kind: {kind}")
    return rules


def load_all(
    guests_path: Source,
    tables_path: Source,
    rules_path: Optional[Source] = None,
    locks_path: Optional[Source] = None,
) -> Tuple[List[Guest], List[Table], ProximityRules]:
    """Convenience wrapper returning guests, tables and proximity rules."""
    guests = load_guests(guests_path)
    guest_ids = {g.id for g in guests}
    tables = load_tables(tables_path)
    if locks_path is not None:
        load_locks(locks_path, tables, guest_ids)
    rules = load_rules(rules_path, guest_ids) if rules_path is not None else ProximityRules()
    console_logger.info(
        "Loaded %d guests, %d tables, %d together rules, %d away rules",
        len(guests), len(tables), len(rules.sit_together), len(rules.sit_away),
    )
    return guests, tables, rules


def build_tag_groups(guests: Sequence[Guest], tags: Sequence[str]) -> List[TagSitTogetherGroup]:
    """One group per requested tag, holding the non-deleted guests carrying it."""
    groups: List[TagSitTogetherGroup] = []
    for tag in tags:
        members = [g.id for g in guests if tag in g.tags and not g.deleted]
        if not members:
            console_logger.warning("No guests carry tag %s", tag)
        groups.append(TagSitTogetherGroup(id=f"tag-{tag}", tag=tag, guest_ids=members))
    return groups
