"""Command line interface for seat autofill."""
from __future__ import annotations

import argparse
import csv
import logging
import os
import random
from pathlib import Path
from typing import Optional, Sequence

from .csv_loader import build_tag_groups, load_all
from .models import (
    RandomizeOrderConfig,
    RatioRule,
    SpacingRule,
    TableRules,
    parse_partition,
    parse_ratio,
    parse_sort_rule,
)
from .report import tag_group_cohesion, table_summary
from .solver import SeatingModel

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill unlocked event seats with ranked guests")
    parser.add_argument("--guests", required=True, help="Path to guests.csv")
    parser.add_argument("--tables", required=True, help="Path to tables.csv")
    parser.add_argument("--locks", help="Path to locks.csv (table_id,seat_number,guest_id)")
    parser.add_argument("--rules", help="Path to rules.csv (guest1_id,guest2_id,rule)")
    parser.add_argument("--sort", action="append", default=[], metavar="FIELD:DIR",
                        help="Sort rule, repeatable. Fields: name, country, organization, ranking.")
    distribution = parser.add_mutually_exclusive_group()
    distribution.add_argument("--ratio", metavar="H:E", help="Host to external ratio per table, e.g. 2:1.")
    distribution.add_argument("--spacing", type=int, metavar="N",
                              help="Alternate one host guest with N external guests.")
    parser.add_argument("--start-with-external", action="store_true",
                        help="With --spacing, begin each table with external guests.")
    parser.add_argument("--randomize", action="append", default=[], metavar="MIN-MAX",
                        help="Shuffle guests ranked in [MIN, MAX). Repeatable; ranking sort only.")
    parser.add_argument("--seed", type=int, help="Seed for --randomize.")
    parser.add_argument("--tag-group", action="append", default=[], metavar="TAG",
                        help="Seat guests carrying TAG next to each other. Repeatable.")
    parser.add_argument("--no-host", action="store_true", help="Leave host guests out.")
    parser.add_argument("--no-external", action="store_true", help="Leave external guests out.")
    parser.add_argument("--out-assignments", type=Path, help="Write assignments CSV: seat_id,guest_id.")
    parser.add_argument("--out-report", type=Path, help="Write per-table report CSV.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG.")
    return parser


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = os.environ.get("LOGLEVEL", "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)


def _table_rules(args: argparse.Namespace) -> Optional[TableRules]:
    if args.ratio:
        host, external = parse_ratio(args.ratio)
        return TableRules(ratio_rule=RatioRule(enabled=True, host_ratio=host, external_ratio=external))
    if args.spacing is not None:
        if args.spacing < 1:
            raise ValueError("--spacing must be at least 1")
        return TableRules(spacing_rule=SpacingRule(
            enabled=True, spacing=args.spacing, start_with_external=args.start_with_external,
        ))
    return None


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point used by ``python -m seat_autofill.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        sort_rules = [parse_sort_rule(s) for s in args.sort] or None
        table_rules = _table_rules(args)
        partitions = [parse_partition(p) for p in args.randomize]
    except ValueError as exc:
        parser.error(str(exc))

    guests, tables, proximity_rules = load_all(args.guests, args.tables, args.rules, args.locks)
    tag_groups = build_tag_groups(guests, args.tag_group)

    model = SeatingModel(
        include_host=not args.no_host,
        include_external=not args.no_external,
        sort_rules=sort_rules,
        table_rules=table_rules,
        randomize_order=RandomizeOrderConfig(enabled=True, partitions=partitions) if partitions else None,
        rng=random.Random(args.seed),
    )
    model.build(guests, tables, proximity_rules, tag_groups)
    assignments = model.solve()

    for seat_id, guest_id in sorted(assignments.items()):
        print(f"{seat_id},{guest_id}")

    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["seat_id", "guest_id"])
            for seat_id, guest_id in sorted(assignments.items()):
                w.writerow([seat_id, guest_id])

    guest_lookup = {g.id: g for g in guests}
    summary = table_summary(tables, assignments, guest_lookup, model.violations)
    for row in summary.itertuples(index=False):
        print(f"[REPORT] {row.table} filled={row.filled}/{row.seats} locked={row.locked} "
              f"host={row.host} external={row.external} violations={row.violations}")
    if tag_groups:
        for row in tag_group_cohesion(tables, assignments, tag_groups).itertuples(index=False):
            print(f"[TAG] {row.tag} seated={row.seated}/{row.members} tables={row.tables} chains={row.chains}")
    for v in model.violations:
        print(f"[VIOLATION] {v.type} {v.guest1_id},{v.guest2_id}: {v.reason}")

    if args.out_report:
        args.out_report.parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(args.out_report, index=False)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
