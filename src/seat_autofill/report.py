"""
Seating reports.

Per-table summaries and per-seat listings are returned as pandas DataFrames.
Tag group cohesion is measured on the seat adjacency graph: the members of a
group form one chain when their seats make a single connected component.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

import networkx as nx
import pandas as pd

from .models import Guest, Table, TagSitTogetherGroup, Violation
from .seat_finder import sorted_seats, sorted_tables
from .violations import occupant_map

TABLE_COLUMNS = ["table", "seats", "locked", "filled", "empty", "host", "external", "violations"]
ASSIGNMENT_COLUMNS = ["table", "seat_number", "seat_id", "guest_id", "guest_name", "locked"]
COHESION_COLUMNS = ["group", "tag", "members", "seated", "tables", "chains"]


def seat_graph(tables: Sequence[Table]) -> nx.Graph:
    """Undirected graph with one node per seat and an edge per adjacency."""
    graph = nx.Graph()
    for table in tables:
        for seat in table.seats:
            graph.add_node(seat.id, table=table.id)
    for table in tables:
        for seat in table.seats:
            for adj in seat.adjacent_seats:
                if adj in graph:
                    graph.add_edge(seat.id, adj)
    return graph


def table_summary(
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    guest_lookup: Mapping[str, Guest],
    violations: Optional[Sequence[Violation]] = None,
) -> pd.DataFrame:
    """One row per table with fill and host/external counts."""
    occupied = occupant_map(tables, seat_to_guest)
    seat_table = {s.id: t.id for t in tables for s in t.seats}
    per_table: Dict[str, int] = {}
    for v in violations or []:
        touched = {seat_table.get(v.seat1_id), seat_table.get(v.seat2_id)} - {None}
        for table_id in touched:
            per_table[table_id] = per_table.get(table_id, 0) + 1

    rows = []
    for table in sorted_tables(tables):
        guests = [guest_lookup.get(occupied[s.id]) for s in table.seats if s.id in occupied]
        filled = sum(1 for s in table.seats if s.id in occupied)
        rows.append({
            "table": table.label or table.id,
            "seats": len(table.seats),
            "locked": sum(1 for s in table.seats if s.locked),
            "filled": filled,
            "empty": len(table.seats) - filled,
            "host": sum(1 for g in guests if g is not None and g.from_host),
            "external": sum(1 for g in guests if g is not None and not g.from_host),
            "violations": per_table.get(table.id, 0),
        })
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def assignment_frame(
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    guest_lookup: Mapping[str, Guest],
) -> pd.DataFrame:
    """Every seat in table and seat order, empty seats included."""
    occupied = occupant_map(tables, seat_to_guest)
    rows = []
    for table in sorted_tables(tables):
        for seat in sorted_seats(table):
            gid = occupied.get(seat.id, "")
            guest = guest_lookup.get(gid) if gid else None
            rows.append({
                "table": table.label or table.id,
                "seat_number": seat.seat_number,
                "seat_id": seat.id,
                "guest_id": gid,
                "guest_name": guest.name if guest is not None else "",
                "locked": seat.locked,
            })
    return pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)


def tag_group_cohesion(
    tables: Sequence[Table],
    seat_to_guest: Mapping[str, str],
    tag_groups: Sequence[TagSitTogetherGroup],
) -> pd.DataFrame:
    graph = seat_graph(tables)
    guest_seat = {gid: sid for sid, gid in occupant_map(tables, seat_to_guest).items()}
    rows: List[dict] = []
    for group in tag_groups:
        seats = [guest_seat[g] for g in group.guest_ids if g in guest_seat]
        sub = graph.subgraph(seats)
        rows.append({
            "group": group.id,
            "tag": group.tag,
            "members": len(group.guest_ids),
            "seated": len(seats),
            "tables": len({graph.nodes[s]["table"] for s in seats}),
            "chains": nx.number_connected_components(sub) if seats else 0,
        })
    return pd.DataFrame(rows, columns=COHESION_COLUMNS)
