import itertools
import pathlib
import sys

import pytest

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from seat_autofill.layouts import make_round_table
from seat_autofill.models import Guest, ProximityRule


@pytest.fixture
def data_dir():
    return pathlib.Path(__file__).parent / "data"


@pytest.fixture
def make_guest():
    """Guest factory. Ids run ``guest-1``, ``guest-2`` ... per test."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        values = dict(
            id=f"guest-{n}",
            name=f"Guest {n}",
            country="USA",
            company="Acme Corp",
            title="Director",
            ranking=5,
            from_host=True,
        )
        values.update(overrides)
        return Guest(**values)

    return _make


@pytest.fixture
def make_host(make_guest):
    def _make(**overrides):
        return make_guest(from_host=True, **overrides)

    return _make


@pytest.fixture
def make_external(make_guest):
    def _make(**overrides):
        return make_guest(from_host=False, **overrides)

    return _make


@pytest.fixture
def make_table():
    """Round table factory. Ids run ``table-1``, ``table-2`` ... per test."""
    counter = itertools.count(1)

    def _make(seat_count=8, **kwargs):
        n = next(counter)
        kwargs.setdefault("table_number", n)
        return make_round_table(kwargs.pop("table_id", f"table-{n}"), seat_count, **kwargs)

    return _make


@pytest.fixture
def make_rule():
    counter = itertools.count(1)

    def _make(guest1_id, guest2_id):
        return ProximityRule(id=f"rule-{next(counter)}", guest1_id=guest1_id, guest2_id=guest2_id)

    return _make


def seat(table, number):
    """Seat ``number`` of ``table``."""
    return next(s for s in table.seats if s.seat_number == number)


def place(table, seat_to_guest, *guest_ids):
    """Put ``guest_ids`` into seats 1, 2, ... of ``table``; ``None`` leaves a seat empty."""
    for number, gid in enumerate(guest_ids, start=1):
        if gid is not None:
            seat_to_guest[seat(table, number).id] = gid
    return seat_to_guest
