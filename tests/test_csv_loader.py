import io

import pytest

from seat_autofill import csv_loader
from seat_autofill.models import SEAT_MODE_DEFAULT, SEAT_MODE_HOST_ONLY


def test_load_guests(data_dir):
    guests = {g.id: g for g in csv_loader.load_guests(data_dir / "guests.csv")}
    assert len(guests) == 8
    assert guests["h1"].tags == ["press", "vip"]
    assert guests["h1"].ranking == 1 and guests["h1"].from_host
    assert guests["h4"].ranking is None
    assert not guests["e1"].from_host
    assert guests["e4"].deleted and not guests["e3"].deleted


def test_load_tables(data_dir):
    t1, t2 = csv_loader.load_tables(data_dir / "tables.csv")
    assert t1.label == "Head Table" and t1.table_number == 1
    assert [s.mode for s in t1.seats] == [SEAT_MODE_HOST_ONLY] + [SEAT_MODE_DEFAULT] * 3
    assert t2.shape == "rectangle" and len(t2.seats) == 4
    assert t2.seats[0].adjacent_seats == ["T2-seat-2"]
    assert t2.seats[2].adjacent_seats == ["T2-seat-4"]


def test_load_all_applies_locks_and_rules(data_dir):
    guests, tables, rules = csv_loader.load_all(
        data_dir / "guests.csv", data_dir / "tables.csv", data_dir / "rules.csv", data_dir / "locks.csv"
    )
    assert len(guests) == 8
    locked = [s for t in tables for s in t.seats if s.locked]
    assert [(s.id, s.assigned_guest_id) for s in locked] == [("T1-seat-2", "e3")]
    assert [(r.guest1_id, r.guest2_id) for r in rules.sit_together] == [("h2", "e2")]
    assert [r.id for r in rules.sit_away] == ["r2"]


def test_rules_are_optional(data_dir):
    _, _, rules = csv_loader.load_all(data_dir / "guests.csv", data_dir / "tables.csv")
    assert rules.sit_together == [] and rules.sit_away == []


def test_missing_columns():
    with pytest.raises(ValueError, match="missing required columns: name"):
        csv_loader.load_guests(io.StringIO("id,ranking\ng1,1\n"))


def test_duplicate_guest_ids():
    with pytest.raises(ValueError, match="Duplicate guest id"):
        csv_loader.load_guests(io.StringIO("id,name\ng1,A\ng1,B\n"))


def test_unknown_rule_kind():
    with pytest.raises(ValueError, match="Unknown rule kind"):
        csv_loader.load_rules(io.StringIO("guest1_id,guest2_id,rule\na,b,near\n"))


def test_rule_with_unknown_guest():
    with pytest.raises(ValueError, match="unknown guest"):
        csv_loader.load_rules(io.StringIO("guest1_id,guest2_id,rule\na,zz,away\n"), {"a", "b"})


def test_rule_ids_default_to_row():
    rules = csv_loader.load_rules(io.StringIO("guest1_id,guest2_id,rule\na,b,Together\n"))
    assert rules.sit_together[0].id == "rule-0"


def test_unknown_shape():
    with pytest.raises(ValueError, match="Unknown table shape"):
        csv_loader.load_tables(io.StringIO("id,shape,seats\nT1,oval,4\n"))


def test_seat_restricted_twice():
    with pytest.raises(ValueError, match="both host-only and external-only"):
        csv_loader.load_tables(io.StringIO("id,seats,host_only,external_only\nT1,4,1|2,2\n"))


def test_restriction_outside_table():
    with pytest.raises(ValueError, match="does not have"):
        csv_loader.load_tables(io.StringIO("id,seats,host_only\nT1,2,5\n"))


def test_lock_on_unknown_table(data_dir):
    tables = csv_loader.load_tables(data_dir / "tables.csv")
    with pytest.raises(ValueError, match="unknown table"):
        csv_loader.load_locks(io.StringIO("table_id,seat_number,guest_id\nT9,1,h1\n"), tables)


def test_build_tag_groups(data_dir):
    guests = csv_loader.load_guests(data_dir / "guests.csv")
    press, empty = csv_loader.build_tag_groups(guests, ["press", "nobody"])
    assert press.guest_ids == ["h1", "h3", "e1"]
    assert press.tag == "press"
    assert empty.guest_ids == []
