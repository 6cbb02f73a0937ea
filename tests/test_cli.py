import csv

import pytest

from seat_autofill import cli


def base_args(data_dir):
    return [
        "--guests", str(data_dir / "guests.csv"),
        "--tables", str(data_dir / "tables.csv"),
        "--rules", str(data_dir / "rules.csv"),
        "--locks", str(data_dir / "locks.csv"),
    ]


def test_cli_prints_assignments_and_report(data_dir, capsys):
    cli.main(base_args(data_dir))
    out = capsys.readouterr().out.splitlines()
    assignments = [line for line in out if not line.startswith("[")]
    assert len(assignments) == 6
    assert all(line.count(",") == 1 for line in assignments)
    reports = [line for line in out if line.startswith("[REPORT]")]
    assert reports[0].startswith("[REPORT] Head Table filled=4/4 locked=1")
    assert reports[1].startswith("[REPORT] Long Table filled=3/4")
    assert not any(line.startswith("[VIOLATION]") for line in out)


def test_cli_writes_outputs(data_dir, tmp_path, capsys):
    out_assignments = tmp_path / "out" / "assignments.csv"
    out_report = tmp_path / "out" / "report.csv"
    cli.main(base_args(data_dir) + [
        "--out-assignments", str(out_assignments),
        "--out-report", str(out_report),
    ])
    with out_assignments.open() as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 6
    assert set(rows[0]) == {"seat_id", "guest_id"}
    with out_report.open() as f:
        report_rows = list(csv.DictReader(f))
    assert [r["table"] for r in report_rows] == ["Head Table", "Long Table"]


def test_cli_tag_groups_and_ratio(data_dir, capsys):
    cli.main(base_args(data_dir) + ["--tag-group", "press", "--ratio", "1:1", "--seed", "3"])
    out = capsys.readouterr().out
    assert "[TAG] press seated=3/3" in out


def test_cli_host_only_run(data_dir, capsys):
    cli.main(base_args(data_dir) + ["--no-external"])
    out = capsys.readouterr().out.splitlines()
    assignments = [line for line in out if not line.startswith("[")]
    assert sorted(line.split(",")[1] for line in assignments) == ["h1", "h2", "h3", "h4"]


def test_cli_rejects_bad_options(data_dir, capsys):
    with pytest.raises(SystemExit):
        cli.main(base_args(data_dir) + ["--sort", "height:asc"])
    with pytest.raises(SystemExit):
        cli.main(base_args(data_dir) + ["--ratio", "1:1", "--spacing", "2"])
    with pytest.raises(SystemExit):
        cli.main(base_args(data_dir) + ["--spacing", "0"])


def test_parser_defaults():
    args = cli.build_parser().parse_args(["--guests", "g.csv", "--tables", "t.csv"])
    assert args.sort == [] and args.randomize == [] and args.tag_group == []
    assert args.verbose == 0 and args.seed is None
