import json

import pandas as pd
import pytest
from click.testing import CliRunner

from calpoint.__main__ import main


@pytest.fixture
def readings_csv(tmp_path):
    path = tmp_path / "readings.csv"
    path.write_text(
        "time,value\n" + "".join(f"09:{i:02d},{v}\n" for i, v in enumerate([10, 10, 90, 90, 10, 90, "n/a"])),
        encoding="utf-8",
    )
    return path


def test_label_writes_csv(readings_csv, tmp_path):
    out = tmp_path / "labeled.csv"
    runner = CliRunner()
    result = runner.invoke(main, ["label", str(readings_csv), "-r", "zszzsszzssmmm", "-o", str(out)])
    assert result.exit_code == 0, result.output

    table = pd.read_csv(out, dtype=str, keep_default_na=False)
    assert list(table["identifier_primary"]) == ["Z1", "Z2", "S1", "S2", "Z5", "S5", "Z3"]
    assert list(table["rule_matched"]) == ["True"] * 6 + ["False"]
    assert "Labeled 7 of 7 readings" in result.output
    assert "first four-point block at rows 1-4" in result.output
    assert "1 rows filled from the receipt number" in result.output
    assert "low    range 10-10 (diff 0)" in result.output


def test_label_writes_json(readings_csv, tmp_path):
    out = tmp_path / "labeled.json"
    runner = CliRunner()
    result = runner.invoke(main, ["label", str(readings_csv), "--dual-channel", "-o", str(out)])
    assert result.exit_code == 0, result.output

    records = json.loads(out.read_text(encoding="utf-8"))
    assert [r["identifier_secondary"] for r in records[:4]] == ["Z1P", "Z2P", "S1P", "S2P"]
    assert records[6]["identifier_primary"] is None
    assert "Warnings found while labeling:" in result.output


def test_label_row_range(readings_csv, tmp_path):
    out = tmp_path / "labeled.csv"
    runner = CliRunner()
    result = runner.invoke(main, ["label", str(readings_csv), "--start-row", "5", "--end-row", "6", "-o", str(out)])
    assert result.exit_code == 0, result.output

    table = pd.read_csv(out, dtype=str, keep_default_na=False)
    assert list(table["identifier_primary"]) == ["", "", "", "", "Z5", "S5", ""]


def test_label_invalid_row_range_is_reported(readings_csv, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        main, ["label", str(readings_csv), "--start-row", "6", "--end-row", "2", "-o", str(tmp_path / "x.csv")]
    )
    assert result.exit_code == 0, result.output
    assert "Errors found while labeling:" in result.output
    assert "Invalid row range" in result.output


def test_label_missing_input_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ["label", str(tmp_path / "missing.csv")])
    assert result.exit_code == 2


def test_label_missing_value_column_exits(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("time,comment\n09:00,x\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(main, ["label", str(path)])
    assert result.exit_code == 1
    assert "missing required columns" in result.output


def test_boundaries_command(readings_csv):
    runner = CliRunner()
    result = runner.invoke(main, ["boundaries", str(readings_csv)])
    assert result.exit_code == 0, result.output

    lines = result.output.splitlines()
    assert lines[0] == "min=10 max=90 span=80 boundary1=10 boundary2=10"
    assert lines[1].split()[-1] == "low"
    assert lines[3].split()[-1] == "high"
    assert lines[7].split()[-1] == "unknown"


def test_boundaries_without_numbers(tmp_path):
    path = tmp_path / "text.csv"
    path.write_text("time,value\n09:00,n/a\n09:01,--\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(main, ["boundaries", str(path)])
    assert result.exit_code == 0, result.output
    assert "Insufficient data: no numeric values found" in result.output
