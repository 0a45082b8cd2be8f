"""
Command-line interface for calpoint.
Labels a table of extracted instrument readings with calibration-point
identifiers and reports the concentration boundaries behind the labels.
"""

import click
import json
import logging
import pathlib
import sys
import typing

import pandas as pd
from stairval.notepad import create_notepad

from .concentration import classify_readings, estimate_boundaries
from .labeler import DefaultLabeler
from .loader import load_readings_table, readings_from_table, readings_to_table
from .ranges import compute_range_differences
from .reading import Reading


@click.group()
def main():
    """calpoint: calibration-point identifiers for extracted instrument readings."""
    pass


@main.command(name="label")
@click.argument(
    "input_path",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "-r",
    "--receipt-number",
    default="",
    help="receipt number whose pattern code supplies fallback identifiers",
)
@click.option("--dual-channel/--single-channel", default=False, help="TN/TP job: also label the secondary channel")
@click.option("--start-row", type=click.IntRange(min=1), default=None, help="first row to label (1-based)")
@click.option("--end-row", type=click.IntRange(min=1), default=None, help="last row to label (1-based, inclusive)")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="write labeled readings here (.csv or .json); default: CSV on stdout",
)
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def label(
        input_path: str,
        receipt_number: str,
        dual_channel: bool,
        start_row: typing.Optional[int],
        end_row: typing.Optional[int],
        output_path: typing.Optional[str],
        verbose_logging: bool,
        log_file_path: typing.Optional[str],
):
    """
    Read the readings table, infer concentration tiers, match calibration
    block shapes, fill the rest from the receipt number, and write the result.
    """
    _configure_logging(verbose_logging, log_file_path)
    notepad = create_notepad("readings")
    readings = _read_readings(input_path, notepad)

    labeler = DefaultLabeler(receipt_number=receipt_number, dual_channel=dual_channel)
    report = labeler.label(readings, notepad, start_row=start_row, end_row=end_row)

    _report_issues(notepad)
    _write_readings(report.readings, output_path)

    labeled = sum(1 for reading in report.readings if reading.identifier_primary)
    click.echo(f"Labeled {labeled} of {len(report.readings)} readings", err=output_path is None)
    for name, block in report.matched_blocks.items():
        click.echo(f"  {name} block at rows {block.start + 1}-{block.stop}", err=output_path is None)
    click.echo(f"  {report.fallback_filled} rows filled from the receipt number", err=output_path is None)

    ranges = compute_range_differences(report.readings[report.rows.start:report.rows.stop], report.boundaries)
    if ranges is not None:
        for tier_name, stat in (("low", ranges.low), ("medium", ranges.medium), ("high", ranges.high)):
            if stat is not None:
                click.echo(
                    f"  {tier_name:6} range {stat.minimum:g}-{stat.maximum:g} (diff {stat.difference:g})",
                    err=output_path is None,
                )


@main.command(name="boundaries")
@click.argument(
    "input_path",
    type=click.Path(exists=True, dir_okay=False),
)
def boundaries(input_path: str):
    """
    Print the low/medium/high boundaries of a readings table and the tier of each row.
    """
    notepad = create_notepad("readings")
    readings = _read_readings(input_path, notepad)
    _report_issues(notepad)

    estimated = estimate_boundaries(readings)
    if estimated is None:
        click.echo("Insufficient data: no numeric values found")
    else:
        click.echo(
            f"min={estimated.overall_min:g} max={estimated.overall_max:g} span={estimated.span:g} "
            f"boundary1={estimated.boundary1:g} boundary2={estimated.boundary2:g}"
        )
    for position, (reading, tier) in enumerate(zip(readings, classify_readings(readings, estimated)), start=1):
        click.echo(f"{position:4} {reading.time:20} {reading.value:20} {tier.name.lower()}")


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _read_readings(input_path: str, notepad) -> list[Reading]:
    try:
        table = load_readings_table(input_path)
    except (OSError, ValueError) as e:
        click.echo(f"Error: failed to read {input_path!r}: {e}", err=True)
        sys.exit(1)
    readings = readings_from_table(table, notepad)
    if not readings and notepad.has_errors(include_subsections=True):
        _report_issues(notepad)
        sys.exit(1)
    return readings


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found while labeling:", err=True)
        for err in notepad.errors():
            click.echo(f"- {err.message}", err=True)
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found while labeling:", err=True)
        for w in notepad.warnings():
            click.echo(f"- {w.message}", err=True)


def _write_readings(readings: list[Reading], output_path: typing.Optional[str]) -> None:
    table = readings_to_table(readings)
    if output_path is None:
        click.echo(table.to_csv(index=False), nl=False)
        return
    out = pathlib.Path(output_path)
    if out.suffix.lower() == ".json":
        records = table.astype(object).where(pd.notna(table), None).to_dict(orient="records")
        with open(out, "w", encoding="utf-8") as out_f:
            json.dump(records, out_f, ensure_ascii=False, indent=2)
    else:
        table.to_csv(out, index=False)


if __name__ == "__main__":
    main()
