import abc
import logging
import typing

from dataclasses import dataclass, field
from stairval.notepad import Notepad

from .assigner import AssignmentState, PatternAssigner
from .concentration import (
    ConcentrationBoundaries,
    classify_readings,
    estimate_boundaries,
    extract_numeric_value,
)
from .mirror import mirror_secondary_channel
from .reading import Reading
from .receipt import candidate_identifiers_from_receipt
from .vocabulary import Tier, vocabulary_for_mode

LOGGER = logging.getLogger(__name__)

# receipt number -> ordered candidate labels (None where nothing is encoded)
ReceiptPatterns = typing.Callable[[str], typing.Sequence[typing.Optional[str]]]


@dataclass
class LabelingReport:
    """
    Outcome of one labeling run.

    Attributes:
        readings: The input list, labeled in place.
        rows: The labeled slice of `readings` as a range of indices.
        boundaries: Tier boundaries over all readings, None if no numbers were found.
        tiers: Tier of every row in the slice.
        matched_blocks: Rows written by each successful shape pass (absolute indices).
        fallback_filled: Number of rows filled from receipt candidates.
    """
    readings: list[Reading]
    rows: range
    boundaries: typing.Optional[ConcentrationBoundaries] = None
    tiers: list[Tier] = field(default_factory=list)
    matched_blocks: dict[str, range] = field(default_factory=dict)
    fallback_filled: int = 0


class ReadingLabeler(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_labels(self, readings: list[Reading], notepad: Notepad) -> list[Reading]:
        # return the same readings with identifier cells filled in
        raise NotImplementedError


class DefaultLabeler(ReadingLabeler):
    def __init__(
            self,
            receipt_number: str = "",
            dual_channel: bool = False,
            receipt_patterns: ReceiptPatterns = candidate_identifiers_from_receipt,
    ):
        """
        - receipt_number: source of the fallback candidates
        - dual_channel: True for TN/TP jobs; shape matches and the final
          primary labels are mirrored onto the secondary channel
        - receipt_patterns: receipt number -> candidate labels
        """
        self._receipt_number = receipt_number
        self.dual_channel = dual_channel
        self._receipt_patterns = receipt_patterns

    def apply_labels(
            self,
            readings: list[Reading],
            notepad: Notepad,
            start_row: typing.Optional[int] = None,
            end_row: typing.Optional[int] = None,
    ) -> list[Reading]:
        return self.label(readings, notepad, start_row=start_row, end_row=end_row).readings

    def label(
            self,
            readings: list[Reading],
            notepad: Notepad,
            start_row: typing.Optional[int] = None,
            end_row: typing.Optional[int] = None,
    ) -> LabelingReport:
        """
        Process:
        1) pick the rows to label (1-based, inclusive; all rows by default)
        2) compute boundaries over all readings, tiers over the selected rows
        3) run the shape passes, then the receipt fallback
        4) mirror onto the secondary channel (dual-channel jobs)
        5) write identifiers back onto the readings

        Problems are reported on `notepad`; nothing is raised for well-typed input.
        """
        rows = self._resolve_rows(len(readings), start_row, end_row, notepad)
        report = LabelingReport(readings=readings, rows=rows if rows is not None else range(0))
        if rows is None or len(rows) == 0:
            return report

        selected = readings[rows.start:rows.stop]
        # boundaries always describe the whole job, not just the labeled rows
        boundaries = estimate_boundaries(readings)
        tiers = classify_readings(selected, boundaries)
        values = [extract_numeric_value(reading.value) for reading in selected]
        report.boundaries = boundaries
        report.tiers = tiers

        assigner = PatternAssigner(*self._seed_states(selected))
        if boundaries is None:
            notepad.add_warning(
                "No numeric values found: concentration tiers are unavailable, "
                "only receipt-number candidates were used"
            )
        else:
            matched = assigner.run_passes(values, tiers, notepad)
            report.matched_blocks = {
                name: range(block.start + rows.start, block.stop + rows.start)
                for name, block in matched.items()
            }

        report.fallback_filled = assigner.fill_from_candidates(self._receipt_candidates(notepad))

        secondary_labels: typing.Optional[list[typing.Optional[str]]] = None
        if assigner.secondary is not None:
            secondary_labels = mirror_secondary_channel(
                assigner.primary.assignments,
                assigner.secondary.assignments,
                assigner.secondary.vocabulary,
            )

        for offset, reading in enumerate(selected):
            reading.identifier_primary = assigner.primary.assignments[offset]
            reading.rule_matched = assigner.primary.rule_flags[offset]
            if secondary_labels is not None:
                reading.identifier_secondary = secondary_labels[offset]

        unlabeled = sum(1 for reading in selected if reading.identifier_primary is None)
        if unlabeled:
            notepad.add_warning(f"{unlabeled} of {len(selected)} readings left without an identifier")
        LOGGER.info(
            "Labeled rows %d-%d: %d shape blocks, %d receipt fills, %d unlabeled",
            rows.start + 1, rows.stop, len(report.matched_blocks), report.fallback_filled, unlabeled,
        )
        return report

    def _seed_states(
            self, readings: typing.Sequence[Reading]
    ) -> tuple[AssignmentState, typing.Optional[AssignmentState]]:
        primary_vocabulary, secondary_vocabulary = vocabulary_for_mode(self.dual_channel)
        primary = AssignmentState.seeded(
            primary_vocabulary,
            [reading.identifier_primary for reading in readings],
            [reading.rule_matched for reading in readings],
        )
        if secondary_vocabulary is None:
            return primary, None
        secondary = AssignmentState.seeded(
            secondary_vocabulary,
            [reading.identifier_secondary for reading in readings],
            [reading.rule_matched and reading.identifier_secondary is not None for reading in readings],
        )
        return primary, secondary

    def _receipt_candidates(self, notepad: Notepad) -> typing.Sequence[typing.Optional[str]]:
        if not self._receipt_number or not self._receipt_number.strip():
            LOGGER.debug("No receipt number: skipping receipt-pattern fallback")
            return ()
        try:
            return tuple(self._receipt_patterns(self._receipt_number.strip()))
        except Exception as e:
            notepad.add_error(f"Receipt number {self._receipt_number!r} could not be parsed: {e}")
            return ()

    @staticmethod
    def _resolve_rows(
            total: int,
            start_row: typing.Optional[int],
            end_row: typing.Optional[int],
            notepad: Notepad,
    ) -> typing.Optional[range]:
        """
        Convert a 1-based inclusive row range into indices.
        Missing bounds default to the first/last row.
        """
        start = 0 if start_row is None else start_row - 1
        end = total - 1 if end_row is None else end_row - 1
        if total == 0 and start_row is None and end_row is None:
            return range(0)
        if start < 0 or end >= total or start > end:
            notepad.add_error(
                f"Invalid row range {start_row}-{end_row} for {total} readings: "
                f"use rows between 1 and {total}"
            )
            return None
        return range(start, end + 1)
