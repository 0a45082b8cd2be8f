"""
Shape-based identifier assignment.

The classified reading sequence is scanned by five passes in fixed priority
order. Each pass looks for one calibration block shape (a tier sequence plus a
numeric guard on the raw values) and writes that block's identifiers. Every
write goes through AssignmentState.attempt, which enforces vocabulary
membership, uniqueness, and the rule-over-fallback eviction policy. Indices
written by a pass are consumed and cannot be matched again in the same run.

Readings the passes could not explain are then filled first-fit from the
receipt-number candidates, without eviction.
"""

from __future__ import annotations

import logging
import typing
from dataclasses import dataclass, field
from enum import Enum, auto

from stairval.notepad import Notepad

from .vocabulary import Identifier, Tier, Vocabulary

LOGGER = logging.getLogger(__name__)

Values = typing.Sequence[typing.Optional[float]]
Guard = typing.Callable[[typing.Sequence[float]], bool]


class ScanDirection(Enum):
    FORWARD = auto()
    BACKWARD = auto()


def _alternating_rises(values: typing.Sequence[float]) -> bool:
    # every (low, high) pair rises: v1 > v0, v3 > v2, ...
    return all(values[i + 1] > values[i] for i in range(0, len(values) - 1, 2))


def _pairs_separated(values: typing.Sequence[float]) -> bool:
    # both highs sit strictly above both lows
    half = len(values) // 2
    return min(values[half:]) > max(values[:half])


@dataclass(frozen=True)
class MatchPass:
    """
    One shape-matching pass.

    Attributes:
        name: Used in log messages and as the key of the matched-block report.
        shape: Tier sequence a window must show.
        identifiers: Labels written to the window, in order.
        guard: Numeric check over the window's values; None means tiers suffice.
        direction: Scan order over window start positions.
        after_pass: Only search past the end of the block this pass found.
        unless_pass: Skip this pass entirely if the named pass found a block.
    """
    name: str
    shape: tuple[Tier, ...]
    identifiers: tuple[Identifier, ...]
    guard: typing.Optional[Guard]
    direction: ScanDirection = ScanDirection.FORWARD
    after_pass: typing.Optional[str] = None
    unless_pass: typing.Optional[str] = None


L, M, H = Tier.LOW, Tier.MEDIUM, Tier.HIGH
Id = Identifier

SIX_POINT = "six-point"
FIRST_FOUR_POINT = "first four-point"
SECOND_FOUR_POINT = "second four-point"
MEDIUM_RUN = "medium run"
TWO_POINT = "two-point"

# Priority order; each pass stops at its first successful block
MATCH_PASSES: tuple[MatchPass, ...] = (
    MatchPass(SIX_POINT, (L, H, L, H, L, H), (Id.Z5, Id.S5, Id.Z6, Id.S6, Id.Z7, Id.S7), _alternating_rises),
    MatchPass(FIRST_FOUR_POINT, (L, L, H, H), (Id.Z1, Id.Z2, Id.S1, Id.S2), _pairs_separated),
    MatchPass(SECOND_FOUR_POINT, (L, L, H, H), (Id.Z3, Id.Z4, Id.S3, Id.S4), _pairs_separated,
              after_pass=FIRST_FOUR_POINT),
    MatchPass(MEDIUM_RUN, (M, M, M), (Id.M1, Id.M2, Id.M3), None, direction=ScanDirection.BACKWARD),
    MatchPass(TWO_POINT, (L, H), (Id.Z5, Id.S5), _alternating_rises, unless_pass=SIX_POINT),
)


@dataclass
class AssignmentState:
    """
    Per-index identifier cells of one channel for a single labeling run.

    Attributes:
        vocabulary: Labels this channel accepts.
        assignments: Label per index, None when empty.
        rule_flags: True where the label was written by a shape match.
        consumed: True where the index is locked for the rest of the run.
    """
    vocabulary: Vocabulary
    assignments: list[typing.Optional[str]] = field(default_factory=list)
    rule_flags: list[bool] = field(default_factory=list)
    consumed: list[bool] = field(default_factory=list)

    @classmethod
    def seeded(
            cls,
            vocabulary: Vocabulary,
            assignments: typing.Sequence[typing.Optional[str]],
            rule_flags: typing.Optional[typing.Sequence[bool]] = None,
    ) -> "AssignmentState":
        """Start a run from existing labels; nothing is consumed yet."""
        n = len(assignments)
        flags = list(rule_flags) if rule_flags is not None else [False] * n
        if len(flags) != n:
            raise ValueError(f"Expected {n} rule flags, got {len(flags)}")
        return cls(
            vocabulary=vocabulary,
            assignments=[label or None for label in assignments],
            rule_flags=flags,
            consumed=[False] * n,
        )

    def __len__(self) -> int:
        return len(self.assignments)

    def snapshot(self) -> tuple[list, list, list]:
        return list(self.assignments), list(self.rule_flags), list(self.consumed)

    def restore(self, snapshot: tuple[list, list, list]) -> None:
        assignments, rule_flags, consumed = snapshot
        self.assignments[:] = assignments
        self.rule_flags[:] = rule_flags
        self.consumed[:] = consumed

    def holder_of(self, label: str, excluding: int = -1) -> typing.Optional[int]:
        """Index holding `label`, ignoring `excluding`; None if unused."""
        for index, held in enumerate(self.assignments):
            if held == label and index != excluding:
                return index
        return None

    def attempt(self, index: int, label: str, rule_based: bool) -> bool:
        """
        Try to write `label` at `index`; return whether the write was accepted.

        Shape-match (rule-based) writes may evict a fallback label held
        elsewhere but never a rule-written one. Fallback writes only fill empty
        cells with labels not used anywhere yet.
        """
        if label not in self.vocabulary:
            return False
        if rule_based and Vocabulary.is_site_label(label):
            return False

        conflict = self.holder_of(label, excluding=index)
        current = self.assignments[index]

        if not rule_based:
            if current is not None or conflict is not None:
                return False
            self.assignments[index] = label
            self.rule_flags[index] = False
            return True

        if self.consumed[index] and current is not None and current != label:
            return False
        if conflict is not None and self.rule_flags[conflict]:
            return False
        if current is not None:
            if current == label:
                # re-confirmation of an earlier match
                self.rule_flags[index] = True
                self.consumed[index] = True
                return True
            if self.rule_flags[index]:
                return False
        if conflict is not None:
            LOGGER.debug("Evicting fallback label %s from index %d", label, conflict)
            self.assignments[conflict] = None
            self.rule_flags[conflict] = False

        self.assignments[index] = label
        self.rule_flags[index] = True
        self.consumed[index] = True
        return True


class PatternAssigner:
    """
    Runs the match passes and the receipt fallback over one or two channels.
    The secondary channel, when present, mirrors every block the primary
    channel accepts; its own rejections never veto the primary write.
    """

    def __init__(
            self,
            primary: AssignmentState,
            secondary: typing.Optional[AssignmentState] = None,
            passes: typing.Sequence[MatchPass] = MATCH_PASSES,
    ):
        if secondary is not None and len(secondary) != len(primary):
            raise ValueError("Primary and secondary channels must have the same length")
        self._primary = primary
        self._secondary = secondary
        self._passes = tuple(passes)

    @property
    def primary(self) -> AssignmentState:
        return self._primary

    @property
    def secondary(self) -> typing.Optional[AssignmentState]:
        return self._secondary

    def run_passes(self, values: Values, tiers: typing.Sequence[Tier], notepad: Notepad) -> dict[str, range]:
        """
        Apply every pass in priority order.
        Returns the block each successful pass wrote, keyed by pass name.
        """
        if len(values) != len(self._primary) or len(tiers) != len(self._primary):
            raise ValueError("values, tiers and assignments must have the same length")

        matched: dict[str, range] = {}
        for match_pass in self._passes:
            if match_pass.unless_pass is not None and match_pass.unless_pass in matched:
                LOGGER.debug("Skipping %s pass: %s block already assigned", match_pass.name, match_pass.unless_pass)
                continue
            start = 0
            if match_pass.after_pass is not None and match_pass.after_pass in matched:
                start = matched[match_pass.after_pass].stop
            block = self._run_pass(match_pass, values, tiers, start, notepad)
            if block is None:
                LOGGER.debug("No assignable %s block", match_pass.name)
                continue
            LOGGER.debug(
                "Assigned %s to rows %d-%d (%s pass)",
                ",".join(ident.value for ident in match_pass.identifiers),
                block.start + 1, block.stop, match_pass.name,
            )
            matched[match_pass.name] = block
        return matched

    def _window_starts(self, match_pass: MatchPass, start: int) -> typing.Iterable[int]:
        starts = range(start, len(self._primary) - len(match_pass.shape) + 1)
        if match_pass.direction is ScanDirection.BACKWARD:
            return reversed(starts)
        return starts

    def _run_pass(
            self,
            match_pass: MatchPass,
            values: Values,
            tiers: typing.Sequence[Tier],
            start: int,
            notepad: Notepad,
    ) -> typing.Optional[range]:
        width = len(match_pass.shape)
        for i in self._window_starts(match_pass, start):
            window = range(i, i + width)
            if any(self._primary.consumed[j] for j in window):
                continue
            if tuple(tiers[j] for j in window) != match_pass.shape:
                continue
            if match_pass.guard is not None:
                window_values = [values[j] for j in window]
                if any(v is None for v in window_values) or not match_pass.guard(window_values):
                    LOGGER.debug("%s shape at row %d failed the numeric check", match_pass.name, i + 1)
                    continue
            if self._write_block(window, match_pass.identifiers):
                return window
            notepad.add_warning(
                f"Rows {i + 1}-{i + width} look like a {match_pass.name} block but "
                f"{', '.join(ident.value for ident in match_pass.identifiers)} could not be assigned"
            )
        return None

    def _write_block(self, window: range, identifiers: typing.Sequence[Identifier]) -> bool:
        # all-or-nothing on the primary channel
        snapshot = self._primary.snapshot()
        if not all(
                self._primary.attempt(j, ident.value, rule_based=True)
                for j, ident in zip(window, identifiers)
        ):
            self._primary.restore(snapshot)
            return False
        if self._secondary is not None:
            for j, ident in zip(window, identifiers):
                self._secondary.attempt(j, ident.secondary, rule_based=True)
        return True

    def fill_from_candidates(self, candidates: typing.Sequence[typing.Optional[str]]) -> int:
        """
        Fill still-empty, unconsumed primary cells left to right from
        `candidates`. Rejected candidates are skipped; an accepted candidate
        moves the cursor past itself. Returns the number of cells filled.
        """
        state = self._primary
        cursor = 0
        filled = 0
        for index in range(len(state)):
            if state.assignments[index] is not None or state.consumed[index]:
                continue
            if cursor >= len(candidates):
                break
            probe = cursor
            while probe < len(candidates):
                candidate = candidates[probe]
                probe += 1
                if candidate and state.attempt(index, candidate, rule_based=False):
                    LOGGER.debug("Assigned %s to row %d from receipt candidate %d", candidate, index + 1, probe)
                    filled += 1
                    break
            cursor = probe
        return filled
