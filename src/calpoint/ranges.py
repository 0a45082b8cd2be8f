"""
Per-tier range differences of a labeled job.

Shown next to the labeled readings once a repeatability block is present
(M1-M3, Z5/S5, or Z6/S6/Z7/S7): for each tier, the spread of the numeric
values classified into it.
"""

import typing
from dataclasses import dataclass

from .concentration import ConcentrationBoundaries, classify_concentration, extract_numeric_value
from .reading import Reading
from .vocabulary import Tier

# Any one of these label groups being fully present enables the report
REPEATABILITY_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"M1", "M2", "M3"}),
    frozenset({"Z5", "S5"}),
    frozenset({"Z6", "S6", "Z7", "S7"}),
)


@dataclass(frozen=True)
class RangeStat:
    minimum: float
    maximum: float
    difference: float


@dataclass(frozen=True)
class RangeDifferences:
    low: typing.Optional[RangeStat]
    medium: typing.Optional[RangeStat]
    high: typing.Optional[RangeStat]


def _range_of(values: list[float]) -> typing.Optional[RangeStat]:
    if not values:
        return None
    lo, hi = min(values), max(values)
    return RangeStat(minimum=lo, maximum=hi, difference=hi - lo)


def has_repeatability_block(readings: typing.Iterable[Reading]) -> bool:
    labels = {reading.identifier_primary for reading in readings if reading.identifier_primary}
    return any(group <= labels for group in REPEATABILITY_GROUPS)


def compute_range_differences(
        readings: typing.Sequence[Reading],
        boundaries: typing.Optional[ConcentrationBoundaries],
) -> typing.Optional[RangeDifferences]:
    """
    Return per-tier (min, max, difference), or None when no repeatability
    block has been labeled yet. Every tier is None without boundaries.
    """
    if not has_repeatability_block(readings):
        return None
    if boundaries is None:
        return RangeDifferences(low=None, medium=None, high=None)

    by_tier: dict[Tier, list[float]] = {Tier.LOW: [], Tier.MEDIUM: [], Tier.HIGH: []}
    for reading in readings:
        numeric_value = extract_numeric_value(reading.value)
        if numeric_value is None:
            continue
        tier = classify_concentration(reading.value, boundaries)
        if tier in by_tier:
            by_tier[tier].append(numeric_value)

    return RangeDifferences(
        low=_range_of(by_tier[Tier.LOW]),
        medium=_range_of(by_tier[Tier.MEDIUM]),
        high=_range_of(by_tier[Tier.HIGH]),
    )
