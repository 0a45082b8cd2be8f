"""
Concentration tiers for extracted readings.

- extract_numeric_value: leading signed decimal of a free-form value string
- estimate_boundaries:   adaptive low/medium/high cut-offs over all readings
- classify_concentration: one value string + boundaries -> Tier

Boundaries are recomputed from scratch for every reading list; nothing here
keeps state between calls.
"""

from __future__ import annotations

import logging
import re
import typing
from dataclasses import dataclass

from .reading import Reading
from .vocabulary import TIER_MARKERS, Tier

LOGGER = logging.getLogger(__name__)

# Only the first contiguous numeric token counts; units/annotations follow it
_LEADING_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?")


def _marker_pattern(markers: typing.Iterable[str]) -> re.Pattern:
    # Korean markers match anywhere in the trailing text, English ones as whole words
    parts = [rf"\b{re.escape(m)}\b" if m.isascii() else re.escape(m) for m in markers]
    return re.compile("|".join(parts), re.IGNORECASE)


_TIER_PATTERNS: tuple[tuple[re.Pattern, Tier], ...] = tuple(
    (_marker_pattern(markers), tier) for tier, markers in TIER_MARKERS.items()
)


@dataclass(frozen=True)
class ConcentrationBoundaries:
    """
    Cut-offs between concentration tiers.

    Attributes:
        overall_min: Smallest distinct numeric value.
        overall_max: Largest distinct numeric value.
        span: overall_max - overall_min.
        boundary1: Upper limit (inclusive) of the low tier.
        boundary2: Upper limit (inclusive) of the medium tier.
    """

    overall_min: float
    overall_max: float
    span: float
    boundary1: float
    boundary2: float


def extract_numeric_value(value: typing.Any) -> float | None:
    """
    Return the leading signed decimal of `value` as a float, or None.
    "12.5 mg/L" -> 12.5, "-0.3저" -> -0.3, "n/a" -> None
    """
    if value is None:
        return None
    match = _LEADING_NUMBER.match(str(value).strip())
    if match is None:
        return None
    return float(match.group(0))


def _split_annotation(value: typing.Any) -> str:
    # text after the leading number, or the whole string when there is none
    text = "" if value is None else str(value).strip()
    match = _LEADING_NUMBER.match(text)
    return text[match.end():].strip() if match else text


def tier_from_annotation(value: typing.Any) -> Tier | None:
    """Explicit tier marker in the non-numeric part of a value, if any."""
    annotation = _split_annotation(value)
    if not annotation:
        return None
    for pattern, tier in _TIER_PATTERNS:
        if pattern.search(annotation):
            return tier
    return None


def classify_concentration(value: typing.Any, boundaries: ConcentrationBoundaries | None) -> Tier:
    """
    Classify one value string.
    A textual marker wins outright; otherwise the number is compared against
    the boundaries (inclusive upper limits).
    """
    marked = tier_from_annotation(value)
    if marked is not None:
        return marked
    if boundaries is None:
        return Tier.UNKNOWN
    numeric_value = extract_numeric_value(value)
    if numeric_value is None:
        return Tier.UNKNOWN
    if numeric_value <= boundaries.boundary1:
        return Tier.LOW
    if numeric_value <= boundaries.boundary2:
        return Tier.MEDIUM
    return Tier.HIGH


def classify_readings(
        readings: typing.Sequence[Reading], boundaries: ConcentrationBoundaries | None
) -> list[Tier]:
    return [classify_concentration(reading.value, boundaries) for reading in readings]


def _distinct_values(readings: typing.Iterable[Reading]) -> list[float]:
    values = {extract_numeric_value(reading.value) for reading in readings}
    values.discard(None)
    return sorted(values)


def _tertile_boundaries(distinct: list[float]) -> tuple[float, float]:
    """Initial cut-offs for more than three distinct values."""
    n = len(distinct)
    lowest, highest = distinct[0], distinct[-1]
    span = highest - lowest
    if span <= 0:
        return lowest, highest

    b1 = lowest + span / 3
    b2 = lowest + (2 * span) / 3
    if b1 < b2:
        return b1, b2

    # Span tertiles collapsed: use order statistics of the distinct values
    idx1 = max(0, n // 3 - 1)
    idx2 = max(idx1 + 1, (2 * n) // 3 - 1)
    idx2 = min(n - 2, idx2)
    idx1 = min(idx1, max(0, idx2 - 1))
    if 0 <= idx1 < idx2 < n and distinct[idx1] < distinct[idx2]:
        return distinct[idx1], distinct[idx2]
    return lowest, (lowest + highest) / 2


def estimate_boundaries(readings: typing.Sequence[Reading]) -> ConcentrationBoundaries | None:
    """
    Compute tier boundaries from the distinct numeric primary values.

    Returns None when no reading carries a number. Edge cases:
    - 1 distinct value:  boundary1 = boundary2 = that value
    - 2 distinct values: boundary1 = boundary2 = min (binary low/high split)
    - 3 distinct values: boundary1 = v0, boundary2 = v1
    - more:              span tertiles, then order-statistic tertiles,
                         then (min, midpoint), followed by the corrections below
    """
    distinct = _distinct_values(readings)
    if not distinct:
        LOGGER.debug("No numeric values among %d readings; boundaries unavailable", len(readings))
        return None

    n = len(distinct)
    lowest, highest = distinct[0], distinct[-1]
    span = highest - lowest

    if n == 1:
        b1, b2 = lowest, highest
    elif n == 2:
        b1 = b2 = lowest
    elif n == 3:
        b1, b2 = distinct[0], distinct[1]
    else:
        b1, b2 = _tertile_boundaries(distinct)

    if b1 > b2 and highest > lowest:
        b1, b2 = b2, b1

    if n != 2 and b1 == b2 and n > 1 and lowest < highest and b2 < highest:
        b2 = next((v for v in distinct if v > b2), b2)
        if b1 == b2 and b1 > lowest:
            b1 = next((v for v in reversed(distinct) if v < b1), b1)

    if n == 2:
        b1 = b2 = lowest
    elif b1 >= b2 and n > 2:
        b1 = lowest
        b2 = (lowest + highest) / 2
        if b1 >= b2 and lowest < highest:
            b2 = highest

    LOGGER.debug("Boundaries over %d distinct values: low <= %s < medium <= %s < high", n, b1, b2)
    return ConcentrationBoundaries(
        overall_min=lowest,
        overall_max=highest,
        span=span,
        boundary1=b1,
        boundary2=b2,
    )
