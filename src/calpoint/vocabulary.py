"""
Identifier vocabulary and concentration tiers.

Defines the closed set of calibration-point identifiers accepted by the
reporting API, the per-mode vocabularies built from it, and the Tier enum
used by the concentration classifier.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import FrozenSet

# Appended to a primary identifier to get its secondary-channel (TP) form
SECONDARY_SUFFIX = "P"

# Reserved family: only ever written by hand or by the receipt fallback
SITE_PREFIX = "현장"


class Identifier(Enum):
    """
    Primary-channel calibration-point identifiers.
    Ordered the way the reporting sheet lists them.
    """
    M1 = "M1"
    M2 = "M2"
    M3 = "M3"
    Z1 = "Z1"
    Z2 = "Z2"
    S1 = "S1"
    S2 = "S2"
    Z3 = "Z3"
    Z4 = "Z4"
    S3 = "S3"
    S4 = "S4"
    Z5 = "Z5"
    S5 = "S5"
    Z6 = "Z6"
    S6 = "S6"
    Z7 = "Z7"
    S7 = "S7"
    SITE1 = "현장1"
    SITE2 = "현장2"

    @property
    def is_site(self) -> bool:
        return self.value.startswith(SITE_PREFIX)

    @property
    def secondary(self) -> str:
        """The secondary-channel label, e.g. 'Z1' -> 'Z1P'."""
        return self.value + SECONDARY_SUFFIX

    @classmethod
    def from_label(cls, label: str) -> "Identifier":
        """
        Look up a primary identifier by its label.
        Surrounding whitespace is ignored; the letter part is case-insensitive.
        """
        key = label.strip().upper()
        for member in cls:
            if member.value.upper() == key:
                return member
        raise ValueError(f"Unknown identifier label: {label!r}")


class Tier(Enum):
    """Concentration tier of a single reading."""
    LOW = auto()
    MEDIUM = auto()
    HIGH = auto()
    UNKNOWN = auto()

    @classmethod
    def from_marker(cls, marker: str) -> "Tier":
        """
        Convert a textual tier annotation ('고', 'mid', 'Low', ...) into a Tier.
        """
        key = marker.strip().lower()
        for tier, markers in TIER_MARKERS.items():
            if key in markers:
                return tier
        raise ValueError(f"Unknown tier marker: {marker!r}")


# Textual tier annotations, in the order the classifier checks them
TIER_MARKERS: dict[Tier, tuple[str, ...]] = {
    Tier.HIGH: ("고", "high"),
    Tier.MEDIUM: ("중", "medium", "mid"),
    Tier.LOW: ("저", "low"),
}


@dataclass(frozen=True)
class Vocabulary:
    """
    The labels one channel may carry.

    Attributes:
        name: Short name used in log messages ("primary", "secondary", ...).
        labels: Every accepted label string.
    """
    name: str
    labels: FrozenSet[str] = field(default_factory=frozenset)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label in self.labels

    @staticmethod
    def is_site_label(label: str) -> bool:
        return label.startswith(SITE_PREFIX)


PRIMARY_VOCABULARY = Vocabulary("primary", frozenset(member.value for member in Identifier))
SECONDARY_VOCABULARY = Vocabulary("secondary", frozenset(member.secondary for member in Identifier))
# Single-analyte jobs may carry either form on their only channel
SINGLE_CHANNEL_VOCABULARY = Vocabulary("single", PRIMARY_VOCABULARY.labels | SECONDARY_VOCABULARY.labels)


def vocabulary_for_mode(dual_channel: bool) -> tuple[Vocabulary, Vocabulary | None]:
    """
    Return (primary, secondary) vocabularies for the given mode.
    The secondary vocabulary is None for single-analyte jobs.
    """
    if dual_channel:
        return PRIMARY_VOCABULARY, SECONDARY_VOCABULARY
    return SINGLE_CHANNEL_VOCABULARY, None
