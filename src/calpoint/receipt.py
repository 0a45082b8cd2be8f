"""
Candidate identifiers mined from a receipt number.

Field offices encode the expected calibration sequence in the receipt number:
- characters 1-4 : prefix code ("zszz", "MMMZ", ...), slots 1-4
- characters 5-13: body code ("sszzssmmm", ...), slots 5-13
- last 6 chars   : tail code ("zszszs" or "szszsz"), slots 14-19

Codes are compared case-sensitively. An unknown prefix or body code yields the
sheet's default sequence for those slots; an unknown tail yields no candidates
for slots 14-19. The result always has RECEIPT_SLOT_COUNT entries.
"""

from typing import Optional, Tuple

RECEIPT_SLOT_COUNT = 19

Candidates = Tuple[Optional[str], ...]

# prefix code -> slots 1-4
PREFIX_CODES: dict[str, tuple[str, str, str, str]] = {
    "zszz": ("Z5", "S5", "Z1", "Z2"),
    "szss": ("S5", "Z5", "S1", "S2"),
    "zzss": ("Z1", "Z2", "S1", "S2"),
    "sszz": ("S1", "S2", "Z1", "Z2"),
    "MMMZ": ("M1", "M2", "M3", "Z5"),
    "ZSMM": ("Z5", "S5", "M1", "M2"),
    "SZMM": ("S5", "Z5", "M1", "M2"),
}
DEFAULT_PREFIX = ("M1", "M2", "M3", "Z5")

# five-letter prefixes only decide slot 4
SLOT4_OVERRIDES: dict[str, str] = {
    "MMMZS": "Z5",
    "MMMZZ": "Z1",
    "MMMSS": "S1",
}

# body code -> slots 5-13
BODY_CODES: dict[str, tuple[str, ...]] = {
    "sszzssmmm": ("S1", "S2", "Z3", "Z4", "S3", "S4", "M1", "M2", "M3"),
    "ssmmmzzss": ("S1", "S2", "M1", "M2", "M3", "Z3", "Z4", "S3", "S4"),
    "zzsszzmmm": ("Z1", "Z2", "S3", "S4", "Z3", "Z4", "M1", "M2", "M3"),
    "zzmmmsszz": ("Z1", "Z2", "M1", "M2", "M3", "S3", "S4", "Z3", "Z4"),
    "zzsszsmmm": ("Z3", "Z4", "S3", "S4", "Z5", "S5", "M1", "M2", "M3"),
    "mmmzzsszs": ("M1", "M2", "M3", "Z3", "Z4", "S3", "S4", "Z5", "S5"),
    "mmmzszzss": ("M1", "M2", "M3", "Z5", "S5", "Z3", "Z4", "S3", "S4"),
    "sszzszmmm": ("S3", "S4", "Z3", "Z4", "S5", "Z5", "M1", "M2", "M3"),
    "mmmszsszz": ("M1", "M2", "M3", "S5", "Z5", "S3", "S4", "Z3", "Z4"),
    "mmmsszzsz": ("M1", "M2", "M3", "S3", "S4", "Z3", "Z4", "S5", "Z5"),
    "szzsszzss": ("S5", "Z1", "Z2", "S1", "S2", "Z3", "Z4", "S3", "S4"),
    "zsszzsszs": ("Z2", "S1", "S2", "Z3", "Z4", "S3", "S4", "Z5", "S5"),
    "mzzsszzss": ("M3", "Z1", "Z2", "S1", "S2", "Z3", "Z4", "S3", "S4"),
    "msszzsszz": ("M3", "S1", "S2", "Z1", "Z2", "S3", "S4", "Z3", "Z4"),
    "zsmmmzzss": ("Z5", "S5", "M1", "M2", "M3", "Z3", "Z4", "S3", "S4"),
    "szmmmsszz": ("S5", "Z5", "M1", "M2", "M3", "S3", "S4", "Z3", "Z4"),
    "zszzssmmm": ("Z5", "S5", "Z3", "Z4", "S3", "S4", "M1", "M2", "M3"),
    "szsszzmmm": ("S5", "Z5", "S3", "S4", "Z3", "Z4", "M1", "M2", "M3"),
    "zsszszzss": ("Z2", "S1", "S2", "Z5", "S5", "Z3", "Z4", "S3", "S4"),
    "szzszsszz": ("S2", "Z1", "Z2", "S5", "Z5", "S3", "S4", "Z3", "Z4"),
}
DEFAULT_BODY = ("S5", "Z1", "Z2", "S1", "S2", "Z3", "Z4", "S3", "S4")

# tail code -> slots 14-19
TAIL_CODES: dict[str, tuple[str, ...]] = {
    "zszszs": ("Z6", "S6", "Z7", "S7", "현장1", "현장2"),
    "szszsz": ("S6", "Z6", "S7", "Z7", "현장2", "현장1"),
}
_NO_TAIL: tuple[None, ...] = (None,) * 6


def _prefix_slots(receipt_number: str) -> tuple[str, ...]:
    first, second, third, fourth = PREFIX_CODES.get(receipt_number[:4], DEFAULT_PREFIX)
    fourth = SLOT4_OVERRIDES.get(receipt_number[:5], fourth)
    return first, second, third, fourth


def candidate_identifiers_from_receipt(receipt_number: str) -> Candidates:
    """
    Return the ordered candidate identifiers encoded in `receipt_number`.
    Entries are identifier labels or None where the receipt encodes nothing.
    """
    if not receipt_number or not isinstance(receipt_number, str):
        return (None,) * RECEIPT_SLOT_COUNT

    prefix = _prefix_slots(receipt_number)
    body = BODY_CODES.get(receipt_number[4:13], DEFAULT_BODY)
    tail = TAIL_CODES.get(receipt_number[-6:], _NO_TAIL)
    return prefix + body + tail
