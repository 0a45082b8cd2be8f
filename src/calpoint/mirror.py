"""
Secondary-channel mirroring for dual-analyte (TN/TP) jobs.
"""

import logging
import typing

from .vocabulary import SECONDARY_SUFFIX, SECONDARY_VOCABULARY, Vocabulary

LOGGER = logging.getLogger(__name__)


def mirror_secondary_channel(
        primary: typing.Sequence[typing.Optional[str]],
        secondary: typing.Sequence[typing.Optional[str]],
        vocabulary: Vocabulary = SECONDARY_VOCABULARY,
) -> list[typing.Optional[str]]:
    """
    Derive missing secondary labels from the final primary labels.

    For every index with a primary label but no secondary one, use the
    suffixed form ('Z1' -> 'Z1P') if the secondary vocabulary accepts it and
    it is still unused, else the bare label under the same conditions.
    Existing secondary labels are never changed.
    """
    if len(primary) != len(secondary):
        raise ValueError("Primary and secondary channels must have the same length")

    mirrored = [label or None for label in secondary]
    used = {label for label in mirrored if label}
    for index, label in enumerate(primary):
        if not label or mirrored[index] is not None:
            continue
        for option in (label + SECONDARY_SUFFIX, label):
            if option in vocabulary and option not in used:
                mirrored[index] = option
                used.add(option)
                break
        else:
            LOGGER.debug("No secondary label available for %s at row %d", label, index + 1)
    return mirrored
