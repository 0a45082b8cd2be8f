import typing

import pytest
from stairval.notepad import Notepad, create_notepad

from calpoint.reading import Reading


@pytest.fixture
def notepad() -> Notepad:
    return create_notepad("readings")


@pytest.fixture(scope="session")
def make_readings() -> typing.Callable[..., list[Reading]]:
    """
    Factory for reading lists: one Reading per value, times "00:00", "00:01", ...
    Optional `secondary` values and pre-existing `identifiers` line up by index.
    """

    def _make(values, secondary=None, identifiers=None, rule_matched=None) -> list[Reading]:
        readings = []
        for i, value in enumerate(values):
            readings.append(
                Reading(
                    time=f"00:{i:02d}",
                    value=str(value),
                    value_secondary=None if secondary is None else str(secondary[i]),
                    identifier_primary=None if identifiers is None else identifiers[i],
                    rule_matched=False if rule_matched is None else rule_matched[i],
                )
            )
        return readings

    return _make
