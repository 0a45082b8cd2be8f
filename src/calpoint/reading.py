"""
Reading domain model.

Defines the Reading dataclass for one (time, value) pair extracted from an
instrument display, plus the identifier cells the labeler fills in.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Reading:
    """
    Represents a single extracted reading.

    Attributes:
        time: Display timestamp exactly as extracted (free text).
        value: Primary value string, may carry units or annotations ("12.3 mg/L 저").
        value_secondary: Secondary analyte value for dual-channel (TN/TP) jobs.
        identifier_primary: Calibration-point label of the primary channel.
        identifier_secondary: Calibration-point label of the secondary channel.
        rule_matched: True if identifier_primary was written by a shape match.
        id: Opaque row identifier; generated when not supplied.
    """

    time: str
    value: str
    value_secondary: Optional[str] = None
    identifier_primary: Optional[str] = None
    identifier_secondary: Optional[str] = None
    rule_matched: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not isinstance(self.time, str):
            raise ValueError(f"time must be a string, got {type(self.time).__name__}")
        if not isinstance(self.value, str):
            raise ValueError(f"value must be a string, got {type(self.value).__name__}")
        if self.value_secondary is not None and not isinstance(self.value_secondary, str):
            raise ValueError(
                f"value_secondary must be a string, got {type(self.value_secondary).__name__}"
            )
        if not isinstance(self.rule_matched, bool):
            raise ValueError(
                f"rule_matched must be a boolean, got {type(self.rule_matched).__name__}"
            )
        # Empty identifier cells are stored as None
        if not self.identifier_primary:
            self.identifier_primary = None
        if not self.identifier_secondary:
            self.identifier_secondary = None
