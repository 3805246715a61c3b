"""Error values carried inside analysis output.

The core reports bad data as values rather than aborting: a record
collects the errors met while analyzing one hero action and the driver
moves on to the next action.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_CARD = "InvalidCard"
    INSUFFICIENT_BOARD = "InsufficientBoard"
    RANGE_COLLAPSED = "RangeCollapsed"
    FREQUENCY_NORMALIZATION_FAILED = "FrequencyNormalizationFailed"
    INPUT_SHAPE_MISMATCH = "InputShapeMismatch"


@dataclass(frozen=True)
class AnalysisError:
    """One recoverable problem found during analysis."""

    kind: ErrorKind
    message: str
    recoverable: bool = True

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
