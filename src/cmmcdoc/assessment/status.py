"""
Implementation status classification.

Maps a raw assessment score (0-3) to one of three implementation states.
Classification is a pure function of the score and is never cached: a
changed score always means a freshly computed status.

Thresholds:
    - implemented: score >= 3
    - partially-implemented: 1 <= score < 3
    - not-implemented: score < 1, or no response at all
"""

from __future__ import annotations

from enum import Enum

IMPLEMENTED_THRESHOLD = 3
PARTIAL_THRESHOLD = 1


class ControlStatus(str, Enum):
    """Implementation status of a control."""

    NOT_IMPLEMENTED = "not-implemented"
    PARTIALLY_IMPLEMENTED = "partially-implemented"
    IMPLEMENTED = "implemented"

    @property
    def label(self) -> str:
        """Status as prose, e.g. "partially implemented"."""
        return self.value.replace("-", " ")


def classify(score: int | None) -> ControlStatus:
    """
    Classify a control score.

    Args:
        score: Assessment score, or None when the control was not answered.

    Returns:
        ControlStatus for the score. Missing scores count as 0.
    """
    if score is None:
        score = 0
    if score >= IMPLEMENTED_THRESHOLD:
        return ControlStatus.IMPLEMENTED
    if score >= PARTIAL_THRESHOLD:
        return ControlStatus.PARTIALLY_IMPLEMENTED
    return ControlStatus.NOT_IMPLEMENTED
