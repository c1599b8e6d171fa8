"""
Priority, effort, duration and cost estimation for unmet controls.

All heuristics are expressed as lookup tables so that an organization can
swap them through EstimationPolicy without touching the estimation code.
Every estimate is a pure function of (control, status, policy).

Priority:
    A high-priority control that is not implemented at all escalates to
    critical. Every other priority passes through unchanged.

Effort:
    complexity = example count (default 3), multiplied by 1.5 when the
    control is not implemented. >= 6 is high effort, >= 3 medium,
    otherwise low.

Duration:
    ceil(BASE_DURATION_DAYS[effort] * PRIORITY_DURATION_FACTOR[priority])

Cost:
    ceil(duration * hours_per_day * hourly_rate * EFFORT_COST_MULTIPLIER[effort])
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cmmcdoc.assessment.status import ControlStatus
from cmmcdoc.catalog.cmmc_controls import Control, Priority

logger = logging.getLogger(__name__)


class Effort(str, Enum):
    """Effort required to implement a control."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Days of work per effort level before priority scaling
BASE_DURATION_DAYS: dict[Effort, int] = {
    Effort.LOW: 7,
    Effort.MEDIUM: 14,
    Effort.HIGH: 30,
}

# Critical work is compressed, low-priority work stretches out
PRIORITY_DURATION_FACTOR: dict[Priority, float] = {
    Priority.CRITICAL: 0.8,
    Priority.HIGH: 1.0,
    Priority.MEDIUM: 1.2,
    Priority.LOW: 1.5,
}

EFFORT_COST_MULTIPLIER: dict[Effort, float] = {
    Effort.LOW: 0.5,
    Effort.MEDIUM: 1.0,
    Effort.HIGH: 1.5,
}

# Status -> priority escalation. Only listed (status, priority) pairs change.
PRIORITY_ESCALATION: dict[tuple[ControlStatus, Priority], Priority] = {
    (ControlStatus.NOT_IMPLEMENTED, Priority.HIGH): Priority.CRITICAL,
}


@dataclass
class EstimationPolicy:
    """
    Tunable estimation parameters.

    Attributes:
        hourly_rate: Labour cost in USD per hour.
        hours_per_day: Working hours per day.
        not_implemented_multiplier: Complexity multiplier for controls
            with no implementation at all.
        default_complexity: Complexity used when a control has no
            example count.
        high_effort_threshold: Minimum weighted complexity for high effort.
        medium_effort_threshold: Minimum weighted complexity for medium effort.
        base_duration_days: Effort -> base duration table.
        priority_duration_factor: Priority -> duration scaling table.
        effort_cost_multiplier: Effort -> cost scaling table.
    """

    hourly_rate: float = 150.0
    hours_per_day: float = 8.0
    not_implemented_multiplier: float = 1.5
    default_complexity: int = 3
    high_effort_threshold: float = 6.0
    medium_effort_threshold: float = 3.0
    base_duration_days: dict[Effort, int] = field(
        default_factory=lambda: dict(BASE_DURATION_DAYS)
    )
    priority_duration_factor: dict[Priority, float] = field(
        default_factory=lambda: dict(PRIORITY_DURATION_FACTOR)
    )
    effort_cost_multiplier: dict[Effort, float] = field(
        default_factory=lambda: dict(EFFORT_COST_MULTIPLIER)
    )


@dataclass(frozen=True)
class Estimate:
    """
    Remediation estimate for a single control.

    Attributes:
        priority: Effective priority after escalation.
        effort: Effort level.
        duration_days: Estimated duration in whole days (> 0).
        cost_usd: Estimated cost in whole US dollars (>= 0).
    """

    priority: Priority
    effort: Effort
    duration_days: int
    cost_usd: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "priority": self.priority.value,
            "effort": self.effort.value,
            "duration_days": self.duration_days,
            "cost_usd": self.cost_usd,
        }


class Estimator:
    """
    Derives priority, effort, duration and cost for a control.

    The estimator holds no state besides its policy, so a single instance
    can be shared by every generator.

    Example:
        estimator = Estimator()
        estimate = estimator.estimate(control, ControlStatus.NOT_IMPLEMENTED)
        print(estimate.priority, estimate.duration_days, estimate.cost_usd)
    """

    def __init__(self, policy: EstimationPolicy | None = None) -> None:
        self.policy = policy or EstimationPolicy()

    def priority_for(self, control: Control, status: ControlStatus) -> Priority:
        """Effective priority of a control in the given status."""
        return PRIORITY_ESCALATION.get((status, control.priority), control.priority)

    def _effort_from_complexity(self, weighted: float) -> Effort:
        if weighted >= self.policy.high_effort_threshold:
            return Effort.HIGH
        if weighted >= self.policy.medium_effort_threshold:
            return Effort.MEDIUM
        return Effort.LOW

    def _complexity(self, control: Control) -> int:
        # Zero or missing example counts fall back to the default
        return control.example_count or self.policy.default_complexity

    def effort_for(self, control: Control, status: ControlStatus) -> Effort:
        """Effort level of a control in the given status."""
        multiplier = (
            self.policy.not_implemented_multiplier
            if status == ControlStatus.NOT_IMPLEMENTED
            else 1.0
        )
        return self._effort_from_complexity(self._complexity(control) * multiplier)

    def complexity_of(self, control: Control) -> Effort:
        """
        Status-independent complexity of a control.

        Uses the same thresholds as effort_for with no multiplier.
        """
        return self._effort_from_complexity(self._complexity(control))

    def duration_for(self, effort: Effort, priority: Priority) -> int:
        """Duration in days for an effort level at a priority."""
        base = self.policy.base_duration_days[effort]
        return math.ceil(base * self.policy.priority_duration_factor[priority])

    def cost_for(self, duration_days: int, effort: Effort) -> int:
        """Cost in USD for a duration at an effort level."""
        return math.ceil(
            duration_days
            * self.policy.hours_per_day
            * self.policy.hourly_rate
            * self.policy.effort_cost_multiplier[effort]
        )

    def estimate(self, control: Control, status: ControlStatus) -> Estimate:
        """
        Estimate remediation for a control.

        Args:
            control: Catalog control.
            status: Classified implementation status.

        Returns:
            Estimate with priority, effort, duration and cost.
        """
        priority = self.priority_for(control, status)
        effort = self.effort_for(control, status)
        duration = self.duration_for(effort, priority)
        cost = self.cost_for(duration, effort)

        logger.debug(
            "Estimated %s (%s): priority=%s effort=%s duration=%dd cost=$%d",
            control.id,
            status.value,
            priority.value,
            effort.value,
            duration,
            cost,
        )
        return Estimate(
            priority=priority,
            effort=effort,
            duration_days=duration,
            cost_usd=cost,
        )
