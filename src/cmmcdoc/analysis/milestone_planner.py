"""
POAM milestone planning for unmet controls.

Every control that is not fully implemented becomes one milestone with an
estimate, an owner, ordered remediation actions and identified risks.
Planning is deterministic: identifiers are numbered in catalog traversal
order and all dates are offsets from a single "now" anchor.

Action Schedule (offsets from now):
    - Detailed assessment: +2 days
    - Implementation plan and design: +5 days (not-implemented only)
    - Implementation: +70% of estimated duration
    - Test and validation: +90% of estimated duration

Risks:
    - Resource-constraint delays (always; high impact when critical)
    - Technical complexity (always)
    - Compliance deadline pressure (critical priority only)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from cmmcdoc.assessment.estimator import Effort, Estimate, Estimator
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo
from cmmcdoc.assessment.status import ControlStatus, classify
from cmmcdoc.catalog.cmmc_controls import Catalog, Control, Priority

logger = logging.getLogger(__name__)


class MilestoneStatus(str, Enum):
    """Lifecycle state of a milestone."""

    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class ActionStatus(str, Enum):
    """State of a remediation action."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class RiskRating(str, Enum):
    """Impact or probability rating of a risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_RESPONSIBLE_PARTY = "IT Security Team"

# Domain name -> owning team
DOMAIN_RESPONSIBLE_PARTIES: dict[str, str] = {
    "Access Control": "IT Security Team",
    "Audit and Accountability": "IT Security Team",
    "Awareness and Training": "HR and Training Team",
    "Configuration Management": "IT Operations Team",
    "Identification and Authentication": "IT Security Team",
    "Incident Response": "Security Operations Team",
    "Maintenance": "IT Operations Team",
    "Media Protection": "IT Security Team",
    "Personnel Security": "HR Team",
    "Physical Protection": "Facilities Team",
    "Risk Assessment": "Risk Management Team",
    "Security Assessment": "IT Security Team",
    "System and Communications Protection": "Network Team",
    "System and Information Integrity": "IT Security Team",
}

BASE_RESOURCES = ["Security personnel", "IT staff", "Management oversight"]
HIGH_EFFORT_RESOURCES = ["External consultants", "Additional budget", "Project management"]

# Domain keyword -> prerequisite systems
DOMAIN_DEPENDENCIES: list[tuple[str, list[str]]] = [
    ("Access Control", ["Identity Management System", "User Directory"]),
    ("Audit", ["Logging Infrastructure", "SIEM System"]),
    ("Training", ["Training Platform", "Content Development"]),
]

EVIDENCE_REQUIREMENTS = [
    "Implementation documentation",
    "Configuration screenshots",
    "Test results",
    "Policy updates",
    "Training records",
]


@dataclass
class MilestoneAction:
    """
    A single remediation step.

    Attributes:
        id: Action identifier (e.g., "milestone-1-action-2").
        description: What to do.
        due_date: When the action is due.
        assigned_to: Role name that performs the action.
        due_offset_days: Due date as days after the planning anchor.
        status: Action state. Always pending when generated.
    """

    id: str
    description: str
    due_date: datetime
    assigned_to: str
    due_offset_days: int
    status: ActionStatus = ActionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "due_date": self.due_date.isoformat(),
            "assigned_to": self.assigned_to,
            "due_offset_days": self.due_offset_days,
            "status": self.status.value,
        }


@dataclass
class MilestoneRisk:
    """A risk to completing a milestone, with its mitigation."""

    id: str
    description: str
    impact: RiskRating
    probability: RiskRating
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "impact": self.impact.value,
            "probability": self.probability.value,
            "mitigation": self.mitigation,
        }


@dataclass
class Milestone:
    """
    A POAM milestone for one unmet control.

    Attributes:
        id: Milestone identifier (e.g., "milestone-3").
        control_id: Control being remediated.
        control_title: Control requirement text.
        domain: Control domain name.
        description: Human-readable remediation statement.
        current_status: Classified status of the control.
        target_status: Always implemented.
        estimate: Priority, effort, duration and cost.
        start_date: Planning anchor.
        target_date: start_date + estimated duration.
        responsible_party: Owning team.
        resources: Resources needed.
        dependencies: Prerequisite systems.
        risks: Identified risks.
        actions: Ordered remediation actions.
        evidence: Evidence expected on completion.
        status: Milestone state. Always planned when generated.
    """

    id: str
    control_id: str
    control_title: str
    domain: str
    description: str
    current_status: ControlStatus
    estimate: Estimate
    start_date: datetime
    target_date: datetime
    responsible_party: str
    target_status: ControlStatus = ControlStatus.IMPLEMENTED
    resources: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    risks: list[MilestoneRisk] = field(default_factory=list)
    actions: list[MilestoneAction] = field(default_factory=list)
    evidence: list[str] = field(default_factory=list)
    status: MilestoneStatus = MilestoneStatus.PLANNED

    @property
    def priority(self) -> Priority:
        return self.estimate.priority

    @property
    def effort(self) -> Effort:
        return self.estimate.effort

    @property
    def estimated_cost(self) -> int:
        return self.estimate.cost_usd

    @property
    def estimated_duration(self) -> int:
        return self.estimate.duration_days

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "control_id": self.control_id,
            "control_title": self.control_title,
            "domain": self.domain,
            "description": self.description,
            "current_status": self.current_status.value,
            "target_status": self.target_status.value,
            "priority": self.priority.value,
            "estimated_effort": self.effort.value,
            "estimated_cost": self.estimated_cost,
            "estimated_duration": self.estimated_duration,
            "start_date": self.start_date.isoformat(),
            "target_date": self.target_date.isoformat(),
            "responsible_party": self.responsible_party,
            "resources": list(self.resources),
            "dependencies": list(self.dependencies),
            "risks": [r.to_dict() for r in self.risks],
            "actions": [a.to_dict() for a in self.actions],
            "evidence": list(self.evidence),
            "status": self.status.value,
        }


@dataclass
class MilestoneSummary:
    """
    Aggregate view over a milestone list.

    Computed once at generation time. Edits to the milestone list after
    that leave the summary stale until it is recomputed.

    Attributes:
        total_milestones: Number of milestones.
        milestones_by_status: Count per MilestoneStatus value.
        critical_milestones: Milestones with critical priority.
        high_priority_milestones: Milestones with high priority.
        estimated_total_cost: Sum of milestone costs.
        estimated_total_duration: Longest milestone duration (0 if none).
        overall_progress: Completed milestones as a percentage.
    """

    total_milestones: int
    milestones_by_status: dict[str, int]
    critical_milestones: int
    high_priority_milestones: int
    estimated_total_cost: int
    estimated_total_duration: int
    overall_progress: float

    @property
    def completed_milestones(self) -> int:
        return self.milestones_by_status.get(MilestoneStatus.COMPLETED.value, 0)

    @property
    def in_progress_milestones(self) -> int:
        return self.milestones_by_status.get(MilestoneStatus.IN_PROGRESS.value, 0)

    @property
    def planned_milestones(self) -> int:
        return self.milestones_by_status.get(MilestoneStatus.PLANNED.value, 0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_milestones": self.total_milestones,
            "completed_milestones": self.completed_milestones,
            "in_progress_milestones": self.in_progress_milestones,
            "planned_milestones": self.planned_milestones,
            "milestones_by_status": dict(self.milestones_by_status),
            "critical_milestones": self.critical_milestones,
            "high_priority_milestones": self.high_priority_milestones,
            "estimated_total_cost": self.estimated_total_cost,
            "estimated_total_duration": self.estimated_total_duration,
            "overall_progress": round(self.overall_progress, 2),
        }


def summarize_milestones(milestones: list[Milestone]) -> MilestoneSummary:
    """
    Aggregate a milestone list.

    Args:
        milestones: Milestones to summarize.

    Returns:
        MilestoneSummary. Total duration is the maximum, not the sum,
        because milestones are worked in parallel.
    """
    by_status = {status.value: 0 for status in MilestoneStatus}
    for milestone in milestones:
        by_status[milestone.status.value] += 1

    total = len(milestones)
    completed = by_status[MilestoneStatus.COMPLETED.value]

    return MilestoneSummary(
        total_milestones=total,
        milestones_by_status=by_status,
        critical_milestones=sum(1 for m in milestones if m.priority == Priority.CRITICAL),
        high_priority_milestones=sum(1 for m in milestones if m.priority == Priority.HIGH),
        estimated_total_cost=sum(m.estimated_cost for m in milestones),
        estimated_total_duration=max((m.estimated_duration for m in milestones), default=0),
        overall_progress=(completed / total * 100) if total > 0 else 0.0,
    )


class MilestonePlanner:
    """
    Turns unmet controls into POAM milestones.

    Example:
        planner = MilestonePlanner()
        milestones = planner.plan(assessment, get_default_catalog(), org_info)
        summary = summarize_milestones(milestones)
    """

    def __init__(self, estimator: Estimator | None = None) -> None:
        self.estimator = estimator or Estimator()

    def plan(
        self,
        assessment: AssessmentData,
        catalog: Catalog,
        org_info: OrganizationInfo,
        now: datetime | None = None,
    ) -> list[Milestone]:
        """
        Plan milestones for every control that is not implemented.

        Args:
            assessment: Assessment responses.
            catalog: Control catalog; traversal order sets milestone order.
            org_info: Organization, used for responsible-party fallback.
            now: Planning anchor. Defaults to current UTC time.

        Returns:
            Milestones in catalog traversal order.
        """
        if now is None:
            now = datetime.now(UTC)

        milestones: list[Milestone] = []
        for control in catalog.controls():
            status = classify(assessment.score_for(control.id))
            if status == ControlStatus.IMPLEMENTED:
                continue
            milestones.append(
                self._create_milestone(len(milestones) + 1, control, status, org_info, now)
            )

        logger.info(
            "Planned %d milestones for %d controls",
            len(milestones),
            len(catalog),
        )
        return milestones

    def _create_milestone(
        self,
        number: int,
        control: Control,
        status: ControlStatus,
        org_info: OrganizationInfo,
        now: datetime,
    ) -> Milestone:
        milestone_id = f"milestone-{number}"
        estimate = self.estimator.estimate(control, status)

        return Milestone(
            id=milestone_id,
            control_id=control.id,
            control_title=control.text,
            domain=control.domain,
            description=self.describe(control, status),
            current_status=status,
            estimate=estimate,
            start_date=now,
            target_date=now + timedelta(days=estimate.duration_days),
            responsible_party=self.responsible_party(
                control.domain, org_info.responsible_parties
            ),
            resources=self.resources_for(estimate.effort),
            dependencies=self.dependencies_for(control.domain),
            risks=self.risks_for(milestone_id, estimate.priority),
            actions=self.actions_for(milestone_id, status, estimate.duration_days, now),
            evidence=list(EVIDENCE_REQUIREMENTS),
        )

    @staticmethod
    def describe(control: Control, status: ControlStatus) -> str:
        """Remediation statement for a control."""
        return f"Implement {control.text}. Currently {status.label}. {control.guidance}"

    @staticmethod
    def responsible_party(domain: str, responsible_parties: list[str]) -> str:
        """
        Pick the owner for a domain.

        Falls back to the first organization responsible party, then to
        the IT Security Team.
        """
        if domain in DOMAIN_RESPONSIBLE_PARTIES:
            return DOMAIN_RESPONSIBLE_PARTIES[domain]
        if responsible_parties:
            return responsible_parties[0]
        return DEFAULT_RESPONSIBLE_PARTY

    @staticmethod
    def resources_for(effort: Effort) -> list[str]:
        if effort == Effort.HIGH:
            return BASE_RESOURCES + HIGH_EFFORT_RESOURCES
        return list(BASE_RESOURCES)

    @staticmethod
    def dependencies_for(domain: str) -> list[str]:
        dependencies: list[str] = []
        for keyword, systems in DOMAIN_DEPENDENCIES:
            if keyword in domain:
                dependencies.extend(systems)
        return dependencies

    @staticmethod
    def risks_for(milestone_id: str, priority: Priority) -> list[MilestoneRisk]:
        """Risks for a milestone at a priority (2 or 3 entries)."""
        critical = priority == Priority.CRITICAL
        specs = [
            (
                "Implementation delays due to resource constraints",
                RiskRating.HIGH if critical else RiskRating.MEDIUM,
                RiskRating.MEDIUM,
                "Allocate dedicated resources and establish clear timelines",
            ),
            (
                "Technical complexity exceeding initial estimates",
                RiskRating.MEDIUM,
                RiskRating.LOW,
                "Conduct detailed technical assessment and engage subject matter experts",
            ),
        ]
        if critical:
            specs.append(
                (
                    "Compliance deadline pressure",
                    RiskRating.HIGH,
                    RiskRating.HIGH,
                    "Prioritize critical controls and consider phased implementation",
                )
            )

        return [
            MilestoneRisk(
                id=f"{milestone_id}-risk-{index}",
                description=description,
                impact=impact,
                probability=probability,
                mitigation=mitigation,
            )
            for index, (description, impact, probability, mitigation) in enumerate(
                specs, start=1
            )
        ]

    @staticmethod
    def actions_for(
        milestone_id: str,
        status: ControlStatus,
        duration_days: int,
        now: datetime,
    ) -> list[MilestoneAction]:
        """
        Ordered remediation actions (3 or 4 entries).

        Args:
            milestone_id: Owning milestone identifier.
            status: Current control status.
            duration_days: Estimated milestone duration.
            now: Anchor for due dates.
        """
        steps: list[tuple[str, int, str]] = [
            ("Conduct detailed assessment of current implementation", 2, "Security Analyst"),
        ]
        if status == ControlStatus.NOT_IMPLEMENTED:
            steps.append(("Develop implementation plan and design", 5, "Security Architect"))
        steps.append(
            (
                "Implement required controls and configurations",
                math.floor(duration_days * 0.7),
                "Implementation Team",
            )
        )
        steps.append(
            (
                "Test and validate implementation",
                math.floor(duration_days * 0.9),
                "QA Team",
            )
        )

        return [
            MilestoneAction(
                id=f"{milestone_id}-action-{index}",
                description=description,
                due_date=now + timedelta(days=offset),
                assigned_to=assignee,
                due_offset_days=offset,
            )
            for index, (description, offset, assignee) in enumerate(steps, start=1)
        ]
