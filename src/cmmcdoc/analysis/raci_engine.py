"""
RACI responsibility assignment.

Assigns Responsible / Accountable / Consulted / Informed letters to every
(role, control) pair. Assignment is rule-based: a fixed list of role
archetype rules is evaluated in order and the first match wins. When no
rule matches, the overlap between the control's required skills and the
role's skills decides.

Precedence:
    1. CISO on a critical control -> A
    2. Compliance Officer on an "Assessment" domain -> R
    3. Security Architect on a high-complexity control -> R
    4. IT Security on a technical domain -> R
    5. IT Operations / HR / Facilities on Maintenance / Personnel /
       Physical domains -> R
    6. Legal on a "Policy" domain -> C
    7. Skill match: >= 0.7 R, >= 0.4 C, >= 0.2 I, otherwise no involvement

Role archetypes are recognized by well-known role ids (e.g. "ciso",
"it-security") or by phrases in the role name, so "Chief Information
Security Officer" and "CISO" are treated the same.

Matrix shape is an invariant: one row per role in role order, and one
entry per control in catalog traversal order in every row.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cmmcdoc.assessment.estimator import BASE_DURATION_DAYS, Effort, Estimator
from cmmcdoc.assessment.models import AssessmentData, Role, RoleLevel
from cmmcdoc.assessment.status import ControlStatus, classify
from cmmcdoc.catalog.cmmc_controls import Catalog, Control, Priority

logger = logging.getLogger(__name__)


class Responsibility(str, Enum):
    """RACI letter. NONE means no involvement."""

    RESPONSIBLE = "R"
    ACCOUNTABLE = "A"
    CONSULTED = "C"
    INFORMED = "I"
    NONE = ""


class RoleArchetype(str, Enum):
    """Well-known role families the assignment rules refer to."""

    CISO = "ciso"
    COMPLIANCE = "compliance"
    SECURITY_ARCHITECT = "security_architect"
    IT_SECURITY = "it_security"
    IT_OPERATIONS = "it_operations"
    HR = "hr"
    FACILITIES = "facilities"
    LEGAL = "legal"
    OTHER = "other"


class MergePrecedence(str, Enum):
    """Which side wins when caller and default role ids collide."""

    DEFAULTS = "defaults"
    CALLER = "caller"


# Role id -> archetype
ARCHETYPE_IDS: dict[str, RoleArchetype] = {
    "ciso": RoleArchetype.CISO,
    "compliance": RoleArchetype.COMPLIANCE,
    "compliance-officer": RoleArchetype.COMPLIANCE,
    "security-architect": RoleArchetype.SECURITY_ARCHITECT,
    "it-security": RoleArchetype.IT_SECURITY,
    "it-ops": RoleArchetype.IT_OPERATIONS,
    "it-operations": RoleArchetype.IT_OPERATIONS,
    "hr": RoleArchetype.HR,
    "hr-manager": RoleArchetype.HR,
    "facilities": RoleArchetype.FACILITIES,
    "facilities-manager": RoleArchetype.FACILITIES,
    "legal": RoleArchetype.LEGAL,
    "legal-counsel": RoleArchetype.LEGAL,
}

# Role name pattern -> archetype, checked in order
ARCHETYPE_NAME_PATTERNS: list[tuple[re.Pattern[str], RoleArchetype]] = [
    (re.compile(r"\bciso\b|chief information security officer", re.I), RoleArchetype.CISO),
    (re.compile(r"\bcompliance\b", re.I), RoleArchetype.COMPLIANCE),
    (re.compile(r"\bsecurity architect", re.I), RoleArchetype.SECURITY_ARCHITECT),
    (re.compile(r"\bit[\s-]security\b", re.I), RoleArchetype.IT_SECURITY),
    (re.compile(r"\bit[\s-]op(eration)?s\b", re.I), RoleArchetype.IT_OPERATIONS),
    (re.compile(r"\bhr\b|human resources", re.I), RoleArchetype.HR),
    (re.compile(r"\bfacilit(y|ies)\b", re.I), RoleArchetype.FACILITIES),
    (re.compile(r"\blegal\b|\bcounsel\b", re.I), RoleArchetype.LEGAL),
]

TECHNICAL_DOMAINS = frozenset(
    {
        "Access Control",
        "Audit and Accountability",
        "Configuration Management",
        "Identification and Authentication",
        "System and Communications Protection",
        "System and Information Integrity",
    }
)

# Domain keyword -> skills a control in that domain calls for
DOMAIN_REQUIRED_SKILLS: list[tuple[str, list[str]]] = [
    ("Access Control", ["Identity Management"]),
    ("Audit", ["SIEM", "Logging"]),
    ("Training", ["Training Development", "Content Creation"]),
    ("Physical", ["Facilities Management"]),
    ("Personnel", ["Human Resources"]),
]

COMPLEX_CONTROL_SKILLS = ["Project Management", "Technical Implementation"]
COMPLEX_CONTROL_EXAMPLE_COUNT = 4

SKILL_MATCH_THRESHOLDS: list[tuple[float, Responsibility]] = [
    (0.7, Responsibility.RESPONSIBLE),
    (0.4, Responsibility.CONSULTED),
    (0.2, Responsibility.INFORMED),
]

DEFAULT_ROLES: tuple[Role, ...] = (
    Role(
        id="ciso",
        name="CISO",
        department="Security",
        skills=["Security Leadership", "Risk Management", "Governance", "Compliance"],
        level=RoleLevel.EXECUTIVE,
    ),
    Role(
        id="compliance-officer",
        name="Compliance Officer",
        department="Compliance",
        skills=["Compliance", "Audit", "Policy Development", "Risk Assessment"],
        level=RoleLevel.MANAGEMENT,
    ),
    Role(
        id="security-architect",
        name="Security Architect",
        department="IT",
        skills=[
            "Security Architecture",
            "Network Security",
            "Identity Management",
            "Technical Implementation",
        ],
        level=RoleLevel.TECHNICAL,
    ),
    Role(
        id="it-security",
        name="IT Security Team",
        department="IT",
        skills=[
            "Identity Management",
            "SIEM",
            "Logging",
            "Incident Response",
            "Vulnerability Management",
        ],
        level=RoleLevel.TECHNICAL,
    ),
    Role(
        id="it-operations",
        name="IT Operations",
        department="IT",
        skills=[
            "System Administration",
            "Configuration Management",
            "Maintenance",
            "Technical Implementation",
        ],
        level=RoleLevel.OPERATIONAL,
    ),
    Role(
        id="hr-manager",
        name="HR Manager",
        department="Human Resources",
        skills=["Human Resources", "Training Development", "Personnel Screening"],
        level=RoleLevel.MANAGEMENT,
    ),
    Role(
        id="facilities-manager",
        name="Facilities Manager",
        department="Facilities",
        skills=["Facilities Management", "Physical Security", "Visitor Management"],
        level=RoleLevel.OPERATIONAL,
    ),
    Role(
        id="legal-counsel",
        name="Legal Counsel",
        department="Legal",
        skills=["Legal", "Contracts", "Regulatory Compliance", "Policy Development"],
        level=RoleLevel.MANAGEMENT,
    ),
)


def default_roles() -> list[Role]:
    """Fresh copies of the built-in role set."""
    return [
        Role(id=r.id, name=r.name, department=r.department, skills=list(r.skills), level=r.level)
        for r in DEFAULT_ROLES
    ]


def merge_roles(
    caller_roles: list[Role],
    defaults: list[Role] | None = None,
    precedence: MergePrecedence = MergePrecedence.DEFAULTS,
) -> list[Role]:
    """
    Merge caller roles with the default role set by id.

    Defaults come first, followed by caller roles whose ids are new.

    With DEFAULTS precedence a caller role whose id collides with a
    default is dropped and the default is kept. This is a known quirk
    kept for compatibility; it is logged as a warning. With CALLER
    precedence the caller role replaces the default in place.

    Args:
        caller_roles: Roles supplied by the caller.
        defaults: Default roles. Uses the built-in set when None.
        precedence: Which side wins on id collisions.

    Returns:
        Merged role list.
    """
    merged = list(defaults) if defaults is not None else default_roles()
    positions = {role.id: index for index, role in enumerate(merged)}

    for role in caller_roles:
        if role.id not in positions:
            positions[role.id] = len(merged)
            merged.append(role)
        elif precedence == MergePrecedence.CALLER:
            merged[positions[role.id]] = role
        else:
            logger.warning(
                "Role %r (%s) collides with a default role id; keeping the default",
                role.id,
                role.name,
            )
    return merged


def archetype_of(role: Role) -> RoleArchetype:
    """Classify a role by its id, then by phrases in its name."""
    by_id = ARCHETYPE_IDS.get(role.id.lower())
    if by_id is not None:
        return by_id
    for pattern, archetype in ARCHETYPE_NAME_PATTERNS:
        if pattern.search(role.name):
            return archetype
    return RoleArchetype.OTHER


def skills_overlap(required: str, offered: str) -> bool:
    """
    Case-insensitive match of a required skill within an offered one.

    Only the offered skill may be the longer string, so a broad skill such
    as "Management" does not cover "Identity Management".
    """
    required = required.strip().lower()
    offered = offered.strip().lower()
    if not required or not offered:
        return False
    return required in offered


def skill_match(required_skills: list[str], role_skills: list[str]) -> float:
    """
    Fraction of required skills the role covers.

    Returns:
        Value in [0, 1]. 0 when nothing is required.
    """
    if not required_skills:
        return 0.0
    matched = sum(
        1
        for required in required_skills
        if any(skills_overlap(required, offered) for offered in role_skills)
    )
    return matched / len(required_skills)


def required_skills_for(control: Control) -> list[str]:
    """Skills a control calls for, derived from its domain and size."""
    skills: list[str] = []
    for keyword, domain_skills in DOMAIN_REQUIRED_SKILLS:
        if keyword in control.domain:
            skills.extend(domain_skills)
    if (control.example_count or 0) >= COMPLEX_CONTROL_EXAMPLE_COUNT:
        skills.extend(COMPLEX_CONTROL_SKILLS)
    return skills


@dataclass(frozen=True)
class RACIControl:
    """
    A control as seen by the assignment engine.

    Attributes:
        id: Control identifier.
        title: Control requirement text.
        domain: Domain name.
        priority: Catalog priority.
        complexity: Status-independent complexity.
        required_skills: Skills the control calls for.
        status: Assessed status.
    """

    id: str
    title: str
    domain: str
    priority: Priority
    complexity: Effort
    required_skills: tuple[str, ...] = ()
    status: ControlStatus = ControlStatus.NOT_IMPLEMENTED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "domain": self.domain,
            "priority": self.priority.value,
            "complexity": self.complexity.value,
            "required_skills": list(self.required_skills),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class RACIEntry:
    """
    One cell of the RACI matrix.

    Attributes:
        role_id: Row role.
        control_id: Column control.
        responsibility: Assigned letter.
        justification: Why the letter was assigned.
        effort: Effort the role spends on the control.
        timeline_days: Expected involvement window in days.
    """

    role_id: str
    control_id: str
    responsibility: Responsibility
    justification: str
    effort: Effort
    timeline_days: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "role_id": self.role_id,
            "control_id": self.control_id,
            "responsibility": self.responsibility.value,
            "justification": self.justification,
            "effort": self.effort.value,
            "timeline": f"{self.timeline_days} days",
        }


@dataclass
class RoleWorkload:
    """
    Workload analysis for a single role.

    Attributes:
        role_id: Role identifier.
        role_name: Role display name.
        total_responsibilities: Number of R entries.
        high_priority_responsibilities: R entries on critical controls.
        estimated_effort: Overall effort level for the role.
        recommendations: Staffing recommendations.
    """

    role_id: str
    role_name: str
    total_responsibilities: int
    high_priority_responsibilities: int
    estimated_effort: Effort
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "role_id": self.role_id,
            "role_name": self.role_name,
            "total_responsibilities": self.total_responsibilities,
            "high_priority_responsibilities": self.high_priority_responsibilities,
            "estimated_effort": self.estimated_effort.value,
            "recommendations": list(self.recommendations),
        }


@dataclass
class RACISummary:
    """
    Aggregate counts over a RACI matrix.

    Attributes:
        total_roles: Number of matrix rows.
        total_controls: Number of matrix columns.
        responsible_count: R entries in the matrix.
        accountable_count: A entries in the matrix.
        consulted_count: C entries in the matrix.
        informed_count: I entries in the matrix.
        total_assignments: Non-empty entries in the matrix.
        role_distribution: Role name -> R count.
        role_counts: Role id -> letter -> count.
        workload_analysis: Per-role workload.
    """

    total_roles: int
    total_controls: int
    responsible_count: int
    accountable_count: int
    consulted_count: int
    informed_count: int
    total_assignments: int
    role_distribution: dict[str, int]
    role_counts: dict[str, dict[str, int]]
    workload_analysis: list[RoleWorkload]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_roles": self.total_roles,
            "total_controls": self.total_controls,
            "responsible_count": self.responsible_count,
            "accountable_count": self.accountable_count,
            "consulted_count": self.consulted_count,
            "informed_count": self.informed_count,
            "total_assignments": self.total_assignments,
            "role_distribution": dict(self.role_distribution),
            "role_counts": {k: dict(v) for k, v in self.role_counts.items()},
            "workload_analysis": [w.to_dict() for w in self.workload_analysis],
        }


RulePredicate = Callable[[RACIControl], bool]

# (archetype, predicate, letter, justification template), evaluated in order
ASSIGNMENT_RULES: list[tuple[RoleArchetype, RulePredicate, Responsibility, str]] = [
    (
        RoleArchetype.CISO,
        lambda c: c.priority == Priority.CRITICAL,
        Responsibility.ACCOUNTABLE,
        "{role} is accountable for critical control {control}",
    ),
    (
        RoleArchetype.COMPLIANCE,
        lambda c: "Assessment" in c.domain,
        Responsibility.RESPONSIBLE,
        "{role} owns assessment activities for {control}",
    ),
    (
        RoleArchetype.SECURITY_ARCHITECT,
        lambda c: c.complexity == Effort.HIGH,
        Responsibility.RESPONSIBLE,
        "{role} designs the implementation of high-complexity control {control}",
    ),
    (
        RoleArchetype.IT_SECURITY,
        lambda c: c.domain in TECHNICAL_DOMAINS,
        Responsibility.RESPONSIBLE,
        "{role} implements technical control {control} in {domain}",
    ),
    (
        RoleArchetype.IT_OPERATIONS,
        lambda c: "Maintenance" in c.domain,
        Responsibility.RESPONSIBLE,
        "{role} performs maintenance activities for {control}",
    ),
    (
        RoleArchetype.HR,
        lambda c: "Personnel" in c.domain,
        Responsibility.RESPONSIBLE,
        "{role} manages personnel security for {control}",
    ),
    (
        RoleArchetype.FACILITIES,
        lambda c: "Physical" in c.domain,
        Responsibility.RESPONSIBLE,
        "{role} manages physical protection for {control}",
    ),
    (
        RoleArchetype.LEGAL,
        lambda c: "Policy" in c.domain,
        Responsibility.CONSULTED,
        "{role} is consulted on policy implications of {control}",
    ),
]

SKILL_JUSTIFICATIONS: dict[Responsibility, str] = {
    Responsibility.RESPONSIBLE: "{role} has the skills to implement {control} ({match}% skill match)",
    Responsibility.CONSULTED: "{role} is consulted on {control} based on partial skill overlap ({match}%)",
    Responsibility.INFORMED: "{role} is kept informed of {control} progress ({match}% skill match)",
    Responsibility.NONE: "{role} has no direct involvement in {control}",
}


class RACIEngine:
    """
    Assigns RACI letters to role/control pairs.

    Example:
        engine = RACIEngine()
        controls = engine.profiles(get_default_catalog(), assessment)
        matrix = engine.build_matrix(roles, controls)
        summary = summarize_matrix(roles, controls, matrix)
    """

    def __init__(self, estimator: Estimator | None = None) -> None:
        self.estimator = estimator or Estimator()

    def control_profile(
        self,
        control: Control,
        status: ControlStatus = ControlStatus.NOT_IMPLEMENTED,
    ) -> RACIControl:
        """
        Build the engine view of a catalog control.

        Args:
            control: Catalog control.
            status: Assessed status. Carried through for reporting only;
                the catalog priority is used as-is.
        """
        return RACIControl(
            id=control.id,
            title=control.text,
            domain=control.domain,
            priority=control.priority,
            complexity=self.estimator.complexity_of(control),
            required_skills=tuple(required_skills_for(control)),
            status=status,
        )

    def profiles(
        self,
        catalog: Catalog,
        assessment: AssessmentData | None = None,
    ) -> list[RACIControl]:
        """
        Profiles for every catalog control in traversal order.

        Without an assessment every control is reported as not implemented.
        """
        profiles = []
        for control in catalog.controls():
            score = assessment.score_for(control.id) if assessment is not None else None
            profiles.append(self.control_profile(control, classify(score)))
        return profiles

    def assign(self, role: Role, control: RACIControl) -> Responsibility:
        """
        Assign a RACI letter to a role for a control.

        Args:
            role: Role to assign.
            control: Control profile.

        Returns:
            The responsibility letter. NONE means no involvement.
        """
        return self._evaluate(role, control)[0]

    def _evaluate(self, role: Role, control: RACIControl) -> tuple[Responsibility, str]:
        archetype = archetype_of(role)
        for rule_archetype, predicate, letter, template in ASSIGNMENT_RULES:
            if archetype == rule_archetype and predicate(control):
                return letter, template.format(
                    role=role.name, control=control.id, domain=control.domain
                )

        match = skill_match(list(control.required_skills), role.skills)
        letter = Responsibility.NONE
        for threshold, candidate in SKILL_MATCH_THRESHOLDS:
            if match >= threshold:
                letter = candidate
                break
        justification = SKILL_JUSTIFICATIONS[letter].format(
            role=role.name, control=control.id, match=round(match * 100)
        )
        return letter, justification

    def entry_effort(self, responsibility: Responsibility, control: RACIControl) -> Effort:
        """Effort a role spends on a control given its letter."""
        if responsibility == Responsibility.RESPONSIBLE:
            return control.complexity
        if responsibility == Responsibility.ACCOUNTABLE:
            return Effort.HIGH if control.priority == Priority.CRITICAL else Effort.MEDIUM
        return Effort.LOW

    def entry(self, role: Role, control: RACIControl) -> RACIEntry:
        """Build the full matrix cell for a role/control pair."""
        responsibility, justification = self._evaluate(role, control)
        effort = self.entry_effort(responsibility, control)
        logger.debug(
            "RACI %s x %s -> %r (%s)",
            role.id,
            control.id,
            responsibility.value,
            justification,
        )
        return RACIEntry(
            role_id=role.id,
            control_id=control.id,
            responsibility=responsibility,
            justification=justification,
            effort=effort,
            timeline_days=BASE_DURATION_DAYS[effort],
        )

    def build_matrix(
        self,
        roles: list[Role],
        controls: list[RACIControl],
    ) -> list[list[RACIEntry]]:
        """
        Build the role x control matrix.

        Returns:
            One row per role in role order, each with one entry per
            control in the given order.
        """
        return [[self.entry(role, control) for control in controls] for role in roles]


def _workload_for(
    role: Role,
    row: list[RACIEntry],
    controls: list[RACIControl],
) -> RoleWorkload:
    responsible = [
        (entry, control)
        for entry, control in zip(row, controls, strict=True)
        if entry.responsibility == Responsibility.RESPONSIBLE
    ]
    total = len(responsible)
    critical = sum(1 for _, c in responsible if c.priority == Priority.CRITICAL)
    high_effort = sum(1 for e, _ in responsible if e.effort == Effort.HIGH)
    medium_effort = sum(1 for e, _ in responsible if e.effort == Effort.MEDIUM)

    if high_effort >= 3:
        effort = Effort.HIGH
    elif high_effort >= 1 or medium_effort >= 5:
        effort = Effort.MEDIUM
    else:
        effort = Effort.LOW

    recommendations = []
    if total > 10:
        recommendations.append(
            f"Consider distributing responsibilities: {role.name} is responsible "
            f"for {total} controls"
        )
    if critical > 3:
        recommendations.append(
            f"Ensure {role.name} has capacity for {critical} critical-priority controls"
        )
    if role.level == RoleLevel.OPERATIONAL and total > 5:
        recommendations.append(f"Provide additional operational support for {role.name}")
    if role.level == RoleLevel.TECHNICAL and total > 8:
        recommendations.append(f"Consider additional technical staffing for {role.name}")

    return RoleWorkload(
        role_id=role.id,
        role_name=role.name,
        total_responsibilities=total,
        high_priority_responsibilities=critical,
        estimated_effort=effort,
        recommendations=recommendations,
    )


def summarize_matrix(
    roles: list[Role],
    controls: list[RACIControl],
    matrix: list[list[RACIEntry]],
) -> RACISummary:
    """
    Aggregate a RACI matrix.

    All counts are taken by scanning the full matrix.

    Args:
        roles: Matrix rows.
        controls: Matrix columns.
        matrix: Entries, matrix[i][j] for roles[i] and controls[j].

    Returns:
        RACISummary.
    """
    letters = [
        Responsibility.RESPONSIBLE,
        Responsibility.ACCOUNTABLE,
        Responsibility.CONSULTED,
        Responsibility.INFORMED,
    ]
    totals = {letter: 0 for letter in letters}
    role_counts: dict[str, dict[str, int]] = {}
    role_distribution: dict[str, int] = {}
    workload = []

    for role, row in zip(roles, matrix, strict=True):
        counts = {letter.value: 0 for letter in letters}
        for entry in row:
            if entry.responsibility != Responsibility.NONE:
                counts[entry.responsibility.value] += 1
                totals[entry.responsibility] += 1
        role_counts[role.id] = counts
        role_distribution[role.name] = (
            role_distribution.get(role.name, 0) + counts[Responsibility.RESPONSIBLE.value]
        )
        workload.append(_workload_for(role, row, controls))

    return RACISummary(
        total_roles=len(roles),
        total_controls=len(controls),
        responsible_count=totals[Responsibility.RESPONSIBLE],
        accountable_count=totals[Responsibility.ACCOUNTABLE],
        consulted_count=totals[Responsibility.CONSULTED],
        informed_count=totals[Responsibility.INFORMED],
        total_assignments=sum(totals.values()),
        role_distribution=role_distribution,
        role_counts=role_counts,
        workload_analysis=workload,
    )
