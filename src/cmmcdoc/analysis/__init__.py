"""
Analysis components for POAM milestone planning and RACI assignment.

Milestone Planning:
    The MilestonePlanner turns every control that is not fully implemented
    into a POAM milestone with an estimate, an owner, ordered actions and
    identified risks. summarize_milestones() aggregates the result.

RACI Assignment:
    The RACIEngine assigns R/A/C/I letters to every role/control pair
    using ordered archetype rules with a skill-overlap fallback.
    summarize_matrix() counts letters and analyzes per-role workload.

Example:
    from cmmcdoc.analysis import MilestonePlanner, RACIEngine, summarize_matrix

    milestones = MilestonePlanner().plan(assessment, catalog, org_info)

    engine = RACIEngine()
    controls = engine.profiles(catalog, assessment)
    matrix = engine.build_matrix(roles, controls)
    summary = summarize_matrix(roles, controls, matrix)
"""

from cmmcdoc.analysis.milestone_planner import (
    ActionStatus,
    Milestone,
    MilestoneAction,
    MilestonePlanner,
    MilestoneRisk,
    MilestoneStatus,
    MilestoneSummary,
    RiskRating,
    summarize_milestones,
)
from cmmcdoc.analysis.raci_engine import (
    DEFAULT_ROLES,
    MergePrecedence,
    RACIControl,
    RACIEngine,
    RACIEntry,
    RACISummary,
    Responsibility,
    RoleArchetype,
    RoleWorkload,
    archetype_of,
    default_roles,
    merge_roles,
    required_skills_for,
    skill_match,
    summarize_matrix,
)

__all__ = [
    # Milestone Planner
    "MilestonePlanner",
    "Milestone",
    "MilestoneAction",
    "MilestoneRisk",
    "MilestoneStatus",
    "MilestoneSummary",
    "ActionStatus",
    "RiskRating",
    "summarize_milestones",
    # RACI Engine
    "RACIEngine",
    "RACIControl",
    "RACIEntry",
    "RACISummary",
    "RoleWorkload",
    "Responsibility",
    "RoleArchetype",
    "MergePrecedence",
    "DEFAULT_ROLES",
    "default_roles",
    "merge_roles",
    "archetype_of",
    "required_skills_for",
    "skill_match",
    "summarize_matrix",
]
