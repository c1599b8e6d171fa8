"""
Tests for the analysis module (milestone_planner, raci_engine).

Uses Python's unittest module.
Tests milestone planning, estimates, RACI rule precedence, skill matching
and matrix summaries.
"""

from __future__ import annotations

import unittest
from datetime import UTC, datetime, timedelta

from cmmcdoc.analysis.milestone_planner import (
    ActionStatus,
    MilestonePlanner,
    MilestoneStatus,
    RiskRating,
    summarize_milestones,
)
from cmmcdoc.analysis.raci_engine import (
    DEFAULT_ROLES,
    MergePrecedence,
    RACIControl,
    RACIEngine,
    Responsibility,
    RoleArchetype,
    archetype_of,
    default_roles,
    merge_roles,
    required_skills_for,
    skill_match,
    skills_overlap,
    summarize_matrix,
)
from cmmcdoc.assessment.estimator import Effort
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo, Role, RoleLevel
from cmmcdoc.assessment.status import ControlStatus
from cmmcdoc.catalog.cmmc_controls import (
    Catalog,
    Category,
    Control,
    Domain,
    Priority,
    get_default_catalog,
)

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def single_control_catalog(
    domain: str = "Access Control",
    priority: Priority = Priority.HIGH,
    example_count: int | None = None,
) -> Catalog:
    """Create a one-control catalog for testing."""
    control = Control(
        id="AC.1.001",
        text="Limit information system access to authorized users",
        guidance="Maintain a list of authorized users.",
        priority=priority,
        domain=domain,
        example_count=example_count,
    )
    return Catalog(
        id="test",
        name="Test Catalog",
        domains=[
            Domain(
                id="test-domain",
                name=domain,
                categories=[Category(id="test-category", name=domain, controls=[control])],
            )
        ],
    )


def all_scores(score: int) -> AssessmentData:
    """Assessment answering every built-in control with the same score."""
    return AssessmentData(
        responses={c.id: score for c in get_default_catalog().controls()}
    )


class TestMilestonePlanner(unittest.TestCase):
    """Tests for MilestonePlanner."""

    def setUp(self) -> None:
        self.planner = MilestonePlanner()
        self.catalog = get_default_catalog()
        self.org = OrganizationInfo(name="Acme Corp", system_name="Payroll")

    def test_single_partial_control(self) -> None:
        """Test a partially implemented high-priority control."""
        milestones = self.planner.plan(
            AssessmentData(responses={"AC.1.001": 1}),
            single_control_catalog(),
            self.org,
            now=NOW,
        )

        self.assertEqual(len(milestones), 1)
        milestone = milestones[0]
        self.assertEqual(milestone.id, "milestone-1")
        self.assertEqual(milestone.current_status, ControlStatus.PARTIALLY_IMPLEMENTED)
        self.assertEqual(milestone.target_status, ControlStatus.IMPLEMENTED)
        self.assertEqual(milestone.priority, Priority.HIGH)
        self.assertEqual(milestone.effort, Effort.MEDIUM)
        self.assertEqual(milestone.estimated_duration, 14)
        self.assertEqual(milestone.estimated_cost, 16800)
        self.assertEqual(milestone.status, MilestoneStatus.PLANNED)
        self.assertEqual(milestone.start_date, NOW)
        self.assertEqual(milestone.target_date, NOW + timedelta(days=14))

    def test_empty_assessment_plans_every_control(self) -> None:
        """Test that unanswered controls all get milestones."""
        milestones = self.planner.plan(AssessmentData(), self.catalog, self.org, now=NOW)

        self.assertEqual(len(milestones), 17)
        self.assertEqual(
            [m.id for m in milestones], [f"milestone-{n}" for n in range(1, 18)]
        )
        self.assertEqual(
            [m.control_id for m in milestones], [c.id for c in self.catalog.controls()]
        )

    def test_implemented_controls_skipped(self) -> None:
        """Test that fully implemented controls produce no milestones."""
        milestones = self.planner.plan(all_scores(3), self.catalog, self.org, now=NOW)
        self.assertEqual(milestones, [])

    def test_numbering_skips_implemented(self) -> None:
        """Test that milestone numbers stay contiguous."""
        assessment = AssessmentData(responses={"ac.l1-3.1.1": 3})
        milestones = self.planner.plan(assessment, self.catalog, self.org, now=NOW)
        self.assertEqual(milestones[0].id, "milestone-1")
        self.assertEqual(milestones[0].control_id, "ac.l1-3.1.2")

    def test_not_implemented_critical_actions_and_risks(self) -> None:
        """Test the schedule of an unimplemented critical control."""
        milestones = self.planner.plan(AssessmentData(), self.catalog, self.org, now=NOW)
        milestone = milestones[0]

        self.assertEqual(milestone.priority, Priority.CRITICAL)
        self.assertEqual(milestone.effort, Effort.HIGH)
        self.assertEqual(milestone.estimated_duration, 24)
        self.assertEqual(milestone.estimated_cost, 43200)

        self.assertEqual(len(milestone.actions), 4)
        self.assertEqual([a.due_offset_days for a in milestone.actions], [2, 5, 16, 21])
        self.assertEqual(milestone.actions[1].assigned_to, "Security Architect")
        self.assertEqual(milestone.actions[3].due_date, NOW + timedelta(days=21))
        self.assertEqual(milestone.actions[0].id, "milestone-1-action-1")
        self.assertTrue(all(a.status == ActionStatus.PENDING for a in milestone.actions))

        self.assertEqual(len(milestone.risks), 3)
        self.assertEqual(milestone.risks[0].impact, RiskRating.HIGH)
        self.assertEqual(milestone.risks[2].description, "Compliance deadline pressure")

    def test_partial_actions_and_risks(self) -> None:
        """Test that partial controls skip the design action and deadline risk."""
        milestones = self.planner.plan(all_scores(2), self.catalog, self.org, now=NOW)
        milestone = milestones[0]

        self.assertEqual(milestone.priority, Priority.HIGH)
        self.assertEqual(len(milestone.actions), 3)
        self.assertEqual([a.due_offset_days for a in milestone.actions], [2, 9, 12])
        self.assertEqual(len(milestone.risks), 2)
        self.assertEqual(milestone.risks[0].impact, RiskRating.MEDIUM)

    def test_responsible_party(self) -> None:
        """Test owner selection by domain and fallback."""
        self.assertEqual(
            MilestonePlanner.responsible_party("Physical Protection", []), "Facilities Team"
        )
        self.assertEqual(
            MilestonePlanner.responsible_party("Custom Domain", ["Compliance Team"]),
            "Compliance Team",
        )
        self.assertEqual(
            MilestonePlanner.responsible_party("Custom Domain", []), "IT Security Team"
        )

    def test_dependencies_and_resources(self) -> None:
        """Test domain dependencies and effort-based resources."""
        self.assertEqual(
            MilestonePlanner.dependencies_for("Access Control"),
            ["Identity Management System", "User Directory"],
        )
        self.assertEqual(MilestonePlanner.dependencies_for("Media Protection"), [])
        self.assertEqual(len(MilestonePlanner.resources_for(Effort.HIGH)), 6)
        self.assertEqual(len(MilestonePlanner.resources_for(Effort.LOW)), 3)

    def test_description(self) -> None:
        """Test the remediation statement."""
        milestones = self.planner.plan(
            AssessmentData(responses={"AC.1.001": 1}),
            single_control_catalog(),
            self.org,
            now=NOW,
        )
        self.assertIn("Currently partially implemented.", milestones[0].description)

    def test_milestone_to_dict(self) -> None:
        """Test milestone serialization."""
        milestones = self.planner.plan(AssessmentData(), self.catalog, self.org, now=NOW)
        data = milestones[0].to_dict()
        self.assertEqual(data["priority"], "critical")
        self.assertEqual(data["estimated_effort"], "high")
        self.assertEqual(data["current_status"], "not-implemented")
        self.assertEqual(data["start_date"], NOW.isoformat())


class TestSummarizeMilestones(unittest.TestCase):
    """Tests for milestone summaries."""

    def test_empty_assessment_summary(self) -> None:
        """Test summary counts for an unanswered assessment."""
        milestones = MilestonePlanner().plan(
            AssessmentData(), get_default_catalog(), OrganizationInfo(), now=NOW
        )
        summary = summarize_milestones(milestones)

        self.assertEqual(summary.total_milestones, 17)
        self.assertEqual(summary.critical_milestones, 7)
        self.assertEqual(summary.high_priority_milestones, 0)
        self.assertEqual(summary.estimated_total_cost, 950400)
        self.assertEqual(summary.estimated_total_duration, 36)
        self.assertEqual(summary.planned_milestones, 17)
        self.assertEqual(summary.completed_milestones, 0)
        self.assertEqual(summary.overall_progress, 0.0)

    def test_no_milestones(self) -> None:
        """Test that an empty list gives zeroes."""
        summary = summarize_milestones([])
        self.assertEqual(summary.total_milestones, 0)
        self.assertEqual(summary.estimated_total_duration, 0)
        self.assertEqual(summary.overall_progress, 0.0)

    def test_progress_counts_completed(self) -> None:
        """Test progress after marking milestones completed."""
        milestones = MilestonePlanner().plan(
            AssessmentData(), get_default_catalog(), OrganizationInfo(), now=NOW
        )[:4]
        milestones[0].status = MilestoneStatus.COMPLETED
        summary = summarize_milestones(milestones)
        self.assertEqual(summary.completed_milestones, 1)
        self.assertEqual(summary.overall_progress, 25.0)
        self.assertEqual(summary.to_dict()["overall_progress"], 25.0)


class TestRoleHelpers(unittest.TestCase):
    """Tests for role archetypes, skills and merging."""

    def test_default_roles(self) -> None:
        """Test the built-in role set."""
        roles = default_roles()
        self.assertEqual(len(roles), 8)
        self.assertEqual(roles[0].id, "ciso")
        # Copies are independent of the module constant
        roles[0].skills.append("Extra")
        self.assertNotIn("Extra", DEFAULT_ROLES[0].skills)

    def test_archetype_by_id_and_name(self) -> None:
        """Test archetype recognition."""
        self.assertEqual(archetype_of(Role(id="ciso", name="Anything")), RoleArchetype.CISO)
        self.assertEqual(
            archetype_of(Role(id="sec-lead", name="Chief Information Security Officer")),
            RoleArchetype.CISO,
        )
        self.assertEqual(
            archetype_of(Role(id="x", name="Facility Coordinator")), RoleArchetype.FACILITIES
        )
        self.assertEqual(
            archetype_of(Role(id="x", name="Network Engineer")), RoleArchetype.OTHER
        )

    def test_skill_match(self) -> None:
        """Test skill overlap fraction."""
        self.assertEqual(skill_match([], ["SIEM"]), 0.0)
        self.assertEqual(skill_match(["SIEM", "Logging"], ["siem tools"]), 0.5)
        self.assertEqual(skill_match(["SIEM", "Logging"], ["Logging", "SIEM"]), 1.0)
        self.assertEqual(skill_match(["SIEM"], []), 0.0)

    def test_broad_skill_does_not_cover_specific_skill(self) -> None:
        """Test that only the offered skill may contain the required one."""
        self.assertTrue(skills_overlap("Identity Management", "identity management (IAM)"))
        self.assertFalse(skills_overlap("Identity Management", "Management"))
        self.assertFalse(skills_overlap("Facilities Management", "IT"))
        self.assertEqual(
            skill_match(
                ["Identity Management", "Project Management", "Facilities Management"],
                ["Management", "IT"],
            ),
            0.0,
        )

    def test_required_skills(self) -> None:
        """Test skills derived from domain and example count."""
        control = get_default_catalog().get_control("ac.l1-3.1.1")
        self.assertEqual(
            required_skills_for(control),
            ["Identity Management", "Project Management", "Technical Implementation"],
        )
        small = single_control_catalog(domain="Physical Protection").controls()[0]
        self.assertEqual(required_skills_for(small), ["Facilities Management"])

    def test_merge_appends_new_roles(self) -> None:
        """Test that new caller roles follow the defaults."""
        merged = merge_roles([Role(id="dev-lead", name="Development Lead")])
        self.assertEqual(len(merged), 9)
        self.assertEqual(merged[-1].id, "dev-lead")

    def test_merge_defaults_win(self) -> None:
        """Test that colliding caller roles are dropped by default."""
        with self.assertLogs("cmmcdoc.analysis.raci_engine", level="WARNING"):
            merged = merge_roles([Role(id="ciso", name="Our CISO")])
        self.assertEqual(len(merged), 8)
        self.assertEqual(merged[0].name, "CISO")

    def test_merge_caller_wins(self) -> None:
        """Test caller precedence replaces the default in place."""
        merged = merge_roles(
            [Role(id="ciso", name="Our CISO")], precedence=MergePrecedence.CALLER
        )
        self.assertEqual(len(merged), 8)
        self.assertEqual(merged[0].name, "Our CISO")


class TestRACIEngine(unittest.TestCase):
    """Tests for RACI assignment."""

    def setUp(self) -> None:
        self.engine = RACIEngine()
        self.catalog = get_default_catalog()
        self.roles = {r.id: r for r in default_roles()}
        self.controls = {c.id: c for c in self.engine.profiles(self.catalog)}

    def assign(self, role_id: str, control_id: str) -> Responsibility:
        return self.engine.assign(self.roles[role_id], self.controls[control_id])

    def critical_access_control(self) -> RACIControl:
        return self.engine.profiles(
            single_control_catalog(priority=Priority.CRITICAL, example_count=5)
        )[0]

    def test_profiles_without_assessment(self) -> None:
        """Test that controls keep their catalog priority and report not implemented."""
        profile = self.controls["ac.l1-3.1.1"]
        self.assertEqual(profile.status, ControlStatus.NOT_IMPLEMENTED)
        self.assertEqual(profile.priority, Priority.HIGH)
        self.assertEqual(profile.complexity, Effort.MEDIUM)
        self.assertEqual(self.controls["ac.l1-3.1.4"].priority, Priority.MEDIUM)

    def test_critical_control_assignments(self) -> None:
        """Test rule and skill assignments on a critical access control."""
        control = self.critical_access_control()
        expected = {
            "ciso": Responsibility.ACCOUNTABLE,
            "it-security": Responsibility.RESPONSIBLE,
            "security-architect": Responsibility.CONSULTED,
            "it-operations": Responsibility.INFORMED,
            "compliance-officer": Responsibility.NONE,
        }
        for role_id, letter in expected.items():
            with self.subTest(role=role_id):
                self.assertEqual(self.engine.assign(self.roles[role_id], control), letter)

    def test_ciso_not_accountable_for_high_control(self) -> None:
        """Test that the CISO rule only fires on critical controls."""
        self.assertEqual(self.assign("ciso", "ac.l1-3.1.1"), Responsibility.NONE)
        self.assertEqual(self.assign("ciso", "ac.l1-3.1.4"), Responsibility.NONE)

    def test_built_in_catalog_has_no_ciso_accountability(self) -> None:
        """Test that unmet high controls are not escalated to critical."""
        ciso = self.roles["ciso"]
        letters = [self.engine.assign(ciso, c) for c in self.controls.values()]
        self.assertNotIn(Responsibility.ACCOUNTABLE, letters)

    def test_facilities_physical_protection(self) -> None:
        """Test facilities ownership of physical controls."""
        self.assertEqual(
            self.assign("facilities-manager", "pe.l1-3.10.1"), Responsibility.RESPONSIBLE
        )
        self.assertEqual(self.assign("it-security", "pe.l1-3.10.1"), Responsibility.NONE)

    def test_assessment_sets_status_not_priority(self) -> None:
        """Test that assessed status leaves the catalog priority alone."""
        unmet = self.engine.profiles(self.catalog, all_scores(0))[0]
        self.assertEqual(unmet.status, ControlStatus.NOT_IMPLEMENTED)
        self.assertEqual(unmet.priority, Priority.HIGH)

        met = self.engine.profiles(self.catalog, all_scores(3))[0]
        self.assertEqual(met.status, ControlStatus.IMPLEMENTED)
        self.assertEqual(met.priority, Priority.HIGH)

    def test_compliance_and_legal_rules(self) -> None:
        """Test domain-keyword rules for compliance and legal roles."""
        assessment_control = self.engine.profiles(
            single_control_catalog(domain="Security Assessment")
        )[0]
        self.assertEqual(
            self.engine.assign(self.roles["compliance-officer"], assessment_control),
            Responsibility.RESPONSIBLE,
        )
        policy_control = self.engine.profiles(
            single_control_catalog(domain="Policy Management")
        )[0]
        self.assertEqual(
            self.engine.assign(self.roles["legal-counsel"], policy_control),
            Responsibility.CONSULTED,
        )

    def test_security_architect_high_complexity(self) -> None:
        """Test the architect rule on a high-complexity control."""
        control = self.engine.profiles(
            single_control_catalog(domain="Media Protection", example_count=8)
        )[0]
        self.assertEqual(control.complexity, Effort.HIGH)
        self.assertEqual(
            self.engine.assign(self.roles["security-architect"], control),
            Responsibility.RESPONSIBLE,
        )

    def test_entry_effort_and_justification(self) -> None:
        """Test matrix cell details."""
        control = self.critical_access_control()
        entry = self.engine.entry(self.roles["ciso"], control)
        self.assertEqual(entry.responsibility, Responsibility.ACCOUNTABLE)
        self.assertEqual(entry.effort, Effort.HIGH)
        self.assertEqual(entry.timeline_days, 30)
        self.assertIn("CISO", entry.justification)
        self.assertEqual(entry.to_dict()["timeline"], "30 days")

        entry = self.engine.entry(self.roles["it-security"], control)
        self.assertEqual(entry.effort, Effort.MEDIUM)
        self.assertEqual(entry.timeline_days, 14)

    def test_matrix_shape(self) -> None:
        """Test one row per role and one entry per control."""
        roles = default_roles()
        controls = self.engine.profiles(self.catalog)
        matrix = self.engine.build_matrix(roles, controls)

        self.assertEqual(len(matrix), 8)
        for role, row in zip(roles, matrix, strict=True):
            self.assertEqual(len(row), 17)
            self.assertTrue(all(e.role_id == role.id for e in row))
            self.assertEqual([e.control_id for e in row], [c.id for c in controls])

    def test_empty_roles(self) -> None:
        """Test that no roles gives an empty matrix."""
        controls = self.engine.profiles(self.catalog)
        matrix = self.engine.build_matrix([], controls)
        summary = summarize_matrix([], controls, matrix)
        self.assertEqual(matrix, [])
        self.assertEqual(summary.total_roles, 0)
        self.assertEqual(summary.total_controls, 17)
        self.assertEqual(summary.total_assignments, 0)


class TestSummarizeMatrix(unittest.TestCase):
    """Tests for RACI matrix summaries."""

    def setUp(self) -> None:
        engine = RACIEngine()
        self.roles = default_roles()
        self.controls = engine.profiles(get_default_catalog())
        self.matrix = engine.build_matrix(self.roles, self.controls)
        self.summary = summarize_matrix(self.roles, self.controls, self.matrix)

    def test_letter_counts(self) -> None:
        """Test counts over the default role matrix."""
        self.assertEqual(self.summary.total_roles, 8)
        self.assertEqual(self.summary.total_controls, 17)
        self.assertEqual(self.summary.responsible_count, 16)
        self.assertEqual(self.summary.accountable_count, 0)
        self.assertEqual(self.summary.consulted_count, 24)
        self.assertEqual(self.summary.informed_count, 10)
        self.assertEqual(self.summary.total_assignments, 50)

    def test_counts_match_matrix(self) -> None:
        """Test that summary counts agree with a scan of the matrix."""
        responsible = sum(
            1
            for row in self.matrix
            for entry in row
            if entry.responsibility == Responsibility.RESPONSIBLE
        )
        self.assertEqual(self.summary.responsible_count, responsible)
        self.assertEqual(
            sum(counts["R"] for counts in self.summary.role_counts.values()), responsible
        )

    def test_role_distribution(self) -> None:
        """Test R counts per role name."""
        self.assertEqual(self.summary.role_distribution["IT Security Team"], 14)
        self.assertEqual(self.summary.role_distribution["Facilities Manager"], 2)
        self.assertEqual(self.summary.role_distribution["CISO"], 0)
        self.assertEqual(self.summary.role_counts["ciso"]["A"], 0)

    def test_workload_recommendations(self) -> None:
        """Test workload analysis for a heavily loaded role."""
        workload = {w.role_id: w for w in self.summary.workload_analysis}
        it_security = workload["it-security"]
        self.assertEqual(it_security.total_responsibilities, 14)
        self.assertEqual(it_security.high_priority_responsibilities, 0)
        self.assertEqual(it_security.estimated_effort, Effort.MEDIUM)
        self.assertEqual(len(it_security.recommendations), 2)

        facilities = workload["facilities-manager"]
        self.assertEqual(facilities.estimated_effort, Effort.LOW)
        self.assertEqual(facilities.recommendations, [])

    def test_operational_role_recommendation(self) -> None:
        """Test the operational support recommendation."""
        role = Role(
            id="facilities", name="Site Facilities", level=RoleLevel.OPERATIONAL
        )
        engine = RACIEngine()
        controls = [
            engine.control_profile(c)
            for c in single_control_catalog(domain="Physical Protection").controls()
        ] * 6
        matrix = engine.build_matrix([role], controls)
        summary = summarize_matrix([role], controls, matrix)
        self.assertEqual(summary.workload_analysis[0].total_responsibilities, 6)
        self.assertIn(
            "Provide additional operational support for Site Facilities",
            summary.workload_analysis[0].recommendations,
        )


if __name__ == "__main__":
    unittest.main()
