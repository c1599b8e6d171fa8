"""
Plan of Actions and Milestones (POAM) generation.

Creates one milestone per control that is not fully implemented, with
priority, effort, duration and cost estimates, remediation actions and
risks. The summary is computed once from the milestone list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from cmmcdoc.analysis.milestone_planner import (
    Milestone,
    MilestonePlanner,
    MilestoneSummary,
    summarize_milestones,
)
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo
from cmmcdoc.catalog.cmmc_controls import Catalog, get_default_catalog
from cmmcdoc.reports.document_exporter import format_csv

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Milestone ID",
    "Control ID",
    "Control Title",
    "Domain",
    "Priority",
    "Status",
    "Start Date",
    "Target Date",
    "Responsible Party",
    "Estimated Cost",
    "Estimated Duration",
]


@dataclass
class POAMDocument:
    """
    A generated Plan of Actions and Milestones.

    Attributes:
        id: Document identifier.
        title: "Plan of Actions and Milestones - <system name>".
        organization: Organization name.
        system_name: Assessed system.
        generated_date: Generation time, also the planning anchor.
        version: Document version.
        milestones: Milestones in catalog order.
        summary: Aggregate computed from milestones at generation time.
    """

    id: str
    title: str
    organization: str
    system_name: str
    generated_date: datetime
    summary: MilestoneSummary
    version: str = "1.0"
    milestones: list[Milestone] = field(default_factory=list)

    doc_type = "POAM"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "organization": self.organization,
            "system_name": self.system_name,
            "generated_date": self.generated_date.isoformat(),
            "version": self.version,
            "milestones": [m.to_dict() for m in self.milestones],
            "summary": self.summary.to_dict(),
        }


class POAMGenerator:
    """
    Generator for POAM documents.

    Example:
        generator = POAMGenerator()
        poam = generator.generate(assessment, org_info)
        print(poam.summary.total_milestones)
        csv_text = generator.to_csv(poam)
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        planner: MilestonePlanner | None = None,
        date_format: str = "%B %d, %Y",
    ) -> None:
        self.catalog = catalog or get_default_catalog()
        self.planner = planner or MilestonePlanner()
        self.date_format = date_format

    def generate(
        self,
        assessment: AssessmentData,
        org_info: OrganizationInfo,
        now: datetime | None = None,
    ) -> POAMDocument:
        """
        Generate a POAM.

        Args:
            assessment: Assessment responses.
            org_info: Organization and system metadata.
            now: Planning anchor. Defaults to current UTC time.

        Returns:
            POAMDocument with milestones and summary.
        """
        if now is None:
            now = datetime.now(UTC)

        milestones = self.planner.plan(assessment, self.catalog, org_info, now=now)
        summary = summarize_milestones(milestones)
        system_name = org_info.system_name or "[System Name]"

        document = POAMDocument(
            id=f"poam-{now.strftime('%Y%m%d%H%M%S')}",
            title=f"Plan of Actions and Milestones - {system_name}",
            organization=org_info.name,
            system_name=org_info.system_name,
            generated_date=now,
            summary=summary,
            milestones=milestones,
        )

        logger.info(
            "POAM generated: %d milestones for %s (estimated cost $%d)",
            summary.total_milestones,
            org_info.name or system_name,
            summary.estimated_total_cost,
        )
        return document

    def _date(self, value: datetime) -> str:
        return value.strftime(self.date_format)

    def to_markdown(self, document: POAMDocument) -> str:
        """
        Render a POAM as markdown.

        Args:
            document: Generated POAM.

        Returns:
            Markdown with a summary, a milestone overview table and one
            section per milestone.
        """
        summary = document.summary
        lines = [f"# {document.title}", ""]
        lines.append(f"**Organization:** {document.organization}")
        lines.append(f"**System:** {document.system_name}")
        lines.append(f"**Generated:** {self._date(document.generated_date)}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Total Milestones:** {summary.total_milestones}")
        lines.append(f"- **Critical Priority:** {summary.critical_milestones}")
        lines.append(f"- **High Priority:** {summary.high_priority_milestones}")
        lines.append(f"- **Estimated Total Cost:** ${summary.estimated_total_cost:,}")
        lines.append(f"- **Estimated Duration:** {summary.estimated_total_duration} days")
        lines.append(f"- **Overall Progress:** {summary.overall_progress:.1f}%")
        lines.append("")

        if not document.milestones:
            lines.append("All controls are fully implemented. No milestones are required.")
            lines.append("")
            return "\n".join(lines)

        lines.append("## Milestones")
        lines.append("")
        lines.append("| Milestone | Control | Priority | Target Date | Responsible Party |")
        lines.append("|-----------|---------|----------|-------------|-------------------|")
        for milestone in document.milestones:
            lines.append(
                f"| {milestone.id} | {milestone.control_id} | {milestone.priority.value} "
                f"| {self._date(milestone.target_date)} | {milestone.responsible_party} |"
            )
        lines.append("")

        for milestone in document.milestones:
            lines.append(f"### {milestone.id}: {milestone.control_id}")
            lines.append("")
            lines.append(milestone.description)
            lines.append("")
            lines.append(f"- **Domain:** {milestone.domain}")
            lines.append(f"- **Current Status:** {milestone.current_status.label}")
            lines.append(f"- **Priority:** {milestone.priority.value}")
            lines.append(f"- **Effort:** {milestone.effort.value}")
            lines.append(f"- **Estimated Cost:** ${milestone.estimated_cost:,}")
            lines.append(f"- **Estimated Duration:** {milestone.estimated_duration} days")
            lines.append(
                f"- **Schedule:** {self._date(milestone.start_date)} to "
                f"{self._date(milestone.target_date)}"
            )
            lines.append(f"- **Responsible Party:** {milestone.responsible_party}")
            lines.append("")

            lines.append("**Actions:**")
            lines.append("")
            for number, action in enumerate(milestone.actions, start=1):
                lines.append(
                    f"{number}. {action.description} ({action.assigned_to}, "
                    f"due {self._date(action.due_date)})"
                )
            lines.append("")

            lines.append("**Risks:**")
            lines.append("")
            for risk in milestone.risks:
                lines.append(
                    f"- {risk.description} (impact: {risk.impact.value}, "
                    f"probability: {risk.probability.value}). Mitigation: {risk.mitigation}"
                )
            lines.append("")

            if milestone.dependencies:
                lines.append(f"**Dependencies:** {', '.join(milestone.dependencies)}")
                lines.append("")

        return "\n".join(lines)

    def to_csv(self, document: POAMDocument) -> str:
        """One CSV row per milestone."""
        rows = [
            [
                m.id,
                m.control_id,
                m.control_title,
                m.domain,
                m.priority.value,
                m.status.value,
                m.start_date.date().isoformat(),
                m.target_date.date().isoformat(),
                m.responsible_party,
                m.estimated_cost,
                m.estimated_duration,
            ]
            for m in document.milestones
        ]
        return format_csv(CSV_HEADERS, rows)
