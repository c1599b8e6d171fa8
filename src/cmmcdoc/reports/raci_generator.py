"""
RACI matrix generation.

Builds a role x control responsibility matrix for an organization. Rows
follow the role order (defaults first when merged in), columns follow
catalog traversal order.

Legend:
    - R (Responsible): performs the work
    - A (Accountable): owns the outcome and approves
    - C (Consulted): provides input
    - I (Informed): kept up to date
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from cmmcdoc.analysis.raci_engine import (
    MergePrecedence,
    RACIControl,
    RACIEngine,
    RACIEntry,
    RACISummary,
    Responsibility,
    merge_roles,
    summarize_matrix,
)
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo, Role
from cmmcdoc.catalog.cmmc_controls import Catalog, get_default_catalog
from cmmcdoc.reports.document_exporter import format_csv

logger = logging.getLogger(__name__)

LEGEND: list[tuple[Responsibility, str, str]] = [
    (Responsibility.RESPONSIBLE, "Responsible", "Performs the work to implement the control"),
    (Responsibility.ACCOUNTABLE, "Accountable", "Owns the outcome and approves the work"),
    (Responsibility.CONSULTED, "Consulted", "Provides expertise and input"),
    (Responsibility.INFORMED, "Informed", "Kept up to date on progress"),
]


@dataclass
class RACIOptions:
    """
    Options for RACI generation.

    Attributes:
        include_default_roles: Merge the built-in role set with the
            organization's roles.
        merge_precedence: Which side wins on role id collisions.
    """

    include_default_roles: bool = False
    merge_precedence: MergePrecedence = MergePrecedence.DEFAULTS


@dataclass
class RACIDocument:
    """
    A generated RACI matrix.

    Attributes:
        id: Document identifier.
        title: Document title.
        organization: Organization name.
        generated_date: Generation time.
        version: Document version.
        roles: Matrix rows.
        controls: Matrix columns.
        matrix: matrix[i][j] is the entry for roles[i] and controls[j].
        summary: Aggregate computed from the matrix at generation time.
    """

    id: str
    title: str
    organization: str
    generated_date: datetime
    summary: RACISummary
    version: str = "1.0"
    roles: list[Role] = field(default_factory=list)
    controls: list[RACIControl] = field(default_factory=list)
    matrix: list[list[RACIEntry]] = field(default_factory=list)

    doc_type = "RACI"

    @property
    def system_name(self) -> str:
        return self.organization

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "organization": self.organization,
            "generated_date": self.generated_date.isoformat(),
            "version": self.version,
            "roles": [r.to_dict() for r in self.roles],
            "controls": [c.to_dict() for c in self.controls],
            "matrix": [[e.to_dict() for e in row] for row in self.matrix],
            "summary": self.summary.to_dict(),
        }


class RACIGenerator:
    """
    Generator for RACI matrices.

    Example:
        generator = RACIGenerator()
        raci = generator.generate(org_info, assessment, RACIOptions(include_default_roles=True))
        for workload in raci.summary.workload_analysis:
            print(workload.role_name, workload.total_responsibilities)
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        engine: RACIEngine | None = None,
        date_format: str = "%B %d, %Y",
    ) -> None:
        self.catalog = catalog or get_default_catalog()
        self.engine = engine or RACIEngine()
        self.date_format = date_format

    def generate(
        self,
        org_info: OrganizationInfo,
        assessment: AssessmentData | None = None,
        options: RACIOptions | None = None,
        now: datetime | None = None,
    ) -> RACIDocument:
        """
        Generate a RACI matrix.

        An organization without roles (and without default roles merged
        in) yields a matrix with zero rows.

        Args:
            org_info: Organization name and roles.
            assessment: Optional assessment. Sets each control's reported status;
                control priorities come from the catalog unchanged.
            options: Generation options.
            now: Generation time. Defaults to current UTC time.

        Returns:
            RACIDocument with roles, controls, matrix and summary.
        """
        options = options or RACIOptions()
        if now is None:
            now = datetime.now(UTC)

        roles = list(org_info.roles)
        if options.include_default_roles:
            roles = merge_roles(roles, precedence=options.merge_precedence)

        controls = self.engine.profiles(self.catalog, assessment)
        matrix = self.engine.build_matrix(roles, controls)
        summary = summarize_matrix(roles, controls, matrix)

        document = RACIDocument(
            id=f"raci-{now.strftime('%Y%m%d%H%M%S')}",
            title=f"RACI Matrix - {org_info.name or '[Company Name]'}",
            organization=org_info.name,
            generated_date=now,
            summary=summary,
            roles=roles,
            controls=controls,
            matrix=matrix,
        )

        logger.info(
            "RACI generated: %d roles x %d controls, %d assignments for %s",
            summary.total_roles,
            summary.total_controls,
            summary.total_assignments,
            org_info.name,
        )
        return document

    def to_markdown(self, document: RACIDocument, include_matrix: bool = True) -> str:
        """
        Render a RACI document as markdown.

        Args:
            document: Generated RACI document.
            include_matrix: Include the role x control table. The HTML
                export renders the grid separately and turns this off.
        """
        summary = document.summary
        lines = [f"# {document.title}", ""]
        lines.append(f"**Organization:** {document.organization}")
        lines.append(f"**Generated:** {document.generated_date.strftime(self.date_format)}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Roles:** {summary.total_roles}")
        lines.append(f"- **Controls:** {summary.total_controls}")
        lines.append(f"- **Responsible:** {summary.responsible_count}")
        lines.append(f"- **Accountable:** {summary.accountable_count}")
        lines.append(f"- **Consulted:** {summary.consulted_count}")
        lines.append(f"- **Informed:** {summary.informed_count}")
        lines.append(f"- **Total Assignments:** {summary.total_assignments}")
        lines.append("")

        if include_matrix and document.roles:
            lines.append("## Responsibility Matrix")
            lines.append("")
            header = ["Role"] + [c.id.upper() for c in document.controls]
            lines.append("| " + " | ".join(header) + " |")
            lines.append("|" + "|".join("---" for _ in header) + "|")
            for role, row in zip(document.roles, document.matrix, strict=True):
                cells = [role.name] + [e.responsibility.value or "-" for e in row]
                lines.append("| " + " | ".join(cells) + " |")
            lines.append("")

            lines.append("## Legend")
            lines.append("")
            for letter, name, description in LEGEND:
                lines.append(f"- **{letter.value}** ({name}): {description}")
            lines.append("")

        if summary.workload_analysis:
            lines.append("## Workload Analysis")
            lines.append("")
            for workload in summary.workload_analysis:
                lines.append(f"### {workload.role_name}")
                lines.append("")
                lines.append(f"- **Responsibilities:** {workload.total_responsibilities}")
                lines.append(
                    f"- **Critical Priority:** {workload.high_priority_responsibilities}"
                )
                lines.append(f"- **Estimated Effort:** {workload.estimated_effort.value}")
                for recommendation in workload.recommendations:
                    lines.append(f"- {recommendation}")
                lines.append("")

        return "\n".join(lines)

    def grid_html(self, document: RACIDocument) -> str:
        """HTML grid table of the matrix followed by the legend."""
        header = "".join(
            f'<th title="{html.escape(c.title)}">{html.escape(c.id.upper())}</th>'
            for c in document.controls
        )
        rows = []
        for role, row in zip(document.roles, document.matrix, strict=True):
            cells = []
            for entry in row:
                letter = entry.responsibility.value
                css = f' class="raci-{letter.lower()}"' if letter else ""
                cells.append(
                    f'<td{css} title="{html.escape(entry.justification)}">{letter}</td>'
                )
            rows.append(f"<tr><th>{html.escape(role.name)}</th>{''.join(cells)}</tr>")

        legend = "\n".join(
            f'<li><span class="raci-{letter.value.lower()}">{letter.value}</span> '
            f"<strong>{name}</strong>: {description}</li>"
            for letter, name, description in LEGEND
        )
        return (
            '<h2>Responsibility Matrix</h2>\n'
            '<table class="raci-grid">\n'
            f"<tr><th>Role</th>{header}</tr>\n"
            + "\n".join(rows)
            + "\n</table>\n"
            '<div class="raci-legend">\n<h3>Legend</h3>\n<ul>\n'
            f"{legend}\n</ul>\n</div>\n"
        )

    def to_csv(self, document: RACIDocument) -> str:
        """Role rows x control columns; empty cells for no involvement."""
        headers = ["Role ID", "Role"] + [c.id for c in document.controls]
        rows = [
            [role.id, role.name] + [e.responsibility.value for e in row]
            for role, row in zip(document.roles, document.matrix, strict=True)
        ]
        return format_csv(headers, rows)
