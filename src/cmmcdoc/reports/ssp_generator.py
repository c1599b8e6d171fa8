"""
System Security Plan (SSP) generation.

Builds an SSP from an assessment: a summary of implementation status,
narrative sections, one entry per catalog control and appendices.
Section text is authored with {{placeholder}} tokens and resolved
against a context built from the organization and the assessment.

Sections:
    - Executive Summary (System Overview)
    - System Description (Purpose, Architecture)
    - Security Controls Implementation (one subsection per domain)
    - Risk Assessment (Threat Landscape, Risk Mitigation)
    - Incident Response (Response Procedures)

Risk Level (from compliance level = implemented / total x 100):
    - critical: < 25%
    - high: < 50%
    - medium: < 75%
    - low: otherwise
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo
from cmmcdoc.assessment.status import ControlStatus, classify
from cmmcdoc.catalog.cmmc_controls import Catalog, Domain, get_default_catalog
from cmmcdoc.rendering.placeholders import PlaceholderEngine, context_from_organization

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    """Overall risk level of a system."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# (upper bound on compliance percentage, risk level), checked in order
RISK_THRESHOLDS: list[tuple[float, RiskLevel]] = [
    (25.0, RiskLevel.CRITICAL),
    (50.0, RiskLevel.HIGH),
    (75.0, RiskLevel.MEDIUM),
]

GLOSSARY: dict[str, str] = {
    "CMMC": "Cybersecurity Maturity Model Certification",
    "CUI": "Controlled Unclassified Information",
    "FCI": "Federal Contract Information",
    "NIST": "National Institute of Standards and Technology",
    "POAM": "Plan of Actions and Milestones",
    "RACI": "Responsible, Accountable, Consulted, Informed",
    "SIEM": "Security Information and Event Management",
    "SSP": "System Security Plan",
}

CONTROL_NARRATIVES: dict[ControlStatus, str] = {
    ControlStatus.IMPLEMENTED: (
        "This control is fully implemented for {system}. {guidance}"
    ),
    ControlStatus.PARTIALLY_IMPLEMENTED: (
        "This control is partially implemented for {system}. Remaining work is "
        "tracked in the Plan of Actions and Milestones."
    ),
    ControlStatus.NOT_IMPLEMENTED: (
        "This control is not yet implemented for {system}. Implementation is "
        "planned in the Plan of Actions and Milestones."
    ),
}

# Section templates: (id, title, content, [(subsection id, title, content)])
SECTION_TEMPLATES: list[tuple[str, str, str, list[tuple[str, str, str]]]] = [
    (
        "executive_summary",
        "Executive Summary",
        "This System Security Plan documents the security controls for "
        "{{systemName}}, operated by {{companyName}}, against the {{framework}} "
        "requirements. As of {{currentDate}}, {{implementedControls}} of "
        "{{totalControls}} controls are fully implemented ({{complianceLevel}}) "
        "and the overall risk level is {{riskLevel}}.",
        [
            (
                "system_overview",
                "System Overview",
                "{{systemName}}: {{systemDescription}}",
            ),
        ],
    ),
    (
        "system_description",
        "System Description",
        "{{systemName}} processes, stores or transmits Federal Contract "
        "Information (FCI) on behalf of {{companyName}}.",
        [
            (
                "system_purpose",
                "System Purpose",
                "{{systemDescription}} The system supports the business operations "
                "of {{companyName}} and is in scope for {{framework}}.",
            ),
            (
                "system_architecture",
                "System Architecture",
                "The authorization boundary includes all components of "
                "{{systemName}} that handle FCI. Point of contact: "
                "{{companyContact}}, {{companyAddress}}.",
            ),
        ],
    ),
    (
        "security_controls",
        "Security Controls Implementation",
        "This section summarizes the implementation status of the "
        "{{framework}} controls by domain. {{partiallyImplementedControls}} "
        "controls are partially implemented and {{notImplementedControls}} are "
        "not implemented.",
        [],
    ),
    (
        "risk_assessment",
        "Risk Assessment",
        "The overall risk level for {{systemName}} is {{riskLevel}}, based on "
        "a compliance level of {{complianceLevel}}.",
        [
            (
                "threat_landscape",
                "Threat Landscape",
                "Organizations handling FCI face credential theft, phishing, "
                "malicious code and unauthorized physical access.",
            ),
            (
                "risk_mitigation",
                "Risk Mitigation",
                "{{notImplementedControls}} controls not implemented and "
                "{{partiallyImplementedControls}} partially implemented controls "
                "are remediated through the Plan of Actions and Milestones.",
            ),
        ],
    ),
    (
        "incident_response",
        "Incident Response",
        "{{companyName}} maintains an incident response capability for "
        "{{systemName}}.",
        [
            (
                "response_procedures",
                "Response Procedures",
                "Security incidents are detected, reported to {{companyContact}}, "
                "contained, eradicated and reviewed after closure.",
            ),
        ],
    ),
]


@dataclass
class SSPSection:
    """A document section with optional nested subsections."""

    id: str
    title: str
    content: str
    subsections: list[SSPSection] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "subsections": [s.to_dict() for s in self.subsections],
        }


@dataclass
class SSPControl:
    """
    Implementation entry for one catalog control.

    Attributes:
        id: Control identifier.
        title: Control requirement text.
        domain: Domain name.
        score: Assessment score, None if unanswered.
        status: Classified status.
        implementation: Narrative chosen by status.
        references: External references.
    """

    id: str
    title: str
    domain: str
    score: int | None
    status: ControlStatus
    implementation: str
    references: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "domain": self.domain,
            "score": self.score,
            "status": self.status.value,
            "implementation": self.implementation,
            "references": list(self.references),
        }


@dataclass
class SSPAppendix:
    """An appendix with markdown content."""

    id: str
    title: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "title": self.title, "content": self.content}


@dataclass
class SSPSummary:
    """
    Implementation status counts.

    Attributes:
        total_controls: Controls in the catalog.
        implemented_controls: Controls scored 3.
        partially_implemented_controls: Controls scored 1 or 2.
        not_implemented_controls: Controls scored 0 or unanswered.
        compliance_level: Implemented percentage (0 with no controls).
        risk_level: Risk level derived from compliance_level.
    """

    total_controls: int
    implemented_controls: int
    partially_implemented_controls: int
    not_implemented_controls: int
    compliance_level: float
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_controls": self.total_controls,
            "implemented_controls": self.implemented_controls,
            "partially_implemented_controls": self.partially_implemented_controls,
            "not_implemented_controls": self.not_implemented_controls,
            "compliance_level": round(self.compliance_level, 2),
            "risk_level": self.risk_level.value,
        }


@dataclass
class SSPDocument:
    """A generated System Security Plan."""

    id: str
    title: str
    version: str
    organization: str
    system_name: str
    generated_date: datetime
    summary: SSPSummary
    sections: list[SSPSection] = field(default_factory=list)
    controls: list[SSPControl] = field(default_factory=list)
    appendices: list[SSPAppendix] = field(default_factory=list)

    doc_type = "SSP"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "version": self.version,
            "organization": self.organization,
            "system_name": self.system_name,
            "generated_date": self.generated_date.isoformat(),
            "summary": self.summary.to_dict(),
            "sections": [s.to_dict() for s in self.sections],
            "controls": [c.to_dict() for c in self.controls],
            "appendices": [a.to_dict() for a in self.appendices],
        }


def risk_level_for(compliance_level: float) -> RiskLevel:
    """Map a compliance percentage to a risk level."""
    for bound, level in RISK_THRESHOLDS:
        if compliance_level < bound:
            return level
    return RiskLevel.LOW


class SSPGenerator:
    """
    Generator for System Security Plans.

    Example:
        generator = SSPGenerator()
        ssp = generator.generate(assessment, org_info)
        print(ssp.summary.compliance_level, ssp.summary.risk_level.value)
        markdown = generator.to_markdown(ssp)

    Attributes:
        catalog: Control catalog.
        engine: Placeholder engine for section text.
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        engine: PlaceholderEngine | None = None,
    ) -> None:
        self.catalog = catalog or get_default_catalog()
        self.engine = engine or PlaceholderEngine()

    def summarize(self, statuses: list[ControlStatus]) -> SSPSummary:
        """Count statuses and derive compliance and risk levels."""
        total = len(statuses)
        implemented = statuses.count(ControlStatus.IMPLEMENTED)
        partial = statuses.count(ControlStatus.PARTIALLY_IMPLEMENTED)
        compliance = (implemented / total * 100) if total > 0 else 0.0
        return SSPSummary(
            total_controls=total,
            implemented_controls=implemented,
            partially_implemented_controls=partial,
            not_implemented_controls=total - implemented - partial,
            compliance_level=compliance,
            risk_level=risk_level_for(compliance),
        )

    def generate(
        self,
        assessment: AssessmentData,
        org_info: OrganizationInfo,
        now: datetime | None = None,
    ) -> SSPDocument:
        """
        Generate an SSP.

        Args:
            assessment: Assessment responses.
            org_info: Organization and system metadata.
            now: Generation time. Defaults to current UTC time.

        Returns:
            SSPDocument with summary, sections, controls and appendices.
        """
        if now is None:
            now = datetime.now(UTC)

        system_name = org_info.system_name or "[System Name]"
        controls = []
        for control in self.catalog.controls():
            score = assessment.score_for(control.id)
            status = classify(score)
            controls.append(
                SSPControl(
                    id=control.id,
                    title=control.text,
                    domain=control.domain,
                    score=score,
                    status=status,
                    implementation=CONTROL_NARRATIVES[status].format(
                        system=system_name, guidance=control.guidance
                    ).strip(),
                    references=list(control.references),
                )
            )

        summary = self.summarize([c.status for c in controls])
        context = self._context(org_info, assessment, summary)

        sections = self._sections(controls, context, now)
        appendices = self._appendices(controls, summary, context, now)

        document = SSPDocument(
            id=f"ssp-{now.strftime('%Y%m%d%H%M%S')}",
            title=f"System Security Plan - {system_name}",
            version="1.0",
            organization=org_info.name,
            system_name=org_info.system_name,
            generated_date=now,
            summary=summary,
            sections=sections,
            controls=controls,
            appendices=appendices,
        )

        logger.info(
            "Generated SSP for %s: %d controls, %.1f%% compliant, risk %s",
            system_name,
            summary.total_controls,
            summary.compliance_level,
            summary.risk_level.value,
        )
        return document

    def _context(
        self,
        org_info: OrganizationInfo,
        assessment: AssessmentData,
        summary: SSPSummary,
    ) -> dict[str, Any]:
        context: dict[str, Any] = context_from_organization(org_info)
        context.update(
            {
                "framework": self.catalog.name,
                "totalControls": summary.total_controls,
                "implementedControls": summary.implemented_controls,
                "partiallyImplementedControls": summary.partially_implemented_controls,
                "notImplementedControls": summary.not_implemented_controls,
                "complianceLevel": f"{summary.compliance_level:.1f}%",
                "riskLevel": summary.risk_level.value,
            }
        )
        if assessment.created_at is not None:
            context["assessmentDate"] = self.engine.format_date(assessment.created_at)
        return context

    def _domain_subsection(self, domain: Domain, controls: list[SSPControl]) -> SSPSection:
        in_domain = [c for c in controls if c.domain == domain.name]
        implemented = sum(1 for c in in_domain if c.status == ControlStatus.IMPLEMENTED)
        partial = sum(1 for c in in_domain if c.status == ControlStatus.PARTIALLY_IMPLEMENTED)
        missing = len(in_domain) - implemented - partial
        ids = ", ".join(c.id for c in in_domain) or "none"
        return SSPSection(
            id=domain.id,
            title=domain.display_name,
            content=(
                f"Controls: {ids}\n\n"
                f"Status: {implemented} fully implemented, {partial} partially "
                f"implemented, {missing} not implemented."
            ),
        )

    def _sections(
        self,
        controls: list[SSPControl],
        context: dict[str, Any],
        now: datetime,
    ) -> list[SSPSection]:
        def resolve(text: str) -> str:
            return self.engine.substitute(text, context, now=now)

        sections = []
        for section_id, title, content, subsections in SECTION_TEMPLATES:
            section = SSPSection(
                id=section_id,
                title=title,
                content=resolve(content),
                subsections=[
                    SSPSection(id=sub_id, title=sub_title, content=resolve(sub_content))
                    for sub_id, sub_title, sub_content in subsections
                ],
            )
            if section_id == "security_controls":
                section.subsections = [
                    self._domain_subsection(domain, controls)
                    for domain in self.catalog.domains()
                ]
            sections.append(section)
        return sections

    def _appendices(
        self,
        controls: list[SSPControl],
        summary: SSPSummary,
        context: dict[str, Any],
        now: datetime,
    ) -> list[SSPAppendix]:
        acronyms = "\n".join(
            f"- **{term}**: {meaning}" for term, meaning in sorted(GLOSSARY.items())
        )

        references: dict[str, None] = {}
        for control in controls:
            for reference in control.references:
                references.setdefault(reference, None)
        reference_lines = [f"- {self.catalog.name}"] + [f"- {r}" for r in references]

        open_items = summary.total_controls - summary.implemented_controls
        poam = self.engine.substitute(
            f"{open_items} controls that are not fully implemented are tracked in "
            "the Plan of Actions and Milestones for {{systemName}}.",
            context,
            now=now,
        )

        inventory = "\n".join(
            [
                "| Component | Type | Location | Owner |",
                "|-----------|------|----------|-------|",
                "| [Component] | [Type] | [Location] | [Owner] |",
            ]
        )

        return [
            SSPAppendix(id="acronyms", title="Acronyms", content=acronyms),
            SSPAppendix(
                id="references",
                title="Referenced Documents",
                content="\n".join(reference_lines),
            ),
            SSPAppendix(id="poam_reference", title="Plan of Actions and Milestones", content=poam),
            SSPAppendix(id="inventory", title="System Inventory", content=inventory),
        ]

    def to_markdown(self, document: SSPDocument) -> str:
        """
        Render an SSP as markdown.

        Args:
            document: Generated SSP.

        Returns:
            Markdown text with sections, control entries and appendices.
        """
        lines = [f"# {document.title}", ""]
        lines.append(f"**Organization:** {document.organization}")
        lines.append(f"**System:** {document.system_name}")
        lines.append(f"**Version:** {document.version}")
        lines.append(f"**Generated:** {self.engine.format_date(document.generated_date)}")
        lines.append("")

        summary = document.summary
        lines.append("## Implementation Summary")
        lines.append("")
        lines.append(f"- **Total Controls:** {summary.total_controls}")
        lines.append(f"- **Implemented:** {summary.implemented_controls}")
        lines.append(f"- **Partially Implemented:** {summary.partially_implemented_controls}")
        lines.append(f"- **Not Implemented:** {summary.not_implemented_controls}")
        lines.append(f"- **Compliance Level:** {summary.compliance_level:.1f}%")
        lines.append(f"- **Risk Level:** {summary.risk_level.value.capitalize()}")
        lines.append("")

        for section in document.sections:
            lines.append(f"## {section.title}")
            lines.append("")
            lines.append(section.content)
            lines.append("")
            for subsection in section.subsections:
                lines.append(f"### {subsection.title}")
                lines.append("")
                lines.append(subsection.content)
                lines.append("")

        lines.append("## Control Implementation Details")
        lines.append("")
        for control in document.controls:
            lines.append(f"### {control.id.upper()}")
            lines.append("")
            lines.append(f"**Requirement:** {control.title}")
            lines.append(f"**Domain:** {control.domain}")
            lines.append(f"**Status:** {control.status.label.capitalize()}")
            lines.append("")
            lines.append(control.implementation)
            lines.append("")

        for appendix in document.appendices:
            lines.append(f"## Appendix: {appendix.title}")
            lines.append("")
            lines.append(appendix.content)
            lines.append("")

        return "\n".join(lines)
