"""
CMMC 2.0 Level 1 control definitions.

This module contains the control hierarchy used by every generator:
domains contain categories, categories contain controls (practices).
The built-in catalog is CMMC 2.0 Level 1 - Basic Cyber Hygiene, with
17 practices across 6 domains.

Reference: CMMC Model 2.0, Level 1 (NIST SP 800-171 derived practices)

The hierarchy:
    - Domain: e.g. Access Control (AC)
    - Category: grouping inside a domain
    - Control: a single practice with guidance and priority

Traversal order (domain -> category -> control) is significant. POAM
milestones, SSP control entries and RACI matrix columns all follow it.

Catalog data is read-only reference data. Generators never mutate it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Priority(str, Enum):
    """Control priority level."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Control:
    """
    A single security control (practice).

    Attributes:
        id: Control identifier (e.g., "ac.l1-3.1.1").
        text: Requirement statement.
        guidance: Implementation guidance.
        priority: Catalog priority.
        domain: Name of the owning domain (e.g., "Access Control").
        example_count: Number of implementation examples. Used as a
            complexity proxy by the estimator and the RACI engine.
        references: External references (e.g., NIST SP 800-171 3.1.1).
    """

    id: str
    text: str
    guidance: str
    priority: Priority
    domain: str
    example_count: int | None = None
    references: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "guidance": self.guidance,
            "priority": self.priority.value,
            "domain": self.domain,
            "example_count": self.example_count,
            "references": list(self.references),
        }


@dataclass
class Category:
    """
    A group of related controls inside a domain.

    Attributes:
        id: Category identifier.
        name: Category name.
        description: Category description.
        controls: Controls in catalog order.
    """

    id: str
    name: str
    description: str = ""
    controls: list[Control] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "controls": [c.to_dict() for c in self.controls],
        }


@dataclass
class Domain:
    """
    A top-level control family.

    Attributes:
        id: Domain identifier (e.g., "access-control").
        name: Domain name without abbreviation (e.g., "Access Control").
        abbreviation: Two-letter family code (e.g., "AC").
        description: Domain description.
        priority: Domain-level priority.
        categories: Categories in catalog order.
    """

    id: str
    name: str
    abbreviation: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    categories: list[Category] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        """Name with abbreviation, e.g. "Access Control (AC)"."""
        if self.abbreviation:
            return f"{self.name} ({self.abbreviation})"
        return self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "description": self.description,
            "priority": self.priority.value,
            "categories": [c.to_dict() for c in self.categories],
        }


class Catalog:
    """
    Ordered, indexed view over a control hierarchy.

    Example:
        catalog = get_default_catalog()
        for control in catalog.controls():
            print(control.id, control.priority.value)

        control = catalog.get_control("AC.L1-3.1.1")
    """

    def __init__(
        self,
        id: str,
        name: str,
        domains: list[Domain],
        version: str = "",
        description: str = "",
    ) -> None:
        self.id = id
        self.name = name
        self.version = version
        self.description = description
        self._domains = list(domains)
        self._control_index: dict[str, Control] = {}
        self._domain_index: dict[str, Domain] = {}

        for domain in self._domains:
            self._domain_index[domain.id.lower()] = domain
            for category in domain.categories:
                for control in category.controls:
                    self._control_index[control.id.lower()] = control

    def domains(self) -> list[Domain]:
        """Get all domains in catalog order."""
        return list(self._domains)

    def controls(self) -> list[Control]:
        """Get all controls in traversal order."""
        return [
            control
            for domain in self._domains
            for category in domain.categories
            for control in category.controls
        ]

    def get_control(self, control_id: str) -> Control | None:
        """
        Get a control by ID (case-insensitive).

        Args:
            control_id: Control identifier.

        Returns:
            Control if found, None otherwise.
        """
        return self._control_index.get(control_id.lower())

    def get_domain(self, domain_id: str) -> Domain | None:
        """Get a domain by ID (case-insensitive)."""
        return self._domain_index.get(domain_id.lower())

    def controls_in_domain(self, domain_name: str) -> list[Control]:
        """Get the controls whose domain name matches exactly."""
        return [c for c in self.controls() if c.domain == domain_name]

    def statistics(self) -> dict[str, int]:
        """
        Get statistics about the catalog.

        Returns:
            Dictionary with counts of domains, categories, controls and
            controls per priority.
        """
        controls = self.controls()
        stats = {
            "domains": len(self._domains),
            "categories": sum(len(d.categories) for d in self._domains),
            "controls": len(controls),
        }
        for priority in Priority:
            stats[priority.value] = sum(1 for c in controls if c.priority == priority)
        return stats

    def __len__(self) -> int:
        return len(self._control_index)

    def __contains__(self, control_id: object) -> bool:
        return isinstance(control_id, str) and control_id.lower() in self._control_index

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "domains": [d.to_dict() for d in self._domains],
        }


# =============================================================================
# CMMC 2.0 LEVEL 1 CONTROL HIERARCHY
# =============================================================================

_SP800_171 = "NIST SP 800-171"


def _practice(
    control_id: str,
    text: str,
    guidance: str,
    priority: Priority,
    domain: str,
    reference: str,
) -> Control:
    return Control(
        id=control_id,
        text=text,
        guidance=guidance,
        priority=priority,
        domain=domain,
        example_count=5,
        references=(f"{_SP800_171} {reference}",),
    )


def _single_category_domain(
    domain_id: str,
    name: str,
    abbreviation: str,
    description: str,
    priority: Priority,
    category_description: str,
    controls: list[Control],
) -> Domain:
    return Domain(
        id=domain_id,
        name=name,
        abbreviation=abbreviation,
        description=description,
        priority=priority,
        categories=[
            Category(
                id=domain_id,
                name=name,
                description=category_description,
                controls=controls,
            )
        ],
    )


def _build_cmmc_level1() -> list[Domain]:
    """Build the CMMC 2.0 Level 1 hierarchy (6 domains, 17 practices)."""
    ac = "Access Control"
    ia = "Identification and Authentication"
    mp = "Media Protection"
    pe = "Physical Protection"
    sc = "System and Communications Protection"
    si = "System and Information Integrity"

    return [
        _single_category_domain(
            "access-control",
            ac,
            "AC",
            "Limit information system access to authorized users, processes, and devices",
            Priority.HIGH,
            "Control access to systems and information containing FCI",
            [
                _practice(
                    "ac.l1-3.1.1",
                    "Limit system access to authorized users, processes acting on behalf "
                    "of authorized users, and devices (including other systems).",
                    "Implement user access controls to ensure only authorized personnel "
                    "can access systems containing Federal Contract Information (FCI). "
                    "This includes user accounts, authentication systems, and access reviews.",
                    Priority.HIGH,
                    ac,
                    "3.1.1",
                ),
                _practice(
                    "ac.l1-3.1.2",
                    "Limit system access to the types of transactions and functions that "
                    "authorized users are permitted to execute.",
                    "Control what actions users can perform once they have access to "
                    "systems. Implement role-based access control to limit functions "
                    "based on job responsibilities.",
                    Priority.HIGH,
                    ac,
                    "3.1.2",
                ),
                _practice(
                    "ac.l1-3.1.3",
                    "Control the flow of CUI in accordance with approved authorizations.",
                    "Implement information flow controls to regulate where Federal "
                    "Contract Information (FCI) can travel within and between systems.",
                    Priority.HIGH,
                    ac,
                    "3.1.3",
                ),
                _practice(
                    "ac.l1-3.1.4",
                    "Separate the duties of individuals to reduce the risk of malevolent "
                    "activity without collusion.",
                    "Implement separation of duties to prevent any single individual from "
                    "having complete control over critical functions involving Federal "
                    "Contract Information (FCI).",
                    Priority.MEDIUM,
                    ac,
                    "3.1.4",
                ),
                _practice(
                    "ac.l1-3.1.5",
                    "Employ the principle of least privilege, including for specific "
                    "security functions and privileged accounts.",
                    "Implement least privilege access controls to ensure users and "
                    "systems have only the minimum access necessary to perform their "
                    "functions.",
                    Priority.HIGH,
                    ac,
                    "3.1.5",
                ),
                _practice(
                    "ac.l1-3.1.6",
                    "Use non-privileged accounts or roles when accessing nonsecurity "
                    "functions.",
                    "Ensure that administrative and privileged accounts are only used for "
                    "security-related functions, while using standard user accounts for "
                    "regular business operations.",
                    Priority.MEDIUM,
                    ac,
                    "3.1.6",
                ),
            ],
        ),
        _single_category_domain(
            "identification-authentication",
            ia,
            "IA",
            "Identify and authenticate users, processes, and devices",
            Priority.HIGH,
            "Verify identities before granting access to FCI",
            [
                _practice(
                    "ia.l1-3.5.1",
                    "Identify information system users, processes acting on behalf of "
                    "users, and devices.",
                    "Maintain a system to identify all users, processes, and devices that "
                    "access systems containing Federal Contract Information (FCI).",
                    Priority.HIGH,
                    ia,
                    "3.5.1",
                ),
                _practice(
                    "ia.l1-3.5.2",
                    "Authenticate (or verify) the identities of users, processes, or "
                    "devices before allowing access to organizational information systems.",
                    "Implement authentication mechanisms to verify the identity of users, "
                    "processes, and devices before granting access to systems containing "
                    "FCI.",
                    Priority.HIGH,
                    ia,
                    "3.5.2",
                ),
            ],
        ),
        _single_category_domain(
            "media-protection",
            mp,
            "MP",
            "Protect and sanitize system media containing FCI",
            Priority.MEDIUM,
            "Control media throughout its lifecycle",
            [
                _practice(
                    "mp.l1-3.8.3",
                    "Protect (i.e., physically control and securely store, sanitize for "
                    "disposal, or destroy) system media containing CUI, both paper and "
                    "digital.",
                    "Implement physical and digital controls to protect media containing "
                    "Federal Contract Information (FCI) throughout its lifecycle.",
                    Priority.MEDIUM,
                    mp,
                    "3.8.3",
                ),
            ],
        ),
        _single_category_domain(
            "physical-protection",
            pe,
            "PE",
            "Limit physical access to systems and facilities",
            Priority.MEDIUM,
            "Restrict and monitor physical access",
            [
                _practice(
                    "pe.l1-3.10.1",
                    "Limit physical access to organizational information systems, "
                    "equipment, and the respective operating environments to authorized "
                    "individuals.",
                    "Implement physical security controls to restrict access to systems "
                    "and equipment containing Federal Contract Information (FCI).",
                    Priority.MEDIUM,
                    pe,
                    "3.10.1",
                ),
                _practice(
                    "pe.l1-3.10.2",
                    "Escort visitors and monitor visitor activity.",
                    "Implement visitor management procedures to ensure all visitors are "
                    "properly escorted and monitored when accessing areas containing "
                    "Federal Contract Information (FCI).",
                    Priority.MEDIUM,
                    pe,
                    "3.10.2",
                ),
            ],
        ),
        _single_category_domain(
            "system-communications-protection",
            sc,
            "SC",
            "Monitor, control, and protect organizational communications",
            Priority.MEDIUM,
            "Protect communications at system boundaries",
            [
                _practice(
                    "sc.l1-3.13.1",
                    "Monitor, control, and protect organizational communications (i.e., "
                    "information transmitted or received by organizational information "
                    "systems) at the external boundaries and key internal boundaries of "
                    "the information systems.",
                    "Implement network monitoring and protection controls to safeguard "
                    "communications containing Federal Contract Information (FCI).",
                    Priority.MEDIUM,
                    sc,
                    "3.13.1",
                ),
                _practice(
                    "sc.l1-3.13.8",
                    "Implement subnetworks for publicly accessible system components that "
                    "are physically or logically separated from internal networks.",
                    "Create separate network segments for systems that need to be "
                    "accessible from the internet to isolate them from internal systems "
                    "containing Federal Contract Information (FCI).",
                    Priority.MEDIUM,
                    sc,
                    "3.13.8",
                ),
            ],
        ),
        _single_category_domain(
            "system-information-integrity",
            si,
            "SI",
            "Identify and correct flaws and protect against malicious code",
            Priority.MEDIUM,
            "Maintain system and information integrity",
            [
                _practice(
                    "si.l1-3.14.1",
                    "Identify, report, and correct information and information system "
                    "flaws in a timely manner.",
                    "Implement processes to identify, report, and remediate "
                    "vulnerabilities in systems containing Federal Contract Information "
                    "(FCI).",
                    Priority.MEDIUM,
                    si,
                    "3.14.1",
                ),
                _practice(
                    "si.l1-3.14.2",
                    "Protect information at rest.",
                    "Implement encryption or other protective measures for Federal "
                    "Contract Information (FCI) stored on systems and media.",
                    Priority.MEDIUM,
                    si,
                    "3.14.2",
                ),
                _practice(
                    "si.l1-3.14.4",
                    "Detect malicious code at organizational information system entry "
                    "and exit points.",
                    "Implement antivirus and anti-malware solutions to detect malicious "
                    "code at system entry and exit points to protect Federal Contract "
                    "Information (FCI).",
                    Priority.MEDIUM,
                    si,
                    "3.14.4",
                ),
                _practice(
                    "si.l1-3.14.5",
                    "Monitor organizational information systems to detect attacks and "
                    "indicators of attacks.",
                    "Implement monitoring and detection capabilities to identify "
                    "potential security attacks and indicators of compromise on systems "
                    "containing Federal Contract Information (FCI).",
                    Priority.HIGH,
                    si,
                    "3.14.5",
                ),
            ],
        ),
    ]


_DEFAULT_CATALOG = Catalog(
    id="cmmc-2.0-level1",
    name="CMMC 2.0 Level 1 - Basic Cyber Hygiene",
    version="2.0",
    description=(
        "CMMC 2.0 Level 1 focuses on basic cyber hygiene practices for Federal "
        "Contract Information (FCI) protection."
    ),
    domains=_build_cmmc_level1(),
)


# =============================================================================
# PUBLIC API
# =============================================================================

def get_default_catalog() -> Catalog:
    """
    Get the built-in CMMC 2.0 Level 1 catalog.

    Returns:
        Catalog with 6 domains and 17 controls.
    """
    return _DEFAULT_CATALOG


def get_control(control_id: str) -> Control | None:
    """
    Get a built-in control by ID.

    Args:
        control_id: Control identifier (e.g., "ac.l1-3.1.1").

    Returns:
        Control if found, None otherwise.
    """
    return _DEFAULT_CATALOG.get_control(control_id)


def get_all_controls() -> list[Control]:
    """Get all built-in controls in traversal order."""
    return _DEFAULT_CATALOG.controls()
