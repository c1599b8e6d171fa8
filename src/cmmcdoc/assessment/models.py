"""
Input data models: assessments, organizations and roles.

Inputs may come from JSON or YAML files produced by other tools, so
from_dict() accepts both camelCase and snake_case keys.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from cmmcdoc.errors import AssessmentError

logger = logging.getLogger(__name__)


def _get(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _parse_datetime(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise AssessmentError(f"Invalid timestamp for {field_name}: {value!r}") from e


class RoleLevel(str, Enum):
    """Organizational level of a role."""

    EXECUTIVE = "executive"
    MANAGEMENT = "management"
    TECHNICAL = "technical"
    OPERATIONAL = "operational"


@dataclass
class Role:
    """
    A role that can carry RACI responsibilities.

    Attributes:
        id: Role identifier (e.g., "ciso").
        name: Display name (e.g., "Chief Information Security Officer").
        department: Owning department.
        skills: Skill keywords, compared case-insensitively.
        level: Organizational level.
    """

    id: str
    name: str
    department: str = ""
    skills: list[str] = field(default_factory=list)
    level: RoleLevel = RoleLevel.TECHNICAL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Role:
        """Create from dictionary."""
        if "id" not in data or "name" not in data:
            raise AssessmentError("Role requires 'id' and 'name'")
        try:
            level = RoleLevel(str(data.get("level", RoleLevel.TECHNICAL.value)).lower())
        except ValueError as e:
            valid = ", ".join(lv.value for lv in RoleLevel)
            raise AssessmentError(
                f"Invalid level {data.get('level')!r} for role {data['id']}. "
                f"Must be one of: {valid}"
            ) from e
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            department=str(data.get("department", "")),
            skills=[str(s) for s in data.get("skills") or []],
            level=level,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "department": self.department,
            "skills": list(self.skills),
            "level": self.level.value,
        }


@dataclass
class OrganizationInfo:
    """
    Organization metadata used by every generator.

    SSP and POAM generation read the company and system fields; RACI
    generation reads name and roles.

    Attributes:
        name: Organization name.
        address: Postal address.
        contact: Contact person or email.
        system_name: Name of the assessed information system.
        system_description: Description of the system.
        responsible_parties: Fallback owners for POAM milestones.
        roles: Roles for RACI assignment, in matrix row order.
    """

    name: str = ""
    address: str = ""
    contact: str = ""
    system_name: str = ""
    system_description: str = ""
    responsible_parties: list[str] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrganizationInfo:
        """Create from dictionary."""
        return cls(
            name=str(data.get("name", "")),
            address=str(data.get("address", "")),
            contact=str(data.get("contact", "")),
            system_name=str(_get(data, "systemName", "system_name", "")),
            system_description=str(
                _get(data, "systemDescription", "system_description", "")
            ),
            responsible_parties=[
                str(p)
                for p in _get(data, "responsibleParties", "responsible_parties", []) or []
            ],
            roles=[Role.from_dict(r) for r in data.get("roles") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "address": self.address,
            "contact": self.contact,
            "system_name": self.system_name,
            "system_description": self.system_description,
            "responsible_parties": list(self.responsible_parties),
            "roles": [r.to_dict() for r in self.roles],
        }


@dataclass
class AssessmentData:
    """
    A completed assessment: control id -> score (0-3).

    Control ids are matched exactly first, then case-insensitively, so
    "AC.L1-3.1.1" answers the built-in "ac.l1-3.1.1" practice.

    Attributes:
        id: Assessment identifier.
        responses: Control id to integer score.
        framework_id: Framework the assessment was taken against.
        created_at: Creation timestamp.
        last_modified: Last modification timestamp.
        organization: Organization info embedded in the assessment file.
    """

    id: str = ""
    responses: dict[str, int] = field(default_factory=dict)
    framework_id: str = ""
    created_at: datetime | None = None
    last_modified: datetime | None = None
    organization: OrganizationInfo | None = None

    def score_for(self, control_id: str) -> int | None:
        """
        Get the score recorded for a control.

        Args:
            control_id: Control identifier.

        Returns:
            The score, or None if the control was not answered.
        """
        if control_id in self.responses:
            return self.responses[control_id]
        lowered = control_id.lower()
        for key, score in self.responses.items():
            if key.lower() == lowered:
                return score
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssessmentData:
        """
        Create from dictionary.

        Raises:
            AssessmentError: If responses are missing or not integers.
        """
        if not isinstance(data, dict):
            raise AssessmentError("Assessment must be a mapping")
        raw = data.get("responses")
        if raw is None:
            raise AssessmentError("Assessment is missing 'responses'")
        if not isinstance(raw, dict):
            raise AssessmentError("Assessment 'responses' must be a mapping")

        responses: dict[str, int] = {}
        for control_id, score in raw.items():
            if score is None:
                continue
            if isinstance(score, bool) or not isinstance(score, int):
                raise AssessmentError(
                    f"Score for {control_id} must be an integer, got {score!r}"
                )
            responses[str(control_id)] = score

        org_data = data.get("organization")
        return cls(
            id=str(data.get("id", "")),
            responses=responses,
            framework_id=str(_get(data, "frameworkId", "framework_id", "")),
            created_at=_parse_datetime(_get(data, "createdAt", "created_at"), "createdAt"),
            last_modified=_parse_datetime(
                _get(data, "lastModified", "last_modified"), "lastModified"
            ),
            organization=OrganizationInfo.from_dict(org_data) if org_data else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "responses": dict(self.responses),
            "framework_id": self.framework_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "organization": self.organization.to_dict() if self.organization else None,
        }


def load_assessment(path: Path | str) -> AssessmentData:
    """
    Load an assessment from a JSON or YAML file.

    Args:
        path: Path to the assessment file. Files ending in .json are parsed
            as JSON, everything else as YAML.

    Returns:
        Parsed AssessmentData.

    Raises:
        AssessmentError: If the file cannot be read or is malformed.
    """
    path = Path(path)
    try:
        with open(path) as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        raise AssessmentError(f"Cannot read assessment file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise AssessmentError(f"Invalid JSON in assessment file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise AssessmentError(f"Invalid YAML in assessment file {path}: {e}") from e

    assessment = AssessmentData.from_dict(data)
    logger.info(
        "Loaded assessment %s with %d responses from %s",
        assessment.id or "(unnamed)",
        len(assessment.responses),
        path,
    )
    return assessment
