"""
Template registry and customization.

Templates are markdown documents with {{placeholder}} tokens plus field
definitions describing which values a caller should supply. The registry
looks templates up, customizes them through the PlaceholderEngine and
validates customization input.

Validation never raises: all missing fields are collected so a caller
can show every problem at once, and can still choose to customize with
bracketed defaults.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from cmmcdoc.errors import TemplateNotFoundError
from cmmcdoc.rendering.builtin_templates import BUILTIN_TEMPLATES
from cmmcdoc.rendering.placeholders import (
    ANNUAL_REVIEW_OFFSET_DAYS,
    KNOWN_PLACEHOLDERS,
    PLACEHOLDER_PATTERN,
    PlaceholderEngine,
)

logger = logging.getLogger(__name__)

FIELD_GROUPS = ("company_info", "system_info", "custom_fields")
# Only these groups are checked for required values
VALIDATED_GROUPS = ("company_info", "system_info")

DEFAULT_PREVIEW_LENGTH = 500

_PREVIEW_STRIP = [
    (re.compile(r"#{1,6}\s+"), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"`(.*?)`"), r"\1"),
    (re.compile(r"\|.*\|"), ""),
]


@dataclass(frozen=True)
class TemplateField:
    """
    A value a template expects from the caller.

    Attributes:
        id: Placeholder name the field fills.
        name: Human-readable label.
        required: Whether validation reports the field when missing.
        type: Input type hint (text, email, date, ...).
        placeholder: Example value for forms.
    """

    id: str
    name: str
    required: bool = False
    type: str = "text"
    placeholder: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "required": self.required,
            "type": self.type,
            "placeholder": self.placeholder,
        }


@dataclass
class TemplateMetadata:
    """Descriptive template metadata."""

    version: str = "1.0"
    complexity: str = "medium"
    target_audience: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    framework: str = "CMMC 2.0"
    compliance_level: str = "Level 1"
    review_offset_days: int = 180

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "complexity": self.complexity,
            "target_audience": list(self.target_audience),
            "tags": list(self.tags),
            "framework": self.framework,
            "compliance_level": self.compliance_level,
            "review_offset_days": self.review_offset_days,
        }


@dataclass
class TemplateDefinition:
    """
    A document template.

    Attributes:
        id: Template identifier.
        name: Display name.
        category: Template category (policy, core, specialized, ...).
        type: Template type.
        description: Short description.
        content: Markdown body with placeholders.
        controls: Control ids the template addresses.
        fields: Field group -> field id -> TemplateField.
        metadata: Descriptive metadata.
    """

    id: str
    name: str
    category: str
    type: str
    description: str
    content: str
    controls: list[str] = field(default_factory=list)
    fields: dict[str, dict[str, TemplateField]] = field(default_factory=dict)
    metadata: TemplateMetadata = field(default_factory=TemplateMetadata)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TemplateDefinition:
        """Create from dictionary."""
        fields: dict[str, dict[str, TemplateField]] = {}
        for group, group_fields in (data.get("fields") or {}).items():
            fields[group] = {
                field_id: TemplateField(
                    id=field_id,
                    name=spec.get("name", field_id),
                    required=bool(spec.get("required", False)),
                    type=spec.get("type", "text"),
                    placeholder=spec.get("placeholder", ""),
                )
                for field_id, spec in group_fields.items()
            }
        metadata = data.get("metadata") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            category=data.get("category", "core"),
            type=data.get("type", data["id"]),
            description=data.get("description", ""),
            content=data["content"],
            controls=list(data.get("controls") or []),
            fields=fields,
            metadata=TemplateMetadata(
                version=metadata.get("version", "1.0"),
                complexity=metadata.get("complexity", "medium"),
                target_audience=list(metadata.get("target_audience") or []),
                tags=list(metadata.get("tags") or []),
                framework=metadata.get("framework", "CMMC 2.0"),
                compliance_level=metadata.get("compliance_level", "Level 1"),
                review_offset_days=int(metadata.get("review_offset_days", 180)),
            ),
        )

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "type": self.type,
            "description": self.description,
            "controls": list(self.controls),
            "fields": {
                group: {fid: f.to_dict() for fid, f in group_fields.items()}
                for group, group_fields in self.fields.items()
            },
            "metadata": self.metadata.to_dict(),
        }
        if include_content:
            result["content"] = self.content
        return result


@dataclass
class ValidationResult:
    """
    Outcome of validating customization input.

    Attributes:
        valid: True when no errors were found.
        errors: Every problem found, in field order.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"valid": self.valid, "errors": list(self.errors)}


class TemplateRegistry:
    """
    Lookup, customization and validation of document templates.

    Example:
        registry = TemplateRegistry()
        result = registry.validate_customization(
            "access-control-policy", {"companyName": "Acme Corp"}
        )
        if not result.valid:
            print("\\n".join(result.errors))
        text = registry.customize("access-control-policy", {"companyName": "Acme Corp"})
    """

    def __init__(
        self,
        templates: list[TemplateDefinition] | None = None,
        engine: PlaceholderEngine | None = None,
    ) -> None:
        if templates is None:
            templates = [TemplateDefinition.from_dict(t) for t in BUILTIN_TEMPLATES]
        self.engine = engine or PlaceholderEngine()
        self._templates: dict[str, TemplateDefinition] = {}
        for template in templates:
            self.register(template)

    def register(self, template: TemplateDefinition) -> None:
        """Add or replace a template."""
        if template.id in self._templates:
            logger.debug("Replacing template %s", template.id)
        self._templates[template.id] = template

    def get(self, template_id: str) -> TemplateDefinition | None:
        """Get a template by id."""
        return self._templates.get(template_id)

    def require(self, template_id: str) -> TemplateDefinition:
        """
        Get a template by id.

        Raises:
            TemplateNotFoundError: If the id is unknown.
        """
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def list(self) -> list[TemplateDefinition]:
        """All templates in registration order."""
        return list(self._templates.values())

    def by_category(self, category: str) -> list[TemplateDefinition]:
        return [t for t in self._templates.values() if t.category == category]

    def by_control(self, control_id: str) -> list[TemplateDefinition]:
        """Templates addressing a control (case-insensitive)."""
        lowered = control_id.lower()
        return [
            t for t in self._templates.values()
            if any(c.lower() == lowered for c in t.controls)
        ]

    def by_tag(self, tag: str) -> list[TemplateDefinition]:
        lowered = tag.lower()
        return [
            t for t in self._templates.values()
            if any(x.lower() == lowered for x in t.metadata.tags)
        ]

    def search(self, query: str) -> list[TemplateDefinition]:
        """
        Case-insensitive search over name, description, tags and controls.

        Args:
            query: Search text.

        Returns:
            Matching templates in registration order.
        """
        needle = query.lower()
        return [
            t
            for t in self._templates.values()
            if needle in t.name.lower()
            or needle in t.description.lower()
            or any(needle in tag.lower() for tag in t.metadata.tags)
            or any(needle in c.lower() for c in t.controls)
        ]

    def statistics(self) -> dict[str, Any]:
        """
        Counts over the registry.

        Returns:
            Dictionary with total, by_category, by_complexity, by_audience,
            total_controls (unique) and total_tags (unique).
        """
        by_category: dict[str, int] = {}
        by_complexity: dict[str, int] = {}
        by_audience: dict[str, int] = {}
        controls: set[str] = set()
        tags: set[str] = set()

        for template in self._templates.values():
            by_category[template.category] = by_category.get(template.category, 0) + 1
            complexity = template.metadata.complexity
            by_complexity[complexity] = by_complexity.get(complexity, 0) + 1
            for audience in template.metadata.target_audience:
                by_audience[audience] = by_audience.get(audience, 0) + 1
            controls.update(c.lower() for c in template.controls)
            tags.update(template.metadata.tags)

        return {
            "total": len(self._templates),
            "by_category": by_category,
            "by_complexity": by_complexity,
            "by_audience": by_audience,
            "total_controls": len(controls),
            "total_tags": len(tags),
        }

    def customize(
        self,
        template_id: str,
        customizations: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> str:
        """
        Fill a template with caller values.

        Common placeholders (today, nextReview, companyName, ciso,
        effectiveDate, reviewDate) always resolve, falling back to
        defaults. Fields the template declares fall back to their
        bracketed label (e.g. "[Risk Owner]"). Every customization key
        then replaces its {{key}} token, including keys the template does
        not declare.

        Args:
            template_id: Template to customize.
            customizations: Placeholder name -> value.
            now: Date anchor. Defaults to current UTC time.

        Returns:
            Customized markdown.

        Raises:
            TemplateNotFoundError: If the id is unknown.
            UnresolvedPlaceholderError: In strict mode, if tokens remain.
        """
        template = self.require(template_id)
        customizations = customizations or {}

        content = template.content
        # Keys that are not valid placeholder names are replaced literally
        for key, value in customizations.items():
            if value is not None and not PLACEHOLDER_PATTERN.fullmatch("{{" + key + "}}"):
                content = content.replace("{{" + key + "}}", str(value))

        context: dict[str, Any] = self.field_defaults(template)
        context.update(
            {k: v for k, v in customizations.items() if v is not None and v != ""}
        )
        result = self.engine.substitute(
            content,
            context,
            now=now,
            review_offset_days=template.metadata.review_offset_days,
        )
        logger.info(
            "Customized template %s with %d values", template_id, len(customizations)
        )
        return result

    @staticmethod
    def field_defaults(template: TemplateDefinition) -> dict[str, str]:
        """Bracketed labels for declared fields without a built-in default."""
        return {
            field_id: f"[{template_field.name}]"
            for group in template.fields.values()
            for field_id, template_field in group.items()
            if field_id not in KNOWN_PLACEHOLDERS
        }

    def validate_customization(
        self,
        template_id: str,
        customizations: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """
        Check that every required company and system field has a value.

        Unknown templates produce an invalid result rather than an error.

        Args:
            template_id: Template to validate against.
            customizations: Placeholder name -> value.

        Returns:
            ValidationResult listing all missing fields.
        """
        template = self.get(template_id)
        if template is None:
            return ValidationResult(valid=False, errors=[str(TemplateNotFoundError(template_id))])

        customizations = customizations or {}
        errors = []
        for group in VALIDATED_GROUPS:
            for field_id, template_field in template.fields.get(group, {}).items():
                value = customizations.get(field_id)
                if template_field.required and (value is None or str(value).strip() == ""):
                    errors.append(f"Required field '{field_id}' is missing")

        return ValidationResult(valid=not errors, errors=errors)

    def preview(self, template_id: str, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
        """
        Plain-text preview of a template body.

        Markdown markers are stripped and the text is cut at limit
        characters, with "..." appended when cut. Unknown ids give "".
        """
        template = self.get(template_id)
        if template is None:
            return ""
        text = template.content
        for pattern, replacement in _PREVIEW_STRIP:
            text = pattern.sub(replacement, text)
        suffix = "..." if len(text) > limit else ""
        return text[:limit] + suffix

    def auto_populate(
        self,
        template_id: str,
        user_data: dict[str, Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Derive customization values from a user profile and assessment.

        Recognized inputs:
            user_profile: company_name/organization, ciso/security_officer,
                email/contact_email
            assessment_data: system_name, description

        Args:
            template_id: Template the values are for.
            user_data: Caller data. Copied, never modified.
            now: Date anchor. Defaults to current UTC time.

        Returns:
            Customization mapping including effectiveDate and reviewDate.

        Raises:
            TemplateNotFoundError: If the id is unknown.
        """
        self.require(template_id)
        if now is None:
            now = datetime.now(UTC)

        populated = dict(user_data)
        profile = user_data.get("user_profile") or user_data.get("userProfile")
        if profile:
            populated["companyName"] = profile.get("company_name") or profile.get(
                "organization"
            )
            populated["ciso"] = profile.get("ciso") or profile.get("security_officer")
            populated["contact"] = profile.get("email") or profile.get("contact_email")

        assessment = user_data.get("assessment_data") or user_data.get("assessmentData")
        if assessment:
            populated["systemName"] = assessment.get("system_name") or "CMMC System"
            populated["systemDescription"] = (
                assessment.get("description") or "CMMC 2.0 Level 1 System"
            )

        populated["effectiveDate"] = self.engine.format_date(now)
        populated["reviewDate"] = self.engine.format_date(
            now + timedelta(days=ANNUAL_REVIEW_OFFSET_DAYS)
        )

        logger.info(
            "Auto-populated %d fields for template %s", len(populated), template_id
        )
        return populated
