"""
Placeholder substitution for document templates.

Templates reference data with double-curly tokens such as
{{companyName}}. Matching is exact and case-sensitive: {{ companyName }}
and {{CompanyName}} are different tokens.

Known placeholders always resolve. When the context has no value (or an
empty value) a bracketed default label such as [Company Name] is used,
so known tokens never survive substitution. Unknown tokens are passed
through untouched unless strict mode is on, in which case
UnresolvedPlaceholderError lists them.

Date placeholders are computed from a "now" anchor:
    - today, currentDate, effectiveDate: now
    - currentYear: now.year
    - nextReview: now + review offset (per template, default 180 days)
    - reviewDate: now + 365 days
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any

from cmmcdoc.assessment.models import OrganizationInfo
from cmmcdoc.errors import UnresolvedPlaceholderError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")

DEFAULT_DATE_FORMAT = "%B %d, %Y"
DEFAULT_REVIEW_OFFSET_DAYS = 180
ANNUAL_REVIEW_OFFSET_DAYS = 365

# Placeholder -> label used when the context has no value
DEFAULT_LABELS: dict[str, str] = {
    "companyName": "[Company Name]",
    "companyAddress": "[Company Address]",
    "companyContact": "[Company Contact]",
    "contact": "[Contact]",
    "systemName": "[System Name]",
    "systemDescription": "[System Description]",
    "organizationSize": "[Organization Size]",
    "industry": "[Industry]",
    "complianceOfficer": "[Compliance Officer]",
    "ciso": "[CISO]",
    "itManager": "[IT Manager]",
    "assessmentDate": "[Assessment Date]",
    "framework": "[Framework]",
    "maturityLevel": "[Maturity Level]",
    "totalControls": "[Total Controls]",
    "implementedControls": "[Implemented Controls]",
    "complianceLevel": "[Compliance Level]",
    "riskLevel": "[Risk Level]",
}

DATE_PLACEHOLDERS = frozenset(
    {"today", "currentDate", "currentYear", "nextReview", "effectiveDate", "reviewDate"}
)

KNOWN_PLACEHOLDERS = frozenset(DEFAULT_LABELS) | DATE_PLACEHOLDERS


def find_placeholders(text: str) -> list[str]:
    """
    List placeholder names in order of first appearance.

    Args:
        text: Template text.

    Returns:
        Unique placeholder names.
    """
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def context_from_organization(org_info: OrganizationInfo) -> dict[str, str]:
    """Build a substitution context from organization metadata."""
    return {
        "companyName": org_info.name,
        "companyAddress": org_info.address,
        "companyContact": org_info.contact,
        "contact": org_info.contact,
        "systemName": org_info.system_name,
        "systemDescription": org_info.system_description,
    }


class PlaceholderEngine:
    """
    Resolves {{placeholder}} tokens against a context.

    Example:
        engine = PlaceholderEngine()
        text = engine.substitute(
            "# {{companyName}} Policy\\nReviewed {{nextReview}}",
            {"companyName": "Acme Corp"},
        )

    Attributes:
        date_format: strftime format for date placeholders.
        review_offset_days: Default offset for {{nextReview}}.
        strict: Raise on unresolved tokens instead of passing them through.
    """

    def __init__(
        self,
        date_format: str = DEFAULT_DATE_FORMAT,
        review_offset_days: int = DEFAULT_REVIEW_OFFSET_DAYS,
        strict: bool = False,
    ) -> None:
        self.date_format = date_format
        self.review_offset_days = review_offset_days
        self.strict = strict

    def format_date(self, value: datetime) -> str:
        return value.strftime(self.date_format)

    def defaults(
        self,
        now: datetime | None = None,
        review_offset_days: int | None = None,
    ) -> dict[str, str]:
        """
        Values used when the context does not supply a placeholder.

        Args:
            now: Date anchor. Defaults to current UTC time.
            review_offset_days: Offset for {{nextReview}}. Defaults to
                the engine setting.
        """
        if now is None:
            now = datetime.now(UTC)
        if review_offset_days is None:
            review_offset_days = self.review_offset_days

        today = self.format_date(now)
        values = dict(DEFAULT_LABELS)
        values.update(
            {
                "today": today,
                "currentDate": today,
                "currentYear": str(now.year),
                "effectiveDate": today,
                "nextReview": self.format_date(now + timedelta(days=review_offset_days)),
                "reviewDate": self.format_date(
                    now + timedelta(days=ANNUAL_REVIEW_OFFSET_DAYS)
                ),
            }
        )
        return values

    def resolve(
        self,
        context: dict[str, Any] | None = None,
        now: datetime | None = None,
        review_offset_days: int | None = None,
    ) -> dict[str, str]:
        """
        Merge a context over the defaults.

        None and empty-string context values fall back to the default.
        Other values are converted with str().
        """
        values = self.defaults(now, review_offset_days)
        for key, value in (context or {}).items():
            if value is None or value == "":
                continue
            values[key] = str(value)
        return values

    def substitute(
        self,
        text: str,
        context: dict[str, Any] | None = None,
        now: datetime | None = None,
        review_offset_days: int | None = None,
        strict: bool | None = None,
    ) -> str:
        """
        Replace placeholders in text.

        Substituted values are not scanned again, so a value containing
        "{{x}}" is inserted literally.

        Args:
            text: Template text.
            context: Placeholder name -> value.
            now: Date anchor. Defaults to current UTC time.
            review_offset_days: Offset for {{nextReview}}.
            strict: Override the engine strict setting.

        Returns:
            Text with every known placeholder resolved.

        Raises:
            UnresolvedPlaceholderError: In strict mode, if unknown tokens remain.
        """
        values = self.resolve(context, now, review_offset_days)
        unresolved: dict[str, None] = {}

        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if name in values:
                return values[name]
            unresolved.setdefault(name, None)
            return match.group(0)

        result = PLACEHOLDER_PATTERN.sub(replace, text)

        if unresolved:
            names = list(unresolved)
            if self.strict if strict is None else strict:
                raise UnresolvedPlaceholderError(names)
            logger.warning("Leaving unresolved placeholders: %s", ", ".join(names))

        return result
