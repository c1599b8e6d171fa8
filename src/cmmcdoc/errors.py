"""
Exception hierarchy for cmmcdoc.

Library code raises these; only the CLI turns them into exit codes.
"""

from __future__ import annotations


class CmmcdocError(Exception):
    """Base class for all cmmcdoc errors."""

    pass


class CatalogError(CmmcdocError):
    """Raised when a control catalog file is malformed."""

    pass


class AssessmentError(CmmcdocError):
    """Raised when assessment input cannot be parsed."""

    pass


class TemplateNotFoundError(CmmcdocError):
    """Raised when a template id is not present in the registry."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template with id {template_id} not found")


class UnsupportedFormatError(CmmcdocError):
    """Raised when an export format is not supported for a document type."""

    def __init__(self, export_format: str, supported: tuple[str, ...] | list[str]) -> None:
        self.export_format = export_format
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported format: {export_format}. "
            f"Must be one of: {', '.join(self.supported)}"
        )


class UnresolvedPlaceholderError(CmmcdocError):
    """Raised in strict substitution mode when tokens survive substitution."""

    def __init__(self, placeholders: list[str]) -> None:
        self.placeholders = placeholders
        tokens = ", ".join("{{" + name + "}}" for name in placeholders)
        super().__init__(f"Unresolved placeholders: {tokens}")
