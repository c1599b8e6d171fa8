"""
Template substitution and markdown rendering.

Placeholder Substitution:
    PlaceholderEngine resolves {{placeholder}} tokens against a context.
    Known placeholders fall back to bracketed labels such as
    [Company Name]; unknown tokens pass through unless strict mode is on.

Markdown Rendering:
    RegexMarkdownRenderer converts markdown-like text to HTML with a
    best-effort regex pipeline. table_of_contents() builds a TOC from
    ## and ### headings.

Templates:
    TemplateRegistry holds the built-in policy and plan templates and
    supports lookup, search, customization and validation.

Example:
    from cmmcdoc.rendering import RegexMarkdownRenderer, TemplateRegistry

    registry = TemplateRegistry()
    markdown = registry.customize("incident-response-plan", {"companyName": "Acme"})
    html = RegexMarkdownRenderer().render(markdown)
"""

from cmmcdoc.rendering.markdown import (
    MarkdownRenderer,
    RegexMarkdownRenderer,
    heading_anchor,
    table_of_contents,
)
from cmmcdoc.rendering.placeholders import (
    DEFAULT_LABELS,
    KNOWN_PLACEHOLDERS,
    PlaceholderEngine,
    context_from_organization,
    find_placeholders,
)
from cmmcdoc.rendering.templates import (
    TemplateDefinition,
    TemplateField,
    TemplateMetadata,
    TemplateRegistry,
    ValidationResult,
)

__all__ = [
    # Placeholders
    "PlaceholderEngine",
    "DEFAULT_LABELS",
    "KNOWN_PLACEHOLDERS",
    "context_from_organization",
    "find_placeholders",
    # Markdown
    "MarkdownRenderer",
    "RegexMarkdownRenderer",
    "heading_anchor",
    "table_of_contents",
    # Templates
    "TemplateRegistry",
    "TemplateDefinition",
    "TemplateField",
    "TemplateMetadata",
    "ValidationResult",
]
