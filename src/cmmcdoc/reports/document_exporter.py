"""
Markdown document export to Markdown, HTML, PDF and DOCX.

Every format funnels through the markdown renderer:
    - markdown: optional metadata header, table of contents and watermark
      around the source text
    - html: standalone HTML page with the rendered body
    - pdf: the HTML page as a text/html blob. Real PDF bytes are produced
      only when render_pdf is enabled and weasyprint is installed.
    - docx: the source text as a text/plain blob

PDF and DOCX blobs are placeholders, not byte-format compliant files.

Requires weasyprint optional dependency for real PDF output.
"""

from __future__ import annotations

import csv
import html
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from cmmcdoc.errors import UnsupportedFormatError
from cmmcdoc.rendering.markdown import (
    MarkdownRenderer,
    RegexMarkdownRenderer,
    table_of_contents,
)

logger = logging.getLogger(__name__)

# Check for weasyprint availability
try:
    from weasyprint import CSS, HTML
    WEASYPRINT_AVAILABLE = True
except ImportError:
    WEASYPRINT_AVAILABLE = False
    logger.debug("weasyprint not installed - PDF rendering unavailable")


class ExportFormat(str, Enum):
    """Output format of an export."""

    MARKDOWN = "markdown"
    HTML = "html"
    PDF = "pdf"
    DOCX = "docx"
    CSV = "csv"
    JSON = "json"


FILE_EXTENSIONS: dict[ExportFormat, str] = {
    ExportFormat.MARKDOWN: "md",
    ExportFormat.HTML: "html",
    ExportFormat.PDF: "pdf",
    ExportFormat.DOCX: "docx",
    ExportFormat.CSV: "csv",
    ExportFormat.JSON: "json",
}

TEXT_FORMATS = (ExportFormat.MARKDOWN, ExportFormat.HTML, ExportFormat.PDF, ExportFormat.DOCX)


# CSS styles for exported documents (monochrome, professional)
DOCUMENT_CSS = """
@page {
    size: letter;
    margin: 1in;
}

body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
    font-size: 11pt;
    line-height: 1.5;
    color: #000000;
    background: #ffffff;
    max-width: 8.5in;
    margin: 0 auto;
    padding: 0.5in;
}

h1 {
    font-size: 22pt;
    font-weight: 600;
    border-bottom: 2px solid #000000;
    padding-bottom: 0.25em;
}

h2 {
    font-size: 16pt;
    font-weight: 600;
    border-bottom: 1px solid #cccccc;
    padding-bottom: 0.2em;
    margin-top: 1.5em;
}

h3 {
    font-size: 13pt;
    font-weight: 600;
    margin-top: 1.2em;
}

table {
    width: 100%;
    border-collapse: collapse;
    margin: 0.5em 0;
}

th, td {
    border: 1px solid #cccccc;
    padding: 6px 8px;
    text-align: left;
    vertical-align: top;
}

th {
    background: #f0f0f0;
    font-weight: 600;
}

pre {
    background: #f5f5f5;
    border: 1px solid #dddddd;
    padding: 0.75em;
    overflow-x: auto;
}

code {
    font-family: "SF Mono", Menlo, Consolas, monospace;
    font-size: 10pt;
}

blockquote {
    border-left: 3px solid #999999;
    margin-left: 0;
    padding-left: 1em;
    color: #333333;
}

.document-metadata {
    border-bottom: 1px solid #cccccc;
    margin-bottom: 1.5em;
    padding-bottom: 1em;
}

.metadata-item {
    margin: 0.2em 0;
}

.table-of-contents {
    background: #fafafa;
    border: 1px solid #e0e0e0;
    padding: 0.5em 1em;
    margin-bottom: 1.5em;
}

.raci-grid td, .raci-grid th {
    text-align: center;
}

.raci-r { font-weight: 700; background: #e0e0e0; }
.raci-a { font-weight: 700; background: #c8c8c8; }
.raci-c { background: #f0f0f0; }
.raci-i { color: #555555; }

.watermark {
    position: fixed;
    bottom: 0.5in;
    right: 0.5in;
    color: #999999;
    font-size: 9pt;
    font-style: italic;
}

.page-numbers:after {
    content: counter(page);
}

@media print {
    .watermark, .page-numbers {
        position: fixed;
    }
}
"""


@dataclass
class ExportOptions:
    """
    Options controlling an export.

    Attributes:
        format: Target format.
        include_metadata: Prepend the metadata block.
        include_table_of_contents: Prepend a table of contents.
        include_page_numbers: Add a page-number element (HTML/PDF).
        watermark: Optional watermark text.
    """

    format: ExportFormat = ExportFormat.HTML
    include_metadata: bool = False
    include_table_of_contents: bool = False
    include_page_numbers: bool = False
    watermark: str | None = None


@dataclass
class DocumentMetadata:
    """
    Descriptive metadata shown in exported documents.

    Attributes:
        title: Document title.
        author: Author or contact.
        organization: Organization name.
        version: Document version.
        generated: Generation timestamp.
        template: Name of the template or generator used.
    """

    title: str
    author: str = "Document Author"
    organization: str = "Organization"
    version: str = "1.0"
    generated: datetime = field(default_factory=lambda: datetime.now(UTC))
    template: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "author": self.author,
            "organization": self.organization,
            "version": self.version,
            "generated": self.generated.isoformat(),
            "template": self.template,
        }


@dataclass(frozen=True)
class ExportBlob:
    """
    Binary export payload.

    Attributes:
        data: Encoded content.
        content_type: MIME type of data.
    """

    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


def parse_format(value: str | ExportFormat) -> ExportFormat:
    """
    Parse an export format name.

    Raises:
        UnsupportedFormatError: If the name is unknown.
    """
    if isinstance(value, ExportFormat):
        return value
    normalized = value.strip().lower()
    if normalized == "md":
        normalized = ExportFormat.MARKDOWN.value
    try:
        return ExportFormat(normalized)
    except ValueError as e:
        raise UnsupportedFormatError(value, [f.value for f in ExportFormat]) from e


def export_filename(
    doc_type: str,
    system_name: str,
    extension: str,
    on: date | datetime | None = None,
) -> str:
    """
    Download filename for a document.

    Pattern: <TYPE>-<systemName>-<YYYY-MM-DD>.<ext>. Path separators in
    the system name are replaced with "-".

    Args:
        doc_type: Document type (e.g., "SSP").
        system_name: System name as entered.
        extension: File extension without the dot.
        on: Date stamp. Defaults to today (UTC).
    """
    if on is None:
        on = datetime.now(UTC)
    if isinstance(on, datetime):
        on = on.date()
    safe_name = re.sub(r"[\\/]", "-", system_name) or "system"
    return f"{doc_type.upper()}-{safe_name}-{on.isoformat()}.{extension.lstrip('.')}"


def format_csv(headers: list[str], rows: list[list[Any]]) -> str:
    """
    Format rows as CSV text.

    Args:
        headers: Column headers.
        rows: Row values, one list per row.

    Returns:
        CSV formatted string.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def html_page(title: str, body: str, extra_css: str = "") -> str:
    """Wrap an HTML body fragment in a standalone page."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <style>{DOCUMENT_CSS}{extra_css}</style>
</head>
<body>
{body}
</body>
</html>"""


class DocumentExporter:
    """
    Exports markdown documents to the supported formats.

    Example:
        exporter = DocumentExporter()
        metadata = DocumentMetadata(title="Access Control Policy")
        page = exporter.export(markdown, metadata, ExportOptions(format=ExportFormat.HTML))

        blob = exporter.export(markdown, metadata, ExportOptions(format=ExportFormat.PDF))
        print(blob.content_type)

    Attributes:
        renderer: Markdown renderer used for HTML output.
        render_pdf: Produce real PDF bytes when weasyprint is available.
        date_format: strftime format for the generated date.
    """

    def __init__(
        self,
        renderer: MarkdownRenderer | None = None,
        render_pdf: bool = False,
        date_format: str = "%B %d, %Y",
    ) -> None:
        self.renderer = renderer or RegexMarkdownRenderer()
        self.render_pdf = render_pdf
        self.date_format = date_format

    @property
    def pdf_available(self) -> bool:
        """Check if real PDF rendering is available."""
        return WEASYPRINT_AVAILABLE

    def export(
        self,
        content: str,
        metadata: DocumentMetadata,
        options: ExportOptions | None = None,
    ) -> str | ExportBlob:
        """
        Export markdown content.

        Args:
            content: Markdown source.
            metadata: Document metadata.
            options: Export options. Defaults to plain HTML.

        Returns:
            A string for markdown and html, an ExportBlob for pdf and docx.

        Raises:
            UnsupportedFormatError: For formats other than the four above.
        """
        options = options or ExportOptions()
        export_format = parse_format(options.format)

        if export_format == ExportFormat.MARKDOWN:
            return self.to_markdown(content, metadata, options)
        if export_format == ExportFormat.HTML:
            return self.to_html(content, metadata, options)
        if export_format == ExportFormat.PDF:
            return self.to_pdf(self.to_html(content, metadata, options))
        if export_format == ExportFormat.DOCX:
            return self.to_docx(content)
        raise UnsupportedFormatError(export_format.value, [f.value for f in TEXT_FORMATS])

    def to_markdown(
        self,
        content: str,
        metadata: DocumentMetadata,
        options: ExportOptions,
    ) -> str:
        """Markdown with optional metadata header, TOC and watermark."""
        parts = []
        if options.include_metadata:
            parts.append(
                f"# {metadata.title}\n\n"
                f"**Author:** {metadata.author}\n"
                f"**Organization:** {metadata.organization}\n"
                f"**Version:** {metadata.version}\n"
                f"**Generated:** {metadata.generated.strftime(self.date_format)}\n"
                f"**Template:** {metadata.template}\n\n"
                "---\n\n"
            )
        if options.include_table_of_contents:
            parts.append(table_of_contents(content) + "\n\n")
        parts.append(content)
        if options.watermark:
            parts.append(f"\n\n---\n*{options.watermark}*\n")
        return "".join(parts)

    def _metadata_html(self, metadata: DocumentMetadata) -> str:
        items = [
            ("Author", metadata.author),
            ("Organization", metadata.organization),
            ("Version", metadata.version),
            ("Generated", metadata.generated.strftime(self.date_format)),
            ("Template", metadata.template),
        ]
        rows = "\n".join(
            f'        <div class="metadata-item"><strong>{label}:</strong> '
            f"{html.escape(value)}</div>"
            for label, value in items
        )
        return f"""<div class="document-metadata">
    <h1>{html.escape(metadata.title)}</h1>
    <div class="metadata-grid">
{rows}
    </div>
</div>"""

    def to_html(
        self,
        content: str,
        metadata: DocumentMetadata,
        options: ExportOptions,
        extra_body: str = "",
    ) -> str:
        """
        Standalone HTML page for markdown content.

        Args:
            content: Markdown source.
            metadata: Document metadata.
            options: Export options.
            extra_body: Pre-rendered HTML appended after the content.
        """
        body = []
        if options.include_metadata:
            body.append(self._metadata_html(metadata))
        if options.include_table_of_contents:
            toc = table_of_contents(content)
            if toc:
                body.append(
                    f'<div class="table-of-contents">\n{self.renderer.render(toc)}\n</div>'
                )
        body.append(f'<div class="content">\n{self.renderer.render(content)}\n{extra_body}</div>')
        if options.watermark:
            body.append(f'<div class="watermark">{html.escape(options.watermark)}</div>')
        if options.include_page_numbers:
            body.append('<div class="page-numbers"></div>')
        return html_page(metadata.title, "\n".join(body))

    def to_pdf(self, page: str) -> ExportBlob:
        """
        PDF export of an HTML page.

        Without render_pdf, or without weasyprint, the HTML itself is
        returned as a text/html placeholder blob.
        """
        if self.render_pdf:
            if WEASYPRINT_AVAILABLE:
                pdf_bytes = HTML(string=page).write_pdf(stylesheets=[CSS(string=DOCUMENT_CSS)])
                logger.info("Rendered PDF (%d bytes)", len(pdf_bytes))
                return ExportBlob(data=pdf_bytes, content_type="application/pdf")
            logger.warning(
                "weasyprint not installed - PDF export falls back to HTML. "
                "Install with: pip install weasyprint"
            )
        return ExportBlob(data=page.encode("utf-8"), content_type="text/html")

    def to_docx(self, content: str) -> ExportBlob:
        """DOCX placeholder: the markdown source as text/plain."""
        return ExportBlob(data=content.encode("utf-8"), content_type="text/plain")
