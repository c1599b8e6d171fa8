"""
Document assembly and export.

DocumentAssembler is the single entry point that generates SSP, POAM and
RACI documents and exports them. Markdown, HTML, PDF and DOCX exports all
go through the markdown renderer; CSV and JSON are produced from the
document structure.

Supported formats per document type:
    - SSP: html, markdown, pdf, docx, json
    - POAM: html, markdown, pdf, docx, csv, json
    - RACI: html, markdown, pdf, docx, csv, json
    - template documents: html, markdown, pdf, docx
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from cmmcdoc import __version__
from cmmcdoc.analysis.milestone_planner import MilestonePlanner
from cmmcdoc.analysis.raci_engine import MergePrecedence, RACIEngine
from cmmcdoc.assessment.estimator import Estimator
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo
from cmmcdoc.catalog.cmmc_controls import Catalog, get_default_catalog
from cmmcdoc.config.settings import Settings
from cmmcdoc.errors import UnsupportedFormatError
from cmmcdoc.rendering.markdown import MarkdownRenderer
from cmmcdoc.rendering.placeholders import PlaceholderEngine
from cmmcdoc.rendering.templates import TemplateRegistry
from cmmcdoc.reports.document_exporter import (
    FILE_EXTENSIONS,
    TEXT_FORMATS,
    DocumentExporter,
    DocumentMetadata,
    ExportBlob,
    ExportFormat,
    ExportOptions,
    export_filename,
    parse_format,
)
from cmmcdoc.reports.json_exporter import JsonExporter
from cmmcdoc.reports.poam_generator import POAMDocument, POAMGenerator
from cmmcdoc.reports.raci_generator import RACIDocument, RACIGenerator, RACIOptions
from cmmcdoc.reports.ssp_generator import SSPDocument, SSPGenerator

logger = logging.getLogger(__name__)

GeneratedDocument = SSPDocument | POAMDocument | RACIDocument

SUPPORTED_FORMATS: dict[str, tuple[ExportFormat, ...]] = {
    "SSP": TEXT_FORMATS + (ExportFormat.JSON,),
    "POAM": TEXT_FORMATS + (ExportFormat.CSV, ExportFormat.JSON),
    "RACI": TEXT_FORMATS + (ExportFormat.CSV, ExportFormat.JSON),
}


class DocumentAssembler:
    """
    Generates and exports compliance documents.

    Example:
        assembler = DocumentAssembler.from_settings(load_config())
        poam = assembler.generate_poam(assessment, org_info)
        csv_text = assembler.export(poam, "csv")
        page = assembler.export(poam, ExportOptions(format=ExportFormat.HTML))

    Attributes:
        catalog: Control catalog used by every generator.
        engine: Placeholder engine for section and template text.
        exporter: Markdown exporter.
        templates: Template registry.
        raci_options: Default options for RACI generation.
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        estimator: Estimator | None = None,
        engine: PlaceholderEngine | None = None,
        renderer: MarkdownRenderer | None = None,
        render_pdf: bool = False,
        raci_options: RACIOptions | None = None,
        templates: TemplateRegistry | None = None,
    ) -> None:
        self.catalog = catalog or get_default_catalog()
        estimator = estimator or Estimator()
        self.engine = engine or PlaceholderEngine()
        self.exporter = DocumentExporter(
            renderer=renderer,
            render_pdf=render_pdf,
            date_format=self.engine.date_format,
        )
        self.templates = templates or TemplateRegistry(engine=self.engine)
        self.raci_options = raci_options or RACIOptions()

        self.ssp_generator = SSPGenerator(self.catalog, self.engine)
        self.poam_generator = POAMGenerator(
            self.catalog,
            MilestonePlanner(estimator),
            date_format=self.engine.date_format,
        )
        self.raci_generator = RACIGenerator(
            self.catalog,
            RACIEngine(estimator),
            date_format=self.engine.date_format,
        )
        self.json_exporter = JsonExporter(version=__version__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        catalog: Catalog | None = None,
    ) -> DocumentAssembler:
        """
        Build an assembler from configuration.

        Args:
            settings: Loaded settings.
            catalog: Control catalog. Defaults to the built-in catalog.
        """
        engine = PlaceholderEngine(
            date_format=settings.rendering.date_format,
            review_offset_days=settings.rendering.review_offset_days,
            strict=settings.rendering.strict_placeholders,
        )
        return cls(
            catalog=catalog,
            estimator=Estimator(settings.estimation.to_policy()),
            engine=engine,
            render_pdf=settings.export.render_pdf,
            raci_options=RACIOptions(
                include_default_roles=settings.raci.include_default_roles,
                merge_precedence=MergePrecedence(settings.raci.merge_precedence),
            ),
        )

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_ssp(
        self,
        assessment: AssessmentData,
        org_info: OrganizationInfo,
        now: datetime | None = None,
    ) -> SSPDocument:
        """Generate a System Security Plan."""
        return self.ssp_generator.generate(assessment, org_info, now=now)

    def generate_poam(
        self,
        assessment: AssessmentData,
        org_info: OrganizationInfo,
        now: datetime | None = None,
    ) -> POAMDocument:
        """Generate a Plan of Actions and Milestones."""
        return self.poam_generator.generate(assessment, org_info, now=now)

    def generate_raci(
        self,
        org_info: OrganizationInfo,
        assessment: AssessmentData | None = None,
        options: RACIOptions | None = None,
        now: datetime | None = None,
    ) -> RACIDocument:
        """Generate a RACI matrix. Uses the assembler's RACI options by default."""
        return self.raci_generator.generate(
            org_info, assessment, options or self.raci_options, now=now
        )

    # =========================================================================
    # Export
    # =========================================================================

    def to_markdown(self, document: GeneratedDocument) -> str:
        """Markdown body of a generated document."""
        if isinstance(document, SSPDocument):
            return self.ssp_generator.to_markdown(document)
        if isinstance(document, POAMDocument):
            return self.poam_generator.to_markdown(document)
        return self.raci_generator.to_markdown(document)

    def metadata_for(self, document: GeneratedDocument) -> DocumentMetadata:
        """Export metadata describing a generated document."""
        return DocumentMetadata(
            title=document.title,
            author=document.organization or "Document Author",
            organization=document.organization or "Organization",
            version=document.version,
            generated=document.generated_date,
            template=f"{document.doc_type} Generator",
        )

    def export(
        self,
        document: GeneratedDocument,
        options: ExportOptions | str | ExportFormat | None = None,
    ) -> str | ExportBlob:
        """
        Export a generated document.

        Args:
            document: SSP, POAM or RACI document.
            options: Export options, or just a format name.

        Returns:
            A string for markdown, html, csv and json; an ExportBlob for
            pdf and docx.

        Raises:
            UnsupportedFormatError: If the format is not supported for
                the document type.
        """
        if options is None:
            options = ExportOptions()
        elif not isinstance(options, ExportOptions):
            options = ExportOptions(format=parse_format(options))

        export_format = parse_format(options.format)
        supported = SUPPORTED_FORMATS[document.doc_type]
        if export_format not in supported:
            raise UnsupportedFormatError(export_format.value, [f.value for f in supported])

        logger.debug("Exporting %s %s as %s", document.doc_type, document.id, export_format.value)

        if export_format == ExportFormat.JSON:
            return self.json_exporter.to_json(document)
        if export_format == ExportFormat.CSV:
            if isinstance(document, POAMDocument):
                return self.poam_generator.to_csv(document)
            return self.raci_generator.to_csv(document)

        metadata = self.metadata_for(document)
        if isinstance(document, RACIDocument) and export_format in (
            ExportFormat.HTML,
            ExportFormat.PDF,
        ):
            page = self.exporter.to_html(
                self.raci_generator.to_markdown(document, include_matrix=False),
                metadata,
                options,
                extra_body=self.raci_generator.grid_html(document),
            )
            if export_format == ExportFormat.PDF:
                return self.exporter.to_pdf(page)
            return page

        return self.exporter.export(self.to_markdown(document), metadata, options)

    def filename_for(
        self,
        document: GeneratedDocument,
        export_format: str | ExportFormat,
    ) -> str:
        """Download filename, e.g. POAM-Payroll-2024-03-01.csv."""
        extension = FILE_EXTENSIONS[parse_format(export_format)]
        return export_filename(
            document.doc_type, document.system_name, extension, document.generated_date
        )

    # =========================================================================
    # Templates
    # =========================================================================

    def generate_from_template(
        self,
        template_id: str,
        data: dict[str, Any] | None = None,
        options: ExportOptions | None = None,
        now: datetime | None = None,
    ) -> str | ExportBlob:
        """
        Customize a template and export it.

        Args:
            template_id: Registered template id.
            data: Customization values (placeholder name -> value).
            options: Export options. Defaults to plain HTML.
            now: Date anchor for date placeholders.

        Returns:
            Exported document as returned by DocumentExporter.export().

        Raises:
            TemplateNotFoundError: If the template id is unknown.
            UnsupportedFormatError: For csv, json or unknown formats.
        """
        template = self.templates.require(template_id)
        data = data or {}
        content = self.templates.customize(template_id, data, now=now)

        organization = str(data.get("companyName") or "Organization")
        metadata = DocumentMetadata(
            title=template.name,
            author=str(data.get("ciso") or data.get("contact") or "Document Author"),
            organization=organization,
            version=template.metadata.version,
            template=template.name,
        )
        if now is not None:
            metadata.generated = now

        logger.info("Generated document from template %s", template_id)
        return self.exporter.export(content, metadata, options)
