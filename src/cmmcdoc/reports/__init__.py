"""
Document generation and export.

This module assembles the compliance documents derived from an
assessment and exports them for auditors, program managers and tooling.

Documents:
    - SSP: System Security Plan with summary, sections, per-control
           implementation entries and appendices.
    - POAM: Plan of Actions and Milestones for every unmet control.
    - RACI: Role x control responsibility matrix with workload analysis.

Supported Formats:
    - Markdown: Documentation-friendly format.
    - HTML: Standalone browser-viewable pages.
    - PDF: HTML placeholder blob, or real PDF bytes with weasyprint.
    - DOCX: Plain-text placeholder blob.
    - CSV: Milestone rows (POAM) and matrix rows (RACI).
    - JSON: Machine-readable exports with metadata and schemas.

Example:
    from cmmcdoc.reports import DocumentAssembler, ExportFormat, ExportOptions

    assembler = DocumentAssembler()
    ssp = assembler.generate_ssp(assessment, org_info)
    page = assembler.export(ssp, ExportOptions(format=ExportFormat.HTML))
    filename = assembler.filename_for(ssp, ExportFormat.HTML)
"""

from cmmcdoc.reports.assembler import SUPPORTED_FORMATS, DocumentAssembler
from cmmcdoc.reports.document_exporter import (
    WEASYPRINT_AVAILABLE,
    DocumentExporter,
    DocumentMetadata,
    ExportBlob,
    ExportFormat,
    ExportOptions,
    export_filename,
    format_csv,
    parse_format,
)
from cmmcdoc.reports.json_exporter import (
    ExportMetadata,
    ExportResult,
    JsonExporter,
)
from cmmcdoc.reports.poam_generator import POAMDocument, POAMGenerator
from cmmcdoc.reports.raci_generator import RACIDocument, RACIGenerator, RACIOptions
from cmmcdoc.reports.ssp_generator import (
    RiskLevel,
    SSPAppendix,
    SSPControl,
    SSPDocument,
    SSPGenerator,
    SSPSection,
    SSPSummary,
)

__all__ = [
    # Assembler
    "DocumentAssembler",
    "SUPPORTED_FORMATS",
    # SSP
    "SSPGenerator",
    "SSPDocument",
    "SSPSection",
    "SSPControl",
    "SSPAppendix",
    "SSPSummary",
    "RiskLevel",
    # POAM
    "POAMGenerator",
    "POAMDocument",
    # RACI
    "RACIGenerator",
    "RACIDocument",
    "RACIOptions",
    # Document Exporter
    "DocumentExporter",
    "DocumentMetadata",
    "ExportBlob",
    "ExportFormat",
    "ExportOptions",
    "export_filename",
    "format_csv",
    "parse_format",
    "WEASYPRINT_AVAILABLE",
    # JSON Exporter
    "JsonExporter",
    "ExportMetadata",
    "ExportResult",
]
