"""
JSON export functionality for generated documents.

This module exports SSP, POAM and RACI documents in machine-readable
JSON format. All exports include metadata for traceability.

Export Types:
    - ssp: Summary, sections, controls and appendices
    - poam: Milestones and summary
    - raci: Roles, controls, matrix and summary

Every export embeds the JSON schema of its document type.
"""

from __future__ import annotations

import gzip
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


# JSON Schema definitions for export validation
SSP_EXPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CMMC System Security Plan Export",
    "type": "object",
    "required": ["metadata", "document"],
    "properties": {
        "metadata": {
            "type": "object",
            "required": ["export_type", "timestamp", "version"],
        },
        "document": {
            "type": "object",
            "required": ["summary", "sections", "controls", "appendices"],
        },
    },
}

POAM_EXPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CMMC Plan of Actions and Milestones Export",
    "type": "object",
    "required": ["metadata", "document"],
    "properties": {
        "metadata": {"type": "object"},
        "document": {
            "type": "object",
            "required": ["milestones", "summary"],
        },
    },
}

RACI_EXPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CMMC RACI Matrix Export",
    "type": "object",
    "required": ["metadata", "document"],
    "properties": {
        "metadata": {"type": "object"},
        "document": {
            "type": "object",
            "required": ["roles", "controls", "matrix", "summary"],
        },
    },
}

SCHEMAS: dict[str, dict[str, Any]] = {
    "ssp": SSP_EXPORT_SCHEMA,
    "poam": POAM_EXPORT_SCHEMA,
    "raci": RACI_EXPORT_SCHEMA,
}


class ExportableDocument(Protocol):
    """A generated document that can be serialized."""

    doc_type: str

    def to_dict(self) -> dict[str, Any]: ...


@dataclass
class ExportMetadata:
    """
    Metadata included in all exports.

    Attributes:
        export_type: Type of export (ssp, poam, raci).
        timestamp: When the export was created.
        version: cmmcdoc version that created the export.
        organization: Organization name.
        document_id: Identifier of the exported document.
    """

    export_type: str
    timestamp: datetime
    version: str
    organization: str | None = None
    document_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "export_type": self.export_type,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "organization": self.organization,
            "document_id": self.document_id,
            "format_version": "1.0",
        }


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        success: Whether the export completed successfully.
        path: Path to the exported file.
        size_bytes: Size of the exported file in bytes.
        record_count: Number of records exported.
        export_type: Type of export performed.
        compressed: Whether the file is compressed.
        error: Error message if export failed.
    """

    success: bool
    path: Path | None
    size_bytes: int
    record_count: int
    export_type: str
    compressed: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "path": str(self.path) if self.path else None,
            "size_bytes": self.size_bytes,
            "record_count": self.record_count,
            "export_type": self.export_type,
            "compressed": self.compressed,
            "error": self.error,
        }


def _record_count(data: dict[str, Any]) -> int:
    if "milestones" in data:
        return len(data["milestones"])
    if "matrix" in data:
        return sum(len(row) for row in data["matrix"])
    return len(data.get("controls", []))


class JsonExporter:
    """
    Exporter for JSON format documents.

    Example:
        exporter = JsonExporter(version="0.1.0", organization="Acme Corp")

        # Serialize in memory
        text = exporter.to_json(poam)

        # Write to a file
        result = exporter.export(poam, Path("./exports"), compress=True)

    Attributes:
        version: cmmcdoc version string.
        organization: Organization name for metadata.
    """

    def __init__(
        self,
        version: str = "0.1.0",
        organization: str | None = None,
    ) -> None:
        """
        Initialize the JSON exporter.

        Args:
            version: cmmcdoc version string for metadata.
            organization: Organization name for metadata. Falls back to
                the document's organization.
        """
        self.version = version
        self.organization = organization

    def build(self, document: ExportableDocument) -> dict[str, Any]:
        """Export payload for a document: metadata, document and schema."""
        export_type = document.doc_type.lower()
        data = document.to_dict()
        metadata = ExportMetadata(
            export_type=export_type,
            timestamp=datetime.now(UTC),
            version=self.version,
            organization=self.organization or data.get("organization"),
            document_id=data.get("id"),
        )
        return {
            "metadata": metadata.to_dict(),
            "document": data,
            "schema": self.get_schema(export_type),
        }

    def to_json(self, document: ExportableDocument) -> str:
        """Serialize a document to a JSON string."""
        return json.dumps(self.build(document), indent=2, default=str)

    def export(
        self,
        document: ExportableDocument,
        output_dir: Path,
        compress: bool = False,
    ) -> ExportResult:
        """
        Export a document to a JSON file.

        Args:
            document: Generated SSP, POAM or RACI document.
            output_dir: Directory to write export file.
            compress: Whether to gzip compress the output.

        Returns:
            ExportResult with export details.
        """
        export_type = document.doc_type.lower()
        try:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)

            export_data = self.build(document)
            filename = self._generate_filename(export_type, compress)
            filepath = output_dir / filename

            size_bytes = self._write_json(export_data, filepath, compress)

            logger.info("Exported %s to %s (%d bytes)", export_type, filepath, size_bytes)

            return ExportResult(
                success=True,
                path=filepath,
                size_bytes=size_bytes,
                record_count=_record_count(export_data["document"]),
                export_type=export_type,
                compressed=compress,
            )

        except OSError as e:
            logger.error("Failed to export %s: %s", export_type, e)
            return ExportResult(
                success=False,
                path=None,
                size_bytes=0,
                record_count=0,
                export_type=export_type,
                compressed=compress,
                error=str(e),
            )

    def _generate_filename(self, export_type: str, compress: bool) -> str:
        """Generate filename with timestamp."""
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        extension = ".json.gz" if compress else ".json"
        return f"{timestamp}_{export_type}_export{extension}"

    def _write_json(
        self,
        data: dict[str, Any],
        filepath: Path,
        compress: bool,
    ) -> int:
        """
        Write JSON data to file.

        Args:
            data: Data to write.
            filepath: Path to output file.
            compress: Whether to gzip compress.

        Returns:
            Size of written file in bytes.
        """
        json_content = json.dumps(data, indent=2, default=str)

        if compress:
            with gzip.open(filepath, "wt", encoding="utf-8") as f:
                f.write(json_content)
        else:
            with open(filepath, "w", encoding="utf-8") as f:
                f.write(json_content)

        return filepath.stat().st_size

    def get_schema(self, export_type: str) -> dict[str, Any]:
        """
        Get JSON schema for an export type.

        Args:
            export_type: Type of export (ssp, poam, raci).

        Returns:
            JSON schema dictionary, empty for unknown types.
        """
        return SCHEMAS.get(export_type, {})
