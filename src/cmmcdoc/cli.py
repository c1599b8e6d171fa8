"""
Command-line interface for cmmcdoc.

Provides commands for generating SSP, POAM and RACI documents from an
assessment file, working with document templates, rendering markdown
and inspecting the control catalog.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import yaml

from cmmcdoc import __version__
from cmmcdoc.analysis.raci_engine import MergePrecedence
from cmmcdoc.assessment.models import AssessmentData, OrganizationInfo, load_assessment
from cmmcdoc.catalog.cmmc_controls import Catalog, get_default_catalog
from cmmcdoc.catalog.loader import load_catalog
from cmmcdoc.config.settings import (
    DEFAULT_CONFIG_FILE,
    ConfigurationError,
    Settings,
    load_config,
)
from cmmcdoc.errors import AssessmentError, CmmcdocError
from cmmcdoc.reports.assembler import SUPPORTED_FORMATS, DocumentAssembler
from cmmcdoc.reports.document_exporter import (
    DocumentMetadata,
    ExportBlob,
    ExportFormat,
    ExportOptions,
)
from cmmcdoc.reports.raci_generator import RACIOptions

# Set up logging
logger = logging.getLogger(__name__)

# Global verbosity settings (set during main() based on args)
_quiet_mode = False
_verbose_level = 0


def set_output_mode(quiet: bool = False, verbose: int = 0) -> None:
    """
    Set the output mode for the CLI.

    Args:
        quiet: If True, suppress non-essential output.
        verbose: Verbosity level (0=normal, 1+=verbose).
    """
    global _quiet_mode, _verbose_level
    _quiet_mode = quiet
    _verbose_level = verbose


def output(message: str = "", force: bool = False) -> None:
    """
    Print a message to stdout, respecting quiet mode.

    Args:
        message: The message to print.
        force: If True, print even in quiet mode (for document output).
    """
    if force or not _quiet_mode:
        print(message)


def output_error(message: str) -> None:
    """
    Print an error message (always shown, even in quiet mode).

    Args:
        message: The error message to print.
    """
    print(message, file=sys.stderr)


def parse_assignment(value: str) -> tuple[str, str]:
    """Parse a KEY=VALUE command-line assignment."""
    key, sep, item = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key.strip(), item


def _add_export_arguments(parser: argparse.ArgumentParser, formats: list[str]) -> None:
    parser.add_argument(
        "--format",
        choices=formats,
        default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        help="Output file or directory (default: stdout)",
    )
    parser.add_argument(
        "--toc",
        action="store_true",
        help="Include a table of contents",
    )
    parser.add_argument(
        "--metadata",
        action="store_true",
        help="Include a document metadata header",
    )
    parser.add_argument(
        "--page-numbers",
        action="store_true",
        help="Add page numbers (HTML/PDF)",
    )
    parser.add_argument(
        "--watermark",
        metavar="TEXT",
        help="Watermark text",
    )


def _add_document_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--org",
        metavar="PATH",
        help="Organization file (YAML or JSON); overrides the assessment's organization",
    )
    parser.add_argument(
        "--catalog",
        metavar="PATH",
        help="Control catalog file (default: built-in CMMC 2.0 Level 1)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for cmmcdoc CLI."""
    parser = argparse.ArgumentParser(
        prog="cmmcdoc",
        description="CMMC compliance document generator (SSP, POAM, RACI)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"cmmcdoc {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help=f"Override config file location (default: {DEFAULT_CONFIG_FILE})",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (can be repeated)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    # ssp command
    ssp_parser = subparsers.add_parser(
        "ssp",
        help="Generate a System Security Plan",
        description="Generate a System Security Plan from an assessment file.",
    )
    ssp_parser.add_argument("assessment", metavar="ASSESSMENT", help="Assessment file")
    _add_document_arguments(ssp_parser)
    _add_export_arguments(ssp_parser, [f.value for f in SUPPORTED_FORMATS["SSP"]])
    ssp_parser.set_defaults(func=cmd_ssp)

    # poam command
    poam_parser = subparsers.add_parser(
        "poam",
        help="Generate a Plan of Actions and Milestones",
        description="Generate a POAM for every control that is not fully implemented.",
    )
    poam_parser.add_argument("assessment", metavar="ASSESSMENT", help="Assessment file")
    _add_document_arguments(poam_parser)
    _add_export_arguments(poam_parser, [f.value for f in SUPPORTED_FORMATS["POAM"]])
    poam_parser.set_defaults(func=cmd_poam)

    # raci command
    raci_parser = subparsers.add_parser(
        "raci",
        help="Generate a RACI matrix",
        description="Assign RACI responsibilities for every role and control.",
    )
    raci_parser.add_argument(
        "--assessment",
        metavar="PATH",
        help="Assessment file; sets the reported status of each control",
    )
    _add_document_arguments(raci_parser)
    raci_parser.add_argument(
        "--default-roles",
        action="store_true",
        default=None,
        help="Merge the built-in role set with the organization's roles",
    )
    raci_parser.add_argument(
        "--precedence",
        choices=[p.value for p in MergePrecedence],
        help="Which side wins when role ids collide (default: from config)",
    )
    _add_export_arguments(raci_parser, [f.value for f in SUPPORTED_FORMATS["RACI"]])
    raci_parser.set_defaults(func=cmd_raci)

    # templates command
    templates_parser = subparsers.add_parser(
        "templates",
        help="List, show, customize and validate document templates",
        description="Work with the built-in policy and plan templates.",
    )
    templates_sub = templates_parser.add_subparsers(
        title="template commands",
        dest="template_command",
        metavar="<action>",
    )

    list_parser = templates_sub.add_parser("list", help="List templates")
    list_parser.add_argument("--category", help="Filter by category")
    list_parser.add_argument("--control", help="Filter by control id")
    list_parser.add_argument("--tag", help="Filter by tag")
    list_parser.add_argument("--search", metavar="QUERY", help="Search text")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=cmd_templates_list)

    show_parser = templates_sub.add_parser("show", help="Show a template")
    show_parser.add_argument("template_id", metavar="TEMPLATE", help="Template id")
    show_parser.add_argument(
        "--preview",
        action="store_true",
        help="Show a plain-text preview instead of the full body",
    )
    show_parser.set_defaults(func=cmd_templates_show)

    for name, func, help_text in (
        ("customize", cmd_templates_customize, "Fill a template with values"),
        ("validate", cmd_templates_validate, "Check required template fields"),
    ):
        action_parser = templates_sub.add_parser(name, help=help_text)
        action_parser.add_argument("template_id", metavar="TEMPLATE", help="Template id")
        action_parser.add_argument(
            "--set",
            dest="values",
            action="append",
            type=parse_assignment,
            default=[],
            metavar="KEY=VALUE",
            help="Placeholder value (can be repeated)",
        )
        action_parser.add_argument(
            "--data",
            metavar="PATH",
            help="YAML or JSON file with placeholder values",
        )
        if name == "customize":
            _add_export_arguments(
                action_parser, [f.value for f in SUPPORTED_FORMATS["SSP"] if f != ExportFormat.JSON]
            )
        action_parser.set_defaults(func=func)

    templates_parser.set_defaults(func=cmd_templates_help, templates_parser=templates_parser)

    # render command
    render_parser = subparsers.add_parser(
        "render",
        help="Render a markdown file to HTML",
        description="Convert a markdown file to a standalone HTML page.",
    )
    render_parser.add_argument("input", metavar="INPUT", help="Markdown file")
    render_parser.add_argument("--title", help="Page title (default: file name)")
    render_parser.add_argument("--output", metavar="PATH", help="Output file (default: stdout)")
    render_parser.add_argument("--toc", action="store_true", help="Include a table of contents")
    render_parser.set_defaults(func=cmd_render)

    # catalog command
    catalog_parser = subparsers.add_parser(
        "catalog",
        help="Show control catalog statistics",
        description="Display domains, controls and priority counts of a catalog.",
    )
    catalog_parser.add_argument(
        "--catalog",
        metavar="PATH",
        help="Control catalog file (default: built-in CMMC 2.0 Level 1)",
    )
    catalog_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    catalog_parser.set_defaults(func=cmd_catalog)

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# =============================================================================
# Helpers
# =============================================================================


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config) if args.config else None
    settings = load_config(config_path)
    # Command-line verbosity flags win over the configured level
    if args.verbose == 0 and not args.quiet:
        logging.getLogger().setLevel(settings.log_level)
    return settings


def _load_catalog(args: argparse.Namespace) -> Catalog:
    path = getattr(args, "catalog", None)
    if path:
        return load_catalog(Path(path))
    return get_default_catalog()


def _read_data_file(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON mapping."""
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise AssessmentError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise AssessmentError(f"{path} must contain a mapping")
    return data


def _resolve_organization(
    args: argparse.Namespace,
    settings: Settings,
    assessment: AssessmentData | None,
) -> OrganizationInfo:
    """Organization file, then the assessment's organization, then config."""
    if args.org:
        return OrganizationInfo.from_dict(_read_data_file(Path(args.org)))
    if assessment is not None and assessment.organization is not None:
        return assessment.organization
    return settings.organization.to_organization_info()


def _export_options(args: argparse.Namespace) -> ExportOptions:
    return ExportOptions(
        format=ExportFormat(args.format),
        include_metadata=args.metadata,
        include_table_of_contents=args.toc,
        include_page_numbers=args.page_numbers,
        watermark=args.watermark,
    )


def _write_result(result: str | ExportBlob, target: Path | None) -> int:
    """Write an export to a file, or to stdout when no target is given."""
    if target is None:
        if isinstance(result, ExportBlob):
            if result.content_type == "application/pdf":
                output_error("Binary PDF output requires --output")
                return 1
            output(result.data.decode("utf-8"), force=True)
        else:
            output(result, force=True)
        return 0

    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(result, ExportBlob):
        target.write_bytes(result.data)
    else:
        target.write_text(result, encoding="utf-8")
    output(f"Wrote {target}")
    return 0


def _output_target(args: argparse.Namespace, default_name: str) -> Path | None:
    if not args.output:
        return None
    path = Path(args.output)
    if path.is_dir():
        return path / default_name
    return path


def _export_document(
    assembler: DocumentAssembler,
    document: Any,
    args: argparse.Namespace,
) -> int:
    options = _export_options(args)
    result = assembler.export(document, options)
    target = _output_target(args, assembler.filename_for(document, options.format))
    return _write_result(result, target)


# =============================================================================
# Document commands
# =============================================================================


def cmd_ssp(args: argparse.Namespace) -> int:
    """Generate a System Security Plan."""
    settings = _load_settings(args)
    assessment = load_assessment(Path(args.assessment))
    org_info = _resolve_organization(args, settings, assessment)

    assembler = DocumentAssembler.from_settings(settings, catalog=_load_catalog(args))
    ssp = assembler.generate_ssp(assessment, org_info)

    if args.output:
        summary = ssp.summary
        output(
            f"SSP: {summary.implemented_controls}/{summary.total_controls} controls "
            f"implemented ({summary.compliance_level:.1f}%), "
            f"risk level {summary.risk_level.value}"
        )
    return _export_document(assembler, ssp, args)


def cmd_poam(args: argparse.Namespace) -> int:
    """Generate a Plan of Actions and Milestones."""
    settings = _load_settings(args)
    assessment = load_assessment(Path(args.assessment))
    org_info = _resolve_organization(args, settings, assessment)

    assembler = DocumentAssembler.from_settings(settings, catalog=_load_catalog(args))
    poam = assembler.generate_poam(assessment, org_info)

    if args.output:
        summary = poam.summary
        output(
            f"POAM: {summary.total_milestones} milestones, "
            f"estimated cost ${summary.estimated_total_cost:,}, "
            f"longest milestone {summary.estimated_total_duration} days"
        )
    return _export_document(assembler, poam, args)


def cmd_raci(args: argparse.Namespace) -> int:
    """Generate a RACI matrix."""
    settings = _load_settings(args)
    assessment = load_assessment(Path(args.assessment)) if args.assessment else None
    org_info = _resolve_organization(args, settings, assessment)

    include_defaults = (
        args.default_roles
        if args.default_roles is not None
        else settings.raci.include_default_roles
    )
    precedence = MergePrecedence(args.precedence or settings.raci.merge_precedence)

    assembler = DocumentAssembler.from_settings(settings, catalog=_load_catalog(args))
    raci = assembler.generate_raci(
        org_info,
        assessment,
        RACIOptions(include_default_roles=include_defaults, merge_precedence=precedence),
    )

    if not raci.roles:
        output_error(
            "Warning: no roles defined. Add roles to the organization file "
            "or pass --default-roles."
        )
    if args.output:
        output(
            f"RACI: {raci.summary.total_roles} roles x {raci.summary.total_controls} "
            f"controls, {raci.summary.total_assignments} assignments"
        )
    return _export_document(assembler, raci, args)


# =============================================================================
# Template commands
# =============================================================================


def cmd_templates_help(args: argparse.Namespace) -> int:
    """Show help for the templates command."""
    args.templates_parser.print_help()
    return 0


def _template_values(args: argparse.Namespace) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if args.data:
        values.update(_read_data_file(Path(args.data)))
    values.update(dict(args.values))
    return values


def cmd_templates_list(args: argparse.Namespace) -> int:
    """List templates, optionally filtered."""
    registry = DocumentAssembler.from_settings(_load_settings(args)).templates

    templates = registry.list()
    if args.category:
        templates = [t for t in templates if t in registry.by_category(args.category)]
    if args.control:
        templates = [t for t in templates if t in registry.by_control(args.control)]
    if args.tag:
        templates = [t for t in templates if t in registry.by_tag(args.tag)]
    if args.search:
        templates = [t for t in templates if t in registry.search(args.search)]

    if args.json:
        output(
            json.dumps([t.to_dict(include_content=False) for t in templates], indent=2),
            force=True,
        )
        return 0

    if not templates:
        output("No templates match.")
        return 0

    output(f"{'ID':<28} {'Category':<12} {'Name'}")
    output("-" * 72)
    for template in templates:
        output(f"{template.id:<28} {template.category:<12} {template.name}", force=True)
    return 0


def cmd_templates_show(args: argparse.Namespace) -> int:
    """Show a template body and its fields."""
    registry = DocumentAssembler.from_settings(_load_settings(args)).templates
    template = registry.require(args.template_id)

    output(f"{template.name} ({template.id})")
    output(template.description)
    output()
    for group, fields in template.fields.items():
        output(f"{group}:")
        for field_id, template_field in fields.items():
            marker = " (required)" if template_field.required else ""
            output(f"  {field_id}: {template_field.name}{marker}")
    output()
    if args.preview:
        output(registry.preview(template.id), force=True)
    else:
        output(template.content, force=True)
    return 0


def cmd_templates_customize(args: argparse.Namespace) -> int:
    """Customize a template and export it."""
    assembler = DocumentAssembler.from_settings(_load_settings(args))
    values = _template_values(args)

    validation = assembler.templates.validate_customization(args.template_id, values)
    for error in validation.errors:
        output_error(f"Warning: {error}")

    options = _export_options(args)
    result = assembler.generate_from_template(args.template_id, values, options)
    extension = "md" if options.format == ExportFormat.MARKDOWN else options.format.value
    return _write_result(result, _output_target(args, f"{args.template_id}.{extension}"))


def cmd_templates_validate(args: argparse.Namespace) -> int:
    """Validate template values; exits 1 when required fields are missing."""
    registry = DocumentAssembler.from_settings(_load_settings(args)).templates
    result = registry.validate_customization(args.template_id, _template_values(args))

    if result.valid:
        output("All required fields are present.")
        return 0
    for error in result.errors:
        output_error(error)
    return 1


# =============================================================================
# Utility commands
# =============================================================================


def cmd_render(args: argparse.Namespace) -> int:
    """Render a markdown file to HTML."""
    settings = _load_settings(args)
    path = Path(args.input)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        output_error(f"Cannot read {path}: {e}")
        return 1

    assembler = DocumentAssembler.from_settings(settings)
    options = ExportOptions(format=ExportFormat.HTML, include_table_of_contents=args.toc)
    page = assembler.exporter.export(
        content, DocumentMetadata(title=args.title or path.stem), options
    )
    return _write_result(page, Path(args.output) if args.output else None)


def cmd_catalog(args: argparse.Namespace) -> int:
    """Show control catalog statistics."""
    catalog = _load_catalog(args)
    stats = catalog.statistics()

    if args.json:
        result = {"id": catalog.id, "name": catalog.name, "statistics": stats}
        output(json.dumps(result, indent=2), force=True)
        return 0

    output()
    output(catalog.name)
    output("=" * 60)
    output()
    output(f"{'Domain':<40} {'Controls':>10}")
    output("-" * 60)
    for domain in catalog.domains():
        count = len(catalog.controls_in_domain(domain.name))
        output(f"{domain.display_name:<40} {count:>10}")
    output("-" * 60)
    output(f"{'Total':<40} {stats['controls']:>10}")
    output()
    return 0


def main() -> NoReturn:
    """Main entry point for cmmcdoc CLI."""
    parser = create_parser()
    args = parser.parse_args()

    # Set up logging and output mode
    setup_logging(args.verbose, args.quiet)
    set_output_mode(args.quiet, args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(130)
    except ConfigurationError as e:
        output_error(f"Configuration error: {e}")
        sys.exit(2)
    except CmmcdocError as e:
        output_error(f"Error: {e}")
        sys.exit(2)
    except Exception as e:
        if args.verbose > 0:
            raise
        output_error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
