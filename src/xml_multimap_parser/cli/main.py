"""Main CLI entry point for the xml-multimap command-line tool.

Provides ``parse`` and ``validate`` subcommands over one or more multimap
documents, with conversions and container kinds chosen on the command line
or loaded from a JSON configuration file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_multimap_parser.api.parser import parse_file_with_diagnostics
from xml_multimap_parser.conversion.conversions import (
    available_conversions,
    get_conversion,
)
from xml_multimap_parser.shared.config import (
    CollectionKind,
    ConfigError,
    MapKind,
    ParserConfig,
)
from xml_multimap_parser.shared.logging import get_logger
from xml_multimap_parser.shared.result import DiagnosticSeverity, MultimapResult

VIOLATION_SEVERITIES = {
    DiagnosticSeverity.WARNING,
    DiagnosticSeverity.ERROR,
    DiagnosticSeverity.CRITICAL,
}
MAX_TEXT_ERRORS = 3


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, parser_config: Optional[ParserConfig] = None):
        self.parser_config = parser_config or ParserConfig()
        self.output_format = "json"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load the parser configuration from a JSON file.

        Raises:
            ConfigError: if the file cannot be read or is not a valid
                configuration
        """
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        return cls(ParserConfig.from_json(text))

    def apply_arguments(self, args: argparse.Namespace) -> None:
        """Apply command-line overrides on top of the loaded configuration."""
        config = self.parser_config
        if args.key_conversion:
            config = config.with_key_conversion(get_conversion(args.key_conversion))
        if args.value_conversion:
            config = config.with_value_conversion(get_conversion(args.value_conversion))
        if args.map_type:
            config = config.with_map_type(MapKind.from_token(args.map_type))
        if args.collection_type:
            config = config.with_collection_type(
                CollectionKind.from_token(args.collection_type)
            )
        if args.continue_on_error:
            config = config.with_continue_on_error(True)
        self.parser_config = config
        self.output_format = args.format


class MultimapProcessor:
    """Core multimap processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse one file and return a JSON-serialisable record."""
        result = parse_file_with_diagnostics(file_path, self.config.parser_config)
        self.logger.debug(
            "Processed file",
            extra={"file": str(file_path), "success": result.success},
        )
        return {
            "file": str(file_path),
            "success": result.success,
            "aborted": result.aborted,
            "map_kind": result.map_kind.name,
            "collection_kind": result.collection_kind.name,
            "entries": _entries_of(result),
            "processing_time_ms": result.statistics.processing_time_ms,
            "diagnostics": [
                {
                    "severity": diag.severity.name,
                    "message": diag.message,
                    "component": diag.component,
                    "position": diag.position,
                }
                for diag in result.diagnostics
            ],
        }

    def process_files(self, paths: List[Path]) -> List[Dict[str, Any]]:
        return [self.process_single_file(path) for path in paths]


def _entries_of(result: MultimapResult) -> List[Dict[str, Any]]:
    return [
        {"key": key, "values": list(group)}
        for key, group in result.mapping.items()
    ]


def _violations_of(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        diag for diag in record.get("diagnostics", [])
        if DiagnosticSeverity[diag["severity"]] in VIOLATION_SEVERITIES
    ]


def _add_parser_options(subparser: argparse.ArgumentParser) -> None:
    conversions = available_conversions()
    subparser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Multimap documents to read"
    )
    subparser.add_argument(
        "--key-conversion", "-k",
        choices=conversions,
        help="Conversion applied to every key (default: string)"
    )
    subparser.add_argument(
        "--value-conversion", "-V",
        choices=conversions,
        help="Conversion applied to every value (default: string)"
    )
    subparser.add_argument(
        "--map-type",
        choices=[kind.name for kind in MapKind],
        type=str.upper,
        help="Force the map kind, ignoring the document's type attribute"
    )
    subparser.add_argument(
        "--collection-type",
        choices=[kind.name for kind in CollectionKind],
        type=str.upper,
        help="Force the collection kind, ignoring the collection attribute"
    )
    subparser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Skip offending entries instead of stopping at the first one"
    )
    subparser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON parser configuration file"
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-multimap",
        description="Read XML multimap documents into typed key/value groups"
    )

    parser.add_argument("--version", action="version", version="0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse multimap documents")
    _add_parser_options(parse_parser)
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Report grammar and conversion violations"
    )
    _add_parser_options(validate_parser)
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format parse records for output."""
    if format_type == "text":
        if not results:
            return "No results to display."

        lines = []
        successful = sum(1 for r in results if r.get("success", False))
        lines.append(f"Processed {len(results)} files, {successful} successful")
        lines.append("-" * 60)

        for result in results:
            status = "OK" if result.get("success", False) else "FAIL"
            lines.append(f"[{status}] {result['file']}")
            lines.append(
                f"   {result['map_kind']} of {result['collection_kind']}, "
                f"{len(result['entries'])} keys, "
                f"{result.get('processing_time_ms', 0):.1f}ms"
            )
            for entry in result["entries"]:
                lines.append(f"   {entry['key']!r}: {entry['values']!r}")

            violations = _violations_of(result)
            for violation in violations[:MAX_TEXT_ERRORS]:
                lines.append(f"   {violation['severity']}: {violation['message']}")
            if len(violations) > MAX_TEXT_ERRORS:
                lines.append(f"   ... and {len(violations) - MAX_TEXT_ERRORS} more")
            lines.append("")

        return "\n".join(lines)

    return json.dumps(results, indent=2, default=str)


def _load_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    config.apply_arguments(args)
    return config


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    processor = MultimapProcessor(config)
    results = processor.process_files(args.paths)

    formatted_output = format_results(results, args.format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
            print(f"Results written to {args.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(formatted_output)

    return 0 if all(r["success"] for r in results) else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    processor = MultimapProcessor(config)
    results = []
    for record in processor.process_files(args.paths):
        violations = _violations_of(record)
        results.append({
            "file": record["file"],
            "valid": not violations,
            "violations": [
                {
                    "severity": v["severity"],
                    "message": v["message"],
                    "position": v["position"],
                }
                for v in violations
            ],
        })

    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r["valid"])
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)
        for result in results:
            status = "OK" if result["valid"] else "FAIL"
            print(f"[{status}] {result['file']}")
            for violation in result["violations"]:
                print(f"   {violation['severity']}: {violation['message']}")

    return 0 if all(r["valid"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "validate":
            return cmd_validate(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
