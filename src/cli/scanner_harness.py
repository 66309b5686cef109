# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""CLI harness for analysis properties generation."""

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

from scanshim.analysis_config import (
    AnalysisConfig,
    ConfigError,
    parse_command_line_properties,
)
from scanshim.generator import AnalysisResult, ScannerEngineInputGenerator
from scanshim.properties import Property
from scanshim.summary import (
    SummaryReportBuilder,
    SummaryReportData,
    build_summary_table,
)

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="scanshim")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    generate_parser = subparsers.add_parser("generate")
    generate_parser.add_argument(
        "--config", required=True, help="Path to SonarQubeAnalysisConfig.xml."
    )
    generate_parser.add_argument(
        "-d",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Analysis property; may be repeated.",
    )
    generate_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code: 0 on success, 1 when generation failed, 2 on input errors.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.command == "generate":
        return _run_generate(args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _run_generate(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run generate command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    config_path = Path(args.config)
    if not config_path.is_file():
        logger.warning(f"Config path does not exist (path={config_path})")
        stderr.write(f"Config path does not exist: {config_path}\n")
        return 2
    try:
        command_line = parse_command_line_properties(args.properties)
    except ValueError as exc:
        logger.warning(f"Invalid property argument (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    try:
        config = with_local_settings(AnalysisConfig.load(config_path), command_line)
        result = ScannerEngineInputGenerator(config).generate_result()
    except ConfigError as exc:
        logger.warning(f"Configuration could not be read (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    builder = SummaryReportBuilder(config)
    summary = builder.create_summary_data(result)
    try:
        builder.write_summary_md(summary)
    except OSError as exc:
        logger.warning(f"Failed to write summary report (error={exc})")
    if args.format == "json":
        _write_json(result=result, summary=summary, stdout=stdout)
    else:
        _write_table(result=result, summary=summary, stdout=stdout)
    if not result.ran_to_completion:
        stderr.write("Generation of the analysis properties failed\n")
        return 1
    return 0


def with_local_settings(
    config: AnalysisConfig, properties: list[Property]
) -> AnalysisConfig:
    """Put command-line properties in front of the configured local settings.

    Args:
        config: Loaded configuration.
        properties: Parsed command-line properties.

    Returns:
        Configuration whose local settings start with ``properties``.
    """
    if not properties:
        return config
    overridden = {item.key for item in properties}
    kept = tuple(item for item in config.local_settings if item.key not in overridden)
    return replace(config, local_settings=tuple(properties) + kept)


def _write_json(result: AnalysisResult, summary: SummaryReportData, stdout: TextIO) -> None:
    payload = {
        "succeeded": result.ran_to_completion,
        "properties_file": _optional_str(result.full_properties_file_path),
        "engine_input_file": _optional_str(result.engine_input_file_path),
        "projects": [
            {
                "guid": project.guid,
                "name": project.project.project_name,
                "path": str(project.project.full_path),
                "status": project.status.value,
                "files": len(project.module_files),
            }
            for project in result.projects
        ],
        "summary": asdict(summary),
    }
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_table(result: AnalysisResult, summary: SummaryReportData, stdout: TextIO) -> None:
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(build_summary_table(summary))
    if result.full_properties_file_path is not None:
        console.print(f"properties: {result.full_properties_file_path}", markup=False, soft_wrap=True)
    if summary.dashboard_url:
        console.print(f"dashboard: {summary.dashboard_url}", markup=False, soft_wrap=True)


def _optional_str(value: Path | None) -> str | None:
    return None if value is None else str(value)


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
