#!/usr/bin/env python3
"""
Build Status Report

Resolves the latest completed build of a build definition (optionally on a
specific branch), walks its timeline and writes the diagnostic records
(issues, log references, optionally raw log text and the release created
from the build) to a JSON file.

Usage:
    python -m build_status.build_status_report --definition-id 5868
    python -m build_status.build_status_report --branch refs/heads/main \\
        --record "Validate Vsix Localization" --include-logs

Configuration comes from the environment / .env (see build_status.secure_config).
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from build_status.collectors.build_rest_client import BuildResolutionClient, get_build_rest_client
from build_status.core.logging_config import get_logger, setup_logging
from build_status.domain.builds import Build, Issue, Release, TimelineRecord
from build_status.exceptions import BuildStatusError, NetworkError, NotFoundError
from build_status.secure_config import ConfigurationError, project_from_config, validate_config_on_startup
from build_status.utils.atomic_json import atomic_json_save
from build_status.utils.error_handling import log_and_return_default

logger = get_logger(__name__)

DEFAULT_OUTPUT_FILE = ".tmp/build_status/latest_build.json"


def select_records(build: Build, record_names: list[str] | None = None) -> tuple[TimelineRecord, ...]:
    """
    Pick the timeline records to report.

    Args:
        build: Build with its timeline populated
        record_names: Record names to keep (case-insensitive); when empty, every
            record that carries at least one issue is kept

    Returns:
        Selected records in timeline order
    """
    if record_names:
        return build.find_records(*record_names)
    return tuple(record for record in build.timeline_records if record.issues)


def summarize_issue(issue: Issue) -> dict[str, Any]:
    summary: dict[str, Any] = {"type": issue.type, "category": issue.category, "message": issue.message}
    if issue.data is not None:
        summary["location"] = issue.data.location
        summary["code"] = issue.data.code
    return summary


def summarize_record(record: TimelineRecord, log_text: str | None = None) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "id": record.id,
        "parent_id": record.parent_id,
        "type": record.type,
        "name": record.name,
        "status": record.status.value,
        "result": record.result.value,
        "warning_count": record.warning_count,
        "error_count": record.error_count,
        "log_url": record.log.url if record.log else None,
        "issues": [summarize_issue(issue) for issue in record.issues],
    }
    if log_text is not None:
        summary["log"] = log_text
    return summary


def summarize_release(release: Release) -> dict[str, Any]:
    return {
        "id": release.id,
        "name": release.name,
        "status": release.status.value,
        "web_url": release.links.web_href,
    }


def summarize_build(
    build: Build,
    records: tuple[TimelineRecord, ...],
    log_texts: dict[str, str] | None = None,
    release: Release | None = None,
) -> dict[str, Any]:
    """Build the JSON report document."""
    log_texts = log_texts or {}
    definition = build.build_definition
    return {
        "project": {"id": definition.project.id, "name": definition.project.name},
        "definition": {"id": definition.id, "name": definition.name, "web_url": definition.links.web_href},
        "build": {
            "id": build.id,
            "build_number": build.build_number,
            "status": build.status.value,
            "result": build.result.value,
            "source_branch": build.source_branch,
            "source_commit": build.source_commit,
            "web_url": build.links.web_href,
        },
        "release": summarize_release(release) if release else None,
        "record_count": len(build.timeline_records),
        "records": [summarize_record(record, log_texts.get(record.id)) for record in records],
    }


async def fetch_log_text(client: BuildResolutionClient, record: TimelineRecord) -> str:
    """Download one record's log; a failed download yields an empty string."""
    if record.log is None:
        return ""
    try:
        return await client.get_log_content(record.log)
    except (NetworkError, NotFoundError) as e:
        return log_and_return_default(
            logger,
            e,
            context={"record_id": record.id, "log_id": record.log.id},
            default_value="",
            error_type="Log download",
        )


async def main(
    definition_id: int | None = None,
    branch: str | None = None,
    record_names: list[str] | None = None,
    include_logs: bool = False,
    include_release: bool = False,
) -> dict[str, Any]:
    """
    Resolve the build and assemble the report.

    Args:
        definition_id: Build definition ID (defaults to ADO_BUILD_DEFINITION_ID)
        branch: Source branch ref; latest build on any branch when omitted
        record_names: Timeline record names to report
        include_logs: Download raw log text for the reported records
        include_release: Look up the release created from the build

    Returns:
        dict: Report document

    Raises:
        ConfigurationError: Missing or invalid configuration
        BuildStatusError: Resolution failed
    """
    config = validate_config_on_startup()
    project = project_from_config(config)

    if definition_id is None:
        definition_id = config.build_definition_id
    if definition_id is None:
        raise ConfigurationError("Pass --definition-id or set ADO_BUILD_DEFINITION_ID")

    client = get_build_rest_client(config)

    definition = await client.get_build_definition(project, definition_id)
    if branch:
        build = await client.get_latest_build_for_branch(definition, branch)
    else:
        build = await client.get_latest_build(definition)

    build = await client.populate_timeline(build)
    records = select_records(build, record_names)
    logger.info(f"Reporting {len(records)} of {len(build.timeline_records)} timeline records for {build.build_number}")

    log_texts: dict[str, str] = {}
    if include_logs:
        with_logs = [record for record in records if record.log is not None]
        texts = await asyncio.gather(*(fetch_log_text(client, record) for record in with_logs))
        log_texts = {record.id: text for record, text in zip(with_logs, texts, strict=True)}

    release = None
    if include_release:
        try:
            release = await client.get_release(build)
        except NotFoundError as e:
            release = log_and_return_default(logger, e, {"build_id": build.id}, None, "Release lookup")

    return summarize_build(build, records, log_texts, release)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Report diagnostics of the latest completed Azure DevOps build")

    parser.add_argument("--definition-id", type=int, default=None, help="Build definition ID")
    parser.add_argument("--branch", type=str, default=None, help="Source branch ref (e.g. refs/heads/main)")
    parser.add_argument(
        "--record",
        dest="records",
        action="append",
        default=None,
        help="Timeline record name to report (repeatable; default: records with issues)",
    )
    parser.add_argument("--include-logs", action="store_true", help="Download raw log text for reported records")
    parser.add_argument("--include-release", action="store_true", help="Look up the release created from the build")
    parser.add_argument(
        "--output-file",
        type=str,
        default=DEFAULT_OUTPUT_FILE,
        help=f"Path to output file (default: {DEFAULT_OUTPUT_FILE})",
    )
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level (default: INFO)")
    parser.add_argument("--log-file", type=str, default=None, help="Optional JSON log file")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs on the console")

    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    args = parse_arguments(argv)
    setup_logging(
        level=args.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
        json_output=args.json_logs,
    )

    try:
        result = asyncio.run(
            main(
                definition_id=args.definition_id,
                branch=args.branch,
                record_names=args.records,
                include_logs=args.include_logs,
                include_release=args.include_release,
            )
        )
        atomic_json_save(result, args.output_file)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except NetworkError as e:
        reason = "server unreachable" if e.is_transport_error else f"HTTP {e.status_code}"
        logger.error(f"Build status report failed ({reason}): {e}", extra={"details": e.details})
        return 1
    except BuildStatusError as e:
        logger.error(f"Build status report failed: {e}", extra={"details": e.details})
        return 1
    except OSError as e:
        logger.error(f"Could not write {args.output_file}: {e}")
        return 1

    logger.info(f"Results saved to {args.output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(run())
