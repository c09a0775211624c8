"""
Azure DevOps Build API Response Transformers

Hydrates raw REST JSON into the immutable models in build_status.domain.

Field-level gaps never raise: strings fall back to "", integers to -1 and
enums to their unknown member (see build_status.utils.json_fields). Only
structurally required data raises ParseError:
    - ``_links.self.href`` / ``_links.web.href`` on every linked entity
    - a ``log`` that is present but not a JSON object

REST Response (build, abbreviated):
{
    "id": 1626454,
    "buildNumber": "20260210.1",
    "status": "completed",
    "result": "succeeded",
    "sourceBranch": "refs/heads/main",
    "sourceVersion": "9f8e7d...",
    "_links": {
        "self": {"href": "https://.../_apis/build/Builds/1626454"},
        "web": {"href": "https://.../_build/results?buildId=1626454"},
        "badge": {"href": "https://.../_apis/build/status/5868"}
    }
}

Usage:
    from build_status.collectors.build_transformers import BuildTransformer

    build = BuildTransformer.transform_build(build_json, definition)
"""

from typing import Any

from build_status.domain.builds import (
    Build,
    BuildDefinition,
    Data,
    Issue,
    Links,
    Log,
    Project,
    Release,
    ReleaseStatus,
    Result,
    Status,
    TimelineRecord,
)
from build_status.exceptions import ParseError
from build_status.utils.json_fields import (
    JsonNode,
    get_array,
    get_enum,
    get_int,
    get_object,
    get_string,
)


def _required_href(links_json: dict[str, Any], name: str) -> str:
    link = get_object(links_json, name)
    href = link.get("href") if link is not None else None
    if not isinstance(href, str):
        raise ParseError(f"Missing required link '_links.{name}.href'")
    return href


class BuildTransformer:
    """
    Transform build/release REST responses into domain models.

    Handles:
    - Links (required self/web, optional badge)
    - Build definitions and builds
    - Timeline records with nested issues and log references
    - Releases
    """

    @staticmethod
    def transform_links(json: JsonNode) -> Links:
        """
        Hydrate the ``_links`` object of an entity.

        Raises:
            ParseError: ``_links``, ``_links.self.href`` or ``_links.web.href`` is missing
        """
        links_json = get_object(json, "_links")
        if links_json is None:
            raise ParseError("Missing required object '_links'")

        badge = get_object(links_json, "badge")
        badge_href = badge.get("href") if badge is not None else None

        return Links(
            self_href=_required_href(links_json, "self"),
            web_href=_required_href(links_json, "web"),
            badge_href=badge_href if isinstance(badge_href, str) else None,
        )

    @staticmethod
    def transform_build_definition(json: JsonNode, project: Project, definition_id: int) -> BuildDefinition:
        """
        Hydrate a build definition.

        The requested ``definition_id`` is kept as the id; the response body is
        only read for name and links.
        """
        return BuildDefinition(
            id=definition_id,
            name=get_string(json, "name"),
            project=project,
            links=BuildTransformer.transform_links(json),
        )

    @staticmethod
    def transform_build(json: JsonNode, definition: BuildDefinition) -> Build:
        """Hydrate one entry of a builds listing (or a single-build response)."""
        return Build(
            id=get_int(json, "id"),
            build_number=get_string(json, "buildNumber"),
            status=get_enum(json, "status", Status),
            result=get_enum(json, "result", Result),
            links=BuildTransformer.transform_links(json),
            source_branch=get_string(json, "sourceBranch"),
            source_commit=get_string(json, "sourceVersion"),
            build_definition=definition,
        )

    @staticmethod
    def transform_log(json: JsonNode) -> Log | None:
        """
        Hydrate the ``log`` reference of a timeline record.

        Returns None when the record carries no log (missing, null or ``{}``).

        Raises:
            ParseError: ``log`` is present but is not a JSON object
        """
        if not isinstance(json, dict):
            return None

        log_json = json.get("log")
        if log_json is None or log_json == {}:
            return None
        if not isinstance(log_json, dict):
            raise ParseError(f"Timeline log must be an object, got {type(log_json).__name__}")

        return Log(
            id=get_int(log_json, "id"),
            type=get_string(log_json, "type"),
            url=get_string(log_json, "url"),
        )

    @staticmethod
    def transform_data(issue_json: JsonNode) -> Data | None:
        """
        Hydrate the source location detail of an issue.

        Read from the issue's ``data`` object, or its ``log`` object when
        ``data`` is absent. Returns None when neither carries values.
        """
        data_json = get_object(issue_json, "data") or get_object(issue_json, "log")
        if not data_json:
            return None

        return Data(
            type=get_string(data_json, "type"),
            source_path=get_string(data_json, "sourcepath"),
            line_number=get_string(data_json, "linenumber"),
            column_number=get_string(data_json, "columnnumber"),
            code=get_string(data_json, "code"),
        )

    @staticmethod
    def transform_issues(record_json: JsonNode) -> tuple[Issue, ...]:
        """Hydrate the ``issues`` array of a timeline record, in response order."""
        return tuple(
            Issue(
                type=get_string(issue_json, "type"),
                category=get_string(issue_json, "category"),
                message=get_string(issue_json, "message"),
                data=BuildTransformer.transform_data(issue_json),
            )
            for issue_json in get_array(record_json, "issues")
            if isinstance(issue_json, dict)
        )

    @staticmethod
    def transform_timeline_record(json: JsonNode, log: Log | None) -> TimelineRecord:
        """
        Hydrate one timeline record.

        The log is passed in already hydrated so the caller can isolate log
        failures per record (see BuildResolutionClient.get_build_timeline_records).
        Timeline records report their status under ``state``.
        """
        return TimelineRecord(
            id=get_string(json, "id"),
            parent_id=get_string(json, "parentId"),
            type=get_string(json, "type"),
            name=get_string(json, "name"),
            status=get_enum(json, "state", Status),
            result=get_enum(json, "result", Result),
            warning_count=get_int(json, "warningCount"),
            error_count=get_int(json, "errorCount"),
            log=log,
            issues=BuildTransformer.transform_issues(json),
        )

    @staticmethod
    def transform_release(json: JsonNode, build: Build) -> Release:
        """Hydrate one entry of a releases listing."""
        return Release(
            id=get_int(json, "id"),
            status=get_enum(json, "status", ReleaseStatus),
            links=BuildTransformer.transform_links(json),
            name=get_string(json, "name"),
            build=build,
        )
