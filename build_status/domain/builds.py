"""
Build domain models - Azure DevOps build, timeline and release data

Represents the entities hydrated from the build and release REST APIs:
    - Project / BuildDefinition: what is built
    - Build: one completed (or running) execution of a definition
    - TimelineRecord / Issue / Data / Log: the execution graph and its diagnostics
    - Release: the deployment created from a build artifact

All models are immutable. Builds own their timeline records; a record owns
its issues and log reference. BuildDefinition and Build hold plain
references back to their Project / BuildDefinition.
"""

from dataclasses import dataclass, replace
from enum import Enum


class Status(Enum):
    """
    Build / timeline record status.

    The first member is the unknown variant used when the service omits the
    field or sends a value this client does not know.
    """

    NONE = "none"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLING = "cancelling"
    POSTPONED = "postponed"
    NOT_STARTED = "notStarted"
    PENDING = "pending"


class Result(Enum):
    """Build / timeline record result."""

    NONE = "none"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"
    FAILED = "failed"
    CANCELED = "canceled"
    SKIPPED = "skipped"
    ABANDONED = "abandoned"


class ReleaseStatus(Enum):
    """Release status."""

    UNDEFINED = "undefined"
    DRAFT = "draft"
    ACTIVE = "active"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class Project:
    """
    Azure DevOps project.

    Attributes:
        id: Project GUID (or name) used in API paths
        name: Display name
    """

    id: str
    name: str = ""


@dataclass(frozen=True)
class Links:
    """
    Hyperlinks from an entity's ``_links`` object.

    Attributes:
        self_href: REST URL of the entity (required)
        web_href: Web portal URL of the entity (required)
        badge_href: Status badge URL, only present on some entities
    """

    self_href: str
    web_href: str
    badge_href: str | None = None


@dataclass(frozen=True)
class BuildDefinition:
    """
    A named, reusable build pipeline configuration.

    Attributes:
        id: Definition ID
        name: Definition name
        project: Owning project (not owned by the definition)
        links: Entity links
    """

    id: int
    name: str
    project: Project
    links: Links


@dataclass(frozen=True)
class Log:
    """
    Reference to a remote log blob. The content is fetched separately.

    Attributes:
        id: Log ID within the build
        type: Log container type (usually "Container")
        url: REST URL serving the raw log text
    """

    id: int
    type: str
    url: str


@dataclass(frozen=True)
class Data:
    """Source location detail attached to an Issue."""

    type: str
    source_path: str
    line_number: str
    column_number: str
    code: str

    @property
    def location(self) -> str:
        """
        Format as ``path(line,column)``, omitting missing parts.

        Example:
            >>> Data("error", "src/a.cs", "12", "5", "CS1002").location
            'src/a.cs(12,5)'
        """
        if not self.source_path:
            return ""
        position = ",".join(part for part in (self.line_number, self.column_number) if part)
        return f"{self.source_path}({position})" if position else self.source_path


@dataclass(frozen=True)
class Issue:
    """
    A diagnostic (warning/error) emitted by a timeline record.

    Attributes:
        type: "error" or "warning"
        category: Issue category (e.g. "General", "Code")
        message: Diagnostic text
        data: Optional source location detail
    """

    type: str
    category: str
    message: str
    data: Data | None = None

    @property
    def is_error(self) -> bool:
        return self.type.lower() == "error"

    @property
    def is_warning(self) -> bool:
        return self.type.lower() == "warning"


@dataclass(frozen=True)
class TimelineRecord:
    """
    One node (stage, job or task) of a build's execution timeline.

    Records form a forest through ``parent_id`` -> ``id``; an empty
    ``parent_id`` marks a root.
    """

    id: str
    parent_id: str
    type: str
    name: str
    status: Status
    result: Result
    warning_count: int
    error_count: int
    log: Log | None = None
    issues: tuple[Issue, ...] = ()

    @property
    def is_root(self) -> bool:
        return not self.parent_id

    @property
    def errors(self) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.is_error)

    @property
    def warnings(self) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.is_warning)


@dataclass(frozen=True)
class Build:
    """
    One concrete execution of a build definition.

    Attributes:
        id: Build ID
        build_number: Human-facing build number (e.g. "20260210.1")
        status: Execution status
        result: Outcome (NONE while running)
        links: Entity links
        source_branch: Full ref name (e.g. "refs/heads/main")
        source_commit: Source version (commit SHA)
        build_definition: Definition this build ran from
        timeline_records: Execution timeline, empty until requested
    """

    id: int
    build_number: str
    status: Status
    result: Result
    links: Links
    source_branch: str
    source_commit: str
    build_definition: BuildDefinition
    timeline_records: tuple[TimelineRecord, ...] = ()

    @property
    def project(self) -> Project:
        return self.build_definition.project

    @property
    def succeeded(self) -> bool:
        return self.result == Result.SUCCEEDED

    def with_timeline(self, records: tuple[TimelineRecord, ...] | list[TimelineRecord]) -> "Build":
        """Return a copy of this build carrying the given timeline records."""
        return replace(self, timeline_records=tuple(records))

    def find_records(self, *names: str) -> tuple[TimelineRecord, ...]:
        """Timeline records whose name matches any of ``names`` (case-insensitive), in timeline order."""
        wanted = {name.lower() for name in names}
        return tuple(record for record in self.timeline_records if record.name.lower() in wanted)


@dataclass(frozen=True)
class Release:
    """
    A release created from a build artifact.

    Attributes:
        id: Release ID
        status: Release status
        links: Entity links
        name: Release name (e.g. "Release-42")
        build: The build whose artifact the release consumed
    """

    id: int
    status: ReleaseStatus
    links: Links
    name: str
    build: Build
