"""
Domain Models - Type-safe data structures for build data

This package contains immutable dataclasses for the Azure DevOps entities the
build resolution client hydrates:
    - builds: Project, BuildDefinition, Build, TimelineRecord, Issue, Data, Log, Links, Release

Usage:
    from build_status.domain import Build, Result

    if build.result == Result.FAILED:
        for record in build.timeline_records:
            print(record.name, record.error_count)
"""

from .builds import (
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

__all__ = [
    # Enums
    "Status",
    "Result",
    "ReleaseStatus",
    # Entities
    "Project",
    "Links",
    "BuildDefinition",
    "Build",
    "TimelineRecord",
    "Issue",
    "Data",
    "Log",
    "Release",
]
