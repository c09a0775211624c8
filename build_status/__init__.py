"""
Build Status - Azure DevOps build resolution layer

Resolves build definitions, latest builds and build timelines from the
Azure DevOps REST APIs and hydrates them into immutable domain models.

Package Structure:
    - core: Infrastructure (logging, config re-exports)
    - domain: Domain models (Project, Build, TimelineRecord, Release)
    - collectors: REST fetch layer, JSON hydration, build resolution client
    - utils: JSON field accessors, error handling, atomic JSON output
"""

__version__ = "1.0.0"
__author__ = "Engineering Metrics Team"
