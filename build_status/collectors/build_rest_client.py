"""
Azure DevOps Build Resolution Client

Resolves build definitions, latest builds, build timelines and releases from
the Azure DevOps build (and release management) REST APIs, hydrating every
response into the immutable models in build_status.domain.

Resolution is a chain of dependent calls:

    definition id -> BuildDefinition -> latest Build -> TimelineRecords -> Log text

"Latest build for branch" is usually asked once per report section against
the same definition, so the client scans the full completed-builds listing
once and memoizes the first (newest) build per (definition, branch) in a
LatestBuildCache.

Usage:
    from build_status.collectors.build_rest_client import get_build_rest_client

    client = get_build_rest_client()
    definition = await client.get_build_definition(project, 5868)
    build = await client.get_latest_build_for_branch(definition, "refs/heads/main")
    build = await client.populate_timeline(build)

API Documentation:
    https://learn.microsoft.com/en-us/rest/api/azure/devops/build/?view=azure-devops-rest-7.1
"""

from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import urlencode

from build_status.collectors.ado_fetch import DEFAULT_TIMEOUT, fetch_json, fetch_text
from build_status.collectors.build_transformers import BuildTransformer
from build_status.collectors.latest_build_cache import LatestBuildCache
from build_status.core.logging_config import get_logger, log_with_context
from build_status.domain.builds import Build, BuildDefinition, Log, Project, Release, Status, TimelineRecord
from build_status.exceptions import NotFoundError, ParseError
from build_status.secure_config import (
    DEFAULT_COLLECTION,
    BuildStatusConfig,
    derive_release_url,
    get_config,
)
from build_status.utils.error_handling import log_and_continue, log_and_raise
from build_status.utils.json_fields import get_array, get_string

logger = get_logger(__name__)

T = TypeVar("T")


class BuildResolutionClient:
    """
    Azure DevOps build/release client with a per-session latest-build cache.

    Features:
    - Async requests, one scoped HTTP connection per call
    - Base64-encoded PAT authentication
    - Bounded request timeout, mapped to NetworkError
    - No automatic retries
    """

    COMPLETED_FILTER = Status.COMPLETED.value

    def __init__(
        self,
        organization_url: str,
        pat: str,
        release_url: str | None = None,
        collection: str = DEFAULT_COLLECTION,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str | None = None,
        cache: LatestBuildCache | None = None,
    ):
        """
        Initialize the build resolution client.

        Args:
            organization_url: Build API host (e.g. https://devdiv.visualstudio.com)
            pat: Personal Access Token for authentication
            release_url: Release API host; derived from organization_url when omitted
            collection: Collection path segment ("" for dev.azure.com organizations)
            timeout: Per-request timeout in seconds
            api_version: Optional ``api-version`` query parameter for every request
            cache: Latest-build cache to use (a fresh one per client by default)

        Raises:
            ValueError: If organization_url or pat is empty
        """
        if not organization_url or not pat:
            raise ValueError("organization_url and pat are required")

        self.organization_url = organization_url.rstrip("/")
        self.release_url = (release_url or derive_release_url(self.organization_url)).rstrip("/")
        self.collection = collection.strip("/")
        self.pat = pat
        self.timeout = timeout
        self.api_version = api_version
        self.latest_builds = cache if cache is not None else LatestBuildCache()

    # ==============================
    # URL construction
    # ==============================

    def _with_query(self, url: str, params: dict[str, Any]) -> str:
        filtered_params = {k: v for k, v in params.items() if v is not None}
        if self.api_version:
            filtered_params["api-version"] = self.api_version
        if filtered_params:
            url = f"{url}?{urlencode(filtered_params, safe='$:')}"
        return url

    def _build_url(self, project: Project, resource: str, **params: Any) -> str:
        """
        Build a build-API URL.

        Example:
            _build_url(project, "build/definitions/5868")
            -> "https://devdiv.visualstudio.com/DefaultCollection/{project.id}/_apis/build/definitions/5868"
        """
        root = "/".join(part for part in (self.organization_url, self.collection, project.id) if part)
        return self._with_query(f"{root}/_apis/{resource}", params)

    def _release_api_url(self, resource: str, **params: Any) -> str:
        return self._with_query(f"{self.release_url}/_apis/{resource}", params)

    # ==============================
    # Response handling
    # ==============================

    async def _fetch_object(self, url: str, allow_empty: bool = False) -> dict[str, Any] | None:
        json = await fetch_json(url, self.pat, timeout=self.timeout, allow_empty=allow_empty)
        if json is None and allow_empty:
            return None
        if not isinstance(json, dict):
            raise ParseError(f"Expected a JSON object from {url}, got {type(json).__name__}", url=url)
        return json

    async def _fetch_value_array(self, url: str) -> list[Any]:
        json = await self._fetch_object(url)
        value = json.get("value") if json is not None else None
        if not isinstance(value, list):
            raise ParseError(f"Response from {url} has no 'value' array", url=url)
        return value

    @staticmethod
    def _hydrate(error_type: str, context: dict[str, Any], transform: Callable[..., T], *args: Any) -> T:
        try:
            return transform(*args)
        except ParseError as e:
            log_and_raise(logger, e, context, error_type)

    # ==============================
    # Cache
    # ==============================

    def reset_branch_cache(self) -> None:
        """Forget every memoized latest-build entry, for every definition."""
        self.latest_builds.reset()

    # ==============================
    # Build APIs
    # ==============================

    async def get_build_definition(self, project: Project, definition_id: int) -> BuildDefinition:
        """
        Get a build definition.

        REST Endpoint: GET {org}/{collection}/{project}/_apis/build/definitions/{definitionId}

        Args:
            project: Project owning the definition
            definition_id: Build definition ID

        Returns:
            BuildDefinition with name and links

        Raises:
            NetworkError: Transport failure or non-success status
            ParseError: Malformed JSON or missing links
        """
        url = self._build_url(project, f"build/definitions/{definition_id}")
        json = await self._fetch_object(url)

        definition = self._hydrate(
            "Build definition hydration",
            {"url": url, "definition_id": definition_id},
            BuildTransformer.transform_build_definition,
            json,
            project,
            definition_id,
        )
        logger.info(f"Resolved build definition {definition_id} ({definition.name})")
        return definition

    async def get_latest_build(self, definition: BuildDefinition) -> Build:
        """
        Get the most recent completed build of a definition, on any branch.

        REST Endpoint: GET .../_apis/build/builds?definitions={id}&statusFilter=completed&$top=1

        The build is also cached for its definition and source branch unless
        that pair is already cached. The freshly fetched build is returned either way.

        Raises:
            NetworkError, ParseError
            NotFoundError: The definition has no completed builds
        """
        url = self._build_url(
            definition.project,
            "build/builds",
            definitions=definition.id,
            statusFilter=self.COMPLETED_FILTER,
            **{"$top": 1},
        )
        builds = await self._fetch_value_array(url)
        if not builds:
            raise NotFoundError("Completed build for definition", definition.id)

        build = self._hydrate(
            "Build hydration",
            {"url": url, "definition_id": definition.id},
            BuildTransformer.transform_build,
            builds[0],
            definition,
        )
        self.latest_builds.add_if_absent(build)

        logger.info(
            f"Latest completed build of definition {definition.id}: {build.build_number} ({build.source_branch})"
        )
        return build

    async def get_latest_build_for_branch(self, definition: BuildDefinition, branch: str) -> Build:
        """
        Get the most recent completed build of a definition on ``branch``.

        On a cache miss, lists every completed build of the definition in one
        request and caches the first build seen per source branch (the listing
        is newest-first, later entries for a seen branch are ignored). Later
        calls for any branch in that listing are served from the cache.

        REST Endpoint: GET .../_apis/build/builds?definitions={id}&statusFilter=completed

        Args:
            definition: Build definition
            branch: Source branch ref, compared case-insensitively (e.g. "refs/heads/main")

        Raises:
            NetworkError, ParseError
            NotFoundError: No completed build exists for ``branch``
        """
        cached = self.latest_builds.get(definition.id, branch)
        if cached is not None:
            logger.debug(f"Latest build for {branch} served from cache: {cached.build_number}")
            return cached

        url = self._build_url(
            definition.project,
            "build/builds",
            definitions=definition.id,
            statusFilter=self.COMPLETED_FILTER,
        )
        builds = await self._fetch_value_array(url)

        for build_json in builds:
            build = self._hydrate(
                "Build hydration",
                {"url": url, "definition_id": definition.id},
                BuildTransformer.transform_build,
                build_json,
                definition,
            )
            self.latest_builds.add_if_absent(build)

        logger.info(
            f"Scanned {len(builds)} completed builds of definition {definition.id}, "
            f"{len(self.latest_builds)} (definition, branch) entries cached"
        )

        cached = self.latest_builds.get(definition.id, branch)
        if cached is None:
            raise NotFoundError("Latest build for branch", branch)
        return cached

    async def get_build(self, definition: BuildDefinition, build_id: int | str) -> Build:
        """
        Get a build by ID. Does not read or write the branch cache.

        REST Endpoint: GET .../_apis/build/builds/{buildId}
        """
        url = self._build_url(definition.project, f"build/builds/{build_id}")
        json = await self._fetch_object(url)

        return self._hydrate(
            "Build hydration",
            {"url": url, "build_id": build_id},
            BuildTransformer.transform_build,
            json,
            definition,
        )

    async def get_build_timeline_records(self, build: Build) -> tuple[TimelineRecord, ...]:
        """
        Get the execution timeline of a build.

        REST Endpoint: GET .../_apis/build/builds/{buildId}/timeline

        Issues and log references are hydrated from the same payload. A record
        whose log cannot be hydrated is kept with ``log=None``; the failure is
        logged and sibling records are unaffected.

        Returns:
            Records in response order; empty when the build has no timeline yet

        Raises:
            NetworkError, ParseError (whole-response failures only)
        """
        url = self._build_url(build.project, f"build/builds/{build.id}/timeline")
        json = await self._fetch_object(url, allow_empty=True)

        records: list[TimelineRecord] = []
        for record_json in get_array(json, "records"):
            if not isinstance(record_json, dict):
                logger.warning(f"Skipping non-object timeline record in build {build.id}", extra={"url": url})
                continue

            try:
                log = BuildTransformer.transform_log(record_json)
            except (ParseError, TypeError, ValueError) as e:
                log_and_continue(
                    logger,
                    e,
                    context={"build_id": build.id, "record_id": get_string(record_json, "id")},
                    error_type="Timeline log hydration",
                    level="error",
                )
                log = None

            records.append(BuildTransformer.transform_timeline_record(record_json, log))

        log_with_context(
            logger,
            "info",
            f"Build {build.id} timeline: {len(records)} records",
            build_id=build.id,
            record_count=len(records),
        )
        return tuple(records)

    async def populate_timeline(self, build: Build) -> Build:
        """Return a copy of ``build`` with its timeline records fetched."""
        records = await self.get_build_timeline_records(build)
        return build.with_timeline(records)

    async def get_log_content(self, log: Log) -> str:
        """
        Download the raw text of a timeline record log.

        Raises:
            NotFoundError: The log reference carries no URL
            NetworkError: Transport failure or non-success status
        """
        if not log.url:
            raise NotFoundError("Log", log.id)
        return await fetch_text(log.url, self.pat, accept="text/plain", timeout=self.timeout)

    # ==============================
    # Release APIs
    # ==============================

    async def get_release(self, build: Build) -> Release:
        """
        Get the release created from a build's artifact.

        REST Endpoint: GET {release}/_apis/Release/releases?artifactTypeId=Build
            &artifactVersionId={buildId}&sourceId={projectId}:{definitionId}

        Raises:
            NetworkError, ParseError
            NotFoundError: No release consumed the build
        """
        url = self._release_api_url(
            "Release/releases",
            artifactTypeId="Build",
            artifactVersionId=build.id,
            sourceId=f"{build.project.id}:{build.build_definition.id}",
        )
        releases = await self._fetch_value_array(url)
        if not releases:
            raise NotFoundError("Release for build", build.id)

        return self._hydrate(
            "Release hydration",
            {"url": url, "build_id": build.id},
            BuildTransformer.transform_release,
            releases[0],
            build,
        )


def get_build_rest_client(config: BuildStatusConfig | None = None) -> BuildResolutionClient:
    """
    Get a build resolution client with settings from secure_config.

    Args:
        config: Explicit configuration; loaded from the environment when omitted

    Raises:
        ConfigurationError: If ADO_ORGANIZATION_URL or ADO_PAT are missing or invalid
    """
    if config is None:
        config = get_config().get_build_status_config()

    return BuildResolutionClient(
        organization_url=config.organization_url,
        pat=config.pat,
        release_url=config.release_url,
        collection=config.collection,
        timeout=config.timeout,
    )
