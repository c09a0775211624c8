"""
Latest-build-per-branch cache

Holds the most recent completed Build seen for each (definition, source branch)
pair during one resolution session. Branch names are compared case-insensitively
because the service is inconsistent about ref casing ("refs/heads/Main" vs
"refs/heads/main"). Entries are keyed by definition id as well, so one client
(or one shared cache) can resolve several definitions without mixing them up.

Entries are insert-if-absent: the first build stored for a key stays until
reset(). Inserts are serialized with a lock, so concurrent tasks (or threads)
resolving the same branch cannot corrupt the mapping.
"""

import threading

from build_status.domain.builds import Build

CacheKey = tuple[int, str]


class LatestBuildCache:
    """(definition id, case-insensitive branch) -> Build mapping with first-write-wins inserts."""

    def __init__(self) -> None:
        self._builds: dict[CacheKey, Build] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(definition_id: int, branch: str) -> CacheKey:
        return definition_id, branch.casefold()

    def get(self, definition_id: int, branch: str) -> Build | None:
        """Cached build of definition ``definition_id`` for ``branch``, or None."""
        return self._builds.get(self._key(definition_id, branch))

    def add_if_absent(self, build: Build) -> Build:
        """
        Store ``build`` under its definition and source branch unless that pair is already cached.

        Returns:
            The build now cached for the pair (``build`` itself, or the earlier entry)
        """
        key = self._key(build.build_definition.id, build.source_branch)
        with self._lock:
            return self._builds.setdefault(key, build)

    def reset(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._builds.clear()

    def __contains__(self, key: object) -> bool:
        """Membership test for a ``(definition_id, branch)`` pair."""
        if not (isinstance(key, tuple) and len(key) == 2 and isinstance(key[1], str)):
            return False
        return self._key(key[0], key[1]) in self._builds

    def __len__(self) -> int:
        return len(self._builds)
