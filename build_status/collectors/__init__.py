"""
Data Collectors - Fetch build data from Azure DevOps

This package contains:
    - ado_fetch: authenticated GET returning text or parsed JSON
    - build_transformers: REST JSON -> domain model hydration
    - latest_build_cache: per-session latest build per branch
    - build_rest_client: build definition / build / timeline / release resolution
"""

__all__ = []
