"""
Scoped async HTTP client for the Azure DevOps REST endpoints.

A thin httpx wrapper: one httpx.AsyncClient per ``async with`` block, TLS
verification always on, a single bounded timeout applied to connect, read,
write and pool acquisition, and redirects followed (the build service
redirects log downloads to blob storage).

Usage:
    from build_status.async_http_client import AsyncSecureHTTPClient

    async with AsyncSecureHTTPClient(timeout=10) as http:
        response = await http.get(log_url, headers={"Accept": "text/plain"})
"""

import httpx


class AsyncSecureHTTPClient:
    """GET-only httpx client bound to the lifetime of an ``async with`` block."""

    DEFAULT_TIMEOUT = 30  # seconds

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, http2: bool = True):
        self.timeout = httpx.Timeout(timeout)
        self.http2 = http2
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncSecureHTTPClient":
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            verify=True,
            http2=self.http2,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args):
        if self.client is None:
            return
        try:
            await self.client.aclose()
        finally:
            self.client = None

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """
        Issue a GET on the open client.

        ``timeout`` defaults to the one given at construction; any other
        keyword (headers, params) is forwarded to httpx unchanged.

        Raises:
            RuntimeError: No ``async with`` block is active
        """
        if self.client is None:
            raise RuntimeError("AsyncSecureHTTPClient.get() called outside its 'async with' context manager")

        kwargs.setdefault("timeout", self.timeout)
        return await self.client.get(url, **kwargs)
