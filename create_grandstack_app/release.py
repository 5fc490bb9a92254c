"""Async client for the starter's GitHub release listing.

Wraps the two network capabilities the scaffolder needs:

* ``latest_zip_url`` -- ask the releases endpoint for the newest archive.
* ``download`` -- stream an archive to a local file.

Typical usage::

    client = ReleaseClient()
    url = await client.latest_zip_url()
    await client.download(url, Path("/tmp/grandstack.zip"))
"""

from __future__ import annotations

from pathlib import Path

import httpx

from create_grandstack_app.config import DEFAULT_RELEASE_URL


class ReleaseError(Exception):
    """Raised when the release listing or the archive download fails."""


class ReleaseClient:
    """Async client for a GitHub-style releases endpoint.

    A fresh ``httpx.AsyncClient`` is opened per call; the scaffolder only
    makes two requests per run.
    """

    def __init__(
        self,
        release_url: str = DEFAULT_RELEASE_URL,
        timeout: int = 60,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.release_url = release_url
        self.timeout = timeout
        self.token = token
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
            headers=self._headers(),
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def latest_zip_url(self) -> str:
        """Return the ``zipball_url`` of the newest release.

        Raises:
            ReleaseError: On connection problems, non-2xx responses, or a
                payload without any release.
        """
        try:
            async with self._client() as client:
                response = await client.get(self.release_url)
                response.raise_for_status()
                releases = response.json()
        except httpx.ConnectError as exc:
            raise ReleaseError(f"Cannot connect to {self.release_url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise ReleaseError(
                f"Request to {self.release_url} timed out after {self.timeout}s."
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ReleaseError(
                f"Release listing returned HTTP {exc.response.status_code}: "
                f"{exc.response.text[:300]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ReleaseError(f"Release listing request failed: {exc}") from exc
        except ValueError as exc:
            raise ReleaseError(f"Failed to parse release listing: {exc}") from exc

        if not isinstance(releases, list) or not releases:
            raise ReleaseError(f"No releases found at {self.release_url}")
        url = releases[0].get("zipball_url") if isinstance(releases[0], dict) else None
        if not url:
            raise ReleaseError("Latest release has no zipball_url")
        return url

    async def download(self, source_url: str, target_file: str | Path) -> Path:
        """Stream *source_url* into *target_file*.

        A partially written file is removed when the download fails.
        """
        target = Path(target_file)
        try:
            async with self._client() as client:
                async with client.stream("GET", source_url) as response:
                    response.raise_for_status()
                    with target.open("wb") as fh:
                        async for chunk in response.aiter_bytes(chunk_size=65536):
                            fh.write(chunk)
        except httpx.HTTPStatusError as exc:
            target.unlink(missing_ok=True)
            raise ReleaseError(
                f"Download of {source_url} failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            target.unlink(missing_ok=True)
            raise ReleaseError(f"Download of {source_url} failed: {exc}") from exc
        return target

    async def download_latest(self, target_file: str | Path) -> Path:
        """Resolve the newest release and download it to *target_file*."""
        url = await self.latest_zip_url()
        return await self.download(url, target_file)
