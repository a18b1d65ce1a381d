"""Async client for framework releases published on GitHub.

Looks up the latest release through the GitHub REST API and downloads the
``Directory.Packages.props`` that shipped with a given tag, so the upgrade
workflow can diff it against a local project.

Typical usage::

    client = ReleaseClient(config.release)
    release = await client.latest_release()
    props = await client.fetch_manifest(release.tag)
"""

from __future__ import annotations

from typing import Any

import httpx

from src.config import ReleaseConfig

from .plan import ReleaseInfo
from .versions import compare_versions


class ReleaseFetchError(Exception):
    """Raised when release information cannot be retrieved."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"{url}: {message}")


class ReleaseClient:
    """Async client for the release repository configured in ``ReleaseConfig``.

    Every call opens a short-lived ``httpx.AsyncClient``; failures of any
    kind surface as ``ReleaseFetchError``.  No retries are attempted.
    """

    def __init__(self, config: ReleaseConfig | None = None) -> None:
        self.config = config or ReleaseConfig()
        self.api_url = self.config.api_url.rstrip("/")
        self.raw_url = self.config.raw_url.rstrip("/")
        self.timeout = self.config.timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": "fsh-scaffold",
            },
            follow_redirects=True,
        )

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response
        except httpx.TimeoutException as exc:
            raise ReleaseFetchError(url, f"Request timed out after {self.timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise ReleaseFetchError(
                url,
                f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
                exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ReleaseFetchError(url, f"Cannot reach release server: {exc}") from exc

    @staticmethod
    def _to_release(data: dict[str, Any]) -> ReleaseInfo:
        tag = data.get("tag_name")
        if not tag:
            raise ValueError("Release payload has no tag_name")
        return ReleaseInfo(
            tag=tag,
            prerelease=bool(data.get("prerelease", False)),
            notes=data.get("body") or "",
            url=data.get("html_url") or "",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def latest_release(self) -> ReleaseInfo:
        """Return the newest published release.

        With ``include_prereleases`` the recent release list is scanned and
        the highest version wins (drafts are ignored); otherwise GitHub's
        ``releases/latest`` endpoint is used, which never returns
        pre-releases.
        """
        base = f"{self.api_url}/repos/{self.config.repository}/releases"
        if not self.config.include_prereleases:
            response = await self._get(f"{base}/latest")
            try:
                return self._to_release(response.json())
            except ValueError as exc:
                raise ReleaseFetchError(f"{base}/latest", str(exc)) from exc

        response = await self._get(base, params={"per_page": 30})
        try:
            releases = [
                self._to_release(item)
                for item in response.json()
                if isinstance(item, dict) and not item.get("draft")
            ]
        except ValueError as exc:
            raise ReleaseFetchError(base, str(exc)) from exc
        if not releases:
            raise ReleaseFetchError(base, "No releases published")

        latest = releases[0]
        for release in releases[1:]:
            if compare_versions(release.version, latest.version) > 0:
                latest = release
        return latest

    async def fetch_manifest(self, tag: str) -> str:
        """Download the package manifest shipped with *tag*."""
        url = f"{self.raw_url}/{self.config.repository}/{tag}/{self.config.manifest_path}"
        response = await self._get(url)
        return response.text
