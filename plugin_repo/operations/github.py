"""GitHub release asset store."""

from logging import getLogger

import httpx

from plugin_repo.config import Settings
from plugin_repo.domain.models import Release, RemoteAsset

logger = getLogger(__name__)


class ReleaseNotFoundError(RuntimeError):
    """Raised when the target release tag does not exist."""


class GitHubReleaseClient:
    """Thin client over the GitHub releases API.

    Every response updates :attr:`rate_limit_remaining` from the
    ``x-ratelimit-remaining`` header so callers can stop before the hourly
    quota is exceeded.

    Example:
        with GitHubReleaseClient("homebridge", "plugin-repo", token) as client:
            release = client.get_release("v1")
            assets = client.list_assets(release)
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            owner: Repository owner
            repo: Repository name
            token: GitHub token, or None for anonymous access
            api_url: Base URL of the REST API
            timeout: Request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.owner = owner
        self.repo = repo
        self.rate_limit_remaining: int | None = None

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.Client(
            base_url=api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "GitHubReleaseClient":
        return cls(
            owner=config.github_owner,
            repo=config.github_repo,
            token=config.token,
            api_url=config.github_api_url,
            timeout=config.api_timeout,
        )

    def __enter__(self) -> "GitHubReleaseClient":
        return self

    def __exit__(self, exc_type, _exc_value, _traceback) -> bool:
        self.close()
        return False

    def close(self) -> None:
        self._client.close()

    @property
    def rate_limit_exhausted(self) -> bool:
        """Return True once the API reports no remaining calls."""
        return self.rate_limit_remaining == 0

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = self._client.request(method, url, **kwargs)

        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is not None and remaining.isdigit():
            self.rate_limit_remaining = int(remaining)

        response.raise_for_status()
        return response

    def get_release(self, tag: str) -> Release:
        """Return the release for a tag.

        Raises:
            ReleaseNotFoundError: If no release carries the tag
        """
        try:
            response = self._request("GET", f"{self._repo_path}/releases/tags/{tag}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ReleaseNotFoundError(f'Release with tag "{tag}" does not exist') from e
            raise
        return Release.model_validate(response.json())

    def list_assets(self, release: Release) -> list[RemoteAsset]:
        """Return every asset of the release, following pagination."""
        assets: list[RemoteAsset] = []
        url: str | None = f"{self._repo_path}/releases/{release.id}/assets"
        params: dict | None = {"per_page": 100}

        while url:
            response = self._request("GET", url, params=params)
            assets.extend(RemoteAsset.model_validate(item) for item in response.json())
            url = response.links.get("next", {}).get("url")
            params = None  # the next link already carries the query

        logger.debug(f"Release {release.tag_name} has {len(assets)} assets")
        return assets

    def upload_asset(
        self,
        release: Release,
        name: str,
        label: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> RemoteAsset:
        """Create a release asset and return it."""
        upload_url = release.upload_url.split("{", 1)[0]
        response = self._request(
            "POST",
            upload_url,
            params={"name": name, "label": label},
            content=content,
            headers={"Content-Type": content_type},
        )
        return RemoteAsset.model_validate(response.json())

    def delete_asset(self, asset: RemoteAsset) -> None:
        self._request("DELETE", f"{self._repo_path}/releases/assets/{asset.id}")

    def download_asset(self, asset: RemoteAsset) -> bytes:
        """Return the raw content of an asset."""
        response = self._request(
            "GET",
            f"{self._repo_path}/releases/assets/{asset.id}",
            headers={"Accept": "application/octet-stream"},
        )
        return response.content

    def update_release_title(self, release: Release, title: str) -> None:
        self._request("PATCH", f"{self._repo_path}/releases/{release.id}", json={"name": title})
