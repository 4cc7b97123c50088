"""GitHub repository lookup over the public REST API."""

from __future__ import annotations

import logging
import re

import httpx

from .config import GITHUB_API_URL
from .context import GithubRepo
from .errors import RepoNotFound

logger = logging.getLogger(__name__)

LOOKUP_TIMEOUT = 15.0
NOT_FOUND_MESSAGE = "Repository not found. Ensure it is public."

_REPO_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?(?:github\.com/)?([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+?)(?:\.git)?/?$"
)


def parse_repo_query(query: str) -> str:
    """Normalize a user query to ``owner/name``.

    Accepts:
    - Shorthand (owner/repo)
    - GitHub URLs (https://github.com/owner/repo, with or without .git or a trailing slash)
    """
    match = _REPO_RE.match(query.strip())
    if not match:
        raise RepoNotFound(f"Not a repository reference: {query!r}")
    return f"{match.group(1)}/{match.group(2)}"


class GithubClient:
    """Client for the repository metadata endpoint."""

    def __init__(
        self,
        base_url: str = GITHUB_API_URL,
        token: str | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "repolens-cli",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(timeout=LOOKUP_TIMEOUT, headers=self.headers)

    def fetch_repository(self, query: str) -> GithubRepo:
        """Look up ``owner/name``. Any non-200 status means not found or private."""
        repo_path = parse_repo_query(query)
        logger.debug("Fetching repository %s", repo_path)
        try:
            resp = self._client.get(f"{self.base_url}/repos/{repo_path}")
        except httpx.HTTPError as e:
            raise RepoNotFound(f"Could not reach GitHub: {e}")

        if resp.status_code != 200:
            logger.info("Lookup of %s returned %s", repo_path, resp.status_code)
            raise RepoNotFound(NOT_FOUND_MESSAGE)
        try:
            return GithubRepo.from_api(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise RepoNotFound(f"Unexpected repository payload: {e}")

    def close(self) -> None:
        self._client.close()
