from __future__ import annotations

import base64
import logging
import re
from typing import Any

import requests

from careerproof.config import Settings, get_settings
from careerproof.errors import UpstreamError

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"
USER_AGENT = "careerproof-evidence-compiler"

_LAST_PAGE = re.compile(r'[?&]page=(\d+)>;\s*rel="last"')


def parse_last_page(link_header: str | None) -> int | None:
    """Page number of the ``rel="last"`` entry of a GitHub Link header."""
    if not link_header:
        return None
    match = _LAST_PAGE.search(link_header)
    return int(match.group(1)) if match else None


class GitHubClient:
    def __init__(
        self,
        access_token: str,
        *,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.github_api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": GITHUB_ACCEPT,
                "User-Agent": USER_AGENT,
            }
        )

    def list_repositories(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Repositories of the authenticated user, most recently updated first."""
        per_page = limit or self.settings.github_repo_page_size
        response = self._get(
            "/user/repos",
            params={"per_page": per_page, "sort": "updated"},
            timeout=self.settings.github_timeout_sec,
        )
        payload = response.json()
        if not isinstance(payload, list):
            raise UpstreamError("GitHub API returned an unexpected repository payload")
        return payload

    def count_commits(self, full_name: str) -> int:
        """Approximate commit count from the last-page hint of a one-commit page."""
        response = self._get(
            f"/repos/{full_name}/commits",
            params={"per_page": 1},
            timeout=self.settings.github_commit_count_timeout_sec,
        )
        last_page = parse_last_page(response.headers.get("Link"))
        return last_page if last_page is not None else 1

    def list_root_paths(self, full_name: str) -> list[str]:
        response = self._get(
            f"/repos/{full_name}/contents",
            timeout=self.settings.github_commit_count_timeout_sec,
        )
        payload = response.json()
        if not isinstance(payload, list):
            return []
        return [str(entry.get("path", "")) for entry in payload if isinstance(entry, dict)]

    def get_readme(self, full_name: str) -> str:
        response = self._get(
            f"/repos/{full_name}/readme",
            timeout=self.settings.github_commit_count_timeout_sec,
        )
        payload = response.json()
        if not isinstance(payload, dict):
            return ""
        content = str(payload.get("content", ""))
        if payload.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8", errors="replace")
        return content

    def _get(self, path: str, *, timeout: int, params: dict[str, Any] | None = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        response = self.session.get(url, params=params, timeout=timeout)
        if not response.ok:
            logger.warning("GitHub request failed url=%s status=%s", url, response.status_code)
            raise UpstreamError(f"GitHub API error: {response.text}")
        return response
