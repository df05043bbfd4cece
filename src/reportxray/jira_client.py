"""Jira REST API clients."""

import base64
from pathlib import Path
from typing import Optional

import httpx

from . import config
from .errors import ReportXrayError
from .log import Logger


class JiraClientError(ReportXrayError):
    """Error communicating with Jira API."""
    pass


class JiraClient:
    """Client for the Jira REST API of server/data center instances.

    Server instances authenticate with a personal access token. When an email
    is configured, basic authentication is used instead.
    """

    search_page_size = 50

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        email: Optional[str] = None,
        logger: Optional[Logger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.JIRA_URL).rstrip("/")
        self.token = token if token is not None else config.JIRA_TOKEN
        self.email = email if email is not None else config.JIRA_EMAIL
        self.logger = logger
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def is_configured(self) -> bool:
        """Check if Jira credentials are configured."""
        return bool(self.base_url and self.token)

    def _get_auth_header(self) -> str:
        if self.email:
            credentials = f"{self.email}:{self.token}"
            encoded = base64.b64encode(credentials.encode()).decode()
            return f"Basic {encoded}"
        return f"Bearer {self.token}"

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=f"{self.base_url}/rest/api/latest",
                headers={
                    "Authorization": self._get_auth_header(),
                    "Accept": "application/json",
                },
                timeout=config.HTTP_TIMEOUT,
                transport=self._transport,
            )
        return self._client

    def close(self):
        """Close HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def _debug(self, text: str):
        if self.logger is not None:
            self.logger.message("debug", text)

    def _request(self, method: str, url: str, purpose: str, **kwargs) -> httpx.Response:
        try:
            response = self._get_client().request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise JiraClientError(f"Failed to {purpose}: {e}") from e

    def _search_page(self, jql: str, fields: list[str], cursor) -> tuple[list[dict], object]:
        start_at = cursor or 0
        response = self._request(
            "POST",
            "/search",
            "search issues",
            json={
                "jql": jql,
                "fields": fields,
                "startAt": start_at,
                "maxResults": self.search_page_size,
            },
        )
        data = response.json()
        issues = data.get("issues", [])
        total = data.get("total", 0)
        next_start = start_at + len(issues)
        if not issues or next_start >= total:
            return issues, None
        return issues, next_start

    def search(self, jql: str, fields: Optional[list[str]] = None) -> list[dict]:
        """Run a JQL search and collect all result pages.

        Issues are deduplicated by key, keeping the first occurrence.
        """
        fields = fields or []
        self._debug(f"Searching issues: {jql}")
        issues: dict[str, dict] = {}
        unkeyed: list[dict] = []
        cursor = None
        while True:
            page, cursor = self._search_page(jql, fields, cursor)
            for issue in page:
                key = issue.get("key")
                if key is None:
                    unkeyed.append(issue)
                elif key not in issues:
                    issues[key] = issue
            if cursor is None:
                break
        return list(issues.values()) + unkeyed

    def edit_issue(self, issue_key: str, data: dict):
        """Update fields of an issue."""
        self._request("PUT", f"/issue/{issue_key}", f"edit issue {issue_key}", json=data)
        return issue_key

    def get_fields(self) -> list[dict]:
        """All fields known to the instance, including custom fields."""
        return self._request("GET", "/field", "fetch fields").json()

    def transition_issue(self, issue_key: str, data: dict):
        """Move an issue to another workflow status."""
        self._request(
            "POST",
            f"/issue/{issue_key}/transitions",
            f"transition issue {issue_key}",
            json=data,
        )

    def add_attachment(self, issue_key: str, *file_paths: str) -> list[dict]:
        """Attach files to an issue. Missing files are skipped with a warning."""
        files = []
        for path in file_paths:
            file_path = Path(path)
            if not file_path.is_file():
                if self.logger is not None:
                    self.logger.message("warning", f"File does not exist: {path}")
                continue
            files.append(("file", (file_path.name, file_path.read_bytes())))
        if not files:
            return []
        response = self._request(
            "POST",
            f"/issue/{issue_key}/attachments",
            f"attach files to {issue_key}",
            files=files,
            headers={"X-Atlassian-Token": "no-check"},
        )
        return response.json()


class JiraClientCloud(JiraClient):
    """Client for Jira cloud, which paginates searches with tokens."""

    def _search_page(self, jql: str, fields: list[str], cursor) -> tuple[list[dict], object]:
        body = {"jql": jql, "fields": fields, "maxResults": self.search_page_size}
        if cursor:
            body["nextPageToken"] = cursor
        data = self._request("POST", "/search/jql", "search issues", json=body).json()
        next_token = data.get("nextPageToken")
        if data.get("isLast", True) or not next_token:
            return data.get("issues", []), None
        return data.get("issues", []), next_token
