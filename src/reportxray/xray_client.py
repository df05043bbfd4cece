"""Xray REST API clients for server and cloud."""

import base64
import json
from pathlib import Path
from typing import Optional

import httpx

from . import config
from .errors import ReportXrayError
from .log import Logger


class XrayClientError(ReportXrayError):
    """Error communicating with Xray API."""
    pass


def _json_part(name: str, data) -> tuple:
    return (name, json.dumps(data).encode("utf-8"), "application/json")


class _XrayClient:
    """Shared request handling of both Xray flavours."""

    def __init__(self, logger: Optional[Logger] = None, transport=None):
        self.logger = logger
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _base_url(self) -> str:
        raise NotImplementedError

    def _get_auth_header(self) -> str:
        raise NotImplementedError

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._base_url(),
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

    def _log(self, level: str, text: str):
        if self.logger is not None:
            self.logger.message(level, text)

    def _request(self, method: str, url: str, purpose: str, **kwargs) -> httpx.Response:
        try:
            response = self._get_client().request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise XrayClientError(f"Failed to {purpose}: {e}") from e

    def _execution_key(self, data: dict) -> str:
        raise NotImplementedError

    def import_execution_multipart(self, results: dict, info: dict) -> str:
        """Import Cypress results, returning the test execution issue key."""
        self._log("info", "Importing Cypress execution...")
        response = self._request(
            "POST",
            "/import/execution/multipart",
            "import Cypress results",
            files=self._multipart_files(results, info),
        )
        key = self._execution_key(response.json())
        self._log("debug", f"Successfully uploaded test execution results to {key}.")
        return key

    def import_execution_cucumber_multipart(self, features: list, info: dict) -> str:
        """Import Cucumber results, returning the test execution issue key."""
        self._log("info", "Importing Cucumber execution...")
        response = self._request(
            "POST",
            "/import/execution/cucumber/multipart",
            "import Cucumber results",
            files=self._multipart_files(features, info),
        )
        key = self._execution_key(response.json())
        self._log("debug", f"Successfully uploaded Cucumber test execution results to {key}.")
        return key

    def _multipart_files(self, results, info: dict) -> list:
        raise NotImplementedError

    def _feature_import_result(self, data) -> dict:
        raise NotImplementedError

    def import_feature(self, file_path: str, project_key: str) -> dict:
        """Import a feature file.

        Returns a dict with the import ``errors`` and the keys of all
        ``updatedOrCreatedIssues``.
        """
        self._log("debug", "Importing Cucumber features...")
        path = Path(file_path)
        response = self._request(
            "POST",
            "/import/feature",
            f"import feature file {file_path}",
            params={"projectKey": project_key},
            files=[("file", (path.name, path.read_bytes(), "text/plain"))],
        )
        result = self._feature_import_result(response.json())
        for error in result["errors"]:
            self._log("debug", f"Encountered an error during feature file import: {error}")
        return result


class XrayClientServer(_XrayClient):
    """Client for Xray server, living inside the Jira instance."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        email: Optional[str] = None,
        logger: Optional[Logger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(logger=logger, transport=transport)
        self.base_url = (base_url if base_url is not None else config.JIRA_URL).rstrip("/")
        self.token = token if token is not None else config.JIRA_TOKEN
        self.email = email if email is not None else config.JIRA_EMAIL

    def _base_url(self) -> str:
        return f"{self.base_url}/rest/raven/latest"

    def _get_auth_header(self) -> str:
        if self.email:
            encoded = base64.b64encode(f"{self.email}:{self.token}".encode()).decode()
            return f"Basic {encoded}"
        return f"Bearer {self.token}"

    def _multipart_files(self, results, info: dict) -> list:
        return [
            ("file", _json_part("results.json", results)),
            ("info", _json_part("info.json", info)),
        ]

    def _execution_key(self, data: dict) -> str:
        try:
            return data["testExecIssue"]["key"]
        except (KeyError, TypeError) as e:
            raise XrayClientError(f"Unexpected import response: {json.dumps(data)}") from e

    def _feature_import_result(self, data) -> dict:
        # Successful imports return a list of issues, partial ones an object
        if isinstance(data, list):
            return {"errors": [], "updatedOrCreatedIssues": [i["key"] for i in data]}
        errors = [data["message"]] if data.get("message") else []
        keys = [i["key"] for i in data.get("testIssues", [])]
        keys.extend(i["key"] for i in data.get("preconditionIssues", []))
        return {"errors": errors, "updatedOrCreatedIssues": keys}

    def get_test_run(self, test_exec_issue_key: str, test_issue_key: str) -> dict:
        """The test run of a test inside a test execution."""
        response = self._request(
            "GET",
            "/api/testrun",
            f"get test run of {test_issue_key} in {test_exec_issue_key}",
            params={"testExecIssueKey": test_exec_issue_key, "testIssueKey": test_issue_key},
        )
        return response.json()

    def add_evidence(self, test_run_id, evidence: dict):
        """Attach one evidence item to a test run."""
        self._request(
            "POST",
            f"/api/testrun/{test_run_id}/attachment",
            f"add evidence to test run {test_run_id}",
            json=evidence,
        )


GET_TEST_RUNS_QUERY = """
query($testIssueIds: [String], $testExecIssueIds: [String]) {
  getTestRuns(testIssueIds: $testIssueIds, testExecIssueIds: $testExecIssueIds, limit: 100) {
    results { id status { name } test { issueId } testExecution { issueId } }
  }
}
"""

ADD_EVIDENCE_MUTATION = """
mutation($id: String!, $evidence: [AttachmentDataInput]) {
  addEvidenceToTestRun(id: $id, evidence: $evidence) { addedEvidence warnings }
}
"""


class XrayClientCloud(_XrayClient):
    """Client for Xray cloud, authenticating with client credentials."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        logger: Optional[Logger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(logger=logger, transport=transport)
        self.client_id = client_id if client_id is not None else config.XRAY_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else config.XRAY_CLIENT_SECRET
        )
        self.base_url = (base_url if base_url is not None else config.XRAY_CLOUD_URL).rstrip("/")
        self._token: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _base_url(self) -> str:
        return self.base_url

    def _authenticate(self) -> str:
        try:
            with httpx.Client(timeout=config.HTTP_TIMEOUT, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/authenticate",
                    json={"client_id": self.client_id, "client_secret": self.client_secret},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise XrayClientError(f"Failed to authenticate with Xray cloud: {e}") from e
        return response.json()

    def _get_auth_header(self) -> str:
        if self._token is None:
            self._token = self._authenticate()
        return f"Bearer {self._token}"

    def _multipart_files(self, results, info: dict) -> list:
        return [
            ("results", _json_part("results.json", results)),
            ("info", _json_part("info.json", info)),
        ]

    def _execution_key(self, data: dict) -> str:
        if not isinstance(data, dict) or "key" not in data:
            raise XrayClientError(f"Unexpected import response: {json.dumps(data)}")
        return data["key"]

    def _feature_import_result(self, data) -> dict:
        errors = list(data.get("errors", []))
        keys = [i["key"] for i in data.get("updatedOrCreatedTests", [])]
        keys.extend(i["key"] for i in data.get("updatedOrCreatedPreconditions", []))
        return {"errors": errors, "updatedOrCreatedIssues": keys}

    def _graphql(self, query: str, variables: dict, purpose: str) -> dict:
        response = self._request(
            "POST", "/graphql", purpose, json={"query": query, "variables": variables}
        )
        data = response.json()
        if data.get("errors"):
            messages = "\n".join(e.get("message", json.dumps(e)) for e in data["errors"])
            raise XrayClientError(f"Failed to {purpose}: {messages}")
        return data["data"]

    def get_test_run_results(
        self,
        test_exec_issue_ids: list[str],
        test_issue_ids: list[str],
    ) -> list[dict]:
        """Test runs of the given tests inside the given executions."""
        data = self._graphql(
            GET_TEST_RUNS_QUERY,
            {"testIssueIds": test_issue_ids, "testExecIssueIds": test_exec_issue_ids},
            "get test runs",
        )
        return data["getTestRuns"]["results"]

    def add_evidence_to_test_run(self, test_run_id: str, evidence: list[dict]) -> dict:
        """Attach evidence to a test run, returning added evidence and warnings."""
        data = self._graphql(
            ADD_EVIDENCE_MUTATION,
            {
                "id": test_run_id,
                "evidence": [
                    {
                        "filename": item["filename"],
                        "mimeType": item.get("contentType"),
                        "data": item["data"],
                    }
                    for item in evidence
                ],
            },
            f"add evidence to test run {test_run_id}",
        )
        return data["addEvidenceToTestRun"]
