"""Tests for Jira API clients."""

import base64
import json

import httpx
import pytest

from reportxray.jira_client import JiraClient, JiraClientCloud, JiraClientError


def _client(handler, cls=JiraClient, **kwargs):
    kwargs.setdefault("token", "secret")
    kwargs.setdefault("email", "")
    return cls(
        base_url="https://jira.example.org/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestJiraClientConfiguration:
    """Tests for Jira client configuration."""

    def test_reads_config(self, monkeypatch):
        monkeypatch.setattr("reportxray.config.JIRA_URL", "https://env.example.org")
        monkeypatch.setattr("reportxray.config.JIRA_TOKEN", "t")
        monkeypatch.setattr("reportxray.config.JIRA_EMAIL", "")
        client = JiraClient()
        assert client.base_url == "https://env.example.org"
        assert client.is_configured is True

    def test_not_configured_without_token(self):
        assert JiraClient(base_url="https://jira.example.org", token="").is_configured is False


class TestJiraClientAuth:
    """Tests for Jira authentication."""

    def test_bearer_token(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[])

        _client(handler).get_fields()
        assert requests[0].headers["Authorization"] == "Bearer secret"
        assert str(requests[0].url) == "https://jira.example.org/rest/api/latest/field"

    def test_basic_auth_with_email(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[])

        _client(handler, email="qa@example.org").get_fields()
        header = requests[0].headers["Authorization"]
        assert header.startswith("Basic ")
        assert base64.b64decode(header[6:]).decode() == "qa@example.org:secret"


class TestJiraClientSearch:
    """Tests for paginated searches."""

    def test_server_pagination(self):
        bodies = []

        def handler(request):
            body = json.loads(request.content)
            bodies.append(body)
            if body["startAt"] == 0:
                issues = [{"key": "CYP-1"}, {"key": "CYP-2"}]
            else:
                issues = [{"key": "CYP-2"}, {"key": "CYP-3"}]
            return httpx.Response(200, json={"issues": issues, "total": 4})

        client = _client(handler)
        client.search_page_size = 2
        issues = client.search("issue in (CYP-1,CYP-2,CYP-3)", ["summary"])
        assert [i["key"] for i in issues] == ["CYP-1", "CYP-2", "CYP-3"]
        assert [b["startAt"] for b in bodies] == [0, 2]
        assert bodies[0]["fields"] == ["summary"]

    def test_cloud_pagination(self):
        bodies = []

        def handler(request):
            assert request.url.path == "/rest/api/latest/search/jql"
            body = json.loads(request.content)
            bodies.append(body)
            if "nextPageToken" not in body:
                return httpx.Response(200, json={
                    "issues": [{"key": "CYP-1"}], "nextPageToken": "abc", "isLast": False,
                })
            return httpx.Response(200, json={"issues": [{"key": "CYP-2"}], "isLast": True})

        issues = _client(handler, cls=JiraClientCloud).search("project = CYP")
        assert [i["key"] for i in issues] == ["CYP-1", "CYP-2"]
        assert bodies[1]["nextPageToken"] == "abc"

    def test_http_error(self):
        client = _client(lambda request: httpx.Response(401, json={}))
        with pytest.raises(JiraClientError, match="Failed to search issues"):
            client.search("project = CYP")


class TestJiraClientIssues:
    """Tests for issue operations."""

    def test_edit_issue(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        data = {"fields": {"summary": "s", "labels": []}}
        assert _client(handler).edit_issue("CYP-1", data) == "CYP-1"
        assert requests[0].method == "PUT"
        assert requests[0].url.path == "/rest/api/latest/issue/CYP-1"
        assert json.loads(requests[0].content) == data

    def test_transition_issue(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        _client(handler).transition_issue("CYP-1", {"transition": {"id": "31"}})
        assert requests[0].url.path == "/rest/api/latest/issue/CYP-1/transitions"

    def test_add_attachment(self, tmp_path, logger):
        video = tmp_path / "demo.mp4"
        video.write_bytes(b"video")
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[{"filename": "demo.mp4"}])

        client = _client(handler, logger=logger)
        result = client.add_attachment("CYP-1", str(video), str(tmp_path / "gone.mp4"))
        assert result == [{"filename": "demo.mp4"}]
        assert requests[0].headers["X-Atlassian-Token"] == "no-check"
        assert b'filename="demo.mp4"' in requests[0].content
        assert logger.at("warning") == [f"File does not exist: {tmp_path / 'gone.mp4'}"]

    def test_add_attachment_nothing_to_send(self, tmp_path):
        def handler(request):
            raise AssertionError("no request expected")

        assert _client(handler).add_attachment("CYP-1", str(tmp_path / "gone.mp4")) == []
