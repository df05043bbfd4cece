"""Pytest fixtures for reportxray tests."""

import base64

import pytest

from reportxray.log import CapturingLogger
from reportxray.options import JiraOptions, Options

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def logger():
    """Logger recording all messages."""
    return CapturingLogger()


@pytest.fixture
def options():
    """Minimal server options for project CYP."""
    return Options(jira=JiraOptions(project_key="CYP", url="https://jira.example.org"))


@pytest.fixture
def make_screenshot(tmp_path):
    """Factory writing a small PNG screenshot and returning its path."""
    def _make(name: str) -> str:
        path = tmp_path / "screenshots" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(PNG_BYTES)
        return str(path)
    return _make


@pytest.fixture
def legacy_results(make_screenshot):
    """Run result of Cypress 12 with per-attempt timings and screenshots."""
    return {
        "browserName": "electron",
        "browserVersion": "106.0.5249.51",
        "cypressVersion": "12.17.4",
        "startedTestsAt": "2022-11-28T17:41:12.234Z",
        "runs": [{
            "spec": {
                "relative": "cypress/e2e/demo.cy.ts",
                "absolute": "/project/cypress/e2e/demo.cy.ts",
            },
            "video": "/project/cypress/videos/demo.cy.ts.mp4",
            "tests": [
                {
                    "title": ["xray upload demo", "CYP-40 should look for paragraph elements"],
                    "attempts": [{
                        "state": "passed",
                        "duration": 244,
                        "startedAt": "2022-11-28T17:41:15.091Z",
                        "screenshots": [],
                    }],
                },
                {
                    "title": ["xray upload demo", "CYP-41 should look for the anchor element"],
                    "attempts": [{
                        "state": "passed",
                        "duration": 185,
                        "startedAt": "2022-11-28T17:41:15.338Z",
                        "screenshots": [],
                    }],
                },
                {
                    "title": ["xray upload demo", "CYP-49 should fail"],
                    "attempts": [{
                        "state": "failed",
                        "duration": 4413,
                        "startedAt": "2022-11-28T17:41:15.526Z",
                        "screenshots": [{"path": make_screenshot("CYP-49 should fail.png")}],
                    }],
                },
            ],
        }],
    }


@pytest.fixture
def latest_results():
    """Run result of Cypress 13 with test level timings."""
    return {
        "browserName": "chrome",
        "browserVersion": "116.0.5845.180",
        "cypressVersion": "13.2.0",
        "startedTestsAt": "2023-09-09T10:59:28.829Z",
        "runs": [{
            "spec": {
                "relative": "cypress/e2e/demo.cy.ts",
                "absolute": "/project/cypress/e2e/demo.cy.ts",
            },
            "stats": {"startedAt": "2023-09-09T10:59:28.829Z"},
            "video": None,
            "tests": [
                {
                    "title": ["template spec", "CYP-452 passes"],
                    "state": "passed",
                    "duration": 800,
                    "attempts": [{"state": "passed"}],
                },
                {
                    "title": ["template spec", "CYP-452 passes again"],
                    "state": "passed",
                    "duration": 500,
                    "attempts": [{"state": "passed"}],
                },
                {
                    "title": ["template spec", "CYP-237 fails"],
                    "state": "failed",
                    "duration": 1200,
                    "attempts": [{"state": "failed"}],
                },
            ],
        }],
    }


@pytest.fixture
def png_base64():
    """Base64 content of every screenshot written by make_screenshot."""
    return PNG_BASE64
