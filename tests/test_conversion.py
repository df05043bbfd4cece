"""Tests for converting Cypress results into Xray JSON."""

from datetime import datetime, timezone

import pytest

from reportxray.conversion import build_test, convert_cypress_results, screenshot_evidence
from reportxray.errors import NoTestsToUploadError
from reportxray.models import NormalizedStatus, SuccessfulConversion
from reportxray.options import XrayStatusOptions


class TestScreenshotEvidence:
    """Tests for screenshot evidence items."""

    def test_evidence(self, make_screenshot, png_base64):
        path = make_screenshot("CYP-1 an öffentlich test.png")
        evidence = screenshot_evidence(path)
        assert evidence == {
            "contentType": "image/png",
            "data": png_base64,
            "filename": "CYP-1 an öffentlich test.png",
        }

    def test_normalized_name(self, make_screenshot):
        path = make_screenshot("CYP-1 an öffentlich test.png")
        evidence = screenshot_evidence(path, normalize_name=True)
        assert evidence["filename"] == "CYP-1_an__ffentlich_test.png"


class TestConvertLegacy:
    """Tests for Cypress < 13 results."""

    def test_tests(self, legacy_results, logger, png_base64):
        xray_json = convert_cypress_results(legacy_results, "CYP", False, logger)
        assert "testExecutionKey" not in xray_json
        tests = xray_json["tests"]
        assert [t["testKey"] for t in tests] == ["CYP-40", "CYP-41", "CYP-49"]
        assert tests[0] == {
            "finish": "2022-11-28T17:41:15Z",
            "start": "2022-11-28T17:41:15Z",
            "status": "PASS",
            "testKey": "CYP-40",
        }
        assert tests[2]["status"] == "FAIL"
        assert tests[2]["start"] == "2022-11-28T17:41:15Z"
        assert tests[2]["finish"] == "2022-11-28T17:41:19Z"
        assert tests[2]["evidence"] == [{
            "contentType": "image/png",
            "data": png_base64,
            "filename": "CYP-49 should fail.png",
        }]
        assert logger.messages == []

    def test_cloud_statuses(self, legacy_results, logger):
        tests = convert_cypress_results(legacy_results, "CYP", True, logger)["tests"]
        assert [t["status"] for t in tests] == ["PASSED", "PASSED", "FAILED"]

    def test_execution_key_first(self, legacy_results, logger):
        xray_json = convert_cypress_results(
            legacy_results, "CYP", False, logger, test_execution_key="CYP-100"
        )
        assert list(xray_json) == ["testExecutionKey", "tests"]
        assert xray_json["testExecutionKey"] == "CYP-100"

    def test_screenshots_disabled(self, legacy_results, logger):
        tests = convert_cypress_results(
            legacy_results, "CYP", False, logger, upload_screenshots=False
        )["tests"]
        assert all("evidence" not in t for t in tests)

    def test_additional_evidence_after_screenshots(self, legacy_results, logger):
        extra = {"contentType": "text/plain", "data": "aGk=", "filename": "log.txt"}
        tests = convert_cypress_results(
            legacy_results, "CYP", False, logger,
            get_evidence=lambda key: [extra] if key in ("CYP-41", "CYP-49") else [],
        )["tests"]
        assert tests[1]["evidence"] == [extra]
        assert [e["filename"] for e in tests[2]["evidence"]] == ["CYP-49 should fail.png", "log.txt"]

    def test_status_overrides(self, legacy_results, logger):
        options = XrayStatusOptions(passed="OK", failed="NOK")
        tests = convert_cypress_results(
            legacy_results, "CYP", False, logger, status_options=options
        )["tests"]
        assert [t["status"] for t in tests] == ["OK", "OK", "NOK"]

    def test_feature_file_runs_excluded(self, legacy_results, logger):
        cucumber_run = {
            "spec": {"relative": "cypress/e2e/login.feature", "absolute": "/p/login.feature"},
            "tests": [{
                "title": ["Login", "CYP-77 logs in"],
                "attempts": [{"state": "passed", "duration": 5,
                              "startedAt": "2022-11-28T17:41:20.000Z"}],
            }],
        }
        legacy_results["runs"].append(cucumber_run)
        tests = convert_cypress_results(
            legacy_results, "CYP", False, logger, feature_file_extension=".feature"
        )["tests"]
        assert "CYP-77" not in [t["testKey"] for t in tests]

    def test_missing_key_is_logged_and_skipped(self, legacy_results, logger):
        legacy_results["runs"][0]["tests"][0]["title"] = ["xray upload demo", "no key"]
        tests = convert_cypress_results(legacy_results, "CYP", False, logger)["tests"]
        assert [t["testKey"] for t in tests] == ["CYP-41", "CYP-49"]
        [warning] = logger.at("warning")
        assert warning.startswith(
            "/project/cypress/e2e/demo.cy.ts\n\n  Test: xray upload demo no key\n\n"
            "    Skipping result upload.\n\n      Caused by: Test: xray upload demo no key"
        )

    def test_missing_start_time_is_logged_and_skipped(self, legacy_results, logger):
        legacy_results["runs"][0]["tests"][1]["attempts"][0]["startedAt"] = None
        tests = convert_cypress_results(legacy_results, "CYP", False, logger)["tests"]
        assert [t["testKey"] for t in tests] == ["CYP-40", "CYP-49"]
        [warning] = logger.at("warning")
        assert warning == (
            "/project/cypress/e2e/demo.cy.ts\n\n"
            "  Test: xray upload demo CYP-41 should look for the anchor element\n\n"
            "    Skipping result upload.\n\n      Caused by: Invalid start time: null"
        )

    def test_nothing_to_upload(self, legacy_results, logger):
        for test in legacy_results["runs"][0]["tests"]:
            test["title"] = ["no key"]
        with pytest.raises(NoTestsToUploadError) as exc_info:
            convert_cypress_results(legacy_results, "CYP", False, logger)
        assert str(exc_info.value) == (
            "Failed to convert Cypress tests into Xray tests: No Cypress tests to upload"
        )
        assert len(logger.at("warning")) == 4


class TestConvertLatest:
    """Tests for Cypress >= 13 results."""

    def test_iterations(self, latest_results, logger):
        tests = convert_cypress_results(latest_results, "CYP", False, logger)["tests"]
        assert tests == [
            {
                "finish": "2023-09-09T10:59:30Z",
                "start": "2023-09-09T10:59:28Z",
                "status": "PASS",
                "testKey": "CYP-452",
                "iterations": [
                    {"parameters": [{"name": "iteration", "value": "1"}], "status": "PASS"},
                    {"parameters": [{"name": "iteration", "value": "2"}], "status": "PASS"},
                ],
            },
            {
                "finish": "2023-09-09T10:59:31Z",
                "start": "2023-09-09T10:59:30Z",
                "status": "FAIL",
                "testKey": "CYP-237",
            },
        ]

    def test_iteration_parameters(self, latest_results, logger):
        def parameters(key, title):
            if title.endswith("again"):
                return {"browser": "chrome"}
            return {}

        tests = convert_cypress_results(
            latest_results, "CYP", True, logger, get_iteration_parameters=parameters
        )["tests"]
        assert tests[0]["iterations"][1]["parameters"] == [
            {"name": "iteration", "value": "2"},
            {"name": "browser", "value": "chrome"},
        ]
        assert tests[0]["iterations"][1]["status"] == "PASSED"

    def test_non_attributable_screenshot_logged(self, latest_results, logger, make_screenshot):
        screenshots = [
            {"path": make_screenshot("CYP-237 fails.png")},
            {"path": make_screenshot("overview.png")},
        ]
        tests = convert_cypress_results(
            latest_results, "CYP", False, logger, screenshots=screenshots
        )["tests"]
        assert [e["filename"] for e in tests[1]["evidence"]] == ["CYP-237 fails.png"]
        [warning] = logger.at("warning")
        assert "Screenshot cannot be attributed to a test" in warning
        assert 'cy.screenshot("CYP-123 overview")' in warning


class TestBuildTest:
    """Tests for merging runs into a single Xray test."""

    def test_single_run_has_no_iterations(self, latest_results, logger):
        tests = convert_cypress_results(latest_results, "CYP", False, logger)["tests"]
        assert "iterations" not in tests[1]

    def test_aggregated_status(self, latest_results, logger):
        latest_results["runs"][0]["tests"][1]["attempts"] = [{"state": "failed"}]
        options = XrayStatusOptions(aggregate=lambda counts: f"{counts['failed']} failed")
        tests = convert_cypress_results(
            latest_results, "CYP", False, logger, status_options=options
        )["tests"]
        assert tests[0]["status"] == "1 failed"
        assert [i["status"] for i in tests[0]["iterations"]] == ["PASS", "FAIL"]

    def test_span_of_all_runs(self):
        def run(second, duration, status):
            return SuccessfulConversion(
                issue_key="CYP-1",
                title="CYP-1 works",
                status=status,
                started_at=datetime(2024, 1, 1, 12, 0, second, 900000, tzinfo=timezone.utc),
                duration=duration,
                spec_path="/p/a.cy.ts",
            )

        runs = [run(5, 100, NormalizedStatus.PASSED), run(1, 9000, NormalizedStatus.PENDING)]
        test = build_test("CYP-1", runs, [], is_cloud=True)
        assert test["start"] == "2024-01-01T12:00:01Z"
        assert test["finish"] == "2024-01-01T12:00:10Z"
        assert test["status"] == "PASSED"
        assert [i["status"] for i in test["iterations"]] == ["PASSED", "TO DO"]
        assert "evidence" not in test
