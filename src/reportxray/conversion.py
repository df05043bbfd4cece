"""Conversion of Cypress run results into Xray import JSON."""

from datetime import timedelta
from pathlib import PurePath
from typing import Callable, Optional

from .errors import NoIssueKeysFoundError, NoTestsToUploadError, error_message
from .extraction import missing_issue_key_message
from .log import Logger
from .models import FailedConversion, SuccessfulConversion
from .options import XrayStatusOptions
from .runs import get_converter
from .status import aggregate_status, map_status
from .util import encode_file, normalized_filename, truncate_iso_time


def _no_evidence(issue_key: str) -> list[dict]:
    return []


def _no_parameters(issue_key: str, title: str) -> dict[str, str]:
    return {}


def screenshot_evidence(path: str, normalize_name: bool = False) -> dict:
    """Evidence item for a screenshot file."""
    filename = PurePath(path).name
    if normalize_name:
        filename = normalized_filename(filename)
    return {
        "contentType": f"image/{PurePath(path).suffix.lstrip('.')}",
        "data": encode_file(path),
        "filename": filename,
    }


def failed_conversion_message(failure: FailedConversion) -> str:
    lines = [
        failure.spec_path,
        "",
        f"  Test: {failure.title}",
        "",
        "    Skipping result upload.",
        "",
        f"      Caused by: {error_message(failure.error)}",
    ]
    return "\n".join(lines)


def non_attributable_screenshot_message(path: str, project_key: str) -> str:
    lines = [
        path,
        "",
        "  Screenshot cannot be attributed to a test and will not be uploaded.",
        "",
        "  To upload screenshots, include test issue keys anywhere in their name:",
        "",
        f'    cy.screenshot("{project_key}-123 {PurePath(path).stem}")',
    ]
    return "\n".join(lines)


def build_test(
    issue_key: str,
    runs: list[SuccessfulConversion],
    evidence: list[dict],
    is_cloud: bool,
    status_options: Optional[XrayStatusOptions] = None,
    get_iteration_parameters: Callable[[str, str], dict] = _no_parameters,
) -> dict:
    """Combine all executions of one issue into a single Xray test."""
    start = min(run.started_at for run in runs)
    finish = max(run.started_at + timedelta(milliseconds=run.duration) for run in runs)
    test = {
        "finish": truncate_iso_time(finish),
        "start": truncate_iso_time(start),
        "status": aggregate_status([run.status for run in runs], is_cloud, status_options),
        "testKey": issue_key,
    }
    if evidence:
        test["evidence"] = evidence
    if len(runs) > 1:
        iterations = []
        for index, run in enumerate(runs, start=1):
            parameters = [{"name": "iteration", "value": str(index)}]
            defined = get_iteration_parameters(issue_key, run.title)
            parameters.extend({"name": name, "value": value} for name, value in defined.items())
            iterations.append({
                "parameters": parameters,
                "status": map_status(run.status, is_cloud, status_options),
            })
        test["iterations"] = iterations
    return test


def convert_cypress_results(
    results: dict,
    project_key: str,
    is_cloud: bool,
    logger: Logger,
    *,
    get_evidence: Callable[[str], list] = _no_evidence,
    get_iteration_parameters: Callable[[str, str], dict] = _no_parameters,
    screenshots: Optional[list[dict]] = None,
    test_execution_key: Optional[str] = None,
    feature_file_extension: Optional[str] = None,
    upload_screenshots: bool = True,
    upload_last_attempt: bool = False,
    normalize_screenshot_names: bool = False,
    status_options: Optional[XrayStatusOptions] = None,
) -> dict:
    """Convert a Cypress run result into the Xray import execution format.

    Tests that cannot be converted are logged and skipped. Tests sharing an
    issue key are merged into one test with one iteration per execution.

    Raises:
        NoTestsToUploadError: if not a single test could be converted.
    """
    runs = [
        run for run in results.get("runs", [])
        if not feature_file_extension
        or not run["spec"]["relative"].endswith(feature_file_extension)
    ]
    converter = get_converter(results["cypressVersion"], project_key, runs, screenshots)

    failures: list[FailedConversion] = []
    runs_by_key: dict[str, list[SuccessfulConversion]] = {}
    for conversion in converter.get_conversions(only_last_attempt=upload_last_attempt):
        if isinstance(conversion, FailedConversion):
            failures.append(conversion)
        elif conversion.issue_key is None:
            message = missing_issue_key_message(conversion.title, project_key)
            failures.append(FailedConversion(
                error=NoIssueKeysFoundError(message),
                spec_path=conversion.spec_path,
                title=conversion.title,
            ))
        else:
            runs_by_key.setdefault(conversion.issue_key, []).append(conversion)

    screenshots_by_key: dict[str, list[dict]] = {}
    non_attributable: list[str] = []
    if upload_screenshots:
        for issue_key in runs_by_key:
            paths = converter.get_screenshots(issue_key, only_last_attempt=upload_last_attempt)
            if paths:
                screenshots_by_key[issue_key] = [
                    screenshot_evidence(path, normalize_screenshot_names) for path in paths
                ]
        non_attributable = converter.get_non_attributable_screenshots(
            only_last_attempt=upload_last_attempt
        )

    for failure in failures:
        logger.message("warning", failed_conversion_message(failure))
    for path in non_attributable:
        logger.message("warning", non_attributable_screenshot_message(path, project_key))

    if not runs_by_key:
        raise NoTestsToUploadError(
            "Failed to convert Cypress tests into Xray tests: No Cypress tests to upload"
        )

    tests = []
    for issue_key, key_runs in runs_by_key.items():
        evidence = screenshots_by_key.get(issue_key, []) + list(get_evidence(issue_key))
        tests.append(build_test(
            issue_key,
            key_runs,
            evidence,
            is_cloud,
            status_options,
            get_iteration_parameters,
        ))

    xray_json = {"tests": tests}
    if test_execution_key:
        xray_json = {"testExecutionKey": test_execution_key, **xray_json}
    return xray_json
