"""Upload of converted results, evidence and videos."""

import json
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Union

from .errors import error_message
from .log import Logger


def _failed_evidence_message(evidence: dict, test_key: str, execution_key: str, error) -> str:
    return (
        f"Failed to attach evidence {evidence.get('filename')} of test {test_key} "
        f"to test execution {execution_key}:\n\n  {error_message(error)}"
    )


def _evidence_uploader(client, logger: Logger, execution_key: str, test_key: str):
    """Return a callable attaching one evidence item to the test's run."""
    if hasattr(client, "get_test_run"):
        test_run = client.get_test_run(execution_key, test_key)

        def upload_server(evidence: dict):
            try:
                client.add_evidence(test_run["id"], evidence)
            except Exception as e:
                logger.message(
                    "warning", _failed_evidence_message(evidence, test_key, execution_key, e)
                )

        return upload_server

    test_runs = client.get_test_run_results([execution_key], [test_key])
    if not test_runs:
        raise LookupError(
            f"Zero test runs were found for test execution {execution_key} and test {test_key}"
        )
    if len(test_runs) > 1:
        runs = "\n\n".join(json.dumps(run, indent=2) for run in test_runs)
        raise LookupError(
            f"Multiple test runs were found for test execution {execution_key} and test "
            f"{test_key}:\n\n{runs}"
        )
    test_run_id = test_runs[0].get("id")
    if not test_run_id:
        raise LookupError(
            f"Test run without ID found for test execution {execution_key} and test "
            f"{test_key}:\n\n{json.dumps(test_runs[0], indent=2)}"
        )

    def upload_cloud(evidence: dict):
        try:
            result = client.add_evidence_to_test_run(test_run_id, [evidence])
        except Exception as e:
            logger.message(
                "warning", _failed_evidence_message(evidence, test_key, execution_key, e)
            )
            return
        for warning in result.get("warnings") or []:
            logger.message(
                "warning",
                f"Xray warning occurred during upload of evidence {evidence.get('filename')} "
                f"of test {test_key} to test execution {execution_key}:\n\n  {warning}",
            )

    return upload_cloud


def _upload_test_evidence(
    client,
    logger: Logger,
    execution_key: str,
    test_key: str,
    evidence: list[dict],
    split_upload: Union[bool, str],
):
    try:
        upload = _evidence_uploader(client, logger, execution_key, test_key)
    except Exception as e:
        logger.message(
            "warning",
            f"Failed to attach evidences of test {test_key} to test execution "
            f"{execution_key}:\n\n  {error_message(e)}",
        )
        return
    if split_upload == "sequential":
        for item in evidence:
            upload(item)
    else:
        with ThreadPoolExecutor() as executor:
            list(executor.map(upload, evidence))


def upload_cypress_results(
    client,
    logger: Logger,
    xray_json: dict,
    info: dict,
    split_upload: Union[bool, str] = False,
) -> str:
    """Import Cypress results and return the test execution issue key.

    With split uploads, evidence is removed from the import and attached to
    each test run afterwards, keeping the import request small.
    With ``split_upload=True`` evidence is uploaded from worker threads, so
    warnings about failed uploads are logged in no particular order.
    """
    if not split_upload:
        return client.import_execution_multipart(xray_json, info)

    evidence_by_test: dict[str, list[dict]] = {}
    for test in xray_json.get("tests", []):
        if test.get("testKey") and test.get("evidence"):
            evidence_by_test[test["testKey"]] = test.pop("evidence")
    execution_key = client.import_execution_multipart(xray_json, info)
    for test_key, evidence in evidence_by_test.items():
        _upload_test_evidence(client, logger, execution_key, test_key, evidence, split_upload)
    return execution_key


def upload_cucumber_results(client, cucumber_json: list, info: dict) -> str:
    """Import Cucumber results and return the test execution issue key."""
    return client.import_execution_cucumber_multipart(cucumber_json, info)


def validate_uploads(
    cypress_execution_key: Optional[str],
    cucumber_execution_key: Optional[str],
    logger: Logger,
    url: str,
) -> Optional[str]:
    """Decide on the single test execution issue both uploads went to.

    Returns None when nothing was uploaded or when Cypress and Cucumber
    results ended up in different issues.
    """
    if cypress_execution_key and cucumber_execution_key:
        if cypress_execution_key != cucumber_execution_key:
            logger.message("warning", "\n".join([
                "Cucumber execution results were imported to a different test execution "
                "issue than the Cypress execution results:",
                "",
                f"  Cypress  test execution issue: {cypress_execution_key} "
                f"{url}/browse/{cypress_execution_key}",
                f"  Cucumber test execution issue: {cucumber_execution_key} "
                f"{url}/browse/{cucumber_execution_key}",
                "",
                "Make sure your Jira configuration does not prevent modifications of "
                "existing test executions.",
            ]))
            return None
        logger.message(
            "notice",
            f"Uploaded test results to issue: {cypress_execution_key} "
            f"({url}/browse/{cypress_execution_key})",
        )
        return cypress_execution_key
    if cypress_execution_key:
        logger.message(
            "notice",
            f"Uploaded Cypress test results to issue: {cypress_execution_key} "
            f"({url}/browse/{cypress_execution_key})",
        )
        return cypress_execution_key
    if cucumber_execution_key:
        logger.message(
            "notice",
            f"Uploaded Cucumber test results to issue: {cucumber_execution_key} "
            f"({url}/browse/{cucumber_execution_key})",
        )
        return cucumber_execution_key
    return None


def upload_videos(client, logger: Logger, execution_key: str, videos: list[str]) -> list[dict]:
    """Attach run videos to the test execution issue."""
    if not videos:
        return []
    try:
        return client.add_attachment(execution_key, *videos)
    except Exception as e:
        logger.message(
            "warning",
            f"Failed to upload videos to test execution issue {execution_key}:\n\n"
            f"  {error_message(e)}",
        )
    return []
