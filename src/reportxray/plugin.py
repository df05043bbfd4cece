"""Orchestration of a complete plugin run."""

from dataclasses import dataclass
from typing import Callable, Optional

from . import phases as default_phases
from . import upload
from .errors import error_message
from .phases import RuntimeParameters


@dataclass
class Phases:
    """The steps run_plugin delegates to, replaceable one by one."""
    run_feature_file_upload: Callable = default_phases.run_feature_file_upload
    run_multipart_conversion: Callable = default_phases.run_multipart_conversion
    run_cypress_upload: Callable = default_phases.run_cypress_upload
    run_cucumber_upload: Callable = default_phases.run_cucumber_upload
    validate_uploads: Callable = upload.validate_uploads
    upload_videos: Callable = upload.upload_videos


@dataclass
class InspectionResult:
    contains_cypress_tests: bool
    contains_cucumber_tests: bool


def inspect_results(results: dict, feature_file_extension: Optional[str]) -> InspectionResult:
    """Check which kinds of tests a run contains, based on spec file extensions."""
    runs = results.get("runs", [])
    return InspectionResult(
        contains_cypress_tests=any(
            not feature_file_extension
            or not run["spec"]["absolute"].endswith(feature_file_extension)
            for run in runs
        ),
        contains_cucumber_tests=any(
            bool(feature_file_extension)
            and run["spec"]["absolute"].endswith(feature_file_extension)
            for run in runs
        ),
    )


def run_plugin(parameters: RuntimeParameters, phases: Optional[Phases] = None) -> Optional[str]:
    """Upload feature files and results of a finished Cypress run.

    The Cypress and Cucumber uploads fail independently: an error in one is
    logged and the other still runs. Returns the test execution issue key the
    results ended up in, if there is exactly one.
    """
    phases = phases or Phases()
    options = parameters.options
    logger = parameters.logger

    # Feature files first, so that the steps are up to date
    summary = phases.run_feature_file_upload(parameters)

    if not options.xray.upload_results:
        logger.message(
            "info", "Skipping results upload: Plugin is configured to not upload test results."
        )
        return None

    inspection = inspect_results(parameters.results, options.feature_file_extension)
    if not inspection.contains_cypress_tests and not inspection.contains_cucumber_tests:
        logger.message("warning", "No test execution results to upload, skipping results upload.")
        return None

    if summary is None:
        summary = f"Execution Results [{parameters.results.get('startedTestsAt')}]"
    info = phases.run_multipart_conversion(parameters, summary)

    cypress_key = None
    cucumber_key = None
    if inspection.contains_cypress_tests:
        try:
            cypress_key = phases.run_cypress_upload(parameters, info)
        except Exception as e:
            logger.message("error", error_message(e))
    if inspection.contains_cucumber_tests:
        try:
            cucumber_key = phases.run_cucumber_upload(parameters, info)
        except Exception as e:
            logger.message("error", error_message(e))

    execution_key = phases.validate_uploads(cypress_key, cucumber_key, logger, options.jira.url)

    if execution_key and options.jira.attach_videos:
        videos = [run["video"] for run in parameters.results.get("runs", []) if run.get("video")]
        phases.upload_videos(parameters.clients.jira, logger, execution_key, videos)

    # Server creates imported executions without running their workflow transition
    transition = options.jira.test_execution_issue.transition
    if (
        execution_key
        and transition
        and not options.jira.test_execution_issue.key
        and not parameters.is_cloud
    ):
        parameters.clients.jira.transition_issue(execution_key, {"transition": transition})

    return execution_key
