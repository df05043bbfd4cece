"""The individual steps of a plugin run."""

import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Optional

from .context import PluginEventEmitter
from .conversion import convert_cypress_results
from .cucumber import convert_cucumber_features, read_cucumber_report
from .features import process_feature_files, upload_feature_files
from .log import Logger
from .models import IssueSnapshot
from .multipart import RunData, build_multipart_info_cloud, build_multipart_info_server
from .options import Options
from .snapshots import get_issue_snapshots, restore_issue_snapshots
from .upload import upload_cucumber_results, upload_cypress_results


def _no_evidence(issue_key: str) -> list[dict]:
    return []


def _no_parameters(issue_key: str, title: str) -> dict[str, str]:
    return {}


@dataclass
class Clients:
    jira: object
    xray: object


@dataclass
class RunContext:
    """Data gathered while Cypress was running."""
    emitter: PluginEventEmitter = field(default_factory=PluginEventEmitter)
    feature_file_paths: list[str] = field(default_factory=list)
    get_evidence: Callable[[str], list[dict]] = _no_evidence
    get_iteration_parameters: Callable[[str, str], dict[str, str]] = _no_parameters
    screenshots: list[dict] = field(default_factory=list)


@dataclass
class RuntimeParameters:
    """Everything one plugin run needs, fixed for the duration of the run."""
    clients: Clients
    context: RunContext
    # Cypress module API results of the run
    results: dict
    project_root: str
    is_cloud: bool
    logger: Logger
    options: Options


def _log_errors(logger: Logger, headline: str, errors: list[str]):
    if errors:
        body = "\n".join(f"  {line}" if line else "" for e in errors for line in e.split("\n"))
        logger.message("warning", f"{headline}\n\n{body}")


def run_feature_file_upload(parameters: RuntimeParameters) -> Optional[str]:
    """Import feature files while protecting issue summaries and labels.

    Returns the summary to use for the test execution issue, if one is known.
    """
    options = parameters.options
    execution_issue = options.jira.test_execution_issue
    cucumber = options.cucumber
    processed = process_feature_files(
        parameters.context.feature_file_paths,
        options.jira.project_key,
        parameters.logger,
        prefixes=cucumber.prefixes if cucumber else None,
        is_cloud=parameters.is_cloud,
    )

    # Xray overwrites summaries and labels of existing issues on feature imports
    issues_to_snapshot = []
    for data in processed:
        for key in data.all_issue_keys:
            if key not in issues_to_snapshot:
                issues_to_snapshot.append(key)
    # The existing summary is reused for the results upload
    if (
        options.xray.upload_results
        and execution_issue.key
        and not execution_issue.summary
        and execution_issue.key not in issues_to_snapshot
    ):
        issues_to_snapshot.append(execution_issue.key)

    backup = get_issue_snapshots(
        parameters.clients.jira, [IssueSnapshot(key=key) for key in issues_to_snapshot]
    )
    _log_errors(
        parameters.logger,
        "Backing up Jira issue data failed for some issues, which may result in undesired "
        "data being displayed after the plugin has run:",
        backup.error_messages,
    )

    affected = upload_feature_files(
        parameters.clients.xray, parameters.logger, options.jira.project_key, processed
    )
    current = get_issue_snapshots(
        parameters.clients.jira, [IssueSnapshot(key=key) for key in affected]
    )
    _log_errors(
        parameters.logger,
        "Comparison of updated Jira issue data to backed up data failed for some issues, "
        "which may result in undesired data being displayed after the plugin has run:",
        current.error_messages,
    )
    restore_issue_snapshots(
        parameters.clients.jira, parameters.logger, current.issues, backup.issues
    )

    if options.xray.upload_results and execution_issue.key and execution_issue.summary:
        return execution_issue.summary
    for issue in backup.issues:
        if issue.key == execution_issue.key:
            return issue.summary
    return None


def run_multipart_conversion(parameters: RuntimeParameters, summary: str) -> dict:
    """Build the test execution issue info shared by both result uploads."""
    jira = parameters.options.jira
    issue = dataclasses.replace(
        jira.test_execution_issue,
        fields={**jira.test_execution_issue.fields, "summary": summary},
    )
    run = RunData.from_results(parameters.results)
    if parameters.is_cloud:
        result = build_multipart_info_cloud(run, jira.project_key, issue)
    else:
        result = build_multipart_info_server(
            parameters.clients.jira, run, jira.project_key, issue, jira.fields
        )
    for message in result.error_messages:
        parameters.logger.message("warning", message)
    return result.info


def run_cypress_upload(parameters: RuntimeParameters, info: dict) -> str:
    """Convert and import the Cypress results, returning the execution issue key."""
    options = parameters.options
    xray_json = convert_cypress_results(
        parameters.results,
        options.jira.project_key,
        parameters.is_cloud,
        parameters.logger,
        get_evidence=parameters.context.get_evidence,
        get_iteration_parameters=parameters.context.get_iteration_parameters,
        screenshots=parameters.context.screenshots,
        test_execution_key=options.jira.test_execution_issue.key,
        feature_file_extension=options.feature_file_extension,
        upload_screenshots=options.xray.upload_screenshots,
        upload_last_attempt=options.plugin.upload_last_attempt,
        normalize_screenshot_names=options.plugin.normalize_screenshot_names,
        status_options=options.xray.status,
    )
    execution_key = upload_cypress_results(
        parameters.clients.xray,
        parameters.logger,
        xray_json,
        info,
        split_upload=options.plugin.split_upload,
    )
    parameters.context.emitter.emit("upload:cypress", {
        "info": info,
        "results": xray_json,
        "testExecutionIssueKey": execution_key,
    })
    return execution_key


def run_cucumber_upload(parameters: RuntimeParameters, info: dict) -> str:
    """Convert and import the Cucumber report, returning the execution issue key."""
    options = parameters.options
    cucumber = options.cucumber
    report = read_cucumber_report(
        parameters.project_root, cucumber.report_path if cucumber else None
    )
    features = convert_cucumber_features(
        report,
        parameters.project_root,
        options.jira.project_key,
        parameters.is_cloud,
        parameters.logger,
        test_execution_key=options.jira.test_execution_issue.key,
        test_prefix=cucumber.prefixes.test if cucumber else None,
        upload_screenshots=options.xray.upload_screenshots,
        step_status=options.xray.status.step,
    )
    execution_key = upload_cucumber_results(parameters.clients.xray, features, info)
    parameters.context.emitter.emit("upload:cucumber", {
        "results": {"features": features, "info": info},
        "testExecutionIssueKey": execution_key,
    })
    return execution_key
