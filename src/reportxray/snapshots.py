"""Backup and restore of issue data overwritten by feature file imports."""

import json
from dataclasses import dataclass, field

from .errors import ExtractionError, error_message
from .extraction import extract_array_of_strings, extract_string
from .log import Logger
from .models import IssueSnapshot


@dataclass
class SnapshotResult:
    issues: list[IssueSnapshot] = field(default_factory=list)
    error_messages: list[str] = field(default_factory=list)


def get_issue_snapshots(client, issues: list[IssueSnapshot]) -> SnapshotResult:
    """Complete the summary and labels of the given issues.

    Issues which already carry both are returned unchanged. All others are
    looked up with a single search request.
    """
    snapshot = SnapshotResult()
    incomplete = []
    for issue in issues:
        if issue.is_complete:
            snapshot.issues.append(IssueSnapshot(issue.key, issue.summary, list(issue.labels)))
        else:
            incomplete.append(issue)
    if not incomplete:
        return snapshot

    jira_issues = client.search(
        jql=f"issue in ({','.join(issue.key for issue in incomplete)})",
        fields=["summary", "labels"],
    )
    for jira_issue in jira_issues:
        key = jira_issue.get("key")
        if not key:
            snapshot.error_messages.append(
                f"Jira returned an unknown issue: {json.dumps(jira_issue)}"
            )
            continue
        # Both fields are checked so that every problem gets reported
        summary = labels = None
        failed = False
        try:
            summary = extract_string(jira_issue.get("fields"), "summary")
        except ExtractionError as e:
            snapshot.error_messages.append(f"{key}: {error_message(e)}")
            failed = True
        try:
            labels = extract_array_of_strings(jira_issue.get("fields"), "labels")
        except ExtractionError as e:
            snapshot.error_messages.append(f"{key}: {error_message(e)}")
            failed = True
        if failed:
            continue
        snapshot.issues.append(IssueSnapshot(key=key, summary=summary, labels=labels))
    return snapshot


def _same_labels(previous: list[str], new: list[str]) -> bool:
    return len(previous) == len(new) and all(label in new for label in previous)


def restore_issue_snapshots(
    client,
    logger: Logger,
    new_data: list[IssueSnapshot],
    previous_data: list[IssueSnapshot],
):
    """Write back backed up fields of issues whose data changed.

    Restores happen one issue at a time. Failures are logged and never stop
    the remaining restores.
    """
    previous_by_key = {issue.key: issue for issue in previous_data}
    to_restore = []
    unrecoverable = []
    for new in new_data:
        previous = previous_by_key.get(new.key)
        if previous is None:
            unrecoverable.append(new)
            continue
        same_summary = previous.summary == new.summary
        same_labels = _same_labels(previous.labels, new.labels)
        if same_summary and same_labels:
            continue
        to_restore.append(IssueSnapshot(
            key=new.key,
            summary=new.summary if same_summary else previous.summary,
            labels=new.labels if same_labels else previous.labels,
        ))

    for issue in unrecoverable:
        logger.message("warning", "\n".join([
            issue.key,
            "",
            "  The plugin tried to reset the issue data after importing the feature files, "
            "but could not because no backup data could be retrieved.",
            "",
            "  Make sure to manually restore it if needed.",
        ]))

    for issue in to_restore:
        try:
            client.edit_issue(issue.key, {
                "fields": {"labels": issue.labels, "summary": issue.summary},
            })
        except Exception as e:
            logger.message(
                "warning",
                f"Failed to restore backed up Jira issue data for {issue.key}:\n\n"
                f"  {error_message(e)}",
            )
