"""Builders for the "info" part of multipart execution imports."""

from dataclasses import dataclass, field
from typing import Optional

from .errors import error_message
from .options import ExecutionIssue, JiraFieldIds

FIELD_OPTION_NAMES = {
    "test plan": "testPlan",
    "test environments": "testEnvironments",
}


@dataclass
class MultipartInfoResult:
    info: dict
    error_messages: list[str] = field(default_factory=list)


@dataclass
class RunData:
    """Run metadata shown in the default test execution description."""
    browser_name: str
    browser_version: str
    cypress_version: str

    @classmethod
    def from_results(cls, results: dict) -> "RunData":
        return cls(
            browser_name=results.get("browserName", ""),
            browser_version=results.get("browserVersion", ""),
            cypress_version=results.get("cypressVersion", ""),
        )


def _base_info(run: RunData, project_key: str, issue: ExecutionIssue) -> dict:
    description = issue.fields.get("description")
    if description is None:
        description = (
            f"Cypress version: {run.cypress_version}\n"
            f"Browser: {run.browser_name} ({run.browser_version})"
        )
    info = {
        "fields": {
            "description": description,
            "issuetype": issue.fields.get("issuetype"),
            "project": {"key": project_key},
            "summary": issue.fields.get("summary"),
        },
    }
    for name, value in (
        ("historyMetadata", issue.history_metadata),
        ("properties", issue.properties),
        ("transition", issue.transition),
        ("update", issue.update),
    ):
        if value is not None:
            info[name] = value
    return info


def _merge_user_fields(info: dict, issue: ExecutionIssue) -> dict:
    info["fields"] = {**info["fields"], **issue.fields}
    if info["fields"].get("issuetype") is None:
        del info["fields"]["issuetype"]
    return info


def build_multipart_info_cloud(
    run: RunData,
    project_key: str,
    issue: ExecutionIssue,
) -> MultipartInfoResult:
    """Info for Xray cloud, which takes plan and environments as Xray fields."""
    info = _base_info(run, project_key, issue)
    xray_fields = {}
    if issue.test_environments:
        xray_fields["environments"] = list(issue.test_environments)
    if issue.test_plan:
        xray_fields["testPlanKey"] = issue.test_plan
    info["xrayFields"] = xray_fields
    return MultipartInfoResult(info=_merge_user_fields(info, issue))


def get_field_id(field_name: str, all_fields: list[dict]) -> str:
    """Find the ID of a Jira field by its case-insensitive name."""
    option_name = FIELD_OPTION_NAMES[field_name]
    matches = [f for f in all_fields if str(f.get("name", "")).lower() == field_name.lower()]

    if len(matches) > 1:
        duplicates = sorted(
            ", ".join(f"{k}: {v}" for k, v in match.items()) for match in matches
        )
        suggestions = " or ".join(f'"{match["id"]}"' for match in matches)
        lines = [
            f"Failed to fetch Jira field ID for field with name: {field_name}",
            "There are multiple fields with this name",
            "",
            "Duplicates:",
            *[f"  {duplicate}" for duplicate in duplicates],
            "",
            "You can provide field IDs in the options:",
            "",
            "  jira: {",
            "    fields: {",
            f"      {option_name}: // {suggestions}",
            "    }",
            "  }",
        ]
        raise LookupError("\n".join(lines))

    if not matches:
        lines = [
            f"Failed to fetch Jira field ID for field with name: {field_name}",
            "Make sure the field actually exists and that your Jira language settings "
            "did not modify the field's name",
        ]
        if all_fields:
            width = max(len(str(f.get("name", ""))) for f in all_fields)
            available = sorted(
                f'name: {str(f.get("name", "")).ljust(width)} id: "{f.get("id")}"'
                for f in all_fields
            )
            lines.extend(["", "Available fields:", *[f"  {entry}" for entry in available]])
        lines.extend([
            "",
            "You can provide field IDs directly without relying on language settings:",
            "",
            "  jira: {",
            "    fields: {",
            f"      {option_name}: // corresponding field ID",
            "    }",
            "  }",
        ])
        raise LookupError("\n".join(lines))

    return matches[0]["id"]


def build_multipart_info_server(
    client,
    run: RunData,
    project_key: str,
    issue: ExecutionIssue,
    field_ids: Optional[JiraFieldIds] = None,
) -> MultipartInfoResult:
    """Info for Xray server, which takes plan and environments as custom fields.

    Missing custom field IDs are resolved by name with a single fields request.
    Resolution problems end up in the returned error messages; the affected
    association is left out of the info.
    """
    field_ids = field_ids or JiraFieldIds()
    errors: list[str] = []
    info = _base_info(run, project_key, issue)
    if not issue.test_plan and not issue.test_environments:
        return MultipartInfoResult(info=_merge_user_fields(info, issue), error_messages=errors)

    test_plan_id = field_ids.test_plan
    environments_id = field_ids.test_environments
    needs_plan = issue.test_plan and not test_plan_id
    needs_environments = issue.test_environments and not environments_id
    if needs_plan or needs_environments:
        all_fields = None
        fetch_error = None
        try:
            all_fields = client.get_fields()
        except Exception as e:
            fetch_error = e
        if needs_plan:
            if fetch_error is not None:
                errors.append(
                    "Failed to fetch all Jira fields for test plan field ID extraction, the "
                    "test execution issue may not be assigned to the desired test plan\n\n"
                    f"  {error_message(fetch_error)}"
                )
            else:
                try:
                    test_plan_id = get_field_id("test plan", all_fields)
                except LookupError as e:
                    errors.append(error_message(e))
        if needs_environments:
            if fetch_error is not None:
                errors.append(
                    "Failed to fetch all Jira fields for test environment field ID extraction, "
                    "the test execution issue may not be assigned the desired test "
                    "environments\n\n"
                    f"  {error_message(fetch_error)}"
                )
            else:
                try:
                    environments_id = get_field_id("test environments", all_fields)
                except LookupError as e:
                    errors.append(error_message(e))

    if test_plan_id and issue.test_plan:
        info["fields"][test_plan_id] = [issue.test_plan]
    if environments_id and issue.test_environments:
        info["fields"][environments_id] = list(issue.test_environments)
    return MultipartInfoResult(info=_merge_user_fields(info, issue), error_messages=errors)
