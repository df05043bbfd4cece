"""Reading and converting Cucumber JSON reports."""

import json
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, error_message
from .help import CUCUMBER_PREFIXES, TARGETING_EXISTING_ISSUES, import_cucumber_tests
from .log import Logger
from .options import StatusOverrides
from .status import map_step_status
from .tags import issue_keys_in_tags, scenario_tag_pattern


def read_cucumber_report(project_root: str, report_path: Optional[str]) -> list[dict]:
    """Load the Cucumber preprocessor JSON report."""
    if not report_path:
        raise ConfigurationError(
            "Failed to prepare Cucumber upload: "
            "Cucumber preprocessor JSON report path not configured."
        )
    path = Path(project_root) / report_path
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _element_name(element: dict) -> str:
    return element.get("name") or "<no name>"


def _first_step_line(element: dict) -> str:
    steps = element.get("steps", [])
    if not steps:
        return "Given A step"
    return f"{steps[0].get('keyword', '').strip()} {steps[0].get('name', '')}"


def _missing_test_key_message(element: dict, project_key: str, is_cloud: bool) -> str:
    keyword = element.get("keyword", "Scenario")
    example = [
        f"@{project_key}-123",
        f"{keyword}: {element.get('name', '')}",
        f"  {_first_step_line(element)}",
        "  ...",
    ]
    tags = [tag["name"] for tag in element.get("tags", [])]
    lines = [f"Scenario: {_element_name(element)}", ""]
    if tags:
        lines.extend([
            "  No test issue keys found in tags:",
            "",
            *[f"    {tag}" for tag in tags],
            "",
            "  If a tag contains the test issue key already, specify a global prefix "
            "to align the plugin with Xray.",
            "",
            "    For example, with a test prefix of TestName: the following tag will be "
            "recognized as a test issue tag:",
            "",
            f"      @TestName:{project_key}-123",
            *[f"      {line}" for line in example[1:]],
        ])
    else:
        lines.extend([
            "  No test issue keys found in tags.",
            "",
            "  You can target existing test issues by adding a corresponding tag:",
            "",
            *[f"    {line}" for line in example],
        ])
    lines.extend([
        "",
        "  For more information, visit:",
        f"  - {TARGETING_EXISTING_ISSUES}",
        f"  - {CUCUMBER_PREFIXES}",
        f"  - {import_cucumber_tests(is_cloud)}",
    ])
    return "\n".join(lines)


def _steps(element: dict, upload_screenshots: bool, overrides: Optional[StatusOverrides]):
    steps = []
    for step in element.get("steps", []):
        converted = dict(step)
        converted["embeddings"] = step.get("embeddings", []) if upload_screenshots else []
        result = dict(step.get("result", {}))
        if "status" in result:
            result["status"] = map_step_status(result["status"], overrides)
        converted["result"] = result
        steps.append(converted)
    return steps


def convert_cucumber_features(
    features: list[dict],
    project_root: str,
    project_key: str,
    is_cloud: bool,
    logger: Logger,
    *,
    test_execution_key: Optional[str] = None,
    test_prefix: Optional[str] = None,
    upload_screenshots: bool = True,
    step_status: Optional[StatusOverrides] = None,
) -> list[dict]:
    """Prepare a Cucumber report for the Xray cucumber import.

    Only scenarios tagged with a test issue key are kept. When a test execution
    key is known, it is added as the first feature tag, which is the tag Xray
    uses to pick the test execution issue.
    """
    pattern = scenario_tag_pattern(project_key, test_prefix)
    converted_features = []
    failures = []
    for feature in features:
        converted = dict(feature)
        if test_execution_key:
            converted["tags"] = [{"name": f"@{test_execution_key}"}, *feature.get("tags", [])]
        elements = []
        file_path = str(Path(project_root) / feature.get("uri", ""))
        for element in feature.get("elements", []):
            if element.get("type") != "scenario":
                continue
            tags = [tag["name"] for tag in element.get("tags", [])]
            if not issue_keys_in_tags(tags, pattern):
                failures.append((
                    element,
                    file_path,
                    _missing_test_key_message(element, project_key, is_cloud),
                ))
                continue
            elements.append({
                **element,
                "steps": _steps(element, upload_screenshots, step_status),
            })
        if elements:
            converted["elements"] = elements
            converted_features.append(converted)

    for element, file_path, error in failures:
        element_type = element.get("type", "")
        description = f"{element_type[:1].upper()}{element_type[1:]}: {_element_name(element)}"
        logger.message("warning", "\n".join([
            file_path,
            "",
            f"  {description}",
            "",
            "    Skipping result upload.",
            "",
            f"      Caused by: {error_message(error)}",
        ]))
    return converted_features
