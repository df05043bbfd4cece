"""Parsing of feature files and their import into Xray."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from gherkin.parser import Parser
from gherkin.token_scanner import TokenScanner

from .errors import error_message
from .help import CUCUMBER_PREFIXES, TARGETING_EXISTING_ISSUES, import_cucumber_tests
from .log import Logger
from .options import CucumberPrefixes
from .tags import issue_keys_in_tags, precondition_comment_pattern, scenario_tag_pattern


@dataclass
class FeatureFileData:
    """Issue keys found in a feature file, and the places lacking a unique one."""
    file_path: str
    all_issue_keys: list[str] = field(default_factory=list)
    backgrounds_without_keys: list[tuple[dict, list[dict]]] = field(default_factory=list)
    backgrounds_with_multiple_keys: list[tuple[dict, list[dict], list[str]]] = field(
        default_factory=list
    )
    scenarios_without_keys: list[dict] = field(default_factory=list)
    scenarios_with_multiple_keys: list[tuple[dict, list[str]]] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not (
            self.backgrounds_without_keys
            or self.backgrounds_with_multiple_keys
            or self.scenarios_without_keys
            or self.scenarios_with_multiple_keys
        )


def parse_feature_file(file_path: str) -> dict:
    """Parse a feature file into a Gherkin document."""
    text = Path(file_path).read_text(encoding="utf-8")
    if not text.endswith("\n"):
        text += "\n"
    return Parser().parse(TokenScanner(text))


def _children(feature: dict):
    for child in feature.get("children", []):
        if "rule" in child:
            yield from child["rule"].get("children", [])
        else:
            yield child


def _background_comments(background: dict, comments: list[dict]) -> list[dict]:
    """Comments between the background keyword and its first step."""
    steps = background.get("steps", [])
    if not steps:
        return []
    start = background["location"]["line"]
    end = steps[0]["location"]["line"]
    return [
        {"location": c["location"], "text": c["text"].strip()}
        for c in comments
        if start < c["location"]["line"] < end
    ]


def process_feature_file(
    file_path: str,
    project_key: str,
    prefixes: Optional[CucumberPrefixes] = None,
) -> FeatureFileData:
    prefixes = prefixes or CucumberPrefixes()
    document = parse_feature_file(file_path)
    data = FeatureFileData(file_path=file_path)
    feature = document.get("feature") or {}
    comments = document.get("comments", [])
    scenario_pattern = scenario_tag_pattern(project_key, prefixes.test)
    precondition_pattern = precondition_comment_pattern(project_key, prefixes.precondition)

    backgrounds, scenarios = [], []
    for child in _children(feature):
        if "background" in child:
            backgrounds.append(child["background"])
        if "scenario" in child:
            scenarios.append(child["scenario"])

    for background in backgrounds:
        background_comments = _background_comments(background, comments)
        keys = issue_keys_in_tags([c["text"] for c in background_comments], precondition_pattern)
        if not keys:
            data.backgrounds_without_keys.append((background, background_comments))
        elif len(keys) > 1:
            data.backgrounds_with_multiple_keys.append((background, background_comments, keys))
        else:
            data.all_issue_keys.extend(keys)

    for scenario in scenarios:
        keys = issue_keys_in_tags([t["name"] for t in scenario.get("tags", [])], scenario_pattern)
        if not keys:
            data.scenarios_without_keys.append(scenario)
        elif len(keys) > 1:
            data.scenarios_with_multiple_keys.append((scenario, keys))
        else:
            data.all_issue_keys.extend(keys)
    return data


def _first_step(node: dict) -> str:
    steps = node.get("steps", [])
    if not steps:
        return "Given A step"
    return f"{steps[0]['keyword'].strip()} {steps[0]['text']}"


def _name(node: dict) -> str:
    return node.get("name") or "<no name>"


def _more_information(is_cloud: bool) -> list[str]:
    return [
        "",
        "    For more information, visit:",
        f"    - {TARGETING_EXISTING_ISSUES}",
        f"    - {CUCUMBER_PREFIXES}",
        f"    - {import_cucumber_tests(is_cloud)}",
    ]


def _background_without_keys_message(
    data: FeatureFileData, background: dict, comments: list[dict], project_key: str,
    is_cloud: bool,
) -> str:
    lines = [
        data.file_path,
        "",
        f"  Background: {_name(background)}",
        "",
        "    No precondition issue keys found in comments:",
        "",
        *[f"      {c['text']}" for c in comments],
        "",
        "    If a comment contains the precondition issue key already, specify a global "
        "prefix to align the plugin with Xray.",
        "",
        "      For example, with a precondition prefix of Precondition: the following "
        "comment will be recognized as a precondition issue tag:",
        "",
        f"        {background.get('keyword', 'Background')}: {background.get('name', '')}",
        f"          #@Precondition:{project_key}-123",
        f"          {_first_step(background)}",
        "          ...",
    ]
    return "\n".join(lines + _more_information(is_cloud))


def _background_with_multiple_keys_message(
    data: FeatureFileData, background: dict, comments: list[dict], keys: list[str],
    is_cloud: bool,
) -> str:
    example = [f"{background.get('keyword', 'Background')}: {background.get('name', '')}"]
    for comment in comments:
        example.append(f"  {comment['text']}")
        if any(comment["text"].endswith(key) for key in keys):
            example.append("  " + "^" * len(comment["text"]))
    example.extend([f"  {_first_step(background)}", "  ..."])
    lines = [
        data.file_path,
        "",
        f"  Background: {_name(background)}",
        "",
        "    Multiple precondition issue keys found in the background's comments. Xray will "
        "only take one into account, you have to decide which one to use:",
        "",
        *[f"      {line}" for line in example],
    ]
    return "\n".join(lines + _more_information(is_cloud))


def _scenario_without_keys_message(
    data: FeatureFileData, scenario: dict, project_key: str, is_cloud: bool
) -> str:
    lines = [
        data.file_path,
        "",
        f"  Scenario: {_name(scenario)}",
        "",
        "    No test issue keys found in tags:",
        "",
        *[f"      {tag['name']}" for tag in scenario.get("tags", [])],
        "",
        "    If a tag contains the test issue key already, specify a global prefix to "
        "align the plugin with Xray.",
        "",
        "      For example, with a test prefix of TestName: the following tag will be "
        "recognized as a test issue tag:",
        "",
        f"        @TestName:{project_key}-123",
        f"        {scenario.get('keyword', 'Scenario')}: {scenario.get('name', '')}",
        f"          {_first_step(scenario)}",
        "          ...",
    ]
    return "\n".join(lines + _more_information(is_cloud))


def _scenario_with_multiple_keys_message(
    data: FeatureFileData, scenario: dict, keys: list[str], is_cloud: bool
) -> str:
    tags = [tag["name"] for tag in scenario.get("tags", [])]
    markers = " ".join(
        "^" * len(tag) if any(tag.endswith(key) for key in keys) else " " * len(tag)
        for tag in tags
    ).rstrip()
    lines = [
        data.file_path,
        "",
        f"  Scenario: {_name(scenario)}",
        "",
        "    Multiple test issue keys found in the scenario's tags. Xray will only take one "
        "into account, you have to decide which one to use:",
        "",
        f"      {' '.join(tags)}",
        f"      {markers}",
        f"      {scenario.get('keyword', 'Scenario')}: {scenario.get('name', '')}",
        f"        {_first_step(scenario)}",
        "        ...",
    ]
    return "\n".join(lines + _more_information(is_cloud))


def process_feature_files(
    file_paths,
    project_key: str,
    logger: Logger,
    prefixes: Optional[CucumberPrefixes] = None,
    is_cloud: bool = False,
) -> list[FeatureFileData]:
    """Parse feature files and keep those whose issue tags are unambiguous.

    Every problem is logged as an error. Files with problems are dropped.
    """
    parsed = []
    for file_path in file_paths:
        try:
            parsed.append(process_feature_file(str(file_path), project_key, prefixes))
        except Exception as e:
            logger.message(
                "error",
                f"{file_path}\n\n  Failed to parse feature file:\n\n    {error_message(e)}",
            )

    for data in parsed:
        for background, comments in data.backgrounds_without_keys:
            logger.message("error", _background_without_keys_message(
                data, background, comments, project_key, is_cloud
            ))
        for background, comments, keys in data.backgrounds_with_multiple_keys:
            logger.message("error", _background_with_multiple_keys_message(
                data, background, comments, keys, is_cloud
            ))
        for scenario in data.scenarios_without_keys:
            logger.message("error", _scenario_without_keys_message(
                data, scenario, project_key, is_cloud
            ))
        for scenario, keys in data.scenarios_with_multiple_keys:
            logger.message("error", _scenario_with_multiple_keys_message(
                data, scenario, keys, is_cloud
            ))
    return [data for data in parsed if data.is_valid]


def _mismatch_message(file_path: str, only_in_file: list[str], only_in_xray: list[str]) -> str:
    lines = [
        file_path,
        "",
        "  Mismatch between feature file issue tags and updated Jira issues detected.",
        "",
    ]
    if only_in_file:
        lines.append(
            "    Issues contained in feature file tags that have not been updated by Xray "
            "and may not exist:"
        )
        lines.append("")
        lines.extend(f"      {key}" for key in only_in_file)
    if only_in_file and only_in_xray:
        lines.append("")
    if only_in_xray:
        lines.append(
            "    Issues updated by Xray that do not exist in feature file tags and may "
            "have been created:"
        )
        lines.append("")
        lines.extend(f"      {key}" for key in only_in_xray)
    lines.extend([
        "",
        "  Make sure that:",
        "  - All issues present in feature file tags belong to existing issues.",
        "  - Your plugin tag prefix settings match those defined in Xray.",
        "",
        "  More information:",
        f"  - {TARGETING_EXISTING_ISSUES}",
        f"  - {CUCUMBER_PREFIXES}",
    ])
    return "\n".join(lines)


def upload_feature_files(
    client,
    logger: Logger,
    project_key: str,
    feature_files: list[FeatureFileData],
) -> list[str]:
    """Import feature files and return the issues Xray updated as tagged."""
    affected = []
    failures = []
    mismatches = []
    for data in feature_files:
        try:
            result = client.import_feature(data.file_path, project_key=project_key)
        except Exception as e:
            failures.append((data.file_path, e))
            continue
        if result["errors"]:
            logger.message("warning", "\n".join([
                data.file_path,
                "",
                "  Encountered errors during feature file import:",
                *[f"  - {error}" for error in result["errors"]],
            ]))
        updated = result["updatedOrCreatedIssues"]
        only_in_file = [key for key in data.all_issue_keys if key not in updated]
        only_in_xray = [key for key in updated if key not in data.all_issue_keys]
        if only_in_file or only_in_xray:
            mismatches.append((data.file_path, only_in_file, only_in_xray))
        affected.extend(key for key in data.all_issue_keys if key in updated)

    for file_path, error in failures:
        logger.message(
            "error", f"Failed to upload feature file {file_path}:\n\n  {error_message(error)}"
        )
    for file_path, only_in_file, only_in_xray in mismatches:
        logger.message("warning", _mismatch_message(file_path, only_in_file, only_in_xray))
    return affected
