"""Typed plugin options."""

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from . import config
from .errors import ConfigurationError
from .help import JIRA_URL, PROJECT_KEY
from .models import NormalizedStatus


@dataclass
class StatusOverrides:
    """Replacement Xray status strings, one per normalized status."""
    passed: Optional[str] = None
    failed: Optional[str] = None
    pending: Optional[str] = None
    skipped: Optional[str] = None

    def get(self, status: Union[NormalizedStatus, str]) -> Optional[str]:
        name = status.value if isinstance(status, NormalizedStatus) else str(status)
        return getattr(self, name, None)


@dataclass
class XrayStatusOptions(StatusOverrides):
    """Test status overrides plus step overrides and an optional aggregation hook.

    ``aggregate`` receives the counts of a multi-iteration test as a dict with
    the keys ``passed``, ``failed``, ``pending`` and ``skipped`` and returns
    the final status string as is.
    """
    step: StatusOverrides = field(default_factory=StatusOverrides)
    aggregate: Optional[Callable[[dict], str]] = None


@dataclass
class XrayOptions:
    upload_results: bool = True
    upload_screenshots: bool = True
    status: XrayStatusOptions = field(default_factory=XrayStatusOptions)


@dataclass
class CucumberPrefixes:
    test: Optional[str] = None
    precondition: Optional[str] = None


@dataclass
class CucumberOptions:
    feature_file_extension: Optional[str] = None
    prefixes: CucumberPrefixes = field(default_factory=CucumberPrefixes)
    # Cucumber preprocessor JSON report, relative to the project root
    report_path: Optional[str] = None


@dataclass
class JiraFieldIds:
    """Custom field IDs, looked up by field name when missing."""
    test_plan: Optional[str] = None
    test_environments: Optional[str] = None


@dataclass
class ExecutionIssue:
    """Data of the test execution issue to create or reuse."""
    key: Optional[str] = None
    fields: dict = field(default_factory=dict)
    history_metadata: Optional[dict] = None
    properties: Optional[list] = None
    transition: Optional[dict] = None
    update: Optional[dict] = None
    test_plan: Optional[str] = None
    test_environments: Optional[list[str]] = None

    @property
    def summary(self) -> Optional[str]:
        return self.fields.get("summary")


@dataclass
class JiraOptions:
    project_key: str
    url: str
    attach_videos: bool = False
    fields: JiraFieldIds = field(default_factory=JiraFieldIds)
    test_execution_issue: ExecutionIssue = field(default_factory=ExecutionIssue)

    def __post_init__(self):
        if not self.project_key:
            raise ConfigurationError(
                f"Plugin misconfigured: Jira project key was not set\n\n"
                f"  For more information, visit:\n  - {PROJECT_KEY}"
            )
        if not self.url:
            raise ConfigurationError(
                f"Plugin misconfigured: Jira URL was not set\n\n"
                f"  For more information, visit:\n  - {JIRA_URL}"
            )
        self.url = self.url.rstrip("/")
        issue = self.test_execution_issue
        if issue.key and not issue.key.startswith(f"{self.project_key}-"):
            raise ConfigurationError(
                f"Plugin misconfigured: test execution issue key {issue.key} does not "
                f"belong to project {self.project_key}"
            )
        if issue.test_plan and not issue.test_plan.startswith(f"{self.project_key}-"):
            raise ConfigurationError(
                f"Plugin misconfigured: test plan issue key {issue.test_plan} does not "
                f"belong to project {self.project_key}"
            )


@dataclass
class PluginOptions:
    normalize_screenshot_names: bool = False
    upload_last_attempt: bool = False
    # True, False or "sequential"
    split_upload: Union[bool, str] = False
    debug: bool = False

    def __post_init__(self):
        if self.split_upload not in (True, False, "sequential"):
            raise ConfigurationError(
                f"Plugin misconfigured: split upload must be true, false or "
                f'"sequential", but got: {self.split_upload}'
            )


@dataclass
class Options:
    jira: JiraOptions
    xray: XrayOptions = field(default_factory=XrayOptions)
    plugin: PluginOptions = field(default_factory=PluginOptions)
    cucumber: Optional[CucumberOptions] = None

    @property
    def feature_file_extension(self) -> Optional[str]:
        if self.cucumber is None:
            return None
        return self.cucumber.feature_file_extension


def _split_upload_setting(value: str) -> Union[bool, str]:
    normalized = value.strip().lower()
    if normalized == "sequential":
        return "sequential"
    return normalized in ("1", "true", "yes", "on")


def options_from_env(project_key: Optional[str] = None, url: Optional[str] = None) -> Options:
    """Build options from the XRAY_* environment variables.

    ``project_key`` and ``url`` take precedence over the environment.
    """
    cucumber = None
    if config.FEATURE_FILE_EXTENSION or config.CUCUMBER_REPORT_PATH:
        cucumber = CucumberOptions(
            feature_file_extension=config.FEATURE_FILE_EXTENSION or None,
            prefixes=CucumberPrefixes(
                test=config.CUCUMBER_TEST_PREFIX or None,
                precondition=config.CUCUMBER_PRECONDITION_PREFIX or None,
            ),
            report_path=config.CUCUMBER_REPORT_PATH or None,
        )
    return Options(
        jira=JiraOptions(
            project_key=project_key or config.JIRA_PROJECT_KEY,
            url=url or config.JIRA_URL,
            attach_videos=config.ATTACH_VIDEOS,
            fields=JiraFieldIds(
                test_plan=config.TEST_PLAN_FIELD_ID or None,
                test_environments=config.TEST_ENVIRONMENTS_FIELD_ID or None,
            ),
            test_execution_issue=ExecutionIssue(
                key=config.TEST_EXECUTION_ISSUE_KEY or None,
                test_plan=config.TEST_PLAN_ISSUE_KEY or None,
            ),
        ),
        xray=XrayOptions(
            upload_results=config.UPLOAD_RESULTS,
            upload_screenshots=config.UPLOAD_SCREENSHOTS,
        ),
        plugin=PluginOptions(
            normalize_screenshot_names=config.NORMALIZE_SCREENSHOT_NAMES,
            upload_last_attempt=config.UPLOAD_LAST_ATTEMPT,
            split_upload=_split_upload_setting(config.SPLIT_UPLOAD),
            debug=config.DEBUG,
        ),
        cucumber=cucumber,
    )
