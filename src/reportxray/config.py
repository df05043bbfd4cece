"""Configuration via environment variables."""

import os


def _flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Jira configuration
JIRA_URL = os.environ.get("XRAY_JIRA_URL", "")
JIRA_PROJECT_KEY = os.environ.get("XRAY_JIRA_PROJECT_KEY", "")
JIRA_TOKEN = os.environ.get("XRAY_JIRA_TOKEN", "")
# Cloud instances authenticate with email + API token, server with a PAT only
JIRA_EMAIL = os.environ.get("XRAY_JIRA_EMAIL", "")

# Existing issues to report into
TEST_EXECUTION_ISSUE_KEY = os.environ.get("XRAY_TEST_EXECUTION_ISSUE_KEY", "")
TEST_PLAN_ISSUE_KEY = os.environ.get("XRAY_TEST_PLAN_ISSUE_KEY", "")

# Custom field IDs (e.g., customfield_12345), resolved by name when empty
TEST_PLAN_FIELD_ID = os.environ.get("XRAY_TEST_PLAN_FIELD_ID", "")
TEST_ENVIRONMENTS_FIELD_ID = os.environ.get("XRAY_TEST_ENVIRONMENTS_FIELD_ID", "")

# Xray cloud credentials, leave empty for Xray server
XRAY_CLIENT_ID = os.environ.get("XRAY_CLIENT_ID", "")
XRAY_CLIENT_SECRET = os.environ.get("XRAY_CLIENT_SECRET", "")
XRAY_CLOUD_URL = os.environ.get("XRAY_CLOUD_URL", "https://xray.cloud.getxray.app/api/v2")

# Upload behaviour
UPLOAD_RESULTS = _flag("XRAY_UPLOAD_RESULTS", True)
UPLOAD_SCREENSHOTS = _flag("XRAY_UPLOAD_SCREENSHOTS", True)
ATTACH_VIDEOS = _flag("XRAY_ATTACH_VIDEOS", False)
UPLOAD_LAST_ATTEMPT = _flag("XRAY_UPLOAD_LAST_ATTEMPT", False)
NORMALIZE_SCREENSHOT_NAMES = _flag("XRAY_NORMALIZE_SCREENSHOT_NAMES", False)

# "true", "false" or "sequential"
SPLIT_UPLOAD = os.environ.get("XRAY_SPLIT_UPLOAD", "false")

# Cucumber configuration
FEATURE_FILE_EXTENSION = os.environ.get("XRAY_FEATURE_FILE_EXTENSION", "")
CUCUMBER_REPORT_PATH = os.environ.get("XRAY_CUCUMBER_REPORT_PATH", "")
CUCUMBER_TEST_PREFIX = os.environ.get("XRAY_CUCUMBER_TEST_PREFIX", "")
CUCUMBER_PRECONDITION_PREFIX = os.environ.get("XRAY_CUCUMBER_PRECONDITION_PREFIX", "")

DEBUG = _flag("XRAY_DEBUG", False)

HTTP_TIMEOUT = float(os.environ.get("XRAY_HTTP_TIMEOUT", "30"))
