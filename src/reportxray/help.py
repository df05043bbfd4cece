"""Documentation links shown in log messages."""

BASE_URL = "https://csvtuda.github.io/docs/cypress-xray-plugin"

TARGETING_EXISTING_ISSUES = f"{BASE_URL}/guides/targetingExistingIssues/"
CUCUMBER_PREFIXES = f"{BASE_URL}/configuration/cucumber/#prefixes"
PROJECT_KEY = f"{BASE_URL}/configuration/jira/#projectkey"
JIRA_URL = f"{BASE_URL}/configuration/jira/#url"

IMPORT_CUCUMBER_TESTS_CLOUD = (
    "https://docs.getxray.app/display/XRAYCLOUD/Importing+Cucumber+Tests+-+REST+v2"
)
IMPORT_CUCUMBER_TESTS_SERVER = (
    "https://docs.getxray.app/display/XRAY/Importing+Cucumber+Tests+-+REST"
)


def import_cucumber_tests(is_cloud: bool) -> str:
    """Xray documentation for cucumber imports of the given deployment."""
    return IMPORT_CUCUMBER_TESTS_CLOUD if is_cloud else IMPORT_CUCUMBER_TESTS_SERVER
