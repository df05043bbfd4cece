"""Command line interface."""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from .context import ScreenshotCollection
from .conversion import convert_cypress_results
from .jira_client import JiraClient, JiraClientCloud
from .log import ConsoleLogger
from .options import Options, options_from_env
from .phases import Clients, RunContext, RuntimeParameters
from .plugin import run_plugin
from .xray_client import XrayClientCloud, XrayClientServer


def collect_feature_files(paths: list[str], extension: str) -> list[Path]:
    """Gather all feature files from given paths (files or directories)."""
    feature_files = []

    for path_str in paths:
        path = Path(path_str)

        if path.is_file():
            feature_files.append(path)
        elif path.is_dir():
            feature_files.extend(path.glob(f"**/*{extension}"))
        else:
            raise FileNotFoundError(f"Path not found: {path}")

    return sorted(feature_files)


def load_results(path: str) -> dict:
    """Load a Cypress run result dumped as JSON."""
    with open(path, encoding="utf-8") as f:
        results = json.load(f)
    if not isinstance(results, dict) or "runs" not in results:
        raise ValueError(f"Not a Cypress run result: {path}")
    return results


def collect_screenshots(results: dict) -> ScreenshotCollection:
    """Screenshots Cypress 13+ lists once per run."""
    screenshots = ScreenshotCollection()
    for run in results.get("runs", []):
        for screenshot in run.get("screenshots") or []:
            screenshots.add_screenshot(screenshot)
    return screenshots


def create_clients(options: Options, cloud: bool, logger) -> Clients:
    """Jira and Xray clients for the configured deployment."""
    if cloud:
        return Clients(
            jira=JiraClientCloud(base_url=options.jira.url, logger=logger),
            xray=XrayClientCloud(logger=logger),
        )
    return Clients(
        jira=JiraClient(base_url=options.jira.url, logger=logger),
        xray=XrayClientServer(base_url=options.jira.url, logger=logger),
    )


@click.command()
@click.argument("results_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-f", "--feature",
    "feature_paths",
    multiple=True,
    type=click.Path(exists=True),
    help="Feature file or directory to import before uploading results (repeatable)",
)
@click.option(
    "-r", "--project-root",
    type=click.Path(file_okay=False),
    default=".",
    help="Cypress project root, used to resolve the Cucumber report (default: .)",
)
@click.option(
    "-p", "--project-key",
    default=None,
    help="Jira project key (default: $XRAY_JIRA_PROJECT_KEY)",
)
@click.option(
    "-u", "--url",
    default=None,
    help="Jira base URL (default: $XRAY_JIRA_URL)",
)
@click.option(
    "--cloud/--server",
    default=None,
    help="Xray deployment (default: cloud when Xray client credentials are set)",
)
@click.option(
    "-n", "--dry-run",
    is_flag=True,
    default=False,
    help="Only convert the results and print the Xray import JSON",
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Write the dry run JSON to file",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Show debug messages",
)
def main(
    results_path: str,
    feature_paths: tuple[str, ...],
    project_root: str,
    project_key: Optional[str],
    url: Optional[str],
    cloud: Optional[bool],
    dry_run: bool,
    output: Optional[str],
    debug: bool,
):
    """Upload Cypress test results to Xray.

    RESULTS_PATH: JSON dump of the Cypress module API run result.
    """
    try:
        options = options_from_env(project_key=project_key, url=url)
        logger = ConsoleLogger(debug=debug or options.plugin.debug)
        results = load_results(results_path)
        screenshots = collect_screenshots(results)
        if cloud is None:
            cloud = XrayClientCloud().is_configured

        if dry_run:
            xray_json = convert_cypress_results(
                results,
                options.jira.project_key,
                cloud,
                logger,
                screenshots=screenshots.get_screenshots(),
                test_execution_key=options.jira.test_execution_issue.key,
                feature_file_extension=options.feature_file_extension,
                upload_screenshots=options.xray.upload_screenshots,
                upload_last_attempt=options.plugin.upload_last_attempt,
                normalize_screenshot_names=options.plugin.normalize_screenshot_names,
                status_options=options.xray.status,
            )
            formatted = json.dumps(xray_json, indent=2)
            if output:
                Path(output).write_text(formatted + "\n", encoding="utf-8")
                click.echo(f"Results written to {output}", err=True)
            else:
                click.echo(formatted)
            return

        extension = options.feature_file_extension or ".feature"
        clients = create_clients(options, cloud, logger)
        parameters = RuntimeParameters(
            clients=clients,
            context=RunContext(
                feature_file_paths=[
                    str(p) for p in collect_feature_files(list(feature_paths), extension)
                ],
                screenshots=screenshots.get_screenshots(),
            ),
            results=results,
            project_root=project_root,
            is_cloud=cloud,
            logger=logger,
            options=options,
        )
        try:
            run_plugin(parameters)
        finally:
            clients.jira.close()
            clients.xray.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
