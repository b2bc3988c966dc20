"""CLI entry point for the GitHub workflow exporter."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
import uvicorn
from prometheus_client import generate_latest

from workflow_exporter import __version__
from workflow_exporter.api import create_app, create_github_client
from workflow_exporter.collector import WorkflowCollector
from workflow_exporter.config import ConfigError, Settings, load_config, parse_bind
from workflow_exporter.github import GitHubError
from workflow_exporter.logging import get_logger, sanitize_for_log, setup_logging
from workflow_exporter.metrics import MetricStore, create_registry
from workflow_exporter.scheduler import ScrapeScheduler

logger = get_logger("cli")


def build_settings(config_path: Path | None, options: dict[str, Any]) -> Settings:
    """Merge the YAML config file with command line options.

    Command line and environment values win over the file; unset options
    (None, empty) leave the file value in place.

    Raises:
        ConfigError: If the merged settings are invalid.
    """
    data: dict[str, Any] = load_config(config_path) if config_path else {}
    for key, value in options.items():
        if value is None or value == "" or value == ():
            continue
        if value is False and key in data:
            continue
        data[key] = list(value) if isinstance(value, tuple) else value

    settings = Settings.from_dict(data)
    settings.validate()
    return settings


def check_connection(settings: Settings) -> None:
    """Fetch the configured organization once to verify auth and access.

    Raises:
        GitHubError: If the organization cannot be fetched.
    """
    logger.info("testing GitHub connection")
    with create_github_client(settings) as client:
        client.get_organization(settings.organization)


def run_once(settings: Settings) -> bool:
    """Run a single scrape cycle and print the metrics to stdout."""
    store = MetricStore(settings.custom_properties)
    with create_github_client(settings) as client:
        collector = WorkflowCollector(
            client=client,
            organization=settings.organization,
            timeframe=settings.workflows_timeframe,
            custom_properties=settings.custom_properties,
        )
        scheduler = ScrapeScheduler(collector, store, interval=settings.scrape_time)
        if not scheduler.run_once():
            return False

    click.echo(generate_latest(create_registry(store)).decode("utf-8"), nl=False)
    return True


@click.command(context_settings={"show_default": True})
@click.version_option(version=__version__)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with settings (overridden by options and environment)",
)
@click.option(
    "--github.organization",
    "organization",
    envvar="GITHUB_ORGANIZATION",
    help="GitHub organization name",
)
@click.option(
    "--github.enterprise.url",
    "enterprise_url",
    envvar="GITHUB_ENTERPRISE_URL",
    help="GitHub enterprise url (self hosted)",
)
@click.option(
    "--github.token",
    "token",
    envvar="GITHUB_TOKEN",
    help="GitHub token auth: PAT",
)
@click.option(
    "--github.app.id",
    "app_id",
    envvar="GITHUB_APP_ID",
    type=int,
    help="GitHub app auth: App ID",
)
@click.option(
    "--github.app.installationid",
    "app_installation_id",
    envvar="GITHUB_APP_INSTALLATION_ID",
    type=int,
    help="GitHub app auth: App installation ID",
)
@click.option(
    "--github.app.keyfile",
    "app_private_key_file",
    envvar="GITHUB_APP_PRIVATE_KEY",
    help="GitHub app auth: Private key (path to file)",
)
@click.option(
    "--github.workflows.timeframe",
    "workflows_timeframe",
    envvar="GITHUB_WORKFLOWS_TIMEFRAME",
    help="GitHub workflow timeframe for fetching [default: 168h]",
)
@click.option(
    "--github.repositories.customprops",
    "custom_properties",
    envvar="GITHUB_REPOSITORIES_CUSTOMPROPS",
    multiple=True,
    help="Repository custom properties exported as prop_<name> labels",
)
@click.option(
    "--scrape.time",
    "scrape_time",
    envvar="SCRAPE_TIME",
    help="Scrape time [default: 30m]",
)
@click.option(
    "--server.bind",
    "server_bind",
    envvar="SERVER_BIND",
    help="Server address [default: :8080]",
)
@click.option("--log.debug", "log_debug", envvar="LOG_DEBUG", is_flag=True, help="debug mode")
@click.option(
    "--log.json",
    "log_json",
    envvar="LOG_JSON",
    is_flag=True,
    help="Switch log output to json format",
)
@click.option("--log.dir", "log_dir", envvar="LOG_DIR", help="Directory for rotating log files")
@click.option("--once", is_flag=True, help="Run one scrape cycle, print metrics and exit")
def main(config_path: Path | None, once: bool, **options: Any) -> None:
    """Export GitHub Actions workflow run metrics for Prometheus."""
    try:
        settings = build_settings(config_path, options)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    setup_logging(debug=settings.log_debug, json_format=settings.log_json, log_dir=settings.log_dir)
    logger.info("starting github-workflow-exporter v%s", __version__)
    logger.info(json.dumps(settings.to_log_dict()))

    try:
        check_connection(settings)
    except GitHubError as e:
        logger.error(
            'unable to fetch GitHub org "%s": %s', settings.organization, sanitize_for_log(str(e))
        )
        sys.exit(1)

    if once:
        sys.exit(0 if run_once(settings) else 1)

    host, port = parse_bind(settings.server_bind)
    logger.info("starting http server on %s", settings.server_bind)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
