import logging
import os
import sys

import click

from dataflow.core.config import load_config
from dataflow.core.exceptions import DataFlowError
from dataflow.core.pipeline import run_pipeline
from dataflow.utils import variables

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, keeping stdout for progress output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def resolve_config_path(path: str) -> str:
    """Locate the job description.

    The default file name is looked up in the working directory first and
    then in the DataFlow home directory.
    """
    if os.path.exists(path) or os.path.isabs(path) or path != variables.DEFAULT_CONFIG_FILE:
        return path

    home_path = os.path.join(variables.DATAFLOW_HOME, path)
    if os.path.exists(home_path):
        return home_path
    return path


config_option = click.option(
    "-c", "--config",
    default=variables.DEFAULT_CONFIG_FILE,
    envvar=variables.CONFIG_ENV_VAR,
    show_default=True,
    help="Path to the pipeline config file",
)


@click.group()
@click.version_option(package_name="data-flow")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Copy tables between databases from a JSON job description"""
    configure_logging(verbose)


@cli.command()
@config_option
@click.pass_context
def run(ctx, config):
    """Copy every configured database"""
    try:
        pipeline_config = load_config(resolve_config_path(config))
        run_pipeline(pipeline_config)
    except Exception as e:
        message = e.message if isinstance(e, DataFlowError) else str(e)
        logger.error("Run failed: %s", message)
        click.echo(f"Error: {message}", err=True)
        ctx.exit(1)


@cli.command()
@config_option
@click.pass_context
def validate(ctx, config):
    """Check the config file and summarize what a run would copy"""
    try:
        pipeline_config = load_config(resolve_config_path(config))
    except DataFlowError as e:
        click.echo(f"Error: {e.message}", err=True)
        if e.details:
            click.echo(e.details, err=True)
        ctx.exit(1)

    for database in pipeline_config.databases:
        click.echo(
            f"{database.name}: {len(database.imports)} import(s), "
            f"{len(database.post_scripts)} post script(s)"
        )
    click.echo("Config is valid")


def main():
    cli()


if __name__ == '__main__':
    main()
