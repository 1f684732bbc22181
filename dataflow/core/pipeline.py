"""
DataFlow Pipeline

Drives a whole job description: every source database is copied start to
finish, in declared order, before the next one begins.
"""

import logging
from typing import Dict, List

import click

from dataflow.core.connections import open_connections
from dataflow.core.copy import run_imports
from dataflow.core.scripts import run_post_scripts
from dataflow.core.types import ImportResult
from dataflow.core.utils import apply_path_supplement
from dataflow.models import PipelineConfiguration, SourceDatabaseEntry

logger = logging.getLogger(__name__)


def copy_database(config: PipelineConfiguration, database: SourceDatabaseEntry) -> List[ImportResult]:
    """Copy one source database, then run its post scripts."""
    logger.info("Copying database %s", database.name)

    with open_connections(config.export, database) as (source_connection, dest_connection):
        results = run_imports(source_connection, dest_connection, database, config)

        if database.post_scripts:
            run_post_scripts(dest_connection, database.post_scripts)

    return results


def copy_databases(config: PipelineConfiguration) -> Dict[str, List[ImportResult]]:
    """Copy every source database; the first failure aborts the run."""
    results = {}
    for database in config.databases:
        results[database.name] = copy_database(config, database)
    return results


def run_pipeline(config: PipelineConfiguration) -> Dict[str, List[ImportResult]]:
    """Apply global options, then copy every source database."""
    if config.global_options and config.global_options.path_supplement:
        apply_path_supplement(config.global_options.path_supplement)

    results = copy_databases(config)

    click.echo("All done")
    return results
