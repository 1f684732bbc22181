"""
DataFlow Post Scripts

Runs labelled SQL statements against the destination once every import of
a source database has finished.
"""

import logging
from typing import Sequence

import click
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from dataflow.models import PostScript

logger = logging.getLogger(__name__)


def run_post_scripts(connection: Connection, scripts: Sequence[PostScript]) -> None:
    """Execute each script in order, committing after each one.

    The first failing script stops the remaining ones.
    """
    for script in scripts:
        click.echo(f"Running script: {script.label}...")
        try:
            connection.exec_driver_sql(script.sql)
            connection.commit()
        except SQLAlchemyError as e:
            logger.error("Post script '%s' failed: %s", script.label, e)
            raise
        click.echo(f"{script.label} complete")
