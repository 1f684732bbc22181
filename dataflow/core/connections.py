"""
DataFlow Connection Management

Opens the source and destination connections for one source database,
runs their setup SQL, and closes both when the copy is over.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, URL, make_url

from dataflow.core.utils import as_statements, ensure_directory
from dataflow.models import DestinationConfig, SourceDatabaseEntry

logger = logging.getLogger(__name__)


def resolve_export_url(export: DestinationConfig, database_name: str) -> str:
    """Build the destination URL for a source database.

    With an output folder every source database gets its own destination,
    named after the source: ``Sales DB`` becomes ``sales_db-import``.
    """
    if not export.output_folder:
        return f"{export.url_protocol}{export.url_options}"

    file_name = database_name.lower().replace(" ", "_")
    return f"{export.url_protocol}{export.output_folder}{file_name}-import{export.url_options}"


def build_url(
    url: str,
    driver: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None
) -> URL:
    """Parse a connection URL and apply the driver and credentials, if given."""
    parsed = make_url(url)
    changes = {}
    if driver:
        changes["drivername"] = driver
    if username is not None:
        changes["username"] = username
    if password is not None:
        changes["password"] = password
    return parsed.set(**changes) if changes else parsed


def run_setup_commands(connection: Connection, commands) -> None:
    """Execute setup statements one at a time, committing each."""
    for statement in as_statements(commands):
        logger.debug("Running setup SQL: %s", statement)
        connection.exec_driver_sql(statement)
        connection.commit()


@contextmanager
def open_connections(
    export: DestinationConfig,
    database: SourceDatabaseEntry
) -> Iterator[Tuple[Connection, Connection]]:
    """Open ``(source, destination)`` connections for one source database.

    Both connections are closed and their engines disposed on exit, whether
    or not the copy succeeded.
    """
    if export.output_folder:
        ensure_directory(export.output_folder)

    source_url = build_url(database.url, database.driver, database.username, database.password)
    export_url = build_url(
        resolve_export_url(export, database.name),
        export.driver, export.username, export.password
    )

    logger.info("Connecting to source %s", source_url.render_as_string(hide_password=True))
    logger.info("Connecting to destination %s", export_url.render_as_string(hide_password=True))

    source_engine = create_engine(source_url)
    export_engine = create_engine(export_url)

    try:
        with source_engine.connect() as source_connection, \
                export_engine.connect() as export_connection:
            run_setup_commands(source_connection, database.sql_setup_commands)
            run_setup_commands(export_connection, export.sql_setup_commands)

            yield source_connection, export_connection
    finally:
        source_engine.dispose()
        export_engine.dispose()
