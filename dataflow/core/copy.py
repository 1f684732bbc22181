"""
DataFlow Core Copy Operations

Streams rows from a source connection into a destination connection in
committed batches.

Each table is read through a single forward-only result, fetched from the
driver ``fetch_size`` rows at a time, and written with executemany every
``batch_size`` rows followed by a commit. A failure leaves the batches
committed so far in place; nothing is rolled back across batches.
"""

import logging
from typing import List, Sequence

import click
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from dataflow.core.binding import bind_type_for, binder_for
from dataflow.core.schema import describe_columns, ensure_table
from dataflow.core.types import ColumnInfo, ImportResult
from dataflow.models import (
    DEFAULT_BATCH_SIZE, DEFAULT_FETCH_SIZE, ImportJob, PipelineConfiguration,
    SourceDatabaseEntry
)

logger = logging.getLogger(__name__)


def parameter_name(index: int) -> str:
    return f"c{index}"


def insert_statement(table: str, columns: Sequence[ColumnInfo]):
    """Build ``INSERT INTO table VALUES (...)`` with one typed placeholder per column."""
    placeholders = ", ".join(f":{parameter_name(i)}" for i in range(len(columns)))
    statement = text(f"INSERT INTO {table} VALUES ({placeholders})")
    return statement.bindparams(*[
        bindparam(parameter_name(i), type_=bind_type_for(column.generic_type))
        for i, column in enumerate(columns)
    ])


def print_database_banner(connection: Connection) -> None:
    """Print the source database product and version."""
    dialect = connection.dialect
    version = dialect.server_version_info
    version_text = ".".join(str(part) for part in version) if version else "unknown"
    click.echo(f"Database product: {dialect.name}")
    click.echo(f"Database version: {version_text}")


def import_table(
    job: ImportJob,
    source_connection: Connection,
    dest_connection: Connection,
    fetch_size: int = DEFAULT_FETCH_SIZE,
    batch_size: int = DEFAULT_BATCH_SIZE
) -> ImportResult:
    """Copy every row of ``job`` into the destination table.

    Args:
        job: Table (and optional custom query) to copy
        source_connection: Connection the rows are read from
        dest_connection: Connection the rows are written to
        fetch_size: Rows fetched from the source driver at a time
        batch_size: Rows inserted per executemany/commit

    Returns:
        ImportResult with the number of rows copied and commits issued
    """
    # Column types come from their own probe so the streaming result is
    # never consumed for metadata.
    columns = describe_columns(source_connection, job.table)
    binders = [binder_for(column.generic_type) for column in columns]
    insert = insert_statement(job.table, columns)
    names = [parameter_name(i) for i in range(len(columns))]

    result = ImportResult(table=job.table)
    pending = []

    rows = source_connection.execute(
        text(job.select_sql),
        execution_options={"stream_results": True, "yield_per": fetch_size}
    )
    try:
        for row in rows:
            pending.append({
                name: bind(value)
                for name, bind, value in zip(names, binders, row)
            })
            result.rows += 1

            if len(pending) == batch_size:
                _flush(dest_connection, insert, pending, result)
                click.echo(f"\rExported {result.rows:,} records so far...", nl=False)

        # The last partial batch
        if pending:
            _flush(dest_connection, insert, pending, result)
    finally:
        rows.close()

    if result.commits:
        click.echo("")
    click.echo(f"Processed {result.rows:,} record(s) from {job.table}")
    return result


def _flush(dest_connection: Connection, insert, pending: List[dict], result: ImportResult) -> None:
    dest_connection.execute(insert, pending)
    dest_connection.commit()
    result.commits += 1
    pending.clear()


def run_imports(
    source_connection: Connection,
    dest_connection: Connection,
    database: SourceDatabaseEntry,
    config: PipelineConfiguration
) -> List[ImportResult]:
    """Run every import of ``database`` in declared order.

    Any error stops the whole run; it is logged with the table it happened
    on and re-raised.
    """
    print_database_banner(source_connection)

    results = []
    for job in database.imports:
        click.echo(f"Importing {job.table}...")
        try:
            ensure_table(job.table, source_connection, dest_connection)
            results.append(import_table(
                job,
                source_connection,
                dest_connection,
                fetch_size=database.fetch_size_for(job),
                batch_size=config.batch_size_for(job),
            ))
        except SQLAlchemyError as e:
            logger.error("Import of %s from %s failed: %s", job.table, database.name, e)
            raise

    return results
