"""
DataFlow Schema Introspection

Detects whether a destination table exists by probing it with a query that
can never return rows, and synthesizes a CREATE TABLE statement from the
source table's column metadata when it does not.
"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy import inspect, text
from sqlalchemy import types as sqltypes
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from dataflow.core.type_mapping import (
    generic_type_of, generic_type_of_code, is_numeric, is_sizable, type_name
)
from dataflow.core.types import ColumnInfo, GenericType

logger = logging.getLogger(__name__)


def probe_sql(table: str) -> str:
    """Return a query on ``table`` that yields its columns and no rows."""
    return f"SELECT * FROM {table} WHERE 1 = 2"


IDENTIFIER_PART = re.compile(r'"(?:[^"]|"")*"|\[[^\]]*\]|`[^`]*`|[^.]+')


def unquote_identifier(part: str) -> str:
    """Strip ANSI, bracket or backtick quoting from one name part."""
    if len(part) >= 2:
        if part[0] == part[-1] == '"':
            return part[1:-1].replace('""', '"')
        if part[0] == "[" and part[-1] == "]":
            return part[1:-1]
        if part[0] == part[-1] == "`":
            return part[1:-1]
    return part


def split_table_name(table: str) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` into unquoted parts; the schema may be None.

    Dots inside quoted parts do not split.
    """
    parts = [unquote_identifier(part.strip()) for part in IDENTIFIER_PART.findall(table)]
    if len(parts) > 1:
        return ".".join(parts[:-1]), parts[-1]
    return None, parts[0] if parts else table


def _column_size(type_) -> Tuple[Optional[int], Optional[int]]:
    if isinstance(type_, sqltypes.String):
        return type_.length, None
    if isinstance(type_, sqltypes.Numeric) and not isinstance(type_, sqltypes.Float):
        return type_.precision, type_.scale
    return None, None


def _reflect_columns(connection, table: str) -> dict:
    schema, name = split_table_name(table)
    try:
        columns = inspect(connection).get_columns(name, schema=schema)
    except NoSuchTableError:
        logger.warning("Could not reflect %s; using the driver's result metadata", table)
        return {}
    return {column["name"].lower(): column for column in columns}


def _positive(value) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


def _described_column(name: str, description) -> ColumnInfo:
    """Describe a column from a DB-API ``cursor.description`` entry."""
    if description is None:
        return ColumnInfo(name=name, generic_type=GenericType.OTHER)

    _, type_code, display_size, internal_size, precision, scale, null_ok = description[:7]
    generic_type = generic_type_of_code(type_code)

    if is_numeric(type_name(generic_type)):
        size, scale = _positive(precision), scale if isinstance(scale, int) else None
    elif is_sizable(type_name(generic_type)):
        size, scale = _positive(internal_size) or _positive(display_size), None
    else:
        size, scale = None, None

    return ColumnInfo(
        name=name,
        generic_type=generic_type,
        precision=size,
        scale=scale,
        nullable=null_ok is not False,
    )


def describe_columns(connection, table: str) -> List[ColumnInfo]:
    """Describe the columns ``SELECT *`` returns for ``table``, in order.

    The probe query fixes the column list and order; types, sizes and
    nullability come from reflecting the table. A column the reflection
    does not report is described from the probe's ``cursor.description``,
    which leaves it an unknown, nullable type when the driver reports
    nothing useful.
    """
    result = connection.execute(text(probe_sql(table)))
    try:
        names = list(result.keys())
        cursor = getattr(result, "cursor", None)
        descriptions = list(getattr(cursor, "description", None) or [])
    finally:
        result.close()

    reflected = _reflect_columns(connection, table)

    columns = []
    for i, name in enumerate(names):
        column = reflected.get(name.lower())
        if column is None:
            description = descriptions[i] if i < len(descriptions) else None
            columns.append(_described_column(name, description))
            continue

        precision, scale = _column_size(column["type"])
        columns.append(ColumnInfo(
            name=name,
            generic_type=generic_type_of(column["type"]),
            precision=precision,
            scale=scale,
            nullable=column.get("nullable", True),
        ))

    return columns


def column_definition(column: ColumnInfo) -> str:
    """Render one column of a CREATE TABLE statement."""
    name = type_name(column.generic_type)
    nullable = "" if column.nullable else "NOT NULL"

    if is_sizable(name) and column.precision is not None:
        if is_numeric(name):
            scale = column.scale if column.scale is not None else 0
            return f"{column.name} {name} ({column.precision},{scale}) {nullable}"
        return f"{column.name} {name} ({column.precision}) {nullable}"

    return f"{column.name} {name} {nullable}"


def create_table_sql(table: str, columns: List[ColumnInfo]) -> str:
    """Build the CREATE TABLE statement for ``table``."""
    definitions = ", ".join(column_definition(column) for column in columns)
    return f"CREATE TABLE {table} ( {definitions})"


def ensure_table(table: str, source_connection, dest_connection) -> bool:
    """Create ``table`` on the destination unless it can already be queried.

    Any database error from the destination probe is taken to mean the
    table is absent, including errors with other causes; in that case the
    following CREATE TABLE fails with its own error.

    Returns:
        True if the table was created, False if it already existed
    """
    try:
        dest_connection.execute(text(probe_sql(table))).close()
        return False
    except SQLAlchemyError as e:
        # Some backends abort the whole transaction on a failed statement
        dest_connection.rollback()
        logger.info("Table %s assumed absent on destination (%s); creating it", table, e)

    columns = describe_columns(source_connection, table)
    script = create_table_sql(table, columns)
    logger.debug("Generated DDL: %s", script)

    dest_connection.exec_driver_sql(script)
    dest_connection.commit()
    return True
