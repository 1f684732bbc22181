"""
DataFlow Type Mapping

Maps generic column type codes to destination DDL type names and resolves
reflected SQLAlchemy column types to generic type codes.
"""

from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import types as sqltypes

from dataflow.core.types import GenericType


TYPE_NAMES = {
    GenericType.ARRAY: "ARRAY",
    GenericType.BIGINT: "BIGINT",
    GenericType.BINARY: "BINARY",
    GenericType.BIT: "BIT",
    GenericType.BLOB: "BLOB",
    GenericType.CLOB: "CLOB",
    GenericType.BOOLEAN: "BIT",
    GenericType.CHAR: "CHAR",
    GenericType.DATE: "DATE",
    GenericType.DECIMAL: "DECIMAL",
    GenericType.DOUBLE: "DOUBLE",
    GenericType.FLOAT: "FLOAT",
    GenericType.INTEGER: "INT",
    GenericType.NCHAR: "NCHAR",
    GenericType.NUMERIC: "NUMERIC",
    GenericType.NVARCHAR: "NVARCHAR",
    GenericType.ROWID: "BIGINT",
    GenericType.SMALLINT: "SMALLINT",
    GenericType.SQLXML: "BLOB",
    GenericType.TIME: "TIME",
    GenericType.TIMESTAMP: "TIMESTAMP",
    GenericType.TINYINT: "TINYINT",
    GenericType.VARBINARY: "VARBINARY",
    GenericType.VARCHAR: "VARCHAR",
    # Not valid on Oracle
    GenericType.LONGVARBINARY: "VARBINARY(MAX)",
}

FALLBACK_TYPE_NAME = "BLOB"

SIZABLE_TYPES = {"VARCHAR", "NUMERIC", "DECIMAL", "CHAR", "NCHAR", "NVARCHAR"}
NUMERIC_TYPES = {"NUMERIC", "DECIMAL"}

# Keyed by the upper-cased SQLAlchemy visit name of a type
SQL_NAME_TYPES = {
    "ARRAY": GenericType.ARRAY,
    "BIGINT": GenericType.BIGINT,
    "BIG_INTEGER": GenericType.BIGINT,
    "BINARY": GenericType.BINARY,
    "BIT": GenericType.BIT,
    "BLOB": GenericType.BLOB,
    "LARGE_BINARY": GenericType.BLOB,
    "BYTEA": GenericType.BLOB,
    "CLOB": GenericType.CLOB,
    "NCLOB": GenericType.CLOB,
    "TEXT": GenericType.CLOB,
    "NTEXT": GenericType.CLOB,
    "UNICODE_TEXT": GenericType.CLOB,
    "BOOLEAN": GenericType.BOOLEAN,
    "CHAR": GenericType.CHAR,
    "NCHAR": GenericType.NCHAR,
    "DATE": GenericType.DATE,
    "DATETIME": GenericType.TIMESTAMP,
    "TIMESTAMP": GenericType.TIMESTAMP,
    "DECIMAL": GenericType.DECIMAL,
    "NUMERIC": GenericType.NUMERIC,
    "NUMBER": GenericType.NUMERIC,
    "DOUBLE": GenericType.DOUBLE,
    "DOUBLE_PRECISION": GenericType.DOUBLE,
    "FLOAT": GenericType.FLOAT,
    "REAL": GenericType.FLOAT,
    "INT": GenericType.INTEGER,
    "INTEGER": GenericType.INTEGER,
    "SMALLINT": GenericType.SMALLINT,
    "SMALL_INTEGER": GenericType.SMALLINT,
    "TINYINT": GenericType.TINYINT,
    "NVARCHAR": GenericType.NVARCHAR,
    "UNICODE": GenericType.NVARCHAR,
    "VARCHAR": GenericType.VARCHAR,
    "STRING": GenericType.VARCHAR,
    "TIME": GenericType.TIME,
    "VARBINARY": GenericType.VARBINARY,
    "IMAGE": GenericType.LONGVARBINARY,
    "LONGBLOB": GenericType.LONGVARBINARY,
    "ROWID": GenericType.ROWID,
    "XML": GenericType.SQLXML,
}

# Subclasses before their bases
TYPE_FAMILIES = [
    (sqltypes.ARRAY, GenericType.ARRAY),
    (sqltypes.Boolean, GenericType.BOOLEAN),
    (sqltypes.BigInteger, GenericType.BIGINT),
    (sqltypes.SmallInteger, GenericType.SMALLINT),
    (sqltypes.Integer, GenericType.INTEGER),
    (sqltypes.Float, GenericType.FLOAT),
    (sqltypes.Numeric, GenericType.NUMERIC),
    (sqltypes.DateTime, GenericType.TIMESTAMP),
    (sqltypes.Date, GenericType.DATE),
    (sqltypes.Time, GenericType.TIME),
    (sqltypes.Text, GenericType.CLOB),
    (sqltypes.Unicode, GenericType.NVARCHAR),
    (sqltypes.String, GenericType.VARCHAR),
    (sqltypes.LargeBinary, GenericType.BLOB),
]


def type_name(generic_type: GenericType) -> str:
    """Return the destination DDL type keyword for a generic type code.

    Unknown codes map to a large binary type so the copy can still complete.
    """
    return TYPE_NAMES.get(generic_type, FALLBACK_TYPE_NAME)


def is_sizable(name: str) -> bool:
    """Whether the DDL type takes a length or precision argument."""
    return name in SIZABLE_TYPES


def is_numeric(name: str) -> bool:
    """Whether the DDL type takes a (precision,scale) pair."""
    return name in NUMERIC_TYPES


def generic_type_of(type_) -> GenericType:
    """Resolve a SQLAlchemy column type to a generic type code."""
    if type_ is None:
        return GenericType.OTHER

    visit_name = getattr(type_, "__visit_name__", "") or ""
    generic = SQL_NAME_TYPES.get(visit_name.upper())
    if generic is not None:
        return generic

    for family, generic in TYPE_FAMILIES:
        if isinstance(type_, family):
            return generic

    return GenericType.OTHER


# DB-API ``cursor.description`` type codes given as Python classes.
# bool before int, datetime before date.
PYTHON_TYPES = [
    (bool, GenericType.BOOLEAN),
    (int, GenericType.BIGINT),
    (float, GenericType.DOUBLE),
    (Decimal, GenericType.NUMERIC),
    (datetime, GenericType.TIMESTAMP),
    (date, GenericType.DATE),
    (time, GenericType.TIME),
    (bytes, GenericType.BLOB),
    (bytearray, GenericType.BLOB),
    (str, GenericType.VARCHAR),
]


def generic_type_of_code(type_code) -> GenericType:
    """Resolve a DB-API ``cursor.description`` type code to a generic type code.

    Drivers report either a Python class (pyodbc, oracledb) or a type name;
    anything else, including SQLite's None, is unknown.
    """
    if isinstance(type_code, type):
        for python_type, generic in PYTHON_TYPES:
            if issubclass(type_code, python_type):
                return generic
        return GenericType.OTHER

    if isinstance(type_code, str):
        return SQL_NAME_TYPES.get(type_code.upper(), GenericType.OTHER)

    return GenericType.OTHER
