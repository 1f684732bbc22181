"""
DataFlow Value Binding

Type-directed conversion of source values into insert-safe destination
parameters, keyed by generic type code.
"""

import json
from datetime import date, datetime, time
from decimal import Decimal
from functools import wraps
from typing import Any, Callable, Dict

from sqlalchemy import types as sqltypes

from dataflow.core.types import GenericType


TRUE_STRINGS = {"1", "t", "true", "y", "yes", "on"}


def _nullable(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
    @wraps(func)
    def bind(value):
        if value is None:
            return None
        return func(value)
    return bind


@_nullable
def bind_array(value):
    return list(value)


@_nullable
def bind_integer(value):
    return int(value)


@_nullable
def bind_boolean(value):
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


@_nullable
def bind_decimal(value):
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, not the binary expansion
        return Decimal(str(value))
    return Decimal(value)


@_nullable
def bind_float(value):
    return float(value)


@_nullable
def bind_string(value):
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


@_nullable
def bind_binary(value):
    """Bind a value as bytes.

    Also the fallback for unknown types: anything that is not already binary
    is stored as its text form.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if hasattr(value, "read"):
        return value.read()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str).encode("utf-8")
    return str(value).encode("utf-8")


@_nullable
def bind_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


@_nullable
def bind_time(value):
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value))


@_nullable
def bind_timestamp(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.fromisoformat(str(value))


BINDERS: Dict[GenericType, Callable[[Any], Any]] = {
    GenericType.ARRAY: bind_array,
    GenericType.BIGINT: bind_integer,
    GenericType.BINARY: bind_binary,
    GenericType.BIT: bind_boolean,
    GenericType.BLOB: bind_binary,
    GenericType.CLOB: bind_string,
    GenericType.BOOLEAN: bind_boolean,
    GenericType.CHAR: bind_string,
    GenericType.DATE: bind_date,
    GenericType.DECIMAL: bind_decimal,
    GenericType.DOUBLE: bind_float,
    GenericType.FLOAT: bind_float,
    GenericType.INTEGER: bind_integer,
    GenericType.NCHAR: bind_string,
    GenericType.NUMERIC: bind_decimal,
    GenericType.NVARCHAR: bind_string,
    GenericType.ROWID: bind_integer,
    GenericType.SMALLINT: bind_integer,
    GenericType.SQLXML: bind_string,
    GenericType.TIME: bind_time,
    GenericType.TIMESTAMP: bind_timestamp,
    GenericType.TINYINT: bind_integer,
    GenericType.VARBINARY: bind_binary,
    GenericType.VARCHAR: bind_string,
    GenericType.LONGVARBINARY: bind_binary,
}

# Types given to the insert's bind parameters so the destination dialect
# applies its own conversions (e.g. Decimal on SQLite).
BIND_TYPES = {
    GenericType.BIGINT: sqltypes.BigInteger,
    GenericType.BINARY: sqltypes.LargeBinary,
    GenericType.BIT: sqltypes.Boolean,
    GenericType.BLOB: sqltypes.LargeBinary,
    GenericType.CLOB: sqltypes.Text,
    GenericType.BOOLEAN: sqltypes.Boolean,
    GenericType.CHAR: sqltypes.String,
    GenericType.DATE: sqltypes.Date,
    GenericType.DECIMAL: sqltypes.Numeric,
    GenericType.DOUBLE: sqltypes.Float,
    GenericType.FLOAT: sqltypes.Float,
    GenericType.INTEGER: sqltypes.Integer,
    GenericType.NCHAR: sqltypes.Unicode,
    GenericType.NUMERIC: sqltypes.Numeric,
    GenericType.NVARCHAR: sqltypes.Unicode,
    GenericType.ROWID: sqltypes.BigInteger,
    GenericType.SMALLINT: sqltypes.SmallInteger,
    GenericType.SQLXML: sqltypes.Text,
    GenericType.TIME: sqltypes.Time,
    GenericType.TIMESTAMP: sqltypes.DateTime,
    GenericType.TINYINT: sqltypes.SmallInteger,
    GenericType.VARBINARY: sqltypes.LargeBinary,
    GenericType.VARCHAR: sqltypes.String,
    GenericType.LONGVARBINARY: sqltypes.LargeBinary,
}


def binder_for(generic_type: GenericType) -> Callable[[Any], Any]:
    """Return the bind function for a type code; unknown codes bind as blobs."""
    return BINDERS.get(generic_type, bind_binary)


def bind_type_for(generic_type: GenericType):
    """Return a SQLAlchemy type instance for an insert parameter.

    Arrays are left untyped so the driver adapts the list itself.
    """
    if generic_type == GenericType.ARRAY:
        return sqltypes.NullType()
    return BIND_TYPES.get(generic_type, sqltypes.LargeBinary)()
