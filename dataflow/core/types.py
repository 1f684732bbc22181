"""
DataFlow Core Types

Data types shared by the copy engine modules.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GenericType(Enum):
    """Backend-agnostic SQL column type codes."""
    ARRAY = "ARRAY"
    BIGINT = "BIGINT"
    BINARY = "BINARY"
    BIT = "BIT"
    BLOB = "BLOB"
    CLOB = "CLOB"
    BOOLEAN = "BOOLEAN"
    CHAR = "CHAR"
    DATE = "DATE"
    DECIMAL = "DECIMAL"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    INTEGER = "INTEGER"
    NCHAR = "NCHAR"
    NUMERIC = "NUMERIC"
    NVARCHAR = "NVARCHAR"
    ROWID = "ROWID"
    SMALLINT = "SMALLINT"
    SQLXML = "SQLXML"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    TINYINT = "TINYINT"
    VARBINARY = "VARBINARY"
    VARCHAR = "VARCHAR"
    LONGVARBINARY = "LONGVARBINARY"
    OTHER = "OTHER"


@dataclass(frozen=True)
class ColumnInfo:
    """Column metadata read from a source result set."""
    name: str
    generic_type: GenericType
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True


@dataclass
class ImportResult:
    """Outcome of copying one table."""
    table: str
    rows: int = 0
    commits: int = 0
