"""Live schema reflection through SQLAlchemy's ``Inspector``.

This module queries the database backing a model to extract:
- Whether the table exists
- Column names, types, nullability and server defaults
- Length, precision and scale where the type carries them
- The primary key

Works with any database SQLAlchemy can reflect (PostgreSQL, SQLite, ...).
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.types import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    SmallInteger,
    String,
    Text,
    Time,
    TypeEngine,
)

from attribute_declarations.schema.models import ColumnSchema, TableSchema

logger = logging.getLogger(__name__)


# ============================================================================
# Type and default normalization
# ============================================================================


def reflected_type(coltype: TypeEngine) -> tuple[str, int | None, int | None, int | None]:
    """Map a reflected SQLAlchemy type onto ``(type, limit, precision, scale)``.

    Subclasses are checked before their bases (``Text`` before ``String``,
    ``Float`` before ``Numeric``).
    """
    if isinstance(coltype, Boolean):
        return "boolean", None, None, None
    if isinstance(coltype, BigInteger):
        return "integer", 8, None, None
    if isinstance(coltype, SmallInteger):
        return "integer", 2, None, None
    if isinstance(coltype, Integer):
        return "integer", None, None, None
    if isinstance(coltype, Float):
        # 53 bits is plain double precision, the undeclared default
        precision = None if coltype.precision == 53 else coltype.precision
        return "float", None, precision, None
    if isinstance(coltype, Numeric):
        return "decimal", None, coltype.precision, coltype.scale
    if isinstance(coltype, DateTime):
        return "datetime", None, None, None
    if isinstance(coltype, Date):
        return "date", None, None, None
    if isinstance(coltype, Time):
        return "time", None, None, None
    if isinstance(coltype, Text):
        return "text", coltype.length, None, None
    if isinstance(coltype, String):
        return "string", coltype.length, None, None
    if isinstance(coltype, LargeBinary):
        return "binary", coltype.length, None, None
    return type(coltype).__name__.lower(), None, None, None


_CAST_SUFFIX = re.compile(r"::[\w\s]+(\[\])?$")


def parse_server_default(text: str | None) -> str | None:
    """Strip quoting from a reflected server default.

    ``"'active'::character varying"`` -> ``"active"``; ``"(0)"`` -> ``"0"``;
    ``"NULL"`` -> ``None``. Expressions such as ``CURRENT_TIMESTAMP`` are
    returned unchanged.
    """
    if text is None:
        return None
    value = str(text).strip()
    while value.startswith("(") and value.endswith(")"):
        value = value[1:-1].strip()
    value = _CAST_SUFFIX.sub("", value).strip()
    if value.upper() == "NULL":
        return None
    if len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1].replace("''", "'")
    return value


_TRUE_STRINGS = {"1", "true", "t", "yes", "y"}
_FALSE_STRINGS = {"0", "false", "f", "no", "n"}


def normalize_default(value: Any, type_: str) -> Any:
    """Coerce a default value so declared and reflected defaults compare.

    Values that cannot be coerced (SQL expressions, odd strings) are kept
    as strings.
    """
    if value is None:
        return None
    if type_ == "boolean":
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        return str(value)
    if type_ == "integer" and not isinstance(value, bool):
        try:
            return int(str(value).strip())
        except ValueError:
            return str(value)
    if type_ == "float":
        try:
            return float(value)
        except (TypeError, ValueError):
            return str(value)
    if type_ == "decimal":
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            return str(value)
    return str(value)


# ============================================================================
# Reflector
# ============================================================================


class SchemaReflector:
    """Reflects tables backing declared models.

    Accepts either a database URL (the reflector creates and disposes its
    own engine) or an existing ``Engine`` (left open on exit).

    Every call uses a fresh ``Inspector`` so results are never cached
    between checks.

    Usage:
        with SchemaReflector("sqlite:///app.db") as reflector:
            table = reflector.reflect_table("people")
            columns = reflector.get_column_names()
    """

    # Tables to exclude from get_column_names() (migration bookkeeping)
    EXCLUDED_TABLES = {
        "alembic_version",
        "schema_migrations",
    }

    def __init__(self, database: str | Engine, schema: str | None = None):
        """Initialize with a database URL or engine.

        Args:
            database: SQLAlchemy URL or ``Engine``.
            schema: Database schema to reflect (default: the connection's).
        """
        self._schema = schema
        if isinstance(database, Engine):
            self._engine: Engine | None = database
            self._owns_engine = False
            self._database_url = None
        else:
            self._engine = None
            self._owns_engine = True
            self._database_url = database

    def __enter__(self) -> "SchemaReflector":
        """Context manager entry - creates the engine when given a URL."""
        if self._engine is None:
            self._engine = create_engine(self._database_url)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - disposes an engine this reflector created."""
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Reflector not connected. Use with statement.")
        return self._engine

    def table_exists(self, table_name: str) -> bool:
        """True if ``table_name`` exists in the reflected schema."""
        return inspect(self.engine).has_table(table_name, schema=self._schema)

    def reflect_table(self, table_name: str) -> TableSchema | None:
        """Reflect one table, or return None if it does not exist."""
        inspector = inspect(self.engine)
        if not inspector.has_table(table_name, schema=self._schema):
            return None

        try:
            raw_columns = inspector.get_columns(table_name, schema=self._schema)
            pk = inspector.get_pk_constraint(table_name, schema=self._schema)
        except NoSuchTableError:
            logger.debug("Table %s disappeared during reflection", table_name)
            return None

        primary_key = list(pk.get("constrained_columns") or [])
        columns: dict[str, ColumnSchema] = {}
        for raw in raw_columns:
            type_, limit, precision, scale = reflected_type(raw["type"])
            columns[raw["name"]] = ColumnSchema(
                name=raw["name"],
                type=type_,
                limit=limit,
                precision=precision,
                scale=scale,
                null=bool(raw.get("nullable", True)),
                default=normalize_default(parse_server_default(raw.get("default")), type_),
                primary_key=raw["name"] in primary_key,
            )

        return TableSchema(name=table_name, columns=columns, primary_key=primary_key)

    def get_column_names(self) -> dict[str, set[str]]:
        """Get column names for all tables.

        Returns:
            Dict mapping table name to set of column names
        """
        inspector = inspect(self.engine)
        result: dict[str, set[str]] = {}
        for table_name in inspector.get_table_names(schema=self._schema):
            if table_name in self.EXCLUDED_TABLES:
                continue
            result[table_name] = {
                col["name"] for col in inspector.get_columns(table_name, schema=self._schema)
            }
        return result
