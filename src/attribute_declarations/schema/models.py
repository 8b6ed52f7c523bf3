"""Pydantic models for reflected schemas, column specs and migration plans.

This module contains schema-domain models:
- Reflection models: ColumnSchema, TableSchema
- Comparison model: ColumnSpec (the comparable form of a column)
- Diff result: MigrationPlan
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from attribute_declarations.inflections import camelize, underscore


# ============================================================================
# Reflection Models
# ============================================================================


class ColumnSchema(BaseModel):
    """A column reflected from the live database.

    ``type`` uses the declaration vocabulary where the SQL type maps onto it
    (``string``, ``integer``, ...), else the lowercased SQLAlchemy type name.

    Example:
        >>> col = ColumnSchema(name="name", type="string", limit=100)
        >>> col.null
        True
    """

    name: str
    type: str
    limit: int | None = None
    precision: int | None = None
    scale: int | None = None
    null: bool = True
    default: Any = None
    primary_key: bool = False


class TableSchema(BaseModel):
    """A table reflected from the live database."""

    name: str
    columns: dict[str, ColumnSchema] = Field(default_factory=dict)
    primary_key: list[str] = Field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return list(self.columns)


# ============================================================================
# Comparison Model
# ============================================================================


class ColumnSpec(BaseModel):
    """Comparable description of a column, with default values removed.

    Both sides of a comparison (declaration and reflected column) are reduced
    to a ``ColumnSpec``; two columns differ when their specs are not equal.

    Example:
        >>> ColumnSpec(type="string") == ColumnSpec(type="string", null=True)
        True
    """

    type: str
    limit: int | None = None
    precision: int | None = None
    scale: int | None = None
    null: bool = True
    default: Any = None

    def same_type(self, other: "ColumnSpec") -> bool:
        """True when type, limit, precision and scale all agree."""
        return (self.type, self.limit, self.precision, self.scale) == (
            other.type,
            other.limit,
            other.precision,
            other.scale,
        )


# ============================================================================
# Migration Plan
# ============================================================================


class MigrationPlan(BaseModel):
    """Differences between a model's declarations and its table.

    ``declared`` holds the target spec for every added and changed column;
    ``existing`` holds the reflected spec for every removed and changed
    column, so the plan can be rendered in both directions.

    The timestamp is taken once, when the plan is built, so the migration
    name, revision and file name always agree.

    Example:
        >>> plan = MigrationPlan(model_name="Person", table_name="people")
        >>> plan.has_changes
        False
    """

    model_name: str
    table_name: str
    table_exists: bool = True
    primary_key: str = "id"
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    changed: list[str] = Field(default_factory=list)
    declared: dict[str, ColumnSpec] = Field(default_factory=dict)
    existing: dict[str, ColumnSpec] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_changes(self) -> bool:
        """True when the table must be created or any column differs."""
        return bool(self.added or self.removed or self.changed)

    @property
    def change_count(self) -> int:
        """Number of columns to add, change or remove."""
        return len(self.added) + len(self.removed) + len(self.changed)

    @property
    def migration_time(self) -> str:
        """Plan timestamp as ``YYYYMMDDHHMMSS``."""
        return self.created_at.strftime("%Y%m%d%H%M%S")

    @property
    def migration_name(self) -> str:
        """``Create<Table>`` for new tables, else ``Update<Table><time>``."""
        if not self.table_exists:
            return f"Create{camelize(self.table_name)}"
        return f"Update{camelize(self.table_name)}{self.migration_time}"

    @property
    def revision(self) -> str:
        """Revision identifier, unique per table and timestamp."""
        return f"{self.migration_time}_{self.table_name}"

    @property
    def file_name(self) -> str:
        """Migration file name: ``<time>_<underscored migration name>.py``."""
        return f"{self.migration_time}_{underscore(self.migration_name)}.py"

    def format_report(self) -> str:
        """Format the plan as a human-readable report."""
        if not self.has_changes:
            return f"{self.model_name}: matches table '{self.table_name}'"

        lines = [
            f"{self.model_name}: table '{self.table_name}' needs changes ({self.change_count} columns)"
        ]
        if not self.table_exists:
            lines.append("  Table does not exist")
        if self.added:
            lines.append(f"  Added columns ({len(self.added)}): {', '.join(self.added)}")
        if self.changed:
            lines.append(f"  Changed columns ({len(self.changed)}): {', '.join(self.changed)}")
        if self.removed:
            lines.append(f"  Removed columns ({len(self.removed)}): {', '.join(self.removed)}")
        return "\n".join(lines)
