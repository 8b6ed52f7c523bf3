"""Schema reflection and comparison.

Provides live database reflection (``SchemaReflector``) and comparison of
model declarations against reflected tables (``compare_model``).

Usage:
    from attribute_declarations.schema import SchemaReflector, compare_model
"""

from attribute_declarations.schema.comparator import (
    column_spec_from_column,
    column_spec_from_declaration,
    compare_model,
    schema_matches,
)
from attribute_declarations.schema.models import ColumnSchema, ColumnSpec, MigrationPlan, TableSchema
from attribute_declarations.schema.reflector import SchemaReflector

__all__ = [
    "SchemaReflector",
    "compare_model",
    "schema_matches",
    "column_spec_from_declaration",
    "column_spec_from_column",
    "ColumnSchema",
    "ColumnSpec",
    "MigrationPlan",
    "TableSchema",
]
