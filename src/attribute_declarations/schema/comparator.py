"""Schema comparison using set operations.

Compares a model's declared attributes against its reflected table.
Pure logic -- no I/O, no database connections.

Usage:
    from attribute_declarations.schema.comparator import compare_model
    from attribute_declarations.schema.reflector import SchemaReflector

    with SchemaReflector(database_url) as reflector:
        table = reflector.reflect_table(Person.__tablename__)

    plan = compare_model(Person, table)
    if plan.has_changes:
        print(plan.format_report())
"""

from typing import TYPE_CHECKING

from attribute_declarations.declarations.models import AttributeDeclaration
from attribute_declarations.schema.models import ColumnSchema, ColumnSpec, MigrationPlan, TableSchema
from attribute_declarations.schema.reflector import normalize_default

if TYPE_CHECKING:
    from attribute_declarations.declarations.base import Model


# ============================================================================
# Column specs
# ============================================================================


def _spec(
    type_: str,
    limit: int | None = None,
    precision: int | None = None,
    scale: int | None = None,
    null: bool | None = True,
    default=None,
) -> ColumnSpec:
    """Build a spec with default-valued options removed."""
    if type_ == "timestamp":
        type_ = "datetime"
    if type_ == "string" and limit == 255:
        limit = None
    if type_ == "integer" and limit == 4:
        limit = None
    if type_ not in ("string", "text", "integer", "binary"):
        limit = None
    if type_ not in ("decimal", "float"):
        precision = None
        scale = None
    return ColumnSpec(
        type=type_,
        limit=limit,
        precision=precision,
        scale=scale,
        null=null is not False,
        default=normalize_default(default, type_),
    )


def column_spec_from_declaration(declaration: AttributeDeclaration | None) -> ColumnSpec:
    """Spec for a declared attribute; ``None`` means a foreign-key column."""
    if declaration is None:
        return _spec("integer")
    opts = declaration.migration_options
    return _spec(
        declaration.type,
        limit=opts.get("limit"),
        precision=opts.get("precision"),
        scale=opts.get("scale"),
        null=opts.get("null", True),
        default=opts.get("default"),
    )


def column_spec_from_column(column: ColumnSchema) -> ColumnSpec:
    """Spec for a reflected column."""
    return _spec(
        column.type,
        limit=column.limit,
        precision=column.precision,
        scale=column.scale,
        null=column.null,
        default=column.default,
    )


# ============================================================================
# Model comparison
# ============================================================================


def compare_model(model: type["Model"], table: TableSchema | None) -> MigrationPlan:
    """Compare a model's declarations against its reflected table.

    Performs set operations to find:
    - Added: declared attributes and foreign keys missing from the table
      (all of them when the table does not exist)
    - Removed: table columns, other than the primary key, that nothing declares
    - Changed: declared attributes present in the table whose specs differ

    Models with no attribute declarations, and abstract models, always get an
    empty plan.

    Args:
        model: Model class carrying attribute declarations.
        table: Reflected table, or ``None`` if it does not exist.

    Returns:
        ``MigrationPlan`` with added, removed and changed column names, in
        declaration order (removed columns in table order).
    """
    plan = MigrationPlan(
        model_name=model.__name__,
        table_name=model.__tablename__,
        table_exists=table is not None,
        primary_key=model.__primary_key__,
    )

    if not model.attribute_declarations or model.__abstract__:
        return plan

    declared_names = model.attribute_names_plus()

    def declared_spec(name: str) -> ColumnSpec:
        return column_spec_from_declaration(model.attribute_declarations.get(name))

    if table is None:
        plan.added = declared_names
        plan.declared = {name: declared_spec(name) for name in declared_names}
        return plan

    column_names = [name for name in table.column_names if name != model.__primary_key__]
    declared_set = set(declared_names)

    plan.added = [name for name in declared_names if name not in table.columns]
    plan.removed = [name for name in column_names if name not in declared_set]

    for name in model.attribute_names():
        if name not in table.columns:
            continue
        wanted = declared_spec(name)
        current = column_spec_from_column(table.columns[name])
        if wanted != current:
            plan.changed.append(name)
            plan.declared[name] = wanted
            plan.existing[name] = current

    for name in plan.added:
        plan.declared[name] = declared_spec(name)
    for name in plan.removed:
        plan.existing[name] = column_spec_from_column(table.columns[name])

    return plan


def schema_matches(model: type["Model"], table: TableSchema | None) -> bool:
    """True if the model's declarations match its table exactly.

    Examples:
        >>> schema_matches(UndeclaredModel, None)
        True
    """
    return not compare_model(model, table).has_changes
