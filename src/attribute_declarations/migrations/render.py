"""Render migration plans as Alembic revision scripts.

The emitted script has the usual Alembic layout (docstring header,
``revision`` identifiers, ``upgrade()`` and ``downgrade()``) and only uses
``alembic.op`` and ``sqlalchemy``, so it runs under a stock Alembic
environment.

Usage:
    from attribute_declarations.migrations.render import render_migration

    source = render_migration(plan, down_revision="20261001090000_people")
"""

from typing import Any

from attribute_declarations.schema.models import ColumnSpec, MigrationPlan

INDENT = "    "


# ============================================================================
# Literal and type rendering
# ============================================================================


def render_type(spec: ColumnSpec) -> str:
    """Render the SQLAlchemy type expression for a spec.

    Examples:
        >>> render_type(ColumnSpec(type="string"))
        'sa.String(length=255)'
        >>> render_type(ColumnSpec(type="decimal", precision=10, scale=2))
        'sa.Numeric(precision=10, scale=2)'
    """
    type_ = spec.type
    if type_ == "string":
        return f"sa.String(length={spec.limit or 255})"
    if type_ == "text":
        return f"sa.Text(length={spec.limit})" if spec.limit else "sa.Text()"
    if type_ == "integer":
        if spec.limit == 8:
            return "sa.BigInteger()"
        if spec.limit == 2:
            return "sa.SmallInteger()"
        return "sa.Integer()"
    if type_ == "float":
        return f"sa.Float(precision={spec.precision})" if spec.precision else "sa.Float()"
    if type_ == "decimal":
        args = []
        if spec.precision is not None:
            args.append(f"precision={spec.precision}")
        if spec.scale is not None:
            args.append(f"scale={spec.scale}")
        return f"sa.Numeric({', '.join(args)})"
    if type_ in ("datetime", "timestamp"):
        return "sa.DateTime()"
    if type_ == "date":
        return "sa.Date()"
    if type_ == "time":
        return "sa.Time()"
    if type_ == "binary":
        return f"sa.LargeBinary(length={spec.limit})" if spec.limit else "sa.LargeBinary()"
    if type_ == "boolean":
        return "sa.Boolean()"
    if type_ in ("json", "jsonb"):
        return "sa.JSON()"
    # Types outside the declaration vocabulary
    return "sa.Text()"


def render_default(value: Any) -> str:
    """Render a default value as a ``server_default`` expression."""
    if isinstance(value, bool):
        return "sa.true()" if value else "sa.false()"
    return repr(str(value))


def render_column(name: str, spec: ColumnSpec) -> str:
    """Render ``sa.Column(...)`` for an add_column or create_table call."""
    args = [repr(name), render_type(spec)]
    if not spec.null:
        args.append("nullable=False")
    if spec.default is not None:
        args.append(f"server_default={render_default(spec.default)}")
    return f"sa.Column({', '.join(args)})"


def _alter_args(name: str, target: ColumnSpec, current: ColumnSpec) -> list[str]:
    """Arguments for ``alter_column`` moving a column from current to target."""
    args = [repr(name)]
    if not target.same_type(current):
        args.append(f"type_={render_type(target)}")
    if target.null != current.null:
        args.append(f"nullable={target.null}")
    if target.default != current.default:
        if target.default is None:
            args.append("server_default=None")
        else:
            args.append(f"server_default={render_default(target.default)}")
    args.append(f"existing_type={render_type(current)}")
    args.append(f"existing_nullable={current.null}")
    if current.default is not None and target.default == current.default:
        args.append(f"existing_server_default={render_default(current.default)}")
    return args


# ============================================================================
# Upgrade / downgrade bodies
# ============================================================================


def _column_calls(plan: MigrationPlan, direction: str) -> list[tuple[str, list[str]]]:
    """Column-level operations as ``(method, args)`` pairs, table omitted."""
    calls: list[tuple[str, list[str]]] = []
    if direction == "upgrade":
        for name in plan.added:
            calls.append(("add_column", [render_column(name, plan.declared[name])]))
        for name in plan.changed:
            calls.append(("alter_column", _alter_args(name, plan.declared[name], plan.existing[name])))
        for name in plan.removed:
            calls.append(("drop_column", [repr(name)]))
    else:
        for name in plan.added:
            calls.append(("drop_column", [repr(name)]))
        for name in plan.changed:
            calls.append(("alter_column", _alter_args(name, plan.existing[name], plan.declared[name])))
        for name in plan.removed:
            calls.append(("add_column", [render_column(name, plan.existing[name])]))
    return calls


def _render_create_table(plan: MigrationPlan) -> list[str]:
    lines = [
        "op.create_table(",
        f"{INDENT}{plan.table_name!r},",
        f"{INDENT}sa.Column({plan.primary_key!r}, sa.Integer(), nullable=False),",
    ]
    for name in plan.added:
        lines.append(f"{INDENT}{render_column(name, plan.declared[name])},")
    lines.append(f"{INDENT}sa.PrimaryKeyConstraint({plan.primary_key!r}),")
    lines.append(")")
    return lines


def migration_code_up(plan: MigrationPlan, render_as_batch: bool = False) -> list[str]:
    """Lines of the ``upgrade()`` body (unindented)."""
    if not plan.table_exists:
        return _render_create_table(plan)
    return _render_calls(plan, _column_calls(plan, "upgrade"), render_as_batch)


def migration_code_down(plan: MigrationPlan, render_as_batch: bool = False) -> list[str]:
    """Lines of the ``downgrade()`` body (unindented)."""
    if not plan.table_exists:
        return [f"op.drop_table({plan.table_name!r})"]
    return _render_calls(plan, _column_calls(plan, "downgrade"), render_as_batch)


def _render_calls(plan: MigrationPlan, calls: list[tuple[str, list[str]]], render_as_batch: bool) -> list[str]:
    if not calls:
        return []
    if render_as_batch:
        lines = [f"with op.batch_alter_table({plan.table_name!r}) as batch_op:"]
        for method, args in calls:
            lines.append(f"{INDENT}batch_op.{method}({', '.join(args)})")
        return lines
    return [
        f"op.{method}({', '.join([repr(plan.table_name), *args])})"
        for method, args in calls
    ]


# ============================================================================
# Full script
# ============================================================================


def _indent_body(lines: list[str]) -> str:
    if not lines:
        return f"{INDENT}pass"
    return "\n".join(f"{INDENT}{line}" for line in lines)


def render_migration(
    plan: MigrationPlan,
    down_revision: str | None = None,
    render_as_batch: bool = False,
) -> str:
    """Render a plan as Alembic migration file content.

    Args:
        plan: Plan from ``compare_model()``.
        down_revision: Revision this migration follows (None for a root).
        render_as_batch: Wrap column operations in ``op.batch_alter_table``
            (needed for SQLite).

    Returns:
        Python source for the migration file, or ``""`` if the plan has no
        changes.
    """
    if not plan.has_changes:
        return ""

    down_rev = repr(down_revision) if down_revision else "None"
    upgrade_body = _indent_body(migration_code_up(plan, render_as_batch))
    downgrade_body = _indent_body(migration_code_down(plan, render_as_batch))
    create_date = plan.created_at.strftime("%Y-%m-%d %H:%M:%S")

    return f'''"""{plan.migration_name}

{plan.model_name} attribute declarations for table '{plan.table_name}'.

Revision ID: {plan.revision}
Revises: {down_revision or ''}
Create Date: {create_date}
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = {plan.revision!r}
down_revision = {down_rev}
branch_labels = None
depends_on = None


def upgrade():
{upgrade_body}


def downgrade():
{downgrade_body}
'''
