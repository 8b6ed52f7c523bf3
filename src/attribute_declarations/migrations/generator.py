"""Schema check and migration generation for declared models.

Three entry points sit on top of the reflector, the comparator and the
renderer:

- ``check_models()``: compare every model against the live schema and log a
  warning for each one that does not match (run at application start).
- ``undeclared_tables()``: list tables that no model declares.
- ``generate_migrations()``: write one Alembic revision per mismatched model
  into the versions directory, chained after the current head.

Usage:
    from attribute_declarations.migrations import check_models, generate_migrations

    with SchemaReflector(database_url) as reflector:
        results = check_models(models, reflector)
        paths = generate_migrations(models, reflector, "migrations/versions")
"""

import ast
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel

from attribute_declarations.errors import MultipleHeadsError
from attribute_declarations.migrations.render import render_migration
from attribute_declarations.schema.comparator import compare_model
from attribute_declarations.schema.models import MigrationPlan
from attribute_declarations.schema.reflector import SchemaReflector

if TYPE_CHECKING:
    from attribute_declarations.declarations.base import Model

logger = logging.getLogger(__name__)

MISMATCH_WARNING = (
    "Attribute declaration does not match database schema in %s model.\n"
    "  Consider running 'attribute-declarations generate'."
)
GENERATED_HINT = (
    "Edit the newly created migration files, then run "
    "'alembic upgrade head' to migrate the database schema."
)


# ============================================================================
# Result Models
# ============================================================================


class ModelCheck(BaseModel):
    """Outcome of checking one model against the live schema."""

    model_name: str
    table_name: str
    matches: bool
    plan: MigrationPlan


# ============================================================================
# Schema check
# ============================================================================


def plan_model(model: type["Model"], reflector: SchemaReflector) -> MigrationPlan:
    """Reflect a model's table and compare it with the declarations."""
    table = reflector.reflect_table(model.__tablename__)
    return compare_model(model, table)


def check_models(models: Iterable[type["Model"]], reflector: SchemaReflector) -> list[ModelCheck]:
    """Check each model and warn about those that do not match.

    Args:
        models: Model classes to check.
        reflector: Connected ``SchemaReflector``.

    Returns:
        One ``ModelCheck`` per model, in the given order.
    """
    results = []
    for model in models:
        plan = plan_model(model, reflector)
        if plan.has_changes:
            logger.warning(MISMATCH_WARNING, model.__name__)
        results.append(
            ModelCheck(
                model_name=model.__name__,
                table_name=model.__tablename__,
                matches=not plan.has_changes,
                plan=plan,
            )
        )
    return results


def undeclared_tables(models: Iterable[type["Model"]], reflector: SchemaReflector) -> list[str]:
    """Tables in the database that none of the given models is backed by.

    Migration bookkeeping tables (``SchemaReflector.EXCLUDED_TABLES``) are
    never reported.
    """
    declared = {model.__tablename__ for model in models}
    return sorted(set(reflector.get_column_names()) - declared)


# ============================================================================
# Revision chain
# ============================================================================


def _read_revision_ids(path: Path) -> tuple[str | None, str | tuple | None]:
    """Read ``revision`` and ``down_revision`` assignments from a script."""
    tree = ast.parse(path.read_text(), filename=str(path))
    values: dict[str, object] = {}
    for node in tree.body:
        if not isinstance(node, ast.Assign) or len(node.targets) != 1:
            continue
        target = node.targets[0]
        if isinstance(target, ast.Name) and target.id in ("revision", "down_revision"):
            try:
                values[target.id] = ast.literal_eval(node.value)
            except ValueError:
                logger.debug("Non-literal %s in %s", target.id, path.name)
    return values.get("revision"), values.get("down_revision")


def find_head_revision(versions_dir: str | Path) -> str | None:
    """Find the head revision among the scripts in a versions directory.

    The head is the one revision no other script names as its
    ``down_revision``.

    Returns:
        The head revision id, or ``None`` if the directory has no scripts.

    Raises:
        MultipleHeadsError: If more than one head exists.
    """
    versions_path = Path(versions_dir)
    if not versions_path.is_dir():
        return None

    revisions: set[str] = set()
    parents: set[str] = set()
    for path in sorted(versions_path.glob("*.py")):
        if path.name.startswith("__"):
            continue
        revision, down_revision = _read_revision_ids(path)
        if not revision:
            continue
        revisions.add(revision)
        if isinstance(down_revision, (tuple, list)):
            parents.update(down_revision)
        elif down_revision:
            parents.add(down_revision)

    heads = sorted(revisions - parents)
    if len(heads) > 1:
        raise MultipleHeadsError(
            f"Multiple head revisions in {versions_path}: {', '.join(heads)}"
        )
    return heads[0] if heads else None


# ============================================================================
# Generation
# ============================================================================


def generate_migrations(
    models: Iterable[type["Model"]],
    reflector: SchemaReflector,
    versions_dir: str | Path,
    down_revision: str | None = None,
    render_as_batch: bool = False,
    dry_run: bool = False,
) -> list[Path]:
    """Write a migration for every model whose declarations do not match.

    Each migration revises the previous one, starting from ``down_revision``
    (default: the current head of ``versions_dir``).

    Args:
        models: Model classes to compare.
        reflector: Connected ``SchemaReflector``.
        versions_dir: Directory the migration files are written to.
        down_revision: Revision the first migration follows.
        render_as_batch: Render column operations in batch mode.
        dry_run: Compute paths and log them without writing files.

    Returns:
        Paths of the (would-be) migration files, in model order.
    """
    versions_path = Path(versions_dir)
    if down_revision is None:
        down_revision = find_head_revision(versions_path)

    written: list[Path] = []
    for model in models:
        plan = plan_model(model, reflector)
        if not plan.has_changes:
            logger.debug("%s matches table %s", model.__name__, plan.table_name)
            continue

        source = render_migration(plan, down_revision=down_revision, render_as_batch=render_as_batch)
        path = versions_path / plan.file_name
        if dry_run:
            logger.info("Would create %s", path)
        else:
            versions_path.mkdir(parents=True, exist_ok=True)
            path.write_text(source)
            logger.info("Created %s", path)
        written.append(path)
        down_revision = plan.revision

    if written and not dry_run:
        logger.info(GENERATED_HINT)
    return written
