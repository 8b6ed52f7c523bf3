"""Migration rendering and generation.

Usage:
    >>> from attribute_declarations.migrations import generate_migrations, render_migration
"""

from attribute_declarations.migrations.generator import (
    ModelCheck,
    check_models,
    find_head_revision,
    generate_migrations,
    plan_model,
    undeclared_tables,
)
from attribute_declarations.migrations.render import render_migration

__all__ = [
    "ModelCheck",
    "check_models",
    "find_head_revision",
    "generate_migrations",
    "plan_model",
    "render_migration",
    "undeclared_tables",
]
