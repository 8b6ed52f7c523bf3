"""CLI for checking attribute declarations and generating migrations.

Compares the attributes declared on models against the live database
schema and writes Alembic migrations for the differences.

Usage:
    attribute-declarations check
    attribute-declarations show Person
    attribute-declarations generate --dry-run
    attribute-declarations --url sqlite:///app.db --models app.models generate

Commands:
    check     - Compare every model with its table (exit 1 on mismatch)
    show      - Print the migration code for one model
    generate  - Write one migration per mismatched model
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.logging import RichHandler
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from attribute_declarations.config.loader import CONFIG_FILE_NAME, load_config
from attribute_declarations.config.models import AttributeDeclarationsConfig
from attribute_declarations.declarations.base import get_model, load_all_models
from attribute_declarations.errors import AttributeDeclarationError
from attribute_declarations.migrations.generator import (
    check_models,
    find_head_revision,
    generate_migrations,
    plan_model,
    undeclared_tables,
)
from attribute_declarations.migrations.render import render_migration
from attribute_declarations.schema.reflector import SchemaReflector

console = Console()

# Failures reported as a one-line error with exit code 1
CLI_ERRORS = (
    FileNotFoundError,
    ValueError,
    ImportError,
    AttributeDeclarationError,
    SQLAlchemyError,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def print_error(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")


# ============================================================================
# Config and model resolution (CLI-internal helpers)
# ============================================================================


def _resolve_config(args: argparse.Namespace) -> AttributeDeclarationsConfig:
    """Build the effective config from the TOML file and CLI overrides.

    ``--config`` must point at an existing file; without it the default
    file is used when present. ``--url`` and ``--models`` win over both.

    Raises:
        FileNotFoundError: If ``--config`` names a missing file.
        ValueError: If the config is invalid or has no database URL/models.
    """
    config_path = getattr(args, "config", None)
    if config_path:
        config = load_config(Path(config_path))
    elif (Path.cwd() / CONFIG_FILE_NAME).exists():
        config = load_config()
    else:
        config = AttributeDeclarationsConfig(database_url=os.environ.get("DATABASE_URL"))

    updates = {}
    if getattr(args, "url", None):
        updates["database_url"] = args.url
    if getattr(args, "models", None):
        updates["models"] = [m.strip() for m in args.models.split(",") if m.strip()]
    if updates:
        config = config.model_copy(update=updates)

    if not config.database_url:
        raise ValueError("No database URL: set database_url, DATABASE_URL or --url")
    if not config.models:
        raise ValueError("No model modules: set models or --models")
    return config


def _load_models(config: AttributeDeclarationsConfig) -> list:
    """Import every configured module and collect its models."""
    models = []
    for package in config.models:
        for model in load_all_models(package):
            if model not in models:
                models.append(model)
    return models


# ============================================================================
# Command implementations
# ============================================================================


def cmd_check(args: argparse.Namespace) -> int:
    """Compare every model's declarations with its table.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 if all models match, 1 on mismatch or error.
    """
    try:
        config = _resolve_config(args)
        models = _load_models(config)
        with SchemaReflector(config.database_url) as reflector:
            results = check_models(models, reflector)
            unmodeled = undeclared_tables(models, reflector)
    except CLI_ERRORS as e:
        print_error(e)
        return 1

    if not results:
        console.print("[yellow]No models with attribute declarations found.[/yellow]")
        return 0

    table = Table(title="Attribute Declarations", show_header=True, header_style="bold")
    table.add_column("Model")
    table.add_column("Table", style="dim")
    table.add_column("Status")
    table.add_column("Added", justify="right")
    table.add_column("Changed", justify="right")
    table.add_column("Removed", justify="right")

    for result in results:
        plan = result.plan
        if result.matches:
            status = "[green]OK[/green]"
        elif not plan.table_exists:
            status = "[bold yellow]NEW TABLE[/bold yellow]"
        else:
            status = "[bold red]MISMATCH[/bold red]"
        table.add_row(
            result.model_name,
            result.table_name,
            status,
            str(len(plan.added)),
            str(len(plan.changed)),
            str(len(plan.removed)),
        )

    console.print(table)

    if unmodeled:
        console.print(f"[dim]Tables without a model:[/dim] {', '.join(unmodeled)}")

    mismatched = [r for r in results if not r.matches]
    if mismatched:
        console.print()
        console.print(
            f"[bold red]x[/bold red] {len(mismatched)} model(s) do not match the database schema"
        )
        console.print("[dim]Run:[/dim] [cyan]attribute-declarations generate[/cyan]")
        return 1

    console.print()
    console.print("[bold green]v[/bold green] All models match the database schema")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print the migration code for one model without writing it.

    Args:
        args: Parsed CLI arguments with ``model``.

    Returns:
        0 on success, 1 on error.
    """
    try:
        config = _resolve_config(args)
        _load_models(config)
        model = get_model(args.model, package=config.models)
        with SchemaReflector(config.database_url) as reflector:
            plan = plan_model(model, reflector)
        down_revision = find_head_revision(config.versions_dir)
    except CLI_ERRORS as e:
        print_error(e)
        return 1

    if not plan.has_changes:
        console.print(
            f"[bold green]v[/bold green] {model.__name__} matches table '{plan.table_name}'"
        )
        return 0

    console.print(plan.format_report(), markup=False, highlight=False)
    console.print()
    source = render_migration(
        plan, down_revision=down_revision, render_as_batch=config.render_as_batch
    )
    console.print(source, markup=False, highlight=False, soft_wrap=True)
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Write one migration file per mismatched model.

    Args:
        args: Parsed CLI arguments with ``dry_run``, ``versions_dir`` and
            ``render_as_batch``.

    Returns:
        0 on success, 1 on error.
    """
    try:
        config = _resolve_config(args)
        models = _load_models(config)
        versions_dir = args.versions_dir or config.versions_dir
        render_as_batch = args.render_as_batch or config.render_as_batch
        with SchemaReflector(config.database_url) as reflector:
            paths = generate_migrations(
                models,
                reflector,
                versions_dir,
                render_as_batch=render_as_batch,
                dry_run=args.dry_run,
            )
    except CLI_ERRORS as e:
        print_error(e)
        return 1

    if not paths:
        console.print("[bold green]v[/bold green] All models match - no migrations needed")
        return 0

    for path in paths:
        console.print(f"  [cyan]{path}[/cyan]", soft_wrap=True)

    if args.dry_run:
        console.print()
        console.print("[bold yellow]DRY RUN[/bold yellow] - No files written.")
    else:
        console.print()
        console.print(f"[bold green]v[/bold green] Created {len(paths)} migration(s)")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="attribute-declarations",
        description="Check model attribute declarations against the database schema",
    )

    parser.add_argument(
        "--config",
        help=f"Path to config file (default: ./{CONFIG_FILE_NAME})",
    )
    parser.add_argument(
        "--url",
        help="Database URL (overrides config and DATABASE_URL)",
    )
    parser.add_argument(
        "--models",
        help="Comma-separated modules or packages holding models (e.g., app.models)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check command
    p_check = subparsers.add_parser(
        "check",
        help="Compare every model with its table",
    )
    p_check.set_defaults(func=cmd_check)

    # show command
    p_show = subparsers.add_parser(
        "show",
        help="Print the migration code for one model",
    )
    p_show.add_argument(
        "model",
        help="Model class name (or module.ClassName)",
    )
    p_show.set_defaults(func=cmd_show)

    # generate command
    p_generate = subparsers.add_parser(
        "generate",
        help="Write one migration per mismatched model",
    )
    p_generate.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which files would be written without writing them",
    )
    p_generate.add_argument(
        "--versions-dir",
        help="Directory for migration files (overrides config)",
    )
    p_generate.add_argument(
        "--render-as-batch",
        action="store_true",
        help="Render column operations with op.batch_alter_table",
    )
    p_generate.set_defaults(func=cmd_generate)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
