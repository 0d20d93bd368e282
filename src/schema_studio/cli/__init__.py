"""CLI for schema inspection, conversion and validation.

Provides commands for listing profiles, inspecting a live database,
converting between schema formats, and checking a database against a
schema file.

Usage:
    DB_PROFILE=local schema-studio inspect
    schema-studio inspect --profile local --models models.go --json
    schema-studio convert schema.dbml --to ddl --dialect postgres
    schema-studio convert schema.sql --to models --output models.go
    schema-studio validate schema.sql --profile local
    schema-studio profiles

Commands:
    profiles  - List profiles from schema-studio.toml
    inspect   - Introspect a profile's database (merged with models)
    convert   - Convert a schema file to DDL, models, JSON or YAML
    validate  - Check a profile's database against a schema file
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from schema_studio.config.loader import load_config
from schema_studio.config.models import SchemaSettings, StudioConfig
from schema_studio.emitters.ddl import generate_schema_ddl, if_not_exists
from schema_studio.emitters.source import generate_models
from schema_studio.errors import SchemaStudioError
from schema_studio.factory import (
    ProfileNotFoundError,
    get_active_profile_name,
    introspect_profile,
    load_live_schema,
)
from schema_studio.importer import dump_schema, load_schema_file
from schema_studio.schema.comparator import validate_schema
from schema_studio.schema.models import SchemaInfo

console = Console()
err_console = Console(stderr=True)

# Errors reported as a one-line failure instead of a traceback
_COMMAND_ERRORS = (FileNotFoundError, SchemaStudioError, SQLAlchemyError, ValidationError)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(args: argparse.Namespace) -> StudioConfig:
    config_path = getattr(args, "config", None)
    return load_config(Path(config_path) if config_path else None)


def _schema_settings(args: argparse.Namespace) -> SchemaSettings:
    """The [schema] section, or defaults when there is no config file."""
    try:
        return _load_config(args).schema_settings
    except FileNotFoundError:
        return SchemaSettings()


def _print_schema(schema: SchemaInfo) -> None:
    table = Table(
        title=f"Schema ({schema.driver or 'unknown'})",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Table")
    table.add_column("Columns", justify="right")
    table.add_column("Primary Key")
    table.add_column("Foreign Keys")
    table.add_column("Relations", justify="right")
    table.add_column("Rows", justify="right")

    for info in schema.tables:
        foreign = [
            f"{col.name} -> {col.foreign_table}.{col.foreign_key or '?'}"
            for col in info.columns
            if col.is_foreign_key
        ]
        table.add_row(
            f"[bold cyan]{info.name}[/bold cyan]",
            str(len(info.columns)),
            ", ".join(info.key_columns()),
            "\n".join(foreign),
            str(len(info.relations)),
            str(info.row_count),
        )

    console.print(table)


def _write_output(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        err_console.print(f"[green]Wrote[/green] {output}")
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


# ============================================================================
# Command implementations
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from schema-studio.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if the config file is not found.
    """
    try:
        config = _load_config(args)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        current = get_active_profile_name(args.env_prefix)
    except ProfileNotFoundError:
        current = None

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Backend")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.url.split(":", 1)[0],
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Introspect the active profile and show (or dump) the schema.

    Returns:
        0 on success, 1 on any configuration or database error.
    """
    try:
        config = _load_config(args)
        schema = load_live_schema(
            profile_name=args.profile,
            config=config,
            models_file=args.models,
            env_prefix=args.env_prefix,
        )
    except _COMMAND_ERRORS as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    if args.json:
        sys.stdout.write(dump_schema(schema, "json") + "\n")
    else:
        _print_schema(schema)
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    """Convert a schema file into another representation.

    Returns:
        0 on success, 1 if the input cannot be read or parsed.
    """
    settings = _schema_settings(args)
    try:
        schema = load_schema_file(
            args.input, dialect=args.dialect, tag=args.tag or settings.annotation_tag
        )
    except _COMMAND_ERRORS as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    if args.to == "ddl":
        dialect = args.dialect or schema.driver or "sqlite"
        try:
            text = generate_schema_ddl(schema, dialect)
        except SchemaStudioError as e:
            console.print(f"[bold red]x[/bold red] {e}")
            return 1
        if args.if_not_exists:
            text = if_not_exists(text)
    elif args.to == "models":
        text = generate_models(schema, package=args.package or settings.package)
    else:
        text = dump_schema(schema, args.to)

    _write_output(text, args.output)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate the active profile's database against a schema file.

    Returns:
        0 on valid schema, 1 on drift or any error.
    """
    try:
        config = _load_config(args)
        expected = load_schema_file(
            args.input, tag=args.tag or config.schema_settings.annotation_tag
        )
        actual = introspect_profile(args.profile, config, args.env_prefix)
    except _COMMAND_ERRORS as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    result = validate_schema(actual, expected)

    if result.valid:
        console.print("[bold green]v[/bold green] Schema validation: [green]PASSED[/green]")
        if result.extra_tables:
            console.print(
                f"  Extra tables: [yellow]{', '.join(result.extra_tables)}[/yellow]"
            )
        return 0

    console.print(f"[bold red]x[/bold red] Schema validation failed: {result.error_count} errors")
    console.print(result.format_report())
    return 1


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="schema-studio",
        description="Relational schema introspection and conversion toolkit",
    )

    # Global options
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to schema-studio.toml (default: ./schema-studio.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # inspect command
    p_inspect = subparsers.add_parser(
        "inspect",
        help="Introspect a profile's database",
    )
    p_inspect.add_argument("--profile", "-p", help="Profile name (default: DB_PROFILE)")
    p_inspect.add_argument("--models", help="Declarative models file to merge in")
    p_inspect.add_argument(
        "--json",
        action="store_true",
        help="Print the schema as JSON instead of a table",
    )
    p_inspect.set_defaults(func=cmd_inspect)

    # convert command
    p_convert = subparsers.add_parser(
        "convert",
        help="Convert a schema file (.sql, .dbml, .go, .json, .yaml)",
    )
    p_convert.add_argument("input", help="Schema file to convert")
    p_convert.add_argument(
        "--to",
        required=True,
        choices=["ddl", "models", "json", "yaml"],
        help="Output format",
    )
    p_convert.add_argument(
        "--dialect",
        choices=["sqlite", "postgres", "mysql"],
        help="SQL dialect of the input and of generated DDL",
    )
    p_convert.add_argument(
        "--if-not-exists",
        action="store_true",
        help="Emit CREATE TABLE IF NOT EXISTS",
    )
    p_convert.add_argument(
        "--package", help="Package name for --to models (default: [schema] package)"
    )
    p_convert.add_argument(
        "--tag", help="Annotation tag read from .go input (default: [schema] annotation_tag)"
    )
    p_convert.add_argument("--output", "-o", help="Write to a file instead of stdout")
    p_convert.set_defaults(func=cmd_convert)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Check a profile's database against a schema file",
    )
    p_validate.add_argument("input", help="Expected schema file")
    p_validate.add_argument("--profile", "-p", help="Profile name (default: DB_PROFILE)")
    p_validate.add_argument(
        "--tag", help="Annotation tag read from .go input (default: [schema] annotation_tag)"
    )
    p_validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
