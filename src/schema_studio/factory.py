"""Profile resolution and live schema snapshots.

Ties configuration, introspection, model parsing and merging together:

1. Pick the active profile (explicit name, else ``<prefix>DB_PROFILE``)
2. Resolve its URL (password placeholder substitution)
3. Introspect the live database
4. Parse the configured models file, if any, and merge it in

Usage:
    from schema_studio.factory import load_live_schema

    schema = load_live_schema("local")
    for table in schema.tables:
        print(table.name, table.row_count)
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from schema_studio.config.loader import load_config
from schema_studio.config.models import DatabaseProfile, StudioConfig
from schema_studio.dialects import Dialect
from schema_studio.errors import SchemaStudioError, UnsupportedDialectError
from schema_studio.parsers.declarative import parse_models
from schema_studio.schema.introspector import SchemaIntrospector, normalize_url
from schema_studio.schema.merge import MergePolicy, build_schema
from schema_studio.schema.models import SchemaInfo, TableInfo

logger = logging.getLogger(__name__)


# ============================================================================
# Profile Resolution
# ============================================================================


class ProfileNotFoundError(SchemaStudioError):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Reads ``{env_prefix}DB_PROFILE`` (``DB_PROFILE`` by default).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the variable is unset or empty
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_var}=<name> or pass --profile <name>."
    )


def get_active_profile(
    profile_name: str | None = None,
    config: StudioConfig | None = None,
    env_prefix: str = "",
) -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not configured
        FileNotFoundError: If no config is given and none exists on disk
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)
    if config is None:
        config = load_config()

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found. Available: {available}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with the ``[YOUR-PASSWORD]`` placeholder replaced by
        the URL-quoted ``db_password``
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Schema Snapshots
# ============================================================================


def _url_dialect(url: str) -> Dialect | None:
    try:
        return Dialect.from_name(normalize_url(url).get_backend_name())
    except (UnsupportedDialectError, SQLAlchemyError):
        return None


def load_model_tables(
    models_file: str | Path,
    dialect: Dialect | str = Dialect.SQLITE,
    tag: str = "gorm",
) -> list[TableInfo]:
    """Parse a declarative models file into tables."""
    source = Path(models_file).read_text(encoding="utf-8")
    tables = parse_models(source, dialect, tag)
    logger.debug("Parsed %d model tables from %s", len(tables), models_file)
    return tables


def introspect_profile(
    profile_name: str | None = None,
    config: StudioConfig | None = None,
    env_prefix: str = "",
) -> SchemaInfo:
    """Catalog-only snapshot of a profile's database, row counts included."""
    if config is None:
        config = load_config()
    _, profile = get_active_profile(profile_name, config, env_prefix)

    with SchemaIntrospector(
        resolve_url(profile),
        excluded_tables=config.schema_settings.excluded_tables,
    ) as introspector:
        return introspector.introspect_schema()


def load_live_schema(
    profile_name: str | None = None,
    config: StudioConfig | None = None,
    models_file: str | Path | None = None,
    env_prefix: str = "",
    policy: MergePolicy = MergePolicy.MODEL_AUTHORITATIVE,
) -> SchemaInfo:
    """Build a fresh schema snapshot for a profile.

    Introspects the live database and merges in the models file
    (*models_file*, else ``[schema] models_file`` from config).  When
    introspection fails and model tables are available, the model tables
    alone are returned; without models the error propagates.

    Raises:
        ProfileNotFoundError: If no usable profile is selected
        UnsupportedDialectError: If the database backend is unsupported
            and there are no models to fall back on
        sqlalchemy.exc.SQLAlchemyError: If the database cannot be read
            and there are no models to fall back on
    """
    if config is None:
        config = load_config()
    name, profile = get_active_profile(profile_name, config, env_prefix)
    settings = config.schema_settings

    url = resolve_url(profile)
    dialect = _url_dialect(url)

    models_path = models_file or settings.models_file
    model_tables: list[TableInfo] = []
    if models_path:
        model_tables = load_model_tables(
            models_path, dialect or Dialect.SQLITE, settings.annotation_tag
        )

    try:
        catalog = introspect_profile(name, config)
    except (SchemaStudioError, SQLAlchemyError) as e:
        if not model_tables:
            raise
        logger.warning(
            "Introspection of profile %s failed, using model tables only: %s", name, e
        )
        return SchemaInfo(tables=model_tables, driver=dialect.value if dialect else "")

    return build_schema(
        catalog.tables,
        model_tables,
        driver=catalog.driver,
        policy=policy,
        database=catalog.database,
    )
