"""Configuration loading from schema-studio.toml."""

import tomllib
from pathlib import Path

from schema_studio.config.models import DatabaseProfile, SchemaSettings, StudioConfig

CONFIG_FILENAME = "schema-studio.toml"


def load_config(config_path: Path | None = None) -> StudioConfig:
    """Load configuration from TOML file.

    Args:
        config_path: Path to the config file (default: ./schema-studio.toml)

    Returns:
        StudioConfig with all profiles and schema settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If a section has the wrong shape
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] section."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    # Parse schema settings
    schema_settings = SchemaSettings(**data.get("schema", {}))

    return StudioConfig(profiles=profiles, schema_settings=schema_settings)
