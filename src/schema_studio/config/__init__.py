"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from schema_studio.config import load_config, DatabaseProfile, StudioConfig
"""

from schema_studio.config.loader import load_config
from schema_studio.config.models import DatabaseProfile, SchemaSettings, StudioConfig

__all__ = ["load_config", "StudioConfig", "DatabaseProfile", "SchemaSettings"]
