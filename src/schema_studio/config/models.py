"""Pydantic models for schema-studio configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from schema-studio.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class SchemaSettings(BaseModel):
    """The ``[schema]`` section: where models live and how to read them."""

    models_file: str | None = None
    annotation_tag: str = "gorm"
    package: str = "models"
    excluded_tables: list[str] | None = None  # None keeps the introspector defaults


class StudioConfig(BaseModel):
    """Complete configuration from schema-studio.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    schema_settings: SchemaSettings = Field(default_factory=SchemaSettings)
