"""Shared fixtures: a small sqlite database and a config pointing at it."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine

from schema_studio.config.models import DatabaseProfile, SchemaSettings, StudioConfig

APP_SCHEMA = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        status TEXT
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY,
        author_id INTEGER REFERENCES users(id),
        title TEXT
    )
    """,
    "INSERT INTO users (id, name) VALUES (1, 'ada'), (2, 'grace')",
]

APP_MODELS = """
package models

type User struct {
	ID    uint   `gorm:"primaryKey"`
	Name  string `gorm:"not null"`
	Posts []Post `gorm:"foreignKey:AuthorID"`
}

type Post struct {
	ID       uint `gorm:"primaryKey"`
	AuthorID uint
	Title    string
}

type Tag struct {
	ID   uint `gorm:"primaryKey"`
	Name string
}
"""


@pytest.fixture
def app_db(tmp_path: Path) -> str:
    """URL of a sqlite file database with users and posts."""
    url = f"sqlite:///{tmp_path / 'app.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in APP_SCHEMA:
            conn.exec_driver_sql(statement)
    engine.dispose()
    return url


@pytest.fixture
def models_file(tmp_path: Path) -> Path:
    path = tmp_path / "models.go"
    path.write_text(APP_MODELS, encoding="utf-8")
    return path


@pytest.fixture
def app_config(app_db: str) -> StudioConfig:
    return StudioConfig(
        profiles={"local": DatabaseProfile(url=app_db, description="Local sqlite")},
        schema_settings=SchemaSettings(),
    )


@pytest.fixture
def config_file(tmp_path: Path, app_db: str) -> Path:
    """schema-studio.toml with a ``local`` profile for the sample database."""
    path = tmp_path / "schema-studio.toml"
    path.write_text(
        "[profiles.local]\n"
        f'url = "{app_db}"\n'
        'description = "Local sqlite"\n',
        encoding="utf-8",
    )
    return path
