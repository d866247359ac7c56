from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sitegen.models.site_version  # noqa: F401
from sitegen.config import Settings
from sitegen.db import Base

_LONG_SITE = (
    "import React from 'react';\n\n"
    "export default function Site() {\n"
    "  return (\n"
    "    <main className=\"min-h-screen\">\n"
    "      <section className=\"hero relative\">\n"
    "        {/* ANCHOR:hero */}\n"
    "        <h1>Padaria Aurora</h1>\n"
    "      </section>\n"
    "    </main>\n"
    "  );\n"
    "}"
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Database session for tests."""
    factory = sessionmaker(bind=db_engine)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def threaded_db():
    """In-memory SQLite engine + session factory (shared across threads)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    yield engine, factory
    engine.dispose()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with temp directories and no real keys."""
    return Settings(
        openai_api_key="test-key",
        anthropic_api_key="",
        manual_model="",
        database_url="sqlite:///:memory:",
        assets_dir=str(tmp_path / "assets"),
        logs_dir=str(tmp_path / "logs"),
        image_delay_seconds=0.0,
        dry_run=False,
        generate_images=True,
    )


@pytest.fixture
def long_site() -> str:
    """JSX site with a hero anchor, long enough to pass validation."""
    return _LONG_SITE
