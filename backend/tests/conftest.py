"""Pytest configuration and fixtures."""
import asyncio
import os
import tempfile

from cryptography.fernet import Fernet

# Configure the environment before the application reads its settings
TEST_DATA_DIR = tempfile.mkdtemp(prefix="presetarr-tests-")
os.environ["DATA_DIR"] = TEST_DATA_DIR
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DATA_DIR}/presetarr-test.db"
os.environ["CONFIG_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["SENSITIVE_SETTINGS"] = "smtppass@@none, password@@quiz"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import presetarr.models  # noqa: F401
from presetarr.admin_tree import DEFAULT_PLUGINS, build_default_tree
from presetarr.database import Base, engine, register_sqlite_pragmas
from presetarr.main import create_app
from presetarr.services.preset_store import PresetStore
from presetarr.store.memory import InMemoryConfigStore
from presetarr.utils.locks import AdvisoryLocks


@pytest.fixture
async def db_session():
    """Session over a fresh in-memory database."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    register_sqlite_pragmas(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def admin_tree():
    return build_default_tree()


@pytest.fixture
def memory_store(admin_tree):
    """Stock site with a few values changed from their defaults."""
    return InMemoryConfigStore(
        tree=admin_tree,
        values={
            ("none", "usecomments"): "1",
            ("none", "enablebadges"): "0",
            ("mod_lesson", "maxanswers"): "5",
        },
        plugins=DEFAULT_PLUGINS,
    )


@pytest.fixture
def locks():
    return AdvisoryLocks(timeout=0.2)


@pytest.fixture
def presets(db_session):
    return PresetStore(db_session)


async def _drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def client():
    """API client over an empty, freshly seeded database."""
    asyncio.run(_drop_tables())
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<PRESET>
  <NAME>Imported</NAME>
  <COMMENTS>From another site</COMMENTS>
  <PRESET_DATE>1700000000</PRESET_DATE>
  <SITE_URL>https://other.example.org</SITE_URL>
  <AUTHOR>Admin User</AUTHOR>
  <RELEASE>4.1</RELEASE>
  <ADMIN_SETTINGS>
    <NONE>
      <SETTINGS>
        <USECOMMENTS>0</USECOMMENTS>
        <NOSUCHSETTING>1</NOSUCHSETTING>
      </SETTINGS>
    </NONE>
    <MOD_LESSON>
      <SETTINGS>
        <MAXANSWERS maxanswers_adv="0" maxanswers_locked="1">2</MAXANSWERS>
      </SETTINGS>
    </MOD_LESSON>
  </ADMIN_SETTINGS>
  <PLUGINS>
    <MOD>
      <CHAT>1</CHAT>
      <BROKEN>yes</BROKEN>
    </MOD>
  </PLUGINS>
</PRESET>
"""


@pytest.fixture
def sample_xml():
    """Preset file exported by another site."""
    return SAMPLE_XML
