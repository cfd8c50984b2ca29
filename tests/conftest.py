from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from streamcheck.config import Settings
from streamcheck.database import build_session_factory
from streamcheck.pipeline import SessionManager
from streamcheck.session_store import SqlSessionStore

from fakes import MemorySessionStore, TrackingValidator


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data" / "inbox").mkdir(parents=True, exist_ok=True)
    (tmp_path / "data" / "processed").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        app_name="streamcheck",
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        max_concurrent_validations=5,
        validation_delay_seconds=0,
        inbox_dir=str(temp_workspace / "data" / "inbox"),
        processed_dir=str(temp_workspace / "data" / "processed"),
        inbox_poll_seconds=30,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def memory_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture()
def validator() -> TrackingValidator:
    return TrackingValidator(delay_seconds=0.001)


@pytest.fixture()
def manager(test_settings: Settings, memory_store: MemorySessionStore, validator: TrackingValidator) -> SessionManager:
    return SessionManager(test_settings, memory_store, validator)


@pytest.fixture()
def sql_manager(
    test_settings: Settings, session_factory: sessionmaker[Session]
) -> Generator[SessionManager, None, None]:
    yield SessionManager(test_settings, SqlSessionStore(session_factory))
