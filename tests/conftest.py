"""Shared fixtures: a file-backed SQLite database per test."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.db import session as db_session
from app.db.base import Base


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


@pytest.fixture()
def session_factory(tmp_path: Path, monkeypatch) -> sessionmaker:
    engine = _build_test_engine(tmp_path / "checkout_test.db")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    yield testing_session_local
    engine.dispose()


@pytest.fixture()
def db(session_factory: sessionmaker) -> Session:
    with session_factory() as session:
        yield session
