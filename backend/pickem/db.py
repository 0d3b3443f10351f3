from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlmodel import SQLModel, Session, create_engine

_engine = None


def configure_db(db_url: str) -> None:
    global _engine
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    _engine = create_engine(db_url, echo=False, connect_args=connect_args)


def get_engine():
    if _engine is None:
        raise RuntimeError("DB not configured. Call configure_db(db_url) first.")
    return _engine


def init_db() -> None:
    # tables register on import
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(get_engine())


def get_session() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    with Session(get_engine()) as s:
        yield s


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts and background work outside a request."""
    with Session(get_engine()) as s:
        yield s
