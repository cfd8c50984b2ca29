import asyncio
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from streamcheck.db_models import SessionSnapshot
from streamcheck.errors import StoreError


class SessionStore(Protocol):
    async def set(self, key: str, value: str) -> None: ...

    async def get(self, key: str) -> str | None: ...


def get_snapshot(db: Session, session_key: str) -> SessionSnapshot | None:
    return db.get(SessionSnapshot, session_key)


def put_snapshot(db: Session, *, session_key: str, payload: str) -> None:
    snapshot = get_snapshot(db, session_key)
    if snapshot is None:
        db.add(SessionSnapshot(session_key=session_key, payload=payload))
    else:
        # Last write wins; writes for one session arrive already ordered.
        snapshot.payload = payload
    db.commit()


class SqlSessionStore:
    """Key-value session store on top of a SQLAlchemy session factory.

    The ORM calls block, so each one runs on a worker thread to keep the event
    loop free for validation tasks.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    def _set(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                put_snapshot(db, session_key=key, payload=value)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to write session {key}: {exc}") from exc

    def _get(self, key: str) -> str | None:
        try:
            with self.session_factory() as db:
                snapshot = get_snapshot(db, key)
                return snapshot.payload if snapshot is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to read session {key}: {exc}") from exc
