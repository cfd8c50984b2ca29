import asyncio
import logging
from pathlib import Path
import shutil

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from streamcheck.config import Settings
from streamcheck.errors import IngestError
from streamcheck.pipeline import SessionManager
from streamcheck.schemas import SessionState
from streamcheck.session_store import SqlSessionStore


logger = logging.getLogger(__name__)


def ingest_inbox(settings: Settings, session_factory: sessionmaker[Session]) -> list[SessionState]:
    inbox_dir = Path(settings.inbox_dir)
    processed_dir = Path(settings.processed_dir)
    rejected_dir = processed_dir / "rejected"
    if not inbox_dir.is_dir():
        logger.warning("inbox directory missing", extra={"inbox_dir": str(inbox_dir)})
        return []

    manager = SessionManager(settings, SqlSessionStore(session_factory))
    reports: list[SessionState] = []
    for path in sorted(inbox_dir.glob("*.csv")):
        try:
            with path.open("rb") as stream:
                state = asyncio.run(manager.ingest(stream))
        except IngestError as exc:
            if exc.retryable:
                # Leave the file in place so the next poll picks it up again.
                logger.error("inbox file deferred", extra={"path": str(path), "error": str(exc)})
                continue
            logger.error("inbox file rejected", extra={"path": str(path), "error": str(exc)})
            rejected_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(path), rejected_dir / path.name)
            continue

        processed_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(path), processed_dir / path.name)
        logger.info(
            "inbox file ingested",
            extra={"path": str(path), "session_id": state.session_id, "total_records": state.total_records},
        )
        reports.append(state)
    return reports


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        ingest_inbox,
        "interval",
        args=[settings, session_factory],
        seconds=settings.inbox_poll_seconds,
        id="inbox_ingest",
        replace_existing=True,
        max_instances=1,
    )

    logger.info(
        "scheduler started",
        extra={"inbox_dir": settings.inbox_dir, "inbox_poll_seconds": settings.inbox_poll_seconds},
    )

    if run_now:
        ingest_inbox(settings, session_factory)

    scheduler.start()
