import asyncio
import json
import logging
from typing import BinaryIO
import uuid

from streamcheck.aggregator import ProgressAggregator
from streamcheck.config import Settings
from streamcheck.decoder import iter_records
from streamcheck.errors import SessionNotFoundError
from streamcheck.limiter import ValidationLimiter
from streamcheck.schemas import SessionProgress, SessionState, SessionStatus
from streamcheck.session_store import SessionStore
from streamcheck.validation import EmailValidator, build_email_validator


logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, settings: Settings, store: SessionStore, validator: EmailValidator | None = None) -> None:
        self.settings = settings
        self.store = store
        self.validator = validator or build_email_validator(settings.validation_delay_seconds)
        self._statuses: dict[str, SessionStatus] = {}

    def status_of(self, session_id: str) -> SessionStatus | None:
        """Lifecycle state of a session started by this manager, or None.

        Entries are kept for the lifetime of the manager; the CLI and the inbox
        job create one manager per invocation or poll.
        """
        return self._statuses.get(session_id)

    async def open_session(self) -> str:
        session_id = uuid.uuid4().hex
        await ProgressAggregator(session_id, self.store).persist()
        self._set_status(session_id, SessionStatus.CREATED)
        return session_id

    async def ingest(self, stream: BinaryIO) -> SessionState:
        session_id = await self.open_session()
        return await self.run(session_id, stream)

    async def run(self, session_id: str, stream: BinaryIO) -> SessionState:
        aggregator = ProgressAggregator(session_id, self.store)
        limiter = ValidationLimiter(self.settings.max_concurrent_validations)
        pending: set[asyncio.Task[None]] = set()
        failures: list[BaseException] = []

        def on_task_done(task: asyncio.Task[None]) -> None:
            pending.discard(task)
            if not task.cancelled() and task.exception() is not None:
                failures.append(task.exception())

        self._set_status(session_id, SessionStatus.DECODING)
        try:
            records = iter_records(stream)
            while True:
                # Stream reads block, so rows are pulled on a worker thread.
                record = await asyncio.to_thread(next, records, None)
                if record is None:
                    break
                # A store failure inside any validation task halts decoding.
                if failures:
                    raise failures[0]
                await aggregator.record_started()
                task = limiter.submit(lambda record=record: aggregator.validate_record(record, self.validator))
                pending.add(task)
                task.add_done_callback(on_task_done)

            self._set_status(session_id, SessionStatus.FINALIZING)
            logger.info(
                "decode finished, awaiting validations",
                extra={"session_id": session_id, "pending": len(pending)},
            )
            await asyncio.gather(*list(pending))
            if failures:
                raise failures[0]

            state = await aggregator.persist()
        except Exception as exc:
            self._set_status(session_id, SessionStatus.FAILED)
            logger.error(
                "session failed",
                extra={"session_id": session_id, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*list(pending), return_exceptions=True)

        self._set_status(session_id, SessionStatus.COMPLETE)
        logger.info(
            "session complete",
            extra={
                "session_id": session_id,
                "total_records": state.total_records,
                "processed_records": state.processed_records,
                "failed_records": state.failed_records,
            },
        )
        return state

    async def get_report(self, session_id: str) -> SessionState:
        payload = await self.store.get(session_id)
        if payload is None:
            logger.error("session not found", extra={"session_id": session_id})
            raise SessionNotFoundError(session_id)
        return SessionState.from_payload(json.loads(payload))

    async def get_status(self, session_id: str) -> SessionProgress:
        return SessionProgress.from_state(await self.get_report(session_id))

    def _set_status(self, session_id: str, status: SessionStatus) -> None:
        self._statuses[session_id] = status
        logger.info("session status changed", extra={"session_id": session_id, "status": status.value})
