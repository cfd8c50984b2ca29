import asyncio
import json
import logging

from streamcheck.errors import StoreError
from streamcheck.schemas import FailureDetail, Record, SessionState
from streamcheck.session_store import SessionStore
from streamcheck.validation import EmailValidator


logger = logging.getLogger(__name__)

EMPTY_NAME_ERROR = "Name field is empty"
INVALID_EMAIL_ERROR = "Invalid email address"
VALIDATOR_FAILURE_ERROR = "Error validating email"


class ProgressAggregator:
    """Counters and failure details for one session.

    Every mutation happens under one lock, and the write-through snapshot is
    taken and stored under that same lock so the store sees writes in order.
    """

    def __init__(self, session_id: str, store: SessionStore) -> None:
        self.session_id = session_id
        self.store = store
        self._lock = asyncio.Lock()
        self._total = 0
        self._processed = 0
        self._failed = 0
        self._details: list[FailureDetail] = []

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            total_records=self._total,
            processed_records=self._processed,
            failed_records=self._failed,
            details=tuple(self._details),
        )

    async def record_started(self) -> None:
        async with self._lock:
            self._total += 1

    async def record_processed(self, record: Record) -> None:
        async with self._lock:
            self._processed += 1
            await self._write(self.snapshot())

    async def record_failed(self, record: Record, reason: str) -> None:
        async with self._lock:
            self._failed += 1
            self._details.append(FailureDetail(name=record.name, email=record.email, error=reason))
            await self._write(self.snapshot())

    async def persist(self) -> SessionState:
        async with self._lock:
            state = self.snapshot()
            await self._write(state)
            return state

    async def _write(self, state: SessionState) -> None:
        try:
            await self.store.set(self.session_id, json.dumps(state.to_payload()))
        except StoreError:
            raise
        except Exception as exc:
            # Injected stores may raise their own client errors.
            raise StoreError(f"failed to write session {self.session_id}: {exc}") from exc

    async def validate_record(self, record: Record, validator: EmailValidator) -> None:
        if not record.name:
            logger.warning("name field is empty", extra={"session_id": self.session_id, "email": record.email})
            await self.record_failed(record, EMPTY_NAME_ERROR)
            return

        try:
            outcome = await validator(record.email)
        except Exception as exc:
            logger.warning(
                "error validating email",
                extra={"session_id": self.session_id, "email": record.email, "error": str(exc)},
            )
            await self.record_failed(record, str(exc) or VALIDATOR_FAILURE_ERROR)
            return

        if outcome.is_valid:
            logger.debug("valid email", extra={"session_id": self.session_id, "email": record.email})
            await self.record_processed(record)
        else:
            logger.warning("invalid email", extra={"session_id": self.session_id, "email": record.email})
            await self.record_failed(record, outcome.error or INVALID_EMAIL_ERROR)
