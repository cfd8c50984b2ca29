from dataclasses import dataclass, field
from enum import Enum


class SessionStatus(str, Enum):
    CREATED = "created"
    DECODING = "decoding"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class Record:
    name: str
    email: str


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class FailureDetail:
    name: str
    email: str
    error: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "email": self.email, "error": self.error}


@dataclass(frozen=True)
class SessionState:
    session_id: str
    total_records: int = 0
    processed_records: int = 0
    failed_records: int = 0
    details: tuple[FailureDetail, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, object]:
        return {
            "sessionID": self.session_id,
            "totalRecords": self.total_records,
            "processedRecords": self.processed_records,
            "failedRecords": self.failed_records,
            "details": [detail.to_payload() for detail in self.details],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "SessionState":
        return cls(
            session_id=str(payload["sessionID"]),
            total_records=int(payload.get("totalRecords", 0)),
            processed_records=int(payload.get("processedRecords", 0)),
            failed_records=int(payload.get("failedRecords", 0)),
            details=tuple(
                FailureDetail(name=str(item["name"]), email=str(item["email"]), error=str(item["error"]))
                for item in payload.get("details", [])
            ),
        )


@dataclass(frozen=True)
class SessionProgress:
    session_id: str
    progress: float

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionProgress":
        if state.total_records > 0:
            done = state.processed_records + state.failed_records
            progress = (done / state.total_records) * 100
        else:
            progress = 0.0
        return cls(session_id=state.session_id, progress=progress)

    @property
    def progress_text(self) -> str:
        # Render whole numbers without a trailing ".0" ("100%", not "100.0%").
        if float(self.progress).is_integer():
            return f"{int(self.progress)}%"
        return f"{self.progress!r}%"

    def to_payload(self) -> dict[str, str]:
        return {"sessionID": self.session_id, "progress": self.progress_text}
