from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    max_concurrent_validations: int
    validation_delay_seconds: float
    inbox_dir: str
    processed_dir: str
    inbox_poll_seconds: int


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "streamcheck"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./sessions.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        max_concurrent_validations=int(os.getenv("MAX_CONCURRENT_VALIDATIONS", "5")),
        validation_delay_seconds=float(os.getenv("VALIDATION_DELAY_SECONDS", "0.1")),
        inbox_dir=os.getenv("INBOX_DIR", "./data/inbox"),
        processed_dir=os.getenv("PROCESSED_DIR", "./data/processed"),
        inbox_poll_seconds=int(os.getenv("INBOX_POLL_SECONDS", "30")),
    )
