import argparse
import asyncio
import json
import logging
from pathlib import Path

from streamcheck.config import get_settings
from streamcheck.database import build_session_factory
from streamcheck.errors import IngestError
from streamcheck.pipeline import SessionManager
from streamcheck.scheduler import start_scheduler
from streamcheck.session_store import SqlSessionStore


logger = logging.getLogger(__name__)

EXIT_INTERNAL_ERROR = 1
EXIT_BAD_INPUT = 2


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate email lists and track progress by session")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest", help="validate one CSV file")
    ingest_parser.add_argument("path", help="CSV file with name and email columns")

    status_parser = subparsers.add_parser("status", help="show progress of a session")
    status_parser.add_argument("session_id")

    report_parser = subparsers.add_parser("report", help="show the latest report of a session")
    report_parser.add_argument("session_id")

    schedule_parser = subparsers.add_parser("schedule", help="poll the inbox directory for CSV files")
    schedule_parser.add_argument("--run-now", action="store_true", help="also scan the inbox immediately")

    return parser.parse_args()


async def _execute(args: argparse.Namespace, manager: SessionManager) -> dict[str, object]:
    if args.command == "status":
        progress = await manager.get_status(args.session_id)
        return progress.to_payload()
    if args.command == "report":
        state = await manager.get_report(args.session_id)
        return state.to_payload()

    with Path(args.path).open("rb") as stream:
        state = await manager.ingest(stream)
    return state.to_payload()


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    session_factory = build_session_factory(settings.database_url)
    if args.command == "schedule":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    if args.command == "ingest":
        path = Path(args.path)
        if path.suffix.lower() != ".csv":
            logger.error("invalid file type", extra={"path": str(path)})
            print(json.dumps({"message": "Invalid file type"}))
            raise SystemExit(EXIT_BAD_INPUT)
        if not path.is_file():
            logger.error("no file uploaded", extra={"path": str(path)})
            print(json.dumps({"message": "No file uploaded"}))
            raise SystemExit(EXIT_BAD_INPUT)

    manager = SessionManager(settings, SqlSessionStore(session_factory))
    try:
        payload = asyncio.run(_execute(args, manager))
    except IngestError as exc:
        print(json.dumps({"message": str(exc)}))
        raise SystemExit(EXIT_BAD_INPUT if exc.client_fault else EXIT_INTERNAL_ERROR) from exc

    print(json.dumps(payload))


if __name__ == "__main__":
    main()
