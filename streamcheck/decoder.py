"""Incremental CSV decoding.

Rows are pulled from the byte stream one at a time through a text wrapper, so
the input never has to be resident in memory. The header is checked before
any record is produced.
"""

from collections.abc import Iterator
import csv
import io
import logging
from typing import BinaryIO

from streamcheck.errors import DecodeError, SchemaError
from streamcheck.schemas import Record


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "email")


def check_schema(columns: list[str]) -> None:
    missing = [column for column in REQUIRED_COLUMNS if column not in columns]
    if missing:
        raise SchemaError(f"Invalid CSV headers: missing {', '.join(missing)}")


def _next_row(reader) -> list[str] | None:
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return None
        except UnicodeDecodeError as exc:
            # Bytes are decoded a buffer at a time, so the offending line is unknown.
            raise DecodeError(f"input is not valid text: {exc}") from exc
        except csv.Error as exc:
            raise DecodeError(
                f"malformed CSV at line {reader.line_num + 1}: {exc}",
                line_number=reader.line_num + 1,
            ) from exc
        if row:
            return row


def iter_records(stream: BinaryIO, *, encoding: str = "utf-8-sig") -> Iterator[Record]:
    """Yield one Record per data row of ``stream``.

    Raises SchemaError if the header lacks a required column and DecodeError
    for rows that cannot be parsed into the header's shape. Empty input and
    header-only input yield nothing. The caller keeps ownership of ``stream``.
    """
    text = io.TextIOWrapper(stream, encoding=encoding, newline="")
    reader = csv.reader(text, strict=True)
    try:
        header = _next_row(reader)
        if header is None:
            logger.info("input stream is empty")
            return

        check_schema(header)
        logger.info("CSV fields are valid", extra={"columns": header})
        name_index = header.index("name")
        email_index = header.index("email")

        while True:
            row = _next_row(reader)
            if row is None:
                return
            if len(row) != len(header):
                raise DecodeError(
                    f"line {reader.line_num} has {len(row)} fields, expected {len(header)}",
                    line_number=reader.line_num,
                )
            yield Record(name=row[name_index], email=row[email_index])
    finally:
        text.detach()
