class IngestError(RuntimeError):
    # Bad input faults are not worth retrying; internal ones may be.
    client_fault = False
    retryable = False


class SchemaError(IngestError):
    client_fault = True


class DecodeError(IngestError):
    """A row could not be parsed.

    ``line_number`` is the 1-based physical line of the bad row. It is None for
    undecodable bytes, which surface when a whole read buffer is decoded.
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class StoreError(IngestError):
    retryable = True


class SessionNotFoundError(IngestError):
    client_fault = True

    def __init__(self, session_id: str) -> None:
        super().__init__(f"session not found: {session_id}")
        self.session_id = session_id
