import asyncio
from collections.abc import Awaitable, Callable
import logging

from streamcheck.schemas import ValidationOutcome


logger = logging.getLogger(__name__)

EmailValidator = Callable[[str], Awaitable[ValidationOutcome]]


async def validate_email_address(email: str, *, delay_seconds: float = 0.1) -> ValidationOutcome:
    # Stand-in for a remote verification call; only checks for an "@".
    logger.debug("validating email", extra={"email": email})
    await asyncio.sleep(delay_seconds)
    if "@" in email:
        return ValidationOutcome(is_valid=True)
    return ValidationOutcome(is_valid=False, error="Invalid email address")


def build_email_validator(delay_seconds: float) -> EmailValidator:
    async def validator(email: str) -> ValidationOutcome:
        return await validate_email_address(email, delay_seconds=delay_seconds)

    return validator
