import asyncio
import hashlib
import logging
import random
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)


def generate_file_id() -> str:
    """
    Generate a unique identifier for a stored upload.

    Returns:
        str: Unique file identifier
    """
    return str(uuid.uuid4())


def generate_access_token() -> str:
    """
    Generate an opaque bearer token (64 random bytes, hex encoded).

    Returns:
        str: Raw access token; only its hash is ever stored
    """
    return secrets.token_hex(64)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_email(email: str) -> str:
    """Returns SHA-256 hash of the email for secure logging."""
    return hashlib.sha256(email.lower().strip().encode("utf-8")).hexdigest()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def retry_with_backoff(
    func: Callable[..., Any],
    *args: Any,
    max_attempts: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 10.0,
    multiplier: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: tuple = (Exception,),
    call_timeout: float | None = None,
    **kwargs: Any,
) -> Any:
    """Run an async callable with exponential backoff and jitter.

    Args:
        func: Async callable to execute.
        max_attempts: Maximum number of attempts before giving up.
        initial_delay: Base delay in seconds.
        max_delay: Maximum delay cap in seconds.
        multiplier: Backoff multiplier.
        jitter: Fractional jitter to add/subtract from computed delay.
        retry_exceptions: Tuple of exception classes to treat as retryable.
        call_timeout: Optional per-attempt timeout in seconds.
        kwargs: Keyword args forwarded to `func`.

    Returns:
        The result of the successful `func` call.

    Raises:
        The last exception raised by `func` if max attempts are exhausted,
        or immediately for exceptions outside `retry_exceptions`.
    """

    attempt = 0
    while True:
        attempt += 1
        try:
            if call_timeout:
                result = await asyncio.wait_for(func(*args, **kwargs), timeout=call_timeout)
            else:
                result = await func(*args, **kwargs)
            logger.debug("retry_with_backoff: attempt %s succeeded", attempt)
            return result
        except retry_exceptions as exc:
            logger.warning(
                "retry_with_backoff: attempt %s failed with %s: %s",
                attempt,
                type(exc).__name__,
                exc,
            )
            if attempt >= max_attempts:
                raise
            delay = min(initial_delay * (multiplier ** (attempt - 1)), max_delay)
            jitter_amount = delay * jitter * (random.random() * 2 - 1)
            sleep_for = max(0.0, delay + jitter_amount)
            await asyncio.sleep(sleep_for)
