"""
Retry with exponential backoff for external collaborator calls
(rule table, charge registry, case-law corpus, feedback storage).
Handles transient failures: connection resets, 503s, rate limits.
Each collaborator attempt is bounded by call_collaborator; a timed-out
attempt counts against the same retry budget.
"""

import asyncio

from src.config.logging_config import setup_logger
from src.config.settings import config
from src.services.guidance.errors import CollaboratorTimeout, CollaboratorUnavailable

logger = setup_logger(__name__)

# Retry config
DEFAULT_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_BACKOFF = 2.0

# Exception names that indicate transient (retryable) errors
RETRYABLE_NAMES = (
    "ConnectionError",
    "ConnectionResetError",
    "ConnectionRefusedError",
    "ConnectError",
    "ReadError",
    "RemoteProtocolError",
    "PoolTimeout",
)


def _is_retryable(exc: BaseException) -> bool:
    """Check if exception is retryable (connection, 503, rate limit)."""
    if isinstance(exc, (asyncio.TimeoutError, CollaboratorTimeout)):
        return False
    name = type(exc).__name__
    if name in RETRYABLE_NAMES:
        return True
    msg = str(exc).lower()
    return "429" in msg or "503" in msg or "connection" in msg or "temporarily unavailable" in msg


async def _async_retry_impl(
    fn,
    *args,
    retries: int = DEFAULT_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    is_retryable=_is_retryable,
    **kwargs,
):
    """Async retry with exponential backoff."""
    last_exc = None
    delay = initial_delay
    for attempt in range(retries + 1):
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            last_exc = e
            if attempt < retries and is_retryable(e):
                logger.warning("Retry %s/%s after %s: %s", attempt + 1, retries, type(e).__name__, e)
                await asyncio.sleep(delay)
                delay = min(delay * backoff, max_delay)
            else:
                raise
    raise last_exc


async def retry_async(
    coro_fn, retries: int = DEFAULT_RETRIES, initial_delay: float = DEFAULT_INITIAL_DELAY, is_retryable=_is_retryable
):
    """
    Retry an async call. Usage: await retry_async(lambda: corpus.find_candidates(...))
    """
    return await _async_retry_impl(coro_fn, retries=retries, initial_delay=initial_delay, is_retryable=is_retryable)


def _is_retryable_attempt(exc: BaseException) -> bool:
    """Attempts capped by call_collaborator also retry when they time out."""
    return isinstance(exc, CollaboratorTimeout) or _is_retryable(exc)


async def call_collaborator(coro_fn, collaborator: str, timeout: float, retries: int | None = None):
    """
    Call an external collaborator with a bounded timeout and the retry budget.

    Each attempt is capped at `timeout` seconds. Timed-out attempts and transient
    errors are retried up to `retries` times. Raises CollaboratorTimeout when the
    last attempt timed out, CollaboratorUnavailable when transient errors outlast
    the retry budget. Non-transient errors propagate unchanged.
    """
    retries = config.COLLABORATOR_RETRIES if retries is None else retries

    async def _attempt():
        try:
            return await asyncio.wait_for(coro_fn(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise CollaboratorTimeout(collaborator, timeout) from exc

    try:
        return await retry_async(
            _attempt,
            retries=retries,
            initial_delay=config.COLLABORATOR_RETRY_DELAY,
            is_retryable=_is_retryable_attempt,
        )
    except CollaboratorTimeout:
        raise
    except Exception as exc:
        if _is_retryable(exc):
            raise CollaboratorUnavailable([collaborator], detail=str(exc)) from exc
        raise
