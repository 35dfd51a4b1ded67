import asyncio
import logging
import random
from typing import Any, Awaitable, Callable

from langchain.agents.middleware import wrap_model_call, wrap_tool_call

from app.middleware.event_collector import emit_event

logger = logging.getLogger(__name__)

MAX_MODEL_RETRIES = 3
MODEL_INITIAL_DELAY = 1.0
MODEL_BACKOFF_FACTOR = 2.0

MAX_TOOL_RETRIES = 2
TOOL_INITIAL_DELAY = 1.5
TOOL_BACKOFF_FACTOR = 2.0


def backoff_delay(attempt: int, initial_delay: float, backoff_factor: float) -> float:
    """Exponential delay for a zero-based attempt, plus up to 50% jitter."""
    delay = initial_delay * (backoff_factor ** attempt)
    return delay + random.uniform(0, delay * 0.5)


async def call_with_retries(
    call: Callable[[], Awaitable[Any]],
    *,
    middleware: str,
    label: str,
    max_attempts: int,
    initial_delay: float,
    backoff_factor: float,
    details: dict[str, Any] | None = None,
) -> Any:
    """Await ``call`` until it succeeds or ``max_attempts`` is used up, then re-raise."""
    details = details or {}
    for attempt in range(max_attempts):
        try:
            result = await call()
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            if attempt == max_attempts - 1:
                logger.error("%s failed after %d attempts. Final error: %s", label, max_attempts, error)
                emit_event(
                    middleware=middleware,
                    status="failed",
                    message=f"{label} failed after {max_attempts} attempts",
                    details={**details, "error": error, "attempts": max_attempts},
                )
                raise
            sleep_time = backoff_delay(attempt, initial_delay, backoff_factor)
            logger.warning(
                "%s attempt %d/%d failed (%s), retrying in %.1fs",
                label, attempt + 1, max_attempts, error, sleep_time,
            )
            emit_event(
                middleware=middleware,
                status="retrying",
                message=f"{label} attempt {attempt + 1}/{max_attempts} failed, retrying in {sleep_time:.1f}s",
                details={**details, "error": error, "attempt": attempt + 1, "delay_s": round(sleep_time, 1)},
            )
            await asyncio.sleep(sleep_time)
            continue

        if attempt > 0:
            logger.info("%s succeeded on attempt %d/%d", label, attempt + 1, max_attempts)
            emit_event(
                middleware=middleware,
                status="recovered",
                message=f"{label} succeeded after {attempt + 1} attempts",
                details={**details, "attempts": attempt + 1},
            )
        return result


@wrap_model_call
async def retry_model(request, handler):
    """Retry model calls on transient failures with exponential backoff + jitter."""
    return await call_with_retries(
        lambda: handler(request),
        middleware="retry_model",
        label="Model call",
        max_attempts=MAX_MODEL_RETRIES,
        initial_delay=MODEL_INITIAL_DELAY,
        backoff_factor=MODEL_BACKOFF_FACTOR,
    )


@wrap_tool_call
async def retry_tool(request, handler):
    """Retry tool calls on transient failures with exponential backoff + jitter."""
    tool_call = getattr(request, "tool_call", None) or {}
    tool_name = tool_call.get("name", "unknown")
    logger.info("Tool call started: %s", tool_name)
    return await call_with_retries(
        lambda: handler(request),
        middleware="retry_tool",
        label=f"Tool '{tool_name}'",
        max_attempts=MAX_TOOL_RETRIES,
        initial_delay=TOOL_INITIAL_DELAY,
        backoff_factor=TOOL_BACKOFF_FACTOR,
        details={"tool": tool_name},
    )
