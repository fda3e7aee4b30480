"""
Automation client resolution and start-up.

``WADESK_AUTOMATION_CLIENT`` names a zero-argument factory as
``"package.module:callable"``; the default builds the fixture-backed mock
client.
"""

from __future__ import annotations

import asyncio
import importlib
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from wadesk.automation.client import AutomationClient
from wadesk.config import CLIENT_INIT_DELAY_SECONDS, CLIENT_INIT_RETRIES
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event

logger = get_logger(__name__)


def load_automation_client(target: str) -> AutomationClient:
    """
    Build the automation client named by ``target``.

    Args:
        target: ``"module:factory"``

    Raises:
        ValueError: If target is not of the form module:factory
        ImportError / AttributeError: If the module or factory does not exist
    """
    module_name, sep, factory_name = target.partition(":")
    if not sep or not module_name or not factory_name:
        raise ValueError(f"Automation client must be 'module:factory', got {target!r}")

    module = importlib.import_module(module_name)
    factory = getattr(module, factory_name)
    client = factory()
    logger.info("Loaded automation client %s", target)
    return client


async def initialize_with_retry(
    client: AutomationClient,
    retries: int = CLIENT_INIT_RETRIES,
    delay_seconds: float = CLIENT_INIT_DELAY_SECONDS,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Initialize the client, retrying transient failures.

    Makes one attempt plus up to ``retries`` more, ``delay_seconds`` apart.
    Giving up is logged, not raised: the dashboard keeps serving tags, notes
    and quick replies while chats stay ``not_ready``.

    Returns:
        True once initialize() succeeded, False after the last failed attempt
    """

    def log_retry(retry_state: RetryCallState) -> None:
        remaining = retries + 1 - retry_state.attempt_number
        logger.info(
            "Retrying initialize in %.1fs... (%d retries left)",
            retry_state.next_action.sleep,
            remaining,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_fixed(delay_seconds),
        retry=retry_if_exception_type(Exception),
        before_sleep=log_retry,
        sleep=sleep_fn,
    )
    try:
        async for attempt in retrying:
            with attempt:
                try:
                    await client.initialize()
                except Exception as e:
                    counter("automation.init_failures")
                    logger.error("Client initialize failed: %s", e)
                    raise
    except RetryError:
        logger.error("Failed to initialize automation client after retries.")
        return False

    log_event("automation.initialized", attempt=attempt.retry_state.attempt_number)
    return True
