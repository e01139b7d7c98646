from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def run_tool(
    *,
    tool_name: str,
    request: Any,
    fn: Callable[[], T],
) -> T:
    """
    Generic tool execution wrapper.

    - Logs start with the request
    - Executes fn()
    - Logs finish with duration
    - Re-raises exceptions after logging
    """
    logger.debug("tool start name=%s request=%s", tool_name, request)
    started = time.monotonic()

    try:
        result = fn()
    except Exception as e:
        logger.warning(
            "tool failed name=%s elapsed_ms=%d error=%s",
            tool_name,
            int((time.monotonic() - started) * 1000),
            e,
        )
        raise

    logger.debug(
        "tool done name=%s elapsed_ms=%d",
        tool_name,
        int((time.monotonic() - started) * 1000),
    )
    return result
