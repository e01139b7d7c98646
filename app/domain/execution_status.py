from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    PENDING = "PENDING"
    MINED_SUCCESS = "MINED_SUCCESS"
    MINED_FAIL = "MINED_FAIL"
    FAILED = "FAILED"


TERMINAL = {
    StepStatus.MINED_SUCCESS,
    StepStatus.MINED_FAIL,
    StepStatus.FAILED,
}


def parse_step_status(raw: str | None) -> StepStatus:
    """
    Map the explorer's executionStatus onto StepStatus.

    Anything that is not one of the known terminal values is still in flight.
    """
    value = (raw or "").strip().upper()
    try:
        return StepStatus(value)
    except ValueError:
        if value:
            logger.debug("treating executionStatus=%s as pending", value)
        return StepStatus.PENDING


def is_terminal(status: StepStatus) -> bool:
    return status in TERMINAL
