from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from app.domain.errors import StatusTimeoutError
from app.domain.execution_status import StepStatus
from mee.client import MeeClient
from mee.models import ExecutionHandle, ExplorerStatus, StepState

logger = logging.getLogger(__name__)


@dataclass
class PollState:
    polls: int = 0
    bridge_announced: bool = False
    finalized: bool = False
    steps: List[StepState] = field(default_factory=list)


class StatusMonitor:
    """
    Polls the explorer until every step of a supertransaction is terminal.

    The bridge milestone fires at most once per run, however many polls
    observe the bridge step as MINED_SUCCESS. Polling is unbounded unless
    max_polls is set; the plan's own deadline already limits the run.
    """

    def __init__(
        self,
        *,
        mee: MeeClient,
        poll_interval_s: float = 1.0,
        bridge_step_index: int = 1,
        on_bridge_mined: Optional[Callable[[StepState], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_polls: int | None = None,
    ) -> None:
        if poll_interval_s < 0:
            raise ValueError("poll_interval_s must not be negative")
        if max_polls is not None and max_polls < 1:
            raise ValueError("max_polls must be at least 1")
        self.mee = mee
        self.poll_interval_s = poll_interval_s
        self.bridge_step_index = bridge_step_index
        self.on_bridge_mined = on_bridge_mined
        self.sleep = sleep
        self.max_polls = max_polls

    def observe(self, state: PollState, status: ExplorerStatus) -> PollState:
        state.polls += 1
        state.steps = list(status.userOps)

        if not state.bridge_announced and len(state.steps) > self.bridge_step_index:
            bridge_step = state.steps[self.bridge_step_index]
            if bridge_step.executionStatus == StepStatus.MINED_SUCCESS:
                state.bridge_announced = True
                logger.info("bridge step mined data=%s", bridge_step.executionData)
                if self.on_bridge_mined is not None:
                    self.on_bridge_mined(bridge_step)

        state.finalized = status.is_finalized
        return state

    def await_finalization(self, handle: ExecutionHandle) -> List[StepState]:
        state = PollState()

        while True:
            status = self.mee.get_status(handle)
            self.observe(state, status)

            if state.finalized:
                logger.info(
                    "supertransaction finalized polls=%d statuses=%s",
                    state.polls,
                    [step.executionStatus.value for step in state.steps],
                )
                return state.steps

            if self.max_polls is not None and state.polls >= self.max_polls:
                raise StatusTimeoutError(
                    f"Supertransaction {handle.supertxHash} not finalized after {state.polls} polls"
                )

            self.sleep(self.poll_interval_s)
