from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.domain.errors import StatusTimeoutError
from app.domain.execution_status import StepStatus
from mee.models import ExecutionHandle, ExplorerStatus
from mee.monitor import PollState, StatusMonitor

HANDLE = ExecutionHandle(supertxHash="0xstx")


def _status(*statuses, data=None):
    return ExplorerStatus.model_validate(
        {
            "userOps": [
                {"executionStatus": s, "executionData": (data or {}).get(i)}
                for i, s in enumerate(statuses)
            ]
        }
    )


def _monitor(responses, **kwargs):
    mee = MagicMock()
    mee.get_status.side_effect = list(responses)
    sleep = MagicMock()
    monitor = StatusMonitor(mee=mee, poll_interval_s=1.0, sleep=sleep, **kwargs)
    return monitor, mee, sleep


def test_bridge_milestone_fires_once():
    on_bridge = MagicMock()
    responses = [
        _status("PENDING", "PENDING", "PENDING"),
        _status("MINED_SUCCESS", "MINED_SUCCESS", "PENDING", data={1: "0xccip"}),
        _status("MINED_SUCCESS", "MINED_SUCCESS", "PENDING", data={1: "0xccip"}),
        _status("MINED_SUCCESS", "MINED_SUCCESS", "PENDING", data={1: "0xccip"}),
        _status("MINED_SUCCESS", "MINED_SUCCESS", "MINED_SUCCESS", data={1: "0xccip"}),
    ]
    monitor, mee, sleep = _monitor(responses, on_bridge_mined=on_bridge)

    steps = monitor.await_finalization(HANDLE)

    on_bridge.assert_called_once()
    assert on_bridge.call_args.args[0].executionData == "0xccip"
    assert [s.executionStatus for s in steps] == [StepStatus.MINED_SUCCESS] * 3
    assert mee.get_status.call_count == 5
    assert sleep.call_count == 4
    sleep.assert_called_with(1.0)


def test_keeps_polling_while_any_step_pending():
    responses = [
        _status("MINED_SUCCESS", "PENDING"),
        _status("MINED_SUCCESS", "SOMETHING_NEW"),
        _status("MINED_SUCCESS", "MINED_FAIL"),
    ]
    monitor, mee, _ = _monitor(responses)

    steps = monitor.await_finalization(HANDLE)

    assert mee.get_status.call_count == 3
    assert steps[1].executionStatus == StepStatus.MINED_FAIL


def test_empty_user_ops_is_not_final():
    responses = [ExplorerStatus.model_validate({"userOps": None}), _status("FAILED")]
    monitor, mee, _ = _monitor(responses)

    steps = monitor.await_finalization(HANDLE)

    assert mee.get_status.call_count == 2
    assert steps[0].executionStatus == StepStatus.FAILED


def test_failed_bridge_step_does_not_fire_milestone():
    on_bridge = MagicMock()
    monitor, _, _ = _monitor([_status("MINED_SUCCESS", "MINED_FAIL")], on_bridge_mined=on_bridge)

    monitor.await_finalization(HANDLE)

    on_bridge.assert_not_called()


def test_max_polls_raises_timeout():
    responses = [_status("PENDING")] * 3
    monitor, mee, sleep = _monitor(responses, max_polls=3)

    with pytest.raises(StatusTimeoutError):
        monitor.await_finalization(HANDLE)
    assert mee.get_status.call_count == 3
    assert sleep.call_count == 2


def test_bridge_step_index_is_configurable():
    on_bridge = MagicMock()
    monitor = StatusMonitor(mee=MagicMock(), bridge_step_index=0, on_bridge_mined=on_bridge)
    state = PollState()

    monitor.observe(state, _status("MINED_SUCCESS", "PENDING"))
    monitor.observe(state, _status("MINED_SUCCESS", "MINED_SUCCESS"))

    on_bridge.assert_called_once()
    assert state.polls == 2
    assert state.bridge_announced
    assert state.finalized


def test_short_status_list_does_not_fire():
    on_bridge = MagicMock()
    monitor = StatusMonitor(mee=MagicMock(), on_bridge_mined=on_bridge)
    state = monitor.observe(PollState(), _status("MINED_SUCCESS"))

    on_bridge.assert_not_called()
    assert state.finalized


def test_rejects_invalid_arguments():
    with pytest.raises(ValueError):
        StatusMonitor(mee=MagicMock(), poll_interval_s=-1)
    with pytest.raises(ValueError):
        StatusMonitor(mee=MagicMock(), max_polls=0)
