"""Client, authorization driver and status monitor for the planning/execution service."""
from .client import MeeClient
from .driver import ExecutionDriver
from .models import (
    ComposedPlanRequest,
    ExecutionHandle,
    ExplorerStatus,
    FeeEnvelope,
    PayloadToSign,
    QuoteType,
    SignedPlan,
    StepState,
    TokenAmount,
    UnsignedPlan,
)
from .monitor import PollState, StatusMonitor

__all__ = [
    "ComposedPlanRequest",
    "ExecutionDriver",
    "ExecutionHandle",
    "ExplorerStatus",
    "FeeEnvelope",
    "MeeClient",
    "PayloadToSign",
    "PollState",
    "QuoteType",
    "SignedPlan",
    "StatusMonitor",
    "StepState",
    "TokenAmount",
    "UnsignedPlan",
]
