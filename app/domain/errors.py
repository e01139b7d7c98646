from __future__ import annotations

from typing import Any


class SupertxError(RuntimeError):
    """Base class for every failure that aborts a supertransaction run."""

    def __init__(self, message: str, *, code: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class TransportError(SupertxError):
    """Network failure, non-2xx response or unreadable body."""


class PriceServiceError(SupertxError):
    """Price feed answered with a non-zero internal error code."""


class QuotingError(SupertxError):
    """Planning service rejected the composed request."""


class ExecutionError(SupertxError):
    """Execution service rejected the signed plan or an authorization could not be produced."""


class InsufficientFundingError(SupertxError):
    def __init__(self, *, required: int, available: int, token_address: str) -> None:
        super().__init__(
            f"Insufficient funding for token {token_address}: "
            f"required={required} available={available}"
        )
        self.required = required
        self.available = available
        self.token_address = token_address


class StatusTimeoutError(SupertxError):
    """Status polling exceeded its configured number of attempts."""
