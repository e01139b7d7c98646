from __future__ import annotations

from enum import Enum
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.domain.execution_status import StepStatus, is_terminal, parse_step_status
from defi.instructions import Instruction, Uint256


class TokenAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    tokenAddress: str
    chainId: int
    amount: Uint256


class FeeEnvelope(BaseModel):
    """Which token pays service fees and where unused fee balance is refunded."""

    model_config = ConfigDict(frozen=True)

    address: str
    chainId: int
    gasRefundAddress: str


class ComposedPlanRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["eoa"] = "eoa"
    ownerAddress: str
    fundingTokens: List[TokenAmount] = Field(min_length=1)
    feeToken: FeeEnvelope
    upperBoundTimestamp: int = Field(ge=0)
    composeFlows: List[Instruction] = Field(min_length=1)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class QuoteType(str, Enum):
    SIMPLE = "simple"
    PERMIT = "permit"
    ONCHAIN = "onchain"


class PayloadToSign(BaseModel):
    model_config = ConfigDict(extra="allow")

    signablePayload: dict[str, Any] | None = None
    message: Any = None
    signature: str | None = None


class UnsignedPlan(BaseModel):
    """
    Quote returned by the planning service.

    Unknown fields are kept so the plan can be posted back verbatim.
    """

    model_config = ConfigDict(extra="allow")

    quoteType: QuoteType
    payloadToSign: List[PayloadToSign] = Field(default_factory=list)

    def with_signature(self, index: int, signature: str) -> "UnsignedPlan":
        payloads = list(self.payloadToSign)
        payloads[index] = payloads[index].model_copy(update={"signature": signature})
        return self.model_copy(update={"payloadToSign": payloads})

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class SignedPlan(UnsignedPlan):
    @model_validator(mode="after")
    def _every_payload_signed(self) -> "SignedPlan":
        missing = [i for i, p in enumerate(self.payloadToSign) if not p.signature]
        if missing:
            raise ValueError(f"payloadToSign entries without signature: {missing}")
        return self


class ExecutionHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    supertxHash: str = Field(min_length=1)

    def explorer_link(self, meescan_url: str) -> str:
        return f"{meescan_url.rstrip('/')}/{self.supertxHash}"


class StepState(BaseModel):
    model_config = ConfigDict(extra="allow")

    executionStatus: StepStatus = StepStatus.PENDING
    executionData: str | None = None

    @field_validator("executionStatus", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> StepStatus:
        if isinstance(value, StepStatus):
            return value
        return parse_step_status(value if isinstance(value, str) else None)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.executionStatus)


class ExplorerStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    userOps: List[StepState] = Field(default_factory=list)

    @field_validator("userOps", mode="before")
    @classmethod
    def _null_user_ops(cls, value: Any) -> Any:
        return value or []

    @property
    def is_finalized(self) -> bool:
        # an empty list means the service has not indexed the steps yet
        return bool(self.userOps) and all(op.is_terminal for op in self.userOps)
