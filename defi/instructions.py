"""
Abstract instructions understood by the planning service.

Each instruction serializes to {"type": "/instructions/...", "data": {...}}.
Build arguments are either literal values or a runtime placeholder that the
execution service resolves on-chain when the step runs.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_serializer

MAX_UINT256 = (1 << 256) - 1

# bigints travel as decimal strings
Uint256 = Annotated[
    int,
    Field(ge=0, le=MAX_UINT256),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]

APPROVE_SIGNATURE = "function approve(address spender, uint256 value)"
TRANSFER_SIGNATURE = "function transfer(address to, uint256 value)"


class BalanceConstraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    gte: Uint256


class RuntimeErc20Balance(BaseModel):
    """ERC-20 balance read at execution time, optionally bounded from below."""

    model_config = ConfigDict(frozen=True)

    type: Literal["runtimeErc20Balance"] = "runtimeErc20Balance"
    tokenAddress: str
    targetAddress: str | None = None
    constraints: BalanceConstraints | None = None


def _serialize_arg(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_serialize_arg(item) for item in value]
    return value


class BuildData(BaseModel):
    model_config = ConfigDict(frozen=True)

    functionSignature: str
    args: list[Any] = Field(default_factory=list)
    to: str
    chainId: int
    value: Uint256 | None = None

    @field_serializer("args", when_used="json")
    def _args_json(self, args: list[Any]) -> list[Any]:
        return [_serialize_arg(arg) for arg in args]


class BuildInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["/instructions/build"] = "/instructions/build"
    data: BuildData


class CrossChainTokenData(BaseModel):
    model_config = ConfigDict(frozen=True)

    srcChainId: int
    dstChainId: int
    srcToken: str
    dstToken: str
    amount: Uint256


class IntentSwapData(CrossChainTokenData):
    slippage: float = Field(default=0.01, ge=0, le=1)


class IntentSwapInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["/instructions/intent-simple"] = "/instructions/intent-simple"
    data: IntentSwapData


class BuildCcipInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["/instructions/build-ccip"] = "/instructions/build-ccip"
    data: CrossChainTokenData


Instruction = Annotated[
    Union[BuildInstruction, BuildCcipInstruction, IntentSwapInstruction],
    Field(discriminator="type"),
]


# ---------------------------
# Builders
# ---------------------------

def build_call(
    *,
    function_signature: str,
    args: list[Any],
    to: str,
    chain_id: int,
    value: int | None = None,
) -> BuildInstruction:
    return BuildInstruction(
        data=BuildData(
            functionSignature=function_signature,
            args=list(args),
            to=to,
            chainId=chain_id,
            value=value,
        )
    )


def erc20_approve(*, token: str, spender: str, amount: int, chain_id: int) -> BuildInstruction:
    return build_call(
        function_signature=APPROVE_SIGNATURE,
        args=[spender, amount],
        to=token,
        chain_id=chain_id,
    )


def erc20_withdraw_balance(
    *,
    token: str,
    recipient: str,
    chain_id: int,
    min_amount: int,
) -> BuildInstruction:
    """Transfer whatever balance of `token` exists when the step executes."""
    balance = RuntimeErc20Balance(
        tokenAddress=token,
        constraints=BalanceConstraints(gte=min_amount),
    )
    return build_call(
        function_signature=TRANSFER_SIGNATURE,
        args=[recipient, balance],
        to=token,
        chain_id=chain_id,
    )


def intent_swap(
    *,
    chain_id: int,
    src_token: str,
    dst_token: str,
    amount: int,
    slippage: float,
) -> IntentSwapInstruction:
    return IntentSwapInstruction(
        data=IntentSwapData(
            srcChainId=chain_id,
            dstChainId=chain_id,
            srcToken=src_token,
            dstToken=dst_token,
            amount=amount,
            slippage=slippage,
        )
    )


def build_ccip(
    *,
    src_chain_id: int,
    dst_chain_id: int,
    src_token: str,
    dst_token: str,
    amount: int,
) -> BuildCcipInstruction:
    return BuildCcipInstruction(
        data=CrossChainTokenData(
            srcChainId=src_chain_id,
            dstChainId=dst_chain_id,
            srcToken=src_token,
            dstToken=dst_token,
            amount=amount,
        )
    )
