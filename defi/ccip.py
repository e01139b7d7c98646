from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

from eth_abi import encode as encode_abi
from web3 import Web3

from defi.instructions import BuildInstruction, build_call

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

CCIP_SEND_SIGNATURE = (
    "function ccipSend(uint64 destinationChainSelector, "
    "(bytes receiver, bytes data, (address token, uint256 amount)[] tokenAmounts, "
    "address feeToken, bytes extraArgs) message)"
)


@dataclass(frozen=True)
class CcipTokenAmount:
    token: str
    amount: int


@dataclass(frozen=True)
class CcipMessage:
    """EVM2AnyMessage as accepted by the CCIP router."""

    receiver: str
    token_amounts: Tuple[CcipTokenAmount, ...]
    data: str = "0x"
    fee_token: str = ZERO_ADDRESS  # native payment
    extra_args: str = "0x"

    def to_instruction_args(self) -> list[Any]:
        return [
            self.receiver,
            self.data,
            [[item.token, item.amount] for item in self.token_amounts],
            self.fee_token,
            self.extra_args,
        ]

    def to_abi_tuple(self) -> tuple:
        return (
            Web3.to_bytes(hexstr=self.receiver),
            Web3.to_bytes(hexstr=self.data),
            [
                (Web3.to_checksum_address(item.token), int(item.amount))
                for item in self.token_amounts
            ],
            Web3.to_checksum_address(self.fee_token),
            Web3.to_bytes(hexstr=self.extra_args),
        )


def encode_receiver(address: str) -> str:
    encoded = encode_abi(["address"], [Web3.to_checksum_address(address)])
    return "0x" + encoded.hex()


def build_ccip_message(*, receiver: str, token: str, amount: int) -> CcipMessage:
    if amount < 0:
        raise ValueError("amount must not be negative")
    return CcipMessage(
        receiver=encode_receiver(receiver),
        token_amounts=(CcipTokenAmount(token=token, amount=amount),),
    )


def ccip_send(
    *,
    router: str,
    chain_id: int,
    destination_chain_selector: int,
    message: CcipMessage,
    fee: int,
) -> BuildInstruction:
    """ccipSend call with the bridge fee attached as native value."""
    return build_call(
        function_signature=CCIP_SEND_SIGNATURE,
        args=[destination_chain_selector, message.to_instruction_args()],
        to=router,
        chain_id=chain_id,
        value=fee,
    )
