from __future__ import annotations

import pytest

from defi.ccip import ZERO_ADDRESS, build_ccip_message, ccip_send, encode_receiver
from tests.helpers import OP_SELECTOR, ORCHESTRATOR, ROUTER, SOURCE_USDC


def test_receiver_is_abi_encoded_address():
    encoded = encode_receiver(ORCHESTRATOR)
    assert encoded.startswith("0x")
    assert len(encoded) == 2 + 64
    assert encoded == "0x" + "0" * 24 + ORCHESTRATOR[2:].lower()


def test_message_defaults():
    message = build_ccip_message(receiver=ORCHESTRATOR, token=SOURCE_USDC, amount=10_000)
    assert message.data == "0x"
    assert message.extra_args == "0x"
    assert message.fee_token == ZERO_ADDRESS
    assert message.to_instruction_args()[2] == [[SOURCE_USDC, 10_000]]


def test_abi_tuple_uses_bytes_and_checksums():
    message = build_ccip_message(receiver=ORCHESTRATOR, token=SOURCE_USDC.lower(), amount=7)
    receiver, data, token_amounts, fee_token, extra_args = message.to_abi_tuple()
    assert isinstance(receiver, bytes) and len(receiver) == 32
    assert data == b""
    assert extra_args == b""
    assert token_amounts == [(SOURCE_USDC, 7)]
    assert fee_token == ZERO_ADDRESS


def test_ccip_send_attaches_fee_as_value():
    message = build_ccip_message(receiver=ORCHESTRATOR, token=SOURCE_USDC, amount=1)
    instruction = ccip_send(
        router=ROUTER,
        chain_id=8453,
        destination_chain_selector=OP_SELECTOR,
        message=message,
        fee=123,
    )
    assert instruction.data.value == 123
    assert instruction.data.functionSignature.startswith("function ccipSend(uint64")


def test_negative_amount_rejected():
    with pytest.raises(ValueError):
        build_ccip_message(receiver=ORCHESTRATOR, token=SOURCE_USDC, amount=-1)
