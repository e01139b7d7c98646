"""
Supertransaction composition.

Pure assembly: every value the request needs (fee quote, balances, prices,
decimals, deadline) arrives as an argument, so the same inputs always give
the same request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from app.domain.errors import InsufficientFundingError
from defi.ccip import ZERO_ADDRESS, CcipMessage, build_ccip_message, ccip_send
from defi.instructions import (
    Instruction,
    build_ccip,
    erc20_approve,
    erc20_withdraw_balance,
    intent_swap,
)
from mee.models import ComposedPlanRequest, FeeEnvelope, TokenAmount
from pricing.fee_budget import DEFAULT_SAFETY_MARGIN_PERCENT, funding_swap_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BridgeRoute:
    source_chain_id: int
    destination_chain_id: int
    source_token: str
    destination_token: str
    router_address: str
    destination_chain_selector: int
    receiver_address: str

    def message_for(self, amount: int) -> CcipMessage:
        return build_ccip_message(
            receiver=self.receiver_address,
            token=self.source_token,
            amount=amount,
        )


@dataclass(frozen=True)
class FeeInputs:
    bridge_fee: int
    service_account_balance: int
    native_usd_price: Decimal
    funding_token_usd_price: Decimal
    funding_token_decimals: int

    @property
    def shortfall(self) -> int:
        return self.bridge_fee - self.service_account_balance


def compute_deadline(now_ts: int, margin_seconds: int) -> int:
    """Absolute deadline; the margin must exceed the bridge's finality window."""
    if margin_seconds <= 0:
        raise ValueError("margin_seconds must be positive")
    return int(now_ts) + int(margin_seconds)


def fee_swap_amount(fees: FeeInputs, *, margin_percent: int = DEFAULT_SAFETY_MARGIN_PERCENT) -> int:
    """
    Funding tokens to liquidate for native fees; 0 when the service account already covers them.

    Any positive shortfall swaps at least one base unit, even when its value
    rounds down to nothing.
    """
    if fees.shortfall <= 0:
        return 0
    amount = funding_swap_amount(
        fees.shortfall,
        fees.native_usd_price,
        fees.funding_token_usd_price,
        funding_token_decimals=fees.funding_token_decimals,
        margin_percent=margin_percent,
    )
    return max(amount, 1)


def _fee_envelope(route: BridgeRoute, owner_address: str) -> FeeEnvelope:
    return FeeEnvelope(
        address=route.source_token,
        chainId=route.source_chain_id,
        gasRefundAddress=owner_address,
    )


def compose_supertransaction(
    *,
    route: BridgeRoute,
    owner_address: str,
    transfer_amount: int,
    min_destination_amount: int,
    deadline: int,
    fees: FeeInputs,
    swap_slippage: float = 0.01,
    margin_percent: int = DEFAULT_SAFETY_MARGIN_PERCENT,
) -> ComposedPlanRequest:
    """
    [optional fee swap] -> approve router -> ccipSend (fee as value) -> withdraw on destination.
    """
    if transfer_amount < 0:
        raise ValueError("transfer_amount must not be negative")
    if min_destination_amount < 0:
        raise ValueError("min_destination_amount must not be negative")

    swap_amount = fee_swap_amount(fees, margin_percent=margin_percent)
    flows: List[Instruction] = []

    if fees.shortfall > 0:
        flows.append(
            intent_swap(
                chain_id=route.source_chain_id,
                src_token=route.source_token,
                dst_token=ZERO_ADDRESS,
                amount=swap_amount,
                slippage=swap_slippage,
            )
        )

    flows.append(
        erc20_approve(
            token=route.source_token,
            spender=route.router_address,
            amount=transfer_amount,
            chain_id=route.source_chain_id,
        )
    )
    flows.append(
        ccip_send(
            router=route.router_address,
            chain_id=route.source_chain_id,
            destination_chain_selector=route.destination_chain_selector,
            message=route.message_for(transfer_amount),
            fee=fees.bridge_fee,
        )
    )
    flows.append(
        erc20_withdraw_balance(
            token=route.destination_token,
            recipient=owner_address,
            chain_id=route.destination_chain_id,
            min_amount=min_destination_amount,
        )
    )

    logger.info(
        "composed supertx flows=%d shortfall=%d swap_amount=%d transfer_amount=%d",
        len(flows),
        max(fees.shortfall, 0),
        swap_amount,
        transfer_amount,
    )

    return ComposedPlanRequest(
        ownerAddress=owner_address,
        fundingTokens=[
            TokenAmount(
                tokenAddress=route.source_token,
                chainId=route.source_chain_id,
                amount=transfer_amount + swap_amount,
            )
        ],
        feeToken=_fee_envelope(route, owner_address),
        upperBoundTimestamp=deadline,
        composeFlows=flows,
    )


def compose_native_ccip(
    *,
    route: BridgeRoute,
    owner_address: str,
    transfer_amount: int,
    deadline: int,
    min_destination_amount: int = 1,
) -> ComposedPlanRequest:
    """
    Bridge through the service's own CCIP instruction: [build-ccip, withdraw].

    Bridge fees are settled by the service from the fee token, so no fee swap
    is composed and funding equals the transfer amount.
    """
    if transfer_amount < 0:
        raise ValueError("transfer_amount must not be negative")

    flows: List[Instruction] = [
        build_ccip(
            src_chain_id=route.source_chain_id,
            dst_chain_id=route.destination_chain_id,
            src_token=route.source_token,
            dst_token=route.destination_token,
            amount=transfer_amount,
        ),
        erc20_withdraw_balance(
            token=route.destination_token,
            recipient=owner_address,
            chain_id=route.destination_chain_id,
            min_amount=min_destination_amount,
        ),
    ]

    return ComposedPlanRequest(
        ownerAddress=owner_address,
        fundingTokens=[
            TokenAmount(
                tokenAddress=route.source_token,
                chainId=route.source_chain_id,
                amount=transfer_amount,
            )
        ],
        feeToken=_fee_envelope(route, owner_address),
        upperBoundTimestamp=deadline,
        composeFlows=flows,
    )


def ensure_funding_sufficient(request: ComposedPlanRequest, available: int) -> None:
    funding = request.fundingTokens[0]
    if funding.amount > available:
        raise InsufficientFundingError(
            required=funding.amount,
            available=available,
            token_address=funding.tokenAddress,
        )
