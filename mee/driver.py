from __future__ import annotations

import logging
from typing import Callable, Dict

from app.domain.errors import ExecutionError
from chain.client import ChainClient, to_int
from mee.client import MeeClient
from mee.models import ExecutionHandle, PayloadToSign, QuoteType, SignedPlan, UnsignedPlan

logger = logging.getLogger(__name__)


class ExecutionDriver:
    """
    Produces every authorization a quote asks for, then submits the plan once.

    Authorizations run strictly in order; each is written back into its slot
    before the next one starts, because the service may check an earlier
    on-chain approval before it accepts a later signature.
    """

    def __init__(self, *, chain: ChainClient, mee: MeeClient, default_chain_id: int) -> None:
        self.chain = chain
        self.mee = mee
        self.default_chain_id = default_chain_id
        self._handlers: Dict[QuoteType, Callable[[PayloadToSign], str]] = {
            QuoteType.SIMPLE: self._sign_simple,
            QuoteType.PERMIT: self._sign_permit,
            QuoteType.ONCHAIN: self._confirm_onchain,
        }

    def authorize(self, plan: UnsignedPlan) -> SignedPlan:
        handler = self._handlers.get(plan.quoteType)
        if handler is None:
            raise ExecutionError(f"Unsupported quote type: {plan.quoteType}")

        for index, payload in enumerate(plan.payloadToSign):
            logger.info(
                "authorizing payload %d/%d type=%s",
                index + 1,
                len(plan.payloadToSign),
                plan.quoteType.value,
            )
            signature = handler(payload)
            plan = plan.with_signature(index, signature)

        return SignedPlan.model_validate(plan.to_payload())

    def authorize_and_submit(self, plan: UnsignedPlan) -> ExecutionHandle:
        signed = self.authorize(plan)
        handle = self.mee.execute(signed)
        logger.info("supertransaction submitted hash=%s", handle.supertxHash)
        return handle

    def _sign_simple(self, payload: PayloadToSign) -> str:
        if payload.message is None:
            raise ExecutionError("simple payload has no message to sign")
        return self.chain.sign_message(payload.message)

    def _sign_permit(self, payload: PayloadToSign) -> str:
        if not payload.signablePayload:
            raise ExecutionError("permit payload has no signablePayload")
        return self.chain.sign_typed_data(payload.signablePayload)

    def _confirm_onchain(self, payload: PayloadToSign) -> str:
        tx = payload.signablePayload or {}
        if not tx.get("to"):
            raise ExecutionError("onchain payload has no target address")

        chain_id = to_int(tx.get("chainId")) or self.default_chain_id
        tx_hash = self.chain.send_transaction(
            chain_id=chain_id,
            to=tx["to"],
            data=tx.get("data") or "0x",
            value=tx.get("value") or 0,
        )
        receipt = self.chain.wait_for_receipt(chain_id=chain_id, tx_hash=tx_hash)

        status = receipt.get("status")
        if status is not None and to_int(status) != 1:
            raise ExecutionError(f"authorization transaction reverted: {tx_hash}")

        logger.info("on-chain authorization mined tx=%s", tx_hash)
        # the tx hash stands in for a signature
        return tx_hash
