from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List

from app.config import Settings
from app.core.context import set_supertx_hash
from chain.client import ChainClient
from defi.composer import (
    BridgeRoute,
    FeeInputs,
    compose_native_ccip,
    compose_supertransaction,
    compute_deadline,
    ensure_funding_sufficient,
)
from defi.units import to_base_units
from mee.client import MeeClient
from mee.driver import ExecutionDriver
from mee.models import ComposedPlanRequest, ExecutionHandle, StepState
from mee.monitor import StatusMonitor
from pricing.coinmarketcap import PriceResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketSnapshot:
    funding_token_usd_price: Decimal
    native_usd_price: Decimal
    funding_token_decimals: int
    bridge_fee: int
    service_account_balance: int
    owner_funding_balance: int | None = None

    def fee_inputs(self) -> FeeInputs:
        return FeeInputs(
            bridge_fee=self.bridge_fee,
            service_account_balance=self.service_account_balance,
            native_usd_price=self.native_usd_price,
            funding_token_usd_price=self.funding_token_usd_price,
            funding_token_decimals=self.funding_token_decimals,
        )


@dataclass(frozen=True)
class SupertxResult:
    request: ComposedPlanRequest
    handle: ExecutionHandle
    steps: List[StepState]
    explorer_link: str
    ccip_link: str | None = None


def route_from_settings(settings: Settings) -> BridgeRoute:
    return BridgeRoute(
        source_chain_id=settings.source_chain_id,
        destination_chain_id=settings.destination_chain_id,
        source_token=settings.source_token_address,
        destination_token=settings.destination_token_address,
        router_address=settings.ccip_router_address,
        destination_chain_selector=settings.destination_chain_selector,
        receiver_address=settings.orchestrator_address,
    )


def _join(futures: Dict[str, Future]) -> Dict[str, Any]:
    # any failed read aborts the whole run
    try:
        return {name: future.result() for name, future in futures.items()}
    except Exception:
        for future in futures.values():
            future.cancel()
        raise


class SupertxService:
    """
    Runs one supertransaction end to end:
    concurrent reads -> compose -> quote -> authorize/execute -> poll.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        chain: ChainClient,
        prices: PriceResolver,
        mee: MeeClient,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.chain = chain
        self.prices = prices
        self.mee = mee
        self.clock = clock
        self.driver = ExecutionDriver(
            chain=chain,
            mee=mee,
            default_chain_id=settings.source_chain_id,
        )
        self.monitor = StatusMonitor(
            mee=mee,
            poll_interval_s=settings.poll_interval_seconds,
            bridge_step_index=settings.bridge_step_index,
            on_bridge_mined=self._on_bridge_mined,
            sleep=sleep,
            max_polls=settings.max_polls,
        )
        self._ccip_link: str | None = None

    # ---------------------------
    # Reads
    # ---------------------------

    def _funding_token_price(self, token_address: str) -> Decimal:
        token_id = self.prices.resolve_token_id(token_address)
        return self.prices.resolve_price_usd(token_id)

    def gather_inputs(
        self,
        *,
        route: BridgeRoute,
        owner_address: str,
        transfer_amount: int,
    ) -> MarketSnapshot:
        s = self.settings
        message = route.message_for(transfer_amount)

        with ThreadPoolExecutor(max_workers=6, thread_name_prefix="supertx-read") as pool:
            futures: Dict[str, Future] = {
                "funding_token_usd_price": pool.submit(self._funding_token_price, route.source_token),
                "native_usd_price": pool.submit(self.prices.resolve_price_usd, s.native_token_id),
                "funding_token_decimals": pool.submit(
                    self.chain.erc20_decimals,
                    chain_id=route.source_chain_id,
                    token=route.source_token,
                ),
                "bridge_fee": pool.submit(
                    self.chain.ccip_fee,
                    chain_id=route.source_chain_id,
                    router=route.router_address,
                    destination_chain_selector=route.destination_chain_selector,
                    message=message,
                ),
                "service_account_balance": pool.submit(
                    self.chain.native_balance,
                    chain_id=route.source_chain_id,
                    address=route.receiver_address,
                ),
            }
            if s.validate_funding:
                futures["owner_funding_balance"] = pool.submit(
                    self.chain.erc20_balance,
                    chain_id=route.source_chain_id,
                    token=route.source_token,
                    owner=owner_address,
                )
            results = _join(futures)

        snapshot = MarketSnapshot(**results)
        logger.info(
            "inputs gathered bridge_fee=%d service_balance=%d native_usd=%s token_usd=%s decimals=%d",
            snapshot.bridge_fee,
            snapshot.service_account_balance,
            snapshot.native_usd_price,
            snapshot.funding_token_usd_price,
            snapshot.funding_token_decimals,
        )
        return snapshot

    def _owner_funding_balance(self, route: BridgeRoute, owner_address: str) -> int | None:
        if not self.settings.validate_funding:
            return None
        return self.chain.erc20_balance(
            chain_id=route.source_chain_id,
            token=route.source_token,
            owner=owner_address,
        )

    # ---------------------------
    # Compose
    # ---------------------------

    def compose(self, *, route: BridgeRoute, owner_address: str) -> tuple[ComposedPlanRequest, int | None]:
        """Returns the request and the owner's funding balance (None when not validated)."""
        s = self.settings
        transfer_amount = to_base_units(s.transfer_amount, s.source_token_decimals)
        deadline = compute_deadline(int(self.clock()), s.bridge_finality_margin_seconds)

        if s.flow_mode == "native-ccip":
            request = compose_native_ccip(
                route=route,
                owner_address=owner_address,
                transfer_amount=transfer_amount,
                deadline=deadline,
            )
            return request, self._owner_funding_balance(route, owner_address)

        snapshot = self.gather_inputs(
            route=route,
            owner_address=owner_address,
            transfer_amount=transfer_amount,
        )
        request = compose_supertransaction(
            route=route,
            owner_address=owner_address,
            transfer_amount=transfer_amount,
            min_destination_amount=to_base_units(
                s.min_destination_amount, s.destination_token_decimals
            ),
            deadline=deadline,
            fees=snapshot.fee_inputs(),
            swap_slippage=s.swap_slippage,
            margin_percent=s.safety_margin_percent,
        )
        return request, snapshot.owner_funding_balance

    # ---------------------------
    # Run
    # ---------------------------

    def _on_bridge_mined(self, step: StepState) -> None:
        self._ccip_link = f"{self.settings.ccip_explorer_url.rstrip('/')}/{step.executionData}"
        logger.info("CCIP explorer link: %s", self._ccip_link)

    def run(self) -> SupertxResult:
        route = route_from_settings(self.settings)
        owner_address = self.chain.address
        self._ccip_link = None

        request, available = self.compose(route=route, owner_address=owner_address)
        if available is not None:
            ensure_funding_sufficient(request, available)

        plan = self.mee.get_quote(request)
        handle = self.driver.authorize_and_submit(plan)

        set_supertx_hash(handle.supertxHash)
        try:
            link = handle.explorer_link(self.settings.meescan_url)
            logger.info("Supertransaction link: %s", link)

            steps = self.monitor.await_finalization(handle)

            logger.info(
                "Supertransaction execution has been completed statuses=%s",
                [step.executionStatus.value for step in steps],
            )
        finally:
            set_supertx_hash(None)

        return SupertxResult(
            request=request,
            handle=handle,
            steps=steps,
            explorer_link=link,
            ccip_link=self._ccip_link,
        )
