from __future__ import annotations

import logging
import sys

from app.config import Settings, get_settings
from app.core.logging import configure_logging
from app.domain.errors import SupertxError
from app.services.supertx_service import SupertxResult, SupertxService
from chain.chains import rpc_urls_from_settings
from chain.client import ChainClient
from chain.rpc import Web3RPCError
from mee.client import MeeClient
from pricing.coinmarketcap import PriceResolver

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> SupertxService:
    if not settings.mee_api_key:
        logger.warning("MEE_API_KEY is not set; the planning service will reject requests")

    chain = ChainClient(
        rpc_urls=rpc_urls_from_settings(settings),
        private_key=settings.private_key or None,
    )
    prices = PriceResolver(
        api_key=settings.coin_market_cap_api_key,
        base_url=settings.coinmarketcap_base_url,
        timeout_s=settings.http_timeout_seconds,
    )
    mee = MeeClient(
        api_key=settings.mee_api_key,
        quote_url=settings.MEE_QUOTE_URL,
        execute_url=settings.MEE_EXECUTE_URL,
        explorer_url=settings.mee_explorer_url,
        timeout_s=settings.http_timeout_seconds,
    )
    return SupertxService(settings=settings, chain=chain, prices=prices, mee=mee)


def run(settings: Settings | None = None) -> SupertxResult:
    settings = settings or get_settings()
    return build_service(settings).run()


def main() -> int:
    settings = get_settings()
    configure_logging(settings)

    try:
        result = run(settings)
    except KeyboardInterrupt:
        logger.warning("Interrupted; supertransaction state is whatever the chain already holds")
        return 130
    except (SupertxError, Web3RPCError) as e:
        logger.error("Error sending supertransaction: %s", e, exc_info=True)
        return 1
    logger.info(
        "supertx %s finalized explorer=%s ccip=%s",
        result.handle.supertxHash,
        result.explorer_link,
        result.ccip_link or "-",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
