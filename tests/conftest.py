from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.config import Settings, get_settings
from defi.composer import BridgeRoute, FeeInputs
from tests.helpers import DEST_USDC, OP_SELECTOR, ORCHESTRATOR, ROUTER, SOURCE_USDC


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        private_key="",
        mee_api_key="mee_test_key",
        coin_market_cap_api_key="cmc_test_key",
        poll_interval_seconds=0,
    )


@pytest.fixture
def route():
    return BridgeRoute(
        source_chain_id=8453,
        destination_chain_id=10,
        source_token=SOURCE_USDC,
        destination_token=DEST_USDC,
        router_address=ROUTER,
        destination_chain_selector=OP_SELECTOR,
        receiver_address=ORCHESTRATOR,
    )


@pytest.fixture
def covered_fees():
    return FeeInputs(
        bridge_fee=2_000_000_000_000,
        service_account_balance=3_000_000_000_000,
        native_usd_price=Decimal("3000"),
        funding_token_usd_price=Decimal("1"),
        funding_token_decimals=6,
    )


@pytest.fixture
def session():
    return MagicMock()
