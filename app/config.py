from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # credentials
    private_key: str = ""
    mee_api_key: str = ""
    coin_market_cap_api_key: str = ""

    # remote services
    mee_base_url: str = "https://api.biconomy.io/v1"
    mee_explorer_url: str = "https://network.biconomy.io/v1/explorer"
    meescan_url: str = "https://meescan.biconomy.io/details"
    ccip_explorer_url: str = "https://ccip.chain.link/tx"
    coinmarketcap_base_url: str = "https://pro-api.coinmarketcap.com/v2"
    http_timeout_seconds: float = 30.0

    # chains (Base -> Optimism)
    source_chain_id: int = 8453
    destination_chain_id: int = 10
    source_chain_rpc_url: str = "https://mainnet.base.org"
    destination_chain_rpc_url: str = "https://mainnet.optimism.io"
    rpc_urls: str = ""  # optional JSON map {"<chainId>": "<url>"}

    # CCIP
    ccip_router_address: str = "0x881e3A65B4d4a04dD529061dd0071cf975F58bCD"
    destination_chain_selector: int = 3734403246176062136
    orchestrator_address: str = "0xC9540b320111bCBa149436533fc34Da9004b8bad"

    # tokens (USDC on both sides)
    source_token_address: str = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
    source_token_decimals: int = 6
    destination_token_address: str = "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"
    destination_token_decimals: int = 6
    transfer_amount: str = "0.01"
    min_destination_amount: str = "0.01"

    # fee handling
    native_token_id: int = 1027  # ETH on CoinMarketCap
    swap_slippage: float = 0.01
    safety_margin_percent: int = 5
    bridge_finality_margin_seconds: int = 22 * 60
    validate_funding: bool = True
    flow_mode: Literal["ccip-with-swap", "native-ccip"] = "ccip-with-swap"

    # status polling
    poll_interval_seconds: float = 1.0
    bridge_step_index: int = 1
    max_polls: int | None = None

    # logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def MEE_QUOTE_URL(self) -> str:
        return f"{self.mee_base_url.rstrip('/')}/quote"

    @property
    def MEE_EXECUTE_URL(self) -> str:
        return f"{self.mee_base_url.rstrip('/')}/execute"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader (process-level).
    """
    return Settings()
