from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import requests

from app.core.http import api_request, is_success
from app.domain.errors import PriceServiceError, TransportError
from tools.tool_runner import run_tool

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    CoinMarketCap-backed price lookups.

    One request per call, no retries: price data gates fee-swap sizing, so a
    failure here aborts the run.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://pro-api.coinmarketcap.com/v2",
        timeout_s: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def resolve_token_id(self, address: str) -> str:
        body = self._get("cryptocurrency/info", {"address": address}, tool_name="cmc.info")
        data = body.get("data") or {}
        if not isinstance(data, dict) or not data:
            raise PriceServiceError(f"No price-feed entry for token {address}")
        token_id = next(iter(data))
        logger.info("resolved token %s to price-feed id %s", address, token_id)
        return str(token_id)

    def resolve_price_usd(self, token_id: int | str) -> Decimal:
        body = self._get(
            "cryptocurrency/quotes/latest",
            {"id": str(token_id)},
            tool_name="cmc.quotes_latest",
        )
        try:
            raw_price = body["data"][str(token_id)]["quote"]["USD"]["price"]
        except (KeyError, TypeError) as exc:
            raise PriceServiceError(f"Malformed quote for id {token_id}") from exc

        try:
            price = Decimal(str(raw_price))
        except (InvalidOperation, TypeError) as exc:
            raise PriceServiceError(f"Invalid USD price for id {token_id}: {raw_price}") from exc
        logger.info("price id=%s usd=%s", token_id, price)
        return price

    def _get(self, path: str, params: dict[str, str], *, tool_name: str) -> dict[str, Any]:
        url = f"{self.base_url}/{path}"

        status_code, body = run_tool(
            tool_name=tool_name,
            request=params,
            fn=lambda: api_request(
                self.session,
                "GET",
                url,
                headers={"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"},
                params=params,
                timeout=self.timeout_s,
            ),
        )

        status = body.get("status") if isinstance(body, dict) else None
        error_code = (status or {}).get("error_code", 0)
        error_message = (status or {}).get("error_message")

        if not is_success(status_code):
            raise TransportError(
                f"Price service HTTP {status_code}: {error_message or 'request failed'}",
                code=status_code,
            )
        if error_code not in (0, "0", None):
            raise PriceServiceError(
                f"Coinmarketcap error: {error_message or 'unknown error'}",
                code=error_code,
            )
        return body
