from __future__ import annotations

import json
from typing import Dict

from app.config import Settings


class UnsupportedChainError(ValueError):
    pass


def parse_rpc_urls(raw: str | None) -> Dict[int, str]:
    """
    Parse an RPC URL map.

    Expected format:
      RPC_URLS='{"8453":"https://mainnet.base.org","10":"https://mainnet.optimism.io"}'
    """
    if not raw:
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("RPC_URLS must be valid JSON") from e

    if not isinstance(data, dict):
        raise ValueError("RPC_URLS must be a JSON object")

    # normalize keys to int
    rpc_urls: Dict[int, str] = {}
    for k, v in data.items():
        try:
            chain_id = int(k)
        except ValueError:
            raise ValueError(f"Invalid chain_id key in RPC_URLS: {k}")

        if not isinstance(v, str) or not v:
            raise ValueError(f"Invalid RPC URL for chain {chain_id}")

        rpc_urls[chain_id] = v.rstrip("/")

    return rpc_urls


def rpc_urls_from_settings(settings: Settings) -> Dict[int, str]:
    """
    Source/destination RPC URLs, overridden by any RPC_URLS entries.
    """
    rpc_urls: Dict[int, str] = {}
    if settings.source_chain_rpc_url:
        rpc_urls[settings.source_chain_id] = settings.source_chain_rpc_url.rstrip("/")
    if settings.destination_chain_rpc_url:
        rpc_urls[settings.destination_chain_id] = settings.destination_chain_rpc_url.rstrip("/")
    rpc_urls.update(parse_rpc_urls(settings.rpc_urls))
    return rpc_urls


def get_rpc_url(rpc_urls: Dict[int, str], chain_id: int) -> str:
    """
    Return RPC URL for a given chain_id.
    Raises UnsupportedChainError if not configured.
    """
    rpc_url = rpc_urls.get(chain_id)
    if not rpc_url:
        raise UnsupportedChainError(f"Unsupported chain_id: {chain_id}")

    return rpc_url
