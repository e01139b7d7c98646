from __future__ import annotations

import logging
from typing import Any

import requests

from app.domain.errors import TransportError

logger = logging.getLogger(__name__)


def api_request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    headers: dict[str, str],
    payload: Any = None,
    params: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> tuple[int, Any]:
    """
    Perform a JSON request and return (status_code, decoded body).

    Network failures and bodies that are not JSON raise TransportError.
    HTTP status interpretation is left to the caller, since each remote
    service reports domain errors differently.
    """
    try:
        if method == "GET":
            resp = session.get(url, headers=headers, params=params, timeout=timeout)
        else:
            resp = session.post(url, headers=headers, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("EXC %s %s %s", method, url, exc)
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    if resp.text.strip() == "":
        raise TransportError(f"{method} {url} returned an empty body", code=resp.status_code)

    try:
        body = resp.json()
    except ValueError as exc:
        raise TransportError(
            f"{method} {url} returned non-JSON body (status={resp.status_code})",
            code=resp.status_code,
        ) from exc

    logger.debug("%s %s -> %s", method, url, resp.status_code)
    return resp.status_code, body


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
