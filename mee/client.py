from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from app.core.http import api_request, is_success
from app.domain.errors import ExecutionError, QuotingError, TransportError
from mee.models import (
    ComposedPlanRequest,
    ExecutionHandle,
    ExplorerStatus,
    SignedPlan,
    UnsignedPlan,
)
from tools.tool_runner import run_tool

logger = logging.getLogger(__name__)


def _error_envelope(body: Any) -> tuple[Any, str] | None:
    """Return (code, message) when the body is a {code >= 400, message} envelope."""
    if not isinstance(body, dict):
        return None
    code = body.get("code")
    if isinstance(code, int) and not isinstance(code, bool) and code >= 400:
        return code, str(body.get("message") or "unknown error")
    return None


class MeeClient:
    """
    Client for the remote planning/execution service.

    quote -> execute -> explorer status. Every call carries the static API key;
    nothing is retried.
    """

    def __init__(
        self,
        *,
        api_key: str,
        quote_url: str,
        execute_url: str,
        explorer_url: str,
        timeout_s: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.quote_url = quote_url
        self.execute_url = execute_url
        self.explorer_url = explorer_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"X-API-Key": self.api_key, "Content-Type": "application/json"}

    def get_quote(self, request: ComposedPlanRequest) -> UnsignedPlan:
        payload = request.to_payload()
        status_code, body = run_tool(
            tool_name="mee.quote",
            request={"flows": len(request.composeFlows), "owner": request.ownerAddress},
            fn=lambda: api_request(
                self.session,
                "POST",
                self.quote_url,
                headers=self._headers(),
                payload=payload,
                timeout=self.timeout_s,
            ),
        )

        envelope = _error_envelope(body)
        if envelope is not None:
            code, message = envelope
            raise QuotingError(f"Failed to fetch quote. Error: {message}", code=code)
        if not is_success(status_code):
            message = body.get("message") if isinstance(body, dict) else None
            raise QuotingError(
                f"Failed to fetch quote. HTTP {status_code}: {message or 'request failed'}",
                code=status_code,
            )
        if not isinstance(body, dict):
            raise QuotingError("Failed to fetch quote. Error: response is not an object")

        try:
            plan = UnsignedPlan.model_validate(body)
        except ValidationError as e:
            raise QuotingError(f"Failed to fetch quote. Unsupported or malformed quote: {e}") from e

        logger.info(
            "quote received type=%s payloads=%d",
            plan.quoteType.value,
            len(plan.payloadToSign),
        )
        return plan

    def execute(self, plan: SignedPlan) -> ExecutionHandle:
        payload = plan.to_payload()
        status_code, body = run_tool(
            tool_name="mee.execute",
            request={"quoteType": plan.quoteType.value},
            fn=lambda: api_request(
                self.session,
                "POST",
                self.execute_url,
                headers=self._headers(),
                payload=payload,
                timeout=self.timeout_s,
            ),
        )

        envelope = _error_envelope(body)
        if envelope is not None:
            code, message = envelope
            raise ExecutionError(message, code=code)
        if not is_success(status_code):
            message = body.get("message") if isinstance(body, dict) else None
            raise ExecutionError(
                f"Execution failed. HTTP {status_code}: {message or 'request failed'}",
                code=status_code,
            )

        supertx_hash = body.get("supertxHash") if isinstance(body, dict) else None
        if not supertx_hash:
            raise ExecutionError("Execution response is missing supertxHash")

        return ExecutionHandle(supertxHash=str(supertx_hash))

    def get_status(self, handle: ExecutionHandle) -> ExplorerStatus:
        url = f"{self.explorer_url}/{handle.supertxHash}"
        status_code, body = run_tool(
            tool_name="mee.explorer",
            request={"supertxHash": handle.supertxHash},
            fn=lambda: api_request(
                self.session,
                "GET",
                url,
                headers=self._headers(),
                timeout=self.timeout_s,
            ),
        )

        if not is_success(status_code):
            raise TransportError(f"Status request HTTP {status_code}", code=status_code)
        if not isinstance(body, dict):
            raise TransportError("Status response is not an object")

        try:
            return ExplorerStatus.model_validate(body)
        except ValidationError as e:
            raise TransportError(f"Malformed status response: {e}") from e
