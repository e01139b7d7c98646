from __future__ import annotations

import threading
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from web3 import Web3

from chain import rpc
from chain.chains import get_rpc_url
from defi.ccip import CcipMessage
from tools.tool_runner import run_tool


def to_int(value: Any) -> int:
    """Accept ints, decimal strings and 0x-prefixed hex strings."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"invalid integer value: {value}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    raise ValueError(f"invalid integer value: {value!r}")


def _coerce_typed_value(types: dict[str, Any], type_name: str, value: Any) -> Any:
    if type_name.endswith("]"):
        inner = type_name[: type_name.rindex("[")]
        return [_coerce_typed_value(types, inner, item) for item in (value or [])]
    if type_name in types and isinstance(value, dict):
        return {
            field["name"]: _coerce_typed_value(types, field["type"], value.get(field["name"]))
            for field in types[type_name]
        }
    if (type_name.startswith("uint") or type_name.startswith("int")) and isinstance(value, str):
        return to_int(value)
    return value


class ChainClient:
    """
    Chain capabilities for the supertransaction flow:
    - read calls (balances, decimals, CCIP fee)
    - local signing (message, typed data)
    - on-chain submission and receipt waiting

    All calls are instrumented via tools.run_tool.
    """

    def __init__(
        self,
        *,
        rpc_urls: Dict[int, str],
        private_key: str | None = None,
        receipt_timeout_s: float = 180.0,
    ) -> None:
        self.rpc_urls = dict(rpc_urls)
        self.receipt_timeout_s = receipt_timeout_s
        self._account = Account.from_key(private_key) if private_key else None
        self._web3: Dict[int, Web3] = {}
        self._web3_lock = threading.Lock()

    @property
    def address(self) -> str:
        return self._require_account().address

    def _require_account(self):
        if self._account is None:
            raise RuntimeError("PRIVATE_KEY is not set")
        return self._account

    def _w3(self, chain_id: int) -> Web3:
        # read fan-out threads share this cache
        with self._web3_lock:
            w3 = self._web3.get(chain_id)
            if w3 is None:
                w3 = rpc.make_web3(get_rpc_url(self.rpc_urls, chain_id))
                self._web3[chain_id] = w3
            return w3

    # ---------------------------
    # Reads
    # ---------------------------

    def native_balance(self, *, chain_id: int, address: str) -> int:
        return run_tool(
            tool_name="web3.eth_getBalance",
            request={"chainId": chain_id, "address": address},
            fn=lambda: rpc.get_native_balance(self._w3(chain_id), address),
        )

    def erc20_decimals(self, *, chain_id: int, token: str) -> int:
        return run_tool(
            tool_name="web3.erc20.decimals",
            request={"chainId": chain_id, "token": token},
            fn=lambda: rpc.erc20_decimals(self._w3(chain_id), token),
        )

    def erc20_balance(self, *, chain_id: int, token: str, owner: str) -> int:
        return run_tool(
            tool_name="web3.erc20.balanceOf",
            request={"chainId": chain_id, "token": token, "owner": owner},
            fn=lambda: rpc.erc20_balance(self._w3(chain_id), token, owner),
        )

    def ccip_fee(
        self,
        *,
        chain_id: int,
        router: str,
        destination_chain_selector: int,
        message: CcipMessage,
    ) -> int:
        return run_tool(
            tool_name="ccip.router.getFee",
            request={
                "chainId": chain_id,
                "router": router,
                "destinationChainSelector": str(destination_chain_selector),
            },
            fn=lambda: rpc.ccip_get_fee(
                self._w3(chain_id),
                router,
                destination_chain_selector,
                message.to_abi_tuple(),
            ),
        )

    # ---------------------------
    # Signing
    # ---------------------------

    def sign_message(self, message: Any) -> str:
        """
        Personal-sign a message. A {"raw": "0x..."} payload is signed as bytes,
        anything else as text.
        """
        account = self._require_account()
        if isinstance(message, dict) and "raw" in message:
            signable = encode_defunct(hexstr=message["raw"])
        else:
            signable = encode_defunct(text=str(message))
        signed = run_tool(
            tool_name="signer.sign_message",
            request={"kind": "personal_sign"},
            fn=lambda: account.sign_message(signable),
        )
        return Web3.to_hex(signed.signature)

    def sign_typed_data(self, typed_data: dict[str, Any]) -> str:
        account = self._require_account()
        types = {k: v for k, v in (typed_data.get("types") or {}).items() if k != "EIP712Domain"}
        primary_type = typed_data.get("primaryType")
        domain = _coerce_typed_value(
            {"EIP712Domain": _domain_fields(typed_data.get("domain") or {})},
            "EIP712Domain",
            typed_data.get("domain") or {},
        )
        message = typed_data.get("message") or {}
        if primary_type:
            message = _coerce_typed_value(types, primary_type, message)

        signable = encode_typed_data(
            domain_data=domain,
            message_types=types,
            message_data=message,
        )
        signed = run_tool(
            tool_name="signer.sign_typed_data",
            request={"primaryType": primary_type},
            fn=lambda: account.sign_message(signable),
        )
        return Web3.to_hex(signed.signature)

    # ---------------------------
    # Writes
    # ---------------------------

    def send_transaction(
        self,
        *,
        chain_id: int,
        to: str,
        data: str = "0x",
        value: Any = 0,
    ) -> str:
        account = self._require_account()
        tx = {
            "to": Web3.to_checksum_address(to),
            "data": data or "0x",
            "value": to_int(value),
            "chainId": chain_id,
        }
        return run_tool(
            tool_name="web3.send_transaction",
            request={"chainId": chain_id, "to": tx["to"], "value": str(tx["value"])},
            fn=lambda: rpc.send_transaction(self._w3(chain_id), account, tx),
        )

    def wait_for_receipt(self, *, chain_id: int, tx_hash: str) -> dict[str, Any]:
        return run_tool(
            tool_name="web3.wait_for_transaction_receipt",
            request={"chainId": chain_id, "txHash": tx_hash},
            fn=lambda: rpc.wait_for_receipt(self._w3(chain_id), tx_hash, self.receipt_timeout_s),
        )


_DOMAIN_FIELD_TYPES = {
    "name": "string",
    "version": "string",
    "chainId": "uint256",
    "verifyingContract": "address",
    "salt": "bytes32",
}


def _domain_fields(domain: dict[str, Any]) -> list[dict[str, str]]:
    return [
        {"name": name, "type": type_name}
        for name, type_name in _DOMAIN_FIELD_TYPES.items()
        if name in domain
    ]
