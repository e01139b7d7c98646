from __future__ import annotations

from typing import Any

from web3 import Web3
from web3.exceptions import ContractLogicError

from chain.abis import CCIP_ROUTER_ABI, ERC20_ABI


class Web3RPCError(RuntimeError):
    pass


def make_web3(rpc_url: str) -> Web3:
    w3 = Web3(Web3.HTTPProvider(rpc_url))

    if not w3.is_connected():
        raise Web3RPCError(f"Unable to connect to RPC at {rpc_url}")

    return w3


# ---------------------------
# Native chain helpers
# ---------------------------

def get_native_balance(w3: Web3, address: str) -> int:
    """
    Return native token balance in wei.
    """
    try:
        return int(w3.eth.get_balance(Web3.to_checksum_address(address)))
    except Exception as e:
        raise Web3RPCError(f"get_native_balance failed: {e}") from e


# ---------------------------
# ERC20 helpers
# ---------------------------

def _erc20_contract(w3: Web3, token_address: str):
    return w3.eth.contract(
        address=Web3.to_checksum_address(token_address),
        abi=ERC20_ABI,
    )


def erc20_balance(w3: Web3, token_address: str, owner: str) -> int:
    """
    Return ERC20 balance (raw uint256).
    """
    try:
        contract = _erc20_contract(w3, token_address)
        return int(contract.functions.balanceOf(Web3.to_checksum_address(owner)).call())
    except ContractLogicError as e:
        raise Web3RPCError(f"erc20_balance reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"erc20_balance failed: {e}") from e


def erc20_decimals(w3: Web3, token_address: str) -> int:
    """
    Return ERC20 decimals.
    """
    try:
        contract = _erc20_contract(w3, token_address)
        return int(contract.functions.decimals().call())
    except Exception as e:
        raise Web3RPCError(f"erc20_decimals failed: {e}") from e


# ---------------------------
# CCIP helpers
# ---------------------------

def ccip_get_fee(
    w3: Web3,
    router_address: str,
    destination_chain_selector: int,
    message: tuple,
) -> int:
    """
    Return the router's native fee (wei) for delivering `message`.
    """
    try:
        router = w3.eth.contract(
            address=Web3.to_checksum_address(router_address),
            abi=CCIP_ROUTER_ABI,
        )
        return int(router.functions.getFee(int(destination_chain_selector), message).call())
    except ContractLogicError as e:
        raise Web3RPCError(f"ccip_get_fee reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"ccip_get_fee failed: {e}") from e


# ---------------------------
# Transaction helpers
# ---------------------------

def get_fee_quote(w3: Web3) -> dict[str, Any]:
    """
    Return either legacy gasPrice or EIP-1559 fee fields.
    """
    try:
        block = w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is not None:
            try:
                max_priority = w3.eth.max_priority_fee
            except Exception:
                max_priority = None

            if max_priority is None:
                gas_price = w3.eth.gas_price
                max_priority = max(gas_price - base_fee, 0)

            max_fee = base_fee + (max_priority * 2)
            return {
                "maxFeePerGas": int(max_fee),
                "maxPriorityFeePerGas": int(max_priority),
            }

        return {"gasPrice": int(w3.eth.gas_price)}
    except Exception as e:
        raise Web3RPCError(f"get_fee_quote failed: {e}") from e


def send_transaction(w3: Web3, account, tx: dict[str, Any]) -> str:
    """
    Fill nonce, gas and fees, sign locally and broadcast. Returns the tx hash.
    """
    try:
        tx_full = dict(tx)
        tx_full["from"] = account.address
        tx_full.setdefault("chainId", w3.eth.chain_id)
        tx_full["nonce"] = w3.eth.get_transaction_count(account.address, "pending")
        tx_full["gas"] = w3.eth.estimate_gas(tx_full)
        tx_full.update(get_fee_quote(w3))
        signed = account.sign_transaction(tx_full)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)
    except Web3RPCError:
        raise
    except ContractLogicError as e:
        raise Web3RPCError(f"send_transaction reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"send_transaction failed: {e}") from e


def wait_for_receipt(w3: Web3, tx_hash: str, timeout_s: float) -> dict[str, Any]:
    try:
        receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout_s)
    except Exception as e:
        raise Web3RPCError(f"wait_for_receipt failed for {tx_hash}: {e}") from e
    return dict(receipt)
