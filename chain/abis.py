from __future__ import annotations

from typing import Any

ERC20_ABI: list[dict[str, Any]] = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "symbol",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "transfer",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


_EVM2ANY_MESSAGE: dict[str, Any] = {
    "name": "message",
    "type": "tuple",
    "components": [
        {"name": "receiver", "type": "bytes"},
        {"name": "data", "type": "bytes"},
        {
            "name": "tokenAmounts",
            "type": "tuple[]",
            "components": [
                {"name": "token", "type": "address"},
                {"name": "amount", "type": "uint256"},
            ],
        },
        {"name": "feeToken", "type": "address"},
        {"name": "extraArgs", "type": "bytes"},
    ],
}

CCIP_ROUTER_ABI: list[dict[str, Any]] = [
    {
        "name": "getFee",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "destinationChainSelector", "type": "uint64"},
            _EVM2ANY_MESSAGE,
        ],
        "outputs": [{"name": "fee", "type": "uint256"}],
    },
    {
        "name": "ccipSend",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "destinationChainSelector", "type": "uint64"},
            _EVM2ANY_MESSAGE,
        ],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
]
