"""
MCP tool declarations
"""

from typing import List

from mcp.types import Tool


def _string(description: str) -> dict:
    return {"type": "string", "description": description}


TOOLS: List[Tool] = [
    Tool(
        name="get_address",
        description="Get the address of the server wallet.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="get_gas_price",
        description="Get the current gas price on the connected chain, in Gwei.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="call_contract",
        description=(
            "Call a contract function. view/pure functions are read and their result "
            "returned; other functions are simulated and then sent from the wallet."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "contractAddress": _string("The address of the contract to call"),
                "functionName": _string("The name of the function to call"),
                "functionArgs": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "The arguments to pass to the function",
                },
                "abi": _string("The ABI of the contract (JSON)"),
                "value": _string("The amount of POL (in wei) to send with the transaction"),
            },
            "required": ["contractAddress", "functionName", "abi"],
        },
    ),
    Tool(
        name="erc20_balance",
        description="Get the wallet's balance of an ERC-20 token, in token units.",
        inputSchema={
            "type": "object",
            "properties": {
                "contractAddress": _string("The address of the token contract"),
            },
            "required": ["contractAddress"],
        },
    ),
    Tool(
        name="erc20_transfer",
        description="Transfer ERC-20 tokens from the wallet.",
        inputSchema={
            "type": "object",
            "properties": {
                "contractAddress": _string("The address of the token contract"),
                "toAddress": _string("The address of the recipient"),
                "amount": _string("The amount of tokens to transfer, in token units (e.g. \"1.5\")"),
            },
            "required": ["contractAddress", "toAddress", "amount"],
        },
    ),
    Tool(
        name="get_token_decimals",
        description="Get the number of decimals of an ERC-20 token.",
        inputSchema={
            "type": "object",
            "properties": {
                "tokenAddress": _string("The address of the token to get decimals for"),
            },
            "required": ["tokenAddress"],
        },
    ),
    Tool(
        name="check_allowance",
        description="Get how much of a token the wallet has approved a spender to move, in wei.",
        inputSchema={
            "type": "object",
            "properties": {
                "tokenAddress": _string("The address of the token to check allowance for"),
                "spenderAddress": _string("The address of the spender to check allowance for"),
            },
            "required": ["tokenAddress", "spenderAddress"],
        },
    ),
    Tool(
        name="approve_token",
        description="Approve a spender to move the wallet's tokens.",
        inputSchema={
            "type": "object",
            "properties": {
                "tokenAddress": _string("The address of the token to approve"),
                "spenderAddress": _string("The address of the spender to approve"),
                "amount": _string(
                    "The amount to approve (in wei). If not provided, max uint256 will be used."
                ),
            },
            "required": ["tokenAddress", "spenderAddress"],
        },
    ),
    Tool(
        name="deploy_contract",
        description="Deploy a contract from the wallet.",
        inputSchema={
            "type": "object",
            "properties": {
                "abi": _string("The ABI of the contract (JSON)"),
                "bytecode": _string("The contract creation bytecode (hex)"),
                "constructorArgs": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "The constructor arguments",
                },
            },
            "required": ["abi", "bytecode"],
        },
    ),
    Tool(
        name="inch_swap",
        description=(
            "Swap tokens through the 1inch aggregator. Raises the token allowance "
            "for the 1inch router first when it is too low."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "fromTokenAddress": _string("The address of the token to swap from"),
                "toTokenAddress": _string("The address of the token to swap to"),
                "amount": _string("The amount of tokens to swap in wei"),
                "fromAddress": _string("The address to swap from (defaults to current wallet address)"),
                "slippage": {
                    "type": "number",
                    "description": "The maximum acceptable slippage percentage (default: 1)",
                },
                "apiKey": _string("Your 1inch API key"),
                "chainId": {
                    "type": "number",
                    "description": "The chain ID (default: the connected chain, 137 for Polygon)",
                },
            },
            "required": ["fromTokenAddress", "toTokenAddress", "amount"],
        },
    ),
]


def get_tools() -> List[Tool]:
    return list(TOOLS)
