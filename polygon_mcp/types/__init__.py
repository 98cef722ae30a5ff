"""
Type definitions for the Polygon MCP tool server
"""

from .result import (
    TxStatus,
    GasSource,
    SwapIntent,
    Quote,
    ApprovalOutcome,
    GasEstimate,
    SubmittedTransaction,
    SwapResult,
)

# EVM token types
from .evm_tokens import (
    EVMChain,
    NATIVE_TOKEN_ADDRESS,
    MAX_UINT256,
    POLYGON_TOKEN_ADDRESSES,
    TOKEN_EQUIVALENTS,
    get_token_address,
    get_explorer_url,
    construct_explorer_tx_url,
    is_native_token,
    normalize_token,
)

__all__ = [
    # Results
    "TxStatus",
    "GasSource",
    "SwapIntent",
    "Quote",
    "ApprovalOutcome",
    "GasEstimate",
    "SubmittedTransaction",
    "SwapResult",
    # EVM types
    "EVMChain",
    "NATIVE_TOKEN_ADDRESS",
    "MAX_UINT256",
    "POLYGON_TOKEN_ADDRESSES",
    "TOKEN_EQUIVALENTS",
    "get_token_address",
    "get_explorer_url",
    "construct_explorer_tx_url",
    "is_native_token",
    "normalize_token",
]
