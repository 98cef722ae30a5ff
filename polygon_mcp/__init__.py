"""
Polygon MCP - blockchain tools for MCP clients

Provides tool operations for:
- Contract calls and deployment
- ERC-20 balance, transfer, allowance and approval
- 1inch token swaps (quote, approve, estimate gas, submit)

The MCP stdio server lives in polygon_mcp.server.app.
"""

__version__ = "0.1.0"

from .types import (
    SwapIntent,
    Quote,
    ApprovalOutcome,
    GasEstimate,
    SubmittedTransaction,
    SwapResult,
    TxStatus,
    EVMChain,
    NATIVE_TOKEN_ADDRESS,
    MAX_UINT256,
)
from .errors import (
    PolygonMcpError,
    ErrorCode,
    InvalidAddress,
    CredentialsMissing,
    QuoteUnavailable,
    QuoteNetworkError,
    AllowanceCheckFailed,
    ApprovalFailed,
    ApprovalTimeout,
    SubmissionError,
)

# EVM infrastructure
from .infra.evm_signer import EVMSigner
from .infra.chain_client import ChainClient, create_web3
from .protocols.oneinch import OneInchAPI, QuoteResolver

# Tool operations
from .modules.allowance import AllowanceManager, AllowancePolicy
from .modules.gas import GasEstimator
from .modules.swap import SwapOrchestrator, SwapState
from .modules.contracts import ContractModule

__all__ = [
    "__version__",
    # Types
    "SwapIntent",
    "Quote",
    "ApprovalOutcome",
    "GasEstimate",
    "SubmittedTransaction",
    "SwapResult",
    "TxStatus",
    "EVMChain",
    "NATIVE_TOKEN_ADDRESS",
    "MAX_UINT256",
    # Errors
    "PolygonMcpError",
    "ErrorCode",
    "InvalidAddress",
    "CredentialsMissing",
    "QuoteUnavailable",
    "QuoteNetworkError",
    "AllowanceCheckFailed",
    "ApprovalFailed",
    "ApprovalTimeout",
    "SubmissionError",
    # Infrastructure
    "EVMSigner",
    "ChainClient",
    "create_web3",
    "OneInchAPI",
    "QuoteResolver",
    # Modules
    "AllowanceManager",
    "AllowancePolicy",
    "GasEstimator",
    "SwapOrchestrator",
    "SwapState",
    "ContractModule",
]
