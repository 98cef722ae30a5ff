"""
Infrastructure layer for the Polygon MCP tool server

Provides:
- EVMSigner: Local transaction signing (seed phrase or private key)
- NonceManager: Per-signer nonce sequencing
- ChainClient: web3.py reads, writes, gas estimation and receipts
- CorrelationContext: Per-invocation log tracing
"""

from .evm_signer import (
    EVMSigner,
    NonceManager,
    get_nonce_manager,
)
from .chain_client import (
    ChainClient,
    ERC20_ABI,
    create_web3,
)
from .address import validate_address, validate_optional_address, same_address
from .correlation import CorrelationContext, get_correlation_id, log_with_correlation

__all__ = [
    "EVMSigner",
    "NonceManager",
    "get_nonce_manager",
    "ChainClient",
    "ERC20_ABI",
    "create_web3",
    "validate_address",
    "validate_optional_address",
    "same_address",
    "CorrelationContext",
    "get_correlation_id",
    "log_with_correlation",
]
