"""
EVM Token Registry for Polygon PoS

Provides the native-coin sentinel, common token addresses and the table of
economically equivalent token addresses that the 1inch API expects in one
canonical form.
"""

import logging
from typing import Dict, Optional
from enum import Enum

logger = logging.getLogger(__name__)


class EVMChain(Enum):
    """Chains with a known explorer"""
    ETH = 1
    BSC = 56
    POLYGON = 137
    POLYGON_AMOY = 80002


# Native token address (use this for native POL/ETH/BNB in 1inch API)
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

MAX_UINT256 = 2**256 - 1


# =============================================================================
# Polygon PoS Tokens (Chain ID: 137)
# =============================================================================

POLYGON_TOKEN_ADDRESSES: Dict[str, str] = {
    # Native
    "POL": NATIVE_TOKEN_ADDRESS,
    "WPOL": "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",

    # Stablecoins
    "USDC": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
    "USDC.E": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
    "USDT": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
    "DAI": "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",

    # Major tokens
    "WETH": "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619",
    "WBTC": "0x1BFD67037B42Cf73acF2047067bd4F2C47D9BfD6",
}


# =============================================================================
# Equivalent assets
# =============================================================================

# Bridged representation -> canonical address, per chain.
# Canonical addresses must never appear as keys so normalization is idempotent.
TOKEN_EQUIVALENTS: Dict[int, Dict[str, str]] = {
    137: {
        # USDC.e (PoS bridge) -> native USDC
        POLYGON_TOKEN_ADDRESSES["USDC.E"].lower(): POLYGON_TOKEN_ADDRESSES["USDC"],
    },
}


EXPLORER_URLS: Dict[int, str] = {
    EVMChain.ETH.value: "https://etherscan.io",
    EVMChain.BSC.value: "https://bscscan.com",
    EVMChain.POLYGON.value: "https://polygonscan.com",
    EVMChain.POLYGON_AMOY.value: "https://amoy.polygonscan.com",
}


# =============================================================================
# Helper Functions
# =============================================================================

def is_native_token(address: str) -> bool:
    """
    Check if address is the native token sentinel

    Args:
        address: Token address

    Returns:
        True if native coin (POL/ETH/BNB)
    """
    return address.lower() == NATIVE_TOKEN_ADDRESS.lower()


def normalize_token(address: str, chain_id: int = 137) -> str:
    """
    Collapse equivalent token representations into one canonical address

    Args:
        address: Token address
        chain_id: Chain the address lives on

    Returns:
        Canonical address, or the input unchanged if it has no equivalent
    """
    canonical = TOKEN_EQUIVALENTS.get(chain_id, {}).get(address.lower())
    if canonical is None:
        return address
    logger.info(f"Replaced {address} with canonical token {canonical} on chain {chain_id}")
    return canonical


def get_token_address(symbol: str, chain_id: int = 137) -> Optional[str]:
    """
    Get token address for a symbol

    Args:
        symbol: Token symbol (e.g., "USDC")
        chain_id: Chain ID (only Polygon is registered)

    Returns:
        Token address if found, None otherwise
    """
    if chain_id != EVMChain.POLYGON.value:
        return None
    return POLYGON_TOKEN_ADDRESSES.get(symbol.upper())


def get_explorer_url(chain_id: int) -> str:
    """Block explorer base URL for a chain (Polygonscan for unknown chains)"""
    return EXPLORER_URLS.get(chain_id, EXPLORER_URLS[EVMChain.POLYGON.value])


def construct_explorer_tx_url(chain_id: int, tx_hash: str) -> str:
    """Human-navigable link to a transaction"""
    return f"{get_explorer_url(chain_id)}/tx/{tx_hash}"
