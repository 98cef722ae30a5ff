"""
EVM Transaction Signer using eth-account

Provides local signing for Polygon transactions from a seed phrase or a
private key. Includes thread-safe nonce management for parallel transactions.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Dict, Any, Tuple

from web3 import Web3
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import SignerError
from ..config import WalletConfig

logger = logging.getLogger(__name__)


class NonceManager:
    """
    Thread-safe nonce manager for EVM transactions.

    Concurrent tool invocations from the same signer (an approval followed by
    a swap, or two swaps) must not collide on nonces. The manager:
    1. Keeps track of pending nonces locally
    2. Uses a lock to prevent race conditions
    3. Syncs with the chain on every assignment

    Usage:
        nonce_mgr = NonceManager()
        nonce = nonce_mgr.get_nonce(web3, address)  # Thread-safe
        # ... send transaction ...
        nonce_mgr.release_nonce(address, nonce)  # On rejection before broadcast
    """

    def __init__(self):
        self._lock = threading.Lock()
        # {address: next_nonce}
        self._pending_nonces: Dict[str, int] = {}

    def get_nonce(self, web3: "Web3", address: str) -> int:
        """
        Get the next available nonce for an address (thread-safe).

        Args:
            web3: Web3 instance
            address: Wallet address

        Returns:
            Next nonce to use
        """
        key = address.lower()

        with self._lock:
            # On-chain nonce including mempool
            chain_nonce = web3.eth.get_transaction_count(
                Web3.to_checksum_address(address), "pending"
            )
            tracked_nonce = self._pending_nonces.get(key, chain_nonce)

            # Transactions may have been sent outside this manager
            next_nonce = max(chain_nonce, tracked_nonce)

            self._pending_nonces[key] = next_nonce + 1

            logger.debug(
                f"NonceManager: address={key[:10]}... "
                f"chain={chain_nonce} tracked={tracked_nonce} assigned={next_nonce}"
            )

            return next_nonce

    def release_nonce(self, address: str, nonce: int) -> None:
        """
        Release a nonce whose transaction was rejected before broadcast.

        The nonce can be reused only if it is the highest one handed out.
        """
        key = address.lower()

        with self._lock:
            current_pending = self._pending_nonces.get(key, 0)
            if nonce == current_pending - 1:
                self._pending_nonces[key] = nonce
                logger.debug(f"NonceManager: released nonce {nonce} for {key[:10]}...")

    def reset(self, address: Optional[str] = None) -> None:
        """
        Reset nonce tracking, forcing re-sync with chain.

        Args:
            address: Address to reset. If None, resets all addresses.
        """
        with self._lock:
            if address:
                key = address.lower()
                self._pending_nonces.pop(key, None)
            else:
                self._pending_nonces.clear()


# Global nonce manager instance (one sequencing layer per process)
_nonce_manager = NonceManager()


def get_nonce_manager() -> NonceManager:
    """Get the global nonce manager instance."""
    return _nonce_manager


class EVMSigner:
    """
    Local EVM signer

    Usage:
        # From private key
        signer = EVMSigner.from_private_key("0x...")

        # From BIP-39 seed phrase
        signer = EVMSigner.from_mnemonic("word1 word2 ...")

        # From SEED_PHRASE / EVM_PRIVATE_KEY
        signer = EVMSigner.from_config()
    """

    def __init__(self, account: "LocalAccount"):
        self._account = account

    @property
    def address(self) -> str:
        """Get wallet address (checksummed)"""
        return self._account.address

    def sign_transaction(self, tx_dict: Dict[str, Any]) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            tx_dict: Transaction dictionary with to, data, value, gas, fees, nonce, chainId

        Returns:
            (raw_tx_bytes, tx_hash_hex)
        """
        try:
            signed = self._account.sign_transaction(tx_dict)
        except (TypeError, ValueError) as e:
            raise SignerError.failed(str(e)) from e
        return signed.raw_transaction, Web3.to_hex(signed.hash)

    @classmethod
    def from_private_key(cls, private_key: str) -> "EVMSigner":
        """
        Create signer from private key

        Args:
            private_key: Hex-encoded private key (with or without 0x prefix)
        """
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key

        account = Account.from_key(private_key)
        return cls(account)

    @classmethod
    def from_mnemonic(cls, seed_phrase: str, derivation_path: str = "m/44'/60'/0'/0/0") -> "EVMSigner":
        """
        Create signer from a BIP-39 seed phrase

        Args:
            seed_phrase: Space-separated mnemonic
            derivation_path: HD derivation path (first Ethereum account by default)
        """
        Account.enable_unaudited_hdwallet_features()
        account = Account.from_mnemonic(seed_phrase.strip(), account_path=derivation_path)
        return cls(account)

    @classmethod
    def from_config(cls, wallet_config: Optional[WalletConfig] = None) -> "EVMSigner":
        """
        Create signer from configuration

        Priority:
        1. SEED_PHRASE
        2. EVM_PRIVATE_KEY

        Raises:
            SignerError: If neither is set
        """
        if wallet_config is None:
            wallet_config = WalletConfig()

        if wallet_config.seed_phrase:
            return cls.from_mnemonic(wallet_config.seed_phrase, wallet_config.derivation_path)
        if wallet_config.private_key:
            return cls.from_private_key(wallet_config.private_key)

        raise SignerError.not_configured()

    def __repr__(self) -> str:
        return f"EVMSigner(address={self.address})"
