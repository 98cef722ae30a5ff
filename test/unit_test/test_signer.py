"""
Test Signer Module

Tests for EVM signer and nonce manager.
"""

import sys
import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from polygon_mcp.config import WalletConfig
from polygon_mcp.errors import SignerError, ErrorCode
from polygon_mcp.infra.evm_signer import EVMSigner, NonceManager

# Well-known test keys - DO NOT use in production
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_PRIVATE_KEY_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_MNEMONIC_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_signer_from_private_key():
    """Test EVMSigner creation from hex private key"""
    print("Testing EVMSigner from private key...")

    signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY)
    assert signer.address == TEST_PRIVATE_KEY_ADDRESS

    # 0x prefix is optional
    signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY[2:])
    assert signer.address == TEST_PRIVATE_KEY_ADDRESS

    print("  EVMSigner from private key: PASSED")


def test_signer_from_mnemonic():
    """Test EVMSigner creation from seed phrase (first account)"""
    print("Testing EVMSigner from mnemonic...")

    signer = EVMSigner.from_mnemonic(TEST_MNEMONIC)
    assert signer.address == TEST_MNEMONIC_ADDRESS

    other = EVMSigner.from_mnemonic(TEST_MNEMONIC, "m/44'/60'/0'/0/1")
    assert other.address != TEST_MNEMONIC_ADDRESS

    print("  EVMSigner from mnemonic: PASSED")


def test_signer_from_config_priority():
    """Seed phrase wins over private key"""
    print("Testing EVMSigner.from_config...")

    both = WalletConfig(
        seed_phrase=TEST_MNEMONIC,
        private_key=TEST_PRIVATE_KEY,
        derivation_path="m/44'/60'/0'/0/0",
    )
    assert EVMSigner.from_config(both).address == TEST_MNEMONIC_ADDRESS

    key_only = WalletConfig(seed_phrase=None, private_key=TEST_PRIVATE_KEY)
    assert EVMSigner.from_config(key_only).address == TEST_PRIVATE_KEY_ADDRESS

    print("  EVMSigner.from_config: PASSED")


def test_signer_not_configured():
    """Missing secrets raise SignerError"""
    with pytest.raises(SignerError) as exc_info:
        EVMSigner.from_config(WalletConfig(seed_phrase=None, private_key=None))
    assert exc_info.value.code == ErrorCode.SIGNER_NOT_CONFIGURED


def test_sign_transaction():
    """Test signing an EIP-1559 transaction"""
    print("Testing sign_transaction...")

    signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY)
    raw_tx, tx_hash = signer.sign_transaction({
        "to": "0x2222222222222222222222222222222222222222",
        "data": "0x",
        "value": 0,
        "gas": 21000,
        "maxFeePerGas": 100 * 10**9,
        "maxPriorityFeePerGas": 30 * 10**9,
        "nonce": 0,
        "chainId": 137,
    })

    assert isinstance(raw_tx, bytes) and len(raw_tx) > 0
    assert tx_hash.startswith("0x") and len(tx_hash) == 66

    print("  sign_transaction: PASSED")


def test_sign_transaction_invalid():
    """Malformed transaction dicts raise SignerError"""
    signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY)
    with pytest.raises(SignerError):
        signer.sign_transaction({"to": "0x2222222222222222222222222222222222222222", "value": 0})


class TestNonceManager:
    """Nonce sequencing per signer"""

    ADDRESS = "0x1111111111111111111111111111111111111111"

    def _web3(self, chain_nonce: int) -> Mock:
        web3 = Mock()
        web3.eth.get_transaction_count.return_value = chain_nonce
        return web3

    def test_sequential_nonces(self):
        manager = NonceManager()
        web3 = self._web3(5)

        assert manager.get_nonce(web3, self.ADDRESS) == 5
        assert manager.get_nonce(web3, self.ADDRESS) == 6
        web3.eth.get_transaction_count.assert_called_with(self.ADDRESS, "pending")

    def test_chain_ahead_of_tracker(self):
        manager = NonceManager()
        manager.get_nonce(self._web3(5), self.ADDRESS)
        # Transaction sent outside this manager
        assert manager.get_nonce(self._web3(9), self.ADDRESS) == 9

    def test_release_last_nonce(self):
        manager = NonceManager()
        web3 = self._web3(5)

        nonce = manager.get_nonce(web3, self.ADDRESS)
        manager.release_nonce(self.ADDRESS, nonce)
        assert manager.get_nonce(web3, self.ADDRESS) == 5

    def test_release_older_nonce_keeps_sequence(self):
        manager = NonceManager()
        web3 = self._web3(5)

        first = manager.get_nonce(web3, self.ADDRESS)
        manager.get_nonce(web3, self.ADDRESS)
        manager.release_nonce(self.ADDRESS, first)
        assert manager.get_nonce(web3, self.ADDRESS) == 7

    def test_reset(self):
        manager = NonceManager()
        manager.get_nonce(self._web3(5), self.ADDRESS)
        manager.reset(self.ADDRESS)
        assert manager.get_nonce(self._web3(2), self.ADDRESS) == 2

    def test_reset_all(self):
        manager = NonceManager()
        other = "0x2222222222222222222222222222222222222222"
        manager.get_nonce(self._web3(5), self.ADDRESS)
        manager.get_nonce(self._web3(5), other)
        manager.reset()
        assert manager.get_nonce(self._web3(1), self.ADDRESS) == 1
        assert manager.get_nonce(self._web3(1), other) == 1

    def test_only_next_nonce_tracked(self):
        manager = NonceManager()
        web3 = self._web3(5)

        for _ in range(3):
            manager.get_nonce(web3, self.ADDRESS)

        assert manager._pending_nonces == {self.ADDRESS.lower(): 8}

    def test_concurrent_nonces_unique(self):
        manager = NonceManager()
        web3 = self._web3(0)
        results = []
        lock = threading.Lock()

        def worker():
            nonce = manager.get_nonce(web3, self.ADDRESS)
            with lock:
                results.append(nonce)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(20))


if __name__ == "__main__":
    print("=" * 60)
    print("Signer Tests")
    print("=" * 60)

    test_signer_from_private_key()
    test_signer_from_mnemonic()
    test_signer_from_config_priority()
    test_sign_transaction()

    print("=" * 60)
    print("All tests passed!")
