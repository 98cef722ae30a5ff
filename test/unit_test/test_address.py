"""
Unit tests for address validation
"""

import pytest
from web3 import Web3

from polygon_mcp.errors import InvalidAddress
from polygon_mcp.infra.address import validate_address, validate_optional_address, same_address
from polygon_mcp.types.evm_tokens import NATIVE_TOKEN_ADDRESS

USDC_E = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"


class TestValidateAddress:
    """validate_address returns checksum form or raises InvalidAddress"""

    def test_lowercase_is_checksummed(self):
        assert validate_address(USDC_E.lower(), "tokenAddress") == USDC_E

    def test_checksummed_passes(self):
        assert validate_address(USDC_E, "tokenAddress") == USDC_E

    def test_native_sentinel_canonical_spelling(self):
        assert validate_address(NATIVE_TOKEN_ADDRESS.lower(), "fromTokenAddress") == NATIVE_TOKEN_ADDRESS

    @pytest.mark.parametrize("value", [
        "0x123",
        "not-an-address",
        "",
        None,
        123,
        "0x" + "g" * 40,
        # One letter with flipped case breaks the EIP-55 checksum
        "0x2791bCa1f2de4661ED88A30C99A7a9449Aa84174",
    ])
    def test_malformed_raises(self, value):
        with pytest.raises(InvalidAddress) as exc_info:
            validate_address(value, "fromTokenAddress")
        assert exc_info.value.field_name == "fromTokenAddress"

    def test_result_is_valid(self):
        result = validate_address("0x" + "ab" * 20, "spender")
        assert Web3.is_checksum_address(result)


def test_validate_optional_address_default():
    wallet = "0x1111111111111111111111111111111111111111"
    assert validate_optional_address(None, "fromAddress", wallet) == wallet
    assert validate_optional_address("", "fromAddress", wallet) == wallet
    assert validate_optional_address(USDC_E.lower(), "fromAddress", wallet) == USDC_E


def test_same_address():
    assert same_address(USDC_E, USDC_E.lower())
    assert not same_address(USDC_E, NATIVE_TOKEN_ADDRESS)
    assert not same_address(None, USDC_E)
