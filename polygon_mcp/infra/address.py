"""
Address validation helpers
"""

from typing import Any, Optional

from web3 import Web3

from ..errors import InvalidAddress
from ..types.evm_tokens import NATIVE_TOKEN_ADDRESS, is_native_token


def validate_address(value: Any, field_name: str) -> str:
    """
    Validate an account/contract address and return its checksum form

    Mixed-case input must carry a valid EIP-55 checksum; all-lower or
    all-upper hex is accepted. The native-coin sentinel is returned in its
    canonical spelling.

    Raises:
        InvalidAddress: On any malformed value
    """
    if not isinstance(value, str) or not value:
        raise InvalidAddress(field_name, value)
    if is_native_token(value):
        return NATIVE_TOKEN_ADDRESS
    if not Web3.is_address(value):
        raise InvalidAddress(field_name, value)
    return Web3.to_checksum_address(value)


def validate_optional_address(value: Any, field_name: str, default: str) -> str:
    """Validate value, falling back to default when value is empty"""
    if value is None or value == "":
        return validate_address(default, field_name)
    return validate_address(value, field_name)


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison"""
    if a is None or b is None:
        return False
    return a.lower() == b.lower()
