"""
Contract Module

Generic contract and ERC-20 operations for the server wallet:
- Address and gas price lookup
- Arbitrary contract calls (read or simulated write)
- ERC-20 balance, decimals and transfer
- Contract deployment
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_utils import is_hex

from ..infra.address import validate_address
from ..infra.chain_client import ChainClient, ERC20_ABI
from ..errors import InvalidArgument

logger = logging.getLogger(__name__)

READ_ONLY_MUTABILITY = ("view", "pure")


def format_units(value: int, decimals: int) -> str:
    """
    Atomic units to a decimal string

    Trailing zeros are dropped: format_units(1500000, 6) == "1.5".
    """
    if decimals == 0:
        return str(value)
    negative = value < 0
    digits = str(abs(value)).rjust(decimals + 1, "0")
    integer, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    text = f"{integer}.{fraction}" if fraction else integer
    return f"-{text}" if negative else text


def parse_units(amount: Any, decimals: int, field_name: str = "amount") -> int:
    """
    Decimal token amount to atomic units

    Raises:
        InvalidArgument: Not a non-negative number, or more fractional digits than decimals
    """
    if isinstance(amount, bool):
        raise InvalidArgument(field_name, "must be a decimal number")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise InvalidArgument(field_name, f"must be a decimal number, got {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise InvalidArgument(field_name, f"must be a non-negative number, got {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidArgument(field_name, f"has more than {decimals} decimal places")
    return int(scaled)


def parse_wei(value: Any, field_name: str = "value") -> int:
    """Non-negative integer wei amount (int or digit string), 0 when empty"""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidArgument(field_name, "must be an integer amount in wei")
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdecimal():
            value = int(text)
    if not isinstance(value, int) or value < 0:
        raise InvalidArgument(field_name, f"must be a non-negative integer amount in wei, got {value!r}")
    return value


def parse_abi(abi: Union[str, Sequence[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """ABI JSON text (or an already decoded list) to a list of entries"""
    if isinstance(abi, str):
        try:
            abi = json.loads(abi)
        except ValueError as e:
            raise InvalidArgument("abi", f"not valid JSON: {e}") from e
    if not isinstance(abi, list) or not all(isinstance(entry, dict) for entry in abi):
        raise InvalidArgument("abi", "must be a JSON array of ABI entries")
    return list(abi)


def find_function(abi: Sequence[Dict[str, Any]], name: str) -> Dict[str, Any]:
    """First function entry with the given name"""
    for entry in abi:
        if entry.get("type", "function") == "function" and entry.get("name") == name:
            return entry
    raise InvalidArgument("functionName", f"{name} not found in ABI")


def find_constructor(abi: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for entry in abi:
        if entry.get("type") == "constructor":
            return entry
    return None


def is_read_only(fn_abi: Dict[str, Any]) -> bool:
    if "stateMutability" in fn_abi:
        return fn_abi["stateMutability"] in READ_ONLY_MUTABILITY
    # Pre-0.5 ABIs only carry "constant"
    return bool(fn_abi.get("constant"))


def coerce_arg(abi_type: str, value: Any, field_name: str = "functionArgs") -> Any:
    """
    Convert a string tool argument to the Python value web3 expects for abi_type

    Arrays and tuples are accepted as JSON text or already decoded values.
    """
    if abi_type.endswith("]") or abi_type.startswith("tuple"):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError as e:
                raise InvalidArgument(field_name, f"{value!r} is not a JSON value for {abi_type}") from e
        return value
    if not isinstance(value, str):
        return value

    text = value.strip()
    if abi_type.startswith(("uint", "int")):
        try:
            return int(text, 0)
        except ValueError as e:
            raise InvalidArgument(field_name, f"{value!r} is not an integer for {abi_type}") from e
    if abi_type == "bool":
        if text.lower() in ("true", "1"):
            return True
        if text.lower() in ("false", "0"):
            return False
        raise InvalidArgument(field_name, f"{value!r} is not a bool")
    if abi_type == "address":
        return validate_address(text, field_name)
    return value


def coerce_args(fn_abi: Optional[Dict[str, Any]], args: Sequence[Any], field_name: str) -> List[Any]:
    inputs = (fn_abi or {}).get("inputs", [])
    if len(args) != len(inputs):
        raise InvalidArgument(field_name, f"expected {len(inputs)} arguments, got {len(args)}")
    return [coerce_arg(inp.get("type", ""), arg, field_name) for inp, arg in zip(inputs, args)]


class ContractModule:
    """
    Contract and ERC-20 operations for the server wallet

    Usage:
        contracts = ContractModule(chain)

        contracts.erc20_balance("0x...")          # "12.5"
        contracts.erc20_transfer("0x...", "0x...", "1.5")
        contracts.call_contract("0x...", "totalSupply", abi_json)
    """

    def __init__(self, chain: ChainClient):
        self._chain = chain

    @property
    def address(self) -> str:
        """Wallet address"""
        return self._chain.address

    def get_address(self) -> str:
        return self._chain.address

    def get_gas_price(self) -> str:
        """Current gas price in Gwei, e.g. "30.5 Gwei" """
        return f"{format_units(self._chain.gas_price(), 9)} Gwei"

    def _tx_result(self, tx_hash: str) -> Dict[str, str]:
        return {"hash": tx_hash, "url": self._chain.explorer_url(tx_hash)}

    def call_contract(
        self,
        contract_address: str,
        function_name: str,
        abi: Union[str, Sequence[Dict[str, Any]]],
        function_args: Optional[Sequence[Any]] = None,
        value: Any = None,
    ) -> Union[str, Dict[str, str]]:
        """
        Call a contract function

        view/pure functions are read and their result returned as a string.
        Anything else is simulated first and then sent from the wallet.

        Returns:
            str result for reads, {"hash", "url"} for writes
        """
        abi = parse_abi(abi)
        contract_address = validate_address(contract_address, "contractAddress")
        fn_abi = find_function(abi, function_name)
        args = coerce_args(fn_abi, function_args or [], "functionArgs")

        if is_read_only(fn_abi):
            result = self._chain.call_function(contract_address, abi, function_name, args)
            return str(result)

        wei = parse_wei(value)
        data = self._chain.encode_call(contract_address, abi, function_name, args)
        self._chain.simulate(contract_address, data, value=wei)
        tx_hash = self._chain.send_transaction(contract_address, data, value=wei)
        logger.info(f"{function_name} on {contract_address} sent: {tx_hash}")
        return self._tx_result(tx_hash)

    def erc20_balance(self, contract_address: str) -> str:
        """Wallet balance of an ERC-20 token in token units"""
        contract_address = validate_address(contract_address, "contractAddress")
        balance = self._chain.erc20_balance(contract_address, self._chain.address)
        decimals = self._chain.decimals(contract_address)
        return format_units(balance, decimals)

    def get_token_decimals(self, token_address: str) -> str:
        token_address = validate_address(token_address, "tokenAddress")
        return str(self._chain.decimals(token_address))

    def erc20_transfer(self, contract_address: str, to_address: str, amount: Any) -> Dict[str, str]:
        """
        Transfer ERC-20 tokens from the wallet

        Args:
            contract_address: Token contract
            to_address: Recipient
            amount: Amount in token units ("1.5"), scaled by the token's decimals
        """
        contract_address = validate_address(contract_address, "contractAddress")
        to_address = validate_address(to_address, "toAddress")

        decimals = self._chain.decimals(contract_address)
        atomic = parse_units(amount, decimals)

        data = self._chain.encode_call(contract_address, ERC20_ABI, "transfer", [to_address, atomic])
        self._chain.simulate(contract_address, data)
        tx_hash = self._chain.send_transaction(contract_address, data)
        logger.info(f"Transferred {amount} of {contract_address} to {to_address}: {tx_hash}")
        return self._tx_result(tx_hash)

    def deploy_contract(
        self,
        abi: Union[str, Sequence[Dict[str, Any]]],
        bytecode: str,
        constructor_args: Optional[Sequence[Any]] = None,
    ) -> Dict[str, str]:
        """Deploy a contract from the wallet and return on broadcast"""
        abi = parse_abi(abi)
        if not isinstance(bytecode, str) or not bytecode:
            raise InvalidArgument("bytecode", "must be a hex string")
        if not bytecode.startswith("0x"):
            bytecode = "0x" + bytecode
        if not is_hex(bytecode) or len(bytecode) <= 2:
            raise InvalidArgument("bytecode", "must be a hex string")

        args = coerce_args(find_constructor(abi), constructor_args or [], "constructorArgs")
        data = self._chain.encode_deployment(abi, bytecode, args)
        tx_hash = self._chain.send_transaction(None, data)
        logger.info(f"Deployment sent: {tx_hash}")
        return self._tx_result(tx_hash)
