"""
Chain client

Wraps a web3.py connection and the server's signer behind read
(call, balance, allowance, decimals), write (send, contract writes,
deployments), gas estimation and receipt polling. web3 failures are mapped
to the error taxonomy here so callers never handle raw RPC exceptions.
"""

from __future__ import annotations

import logging
from typing import Optional, Dict, Any, List, Sequence

from web3 import Web3, HTTPProvider
from web3.exceptions import TimeExhausted
from web3.middleware import ExtraDataToPOAMiddleware

from ..config import config as global_config, TxConfig
from ..errors import ChainReadError, InvalidArgument, SubmissionError, TransactionError
from ..types.evm_tokens import construct_explorer_tx_url
from .evm_signer import EVMSigner, NonceManager, get_nonce_manager

logger = logging.getLogger(__name__)


ERC20_ABI: List[Dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# PoA chains whose blocks carry oversized extraData
POA_CHAIN_IDS = (56, 97, 137, 80002)


def is_timeout_error(error: Exception) -> bool:
    """Best-effort detection of transport timeouts across HTTP backends"""
    if isinstance(error, (TimeoutError, TimeExhausted)):
        return True
    return "timeout" in type(error).__name__.lower() or "timed out" in str(error).lower()


def create_web3(
    rpc_url: str,
    chain_id: Optional[int] = None,
    timeout: float = 30,
) -> "Web3":
    """
    Create Web3 instance for a chain

    Args:
        rpc_url: RPC endpoint URL
        chain_id: Chain ID. If None, will detect from RPC.
        timeout: Request timeout in seconds

    Returns:
        Configured Web3 instance
    """
    provider = HTTPProvider(
        rpc_url,
        request_kwargs={"timeout": timeout},
    )

    web3 = Web3(provider)

    if chain_id is None:
        try:
            chain_id = web3.eth.chain_id
        except Exception as e:
            logger.warning(f"Failed to detect chain ID from RPC, defaulting to 137 (Polygon): {e}")
            chain_id = 137

    if chain_id in POA_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    return web3


class ChainClient:
    """
    Account-bound chain access for tool handlers

    Usage:
        signer = EVMSigner.from_config()
        client = ChainClient.from_config(signer)

        balance = client.erc20_balance(token, client.address)
        tx_hash = client.send_transaction(to=router, data=calldata, value=0, gas=300000)
    """

    def __init__(
        self,
        web3: "Web3",
        signer: EVMSigner,
        chain_id: int,
        tx_config: Optional[TxConfig] = None,
        nonce_manager: Optional[NonceManager] = None,
        rpc_timeout: float = 30.0,
        endpoint: Optional[str] = None,
    ):
        self._web3 = web3
        self._signer = signer
        self._chain_id = chain_id
        self._tx_config = tx_config or global_config.tx
        self._nonce_manager = nonce_manager or get_nonce_manager()
        self._rpc_timeout = rpc_timeout
        self._endpoint = endpoint

    @classmethod
    def from_config(cls, signer: EVMSigner) -> "ChainClient":
        """Connect to the configured RPC endpoint"""
        rpc = global_config.rpc
        web3 = create_web3(rpc.url, rpc.chain_id, timeout=rpc.timeout_seconds)
        logger.info(f"Connected chain client to {rpc.url} (chain {rpc.chain_id}) as {signer.address}")
        return cls(
            web3,
            signer,
            chain_id=rpc.chain_id,
            rpc_timeout=rpc.timeout_seconds,
            endpoint=rpc.url,
        )

    @property
    def web3(self) -> "Web3":
        return self._web3

    @property
    def address(self) -> str:
        """Signer address (checksummed)"""
        return self._signer.address

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def explorer_url(self, tx_hash: str) -> str:
        return construct_explorer_tx_url(self._chain_id, tx_hash)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(self, operation: str, fn):
        try:
            return fn()
        except Exception as e:
            if is_timeout_error(e):
                raise ChainReadError.timeout(operation, self._rpc_timeout, self._endpoint) from e
            raise ChainReadError.failed(operation, e, self._endpoint) from e

    def contract(self, address: str, abi: Sequence[Dict[str, Any]]):
        return self._web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def call_function(
        self,
        address: str,
        abi: Sequence[Dict[str, Any]],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """Call a view/pure function"""
        contract = self.contract(address, abi)
        return self._read(
            function_name,
            lambda: contract.get_function_by_name(function_name)(*args).call(),
        )

    def balance(self, address: Optional[str] = None) -> int:
        """Native balance in wei"""
        owner = Web3.to_checksum_address(address or self.address)
        return self._read("balance", lambda: self._web3.eth.get_balance(owner))

    def erc20_balance(self, token: str, owner: str) -> int:
        contract = self.contract(token, ERC20_ABI)
        return self._read(
            "balanceOf",
            lambda: contract.functions.balanceOf(Web3.to_checksum_address(owner)).call(),
        )

    def decimals(self, token: str) -> int:
        contract = self.contract(token, ERC20_ABI)
        return self._read("decimals", lambda: contract.functions.decimals().call())

    def allowance(self, token: str, owner: str, spender: str) -> int:
        contract = self.contract(token, ERC20_ABI)
        return self._read(
            "allowance",
            lambda: contract.functions.allowance(
                Web3.to_checksum_address(owner),
                Web3.to_checksum_address(spender),
            ).call(),
        )

    def gas_price(self) -> int:
        return self._read("gas_price", lambda: self._web3.eth.gas_price)

    # ------------------------------------------------------------------
    # Encoding / simulation
    # ------------------------------------------------------------------

    def encode_call(
        self,
        address: str,
        abi: Sequence[Dict[str, Any]],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> str:
        """ABI-encode calldata for a contract function"""
        try:
            return self.contract(address, abi).encode_abi(function_name, args=list(args))
        except Exception as e:
            raise InvalidArgument("functionArgs", f"cannot encode {function_name}: {e}") from e

    def encode_deployment(
        self,
        abi: Sequence[Dict[str, Any]],
        bytecode: str,
        args: Sequence[Any] = (),
    ) -> str:
        """Bytecode followed by ABI-encoded constructor arguments"""
        factory = self._web3.eth.contract(abi=abi, bytecode=bytecode)
        try:
            return factory.constructor(*args).data_in_transaction
        except Exception as e:
            raise InvalidArgument("constructorArgs", f"cannot encode constructor: {e}") from e

    def _tx_params(self, to: Optional[str], data: str, value: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "from": self.address,
            "data": data,
            "value": int(value),
        }
        if to is not None:
            params["to"] = Web3.to_checksum_address(to)
        return params

    def estimate_gas(self, to: Optional[str], data: str, value: int = 0, sender: Optional[str] = None) -> int:
        """
        Simulation-based gas estimate

        Raises:
            ChainReadError: If the node rejects the estimate (e.g. the call would revert)
        """
        params = self._tx_params(to, data, value)
        if sender:
            params["from"] = Web3.to_checksum_address(sender)
        return self._read("estimate_gas", lambda: self._web3.eth.estimate_gas(params))

    def simulate(self, to: str, data: str, value: int = 0) -> bytes:
        """
        eth_call a state-changing transaction without sending it

        Raises:
            SubmissionError: If the call would revert
        """
        params = self._tx_params(to, data, value)
        try:
            return self._web3.eth.call(params)
        except Exception as e:
            raise SubmissionError(f"simulation reverted: {e}", original_error=e) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _fee_params(self) -> Dict[str, int]:
        """EIP-1559 fees: base fee * multiplier + priority tip"""
        latest_block = self._read("get_block", lambda: self._web3.eth.get_block("latest"))
        base_fee = latest_block.get("baseFeePerGas", 0)
        max_priority_fee = self._web3.to_wei(self._tx_config.priority_fee_gwei, "gwei")
        max_fee = int(base_fee * self._tx_config.base_fee_multiplier) + max_priority_fee
        return {
            "maxFeePerGas": max_fee,
            "maxPriorityFeePerGas": max_priority_fee,
        }

    def send_transaction(
        self,
        to: Optional[str],
        data: str,
        value: int = 0,
        gas: Optional[int] = None,
    ) -> str:
        """
        Sign and broadcast a transaction from the signer

        Args:
            to: Destination (None for contract creation)
            data: Hex calldata
            value: Native value in wei
            gas: Gas limit (node estimate when None)

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            SubmissionError: If the transaction is rejected before broadcast
        """
        tx_dict = self._tx_params(to, data, value)
        tx_dict.pop("from")
        if gas is None:
            try:
                gas = self.estimate_gas(to, data, value)
            except ChainReadError as e:
                raise SubmissionError(f"gas estimation failed: {e.message}", original_error=e) from e
        tx_dict["gas"] = int(gas)
        tx_dict["chainId"] = self._chain_id

        try:
            tx_dict.update(self._fee_params())
            nonce = self._nonce_manager.get_nonce(self._web3, self.address)
        except Exception as e:
            raise SubmissionError(f"could not prepare transaction: {e}", original_error=e) from e
        tx_dict["nonce"] = nonce

        try:
            raw_tx, _ = self._signer.sign_transaction(tx_dict)
            tx_hash = self._web3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            # A rejected tx did not consume its nonce; a timed-out one may have
            if not is_timeout_error(e):
                self._nonce_manager.release_nonce(self.address, nonce)
            logger.error(f"Transaction failed: {e}")
            raise SubmissionError(str(e), original_error=e) from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Broadcast transaction {tx_hash_hex} (nonce={nonce}, gas={tx_dict['gas']})")
        return tx_hash_hex

    def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Block until the transaction is mined

        Raises:
            TransactionError: If no receipt arrives within timeout
            ChainReadError: If polling itself fails
        """
        timeout = timeout if timeout is not None else self._tx_config.receipt_timeout
        try:
            receipt = self._web3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=timeout,
                poll_latency=self._tx_config.receipt_poll_interval,
            )
        except TimeExhausted as e:
            raise TransactionError.confirmation_timeout(tx_hash, timeout) from e
        except Exception as e:
            raise ChainReadError.failed("wait_for_receipt", e, self._endpoint) from e
        return dict(receipt)

    def __repr__(self) -> str:
        return f"ChainClient(chain_id={self._chain_id}, address={self.address})"
