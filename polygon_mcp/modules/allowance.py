"""
Allowance Module

Reconciles ERC-20 approval state before a swap:
- Reads the current allowance for (token, owner, spender)
- Raises it with a single max approval, or refuses, depending on policy
- Exposes the explicit approve_token operation
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from ..types.evm_tokens import MAX_UINT256, is_native_token
from ..types.result import ApprovalOutcome
from ..infra.address import validate_address
from ..infra.chain_client import ChainClient, ERC20_ABI
from ..errors import (
    ConfigurationError,
    ChainReadError,
    AllowanceCheckFailed,
    InsufficientAllowance,
    ApprovalFailed,
    ApprovalTimeout,
    SubmissionError,
    TransactionError,
)
from ..config import config

logger = logging.getLogger(__name__)

# Gas for a plain ERC-20 approve when the node cannot estimate it
APPROVAL_FALLBACK_GAS = 150000


class AllowancePolicy(Enum):
    """What to do when the allowance is below the swap amount"""
    AUTO_APPROVE = "auto_approve"
    FAIL_FAST = "fail_fast"

    @classmethod
    def from_string(cls, value: str) -> "AllowancePolicy":
        """Convert string to AllowancePolicy (case-insensitive)"""
        value_lower = value.strip().lower().replace("-", "_")
        if value_lower in ("auto_approve", "auto", "approve"):
            return cls.AUTO_APPROVE
        elif value_lower in ("fail_fast", "fail", "manual"):
            return cls.FAIL_FAST
        else:
            raise ConfigurationError.invalid(
                "ALLOWANCE_POLICY",
                f"Unknown policy: {value}. Supported: auto_approve, fail_fast",
            )


class AllowanceManager:
    """
    ERC-20 allowance reconciliation

    Usage:
        manager = AllowanceManager(chain, AllowancePolicy.AUTO_APPROVE)

        current = manager.check_allowance(token, owner, spender)
        outcome = manager.ensure_allowance(token, owner, spender, 10**6)
        if outcome.raised:
            print(outcome.tx_hash)
    """

    def __init__(
        self,
        chain: ChainClient,
        policy: AllowancePolicy = AllowancePolicy.AUTO_APPROVE,
        approval_timeout: Optional[float] = None,
    ):
        """
        Initialize allowance manager

        Args:
            chain: Chain client bound to the signing wallet
            policy: Fixed for the lifetime of the manager
            approval_timeout: Seconds to wait for an approval receipt
        """
        self._chain = chain
        self._policy = policy
        self._approval_timeout = (
            approval_timeout if approval_timeout is not None else config.tx.approval_timeout
        )

    @classmethod
    def from_config(cls, chain: ChainClient) -> "AllowanceManager":
        return cls(chain, AllowancePolicy.from_string(config.swap.allowance_policy))

    @property
    def policy(self) -> AllowancePolicy:
        return self._policy

    def check_allowance(self, token: str, owner: str, spender: str) -> int:
        """
        Read the current allowance

        Raises:
            InvalidAddress: If any address is malformed (no chain call is made)
            AllowanceCheckFailed: If the read reverts, times out or the node is unreachable
        """
        token = validate_address(token, "tokenAddress")
        owner = validate_address(owner, "ownerAddress")
        spender = validate_address(spender, "spenderAddress")

        try:
            return self._chain.allowance(token, owner, spender)
        except ChainReadError as e:
            raise AllowanceCheckFailed(token, owner, spender, e) from e

    def ensure_allowance(
        self,
        token: str,
        owner: str,
        spender: str,
        required_amount: int,
    ) -> ApprovalOutcome:
        """
        Make sure spender may move at least required_amount of owner's token

        Returns:
            ApprovalOutcome with raised=False if nothing was sent

        Raises:
            AllowanceCheckFailed: Allowance read failed
            InsufficientAllowance: Allowance too low under FAIL_FAST
            ApprovalFailed: Approval rejected or mined with status 0
            ApprovalTimeout: Approval receipt not seen within the timeout
        """
        if is_native_token(token):
            return ApprovalOutcome.not_needed()

        current = self.check_allowance(token, owner, spender)
        if current >= required_amount:
            logger.debug(f"Token {token} already approved (allowance: {current})")
            return ApprovalOutcome.not_needed()

        return self.raise_allowance(token, spender, required_amount, current)

    def raise_allowance(
        self,
        token: str,
        spender: str,
        required_amount: int,
        current: int,
    ) -> ApprovalOutcome:
        """
        Apply the policy to an allowance already known to be insufficient

        Under AUTO_APPROVE exactly one max approval is sent and awaited.
        """
        token = validate_address(token, "tokenAddress")
        spender = validate_address(spender, "spenderAddress")

        if self._policy == AllowancePolicy.FAIL_FAST:
            raise InsufficientAllowance(token, spender, required_amount, current)

        logger.info(
            f"Allowance {current} < {required_amount} for {token}, approving {spender}..."
        )
        tx_hash = self._send_approval(token, spender, MAX_UINT256)
        self._wait_for_approval(token, spender, tx_hash)

        logger.info(f"Approval confirmed: {tx_hash}")
        return ApprovalOutcome(
            raised=True,
            tx_hash=tx_hash,
            explorer_url=self._chain.explorer_url(tx_hash),
            amount=MAX_UINT256,
        )

    def approve(self, token: str, spender: str, amount: Optional[int] = None) -> ApprovalOutcome:
        """
        Broadcast an approval and return without waiting

        Args:
            token: ERC-20 token address
            spender: Address allowed to spend
            amount: Allowance in atomic units (max uint256 when None)
        """
        token = validate_address(token, "tokenAddress")
        spender = validate_address(spender, "spenderAddress")
        amount = MAX_UINT256 if amount is None else amount

        tx_hash = self._send_approval(token, spender, amount)
        return ApprovalOutcome(
            raised=True,
            tx_hash=tx_hash,
            explorer_url=self._chain.explorer_url(tx_hash),
            amount=amount,
        )

    def _send_approval(self, token: str, spender: str, amount: int) -> str:
        data = self._chain.encode_call(token, ERC20_ABI, "approve", [spender, amount])

        # Some proxy-based tokens need more than the standard approve gas
        try:
            estimated = self._chain.estimate_gas(token, data)
            gas_limit = (estimated * 120 + 99) // 100
        except ChainReadError as e:
            logger.warning(f"Approval gas estimation failed, using {APPROVAL_FALLBACK_GAS}: {e}")
            gas_limit = APPROVAL_FALLBACK_GAS

        try:
            return self._chain.send_transaction(token, data, value=0, gas=gas_limit)
        except SubmissionError as e:
            raise ApprovalFailed(token, spender, e.message) from e

    def _wait_for_approval(self, token: str, spender: str, tx_hash: str) -> None:
        try:
            receipt = self._chain.wait_for_receipt(tx_hash, timeout=self._approval_timeout)
        except TransactionError as e:
            raise ApprovalTimeout(token, tx_hash, self._approval_timeout) from e
        except ChainReadError as e:
            raise ApprovalFailed(token, spender, f"receipt unavailable: {e.message}", tx_hash) from e

        if receipt.get("status") != 1:
            raise ApprovalFailed(token, spender, "transaction reverted", tx_hash)
