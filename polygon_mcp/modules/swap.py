"""
Swap Module

Token swaps on Polygon via the 1inch aggregator. One invocation runs a fixed
sequence of stages:

    VALIDATING -> NORMALIZING -> QUOTING -> CHECKING_ALLOWANCE -> (APPROVING)
    -> ESTIMATING_GAS -> SUBMITTING -> (CONFIRMING) -> DONE

Any stage may end in FAILED. The failing stage is recorded on the raised
error as details["stage"]; once an approval has been mined its hash is also
reported as details["approval_tx_hash"], since it is not rolled back. A failure
after the swap is broadcast carries details["tx_hash"] as well.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from ..types.result import (
    SwapIntent,
    SwapResult,
    SubmittedTransaction,
    ApprovalOutcome,
    TxStatus,
)
from ..types.evm_tokens import is_native_token
from ..infra.address import validate_address, validate_optional_address, same_address
from ..infra.chain_client import ChainClient
from ..infra.correlation import log_with_correlation
from ..protocols.oneinch import QuoteResolver
from ..errors import PolygonMcpError, InvalidArgument, TransactionError
from ..config import config
from .allowance import AllowanceManager, AllowancePolicy
from .gas import GasEstimator

logger = logging.getLogger(__name__)


class SwapState(Enum):
    """Stages of a swap invocation"""
    VALIDATING = "validating"
    NORMALIZING = "normalizing"
    QUOTING = "quoting"
    CHECKING_ALLOWANCE = "checking_allowance"
    APPROVING = "approving"
    ESTIMATING_GAS = "estimating_gas"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


def parse_amount(value: Any, field_name: str = "amount") -> int:
    """Positive integer amount in atomic units (int or decimal-digit string)"""
    if isinstance(value, bool):
        raise InvalidArgument(field_name, "must be an integer amount in atomic units")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdecimal()):
            raise InvalidArgument(field_name, f"must be an integer amount in atomic units, got {value!r}")
        value = int(text)
    if not isinstance(value, int):
        raise InvalidArgument(field_name, f"must be an integer amount in atomic units, got {value!r}")
    if value <= 0:
        raise InvalidArgument(field_name, "must be greater than zero")
    return value


def parse_slippage(value: Any, default: float) -> Decimal:
    """Slippage percent to basis points"""
    if value is None or value == "":
        value = default
    if isinstance(value, bool):
        raise InvalidArgument("slippage", "must be a number")
    try:
        percent = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidArgument("slippage", f"must be a number, got {value!r}") from e
    if not percent.is_finite() or percent < 0:
        raise InvalidArgument("slippage", f"must be a non-negative number, got {value!r}")
    return percent * 100


def parse_chain_id(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidArgument("chainId", "must be a positive integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdecimal():
            value = int(text)
    if not isinstance(value, int) or value <= 0:
        raise InvalidArgument("chainId", f"must be a positive integer, got {value!r}")
    return value


class SwapOrchestrator:
    """
    Quote, approve and submit a 1inch swap from the server wallet

    Usage:
        orchestrator = SwapOrchestrator(chain, QuoteResolver(OneInchAPI(137)))
        result = orchestrator.swap(
            from_token="0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE",
            to_token="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
            amount=10**18,
        )
        print(result.tx_hash)
    """

    def __init__(
        self,
        chain: ChainClient,
        resolver: QuoteResolver,
        allowance_manager: Optional[AllowanceManager] = None,
        gas_estimator: Optional[GasEstimator] = None,
        wait_for_confirmation: Optional[bool] = None,
        default_slippage: Optional[float] = None,
        default_chain_id: Optional[int] = None,
    ):
        """
        Initialize swap orchestrator

        Args:
            chain: Chain client bound to the signing wallet
            resolver: 1inch quote resolver
            allowance_manager: Allowance policy holder (AUTO_APPROVE by default)
            gas_estimator: Gas limit selection
            wait_for_confirmation: Wait for the swap receipt before reporting
            default_slippage: Slippage percent when the caller gives none
            default_chain_id: Chain ID when the caller gives none (the connected chain by default)
        """
        self._chain = chain
        self._resolver = resolver
        self._allowance = allowance_manager or AllowanceManager(chain, AllowancePolicy.AUTO_APPROVE)
        self._gas = gas_estimator or GasEstimator(chain)
        self._wait_for_confirmation = (
            wait_for_confirmation if wait_for_confirmation is not None
            else config.swap.wait_for_confirmation
        )
        self._default_slippage = (
            default_slippage if default_slippage is not None else config.swap.default_slippage
        )
        self._default_chain_id = default_chain_id or config.swap.default_chain_id or chain.chain_id

    def _advance(self, current: SwapState, new: SwapState) -> SwapState:
        log_with_correlation(
            logger, logging.INFO, f"{current.value} -> {new.value}", "inch_swap"
        )
        return new

    def validate_intent(
        self,
        from_token: Any,
        to_token: Any,
        amount: Any,
        from_address: Any = None,
        slippage: Any = None,
        chain_id: Any = None,
    ) -> SwapIntent:
        """
        Build a SwapIntent from raw tool arguments

        Raises:
            InvalidAddress: Malformed token or signer address
            InvalidArgument: Bad amount, slippage or chain, or a signer other than the wallet
        """
        from_token = validate_address(from_token, "fromTokenAddress")
        to_token = validate_address(to_token, "toTokenAddress")

        signer = validate_optional_address(from_address, "fromAddress", self._chain.address)
        if not same_address(signer, self._chain.address):
            raise InvalidArgument(
                "fromAddress",
                f"{signer} is not the server wallet ({self._chain.address}); only the wallet can sign",
            )

        amount = parse_amount(amount)
        slippage_bps = parse_slippage(slippage, self._default_slippage)
        chain_id = parse_chain_id(chain_id, self._default_chain_id)
        if chain_id != self._chain.chain_id:
            raise InvalidArgument(
                "chainId",
                f"server is connected to chain {self._chain.chain_id}, got {chain_id}",
            )

        return SwapIntent(
            from_token=from_token,
            to_token=to_token,
            amount=amount,
            signer=signer,
            slippage_bps=slippage_bps,
            chain_id=chain_id,
        )

    def swap(
        self,
        from_token: Any,
        to_token: Any,
        amount: Any,
        from_address: Any = None,
        slippage: Any = None,
        api_key: Optional[str] = None,
        chain_id: Any = None,
    ) -> SwapResult:
        """
        Execute a swap

        Args:
            from_token: Input token address (native sentinel for POL)
            to_token: Output token address
            amount: Input amount in atomic units
            from_address: Signer, must be the wallet address if given
            slippage: Slippage tolerance in percent (default 1)
            api_key: Per-call 1inch key, overrides ONE_INCH_API_KEY
            chain_id: Must match the connected chain (defaults to it)

        Returns:
            SwapResult with the swap hash, explorer link, quote and approval outcome

        Raises:
            PolygonMcpError: Subclass for the failing stage, details["stage"] set
        """
        state = SwapState.VALIDATING
        approval = ApprovalOutcome.not_needed()
        tx_hash = None

        try:
            intent = self.validate_intent(from_token, to_token, amount, from_address, slippage, chain_id)
            key = self._resolver.resolve_api_key(api_key)

            state = self._advance(state, SwapState.NORMALIZING)
            intent = SwapIntent(
                from_token=self._resolver.normalize(intent.from_token, intent.chain_id),
                to_token=self._resolver.normalize(intent.to_token, intent.chain_id),
                amount=intent.amount,
                signer=intent.signer,
                slippage_bps=intent.slippage_bps,
                chain_id=intent.chain_id,
            )

            state = self._advance(state, SwapState.QUOTING)
            quote = self._resolver.resolve_quote(intent, api_key=key)
            log_with_correlation(
                logger, logging.INFO,
                f"Quote: {quote.from_amount} -> {quote.to_amount} via {quote.destination}",
                "inch_swap",
            )

            # The native sentinel is never subject to allowance checks
            if not is_native_token(intent.from_token):
                state = self._advance(state, SwapState.CHECKING_ALLOWANCE)
                current = self._allowance.check_allowance(
                    intent.from_token, intent.signer, quote.destination
                )
                if current < intent.amount:
                    if self._allowance.policy == AllowancePolicy.AUTO_APPROVE:
                        state = self._advance(state, SwapState.APPROVING)
                    approval = self._allowance.raise_allowance(
                        intent.from_token, quote.destination, intent.amount, current
                    )

            state = self._advance(state, SwapState.ESTIMATING_GAS)
            gas_limit = self._gas.ensure_gas(quote, intent.signer)

            state = self._advance(state, SwapState.SUBMITTING)
            tx_hash = self._chain.send_transaction(
                quote.destination,
                quote.call_data,
                value=quote.native_value,
                gas=gas_limit,
            )
            transaction = SubmittedTransaction(
                tx_hash=tx_hash,
                explorer_url=self._chain.explorer_url(tx_hash),
                gas_limit=gas_limit,
            )

            if self._wait_for_confirmation:
                state = self._advance(state, SwapState.CONFIRMING)
                transaction = self._confirm(transaction)

        except PolygonMcpError as e:
            e.details["stage"] = state.value
            if approval.raised:
                e.details["approval_tx_hash"] = approval.tx_hash
            if tx_hash is not None:
                e.details.setdefault("tx_hash", tx_hash)
            log_with_correlation(
                logger, logging.ERROR,
                f"{state.value} -> {SwapState.FAILED.value}: {e}",
                "inch_swap",
            )
            raise

        self._advance(state, SwapState.DONE)
        return SwapResult(transaction=transaction, quote=quote, approval=approval)

    def _confirm(self, transaction: SubmittedTransaction) -> SubmittedTransaction:
        receipt = self._chain.wait_for_receipt(transaction.tx_hash)
        if receipt.get("status") != 1:
            raise TransactionError.reverted(transaction.tx_hash)
        return SubmittedTransaction(
            tx_hash=transaction.tx_hash,
            explorer_url=transaction.explorer_url,
            gas_limit=transaction.gas_limit,
            status=TxStatus.SUCCESS,
            block_number=receipt.get("blockNumber"),
        )
