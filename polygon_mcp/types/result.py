"""
Type definitions for swap intents, quotes and transaction results
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Any, Dict


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class GasSource(Enum):
    """Where a gas limit came from"""
    QUOTE = "quote"
    ESTIMATE = "estimate"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SwapIntent:
    """
    Validated swap request

    Attributes:
        from_token: Input token address (checksummed or native sentinel)
        to_token: Output token address
        amount: Input amount in atomic units
        signer: Address that owns the input tokens and signs the swap
        slippage_bps: Slippage tolerance in basis points (100 = 1%)
        chain_id: Chain to quote on
    """
    from_token: str
    to_token: str
    amount: int
    signer: str
    slippage_bps: Decimal
    chain_id: int

    @property
    def slippage_percent(self) -> Decimal:
        """Slippage in percent, the unit the 1inch API expects"""
        return self.slippage_bps / Decimal(100)


@dataclass(frozen=True)
class Quote:
    """
    Executable swap transaction returned by the aggregator

    Attributes:
        destination: Router contract to send the transaction to (also the spender)
        call_data: Hex-encoded calldata
        native_value: Native coin to attach (wei)
        suggested_gas: Gas limit suggested by the API, None when absent or zero
        from_token / to_token: Token info objects as returned by the API
        from_amount / to_amount: Quoted amounts in atomic units (estimates)
        protocols: Route description, if requested
        raw_response: Full API response
    """
    destination: str
    call_data: str
    native_value: int
    suggested_gas: Optional[int]
    from_token: Any = None
    to_token: Any = None
    from_amount: Optional[int] = None
    to_amount: Optional[int] = None
    protocols: Optional[list] = None
    raw_response: Optional[dict] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"Quote({self.from_amount} -> {self.to_amount} via {self.destination})"


@dataclass(frozen=True)
class ApprovalOutcome:
    """
    Result of reconciling an ERC-20 allowance

    raised is False when no approval transaction was sent.
    """
    raised: bool
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    amount: Optional[int] = None

    @classmethod
    def not_needed(cls) -> "ApprovalOutcome":
        return cls(raised=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raised": self.raised,
            "txHash": self.tx_hash,
            "url": self.explorer_url,
        }


@dataclass(frozen=True)
class GasEstimate:
    """
    Gas limit chosen for a transaction

    error holds the absorbed estimation failure when source is FALLBACK.
    """
    gas_limit: int
    source: GasSource
    error: Optional[Exception] = field(default=None, compare=False)


@dataclass(frozen=True)
class SubmittedTransaction:
    """Broadcast transaction"""
    tx_hash: str
    explorer_url: str
    gas_limit: int
    status: TxStatus = TxStatus.PENDING
    block_number: Optional[int] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == TxStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {"hash": self.tx_hash, "url": self.explorer_url}

    def __str__(self) -> str:
        return f"SubmittedTransaction({self.status.value}, {self.tx_hash[:16]}...)"


@dataclass(frozen=True)
class SwapResult:
    """
    Terminal artifact of a swap

    Quote amounts are estimates; on-chain execution may differ within slippage.
    """
    transaction: SubmittedTransaction
    quote: Quote
    approval: ApprovalOutcome

    @property
    def tx_hash(self) -> str:
        return self.transaction.tx_hash

    def to_dict(self) -> Dict[str, Any]:
        """Payload returned by the inch_swap tool"""
        return {
            "hash": self.transaction.tx_hash,
            "url": self.transaction.explorer_url,
            "gas": self.transaction.gas_limit,
            "status": self.transaction.status.value,
            "fromToken": self.quote.from_token,
            "toToken": self.quote.to_token,
            "fromAmount": _str_or_none(self.quote.from_amount),
            "toAmount": _str_or_none(self.quote.to_amount),
            "estimatedGas": self.quote.suggested_gas,
            "approval": self.approval.to_dict(),
        }


def _str_or_none(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


__all__: List[str] = [
    "TxStatus",
    "GasSource",
    "SwapIntent",
    "Quote",
    "ApprovalOutcome",
    "GasEstimate",
    "SubmittedTransaction",
    "SwapResult",
]
