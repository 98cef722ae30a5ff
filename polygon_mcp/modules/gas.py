"""
Gas Module

Chooses the gas limit for a swap transaction. The quote's own suggestion is
used when present; otherwise the node is asked for an estimate which is
padded by a fixed margin. Estimation failures never surface to callers: a
fixed fallback limit is used instead.
"""

from __future__ import annotations

import logging
from typing import Union

from ..types.result import Quote, GasEstimate, GasSource
from ..infra.chain_client import ChainClient
from ..errors import GasEstimationFailed

logger = logging.getLogger(__name__)

GAS_MARGIN_PERCENT = 20
FALLBACK_GAS_LIMIT = 300_000


def apply_margin(estimate: int) -> int:
    """Round-up estimate * (1 + GAS_MARGIN_PERCENT / 100) in integer math"""
    return (estimate * (100 + GAS_MARGIN_PERCENT) + 99) // 100


class GasEstimator:
    """
    Gas limit selection for quoted transactions

    Usage:
        estimator = GasEstimator(chain)
        gas_limit = estimator.ensure_gas(quote, chain.address)
    """

    def __init__(self, chain: ChainClient):
        self._chain = chain

    def estimate(self, quote: Quote, signer: str) -> Union[int, GasEstimationFailed]:
        """
        Live estimate for the quoted transaction

        Returns:
            Raw gas estimate, or GasEstimationFailed describing why there is none
        """
        try:
            return self._chain.estimate_gas(
                quote.destination,
                quote.call_data,
                value=quote.native_value,
                sender=signer,
            )
        except Exception as e:
            return GasEstimationFailed(e)

    def resolve(self, quote: Quote, signer: str) -> GasEstimate:
        """Pick the gas limit and record where it came from"""
        if quote.suggested_gas is not None and quote.suggested_gas > 0:
            return GasEstimate(gas_limit=quote.suggested_gas, source=GasSource.QUOTE)

        result = self.estimate(quote, signer)
        if isinstance(result, GasEstimationFailed):
            logger.warning(f"{result.message}, using fallback gas limit {FALLBACK_GAS_LIMIT}")
            return GasEstimate(
                gas_limit=FALLBACK_GAS_LIMIT,
                source=GasSource.FALLBACK,
                error=result,
            )

        gas_limit = apply_margin(result)
        logger.debug(f"Gas estimate {result} -> limit {gas_limit}")
        return GasEstimate(gas_limit=gas_limit, source=GasSource.ESTIMATE)

    def ensure_gas(self, quote: Quote, signer: str) -> int:
        """Gas limit to submit the quoted transaction with; never raises on estimation failure"""
        return self.resolve(quote, signer).gas_limit
