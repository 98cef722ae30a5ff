"""
Tool operation modules

- AllowanceManager: ERC-20 allowance reconciliation
- GasEstimator: Gas limit selection with margin and fallback
- SwapOrchestrator: 1inch swap flow
- ContractModule: Contract calls, ERC-20 operations, deployment
"""

from .allowance import AllowanceManager, AllowancePolicy
from .gas import GasEstimator, GAS_MARGIN_PERCENT, FALLBACK_GAS_LIMIT
from .swap import SwapOrchestrator, SwapState
from .contracts import ContractModule, format_units, parse_units

__all__ = [
    "AllowanceManager",
    "AllowancePolicy",
    "GasEstimator",
    "GAS_MARGIN_PERCENT",
    "FALLBACK_GAS_LIMIT",
    "SwapOrchestrator",
    "SwapState",
    "ContractModule",
    "format_units",
    "parse_units",
]
