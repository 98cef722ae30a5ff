"""
Unit tests for gas limit selection
"""

from polygon_mcp.errors import ChainReadError, GasEstimationFailed
from polygon_mcp.modules.gas import GasEstimator, apply_margin, FALLBACK_GAS_LIMIT
from polygon_mcp.types.result import Quote, GasSource

from conftest import WALLET, ROUTER, make_chain


def _quote(suggested_gas=None, native_value=0):
    return Quote(
        destination=ROUTER,
        call_data="0x12aa3caf",
        native_value=native_value,
        suggested_gas=suggested_gas,
    )


def test_apply_margin():
    assert apply_margin(100_000) == 120_000
    assert apply_margin(250_000) == 300_000
    # Rounds up
    assert apply_margin(1) == 2
    assert apply_margin(0) == 0


def test_quote_gas_used_as_is():
    chain = make_chain()
    estimate = GasEstimator(chain).resolve(_quote(suggested_gas=210_000), WALLET)

    assert estimate.gas_limit == 210_000
    assert estimate.source == GasSource.QUOTE
    chain.estimate_gas.assert_not_called()


def test_estimate_with_margin():
    chain = make_chain(estimate=100_000)
    estimate = GasEstimator(chain).resolve(_quote(native_value=10**16), WALLET)

    assert estimate.gas_limit == 120_000
    assert estimate.source == GasSource.ESTIMATE
    chain.estimate_gas.assert_called_once_with(ROUTER, "0x12aa3caf", value=10**16, sender=WALLET)


def test_estimation_failure_uses_fallback():
    chain = make_chain()
    chain.estimate_gas.side_effect = ChainReadError.failed("estimate_gas", Exception("execution reverted"))

    estimate = GasEstimator(chain).resolve(_quote(), WALLET)

    assert estimate.gas_limit == FALLBACK_GAS_LIMIT == 300_000
    assert estimate.source == GasSource.FALLBACK
    assert isinstance(estimate.error, GasEstimationFailed)


def test_estimate_returns_failure_value():
    chain = make_chain()
    chain.estimate_gas.side_effect = RuntimeError("node down")

    result = GasEstimator(chain).estimate(_quote(), WALLET)
    assert isinstance(result, GasEstimationFailed)
    assert "node down" in result.message


def test_ensure_gas_never_raises():
    chain = make_chain()
    chain.estimate_gas.side_effect = ValueError("boom")
    assert GasEstimator(chain).ensure_gas(_quote(), WALLET) == 300_000
