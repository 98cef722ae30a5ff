"""
Unit tests for allowance reconciliation

The chain client is a Mock; every chain write goes through send_transaction,
so its call count is the number of transactions broadcast.
"""

import pytest

from polygon_mcp.errors import (
    ChainReadError,
    AllowanceCheckFailed,
    InsufficientAllowance,
    ApprovalFailed,
    ApprovalTimeout,
    ConfigurationError,
    InvalidAddress,
    SubmissionError,
    TransactionError,
    ErrorCode,
)
from polygon_mcp.infra.chain_client import ERC20_ABI
from polygon_mcp.modules.allowance import (
    AllowanceManager,
    AllowancePolicy,
    APPROVAL_FALLBACK_GAS,
)
from polygon_mcp.types.evm_tokens import NATIVE_TOKEN_ADDRESS, MAX_UINT256

from conftest import WALLET, ROUTER, TOKEN_A, APPROVAL_HASH, make_chain


def _manager(chain, policy=AllowancePolicy.AUTO_APPROVE):
    return AllowanceManager(chain, policy, approval_timeout=60)


class TestAllowancePolicy:

    @pytest.mark.parametrize("value,expected", [
        ("auto_approve", AllowancePolicy.AUTO_APPROVE),
        ("AUTO", AllowancePolicy.AUTO_APPROVE),
        ("auto-approve", AllowancePolicy.AUTO_APPROVE),
        ("fail_fast", AllowancePolicy.FAIL_FAST),
        (" Fail-Fast ", AllowancePolicy.FAIL_FAST),
        ("manual", AllowancePolicy.FAIL_FAST),
    ])
    def test_from_string(self, value, expected):
        assert AllowancePolicy.from_string(value) == expected

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AllowancePolicy.from_string("sometimes")
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID


class TestCheckAllowance:

    def test_reads_chain(self):
        chain = make_chain(allowance=42)
        assert _manager(chain).check_allowance(TOKEN_A, WALLET, ROUTER) == 42
        chain.allowance.assert_called_once_with(TOKEN_A, WALLET, ROUTER)

    def test_checksums_inputs(self):
        chain = make_chain(allowance=1)
        usdc_e = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
        _manager(chain).check_allowance(usdc_e.lower(), WALLET, ROUTER)
        chain.allowance.assert_called_once_with(usdc_e, WALLET, ROUTER)

    def test_invalid_address_no_chain_call(self):
        chain = make_chain()
        with pytest.raises(InvalidAddress) as exc_info:
            _manager(chain).check_allowance(TOKEN_A, WALLET, "0x123")
        assert exc_info.value.field_name == "spenderAddress"
        chain.allowance.assert_not_called()

    def test_read_failure(self):
        chain = make_chain()
        chain.allowance.side_effect = ChainReadError.failed("allowance", Exception("execution reverted"))

        with pytest.raises(AllowanceCheckFailed) as exc_info:
            _manager(chain).check_allowance(TOKEN_A, WALLET, ROUTER)
        assert exc_info.value.code == ErrorCode.ALLOWANCE_CHECK_FAILED
        assert exc_info.value.details["token"] == TOKEN_A


class TestEnsureAllowance:

    def test_sufficient_no_writes(self):
        chain = make_chain(allowance=10**6)
        outcome = _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 10**6)

        assert outcome.raised is False
        chain.send_transaction.assert_not_called()

    def test_native_token_no_read(self):
        chain = make_chain()
        outcome = _manager(chain).ensure_allowance(NATIVE_TOKEN_ADDRESS.lower(), WALLET, ROUTER, 10**18)

        assert outcome.raised is False
        chain.allowance.assert_not_called()
        chain.send_transaction.assert_not_called()

    def test_insufficient_sends_one_max_approval(self):
        chain = make_chain(allowance=500_000, estimate=50_000)
        chain.send_transaction.return_value = APPROVAL_HASH

        outcome = _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1_000_000)

        assert outcome.raised is True
        assert outcome.tx_hash == APPROVAL_HASH
        assert outcome.amount == MAX_UINT256
        assert outcome.explorer_url == f"https://polygonscan.com/tx/{APPROVAL_HASH}"

        chain.encode_call.assert_called_once_with(TOKEN_A, ERC20_ABI, "approve", [ROUTER, MAX_UINT256])
        chain.send_transaction.assert_called_once_with(TOKEN_A, "0x095ea7b3", value=0, gas=60_000)
        chain.wait_for_receipt.assert_called_once_with(APPROVAL_HASH, timeout=60)

    def test_fail_fast_no_writes(self):
        chain = make_chain(allowance=500_000)

        with pytest.raises(InsufficientAllowance) as exc_info:
            _manager(chain, AllowancePolicy.FAIL_FAST).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1_000_000)

        assert exc_info.value.details["required"] == "1000000"
        assert exc_info.value.details["current"] == "500000"
        assert ROUTER in exc_info.value.message
        chain.send_transaction.assert_not_called()

    def test_reverted_approval(self):
        chain = make_chain(allowance=0)
        chain.send_transaction.return_value = APPROVAL_HASH
        chain.wait_for_receipt.return_value = {"status": 0, "blockNumber": 99}

        with pytest.raises(ApprovalFailed) as exc_info:
            _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1)
        assert exc_info.value.tx_hash == APPROVAL_HASH
        assert "reverted" in exc_info.value.message

    def test_approval_not_confirmed(self):
        chain = make_chain(allowance=0)
        chain.send_transaction.return_value = APPROVAL_HASH
        chain.wait_for_receipt.side_effect = TransactionError.confirmation_timeout(APPROVAL_HASH, 60)

        with pytest.raises(ApprovalTimeout) as exc_info:
            _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1)
        assert exc_info.value.tx_hash == APPROVAL_HASH
        assert exc_info.value.recoverable is True

    def test_receipt_read_failure(self):
        chain = make_chain(allowance=0)
        chain.send_transaction.return_value = APPROVAL_HASH
        chain.wait_for_receipt.side_effect = ChainReadError.failed("wait_for_receipt", Exception("502"))

        with pytest.raises(ApprovalFailed) as exc_info:
            _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1)
        assert exc_info.value.tx_hash == APPROVAL_HASH

    def test_approval_rejected(self):
        chain = make_chain(allowance=0)
        chain.send_transaction.side_effect = SubmissionError("insufficient funds for gas")

        with pytest.raises(ApprovalFailed) as exc_info:
            _manager(chain).ensure_allowance(TOKEN_A, WALLET, ROUTER, 1)
        assert exc_info.value.tx_hash is None
        assert "insufficient funds" in exc_info.value.message
        chain.wait_for_receipt.assert_not_called()


class TestApprove:

    def test_default_amount_is_max(self):
        chain = make_chain()
        chain.send_transaction.return_value = APPROVAL_HASH

        outcome = _manager(chain).approve(TOKEN_A, ROUTER)

        assert outcome.tx_hash == APPROVAL_HASH
        assert outcome.amount == MAX_UINT256
        chain.encode_call.assert_called_once_with(TOKEN_A, ERC20_ABI, "approve", [ROUTER, MAX_UINT256])
        # Broadcast only
        chain.wait_for_receipt.assert_not_called()

    def test_explicit_amount(self):
        chain = make_chain()
        outcome = _manager(chain).approve(TOKEN_A, ROUTER, 1234)

        assert outcome.amount == 1234
        chain.encode_call.assert_called_once_with(TOKEN_A, ERC20_ABI, "approve", [ROUTER, 1234])

    def test_gas_fallback(self):
        chain = make_chain()
        chain.estimate_gas.side_effect = ChainReadError.failed("estimate_gas", Exception("execution reverted"))

        _manager(chain).approve(TOKEN_A, ROUTER)

        _, kwargs = chain.send_transaction.call_args
        assert kwargs["gas"] == APPROVAL_FALLBACK_GAS

    def test_invalid_spender(self):
        chain = make_chain()
        with pytest.raises(InvalidAddress):
            _manager(chain).approve(TOKEN_A, "spender")
        chain.send_transaction.assert_not_called()
