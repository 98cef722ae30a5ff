"""
Test Infrastructure Module

Tests for correlation IDs and configuration loading.
"""

import logging
import sys
import threading
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from polygon_mcp.config import (
    Config,
    get_config,
    reload_config,
    LoggingConfig,
    SwapConfig,
    setup_logging,
)
from polygon_mcp.infra.correlation import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    log_with_correlation,
)
from polygon_mcp.modules.allowance import AllowancePolicy


def test_correlation_id_generation():
    """Test generated IDs are short and unique"""
    print("Testing correlation ID generation...")

    ids = {generate_correlation_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(cid) == 12 for cid in ids)

    print("  correlation ID generation: PASSED")


def test_correlation_context():
    """Test CorrelationContext scopes the ID"""
    print("Testing CorrelationContext...")

    assert get_correlation_id() is None
    with CorrelationContext("inch_swap") as cid:
        assert cid.startswith("inch_swap_")
        assert get_correlation_id() == cid
        with CorrelationContext() as inner:
            assert get_correlation_id() == inner
        assert get_correlation_id() == cid
    assert get_correlation_id() is None

    print("  CorrelationContext: PASSED")


def test_correlation_per_thread():
    """IDs set in one thread are not seen by another"""
    seen = []

    def worker():
        seen.append(get_correlation_id())

    with CorrelationContext("call"):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

    assert seen == [None]


def test_log_with_correlation(caplog):
    """Test log lines carry the correlation ID and operation"""
    logger = logging.getLogger("polygon_mcp.test_correlation")

    with caplog.at_level(logging.INFO, logger="polygon_mcp.test_correlation"):
        with CorrelationContext("inch_swap") as cid:
            log_with_correlation(logger, logging.INFO, "quoting -> checking_allowance", "inch_swap")
        log_with_correlation(logger, logging.INFO, "no context", "inch_swap")

    first, second = caplog.records
    assert first.getMessage() == f"[{cid}] [inch_swap] quoting -> checking_allowance"
    assert first.correlation_id == cid
    assert first.operation == "inch_swap"
    assert second.getMessage() == "[inch_swap] no context"


def test_config_from_env(monkeypatch):
    """Test configuration is read from the environment"""
    print("Testing config from env...")

    monkeypatch.setenv("POLYGON_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("CHAIN_ID", "80002")
    monkeypatch.setenv("ONE_INCH_API_KEY", "env-key-123456")
    monkeypatch.setenv("DEFAULT_SLIPPAGE", "0.5")
    monkeypatch.setenv("ALLOWANCE_POLICY", "fail_fast")
    monkeypatch.setenv("SWAP_WAIT_FOR_CONFIRMATION", "true")

    cfg = Config()
    assert cfg.rpc.url == "https://rpc.example"
    assert cfg.rpc.chain_id == 80002
    assert cfg.oneinch.api_key == "env-key-123456"
    assert cfg.swap.default_slippage == 0.5
    assert AllowancePolicy.from_string(cfg.swap.allowance_policy) == AllowancePolicy.FAIL_FAST
    assert cfg.swap.wait_for_confirmation is True

    print("  config from env: PASSED")


def test_config_defaults(monkeypatch):
    """Test defaults when the environment is empty"""
    for key in ("DEFAULT_SLIPPAGE", "DEFAULT_CHAIN_ID", "ALLOWANCE_POLICY", "SWAP_WAIT_FOR_CONFIRMATION"):
        monkeypatch.delenv(key, raising=False)

    swap = SwapConfig()
    assert swap.default_slippage == 1.0
    assert swap.default_chain_id == 0
    assert swap.allowance_policy == "auto_approve"
    assert swap.wait_for_confirmation is False


def test_invalid_numeric_env_falls_back(monkeypatch):
    monkeypatch.setenv("DEFAULT_SLIPPAGE", "lots")
    monkeypatch.setenv("DEFAULT_CHAIN_ID", "polygon")

    swap = SwapConfig()
    assert swap.default_slippage == 1.0
    assert swap.default_chain_id == 0


def test_reload_config(monkeypatch):
    """reload_config re-reads the environment and replaces the global instance"""
    import polygon_mcp.config as config_module
    monkeypatch.setattr(config_module, "config", config_module.config)
    monkeypatch.setenv("CHAIN_ID", "80002")
    monkeypatch.setenv("DEFAULT_SLIPPAGE", "2.5")

    previous = get_config()
    reloaded = reload_config()

    assert reloaded is not previous
    assert get_config() is reloaded
    assert reloaded.rpc.chain_id == 80002
    assert reloaded.swap.default_slippage == 2.5


def test_setup_logging_stderr_only(tmp_path):
    """Console logging goes to stderr; a file handler only when LOG_FILE is set"""
    name = "polygon_mcp_test_logging"

    logger = setup_logging(LoggingConfig(log_file="", log_level="DEBUG", console_output=True), name)
    assert len(logger.handlers) == 1
    assert logger.handlers[0].stream is sys.stderr
    assert logger.level == logging.DEBUG
    assert logger.propagate is False

    log_file = tmp_path / "log" / "polygon_mcp.log"
    logger = setup_logging(LoggingConfig(log_file=str(log_file), console_output=False), name)
    assert len(logger.handlers) == 1
    assert log_file.parent.exists()

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


if __name__ == "__main__":
    print("=" * 60)
    print("Infrastructure Tests")
    print("=" * 60)

    test_correlation_id_generation()
    test_correlation_context()

    print("=" * 60)
    print("All tests passed!")
