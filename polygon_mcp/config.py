"""
Configuration management for the Polygon MCP tool server

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import sys
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from the working directory or project root"""
    for candidate in (Path.cwd() / ".env", Path(__file__).parent.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate)
            return


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class RpcConfig:
    """Chain RPC configuration"""
    url: str = field(default_factory=lambda: _get_env("POLYGON_RPC_URL", "https://polygon-rpc.com"))
    chain_id: int = field(default_factory=lambda: _get_env_int("CHAIN_ID", 137))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))


@dataclass
class WalletConfig:
    """Signer material for the server wallet (seed phrase takes precedence)"""
    seed_phrase: Optional[str] = field(default_factory=lambda: _get_env("SEED_PHRASE", None))
    private_key: Optional[str] = field(default_factory=lambda: _get_env("EVM_PRIVATE_KEY", None))
    # Standard BIP-44 Ethereum path, first account
    derivation_path: str = field(default_factory=lambda: _get_env("HD_DERIVATION_PATH", "m/44'/60'/0'/0/0"))


@dataclass
class OneInchConfig:
    """1inch Swap API (v6.0) configuration"""
    base_url: str = field(default_factory=lambda: _get_env("ONE_INCH_BASE_URL", "https://api.1inch.dev/swap/v6.0"))
    api_key: Optional[str] = field(default_factory=lambda: _get_env("ONE_INCH_API_KEY", None))
    timeout: float = field(default_factory=lambda: _get_env_float("ONE_INCH_TIMEOUT", 30.0))


@dataclass
class TxConfig:
    """Transaction fee and confirmation settings"""
    # Polygon PoS enforces a minimum priority fee of 25-30 gwei
    priority_fee_gwei: float = field(default_factory=lambda: _get_env_float("PRIORITY_FEE_GWEI", 30.0))
    # maxFeePerGas = base_fee * multiplier + priority fee
    base_fee_multiplier: float = field(default_factory=lambda: _get_env_float("BASE_FEE_MULTIPLIER", 2.0))
    approval_timeout: float = field(default_factory=lambda: _get_env_float("APPROVAL_TIMEOUT_SECONDS", 120.0))
    receipt_timeout: float = field(default_factory=lambda: _get_env_float("RECEIPT_TIMEOUT_SECONDS", 120.0))
    receipt_poll_interval: float = field(default_factory=lambda: _get_env_float("RECEIPT_POLL_INTERVAL", 2.0))


@dataclass
class SwapConfig:
    """Default swap parameters"""
    # Percent, as accepted by the inch_swap tool (1 = 1%)
    default_slippage: float = field(default_factory=lambda: _get_env_float("DEFAULT_SLIPPAGE", 1.0))
    # 0 means the chain the RPC endpoint reports
    default_chain_id: int = field(default_factory=lambda: _get_env_int("DEFAULT_CHAIN_ID", 0))
    # "auto_approve" or "fail_fast"
    allowance_policy: str = field(default_factory=lambda: _get_env("ALLOWANCE_POLICY", "auto_approve"))
    wait_for_confirmation: bool = field(default_factory=lambda: _get_env_bool("SWAP_WAIT_FOR_CONFIRMATION", False))


@dataclass
class ServerConfig:
    """MCP server identity"""
    name: str = field(default_factory=lambda: _get_env("MCP_SERVER_NAME", "Polygon MCP Server"))


@dataclass
class LoggingConfig:
    """
    Logging configuration with optional file output and correlation ID support.

    Console output goes to stderr; stdout carries the MCP stdio protocol.

    Environment variables:
        LOG_FILE: Path to log file (file logging disabled when empty)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable stderr output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)

    Example .env:
        LOG_LEVEL=DEBUG
        LOG_FILE=log/polygon_mcp.log
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))

    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))

    # Available placeholders: %(asctime)s, %(name)s, %(levelname)s, %(message)s
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))

    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))

    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Loads all settings from environment variables and .env file.

    Usage:
        from polygon_mcp.config import config

        print(config.rpc.url)
        print(config.oneinch.base_url)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    oneinch: OneInchConfig = field(default_factory=OneInchConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "polygon_mcp",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or stderr output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: polygon_mcp)

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close handlers before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Don't let records reach a root handler that might write to stdout
    logger.propagate = False

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger
