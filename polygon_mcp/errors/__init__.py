"""
Error definitions for the Polygon MCP tool server
"""

from .exceptions import (
    ErrorCode,
    PolygonMcpError,
    InvalidAddress,
    InvalidArgument,
    CredentialsMissing,
    ConfigurationError,
    QuoteUnavailable,
    QuoteNetworkError,
    QuoteTimeout,
    QuoteRequestInvalid,
    ChainReadError,
    AllowanceCheckFailed,
    InsufficientAllowance,
    ApprovalFailed,
    ApprovalTimeout,
    GasEstimationFailed,
    SubmissionError,
    TransactionError,
    SignerError,
    ToolNotFound,
)

__all__ = [
    "ErrorCode",
    "PolygonMcpError",
    "InvalidAddress",
    "InvalidArgument",
    "CredentialsMissing",
    "ConfigurationError",
    "QuoteUnavailable",
    "QuoteNetworkError",
    "QuoteTimeout",
    "QuoteRequestInvalid",
    "ChainReadError",
    "AllowanceCheckFailed",
    "InsufficientAllowance",
    "ApprovalFailed",
    "ApprovalTimeout",
    "GasEstimationFailed",
    "SubmissionError",
    "TransactionError",
    "SignerError",
    "ToolNotFound",
]
