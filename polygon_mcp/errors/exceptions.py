"""
Exception definitions for the Polygon MCP tool server
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for tool operations

    1xxx - Input validation errors
    2xxx - Credential/configuration errors
    3xxx - Quote service errors
    4xxx - Chain read errors
    5xxx - Allowance/approval errors
    6xxx - Gas estimation errors
    7xxx - Transaction errors
    8xxx - Signer errors
    9xxx - Tool dispatch errors
    """
    # Input validation
    INVALID_ADDRESS = "1001"
    INVALID_ARGUMENT = "1002"

    # Credentials / configuration
    CREDENTIALS_MISSING = "2001"
    CONFIG_INVALID = "2002"
    CONFIG_MISSING = "2003"

    # Quote service
    QUOTE_UNAVAILABLE = "3001"
    QUOTE_NETWORK_ERROR = "3002"
    QUOTE_TIMEOUT = "3003"
    QUOTE_REQUEST_INVALID = "3004"

    # Chain reads
    RPC_READ_FAILED = "4001"
    RPC_TIMEOUT = "4002"
    ALLOWANCE_CHECK_FAILED = "4003"

    # Allowance / approval
    INSUFFICIENT_ALLOWANCE = "5001"
    APPROVAL_FAILED = "5002"
    APPROVAL_TIMEOUT = "5003"

    # Gas
    GAS_ESTIMATION_FAILED = "6001"

    # Transactions
    TX_SUBMISSION_FAILED = "7001"
    TX_CONFIRMATION_TIMEOUT = "7002"
    TX_REVERTED = "7003"

    # Signer
    SIGNER_NOT_CONFIGURED = "8001"
    SIGNER_FAILED = "8002"

    # Tool dispatch
    TOOL_NOT_FOUND = "9001"


class PolygonMcpError(Exception):
    """
    Base exception for all tool server errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the caller may succeed by re-invoking
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation may be re-invoked by the caller"""
        return self.recoverable

    def to_dict(self) -> dict:
        """Serializable form used in tool error payloads"""
        return {
            "error": self.message,
            "code": self.code.value,
            "type": self.__class__.__name__,
            "recoverable": self.recoverable,
            "details": self.details,
        }


class InvalidAddress(PolygonMcpError):
    """
    Malformed account or contract address

    Raised before any network or chain interaction.
    """

    def __init__(self, field_name: str, value: object):
        super().__init__(
            f"Invalid {field_name}: {value}",
            ErrorCode.INVALID_ADDRESS,
            details={"field": field_name, "value": str(value)},
        )
        self.field_name = field_name
        self.value = value


class InvalidArgument(PolygonMcpError):
    """Malformed non-address tool argument (amount, slippage, ABI, ...)"""

    def __init__(self, field_name: str, reason: str):
        super().__init__(
            f"Invalid {field_name}: {reason}",
            ErrorCode.INVALID_ARGUMENT,
            details={"field": field_name},
        )
        self.field_name = field_name


class CredentialsMissing(PolygonMcpError):
    """No API key was supplied per call and no process default is configured"""

    def __init__(self, service: str = "1inch", env_var: str = "ONE_INCH_API_KEY"):
        super().__init__(
            f"API key is required for {service} swap. Pass apiKey or set {env_var}.",
            ErrorCode.CREDENTIALS_MISSING,
            details={"service": service, "env_var": env_var},
        )


class ConfigurationError(PolygonMcpError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str, hint: str = "") -> "ConfigurationError":
        message = f"Missing required configuration: {param}"
        if hint:
            message = f"{message}. {hint}"
        return cls(message, ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)


class QuoteUnavailable(PolygonMcpError):
    """
    Quote service answered but did not produce a usable quote

    Raised when:
    - The service returns a non-2xx status (body surfaced verbatim)
    - A 2xx response body is not JSON or lacks the transaction fields
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.QUOTE_UNAVAILABLE,
            recoverable=status_code is not None and status_code >= 500,
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body

    @classmethod
    def http_status(cls, status_code: int, body: str) -> "QuoteUnavailable":
        return cls(
            f"1inch API returned HTTP {status_code}: {body}",
            status_code=status_code,
            body=body,
        )

    @classmethod
    def malformed(cls, reason: str, body: Optional[str] = None) -> "QuoteUnavailable":
        return cls(f"1inch API returned a malformed quote: {reason}", body=body)


class QuoteNetworkError(PolygonMcpError):
    """
    No response received from the quote service - recoverable by re-invoking
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.QUOTE_NETWORK_ERROR,
        original_error: Optional[Exception] = None,
        url: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"url": url} if url else None,
        )
        self.url = url


class QuoteTimeout(QuoteNetworkError):
    """Quote request exceeded its timeout"""

    def __init__(self, url: str, timeout_seconds: float, original_error: Optional[Exception] = None):
        super().__init__(
            f"1inch API request timed out after {timeout_seconds}s",
            code=ErrorCode.QUOTE_TIMEOUT,
            original_error=original_error,
            url=url,
        )
        self.timeout_seconds = timeout_seconds


class QuoteRequestInvalid(PolygonMcpError):
    """The quote request could not be constructed locally"""

    def __init__(self, reason: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Could not build 1inch API request: {reason}",
            ErrorCode.QUOTE_REQUEST_INVALID,
            original_error=original_error,
        )


class ChainReadError(PolygonMcpError):
    """
    Chain read errors

    Raised when:
    - A contract call reverts
    - The RPC node is unreachable
    - The RPC request times out
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_READ_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def failed(cls, operation: str, error: Exception, endpoint: Optional[str] = None) -> "ChainReadError":
        return cls(
            f"Chain read '{operation}' failed: {error}",
            ErrorCode.RPC_READ_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, operation: str, timeout_seconds: float, endpoint: Optional[str] = None) -> "ChainReadError":
        return cls(
            f"Chain read '{operation}' timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )


class AllowanceCheckFailed(ChainReadError):
    """Reading the current ERC-20 allowance failed"""

    def __init__(self, token: str, owner: str, spender: str, error: Exception):
        super().__init__(
            f"Failed to check approval amount for {token}: {error}",
            ErrorCode.ALLOWANCE_CHECK_FAILED,
            original_error=error,
        )
        self.details.update({"token": token, "owner": owner, "spender": spender})


class InsufficientAllowance(PolygonMcpError):
    """Allowance is below the swap amount and the policy forbids raising it inline"""

    def __init__(self, token: str, spender: str, required: int, current: int):
        super().__init__(
            "Insufficient token approval. Please use the approve_token tool first with these parameters:\n"
            f"- tokenAddress: {token}\n"
            f"- spenderAddress: {spender}\n"
            f"- amount: at least {required} wei",
            ErrorCode.INSUFFICIENT_ALLOWANCE,
            details={
                "token": token,
                "spender": spender,
                "required": str(required),
                "current": str(current),
            },
        )


class ApprovalFailed(PolygonMcpError):
    """
    Approval transaction rejected, or mined with a non-success status
    """

    def __init__(self, token: str, spender: str, reason: str, tx_hash: Optional[str] = None):
        super().__init__(
            f"Failed to approve token {token} for {spender}: {reason}",
            ErrorCode.APPROVAL_FAILED,
            details={"token": token, "spender": spender, "tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash


class ApprovalTimeout(PolygonMcpError):
    """Approval was broadcast but its receipt did not arrive in time"""

    def __init__(self, token: str, tx_hash: str, timeout_seconds: float):
        super().__init__(
            f"Approval {tx_hash} for {token} not confirmed after {timeout_seconds}s",
            ErrorCode.APPROVAL_TIMEOUT,
            recoverable=True,
            details={"token": token, "tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash


class GasEstimationFailed(PolygonMcpError):
    """
    Live gas estimation failed

    Only ever returned as a value by the gas estimator; the fallback gas limit
    is applied instead of raising.
    """

    def __init__(self, error: Exception):
        super().__init__(
            f"Gas estimation failed: {error}",
            ErrorCode.GAS_ESTIMATION_FAILED,
            recoverable=True,
            original_error=error,
        )


class SubmissionError(PolygonMcpError):
    """Transaction was rejected before broadcast (nonce, funds, signature)"""

    def __init__(self, error: str, original_error: Optional[Exception] = None):
        # Some send failures are recoverable (network issues)
        lowered = error.lower()
        recoverable = "timeout" in lowered or "connection" in lowered
        super().__init__(
            f"Failed to send transaction: {error}",
            ErrorCode.TX_SUBMISSION_FAILED,
            recoverable=recoverable,
            original_error=original_error,
        )


class TransactionError(PolygonMcpError):
    """
    Errors after broadcast, only raised when waiting for confirmation
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        tx_hash: Optional[str] = None,
        recoverable: bool = False,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            details={"tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash

    @classmethod
    def confirmation_timeout(cls, tx_hash: str, timeout_seconds: float) -> "TransactionError":
        return cls(
            f"Transaction {tx_hash} not confirmed after {timeout_seconds}s",
            ErrorCode.TX_CONFIRMATION_TIMEOUT,
            tx_hash=tx_hash,
            recoverable=True,
        )

    @classmethod
    def reverted(cls, tx_hash: str) -> "TransactionError":
        return cls(
            f"Transaction {tx_hash} reverted",
            ErrorCode.TX_REVERTED,
            tx_hash=tx_hash,
        )


class SignerError(PolygonMcpError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Set SEED_PHRASE or EVM_PRIVATE_KEY.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class ToolNotFound(PolygonMcpError):
    """Unknown MCP tool name"""

    def __init__(self, name: str):
        super().__init__(
            f"Tool {name} not found",
            ErrorCode.TOOL_NOT_FOUND,
            details={"tool": name},
        )
        self.name = name
