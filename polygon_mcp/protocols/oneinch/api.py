"""
1inch API Client

REST client for the 1inch swap aggregator (v6.0). Returns executable swap
transactions (router address, calldata, value, gas) for a single request.
Requests are never retried here; a failed quote is reported to the caller,
who may re-invoke the tool.
"""

import logging
from typing import Optional, Dict, Any

import httpx
from web3 import Web3

from ...types.result import Quote, SwapIntent
from ...types.evm_tokens import normalize_token
from ...config import config as global_config
from ...errors import (
    CredentialsMissing,
    QuoteUnavailable,
    QuoteNetworkError,
    QuoteTimeout,
    QuoteRequestInvalid,
)

logger = logging.getLogger(__name__)


def mask_api_key(api_key: str) -> str:
    """Keep only the edges of a key for log output"""
    if len(api_key) <= 8:
        return "***"
    return f"{api_key[:4]}...{api_key[-4:]}"


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class OneInchAPI:
    """
    1inch REST API client (v6.0)

    Usage:
        api = OneInchAPI(chain_id=137)
        quote = api.get_swap(
            src_token="0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE",
            dst_token="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
            amount=10**18,
            from_address="0xYourAddress",
            slippage=1,
        )

    Note:
        The API key may be passed per call; ONE_INCH_API_KEY is the default.
    """

    def __init__(
        self,
        chain_id: int = 137,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize 1inch API client

        Args:
            chain_id: Chain ID used in request paths
            api_key: Default API key (or set ONE_INCH_API_KEY env var)
            base_url: API base URL
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self._chain_id = chain_id
        self._api_key = api_key if api_key is not None else global_config.oneinch.api_key
        self._base_url = (base_url or global_config.oneinch.base_url).rstrip("/")
        self._timeout = timeout or global_config.oneinch.timeout
        self._client = client

    @property
    def chain_id(self) -> int:
        """Chain ID this client is configured for"""
        return self._chain_id

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def _build_url(self, endpoint: str, chain_id: Optional[int] = None) -> str:
        """Build full API URL"""
        return f"{self._base_url}/{chain_id or self._chain_id}/{endpoint}"

    def resolve_api_key(self, api_key: Optional[str] = None) -> str:
        """
        Pick the key for a request: per-call key first, then the default

        Raises:
            CredentialsMissing: If neither is present
        """
        key = api_key or self._api_key
        if not key:
            raise CredentialsMissing()
        return key

    def _make_request(
        self,
        endpoint: str,
        params: Dict[str, Any],
        api_key: str,
        chain_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Issue one GET request and decode the JSON body

        Raises:
            QuoteRequestInvalid: Request could not be built locally
            QuoteTimeout: No response within the timeout
            QuoteNetworkError: Any other transport failure
            QuoteUnavailable: Non-2xx status, or a body that is not a JSON object
        """
        client = self._get_client()
        url = self._build_url(endpoint, chain_id)
        headers = {
            "accept": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        logger.info(f"1inch request: GET {url} params={params} key={mask_api_key(api_key)}")

        try:
            request = client.build_request("GET", url, params=params, headers=headers)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise QuoteRequestInvalid(str(e), original_error=e) from e

        try:
            response = client.send(request)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text
            logger.warning(f"1inch API error: HTTP {e.response.status_code}: {body[:500]}")
            raise QuoteUnavailable.http_status(e.response.status_code, body) from e
        except httpx.TimeoutException as e:
            logger.warning(f"1inch API timeout: {url}")
            raise QuoteTimeout(url, self._timeout, original_error=e) from e
        except httpx.UnsupportedProtocol as e:
            raise QuoteRequestInvalid(str(e), original_error=e) from e
        except httpx.RequestError as e:
            logger.warning(f"1inch API request error: {e}")
            raise QuoteNetworkError(
                f"1inch API request failed: {e}",
                original_error=e,
                url=url,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteUnavailable.malformed("response body is not JSON", body=response.text) from e

        if not isinstance(data, dict):
            raise QuoteUnavailable.malformed("response body is not an object", body=response.text)

        return data

    def get_swap(
        self,
        src_token: str,
        dst_token: str,
        amount: int,
        from_address: str,
        slippage: Any = 1,
        api_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        disable_estimate: bool = True,
    ) -> Quote:
        """
        Get swap transaction data from 1inch

        Args:
            src_token: Source token address
            dst_token: Destination token address
            amount: Amount in atomic units
            from_address: Address that will send the swap
            slippage: Slippage tolerance in percent (1 = 1%)
            api_key: Per-call API key, overrides the default
            chain_id: Chain override for the request path
            disable_estimate: Skip 1inch's own balance/allowance simulation

        Returns:
            Quote with the executable transaction and quoted amounts

        Raises:
            CredentialsMissing: Before any HTTP call when no key is available
        """
        key = self.resolve_api_key(api_key)

        params = {
            "src": src_token,
            "dst": dst_token,
            "amount": str(amount),
            "from": from_address,
            "slippage": str(slippage),
        }
        if disable_estimate:
            params["disableEstimate"] = "true"

        data = self._make_request("swap", params, key, chain_id)
        return self._parse_swap(data, amount)

    @staticmethod
    def _parse_swap(data: Dict[str, Any], amount: int) -> Quote:
        tx = data.get("tx")
        if not isinstance(tx, dict):
            raise QuoteUnavailable.malformed("missing 'tx' object", body=str(data))
        if not tx.get("to") or not tx.get("data"):
            raise QuoteUnavailable.malformed("missing 'tx.to' or 'tx.data'", body=str(data))
        if not Web3.is_address(tx["to"]):
            raise QuoteUnavailable.malformed(f"'tx.to' is not an address: {tx['to']}", body=str(data))

        try:
            native_value = int(tx.get("value") or 0)
            suggested_gas = _optional_int(tx.get("gas"))
            from_amount = _optional_int(_first(data, "fromAmount", "srcAmount"))
            to_amount = _optional_int(_first(data, "toAmount", "dstAmount"))
        except (TypeError, ValueError) as e:
            raise QuoteUnavailable.malformed(f"non-numeric field: {e}", body=str(data)) from e

        return Quote(
            destination=tx["to"],
            call_data=tx["data"],
            native_value=native_value,
            suggested_gas=suggested_gas if suggested_gas and suggested_gas > 0 else None,
            from_token=_first(data, "fromToken", "srcToken"),
            to_token=_first(data, "toToken", "dstToken"),
            from_amount=from_amount if from_amount is not None else amount,
            to_amount=to_amount,
            protocols=data.get("protocols"),
            raw_response=data,
        )

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "OneInchAPI":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"OneInchAPI(chain_id={self._chain_id})"


class QuoteResolver:
    """
    Turns a validated SwapIntent into an executable Quote

    Token addresses are expected to be normalized already (see normalize_token).
    """

    def __init__(self, api: OneInchAPI):
        self._api = api

    @classmethod
    def from_config(cls, chain_id: Optional[int] = None) -> "QuoteResolver":
        return cls(OneInchAPI(chain_id=chain_id or global_config.rpc.chain_id))

    @property
    def api(self) -> OneInchAPI:
        return self._api

    def resolve_api_key(self, api_key: Optional[str] = None) -> str:
        return self._api.resolve_api_key(api_key)

    def normalize(self, address: str, chain_id: int) -> str:
        return normalize_token(address, chain_id)

    def resolve_quote(self, intent: SwapIntent, api_key: Optional[str] = None) -> Quote:
        """
        Request the swap transaction for an intent

        Side-effect free: any failure leaves chain state untouched.
        """
        return self._api.get_swap(
            src_token=intent.from_token,
            dst_token=intent.to_token,
            amount=intent.amount,
            from_address=intent.signer,
            slippage=_format_percent(intent.slippage_percent),
            api_key=api_key,
            chain_id=intent.chain_id,
        )


def _format_percent(value) -> str:
    """Decimal percent without exponent or trailing zeros ("1", "0.5")"""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
