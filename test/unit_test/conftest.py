"""
Shared fixtures for unit tests.

No test touches the network: the chain is a Mock and the 1inch API runs on
httpx.MockTransport.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from polygon_mcp.protocols.oneinch import OneInchAPI, QuoteResolver


# Digit-only addresses are their own checksum form
WALLET = "0x1111111111111111111111111111111111111111"
ROUTER = "0x2222222222222222222222222222222222222222"
TOKEN_A = "0x3333333333333333333333333333333333333333"
TOKEN_B = "0x4444444444444444444444444444444444444444"
RECIPIENT = "0x5555555555555555555555555555555555555555"

APPROVAL_HASH = "0x" + "aa" * 32
SWAP_HASH = "0x" + "bb" * 32

BASE_URL = "https://api.1inch.dev/swap/v6.0"


def make_chain(allowance: int = 0, estimate: int = 250000, chain_id: int = 137) -> Mock:
    """Mock ChainClient bound to WALLET"""
    chain = Mock()
    chain.address = WALLET
    chain.chain_id = chain_id
    chain.explorer_url.side_effect = lambda tx_hash: f"https://polygonscan.com/tx/{tx_hash}"
    chain.allowance.return_value = allowance
    chain.estimate_gas.return_value = estimate
    chain.encode_call.return_value = "0x095ea7b3"
    chain.send_transaction.return_value = SWAP_HASH
    chain.wait_for_receipt.return_value = {"status": 1, "blockNumber": 1234}
    return chain


def swap_response(to: str = ROUTER, gas=0, value: str = "0", **extra) -> dict:
    """1inch /swap response body"""
    body = {
        "srcToken": {"symbol": "SRC", "decimals": 18},
        "dstToken": {"symbol": "DST", "decimals": 6},
        "dstAmount": "2500000",
        "tx": {
            "from": WALLET,
            "to": to,
            "data": "0x12aa3caf",
            "value": value,
            "gas": gas,
            "gasPrice": "30000000000",
        },
    }
    body.update(extra)
    return body


class RecordingHandler:
    """MockTransport handler that records requests and replays one response"""

    def __init__(self, status_code: int = 200, json_body=None, text=None, exc=None):
        self.requests = []
        self.status_code = status_code
        self.json_body = json_body if json_body is not None else swap_response()
        self.text = text
        self.exc = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


def make_api(handler, api_key="test-key-123456") -> OneInchAPI:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return OneInchAPI(chain_id=137, api_key=api_key, base_url=BASE_URL, timeout=5, client=client)


def make_resolver(handler, api_key="test-key-123456") -> QuoteResolver:
    return QuoteResolver(make_api(handler, api_key=api_key))


@pytest.fixture
def chain():
    return make_chain()
