"""
1inch Swap Protocol Client

Provides quote resolution via the 1inch aggregator for Polygon.

Usage:
    from polygon_mcp.protocols.oneinch import OneInchAPI, QuoteResolver

    resolver = QuoteResolver(OneInchAPI(chain_id=137))
    quote = resolver.resolve_quote(intent)
"""

from .api import OneInchAPI, QuoteResolver, mask_api_key

__all__ = [
    "OneInchAPI",
    "QuoteResolver",
    "mask_api_key",
]
