"""
Protocol clients for external swap services
"""

from .oneinch import OneInchAPI, QuoteResolver

__all__ = [
    "OneInchAPI",
    "QuoteResolver",
]
