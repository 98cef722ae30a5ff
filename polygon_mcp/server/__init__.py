"""
MCP server exposing the wallet, contract and swap tools over stdio
"""

from .handlers import ToolContext, TOOL_HANDLERS, dispatch
from .tools import TOOLS, get_tools

__all__ = [
    "ToolContext",
    "TOOL_HANDLERS",
    "dispatch",
    "TOOLS",
    "get_tools",
]
