"""
MCP stdio server

Tool calls run in worker threads, each under its own correlation ID. Results
are returned as a single JSON text item:

    {"success": true, "result": ...}
    {"success": false, "error": "...", "code": "...", "details": {...}}
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from ..config import config, setup_logging
from ..errors import PolygonMcpError
from ..infra.correlation import CorrelationContext
from .handlers import ToolContext, dispatch, get_handler
from .tools import get_tools

logger = logging.getLogger(__name__)

app = Server(config.server.name)

_context: Optional[ToolContext] = None
_context_lock = threading.Lock()


def get_context() -> ToolContext:
    """Build the shared tool context on first use"""
    global _context
    with _context_lock:
        if _context is None:
            _context = ToolContext.from_config()
        return _context


def set_context(ctx: Optional[ToolContext]) -> None:
    """Replace the shared tool context (None forces a rebuild)"""
    global _context
    with _context_lock:
        _context = ctx


def _json_response(payload: Dict[str, Any]) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, default=str))]


def _success_response(result: Any) -> List[TextContent]:
    return _json_response({"success": True, "result": result})


def _error_response(message: str, code: Optional[str] = None, details: Optional[dict] = None) -> List[TextContent]:
    payload: Dict[str, Any] = {"success": False, "error": message}
    if code is not None:
        payload["code"] = code
    if details:
        payload["details"] = details
    return _json_response(payload)


def _run_tool(name: str, arguments: Dict[str, Any]) -> Any:
    with CorrelationContext(name) as cid:
        logger.info(f"[{cid}] Calling tool {name}")
        return dispatch(get_context(), name, arguments)


@app.list_tools()
async def list_tools() -> List[Tool]:
    return get_tools()


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> List[TextContent]:
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        return _error_response("Invalid arguments. Expected an object.")

    try:
        get_handler(name)
        result = await asyncio.to_thread(_run_tool, name, arguments)
        return _success_response(result)
    except PolygonMcpError as exc:
        logger.error(f"Tool {name} failed: {exc}")
        return _error_response(exc.message, exc.code.value, exc.details)
    except Exception as exc:  # noqa: BLE001
        logger.exception(f"Tool {name} raised an unexpected error")
        return _error_response(str(exc))


async def main() -> None:
    setup_logging()
    logger.info(f"Starting {config.server.name}")
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run() -> None:
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
