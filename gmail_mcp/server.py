"""
MCP server exposing the Gmail mailbox operations.

Uses the official `mcp` Python SDK. Handles tools/list and tools/call over
stdio; stdout belongs to the transport, so all logging goes to stderr.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .handlers import dispatch_tool
from .tools import ALL_TOOLS

log = logging.getLogger("gmail_mcp.server")

SERVER_NAME = "gmail-mcp"


def create_mcp_server() -> Server:
  """Create and configure the MCP server with all tool handlers."""
  server = Server(SERVER_NAME)

  @server.list_tools()
  async def list_tools() -> list[Tool]:
    return ALL_TOOLS

  @server.call_tool()
  async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    args = arguments or {}
    result = await dispatch_tool(name, args)
    if result.is_error:
      # The SDK turns a raised exception into an isError tool result
      raise RuntimeError(result.content)
    return [TextContent(type="text", text=result.content)]

  return server


async def run_server() -> None:
  """Run the MCP server on stdio."""
  server = create_mcp_server()
  async with stdio_server() as (read_stream, write_stream):
    log.info("Gmail MCP server running on stdio")
    await server.run(read_stream, write_stream, server.create_initialization_options())
