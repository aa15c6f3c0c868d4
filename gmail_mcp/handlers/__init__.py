"""Handler dispatch table: maps tool names to handler functions."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from ..helpers import ToolResult
from . import label, message, send

Handler = Callable[[dict[str, Any]], Awaitable[ToolResult]]

DISPATCH: dict[str, Handler] = {}

for mod in (message, label, send):
  for name, fn in inspect.getmembers(mod, inspect.iscoroutinefunction):
    if fn.__module__ == mod.__name__ and not name.startswith("_"):
      DISPATCH[name] = fn


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
  """Look up and execute a tool handler by name."""
  # Accept "list-labels" as well as "list_labels"
  handler = DISPATCH.get(name.replace("-", "_"))
  if handler is None:
    return ToolResult(content=f"Unknown tool: {name}", is_error=True)
  return await handler(arguments)
