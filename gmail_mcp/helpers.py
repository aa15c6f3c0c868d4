"""
Shared formatting and error handling helpers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import GmailMcpError

if TYPE_CHECKING:
  from .state.types import Message

log = logging.getLogger("gmail_mcp.helpers")


# ---------------------------------------------------------------------------
# Tool result
# ---------------------------------------------------------------------------


@dataclass
class ToolResult:
  content: str
  is_error: bool = False


def json_result(payload: dict[str, Any]) -> ToolResult:
  return ToolResult(content=json.dumps(payload, indent=2, default=str))


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def summarize_message(message: Message) -> dict[str, Any]:
  """The message fields returned to tool callers."""
  return {
    "id": message.id,
    "subject": message.subject,
    "from": message.from_,
    "date": message.date.isoformat(),
    "snippet": message.snippet,
  }


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


class ErrorCategory(str, Enum):
  MSG = "MSG"
  SEARCH = "SEARCH"
  FLAG = "FLAG"
  LABEL = "LABEL"
  SEND = "SEND"


def log_and_format_error(
  function_name: str,
  error: Exception,
  category: str | ErrorCategory | None = None,
) -> ToolResult:
  prefix = category.value if isinstance(category, ErrorCategory) else (category or "GEN")
  hash_val = sum(ord(c) for c in function_name) % 1000
  error_code = f"{prefix}-ERR-{hash_val:03d}"

  log.error("[MCP] Error in %s - Code: %s - %s", function_name, error_code, error)

  from .validation import ValidationError

  if isinstance(error, ValidationError):
    user_message = str(error)
  elif isinstance(error, GmailMcpError):
    user_message = f"{error} (code: {error_code})"
  else:
    user_message = f"An error occurred (code: {error_code}). Check logs for details."

  return ToolResult(content=user_message, is_error=True)
