"""
Send tool handler.
"""

from __future__ import annotations

from typing import Any

from ..api.mailbox_api import get_operations
from ..helpers import ErrorCategory, ToolResult, json_result, log_and_format_error
from ..validation import opt_email_list, opt_string, req_string, validate_email_list


async def send_message(args: dict[str, Any]) -> ToolResult:
  try:
    to = validate_email_list(args.get("to"), "to")
    subject = req_string(args, "subject", "Subject cannot be empty")
    body = req_string(args, "body", "Message body cannot be empty")
    html = opt_string(args, "html")
    cc = opt_email_list(args, "cc")
    bcc = opt_email_list(args, "bcc")

    result = await get_operations().send_message(to, subject, body, html=html, cc=cc, bcc=bcc)
    return ToolResult(
      content=json_result(result.model_dump()).content,
      is_error=not result.success,
    )
  except Exception as e:
    return log_and_format_error("send_message", e, ErrorCategory.SEND)
