"""
Message list/search/flag/move tool handlers.
"""

from __future__ import annotations

from typing import Any

from ..api.mailbox_api import get_operations
from ..client.query import INBOX
from ..helpers import ErrorCategory, ToolResult, json_result, log_and_format_error, summarize_message
from ..validation import opt_count, opt_string, req_string, validate_label, validate_uid, validate_uid_list


async def list_messages(args: dict[str, Any]) -> ToolResult:
  try:
    count = opt_count(args)
    messages = await get_operations().list_messages(count)
    return json_result({
      "success": True,
      "count": len(messages),
      "messages": [summarize_message(m) for m in messages],
    })
  except Exception as e:
    return log_and_format_error("list_messages", e, ErrorCategory.MSG)


async def list_unread(args: dict[str, Any]) -> ToolResult:
  try:
    count = opt_count(args)
    messages = await get_operations().list_unread_messages(count)
    return json_result({
      "success": True,
      "count": len(messages),
      "messages": [summarize_message(m) for m in messages],
    })
  except Exception as e:
    return log_and_format_error("list_unread", e, ErrorCategory.MSG)


async def find_message(args: dict[str, Any]) -> ToolResult:
  try:
    query = req_string(args, "query", "Search query cannot be empty")
    result = await get_operations().search_messages(query)
    payload: dict[str, Any] = {
      "success": True,
      "query": result.query,
      "total_count": result.total_count,
      "found_messages": len(result.messages),
      "messages": [summarize_message(m) for m in result.messages],
    }
    if result.skipped:
      payload["skipped"] = result.skipped
    return json_result(payload)
  except Exception as e:
    return log_and_format_error("find_message", e, ErrorCategory.SEARCH)


async def mark_as_read(args: dict[str, Any]) -> ToolResult:
  try:
    ids = validate_uid_list(args.get("message_ids"))
    result = await get_operations().mark_messages_as_read(ids)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("mark_as_read", e, ErrorCategory.FLAG)


async def delete_messages(args: dict[str, Any]) -> ToolResult:
  try:
    ids = validate_uid_list(args.get("message_ids"))
    result = await get_operations().delete_messages(ids)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("delete_messages", e, ErrorCategory.MSG)


async def move_message(args: dict[str, Any]) -> ToolResult:
  try:
    uid = validate_uid(args.get("message_id"))
    destination = validate_label(args.get("destination"), "destination")
    source = opt_string(args, "source") or INBOX
    result = await get_operations().move_message(uid, destination, source)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("move_message", e, ErrorCategory.MSG)
