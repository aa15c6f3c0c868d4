"""
Label (folder) management tool handlers.
"""

from __future__ import annotations

from typing import Any

from ..api.mailbox_api import get_operations
from ..helpers import ErrorCategory, ToolResult, json_result, log_and_format_error
from ..validation import validate_label, validate_label_list, validate_uid


async def list_labels(args: dict[str, Any]) -> ToolResult:
  try:
    labels = await get_operations().list_labels()
    return json_result({"success": True, "count": len(labels), "labels": labels})
  except Exception as e:
    return log_and_format_error("list_labels", e, ErrorCategory.LABEL)


async def create_label(args: dict[str, Any]) -> ToolResult:
  try:
    label = validate_label(args.get("label"))
    result = await get_operations().create_label(label)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("create_label", e, ErrorCategory.LABEL)


async def delete_label(args: dict[str, Any]) -> ToolResult:
  try:
    label = validate_label(args.get("label"))
    result = await get_operations().delete_label(label)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("delete_label", e, ErrorCategory.LABEL)


async def rename_label(args: dict[str, Any]) -> ToolResult:
  try:
    old_name = validate_label(args.get("old_name"), "old_name")
    new_name = validate_label(args.get("new_name"), "new_name")
    result = await get_operations().rename_label(old_name, new_name)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("rename_label", e, ErrorCategory.LABEL)


async def move_label(args: dict[str, Any]) -> ToolResult:
  try:
    label = validate_label(args.get("label"))
    new_parent = args.get("new_parent")
    if not isinstance(new_parent, str):
      new_parent = ""
    result = await get_operations().move_label(label, new_parent.strip())
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("move_label", e, ErrorCategory.LABEL)


async def label_message(args: dict[str, Any]) -> ToolResult:
  try:
    uid = validate_uid(args.get("message_id"))
    labels = validate_label_list(args.get("labels"))
    result = await get_operations().label_message(uid, labels)
    return json_result(result.model_dump())
  except Exception as e:
    return log_and_format_error("label_message", e, ErrorCategory.LABEL)
