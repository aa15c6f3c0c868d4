"""
Message tools: list, unread, search, mark read, delete, move.
"""

from __future__ import annotations

from mcp.types import Tool

_COUNT = {
  "type": "number",
  "description": "Number of messages to return (1-100)",
  "minimum": 1,
  "maximum": 100,
  "default": 10,
}

_MESSAGE_IDS = {
  "type": "array",
  "items": {"type": "string", "minLength": 1},
  "minItems": 1,
  "description": "Message UIDs",
}

message_tools: list[Tool] = [
  Tool(
    name="list_messages",
    description="List recent messages from Gmail inbox",
    inputSchema={"type": "object", "properties": {"count": _COUNT}},
  ),
  Tool(
    name="list_unread",
    description="List unread messages from Gmail inbox",
    inputSchema={"type": "object", "properties": {"count": _COUNT}},
  ),
  Tool(
    name="find_message",
    description=(
      "Search for messages containing specific words or phrases. "
      "Prefix with in:<folder> (sent, trash, spam, drafts, starred, important, all) "
      "to search outside the inbox"
    ),
    inputSchema={
      "type": "object",
      "properties": {
        "query": {"type": "string", "minLength": 1, "description": "Search query"},
      },
      "required": ["query"],
    },
  ),
  Tool(
    name="mark_as_read",
    description="Mark specified messages as read",
    inputSchema={
      "type": "object",
      "properties": {"message_ids": _MESSAGE_IDS},
      "required": ["message_ids"],
    },
  ),
  Tool(
    name="delete_messages",
    description="Move specified inbox messages to the trash",
    inputSchema={
      "type": "object",
      "properties": {"message_ids": _MESSAGE_IDS},
      "required": ["message_ids"],
    },
  ),
  Tool(
    name="move_message",
    description="Move a message from one folder to another",
    inputSchema={
      "type": "object",
      "properties": {
        "message_id": {"type": "string", "description": "The UID of the message"},
        "destination": {"type": "string", "description": "Destination folder or label"},
        "source": {"type": "string", "description": "Source folder", "default": "INBOX"},
      },
      "required": ["message_id", "destination"],
    },
  ),
]
