"""
Label management tools.
"""

from __future__ import annotations

from mcp.types import Tool

label_tools: list[Tool] = [
  Tool(
    name="list_labels",
    description="List all Gmail labels (folders) as full paths",
    inputSchema={"type": "object", "properties": {}},
  ),
  Tool(
    name="create_label",
    description="Create a new label",
    inputSchema={
      "type": "object",
      "properties": {"label": {"type": "string", "description": "Label path, e.g. Work/Projects"}},
      "required": ["label"],
    },
  ),
  Tool(
    name="delete_label",
    description="Delete a label",
    inputSchema={
      "type": "object",
      "properties": {"label": {"type": "string", "description": "Label path"}},
      "required": ["label"],
    },
  ),
  Tool(
    name="rename_label",
    description="Rename a label",
    inputSchema={
      "type": "object",
      "properties": {
        "old_name": {"type": "string", "description": "Current label path"},
        "new_name": {"type": "string", "description": "New label path"},
      },
      "required": ["old_name", "new_name"],
    },
  ),
  Tool(
    name="move_label",
    description="Move a label under a new parent label, keeping its own name",
    inputSchema={
      "type": "object",
      "properties": {
        "label": {"type": "string", "description": "Label path to move"},
        "new_parent": {
          "type": "string",
          "description": "New parent label path (empty for top level)",
        },
      },
      "required": ["label", "new_parent"],
    },
  ),
  Tool(
    name="label_message",
    description="Apply one or more labels to a message",
    inputSchema={
      "type": "object",
      "properties": {
        "message_id": {"type": "string", "description": "The UID of the message"},
        "labels": {
          "type": "array",
          "items": {"type": "string"},
          "minItems": 1,
          "description": "Labels to apply",
        },
      },
      "required": ["message_id", "labels"],
    },
  ),
]
