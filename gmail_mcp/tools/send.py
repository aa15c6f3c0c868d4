"""
Send tool.
"""

from __future__ import annotations

from mcp.types import Tool

_ADDRESSES = {
  "oneOf": [
    {"type": "string", "format": "email"},
    {"type": "array", "items": {"type": "string", "format": "email"}},
  ],
}

send_tools: list[Tool] = [
  Tool(
    name="send_message",
    description="Send an email message",
    inputSchema={
      "type": "object",
      "properties": {
        "to": {**_ADDRESSES, "description": "Recipient email address(es)"},
        "subject": {"type": "string", "minLength": 1, "description": "Email subject"},
        "body": {"type": "string", "minLength": 1, "description": "Plain text body"},
        "html": {"type": "string", "description": "Optional HTML body"},
        "cc": {**_ADDRESSES, "description": "CC address(es)"},
        "bcc": {**_ADDRESSES, "description": "BCC address(es)"},
      },
      "required": ["to", "subject", "body"],
    },
  ),
]
