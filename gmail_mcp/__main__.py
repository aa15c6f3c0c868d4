"""
Entry point for the Gmail MCP server.

Run with: python -m gmail_mcp
"""

from __future__ import annotations

import asyncio
import logging
import sys

from .api.mailbox_api import create_operations
from .client.connection import ConnectionManager
from .client.smtp_client import SmtpSubmitter
from .config import get_settings
from .server import run_server

log = logging.getLogger("gmail_mcp")


def main() -> None:
  settings = get_settings()
  logging.basicConfig(
    level=settings.log_level.upper(),
    format="[%(name)s] %(levelname)s: %(message)s",
    stream=sys.stderr,
  )

  if not settings.has_credentials:
    log.error("Missing required environment variables. Please check your .env file.")
    log.error("Required variables: EMAIL_ADDRESS, EMAIL_PASSWORD")
    sys.exit(1)

  create_operations(
    ConnectionManager(settings.imap_config()),
    SmtpSubmitter(settings.smtp_config()),
    settings.email_address,
  )
  asyncio.run(run_server())


if __name__ == "__main__":
  main()
