"""
Bulk header fetch for an open, mailbox-selected connection.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..state.types import FetchBatch, Message
from .parsers import parse_fetch_items, parse_header

log = logging.getLogger("gmail_mcp.client.fetch")

HEADER_FIELDS = "BODY.PEEK[HEADER.FIELDS (FROM TO SUBJECT DATE)]"
FETCH_ITEMS = f"(UID INTERNALDATE {HEADER_FIELDS})"


async def fetch_messages(
  conn: Any,
  source: str | Sequence[int | str],
  mailbox: str = "INBOX",
) -> FetchBatch:
  """Fetch header fields for a ``start:end`` sequence range or a UID list.

  Items that arrive without their attribute block, or whose headers cannot
  be parsed, are left out of ``messages`` and listed in ``skipped``. The
  result is ordered newest first; equal timestamps keep arrival order.
  """
  if isinstance(source, str):
    lines = await conn.fetch(source, FETCH_ITEMS)
  else:
    if not source:
      return FetchBatch()
    lines = await conn.uid_fetch(source, FETCH_ITEMS)

  messages: list[Message] = []
  skipped: list[str] = []
  for item in parse_fetch_items(lines):
    uid = item.uid
    if uid is None:
      log.debug("FETCH item %d arrived without attributes, skipping", item.seq)
      skipped.append(str(item.seq))
      continue
    try:
      messages.append(parse_header(item.header, uid, item.internal_date, mailbox))
    except Exception:
      log.warning("Error parsing message UID %d", uid, exc_info=True)
      skipped.append(str(uid))

  messages.sort(key=lambda m: m.date, reverse=True)
  return FetchBatch(messages=messages, skipped=skipped)
