"""
Mailbox operations: list, search, flag, move and label management.

Every public method runs on its own private connection obtained from the
ConnectionManager; nothing is shared or cached between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from ..client.connection import ConnectionManager
from ..client.fetch import fetch_messages
from ..client.imap_client import quote_mailbox
from ..client.parsers import DEFAULT_DELIMITER, build_mailbox_tree, flatten_mailbox_tree, leaf_name
from ..client.query import INBOX, build_text_criteria, folder_candidates, translate_query
from ..errors import ImapCommandError, MailboxOperationError, MailboxSelectError
from ..state.types import (
  DeleteMessageResult,
  FetchBatch,
  LabelResult,
  MarkAsReadResult,
  Message,
  SearchResult,
  SendResult,
)
from . import send_api
from .send_api import Submitter

log = logging.getLogger("gmail_mcp.api.mailbox")

T = TypeVar("T")

SEARCH_FETCH_LIMIT = 50

MessageId = int | str

_operations: MailboxOperations | None = None


class MailboxOperations:
  def __init__(
    self,
    connections: ConnectionManager,
    submitter: Submitter | None = None,
    from_address: str = "",
  ) -> None:
    self._connections = connections
    self._submitter = submitter
    self._from_address = from_address

  async def _execute(self, step: str, fn: Callable[[Any], Awaitable[T]]) -> T:
    try:
      return await self._connections.execute(fn)
    except Exception as e:
      log.error("Failed to %s: %s", step, e)
      raise MailboxOperationError(f"Failed to {step}: {e}") from e

  # -----------------------
  # Reading
  # -----------------------

  async def list_messages(self, count: int = 10) -> list[Message]:
    """Most recent ``count`` inbox messages, newest first."""

    async def _impl(conn: Any) -> list[Message]:
      total = await conn.select(INBOX, readonly=True)
      if total == 0:
        return []
      start = max(1, total - count + 1)
      batch = await fetch_messages(conn, f"{start}:{total}", INBOX)
      _log_skipped("list_messages", batch)
      return batch.messages

    return await self._execute("list messages", _impl)

  async def list_unread_messages(self, count: int = 10) -> list[Message]:
    """Up to ``count`` unread inbox messages, newest first.

    Takes the last ``count`` UNSEEN matches; SEARCH order is provider
    defined, so this approximates the most recent unread rather than
    guaranteeing it.
    """

    async def _impl(conn: Any) -> list[Message]:
      await conn.select(INBOX, readonly=True)
      uids = await conn.search("UNSEEN")
      if not uids:
        return []
      batch = await fetch_messages(conn, uids[-count:], INBOX)
      _log_skipped("list_unread_messages", batch)
      return batch.messages

    return await self._execute("list unread messages", _impl)

  async def search_messages(self, query: str) -> SearchResult:
    """Search a folder chosen by an optional ``in:<folder>`` directive."""
    translated = translate_query(query)

    async def _impl(conn: Any) -> SearchResult:
      mailbox = await _select_first(conn, folder_candidates(translated.logical_name), readonly=True)
      uids = await conn.search(build_text_criteria(translated.terms))
      if not uids:
        return SearchResult(messages=[], total_count=0, query=query)

      batch = await fetch_messages(conn, uids[:SEARCH_FETCH_LIMIT], mailbox)
      _log_skipped("search_messages", batch)
      return SearchResult(
        messages=batch.messages,
        total_count=len(uids),
        query=query,
        skipped=batch.skipped,
      )

    return await self._execute("search messages", _impl)

  # -----------------------
  # Message mutations
  # -----------------------

  async def mark_messages_as_read(self, message_ids: Sequence[MessageId]) -> MarkAsReadResult:
    async def _impl(conn: Any) -> MarkAsReadResult:
      await conn.select(INBOX, readonly=False)
      await conn.store_flags(message_ids, r"(\Seen)", "+FLAGS")
      await conn.close_mailbox()
      return MarkAsReadResult(
        success=True,
        updated_count=len(message_ids),
        message="Messages marked as read",
      )

    return await self._execute("mark messages as read", _impl)

  async def delete_messages(self, message_ids: Sequence[MessageId]) -> DeleteMessageResult:
    """Move inbox messages to the trash folder (not a permanent delete)."""

    async def _impl(conn: Any) -> DeleteMessageResult:
      await conn.select(INBOX, readonly=False)
      trash = await _move_to_first(conn, message_ids, folder_candidates("trash"))
      return DeleteMessageResult(
        success=True,
        deleted_count=len(message_ids),
        message=f"Moved {len(message_ids)} message(s) to {trash}",
      )

    return await self._execute("delete messages", _impl)

  async def move_message(
    self,
    message_id: MessageId,
    destination: str,
    source: str = INBOX,
  ) -> LabelResult:
    async def _impl(conn: Any) -> LabelResult:
      await conn.select(source, readonly=False)
      await conn.move([message_id], destination)
      return LabelResult(
        success=True,
        message=f"Message {message_id} moved from {source} to {destination}",
        label=destination,
      )

    return await self._execute("move message", _impl)

  async def label_message(self, message_id: MessageId, labels: Sequence[str]) -> LabelResult:
    """Apply labels by copying the message into each label folder.

    All copies must succeed; there is no partial-success report.
    """

    async def _impl(conn: Any) -> LabelResult:
      await conn.select(INBOX, readonly=False)
      for label in labels:
        await conn.copy([message_id], label)
      return LabelResult(
        success=True,
        message=f"Applied {len(labels)} label(s) to message {message_id}",
      )

    return await self._execute("label message", _impl)

  # -----------------------
  # Labels (folders)
  # -----------------------

  async def list_labels(self) -> list[str]:
    async def _impl(conn: Any) -> list[str]:
      folders = await conn.list_folders()
      return flatten_mailbox_tree(build_mailbox_tree(folders))

    return await self._execute("list labels", _impl)

  async def create_label(self, label: str) -> LabelResult:
    async def _impl(conn: Any) -> LabelResult:
      await conn.create_folder(label)
      return LabelResult(success=True, message=f'Label "{label}" created', label=label)

    return await self._execute("create label", _impl)

  async def delete_label(self, label: str) -> LabelResult:
    async def _impl(conn: Any) -> LabelResult:
      await conn.delete_folder(label)
      return LabelResult(success=True, message=f'Label "{label}" deleted', label=label)

    return await self._execute("delete label", _impl)

  async def rename_label(self, old_name: str, new_name: str) -> LabelResult:
    async def _impl(conn: Any) -> LabelResult:
      await conn.rename_folder(old_name, new_name)
      return LabelResult(
        success=True,
        message=f'Label renamed from "{old_name}" to "{new_name}"',
        label=new_name,
      )

    return await self._execute("rename label", _impl)

  async def move_label(self, label: str, new_parent: str) -> LabelResult:
    """Re-parent a label, keeping only its leaf segment.

    ``Work/Project`` moved under ``Archive`` becomes ``Archive/Project``.
    Descendants follow the rename on the server side.
    """

    async def _impl(conn: Any) -> LabelResult:
      delimiter = await _folder_delimiter(conn, label)
      destination = move_destination(label, new_parent, delimiter)
      await conn.rename_folder(label, destination)
      return LabelResult(
        success=True,
        message=f'Label "{label}" moved to "{destination}"',
        label=destination,
      )

    return await self._execute("move label", _impl)

  # -----------------------
  # Sending
  # -----------------------

  async def send_message(
    self,
    to: str | Sequence[str],
    subject: str,
    body: str,
    html: str | None = None,
    cc: str | Sequence[str] | None = None,
    bcc: str | Sequence[str] | None = None,
  ) -> SendResult:
    return await send_api.send_message(
      self._submitter,
      self._from_address,
      to,
      subject,
      body,
      html=html,
      cc=cc,
      bcc=bcc,
    )


def move_destination(label: str, new_parent: str, delimiter: str = DEFAULT_DELIMITER) -> str:
  leaf = leaf_name(label, delimiter)
  parent = new_parent.rstrip(delimiter) if new_parent else ""
  if not parent:
    return leaf
  return f"{parent}{delimiter}{leaf}"


async def _folder_delimiter(conn: Any, label: str) -> str:
  """Hierarchy delimiter the server reports for ``label``."""
  for folder in await conn.list_folders(quote_mailbox(label)):
    if folder["name"] == label and folder.get("delimiter"):
      return folder["delimiter"]
  return DEFAULT_DELIMITER


async def _select_first(conn: Any, candidates: Sequence[str], readonly: bool) -> str:
  """Open the first candidate mailbox that exists."""
  last_error: MailboxSelectError | None = None
  for mailbox in candidates:
    try:
      await conn.select(mailbox, readonly=readonly)
      return mailbox
    except MailboxSelectError as e:
      log.info("Cannot open %s, trying next candidate", mailbox)
      last_error = e
  if last_error is None:
    raise MailboxSelectError("", "no candidate folders")
  raise last_error


async def _move_to_first(conn: Any, message_ids: Sequence[MessageId], candidates: Sequence[str]) -> str:
  """Move to the first candidate folder that accepts the messages."""
  last_error: ImapCommandError | None = None
  for mailbox in candidates:
    try:
      await conn.move(message_ids, mailbox)
      return mailbox
    except ImapCommandError as e:
      log.info("Move to %s rejected, trying next candidate", mailbox)
      last_error = e
  if last_error is None:
    raise ImapCommandError("UID MOVE", ["no candidate folders"])
  raise last_error


def _log_skipped(operation: str, batch: FetchBatch) -> None:
  if batch.skipped:
    log.warning("%s: skipped %d message(s): %s", operation, len(batch.skipped), ", ".join(batch.skipped))


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------


def create_operations(
  connections: ConnectionManager,
  submitter: Submitter | None = None,
  from_address: str = "",
) -> MailboxOperations:
  """Create and register the singleton operations engine."""
  global _operations
  _operations = MailboxOperations(connections, submitter, from_address)
  return _operations


def set_operations(operations: MailboxOperations | None) -> None:
  global _operations
  _operations = operations


def get_operations() -> MailboxOperations:
  if _operations is None:
    raise RuntimeError("Mailbox operations not initialized")
  return _operations
