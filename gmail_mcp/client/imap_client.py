"""
Async IMAP connection handle using aioimaplib.

One ImapConnection serves exactly one operation: it is opened by the
ConnectionManager, driven through strictly sequential awaited commands and
closed once. Every rejected command raises instead of returning a flag.
"""

from __future__ import annotations

import contextlib
import logging
import ssl
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from aioimaplib import IMAP4, IMAP4_SSL

from ..config import ImapConfig
from ..errors import ImapCommandError, ImapConnectionError, ImapError, MailboxSelectError
from .parsers import line_text, parse_exists_count, parse_list_lines, parse_search_response
from .query import check_quotable, quote_string

log = logging.getLogger("gmail_mcp.client.imap")

ClientFactory = Callable[[ImapConfig], Any]


def create_aioimaplib_client(config: ImapConfig) -> IMAP4_SSL | IMAP4:
  """Build the underlying aioimaplib client (not yet greeted or logged in)."""
  if not config.tls:
    return IMAP4(host=config.host, port=config.port, timeout=config.timeout)

  context = ssl.create_default_context()
  if not config.verify_certificates:
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
  return IMAP4_SSL(host=config.host, port=config.port, timeout=config.timeout, ssl_context=context)


def quote_mailbox(mailbox: str) -> str:
  if mailbox.upper() == "INBOX":
    return "INBOX"
  if len(mailbox) >= 2 and mailbox.startswith('"') and mailbox.endswith('"'):
    return check_quotable(mailbox)
  return quote_string(mailbox)


def uid_set(ids: Sequence[int | str]) -> str:
  return ",".join(str(int(i)) for i in ids)


class ImapConnection:
  """A single private IMAP session."""

  def __init__(self, config: ImapConfig, client_factory: ClientFactory | None = None) -> None:
    self.config = config
    self._client_factory = client_factory or create_aioimaplib_client
    self._imap: Any = None
    self._closed = False
    self.selected: str | None = None

  @property
  def is_open(self) -> bool:
    return self._imap is not None and not self._closed

  # -----------------------
  # Lifecycle
  # -----------------------

  async def open(self) -> None:
    """Connect, wait for the greeting and log in."""
    cfg = self.config
    try:
      self._imap = self._client_factory(cfg)
      await self._imap.wait_hello_from_server()
      response = await self._imap.login(cfg.user, cfg.password)
    except Exception as e:
      raise ImapConnectionError(f"IMAP connection to {cfg.host}:{cfg.port} failed: {e}") from e

    if response.result != "OK":
      detail = " ".join(line_text(line) for line in response.lines).strip()
      raise ImapConnectionError(f"IMAP login failed for {cfg.user}: {detail}")
    log.info("IMAP connected to %s as %s", cfg.host, cfg.user)

  async def close(self) -> None:
    """Log out; never raises and is a no-op after the first call."""
    if self._closed:
      return
    self._closed = True
    self.selected = None
    if self._imap is None:
      return
    with contextlib.suppress(Exception):
      await self._imap.logout()
    log.debug("IMAP connection to %s closed", self.config.host)

  def has_capability(self, capability: str) -> bool:
    try:
      return bool(self._imap.has_capability(capability))
    except Exception:
      return False

  async def _command(self, name: str, call: Callable[[], Awaitable[Any]]) -> list[Any]:
    if not self.is_open:
      raise ImapError(f"{name} issued on a closed connection")
    log.debug("IMAP %s", name)
    try:
      response = await call()
    except ImapError:
      raise
    except Exception as e:
      raise ImapCommandError(name, [str(e)]) from e
    if response.result != "OK":
      raise ImapCommandError(name, list(response.lines))
    return list(response.lines)

  # -----------------------
  # Mailbox selection
  # -----------------------

  async def select(self, mailbox: str = "INBOX", readonly: bool = False) -> int:
    """SELECT (read-write) or EXAMINE (read-only) a mailbox; returns its message count."""
    arg = quote_mailbox(mailbox)
    verb = "EXAMINE" if readonly else "SELECT"
    try:
      if readonly:
        lines = await self._command(verb, lambda: self._imap.examine(arg))
      else:
        lines = await self._command(verb, lambda: self._imap.select(arg))
    except ImapCommandError as e:
      raise MailboxSelectError(mailbox, str(e)) from e

    self.selected = mailbox
    return parse_exists_count(lines)

  async def close_mailbox(self) -> None:
    """Deselect without expunging.

    CLOSE expunges only a read-write selection, so the mailbox is first
    re-opened read-only.
    """
    if self.selected is None:
      return
    arg = quote_mailbox(self.selected)
    await self._command("EXAMINE", lambda: self._imap.examine(arg))
    await self._command("CLOSE", lambda: self._imap.close())
    self.selected = None

  # -----------------------
  # Search and fetch
  # -----------------------

  async def search(self, criteria: str = "ALL") -> list[int]:
    """UID SEARCH; returns UIDs in server order (normally ascending)."""
    lines = await self._command(
      f"UID SEARCH {criteria}",
      lambda: self._imap.uid_search(criteria),
    )
    return parse_search_response(lines)

  async def fetch(self, message_set: str, parts: str) -> list[Any]:
    """FETCH by sequence number."""
    return await self._command("FETCH", lambda: self._imap.fetch(message_set, parts))

  async def uid_fetch(self, uids: Sequence[int | str], parts: str) -> list[Any]:
    ids = uid_set(uids)
    return await self._command("UID FETCH", lambda: self._imap.uid("fetch", ids, parts))

  # -----------------------
  # Mutations
  # -----------------------

  async def store_flags(self, uids: Sequence[int | str], flags: str, action: str = "+FLAGS") -> None:
    ids = uid_set(uids)
    await self._command(f"UID STORE {action}", lambda: self._imap.uid("store", ids, action, flags))

  async def copy(self, uids: Sequence[int | str], destination: str) -> None:
    ids = uid_set(uids)
    dest = quote_mailbox(destination)
    await self._command(f"UID COPY to {destination!r}", lambda: self._imap.uid("copy", ids, dest))

  async def move(self, uids: Sequence[int | str], destination: str) -> None:
    """UID MOVE, or COPY + \\Deleted + expunge on servers without MOVE.

    The fallback expunges only ``uids``: with UIDPLUS through UID EXPUNGE,
    otherwise through a plain EXPUNGE that is refused while any other
    message in the mailbox already carries \\Deleted.
    """
    ids = uid_set(uids)
    dest = quote_mailbox(destination)
    if self.has_capability("MOVE"):
      await self._command(f"UID MOVE to {destination!r}", lambda: self._imap.uid("move", ids, dest))
      return

    uidplus = self.has_capability("UIDPLUS")
    if not uidplus:
      moving = {int(i) for i in uids}
      others = [uid for uid in await self.search("DELETED") if uid not in moving]
      if others:
        raise ImapCommandError(
          "EXPUNGE",
          [f"{len(others)} other message(s) flagged \\Deleted and no UIDPLUS support"],
        )

    await self.copy(uids, destination)
    await self.store_flags(uids, r"(\Deleted)", "+FLAGS.SILENT")
    if uidplus:
      await self._command("UID EXPUNGE", lambda: self._imap.uid("expunge", ids))
    else:
      await self._command("EXPUNGE", lambda: self._imap.expunge())

  # -----------------------
  # Folders
  # -----------------------

  async def list_folders(self, pattern: str = "*") -> list[dict[str, Any]]:
    """LIST folders matching a pattern; returns name/delimiter/flags dicts."""
    lines = await self._command("LIST", lambda: self._imap.list('""', pattern))
    return parse_list_lines(lines)

  async def create_folder(self, folder: str) -> None:
    arg = quote_mailbox(folder)
    await self._command(f"CREATE {folder!r}", lambda: self._imap.create(arg))

  async def delete_folder(self, folder: str) -> None:
    arg = quote_mailbox(folder)
    await self._command(f"DELETE {folder!r}", lambda: self._imap.delete(arg))

  async def rename_folder(self, old_name: str, new_name: str) -> None:
    old_arg, new_arg = quote_mailbox(old_name), quote_mailbox(new_name)
    await self._command(
      f"RENAME {old_name!r} to {new_name!r}",
      lambda: self._imap.rename(old_arg, new_arg),
    )
