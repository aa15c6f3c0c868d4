"""
Shared fixtures: an in-memory stand-in for the aioimaplib client.

``FakeImap`` answers with ``Response(result, lines)`` objects shaped like
aioimaplib's: lines are bytes, FETCH header literals arrive as bytearray and
the last line is the tagged completion text.
"""

from __future__ import annotations

from collections import namedtuple
from dataclasses import dataclass, field

import pytest

from gmail_mcp.api.mailbox_api import MailboxOperations
from gmail_mcp.client.connection import ConnectionManager
from gmail_mcp.client.imap_client import ImapConnection
from gmail_mcp.config import ImapConfig

Response = namedtuple("Response", ["result", "lines"])


@dataclass
class FakeMessage:
  uid: int
  subject: str | None = "Hello"
  sender: str | None = "alice@example.com"
  to: str | None = "me@example.com"
  internal_date: str = "01-Jan-2024 10:00:00 +0000"
  seen: bool = False
  deleted: bool = False

  def header(self) -> bytes:
    lines = []
    if self.sender is not None:
      lines.append(f"From: {self.sender}")
    if self.to is not None:
      lines.append(f"To: {self.to}")
    if self.subject is not None:
      lines.append(f"Subject: {self.subject}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode()


def _unquote(arg: str) -> str:
  if len(arg) >= 2 and arg.startswith('"') and arg.endswith('"'):
    return arg[1:-1].replace('\\"', '"').replace("\\\\", "\\")
  return arg


@dataclass
class FakeImap:
  mailboxes: dict[str, list[FakeMessage]] = field(default_factory=lambda: {"INBOX": []})
  capabilities: set[str] = field(default_factory=lambda: {"IMAP4REV1", "MOVE"})
  login_ok: bool = True
  # UIDs whose FETCH response omits the UID attribute
  broken_uids: set[int] = field(default_factory=set)
  commands: list[str] = field(default_factory=list)
  logouts: int = 0
  selected: str | None = None
  next_uid: int = 1000

  # -- helpers --

  def add(self, mailbox: str, *messages: FakeMessage) -> None:
    self.mailboxes.setdefault(mailbox, []).extend(messages)

  def _ok(self, *lines: bytes | bytearray) -> Response:
    return Response("OK", [*lines, b"completed"])

  def _no(self, text: str) -> Response:
    return Response("NO", [text.encode()])

  def _current(self) -> list[FakeMessage]:
    return self.mailboxes[self.selected]

  # -- connection --

  async def wait_hello_from_server(self) -> None:
    self.commands.append("HELLO")

  async def login(self, user: str, password: str) -> Response:
    self.commands.append("LOGIN")
    if not self.login_ok:
      return self._no("[AUTHENTICATIONFAILED] Invalid credentials")
    return self._ok()

  async def logout(self) -> Response:
    self.commands.append("LOGOUT")
    self.logouts += 1
    return self._ok()

  def has_capability(self, capability: str) -> bool:
    return capability in self.capabilities

  # -- selection --

  async def _open(self, verb: str, arg: str) -> Response:
    name = _unquote(arg)
    self.commands.append(f"{verb} {name}")
    if name not in self.mailboxes:
      return self._no(f"[NONEXISTENT] Unknown Mailbox: {name}")
    self.selected = name
    return self._ok(
      rb"FLAGS (\Answered \Flagged \Draft \Deleted \Seen)",
      f"{len(self.mailboxes[name])} EXISTS".encode(),
      b"0 RECENT",
      b"[UIDVALIDITY 1] UIDs valid",
    )

  async def select(self, arg: str) -> Response:
    return await self._open("SELECT", arg)

  async def examine(self, arg: str) -> Response:
    return await self._open("EXAMINE", arg)

  async def close(self) -> Response:
    self.commands.append("CLOSE")
    self.selected = None
    return self._ok()

  async def expunge(self) -> Response:
    self.commands.append("EXPUNGE")
    self.mailboxes[self.selected] = [m for m in self._current() if not m.deleted]
    return self._ok()

  # -- search / fetch --

  async def uid_search(self, criteria: str) -> Response:
    self.commands.append(f"UID SEARCH {criteria}")
    messages = self._current()
    if criteria == "UNSEEN":
      messages = [m for m in messages if not m.seen]
    elif criteria == "DELETED":
      messages = [m for m in messages if m.deleted]
    elif criteria.startswith("TEXT "):
      needle = _unquote(criteria[5:]).lower()
      messages = [m for m in messages if needle in (m.subject or "").lower()]
    return self._ok(" ".join(str(m.uid) for m in messages).encode())

  def _fetch_lines(self, pairs: list[tuple[int, FakeMessage]]) -> list[bytes | bytearray]:
    lines: list[bytes | bytearray] = []
    for seq, msg in pairs:
      header = msg.header()
      attrs = f'INTERNALDATE "{msg.internal_date}"'
      if msg.uid not in self.broken_uids:
        attrs = f"UID {msg.uid} {attrs}"
      lines.append(
        f"{seq} FETCH ({attrs} BODY[HEADER.FIELDS (FROM TO SUBJECT DATE)] {{{len(header)}}}".encode()
      )
      lines.append(bytearray(header))
      lines.append(b")")
    return lines

  async def fetch(self, message_set: str, parts: str) -> Response:
    self.commands.append(f"FETCH {message_set}")
    start, _, end = message_set.partition(":")
    messages = self._current()
    pairs = [(i, messages[i - 1]) for i in range(int(start), int(end or start) + 1) if i <= len(messages)]
    return self._ok(*self._fetch_lines(pairs))

  # -- UID commands --

  async def uid(self, command: str, ids: str, *args: str) -> Response:
    self.commands.append(f"UID {command.upper()} {ids} {' '.join(args)}".strip())
    wanted = {int(i) for i in ids.split(",")}
    messages = self._current()
    targets = [m for m in messages if m.uid in wanted]

    if command == "fetch":
      seqs = {m.uid: i + 1 for i, m in enumerate(messages)}
      return self._ok(*self._fetch_lines([(seqs[m.uid], m) for m in targets]))

    if command == "store":
      action, flags = args
      for m in targets:
        if r"\Seen" in flags:
          m.seen = action.startswith("+")
        if r"\Deleted" in flags:
          m.deleted = action.startswith("+")
      return self._ok()

    if command in ("copy", "move"):
      dest = _unquote(args[0])
      if dest not in self.mailboxes:
        return self._no(f"[TRYCREATE] No folder {dest}")
      for m in targets:
        self.next_uid += 1
        self.mailboxes[dest].append(
          FakeMessage(
            uid=self.next_uid,
            subject=m.subject,
            sender=m.sender,
            to=m.to,
            internal_date=m.internal_date,
            seen=m.seen,
          )
        )
      if command == "move":
        self.mailboxes[self.selected] = [m for m in messages if m.uid not in wanted]
      return self._ok()

    if command == "expunge":
      self.mailboxes[self.selected] = [m for m in messages if not (m.deleted and m.uid in wanted)]
      return self._ok()

    return Response("BAD", [b"Unknown command"])

  # -- folders --

  async def list(self, reference: str, pattern: str) -> Response:
    self.commands.append(f"LIST {pattern}")
    if pattern == "*":
      names = list(self.mailboxes)
    else:
      names = [n for n in self.mailboxes if n == _unquote(pattern)]
    lines = [f'(\\HasNoChildren) "/" "{name}"'.encode() for name in names]
    return self._ok(*lines)

  async def create(self, arg: str) -> Response:
    name = _unquote(arg)
    self.commands.append(f"CREATE {name}")
    if name in self.mailboxes:
      return self._no("[ALREADYEXISTS] Duplicate folder name")
    self.mailboxes[name] = []
    return self._ok()

  async def delete(self, arg: str) -> Response:
    name = _unquote(arg)
    self.commands.append(f"DELETE {name}")
    if name not in self.mailboxes:
      return self._no("[NONEXISTENT] No folder")
    del self.mailboxes[name]
    return self._ok()

  async def rename(self, old_arg: str, new_arg: str) -> Response:
    old, new = _unquote(old_arg), _unquote(new_arg)
    self.commands.append(f"RENAME {old} {new}")
    if old not in self.mailboxes:
      return self._no("[NONEXISTENT] No folder")
    # Descendants move with their parent
    for name in list(self.mailboxes):
      if name == old or name.startswith(old + "/"):
        self.mailboxes[new + name[len(old) :]] = self.mailboxes.pop(name)
    return self._ok()


def inbox_of(count: int) -> list[FakeMessage]:
  """``count`` messages with ascending UIDs and dates (UID 1 is oldest)."""
  return [
    FakeMessage(
      uid=i,
      subject=f"Message {i}",
      internal_date=f"{i:02d}-Jan-2024 10:00:00 +0000",
    )
    for i in range(1, count + 1)
  ]


@pytest.fixture
def imap_config() -> ImapConfig:
  return ImapConfig(host="imap.example.com", user="me@example.com", password="secret")


@pytest.fixture
def fake_imap() -> FakeImap:
  return FakeImap()


@pytest.fixture
def manager(imap_config: ImapConfig, fake_imap: FakeImap) -> ConnectionManager:
  return ConnectionManager(
    imap_config,
    lambda cfg: ImapConnection(cfg, client_factory=lambda _cfg: fake_imap),
  )


@pytest.fixture
def operations(manager: ConnectionManager) -> MailboxOperations:
  return MailboxOperations(manager)
