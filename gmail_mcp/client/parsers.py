"""
IMAP response parsing utilities.

Everything here is pure: raw protocol lines in, plain values or models out.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from typing import Any

from ..state.types import NO_SUBJECT, UNKNOWN_SENDER, MailboxNode, Message

log = logging.getLogger("gmail_mcp.client.parsers")

DEFAULT_DELIMITER = "/"

_FETCH_START = re.compile(r"^(\d+)\s+FETCH\s*\(", re.IGNORECASE)
_LITERAL_MARKER = re.compile(r"\{(\d+)\}\s*$")
_EXISTS = re.compile(r"(\d+)\s+EXISTS", re.IGNORECASE)
_UID = re.compile(r"\bUID\s+(\d+)", re.IGNORECASE)
_INTERNALDATE = re.compile(r'INTERNALDATE\s+"([^"]+)"', re.IGNORECASE)
_LIST_LINE = re.compile(r'^\(([^)]*)\)\s+(?:"((?:[^"\\]|\\.)*)"|(NIL))\s+(.+)$', re.IGNORECASE)


def line_text(line: Any) -> str:
  """Decode a response line (aioimaplib hands back bytes, bytearray or str)."""
  if isinstance(line, (bytes, bytearray)):
    return bytes(line).decode("utf-8", errors="replace")
  return str(line)


# ---------------------------------------------------------------------------
# Header parser
# ---------------------------------------------------------------------------


def parse_header(
  raw: bytes | str | None,
  uid: int | str | None,
  internal_date: datetime | None = None,
  mailbox: str = "INBOX",
) -> Message:
  """Build a Message from a raw header block and the server attributes.

  Never raises: garbled lines are skipped and absent fields fall back to
  their defaults, so one bad message cannot abort a batch fetch.
  """
  headers = parse_header_fields(raw)

  subject = headers.get("subject") or NO_SUBJECT
  sender = headers.get("from") or ""
  raw_to = headers.get("to") or ""
  to = [address.strip() for address in raw_to.split(",") if address.strip()]
  identifier = "" if uid is None else str(uid)

  return Message(
    id=identifier,
    thread_id=identifier,
    subject=subject,
    from_=sender,
    to=to or [raw_to],
    date=internal_date or datetime.now(UTC),
    snippet=f"{subject} - {sender or UNKNOWN_SENDER}",
    labels=[mailbox],
  )


def parse_header_fields(raw: bytes | str | None) -> dict[str, str]:
  """Split a CRLF-separated header block into lower-cased name -> value."""
  if raw is None:
    return {}
  text = line_text(raw)

  headers: dict[str, str] = {}
  last_key: str | None = None
  for line in re.split(r"\r?\n", text):
    if not line.strip():
      continue
    # Folded continuation of the previous field
    if line[0] in " \t" and last_key is not None:
      headers[last_key] = f"{headers[last_key]} {line.strip()}".strip()
      continue
    if ":" not in line:
      continue
    key, _, value = line.partition(":")
    key = key.lower().strip()
    if not key:
      continue
    headers[key] = value.strip()
    last_key = key

  return {key: _decode_words(value) for key, value in headers.items()}


def _decode_words(value: str) -> str:
  """Decode RFC 2047 encoded words, keeping the raw value if that fails."""
  if "=?" not in value:
    return value
  try:
    return str(make_header(decode_header(value)))
  except (HeaderParseError, ValueError, LookupError, UnicodeDecodeError):
    return value


def parse_internaldate(raw: str | None) -> datetime | None:
  """Parse an INTERNALDATE value such as ``17-Jul-1996 02:44:25 -0700``."""
  if not raw:
    return None
  try:
    return datetime.strptime(raw.strip(), "%d-%b-%Y %H:%M:%S %z").astimezone(UTC)
  except ValueError:
    log.debug("Unparseable INTERNALDATE %r", raw)
    return None


# ---------------------------------------------------------------------------
# FETCH responses
# ---------------------------------------------------------------------------


@dataclass
class FetchItem:
  """One ``* n FETCH (...)`` response: its attribute text plus header literal."""

  seq: int
  attributes: str = ""
  header: bytes | None = None

  @property
  def uid(self) -> int | None:
    m = _UID.search(self.attributes)
    return int(m.group(1)) if m else None

  @property
  def internal_date(self) -> datetime | None:
    m = _INTERNALDATE.search(self.attributes)
    return parse_internaldate(m.group(1)) if m else None


def parse_fetch_items(lines: Iterable[Any]) -> list[FetchItem]:
  """Group FETCH response lines into per-message items, in arrival order.

  Attribute text may arrive before or after the header literal depending on
  the server, so both are accumulated until the next ``FETCH`` line.
  """
  items: list[FetchItem] = []
  current: FetchItem | None = None
  expect_literal = False

  for line in lines:
    if isinstance(line, bytearray) or (expect_literal and current is not None):
      if current is not None:
        current.header = bytes(line) if isinstance(line, (bytes, bytearray)) else line.encode()
      expect_literal = False
      continue

    text = line_text(line)
    m = _FETCH_START.match(text)
    if m:
      current = FetchItem(seq=int(m.group(1)))
      items.append(current)
    if current is None:
      continue
    current.attributes = f"{current.attributes} {text}".strip()
    expect_literal = bool(_LITERAL_MARKER.search(text))

  return items


# ---------------------------------------------------------------------------
# SELECT / SEARCH / LIST responses
# ---------------------------------------------------------------------------


def parse_exists_count(lines: Iterable[Any]) -> int:
  """Message count from the ``* n EXISTS`` line of a SELECT/EXAMINE response."""
  count = 0
  for line in lines:
    m = _EXISTS.search(line_text(line))
    if m:
      count = int(m.group(1))
  return count


def parse_search_response(lines: list[Any]) -> list[int]:
  """Collect the identifiers from a SEARCH response, in server order."""
  # The last line is the tagged completion text
  ids: list[int] = []
  for line in lines[:-1]:
    for part in line_text(line).split():
      if part.isdigit():
        ids.append(int(part))
  return ids


def parse_list_lines(lines: Iterable[Any]) -> list[dict[str, Any]]:
  """Parse every folder in a LIST response.

  A name sent as a literal (``... "/" {12}`` followed by the name bytes)
  is joined back onto its line before parsing.
  """
  folders: list[dict[str, Any]] = []
  pending: str | None = None
  for line in lines:
    if pending is not None:
      parsed = parse_list_response(pending, literal=line_text(line))
      pending = None
      if parsed:
        folders.append(parsed)
      continue

    text = line_text(line)
    if _LITERAL_MARKER.search(text):
      pending = text
      continue
    parsed = parse_list_response(text)
    if parsed:
      folders.append(parsed)
  return folders


def parse_list_response(line: Any, literal: str | None = None) -> dict[str, Any] | None:
  """Parse a single LIST response line: ``(\\flags) "delimiter" "name"``."""
  m = _LIST_LINE.match(line_text(line).strip())
  if not m:
    return None

  flags_str, delimiter, nil, name = m.group(1), m.group(2), m.group(3), m.group(4)
  name = name.strip()
  if literal is not None and _LITERAL_MARKER.fullmatch(name):
    name = literal
  elif len(name) >= 2 and name.startswith('"') and name.endswith('"'):
    name = name[1:-1].replace('\\"', '"').replace("\\\\", "\\")
  return {
    "name": name,
    "delimiter": None if nil else delimiter.replace("\\\\", "\\"),
    "flags": [f.strip() for f in flags_str.split() if f.strip()],
  }


# ---------------------------------------------------------------------------
# Mailbox tree
# ---------------------------------------------------------------------------


def build_mailbox_tree(entries: Iterable[Mapping[str, Any]]) -> dict[str, MailboxNode]:
  """Nest flat LIST entries into a tree keyed by segment name.

  Ancestors the server did not list themselves are created on the way down.
  """
  tree: dict[str, MailboxNode] = {}
  for entry in entries:
    delimiter = entry.get("delimiter")
    name = entry["name"]
    segments = name.split(delimiter) if delimiter else [name]

    level = tree
    node: MailboxNode | None = None
    for segment in segments:
      node = level.get(segment)
      if node is None:
        node = MailboxNode(name=segment, delimiter=delimiter or DEFAULT_DELIMITER)
        level[segment] = node
      level = node.children

    if node is not None:
      node.flags = list(entry.get("flags", []))
  return tree


def flatten_mailbox_tree(tree: Mapping[str, MailboxNode], prefix: str = "") -> list[str]:
  """Full paths depth-first, each parent before its children.

  Children are joined with the delimiter reported on their parent node.
  """
  paths: list[str] = []
  for node in tree.values():
    path = f"{prefix}{node.name}"
    paths.append(path)
    if node.children:
      paths.extend(flatten_mailbox_tree(node.children, f"{path}{node.delimiter}"))
  return paths


def leaf_name(path: str, delimiter: str = DEFAULT_DELIMITER) -> str:
  """Final segment of a hierarchical path (``Project`` in ``Work/Project``)."""
  return path.split(delimiter)[-1] if delimiter else path
