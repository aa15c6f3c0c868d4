"""
Gmail-style query translation.

``in:<folder>`` picks the mailbox to search; whatever remains becomes the
TEXT criterion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import ImapError

INBOX = "INBOX"

FOLDER_PATHS: dict[str, str] = {
  "inbox": INBOX,
  "sent": "[Gmail]/Sent Mail",
  "trash": "[Gmail]/Trash",
  "bin": "[Gmail]/Bin",
  "spam": "[Gmail]/Spam",
  "drafts": "[Gmail]/Drafts",
  "starred": "[Gmail]/Starred",
  "important": "[Gmail]/Important",
  "all": "[Gmail]/All Mail",
}

# Logical folders that providers expose under more than one name, tried in order
FOLDER_CANDIDATES: dict[str, tuple[str, ...]] = {
  "trash": ("trash", "bin"),
  "bin": ("bin", "trash"),
}

_IN_DIRECTIVE = re.compile(r"(?<!\S)in:(\w+)\s*", re.IGNORECASE)
_UNQUOTABLE = re.compile(r"[\r\n\x00]")


@dataclass(frozen=True)
class TranslatedQuery:
  folder: str
  terms: str | None
  logical_name: str = "inbox"


def translate_query(query: str) -> TranslatedQuery:
  """Split a free-text query into (folder, remaining search terms).

  An unknown folder name falls back to the inbox. An empty remainder means
  "match all", represented as ``terms=None``.
  """
  m = _IN_DIRECTIVE.search(query)
  if not m:
    terms = query.strip()
    return TranslatedQuery(folder=INBOX, terms=terms or None)

  name = m.group(1).lower()
  logical_name = name if name in FOLDER_PATHS else "inbox"
  remainder = (query[: m.start()] + query[m.end() :]).strip()
  return TranslatedQuery(
    folder=FOLDER_PATHS[logical_name],
    terms=remainder or None,
    logical_name=logical_name,
  )


def folder_candidates(logical_name: str) -> list[str]:
  """Ordered provider paths to try when opening a logical folder.

  Names outside the table are treated as literal mailbox paths.
  """
  key = logical_name.lower()
  if key in FOLDER_CANDIDATES:
    return [FOLDER_PATHS[name] for name in FOLDER_CANDIDATES[key]]
  if key in FOLDER_PATHS:
    return [FOLDER_PATHS[key]]
  return [logical_name]


def check_quotable(value: str) -> str:
  if _UNQUOTABLE.search(value):
    raise ImapError(f"Value contains a line break or NUL and cannot be quoted: {value!r}")
  return value


def quote_string(value: str) -> str:
  """Render a value as an IMAP quoted string.

  CR, LF and NUL cannot appear in a quoted string and would end the command
  line early, so they are rejected.
  """
  check_quotable(value)
  escaped = value.replace("\\", "\\\\").replace('"', '\\"')
  return f'"{escaped}"'


def build_text_criteria(terms: str | None) -> str:
  """SEARCH criteria for the remaining terms, ``ALL`` when there are none."""
  if not terms:
    return "ALL"
  return f"TEXT {quote_string(terms)}"
