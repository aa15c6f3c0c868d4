"""
Exception hierarchy for the mailbox client.
"""

from __future__ import annotations

from typing import Any


class GmailMcpError(Exception):
  """Base class for every error raised by this package."""


class ImapError(GmailMcpError):
  pass


class ImapConnectionError(ImapError):
  """Connecting, TLS negotiation or login failed before any command ran."""


class MailboxSelectError(ImapError):
  def __init__(self, mailbox: str, detail: str = "") -> None:
    self.mailbox = mailbox
    message = f"Cannot open mailbox {mailbox!r}"
    if detail:
      message = f"{message}: {detail}"
    super().__init__(message)


class ImapCommandError(ImapError):
  def __init__(self, command: str, lines: list[Any] | None = None) -> None:
    self.command = command
    self.lines = lines or []
    detail = " ".join(_line_text(line) for line in self.lines).strip()
    message = f"{command} failed"
    if detail:
      message = f"{message}: {detail}"
    super().__init__(message)


class MailboxOperationError(GmailMcpError):
  """A public mailbox operation failed; the message names the failed step."""


class SubmissionError(GmailMcpError):
  pass


def _line_text(line: Any) -> str:
  if isinstance(line, (bytes, bytearray)):
    return bytes(line).decode("utf-8", errors="replace")
  return str(line)
