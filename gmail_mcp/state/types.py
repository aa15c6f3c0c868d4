"""
Message and result types returned by the mailbox operations.

Messages are built only by the header parser from transient FETCH results
and are never mutated afterwards.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "Unknown sender"


class Message(BaseModel):
  model_config = ConfigDict(frozen=True, populate_by_name=True)

  id: str
  thread_id: str
  subject: str = NO_SUBJECT
  from_: str = Field(default="", alias="from")
  to: list[str] = Field(default_factory=list)
  date: datetime = Field(default_factory=lambda: datetime.now(UTC))
  snippet: str = ""
  labels: list[str] = Field(default_factory=lambda: ["INBOX"])


class FetchBatch(BaseModel):
  """Best-effort result of one bulk header fetch."""

  messages: list[Message] = Field(default_factory=list)
  # Sequence numbers or UIDs that came back without attributes or failed to parse
  skipped: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
  messages: list[Message] = Field(default_factory=list)
  total_count: int = 0
  query: str = ""
  skipped: list[str] = Field(default_factory=list)


class MailboxNode(BaseModel):
  name: str
  delimiter: str = "/"
  flags: list[str] = Field(default_factory=list)
  children: dict[str, MailboxNode] = Field(default_factory=dict)


class MarkAsReadResult(BaseModel):
  success: bool
  updated_count: int
  message: str


class DeleteMessageResult(BaseModel):
  success: bool
  deleted_count: int
  message: str


class LabelResult(BaseModel):
  success: bool
  message: str
  label: str | None = None


class SendResult(BaseModel):
  message_id: str = ""
  success: bool
  message: str


class Envelope(BaseModel):
  """Normalized outgoing message handed to the submission transport."""

  model_config = ConfigDict(populate_by_name=True)

  from_: str = Field(alias="from")
  to: list[str]
  subject: str
  text: str
  html: str | None = None
  cc: str | None = None
  bcc: str | None = None
