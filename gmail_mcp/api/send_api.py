"""
Email sending operations API (SMTP submission).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from ..state.types import Envelope, SendResult

log = logging.getLogger("gmail_mcp.api.send")


class Submitter(Protocol):
  async def submit(self, envelope: Envelope) -> str: ...


def normalize_addresses(emails: str | Sequence[str] | None) -> str | None:
  """Join a list of addresses with commas; pass a single address through."""
  if not emails:
    return None
  if isinstance(emails, str):
    return emails
  return ", ".join(emails)


def build_envelope(
  from_address: str,
  to: str | Sequence[str],
  subject: str,
  body: str,
  html: str | None = None,
  cc: str | Sequence[str] | None = None,
  bcc: str | Sequence[str] | None = None,
) -> Envelope:
  recipients = [to] if isinstance(to, str) else list(to)
  return Envelope(
    from_=from_address,
    to=recipients,
    subject=subject,
    text=body,
    html=html,
    cc=normalize_addresses(cc),
    bcc=normalize_addresses(bcc),
  )


async def send_message(
  submitter: Submitter | None,
  from_address: str,
  to: str | Sequence[str],
  subject: str,
  body: str,
  html: str | None = None,
  cc: str | Sequence[str] | None = None,
  bcc: str | Sequence[str] | None = None,
) -> SendResult:
  """Send an email; failures are reported in the result rather than raised."""
  if submitter is None:
    return SendResult(success=False, message="Failed to send email: SMTP not configured")

  envelope = build_envelope(from_address, to, subject, body, html=html, cc=cc, bcc=bcc)
  try:
    message_id = await submitter.submit(envelope)
  except Exception as e:
    log.error("Failed to send email: %s", e)
    return SendResult(success=False, message=f"Failed to send email: {e}")

  return SendResult(message_id=message_id, success=True, message="Email sent successfully")
