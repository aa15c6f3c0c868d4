"""
Async SMTP submission using aiosmtplib.

Connect-per-send pattern: opens connection, sends, disconnects.
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

import aiosmtplib

from ..config import SmtpConfig
from ..errors import SubmissionError
from ..state.types import Envelope

log = logging.getLogger("gmail_mcp.client.smtp")


def build_mime_message(envelope: Envelope, message_id: str) -> MIMEMultipart | MIMEText:
  """Plain text body, with an HTML alternative when one is given."""
  if envelope.html:
    msg: MIMEMultipart | MIMEText = MIMEMultipart("alternative")
    msg.attach(MIMEText(envelope.text, "plain", "utf-8"))
    msg.attach(MIMEText(envelope.html, "html", "utf-8"))
  else:
    msg = MIMEText(envelope.text, "plain", "utf-8")

  msg["From"] = envelope.from_
  msg["To"] = ", ".join(envelope.to)
  msg["Subject"] = envelope.subject
  msg["Date"] = formatdate(localtime=True)
  msg["Message-ID"] = message_id
  if envelope.cc:
    msg["Cc"] = envelope.cc
  return msg


def envelope_recipients(envelope: Envelope) -> list[str]:
  """Every RCPT TO address: to, then cc, then bcc."""
  recipients = list(envelope.to)
  for joined in (envelope.cc, envelope.bcc):
    if joined:
      recipients.extend(a.strip() for a in joined.split(",") if a.strip())
  return recipients


class SmtpSubmitter:
  """Hands a normalized envelope to the SMTP server and returns its Message-ID."""

  def __init__(self, config: SmtpConfig) -> None:
    self.config = config

  def _client(self) -> aiosmtplib.SMTP:
    if self.config.port == 465:
      return aiosmtplib.SMTP(hostname=self.config.host, port=self.config.port, use_tls=True)
    return aiosmtplib.SMTP(hostname=self.config.host, port=self.config.port, start_tls=True)

  async def submit(self, envelope: Envelope) -> str:
    domain = envelope.from_.rpartition("@")[2] or None
    message_id = make_msgid(domain=domain)
    msg = build_mime_message(envelope, message_id)

    # The context manager quits on success and closes the socket on error
    try:
      async with self._client() as smtp:
        await smtp.login(self.config.user, self.config.password)
        await smtp.send_message(msg, sender=envelope.from_, recipients=envelope_recipients(envelope))
    except aiosmtplib.SMTPException as e:
      log.exception("Failed to send email")
      raise SubmissionError(str(e)) from e

    log.info("Email sent to %s", ", ".join(envelope.to))
    return message_id
