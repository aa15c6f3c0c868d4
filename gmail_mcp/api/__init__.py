"""Mailbox and send operations used by the tool handlers."""
