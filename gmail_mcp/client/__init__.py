"""IMAP/SMTP protocol clients, connection lifecycle and response parsing."""
