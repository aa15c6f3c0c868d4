"""
Gmail MCP server: mailbox operations over IMAP, sending over SMTP.
"""

__version__ = "0.1.0"
