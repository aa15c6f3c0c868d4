from __future__ import annotations

import json

import pytest

from conftest import FakeMessage, inbox_of
from gmail_mcp.api.mailbox_api import MailboxOperations, set_operations
from gmail_mcp.handlers import DISPATCH, dispatch_tool
from gmail_mcp.state.types import Envelope
from gmail_mcp.tools import ALL_TOOLS


class StubSubmitter:
  def __init__(self):
    self.envelopes: list[Envelope] = []

  async def submit(self, envelope: Envelope) -> str:
    self.envelopes.append(envelope)
    return "<id@example.com>"


@pytest.fixture
def submitter():
  return StubSubmitter()


@pytest.fixture(autouse=True)
def registered(manager, submitter):
  ops = MailboxOperations(manager, submitter, "me@example.com")
  set_operations(ops)
  yield ops
  set_operations(None)


def test_every_tool_has_a_handler():
  assert sorted(t.name for t in ALL_TOOLS) == sorted(DISPATCH)
  assert set(DISPATCH) == {
    "list_messages",
    "list_unread",
    "find_message",
    "send_message",
    "mark_as_read",
    "delete_messages",
    "list_labels",
    "create_label",
    "delete_label",
    "rename_label",
    "move_label",
    "label_message",
    "move_message",
  }


@pytest.mark.asyncio
async def test_list_messages_payload(fake_imap):
  fake_imap.add("INBOX", *inbox_of(3))

  result = await dispatch_tool("list_messages", {"count": 2})

  assert result.is_error is False
  payload = json.loads(result.content)
  assert payload["success"] is True
  assert payload["count"] == 2
  assert [m["id"] for m in payload["messages"]] == ["3", "2"]
  assert set(payload["messages"][0]) == {"id", "subject", "from", "date", "snippet"}


@pytest.mark.asyncio
async def test_hyphenated_tool_name(fake_imap):
  result = await dispatch_tool("list-labels", {})
  assert json.loads(result.content)["labels"] == ["INBOX"]


@pytest.mark.asyncio
async def test_count_out_of_range_is_validation_error(fake_imap):
  result = await dispatch_tool("list_unread", {"count": 0})

  assert result.is_error is True
  assert result.content == "Invalid count: must be between 1 and 100"
  assert fake_imap.commands == []


@pytest.mark.asyncio
async def test_find_message_requires_query(fake_imap):
  result = await dispatch_tool("find_message", {"query": ""})

  assert result.is_error is True
  assert result.content == "Search query cannot be empty"


@pytest.mark.asyncio
async def test_find_message_payload(fake_imap):
  fake_imap.add("INBOX", FakeMessage(uid=4, subject="Invoice 12"), FakeMessage(uid=5, subject="Lunch"))

  result = await dispatch_tool("find_message", {"query": "invoice"})

  payload = json.loads(result.content)
  assert payload["query"] == "invoice"
  assert payload["total_count"] == 1
  assert payload["found_messages"] == 1
  assert payload["messages"][0]["subject"] == "Invoice 12"


@pytest.mark.asyncio
async def test_mailbox_failure_becomes_coded_error(fake_imap):
  fake_imap.add("INBOX", *inbox_of(1))

  result = await dispatch_tool("delete_messages", {"message_ids": ["1"]})

  assert result.is_error is True
  assert result.content.startswith("Failed to delete messages:")
  assert "(code: MSG-ERR-" in result.content


@pytest.mark.asyncio
async def test_mark_as_read_payload(fake_imap):
  fake_imap.add("INBOX", *inbox_of(2))

  result = await dispatch_tool("mark_as_read", {"message_ids": ["1", "2"]})

  payload = json.loads(result.content)
  assert payload == {"success": True, "updated_count": 2, "message": "Messages marked as read"}


@pytest.mark.asyncio
async def test_move_label_payload(fake_imap):
  fake_imap.add("Work/Project")
  fake_imap.add("Archive")

  result = await dispatch_tool("move_label", {"label": "Work/Project", "new_parent": "Archive"})

  assert json.loads(result.content)["label"] == "Archive/Project"


@pytest.mark.asyncio
async def test_label_message_requires_labels(fake_imap):
  result = await dispatch_tool("label_message", {"message_id": "1", "labels": []})

  assert result.is_error is True
  assert "label" in result.content


@pytest.mark.asyncio
async def test_send_message(submitter):
  result = await dispatch_tool(
    "send_message",
    {"to": "bob@example.com", "subject": "Hi", "body": "Hello", "bcc": ["x@example.com", "y@example.com"]},
  )

  payload = json.loads(result.content)
  assert payload == {"message_id": "<id@example.com>", "success": True, "message": "Email sent successfully"}
  assert submitter.envelopes[0].bcc == "x@example.com, y@example.com"


@pytest.mark.asyncio
async def test_send_message_rejects_bad_address(submitter):
  result = await dispatch_tool("send_message", {"to": "bob", "subject": "Hi", "body": "Hello"})

  assert result.is_error is True
  assert "Invalid email address" in result.content
  assert submitter.envelopes == []


@pytest.mark.asyncio
async def test_unknown_tool():
  result = await dispatch_tool("explode", {})
  assert result.is_error is True
  assert result.content == "Unknown tool: explode"
