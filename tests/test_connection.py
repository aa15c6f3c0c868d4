from __future__ import annotations

import asyncio

import pytest

from gmail_mcp.client.connection import ConnectionManager, ConnectionState
from gmail_mcp.errors import ImapConnectionError, ImapError


class CountingConnection:
  def __init__(self, fail_open: bool = False):
    self.fail_open = fail_open
    self.opened = 0
    self.closed = 0

  async def open(self) -> None:
    self.opened += 1
    if self.fail_open:
      raise ImapConnectionError("connection refused")

  async def close(self) -> None:
    self.closed += 1


def make_manager(imap_config, conn: CountingConnection) -> ConnectionManager:
  return ConnectionManager(imap_config, lambda _cfg: conn)


@pytest.mark.asyncio
async def test_succeed_returns_value_and_closes_once(imap_config):
  conn = CountingConnection()
  states: list[ConnectionState] = []

  async def action(c, succeed, fail):
    assert c is conn
    succeed(42)

  assert await make_manager(imap_config, conn).run(action, states.append) == 42
  assert conn.closed == 1
  assert states == [
    ConnectionState.CONNECTING,
    ConnectionState.READY,
    ConnectionState.EXECUTING,
    ConnectionState.CLOSING,
    ConnectionState.DONE,
  ]


@pytest.mark.asyncio
async def test_explicit_fail_raises_after_close(imap_config):
  conn = CountingConnection()
  states: list[ConnectionState] = []
  error = ImapError("boom")

  async def action(c, succeed, fail):
    fail(error)

  with pytest.raises(ImapError) as exc_info:
    await make_manager(imap_config, conn).run(action, states.append)
  assert exc_info.value is error
  assert conn.closed == 1
  assert states[-2:] == [ConnectionState.CLOSING, ConnectionState.FAILED]


@pytest.mark.asyncio
async def test_raising_action_is_treated_as_failure(imap_config):
  conn = CountingConnection()

  async def action(c, succeed, fail):
    raise ValueError("bad data")

  with pytest.raises(ValueError, match="bad data"):
    await make_manager(imap_config, conn).run(action)
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_unsettled_action_is_an_error(imap_config):
  conn = CountingConnection()

  async def action(c, succeed, fail):
    return None

  with pytest.raises(ImapError, match="without reporting a result"):
    await make_manager(imap_config, conn).run(action)
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_first_settlement_wins(imap_config):
  conn = CountingConnection()

  async def action(c, succeed, fail):
    succeed("first")
    fail(ImapError("late"))
    succeed("second")

  assert await make_manager(imap_config, conn).run(action) == "first"
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_connect_failure_never_runs_action(imap_config):
  conn = CountingConnection(fail_open=True)
  called = False

  async def action(c, succeed, fail):
    nonlocal called
    called = True
    succeed(None)

  with pytest.raises(ImapConnectionError):
    await make_manager(imap_config, conn).run(action)
  assert called is False
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_cancellation_still_closes(imap_config):
  conn = CountingConnection()

  async def action(c, succeed, fail):
    raise asyncio.CancelledError()

  with pytest.raises(asyncio.CancelledError):
    await make_manager(imap_config, conn).run(action)
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_execute_returns_function_result(imap_config):
  conn = CountingConnection()

  async def fn(c):
    return ["a", "b"]

  assert await make_manager(imap_config, conn).execute(fn) == ["a", "b"]
  assert conn.opened == 1
  assert conn.closed == 1


@pytest.mark.asyncio
async def test_each_run_gets_a_fresh_connection(imap_config):
  conns: list[CountingConnection] = []

  def factory(_cfg):
    conns.append(CountingConnection())
    return conns[-1]

  manager = ConnectionManager(imap_config, factory)

  async def fn(c):
    return id(c)

  first = await manager.execute(fn)
  second = await manager.execute(fn)
  assert first != second
  assert [c.closed for c in conns] == [1, 1]


@pytest.mark.asyncio
async def test_imap_connection_close_is_idempotent(manager, fake_imap):
  captured = []

  async def fn(conn):
    captured.append(conn)
    return None

  await manager.execute(fn)
  await captured[0].close()

  assert fake_imap.logouts == 1
  with pytest.raises(ImapError, match="closed connection"):
    await captured[0].search("ALL")
