"""
Connection lifecycle manager.

Each call to ``ConnectionManager.run`` owns one private IMAP connection and
walks it through CONNECTING -> READY -> EXECUTING -> CLOSING -> DONE/FAILED.
The connection is closed exactly once, before the caller sees the outcome,
whether the action succeeds, fails explicitly or raises.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from ..config import ImapConfig
from ..errors import ImapError
from .imap_client import ImapConnection

log = logging.getLogger("gmail_mcp.client.connection")

T = TypeVar("T")


class ConnectionState(str, Enum):
  CONNECTING = "connecting"
  READY = "ready"
  EXECUTING = "executing"
  CLOSING = "closing"
  DONE = "done"
  FAILED = "failed"


class Connection(Protocol):
  async def open(self) -> None: ...

  async def close(self) -> None: ...


ConnectionFactory = Callable[[ImapConfig], Connection]
Action = Callable[[Any, Callable[[Any], None], Callable[[BaseException], None]], Awaitable[None]]


class _Outcome(Generic[T]):
  """Records the first succeed()/fail() call of an action; later calls are ignored."""

  def __init__(self) -> None:
    self.settled = False
    self.value: T | None = None
    self.error: BaseException | None = None

  def succeed(self, value: T) -> None:
    if self.settled:
      log.warning("Operation already settled; ignoring succeed()")
      return
    self.settled = True
    self.value = value

  def fail(self, error: BaseException) -> None:
    if self.settled:
      log.warning("Operation already settled; ignoring fail(%s)", error)
      return
    self.settled = True
    self.error = error


class ConnectionManager:
  def __init__(
    self,
    config: ImapConfig,
    connection_factory: ConnectionFactory | None = None,
  ) -> None:
    self.config = config
    self._connection_factory = connection_factory or ImapConnection

  async def run(
    self,
    action: Action,
    on_transition: Callable[[ConnectionState], None] | None = None,
  ) -> Any:
    """Open a connection, hand it to ``action`` and close it exactly once.

    ``action(conn, succeed, fail)`` must settle the operation through one of
    the two callbacks or raise. A connection-level failure aborts before the
    action is ever invoked.
    """

    def transition(state: ConnectionState) -> None:
      log.debug("Connection to %s: %s", self.config.host, state.value)
      if on_transition is not None:
        on_transition(state)

    outcome: _Outcome[Any] = _Outcome()
    conn = self._connection_factory(self.config)
    try:
      transition(ConnectionState.CONNECTING)
      await conn.open()
      transition(ConnectionState.READY)

      transition(ConnectionState.EXECUTING)
      try:
        await action(conn, outcome.succeed, outcome.fail)
      except Exception as e:
        outcome.fail(e)
    except BaseException:
      transition(ConnectionState.CLOSING)
      await conn.close()
      transition(ConnectionState.FAILED)
      raise

    transition(ConnectionState.CLOSING)
    await conn.close()

    if outcome.error is not None:
      transition(ConnectionState.FAILED)
      raise outcome.error
    if not outcome.settled:
      transition(ConnectionState.FAILED)
      raise ImapError("Operation finished without reporting a result")

    transition(ConnectionState.DONE)
    return outcome.value

  async def execute(self, fn: Callable[[Any], Awaitable[T]]) -> T:
    """Run ``fn(conn)`` on a private connection and return its value."""

    async def action(conn: Any, succeed: Callable[[Any], None], fail: Callable[[BaseException], None]) -> None:
      succeed(await fn(conn))

    return await self.run(action)
