from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ducky.conversation.models import Message, Role

if TYPE_CHECKING:
    from ducky.conversation.window import ContextWindowManager


class TransientSession:
    """A live multi-turn conversation seeded from the manager's context.

    Turns accumulate in a private running history. The owning record is left
    alone until ``close``, which appends the net-new messages to
    ``record.history``. ``record.context`` is never changed by a session.

    Use as a context manager so ``close`` runs on every exit path::

        with manager.open_session() as session:
            reply = await session.send("hello")
    """

    def __init__(self, manager: ContextWindowManager):
        self._manager = manager
        self._messages: list[Message] = list(manager.record.context)
        self._snapshot_len = len(self._messages)
        self._closed = False

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def turns(self) -> int:
        return (len(self._messages) - self._snapshot_len) // 2

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, content: str) -> Message:
        if self._closed:
            raise RuntimeError("Session is closed")
        self._messages.append(Message(role=Role.USER, content=content))
        record = self._manager.record
        try:
            reply = await self._manager.service.complete(record.model, list(self._messages))
        except BaseException:
            self._messages.pop()
            raise
        self._messages.append(reply)
        return reply

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        net_new = self._messages[self._snapshot_len:]
        self._manager.record.history.extend(net_new)
        logger.info(f"Session closed: merged {len(net_new)} message(s) into history")

    def __enter__(self) -> TransientSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
