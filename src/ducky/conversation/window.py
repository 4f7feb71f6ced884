from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ducky.conversation.models import ConversationRecord, Message, Role
from ducky.conversation.transient import TransientSession

if TYPE_CHECKING:
    from ducky.provider import CompletionService


def pin_system_messages(messages: list[Message]) -> None:
    """Stable partition in place: system messages first, order kept within each group."""
    pinned = [m for m in messages if m.role is Role.SYSTEM]
    rest = [m for m in messages if m.role is not Role.SYSTEM]
    messages[:] = pinned + rest


class ContextWindowManager:
    """Decides what each turn replays to the completion service.

    ``record.history`` is the full audit log and ``record.context`` is the
    working memory. Every send replays ``context`` plus a sliding window of
    recent history sized by ``includes`` and ``session_len``, then restores
    ``context`` and keeps the outgoing message only when asked to (or when it
    is a system message).
    """

    def __init__(self, record: ConversationRecord, service: CompletionService):
        self._record = record
        self._service = service

    @property
    def record(self) -> ConversationRecord:
        return self._record

    @property
    def service(self) -> CompletionService:
        return self._service

    async def send(
        self,
        content: str,
        role: Role = Role.USER,
        *,
        keep: bool = False,
        extend_session: bool = False,
    ) -> Message:
        record = self._record
        if not extend_session:
            record.session_len = 0

        window = record.window
        record.history.append(Message(role=role, content=content))

        context_mark = len(record.context)
        history_len = len(record.history)
        start = 0 if history_len <= window + 1 else history_len - 1 - window
        record.context.extend(record.history[start:])
        logger.debug(
            f"Replaying {len(record.context)} message(s): context={context_mark}, "
            f"window={window}, pulled={history_len - start}"
        )

        try:
            reply = await self._service.complete(record.model, list(record.context))
        except BaseException:
            # The outgoing message stays in history unanswered; only the
            # temporary window is rolled back.
            del record.context[context_mark:]
            raise

        record.history.append(reply)
        last_input = record.context.pop()
        del record.context[context_mark:]

        if keep or role is Role.SYSTEM:
            record.context.append(last_input)
            if role is Role.SYSTEM:
                pin_system_messages(record.context)

        if extend_session:
            record.session_len += 1

        return reply

    async def send_message(self, content: str, *, keep: bool = False, extend_session: bool = False) -> Message:
        return await self.send(content, Role.USER, keep=keep, extend_session=extend_session)

    async def send_system_message(
        self, content: str, *, keep: bool = False, extend_session: bool = False
    ) -> Message:
        """Send as a system message; it is always kept and pinned to the front of context."""
        return await self.send(content, Role.SYSTEM, keep=keep, extend_session=extend_session)

    def set_includes(self, includes: int) -> None:
        if includes < 0:
            raise ValueError(f"includes must be >= 0, got {includes}")
        self._record.includes = includes

    def trim_context(self, keep_user_turns: int) -> int:
        """Keep system messages and the most recent ``keep_user_turns`` user turns.

        Anything following a kept user message stays with it. Returns the
        number of messages removed.
        """
        if keep_user_turns < 0:
            raise ValueError(f"keep_user_turns must be >= 0, got {keep_user_turns}")

        context = self._record.context
        cutoff = len(context)
        remaining = keep_user_turns
        for index in range(len(context) - 1, -1, -1):
            if remaining == 0:
                break
            if context[index].role is Role.USER:
                cutoff = index
                remaining -= 1
        if remaining > 0:
            cutoff = 0

        kept = [m for i, m in enumerate(context) if i >= cutoff or m.role is Role.SYSTEM]
        removed = len(context) - len(kept)
        context[:] = kept
        logger.info(f"Trimmed context to {keep_user_turns} user turn(s), removed {removed} message(s)")
        return removed

    def open_session(self) -> TransientSession:
        return TransientSession(self)
