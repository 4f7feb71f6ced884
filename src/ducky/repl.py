from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from ducky.commands.router import CommandRouter
from ducky.conversation.transient import TransientSession
from ducky.conversation.window import ContextWindowManager
from ducky.errors import ServiceError
from ducky.rendering import ReplyRenderer
from ducky.services.session_controller import SessionController

USER_PROMPT = "> "
_EXIT_WORDS = ("quit", "exit")
_DEFAULT_HISTORY_LIMIT = 10

_HELP_LINES = [
    "Commands:",
    "  /help            show this help",
    "  /context         show the messages replayed this session",
    "  /history [n]     show the last n saved messages (default 10)",
    "  quit | exit      end the session (Ctrl-D and Ctrl-C also work)",
]


def _parse_limit(command: str) -> int | None:
    parts = command.split()
    if len(parts) < 2:
        return _DEFAULT_HISTORY_LIMIT
    try:
        return max(1, int(parts[1]))
    except ValueError:
        return None


def _build_router(
    session: TransientSession,
    manager: ContextWindowManager,
    renderer: ReplyRenderer,
    controller: SessionController,
) -> CommandRouter:
    def on_help() -> None:
        for line in _HELP_LINES:
            renderer.info(line)

    def on_context(_: str) -> None:
        lines = controller.format_message_lines(session.messages)
        for line in lines or ["(context is empty)"]:
            renderer.info(line)

    def on_history(command: str) -> None:
        limit = _parse_limit(command)
        if limit is None:
            renderer.info("Usage: /history [n]")
            return
        lines = controller.format_message_lines(manager.record.history, limit=limit)
        for line in lines or ["(history is empty)"]:
            renderer.info(line)

    def on_unknown(command: str) -> None:
        renderer.info(f"Unknown command: {command} (try /help)")

    return CommandRouter(
        on_help=on_help,
        on_context=on_context,
        on_history=on_history,
        on_unknown=on_unknown,
    )


async def run_repl(
    manager: ContextWindowManager,
    *,
    renderer: ReplyRenderer,
    controller: SessionController,
    input_fn: Callable[[str], str] = input,
) -> int:
    """Drive a TransientSession from stdin. Returns the number of completed turns.

    The session is closed on every exit path, so completed turns are merged
    into the record's history even when the loop is interrupted.
    """
    with manager.open_session() as session:
        router = _build_router(session, manager, renderer, controller)
        while True:
            try:
                user_input = input_fn(USER_PROMPT)
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()
            if trimmed in _EXIT_WORDS:
                break
            if not trimmed:
                continue
            if router.try_handle(trimmed):
                continue

            try:
                reply = await session.send(trimmed)
            except ServiceError as ex:
                logger.error(f"Completion failed: {ex}")
                renderer.info(f"Error: {ex}")
                continue
            renderer.render_turn(reply.content)

        return session.turns
