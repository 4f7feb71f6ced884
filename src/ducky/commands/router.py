from __future__ import annotations

from collections.abc import Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], None],
        on_context: Callable[[str], None],
        on_history: Callable[[str], None],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_context = on_context
        self._on_history = on_history
        self._on_unknown = on_unknown

    def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            self._on_help()
            return True
        if trimmed.startswith("/context"):
            self._on_context(trimmed)
            return True
        if trimmed.startswith("/history"):
            self._on_history(trimmed)
            return True

        self._on_unknown(trimmed)
        return True
