from __future__ import annotations

from ducky.conversation.models import ConversationRecord, Message, Role


class SessionController:
    def __init__(self, *, line_prefix: str, short_id_len: int = 12, preview_chars: int = 140):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len
        self._preview_chars = preview_chars

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def preview(self, content: str) -> str:
        text = " ".join(content.split())
        if len(text) <= self._preview_chars:
            return text
        return text[: self._preview_chars - 3] + "..."

    def format_summary_lines(self, name: str | None, record: ConversationRecord) -> list[str]:
        title = self.short_id(name) if name else "(ephemeral)"
        user_count = sum(1 for m in record.history if m.role is Role.USER)
        assistant_count = sum(1 for m in record.history if m.role is Role.ASSISTANT)
        system_count = sum(1 for m in record.context if m.role is Role.SYSTEM)
        lines = [f"{self._line_prefix}Conversation {title} (model={record.model})"]
        lines.append(
            f"{self._line_prefix}- History: {len(record.history)} "
            f"(user={user_count}, assistant={assistant_count})"
        )
        lines.append(
            f"{self._line_prefix}- Context: {len(record.context)} (system={system_count}) | "
            f"includes={record.includes}, session_len={record.session_len}, window={record.window}"
        )
        last_user = next((m for m in reversed(record.history) if m.role is Role.USER), None)
        if last_user is not None:
            lines.append(f"{self._line_prefix}- Last user: {self.preview(last_user.content)}")
        last_assistant = next((m for m in reversed(record.history) if m.role is Role.ASSISTANT), None)
        if last_assistant is not None:
            lines.append(f"{self._line_prefix}- Last assistant: {self.preview(last_assistant.content)}")
        return lines

    def format_message_lines(self, messages: list[Message], *, limit: int | None = None) -> list[str]:
        start = 0 if limit is None else max(0, len(messages) - limit)
        return [
            f"{self._line_prefix}{index:>4} [{msg.role.value}] {self.preview(msg.content)}"
            for index, msg in enumerate(messages[start:], start=start)
        ]
