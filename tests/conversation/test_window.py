import asyncio
import unittest

from ducky.conversation.models import ConversationRecord, Message, Role
from ducky.conversation.window import ContextWindowManager, pin_system_messages
from ducky.errors import ServiceError


class _FakeService:
    def __init__(self, *, fail: bool = False) -> None:
        self.calls: list[list[Message]] = []
        self.fail = fail

    async def complete(self, model: str, messages: list[Message]) -> Message:
        self.calls.append(list(messages))
        if self.fail:
            raise ServiceError("quota exceeded")
        return Message(Role.ASSISTANT, f"reply{len(self.calls)}")


def _user(text: str) -> Message:
    return Message(Role.USER, text)


def _assistant(text: str) -> Message:
    return Message(Role.ASSISTANT, text)


def _system(text: str) -> Message:
    return Message(Role.SYSTEM, text)


class ContextWindowManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.record = ConversationRecord(model="gpt-4", includes=2)
        self.service = _FakeService()
        self.manager = ContextWindowManager(self.record, self.service)

    def _send(self, content: str, role: Role = Role.USER, **kwargs) -> Message:
        return asyncio.run(self.manager.send(content, role, **kwargs))

    def test_first_send_without_keep_leaves_context_empty(self) -> None:
        reply = self._send("hi")

        self.assertEqual(_assistant("reply1"), reply)
        self.assertEqual([], self.record.context)
        self.assertEqual([_user("hi"), _assistant("reply1")], self.record.history)
        self.assertEqual([[_user("hi")]], self.service.calls)

    def test_keep_retains_prompt_then_window_pulls_available_history(self) -> None:
        self._send("what's up", keep=True)
        self.assertEqual([_user("what's up")], self.record.context)

        self._send("new")

        self.assertEqual(
            [_user("what's up"), _user("what's up"), _assistant("reply1"), _user("new")],
            self.service.calls[-1],
        )
        self.assertEqual([_user("what's up")], self.record.context)

    def test_window_pulls_at_most_includes_turns_plus_new_message(self) -> None:
        for i in range(5):
            self.record.history.extend([_user(f"u{i}"), _assistant(f"a{i}")])

        self._send("latest")

        replayed = self.service.calls[-1]
        self.assertEqual(5, len(replayed))
        self.assertEqual(
            [_user("u3"), _assistant("a3"), _user("u4"), _assistant("a4"), _user("latest")],
            replayed,
        )

    def test_short_history_is_pulled_entirely(self) -> None:
        self.record.history.extend([_user("u0"), _assistant("a0")])

        self._send("next")

        self.assertEqual([_user("u0"), _assistant("a0"), _user("next")], self.service.calls[-1])

    def test_zero_includes_replays_only_context_and_new_message(self) -> None:
        self.record.includes = 0
        self.record.context.append(_user("pinned"))
        self.record.history.extend([_user("u0"), _assistant("a0")])

        self._send("next")

        self.assertEqual([_user("pinned"), _user("next")], self.service.calls[-1])

    def test_context_replayed_before_window(self) -> None:
        self.record.context.append(_system("be terse"))

        self._send("hello")

        self.assertEqual([_system("be terse"), _user("hello")], self.service.calls[-1])

    def test_retention_collapse_without_keep(self) -> None:
        self.record.context.extend([_user("a"), _user("b")])
        before = len(self.record.context)

        self._send("c")

        self.assertEqual(before, len(self.record.context))

    def test_retention_growth_with_keep(self) -> None:
        self.record.context.extend([_user("a"), _user("b")])
        before = len(self.record.context)

        self._send("c", keep=True)

        self.assertEqual(before + 1, len(self.record.context))
        self.assertEqual(_user("c"), self.record.context[-1])

    def test_system_message_is_kept_and_pinned_to_front(self) -> None:
        self.record.context.extend([_user("u1"), _system("s1"), _user("u2")])

        self._send("s2", Role.SYSTEM)

        self.assertEqual(
            [_system("s1"), _system("s2"), _user("u1"), _user("u2")],
            self.record.context,
        )

    def test_system_message_with_keep_is_pinned(self) -> None:
        self.record.context.append(_user("u1"))

        asyncio.run(self.manager.send_system_message("rules", keep=True))

        self.assertEqual([_system("rules"), _user("u1")], self.record.context)

    def test_history_grows_by_two_per_send(self) -> None:
        self._send("one")
        self._send("two", keep=True)
        self._send("three", Role.SYSTEM)

        self.assertEqual(6, len(self.record.history))
        self.assertEqual(
            [Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT, Role.SYSTEM, Role.ASSISTANT],
            [m.role for m in self.record.history],
        )

    def test_extend_session_grows_window_each_send(self) -> None:
        self.record.includes = 0

        self._send("a", extend_session=True)
        self.assertEqual(1, self.record.session_len)
        self._send("b", extend_session=True)
        self.assertEqual(2, self.record.session_len)

        # window was (0 + 1) * 2 = 2 on the second send
        self.assertEqual([_user("a"), _assistant("reply1"), _user("b")], self.service.calls[-1])

    def test_non_extending_send_resets_session_len(self) -> None:
        self.record.session_len = 3

        self._send("a")

        self.assertEqual(0, self.record.session_len)

    def test_failed_send_keeps_unanswered_message_and_restores_context(self) -> None:
        self.record.context.append(_user("kept"))
        self.service.fail = True

        with self.assertRaises(ServiceError):
            self._send("lost", keep=True)

        self.assertEqual([_user("kept")], self.record.context)
        self.assertEqual([_user("lost")], self.record.history)
        self.assertEqual(0, self.record.session_len)

    def test_failed_send_does_not_extend_session(self) -> None:
        self.service.fail = True

        with self.assertRaises(ServiceError):
            self._send("x", extend_session=True)

        self.assertEqual(0, self.record.session_len)

    def test_send_message_uses_user_role(self) -> None:
        asyncio.run(self.manager.send_message("hey", keep=True))

        self.assertEqual([_user("hey")], self.record.context)

    def test_set_includes_rejects_negative(self) -> None:
        with self.assertRaises(ValueError):
            self.manager.set_includes(-1)
        self.manager.set_includes(5)
        self.assertEqual(5, self.record.includes)


class TrimContextTests(unittest.TestCase):
    def setUp(self) -> None:
        self.record = ConversationRecord(model="gpt-4")
        self.manager = ContextWindowManager(self.record, _FakeService())

    def test_keeps_most_recent_user_turns_and_system_messages(self) -> None:
        self.record.context.extend(
            [_system("s1"), _user("u1"), _user("u2"), _system("s2"), _user("u3"), _assistant("a3")]
        )

        removed = self.manager.trim_context(2)

        self.assertEqual(1, removed)
        self.assertEqual(
            [_system("s1"), _user("u2"), _system("s2"), _user("u3"), _assistant("a3")],
            self.record.context,
        )

    def test_single_turn_drops_older_user_messages(self) -> None:
        self.record.context.extend([_system("s1"), _user("u1"), _user("u2"), _user("u3")])

        removed = self.manager.trim_context(1)

        self.assertEqual(2, removed)
        self.assertEqual([_system("s1"), _user("u3")], self.record.context)

    def test_zero_keeps_only_system_messages(self) -> None:
        self.record.context.extend([_system("s1"), _user("u1"), _user("u2")])

        self.manager.trim_context(0)

        self.assertEqual([_system("s1")], self.record.context)

    def test_more_turns_than_available_keeps_everything(self) -> None:
        self.record.context.extend([_user("u1"), _user("u2")])

        removed = self.manager.trim_context(5)

        self.assertEqual(0, removed)
        self.assertEqual([_user("u1"), _user("u2")], self.record.context)

    def test_negative_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.manager.trim_context(-1)


class PinSystemMessagesTests(unittest.TestCase):
    def test_partition_is_stable(self) -> None:
        messages = [_user("u1"), _system("s1"), _assistant("a1"), _system("s2"), _user("u2")]

        pin_system_messages(messages)

        self.assertEqual(
            [_system("s1"), _system("s2"), _user("u1"), _assistant("a1"), _user("u2")],
            messages,
        )


class ConversationRecordTests(unittest.TestCase):
    def test_window_is_two_messages_per_turn(self) -> None:
        record = ConversationRecord(model="gpt-4", includes=2, session_len=1)
        self.assertEqual(6, record.window)

    def test_negative_counters_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ConversationRecord(model="gpt-4", includes=-1)
        with self.assertRaises(ValueError):
            ConversationRecord(model="gpt-4", session_len=-1)
