import io
import threading
import unittest

from ducky.providers.common import waiting_spinner

_CLEAR = "\r" + " " * len("x Waiting") + "\r"


class WaitingSpinnerTests(unittest.TestCase):
    def test_disabled_spinner_writes_nothing(self) -> None:
        stream = io.StringIO()

        with waiting_spinner(False, stream=stream):
            pass

        self.assertEqual("", stream.getvalue())

    def test_line_is_cleared_after_request(self) -> None:
        stream = io.StringIO()
        threads_before = threading.active_count()

        with waiting_spinner(True, label=" Waiting", stream=stream):
            pass

        self.assertTrue(stream.getvalue().endswith(_CLEAR))
        self.assertEqual(threads_before, threading.active_count())

    def test_line_is_cleared_when_request_fails(self) -> None:
        stream = io.StringIO()

        with self.assertRaises(RuntimeError):
            with waiting_spinner(True, label=" Waiting", stream=stream):
                raise RuntimeError("boom")

        self.assertTrue(stream.getvalue().endswith(_CLEAR))
