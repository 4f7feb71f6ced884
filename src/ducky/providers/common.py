from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from typing import Iterator, TextIO

_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_FRAME_DELAY = 0.08


def _animate(stream: TextIO, label: str, done: threading.Event) -> None:
    i = 0
    try:
        while not done.is_set():
            stream.write("\r" + _FRAMES[i % len(_FRAMES)] + label)
            stream.flush()
            done.wait(_FRAME_DELAY)
            i += 1
    except (UnicodeEncodeError, OSError):
        pass  # no frames on this terminal


@contextmanager
def waiting_spinner(
    enabled: bool,
    *,
    label: str = " Thinking...",
    stream: TextIO | None = None,
) -> Iterator[None]:
    """Animate ``label`` on one terminal line while a completion request is pending.

    The line is cleared on exit, including when the request raises.
    """
    if not enabled:
        yield
        return

    out = stream or sys.stderr
    done = threading.Event()
    worker = threading.Thread(target=_animate, args=(out, label, done), daemon=True)
    worker.start()
    try:
        yield
    finally:
        done.set()
        worker.join()
        out.write("\r" + " " * (1 + len(label)) + "\r")
        out.flush()
