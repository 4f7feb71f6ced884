from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from collections.abc import Callable

from loguru import logger

from ducky.engines import DEFAULT_ALIAS, DEFAULT_MODEL, supported_models
from ducky.errors import ConfigurationError, EmptyInputError

InputFn = Callable[[str], str]


def edit_text(editor: str, text: str = "") -> str:
    """Open ``editor`` on a temporary file seeded with ``text`` and return the result."""
    fd, path = tempfile.mkstemp(prefix="ducky-", suffix=".md")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)

        command = shlex.split(editor) + [path]
        logger.debug(f"Launching editor: {command}")
        try:
            result = subprocess.run(command)
        except OSError as ex:
            raise ConfigurationError(f"Unable to open editor {editor!r}: {ex}") from ex
        if result.returncode != 0:
            raise ConfigurationError(f"Editor {editor!r} exited with status {result.returncode}")

        with open(path, encoding="utf-8") as f:
            contents = f.read()
    finally:
        os.unlink(path)

    if not contents.strip():
        raise EmptyInputError()
    return contents


def read_prompt(words: list[str], *, use_editor: bool, editor: str, input_fn: InputFn = input) -> str:
    if use_editor:
        return edit_text(editor)

    prompt = " ".join(words)
    if prompt:
        return prompt

    while True:
        try:
            prompt = input_fn("Enter Prompt: ")
        except EOFError:
            raise EmptyInputError() from None
        if prompt.strip():
            return prompt


def choose_model(input_fn: InputFn = input, output: Callable[[str], None] = print) -> str:
    """Ask until a supported model (or ``default``) is entered."""
    choices = [DEFAULT_ALIAS, *supported_models()]
    while True:
        output("Specify model for conversation")
        output(f"Usable models: {', '.join(choices)}")
        try:
            answer = input_fn("Enter model: ").strip()
        except EOFError:
            raise EmptyInputError() from None
        if answer == DEFAULT_ALIAS:
            return DEFAULT_MODEL
        if answer in choices:
            return answer
        logger.debug(f"Rejected model choice {answer!r}")
