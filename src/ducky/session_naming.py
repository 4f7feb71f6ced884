from __future__ import annotations

import hashlib
import subprocess
from pathlib import Path

from loguru import logger

from ducky.errors import ConfigurationError

_PROJECT_SUFFIX_MARKER = ":"


def _git(cwd: Path, *args: str) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as ex:
        logger.debug(f"git {' '.join(args)} failed in {cwd}: {ex}")
        return None


def is_git_repo(cwd: Path) -> bool:
    result = _git(cwd, "rev-parse", "--is-inside-work-tree")
    return result is not None and result.returncode == 0


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def git_project_name(cwd: Path) -> str:
    """Hash of the repository's top-level path, stable for every subdirectory."""
    result = _git(cwd, "rev-parse", "--show-toplevel")
    if result is None or result.returncode != 0:
        raise ConfigurationError(f"Unable to determine git top-level directory for {cwd}")
    return sha256_hex(result.stdout.replace("\n", ""))


def conversation_name(requested: str | None, cwd: Path) -> str | None:
    """Resolve the session identifier; ``None`` means an ephemeral conversation.

    Inside a git repository the default name is the project hash and a name
    starting with ``:`` is appended to it (``<hash>:notes``). Outside a
    repository only an explicit, non-suffix name is honoured.
    """
    if is_git_repo(cwd):
        if requested is None:
            return git_project_name(cwd)
        if requested.startswith(_PROJECT_SUFFIX_MARKER):
            return git_project_name(cwd) + requested
        return requested

    if requested is None:
        return None
    if requested.startswith(_PROJECT_SUFFIX_MARKER):
        raise ConfigurationError(f"Project-scoped conversation {requested!r} requires a git repository")
    return requested
