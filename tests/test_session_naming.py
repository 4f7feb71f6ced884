import subprocess
import unittest
from pathlib import Path
from unittest.mock import patch

from ducky.errors import ConfigurationError
from ducky.session_naming import conversation_name, is_git_repo, sha256_hex

_TOPLEVEL = "/home/user/project"


def _fake_git(in_repo: bool):
    def run(command, **kwargs):
        args = command[1:]
        if not in_repo:
            return subprocess.CompletedProcess(command, 128, "", "fatal: not a git repository")
        if args == ["rev-parse", "--is-inside-work-tree"]:
            return subprocess.CompletedProcess(command, 0, "true\n", "")
        if args == ["rev-parse", "--show-toplevel"]:
            return subprocess.CompletedProcess(command, 0, _TOPLEVEL + "\n", "")
        raise AssertionError(f"unexpected git call: {command}")

    return run


class ConversationNameTests(unittest.TestCase):
    def test_default_name_in_repo_is_hash_of_toplevel(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(True)):
            name = conversation_name(None, Path(_TOPLEVEL))

        self.assertEqual(sha256_hex(_TOPLEVEL), name)
        self.assertEqual(64, len(name))

    def test_suffix_name_is_scoped_to_project(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(True)):
            name = conversation_name(":notes", Path(_TOPLEVEL))

        self.assertEqual(sha256_hex(_TOPLEVEL) + ":notes", name)

    def test_explicit_name_in_repo_is_used_as_is(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(True)):
            self.assertEqual("scratch", conversation_name("scratch", Path(_TOPLEVEL)))

    def test_outside_repo_without_name_is_ephemeral(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(False)):
            self.assertIsNone(conversation_name(None, Path("/tmp")))

    def test_outside_repo_explicit_name_is_used(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(False)):
            self.assertEqual("scratch", conversation_name("scratch", Path("/tmp")))

    def test_outside_repo_suffix_name_is_rejected(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=_fake_git(False)):
            with self.assertRaises(ConfigurationError):
                conversation_name(":notes", Path("/tmp"))

    def test_missing_git_binary_means_not_a_repo(self) -> None:
        with patch("ducky.session_naming.subprocess.run", side_effect=FileNotFoundError("git")):
            self.assertFalse(is_git_repo(Path("/tmp")))
