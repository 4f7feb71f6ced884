from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.rule import Rule

DEFAULT_CODE_THEME = "monokai"


class ReplyRenderer:
    """Pretty-prints assistant replies as markdown."""

    def __init__(self, *, theme: str | None = None, console: Console | None = None):
        self._theme = theme or DEFAULT_CODE_THEME
        self._console = console or Console()

    def render(self, text: str) -> None:
        self._console.print(Markdown(text, code_theme=self._theme))

    def render_turn(self, text: str) -> None:
        self._console.print(Rule(style="dim"))
        self.render(text)
        self._console.print(Rule(style="dim"))

    def info(self, text: str) -> None:
        self._console.print(text, style="dim", markup=False, highlight=False)
