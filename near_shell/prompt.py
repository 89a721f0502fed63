"""
Line prompt on the controlling terminal, acquired and released as a scope.

    with TerminalPrompt() as prompt:
        account_id = prompt.ask("Which account? ")

`ask` blocks until a line arrives; there is no timeout.
"""

from __future__ import annotations

import logging
from typing import Optional, TextIO

import typer

log = logging.getLogger("near_shell.prompt")


class TerminalPrompt:
    def __init__(self, output: Optional[TextIO] = None) -> None:
        self._output = output if output is not None else typer.get_text_stream("stdout")
        self.closed = False

    def __enter__(self) -> "TerminalPrompt":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def ask(self, text: str) -> str:
        if self.closed:
            raise RuntimeError("prompt already closed")
        answer = typer.prompt(text, default="", show_default=False, prompt_suffix="")
        return str(answer).strip()

    def close(self) -> None:
        if self.closed:
            return
        self._output.flush()
        self.closed = True
        log.debug("prompt released")


__all__ = ["TerminalPrompt"]
