"""Interactive prompt collaborator used by ``jira init`` and interactive forms.

Commands receive a :class:`Prompter`; tests substitute :class:`ScriptedPrompter`
so no terminal is required.
"""

from __future__ import annotations

import getpass
import sys
from collections.abc import Callable, Sequence
from typing import Protocol, TextIO

from .errors import JiraCliError


class Prompter(Protocol):
    def ask(self, message: str, *, default: str | None = None, required: bool = False) -> str: ...

    def secret(self, message: str) -> str: ...

    def confirm(self, message: str, *, default: bool = False) -> bool: ...

    def choose(self, message: str, choices: Sequence[tuple[str, str]]) -> str: ...


class PromptAborted(JiraCliError):
    """Raised when input ends before an answer is given."""


class TerminalPrompter:
    """Line-based prompts on stdin/stdout."""

    def __init__(
        self,
        *,
        reader: Callable[[str], str] = input,
        secret_reader: Callable[[str], str] = getpass.getpass,
        stream: TextIO | None = None,
    ):
        self._read = reader
        self._read_secret = secret_reader
        self._stream = stream or sys.stdout

    def _input(self, prompt: str, reader: Callable[[str], str]) -> str:
        try:
            return reader(prompt).strip()
        except EOFError as exc:
            raise PromptAborted("input ended before an answer was given") from exc

    def ask(self, message: str, *, default: str | None = None, required: bool = False) -> str:
        suffix = f" [{default}]" if default else ""
        while True:
            answer = self._input(f"{message}{suffix}: ", self._read) or (default or "")
            if answer or not required:
                return answer
            print("A value is required.", file=self._stream)

    def secret(self, message: str) -> str:
        while True:
            answer = self._input(f"{message}: ", self._read_secret)
            if answer:
                return answer
            print("A value is required.", file=self._stream)

    def confirm(self, message: str, *, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        answer = self._input(f"{message} [{hint}]: ", self._read).lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def choose(self, message: str, choices: Sequence[tuple[str, str]]) -> str:
        """Pick one of ``(label, value)`` pairs by number."""
        if not choices:
            raise PromptAborted(f"no choices available for: {message}")
        print(message, file=self._stream)
        for idx, (label, _) in enumerate(choices, start=1):
            print(f"  {idx}) {label}", file=self._stream)
        while True:
            answer = self._input("Choice: ", self._read)
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1][1]
            print(f"Enter a number between 1 and {len(choices)}.", file=self._stream)


class ScriptedPrompter:
    """Answers prompts from a fixed list (for non-interactive use and tests)."""

    def __init__(self, answers: Sequence[str | bool]):
        self._answers = list(answers)
        self.asked: list[str] = []

    def _next(self, message: str) -> str | bool:
        self.asked.append(message)
        if not self._answers:
            raise PromptAborted(f"no scripted answer for: {message}")
        return self._answers.pop(0)

    def ask(self, message: str, *, default: str | None = None, required: bool = False) -> str:
        return str(self._next(message)) or (default or "")

    def secret(self, message: str) -> str:
        return str(self._next(message))

    def confirm(self, message: str, *, default: bool = False) -> bool:
        return bool(self._next(message))

    def choose(self, message: str, choices: Sequence[tuple[str, str]]) -> str:
        answer = str(self._next(message))
        values = [value for _, value in choices]
        if answer not in values:
            raise PromptAborted(f"scripted answer {answer!r} is not one of {values}")
        return answer


__all__ = ["Prompter", "PromptAborted", "TerminalPrompter", "ScriptedPrompter"]
