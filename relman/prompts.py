from collections.abc import Callable, Sequence
from typing import Protocol

from relman.core.errors import ConfigError

_YES = {"y", "yes", "true", "1"}
_NO = {"n", "no", "false", "0"}


class Prompter(Protocol):
    def ask_string(self, question: str, default: str = "") -> str:
        """Ask for free text; an empty answer yields ``default``."""

    def ask_bool(self, question: str, default: bool = True) -> bool:
        """Ask a yes/no question."""

    def select(
        self, question: str, options: Sequence[str], default_index: int | None = None
    ) -> str:
        """Pick one of ``options``."""


class ConsolePrompter:
    def __init__(
        self,
        reader: Callable[[str], str] = input,
        writer: Callable[[str], None] = print,
    ):
        self._read = reader
        self._write = writer

    def ask_string(self, question: str, default: str = "") -> str:
        suffix = f" [{default}]" if default else ""
        self._write("")
        answer = self._read(f"{question}{suffix}: ").strip()
        return answer or default

    def ask_bool(self, question: str, default: bool = True) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        while True:
            answer = self._read(f"{question} {hint}: ").strip().lower()
            if not answer:
                return default
            if answer in _YES:
                return True
            if answer in _NO:
                return False
            self._write("Please answer yes or no.")

    def select(
        self, question: str, options: Sequence[str], default_index: int | None = None
    ) -> str:
        if not options:
            raise ConfigError(f"Nothing to select for: {question}", code="missing_input")

        self._write("")
        self._write(question)
        for number, option in enumerate(options, start=1):
            self._write(f"[{number}] : {option}")

        hint = f" [{default_index + 1}]" if default_index is not None else ""
        while True:
            answer = self._read(f"Type in the option's number, then hit Enter{hint}: ").strip()
            if not answer and default_index is not None:
                return options[default_index]
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            self._write(f"Invalid option: {answer!r}")
