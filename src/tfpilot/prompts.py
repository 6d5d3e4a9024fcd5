from typing import Optional, Protocol

from . import terminal
from .exceptions import InvalidInputError

AFFIRMATIVE = ("y", "yes")


class Prompter(Protocol):
    def confirm(self, text: str) -> bool: ...

    def ask(self, text: str, default: Optional[str] = None) -> str: ...


class TerminalPrompter:
    """Asks the operator on the terminal. Only 'y' or 'yes' confirms."""

    def confirm(self, text: str) -> bool:
        answer = terminal.prompt(text=f"{text} (y/n)", default="n")
        return str(answer).strip().lower() in AFFIRMATIVE

    def ask(self, text: str, default: Optional[str] = None) -> str:
        answer = terminal.prompt(text=text, default=default)
        if answer is None:
            raise InvalidInputError(f"A value is required for: {text}")
        return str(answer).strip()


class AutoPrompter:
    """Accepts every confirmation and every default, for non-interactive runs."""

    def confirm(self, text: str) -> bool:
        terminal.detail(f"{text} (y/n): y")
        return True

    def ask(self, text: str, default: Optional[str] = None) -> str:
        if default is None:
            raise InvalidInputError(f"No value available for '{text}' in a non-interactive run")
        return default
