import sys
from typing import Any, NoReturn, Optional

from rich.console import Console
from rich.text import Text

_console = Console()


def configure(no_color: bool = False) -> None:
    global _console
    _console = Console(no_color=no_color, highlight=not no_color)


def header(text: str, subtext: str = "") -> None:
    header_text = f"[bold #4CCACC]=> {text}[/bold #4CCACC]"
    _console.print(header_text, subtext)


def print(*objects: Any, **kwargs: Any) -> None:
    _console.print(*objects, **kwargs)


def raw(text: str) -> None:
    """Print text untouched by markup or highlighting, e.g. a terraform plan."""
    _console.print(Text(text), highlight=False, soft_wrap=True)


def prompt(*, text: str, default: Optional[Any] = None, password: bool = False) -> Any:
    prompt_text = f"{text} [{default}]: " if default is not None else f"{text}: "
    user_input = _console.input(prompt_text, markup=False, password=password).strip()
    return user_input if user_input else default


def detail(text: str, dim: bool = True, **kwargs) -> None:
    style = "dim" if dim else ""
    _console.print(Text(text, style=style), **kwargs)


def success(text: str) -> None:
    _console.print(Text(text, style="bold green"))


def warn(text: str) -> None:
    _console.print(Text(text, style="bold yellow"))


def error(text: str, exit: bool = True, code: int = 1) -> Optional[NoReturn]:
    _console.print(Text(text, style="bold red"))

    if exit:
        sys.exit(code)
    return None
