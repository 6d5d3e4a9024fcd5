import functools
import inspect
import textwrap
from dataclasses import dataclass
from typing import Callable, List, Optional

import click
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from .. import terminal
from ..engine.driver import Driver
from ..exceptions import ProvisioningError

logger = structlog.get_logger()

CLICK_CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    show_default=True,
)


@dataclass
class GlobalOptions:
    verbose: bool = False
    dry_run: bool = False
    no_color: bool = False
    skip_approval: bool = False
    profile: Optional[str] = None


DriverFactory = Callable[[GlobalOptions], Driver]


@dataclass
class CLIState:
    options: GlobalOptions
    driver_factory: DriverFactory
    _driver: Optional[Driver] = None

    def driver(self) -> Driver:
        if self._driver is None:
            self._driver = self.driver_factory(self.options)
        return self._driver


class TfpilotCommand(click.Command):
    def cli_name(self, ctx: click.Context) -> str:
        name, *_ = ctx.command_path.split()
        return name

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        if not self.epilog:
            return

        text = textwrap.dedent(self.epilog).format(cli_name=self.cli_name(ctx))
        formatter.write(text)
        formatter.write("\n")

    def format_help_text(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        # truncate the help text to the first form feed
        text = inspect.cleandoc(self.help).partition("\f")[0] if self.help else ""

        if text:
            formatter.write_paragraph()
            with formatter.indentation():
                formatter.write(textwrap.indent(text, " " * formatter.current_indent))
                formatter.write("\n")


class TfpilotGroup(click.Group):
    command_class = TfpilotCommand

    def list_commands(self, ctx: click.Context) -> List[str]:
        return list(self.commands)

    def resolve_command(self, ctx: click.Context, args: List[str]):
        """
        Unknown commands print the help text and exit with status 1 instead
        of click's usage error.
        """
        name = args[0]
        if self.get_command(ctx, name) is None and not name.startswith("-"):
            terminal.error(f"Unknown command '{name}'.", exit=False)
            click.echo(self.get_help(ctx))
            ctx.exit(1)

        return super().resolve_command(ctx, args)


def pass_driver(func: Callable):
    """
    Decorator that passes the Driver as the first argument and turns
    provisioning errors into a message and an exit status.
    """

    @functools.wraps(func)
    def decorator(*args, **kwargs):
        ctx = click.get_current_context()
        state = ctx.find_object(CLIState)

        try:
            return func(state.driver(), *args, **kwargs)
        except ProvisioningError as e:
            logger.debug("Command failed", command=ctx.info_name, exc_info=True)
            terminal.error(e.message, exit=False)
            ctx.exit(e.exit_code)
        except ValidationError as e:
            terminal.error(f"Invalid configuration: {e}", exit=False)
            ctx.exit(2)
        except (BotoCoreError, ClientError) as e:
            logger.debug("AWS call failed", command=ctx.info_name, exc_info=True)
            terminal.error(f"AWS error: {e}", exit=False)
            ctx.exit(1)

    return decorator
