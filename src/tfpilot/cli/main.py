import shutil
from types import ModuleType
from typing import Any, Optional

import click

from .. import terminal
from ..config import Settings
from ..engine.driver import Driver
from ..logging import setup_logging
from ..prompts import AutoPrompter, TerminalPrompter
from . import destroy, precheck, provision, resources
from .extraclick import (
    CLICK_CONTEXT_SETTINGS,
    CLIState,
    DriverFactory,
    GlobalOptions,
    TfpilotCommand,
    TfpilotGroup,
)

click.formatting.FORCED_WIDTH = shutil.get_terminal_size().columns


def build_driver(options: GlobalOptions) -> Driver:
    settings = Settings()
    if options.profile:
        settings.profile = options.profile

    setup_logging("DEBUG" if options.verbose else settings.log_level, colors=not options.no_color)

    prompter = AutoPrompter() if settings.non_interactive else TerminalPrompter()

    return Driver(
        settings,
        prompter=prompter,
        dry_run=options.dry_run,
        skip_approval=options.skip_approval,
        no_color=options.no_color,
    )


@click.group(
    name="tfpilot",
    cls=TfpilotGroup,
    context_settings=CLICK_CONTEXT_SETTINGS,
    help="Provision and tear down a terraform-managed AWS deployment.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every step to stderr.")
@click.option("--dry-run", is_flag=True, help="Plan and show changes without applying anything.")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.option("--skip-approval", is_flag=True, help="Apply provisioning plans without asking.")
@click.option(
    "--profile",
    type=click.STRING,
    default=None,
    help="AWS profile. Defaults to TFPILOT_PROFILE, AWS_PROFILE or 'default'.",
)
@click.pass_context
def group(
    ctx: click.Context,
    verbose: bool,
    dry_run: bool,
    no_color: bool,
    skip_approval: bool,
    profile: Optional[str],
):
    terminal.configure(no_color=no_color)

    factory = ctx.obj if callable(ctx.obj) else build_driver
    options = GlobalOptions(
        verbose=verbose,
        dry_run=dry_run,
        no_color=no_color,
        skip_approval=skip_approval,
        profile=profile,
    )
    ctx.obj = CLIState(options=options, driver_factory=factory)


@group.command(name="help", cls=TfpilotCommand, help="Show this message and exit.")
@click.pass_context
def help_command(ctx: click.Context):
    click.echo(ctx.parent.get_help())


class CLI:
    """
    The CLI application.

    Command modules expose a click command named `command` and are
    registered on the top-level group in the order they should be listed.
    """

    def __init__(self, driver_factory: Optional[DriverFactory] = None) -> None:
        self.group = group
        self.driver_factory = driver_factory or build_driver

    def __call__(self, **kwargs: Any) -> None:
        self.group.main(prog_name="tfpilot", obj=self.driver_factory, **kwargs)

    def register(self, module: ModuleType) -> None:
        if hasattr(module, "command"):
            self.group.add_command(module.command)


def load_cli(**kwargs: Any) -> CLI:
    cli = CLI(**kwargs)
    cli.register(provision)
    cli.register(destroy)
    cli.register(resources)
    cli.register(precheck)
    return cli


def start():
    """Console script entrypoint."""
    cli = load_cli()
    cli()
