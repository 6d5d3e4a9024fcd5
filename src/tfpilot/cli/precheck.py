import click

from .. import terminal
from ..engine.driver import Driver
from .extraclick import TfpilotCommand, pass_driver


@click.command(
    name="precheck",
    cls=TfpilotCommand,
    help="Check that required tools and AWS credentials are available.",
)
@pass_driver
def command(driver: Driver):
    driver.precheck()
    terminal.success("All prerequisites are available.")
