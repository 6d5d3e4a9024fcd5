import click

from ..engine.driver import Driver
from .extraclick import TfpilotCommand, pass_driver


@click.command(
    name="resources",
    cls=TfpilotCommand,
    help="List the ARNs of all resources tagged with the deployment's prefix.",
)
@pass_driver
def command(driver: Driver):
    driver.resources()
