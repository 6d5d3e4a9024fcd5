import click

from ..engine.driver import Driver
from .extraclick import TfpilotCommand, pass_driver


@click.command(
    name="destroy",
    cls=TfpilotCommand,
    help="""
    Destroy the deployment.

    Shows a destroy plan and asks before applying it. Afterwards it offers,
    one question each, to delete the state bucket, the lock table and the
    local variable files.
    """,
)
@pass_driver
def command(driver: Driver):
    driver.precheck()
    driver.destroy()
