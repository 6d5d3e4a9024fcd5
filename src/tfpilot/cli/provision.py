import click

from ..engine.driver import Driver
from .extraclick import TfpilotCommand, pass_driver


@click.command(
    name="provision",
    cls=TfpilotCommand,
    help="""
    Create or update the deployment.

    The first run asks for a resource prefix, a region and a key pair name,
    writes backend.tfvars and main.tfvars, creates the state bucket and lock
    table and moves terraform state into them. Every run then plans and
    applies the main configuration.
    """,
    epilog="""
    Examples:

      {cli_name} provision
      {cli_name} --dry-run provision
      TFPILOT_PREFIX=ab1 {cli_name} --skip-approval provision
    """,
)
@pass_driver
def command(driver: Driver):
    driver.precheck()
    driver.provision()
