"""Provisioning workflow: bootstrap and main stages, teardown and resource lookup."""

import secrets
from pathlib import Path
from typing import Callable, List, Optional

import structlog
from botocore.exceptions import ProfileNotFound

from .. import terminal
from ..config import DEFAULT_REGION, Settings
from ..exceptions import (
    InvalidInputError,
    MissingCredentialsError,
    MissingToolError,
    ProvisioningError,
    UnknownPrefixError,
)
from ..models import ConfigRecord, Stage, validate_prefix
from ..prompts import Prompter, TerminalPrompter
from . import varfiles
from .cloud import CloudClient
from .runner import ProcessRunner, SubprocessRunner
from .state import StageStore
from .terraform import Terraform

logger = structlog.get_logger()

INSTALL_HINTS = {
    "terraform": "https://developer.hashicorp.com/terraform/install",
}

BOOTSTRAP_PLAN = "bootstrap.tfplan"
MAIN_PLAN = "main.tfplan"
DESTROY_PLAN = "destroy.tfplan"


class Driver:
    """Drives terraform and AWS through provisioning and teardown of one deployment."""

    def __init__(
        self,
        settings: Settings,
        runner: Optional[ProcessRunner] = None,
        prompter: Optional[Prompter] = None,
        cloud_factory: Optional[Callable[[str, Optional[str]], CloudClient]] = None,
        dry_run: bool = False,
        skip_approval: bool = False,
        no_color: bool = False,
    ):
        """
        Initialize driver.

        Args:
            settings: Driver settings
            runner: Process runner for terraform, defaults to subprocess
            prompter: Source of answers to questions, defaults to the terminal
            cloud_factory: Builds a CloudClient from (profile, region); only
                called when an AWS call is about to happen
            dry_run: Plan and display only, never change anything remotely
            skip_approval: Apply provisioning plans without asking
            no_color: Plain terraform output
        """
        self.settings = settings
        self.runner = runner or SubprocessRunner()
        self.prompter = prompter or TerminalPrompter()
        self.cloud_factory = cloud_factory or CloudClient.from_profile
        self.dry_run = dry_run
        self.skip_approval = skip_approval

        self.workdir = settings.terraform_dir.resolve()
        self.key_dir = settings.key_path_dir.resolve()
        self.stages = StageStore(self.workdir)
        self.terraform = Terraform(
            self.runner, self.workdir, profile=settings.profile, no_color=no_color
        )

        self._cloud: Optional[CloudClient] = None
        self._cloud_region: Optional[str] = None

    @property
    def backend_vars(self) -> Path:
        return self.workdir / varfiles.BACKEND_VARS

    @property
    def main_vars(self) -> Path:
        return self.workdir / varfiles.MAIN_VARS

    def region(self, record: Optional[ConfigRecord] = None) -> Optional[str]:
        """The configured region, else the recorded one, else None for the profile default."""
        if self.settings.region:
            return self.settings.region

        record = record or varfiles.load_record(self.workdir)
        return record.region if record is not None else None

    def cloud(self, region: Optional[str] = None) -> CloudClient:
        if self._cloud is None or (region and region != self._cloud_region):
            self._cloud = self.cloud_factory(self.settings.profile, region)
            self._cloud_region = region
        return self._cloud

    # Prerequisites

    def precheck(self) -> None:
        for tool in self.settings.required_tools:
            if not self.runner.which(tool):
                raise MissingToolError(tool, INSTALL_HINTS.get(tool, ""))

        version = self.terraform.version()
        terminal.detail(f"terraform {version}")

        try:
            has_credentials = self.cloud(self.region()).has_credentials()
        except ProfileNotFound:
            has_credentials = False

        if not has_credentials:
            raise MissingCredentialsError(self.settings.profile)

        logger.info("Prerequisites satisfied", terraform=version, profile=self.settings.profile)

    # Configuration record

    def ensure_record(self) -> ConfigRecord:
        """Load the configuration record, or prompt for it and write the variable files."""
        record = varfiles.load_record(self.workdir)

        if record is not None:
            self._check_prefix(record)
            # A lost backend file is regenerated from the main one
            varfiles.write_record(self.workdir, record)
            return record

        prefix = self.settings.prefix or self.prompter.ask(
            "Resource name prefix (3-5 lowercase letters or digits)"
        )
        validate_prefix(prefix)

        region = self.settings.region or self.prompter.ask("AWS region", default=DEFAULT_REGION)
        key_pair_name = self.settings.key_pair_name or self.prompter.ask(
            "EC2 key pair name", default=f"{prefix}-key"
        )
        secret = self.settings.secret or secrets.token_urlsafe(32)

        record = ConfigRecord.for_prefix(
            prefix, region=region, key_pair_name=key_pair_name, secret=secret
        )
        varfiles.write_record(self.workdir, record)
        terminal.success(f"Wrote {self.backend_vars} and {self.main_vars}")

        return record

    def _check_prefix(self, record: ConfigRecord) -> None:
        if self.settings.prefix and self.settings.prefix != record.prefix:
            raise InvalidInputError(
                f"Prefix {self.settings.prefix!r} does not match {record.prefix!r} "
                f"recorded in {self.main_vars}. The prefix cannot change once chosen."
            )

    # Provisioning

    def provision(self) -> bool:
        """
        Provision the deployment, resuming from the persisted stage.

        Returns:
            True when every stage that was due got applied, False when the run
            stopped early (dry run or a declined plan)
        """
        record = self.ensure_record()

        if self.dry_run:
            terminal.warn("Dry run: no key pair is created and no plan is applied.")
        else:
            self.cloud(record.region).ensure_key_pair(record.key_pair_name, self.key_dir)

        stage = self.stages.load()
        logger.info("Provisioning", prefix=record.prefix, stage=stage.value)

        if stage < Stage.BOOTSTRAP_APPLIED and not self._bootstrap():
            return False

        return self._apply_main()

    def _bootstrap(self) -> bool:
        terminal.header("Bootstrap", "state bucket and lock table")

        # Bootstrap runs against local state until the bucket exists
        (self.workdir / varfiles.BACKEND_BLOCK).unlink(missing_ok=True)
        self.terraform.init(reconfigure=True)
        self.terraform.select_workspace(self.settings.workspace)

        plan = self.terraform.plan(
            self.workdir / BOOTSTRAP_PLAN,
            var_file=self.main_vars,
            targets=self.settings.bootstrap_targets,
        )
        terminal.raw(self.terraform.show(plan))

        if self.dry_run:
            plan.unlink(missing_ok=True)
            return False

        self.stages.save(Stage.BOOTSTRAP_PLANNED)

        if not self._approve(plan):
            return False

        self.terraform.apply(plan)

        varfiles.write_backend_block(self.workdir)
        self.terraform.init(backend_config=self.backend_vars, migrate_state=True)
        self.stages.save(Stage.BOOTSTRAP_APPLIED)

        terminal.success("State migrated to the remote backend.")
        return True

    def _apply_main(self) -> bool:
        terminal.header("Main", "all remaining resources")

        self._init_remote()

        plan = self.terraform.plan(self.workdir / MAIN_PLAN, var_file=self.main_vars)
        terminal.raw(self.terraform.show(plan))

        if self.dry_run:
            plan.unlink(missing_ok=True)
            return False

        if not self._approve(plan):
            return False

        self.terraform.apply(plan)
        self.stages.save(Stage.MAIN_APPLIED)

        terminal.success("Provisioning complete.")
        return True

    def _init_remote(self) -> None:
        varfiles.write_backend_block(self.workdir)
        self.terraform.init(backend_config=self.backend_vars, reconfigure=True)
        self.terraform.select_workspace(self.settings.workspace)

    def _approve(self, plan: Path) -> bool:
        if self.skip_approval or self.prompter.confirm("Apply this plan?"):
            return True

        plan.unlink(missing_ok=True)
        terminal.warn("Plan not applied.")
        return False

    # Teardown

    def destroy(self) -> None:
        record = varfiles.load_record(self.workdir)
        if record is None:
            raise ProvisioningError(
                f"No configuration found in {self.workdir}; nothing to destroy."
            )

        stage = self.stages.load()
        logger.info("Destroying", prefix=record.prefix, stage=stage.value)

        if stage >= Stage.BOOTSTRAP_APPLIED:
            self._init_remote()
        else:
            (self.workdir / varfiles.BACKEND_BLOCK).unlink(missing_ok=True)
            self.terraform.init(reconfigure=True)
            self.terraform.select_workspace(self.settings.workspace)

        addresses = self._destroyable(self.terraform.state_list())

        if addresses:
            plan = self.terraform.plan(
                self.workdir / DESTROY_PLAN,
                var_file=self.main_vars,
                targets=addresses,
                destroy=True,
            )
            terminal.raw(self.terraform.show(plan))

            if self.dry_run:
                plan.unlink(missing_ok=True)
                terminal.warn("Dry run: nothing was destroyed.")
                return

            if not self.prompter.confirm("Destroy these resources?"):
                plan.unlink(missing_ok=True)
                terminal.warn("Nothing was destroyed.")
                return

            self.terraform.apply(plan)
            self.stages.save(min(stage, Stage.BOOTSTRAP_APPLIED))
            terminal.success("Resources destroyed.")
        else:
            terminal.detail("No resources outside the state backend are managed.")
            if self.dry_run:
                return

        self._destroy_backend(record)

    def _destroyable(self, addresses: List[str]) -> List[str]:
        """Drop the state backend's own resources from a list of state addresses."""

        def is_backend(address: str) -> bool:
            return any(
                address == target or address.startswith((f"{target}.", f"{target}["))
                for target in self.settings.bootstrap_targets
            )

        return [address for address in addresses if not is_backend(address)]

    def _destroy_backend(self, record: ConfigRecord) -> None:
        if self.prompter.confirm(f"Delete state bucket {record.bucket} and all its versions?"):
            removed = self.cloud(record.region).delete_state_bucket(record.bucket)
            (self.workdir / varfiles.BACKEND_BLOCK).unlink(missing_ok=True)
            if self.stages.path.exists():
                self.stages.save(Stage.UNINITIALIZED)
            if removed is None:
                terminal.warn(f"Bucket {record.bucket} does not exist.")
            else:
                terminal.success(f"Deleted bucket {record.bucket} ({removed} object versions).")

        if self.prompter.confirm(f"Delete lock table {record.lock_table}?"):
            if self.cloud(record.region).delete_lock_table(record.lock_table):
                terminal.success(f"Deleted table {record.lock_table}.")
            else:
                terminal.warn(f"Table {record.lock_table} does not exist.")

        if self.prompter.confirm("Delete local configuration files?"):
            for name in (varfiles.BACKEND_VARS, varfiles.MAIN_VARS, varfiles.BACKEND_BLOCK):
                (self.workdir / name).unlink(missing_ok=True)
            self.stages.clear()
            terminal.success("Deleted local configuration files.")

    # Lookup

    def resources(self) -> List[str]:
        record = varfiles.load_record(self.workdir)
        if record is not None:
            self._check_prefix(record)

        prefix = self.settings.prefix or (record.prefix if record is not None else None)
        if not prefix:
            raise UnknownPrefixError()
        validate_prefix(prefix)

        arns = self.cloud(self.region(record)).tagged_resources(self.settings.tag_key, prefix)
        for arn in arns:
            terminal.print(arn, markup=False, highlight=False, soft_wrap=True)

        if not arns:
            terminal.warn(f"No resources tagged {self.settings.tag_key}={prefix}.")

        return arns
