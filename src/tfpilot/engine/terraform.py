"""Terraform command wrapper."""

import json
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ..exceptions import CommandError
from .runner import CommandResult, ProcessRunner

logger = structlog.get_logger()


class Terraform:
    """Runs terraform subcommands in one configuration directory."""

    def __init__(
        self,
        runner: ProcessRunner,
        workdir: Path,
        profile: Optional[str] = None,
        no_color: bool = False,
    ):
        """
        Initialize terraform wrapper.

        Args:
            runner: Process runner used for every invocation
            workdir: Terraform configuration directory
            profile: AWS profile exported to terraform as AWS_PROFILE
            no_color: Pass -no-color to commands that print
        """
        self.runner = runner
        self.workdir = workdir
        self.profile = profile
        self.no_color = no_color

    def _run(self, args: List[str], stream: bool = False, check: bool = True) -> CommandResult:
        cmd = ["terraform"] + args
        env = {"TF_IN_AUTOMATION": "1"}
        if self.profile:
            env["AWS_PROFILE"] = self.profile

        logger.info("Running terraform", args=args, workdir=str(self.workdir))

        result = self.runner.run(cmd, cwd=self.workdir, env=env, stream=stream)
        if check and not result.ok:
            raise CommandError(cmd, result)

        return result

    def _color(self, args: List[str]) -> List[str]:
        return args + ["-no-color"] if self.no_color else args

    def version(self) -> str:
        result = self._run(["version", "-json"])
        return json.loads(result.stdout)["terraform_version"]

    def init(
        self,
        backend_config: Optional[Path] = None,
        reconfigure: bool = False,
        migrate_state: bool = False,
    ) -> None:
        args = ["init", "-input=false"]
        if backend_config is not None:
            args.append(f"-backend-config={backend_config}")
        if reconfigure:
            args.append("-reconfigure")
        if migrate_state:
            args += ["-migrate-state", "-force-copy"]

        self._run(self._color(args), stream=True)

    def select_workspace(self, name: str) -> None:
        """Select a workspace, creating it when it does not exist yet."""
        result = self._run(["workspace", "select", name], check=False)
        if result.ok:
            return

        logger.info("Workspace not found, creating", workspace=name)
        self._run(["workspace", "new", name])

    def plan(
        self,
        out: Path,
        var_file: Optional[Path] = None,
        targets: Sequence[str] = (),
        destroy: bool = False,
    ) -> Path:
        """
        Write a plan file.

        Args:
            out: Plan file to create
            var_file: Variable file passed with -var-file
            targets: Resource addresses to limit the plan to
            destroy: Plan the destruction of the targeted resources

        Returns:
            Path of the plan file
        """
        args = ["plan", "-input=false", f"-out={out}"]
        if var_file is not None:
            args.append(f"-var-file={var_file}")
        if destroy:
            args.append("-destroy")
        args += [f"-target={target}" for target in targets]

        self._run(self._color(args))
        return out

    def show(self, planfile: Path) -> str:
        result = self._run(self._color(["show", str(planfile)]))
        return result.stdout

    def apply(self, planfile: Path) -> None:
        """Apply a saved plan. The plan file is removed afterwards, even on failure."""
        try:
            self._run(self._color(["apply", "-input=false", str(planfile)]), stream=True)
        finally:
            planfile.unlink(missing_ok=True)

    def state_list(self) -> List[str]:
        result = self._run(["state", "list"], check=False)
        if not result.ok:
            # Terraform exits non-zero when no state exists yet
            if "No state file was found" in result.stderr:
                return []
            raise CommandError(["terraform", "state", "list"], result)

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
