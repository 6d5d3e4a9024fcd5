from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .engine.runner import CommandResult


class ProvisioningError(RuntimeError):
    exit_code = 1

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class MissingToolError(ProvisioningError):
    exit_code = 2

    def __init__(self, tool: str, hint: str = ""):
        self.tool = tool
        message = f"Required tool '{tool}' was not found on PATH."
        if hint:
            message += f" Install it from {hint}"
        super().__init__(message)


class MissingCredentialsError(ProvisioningError):
    exit_code = 2

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(
            f"No AWS credentials found for profile '{profile}'. "
            f"Run 'aws configure --profile {profile}' or set --profile."
        )


class InvalidInputError(ProvisioningError):
    exit_code = 2


class UnknownPrefixError(ProvisioningError):
    def __init__(self):
        super().__init__(
            "No resource prefix is known. Set TFPILOT_PREFIX or run 'provision' first."
        )


class StageError(ProvisioningError):
    pass


class CommandError(ProvisioningError):
    def __init__(self, args: Sequence[str], result: "CommandResult", hint: Optional[str] = None):
        self.command = list(args)
        self.result = result
        message = f"Command failed with exit code {result.returncode}: {' '.join(self.command)}"
        if detail := (hint or result.stderr.strip()):
            message += f"\n{detail}"
        super().__init__(message)
