import pytest

from fakes import FakeRunner
from tfpilot.engine.runner import CommandResult
from tfpilot.engine.terraform import Terraform
from tfpilot.exceptions import CommandError


class RecordingRunner(FakeRunner):
    def __init__(self, results=None, **kwargs):
        super().__init__(**kwargs)
        self.results = dict(results or {})
        self.envs = []
        self.streams = []

    def run(self, args, cwd=None, env=None, stream=False):
        self.envs.append(env)
        self.streams.append(stream)
        key = " ".join(args[1:3])
        if key in self.results:
            self.calls.append(list(args))
            return self.results[key]
        return super().run(args, cwd=cwd, env=env, stream=stream)


def test_commands_run_in_automation_with_profile(workdir):
    runner = RecordingRunner()
    Terraform(runner, workdir, profile="ops").version()

    assert runner.calls == [["terraform", "version", "-json"]]
    assert runner.envs[0] == {"TF_IN_AUTOMATION": "1", "AWS_PROFILE": "ops"}


def test_version(workdir):
    assert Terraform(FakeRunner(), workdir).version() == "1.6.6"


def test_init_arguments(workdir):
    runner = RecordingRunner()
    tf = Terraform(runner, workdir)

    tf.init(reconfigure=True)
    tf.init(backend_config=workdir / "backend.tfvars", migrate_state=True)

    assert runner.calls[0] == ["terraform", "init", "-input=false", "-reconfigure"]
    assert runner.calls[1] == [
        "terraform",
        "init",
        "-input=false",
        f"-backend-config={workdir / 'backend.tfvars'}",
        "-migrate-state",
        "-force-copy",
    ]
    assert runner.streams == [True, True]


def test_no_color(workdir):
    runner = RecordingRunner()
    Terraform(runner, workdir, no_color=True).init()

    assert runner.calls[0][-1] == "-no-color"


def test_plan_arguments(workdir):
    runner = FakeRunner()
    tf = Terraform(runner, workdir)
    out = workdir / "destroy.tfplan"

    assert tf.plan(out, var_file=workdir / "main.tfvars", targets=["a.b", "c.d"], destroy=True) == out

    assert runner.calls[0] == [
        "terraform",
        "plan",
        "-input=false",
        f"-out={out}",
        f"-var-file={workdir / 'main.tfvars'}",
        "-destroy",
        "-target=a.b",
        "-target=c.d",
    ]
    assert out.exists()


def test_select_workspace_creates_missing_workspace(workdir):
    runner = RecordingRunner(results={"workspace select": CommandResult(1, "", "doesn't exist")})

    Terraform(runner, workdir).select_workspace("staging")

    assert runner.calls == [
        ["terraform", "workspace", "select", "staging"],
        ["terraform", "workspace", "new", "staging"],
    ]


def test_select_existing_workspace(workdir):
    runner = FakeRunner()

    Terraform(runner, workdir).select_workspace("default")

    assert runner.subcommands() == ["workspace"]


def test_failure_raises_command_error(workdir):
    runner = FakeRunner(fail="plan")

    with pytest.raises(CommandError) as exc_info:
        Terraform(runner, workdir).plan(workdir / "main.tfplan")

    assert exc_info.value.result.returncode == 1
    assert exc_info.value.command[:2] == ["terraform", "plan"]
    assert "plan failed" in str(exc_info.value)


def test_apply_removes_plan_even_on_failure(workdir):
    plan = workdir / "main.tfplan"
    plan.write_text("plan")

    with pytest.raises(CommandError):
        Terraform(FakeRunner(fail="apply"), workdir).apply(plan)

    assert not plan.exists()


def test_state_list(workdir):
    runner = FakeRunner(state=["aws_s3_bucket.state", "module.app.aws_instance.web[0]"])

    assert Terraform(runner, workdir).state_list() == [
        "aws_s3_bucket.state",
        "module.app.aws_instance.web[0]",
    ]


def test_state_list_without_state(workdir):
    runner = RecordingRunner(
        results={"state list": CommandResult(1, "", "No state file was found!")}
    )

    assert Terraform(runner, workdir).state_list() == []


def test_state_list_other_failure(workdir):
    runner = RecordingRunner(results={"state list": CommandResult(1, "", "Access Denied")})

    with pytest.raises(CommandError, match="Access Denied"):
        Terraform(runner, workdir).state_list()
