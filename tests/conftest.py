from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fakes import FakeRunner, ScriptedPrompter
from tfpilot.config import Settings
from tfpilot.engine.cloud import CloudClient
from tfpilot.engine.driver import Driver


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TFPILOT_PREFIX", "TFPILOT_KEY_PAIR", "TFPILOT_SECRET", "TFPILOT_REGION",
                 "TFPILOT_PROFILE", "TFPILOT_NON_INTERACTIVE", "TFPILOT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_PROFILE", "test")


@pytest.fixture
def workdir(tmp_path) -> Path:
    path = tmp_path / "terraform"
    path.mkdir()
    return path


@pytest.fixture
def settings(workdir) -> Settings:
    return Settings(_env_file=None, terraform_dir=workdir)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def cloud() -> MagicMock:
    cloud = MagicMock(spec=CloudClient)
    cloud.has_credentials.return_value = True
    cloud.delete_state_bucket.return_value = 3
    cloud.tagged_resources.return_value = []
    return cloud


@pytest.fixture
def cloud_factory(cloud) -> MagicMock:
    return MagicMock(return_value=cloud)


@pytest.fixture
def make_driver(settings, runner, cloud_factory):
    def _make(prompter=None, **kwargs) -> Driver:
        return Driver(
            kwargs.pop("settings", settings),
            runner=kwargs.pop("runner", runner),
            prompter=prompter or ScriptedPrompter(),
            cloud_factory=cloud_factory,
            **kwargs,
        )

    return _make
