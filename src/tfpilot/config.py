"""Driver configuration."""

from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "us-east-1"


class Settings(BaseSettings):
    """Settings read from TFPILOT_* environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TFPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # AWS
    profile: str = Field(
        DEFAULT_PROFILE,
        validation_alias=AliasChoices("TFPILOT_PROFILE", "AWS_PROFILE"),
    )

    # Pre-set values that skip the interactive prompts
    prefix: Optional[str] = None
    key_pair_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("TFPILOT_KEY_PAIR")
    )
    secret: Optional[str] = None
    region: Optional[str] = None

    # Terraform layout
    terraform_dir: Path = Path("terraform")
    key_dir: Optional[Path] = None
    workspace: str = "default"
    bootstrap_targets: List[str] = ["aws_s3_bucket.state", "aws_dynamodb_table.lock"]

    # Tag that correlates every resource of a deployment
    tag_key: str = "prefix"

    required_tools: List[str] = ["terraform"]

    # Answer yes to every question and take every default
    non_interactive: bool = False

    # Logging
    log_level: str = "WARNING"

    @field_validator("prefix", "key_pair_name", "secret", "region", mode="before")
    @classmethod
    def empty_as_unset(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def key_path_dir(self) -> Path:
        return self.key_dir if self.key_dir is not None else self.terraform_dir
