"""Configuration record and provisioning stage."""

import re
from enum import Enum
from typing import Dict

from pydantic import BaseModel, field_validator

from .exceptions import InvalidInputError

PREFIX_PATTERN = re.compile(r"^[a-z0-9]{3,5}$")


def validate_prefix(prefix: str) -> str:
    """Return the prefix if it is 3-5 lowercase letters or digits, else raise."""
    if not isinstance(prefix, str) or not PREFIX_PATTERN.fullmatch(prefix):
        raise InvalidInputError(
            f"Invalid prefix {prefix!r}: use 3 to 5 lowercase letters or digits."
        )
    return prefix


class Stage(str, Enum):
    """Provisioning stages, in the order a deployment moves through them."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAP_PLANNED = "bootstrap_planned"
    BOOTSTRAP_APPLIED = "bootstrap_applied"
    MAIN_APPLIED = "main_applied"

    @property
    def rank(self) -> int:
        return list(Stage).index(self)

    # All four are needed: str already defines them by value
    def __lt__(self, other: "Stage") -> bool:
        return self.rank < other.rank

    def __le__(self, other: "Stage") -> bool:
        return self.rank <= other.rank

    def __gt__(self, other: "Stage") -> bool:
        return self.rank > other.rank

    def __ge__(self, other: "Stage") -> bool:
        return self.rank >= other.rank


class ConfigRecord(BaseModel):
    """Values shared by the backend and main variable files."""

    region: str
    bucket: str
    lock_table: str
    state_key: str
    key_pair_name: str
    prefix: str
    secret: str

    @field_validator("prefix")
    @classmethod
    def check_prefix(cls, v: str) -> str:
        if not PREFIX_PATTERN.fullmatch(v):
            raise ValueError("prefix must be 3 to 5 lowercase letters or digits")
        return v

    @classmethod
    def for_prefix(cls, prefix: str, region: str, key_pair_name: str, secret: str) -> "ConfigRecord":
        return cls(
            region=region,
            bucket=f"{prefix}-terraform-state",
            lock_table=f"{prefix}-terraform-lock",
            state_key=f"{prefix}/terraform.tfstate",
            key_pair_name=key_pair_name,
            prefix=prefix,
            secret=secret,
        )

    def backend_vars(self) -> Dict[str, str]:
        """Arguments for terraform's S3 backend (-backend-config)."""
        return {
            "region": self.region,
            "bucket": self.bucket,
            "dynamodb_table": self.lock_table,
            "key": self.state_key,
        }

    def main_vars(self) -> Dict[str, str]:
        """Input variables for the terraform configuration (-var-file)."""
        return {
            "region": self.region,
            "state_bucket": self.bucket,
            "lock_table": self.lock_table,
            "state_key": self.state_key,
            "key_name": self.key_pair_name,
            "prefix": self.prefix,
            "secret": self.secret,
        }

    @classmethod
    def from_main_vars(cls, values: Dict[str, str]) -> "ConfigRecord":
        return cls(
            region=values["region"],
            bucket=values["state_bucket"],
            lock_table=values["lock_table"],
            state_key=values["state_key"],
            key_pair_name=values["key_name"],
            prefix=values["prefix"],
            secret=values["secret"],
        )
