"""Generated terraform variable files."""

import re
from pathlib import Path
from typing import Dict, Mapping, Optional

import structlog

from ..exceptions import ProvisioningError
from ..models import ConfigRecord

logger = structlog.get_logger()

BACKEND_VARS = "backend.tfvars"
MAIN_VARS = "main.tfvars"
BACKEND_BLOCK = "backend.tf"

_LINE = re.compile(r'^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*"((?:[^"\\]|\\.)*)"\s*$')


def render(values: Mapping[str, str]) -> str:
    lines = []
    for key, value in values.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'{key} = "{escaped}"')
    return "\n".join(lines) + "\n"


def parse(text: str) -> Dict[str, str]:
    values = {}
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.lstrip().startswith(("#", "//")):
            continue

        match = _LINE.match(line)
        if not match:
            raise ProvisioningError(f"Cannot parse variable file line {number}: {line!r}")

        key, value = match.groups()
        values[key] = re.sub(r"\\(.)", r"\1", value)
    return values


def write_if_absent(path: Path, values: Mapping[str, str]) -> bool:
    """Write a variable file unless one is already there. Returns True when written."""
    if path.exists():
        logger.debug("Variable file exists, leaving it untouched", path=str(path))
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render(values))
    logger.info("Wrote variable file", path=str(path))
    return True


def write_record(workdir: Path, record: ConfigRecord) -> None:
    write_if_absent(workdir / BACKEND_VARS, record.backend_vars())
    write_if_absent(workdir / MAIN_VARS, record.main_vars())


def load_record(workdir: Path) -> Optional[ConfigRecord]:
    path = workdir / MAIN_VARS
    if not path.exists():
        return None

    values = parse(path.read_text())
    try:
        return ConfigRecord.from_main_vars(values)
    except (KeyError, ValueError) as e:
        raise ProvisioningError(f"Invalid variable file {path}: {e}") from e


def write_backend_block(workdir: Path) -> Path:
    """Declare the S3 backend so the next init moves local state into the bucket."""
    path = workdir / BACKEND_BLOCK
    if not path.exists():
        path.write_text('terraform {\n  backend "s3" {}\n}\n')
        logger.info("Wrote backend block", path=str(path))
    return path
