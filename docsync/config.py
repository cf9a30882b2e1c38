"""
Engine configuration.

Defaults applied to newly created documents and the identifier allocator
settings. Read from ``[tool.docsync]`` in a project's pyproject.toml:

    [tool.docsync]
    default_owner = "Platform Team"
    code_review = "Required"
    max_id_attempts = 50
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from docsync.errors import ConfigError
from docsync.id_allocator import (
    DEFAULT_MAX_ATTEMPTS,
    SEQUENTIAL_END,
    SEQUENTIAL_START,
    IdAllocator,
)
from docsync.models import Approval, Review

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Defaults for new documents and ID allocation."""

    default_owner: str = "Product Team"
    analysis_review: Review = Review.REQUIRED
    code_review: Review = Review.NOT_REQUIRED
    default_approval: Approval = Approval.NOT_APPROVED
    max_id_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=10_000)
    sequential_start: int = Field(
        default=SEQUENTIAL_START, ge=SEQUENTIAL_START, le=SEQUENTIAL_END
    )

    def build_allocator(self, **overrides) -> IdAllocator:
        """IdAllocator using these settings; keyword overrides win (clock, rng, tick)."""
        options = {
            "max_attempts": self.max_id_attempts,
            "sequential_start": self.sequential_start,
        }
        options.update(overrides)
        return IdAllocator(**options)


def load_config_from_pyproject(repo_root: Optional[Path] = None) -> EngineConfig:
    """Load configuration from pyproject.toml.

    Args:
        repo_root: Directory holding pyproject.toml (default: current directory)

    Returns:
        EngineConfig (defaults if the file or the table is missing)

    Raises:
        ConfigError: If ``[tool.docsync]`` holds invalid values
    """
    pyproject_path = Path(repo_root or Path.cwd()) / "pyproject.toml"

    if not pyproject_path.exists():
        return EngineConfig()

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib

    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Could not parse {pyproject_path}: {e}")
        return EngineConfig()

    tool_config = data.get("tool", {}).get("docsync", {})
    if not tool_config:
        return EngineConfig()

    try:
        return EngineConfig(**tool_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid [tool.docsync] in {pyproject_path}: {e}") from e
