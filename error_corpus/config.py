"""
Corpus Configuration

Pydantic models for corpus layout, topic rules, lint switches and the
drafting/filing pipeline. Loaded from the ``[tool.error-corpus]`` table of
``pyproject.toml``.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError


DEFAULT_FOOTER = (
    "Copyrights (c) OpenRockets Open-source Network. "
    "Free to use, copy, share, edit or publish."
)


class ConfigError(Exception):
    """Raised when configuration cannot be read or is invalid."""

    pass


class TopicRule(BaseModel):
    """Maps a lowercase keyword to the tag directory it files into."""

    keyword: str = Field(min_length=1)
    topic: str = Field(min_length=1)


# Order matters: the first keyword found wins.
DEFAULT_TOPIC_RULES = [
    TopicRule(keyword="nextjs", topic="nextjs"),
    TopicRule(keyword="next.js", topic="nextjs"),
    TopicRule(keyword="tailwind", topic="tailwinds"),
    TopicRule(keyword="mern", topic="mern"),
    TopicRule(keyword="react", topic="react"),
    TopicRule(keyword="express", topic="expressjs"),
    TopicRule(keyword="openai", topic="openai"),
    TopicRule(keyword="vue", topic="vuejs"),
    TopicRule(keyword="jquery", topic="jquery"),
    TopicRule(keyword="typescript", topic="typescript"),
    TopicRule(keyword="javascript", topic="javascript"),
    TopicRule(keyword="css", topic="css"),
]


class CorpusConfig(BaseModel):
    """Configuration for corpus maintenance."""

    errors_dir: str = "errors"
    readme_name: str = "README.md"

    topic_rules: list[TopicRule] = Field(
        default_factory=lambda: [r.model_copy() for r in DEFAULT_TOPIC_RULES]
    )
    fallback_topic: str = "general"
    extra_tags: list[str] = Field(default_factory=list)
    title_prefix: str = "🐞"

    require_copyright: bool = False
    disabled_rules: list[str] = Field(default_factory=list)

    model: str = "gemini/gemini-1.5-flash"
    copyright_footer: str = DEFAULT_FOOTER
    issue_labels: list[str] = Field(default_factory=lambda: ["documentation", "web"])
    commit_message: str = "Add error doc {topic}/{slug}"

    log_dir: str | None = None
    max_log_size: int = Field(default=10 * 1024 * 1024, ge=1024)
    log_retention_count: int = Field(default=5, ge=0, le=50)
    command_timeout_seconds: int = Field(default=30, ge=5, le=300)

    def errors_path(self, root: str | Path) -> Path:
        """Absolute path of the errors directory under ``root``."""
        return Path(root).resolve() / self.errors_dir

    def is_rule_enabled(self, rule_id: str) -> bool:
        return rule_id not in self.disabled_rules


def load_config_from_pyproject(repo_root: str | Path) -> CorpusConfig:
    """Load configuration from pyproject.toml.

    Args:
        repo_root: Path to repository root

    Returns:
        CorpusConfig (defaults if the file or table is absent)

    Raises:
        ConfigError: If the TOML is unreadable or values are invalid
    """
    pyproject_path = Path(repo_root) / "pyproject.toml"

    if not pyproject_path.exists():
        return CorpusConfig()

    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not parse {pyproject_path}: {e}") from e

    tool_config = data.get("tool", {}).get("error-corpus", {})
    if not tool_config:
        return CorpusConfig()

    try:
        return CorpusConfig(**tool_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid [tool.error-corpus] configuration: {e}") from e
