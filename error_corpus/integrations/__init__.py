"""
Integrations Module

External system integrations (git, GitHub CLI, process execution).
"""

from .gh_cli import GhCli, GhCliError, Issue
from .git_cli import GitCli, GitCliError
from .process_runner import (
    CommandValidationError,
    ProcessResult,
    ProcessRunner,
    ProcessRunnerError,
    redact_secrets,
    truncate_output,
    validate_command,
)

__all__ = [
    # Git
    "GitCli",
    "GitCliError",
    # GitHub
    "GhCli",
    "GhCliError",
    "Issue",
    # Process
    "CommandValidationError",
    "ProcessResult",
    "ProcessRunner",
    "ProcessRunnerError",
    "redact_secrets",
    "truncate_output",
    "validate_command",
]
