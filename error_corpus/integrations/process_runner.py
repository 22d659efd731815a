"""
Process Runner

Command execution for the git and GitHub CLI wrappers: timeout, secret
redaction and output truncation. Shell=False only, argument arrays only.
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


# Patterns that indicate potential secrets in command output
SECRET_PATTERNS = [
    r"ghp_[a-zA-Z0-9]{36}",  # GitHub personal access tokens
    r"gho_[a-zA-Z0-9]{36}",  # GitHub OAuth tokens
    r"ghs_[a-zA-Z0-9]{36}",  # GitHub Actions tokens
    r"github_pat_[a-zA-Z0-9_]{22,}",  # Fine-grained PATs
    r"AIza[a-zA-Z0-9_-]{35}",  # Google API keys (Gemini)
    r"sk-[a-zA-Z0-9]{20,}",  # OpenAI keys
    r"(?<=://)[^/\s:@]+:[^/\s@]+(?=@)",  # user:token@ in remote URLs
]

# Dangerous shell metacharacters
DANGEROUS_CHARS = [";", "&&", "||", "|", "`", "$", "\n", "\r"]


@dataclass
class ProcessResult:
    """Result of a process execution."""

    success: bool
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False


class ProcessRunnerError(Exception):
    """Error in process execution."""

    pass


class CommandValidationError(ProcessRunnerError):
    """Command failed security validation."""

    pass


def validate_command(command: list[str]) -> None:
    """Validate a command for shell metacharacters.

    Raises CommandValidationError if the command is unsafe.
    """
    if not command:
        raise CommandValidationError("Empty command")

    for i, arg in enumerate(command):
        for char in DANGEROUS_CHARS:
            if char in arg:
                raise CommandValidationError(
                    f"Dangerous character {char!r} in argument {i}: {arg[:50]}"
                )


def redact_secrets(text: str, extra_patterns: list[str] | None = None) -> str:
    """Replace anything that looks like a credential with ***REDACTED***."""
    patterns = SECRET_PATTERNS.copy()
    if extra_patterns:
        patterns.extend(extra_patterns)

    result = text
    for pattern in patterns:
        result = re.sub(pattern, "***REDACTED***", result)

    return result


def truncate_output(text: str, max_lines: int = 500, max_chars: int = 50000) -> tuple[str, bool]:
    """Truncate output to reasonable size.

    Returns: (truncated_text, was_truncated)
    """
    truncated = False

    if len(text) > max_chars:
        text = text[:max_chars]
        truncated = True

    lines = text.split("\n")
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        truncated = True

    result = "\n".join(lines)
    if truncated:
        result += "\n... [TRUNCATED]"

    return result, truncated


class ProcessRunner:
    """Process runner with timeout and redaction."""

    def __init__(
        self,
        cwd: str | Path,
        default_timeout: int = 30,
        redact_output: bool = True,
        extra_redact_patterns: list[str] | None = None,
    ):
        self.cwd = Path(cwd).resolve()
        self.default_timeout = default_timeout
        self.redact_output = redact_output
        self.extra_redact_patterns = extra_redact_patterns or []

        if not self.cwd.is_dir():
            raise ProcessRunnerError(f"Working directory does not exist: {self.cwd}")

    def run(
        self,
        command: list[str],
        timeout: int | None = None,
        validate: bool = True,
        raw_stdout: bool = False,
    ) -> ProcessResult:
        """Run a command.

        Args:
            command: Command as argument array (NO shell=True)
            timeout: Timeout in seconds (default: self.default_timeout)
            validate: Whether to validate command for dangerous chars
            raw_stdout: Return stdout untouched (no redaction or truncation)
                for commands whose output is data to be parsed

        Returns:
            ProcessResult with output and timing

        Raises:
            CommandValidationError: If command fails validation
        """
        if validate:
            validate_command(command)

        timeout = timeout or self.default_timeout
        start_time = time.monotonic()
        logger.debug("Running %s in %s", command[:3], self.cwd)

        try:
            result = subprocess.run(
                command,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
                shell=False,
            )
        except subprocess.TimeoutExpired:
            return self._failure(start_time, f"Command timed out after {timeout}s", timed_out=True)
        except FileNotFoundError:
            return self._failure(start_time, f"Command not found: {command[0]}")
        except OSError as e:
            return self._failure(start_time, str(e))

        duration_ms = int((time.monotonic() - start_time) * 1000)

        stdout = result.stdout
        stderr = result.stderr
        if self.redact_output:
            stderr = redact_secrets(stderr, self.extra_redact_patterns)
            if not raw_stdout:
                stdout = redact_secrets(stdout, self.extra_redact_patterns)

        if not raw_stdout:
            stdout, _ = truncate_output(stdout)
        stderr, _ = truncate_output(stderr)

        if result.returncode != 0:
            logger.debug("%s exited %d: %s", command[0], result.returncode, stderr.strip()[:200])

        return ProcessResult(
            success=result.returncode == 0,
            exit_code=result.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            timed_out=False,
        )

    @staticmethod
    def _failure(start_time: float, message: str, timed_out: bool = False) -> ProcessResult:
        return ProcessResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=message,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            timed_out=timed_out,
        )
