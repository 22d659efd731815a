"""
GitHub CLI Integration

Reads the newest open issue and opens new ones through ``gh``. Authentication
is whatever ``gh`` is configured with (``GH_TOKEN`` or ``gh auth login``).
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from error_corpus.integrations.process_runner import ProcessResult, ProcessRunner


@dataclass
class Issue:
    """A GitHub issue."""

    number: int
    title: str
    body: str


class GhCliError(Exception):
    """Error executing gh command."""

    def __init__(self, message: str, result: ProcessResult | None = None):
        super().__init__(message)
        self.result = result


class GhCli:
    """GitHub CLI wrapper."""

    def __init__(self, repo_root: str | Path, timeout: int = 30):
        self.repo_root = Path(repo_root).resolve()
        self._runner = ProcessRunner(self.repo_root, default_timeout=timeout)

        if not self._runner.run(["gh", "--version"], timeout=5).success:
            raise GhCliError("GitHub CLI (gh) is not available in PATH")

    def latest_open_issue(self) -> Optional[Issue]:
        """Most recent open issue, or None when there are none."""
        result = self._runner.run(
            ["gh", "issue", "list", "--limit", "1", "--state", "open",
             "--json", "number,title,body"],
            raw_stdout=True,
        )
        if not result.success:
            raise GhCliError(f"Failed to list issues: {result.stderr.strip()}", result)

        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise GhCliError(f"Malformed JSON from gh issue list: {e}", result) from e

        if not isinstance(data, list):
            raise GhCliError("Unexpected gh issue list output", result)
        if not data:
            return None

        item = data[0]
        try:
            return Issue(
                number=int(item["number"]),
                title=item.get("title") or "",
                body=item.get("body") or "",
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GhCliError(f"Unexpected issue record: {e}", result) from e

    def create_issue(self, title: str, body: str, labels: list[str]) -> str:
        """Open an issue and return its URL."""
        fd, body_path = tempfile.mkstemp(suffix=".md", prefix="issue-body-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)

            command = ["gh", "issue", "create", "--title", title, "--body-file", body_path]
            for label in labels:
                command.extend(["--label", label])

            # shell=False and the title is a single argv entry
            result = self._runner.run(command, validate=False)
        finally:
            os.unlink(body_path)

        if not result.success:
            raise GhCliError(f"Failed to create issue: {result.stderr.strip()}", result)
        return result.stdout.strip().splitlines()[-1] if result.stdout.strip() else ""
