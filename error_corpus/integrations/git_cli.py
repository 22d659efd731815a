"""
Git CLI Integration

Stages, commits and pushes filed writeups.
"""

from __future__ import annotations

from pathlib import Path

from error_corpus.integrations.process_runner import ProcessResult, ProcessRunner


class GitCliError(Exception):
    """Error executing git command."""

    def __init__(self, message: str, result: ProcessResult | None = None):
        super().__init__(message)
        self.result = result


class GitCli:
    """Git command line interface wrapper."""

    def __init__(self, repo_root: str | Path, timeout: int = 30):
        self.repo_root = Path(repo_root).resolve()
        self.timeout = timeout
        self._runner = ProcessRunner(self.repo_root, default_timeout=timeout)

        if not self._check_git_available():
            raise GitCliError("Git is not available in PATH")

        if not self._is_git_repo():
            raise GitCliError(f"Not a git repository: {self.repo_root}")

    def _check_git_available(self) -> bool:
        return self._runner.run(["git", "--version"], timeout=5).success

    def _is_git_repo(self) -> bool:
        return self._run(["rev-parse", "--git-dir"]).success

    def _run(self, args: list[str]) -> ProcessResult:
        return self._runner.run(["git"] + args)

    def _relative(self, path: str | Path) -> str:
        path = Path(path)
        if path.is_absolute():
            try:
                return str(path.resolve().relative_to(self.repo_root))
            except ValueError:
                raise GitCliError(f"Path is outside the repository: {path}")
        return str(path)

    def get_current_branch(self) -> str:
        """Get the current branch name, or 'HEAD' if detached."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        if not result.success:
            raise GitCliError("Failed to get current branch", result)
        return result.stdout.strip()

    def is_working_tree_clean(self) -> bool:
        """Check if the working tree has no uncommitted changes."""
        result = self._run(["status", "--porcelain"])
        if not result.success:
            return False
        return len(result.stdout.strip()) == 0

    def has_staged_changes(self) -> bool:
        result = self._run(["diff", "--cached", "--quiet"])
        # --quiet exits 1 when there are differences
        if result.exit_code not in (0, 1):
            raise GitCliError("Failed to inspect staged changes", result)
        return result.exit_code == 1

    def add(self, paths: list[str | Path]) -> None:
        """Stage the given paths."""
        result = self._run(["add", "--"] + [self._relative(p) for p in paths])
        if not result.success:
            raise GitCliError(f"Failed to stage {len(paths)} path(s)", result)

    def commit(self, message: str) -> bool:
        """Commit staged changes.

        Returns: False when there was nothing to commit.
        """
        if not self.has_staged_changes():
            return False
        result = self._run(["commit", "-m", message])
        if not result.success:
            raise GitCliError("Failed to commit", result)
        return True

    def push(self, remote: str = "origin", ref: str = "HEAD") -> None:
        result = self._run(["push", remote, ref])
        if not result.success:
            raise GitCliError(f"Failed to push {ref} to {remote}: {result.stderr.strip()}", result)
