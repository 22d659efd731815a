"""
Issue Filing

Turns an issue (title + Markdown body) into a writeup at
``errors/<topic>/<slug>/README.md``. The topic comes from keyword
classification, the slug from the sanitized title.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from error_corpus.config import CorpusConfig
from error_corpus.corpus import Corpus
from error_corpus.integrations.gh_cli import GhCli
from error_corpus.integrations.git_cli import GitCli
from error_corpus.topics import TopicClassifier, slugify

logger = logging.getLogger(__name__)


class FilingError(Exception):
    """Raised when an issue cannot be filed as a writeup."""

    pass


@dataclass
class FiledDocument:
    """Where an issue was written."""

    topic: str
    slug: str
    path: Path
    created: bool  # False when an existing writeup was overwritten
    issue_number: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "slug": self.slug,
            "path": str(self.path),
            "created": self.created,
            "issue_number": self.issue_number,
        }


def render_document(title: str, body: str, prefix: str = "🐞") -> str:
    """Header line, blank line, then the body verbatim."""
    header = f"# {prefix} {title}" if prefix else f"# {title}"
    text = f"{header}\n\n{body}"
    if not text.endswith("\n"):
        text += "\n"
    return text


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(temp_file, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_file, path)
    except BaseException:
        temp_file.unlink(missing_ok=True)
        raise


class IssueFiler:
    """Files issues into the corpus."""

    def __init__(
        self,
        root: str | Path,
        config: CorpusConfig | None = None,
        classifier: TopicClassifier | None = None,
    ):
        self.config = config or CorpusConfig()
        self.corpus = Corpus(root, self.config)
        self.classifier = classifier or TopicClassifier.from_config(self.config)

    def plan(self, title: str, body: str = "") -> tuple[str, str, Path]:
        """Resolve (topic, slug, path) for an issue without writing anything.

        Raises:
            FilingError: If the title is empty or has no usable characters
        """
        title = title.strip()
        if not title:
            raise FilingError("Issue title is empty")

        slug = slugify(title)
        if not slug:
            raise FilingError(f"Issue title has no characters usable in a folder name: {title!r}")

        topic = self.classifier.classify(title, body)
        return topic, slug, self.corpus.entry_path(topic, slug)

    def file_issue(
        self,
        title: str,
        body: str,
        overwrite: bool = False,
        issue_number: Optional[int] = None,
    ) -> FiledDocument:
        """Write the issue as a writeup.

        Raises:
            FilingError: On an unusable title, when the writeup exists and
                overwrite is False, or when the file cannot be written
        """
        topic, slug, path = self.plan(title, body)
        existed = path.exists()
        if existed and not overwrite:
            raise FilingError(f"Writeup already exists: {topic}/{slug}")

        content = render_document(title.strip(), body, self.config.title_prefix)
        try:
            _atomic_write(path, content)
        except OSError as e:
            raise FilingError(f"Could not write {path}: {e}") from e
        logger.info("%s %s/%s", "Overwrote" if existed else "Filed", topic, slug)

        return FiledDocument(
            topic=topic,
            slug=slug,
            path=path,
            created=not existed,
            issue_number=issue_number,
        )

    def file_latest_issue(self, gh: GhCli, overwrite: bool = False) -> FiledDocument:
        """File the newest open GitHub issue.

        Raises:
            FilingError: If there is no open issue
        """
        issue = gh.latest_open_issue()
        if issue is None:
            raise FilingError("No open issues to file")
        logger.info("Filing issue #%d: %s", issue.number, issue.title)
        return self.file_issue(
            issue.title, issue.body, overwrite=overwrite, issue_number=issue.number
        )

    def commit_filed(self, git: GitCli, filed: FiledDocument, push: bool = False) -> bool:
        """Stage and commit a filed writeup, optionally pushing.

        Returns: False when there was nothing to commit.
        """
        try:
            message = self.config.commit_message.format(topic=filed.topic, slug=filed.slug)
        except (KeyError, IndexError) as e:
            raise FilingError(f"Invalid commit_message placeholder: {e}") from e
        git.add([filed.path])
        committed = git.commit(message)
        if not committed:
            logger.info("Nothing to commit for %s/%s", filed.topic, filed.slug)
        if push and committed:
            git.push()
        return committed
