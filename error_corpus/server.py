#!/usr/bin/env python3
"""
MCP Error Corpus Server

Provides LintCorpus, LintDocument, ParseDocument, ClassifyTopic and FileIssue
tools so agents can check and extend the corpus.
The corpus root is ERROR_CORPUS_ROOT, or the nearest ancestor of the working
directory holding an ``errors/`` directory or ``.git``.
"""

import os
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from error_corpus.config import load_config_from_pyproject
from error_corpus.corpus import Corpus
from error_corpus.document import DocumentParser
from error_corpus.filing import IssueFiler
from error_corpus.lint import Linter
from error_corpus.topics import TopicClassifier, slugify

mcp = FastMCP("Error Corpus")


def _find_corpus_root(start_path: Path) -> Optional[Path]:
    """Walk up from start_path to the first directory that looks like the corpus repo."""
    current = start_path.resolve()

    while current != current.parent:
        if (current / "errors").is_dir():
            return current
        if (current / ".git").exists():
            return current
        current = current.parent

    return None


def get_root(root: Optional[str] = None) -> Path:
    """Resolve the corpus root.

    Priority:
    1. Explicit argument
    2. ERROR_CORPUS_ROOT environment variable
    3. Detected from PWD/cwd (fresh each call)
    """
    if root:
        return Path(root)
    if os.environ.get("ERROR_CORPUS_ROOT"):
        return Path(os.environ["ERROR_CORPUS_ROOT"])

    start = Path(os.environ.get("PWD", os.getcwd()))
    return _find_corpus_root(start) or start


def _resolve_path(path: str, root: Path) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else root / candidate


@mcp.tool()
def LintCorpus(root: Optional[str] = None) -> dict:
    """
    Lint every writeup under errors/<tag>/<slug>/README.md.

    Args:
        root: Corpus repository root (detected when omitted)

    Returns:
        Summary counts and the list of issues
    """
    base = get_root(root)
    config = load_config_from_pyproject(base)
    return Linter(config).lint_corpus(Corpus(base, config)).to_dict()


@mcp.tool()
def LintDocument(path: str, root: Optional[str] = None) -> dict:
    """
    Lint a single writeup.

    Args:
        path: File path, absolute or relative to the corpus root
        root: Corpus repository root (detected when omitted)

    Returns:
        Summary counts and the list of issues
    """
    base = get_root(root)
    config = load_config_from_pyproject(base)
    corpus = Corpus(base, config)
    return Linter(config).lint_paths([_resolve_path(path, base)], corpus).to_dict()


@mcp.tool()
def ParseDocument(path: str, root: Optional[str] = None) -> dict:
    """
    Parse a writeup into title, description, fix steps, snippets,
    explanation and references.

    Args:
        path: File path, absolute or relative to the corpus root
        root: Corpus repository root (detected when omitted)
    """
    doc = DocumentParser.parse_file(_resolve_path(path, get_root(root)))
    return doc.to_dict()


@mcp.tool()
def ClassifyTopic(title: str, body: str = "", root: Optional[str] = None) -> dict:
    """
    Decide which tag directory an issue would be filed under.

    Returns:
        topic, slug and the keyword that matched (None for the fallback)
    """
    config = load_config_from_pyproject(get_root(root))
    classifier = TopicClassifier.from_config(config)
    rule = classifier.match(title, body)
    return {
        "topic": rule.topic if rule else classifier.fallback,
        "slug": slugify(title),
        "keyword": rule.keyword if rule else None,
    }


@mcp.tool()
def FileIssue(
    title: str,
    body: str,
    overwrite: bool = False,
    root: Optional[str] = None,
) -> dict:
    """
    Write an issue as errors/<topic>/<slug>/README.md.

    Args:
        title: Issue title (becomes the H1 and the folder name)
        body: Markdown body
        overwrite: Replace an existing writeup with the same slug

    Returns:
        topic, slug, path and whether the file was newly created
    """
    base = get_root(root)
    filer = IssueFiler(base, load_config_from_pyproject(base))
    return filer.file_issue(title, body, overwrite=overwrite).to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
