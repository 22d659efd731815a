"""
Corpus discovery over the ``errors/<tag>/<slug>/README.md`` layout.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

from error_corpus.config import CorpusConfig
from error_corpus.document import DocumentParseError, DocumentParser, ErrorDocument

logger = logging.getLogger(__name__)


class CorpusError(Exception):
    """Raised when the corpus cannot be located."""

    pass


@dataclass(frozen=True)
class CorpusEntry:
    """One writeup on disk."""

    tag: str
    slug: str
    path: Path

    @property
    def key(self) -> str:
        return f"{self.tag}/{self.slug}"


@dataclass
class DiscoveryResult:
    """Entries in canonical position plus READMEs found anywhere else."""

    entries: list[CorpusEntry] = field(default_factory=list)
    misplaced: list[Path] = field(default_factory=list)


class Corpus:
    """A directory tree of error writeups."""

    def __init__(self, root: str | Path, config: CorpusConfig | None = None):
        self.root = Path(root).resolve()
        self.config = config or CorpusConfig()
        self.errors_path = self.config.errors_path(self.root)

    def _require_errors_dir(self) -> None:
        if not self.errors_path.is_dir():
            raise CorpusError(f"Errors directory not found: {self.errors_path}")

    def discover(self) -> DiscoveryResult:
        """Walk the errors directory in sorted order.

        Raises:
            CorpusError: If the errors directory does not exist
        """
        self._require_errors_dir()
        result = DiscoveryResult()
        readme = self.config.readme_name

        for path in sorted(self.errors_path.rglob(readme)):
            if not path.is_file():
                continue
            parts = path.relative_to(self.errors_path).parts
            if len(parts) == 3:
                result.entries.append(CorpusEntry(tag=parts[0], slug=parts[1], path=path))
            else:
                logger.debug("Misplaced %s: %s", readme, path)
                result.misplaced.append(path)

        logger.debug(
            "Discovered %d documents (%d misplaced) under %s",
            len(result.entries),
            len(result.misplaced),
            self.errors_path,
        )
        return result

    def entries(self) -> list[CorpusEntry]:
        return self.discover().entries

    def load(self, entry: CorpusEntry) -> ErrorDocument:
        """Parse one entry. Raises DocumentParseError."""
        return DocumentParser.parse_file(entry.path)

    def iter_documents(
        self,
    ) -> Iterator[tuple[CorpusEntry, Union[ErrorDocument, DocumentParseError]]]:
        """Yield every entry with its parsed document, or the parse error."""
        for entry in self.entries():
            try:
                yield entry, self.load(entry)
            except DocumentParseError as e:
                logger.warning("Could not parse %s: %s", entry.key, e)
                yield entry, e

    def tags(self) -> dict[str, int]:
        """Document count per tag directory, sorted by tag."""
        counts = Counter(entry.tag for entry in self.entries())
        return dict(sorted(counts.items()))

    def entry_path(self, tag: str, slug: str) -> Path:
        return self.errors_path / tag / slug / self.config.readme_name

    def exists(self, tag: str, slug: str) -> bool:
        return self.entry_path(tag, slug).is_file()
