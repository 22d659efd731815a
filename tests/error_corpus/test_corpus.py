"""
Tests for corpus discovery over errors/<tag>/<slug>/README.md.
"""

import pytest

from error_corpus.config import CorpusConfig
from error_corpus.corpus import Corpus, CorpusError
from error_corpus.document import DocumentParseError, ErrorDocument


def _write(root, relative, content="# Title\n\n## Description\n\ntext\n"):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def corpus_root(tmp_path):
    _write(tmp_path, "errors/css/flexbox-gap/README.md", "# Flexbox gap\n")
    _write(tmp_path, "errors/react/use-effect-twice/README.md", "# useEffect twice\n")
    _write(tmp_path, "errors/react/broken/README.md", b"# Broken\n\xff\n")
    _write(tmp_path, "errors/stray/README.md")
    _write(tmp_path, "errors/css/flexbox-gap/notes/README.md")
    _write(tmp_path, "errors/css/flexbox-gap/notes.md", "not a readme")
    return tmp_path


class TestDiscovery:
    """Walking the errors directory."""

    def test_entries_in_sorted_order(self, corpus_root):
        entries = Corpus(corpus_root).discover().entries
        assert [e.key for e in entries] == [
            "css/flexbox-gap",
            "react/broken",
            "react/use-effect-twice",
        ]

    def test_misplaced_readmes_reported(self, corpus_root):
        misplaced = Corpus(corpus_root).discover().misplaced
        names = sorted(str(p.relative_to(corpus_root)) for p in misplaced)
        assert names == [
            "errors/css/flexbox-gap/notes/README.md",
            "errors/stray/README.md",
        ]

    def test_missing_errors_dir(self, tmp_path):
        with pytest.raises(CorpusError) as exc_info:
            Corpus(tmp_path).discover()
        assert "not found" in str(exc_info.value)

    def test_custom_layout(self, tmp_path):
        _write(tmp_path, "docs/css/a/index.md")
        config = CorpusConfig(errors_dir="docs", readme_name="index.md")
        entries = Corpus(tmp_path, config).entries()
        assert [e.key for e in entries] == ["css/a"]


class TestCorpusAccess:
    """Loading, counting and lookup."""

    def test_tags(self, corpus_root):
        assert Corpus(corpus_root).tags() == {"css": 1, "react": 2}

    def test_iter_documents_yields_parse_errors(self, corpus_root):
        results = dict(
            (entry.key, doc) for entry, doc in Corpus(corpus_root).iter_documents()
        )
        assert isinstance(results["css/flexbox-gap"], ErrorDocument)
        assert isinstance(results["react/broken"], DocumentParseError)

    def test_exists(self, corpus_root):
        corpus = Corpus(corpus_root)
        assert corpus.exists("css", "flexbox-gap")
        assert not corpus.exists("css", "missing")
        assert corpus.entry_path("css", "x").name == "README.md"
