"""
Tests for the MCP tools. The decorated functions are called directly.
"""

import pytest

from error_corpus.server import (
    ClassifyTopic,
    FileIssue,
    LintCorpus,
    LintDocument,
    ParseDocument,
    _find_corpus_root,
    get_root,
)


DOC = """# 🐞 jQuery click handler fires twice

## Description of the Error

Each click runs the handler two times.

## Fixing Step by Step

1. Unbind before binding.

```js
$("#save").off("click").on("click", save);
```

## Explanation

The binding code runs on every partial render.

## External References

- [.off()](https://api.jquery.com/off/)
"""

SLUG = "jquery-click-handler-fires-twice"


@pytest.fixture
def corpus(tmp_path):
    path = tmp_path / "errors" / "jquery" / SLUG / "README.md"
    path.parent.mkdir(parents=True)
    path.write_text(DOC, encoding="utf-8")
    return tmp_path


class TestRootDetection:
    def test_explicit_root_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ERROR_CORPUS_ROOT", "/elsewhere")
        assert get_root(str(tmp_path)) == tmp_path

    def test_environment_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ERROR_CORPUS_ROOT", str(tmp_path))
        assert get_root() == tmp_path

    def test_detected_from_pwd(self, corpus, monkeypatch):
        nested = corpus / "errors" / "jquery"
        monkeypatch.delenv("ERROR_CORPUS_ROOT", raising=False)
        monkeypatch.setenv("PWD", str(nested))
        assert get_root() == corpus.resolve()

    def test_find_corpus_root(self, corpus):
        assert _find_corpus_root(corpus / "errors" / "jquery" / SLUG) == corpus.resolve()


class TestTools:
    def test_lint_corpus(self, corpus):
        result = LintCorpus(str(corpus))
        assert result["summary"]["files_checked"] == 1
        assert result["issues"] == []

    def test_lint_document_relative_path(self, corpus):
        result = LintDocument(f"errors/jquery/{SLUG}/README.md", str(corpus))
        assert result["summary"]["errors"] == 0

    def test_parse_document(self, corpus):
        result = ParseDocument(f"errors/jquery/{SLUG}/README.md", str(corpus))
        assert result["fix_steps"] == ["Unbind before binding."]
        assert result["references"][0]["url"] == "https://api.jquery.com/off/"

    def test_classify_topic(self, tmp_path):
        result = ClassifyTopic("jQuery click handler fires twice", root=str(tmp_path))
        assert result == {"topic": "jquery", "slug": SLUG, "keyword": "jquery"}

    def test_classify_fallback(self, tmp_path):
        result = ClassifyTopic("Firestore rules deny reads", root=str(tmp_path))
        assert result["topic"] == "general"
        assert result["keyword"] is None

    def test_file_issue(self, tmp_path):
        result = FileIssue("CSS grid overflow on mobile", "Body\n", root=str(tmp_path))
        assert result["topic"] == "css"
        assert result["created"]
        assert (tmp_path / "errors" / "css" / "css-grid-overflow-on-mobile" / "README.md").exists()
