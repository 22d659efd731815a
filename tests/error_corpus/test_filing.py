"""
Tests for filing issues as writeups.

An issue titled T with body B lands at errors/<topic>/<slugify(T)>/README.md
with the content "# 🐞 T", a blank line, then B.
"""

import json
import shutil
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from error_corpus.config import CorpusConfig
from error_corpus.document import DocumentParser
from error_corpus.filing import FilingError, IssueFiler, render_document
from error_corpus.integrations.gh_cli import GhCli, Issue
from error_corpus.integrations.git_cli import GitCli
from error_corpus.lint import Linter
from error_corpus.topics import slugify


SUBPROCESS_RUN = "error_corpus.integrations.process_runner.subprocess.run"

TITLE = "MERN stack: CORS error on login"
SLUG = "mern-stack-cors-error-on-login"
BODY = """## Description of the Error

The browser blocks the login request with a CORS error.

## Fixing Step by Step

1. Install the cors middleware.

```bash
npm install cors
```

## Explanation

Browsers enforce same-origin policy on XHR requests.

## External References

- [Express cors](https://expressjs.com/en/resources/middleware/cors.html)
"""


@pytest.fixture
def filer(tmp_path):
    return IssueFiler(tmp_path, CorpusConfig())


class TestFileIssue:
    """Writing the README."""

    def test_files_under_topic_and_slug(self, filer, tmp_path):
        filed = filer.file_issue(TITLE, BODY)
        assert filed.topic == "mern"
        assert filed.slug == SLUG
        assert filed.created
        assert filed.path == tmp_path.resolve() / "errors" / "mern" / SLUG / "README.md"

    def test_content_layout(self, filer):
        filed = filer.file_issue(TITLE, BODY)
        content = filed.path.read_text(encoding="utf-8")
        assert content == f"# 🐞 {TITLE}\n\n{BODY}"

    def test_filed_document_round_trips_through_parser_and_linter(self, filer):
        filed = filer.file_issue(TITLE, BODY)
        doc = DocumentParser.parse_file(filed.path)
        assert doc.clean_title == TITLE
        assert slugify(doc.clean_title) == filed.slug
        report = Linter(CorpusConfig()).lint_file(filed.path, filed.topic, filed.slug)
        assert report.issues == []

    def test_existing_writeup_is_not_overwritten(self, filer):
        filer.file_issue(TITLE, BODY)
        with pytest.raises(FilingError) as exc_info:
            filer.file_issue(TITLE, "new body")
        assert "already exists" in str(exc_info.value)

    def test_overwrite(self, filer):
        filer.file_issue(TITLE, BODY)
        filed = filer.file_issue(TITLE, "new body", overwrite=True)
        assert not filed.created
        assert filed.path.read_text(encoding="utf-8").endswith("new body\n")

    def test_no_temp_file_left_behind(self, filer):
        filed = filer.file_issue(TITLE, BODY)
        assert [p.name for p in filed.path.parent.iterdir()] == ["README.md"]

    @pytest.mark.parametrize("title", ["", "   ", "🔥 !!!"])
    def test_unusable_title(self, filer, title):
        with pytest.raises(FilingError):
            filer.file_issue(title, BODY)

    def test_fallback_topic(self, filer):
        filed = filer.file_issue("Firestore transaction contention", "Retry with backoff.")
        assert filed.topic == "general"

    def test_plan_does_not_write(self, filer):
        topic, slug, path = filer.plan(TITLE, BODY)
        assert (topic, slug) == ("mern", SLUG)
        assert not path.exists()


class TestRenderDocument:
    def test_no_prefix(self):
        assert render_document("Title", "Body", prefix="") == "# Title\n\nBody\n"

    def test_keeps_existing_trailing_newline(self):
        assert render_document("Title", "Body\n") == "# 🐞 Title\n\nBody\n"


class TestFileLatestIssue:
    """Pulling the newest open issue from GitHub."""

    def test_files_latest_issue(self, filer):
        gh = MagicMock()
        gh.latest_open_issue.return_value = Issue(number=42, title=TITLE, body=BODY)
        filed = filer.file_latest_issue(gh)
        assert filed.issue_number == 42
        assert filed.path.exists()

    def test_no_open_issues(self, filer):
        gh = MagicMock()
        gh.latest_open_issue.return_value = None
        with pytest.raises(FilingError):
            filer.file_latest_issue(gh)


class TestCommitFiled:
    """Staging and committing with a mocked git."""

    def test_commit_and_push(self, filer):
        filed = filer.file_issue(TITLE, BODY)
        git = MagicMock()
        git.commit.return_value = True
        assert filer.commit_filed(git, filed, push=True)
        git.add.assert_called_once_with([filed.path])
        git.commit.assert_called_once_with(f"Add error doc mern/{SLUG}")
        git.push.assert_called_once()

    def test_nothing_to_commit_skips_push(self, filer):
        filed = filer.file_issue(TITLE, BODY)
        git = MagicMock()
        git.commit.return_value = False
        assert not filer.commit_filed(git, filed, push=True)
        git.push.assert_not_called()

    def test_bad_commit_message_template(self, tmp_path):
        filer = IssueFiler(tmp_path, CorpusConfig(commit_message="Add {missing}"))
        filed = filer.file_issue(TITLE, BODY)
        git = MagicMock()
        with pytest.raises(FilingError):
            filer.commit_filed(git, filed)
        git.add.assert_not_called()


class TestFileLatestIssueThroughGh:
    """Issue bodies reach the README unchanged when read through gh."""

    def _file(self, tmp_path, body):
        payload = json.dumps([{"number": 5, "title": "MongoDB Atlas connection refused", "body": body}])

        def fake_run(command, **kwargs):
            if command[1] == "--version":
                return subprocess.CompletedProcess(command, 0, stdout="gh version 2.60.0\n", stderr="")
            return subprocess.CompletedProcess(command, 0, stdout=payload, stderr="")

        with patch(SUBPROCESS_RUN, side_effect=fake_run):
            filed = IssueFiler(tmp_path, CorpusConfig()).file_latest_issue(GhCli(tmp_path))
        return filed.path.read_text(encoding="utf-8")

    def test_connection_string_is_kept(self, tmp_path):
        body = (
            "## Fixing Step by Step\n\n```js\n"
            'mongoose.connect("mongodb+srv://<username>:<password>@cluster0.mongodb.net/app");\n'
            "```\n"
        )
        content = self._file(tmp_path, body)
        assert content == f"# 🐞 MongoDB Atlas connection refused\n\n{body}"
        assert "REDACTED" not in content

    def test_long_body_is_not_truncated(self, tmp_path):
        body = "## Description of the Error\n\n" + "x" * 63000 + "\n"
        content = self._file(tmp_path, body)
        assert content.endswith(body)


class TestAtomicWrite:
    def test_failed_write_leaves_nothing_behind(self, filer):
        with patch("error_corpus.filing.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(FilingError) as exc_info:
                filer.file_issue(TITLE, BODY)
        assert "disk full" in str(exc_info.value)
        folder = filer.corpus.entry_path("mern", SLUG).parent
        assert list(folder.iterdir()) == []


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestCommitFiledWithGit:
    """End-to-end against a real repository."""

    @pytest.fixture
    def repo(self, tmp_path):
        for args in (
            ["init", "-q"],
            ["config", "user.email", "docs@example.com"],
            ["config", "user.name", "Docs Bot"],
            ["config", "commit.gpgsign", "false"],
        ):
            subprocess.run(["git", *args], cwd=tmp_path, check=True, capture_output=True)
        return tmp_path

    def test_commits_once(self, repo):
        filer = IssueFiler(repo, CorpusConfig())
        filed = filer.file_issue(TITLE, BODY)
        git = GitCli(repo)
        assert filer.commit_filed(git, filed)
        assert git.is_working_tree_clean()
        assert not filer.commit_filed(git, filed)
