"""
Content Linting

Structural checks over error writeups: UTF-8 decoding, balanced code fences,
a references section with at least one hyperlink, plus the layout checks the
filing pipeline relies on (title present, known tag, slug derived from title).

Each rule is a plain function taking a LintContext and returning issues.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from error_corpus.config import CorpusConfig
from error_corpus.corpus import Corpus
from error_corpus.document import (
    DocumentParseError,
    DocumentParser,
    ErrorDocument,
    SectionKind,
)
from error_corpus.topics import TopicClassifier, slugify

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Lint issue severity."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class LintIssue:
    """A single finding."""

    rule: str
    severity: Severity
    message: str
    path: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
            "path": self.path,
            "line": self.line,
        }

    def format(self) -> str:
        location = self.path or "<text>"
        if self.line is not None:
            location = f"{location}:{self.line}"
        return f"{location}: {self.severity.value}: [{self.rule}] {self.message}"


@dataclass
class LintContext:
    """Everything a rule may look at for one document."""

    document: ErrorDocument
    config: CorpusConfig
    classifier: TopicClassifier
    path: Optional[str] = None
    tag: Optional[str] = None
    slug: Optional[str] = None

    def issue(
        self, rule: str, severity: Severity, message: str, line: Optional[int] = None
    ) -> LintIssue:
        return LintIssue(rule=rule, severity=severity, message=message, path=self.path, line=line)


@dataclass
class LintReport:
    """Aggregated lint results."""

    issues: list[LintIssue] = field(default_factory=list)
    files_checked: int = 0

    @property
    def errors(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def has_errors(self) -> bool:
        return bool(self.errors)

    def is_clean(self, strict: bool = False) -> bool:
        """No errors; with strict, no warnings either."""
        if strict:
            return not self.errors and not self.warnings
        return not self.errors

    def extend(self, other: LintReport) -> None:
        self.issues.extend(other.issues)
        self.files_checked += other.files_checked

    def by_path(self) -> dict[str, list[LintIssue]]:
        grouped: dict[str, list[LintIssue]] = defaultdict(list)
        for issue in self.issues:
            grouped[issue.path or "<text>"].append(issue)
        return dict(grouped)

    def by_rule(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for issue in self.issues:
            counts[issue.rule] += 1
        return dict(counts)

    def to_dict(self) -> dict:
        return {
            "summary": {
                "files_checked": self.files_checked,
                "errors": len(self.errors),
                "warnings": len(self.warnings),
                "issues": len(self.issues),
            },
            "issues": [i.to_dict() for i in self.issues],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def format_text(self) -> str:
        lines = [issue.format() for issue in self.issues]
        lines.append(
            f"{self.files_checked} file(s) checked: "
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"
        )
        return "\n".join(lines)


# =============================================================================
# Rules
# =============================================================================


def check_fence_balance(ctx: LintContext) -> list[LintIssue]:
    return [
        ctx.issue(
            "fence-balance",
            Severity.ERROR,
            f"Code fence {snippet.fence} opened here is never closed",
            line=snippet.start_line,
        )
        for snippet in ctx.document.unclosed_snippets()
    ]


def check_references_link(ctx: LintContext) -> list[LintIssue]:
    section = ctx.document.get_section(SectionKind.REFERENCES)
    if section is None:
        return [ctx.issue("references-link", Severity.ERROR, "No external references section")]
    if not any(ref.is_web for ref in ctx.document.references):
        return [
            ctx.issue(
                "references-link",
                Severity.ERROR,
                f"References section '{section.heading}' contains no hyperlink",
                line=section.start_line,
            )
        ]
    return []


def check_title(ctx: LintContext) -> list[LintIssue]:
    if ctx.document.has_title:
        return []
    return [ctx.issue("title", Severity.ERROR, "Missing H1 title", line=1)]


def check_required_sections(ctx: LintContext) -> list[LintIssue]:
    doc = ctx.document
    issues = []
    if doc.get_section(SectionKind.DESCRIPTION) is None and not doc.description:
        issues.append(ctx.issue("required-sections", Severity.WARNING, "Missing error description"))
    if doc.get_section(SectionKind.FIX) is None:
        issues.append(ctx.issue("required-sections", Severity.WARNING, "Missing fix section"))
    if doc.get_section(SectionKind.EXPLANATION) is None:
        issues.append(ctx.issue("required-sections", Severity.WARNING, "Missing explanation section"))
    return issues


def check_known_tag(ctx: LintContext) -> list[LintIssue]:
    if ctx.tag is None:
        return []
    known = ctx.classifier.known_tags(ctx.config.extra_tags)
    if ctx.tag in known:
        return []
    return [
        ctx.issue(
            "known-tag",
            Severity.WARNING,
            f"Unknown tag directory '{ctx.tag}' (known: {', '.join(sorted(known))})",
        )
    ]


def check_slug_matches_title(ctx: LintContext) -> list[LintIssue]:
    if ctx.slug is None or not ctx.document.has_title:
        return []
    expected = slugify(ctx.document.clean_title)
    if expected == ctx.slug:
        return []
    return [
        ctx.issue(
            "slug-matches-title",
            Severity.WARNING,
            f"Folder '{ctx.slug}' does not match title slug '{expected}'",
        )
    ]


def check_empty_snippet(ctx: LintContext) -> list[LintIssue]:
    return [
        ctx.issue("empty-snippet", Severity.WARNING, "Code block is empty", line=s.start_line)
        for s in ctx.document.code_snippets
        if s.closed and not s.code.strip()
    ]


def check_copyright(ctx: LintContext) -> list[LintIssue]:
    if not ctx.config.require_copyright or ctx.document.has_copyright:
        return []
    return [ctx.issue("copyright", Severity.WARNING, "Missing copyright footer")]


RULES: dict[str, Callable[[LintContext], list[LintIssue]]] = {
    "title": check_title,
    "fence-balance": check_fence_balance,
    "references-link": check_references_link,
    "required-sections": check_required_sections,
    "known-tag": check_known_tag,
    "slug-matches-title": check_slug_matches_title,
    "empty-snippet": check_empty_snippet,
    "copyright": check_copyright,
}

# Rules applied outside the per-document pass
FILE_RULES = ["utf8", "parse", "misplaced-readme"]


def _line_of_offset(data: bytes, offset: int) -> int:
    return data.count(b"\n", 0, offset) + 1


class Linter:
    """Runs the enabled rules over text, files, or a whole corpus."""

    def __init__(
        self,
        config: CorpusConfig | None = None,
        classifier: TopicClassifier | None = None,
    ):
        self.config = config or CorpusConfig()
        self.classifier = classifier or TopicClassifier.from_config(self.config)

    def enabled_rules(self) -> list[str]:
        return [rule for rule in RULES if self.config.is_rule_enabled(rule)]

    def lint_document(
        self,
        document: ErrorDocument,
        path: Optional[str] = None,
        tag: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> LintReport:
        ctx = LintContext(
            document=document,
            config=self.config,
            classifier=self.classifier,
            path=path,
            tag=tag,
            slug=slug,
        )
        report = LintReport(files_checked=1)
        for rule_id in self.enabled_rules():
            report.issues.extend(RULES[rule_id](ctx))
        return report

    def lint_text(
        self,
        text: str,
        path: Optional[str] = None,
        tag: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> LintReport:
        try:
            document = DocumentParser.parse(text)
        except DocumentParseError as e:
            report = LintReport(files_checked=1)
            if self.config.is_rule_enabled("parse"):
                report.issues.append(
                    LintIssue(rule="parse", severity=Severity.ERROR, message=str(e), path=path)
                )
            return report
        return self.lint_document(document, path=path, tag=tag, slug=slug)

    def lint_file(
        self,
        path: str | Path,
        tag: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> LintReport:
        """Lint one file. An undecodable file yields a single utf8 error."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            return LintReport(
                issues=[
                    LintIssue(rule="parse", severity=Severity.ERROR, message=str(e), path=str(path))
                ],
                files_checked=1,
            )

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            report = LintReport(files_checked=1)
            if self.config.is_rule_enabled("utf8"):
                report.issues.append(
                    LintIssue(
                        rule="utf8",
                        severity=Severity.ERROR,
                        message=f"Invalid UTF-8 at byte {e.start}",
                        path=str(path),
                        line=_line_of_offset(data, e.start),
                    )
                )
            return report

        return self.lint_text(text, path=str(path), tag=tag, slug=slug)

    def lint_corpus(self, corpus: Corpus) -> LintReport:
        """Lint every writeup in the corpus. Raises CorpusError if it is missing."""
        discovery = corpus.discover()
        report = LintReport()

        for entry in discovery.entries:
            report.extend(self.lint_file(entry.path, tag=entry.tag, slug=entry.slug))

        if self.config.is_rule_enabled("misplaced-readme"):
            for path in discovery.misplaced:
                report.issues.append(
                    LintIssue(
                        rule="misplaced-readme",
                        severity=Severity.WARNING,
                        message=f"Expected {corpus.config.errors_dir}/<tag>/<slug>/"
                        f"{corpus.config.readme_name}",
                        path=str(path),
                    )
                )

        logger.info(
            "Linted %d files: %d errors, %d warnings",
            report.files_checked,
            len(report.errors),
            len(report.warnings),
        )
        return report

    def lint_paths(self, paths: list[Path], corpus: Optional[Corpus] = None) -> LintReport:
        """Lint explicit files, inferring tag/slug when they sit inside the corpus."""
        report = LintReport()
        for path in paths:
            tag = slug = None
            if corpus is not None:
                try:
                    parts = path.resolve().relative_to(corpus.errors_path).parts
                except ValueError:
                    parts = ()
                if len(parts) == 3:
                    tag, slug = parts[0], parts[1]
            report.extend(self.lint_file(path, tag=tag, slug=slug))
        return report
