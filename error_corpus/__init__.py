"""
Error Corpus - Maintenance tooling for a corpus of web-development error writeups.

Parses and lints errors/<tag>/<slug>/README.md documents, files GitHub issues
into that layout, and drafts new writeups with an LLM.
"""

from error_corpus.config import (
    CorpusConfig,
    ConfigError,
    TopicRule,
    load_config_from_pyproject,
)
from error_corpus.document import (
    DocumentParser,
    ErrorDocument,
    DocumentParseError,
    DocumentSection,
    SectionKind,
    CodeSnippet,
    Reference,
)
from error_corpus.corpus import (
    Corpus,
    CorpusEntry,
    CorpusError,
    DiscoveryResult,
)
from error_corpus.topics import TopicClassifier, slugify
from error_corpus.lint import (
    Linter,
    LintIssue,
    LintReport,
    Severity,
)
from error_corpus.filing import (
    IssueFiler,
    FiledDocument,
    FilingError,
    render_document,
)
from error_corpus.drafting import (
    IssueDrafter,
    IssueDraft,
    DraftingError,
    build_prompt,
    split_draft,
)

__all__ = [
    # config
    "CorpusConfig",
    "ConfigError",
    "TopicRule",
    "load_config_from_pyproject",
    # document
    "DocumentParser",
    "ErrorDocument",
    "DocumentParseError",
    "DocumentSection",
    "SectionKind",
    "CodeSnippet",
    "Reference",
    # corpus
    "Corpus",
    "CorpusEntry",
    "CorpusError",
    "DiscoveryResult",
    # topics
    "TopicClassifier",
    "slugify",
    # lint
    "Linter",
    "LintIssue",
    "LintReport",
    "Severity",
    # filing
    "IssueFiler",
    "FiledDocument",
    "FilingError",
    "render_document",
    # drafting
    "IssueDrafter",
    "IssueDraft",
    "DraftingError",
    "build_prompt",
    "split_draft",
]
