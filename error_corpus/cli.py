"""
error-corpus command line interface.

Usage:
    # Lint the whole corpus (exit 1 on errors)
    error-corpus lint

    # Lint specific writeups, failing on warnings too
    error-corpus lint errors/css/flexbox-gap/README.md --strict

    # File an issue as errors/<topic>/<slug>/README.md and commit it
    error-corpus file --title "Next.js middleware redirect loop" --body-file body.md --commit

    # File the newest open GitHub issue
    error-corpus file-latest --commit --push

    # Draft a new writeup with an LLM and open it as an issue
    error-corpus draft "Firebase Firestore, data storing and posts" --create-issue
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from error_corpus.config import ConfigError, CorpusConfig, load_config_from_pyproject
from error_corpus.corpus import Corpus, CorpusError
from error_corpus.document import DocumentParseError, DocumentParser
from error_corpus.drafting import DraftingError, IssueDrafter
from error_corpus.filing import FiledDocument, FilingError, IssueFiler
from error_corpus.integrations.gh_cli import GhCli, GhCliError
from error_corpus.integrations.git_cli import GitCli, GitCliError
from error_corpus.integrations.process_runner import ProcessRunnerError
from error_corpus.lint import Linter
from error_corpus.log import configure_logging
from error_corpus.topics import TopicClassifier, slugify

logger = logging.getLogger(__name__)

# Exit codes for CLI
EXIT_OK = 0
EXIT_LINT_FAILED = 1
EXIT_OPERATION_FAILED = 3
EXIT_CONFIG_ERROR = 4
EXIT_INFRA_ERROR = 5


def add_output_arguments(parser: argparse.ArgumentParser) -> None:
    """Add output format arguments."""
    parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")


def add_commit_arguments(parser: argparse.ArgumentParser) -> None:
    """Add git commit/push arguments for filing commands."""
    parser.add_argument(
        "--overwrite", action="store_true", help="Replace an existing writeup with the same slug"
    )
    parser.add_argument("--commit", action="store_true", help="Commit the new writeup")
    parser.add_argument(
        "--push", action="store_true", help="Push after committing (implies --commit)"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="error-corpus",
        description="Lint, parse and file web-development error writeups.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Corpus repository root (default: current directory)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    lint = sub.add_parser("lint", help="Check writeup structure")
    lint.add_argument("paths", nargs="*", type=Path, help="Files to lint (default: whole corpus)")
    lint.add_argument("--strict", action="store_true", help="Fail on warnings as well")
    add_output_arguments(lint)

    parse = sub.add_parser("parse", help="Print the parsed record of a writeup")
    parse.add_argument("file", type=Path)
    add_output_arguments(parse)

    sub.add_parser("tags", help="Writeup count per tag directory")

    classify = sub.add_parser("classify", help="Topic an issue would be filed under")
    classify.add_argument("--title", required=True)
    classify.add_argument("--body", default="")

    slug = sub.add_parser("slug", help="Folder name for a title")
    slug.add_argument("title")

    file_cmd = sub.add_parser("file", help="File an issue as a writeup")
    file_cmd.add_argument("--title", required=True)
    body = file_cmd.add_mutually_exclusive_group(required=True)
    body.add_argument("--body")
    body.add_argument("--body-file", type=Path)
    add_commit_arguments(file_cmd)

    latest = sub.add_parser("file-latest", help="File the newest open GitHub issue")
    add_commit_arguments(latest)

    draft = sub.add_parser("draft", help="Draft a writeup with an LLM")
    draft.add_argument("topic_area", help='e.g. "Firebase Firestore, data storing and posts"')
    draft.add_argument("--model", help="litellm model name (default from config)")
    draft.add_argument(
        "--create-issue", action="store_true", help="Open the draft as a GitHub issue"
    )
    add_output_arguments(draft)

    sub.add_parser("serve", help="Run the MCP server on stdio")

    return parser


# =============================================================================
# Command handlers
# =============================================================================


def handle_lint(args: argparse.Namespace, config: CorpusConfig) -> int:
    linter = Linter(config)
    corpus = Corpus(args.root, config)
    if args.paths:
        report = linter.lint_paths(args.paths, corpus)
    else:
        report = linter.lint_corpus(corpus)

    print(report.to_json() if args.json else report.format_text())
    return EXIT_OK if report.is_clean(strict=args.strict) else EXIT_LINT_FAILED


def handle_parse(args: argparse.Namespace, config: CorpusConfig) -> int:
    doc = DocumentParser.parse_file(args.file)
    if args.json:
        print(doc.to_json())
        return EXIT_OK

    lines = [
        f"Title:        {doc.clean_title}",
        f"Fix steps:    {len(doc.fix_steps)}",
        f"Snippets:     {len(doc.code_snippets)} ({', '.join(doc.snippet_languages()) or 'none'})",
        f"References:   {len(doc.references)}",
        f"Copyright:    {'yes' if doc.has_copyright else 'no'}",
    ]
    for i, step in enumerate(doc.fix_steps, 1):
        lines.append(f"  {i}. {step}")
    for ref in doc.references:
        lines.append(f"  - {ref.text} <{ref.url}>")
    for warning in doc.warnings:
        lines.append(f"Warning: {warning}")
    print("\n".join(lines))
    return EXIT_OK


def handle_tags(args: argparse.Namespace, config: CorpusConfig) -> int:
    for tag, count in Corpus(args.root, config).tags().items():
        print(f"{tag:20} {count}")
    return EXIT_OK


def handle_classify(args: argparse.Namespace, config: CorpusConfig) -> int:
    print(TopicClassifier.from_config(config).classify(args.title, args.body))
    return EXIT_OK


def handle_slug(args: argparse.Namespace, config: CorpusConfig) -> int:
    slug = slugify(args.title)
    if not slug:
        print("Error: title has no characters usable in a folder name", file=sys.stderr)
        return EXIT_OPERATION_FAILED
    print(slug)
    return EXIT_OK


def _finish_filing(
    args: argparse.Namespace, filer: IssueFiler, filed: FiledDocument, config: CorpusConfig
) -> int:
    print(filed.path)
    if args.commit or args.push:
        git = GitCli(args.root, timeout=config.command_timeout_seconds)
        if not filer.commit_filed(git, filed, push=args.push):
            print("Nothing to commit", file=sys.stderr)
    return EXIT_OK


def handle_file(args: argparse.Namespace, config: CorpusConfig) -> int:
    if args.body_file is not None:
        try:
            body = args.body_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FilingError(f"Could not read body file {args.body_file}: {e}") from e
    else:
        body = args.body

    filer = IssueFiler(args.root, config)
    filed = filer.file_issue(args.title, body, overwrite=args.overwrite)
    return _finish_filing(args, filer, filed, config)


def handle_file_latest(args: argparse.Namespace, config: CorpusConfig) -> int:
    gh = GhCli(args.root, timeout=config.command_timeout_seconds)
    filer = IssueFiler(args.root, config)
    filed = filer.file_latest_issue(gh, overwrite=args.overwrite)
    return _finish_filing(args, filer, filed, config)


def handle_draft(args: argparse.Namespace, config: CorpusConfig) -> int:
    drafter = IssueDrafter(config, model=args.model)
    draft = drafter.draft(args.topic_area)

    url = None
    if args.create_issue:
        url = drafter.publish(draft, GhCli(args.root, timeout=config.command_timeout_seconds))

    if args.json:
        print(json.dumps(
            {"title": draft.title, "body": draft.body, "model": draft.model, "issue_url": url},
            indent=2,
            ensure_ascii=False,
        ))
    else:
        print(draft.to_markdown())
        if url:
            print(f"\nIssue: {url}", file=sys.stderr)
    return EXIT_OK


def handle_serve(args: argparse.Namespace, config: CorpusConfig) -> int:
    from error_corpus.server import mcp

    mcp.run()
    return EXIT_OK


HANDLERS = {
    "lint": handle_lint,
    "parse": handle_parse,
    "tags": handle_tags,
    "classify": handle_classify,
    "slug": handle_slug,
    "file": handle_file,
    "file-latest": handle_file_latest,
    "draft": handle_draft,
    "serve": handle_serve,
}


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        config = load_config_from_pyproject(args.root)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if config.log_dir:
        configure_logging(
            verbose=args.verbose,
            log_dir=args.root / config.log_dir,
            max_bytes=config.max_log_size,
            backup_count=config.log_retention_count,
        )

    try:
        return HANDLERS[args.command](args, config)
    except (DocumentParseError, FilingError, DraftingError) as e:
        code = EXIT_OPERATION_FAILED
        error = e
    except (CorpusError, GitCliError, GhCliError, ProcessRunnerError) as e:
        code = EXIT_INFRA_ERROR
        error = e

    if args.verbose:
        logger.error("%s failed", args.command, exc_info=error)
    print(f"Error: {error}", file=sys.stderr)
    return code


if __name__ == "__main__":
    sys.exit(main())
