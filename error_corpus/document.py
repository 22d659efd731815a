"""
Error Document Parsing

Parses one error writeup (``errors/<tag>/<slug>/README.md``) into a structured
record: title, error description, fix steps, code snippets, explanation and
external references.

Writeups are free-form Markdown, so sections are recognised by heading
keywords rather than by a fixed schema. Everything inside fenced code blocks
is opaque to the parser.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class DocumentParseError(Exception):
    """Raised when a document cannot be read or parsed."""

    pass


class SectionKind(Enum):
    """Role of a section within an error writeup."""

    DESCRIPTION = "description"
    FIX = "fix"
    EXPLANATION = "explanation"
    REFERENCES = "references"
    OTHER = "other"


@dataclass
class CodeSnippet:
    """A fenced code block."""

    language: str
    code: str
    start_line: int
    end_line: Optional[int] = None  # None when the fence is never closed
    fence: str = "```"

    @property
    def closed(self) -> bool:
        return self.end_line is not None


@dataclass
class Reference:
    """A hyperlink found in a references section."""

    text: str
    url: str

    @property
    def is_web(self) -> bool:
        return self.url.lower().startswith(("http://", "https://"))


@dataclass
class DocumentSection:
    """A heading and the body that follows it."""

    heading: str
    level: int
    kind: SectionKind
    content: str
    start_line: int


@dataclass
class ErrorDocument:
    """Parsed error writeup with all extracted components."""

    title: str
    raw_content: str
    description: Optional[str] = None
    fix_steps: list[str] = field(default_factory=list)
    code_snippets: list[CodeSnippet] = field(default_factory=list)
    explanation: Optional[str] = None
    references: list[Reference] = field(default_factory=list)
    sections: list[DocumentSection] = field(default_factory=list)
    has_copyright: bool = False
    has_title: bool = True

    warnings: list[str] = field(default_factory=list)
    parsed_at: Optional[str] = None
    content_hash: Optional[str] = None
    source_path: Optional[str] = None

    @property
    def clean_title(self) -> str:
        """Title without leading decoration such as the bug marker."""
        return re.sub(r"^[\W_]+", "", self.title).strip()

    def get_section(self, kind: SectionKind) -> Optional[DocumentSection]:
        """Return the first section of the given kind."""
        for section in self.sections:
            if section.kind == kind:
                return section
        return None

    def snippet_languages(self) -> list[str]:
        """Distinct snippet languages in order of first appearance."""
        seen: list[str] = []
        for snippet in self.code_snippets:
            if snippet.language and snippet.language not in seen:
                seen.append(snippet.language)
        return seen

    def unclosed_snippets(self) -> list[CodeSnippet]:
        return [s for s in self.code_snippets if not s.closed]

    def to_dict(self) -> dict:
        data = asdict(self)
        for section in data["sections"]:
            section["kind"] = section["kind"].value
        return data

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> ErrorDocument:
        """Deserialize from JSON string."""
        data = json.loads(json_str)

        data["code_snippets"] = [CodeSnippet(**s) for s in data.get("code_snippets", [])]
        data["references"] = [Reference(**r) for r in data.get("references", [])]
        sections = []
        for s in data.get("sections", []):
            s["kind"] = SectionKind(s.get("kind", "other"))
            sections.append(DocumentSection(**s))
        data["sections"] = sections

        return cls(**data)


# =============================================================================
# Line-level patterns
# =============================================================================

FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
HEADING_RE = re.compile(r"^ {0,3}(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
NUMBERED_ITEM_RE = re.compile(r"^(\d+)[.)]\s+(.+)$")
STEP_HEADING_RE = re.compile(r"^step\s*\d+\s*[:.)-]?\s*(.*)$", re.IGNORECASE)
BOLD_STEP_RE = re.compile(r"^\*\*(step\s*\d+[^*]*)\*\*\s*(.*)$", re.IGNORECASE)

INLINE_LINK_RE = re.compile(r"!?\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
AUTOLINK_RE = re.compile(r"<((?:https?|ftp)://[^>\s]+)>")
BARE_URL_RE = re.compile(r"\bhttps?://[^\s<>()\[\]]+")
COPYRIGHT_RE = re.compile(r"copyright", re.IGNORECASE)


class DocumentParser:
    """Parser for error writeups."""

    # Checked in order; the first kind with a matching keyword wins.
    SECTION_KEYWORDS: list[tuple[SectionKind, list[str]]] = [
        (SectionKind.REFERENCES, ["reference", "resource", "further reading", "links"]),
        (SectionKind.EXPLANATION, ["explanation", "why", "how it works"]),
        (SectionKind.FIX, ["fix", "solution", "step", "resolv"]),
        (SectionKind.DESCRIPTION, ["description", "error", "problem", "issue", "symptom"]),
    ]

    DEFAULT_TITLE = "Untitled Error"

    @classmethod
    def parse(cls, content: str) -> ErrorDocument:
        """
        Parse a markdown error writeup.

        Args:
            content: Raw markdown content

        Returns:
            ErrorDocument with extracted components

        Raises:
            DocumentParseError: If content is empty
        """
        content = content.removeprefix("\ufeff")
        if not content or not content.strip():
            raise DocumentParseError("Document content is empty")

        lines = content.splitlines()
        snippets, in_fence = cls._scan_fences(lines)
        headings = cls._find_headings(lines, in_fence)

        title = None
        title_line = None
        for line_no, level, text in headings:
            if level == 1:
                title = text
                title_line = line_no
                break

        doc = ErrorDocument(
            title=title or cls.DEFAULT_TITLE,
            raw_content=content,
            has_title=title is not None,
            code_snippets=snippets,
            parsed_at=datetime.now(timezone.utc).isoformat(),
            content_hash=hashlib.sha256(content.encode()).hexdigest()[:16],
        )

        doc.sections = cls._build_sections(lines, headings, title_line)

        description = doc.get_section(SectionKind.DESCRIPTION)
        doc.description = description.content if description else cls._preamble(
            lines, headings, title_line
        )
        explanation = doc.get_section(SectionKind.EXPLANATION)
        doc.explanation = explanation.content if explanation else None

        doc.fix_steps = cls._extract_fix_steps(lines, in_fence, headings, title_line)
        doc.references = cls._extract_references(lines, in_fence, headings, title_line)
        doc.has_copyright = any(
            COPYRIGHT_RE.search(line)
            for i, line in enumerate(lines)
            if not in_fence[i]
        )

        doc.warnings = cls._check_missing_sections(doc)
        return doc

    @classmethod
    def parse_file(cls, path: Path) -> ErrorDocument:
        """
        Parse an error writeup from disk.

        Raises:
            DocumentParseError: If the file is missing or not valid UTF-8
        """
        path = Path(path)
        if not path.exists():
            raise DocumentParseError(f"Document not found: {path}")

        try:
            content = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentParseError(
                f"Document is not valid UTF-8: {path} (byte {e.start})"
            ) from e

        doc = cls.parse(content)
        doc.source_path = str(path)
        return doc

    # =========================================================================
    # Structure scanning
    # =========================================================================

    @classmethod
    def _scan_fences(cls, lines: list[str]) -> tuple[list[CodeSnippet], list[bool]]:
        """Find fenced blocks and mark which lines belong to one.

        Returns: (snippets, in_fence) where in_fence[i] covers fence lines too.
        """
        snippets: list[CodeSnippet] = []
        in_fence = [False] * len(lines)

        open_fence: Optional[str] = None
        open_line = 0
        language = ""
        body: list[str] = []

        for i, line in enumerate(lines):
            match = FENCE_RE.match(line)

            if open_fence is None:
                if match:
                    fence, info = match.group(1), match.group(2).strip()
                    # Backtick fences may not carry backticks in the info string
                    if fence[0] == "`" and "`" in info:
                        continue
                    open_fence = fence
                    open_line = i
                    language = info.split()[0].lower() if info else ""
                    body = []
                    in_fence[i] = True
                continue

            in_fence[i] = True
            if (
                match
                and match.group(1)[0] == open_fence[0]
                and len(match.group(1)) >= len(open_fence)
                and not match.group(2).strip()
            ):
                snippets.append(
                    CodeSnippet(
                        language=language,
                        code="\n".join(body),
                        start_line=open_line + 1,
                        end_line=i + 1,
                        fence=open_fence,
                    )
                )
                open_fence = None
            else:
                body.append(line)

        if open_fence is not None:
            snippets.append(
                CodeSnippet(
                    language=language,
                    code="\n".join(body),
                    start_line=open_line + 1,
                    end_line=None,
                    fence=open_fence,
                )
            )

        return snippets, in_fence

    @classmethod
    def _find_headings(
        cls, lines: list[str], in_fence: list[bool]
    ) -> list[tuple[int, int, str]]:
        """Return (line index, level, text) for every ATX heading outside fences."""
        headings = []
        for i, line in enumerate(lines):
            if in_fence[i]:
                continue
            match = HEADING_RE.match(line)
            if match:
                headings.append((i, len(match.group(1)), match.group(2).strip()))
        return headings

    @classmethod
    def classify_heading(cls, heading: str) -> SectionKind:
        """Classify a heading by keyword."""
        text = heading.lower()
        for kind, keywords in cls.SECTION_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return kind
        return SectionKind.OTHER

    @classmethod
    def _section_end(
        cls, headings: list[tuple[int, int, str]], index: int, total_lines: int
    ) -> int:
        """Line index where the section opened by headings[index] ends."""
        _, level, _ = headings[index]
        for line_no, other_level, _ in headings[index + 1:]:
            if other_level <= level:
                return line_no
        return total_lines

    @classmethod
    def _build_sections(
        cls,
        lines: list[str],
        headings: list[tuple[int, int, str]],
        title_line: Optional[int] = None,
    ) -> list[DocumentSection]:
        sections = []
        for idx, (line_no, level, text) in enumerate(headings):
            if line_no == title_line:
                continue
            end = cls._section_end(headings, idx, len(lines))
            sections.append(
                DocumentSection(
                    heading=text,
                    level=level,
                    kind=cls.classify_heading(text),
                    content="\n".join(lines[line_no + 1:end]).strip(),
                    start_line=line_no + 1,
                )
            )
        return sections

    @classmethod
    def _preamble(
        cls,
        lines: list[str],
        headings: list[tuple[int, int, str]],
        title_line: Optional[int] = None,
    ) -> Optional[str]:
        """Text between the title and the next heading."""
        start = 0 if title_line is None else title_line + 1
        end = len(lines)
        for line_no, _, _ in headings:
            if line_no >= start:
                end = line_no
                break
        if end <= start:
            return None
        text = "\n".join(lines[start:end]).strip()
        return text or None

    # =========================================================================
    # Component extraction
    # =========================================================================

    @classmethod
    def _extract_fix_steps(
        cls,
        lines: list[str],
        in_fence: list[bool],
        headings: list[tuple[int, int, str]],
        title_line: Optional[int] = None,
    ) -> list[str]:
        """Collect fix steps from every outermost FIX section.

        "Step N" sub-headings, bold "**Step N**" lines and top-level numbered
        list items all count, in document order.
        """
        steps: list[str] = []
        covered_until = -1

        for idx, (line_no, level, text) in enumerate(headings):
            if line_no == title_line or line_no < covered_until:
                continue
            if cls.classify_heading(text) != SectionKind.FIX:
                continue

            bare_step = STEP_HEADING_RE.match(text)
            if bare_step:
                steps.append(bare_step.group(1).strip() or text)

            end = cls._section_end(headings, idx, len(lines))
            covered_until = end

            for i in range(line_no + 1, end):
                if in_fence[i]:
                    continue
                line = lines[i]
                heading = HEADING_RE.match(line)
                if heading:
                    step = STEP_HEADING_RE.match(heading.group(2).strip())
                    if step:
                        steps.append(step.group(1).strip() or heading.group(2).strip())
                    continue
                bold = BOLD_STEP_RE.match(line.strip())
                if bold:
                    rest = bold.group(2).strip()
                    marker = STEP_HEADING_RE.match(bold.group(1).strip())
                    label = marker.group(1).strip() if marker else ""
                    steps.append(rest or label or bold.group(1).strip())
                    continue
                item = NUMBERED_ITEM_RE.match(line)
                if item:
                    steps.append(item.group(2).strip())

        return steps

    @classmethod
    def extract_links(cls, text: str) -> list[Reference]:
        """Find inline links, autolinks and bare URLs in a line of text."""
        links: list[Reference] = []

        def _inline(match: re.Match) -> str:
            if not match.group(0).startswith("!"):
                links.append(Reference(text=match.group(1).strip(), url=match.group(2)))
            return " "

        remaining = INLINE_LINK_RE.sub(_inline, text)

        def _auto(match: re.Match) -> str:
            links.append(Reference(text=match.group(1), url=match.group(1)))
            return " "

        remaining = AUTOLINK_RE.sub(_auto, remaining)

        for match in BARE_URL_RE.finditer(remaining):
            url = match.group(0).rstrip(".,;:!?'\"*_")
            links.append(Reference(text=url, url=url))

        return links

    @classmethod
    def _extract_references(
        cls,
        lines: list[str],
        in_fence: list[bool],
        headings: list[tuple[int, int, str]],
        title_line: Optional[int] = None,
    ) -> list[Reference]:
        """Collect unique links from every REFERENCES section, skipping fences."""
        references: list[Reference] = []
        seen_urls: set[str] = set()

        for idx, (line_no, _, text) in enumerate(headings):
            if line_no == title_line:
                continue
            if cls.classify_heading(text) != SectionKind.REFERENCES:
                continue
            end = cls._section_end(headings, idx, len(lines))
            for i in range(line_no + 1, end):
                if in_fence[i]:
                    continue
                for ref in cls.extract_links(lines[i]):
                    if ref.url not in seen_urls:
                        seen_urls.add(ref.url)
                        references.append(ref)

        return references

    @classmethod
    def _check_missing_sections(cls, doc: ErrorDocument) -> list[str]:
        """Check for missing recommended sections and return warnings."""
        warnings = []

        if not doc.has_title:
            warnings.append("Missing H1 title")
        if doc.get_section(SectionKind.DESCRIPTION) is None and not doc.description:
            warnings.append("Missing error description")
        if doc.get_section(SectionKind.FIX) is None:
            warnings.append("Missing fix section")
        if doc.get_section(SectionKind.EXPLANATION) is None:
            warnings.append("Missing explanation section")
        if doc.get_section(SectionKind.REFERENCES) is None:
            warnings.append("Missing external references section")

        return warnings
