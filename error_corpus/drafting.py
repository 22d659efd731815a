"""
Issue Drafting

Asks an LLM for a new error writeup on a topic area and splits the reply
into an issue title and body, ready to be opened on GitHub and later filed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from litellm import completion

from error_corpus.config import CorpusConfig
from error_corpus.integrations.gh_cli import GhCli

logger = logging.getLogger(__name__)


class DraftingError(Exception):
    """Raised when a draft cannot be produced."""

    pass


@dataclass
class IssueDraft:
    """An LLM-written writeup split into issue fields."""

    title: str
    body: str
    topic_area: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0

    def to_markdown(self) -> str:
        return f"# {self.title}\n\n{self.body}"


DRAFT_PROMPT = """Generate a documentation with Markdown about a randomly chosen problem developers face in {topic_area}. Include:
- A Markdown H1 title
- Description of the error
- full code of fixing step by step
- external references with links
- Explanation
- End with: {footer}"""


def build_prompt(topic_area: str, footer: str) -> str:
    """Prompt asking for one complete writeup in the corpus's section layout."""
    topic_area = topic_area.strip()
    if not topic_area:
        raise DraftingError("Topic area is empty")
    return DRAFT_PROMPT.format(topic_area=topic_area, footer=footer)


def split_draft(markdown: str) -> tuple[str, str]:
    """Split a reply into (title, body).

    The first non-empty line is the title, minus any leading ``#`` marks;
    everything after it, with leading blank lines removed, is the body.
    """
    lines = markdown.strip().splitlines()
    if not lines:
        raise DraftingError("Model returned an empty draft")

    title = re.sub(r"^#+\s*", "", lines[0].strip()).strip()
    if not title:
        raise DraftingError("Draft has no title line")

    body = "\n".join(lines[1:]).lstrip("\n").rstrip() + "\n"
    return title, body


class IssueDrafter:
    """Produces issue drafts through litellm."""

    def __init__(
        self,
        config: CorpusConfig | None = None,
        completion_fn: Optional[Callable[..., Any]] = None,
        model: Optional[str] = None,
        timeout: int = 120,
    ):
        self.config = config or CorpusConfig()
        self.completion_fn = completion_fn or completion
        self.model = model or self.config.model
        self.timeout = timeout

    def draft(self, topic_area: str) -> IssueDraft:
        """Ask the model for a writeup.

        Raises:
            DraftingError: On provider failure or an unusable reply
        """
        prompt = build_prompt(topic_area, self.config.copyright_footer)
        logger.info("Drafting %r with %s", topic_area, self.model)

        try:
            response = self.completion_fn(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.9,
                timeout=self.timeout,
            )
        except Exception as e:
            raise DraftingError(f"Model call failed ({self.model}): {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise DraftingError(f"Unexpected response shape from {self.model}") from e

        if not content or not content.strip():
            raise DraftingError(f"{self.model} returned an empty response")

        title, body = split_draft(content)
        usage = getattr(response, "usage", None)
        return IssueDraft(
            title=title,
            body=body,
            topic_area=topic_area.strip(),
            model=self.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    def publish(self, draft: IssueDraft, gh: GhCli) -> str:
        """Open the draft as a GitHub issue; returns the issue URL."""
        url = gh.create_issue(draft.title, draft.body, self.config.issue_labels)
        logger.info("Opened issue %s", url)
        return url
