"""
Topic classification and folder naming for filed writeups.
"""

from __future__ import annotations

import re
from typing import Optional

from error_corpus.config import CorpusConfig, TopicRule


def slugify(title: str) -> str:
    """Turn an issue title into a folder name.

    Lowercases, maps every character outside ``[a-z0-9]`` to ``-``, squeezes
    repeated hyphens and trims them from both ends. May return ``""``.
    """
    slug = re.sub(r"[^a-z0-9]", "-", title.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class TopicClassifier:
    """Ordered keyword rules mapping issue text to a tag directory."""

    def __init__(self, rules: list[TopicRule], fallback: str = "general"):
        self.rules = list(rules)
        self.fallback = fallback

    @classmethod
    def from_config(cls, config: CorpusConfig) -> TopicClassifier:
        return cls(config.topic_rules, config.fallback_topic)

    def match(self, title: str, body: str = "") -> Optional[TopicRule]:
        """Return the first rule whose keyword occurs in the text, if any."""
        content = f"{title}\n{body}".lower()
        for rule in self.rules:
            if rule.keyword.lower() in content:
                return rule
        return None

    def classify(self, title: str, body: str = "") -> str:
        """Return the topic for an issue; the fallback when nothing matches."""
        rule = self.match(title, body)
        return rule.topic if rule else self.fallback

    def known_tags(self, extra: Optional[list[str]] = None) -> set[str]:
        tags = {rule.topic for rule in self.rules}
        tags.add(self.fallback)
        tags.update(extra or [])
        return tags
