"""
Tests for topic classification and folder naming.
"""

import pytest

from error_corpus.config import CorpusConfig, TopicRule
from error_corpus.topics import TopicClassifier, slugify


@pytest.fixture
def classifier():
    return TopicClassifier.from_config(CorpusConfig())


class TestTopicClassifier:
    """Ordered keyword rules; first match wins."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("NextJS API route returns 404", "nextjs"),
            ("Next.js middleware redirect loop", "nextjs"),
            ("Tailwind classes not applied", "tailwinds"),
            ("MERN app: CORS error on login", "mern"),
            ("React useEffect runs twice", "react"),
            ("Express body is undefined", "expressjs"),
            ("OpenAI rate limit 429", "openai"),
            ("Vue watcher not triggered", "vuejs"),
            ("jQuery click handler fires twice", "jquery"),
            ("TypeScript cannot find module", "typescript"),
            ("JavaScript Date off by one", "javascript"),
            ("CSS grid overflow", "css"),
        ],
    )
    def test_single_keyword(self, classifier, title, expected):
        assert classifier.classify(title) == expected

    def test_earlier_rule_wins(self, classifier):
        assert classifier.classify("React app styled with Tailwind") == "tailwinds"
        assert classifier.classify("Express server rendering React") == "react"
        assert classifier.classify("TypeScript and JavaScript interop") == "typescript"

    def test_body_is_searched(self, classifier):
        assert classifier.classify("Weird layout bug", "Only happens with CSS grid") == "css"

    def test_case_insensitive(self, classifier):
        assert classifier.classify("JQUERY AJAX FAILS") == "jquery"

    def test_substring_match(self, classifier):
        assert classifier.classify("Reactive forms lose state") == "react"

    def test_fallback(self, classifier):
        assert classifier.classify("Firestore transaction contention") == "general"

    def test_match_reports_rule(self, classifier):
        rule = classifier.match("Vue 3 watch not firing")
        assert rule.keyword == "vue"
        assert classifier.match("nothing relevant") is None

    def test_custom_rules(self):
        classifier = TopicClassifier(
            [TopicRule(keyword="firestore", topic="firebase")], fallback="misc"
        )
        assert classifier.classify("Firestore listener leak") == "firebase"
        assert classifier.classify("Something else") == "misc"

    def test_known_tags(self, classifier):
        tags = classifier.known_tags(["mongodb"])
        assert {"nextjs", "css", "general", "mongodb"} <= tags


class TestSlugify:
    """Folder name sanitizing."""

    def test_basic(self):
        assert (
            slugify("🐞 MongoDB CastError: Cast to ObjectId failed!")
            == "mongodb-casterror-cast-to-objectid-failed"
        )

    def test_squeezes_and_trims_hyphens(self):
        assert slugify("  --Hello__World--  ") == "hello-world"

    def test_dots_become_hyphens(self):
        assert slugify("Next.js 13 App Router") == "next-js-13-app-router"

    def test_no_usable_characters(self):
        assert slugify("🔥🔥 !!!") == ""
