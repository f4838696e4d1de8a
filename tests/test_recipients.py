"""
Unit tests for recipient resolution.

Tests:
- Extraction priority (explicit, addresses, known names, fallback)
- Ordered rule table (explicit list, group phrase, individual phrase, names)
- Strict mode
- Fingerprints used for duplicate detection
"""

import pytest

from calendar_assistant.core.errors import AmbiguousIntentError, ErrorKind
from calendar_assistant.tools.recipients import (
    DEFAULT_FALLBACK,
    RecipientResolver,
    ResolutionMode,
    extract_emails,
)


@pytest.fixture
def resolver():
    return RecipientResolver()


class TestExtraction:
    """Tests for recipient extraction."""

    def test_extract_emails_dedupes(self):
        text = "ping a@x.com and b@y.org, then A@x.com again"
        assert extract_emails(text) == ["a@x.com", "b@y.org"]

    def test_explicit_to_wins(self, resolver):
        assert resolver.extract("c@z.com", "email a@x.com", "tell joe") == ["c@z.com"]

    def test_context_addresses_before_names(self, resolver):
        assert resolver.extract(None, "send a@x.com the notes, cc joe", None) == ["a@x.com"]

    def test_known_names_in_context(self, resolver):
        assert resolver.extract(None, "catch up with Joe and Sally", None) == [
            "joe@gmail.com",
            "sally@gmail.com",
        ]

    def test_message_used_when_context_empty(self, resolver):
        assert resolver.extract(None, "project sync", "email dan about it") == ["dan@gmail.com"]

    def test_fallback(self, resolver):
        assert resolver.extract(None, "project sync", "send an email") == DEFAULT_FALLBACK

    def test_strict_mode_raises(self):
        strict = RecipientResolver(strict=True)
        with pytest.raises(AmbiguousIntentError) as exc:
            strict.extract(None, "project sync", "send an email")
        assert exc.value.kind == ErrorKind.AMBIGUOUS_INTENT


class TestResolve:
    """Tests for the rule table."""

    def test_explicit_list_short_circuits(self, resolver):
        for message in ("email each of them individually", "one email", None):
            resolution = resolver.resolve(["a@x.com", "b@x.com"], "anything", message)
            assert resolution.mode == ResolutionMode.GROUP
            assert resolution.recipients == ["a@x.com", "b@x.com"]
            assert resolution.rule == "explicit_list"

    def test_comma_string_counts_as_list(self, resolver):
        resolution = resolver.resolve("a@x.com, b@x.com", "kickoff", None)
        assert resolution.mode == ResolutionMode.GROUP
        assert resolution.recipients == ["a@x.com", "b@x.com"]

    def test_group_phrase(self, resolver):
        resolution = resolver.resolve(None, "meeting with joe, dan and sally", "send one email to all of them")
        assert resolution.mode == ResolutionMode.GROUP
        assert resolution.rule == "group_phrase"
        assert resolution.recipients == ["joe@gmail.com", "dan@gmail.com", "sally@gmail.com"]

    def test_individual_phrase(self, resolver):
        resolution = resolver.resolve(None, "meeting with joe and dan", "email each of them separately")
        assert resolution.mode == ResolutionMode.FANOUT
        assert resolution.rule == "individual_phrase"

    def test_known_names_fan_out(self, resolver):
        resolution = resolver.resolve(None, "quarterly planning with joe and dan", "set up planning")
        assert resolution.mode == ResolutionMode.FANOUT
        assert resolution.recipients == ["joe@gmail.com", "dan@gmail.com"]

    def test_single_recipient(self, resolver):
        resolution = resolver.resolve("a@x.com", "budget review", "email a@x.com")
        assert resolution.mode == ResolutionMode.SINGLE
        assert resolution.recipients == ["a@x.com"]
        assert resolution.rule == "default"

    def test_fallback_is_flagged(self, resolver):
        resolution = resolver.resolve(None, "project sync", "send an email")
        assert resolution.used_fallback is True
        assert resolution.mode == ResolutionMode.FANOUT
        assert resolution.to_dict()["usedFallback"] is True


class TestFingerprint:
    """Tests for duplicate-detection fingerprints."""

    def test_same_people_different_encoding(self, resolver):
        by_name = resolver.fingerprint(None, "sync with Joe, Dan and Sally")
        by_address = resolver.fingerprint(
            '["sally@gmail.com", "JOE@gmail.com", "dan@gmail.com"]', "sync"
        )
        assert by_name == by_address == ["dan@gmail.com", "joe@gmail.com", "sally@gmail.com"]

    def test_empty(self, resolver):
        assert resolver.fingerprint(None, "project sync") == []
