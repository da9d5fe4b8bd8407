#!/usr/bin/env python3
"""
Tests for ignore pattern matching.
"""

import warnings

import pytest

from syncai.core.ignore import (
    IgnoreMatcher,
    should_ignore,
    default_ignore_config,
    DEFAULT_GLOBAL_IGNORE,
)


class TestShouldIgnore:
    """Glob matching semantics."""

    @pytest.mark.parametrize("path,patterns,expected", [
        ("debug.log", ["*.log"], True),
        ("logs/debug.log", ["*.log"], True),
        ("cache/blob.bin", ["cache/"], True),
        ("nested/cache/blob.bin", ["cache/"], True),
        ("cachefile.txt", ["cache/"], False),
        ("a/b/c/.env", ["**/.env"], True),
        (".env", ["**/.env"], True),
        ("settings.json", ["*.log", "cache/"], False),
        ("settings.json", [], False),
        ("User/History/1.json", ["User/History/"], True),
        ("client_secret.json", ["**/*secret*"], True),
    ])
    def test_patterns(self, path, patterns, expected):
        assert should_ignore(path, patterns) is expected

    def test_empty_path_is_not_ignored(self):
        assert should_ignore("", ["*"]) is False


class TestIgnoreMatcher:
    """Pattern compilation."""

    def test_negated_patterns_are_dropped(self):
        matcher = IgnoreMatcher(["*.log", "!keep.log"])
        assert matcher.patterns == ["*.log"]
        assert matcher.matches("keep.log") is True

    def test_blank_and_comment_patterns_are_dropped(self):
        matcher = IgnoreMatcher(["", "   ", "# comment", "*.tmp"])
        assert len(matcher) == 1
        assert matcher("x.tmp")

    def test_non_string_patterns_are_dropped(self):
        matcher = IgnoreMatcher([None, 3, "*.tmp"])
        assert matcher.patterns == ["*.tmp"]

    def test_compiles_without_deprecation_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            matcher = IgnoreMatcher(DEFAULT_GLOBAL_IGNORE + ["cache/", "*.log"])
            assert matcher.matches("nested/cache/blob.bin") is True

    def test_empty_matcher_is_falsy(self):
        matcher = IgnoreMatcher()
        assert not matcher
        assert matcher.matches("anything") is False


class TestDefaults:
    """Default ignore configuration."""

    def test_default_config_layout(self):
        config = default_ignore_config()
        assert config["global"] == DEFAULT_GLOBAL_IGNORE
        assert "kiro-auth-token.json" in config["kiro"]
        assert "oauth_creds.json" in config["gemini"]

    def test_default_config_is_a_copy(self):
        config = default_ignore_config()
        config["global"].append("extra")
        assert "extra" not in DEFAULT_GLOBAL_IGNORE

    @pytest.mark.parametrize("path", [
        "api.token", "keys/server.key", "certs/ca.pem", "oauth_creds.json", "my-credentials.json",
    ])
    def test_default_global_patterns(self, path):
        assert should_ignore(path, DEFAULT_GLOBAL_IGNORE) is True
