"""
Tests for cache key derivation.

Tests:
- Namespace tags lead every key
- Query normalization
- Identifier validation
"""

import pytest

from repochat.cache import CacheKeys, InvalidCacheKeyError, normalize_query


class TestKeyFormat:
    """Keys follow {namespace}:{owner}/{repo}[:...]"""

    def test_file_content_key_embeds_sha(self):
        key = CacheKeys.file_content("acme", "widget", "src/app.py", "3f2a9c")
        assert key == "file:acme/widget:src/app.py:3f2a9c"

    def test_repo_metadata_key(self):
        assert CacheKeys.repo_metadata("acme", "widget") == "repo:acme/widget"

    def test_profile_key(self):
        assert CacheKeys.profile("octocat") == "profile:octocat"

    def test_file_tree_key(self):
        assert CacheKeys.file_tree("acme", "widget", "main") == "tree:acme/widget:main"

    def test_query_key_is_normalized(self):
        key = CacheKeys.query_selection("acme", "widget", "  How Does AUTH work?\n")
        assert key == "query:acme/widget:how does auth work?"

    def test_repo_index_key(self):
        assert CacheKeys.repo_index("acme", "widget") == "index:acme/widget"

    def test_every_namespace_has_distinct_prefix(self):
        keys = [
            CacheKeys.file_content("acme", "widget", "a", "b"),
            CacheKeys.repo_metadata("acme", "widget"),
            CacheKeys.profile("acme"),
            CacheKeys.file_tree("acme", "widget", "main"),
            CacheKeys.query_selection("acme", "widget", "q"),
            CacheKeys.repo_index("acme", "widget"),
        ]
        prefixes = [key.split(":", 1)[0] for key in keys]
        assert len(set(prefixes)) == len(prefixes)

    def test_branch_with_slash_is_allowed(self):
        key = CacheKeys.file_tree("acme", "widget", "feature/login")
        assert key == "tree:acme/widget:feature/login"


class TestNormalizeQuery:
    def test_lowercases_and_trims(self):
        assert normalize_query("  Foo Bar ") == "foo bar"

    def test_inner_whitespace_is_kept(self):
        assert normalize_query("foo  bar") == "foo  bar"

    def test_idempotent(self):
        once = normalize_query("  MiXeD Case\t")
        assert normalize_query(once) == once


class TestValidation:
    @pytest.mark.parametrize("owner", ["", "ac:me", "ac/me"])
    def test_rejects_bad_owner(self, owner):
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.repo_metadata(owner, "widget")

    @pytest.mark.parametrize("repo", ["", "wid:get", "wid/get"])
    def test_rejects_bad_repo(self, repo):
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.file_tree("acme", repo, "main")

    def test_rejects_empty_path_and_sha(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.file_content("acme", "widget", "", "abc")
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.file_content("acme", "widget", "README.md", "")

    def test_rejects_blank_query(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.query_selection("acme", "widget", "   ")

    def test_rejects_bad_username(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKeys.profile("")

    def test_invalid_key_error_is_value_error(self):
        with pytest.raises(ValueError):
            CacheKeys.profile("a:b")
