"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions between namespaces
- Enable per-repository bulk invalidation through a key index
- Document cache structure and lifetimes
"""

from repochat.cache.exceptions import InvalidCacheKeyError

# Characters that delimit key segments; entity names must not contain them
KEY_SEP = ":"
REPO_SEP = "/"


def normalize_query(query: str) -> str:
    """Lowercase and trim a query so equivalent phrasings share one entry."""
    return query.lower().strip()


def _require(value: str, name: str) -> None:
    if not isinstance(value, str) or not value:
        raise InvalidCacheKeyError(f"Cache key component {name!r} must be a non-empty string")


def _require_name(value: str, name: str) -> None:
    """Validate an owner, repo or username segment."""
    _require(value, name)
    if KEY_SEP in value or REPO_SEP in value:
        raise InvalidCacheKeyError(
            f"Cache key component {name!r} must not contain {KEY_SEP!r} or {REPO_SEP!r}"
        )


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: {namespace}:{owner}/{repo}[:{subkey}...]

    Examples:
        - file:acme/widget:src/app.py:3f2a9c -> File content at blob 3f2a9c
        - repo:acme/widget -> Repository metadata
        - profile:octocat -> Profile metadata
        - tree:acme/widget:main -> File tree of branch main
        - query:acme/widget:how does auth work -> Files selected for a query
        - index:acme/widget -> Live keys of acme/widget, scored by expiry time
    """

    # Namespace tags (first key segment)
    PREFIX_FILE = "file"
    PREFIX_REPO = "repo"
    PREFIX_PROFILE = "profile"
    PREFIX_TREE = "tree"
    PREFIX_QUERY = "query"
    PREFIX_INDEX = "index"

    # TTLs (in seconds)
    TTL_FILE = 60 * 60            # 1 hour
    TTL_REPO = 60 * 15            # 15 minutes
    TTL_PROFILE = 60 * 30         # 30 minutes
    TTL_TREE = 60 * 15            # 15 minutes
    TTL_QUERY = 60 * 60 * 24      # 24 hours

    @staticmethod
    def _repo_scope(owner: str, repo: str) -> str:
        _require_name(owner, "owner")
        _require_name(repo, "repo")
        return f"{owner}{REPO_SEP}{repo}"

    @staticmethod
    def file_content(owner: str, repo: str, path: str, sha: str) -> str:
        """Cache key for raw file content at a given blob sha."""
        scope = CacheKeys._repo_scope(owner, repo)
        _require(path, "path")
        _require(sha, "sha")
        return f"{CacheKeys.PREFIX_FILE}:{scope}:{path}:{sha}"

    @staticmethod
    def repo_metadata(owner: str, repo: str) -> str:
        """Cache key for repository metadata."""
        return f"{CacheKeys.PREFIX_REPO}:{CacheKeys._repo_scope(owner, repo)}"

    @staticmethod
    def profile(username: str) -> str:
        """Cache key for a user's profile metadata."""
        _require_name(username, "username")
        return f"{CacheKeys.PREFIX_PROFILE}:{username}"

    @staticmethod
    def file_tree(owner: str, repo: str, branch: str) -> str:
        """Cache key for the file tree of a branch."""
        scope = CacheKeys._repo_scope(owner, repo)
        _require(branch, "branch")
        return f"{CacheKeys.PREFIX_TREE}:{scope}:{branch}"

    @staticmethod
    def query_selection(owner: str, repo: str, query: str) -> str:
        """Cache key for the files selected for a query; the query is normalized."""
        scope = CacheKeys._repo_scope(owner, repo)
        normalized = normalize_query(query) if isinstance(query, str) else ""
        _require(normalized, "query")
        return f"{CacheKeys.PREFIX_QUERY}:{scope}:{normalized}"

    @staticmethod
    def repo_index(owner: str, repo: str) -> str:
        """Key of the set holding every cache key written for a repository."""
        return f"{CacheKeys.PREFIX_INDEX}:{CacheKeys._repo_scope(owner, repo)}"
