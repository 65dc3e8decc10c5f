"""
RepoChat Core Library.

Context acquisition and caching for conversations about GitHub repositories
and profiles.

Usage:
    # Cache
    from repochat.cache import CacheFacade, CacheKeys, InMemoryStore

    # Context acquisition
    from repochat.services import ContextService

    # Config
    from repochat.config import get_settings, Settings

    # Logging
    from repochat.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"
