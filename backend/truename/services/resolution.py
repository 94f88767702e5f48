"""Process-wide resolution engine provider."""

from functools import lru_cache

from truename.resolution.engine import NameResolutionEngine, create_resolution_engine


@lru_cache
def get_resolution_engine() -> NameResolutionEngine:
    """Return the cached engine backed by the configured database."""

    return create_resolution_engine()
