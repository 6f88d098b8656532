"""
Caching Context

Responsibilities:
- Ensures externally sourced reference data is present locally before builds
- Fetches each resource at most once per cache lifetime, even under concurrency
- Re-fetches resources only on explicit refresh

Owns: Resource definitions, CacheEntry records, fetchers
Never: Invalidates cached data during normal builds
"""

from paperwright.contexts.caching.cache import CacheEntry, ResourceCache
from paperwright.contexts.caching.exceptions import ResourceFetchError, UnknownResourceError
from paperwright.contexts.caching.fetchers import Fetcher, HttpFetcher, ScriptFetcher
from paperwright.contexts.caching.resources import (
    ANNEX_F,
    CITATIONS,
    RESOURCE_IDS,
    Resource,
    default_resources,
)

__all__ = [
    "ANNEX_F",
    "CITATIONS",
    "CacheEntry",
    "Fetcher",
    "HttpFetcher",
    "RESOURCE_IDS",
    "Resource",
    "ResourceCache",
    "ResourceFetchError",
    "ScriptFetcher",
    "UnknownResourceError",
    "default_resources",
]
