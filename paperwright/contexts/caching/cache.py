"""
Resource Cache

Keeps local copies of the external resources in one directory. A local copy is
valid for the lifetime of the build tree: ensure() never touches the network
once a copy exists, and only refresh() replaces it.

One CacheEntry and one lock exist per resource id, created with the cache.
Concurrent ensure() calls for the same resource serialize on its lock, so the
first caller fetches and every later caller finds the completed copy.

Usage:
    cache = ResourceCache(settings.cache_dir, default_resources(settings))

    bibliography = cache.ensure(CITATIONS)   # fetches on first use only
    cache.refresh(ANNEX_F)                   # always re-fetches
"""

import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from paperwright.contexts.caching.exceptions import ResourceFetchError, UnknownResourceError
from paperwright.contexts.caching.logger import (
    _log_debug,
    log_fetch_failure,
    log_fetch_result,
    log_fetch_start,
)
from paperwright.contexts.caching.resources import Resource


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Permissions of a file created with open(), applied to the private mkstemp file
FILE_MODE = 0o666 & ~_umask()


@dataclass
class CacheEntry:
    """
    Cache record for one resource.

    Attributes:
        resource_id: Resource identifier
        local_path: Location of the local copy
        fetched: Whether a local copy has been confirmed or fetched by this cache
    """

    resource_id: str
    local_path: Path
    fetched: bool = False


class ResourceCache:
    """
    Single-fetch cache of external resources.

    Args:
        cache_dir: Directory holding local copies
        resources: Resource definitions served by this cache
    """

    def __init__(self, cache_dir: Path, resources: Iterable[Resource]):
        self.cache_dir = Path(cache_dir)
        self._resources: Dict[str, Resource] = {r.resource_id: r for r in resources}
        self._entries: Dict[str, CacheEntry] = {
            resource_id: CacheEntry(resource_id, self.cache_dir / resource.filename)
            for resource_id, resource in self._resources.items()
        }
        self._locks: Dict[str, threading.Lock] = {
            resource_id: threading.Lock() for resource_id in self._resources
        }

    @property
    def resource_ids(self) -> List[str]:
        return list(self._resources)

    def entry(self, resource_id: str) -> CacheEntry:
        """
        Get the cache record for a resource.

        Raises:
            UnknownResourceError: If the resource is not defined
        """
        if resource_id not in self._entries:
            raise UnknownResourceError(resource_id, self._resources)
        return self._entries[resource_id]

    def path_for(self, resource_id: str) -> Path:
        """Local path of a resource, whether or not it has been fetched."""
        return self.entry(resource_id).local_path

    def ensure(self, resource_id: str) -> Path:
        """
        Make sure a resource is available locally.

        Returns the existing copy without network access if there is one,
        otherwise fetches and persists it.

        Args:
            resource_id: Resource to ensure

        Returns:
            Path to the local copy

        Raises:
            UnknownResourceError: If the resource is not defined
            ResourceFetchError: If the resource is missing and cannot be fetched
        """
        entry = self.entry(resource_id)

        with self._locks[resource_id]:
            if entry.local_path.exists():
                if not entry.fetched:
                    _log_debug(f"Using cached {resource_id}: {entry.local_path}")
                    entry.fetched = True
                return entry.local_path

            self._fetch(self._resources[resource_id], entry, refresh=False)

        return entry.local_path

    def refresh(self, resource_id: str) -> Path:
        """
        Re-fetch a resource unconditionally, replacing any local copy.

        The previous copy stays in place if the fetch fails.

        Raises:
            UnknownResourceError: If the resource is not defined
            ResourceFetchError: If the fetch fails
        """
        entry = self.entry(resource_id)

        with self._locks[resource_id]:
            self._fetch(self._resources[resource_id], entry, refresh=True)

        return entry.local_path

    def ensure_all(self) -> Dict[str, Path]:
        return {resource_id: self.ensure(resource_id) for resource_id in self._resources}

    def refresh_all(self) -> Dict[str, Path]:
        return {resource_id: self.refresh(resource_id) for resource_id in self._resources}

    def clean(self) -> List[Path]:
        """
        Remove all local copies.

        Returns:
            Paths that were removed
        """
        removed = []
        for resource_id, entry in self._entries.items():
            with self._locks[resource_id]:
                if entry.local_path.exists():
                    entry.local_path.unlink()
                    removed.append(entry.local_path)
                entry.fetched = False
        return removed

    def _fetch(self, resource: Resource, entry: CacheEntry, refresh: bool) -> None:
        """Fetch and atomically persist one resource. Caller holds the resource lock."""
        log_fetch_start(resource.resource_id, resource.fetcher.source, refresh)
        start_time = time.time()

        try:
            content = resource.fetcher.fetch()
        except ResourceFetchError as e:
            log_fetch_failure(resource.resource_id, e, time.time() - start_time)
            raise ResourceFetchError(
                f"Could not fetch {resource.resource_id}",
                resource_id=resource.resource_id,
                source=resource.fetcher.source,
                original_error=e,
            ) from e

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        # Write to temp file first so readers never see a partial copy
        temp_fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{resource.filename}.")
        try:
            with os.fdopen(temp_fd, "wb") as f:
                f.write(content)
            os.chmod(temp_path, FILE_MODE)
            os.replace(temp_path, entry.local_path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        entry.fetched = True
        log_fetch_result(resource.resource_id, entry.local_path, len(content), time.time() - start_time)
