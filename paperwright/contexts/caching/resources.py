"""
Cached Resource Definitions

Two fixed resources back every build:

    citations - CSL JSON bibliography produced by a repo-provided script
    annex-f   - snapshot of the C++ standard's cross-reference annex
"""

from dataclasses import dataclass
from typing import List

from paperwright.config import BuildSettings
from paperwright.contexts.caching.fetchers import Fetcher, HttpFetcher, ScriptFetcher

CITATIONS = "citations"
ANNEX_F = "annex-f"
RESOURCE_IDS = (CITATIONS, ANNEX_F)


@dataclass(frozen=True)
class Resource:
    """
    One externally sourced resource.

    Attributes:
        resource_id: Stable identifier
        filename: Local file name inside the cache directory
        fetcher: How to obtain the content
    """

    resource_id: str
    filename: str
    fetcher: Fetcher


def default_resources(settings: BuildSettings) -> List[Resource]:
    """The citation database and the annex-f snapshot, configured from settings."""
    return [
        Resource(
            resource_id=CITATIONS,
            filename="csl.json",
            fetcher=ScriptFetcher(settings.refs_script, settings.python_bin, expect_json=True),
        ),
        Resource(
            resource_id=ANNEX_F,
            filename="annex-f",
            fetcher=HttpFetcher(settings.annex_f_url),
        ),
    ]
