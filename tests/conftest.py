"""Shared fakes and fixtures: in-memory fetchers, a recording renderer and build settings."""

import sys
import threading
import time
from pathlib import Path

import pytest

from paperwright.config import ENGINE_DEFAULTS_FILE, BuildSettings
from paperwright.contexts.building import BuildDriver, RenderResult, Renderer
from paperwright.contexts.caching import (
    ANNEX_F,
    CITATIONS,
    Fetcher,
    Resource,
    ResourceCache,
    ResourceFetchError,
)
from paperwright.contexts.inspecting import HeadingDepthAnalyzer

CSL_JSON = b'[{"id": "P0001", "type": "report", "title": "An example paper"}]'
ANNEX_F_HTML = b"<html><body>Annex F</body></html>"


class CountingFetcher(Fetcher):
    """Returns fixed content and counts how often it was asked to."""

    def __init__(self, content: bytes, delay: float = 0.0, source: str = "memory://resource"):
        self.content = content
        self.delay = delay
        self.source = source
        self.calls = 0
        self._lock = threading.Lock()

    def fetch(self) -> bytes:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.content


class FailingFetcher(Fetcher):
    def __init__(self, source: str = "memory://unreachable"):
        self.source = source
        self.calls = 0

    def fetch(self) -> bytes:
        self.calls += 1
        raise ResourceFetchError("unreachable", source=self.source)


class RecordingRenderer(Renderer):
    """Writes a small output file and records every render call."""

    name = "recording"

    def __init__(self, fail_for=(), stderr: str = "renderer exploded"):
        self.fail_for = set(fail_for)
        self.stderr = stderr
        self.calls = []
        self._lock = threading.Lock()

    def render(self, source, output, options, bibliography):
        with self._lock:
            self.calls.append((output.name, options, bibliography))
        if output.name in self.fail_for:
            return RenderResult(success=False, returncode=1, stderr=self.stderr, errors=[self.stderr])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(f"rendered {source.name}\n", encoding="utf-8")
        return RenderResult(success=True, output_path=output, returncode=0)

    def rendered_names(self):
        return sorted(name for name, _, _ in self.calls)

    def options_for(self, name):
        return next(options for output_name, options, _ in self.calls if output_name == name)


def make_settings(root: Path, **overrides) -> BuildSettings:
    src_dir = root / "src"
    src_dir.mkdir(exist_ok=True)
    values = dict(
        src_dir=src_dir,
        out_dir=root / "generated",
        engine_defaults=ENGINE_DEFAULTS_FILE,
        repo_defaults=src_dir / "defaults.yaml",
        repo_metadata=src_dir / "metadata.yaml",
        cache_dir=root / "cache",
        python_bin=sys.executable,
        toc_classifier=None,
        refs_script=src_dir / "data" / "refs.py",
        annex_f_url="https://example.invalid/annex-f",
        pandoc_bin="pandoc",
        jobs=2,
    )
    values.update(overrides)
    return BuildSettings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def fetchers():
    return {
        CITATIONS: CountingFetcher(CSL_JSON, source="memory://citations"),
        ANNEX_F: CountingFetcher(ANNEX_F_HTML, source="memory://annex-f"),
    }


@pytest.fixture
def cache(settings, fetchers):
    return ResourceCache(
        settings.cache_dir,
        [
            Resource(CITATIONS, "csl.json", fetchers[CITATIONS]),
            Resource(ANNEX_F, "annex-f", fetchers[ANNEX_F]),
        ],
    )


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def driver(settings, cache, renderer):
    return BuildDriver(settings, cache=cache, renderer=renderer, analyzer=HeadingDepthAnalyzer())


@pytest.fixture
def make_cache(settings):
    """Build a cache from {resource_id: fetcher}."""

    def _make(resource_fetchers):
        filenames = {CITATIONS: "csl.json", ANNEX_F: "annex-f"}
        return ResourceCache(
            settings.cache_dir,
            [Resource(rid, filenames.get(rid, rid), f) for rid, f in resource_fetchers.items()],
        )

    return _make


@pytest.fixture
def counting_fetcher():
    return CountingFetcher


@pytest.fixture
def failing_fetcher():
    return FailingFetcher


@pytest.fixture
def recording_renderer():
    return RecordingRenderer
