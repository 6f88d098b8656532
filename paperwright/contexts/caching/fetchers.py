"""
Resource Fetchers

Each fetcher knows how to obtain the bytes of one external resource:

    ScriptFetcher - run a producer script and capture its stdout
    HttpFetcher   - retrieve a static document over HTTP, with retries
"""

import json
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx

from paperwright.contexts.caching.exceptions import ResourceFetchError
from paperwright.contexts.caching.logger import _log_warning

DEFAULT_TIMEOUT_S = 60.0

# Retry configuration for transient network errors
MAX_RETRIES = 3
BASE_DELAY = 1.0


class Fetcher(ABC):
    """
    Abstract base for resource fetchers.

    Subclasses must:
    - Set self.source to a human-readable origin (URL, script path)
    - Implement fetch(), returning the resource bytes or raising ResourceFetchError
    """

    source: str

    @abstractmethod
    def fetch(self) -> bytes:
        """Fetch the resource content."""
        pass


class ScriptFetcher(Fetcher):
    """
    Produce a resource by running a Python script and capturing stdout.

    Args:
        script: Producer script
        python_bin: Interpreter to run it with
        timeout: Seconds before the script is killed
        expect_json: Reject output that is not valid JSON
    """

    def __init__(
        self,
        script: Path,
        python_bin: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        expect_json: bool = False,
    ):
        self.script = Path(script)
        self.python_bin = python_bin
        self.timeout = timeout
        self.expect_json = expect_json
        self.source = str(self.script)

    def fetch(self) -> bytes:
        if not self.script.exists():
            raise ResourceFetchError(f"Producer script not found: {self.script}", source=self.source)

        try:
            result = subprocess.run(
                [self.python_bin, str(self.script)],
                cwd=self.script.parent,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ResourceFetchError(
                f"Producer script timed out after {self.timeout:.0f}s", source=self.source
            ) from e
        except OSError as e:
            raise ResourceFetchError(
                f"Could not run {self.python_bin}", source=self.source, original_error=e
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise ResourceFetchError(
                f"Producer script exited with status {result.returncode}\n{stderr}",
                source=self.source,
            )

        if not result.stdout.strip():
            raise ResourceFetchError("Producer script wrote no output", source=self.source)

        if self.expect_json:
            try:
                json.loads(result.stdout)
            except ValueError as e:
                raise ResourceFetchError(
                    "Producer script output is not valid JSON", source=self.source, original_error=e
                ) from e

        return result.stdout


class HttpFetcher(Fetcher):
    """
    Retrieve a static document over HTTP with exponential backoff on transport errors.

    Args:
        url: Document URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used to stub the network in tests)
        base_delay: First retry delay in seconds, doubled on each attempt
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
        base_delay: float = BASE_DELAY,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self.base_delay = base_delay
        self.source = url

    def _get(self, client: httpx.Client) -> bytes:
        response = client.get(self.url)
        response.raise_for_status()
        return response.content

    def _check_url(self) -> None:
        try:
            url = httpx.URL(self.url)
        except httpx.InvalidURL as e:
            raise ResourceFetchError(
                f"Invalid URL: {self.url}", source=self.source, original_error=e
            ) from e
        if url.scheme not in ("http", "https"):
            raise ResourceFetchError(f"Not an http(s) URL: {self.url}", source=self.source)

    def fetch(self) -> bytes:
        self._check_url()

        with httpx.Client(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            for attempt in range(MAX_RETRIES):
                try:
                    return self._get(client)
                except httpx.TransportError as e:
                    if attempt == MAX_RETRIES - 1:
                        raise ResourceFetchError(
                            f"Network error after {MAX_RETRIES} attempts",
                            source=self.source,
                            original_error=e,
                        ) from e
                    delay = self.base_delay * (2**attempt)
                    _log_warning(
                        f"Network error fetching {self.url}, retrying in {delay:.1f}s... "
                        f"(attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    time.sleep(delay)
                except httpx.HTTPStatusError as e:
                    raise ResourceFetchError(
                        f"HTTP {e.response.status_code}", source=self.source, original_error=e
                    ) from e
                except httpx.HTTPError as e:
                    # Redirect loops, undecodable bodies and other non-transient errors
                    raise ResourceFetchError(
                        f"{type(e).__name__}: {e}", source=self.source, original_error=e
                    ) from e
