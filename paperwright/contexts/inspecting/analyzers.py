"""
Content Analyzers

Interchangeable implementations that read a document's heading structure and
recommend a table-of-contents depth.

    HeadingDepthAnalyzer  - in-process Markdown heading scan
    ExternalClassifier    - any script reading the document on stdin and
                            printing a single integer
"""

import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

DEFAULT_CLASSIFIER_TIMEOUT_S = 30.0

ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t#]*$")
SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})")
FRONT_MATTER_DELIMITER = "---"
FRONT_MATTER_END = ("---", "...")
# pandoc keeps headings carrying the .unlisted class out of the TOC
UNLISTED_ATTRIBUTE = re.compile(r"\{[^}]*\.unlisted[^}]*\}\s*$")


class AnalyzerError(Exception):
    """
    Exception raised when a content analyzer cannot produce a result.

    Attributes:
        message: Error description
        analyzer: Name of the failing analyzer
        stderr: Diagnostic output of an external classifier, if any
    """

    def __init__(self, message: str, analyzer: str, stderr: str = ""):
        self.message = message
        self.analyzer = analyzer
        self.stderr = stderr

        parts = [f"{analyzer}: {message}"]
        if stderr.strip():
            parts.append(f"\nClassifier output:\n{stderr.strip()}")

        super().__init__("\n".join(parts))


class ContentAnalyzer(ABC):
    """
    Abstract base for TOC depth analyzers.

    Subclasses must:
    - Set name for log messages
    - Implement analyze(), returning a positive int or None for no recommendation,
      and raising AnalyzerError on failure
    """

    name: str

    @abstractmethod
    def analyze(self, text: str) -> Optional[int]:
        """Recommend a TOC depth for the given document text."""
        pass


def _body_lines(text: str) -> Iterator[str]:
    """Yield document lines outside YAML front matter and fenced code blocks."""
    lines = text.splitlines()

    start = 0
    if lines and lines[0].rstrip() == FRONT_MATTER_DELIMITER:
        for i, line in enumerate(lines[1:], start=1):
            if line.rstrip() in FRONT_MATTER_END:
                start = i + 1
                break

    fence = None
    for line in lines[start:]:
        if fence is not None:
            stripped = line.strip()
            if stripped.startswith(fence) and set(stripped) == {fence[0]}:
                fence = None
            continue

        opening = FENCE_OPEN.match(line)
        if opening:
            fence = opening.group(1)
            continue

        yield line


class HeadingDepthAnalyzer(ContentAnalyzer):
    """Deepest listed heading level, from ATX (#) and setext (=== / ---) headings."""

    name = "heading-depth"

    def analyze(self, text: str) -> Optional[int]:
        deepest = 0
        previous = ""

        for line in _body_lines(text):
            level = None

            atx = ATX_HEADING.match(line)
            if atx:
                if not UNLISTED_ATTRIBUTE.search(atx.group(2) or ""):
                    level = len(atx.group(1))
            elif previous.strip() and SETEXT_UNDERLINE.match(line):
                if not UNLISTED_ATTRIBUTE.search(previous):
                    level = 1 if line.strip().startswith("=") else 2
                line = ""  # an underline never starts another setext heading

            if level is not None:
                deepest = max(deepest, level)
            previous = line if not atx else ""

        return deepest or None


class ExternalClassifier(ContentAnalyzer):
    """
    Run an external classifier script with the document on stdin.

    The script prints a single positive integer, or nothing when it has no
    recommendation. A non-zero exit, a timeout, or any other output is a failure.
    """

    name = "external-classifier"

    def __init__(
        self,
        script: Path,
        python_bin: str,
        timeout: float = DEFAULT_CLASSIFIER_TIMEOUT_S,
    ):
        self.script = Path(script)
        self.python_bin = python_bin
        self.timeout = timeout

    def analyze(self, text: str) -> Optional[int]:
        if not self.script.exists():
            raise AnalyzerError(f"Classifier script not found: {self.script}", self.name)

        try:
            result = subprocess.run(
                [self.python_bin, str(self.script)],
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise AnalyzerError(f"Timed out after {self.timeout:.0f}s", self.name)
        except OSError as e:
            raise AnalyzerError(f"Could not run {self.python_bin}: {e}", self.name)

        if result.returncode != 0:
            raise AnalyzerError(f"Exited with status {result.returncode}", self.name, result.stderr)

        output = result.stdout.strip()
        if not output:
            return None

        try:
            depth = int(output)
        except ValueError:
            raise AnalyzerError(f"Expected a single integer, got: {output[:80]!r}", self.name)
        if depth < 1:
            raise AnalyzerError(f"Expected a positive integer, got: {depth}", self.name)

        return depth


def make_analyzer(classifier_script: Optional[Path], python_bin: str) -> ContentAnalyzer:
    """External classifier when a script is configured, in-process heading scan otherwise."""
    if classifier_script is not None:
        return ExternalClassifier(classifier_script, python_bin)
    return HeadingDepthAnalyzer()
