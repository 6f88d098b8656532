"""Unit tests for TOC depth analyzers and graceful inspection."""

import sys
import textwrap

import pytest

from paperwright.contexts.inspecting import (
    AnalyzerError,
    ContentAnalyzer,
    ExternalClassifier,
    HeadingDepthAnalyzer,
    inspect_toc_depth,
    make_analyzer,
)

FRONT_MATTER = """---
title: "Reflection for C++26"
document: P2996R3
date: 2024-05-22
audience: EWG
author:
  - name: A. Author
---
"""

DEPTH_THREE = FRONT_MATTER + textwrap.dedent(
    """
    # Introduction

    Prose.

    ## Motivation

    ### Prior art

    ## Proposal
    """
)

DEPTH_ONE = FRONT_MATTER + textwrap.dedent(
    """
    # Introduction

    # Wording
    """
)


def _script(tmp_path, body):
    script = tmp_path / "classifier.py"
    script.write_text(textwrap.dedent(body), encoding="utf-8")
    return script


@pytest.mark.unit
def test_heading_depth_distinguishes_documents():
    analyzer = HeadingDepthAnalyzer()

    assert analyzer.analyze(DEPTH_THREE) == 3
    assert analyzer.analyze(DEPTH_ONE) == 1


@pytest.mark.unit
def test_heading_depth_without_headings_is_no_recommendation():
    assert HeadingDepthAnalyzer().analyze(FRONT_MATTER + "\nJust prose.\n") is None
    assert HeadingDepthAnalyzer().analyze("") is None


@pytest.mark.unit
def test_heading_depth_ignores_code_blocks_and_front_matter():
    text = FRONT_MATTER + textwrap.dedent(
        """
        # Wording

        ```cpp
        #### not a heading
        #include <meta>
        ```

        ~~~~
        ##### still code
        ~~~~
        """
    )

    assert HeadingDepthAnalyzer().analyze(text) == 1


@pytest.mark.unit
def test_heading_depth_setext_and_unlisted_headings():
    text = textwrap.dedent(
        """
        Introduction
        ============

        Design
        ------

        #### Acknowledgements {.unnumbered .unlisted}

        Not a heading because the line above is blank

        ---
        """
    )

    assert HeadingDepthAnalyzer().analyze(text) == 2


@pytest.mark.unit
def test_heading_depth_requires_space_after_hashes():
    assert HeadingDepthAnalyzer().analyze("#hashtag\n\n## Real heading\n") == 2


@pytest.mark.unit
def test_external_classifier_reads_stdin(tmp_path):
    script = _script(
        tmp_path,
        """
        import sys
        text = sys.stdin.read()
        print(max(len(l) - len(l.lstrip("#")) for l in text.splitlines() if l.startswith("#")))
        """,
    )
    classifier = ExternalClassifier(script, sys.executable)

    assert classifier.analyze(DEPTH_THREE) == 3
    assert classifier.analyze(DEPTH_ONE) == 1


@pytest.mark.unit
def test_external_classifier_empty_output_is_no_recommendation(tmp_path):
    script = _script(tmp_path, "import sys\nsys.stdin.read()\n")

    assert ExternalClassifier(script, sys.executable).analyze(DEPTH_ONE) is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "body, message",
    [
        ("import sys\nsys.exit(3)\n", "status 3"),
        ("print('deep')\n", "single integer"),
        ("print(0)\n", "positive"),
    ],
)
def test_external_classifier_failures(tmp_path, body, message):
    classifier = ExternalClassifier(_script(tmp_path, body), sys.executable)

    with pytest.raises(AnalyzerError, match=message):
        classifier.analyze(DEPTH_ONE)


@pytest.mark.unit
def test_external_classifier_missing_script(tmp_path):
    with pytest.raises(AnalyzerError, match="not found"):
        ExternalClassifier(tmp_path / "absent.py", sys.executable).analyze(DEPTH_ONE)


@pytest.mark.unit
def test_inspect_toc_depth_degrades_on_failure(tmp_path):
    """A failing classifier yields no recommendation instead of an error."""
    classifier = ExternalClassifier(_script(tmp_path, "raise SystemExit(1)\n"), sys.executable)

    assert inspect_toc_depth(DEPTH_THREE, classifier, "P2996R3.md") is None


@pytest.mark.unit
def test_inspect_toc_depth_ignores_non_positive_values():
    class Broken(ContentAnalyzer):
        name = "broken"

        def analyze(self, text):
            return -1

    assert inspect_toc_depth(DEPTH_ONE, Broken()) is None


@pytest.mark.unit
def test_make_analyzer(tmp_path):
    assert isinstance(make_analyzer(None, sys.executable), HeadingDepthAnalyzer)
    external = make_analyzer(tmp_path / "toc-depth.py", sys.executable)
    assert isinstance(external, ExternalClassifier)
    assert external.script == tmp_path / "toc-depth.py"
