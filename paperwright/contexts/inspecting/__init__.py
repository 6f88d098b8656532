"""
Inspecting Context

Responsibilities:
- Derives the table-of-contents depth from a document's heading structure
- Hides whether analysis runs in-process or as an external classifier

Owns: ContentAnalyzer implementations, "no recommendation" fallback
Never: Fails a build because analysis failed
"""

from paperwright.contexts.inspecting.analyzers import (
    AnalyzerError,
    ContentAnalyzer,
    ExternalClassifier,
    HeadingDepthAnalyzer,
    make_analyzer,
)
from paperwright.contexts.inspecting.inspector import inspect_toc_depth

__all__ = [
    "AnalyzerError",
    "ContentAnalyzer",
    "ExternalClassifier",
    "HeadingDepthAnalyzer",
    "inspect_toc_depth",
    "make_analyzer",
]
