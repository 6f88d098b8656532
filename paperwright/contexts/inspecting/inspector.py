"""TOC depth inspection with graceful degradation."""

from typing import Optional

from paperwright.contexts.inspecting.analyzers import AnalyzerError, ContentAnalyzer
from paperwright.contexts.inspecting.logger import _log_warning, log_inspection_result


def inspect_toc_depth(
    text: str, analyzer: ContentAnalyzer, document: str = "<document>"
) -> Optional[int]:
    """
    Derive the TOC depth for one document.

    Analyzer failures are logged and reported as "no recommendation" (None) so
    the build proceeds without the option.

    Args:
        text: Raw document text
        analyzer: Analyzer to delegate to
        document: Document name for log messages

    Returns:
        Positive TOC depth, or None
    """
    try:
        depth = analyzer.analyze(text)
    except AnalyzerError as e:
        _log_warning(f"{document}: TOC depth analysis failed, building without it")
        _log_warning(f"  {e}")
        return None

    if depth is not None and depth < 1:
        _log_warning(f"{document}: ignoring non-positive TOC depth {depth} from {analyzer.name}")
        depth = None

    log_inspection_result(document, analyzer.name, depth)
    return depth
