"""
Resolving Context

Responsibilities:
- Enumerates source documents in the source directory
- Classifies each document by file name into a target kind (paper or slides)
- Computes the output path and output format for each target
- Resolves user-requested target names

Owns: Target, TargetKind, naming conventions
Never: Reads document content or touches outputs
"""

from paperwright.contexts.resolving.targets import (
    RepositoryShape,
    Target,
    TargetKind,
    UnknownTargetError,
    classify,
    detect_shape,
    output_path_for,
    resolve_targets,
    select_targets,
    unmatched_documents,
)

__all__ = [
    "RepositoryShape",
    "Target",
    "TargetKind",
    "UnknownTargetError",
    "classify",
    "detect_shape",
    "output_path_for",
    "resolve_targets",
    "select_targets",
    "unmatched_documents",
]
