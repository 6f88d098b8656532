"""
Building Context

Responsibilities:
- Computes each target's dependency set and decides whether it is stale
- Schedules stale targets across worker threads
- Composes options, inspects content and invokes the renderer per target
- Reports per-target outcomes and an aggregate exit status

Owns: StalenessReport, RenderResult, BuildReport, build scheduling
Never: Lets one target's failure corrupt or abort unrelated targets (unless fail-fast)
"""

from paperwright.contexts.building.driver import (
    BuildDriver,
    BuildReport,
    TargetOutcome,
    TargetResult,
)
from paperwright.contexts.building.renderer import PandocRenderer, RenderResult, Renderer
from paperwright.contexts.building.staleness import (
    REQUIRED_RESOURCES,
    StalenessReport,
    dependency_set,
    evaluate,
)

__all__ = [
    "BuildDriver",
    "BuildReport",
    "PandocRenderer",
    "REQUIRED_RESOURCES",
    "RenderResult",
    "Renderer",
    "StalenessReport",
    "TargetOutcome",
    "TargetResult",
    "dependency_set",
    "evaluate",
]
