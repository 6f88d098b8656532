"""
Dependency Graph & Staleness

A target's output is up to date iff it exists and none of its dependencies
(source document, every present configuration layer, every cached resource its
kind requires) has a modification time strictly newer than the output's.

Each target is evaluated on its own; there is no global build epoch.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from paperwright.contexts.caching import ANNEX_F, CITATIONS
from paperwright.contexts.composing import ConfigLayer, present_layers
from paperwright.contexts.resolving import Target, TargetKind

REQUIRED_RESOURCES: Dict[TargetKind, Tuple[str, ...]] = {
    TargetKind.PAPER: (CITATIONS, ANNEX_F),
    TargetKind.SLIDES: (CITATIONS, ANNEX_F),
}


@dataclass
class StalenessReport:
    """
    Rebuild decision for one target.

    Attributes:
        target: Evaluated target
        stale: Whether the target must be rebuilt
        reason: Short explanation of the decision
        dependencies: Full dependency set that was checked
        newer: Dependencies strictly newer than the output (or missing)
    """

    target: Target
    stale: bool
    reason: str
    dependencies: List[Path] = field(default_factory=list)
    newer: List[Path] = field(default_factory=list)


def dependency_set(
    target: Target,
    layers: List[ConfigLayer],
    resource_paths: Mapping[str, Path],
) -> List[Path]:
    """
    Compute the dependency set of a target.

    Args:
        target: Target to evaluate
        layers: Layer slots for this build (absent layers are skipped)
        resource_paths: Local path of each cached resource, by resource id

    Returns:
        Source file, present layer files, then required resource files

    Raises:
        KeyError: If a resource required by the target's kind has no path
    """
    dependencies = [target.source_path]
    dependencies.extend(layer.path for layer in present_layers(layers))

    for resource_id in REQUIRED_RESOURCES[target.kind]:
        if resource_id not in resource_paths:
            raise KeyError(f"No local path for resource '{resource_id}' required by {target.name}")
        dependencies.append(resource_paths[resource_id])

    return dependencies


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return None


def evaluate(target: Target, dependencies: List[Path]) -> StalenessReport:
    """
    Decide whether a target must be rebuilt.

    Args:
        target: Target to evaluate
        dependencies: Its dependency set from dependency_set()

    Returns:
        StalenessReport
    """
    output_mtime = _mtime(target.output_path)
    if output_mtime is None:
        return StalenessReport(target, True, "output missing", dependencies)

    missing = [dep for dep in dependencies if _mtime(dep) is None]
    if missing:
        return StalenessReport(
            target, True, f"missing dependency: {missing[0].name}", dependencies, missing
        )

    newer = [dep for dep in dependencies if _mtime(dep) > output_mtime]
    if newer:
        names = ", ".join(dep.name for dep in newer)
        return StalenessReport(target, True, f"newer dependencies: {names}", dependencies, newer)

    return StalenessReport(target, False, "up to date", dependencies)
