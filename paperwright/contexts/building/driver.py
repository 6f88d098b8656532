"""
Build Driver

Orchestrates a build:

    resolve targets -> ensure cached resources -> evaluate staleness
        -> inspect TOC depth (papers) -> compose options -> render

Targets are independent and run on a thread pool bounded by the configured
number of jobs. A failure is recorded on the target that produced it; the other
targets still build unless fail-fast is requested, in which case targets that
have not started yet are skipped.
"""

import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from paperwright.config import BuildSettings
from paperwright.contexts.building.logger import (
    _log_debug,
    _log_error,
    _log_info,
    log_build_summary,
    log_render_result,
    log_render_start,
)
from paperwright.contexts.building.renderer import PandocRenderer, Renderer
from paperwright.contexts.building.staleness import (
    REQUIRED_RESOURCES,
    StalenessReport,
    dependency_set,
    evaluate,
)
from paperwright.contexts.caching import (
    CITATIONS,
    ResourceCache,
    ResourceFetchError,
    default_resources,
)
from paperwright.contexts.composing import (
    ConfigLayer,
    InvalidConfigLayerError,
    compose_options,
    discover_layers,
)
from paperwright.contexts.inspecting import ContentAnalyzer, inspect_toc_depth, make_analyzer
from paperwright.contexts.resolving import (
    Target,
    TargetKind,
    resolve_targets,
    unmatched_documents,
)


class TargetOutcome(str, Enum):
    BUILT = "built"
    UP_TO_DATE = "up-to-date"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TargetResult:
    """
    Outcome of one target in a build.

    Attributes:
        target: The target
        outcome: What happened to it
        error: Failure diagnostics (renderer stderr verbatim for render failures)
        reason: Staleness reason when the target was evaluated
        toc_depth: TOC depth applied to the render, if any
        elapsed_time: Seconds spent on this target
    """

    target: Target
    outcome: TargetOutcome
    error: str = ""
    reason: str = ""
    toc_depth: Optional[int] = None
    elapsed_time: float = 0.0


@dataclass
class BuildReport:
    """Per-target results of one build, in target order."""

    results: List[TargetResult] = field(default_factory=list)

    def _with(self, outcome: TargetOutcome) -> List[TargetResult]:
        return [result for result in self.results if result.outcome is outcome]

    @property
    def built(self) -> List[TargetResult]:
        return self._with(TargetOutcome.BUILT)

    @property
    def up_to_date(self) -> List[TargetResult]:
        return self._with(TargetOutcome.UP_TO_DATE)

    @property
    def failed(self) -> List[TargetResult]:
        return self._with(TargetOutcome.FAILED)

    @property
    def skipped(self) -> List[TargetResult]:
        return self._with(TargetOutcome.SKIPPED)

    @property
    def success(self) -> bool:
        return not self.failed and not self.skipped

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class BuildDriver:
    """
    Incremental builder for one source directory.

    Args:
        settings: Build settings
        cache: Resource cache (default: the two standard resources in settings.cache_dir)
        renderer: Renderer (default: pandoc)
        analyzer: TOC depth analyzer (default: from settings.toc_classifier)
        verbose: Log renderer output even when rendering succeeds
    """

    def __init__(
        self,
        settings: BuildSettings,
        cache: Optional[ResourceCache] = None,
        renderer: Optional[Renderer] = None,
        analyzer: Optional[ContentAnalyzer] = None,
        verbose: bool = False,
    ):
        self.settings = settings
        self.cache = cache or ResourceCache(settings.cache_dir, default_resources(settings))
        self.renderer = renderer or PandocRenderer(settings.pandoc_bin)
        self.analyzer = analyzer or make_analyzer(settings.toc_classifier, settings.python_bin)
        self.verbose = verbose

    def resolve(self) -> List[Target]:
        """All targets in the source directory."""
        return resolve_targets(self.settings.src_dir, self.settings.out_dir)

    def layers(self) -> List[ConfigLayer]:
        """Configuration layer slots for this build."""
        return discover_layers(
            self.settings.engine_defaults,
            self.settings.repo_defaults,
            self.settings.repo_metadata,
        )

    def status(self, targets: Optional[Sequence[Target]] = None) -> List[StalenessReport]:
        """
        Evaluate staleness without fetching or rendering anything.

        Resources that are not cached yet count as missing dependencies.
        """
        targets = self.resolve() if targets is None else targets
        layers = self.layers()
        resource_paths = {rid: self.cache.path_for(rid) for rid in self.cache.resource_ids}
        return [evaluate(t, dependency_set(t, layers, resource_paths)) for t in targets]

    def build(
        self,
        targets: Optional[Sequence[Target]] = None,
        jobs: Optional[int] = None,
        fail_fast: bool = False,
        force: bool = False,
    ) -> BuildReport:
        """
        Build stale targets.

        Args:
            targets: Targets to consider (default: all resolved targets)
            jobs: Maximum concurrent targets (default: settings.jobs)
            fail_fast: Skip targets not yet started once any target fails
            force: Rebuild targets even when up to date

        Returns:
            BuildReport with one result per target, in the given order

        Raises:
            FileNotFoundError: If the engine defaults layer is missing
        """
        if targets is None:
            targets = self.resolve()
            for document in unmatched_documents(self.settings.src_dir):
                _log_debug(f"Not a target: {document.name}")

        if not targets:
            _log_info(f"No targets found in {self.settings.src_dir}")
            return BuildReport()

        layers = self.layers()
        jobs = jobs or self.settings.jobs
        stop = threading.Event()

        _log_info(f"Considering {len(targets)} target(s) with {jobs} job(s)")

        def run(target: Target) -> TargetResult:
            if fail_fast and stop.is_set():
                return TargetResult(target, TargetOutcome.SKIPPED, reason="fail-fast")
            result = self._build_isolated(target, layers, force)
            if result.outcome is TargetOutcome.FAILED:
                stop.set()
            return result

        with ThreadPoolExecutor(max_workers=jobs) as executor:
            report = BuildReport(results=list(executor.map(run, targets)))

        log_build_summary(report)
        return report

    def _build_isolated(self, target: Target, layers: List[ConfigLayer], force: bool) -> TargetResult:
        """Build one target, turning any unexpected error into a failure of that target."""
        start_time = time.time()
        try:
            result = self.build_target(target, layers, force)
        except Exception as e:
            _log_error(f"{target.name}: unexpected error: {e!r}")
            result = TargetResult(target, TargetOutcome.FAILED, error=f"{type(e).__name__}: {e}")
        result.elapsed_time = time.time() - start_time
        return result

    def build_target(
        self, target: Target, layers: List[ConfigLayer], force: bool = False
    ) -> TargetResult:
        """
        Build a single target if it is stale.

        Args:
            target: Target to build
            layers: Layer slots for this build
            force: Rebuild even when up to date

        Returns:
            TargetResult
        """
        try:
            resource_paths: Dict[str, Path] = {
                resource_id: self.cache.ensure(resource_id)
                for resource_id in REQUIRED_RESOURCES[target.kind]
            }
        except ResourceFetchError as e:
            _log_error(f"{target.name}: required resource unavailable")
            return TargetResult(target, TargetOutcome.FAILED, error=str(e))

        staleness = evaluate(target, dependency_set(target, layers, resource_paths))
        if not staleness.stale and not force:
            _log_debug(f"{target.name}: up to date")
            return TargetResult(target, TargetOutcome.UP_TO_DATE, reason=staleness.reason)

        reason = staleness.reason if staleness.stale else "forced"
        _log_debug(f"{target.name}: {reason}")

        toc_depth = None
        if target.kind is TargetKind.PAPER:
            try:
                text = target.source_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                _log_error(f"{target.name}: cannot read {target.source_path}: {e}")
                return TargetResult(target, TargetOutcome.FAILED, error=str(e), reason=reason)
            toc_depth = inspect_toc_depth(text, self.analyzer, target.source_path.name)

        try:
            options = compose_options(layers, target.kind, toc_depth)
        except InvalidConfigLayerError as e:
            _log_error(f"{target.name}: invalid configuration")
            return TargetResult(target, TargetOutcome.FAILED, error=str(e), reason=reason)

        log_render_start(target.name, target.source_path, options)
        start_time = time.time()
        rendered = self.renderer.render(
            target.source_path, target.output_path, options, resource_paths[CITATIONS]
        )
        log_render_result(target.name, rendered, time.time() - start_time, verbose=self.verbose)

        if not rendered.success:
            return TargetResult(
                target,
                TargetOutcome.FAILED,
                error="\n".join(rendered.errors),
                reason=reason,
                toc_depth=toc_depth,
            )
        return TargetResult(target, TargetOutcome.BUILT, reason=reason, toc_depth=toc_depth)

    def clean(self) -> List[Path]:
        """
        Remove all generated outputs and cached resources.

        Returns:
            Paths removed (the output directory and each cached file)

        Raises:
            ValueError: If the output directory is the source directory or contains it
        """
        out_dir = self.settings.out_dir
        if self.settings.src_dir.resolve().is_relative_to(out_dir.resolve()):
            raise ValueError(
                f"Refusing to clean {out_dir}: it contains the source directory {self.settings.src_dir}"
            )

        removed = []
        if out_dir.exists():
            shutil.rmtree(out_dir)
            removed.append(out_dir)
            _log_info(f"Removed {out_dir}")

        for path in self.cache.clean():
            _log_info(f"Removed {path}")
            removed.append(path)

        return removed

    def update(self) -> Dict[str, Path]:
        """Re-fetch every cached resource."""
        return self.cache.refresh_all()
