"""
Target Resolution

Maps source documents to rendered outputs using file naming conventions only.

Two repository shapes are recognised without any configuration:

- Multi-document: papers are named P*.md (e.g. P1234R0.md) and slide decks
  slides-*.md; any other Markdown file is not a target.
- Single-document: no file follows those conventions, so every Markdown file
  that is not on the exclusion list (README, LICENSE, ...) is a paper.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

SOURCE_SUFFIX = ".md"

PAPER_PATTERN = re.compile(r"^P.*\.md$")
SLIDES_PATTERN = re.compile(r"^slides-.*\.md$")

# Repository housekeeping documents, compared case-insensitively by stem
EXCLUDED_STEMS = frozenset(
    {
        "readme",
        "license",
        "licence",
        "copying",
        "contributing",
        "changelog",
        "code_of_conduct",
        "security",
        "notice",
        "authors",
    }
)


class TargetKind(str, Enum):
    """Kind of rendered artifact, determining output format and backend."""

    PAPER = "paper"
    SLIDES = "slides"

    @property
    def output_suffix(self) -> str:
        return ".html" if self is TargetKind.PAPER else ".pdf"


class RepositoryShape(str, Enum):
    SINGLE_DOCUMENT = "single-document"
    MULTI_DOCUMENT = "multi-document"


@dataclass(frozen=True)
class Target:
    """
    One source document and its rendered output.

    Attributes:
        source_path: Markdown source file
        output_path: Rendered artifact (.html for papers, .pdf for slides)
        kind: Target kind
    """

    source_path: Path
    output_path: Path
    kind: TargetKind

    @property
    def name(self) -> str:
        """Output file name, used as the target identifier in reports."""
        return self.output_path.name


class UnknownTargetError(ValueError):
    """Raised when a requested target name matches no resolved target."""

    def __init__(self, requested: str, available: Sequence[str]):
        self.requested = requested
        self.available = list(available)
        super().__init__(
            f"No target matches '{requested}'. Available targets: {', '.join(self.available) or 'none'}"
        )


def is_excluded(path: Path) -> bool:
    return path.stem.lower() in EXCLUDED_STEMS


def _matches_convention(path: Path) -> Optional[TargetKind]:
    if PAPER_PATTERN.match(path.name):
        return TargetKind.PAPER
    if SLIDES_PATTERN.match(path.name):
        return TargetKind.SLIDES
    return None


def classify(path: Path, shape: RepositoryShape = RepositoryShape.MULTI_DOCUMENT) -> Optional[TargetKind]:
    """
    Classify a source file by name.

    Args:
        path: Source file path (only the name is inspected)
        shape: Repository shape the file belongs to

    Returns:
        TargetKind, or None if the file is not a target
    """
    if path.suffix != SOURCE_SUFFIX or is_excluded(path):
        return None
    if shape is RepositoryShape.SINGLE_DOCUMENT:
        return TargetKind.PAPER
    return _matches_convention(path)


def detect_shape(paths: Iterable[Path]) -> RepositoryShape:
    """Multi-document iff any non-excluded file follows the P*/slides-* conventions."""
    for path in paths:
        if path.suffix == SOURCE_SUFFIX and not is_excluded(path) and _matches_convention(path):
            return RepositoryShape.MULTI_DOCUMENT
    return RepositoryShape.SINGLE_DOCUMENT


def output_path_for(source: Path, kind: TargetKind, out_dir: Path) -> Path:
    """Output path for a source document: <out_dir>/<stem>.html or <out_dir>/<stem>.pdf"""
    return out_dir / f"{source.stem}{kind.output_suffix}"


def _source_documents(src_dir: Path) -> List[Path]:
    return sorted(p for p in src_dir.glob(f"*{SOURCE_SUFFIX}") if p.is_file())


def resolve_targets(src_dir: Path, out_dir: Path) -> List[Target]:
    """
    Enumerate all targets in a source directory.

    Args:
        src_dir: Directory containing Markdown sources (not searched recursively)
        out_dir: Directory receiving rendered outputs

    Returns:
        Targets sorted by source name, deduplicated by output path (first wins)
    """
    sources = _source_documents(src_dir)
    shape = detect_shape(sources)

    targets = []
    seen_outputs = set()
    for source in sources:
        kind = classify(source, shape)
        if kind is None:
            continue
        output = output_path_for(source, kind, out_dir)
        if output in seen_outputs:
            continue
        seen_outputs.add(output)
        targets.append(Target(source_path=source, output_path=output, kind=kind))

    return targets


def unmatched_documents(src_dir: Path) -> List[Path]:
    """Markdown files in src_dir that are not targets (excluded or off-convention)."""
    sources = _source_documents(src_dir)
    shape = detect_shape(sources)
    return [source for source in sources if classify(source, shape) is None]


def select_targets(targets: Sequence[Target], requested: Iterable[str]) -> List[Target]:
    """
    Select targets by user-supplied names.

    A name may be a source path (P1234.md), an output path
    (generated/P1234.html) or a bare output file name (P1234.html).

    Args:
        targets: All resolved targets
        requested: Requested names, in the order given

    Returns:
        Matching targets in request order, without duplicates

    Raises:
        UnknownTargetError: If a name matches no target
    """
    selected: List[Target] = []
    for name in requested:
        requested_path = Path(name).resolve()
        match = next(
            (
                target
                for target in targets
                if requested_path in (target.source_path.resolve(), target.output_path.resolve())
                or name in (target.output_path.name, target.source_path.name)
            ),
            None,
        )
        if match is None:
            raise UnknownTargetError(name, [target.name for target in targets])
        if match not in selected:
            selected.append(match)
    return selected
