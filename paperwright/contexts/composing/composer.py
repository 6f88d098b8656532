"""
Option Composition

Flattens the present configuration layers into the option set for one target.

Layers are applied in precedence order (later overrides earlier, non-conflicting
keys accumulate, nested mappings merge, lists replace). The repo metadata layer
holds document metadata rather than renderer options. It is passed to pandoc as a
metadata file ("metadata-files"), so each document's own front matter takes
precedence over it, while the engine "metadata" block keeps pandoc -M semantics.
Kind-specific flags and inspected options are applied last.

Examples:
    >>> layers = discover_layers(ENGINE_DEFAULTS_FILE, Path("defaults.yaml"))
    >>> compose_options(layers, TargetKind.PAPER, toc_depth=2).options["toc-depth"]
    2
    >>> compose_options(layers, TargetKind.SLIDES).options["to"]
    'beamer'
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from omegaconf import OmegaConf

from paperwright.contexts.composing.layers import (
    ConfigLayer,
    LayerOrigin,
    load_layer,
    present_layers,
)
from paperwright.contexts.resolving import TargetKind

METADATA_FILES_KEY = "metadata-files"
TOC_DEPTH_KEY = "toc-depth"

# Options injected per target kind, never present for other kinds
KIND_OPTIONS = {
    TargetKind.PAPER: {},
    TargetKind.SLIDES: {"to": "beamer"},
}


@dataclass
class ComposedOptions:
    """
    Flattened rendering options for one target.

    Attributes:
        kind: Target kind the options were composed for
        layers: Present layers that contributed, in merge order
        options: Merged option mapping handed to the renderer
    """

    kind: TargetKind
    layers: List[ConfigLayer] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def toc_depth(self) -> Optional[int]:
        return self.options.get(TOC_DEPTH_KEY)


def compose_options(
    layers: List[ConfigLayer],
    kind: TargetKind,
    toc_depth: Optional[int] = None,
) -> ComposedOptions:
    """
    Merge configuration layers into the option set for one target.

    Pure apart from reading the already-located layer files; the same inputs
    always produce the same options.

    Args:
        layers: Layer slots from discover_layers() (absent layers are skipped)
        kind: Target kind, selecting kind-specific flags
        toc_depth: Inspected table-of-contents depth (papers only)

    Returns:
        ComposedOptions

    Raises:
        ValueError: If toc_depth is given for a slides target or is not positive
        InvalidConfigLayerError: If a present layer is not a valid mapping
    """
    if toc_depth is not None:
        if kind is not TargetKind.PAPER:
            raise ValueError(f"TOC depth only applies to paper targets, not {kind.value}")
        if toc_depth < 1:
            raise ValueError(f"TOC depth must be a positive integer, got: {toc_depth}")

    contributing = present_layers(layers)
    merged = OmegaConf.create({})

    for layer in contributing:
        # Parsed for every layer so a malformed metadata file fails composition
        layer_options = load_layer(layer)
        if layer.origin is LayerOrigin.REPO_METADATA:
            layer_options = {METADATA_FILES_KEY: [str(layer.path.resolve())]}
        merged = OmegaConf.merge(merged, OmegaConf.create(layer_options))

    merged = OmegaConf.merge(merged, OmegaConf.create(KIND_OPTIONS[kind]))
    if toc_depth is not None:
        merged = OmegaConf.merge(merged, OmegaConf.create({TOC_DEPTH_KEY: toc_depth}))

    return ComposedOptions(
        kind=kind,
        layers=contributing,
        options=OmegaConf.to_container(merged, resolve=False),
    )
