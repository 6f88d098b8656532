"""
Configuration Layers

A build has exactly three layer slots, ordered by precedence:

    engine defaults  <  repo defaults  <  repo metadata

Engine defaults always exist. The repo-wide layers are optional: a missing
file is an absent layer, not an error.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from omegaconf import DictConfig, OmegaConf

from paperwright.contexts.composing.exceptions import InvalidConfigLayerError

# pandoc expands ${.} in defaults files to the directory containing the file.
# OmegaConf cannot parse it, so it is swapped for a placeholder while loading.
DEFAULTS_DIR_VARIABLE = "${.}"
DEFAULTS_DIR_PLACEHOLDER = "__PAPERWRIGHT_DEFAULTS_DIR__"


class LayerOrigin(Enum):
    """Layer slot, valued by precedence rank (higher overrides lower)."""

    ENGINE_DEFAULTS = 0
    REPO_DEFAULTS = 1
    REPO_METADATA = 2

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class ConfigLayer:
    """
    One ordered source of rendering options.

    Attributes:
        origin: Which slot this layer fills
        precedence_rank: Merge position (0 is applied first)
        path: Layer file location (None when the slot is unconfigured)
        present: Whether the layer file exists and takes part in builds
    """

    origin: LayerOrigin
    precedence_rank: int
    path: Optional[Path]
    present: bool


def _make_layer(origin: LayerOrigin, path: Optional[Path]) -> ConfigLayer:
    return ConfigLayer(
        origin=origin,
        precedence_rank=origin.value,
        path=path,
        present=path is not None and path.is_file(),
    )


def discover_layers(
    engine_defaults: Path,
    repo_defaults: Optional[Path] = None,
    repo_metadata: Optional[Path] = None,
) -> List[ConfigLayer]:
    """
    Locate the three configuration layers.

    Args:
        engine_defaults: Engine defaults file (must exist)
        repo_defaults: Optional repo-wide defaults file
        repo_metadata: Optional repo-wide metadata file

    Returns:
        All three layers in precedence order, absent ones marked present=False

    Raises:
        FileNotFoundError: If the engine defaults file does not exist
    """
    engine = _make_layer(LayerOrigin.ENGINE_DEFAULTS, engine_defaults)
    if not engine.present:
        raise FileNotFoundError(f"Engine defaults not found: {engine_defaults}")

    return [
        engine,
        _make_layer(LayerOrigin.REPO_DEFAULTS, repo_defaults),
        _make_layer(LayerOrigin.REPO_METADATA, repo_metadata),
    ]


def present_layers(layers: List[ConfigLayer]) -> List[ConfigLayer]:
    """Present layers sorted by precedence rank."""
    return sorted((layer for layer in layers if layer.present), key=lambda l: l.precedence_rank)


def _expand_defaults_dir(value: Any, directory: str) -> Any:
    if isinstance(value, str):
        return value.replace(DEFAULTS_DIR_PLACEHOLDER, directory)
    if isinstance(value, dict):
        return {key: _expand_defaults_dir(item, directory) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_defaults_dir(item, directory) for item in value]
    return value


def load_layer(layer: ConfigLayer) -> Dict[str, Any]:
    """
    Read a layer file into a plain dict.

    Interpolations are left unresolved so pandoc variables such as ${USERDATA}
    reach the renderer untouched; ${.} is expanded to the layer's own directory
    because the composed options are handed to the renderer from elsewhere.

    Args:
        layer: A present ConfigLayer

    Returns:
        Mapping of option name to value

    Raises:
        InvalidConfigLayerError: If the file is unreadable or not a mapping
    """
    if not layer.present:
        raise InvalidConfigLayerError(f"Layer {layer.origin.label} is not present", layer.path)

    try:
        text = layer.path.read_text(encoding="utf-8")
        loaded = OmegaConf.create(text.replace(DEFAULTS_DIR_VARIABLE, DEFAULTS_DIR_PLACEHOLDER))
    except Exception as e:
        raise InvalidConfigLayerError(
            f"Could not parse {layer.origin.label} layer", layer.path, original_error=e
        ) from e

    if not isinstance(loaded, DictConfig):
        raise InvalidConfigLayerError(
            f"The {layer.origin.label} layer must be a mapping of option names to values",
            layer.path,
        )

    options = OmegaConf.to_container(loaded, resolve=False)
    return _expand_defaults_dir(options, str(layer.path.parent.resolve()))
