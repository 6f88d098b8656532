"""
Composing Context

Responsibilities:
- Locates the three configuration layers (engine defaults, repo defaults, repo metadata)
- Merges present layers in precedence order into one option set
- Adds target-kind flags and inspected options

Owns: ConfigLayer, ComposedOptions, layer precedence
Never: Writes to layer files or source documents
"""

from paperwright.contexts.composing.composer import ComposedOptions, compose_options
from paperwright.contexts.composing.exceptions import InvalidConfigLayerError
from paperwright.contexts.composing.layers import (
    ConfigLayer,
    LayerOrigin,
    discover_layers,
    load_layer,
    present_layers,
)

__all__ = [
    "ComposedOptions",
    "ConfigLayer",
    "InvalidConfigLayerError",
    "LayerOrigin",
    "compose_options",
    "discover_layers",
    "load_layer",
    "present_layers",
]
