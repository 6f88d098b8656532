"""Custom exceptions for composing context."""

from pathlib import Path
from typing import Optional


class InvalidConfigLayerError(ValueError):
    """
    Exception raised when a configuration layer cannot be used.

    Attributes:
        message: Error description
        layer_path: Path to the offending layer file
        original_error: The underlying parse error, if any
    """

    def __init__(
        self,
        message: str,
        layer_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.layer_path = layer_path
        self.original_error = original_error

        parts = [message]

        if layer_path:
            parts.append(f"\nLayer: {layer_path}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))
