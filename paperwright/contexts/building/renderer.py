"""
Document Rendering

Adapter for the external renderer (pandoc). The renderer receives the composed
options as a single defaults file and writes the artifact to a partial path that
only replaces the real output on success, so a failed render never leaves an
output that looks up to date.
"""

import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from omegaconf import OmegaConf

from paperwright.contexts.composing import ComposedOptions

DEFAULT_RENDER_TIMEOUT_S = 600.0


@dataclass
class RenderResult:
    """
    Result of rendering one document.

    Attributes:
        success: Whether the output was produced
        output_path: Path to the rendered output (None if failed)
        returncode: Renderer exit status (None if it never ran to completion)
        stdout: Standard output from the renderer
        stderr: Standard error from the renderer
        errors: Failure diagnostics, renderer stderr verbatim where available
    """

    success: bool
    output_path: Optional[Path] = None
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)


class Renderer(ABC):
    """
    Abstract base for document renderers.

    Subclasses implement render() and must only create or replace output_path
    when rendering succeeds.
    """

    name: str

    @abstractmethod
    def render(
        self,
        source: Path,
        output: Path,
        options: ComposedOptions,
        bibliography: Path,
    ) -> RenderResult:
        """Render source to output using the composed options and bibliography."""
        pass


def partial_output_path(output: Path) -> Path:
    """Hidden sibling of output keeping its extension (pandoc infers the writer from it)."""
    return output.with_name(f".{output.stem}.partial{output.suffix}")


class PandocRenderer(Renderer):
    """
    Render documents with pandoc.

    Args:
        pandoc_bin: pandoc executable
        timeout: Seconds before a render is killed and reported as failed
    """

    name = "pandoc"

    def __init__(self, pandoc_bin: str = "pandoc", timeout: float = DEFAULT_RENDER_TIMEOUT_S):
        self.pandoc_bin = pandoc_bin
        self.timeout = timeout

    def command(self, source: Path, output: Path, defaults_file: Path, bibliography: Path) -> List[str]:
        return [
            self.pandoc_bin,
            str(source),
            "-o",
            str(output),
            "-d",
            str(defaults_file),
            "--bibliography",
            str(bibliography),
        ]

    def render(
        self,
        source: Path,
        output: Path,
        options: ComposedOptions,
        bibliography: Path,
    ) -> RenderResult:
        output.parent.mkdir(parents=True, exist_ok=True)
        partial = partial_output_path(output)

        temp_fd, defaults_path = tempfile.mkstemp(suffix=".yaml", prefix="paperwright-defaults-")
        os.close(temp_fd)
        try:
            OmegaConf.save(OmegaConf.create(options.options), defaults_path)
            cmd = self.command(source, partial, Path(defaults_path), bibliography)

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired:
                return RenderResult(
                    success=False, errors=[f"{self.pandoc_bin} timed out after {self.timeout:.0f}s"]
                )
            except OSError as e:
                return RenderResult(success=False, errors=[f"Could not run {self.pandoc_bin}: {e}"])
        finally:
            os.unlink(defaults_path)

        if result.returncode != 0 or not partial.exists():
            if partial.exists():
                partial.unlink()
            errors = [result.stderr.strip()] if result.stderr.strip() else []
            if not errors:
                errors.append(f"{self.pandoc_bin} exited with status {result.returncode}")
            return RenderResult(
                success=False,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
                errors=errors,
            )

        os.replace(partial, output)
        return RenderResult(
            success=True,
            output_path=output,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
