"""
Build Settings

Environment-style configuration for a paperwright build. Every value can be set
in the environment (or a .env file) and overridden from the command line.

Variables:
    PAPERWRIGHT_SRCDIR            Source directory (default: .)
    PAPERWRIGHT_OUTDIR            Output directory (default: generated)
    PAPERWRIGHT_DEFAULTS          Repo-wide rendering defaults (default: <srcdir>/defaults.yaml)
    PAPERWRIGHT_METADATA          Repo-wide metadata (default: <srcdir>/metadata.yaml)
    PAPERWRIGHT_ENGINE_DEFAULTS   Engine defaults (default: packaged data/defaults.yaml)
    PAPERWRIGHT_CACHEDIR          Resource cache directory (default: <srcdir>/.paperwright)
    PAPERWRIGHT_PYTHON_BIN        Interpreter for helper scripts (default: current interpreter)
    PAPERWRIGHT_TOC_CLASSIFIER    External TOC depth classifier script (default: in-process)
    PAPERWRIGHT_REFS_SCRIPT       Citation database producer (default: <srcdir>/data/refs.py)
    PAPERWRIGHT_ANNEX_F_URL       Normative reference snapshot URL
    PAPERWRIGHT_PANDOC            Renderer binary (default: pandoc)
    PAPERWRIGHT_JOBS              Concurrency limit (default: CPU count)
    PAPERWRIGHT_LOG_DIR           Directory for DEBUG file logs (default: console only)
"""

import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DATA_PATH = Path(__file__).parent / "data"
ENGINE_DEFAULTS_FILE = PACKAGE_DATA_PATH / "defaults.yaml"

DEFAULT_OUTDIR = "generated"
DEFAULT_CACHEDIR = ".paperwright"
REPO_DEFAULTS_NAME = "defaults.yaml"
REPO_METADATA_NAME = "metadata.yaml"
REFS_SCRIPT_NAME = "data/refs.py"
ANNEX_F_URL = "https://timsong-cpp.github.io/cppwp/annex-f"


@dataclass(frozen=True)
class BuildSettings:
    """
    Resolved settings for one build invocation.

    Attributes:
        src_dir: Directory scanned for source documents
        out_dir: Directory receiving rendered outputs
        engine_defaults: Engine defaults layer (always present)
        repo_defaults: Optional repo-wide defaults layer
        repo_metadata: Optional repo-wide metadata layer
        cache_dir: Directory holding cached resources
        python_bin: Interpreter used for helper scripts
        toc_classifier: External TOC depth classifier script (None for in-process)
        refs_script: Script producing the citation database on stdout
        annex_f_url: Source of the normative reference snapshot
        pandoc_bin: Renderer binary
        jobs: Maximum number of targets built concurrently
        log_dir: Directory for file logs (None for console only)
    """

    src_dir: Path
    out_dir: Path
    engine_defaults: Path
    repo_defaults: Optional[Path]
    repo_metadata: Optional[Path]
    cache_dir: Path
    python_bin: str
    toc_classifier: Optional[Path]
    refs_script: Path
    annex_f_url: str
    pandoc_bin: str
    jobs: int
    log_dir: Optional[Path] = None

    def with_overrides(self, **overrides) -> "BuildSettings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


def _default_jobs() -> int:
    return max(1, os.cpu_count() or 1)


def load_settings(**overrides) -> BuildSettings:
    """
    Build settings from the environment, then apply keyword overrides.

    Optional layer paths fall back to conventional file names in the source
    directory; they are resolved here but may still point at files that do not
    exist, which the composing context treats as absent layers.

    Args:
        **overrides: BuildSettings field values taking precedence over the
                     environment (None values are ignored)

    Returns:
        BuildSettings

    Raises:
        ValueError: If PAPERWRIGHT_JOBS is not a positive integer
    """
    src_dir = Path(overrides.pop("src_dir", None) or os.getenv("PAPERWRIGHT_SRCDIR", "."))

    jobs_value = os.getenv("PAPERWRIGHT_JOBS")
    if jobs_value:
        try:
            jobs = int(jobs_value)
        except ValueError:
            raise ValueError(f"PAPERWRIGHT_JOBS must be an integer, got: {jobs_value!r}")
        if jobs < 1:
            raise ValueError(f"PAPERWRIGHT_JOBS must be at least 1, got: {jobs}")
    else:
        jobs = _default_jobs()

    settings = BuildSettings(
        src_dir=src_dir,
        out_dir=Path(os.getenv("PAPERWRIGHT_OUTDIR", DEFAULT_OUTDIR)),
        engine_defaults=Path(os.getenv("PAPERWRIGHT_ENGINE_DEFAULTS", str(ENGINE_DEFAULTS_FILE))),
        repo_defaults=Path(os.getenv("PAPERWRIGHT_DEFAULTS", str(src_dir / REPO_DEFAULTS_NAME))),
        repo_metadata=Path(os.getenv("PAPERWRIGHT_METADATA", str(src_dir / REPO_METADATA_NAME))),
        cache_dir=Path(os.getenv("PAPERWRIGHT_CACHEDIR", str(src_dir / DEFAULT_CACHEDIR))),
        python_bin=os.getenv("PAPERWRIGHT_PYTHON_BIN", sys.executable),
        toc_classifier=_optional_path(os.getenv("PAPERWRIGHT_TOC_CLASSIFIER")),
        refs_script=Path(os.getenv("PAPERWRIGHT_REFS_SCRIPT", str(src_dir / REFS_SCRIPT_NAME))),
        annex_f_url=os.getenv("PAPERWRIGHT_ANNEX_F_URL", ANNEX_F_URL),
        pandoc_bin=os.getenv("PAPERWRIGHT_PANDOC", "pandoc"),
        jobs=jobs,
        log_dir=_optional_path(os.getenv("PAPERWRIGHT_LOG_DIR")),
    )
    return settings.with_overrides(**overrides)
