"""Centralized path constants for the PolicyPulse export pipeline.

Every file and directory path used by the exporter is defined here as a
module-level constant. Source files import from this module instead of
constructing ad-hoc ``Path(...)`` literals.

Design rules:
  1. This module imports ONLY ``pathlib.Path`` -- no project imports, no
     config imports, no runtime validation.
  2. No path existence checks at import time.  Callers create directories
     as needed (``mkdir(parents=True, exist_ok=True)``).
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# -- Project Root --
# ---------------------------------------------------------------------------

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
"""Absolute path to the project root directory (one level above ``policypulse/``)."""

# ---------------------------------------------------------------------------
# -- Config Paths --
# ---------------------------------------------------------------------------

CONFIG_DIR: Path = PROJECT_ROOT / "config"
"""Directory containing exporter configuration files."""

PULSE_CONFIG_PATH: Path = CONFIG_DIR / "pulse_config.json"
"""Main configuration (API, resilience, scoring, export)."""

# ---------------------------------------------------------------------------
# -- Output Paths --
# ---------------------------------------------------------------------------

OUTPUTS_DIR: Path = PROJECT_ROOT / "outputs"
"""Top-level output directory."""

EXPORTS_DIR: Path = OUTPUTS_DIR / "exports"
"""Generated PDF analysis reports (single-bill and comparative)."""
