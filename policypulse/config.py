"""Configuration loading for the PolicyPulse exporter.

The JSON file at ``config/pulse_config.json`` is deep-merged over
``DEFAULT_CONFIG``: a missing file, or a file that only sets a few keys,
still yields a complete configuration dict. Components receive the whole
dict and read their own section with ``.get(..., default)``.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path

from policypulse.paths import PULSE_CONFIG_PATH

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "api": {
        "base_url": "http://localhost:8000/api",
        "key_env_var": "POLICYPULSE_API_KEY",
    },
    "resilience": {
        "max_retries": 3,
        "backoff_base": 2,
        "backoff_max": 60,
        "request_timeout": 10,
        "circuit_breaker": {
            "failure_threshold": 5,
            "recovery_timeout": 60,
        },
    },
    "scoring": {
        "category_weights": {
            "publicHealth": 10,
            "localGovernment": 10,
            "economic": 10,
            "environmental": 20,
            "education": 20,
            "infrastructure": 20,
        },
        "level_scores": {
            "critical": 100,
            "high": 75,
            "moderate": 50,
            "low": 25,
            "none": 0,
        },
        "score_floor": 10,
        "score_ceiling": 100,
    },
    "export": {
        "output_dir": None,
        "render_scale": 2.0,
        "chart_timeout_seconds": 30,
        "chart_width": 800,
        "chart_height": 500,
        "app_name": "PolicyPulse",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Return ``base`` updated recursively with ``override`` (neither is mutated)."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path: Path | str | None = None) -> dict:
    """Load the exporter configuration.

    Args:
        path: Optional config file path. Defaults to ``PULSE_CONFIG_PATH``.

    Returns:
        Complete configuration dict (defaults filled in).

    Raises:
        ValueError: If the file exists but is not a JSON object.
    """
    config_path = Path(path) if path else PULSE_CONFIG_PATH
    if not config_path.exists():
        logger.info("No config at %s, using defaults", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    logger.debug("Loaded config from %s", config_path)
    return _deep_merge(DEFAULT_CONFIG, data)
