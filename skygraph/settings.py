"""
Skygraph Settings Management

File Purpose: Persist and validate builder and metric options
Primary Functions/Classes: SettingsManager
Inputs and Outputs (I/O): Settings file I/O (JSON), option validation

The settings file holds two sections, ``build`` and ``metrics``, mirroring
BuildOptions and MetricsOptions. Missing files fall back to defaults;
unknown keys are ignored; invalid values raise ConfigurationError when the
file is loaded rather than later in the middle of a computation.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Mapping, Tuple, Type, TypeVar

from .exceptions import ConfigurationError
from .models import BuildOptions, MetricsOptions

logger = logging.getLogger(__name__)

T = TypeVar("T", BuildOptions, MetricsOptions)


def _apply(base_type: Type[T], data: Mapping[str, Any], section: str) -> T:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Settings section '{section}' must be a JSON object")
    base = base_type()
    known = {f.name for f in fields(base_type)}
    for k, v in data.items():
        if k not in known:
            logger.warning("Ignoring unknown %s setting '%s'", section, k)
            continue
        if k == "orbit_tier_names" and v is not None:
            v = tuple(v)
        setattr(base, k, v)
    return base.validate()


class SettingsManager:
    """Loads and saves engine options."""

    def __init__(self, settings_file: Path):
        self.settings_file = Path(settings_file)
        self.build_options, self.metrics_options = self._load_settings()

    def _load_settings(self) -> Tuple[BuildOptions, MetricsOptions]:
        """Load settings from file or create defaults."""
        if not self.settings_file.exists():
            return BuildOptions(), MetricsOptions()
        try:
            with open(self.settings_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not read settings from {self.settings_file}",
                details=str(e),
                original_error=e,
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings file {self.settings_file} must contain a JSON object"
            )
        return (
            _apply(BuildOptions, data.get("build", {}), "build"),
            _apply(MetricsOptions, data.get("metrics", {}), "metrics"),
        )

    def save_settings(self) -> None:
        """Save current settings to file."""
        save_settings(self.settings_file, self.build_options, self.metrics_options)


def load_settings(path: Path) -> Tuple[BuildOptions, MetricsOptions]:
    manager = SettingsManager(path)
    return manager.build_options, manager.metrics_options


def save_settings(path: Path, build: BuildOptions, metrics: MetricsOptions) -> None:
    """Write both option sections to ``path`` as JSON."""
    build.validate()
    metrics.validate()
    data = {"build": asdict(build), "metrics": asdict(metrics)}
    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.warning("Failed to save settings: %s", e)
