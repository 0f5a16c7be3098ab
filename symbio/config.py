"""Runtime settings loaded from YAML and environment variables."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "data"  # Relative to the working directory at load time
DEFAULT_CONFIG_FILE = "symbio.yaml"


@dataclass
class CredibilityWeights:
    """Weights for the credibility score formula. They should sum to 1."""
    rating: float = 0.5
    completed_projects: float = 0.3
    on_time_milestones: float = 0.2
    completed_target: int = 10  # Completed projects that saturate the term


@dataclass
class Settings:
    """Configuration for the marketplace services and CLI."""
    data_dir: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_DATA_DIR)
    log_level: str = "INFO"
    credibility: CredibilityWeights = field(default_factory=CredibilityWeights)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        settings = cls()
        if data.get("data_dir"):
            settings.data_dir = Path(data["data_dir"]).expanduser()
        if data.get("log_level"):
            settings.log_level = str(data["log_level"]).upper()

        weights = data.get("credibility") or {}
        known = {f.name for f in fields(CredibilityWeights)}
        unknown = set(weights) - known
        if unknown:
            logger.warning("Ignoring unknown credibility settings: %s", ", ".join(sorted(unknown)))
        settings.credibility = CredibilityWeights(
            **{k: v for k, v in weights.items() if k in known}
        )
        return settings


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings.

    Precedence: explicit path, then ``SYMBIO_CONFIG``, then ``symbio.yaml``
    in the working directory. Environment variables ``SYMBIO_DATA_DIR`` and
    ``SYMBIO_LOG_LEVEL`` override the file.
    """
    if config_path is None:
        env_path = os.environ.get("SYMBIO_CONFIG")
        config_path = Path(env_path) if env_path else Path.cwd() / DEFAULT_CONFIG_FILE

    data = {}
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        logger.debug("Loaded settings from %s", config_path)

    settings = Settings.from_dict(data)

    if os.environ.get("SYMBIO_DATA_DIR"):
        settings.data_dir = Path(os.environ["SYMBIO_DATA_DIR"])
    if os.environ.get("SYMBIO_LOG_LEVEL"):
        settings.log_level = os.environ["SYMBIO_LOG_LEVEL"].upper()

    return settings
