"""
Project-local settings read from ``cfn2mermaid.yaml``.
"""
import os
from dataclasses import dataclass
from typing import Optional

import yaml

from cfn2mermaid.reporters.mermaid import DIRECTIONS

DEFAULT_CONFIG_FILE = "cfn2mermaid.yaml"
OUTPUT_FORMATS = ("mermaid", "markdown", "json")


class ConfigError(ValueError):
    """The configuration file is unreadable or holds unsupported values."""


@dataclass
class Config:
    direction: str = "LR"
    output_format: str = "mermaid"


def load_config(path: Optional[str] = None) -> Config:
    """
    Load settings from ``path``, or from ``cfn2mermaid.yaml`` in the working
    directory when no path is given. A missing default file yields defaults.
    """
    explicit = path is not None
    config_file = path if explicit else DEFAULT_CONFIG_FILE
    if not os.path.exists(config_file):
        if explicit:
            raise ConfigError(f"config file not found: {config_file}")
        return Config()

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to read {config_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file}: expected a mapping at the top level")

    cfg = Config(
        direction=str(data.get("direction", "LR")).upper(),
        output_format=str(data.get("format", "mermaid")).lower(),
    )
    if cfg.direction not in DIRECTIONS:
        raise ConfigError(
            f"{config_file}: direction must be one of {', '.join(DIRECTIONS)}, got {cfg.direction!r}"
        )
    if cfg.output_format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"{config_file}: format must be one of {', '.join(OUTPUT_FORMATS)}, got {cfg.output_format!r}"
        )
    return cfg
