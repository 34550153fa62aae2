"""
Configuration management for featmatch
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from featmatch.exceptions import ConfigError

DEFAULT_CONFIG = {
    "matching": {
        # None means one more than the descriptor length, so only the ratio test filters
        "distance_threshold": None,
        "lowes_ratio": 0.7
    },
    "verification": {
        "max_iterations": 10000,
        "tight_threshold": 0.05,
        "loose_threshold": 0.25,
        "min_inliers": 8,
        "refine": False
    }
}


def merge_config(overrides: Optional[Dict[str, Any]] = None,
                 base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge overrides over a copy of base (DEFAULT_CONFIG by default).

    Raises:
        ConfigError: on a section or key that base does not define
    """
    merged = copy.deepcopy(DEFAULT_CONFIG if base is None else base)
    if not overrides:
        return merged
    if not isinstance(overrides, dict):
        raise ConfigError(f"Config must be a mapping, got {type(overrides).__name__}")

    for section, values in overrides.items():
        if section not in merged:
            raise ConfigError(f"Unknown config section '{section}'")
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        for key, value in values.items():
            if key not in merged[section]:
                raise ConfigError(f"Unknown config key '{section}.{key}'")
            merged[section][key] = value
    return merged


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML config file and merge it over the defaults."""
    try:
        with open(path, 'r') as f:
            overrides = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return merge_config(overrides)
