"""
Engine configuration.

Limits and display settings can be loaded from a YAML file:

    loop_limit: 1000000
    call_limit: 500
    display_places: 6

Keys left out keep their defaults.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


LOOP_LIMIT = 1_000_000
CALL_LIMIT = 500
DISPLAY_PLACES = 6

CONFIG_ENV_VAR = "FNCALC_CONFIG"


@dataclass(frozen=True)
class EngineConfig:
    """Evaluation guards and output settings."""
    loop_limit: int = LOOP_LIMIT
    call_limit: int = CALL_LIMIT
    display_places: int = DISPLAY_PLACES

    def __post_init__(self):
        for name in ("loop_limit", "call_limit"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        places = self.display_places
        if not isinstance(places, int) or isinstance(places, bool) or places < 0:
            raise ValueError(f"display_places must be a non-negative integer, got {places!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(map(str, unknown))}")
        return cls(**data)


def load_config(path: Path | str) -> EngineConfig:
    """Load an EngineConfig from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping: {path}")
    return EngineConfig.from_mapping(data)


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Load the file named by FNCALC_CONFIG, or return the defaults."""
    environ = os.environ if environ is None else environ
    path = environ.get(CONFIG_ENV_VAR)
    if not path:
        return EngineConfig()
    return load_config(path)
