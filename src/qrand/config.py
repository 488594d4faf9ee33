import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from qrand.model import AdvancePolicy
from qrand.shuffle import DEFAULT_MAX_RESTARTS, DEFAULT_REJECT_STREAK_FACTOR


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""
    pass


class Algorithm(Enum):
    """Randomization algorithms. Only the general constrained shuffle exists."""

    GENERAL = "general"


@dataclass
class SequencerConfig:
    max_run: int = 2
    use_buttons_by_default: bool = True
    algorithm: Algorithm = Algorithm.GENERAL
    debug_logging: bool = False
    max_restarts: int = DEFAULT_MAX_RESTARTS
    reject_streak_factor: int = DEFAULT_REJECT_STREAK_FACTOR
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_run < 1:
            raise ConfigError(f"max_run must be at least 1, got {self.max_run}")
        if self.max_restarts < 0:
            raise ConfigError(f"max_restarts cannot be negative, got {self.max_restarts}")
        if self.reject_streak_factor < 1:
            raise ConfigError(f"reject_streak_factor must be at least 1, got {self.reject_streak_factor}")

    @property
    def default_policy(self) -> AdvancePolicy:
        return AdvancePolicy.EXPLICIT if self.use_buttons_by_default else AdvancePolicy.IMPLICIT


def _parse_algorithm(raw: Any) -> Algorithm:
    try:
        return Algorithm(str(raw).lower())
    except ValueError:
        supported = ", ".join(a.value for a in Algorithm)
        raise ConfigError(f"Unknown algorithm {raw!r} (supported: {supported})")


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _parse_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def config_from_dict(raw: Optional[Dict[str, Any]]) -> SequencerConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(raw).__name__}")
    try:
        seed = raw.get("seed")
        return SequencerConfig(
            max_run=int(raw.get("max_run", 2)),
            use_buttons_by_default=_parse_bool("use_buttons_by_default", raw.get("use_buttons_by_default", True)),
            algorithm=_parse_algorithm(raw.get("algorithm", "general")),
            debug_logging=_parse_bool("debug_logging", raw.get("debug_logging", False)),
            max_restarts=int(raw.get("max_restarts", DEFAULT_MAX_RESTARTS)),
            reject_streak_factor=int(raw.get("reject_streak_factor", DEFAULT_REJECT_STREAK_FACTOR)),
            seed=int(seed) if seed is not None else None,
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}")


def config_to_dict(config: SequencerConfig) -> Dict[str, Any]:
    return {
        "max_run": config.max_run,
        "use_buttons_by_default": config.use_buttons_by_default,
        "algorithm": config.algorithm.value,
        "debug_logging": config.debug_logging,
        "max_restarts": config.max_restarts,
        "reject_streak_factor": config.reject_streak_factor,
        "seed": config.seed,
    }


def _load_file(path: Path) -> Dict[str, Any]:
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def load_config(path: str | Path) -> SequencerConfig:
    return config_from_dict(_load_file(Path(path)))
