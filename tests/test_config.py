"""
Tests for sequencer configuration.

Covers defaults, validation and loading from YAML/JSON files.
"""

import json

import pytest
from qrand.config import (
    Algorithm,
    ConfigError,
    SequencerConfig,
    config_from_dict,
    config_to_dict,
    load_config,
)
from qrand.model import AdvancePolicy


def test_defaults():
    """Defaults match the documented option values."""
    config = SequencerConfig()
    assert config.max_run == 2
    assert config.use_buttons_by_default is True
    assert config.algorithm is Algorithm.GENERAL
    assert config.debug_logging is False
    assert config.max_restarts == 10
    assert config.reject_streak_factor == 2
    assert config.seed is None


def test_default_policy():
    """use_buttons_by_default selects the advance policy."""
    assert SequencerConfig().default_policy is AdvancePolicy.EXPLICIT
    assert SequencerConfig(use_buttons_by_default=False).default_policy is AdvancePolicy.IMPLICIT


@pytest.mark.parametrize("options", [
    {"max_run": 0},
    {"max_restarts": -1},
    {"reject_streak_factor": 0},
])
def test_invalid_values_rejected(options):
    """Out-of-range values raise ConfigError."""
    with pytest.raises(ConfigError):
        SequencerConfig(**options)


def test_from_empty_dict():
    """A missing or empty mapping gives the defaults."""
    assert config_from_dict(None) == SequencerConfig()
    assert config_from_dict({}) == SequencerConfig()


def test_from_dict():
    """Values are coerced to their field types."""
    config = config_from_dict({"max_run": "3", "algorithm": "GENERAL", "seed": 5, "debug_logging": True})
    assert config.max_run == 3
    assert config.algorithm is Algorithm.GENERAL
    assert config.seed == 5
    assert config.debug_logging is True


def test_unknown_algorithm():
    """Only the general algorithm is accepted."""
    with pytest.raises(ConfigError, match="zep"):
        config_from_dict({"algorithm": "zep"})


def test_non_numeric_value():
    """Non-numeric integers raise ConfigError."""
    with pytest.raises(ConfigError):
        config_from_dict({"max_run": "two"})


def test_to_dict_round_trip():
    """config_to_dict output loads back unchanged."""
    config = SequencerConfig(max_run=1, use_buttons_by_default=False, seed=9)
    assert config_from_dict(config_to_dict(config)) == config


def test_load_yaml(tmp_path):
    """.yaml files are read with PyYAML."""
    path = tmp_path / "sequencer.yaml"
    path.write_text("max_run: 1\nuse_buttons_by_default: false\n")
    config = load_config(path)
    assert config.max_run == 1
    assert config.use_buttons_by_default is False


def test_load_empty_yaml(tmp_path):
    """An empty YAML file gives the defaults."""
    path = tmp_path / "sequencer.yml"
    path.write_text("")
    assert load_config(path) == SequencerConfig()


def test_load_json(tmp_path):
    """Other suffixes are read as JSON."""
    path = tmp_path / "sequencer.json"
    path.write_text(json.dumps({"max_run": 4, "max_restarts": 3}))
    config = load_config(str(path))
    assert config.max_run == 4
    assert config.max_restarts == 3


@pytest.mark.parametrize("raw,expected", [
    ("false", False),
    ("False", False),
    ("no", False),
    ("true", True),
    ("yes", True),
])
def test_boolean_strings(raw, expected):
    """Boolean flags accept the usual spellings as strings."""
    config = config_from_dict({"debug_logging": raw, "use_buttons_by_default": raw})
    assert config.debug_logging is expected
    assert config.use_buttons_by_default is expected


@pytest.mark.parametrize("raw", ["maybe", 2, [True]])
def test_invalid_boolean(raw):
    """Anything else is rejected, naming the option."""
    with pytest.raises(ConfigError, match="debug_logging"):
        config_from_dict({"debug_logging": raw})


@pytest.mark.parametrize("raw", [["max_run", 2], "max_run: 2", 3])
def test_non_mapping_rejected(raw):
    """The configuration itself must be a mapping."""
    with pytest.raises(ConfigError, match="mapping"):
        config_from_dict(raw)


def test_load_json_string_boolean(tmp_path):
    """A quoted "false" in JSON turns the option off."""
    path = tmp_path / "sequencer.json"
    path.write_text(json.dumps({"use_buttons_by_default": "false"}))
    assert load_config(path).use_buttons_by_default is False
