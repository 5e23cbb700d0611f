#!/usr/bin/env python3
"""Configuration loader for thump check."""
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from logger import get_logger

log = get_logger(__name__)

SPECTRUM_METHODS = ("dft", "fft")


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "sample_rate": 44100,
            "header_bytes": 44
        },
        "analysis": {
            "fft_size": 2048,
            "spectrum_max_freq_hz": 500.0,
            "search_min_freq_hz": 60.0,
            "search_max_freq_hz": 200.0,
            "weak_signal_floor": 0.05,
            "decay_window_ms": 300.0,
            "decay_ratio": 0.3,
            "envelope_smoothing": 0.9,
            "min_decay_samples": 200,
            "fast_decay_ms": 50.0,
            "high_pass_hz": 0.0,
            "spectrum_method": "dft"
        },
        "metering": {
            "poll_interval_ms": 50.0,
            "silence_floor": 0.001,
            "decay_ratio": 0.3,
            "heuristic_frequency_hz": 125.0,
            "strong_peak": 0.1,
            "noise_floor_subtraction": False
        },
        "thresholds": {
            "freq_min": 60.0,
            "freq_max": 180.0,
            "decay_threshold_ms": 120.0,
            "min_amplitude": 0.05
        }
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate configuration structure and values."""
    defaults = get_default_config()

    # Check required top-level keys
    for key in defaults.keys():
        if key not in config:
            return False, f"Missing required config section: {key}"
        if not isinstance(config[key], dict):
            return False, f"Config section {key} must be an object"

    # Every numeric key must hold a number before any range check
    for section, values in defaults.items():
        for key, default in values.items():
            value = config[section].get(key)
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    return False, f"{section}.{key} must be true or false"
            elif _is_number(default) and not _is_number(value):
                return False, f"{section}.{key} must be a number"

    audio = config["audio"]
    if not _is_int(audio["sample_rate"]) or audio["sample_rate"] <= 0:
        return False, "audio.sample_rate must be a positive integer"
    if not _is_int(audio["header_bytes"]) or audio["header_bytes"] < 0:
        return False, "audio.header_bytes must be a non-negative integer"

    analysis = config["analysis"]
    if not _is_int(analysis["fft_size"]) or analysis["fft_size"] <= 0:
        return False, "analysis.fft_size must be a positive integer"
    if analysis["spectrum_max_freq_hz"] <= 0:
        return False, "analysis.spectrum_max_freq_hz must be positive"
    if not 0 <= analysis["search_min_freq_hz"] <= analysis["search_max_freq_hz"]:
        return False, "analysis.search_min_freq_hz must be between 0 and search_max_freq_hz"
    if analysis["search_max_freq_hz"] > analysis["spectrum_max_freq_hz"]:
        return False, "analysis.search_max_freq_hz must not exceed spectrum_max_freq_hz"
    if analysis["weak_signal_floor"] < 0:
        return False, "analysis.weak_signal_floor must be non-negative"
    if analysis["decay_window_ms"] <= 0:
        return False, "analysis.decay_window_ms must be positive"
    if not 0 < analysis["decay_ratio"] < 1:
        return False, "analysis.decay_ratio must be between 0 and 1"
    if not 0 <= analysis["envelope_smoothing"] < 1:
        return False, "analysis.envelope_smoothing must be in [0, 1)"
    if not _is_int(analysis["min_decay_samples"]) or analysis["min_decay_samples"] < 0:
        return False, "analysis.min_decay_samples must be a non-negative integer"
    if analysis["fast_decay_ms"] < 0:
        return False, "analysis.fast_decay_ms must be non-negative"
    if analysis["high_pass_hz"] < 0:
        return False, "analysis.high_pass_hz must be non-negative"
    if analysis.get("spectrum_method") not in SPECTRUM_METHODS:
        return False, f"analysis.spectrum_method must be one of {', '.join(SPECTRUM_METHODS)}"

    metering = config["metering"]
    if metering["poll_interval_ms"] <= 0:
        return False, "metering.poll_interval_ms must be positive"
    if metering["silence_floor"] < 0:
        return False, "metering.silence_floor must be non-negative"
    if not 0 < metering["decay_ratio"] < 1:
        return False, "metering.decay_ratio must be between 0 and 1"
    if metering["heuristic_frequency_hz"] <= 0:
        return False, "metering.heuristic_frequency_hz must be positive"
    if metering["strong_peak"] < 0:
        return False, "metering.strong_peak must be non-negative"

    thresholds = config["thresholds"]
    if thresholds["freq_min"] < 0 or thresholds["freq_max"] < thresholds["freq_min"]:
        return False, "thresholds.freq_min must be non-negative and not above thresholds.freq_max"
    if thresholds["decay_threshold_ms"] < 0:
        return False, "thresholds.decay_threshold_ms must be non-negative"
    if thresholds["min_amplitude"] < 0:
        return False, "thresholds.min_amplitude must be non-negative"

    return True, None


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file, merging with defaults.

    Args:
        config_path: Path to config file. If None, looks for config.json in current directory.

    Returns:
        Merged configuration dictionary.

    Raises:
        ValueError: If config is invalid.
    """
    defaults = get_default_config()

    if config_path is None:
        config_path = Path("config.json")

    if not config_path.exists():
        log.info(f"Config file {config_path} not found, using defaults")
        return defaults

    try:
        with config_path.open() as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Cannot read config file {config_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    # Deep merge with defaults
    merged = _deep_merge(defaults, config)

    is_valid, error_msg = validate_config(merged)
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error_msg}")

    log.info(f"Loaded configuration from {config_path}")
    return merged


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get nested config value using dot notation.

    Example: get_config_value(config, "analysis.fft_size")
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
