"""
Tests for config_loader module.

Tests defaults, merging, validation, and dotted lookup.
"""
import json
import tempfile
import pytest
from pathlib import Path

import config_loader


def write_config(data) -> Path:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as tmp:
        if isinstance(data, str):
            tmp.write(data)
        else:
            json.dump(data, tmp)
        return Path(tmp.name)


class TestDefaults:
    """Test default configuration."""

    def test_defaults_are_valid(self):
        assert config_loader.validate_config(config_loader.get_default_config()) == (True, None)

    def test_default_constants(self):
        config = config_loader.get_default_config()
        assert config["audio"]["sample_rate"] == 44100
        assert config["audio"]["header_bytes"] == 44
        assert config["analysis"]["fft_size"] == 2048
        assert config["analysis"]["weak_signal_floor"] == 0.05
        assert config["metering"]["poll_interval_ms"] == 50.0
        assert config["metering"]["silence_floor"] == 0.001
        assert config["metering"]["heuristic_frequency_hz"] == 125.0

    def test_defaults_not_shared(self):
        first = config_loader.get_default_config()
        first["analysis"]["fft_size"] = 1
        assert config_loader.get_default_config()["analysis"]["fft_size"] == 2048


class TestLoadConfig:
    """Test loading from JSON."""

    def test_missing_file_returns_defaults(self):
        config = config_loader.load_config(Path("/nonexistent/config.json"))
        assert config == config_loader.get_default_config()

    def test_partial_override_is_merged(self):
        path = write_config({"thresholds": {"freq_max": 160}, "metering": {"poll_interval_ms": 20}})
        try:
            config = config_loader.load_config(path)
            assert config["thresholds"]["freq_max"] == 160
            assert config["thresholds"]["freq_min"] == 60.0
            assert config["metering"]["poll_interval_ms"] == 20
            assert config["metering"]["silence_floor"] == 0.001
        finally:
            path.unlink()

    def test_invalid_json(self):
        path = write_config("{not json")
        try:
            with pytest.raises(ValueError):
                config_loader.load_config(path)
        finally:
            path.unlink()

    def test_non_object_json(self):
        path = write_config([1, 2, 3])
        try:
            with pytest.raises(ValueError):
                config_loader.load_config(path)
        finally:
            path.unlink()

    @pytest.mark.parametrize("override", [
        {"audio": {"sample_rate": 0}},
        {"audio": {"header_bytes": -1}},
        {"analysis": {"fft_size": 0}},
        {"analysis": {"spectrum_method": "wavelet"}},
        {"analysis": {"decay_ratio": 1.5}},
        {"analysis": {"search_max_freq_hz": 800}},
        {"metering": {"poll_interval_ms": 0}},
        {"thresholds": {"freq_min": 200, "freq_max": 100}},
        {"thresholds": {"decay_threshold_ms": -1}},
        {"audio": 5},
        {"metering": [1, 2]},
        {"analysis": {"decay_window_ms": "300"}},
        {"audio": {"sample_rate": 44100.5}},
        {"audio": {"sample_rate": True}},
        {"analysis": {"min_decay_samples": 200.5}},
        {"analysis": {"fast_decay_ms": -5}},
        {"analysis": {"high_pass_hz": None}},
        {"metering": {"strong_peak": -0.1}},
        {"metering": {"heuristic_frequency_hz": 0}},
        {"metering": {"noise_floor_subtraction": "yes"}},
        {"thresholds": {"freq_max": "180"}},
    ])
    def test_invalid_values(self, override):
        path = write_config(override)
        try:
            with pytest.raises(ValueError):
                config_loader.load_config(path)
        finally:
            path.unlink()

    def test_unreadable_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            with pytest.raises(ValueError):
                config_loader.load_config(Path(tmp))

    def test_integral_float_where_float_expected(self):
        path = write_config({"analysis": {"decay_window_ms": 250}, "metering": {"strong_peak": 1}})
        try:
            config = config_loader.load_config(path)
            assert config["analysis"]["decay_window_ms"] == 250
        finally:
            path.unlink()


class TestValidateConfig:
    """Test structural validation."""

    def test_missing_section(self):
        config = config_loader.get_default_config()
        del config["metering"]
        ok, message = config_loader.validate_config(config)
        assert not ok
        assert "metering" in message

    def test_section_not_an_object(self):
        config = config_loader.get_default_config()
        config["audio"] = 5
        ok, message = config_loader.validate_config(config)
        assert not ok
        assert "audio" in message

    def test_missing_key_is_reported(self):
        config = config_loader.get_default_config()
        del config["analysis"]["decay_ratio"]
        ok, message = config_loader.validate_config(config)
        assert not ok
        assert "analysis.decay_ratio" in message

    def test_string_number_is_reported(self):
        config = config_loader.get_default_config()
        config["analysis"]["decay_window_ms"] = "300"
        assert config_loader.validate_config(config) == (False, "analysis.decay_window_ms must be a number")


class TestGetConfigValue:
    """Test dotted lookup."""

    def test_nested_value(self):
        config = config_loader.get_default_config()
        assert config_loader.get_config_value(config, "analysis.fft_size") == 2048

    def test_missing_returns_default(self):
        config = config_loader.get_default_config()
        assert config_loader.get_config_value(config, "analysis.nope", 7) == 7
        assert config_loader.get_config_value(config, "audio.sample_rate.deeper") is None
