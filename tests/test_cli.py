"""
Tests for the command-line tools.

Tests thump_check.py and analyze_clips.py end to end on temporary files.
"""
import logging
import tempfile
import pytest
import numpy as np
from pathlib import Path

import analyze_clips
import thump_check
from core.reporting import load_results

from tests.conftest import create_metering_thump, create_ripe_thump, create_test_wav_file


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clips_dir():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


class TestParseMeteringText:
    """Test dB reading parsing."""

    def test_mixed_separators(self):
        assert thump_check.parse_metering_text("-10, -20\n-30 -40\n") == [-10.0, -20.0, -30.0, -40.0]

    def test_invalid_token(self):
        with pytest.raises(ValueError):
            thump_check.parse_metering_text("-10, loud")


class TestThumpCheckMain:
    """Test thump_check CLI."""

    def test_analyze_wav(self, clips_dir, capsys):
        wav = create_test_wav_file(create_ripe_thump(), clips_dir)
        csv_path = clips_dir / "out.csv"

        assert thump_check.main(["analyze", str(wav), "--csv", str(csv_path)]) == 0

        out = capsys.readouterr().out
        assert "Ripe: 1" in out
        df = load_results(csv_path)
        assert len(df) == 1
        assert df.loc[0, "source"] == "buffer"

    def test_meter_file(self, clips_dir, capsys):
        readings = clips_dir / "readings.txt"
        readings.write_text("\n".join(str(v) for v in create_metering_thump()))

        assert thump_check.main(["meter", str(readings)]) == 0
        assert "Ripe: 1" in capsys.readouterr().out

    def test_undecodable_file_fails(self, clips_dir, capsys):
        bad = clips_dir / "bad.wav"
        bad.write_bytes(b"RIFF")

        assert thump_check.main(["analyze", str(bad)]) == 1
        assert "No clips analyzed." in capsys.readouterr().out

    def test_missing_file_fails(self, clips_dir):
        assert thump_check.main(["meter", str(clips_dir / "missing.txt")]) == 1

    def test_invalid_config_fails(self, clips_dir):
        config = clips_dir / "config.json"
        config.write_text('{"analysis": {"fft_size": 0}}')
        wav = create_test_wav_file(create_ripe_thump(), clips_dir)
        assert thump_check.main(["analyze", str(wav), "--config", str(config)]) == 1

    @pytest.mark.parametrize("content", ['{"audio": 5}', '{"analysis": {"decay_window_ms": "300"}}'])
    def test_malformed_config_fails(self, clips_dir, content):
        config = clips_dir / "config.json"
        config.write_text(content)
        wav = create_test_wav_file(create_ripe_thump(), clips_dir)
        assert thump_check.main(["analyze", str(wav), "--config", str(config)]) == 1

    def test_config_directory_fails(self, clips_dir):
        wav = create_test_wav_file(create_ripe_thump(), clips_dir)
        assert thump_check.main(["analyze", str(wav), "--config", str(clips_dir)]) == 1


class TestAnalyzeClips:
    """Test batch analysis."""

    def test_directory(self, clips_dir):
        create_test_wav_file(create_ripe_thump(), clips_dir)
        create_test_wav_file(np.zeros(4410), clips_dir)
        (clips_dir / "broken.wav").write_bytes(b"RIFF")
        output = clips_dir / "analysis.csv"

        df = analyze_clips.analyze_clips(clips_dir, output_file=output)

        assert len(df) == 2
        assert sorted(df["status"]) == ["ok", "weak_signal"]
        assert output.exists()
        assert len(load_results(output)) == 2

    def test_parallel_matches_serial(self, clips_dir):
        for tau in (0.5, 1.0, 2.0):
            t = np.arange(22050) / 44100
            samples = np.exp(-t / tau) * (0.7 + 0.3 * np.cos(2 * np.pi * 125 * t))
            create_test_wav_file(samples, clips_dir)

        serial = analyze_clips.analyze_clips(clips_dir, output_file=None, n_jobs=1)
        parallel = analyze_clips.analyze_clips(clips_dir, output_file=None, n_jobs=2)
        assert serial.equals(parallel)

    def test_empty_directory(self, clips_dir):
        df = analyze_clips.analyze_clips(clips_dir, output_file=None)
        assert df.empty

    def test_main_rejects_non_directory(self, clips_dir):
        assert analyze_clips.main([str(clips_dir / "nope")]) == 1

    def test_main_rejects_malformed_config(self, clips_dir):
        create_test_wav_file(create_ripe_thump(), clips_dir)
        config = clips_dir / "config.json"
        config.write_text('{"metering": {"poll_interval_ms": "fast"}}')
        assert analyze_clips.main([str(clips_dir), "--config", str(config), "--output", str(clips_dir / "o.csv")]) == 1

    def test_main(self, clips_dir, capsys):
        create_test_wav_file(create_ripe_thump(), clips_dir)
        output = clips_dir / "out.csv"
        assert analyze_clips.main([str(clips_dir), "--output", str(output)]) == 0
        assert "Clips analyzed: 1" in capsys.readouterr().out
