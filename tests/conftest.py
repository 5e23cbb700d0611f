"""
Pytest configuration and shared fixtures.

This module provides:
- Common fixtures for test configuration
- Helper functions for synthetic thump signals and WAV files
- Constants used across tests
"""
import io
import sys
import tempfile
import wave
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import config_loader
import pytest
import numpy as np

from core.classifier import ThresholdSettings

# Test constants
TEST_SAMPLE_RATE = 44100
TEST_FREQUENCY = 125  # Hz
TEST_DURATION = 1.0  # seconds
INT16_FULL_SCALE = 32768.0


@pytest.fixture
def project_root_path():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config():
    """Default configuration."""
    return config_loader.get_default_config()


@pytest.fixture
def settings():
    """Default thresholds: 60-180 Hz band, 120 ms decay."""
    return ThresholdSettings(freq_min=60, freq_max=180, decay_threshold_ms=120)


# Helper functions for test data creation

def time_axis(duration: float = TEST_DURATION, sample_rate: int = TEST_SAMPLE_RATE) -> np.ndarray:
    return np.arange(int(sample_rate * duration)) / sample_rate


def create_decaying_tone(
    frequency: float = TEST_FREQUENCY,
    tau: float = 0.1,
    duration: float = TEST_DURATION,
    amplitude: float = 1.0,
    sample_rate: int = TEST_SAMPLE_RATE,
) -> np.ndarray:
    """
    Exponentially decaying cosine; the peak is the first sample.

    Args:
        frequency: Tone frequency in Hz
        tau: Decay time constant in seconds
        duration: Duration in seconds
        amplitude: Starting amplitude
        sample_rate: Sample rate in Hz

    Returns:
        float64 array of samples
    """
    t = time_axis(duration, sample_rate)
    return amplitude * np.exp(-t / tau) * np.cos(2 * np.pi * frequency * t)


def create_ripe_thump(duration: float = TEST_DURATION, tau: float = 2.0) -> np.ndarray:
    """
    Slowly decaying thump with a 125 Hz resonance riding on a body envelope.

    The signal never crosses zero, so the envelope follower tracks the slow
    decay instead of the oscillation.
    """
    t = time_axis(duration)
    return np.exp(-t / tau) * (0.7 + 0.3 * np.cos(2 * np.pi * TEST_FREQUENCY * t))


def to_int16(samples: np.ndarray) -> np.ndarray:
    return np.clip(np.round(samples * INT16_FULL_SCALE), -32768, 32767).astype("<i2")


def create_wav_bytes(samples: np.ndarray, sample_rate: int = TEST_SAMPLE_RATE) -> bytes:
    """Encode float samples as a mono 16-bit WAV (44-byte header)."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(to_int16(samples).tobytes())
    return buf.getvalue()


def create_test_wav_file(samples: np.ndarray, directory: Path = None) -> Path:
    """
    Write samples to a WAV file.

    Args:
        samples: Float samples in [-1, 1]
        directory: Target directory (system temp dir when None)

    Returns:
        Path to the WAV file
    """
    with tempfile.NamedTemporaryFile(suffix=".wav", delete=False, dir=directory) as tmp:
        tmp.write(create_wav_bytes(samples))
        return Path(tmp.name)


def create_metering_thump(peak_db: float = -10.0, floor_db: float = -40.0,
                          decay_readings: int = 40) -> list:
    """Readings rising to peak_db, then falling linearly in dB to floor_db."""
    rise = [-60.0, -40.0, -20.0]
    fall = np.linspace(peak_db, floor_db, decay_readings).tolist()
    return rise + [peak_db] + fall
