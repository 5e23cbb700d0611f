"""
Thump analysis pipelines.

Two entry points share one output contract:
- analyze_buffer: decoded PCM samples (frequency, amplitude and decay)
- analyze_metering: coarse dB readings when PCM access is unavailable
  (decay only; the frequency is a fixed placeholder)

Every call is a single synchronous pass with no retained state, so calls on
independent inputs may run concurrently. Inputs are never modified.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union
import numpy as np

from config_loader import get_default_config
from logger import get_logger

from .audio import ByteSource, load_wav_samples
from .classifier import (
    AnalysisResult,
    AnalysisStatus,
    ThresholdSettings,
    ThumpFeatures,
    create_classifier,
    inconclusive_result,
)
from .features import (
    compute_band_spectrum,
    db_to_amplitude,
    dominant_frequency,
    estimate_decay_samples,
    find_peak,
    hann_window,
    high_pass_filter,
    metering_decay_count,
    samples_to_ms,
    select_fft_segment,
    subtract_noise_floor,
)

log = get_logger(__name__)

Samples = Union[np.ndarray, Sequence[float]]


def _as_samples(samples: Samples) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected a 1-D mono buffer, got shape {x.shape}")
    if not np.all(np.isfinite(x)):
        raise ValueError("Sample buffer contains NaN or infinite values")
    return x


def _as_readings(db_readings: Samples) -> np.ndarray:
    x = np.asarray(db_readings, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected a 1-D series of dB readings, got shape {x.shape}")
    if np.any(np.isnan(x)):
        raise ValueError("Metering series contains NaN readings")
    return x


def analyze_buffer(
    samples: Samples,
    settings: Optional[ThresholdSettings] = None,
    config: Optional[Dict[str, Any]] = None,
    sample_rate: Optional[int] = None,
) -> AnalysisResult:
    """
    Classify a thump from mono PCM samples.

    Args:
        samples: Mono samples in [-1, 1]
        settings: Ripeness thresholds (config "thresholds" when None)
        config: Configuration dictionary (defaults when None)
        sample_rate: Overrides audio.sample_rate

    Returns:
        AnalysisResult; WEAK_SIGNAL status when the peak is below the floor

    Raises:
        ValueError: If samples are not a finite 1-D buffer,
            or sample_rate is not positive
    """
    config = config or get_default_config()
    settings = settings or ThresholdSettings.from_config(config)
    analysis = config["analysis"]
    if sample_rate is None:
        sample_rate = config["audio"]["sample_rate"]
    elif sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    x = _as_samples(samples)
    if analysis["high_pass_hz"] > 0 and len(x) > 0:
        x = high_pass_filter(x, analysis["high_pass_hz"], sample_rate)

    peak_amp, peak_index = find_peak(x)
    if peak_amp < analysis["weak_signal_floor"]:
        log.info(f"Peak {peak_amp:.4f} below weak-signal floor; skipping analysis")
        return inconclusive_result(peak_amp, AnalysisStatus.WEAK_SIGNAL, "buffer")

    segment = select_fft_segment(x, peak_index, analysis["fft_size"])
    windowed = segment * hann_window(len(segment))
    spectrum = compute_band_spectrum(
        windowed,
        sample_rate,
        analysis["spectrum_max_freq_hz"],
        method=analysis["spectrum_method"],
    )
    frequency = dominant_frequency(
        spectrum,
        sample_rate / len(segment),
        analysis["search_min_freq_hz"],
        analysis["search_max_freq_hz"],
    )

    window_samples = int(round(analysis["decay_window_ms"] / 1000.0 * sample_rate))
    decay_samples = estimate_decay_samples(
        x,
        peak_index,
        peak_amp,
        window_samples,
        ratio=analysis["decay_ratio"],
        smoothing=analysis["envelope_smoothing"],
        min_samples=analysis["min_decay_samples"],
    )
    decay_ms = samples_to_ms(decay_samples, sample_rate)

    log.debug(
        f"Buffer features: peak={peak_amp:.3f}@{peak_index}, "
        f"segment={len(segment)}, freq={frequency:.1f}Hz, decay={decay_ms:.1f}ms"
    )

    features = ThumpFeatures(frequency=frequency, amplitude=peak_amp, decay_time_ms=decay_ms)
    result = create_classifier("buffer", config).build_result(features, settings)
    log.info(f"Buffer verdict: ripe={result.is_ripe} confidence={result.confidence:.2f} ({result.debug})")
    return result


def analyze_metering(
    db_readings: Samples,
    settings: Optional[ThresholdSettings] = None,
    config: Optional[Dict[str, Any]] = None,
    interval_ms: Optional[float] = None,
) -> AnalysisResult:
    """
    Classify a thump from metering readings.

    The interval must match the recorder's real polling cadence, since the
    decay time is a reading count scaled by it.

    Args:
        db_readings: dB readings (about -160 to 0)
        settings: Ripeness thresholds (config "thresholds" when None)
        config: Configuration dictionary (defaults when None)
        interval_ms: Overrides metering.poll_interval_ms

    Returns:
        AnalysisResult; SILENCE status when the peak is below the floor

    Raises:
        ValueError: If readings are not a 1-D series or contain NaN,
            or interval_ms is not positive
    """
    config = config or get_default_config()
    settings = settings or ThresholdSettings.from_config(config)
    metering = config["metering"]
    if interval_ms is None:
        interval_ms = metering["poll_interval_ms"]
    elif interval_ms <= 0:
        raise ValueError(f"interval_ms must be positive, got {interval_ms}")

    amplitudes = db_to_amplitude(_as_readings(db_readings))
    if metering["noise_floor_subtraction"]:
        amplitudes = subtract_noise_floor(amplitudes)

    peak_amp, peak_index = find_peak(amplitudes)
    if peak_amp < metering["silence_floor"]:
        log.info(f"Metering peak {peak_amp:.5f} below silence floor; skipping analysis")
        return inconclusive_result(peak_amp, AnalysisStatus.SILENCE, "metering")

    decay_count = metering_decay_count(amplitudes, peak_index, peak_amp, metering["decay_ratio"])
    decay_ms = decay_count * interval_ms

    log.debug(
        f"Metering features: readings={len(amplitudes)}, peak={peak_amp:.3f}@{peak_index}, "
        f"decay={decay_count} readings ({decay_ms:.0f}ms)"
    )

    features = ThumpFeatures(
        frequency=float(metering["heuristic_frequency_hz"]),
        amplitude=peak_amp,
        decay_time_ms=float(decay_ms),
    )
    result = create_classifier("metering", config).build_result(features, settings)
    log.info(f"Metering verdict: ripe={result.is_ripe} confidence={result.confidence:.2f} ({result.debug})")
    return result


def analyze_wav(
    source: ByteSource,
    settings: Optional[ThresholdSettings] = None,
    config: Optional[Dict[str, Any]] = None,
) -> AnalysisResult:
    """
    Decode a WAV byte source and run the buffer pipeline.

    Raises:
        DecodeError: If the source cannot be read or holds no samples
    """
    config = config or get_default_config()
    audio = config["audio"]
    buffer = load_wav_samples(source, audio["header_bytes"], audio["sample_rate"])
    log.debug(f"Decoded {len(buffer)} samples ({buffer.duration_sec:.2f}s)")
    return analyze_buffer(buffer.samples, settings, config, buffer.sample_rate)


class ThumpAnalyzer:
    """
    Runs both pipelines against one configuration.

    Holds only read-only configuration, so one instance can serve
    concurrent callers.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 settings: Optional[ThresholdSettings] = None):
        """
        Initialize analyzer.

        Args:
            config: Configuration dictionary (defaults when None)
            settings: Default thresholds (config "thresholds" when None)
        """
        self.config = config or get_default_config()
        self.settings = settings or ThresholdSettings.from_config(self.config)

    def analyze_buffer(self, samples: Samples,
                       settings: Optional[ThresholdSettings] = None) -> AnalysisResult:
        return analyze_buffer(samples, settings or self.settings, self.config)

    def analyze_metering(self, db_readings: Samples,
                         settings: Optional[ThresholdSettings] = None) -> AnalysisResult:
        return analyze_metering(db_readings, settings or self.settings, self.config)

    def analyze_file(self, path: Union[str, Path],
                     settings: Optional[ThresholdSettings] = None) -> AnalysisResult:
        return analyze_wav(Path(path), settings or self.settings, self.config)
