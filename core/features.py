"""
Feature extraction for thump analysis.

This module provides the signal-processing steps shared by the analysis
pipelines: windowing, the banded spectrum, peak search, dominant frequency,
envelope decay, and the conversions used for metering readings.

Single Responsibility: Audio feature extraction.
"""
import math
from typing import Tuple
import numpy as np

from .audio import SAMPLE_RATE

SPECTRUM_MAX_FREQ_HZ = 500.0
FFT_SIZE = 2048
MIN_FREQ_HZ = 60.0
MAX_FREQ_HZ = 200.0


def hann_window(length: int) -> np.ndarray:
    """
    Hann window of the given length.

    w[i] = 0.5 * (1 - cos(2*pi*i / (L - 1))); a single-sample window is [1.0].
    """
    return np.hanning(length)


def max_spectrum_bin(n_samples: int, sample_rate: int = SAMPLE_RATE,
                     max_freq_hz: float = SPECTRUM_MAX_FREQ_HZ) -> int:
    """Highest bin index whose centre frequency is at or below max_freq_hz."""
    bin_width = sample_rate / n_samples
    return int(np.floor(max_freq_hz / bin_width))


def compute_band_spectrum(
    segment: np.ndarray,
    sample_rate: int = SAMPLE_RATE,
    max_freq_hz: float = SPECTRUM_MAX_FREQ_HZ,
    method: str = "dft",
) -> np.ndarray:
    """
    Compute the magnitude spectrum of a segment, limited to 0..max_freq_hz.

    Bins are sample_rate / N wide and only bins 0..floor(max_freq_hz / width)
    are returned. The "dft" method correlates the segment against each bin's
    cosine and sine directly, which needs no power-of-two length. The "fft"
    method slices a full real FFT to the same bins; both agree to within
    floating-point tolerance.

    Args:
        segment: Samples (any length, typically windowed)
        sample_rate: Sample rate in Hz
        max_freq_hz: Upper edge of the band to compute
        method: "dft" or "fft"

    Returns:
        Non-negative magnitudes, one per bin (empty for empty input)
    """
    x = np.asarray(segment, dtype=np.float64)
    n = x.shape[0]
    if n == 0:
        return np.zeros(0)

    max_bin = max_spectrum_bin(n, sample_rate, max_freq_hz)

    if method == "fft":
        return np.abs(np.fft.rfft(x))[:max_bin + 1]
    if method != "dft":
        raise ValueError(f"Unknown spectrum method: {method}")

    index = np.arange(n)
    spectrum = np.empty(max_bin + 1)
    for k in range(max_bin + 1):
        # Reduce k*n modulo N first to keep the angle small
        angle = 2.0 * np.pi * ((k * index) % n) / n
        real = np.dot(x, np.cos(angle))
        imag = -np.dot(x, np.sin(angle))
        spectrum[k] = np.sqrt(real * real + imag * imag)
    return spectrum


def find_peak(samples: np.ndarray) -> Tuple[float, int]:
    """
    Locate the sample with the largest absolute value.

    Returns:
        Tuple of (peak_amplitude, peak_index); (0.0, 0) for empty input.
        Ties resolve to the earliest index.
    """
    if len(samples) == 0:
        return 0.0, 0
    magnitudes = np.abs(samples)
    index = int(np.argmax(magnitudes))
    return float(magnitudes[index]), index


def select_fft_segment(samples: np.ndarray, peak_index: int,
                       fft_size: int = FFT_SIZE) -> np.ndarray:
    """
    Cut the analysis segment around the peak.

    The segment is min(len, fft_size) long and starts a quarter of that
    before the peak, rounded down when the quarter is fractional. It is
    clamped at both ends of the buffer, so it can come out shorter when the
    peak sits near the end.
    """
    window_size = min(len(samples), fft_size)
    start = max(0, int(math.floor(peak_index - window_size / 4)))
    end = min(len(samples), start + window_size)
    return samples[start:end]


def dominant_frequency(
    spectrum: np.ndarray,
    bin_width: float,
    min_freq_hz: float = MIN_FREQ_HZ,
    max_freq_hz: float = MAX_FREQ_HZ,
) -> float:
    """
    Frequency of the strongest non-DC bin inside [min_freq_hz, max_freq_hz].

    Returns 0.0 when no bin in the band has positive magnitude.
    """
    if len(spectrum) < 2:
        return 0.0

    bins = np.arange(1, len(spectrum))
    freqs = bins * bin_width
    in_band = (freqs >= min_freq_hz) & (freqs <= max_freq_hz)
    if not np.any(in_band):
        return 0.0

    band_mags = spectrum[1:][in_band]
    best = int(np.argmax(band_mags))
    if band_mags[best] <= 0:
        return 0.0
    return float(freqs[in_band][best])


def estimate_decay_samples(
    samples: np.ndarray,
    peak_index: int,
    peak_amplitude: float,
    window_samples: int,
    ratio: float = 0.3,
    smoothing: float = 0.9,
    min_samples: int = 200,
) -> int:
    """
    Count samples from the peak until the envelope falls below ratio * peak.

    A one-pole follower (env = env * smoothing + |x| * (1 - smoothing),
    starting from zero) tracks the raw samples after the peak. Offsets up to
    and including min_samples are ignored so the attack transient cannot end
    the search. If the envelope never drops, the whole window counts.

    Args:
        samples: Raw (unwindowed) samples
        peak_index: Index of the peak sample
        peak_amplitude: Absolute value at the peak
        window_samples: Maximum number of samples to follow
        ratio: Fraction of the peak that ends the decay
        smoothing: Envelope follower coefficient
        min_samples: Offsets to skip before a drop is accepted

    Returns:
        Decay length in samples
    """
    tail = np.abs(np.asarray(samples[peak_index:peak_index + window_samples], dtype=np.float64))
    target = peak_amplitude * ratio
    gain = 1.0 - smoothing

    envelope = 0.0
    for i, magnitude in enumerate(tail.tolist()):
        envelope = envelope * smoothing + magnitude * gain
        if i > min_samples and envelope < target:
            return i
    return len(tail)


def samples_to_ms(count: int, sample_rate: int = SAMPLE_RATE) -> float:
    """Convert a sample count to milliseconds."""
    return count / sample_rate * 1000.0


def high_pass_filter(samples: np.ndarray, cutoff_hz: float,
                     sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    One-pole RC high-pass filter to strip handling rumble below cutoff_hz.

    Returns a new array; the input is not modified.
    """
    x = np.asarray(samples, dtype=np.float64)
    if len(x) == 0:
        return x.copy()

    rc = 1.0 / (2.0 * np.pi * cutoff_hz)
    dt = 1.0 / sample_rate
    alpha = rc / (rc + dt)

    values = x.tolist()
    out = [values[0]]
    for i in range(1, len(values)):
        out.append(alpha * (out[-1] + values[i] - values[i - 1]))
    return np.array(out)


def db_to_amplitude(readings: np.ndarray) -> np.ndarray:
    """Convert dB readings to pseudo-linear amplitude via 10^(dB/20)."""
    return np.power(10.0, np.asarray(readings, dtype=np.float64) / 20.0)


def subtract_noise_floor(amplitudes: np.ndarray, lead_in: int = 3,
                         min_length: int = 6) -> np.ndarray:
    """
    Remove the ambient level measured in the first few readings.

    The floor is the quietest of the first lead_in readings; results are
    clipped at zero. Series shorter than min_length are returned unchanged.
    """
    if len(amplitudes) < min_length:
        return amplitudes
    floor = float(np.min(amplitudes[:lead_in]))
    return np.maximum(amplitudes - floor, 0.0)


def metering_decay_count(amplitudes: np.ndarray, peak_index: int,
                         peak_amplitude: float, ratio: float = 0.3) -> int:
    """
    Readings from the peak until one falls below ratio * peak.

    Returns the remaining series length when no reading drops that far.
    """
    tail = amplitudes[peak_index:]
    below = np.nonzero(tail < peak_amplitude * ratio)[0]
    if len(below) == 0:
        return len(tail)
    return int(below[0])
