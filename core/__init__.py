"""
Core analysis engine for thump check.

Turns a captured thump (decoded PCM samples or metering dB readings) into a
ripeness verdict with a confidence score.
"""

from .audio import (
    SampleBuffer,
    MeteringSeries,
    DecodeError,
    read_byte_source,
    decode_wav_bytes,
    load_wav_samples,
    SAMPLE_RATE,
    WAV_HEADER_BYTES,
    INT16_FULL_SCALE,
    METERING_INTERVAL_MS,
)
from .features import (
    hann_window,
    compute_band_spectrum,
    find_peak,
    select_fft_segment,
    dominant_frequency,
    estimate_decay_samples,
    high_pass_filter,
    db_to_amplitude,
    FFT_SIZE,
)
from .classifier import (
    AnalysisResult,
    AnalysisStatus,
    ThresholdSettings,
    ThumpFeatures,
    Classifier,
    BufferClassifier,
    MeteringClassifier,
    create_classifier,
)
from .analyzer import (
    analyze_buffer,
    analyze_metering,
    analyze_wav,
    ThumpAnalyzer,
)
from .reporting import (
    results_to_dataframe,
    save_results_csv,
    load_results,
    summarize_results,
)

__all__ = [
    # Audio
    'SampleBuffer',
    'MeteringSeries',
    'DecodeError',
    'read_byte_source',
    'decode_wav_bytes',
    'load_wav_samples',
    'SAMPLE_RATE',
    'WAV_HEADER_BYTES',
    'INT16_FULL_SCALE',
    'METERING_INTERVAL_MS',
    # Features
    'hann_window',
    'compute_band_spectrum',
    'find_peak',
    'select_fft_segment',
    'dominant_frequency',
    'estimate_decay_samples',
    'high_pass_filter',
    'db_to_amplitude',
    'FFT_SIZE',
    # Classifier
    'AnalysisResult',
    'AnalysisStatus',
    'ThresholdSettings',
    'ThumpFeatures',
    'Classifier',
    'BufferClassifier',
    'MeteringClassifier',
    'create_classifier',
    # Analyzer
    'analyze_buffer',
    'analyze_metering',
    'analyze_wav',
    'ThumpAnalyzer',
    # Reporting
    'results_to_dataframe',
    'save_results_csv',
    'load_results',
    'summarize_results',
]
