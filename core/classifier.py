"""
Ripeness classification and confidence scoring.

Open/Closed Principle: each capture modality gets its own classifier;
adding one does not change the others.

Single Responsibility: All classification logic is contained here.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from config_loader import get_default_config

WEAK_SIGNAL_MESSAGE = "signal too weak"
SILENCE_MESSAGE = "silence"


def clamp_confidence(value: float) -> float:
    """Clamp a confidence score into [0, 1]."""
    return min(1.0, max(0.0, value))


class AnalysisStatus(str, Enum):
    OK = "ok"
    WEAK_SIGNAL = "weak_signal"
    SILENCE = "silence"


@dataclass(frozen=True)
class ThresholdSettings:
    """Caller-supplied ripeness thresholds."""
    freq_min: float = 60.0
    freq_max: float = 180.0
    decay_threshold_ms: float = 120.0
    # Independent of the hard weak-signal and silence floors
    min_amplitude: float = 0.05

    def __post_init__(self):
        if self.freq_min < 0 or self.freq_max < self.freq_min:
            raise ValueError(
                f"Invalid frequency band: [{self.freq_min}, {self.freq_max}] Hz"
            )
        if self.decay_threshold_ms < 0:
            raise ValueError(f"decay_threshold_ms must be non-negative, got {self.decay_threshold_ms}")
        if self.min_amplitude < 0:
            raise ValueError(f"min_amplitude must be non-negative, got {self.min_amplitude}")

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ThresholdSettings":
        """Build settings from the "thresholds" config section."""
        thresholds = (config or get_default_config())["thresholds"]
        return cls(
            freq_min=float(thresholds["freq_min"]),
            freq_max=float(thresholds["freq_max"]),
            decay_threshold_ms=float(thresholds["decay_threshold_ms"]),
            min_amplitude=float(thresholds["min_amplitude"]),
        )


@dataclass(frozen=True)
class ThumpFeatures:
    """Features extracted from one thump."""
    frequency: float  # Hz
    amplitude: float  # normalized peak
    decay_time_ms: float


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis call."""
    frequency: float
    amplitude: float
    decay_time_ms: float
    is_ripe: bool
    confidence: float
    debug: Optional[str] = None
    status: AnalysisStatus = AnalysisStatus.OK
    source: str = "buffer"

    @property
    def is_conclusive(self) -> bool:
        """False when the input carried too little energy to judge."""
        return self.status is AnalysisStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["status"] = self.status.value
        return row


def inconclusive_result(amplitude: float, status: AnalysisStatus, source: str) -> AnalysisResult:
    """Result for a capture too quiet to analyze."""
    message = SILENCE_MESSAGE if status is AnalysisStatus.SILENCE else WEAK_SIGNAL_MESSAGE
    return AnalysisResult(
        frequency=0.0,
        amplitude=amplitude,
        decay_time_ms=0.0,
        is_ripe=False,
        confidence=0.0,
        debug=message,
        status=status,
        source=source,
    )


class Classifier(ABC):
    """Abstract base class for ripeness classifiers."""

    source = ""

    @abstractmethod
    def classify(self, features: ThumpFeatures, settings: ThresholdSettings) -> Tuple[bool, float]:
        """
        Judge ripeness from extracted features.

        Args:
            features: Extracted thump features
            settings: Caller thresholds

        Returns:
            Tuple of (is_ripe, confidence)
        """
        pass

    def describe(self, features: ThumpFeatures) -> str:
        return f"Freq: {features.frequency:.1f}Hz, Decay: {features.decay_time_ms:.0f}ms"

    def build_result(self, features: ThumpFeatures, settings: ThresholdSettings) -> AnalysisResult:
        is_ripe, confidence = self.classify(features, settings)
        return AnalysisResult(
            frequency=features.frequency,
            amplitude=features.amplitude,
            decay_time_ms=features.decay_time_ms,
            is_ripe=is_ripe,
            confidence=confidence,
            debug=self.describe(features),
            source=self.source,
        )


class BufferClassifier(Classifier):
    """
    Classifier for features measured from PCM samples.

    Ripe needs the dominant frequency inside the configured band and a decay
    at least as long as the threshold. Confidence starts at 0.5, gains 0.2
    for the band and 0.3 for the decay, and loses 0.4 when the thump dies out
    faster than fast_decay_ms.
    """

    source = "buffer"
    BASE = 0.5
    FREQ_BONUS = 0.2
    DECAY_BONUS = 0.3
    FAST_DECAY_PENALTY = 0.4

    def __init__(self, fast_decay_ms: float = 50.0):
        self.fast_decay_ms = fast_decay_ms

    def classify(self, features: ThumpFeatures, settings: ThresholdSettings) -> Tuple[bool, float]:
        freq_ok = settings.freq_min <= features.frequency <= settings.freq_max
        decay_ok = features.decay_time_ms >= settings.decay_threshold_ms

        confidence = self.BASE
        if freq_ok:
            confidence += self.FREQ_BONUS
        if decay_ok:
            confidence += self.DECAY_BONUS
        if features.decay_time_ms < self.fast_decay_ms:
            confidence -= self.FAST_DECAY_PENALTY

        return freq_ok and decay_ok, clamp_confidence(confidence)

    def describe(self, features: ThumpFeatures) -> str:
        text = super().describe(features)
        if features.decay_time_ms < self.fast_decay_ms:
            text += " (decays too fast)"
        return text


class MeteringClassifier(Classifier):
    """
    Classifier for features estimated from metering readings.

    The frequency is a placeholder, so only the decay decides ripeness.
    """

    source = "metering"
    BASE = 0.4
    DECAY_BONUS = 0.2
    STRONG_PEAK_BONUS = 0.2

    def __init__(self, strong_peak: float = 0.1):
        self.strong_peak = strong_peak

    def classify(self, features: ThumpFeatures, settings: ThresholdSettings) -> Tuple[bool, float]:
        decay_ok = features.decay_time_ms >= settings.decay_threshold_ms

        confidence = self.BASE
        if decay_ok:
            confidence += self.DECAY_BONUS
        if features.amplitude > self.strong_peak:
            confidence += self.STRONG_PEAK_BONUS

        return decay_ok, clamp_confidence(confidence)

    def describe(self, features: ThumpFeatures) -> str:
        return f"[Estimated] {super().describe(features)}"


def create_classifier(source: str, config: Optional[Dict[str, Any]] = None) -> Classifier:
    """
    Factory function to create the classifier for a capture modality.

    Args:
        source: "buffer" or "metering"
        config: Configuration dictionary (defaults when None)

    Returns:
        Classifier instance
    """
    config = config or get_default_config()
    if source == "buffer":
        return BufferClassifier(fast_decay_ms=float(config["analysis"]["fast_decay_ms"]))
    if source == "metering":
        return MeteringClassifier(strong_peak=float(config["metering"]["strong_peak"]))
    raise ValueError(f"Unknown analysis source: {source}")
