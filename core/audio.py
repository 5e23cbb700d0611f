"""
Audio buffers and WAV decoding.

Single Responsibility: Turn a captured recording into samples the analysis
pipelines can read.
"""
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Union, BinaryIO, Sequence
import numpy as np

SAMPLE_RATE = 44100
WAV_HEADER_BYTES = 44
BYTES_PER_SAMPLE = 2
INT16_FULL_SCALE = 32768.0
METERING_INTERVAL_MS = 50.0

ByteSource = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]


class DecodeError(Exception):
    """Raised when a byte source cannot be read or holds no PCM samples."""


@dataclass(frozen=True)
class SampleBuffer:
    """A decoded mono waveform."""
    samples: np.ndarray  # float32 samples [-1.0, 1.0), read-only
    sample_rate: int = SAMPLE_RATE

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration_sec(self) -> float:
        """Duration of buffer in seconds."""
        return len(self.samples) / self.sample_rate

    @property
    def peak(self) -> float:
        """Peak absolute amplitude."""
        if len(self.samples) == 0:
            return 0.0
        return float(np.max(np.abs(self.samples)))

    @property
    def rms(self) -> float:
        """RMS amplitude."""
        if len(self.samples) == 0:
            return 0.0
        return float(np.sqrt(np.mean(self.samples.astype(np.float64) ** 2)))


@dataclass(frozen=True)
class MeteringSeries:
    """Decibel readings polled from the recorder at a fixed interval."""
    readings: Sequence[float]
    interval_ms: float = METERING_INTERVAL_MS

    def __len__(self) -> int:
        return len(self.readings)

    @property
    def duration_ms(self) -> float:
        """Span covered by the readings in milliseconds."""
        return len(self.readings) * self.interval_ms


def read_byte_source(source: ByteSource) -> bytes:
    """
    Read all bytes from a byte source.

    Args:
        source: Raw bytes, a path to a file, or a binary file-like object

    Returns:
        Contents as bytes

    Raises:
        DecodeError: If the source cannot be read
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as e:
            raise DecodeError(f"Cannot read WAV file {source}: {e}") from e

    read = getattr(source, "read", None)
    if read is None:
        raise DecodeError(f"Unsupported byte source type: {type(source).__name__}")

    try:
        data = read()
    except (OSError, ValueError, io.UnsupportedOperation) as e:
        raise DecodeError(f"Cannot read byte stream: {e}") from e

    if not isinstance(data, (bytes, bytearray)):
        raise DecodeError("Byte stream must be opened in binary mode")
    return bytes(data)


def decode_wav_bytes(data: bytes, header_bytes: int = WAV_HEADER_BYTES) -> np.ndarray:
    """
    Decode 16-bit mono PCM WAV bytes into float samples.

    The header is skipped as a fixed-size prefix; chunk tags are not checked,
    so files carrying extra chunks ahead of the data chunk decode incorrectly.
    A trailing odd byte is dropped.

    Args:
        data: Complete WAV file contents
        header_bytes: Size of the header prefix to skip

    Returns:
        Read-only float32 array in range [-1.0, 1.0)

    Raises:
        DecodeError: If no complete sample follows the header
    """
    sample_count = max(0, (len(data) - header_bytes) // BYTES_PER_SAMPLE)
    if sample_count == 0:
        raise DecodeError(
            f"No PCM samples after {header_bytes}-byte header ({len(data)} bytes total)"
        )

    pcm = np.frombuffer(data, dtype="<i2", count=sample_count, offset=header_bytes)
    samples = pcm.astype(np.float32) / np.float32(INT16_FULL_SCALE)
    samples.setflags(write=False)
    return samples


def load_wav_samples(
    source: ByteSource,
    header_bytes: int = WAV_HEADER_BYTES,
    sample_rate: int = SAMPLE_RATE,
) -> SampleBuffer:
    """
    Read and decode a WAV byte source.

    The sample rate is assumed, not read from the header.

    Raises:
        DecodeError: If the source is unreadable or holds no samples
    """
    data = read_byte_source(source)
    return SampleBuffer(samples=decode_wav_bytes(data, header_bytes), sample_rate=sample_rate)
