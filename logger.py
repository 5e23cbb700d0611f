#!/usr/bin/env python3
"""
Logging setup shared by the thump check tools.

The analysis modules only ask for a named logger; the command-line entry
points decide where records go and at which level.

Usage:
    from logger import get_logger
    log = get_logger(__name__)
    log.debug("Buffer features: ...")
    log.warning("Could not decode clip", exc_info=True)
"""
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# (section, key, label) for the settings that change a verdict
ANALYSIS_SETTINGS = (
    ("audio", "sample_rate", "Sample rate (Hz)"),
    ("analysis", "fft_size", "FFT size"),
    ("analysis", "spectrum_method", "Spectrum method"),
    ("analysis", "weak_signal_floor", "Weak-signal floor"),
    ("analysis", "decay_window_ms", "Decay window (ms)"),
    ("analysis", "high_pass_hz", "High-pass (Hz)"),
    ("metering", "poll_interval_ms", "Metering interval (ms)"),
    ("metering", "noise_floor_subtraction", "Noise floor subtraction"),
    ("thresholds", "freq_min", "Ripe freq min (Hz)"),
    ("thresholds", "freq_max", "Ripe freq max (Hz)"),
    ("thresholds", "decay_threshold_ms", "Ripe decay (ms)"),
)


class ColoredFormatter(logging.Formatter):
    """Level-coloured formatter for terminal handlers."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = DATE_FORMAT, use_color: bool = True):
        super().__init__(fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record):
        color = self.COLORS.get(record.levelname) if self.use_color else None
        if not color:
            return super().format(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The record is shared with the file handler
            record.levelname = levelname


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    debug: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Route log records to the console and, optionally, a file.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_file: Also append plain-text records here (parents are created)
        level: Log level name; unknown names fall back to INFO
        debug: Shortcut for level="DEBUG"
        stream: Console stream (stdout when None); colour only on a terminal

    Returns:
        Root logger
    """
    if debug:
        level = "DEBUG"
    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = stream or sys.stdout

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(ColoredFormatter(use_color=_is_terminal(stream)))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass __name__)."""
    return logging.getLogger(name)


def log_analysis_settings(logger: logging.Logger, config: Dict[str, Any]):
    """Log the settings a run is using, for reproducing a verdict later."""
    logger.debug("Analysis settings:")
    for section, key, label in ANALYSIS_SETTINGS:
        value = config.get(section, {}).get(key)
        logger.debug(f"  {label}: {value}")
