#!/usr/bin/env python3
"""Thump check: estimate fruit ripeness from a recorded thump."""
import argparse
import re
import sys
from pathlib import Path
from typing import List, Optional

import config_loader
from logger import get_logger, log_analysis_settings, setup_logging
from core import (
    DecodeError,
    ThumpAnalyzer,
    results_to_dataframe,
    save_results_csv,
    summarize_results,
)

log = get_logger(__name__)


def parse_metering_text(text: str) -> List[float]:
    """Parse dB readings separated by commas, whitespace or newlines."""
    tokens = [t for t in re.split(r"[,\s]+", text.strip()) if t]
    try:
        return [float(t) for t in tokens]
    except ValueError as e:
        raise ValueError(f"Invalid metering reading: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Thump Check - acoustic ripeness analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 thump_check.py analyze thump.wav             # Analyze a WAV recording
  python3 thump_check.py analyze a.wav b.wav --csv out.csv
  python3 thump_check.py meter readings.txt            # Analyze metering dB readings
  python3 thump_check.py analyze thump.wav --debug     # Verbose feature logging
        """
    )
    parser.add_argument("mode", choices=["analyze", "meter"], help="analyze: WAV files, meter: dB readings files")
    parser.add_argument("inputs", nargs="+", type=Path, help="Input files")
    parser.add_argument("--config", type=Path, help="Path to config.json file")
    parser.add_argument("--csv", type=Path, help="Write results to this CSV file")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode (verbose logging)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_file=args.log_file, debug=args.debug)

    try:
        config = config_loader.load_config(args.config)
    except ValueError as e:
        log.error(str(e))
        return 1
    log_analysis_settings(log, config)

    analyzer = ThumpAnalyzer(config)
    results = []
    failed = False

    for path in args.inputs:
        try:
            if args.mode == "analyze":
                result = analyzer.analyze_file(path)
            else:
                readings = parse_metering_text(path.read_text())
                result = analyzer.analyze_metering(readings)
        except (DecodeError, ValueError, OSError) as e:
            log.warning(f"{path}: {e}")
            failed = True
            continue
        results.append((str(path), result))

    df = results_to_dataframe(results)
    print(summarize_results(df))

    if args.csv:
        save_results_csv(df, args.csv)
        log.info(f"Wrote {len(df)} results to {args.csv}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
