#!/usr/bin/env python3
"""Batch-analyze a directory of thump recordings and export results to CSV."""
import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from joblib import Parallel, delayed
import pandas as pd

import config_loader
from logger import get_logger, log_analysis_settings, setup_logging
from core import (
    AnalysisResult,
    DecodeError,
    ThresholdSettings,
    analyze_wav,
    results_to_dataframe,
    save_results_csv,
    summarize_results,
)

log = get_logger(__name__)


def find_clips(clips_dir: Path, pattern: str = "*.wav") -> List[Path]:
    """Return WAV clips under clips_dir, sorted by path."""
    return sorted(p for p in clips_dir.rglob(pattern) if p.is_file())


def _analyze_one(
    clip: Path,
    settings: ThresholdSettings,
    config: Dict[str, Any],
) -> Tuple[str, Optional[AnalysisResult], Optional[str]]:
    try:
        return str(clip), analyze_wav(clip, settings, config), None
    except DecodeError as e:
        return str(clip), None, str(e)


def analyze_clips(
    clips_dir: Path,
    config_path: Optional[Path] = None,
    output_file: Optional[Path] = Path("clip_analysis.csv"),
    n_jobs: int = 1,
) -> pd.DataFrame:
    """
    Analyze every WAV clip under clips_dir.

    Clips are independent, so they run on a joblib thread pool when
    n_jobs != 1.
    Undecodable clips are logged and left out of the table.

    Args:
        clips_dir: Directory to search recursively
        config_path: Path to config.json
        output_file: CSV destination (None to skip writing)
        n_jobs: joblib worker count (-1 for all cores)

    Returns:
        Results DataFrame
    """
    config = config_loader.load_config(config_path)
    settings = ThresholdSettings.from_config(config)
    log_analysis_settings(log, config)

    clips = find_clips(clips_dir)
    if not clips:
        log.info(f"No WAV clips found in {clips_dir}")
        return results_to_dataframe([])

    log.info(f"Analyzing {len(clips)} clips from {clips_dir} (n_jobs={n_jobs})")

    outcomes = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(_analyze_one)(clip, settings, config) for clip in clips
    )

    results = []
    for clip, result, error in outcomes:
        if error is not None:
            log.warning(f"Skipping {clip}: {error}")
            continue
        results.append((clip, result))

    df = results_to_dataframe(results)
    if output_file is not None:
        save_results_csv(df, output_file)
        log.info(f"Saved analysis of {len(df)} clips to {output_file}")
    return df


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Batch thump analysis")
    parser.add_argument("clips_dir", type=Path, help="Directory of WAV clips")
    parser.add_argument("--config", type=Path, help="Path to config.json file")
    parser.add_argument("--output", type=Path, default=Path("clip_analysis.csv"), help="Output CSV")
    parser.add_argument("--jobs", type=int, default=1, help="Parallel workers (-1 for all cores)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode (verbose logging)")
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    if not args.clips_dir.is_dir():
        log.error(f"Not a directory: {args.clips_dir}")
        return 1

    try:
        df = analyze_clips(args.clips_dir, args.config, args.output, args.jobs)
    except ValueError as e:
        log.error(str(e))
        return 1

    print(summarize_results(df))
    return 0


if __name__ == "__main__":
    sys.exit(main())
