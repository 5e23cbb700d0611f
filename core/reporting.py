"""
Result tables and summary reports.

This module turns batches of analysis results into pandas tables, CSV files
and a plain-text summary.

Single Responsibility: Result data loading and report generation.
"""
from pathlib import Path
from typing import Iterable, Tuple
import pandas as pd

from .classifier import AnalysisResult

RESULT_COLUMNS = [
    "clip",
    "frequency",
    "amplitude",
    "decay_time_ms",
    "is_ripe",
    "confidence",
    "status",
    "source",
    "debug",
]


def results_to_dataframe(results: Iterable[Tuple[str, AnalysisResult]]) -> pd.DataFrame:
    """
    Build a results table.

    Args:
        results: (clip name, result) pairs

    Returns:
        DataFrame with one row per clip, columns in RESULT_COLUMNS order
    """
    rows = []
    for clip, result in results:
        row = result.to_dict()
        row["clip"] = clip
        rows.append(row)
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def save_results_csv(df: pd.DataFrame, output_file: Path) -> Path:
    """Write a results table to CSV, creating parent directories."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_file, index=False)
    return output_file


def load_results(results_file: Path) -> pd.DataFrame:
    """
    Load a results CSV file.

    Returns:
        DataFrame with results data, or empty DataFrame if file doesn't exist
    """
    if not results_file.exists():
        return pd.DataFrame(columns=RESULT_COLUMNS)

    df = pd.read_csv(results_file)
    df.columns = [c.strip() for c in df.columns]
    return df


def summarize_results(df: pd.DataFrame) -> str:
    """
    Generate a text summary of a results table.

    Inconclusive clips (weak signal or silence) are counted separately and
    left out of the ripe/unripe split.

    Returns:
        Formatted report text as string
    """
    lines = []
    lines.append("Thump Analysis Summary")
    lines.append("=" * 60)

    if df.empty:
        lines.append("No clips analyzed.")
        return "\n".join(lines)

    conclusive = df[df["status"] == "ok"]
    ripe_mask = conclusive["is_ripe"].astype(str).str.upper().isin(["TRUE", "1", "YES"])
    ripe = conclusive[ripe_mask]

    lines.append(f"Clips analyzed: {len(df)}")
    lines.append(f"Ripe: {len(ripe)}")
    lines.append(f"Not ripe: {len(conclusive) - len(ripe)}")
    lines.append(f"Inconclusive: {len(df) - len(conclusive)}")

    if not conclusive.empty:
        confidence = pd.to_numeric(conclusive["confidence"], errors="coerce")
        lines.append(f"Mean confidence: {confidence.mean():.2f}")
        lines.append("")
        lines.append(f"{'Clip':<30} {'Freq (Hz)':>10} {'Decay (ms)':>11} {'Ripe':>6} {'Conf':>6}")
        lines.append("-" * 67)

        ordered = conclusive.assign(confidence_float=confidence).sort_values(
            "confidence_float", ascending=False, na_position="last"
        )
        for _, row in ordered.iterrows():
            clip_name = Path(str(row["clip"])).name
            lines.append(
                f"{clip_name:<30} {float(row['frequency']):>10.1f} "
                f"{float(row['decay_time_ms']):>11.0f} {str(row['is_ripe']):>6} "
                f"{float(row['confidence']):>6.2f}"
            )

    lines.append("=" * 60)
    return "\n".join(lines)
