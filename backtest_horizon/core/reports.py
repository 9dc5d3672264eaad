# backtest_horizon/core/reports.py
from __future__ import annotations
from dataclasses import asdict
import math
from pathlib import Path
from typing import Literal, Sequence
import pandas as pd

from .model import PositionFileResult, VaultFileResult

ReportFormat = Literal["csv", "json", "both", "none"]

NA_TEXT = "N/A"

VAULT_COLUMNS = [
    "file_name", "highest_profit", "lowest_profit", "total_fee_returned",
    "total_gas_fee", "final_total_value_usd",
]
POSITION_COLUMNS = ["file_name", "daily_out_of_range_count", "avg_price_range_last_30_days"]

def format_value(value: float, prefix: str = "", suffix: str = "") -> str:
    """Raw value with optional decoration; N/A for the unavailable sentinel."""
    if value is None or not math.isfinite(value):
        return NA_TEXT
    return f"{prefix}{value}{suffix}"

def results_dataframe(results: Sequence[VaultFileResult] | Sequence[PositionFileResult]) -> pd.DataFrame:
    """One row per file; metric columns in snake_case."""
    rows = [{"file_name": r.file_name, **asdict(r.results)} for r in results]
    if results and isinstance(results[0], PositionFileResult):
        return pd.DataFrame(rows, columns=POSITION_COLUMNS)
    return pd.DataFrame(rows, columns=VAULT_COLUMNS)

def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8", na_rep=NA_TEXT)
    print(f"[OK] wrote report: {title} → {out_csv}")

def _write_json(df_out: pd.DataFrame, out_json: Path, title: str) -> None:
    # NaN is written as null
    out_json.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_json(out_json, orient="records", indent=2)
    print(f"[OK] wrote report: {title} → {out_json}")

def write_report(results,
                 out_base: Path,
                 title: str,
                 fmt: ReportFormat = "csv") -> None:
    """
    Write report(s) in the requested format.
    - out_base is a *base path without extension* (e.g., .../vault_results)
    - fmt: "csv" | "json" | "both" | "none"
    """
    if not results or fmt == "none":
        return
    df_out = results_dataframe(results)

    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("json", "both"):
        _write_json(df_out, out_base.with_suffix(".json"), title)
