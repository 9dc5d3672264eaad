# backtest_horizon/main.py
from __future__ import annotations
import argparse
import logging
from pathlib import Path
import sys
import yaml

from .core.classify import configure_from_config
from .core.model import BatchReport
from .core.pipeline import ResultStore
from .core.reports import format_value, write_report
from .loaders import csv_loader
from .utils.detect import discover_inputs

DEFAULT_CONFIG = Path(__file__).resolve().parent / "config.yaml"

def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def _print_results(report: BatchReport) -> None:
    if report.vault_results:
        print("== Vault Analytics")
        for r in report.vault_results:
            v = r.results
            print(f"  {r.file_name}: highest profit {format_value(v.highest_profit, '$')}, "
                  f"lowest profit {format_value(v.lowest_profit, '$')}, "
                  f"total fee returned {format_value(v.total_fee_returned, '$')}, "
                  f"total gas fee {format_value(v.total_gas_fee, '$')}, "
                  f"final total value {format_value(v.final_total_value_usd, '$')}")
    if report.position_results:
        print("== Position Analytics")
        for r in report.position_results:
            p = r.results
            print(f"  {r.file_name}: daily out-of-range count {format_value(p.daily_out_of_range_count)}, "
                  f"avg. price range {format_value(p.avg_price_range_last_30_days, suffix='%')}")

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Summary metrics for vault and position CSV exports.")
    ap.add_argument("inputs", nargs="*", help="CSV files, ZIP archives or folders (overrides input.path)")
    ap.add_argument("--config", type=Path, default=DEFAULT_CONFIG)
    args = ap.parse_args(argv)

    # ---------- config ----------
    cfg = load_config(args.config)
    log_cfg = cfg.get("logging") or {}
    logging.basicConfig(level=str(log_cfg.get("level", "INFO")).upper(),
                        format="%(levelname)s %(name)s: %(message)s")
    verbose = bool(log_cfg.get("verbose", True))
    configure_from_config(cfg)

    in_cfg = cfg.get("input") or {}
    in_paths = [Path(p).resolve() for p in (args.inputs or [in_cfg.get("path", ".")])]
    recurse = bool(in_cfg.get("recurse", True))
    out_root = Path((cfg.get("output") or {}).get("root", "out")).resolve()
    fmt = str((cfg.get("reports") or {}).get("format", "csv")).lower()

    if verbose:
        print(f"[cfg] input={', '.join(str(p) for p in in_paths)} (recurse={recurse})")
        print(f"[cfg] output={out_root} (format={fmt})")

    # ---------- discover ----------
    detected = discover_inputs(*in_paths, recurse=recurse)
    if not detected:
        print(f"[INFO] No CSV/ZIP(CSV) inputs found under: {', '.join(str(p) for p in in_paths)}")
        return 0
    if verbose:
        kinds: dict[str, int] = {}
        for d in detected:
            kinds[d.kind] = kinds.get(d.kind, 0) + 1
        print(f"[detector] found {len(detected)} inputs → {kinds}")

    uploads = []
    for item in detected:
        try:
            uploads.extend(csv_loader.load(item))
        except Exception as e:
            print(f"[WARN] failed to open {item.path.name}: {e}")

    # ---------- pipeline ----------
    store = ResultStore()
    report = store.process(uploads, cfg)
    if verbose:
        for w in report.warnings:
            print(f"[WARN] {w}")
        print(f"[summary] {len(report.vault_results)} vault and "
              f"{len(report.position_results)} position result(s) from {len(uploads)} file(s)")

    _print_results(report)
    if report.error:
        print(f"Error: {report.error}", file=sys.stderr)

    # ---------- reports ----------
    write_report(list(report.vault_results), out_root / "vault_results", "vault", fmt=fmt)
    write_report(list(report.position_results), out_root / "position_results", "position", fmt=fmt)

    return 1 if report.error and not store.has_results else 0

if __name__ == "__main__":
    sys.exit(main())
