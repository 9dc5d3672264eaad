# backtest_horizon/core/pipeline.py
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
import logging
import threading
from typing import Sequence

from .classify import ClassifyCfg, classify_cfg_from_config, classify_records
from .model import (BatchReport, FileOutcome, PositionFileResult, UploadedFile,
                    VaultFileResult)
from .position_metrics import PositionCfg, compute_position_metrics, position_cfg_from_config
from .vault_metrics import compute_vault_metrics
from ..loaders.csv_loader import StructuralParseError, parse_table

_LOG = logging.getLogger(__name__)

def _empty_or_invalid(name: str, skipped: tuple[int, ...] = ()) -> FileOutcome:
    return FileOutcome(name, "error", error=f"File {name} is empty or invalid.", skipped_rows=skipped)

def process_file(upload: UploadedFile,
                 position_cfg: PositionCfg | None = None,
                 classify_cfg: ClassifyCfg | None = None) -> FileOutcome:
    """
    read -> parse -> classify -> metrics for a single file.
    Pure apart from reading the upload; any exception other than a structural
    parse failure propagates to the batch join.
    """
    name = upload.name
    text = upload.read()
    try:
        table = parse_table(text)
    except StructuralParseError as e:
        return FileOutcome(name, "error", error=f"Failed to parse {name}: {e}")

    records, skipped = table.records, table.skipped_rows
    if not records:
        return _empty_or_invalid(name, skipped)

    kind = classify_records(records, classify_cfg)
    if kind == "vault":
        vault = compute_vault_metrics(records)
        if vault is None:
            return _empty_or_invalid(name, skipped)
        return FileOutcome(name, kind, result=VaultFileResult(name, vault), skipped_rows=skipped)
    if kind == "position":
        position = compute_position_metrics(records, position_cfg)
        if position is None:
            return _empty_or_invalid(name, skipped)
        return FileOutcome(name, kind, result=PositionFileResult(name, position), skipped_rows=skipped)
    return FileOutcome(name, "unknown", skipped_rows=skipped)

def _combined_error(errors: list[str], unknown: list[str], failures: list[str]) -> str | None:
    parts = list(errors)
    if unknown:
        parts.append(f"Could not determine format for: {', '.join(unknown)}. Please check file columns.")
    if failures:
        parts.append(f"Failed to parse files. Please check file formats. Error: {'; '.join(failures)}")
    return "\n".join(parts) if parts else None

def _max_workers(cfg: dict) -> int | None:
    raw = (cfg.get("pipeline") or {}).get("max_workers")
    if raw is None:
        return None
    try:
        n = int(raw)
    except (TypeError, ValueError):
        n = 0
    if n < 1:
        _LOG.warning("ignoring pipeline.max_workers=%r; using the executor default", raw)
        return None
    return n

def run_batch(uploads: Sequence[UploadedFile], cfg: dict | None = None) -> BatchReport:
    """
    Run every file's pipeline concurrently and join them in submission order.
    One file's failure never stops the others.
    """
    cfg = cfg or {}
    classify_cfg = classify_cfg_from_config(cfg)
    position_cfg = position_cfg_from_config(cfg)
    max_workers = _max_workers(cfg)

    outcomes: list[FileOutcome] = []
    failures: list[str] = []
    if uploads:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(process_file, up, position_cfg, classify_cfg): up for up in uploads}
            for future in futures:
                up = futures[future]
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    _LOG.exception("pipeline failed for %s", up.name)
                    failures.append(f"{up.name}: {e}")

    vault_results: list[VaultFileResult] = []
    position_results: list[PositionFileResult] = []
    errors: list[str] = []
    unknown: list[str] = []
    warnings: list[str] = []
    for o in outcomes:
        if o.skipped_rows:
            rows = ", ".join(str(n) for n in o.skipped_rows)
            warnings.append(f"{o.file_name}: skipped row(s) {rows} (column count differs from header)")
        if isinstance(o.result, VaultFileResult):
            vault_results.append(o.result)
        elif isinstance(o.result, PositionFileResult):
            position_results.append(o.result)
        elif o.kind == "unknown":
            unknown.append(o.file_name)
        elif o.error:
            errors.append(o.error)

    return BatchReport(
        vault_results=tuple(vault_results),
        position_results=tuple(position_results),
        error=_combined_error(errors, unknown, failures),
        warnings=tuple(warnings),
    )

class ResultStore:
    """
    Running session state: vault results, position results and the last
    batch's error. Append-only until reset().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._vault: list[VaultFileResult] = []
        self._position: list[PositionFileResult] = []
        self._error: str | None = None
        self._warnings: tuple[str, ...] = ()

    def merge(self, report: BatchReport) -> None:
        with self._lock:
            self._vault.extend(report.vault_results)
            self._position.extend(report.position_results)
            self._error = report.error
            self._warnings = report.warnings

    def reset(self) -> None:
        with self._lock:
            self._vault.clear()
            self._position.clear()
            self._error = None
            self._warnings = ()

    def snapshot(self) -> BatchReport:
        with self._lock:
            return BatchReport(tuple(self._vault), tuple(self._position), self._error, self._warnings)

    def process(self, uploads: Sequence[UploadedFile], cfg: dict | None = None) -> BatchReport:
        self.merge(run_batch(uploads, cfg))
        return self.snapshot()

    @property
    def has_results(self) -> bool:
        with self._lock:
            return bool(self._vault or self._position)
