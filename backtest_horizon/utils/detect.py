# backtest_horizon/utils/detect.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal
import zipfile

DetectedKind = Literal["csv", "csvzip", "unknown"]

@dataclass(frozen=True)
class DetectedItem:
    path: Path
    kind: DetectedKind

def _zip_has_csv(p: Path) -> bool:
    try:
        with zipfile.ZipFile(p, "r") as zf:
            return any(n.lower().endswith(".csv") for n in zf.namelist())
    except (OSError, zipfile.BadZipFile):
        return False

def detect_kind(p: Path) -> DetectedKind:
    """'.csv' -> csv, '.zip' holding at least one CSV -> csvzip, anything else -> unknown."""
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix == ".zip" and p.is_file() and _zip_has_csv(p):
        return "csvzip"
    return "unknown"

def _candidates(root: Path, recurse: bool) -> Iterable[Path]:
    if root.is_file():
        return [root]
    return (p for p in (root.rglob("*") if recurse else root.iterdir()) if p.is_file())

def discover_inputs(*roots: Path, recurse: bool = True) -> list[DetectedItem]:
    """
    Known inputs under each root (a file is taken as-is, a folder is walked).
    Sorted by (kind, path); a path reachable from two roots is listed once.
    """
    seen: dict[Path, DetectedItem] = {}
    for root in roots:
        if not root.exists():
            continue
        for p in _candidates(root, recurse):
            kind = detect_kind(p)
            if kind != "unknown":
                resolved = p.resolve()
                seen.setdefault(resolved, DetectedItem(resolved, kind))
    return sorted(seen.values(), key=lambda d: (d.kind, str(d.path)))
