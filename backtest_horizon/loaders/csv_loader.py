# backtest_horizon/loaders/csv_loader.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import logging
import re
import zipfile

from ..core.model import RawRecord, UploadedFile
from ..core.normalize import coerce_cell
from ..utils.detect import DetectedItem

_LOG = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
DELIMITER = ","


class StructuralParseError(ValueError):
    """Content has no header row plus at least one data row."""


@dataclass(frozen=True)
class ParsedTable:
    header: tuple[str, ...]
    records: list[RawRecord]
    skipped_rows: tuple[int, ...]   # 1-based, header is row 1


# ---------- parsing ----------
def parse_table(text: str) -> ParsedTable:
    """
    Split delimited text into loosely-typed records.

    - first line is the header (cells trimmed, order kept, duplicates not merged)
    - rows whose cell count differs from the header are skipped with a warning
    - every cell is coerced independently (see ``coerce_cell``)
    """
    lines = _LINE_BREAK.split(text.strip())
    if len(lines) < 2:
        raise StructuralParseError("CSV file must contain a header row and at least one data row.")

    header = tuple(h.strip() for h in lines[0].split(DELIMITER))
    records: list[RawRecord] = []
    skipped: list[int] = []

    for row_no, line in enumerate(lines[1:], start=2):
        values = line.split(DELIMITER)
        if len(values) != len(header):
            _LOG.warning("Row %d has a different number of columns than the header. Skipping.", row_no)
            skipped.append(row_no)
            continue
        records.append({key: coerce_cell(raw) for key, raw in zip(header, values)})

    return ParsedTable(header=header, records=records, skipped_rows=tuple(skipped))


def parse_csv(text: str) -> list[RawRecord]:
    return parse_table(text).records


# ---------- public loader ----------
def load_csv(path: Path) -> list[UploadedFile]:
    """A loose .csv file; content is read later, inside the pipeline."""
    return [UploadedFile(name=path.name, path=path)]


def load_zip(path: Path) -> list[UploadedFile]:
    """One UploadedFile per CSV member of a .zip, named ``archive.zip/member.csv``."""
    with zipfile.ZipFile(path, "r") as zf:
        members = sorted(m for m in zf.namelist() if m.lower().endswith(".csv"))
    if not members:
        _LOG.info("no CSV members in %s", path.name)
    return [UploadedFile(name=f"{path.name}/{m}", path=path, member=m) for m in members]


# detected kind -> loader
LOADERS = {
    "csv":    load_csv,
    "csvzip": load_zip,
}


def load(item: DetectedItem) -> list[UploadedFile]:
    loader = LOADERS.get(item.kind)
    if loader is None:
        raise ValueError(f"no loader for {item.kind}: {item.path.name}")
    return loader(item.path)
