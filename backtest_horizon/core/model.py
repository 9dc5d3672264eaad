# backtest_horizon/core/model.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Union
import zipfile

RecordKind = Literal["vault", "position", "unknown"]
OutcomeKind = Literal["vault", "position", "unknown", "error"]

NaN = float("nan")  # "value unavailable"

@dataclass(frozen=True)
class Numeric:
    value: float

@dataclass(frozen=True)
class Text:
    value: str

Cell = Union[Numeric, Text]
RawRecord = dict[str, Cell]   # keys follow header order

@dataclass(frozen=True)
class VaultResults:
    highest_profit: float
    lowest_profit: float
    total_fee_returned: float
    total_gas_fee: float
    final_total_value_usd: float

@dataclass(frozen=True)
class PositionResults:
    daily_out_of_range_count: float
    avg_price_range_last_30_days: float

@dataclass(frozen=True)
class VaultFileResult:
    file_name: str
    results: VaultResults

@dataclass(frozen=True)
class PositionFileResult:
    file_name: str
    results: PositionResults

@dataclass(frozen=True)
class UploadedFile:
    """
    One text resource to analyse. Content is either given inline (``text``)
    or read lazily from ``path`` (optionally a CSV ``member`` of a zip archive).
    """
    name: str
    text: str | None = None
    path: Path | None = None
    member: str | None = None

    def read(self) -> str:
        if self.text is not None:
            return self.text
        if self.path is None:
            raise ValueError(f"{self.name}: no content source")
        if self.member is not None:
            with zipfile.ZipFile(self.path, "r") as zf:
                return zf.read(self.member).decode("utf-8-sig")
        return self.path.read_text(encoding="utf-8-sig")

@dataclass(frozen=True)
class FileOutcome:
    file_name: str
    kind: OutcomeKind
    result: VaultFileResult | PositionFileResult | None = None
    error: str | None = None
    skipped_rows: tuple[int, ...] = ()

@dataclass(frozen=True)
class BatchReport:
    vault_results: tuple[VaultFileResult, ...] = ()
    position_results: tuple[PositionFileResult, ...] = ()
    error: str | None = None
    warnings: tuple[str, ...] = ()
