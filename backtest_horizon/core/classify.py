# backtest_horizon/core/classify.py
from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Iterable, Sequence

from .model import RawRecord, RecordKind

_LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class ClassifyCfg:
    vault_columns: tuple[str, ...] = ("total_return_usd", "accumulated_fee_earned")
    position_columns: tuple[str, ...] = ("trigger_reason", "position_width_percentage")

# ----- default (used when no ClassifyCfg is passed) -----
_DEFAULT = ClassifyCfg()

def _columns_from(value, default: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        cols = tuple(str(c).strip() for c in value if str(c).strip())
        if cols:
            return cols
    return default

def classify_cfg_from_config(cfg: dict | None) -> ClassifyCfg:
    """Required columns from the ``classification`` section; missing keys use the built-in defaults."""
    cls = (cfg or {}).get("classification") or {}
    base = ClassifyCfg()
    return ClassifyCfg(
        vault_columns=_columns_from(cls.get("vault_required_columns"), base.vault_columns),
        position_columns=_columns_from(cls.get("position_required_columns"), base.position_columns),
    )

def configure_from_config(cfg: dict) -> None:
    """
    Optional: call once at startup to change the module default from config.yaml.
    Batches pass their own ClassifyCfg and never touch this.
    """
    global _DEFAULT
    _DEFAULT = classify_cfg_from_config(cfg)

def classify_columns(columns: Iterable[str], cfg: ClassifyCfg | None = None) -> RecordKind:
    """
    Decide the record shape from a header-derived column set.

    Order:
      1) Vault if every vault column is present (wins when both shapes match)
      2) Position if every position column is present
      3) Else: unknown
    """
    cfg = cfg or _DEFAULT
    present = set(columns)

    if all(c in present for c in cfg.vault_columns):
        _LOG.debug("vault by columns %s", cfg.vault_columns)
        return "vault"

    if all(c in present for c in cfg.position_columns):
        _LOG.debug("position by columns %s", cfg.position_columns)
        return "position"

    _LOG.debug("no known shape in columns %s", sorted(present))
    return "unknown"

def classify_records(records: Sequence[RawRecord], cfg: ClassifyCfg | None = None) -> RecordKind:
    if not records:
        return "unknown"
    return classify_columns(records[0].keys(), cfg)
