# backtest_horizon/core/position_metrics.py
from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Sequence
import numpy as np
import pandas as pd

from .model import NaN, PositionResults, RawRecord
from .normalize import as_float, as_text, to_timestamp

_LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class PositionCfg:
    out_of_range_reason: str = "Position out of range"
    open_event_type: str = "OPEN"

def position_cfg_from_config(cfg: dict | None) -> PositionCfg:
    m = (cfg or {}).get("metrics") or {}
    base = PositionCfg()
    return PositionCfg(
        out_of_range_reason=str(m.get("out_of_range_reason", base.out_of_range_reason)),
        open_event_type=str(m.get("open_event_type", base.open_event_type)),
    )

def compute_position_metrics(records: Sequence[RawRecord],
                             cfg: PositionCfg | None = None) -> PositionResults | None:
    """
    dailyOutOfRangeCount: out-of-range triggers per distinct UTC day with data
    (0 when no row has a valid timestamp).

    avgPriceRangeLast30Days: mean ``position_width_percentage`` of dated OPEN
    events, halved (the stored width spans the full band). 0 without OPEN
    events, NaN without any valid timestamp.
    """
    if not records:
        return None
    cfg = cfg or PositionCfg()

    out_of_range = sum(1 for r in records if as_text(r.get("trigger_reason")) == cfg.out_of_range_reason)

    stamps, dated = [], []
    for r in records:
        ts = to_timestamp(r.get("timestamp"))
        if ts is not None:
            stamps.append(ts)
            dated.append(r)
    unique_days = int(pd.DatetimeIndex(stamps).normalize().nunique()) if stamps else 0
    daily = out_of_range / unique_days if unique_days > 0 else 0

    if not dated:
        _LOG.debug("no valid timestamps; price range unavailable")
        return PositionResults(daily_out_of_range_count=daily, avg_price_range_last_30_days=NaN)

    opens = [r for r in dated if as_text(r.get("event_type")) == cfg.open_event_type]
    if not opens:
        return PositionResults(daily_out_of_range_count=daily, avg_price_range_last_30_days=0)

    widths = np.array([as_float(r.get("position_width_percentage")) for r in opens], dtype=float)
    avg_range = float(np.sum(widths) / widths.size) / 2
    return PositionResults(daily_out_of_range_count=daily, avg_price_range_last_30_days=avg_range)
