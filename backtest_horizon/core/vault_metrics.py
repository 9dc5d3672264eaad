# backtest_horizon/core/vault_metrics.py
from __future__ import annotations
import logging
from typing import Sequence
import numpy as np

from .model import NaN, RawRecord, VaultResults
from .normalize import as_float, to_timestamp

_LOG = logging.getLogger(__name__)

def compute_vault_metrics(records: Sequence[RawRecord]) -> VaultResults | None:
    """
    Profit range over all snapshots plus the fee/gas/value fields of the latest one.

    Returns None when there is no finite numeric ``total_return_usd``.
    Without any valid timestamp the latest-entry fields are NaN.
    """
    if not records:
        return None

    returns = np.array([as_float(r.get("total_return_usd")) for r in records], dtype=float)
    returns = returns[np.isfinite(returns)]
    if returns.size == 0:
        _LOG.debug("no numeric total_return_usd in %d record(s)", len(records))
        return None
    highest = float(np.max(returns))
    lowest = float(np.min(returns))

    dated = []
    for r in records:
        ts = to_timestamp(r.get("timestamp"))
        if ts is not None:
            dated.append((ts, r))

    if not dated:
        _LOG.debug("no valid timestamps; latest-entry fields unavailable")
        return VaultResults(highest, lowest, NaN, NaN, NaN)

    # stable: among equal timestamps the earliest row in file order wins
    _, latest = sorted(dated, key=lambda p: p[0], reverse=True)[0]
    return VaultResults(
        highest_profit=highest,
        lowest_profit=lowest,
        total_fee_returned=as_float(latest.get("accumulated_fee_earned")),
        total_gas_fee=as_float(latest.get("accumulated_gas_fee")),
        final_total_value_usd=as_float(latest.get("total_value_usd")),
    )
