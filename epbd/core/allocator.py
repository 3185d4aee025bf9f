"""Allocation of on-site and cogenerated electricity to EPB uses, non EPB uses and the grid."""

import logging
from dataclasses import dataclass, field
from typing import Dict

import numpy as np
import pandas as pd

from epbd import helper as hp
from epbd.conventions import PRIORITY, SERVICES_EPB, Carrier, Kind, LoadMatching, ProdSource, Service
from epbd.core.aggregator import FlowKey, FlowTable
from epbd.core.config import BalanceConfig

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)


@dataclass
class Allocation:
    """Electricity flows of one computation, per step.

    Args:
        f_match: Load matching factor.
        epus: Electricity used by EPB services (auxiliary energy included).
        nepus: Electricity used by non EPB services.
        prod: Produced electricity by source.
        used_epus: Produced electricity used by EPB services, by source.
        exp_nepus: Produced electricity exported to non EPB uses, by source.
        exp_grid: Produced electricity exported to the grid, by source.
        del_grid: Electricity delivered by the grid to EPB uses.
        by_consumer: Produced electricity used by each EPB consumer column, by source.
    """

    f_match: pd.Series
    epus: pd.Series
    nepus: pd.Series
    prod: Dict[ProdSource, pd.Series]
    used_epus: Dict[ProdSource, pd.Series]
    exp_nepus: Dict[ProdSource, pd.Series]
    exp_grid: Dict[ProdSource, pd.Series]
    del_grid: pd.Series
    by_consumer: Dict[FlowKey, Dict[ProdSource, pd.Series]] = field(default_factory=dict)

    def exp(self, source: ProdSource) -> pd.Series:
        return self.exp_nepus[source] + self.exp_grid[source]

    @property
    def prod_total(self) -> pd.Series:
        return sum(self.prod.values())

    @property
    def used_epus_total(self) -> pd.Series:
        return sum(self.used_epus.values())


def statistical_f_match(prod: np.ndarray, epus: np.ndarray, k: float = 2.0) -> np.ndarray:
    """Load matching factor as a function of the ratio of produced to used electricity.

    Steps without production or use get 1.0. Results are clamped to [0, 1].
    """
    prod = np.asarray(prod, dtype=float)
    epus = np.asarray(epus, dtype=float)
    valid = (prod > 0) & (epus > 0)
    x = np.where(valid, prod / np.where(valid, epus, 1.0), 1.0)
    f = (x + 1.0 - (x ** k + 1.0) ** (1.0 / k)) / np.minimum(x, 1.0)
    return np.clip(np.where(valid, f, 1.0), 0.0, 1.0)


def _f_match(prod: pd.Series, epus: pd.Series, config: BalanceConfig) -> pd.Series:
    if config.load_matching == LoadMatching.STATISTICAL:
        values = statistical_f_match(prod.values, epus.values, config.k_match)
    else:
        values = np.full(len(prod), hp.clamp(config.f_match))
    return pd.Series(values, index=prod.index)


def allocate(table: FlowTable, config: BalanceConfig) -> Allocation:
    """Distributes produced electricity among EPB uses (sources by priority), non EPB uses and
    the grid, step by step.
    """
    num_steps = table.num_steps
    el = Carrier.ELECTRICIDAD

    consumers = {
        key: ser
        for key, ser in table.items(kind=Kind.CONSUMPTION, carrier=el, service=list(SERVICES_EPB))
    }
    consumers.update(dict(table.items(kind=Kind.AUXILIARY)))

    epus = hp.vecsum(consumers.values(), num_steps)
    nepus = table.series(kind=Kind.CONSUMPTION, carrier=el, service=Service.NEPB)
    prod = {src: table.series(kind=Kind.PRODUCTION, source=src) for src in PRIORITY}
    prod_total = hp.vecsum(prod.values(), num_steps)

    f_match = _f_match(prod_total, epus, config)
    available = f_match * np.minimum(epus, prod_total)

    used_epus: Dict[ProdSource, pd.Series] = {}
    for src in PRIORITY:
        used_epus[src] = np.minimum(available, prod[src])
        available = available - used_epus[src]

    exp = {src: hp.clip_positive(prod[src] - used_epus[src]) for src in PRIORITY}
    exp_total = hp.vecsum(exp.values(), num_steps)
    exp_nepus_total = np.minimum(exp_total, nepus)
    exp_nepus = {
        src: exp_nepus_total * hp.safe_div(exp[src], exp_total) for src in PRIORITY
    }
    exp_grid = {src: exp[src] - exp_nepus[src] for src in PRIORITY}

    del_grid = epus - hp.vecsum(used_epus.values(), num_steps)

    by_consumer = {
        key: {src: used_epus[src] * hp.safe_div(ser, epus) for src in PRIORITY}
        for key, ser in consumers.items()
    }

    logger.info(
        f"Allocated {sum(s.sum() for s in used_epus.values()):.2f} of"
        f" {prod_total.sum():.2f} kWh of produced electricity to EPB uses."
    )
    return Allocation(
        f_match=f_match,
        epus=epus,
        nepus=nepus,
        prod=prod,
        used_epus=used_epus,
        exp_nepus=exp_nepus,
        exp_grid=exp_grid,
        del_grid=del_grid,
        by_consumer=by_consumer,
    )
