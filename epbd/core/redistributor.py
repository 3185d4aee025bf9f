"""Assignment of system level energy to services.

Auxiliary electricity, the produced electricity allocated to it and the thermal energy
captured by a system (TERMOSOLAR, EAMBIENTE) are shared among the EPB services of the same
system using the energy the system delivers for each service (Output). Thermal consumption
is then balanced with in-situ production per system, service and carrier.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from epbd import helper as hp
from epbd.conventions import PRIORITY, SERVICES_EPB, THERMAL_INSITU, Carrier, Kind, Service
from epbd.core.aggregator import FlowKey, FlowTable
from epbd.core.allocator import Allocation
from epbd.core.errors import Diagnostic

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

UNASSIGNED = ""
EPB_TAGS = [s.value for s in SERVICES_EPB]


@dataclass
class ThermalFlows:
    """In-situ thermal energy of one carrier, per step.

    Args:
        declared: Production declared by the systems.
        autocompleted: Production added to cover consumption without declared production.
        exp_grid: Declared production not used by the system, exported to the grid.
        exp_nepus: Production covering non EPB uses.
    """

    declared: pd.Series
    autocompleted: pd.Series
    exp_grid: pd.Series
    exp_nepus: pd.Series

    @property
    def prod(self) -> pd.Series:
        return self.declared + self.autocompleted


@dataclass
class Redistribution:
    """Service resolved energy flows.

    `table` holds consumption (auxiliary energy included as electricity consumption),
    allocated electricity production (kind ALLOCATED) and thermal production, each with the
    service it was assigned to, or an empty service if it could not be assigned.
    """

    table: FlowTable
    thermal: Dict[Carrier, ThermalFlows] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def service_weights(table: FlowTable, id: int) -> Optional[Dict[str, np.ndarray]]:
    """Returns per step weights of each EPB service of a system, summing 1 in every step.

    Weights come from the absolute Output of the system; steps without Output use the
    annual shares. Without Output, a system with a single EPB service gets a weight of 1 for
    it. Returns None if the energy can't be assigned.
    """
    num_steps = table.num_steps
    outputs = {
        s: np.abs(table.series(kind=Kind.OUTPUT, id=id, service=s).values)
        for s in table.level_values("service", kind=Kind.OUTPUT, id=id)
    }
    annual = {s: v.sum() for s, v in outputs.items()}
    annual_total = sum(annual.values())

    if annual_total > 0:
        step_total = np.sum(list(outputs.values()), axis=0)
        return {
            s: np.where(
                step_total > 0,
                hp.safe_div(v, step_total),
                annual[s] / annual_total,
            )
            for s, v in outputs.items()
        }

    services = [
        s
        for s in table.level_values("service", kind=Kind.CONSUMPTION, id=id)
        if s in EPB_TAGS
    ]
    if len(services) == 1:
        return {services[0]: np.ones(num_steps)}
    return None


def _spread(ser: pd.Series, weights: Optional[Dict[str, np.ndarray]]) -> Dict[str, pd.Series]:
    if weights is None:
        return {UNASSIGNED: ser.copy()}
    return {s: ser * w for s, w in weights.items()}


def _add(data: Dict[FlowKey, pd.Series], key: FlowKey, ser: pd.Series):
    data[key] = data[key] + ser if key in data else ser


def _compensate(
    table: FlowTable, data: Dict[FlowKey, pd.Series], carrier: Carrier
) -> ThermalFlows:
    """Balances thermal consumption with the production assigned to the same system and
    service, completing any shortfall with in-situ production.
    """
    num_steps = table.num_steps
    cons = {k: v for k, v in data.items() if k.kind == Kind.CONSUMPTION and k.carrier == carrier}
    prod = {k: v for k, v in data.items() if k.kind == Kind.PRODUCTION and k.carrier == carrier}

    declared = hp.vecsum(prod.values(), num_steps)
    autocompleted = hp.zeros(num_steps)
    exp_grid = hp.zeros(num_steps)
    exp_nepus = hp.zeros(num_steps)

    ids = sorted({k.id for k in cons} | {k.id for k in prod})
    for id in ids:
        free = hp.vecsum((v for k, v in prod.items() if k.id == id and k.service == UNASSIGNED), num_steps)
        residuals = []
        for service in EPB_TAGS + [Service.NEPB.value]:
            c = hp.vecsum(
                (v for k, v in cons.items() if k.id == id and k.service == service), num_steps
            )
            p = hp.vecsum(
                (v for k, v in prod.items() if k.id == id and k.service == service), num_steps
            )
            excess = hp.clip_positive(p - c)
            residual = hp.clip_positive(c - p)
            exp_grid = exp_grid + excess
            if service == Service.NEPB.value:
                exp_nepus = exp_nepus + c
            residuals.append(residual)
        for residual in residuals:
            covered = np.minimum(residual, free)
            free = free - covered
            autocompleted = autocompleted + (residual - covered)
        exp_grid = exp_grid + free

    return ThermalFlows(
        declared=declared, autocompleted=autocompleted, exp_grid=exp_grid, exp_nepus=exp_nepus
    )


def redistribute(table: FlowTable, allocation: Allocation) -> Redistribution:
    """Assigns system level energy to the services of each system."""
    diagnostics: List[Diagnostic] = []
    data: Dict[FlowKey, pd.Series] = {}
    weights_cache: Dict[int, Optional[Dict[str, np.ndarray]]] = {}

    def weights_of(id: int, kind: str, what: str):
        if id not in weights_cache:
            weights_cache[id] = service_weights(table, id)
        w = weights_cache[id]
        if w is None:
            detail = (
                f"System {id} serves several or no EPB services and has no Output to share"
                f" its {what}. The energy is kept as not assigned to a service."
            )
            if not any(d.kind == kind and d.detail == detail for d in diagnostics):
                diagnostics.append(Diagnostic(kind, detail))
                logger.warning(detail)
        return w

    for key, ser in table.items(kind=Kind.CONSUMPTION):
        _add(data, key, ser.copy())
        for src, used in allocation.by_consumer.get(key, {}).items():
            if used.abs().sum() > 0:
                _add(data, key.replace(kind=Kind.ALLOCATED, source=src), used)

    for key, ser in table.items(kind=Kind.PRODUCTION):
        if Carrier(key.carrier) in THERMAL_INSITU:
            w = weights_of(key.id, "error_prod", f"{key.carrier} production")
            for service, part in _spread(ser, w).items():
                _add(data, key.replace(service=service), part)
        else:
            _add(data, key, ser.copy())

    for key, ser in table.items(kind=Kind.AUXILIARY):
        w = weights_of(key.id, "error_aux", "auxiliary energy")
        as_consumption = key.replace(kind=Kind.CONSUMPTION, carrier=Carrier.ELECTRICIDAD)
        for service, part in _spread(ser, w).items():
            _add(data, as_consumption.replace(service=service), part)
        for src in PRIORITY:
            used = allocation.by_consumer.get(key, {}).get(src)
            if used is None or used.abs().sum() == 0:
                continue
            allocated = as_consumption.replace(kind=Kind.ALLOCATED, source=src)
            for service, part in _spread(used, w).items():
                _add(data, allocated.replace(service=service), part)

    for key, ser in table.items(kind=Kind.OUTPUT):
        _add(data, key, ser.copy())
    for key, ser in table.items(kind=Kind.DEMAND):
        _add(data, key, ser.copy())

    thermal = {}
    for carrier in sorted(THERMAL_INSITU):
        if any(k.carrier == carrier for k in data):
            thermal[carrier] = _compensate(table, data, carrier)

    return Redistribution(
        table=FlowTable.from_series(data, table.num_steps),
        thermal=thermal,
        diagnostics=diagnostics,
    )
