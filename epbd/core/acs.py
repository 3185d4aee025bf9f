"""Renewable fraction of the domestic hot water (ACS) demand, in the nearby perimeter.

The estimation never raises: problems are reported through the state of the result.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from epbd import helper as hp
from epbd.conventions import (
    BIOMASS,
    THERMAL_INSITU,
    AcsState,
    Carrier,
    Dest,
    Kind,
    Perimeter,
    ProdSource,
    Service,
    Source,
    Step,
)
from epbd.core.aggregator import FlowTable
from epbd.core.factors import WeightingFactors
from epbd.core.redistributor import Redistribution

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)


@dataclass(frozen=True)
class AcsResult:
    state: AcsState
    fraction: Optional[float] = None
    reason: str = ""

    def __str__(self) -> str:
        value = "-" if self.fraction is None else f"{self.fraction:.3f}"
        return f"{self.state} ({value}) {self.reason}".strip()


def _biomass_demand(
    red: FlowTable, table: FlowTable, biomass: Dict[Carrier, float]
) -> Optional[Dict[Carrier, float]]:
    """ACS demand covered by each biomass carrier from the Output of the biomass systems.

    Returns None if some biomass system has no ACS Output.
    """
    covered = {cr: 0.0 for cr in biomass}
    ids = sorted(
        set().union(
            *[
                red.level_values(
                    "id", kind=Kind.CONSUMPTION, service=Service.ACS, carrier=cr, excl_acs=False
                )
                for cr in biomass
            ]
        )
    )
    for id in ids:
        output = table.select(kind=Kind.OUTPUT, id=id, service=Service.ACS).to_numpy()
        if output.size == 0:
            return None
        q = float(output.clip(min=0.0).sum())
        used = {
            cr: red.total(kind=Kind.CONSUMPTION, id=id, service=Service.ACS, carrier=cr, excl_acs=False)
            for cr in biomass
        }
        used_total = sum(used.values())
        for cr, value in used.items():
            if used_total > 0:
                covered[cr] += q * value / used_total
    return covered


def _renewable_share(factors: WeightingFactors, carrier: Carrier) -> float:
    f = factors.find(carrier, Source.RED, Dest.SUMINISTRO, Step.A)
    return f.ren / f.tot if f.tot != 0 else 0.0


def _heat_suppliers(
    red: FlowTable, used: Dict[Carrier, float], others: List[Carrier], biomass: Dict
) -> List[Carrier]:
    """Carriers other than biomass and in-situ thermal energy that supply ACS heat.

    Electricity used only by the biomass systems themselves (e.g. auxiliary energy of a
    boiler) does not supply heat.
    """
    if not biomass or Carrier.ELECTRICIDAD not in others:
        return list(others)
    ids = red.level_values(
        "id", kind=Kind.CONSUMPTION, service=Service.ACS, carrier=list(biomass), excl_acs=False
    )
    el_biomass = red.total(
        kind=Kind.CONSUMPTION,
        service=Service.ACS,
        carrier=Carrier.ELECTRICIDAD,
        id=ids,
        excl_acs=False,
    )
    if hp.is_close(used[Carrier.ELECTRICIDAD], el_biomass):
        return [cr for cr in others if cr != Carrier.ELECTRICIDAD]
    return list(others)


def _estimate(red: FlowTable, table: FlowTable, factors: WeightingFactors) -> AcsResult:
    demand = table.total(kind=Kind.DEMAND, service=Service.ACS)
    if not table.keys(kind=Kind.DEMAND, service=Service.ACS) or demand <= 0:
        return AcsResult(AcsState.NOT_APPLICABLE, reason="No ACS demand.")

    acs = dict(service=Service.ACS, excl_acs=False)
    if red.total(kind=Kind.ALLOCATED, source=ProdSource.COGEN, **acs) > 0:
        return AcsResult(
            AcsState.NOT_APPLICABLE, reason="Cogenerated electricity is used for ACS."
        )

    used: Dict[Carrier, float] = {}
    for tag in red.level_values("carrier", kind=Kind.CONSUMPTION, **acs):
        value = red.total(kind=Kind.CONSUMPTION, carrier=tag, **acs)
        if value > 0:
            used[Carrier(tag)] = value

    biomass = {cr: v for cr, v in used.items() if cr in BIOMASS}
    others: List[Carrier] = [cr for cr in used if cr not in BIOMASS and cr not in THERMAL_INSITU]
    suppliers = _heat_suppliers(red, used, others, biomass)
    if biomass and len(suppliers) > 1:
        return AcsResult(
            AcsState.NOT_APPLICABLE,
            reason="Biomass is combined with more than one other carrier.",
        )

    nearby = factors.to_perimeter(Perimeter.NEARBY)
    thermal = sum(v for cr, v in used.items() if cr in THERMAL_INSITU)
    ren = thermal

    insitu_el = red.total(kind=Kind.ALLOCATED, source=ProdSource.INSITU, **acs)
    if insitu_el > 0:
        ren += insitu_el * factors.find(
            Carrier.ELECTRICIDAD, Source.INSITU, Dest.SUMINISTRO, Step.A
        ).ren

    for cr in others:
        amount = used[cr]
        if cr == Carrier.ELECTRICIDAD:
            amount -= insitu_el
        if amount > 0:
            ren += amount * nearby.find(cr, Source.RED, Dest.SUMINISTRO, Step.A).ren

    caveat = ""
    if biomass:
        covered = _biomass_demand(red, table, biomass)
        if covered is None:
            if suppliers:
                return AcsResult(
                    AcsState.ERROR,
                    reason="The demand covered by biomass is unknown. Declare the ACS Output"
                    " of the biomass systems.",
                )
            remaining = max(demand - thermal, 0.0)
            biomass_total = sum(biomass.values())
            covered = {cr: remaining * v / biomass_total for cr, v in biomass.items()}
            if thermal > 0:
                caveat = (
                    "Without ACS Output of the biomass systems, biomass is assumed to cover"
                    " the demand not covered by in-situ thermal energy."
                )
        for cr, q in covered.items():
            ren += q * _renewable_share(nearby, cr)

    fraction = ren / demand
    if fraction > 1.0:
        return AcsResult(
            AcsState.COMPUTED_WITH_CAVEAT,
            1.0,
            reason=f"Renewable energy ({ren:.2f}) exceeds the ACS demand ({demand:.2f}).",
        )
    if caveat:
        return AcsResult(AcsState.COMPUTED_WITH_CAVEAT, fraction, reason=caveat)
    return AcsResult(AcsState.COMPUTABLE, fraction)


def acs_renewable_fraction(
    redistribution: Redistribution, table: FlowTable, factors: WeightingFactors
) -> AcsResult:
    """Estimates the renewable fraction of the ACS demand in the nearby perimeter.

    Args:
        redistribution: Service resolved flows.
        table: Aggregated flows, with the Output and Demand of the building.
        factors: Normalized weighting factors of the distant perimeter.
    """
    try:
        return _estimate(redistribution.table, table, factors)
    except Exception as e:
        logger.warning(f"ACS renewable fraction could not be estimated: {e}")
        return AcsResult(AcsState.ERROR, reason=str(e))
