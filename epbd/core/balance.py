"""Energy performance of a building: the whole balance computation and its results."""

import logging
from typing import Dict, List, Optional

from epbd.conventions import AcsState, Carrier, Descs, Dest, Etypes, Perimeter, Source, Step
from epbd.core.acs import AcsResult, acs_renewable_fraction
from epbd.core.aggregator import aggregate
from epbd.core.allocator import allocate
from epbd.core.base_class import EpbdBaseClass
from epbd.core.components import Components
from epbd.core.config import BalanceConfig
from epbd.core.errors import Diagnostic, MissingFactor
from epbd.core.factors import RenNrenCo2, WeightingFactors
from epbd.core.redistributor import redistribute
from epbd.core.weighting import (
    Balance,
    CarrierBalance,
    aggregate_balance,
    check_consistency,
    cogen_production,
    derive_cogen_factors,
    needs_of,
    rer,
    weight,
)

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

ACS_FRACTION_KEY = "fraccion_renovable_demanda_acs_nrb"


class EnergyPerformance(EpbdBaseClass):
    """Results of an energy balance computation.

    Attributes:
        components: The validated components.
        factors: The normalized and stripped weighting factors used in the computation.
        config: The computation options.
        balance_cr: Balance of each carrier.
        balance: Balance of the building.
        balance_m2: Balance per m² of reference area, if an area was given.
        rer: Renewable energy ratio (step B) in the distant perimeter.
        rer_nrb: Renewable energy ratio in the nearby perimeter.
        rer_onst: Renewable energy ratio in the on-site perimeter.
        acs: Renewable fraction of the ACS demand (nearby perimeter).
        diagnostics: Non fatal issues found.
        misc: Additional string results.
    """

    def __init__(
        self,
        components: Components,
        factors: WeightingFactors,
        config: BalanceConfig,
        balance_cr: Dict[Carrier, CarrierBalance],
        balance: Balance,
        balance_m2: Optional[Balance],
        rer: float,
        rer_nrb: float,
        rer_onst: float,
        acs: AcsResult,
        diagnostics: List[Diagnostic],
        misc: Dict[str, str],
    ):
        self.components = components
        self.factors = factors
        self.config = config
        self.balance_cr = balance_cr
        self.balance = balance
        self.balance_m2 = balance_m2
        self.rer = rer
        self.rer_nrb = rer_nrb
        self.rer_onst = rer_onst
        self.acs = acs
        self.diagnostics = diagnostics
        self.misc = misc

    def __repr__(self):
        layout = "{bullet}{name:<38} {value:>12} {unit:<8}\n"
        return self._build_repr(layout, which_metadata=["value", "unit"])

    def _repr_rows(self) -> Dict[str, Dict]:
        b = self.balance
        e_unit = Etypes.E.units[0]
        rows = {}
        for desc, value in [
            (Descs.epus, b.used_epus),
            (Descs.nepus, b.used_nepus),
            (Descs.cgnus, b.used_cgnus),
            (Descs.unassigned, b.used_epus_unassigned),
            (Descs.prod, b.prod),
            (Descs.del_grid, b.del_grid),
            (Descs.del_onst, b.del_onst),
            (Descs.exp, b.exp),
            (Descs.exp_grid, b.exp_grid),
            (Descs.exp_nepus, b.exp_nepus),
        ]:
            rows[f"{Etypes.E.en}: {desc.en}"] = dict(value=f"{value:.2f}", unit=e_unit)
        for step, we in [("A", b.we_a), ("B", b.we_b)]:
            for part in ("ren", "nren", "tot"):
                rows[f"{Etypes.we.en} {step}: {part}"] = dict(
                    value=f"{getattr(we, part):.2f}", unit=Etypes.we.units[0]
                )
            rows[f"{Etypes.we.en} {step}: co2"] = dict(
                value=f"{we.co2:.2f}", unit=Etypes.we.units[2]
            )
        for name, value in [("RER", self.rer), ("RER_nrb", self.rer_nrb), ("RER_onst", self.rer_onst)]:
            rows[name] = dict(value=f"{value:.3f}", unit=Etypes.RER.units[0])
        return rows


def _check_grid_factors(components: Components, factors: WeightingFactors) -> None:
    missing = [
        str(cr)
        for cr in sorted(components.carriers)
        if (cr, Source.RED, Dest.SUMINISTRO, Step.A) not in factors
    ]
    if missing:
        raise MissingFactor(f"Grid supply factors (RED, SUMINISTRO, A) missing for {missing}.")


def _we_b(balance_cr: Dict[Carrier, CarrierBalance]) -> RenNrenCo2:
    return sum((cb.we_b for cb in balance_cr.values()), RenNrenCo2())


def energy_performance(
    components: Components,
    factors: WeightingFactors,
    config: Optional[BalanceConfig] = None,
) -> EnergyPerformance:
    """Computes the energy performance of a building.

    Args:
        components: Energy components of the building.
        factors: Weighting factors. Missing derivable factors are completed.
        config: Computation options. Defaults to `BalanceConfig()`.

    Raises:
        InconsistentStepCount: If components have different numbers of steps.
        InvalidComponent: If no components are given.
        MissingFactor: If a weighting factor needed for the computation is not defined or
            there is cogenerated electricity without cogeneration fuel.
    """
    config = BalanceConfig() if config is None else config
    components.validate()

    wfactors = factors.normalize()
    _check_grid_factors(components, wfactors)
    wfactors = wfactors.strip(components)

    table = aggregate(components)

    cogen_prod, cogen_fuel = cogen_production(table)
    if cogen_prod > 0:
        f_cgn = derive_cogen_factors(table, wfactors, config.cogen_eta_el)
        if f_cgn is None:
            raise MissingFactor(
                "Cogenerated electricity needs the fuel used for cogeneration (service COGEN)"
                " to derive its weighting factors."
            )
        logger.info(f"Derived cogeneration factors from {cogen_fuel:.2f} kWh of fuel: {f_cgn}")
        wfactors = wfactors.with_cogen_factors(f_cgn)

    allocation = allocate(table, config)
    redistribution = redistribute(table, allocation)

    balance_cr = weight(redistribution, allocation, wfactors, config)
    balance = aggregate_balance(balance_cr, needs_of(table))

    carriers = list(balance_cr)
    nrb_cr = weight(
        redistribution, allocation, wfactors.to_perimeter(Perimeter.NEARBY), config, carriers
    )
    onst_cr = weight(
        redistribution, allocation, wfactors.to_perimeter(Perimeter.ONSITE), config, carriers
    )

    diagnostics = list(redistribution.diagnostics)
    diagnostics += check_consistency(balance)

    acs = acs_renewable_fraction(redistribution, table, wfactors)
    misc: Dict[str, str] = {}
    if acs.state in (AcsState.COMPUTABLE, AcsState.COMPUTED_WITH_CAVEAT):
        misc[ACS_FRACTION_KEY] = f"{acs.fraction:.3f}"
        if acs.state == AcsState.COMPUTED_WITH_CAVEAT:
            diagnostics.append(Diagnostic("warning_acs", acs.reason))
            logger.warning(f"ACS renewable fraction: {acs.reason}")
    else:
        detail = f"{acs.state}: {acs.reason}"
        misc["error_acs"] = detail
        diagnostics.append(Diagnostic("error_acs", detail))
        logger.warning(f"ACS renewable fraction not available. {detail}")

    area = config.reference_area
    balance_m2 = None if area is None else balance.normalized(area)

    return EnergyPerformance(
        components=components,
        factors=wfactors,
        config=config,
        balance_cr=balance_cr,
        balance=balance,
        balance_m2=balance_m2,
        rer=rer(balance.we_b),
        rer_nrb=rer(_we_b(nrb_cr)),
        rer_onst=rer(_we_b(onst_cr)),
        acs=acs,
        diagnostics=diagnostics,
        misc=misc,
    )
