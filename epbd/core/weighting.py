"""Weighted energy of each carrier and of the whole building.

Delivered energy is weighted with the supply factors of its source and exported energy is
deducted with the factors of its destination, following EN ISO 52000-1 (9.6.6). Step A
counts the resources used to produce the exported energy, step B adds the resources it
saves to the grid, weighted by `k_exp`.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple

import pandas as pd

from epbd import helper as hp
from epbd.conventions import (
    PRIORITY,
    SERVICES_EPB,
    THERMAL_INSITU,
    Carrier,
    Dest,
    Kind,
    ProdSource,
    Service,
    Source,
    Step,
)
from epbd.core.aggregator import FlowTable
from epbd.core.allocator import Allocation
from epbd.core.config import BalanceConfig
from epbd.core.errors import Diagnostic
from epbd.core.factors import RenNrenCo2, WeightingFactors
from epbd.core.redistributor import UNASSIGNED, Redistribution

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)


@dataclass
class CarrierBalance:
    """Energy balance of a single carrier.

    Produced, delivered and exported energy is keyed by the origin of the energy. Used energy
    that could not be assigned to an EPB service is kept in `used_epus_unassigned` and its
    weighted energy in the `*_unassigned` attributes. Attributes ending in `_t` hold the
    step series of the annual values, `f_match` the load matching factor of electricity.
    """

    carrier: Carrier
    used_epus_by_srv: Dict[Service, float] = field(default_factory=dict)
    used_epus_unassigned: float = 0.0
    used_nepus: float = 0.0
    used_cgnus: float = 0.0
    prod_by_src: Dict[ProdSource, float] = field(default_factory=dict)
    prod_epus_by_src: Dict[ProdSource, float] = field(default_factory=dict)
    del_grid: float = 0.0
    exp_nepus_by_src: Dict[ProdSource, float] = field(default_factory=dict)
    exp_grid_by_src: Dict[ProdSource, float] = field(default_factory=dict)
    we_del: RenNrenCo2 = RenNrenCo2()
    we_exp_a: RenNrenCo2 = RenNrenCo2()
    we_exp_ab: RenNrenCo2 = RenNrenCo2()
    we_a: RenNrenCo2 = RenNrenCo2()
    we_b: RenNrenCo2 = RenNrenCo2()
    we_a_by_srv: Dict[Service, RenNrenCo2] = field(default_factory=dict)
    we_b_by_srv: Dict[Service, RenNrenCo2] = field(default_factory=dict)
    we_a_unassigned: RenNrenCo2 = RenNrenCo2()
    we_b_unassigned: RenNrenCo2 = RenNrenCo2()
    f_match: Optional[pd.Series] = None
    used_epus_t: Optional[pd.Series] = None
    used_nepus_t: Optional[pd.Series] = None
    prod_by_src_t: Dict[ProdSource, pd.Series] = field(default_factory=dict)
    prod_epus_by_src_t: Dict[ProdSource, pd.Series] = field(default_factory=dict)
    del_grid_t: Optional[pd.Series] = None
    exp_nepus_by_src_t: Dict[ProdSource, pd.Series] = field(default_factory=dict)
    exp_grid_by_src_t: Dict[ProdSource, pd.Series] = field(default_factory=dict)

    @property
    def used_epus(self) -> float:
        return sum(self.used_epus_by_srv.values()) + self.used_epus_unassigned

    @property
    def prod_t(self) -> Optional[pd.Series]:
        if self.used_epus_t is None:
            return None
        return hp.vecsum(self.prod_by_src_t.values(), len(self.used_epus_t))

    @property
    def exp_grid_t(self) -> Optional[pd.Series]:
        if self.used_epus_t is None:
            return None
        return hp.vecsum(self.exp_grid_by_src_t.values(), len(self.used_epus_t))

    @property
    def exp_nepus_t(self) -> Optional[pd.Series]:
        if self.used_epus_t is None:
            return None
        return hp.vecsum(self.exp_nepus_by_src_t.values(), len(self.used_epus_t))

    @property
    def prod(self) -> float:
        return sum(self.prod_by_src.values())

    @property
    def del_onst(self) -> float:
        return sum(self.prod_epus_by_src.values())

    @property
    def exp_nepus(self) -> float:
        return sum(self.exp_nepus_by_src.values())

    @property
    def exp_grid(self) -> float:
        return sum(self.exp_grid_by_src.values())

    @property
    def exp(self) -> float:
        return self.exp_nepus + self.exp_grid


@dataclass
class Balance:
    """Energy balance of the building (all carriers)."""

    needs: Dict[Service, float] = field(default_factory=dict)
    used_epus: float = 0.0
    used_nepus: float = 0.0
    used_cgnus: float = 0.0
    used_epus_by_srv: Dict[Service, float] = field(default_factory=dict)
    used_epus_by_cr: Dict[Carrier, float] = field(default_factory=dict)
    used_epus_unassigned: float = 0.0
    prod: float = 0.0
    prod_by_src: Dict[ProdSource, float] = field(default_factory=dict)
    prod_by_cr: Dict[Carrier, float] = field(default_factory=dict)
    del_grid: float = 0.0
    del_onst: float = 0.0
    del_grid_by_cr: Dict[Carrier, float] = field(default_factory=dict)
    exp: float = 0.0
    exp_grid: float = 0.0
    exp_nepus: float = 0.0
    we_del: RenNrenCo2 = RenNrenCo2()
    we_exp_a: RenNrenCo2 = RenNrenCo2()
    we_a: RenNrenCo2 = RenNrenCo2()
    we_b: RenNrenCo2 = RenNrenCo2()
    we_a_by_srv: Dict[Service, RenNrenCo2] = field(default_factory=dict)
    we_b_by_srv: Dict[Service, RenNrenCo2] = field(default_factory=dict)
    we_a_unassigned: RenNrenCo2 = RenNrenCo2()
    we_b_unassigned: RenNrenCo2 = RenNrenCo2()
    we_a_by_cr: Dict[Carrier, RenNrenCo2] = field(default_factory=dict)
    we_b_by_cr: Dict[Carrier, RenNrenCo2] = field(default_factory=dict)

    @property
    def del_(self) -> float:
        return self.del_grid + self.del_onst

    def normalized(self, area: float) -> "Balance":
        """Returns the balance per unit of the given reference area."""
        assert area > 0, f"The reference area must be positive, got {area}."
        k_area = 1.0 / area

        def scale(value):
            if isinstance(value, dict):
                return {k: scale(v) for k, v in value.items()}
            return value * k_area

        return Balance(**{f.name: scale(getattr(self, f.name)) for f in fields(self)})

    def add_carrier(self, cb: CarrierBalance) -> None:
        cr = cb.carrier
        self.used_epus += cb.used_epus
        self.used_nepus += cb.used_nepus
        self.used_cgnus += cb.used_cgnus
        self.used_epus_unassigned += cb.used_epus_unassigned
        _accumulate(self.used_epus_by_srv, cb.used_epus_by_srv)
        _accumulate(self.prod_by_src, cb.prod_by_src)
        self.prod += cb.prod
        self.del_grid += cb.del_grid
        self.del_onst += cb.del_onst
        self.exp += cb.exp
        self.exp_grid += cb.exp_grid
        self.exp_nepus += cb.exp_nepus
        self.we_del = self.we_del + cb.we_del
        self.we_exp_a = self.we_exp_a + cb.we_exp_a
        self.we_a = self.we_a + cb.we_a
        self.we_b = self.we_b + cb.we_b
        _accumulate(self.we_a_by_srv, cb.we_a_by_srv)
        _accumulate(self.we_b_by_srv, cb.we_b_by_srv)
        self.we_a_unassigned = self.we_a_unassigned + cb.we_a_unassigned
        self.we_b_unassigned = self.we_b_unassigned + cb.we_b_unassigned
        if cb.used_epus:
            self.used_epus_by_cr[cr] = cb.used_epus
        if cb.prod:
            self.prod_by_cr[cr] = cb.prod
        if cb.del_grid:
            self.del_grid_by_cr[cr] = cb.del_grid
        self.we_a_by_cr[cr] = cb.we_a
        self.we_b_by_cr[cr] = cb.we_b


def _accumulate(target: Dict, other: Dict) -> None:
    for k, v in other.items():
        target[k] = target[k] + v if k in target else v


def _weighted(
    factors: WeightingFactors,
    amount: float,
    carrier: Carrier,
    source: Source,
    dest: Dest,
    step: Step,
) -> RenNrenCo2:
    """Weighted value of an amount of energy. Factors are only needed for non zero amounts."""
    if amount == 0:
        return RenNrenCo2()
    return factors.find(carrier, source, dest, step) * amount


def derive_cogen_factors(
    table: FlowTable, factors: WeightingFactors, eta_el: float
) -> Optional[RenNrenCo2]:
    """Weighting factors of cogenerated electricity from the fuels used for cogeneration.

    The weighted fuel input per unit of fuel is divided by the reference electrical
    efficiency. Returns None when there is no cogeneration fuel.

    Raises:
        MissingFactor: If a cogeneration fuel has no grid supply factor.
    """
    fuel_total = 0.0
    weighted = RenNrenCo2()
    for carrier in table.level_values("carrier", kind=Kind.CONSUMPTION, service=Service.COGEN):
        amount = table.total(kind=Kind.CONSUMPTION, service=Service.COGEN, carrier=carrier)
        fuel_total += amount
        weighted = weighted + _weighted(
            factors, amount, Carrier(carrier), Source.RED, Dest.SUMINISTRO, Step.A
        )
    if fuel_total == 0:
        return None
    return weighted * (1.0 / fuel_total / eta_el)


def carrier_flows(
    carrier: Carrier, redistribution: Redistribution, allocation: Allocation
) -> CarrierBalance:
    """Used, produced, delivered and exported energy of a carrier, per step and annual."""
    table = redistribution.table
    num_steps = table.num_steps
    cons = dict(kind=Kind.CONSUMPTION, carrier=carrier)
    cb = CarrierBalance(carrier=carrier)
    for srv in SERVICES_EPB:
        value = table.total(service=srv, **cons)
        if value != 0:
            cb.used_epus_by_srv[srv] = value
    cb.used_epus_unassigned = table.total(service=UNASSIGNED, **cons)
    cb.used_nepus = table.total(service=Service.NEPB, **cons)
    cb.used_cgnus = table.total(service=Service.COGEN, **cons)
    cb.used_epus_t = table.series(service=list(SERVICES_EPB) + [UNASSIGNED], **cons)
    cb.used_nepus_t = table.series(service=Service.NEPB, **cons)
    cb.del_grid_t = hp.zeros(num_steps)

    if carrier == Carrier.ELECTRICIDAD:
        cb.f_match = allocation.f_match.copy()
        for src in PRIORITY:
            if allocation.prod[src].sum() == 0:
                continue
            cb.prod_by_src_t[src] = allocation.prod[src].copy()
            cb.prod_epus_by_src_t[src] = allocation.used_epus[src].copy()
            cb.exp_nepus_by_src_t[src] = allocation.exp_nepus[src].copy()
            cb.exp_grid_by_src_t[src] = allocation.exp_grid[src].copy()
        cb.del_grid_t = allocation.del_grid.copy()
    elif carrier in THERMAL_INSITU:
        src = ProdSource(carrier.value)
        thermal = redistribution.thermal.get(carrier)
        if thermal is not None and thermal.prod.sum() != 0:
            cb.prod_by_src_t[src] = thermal.prod.copy()
            cb.prod_epus_by_src_t[src] = cb.used_epus_t.copy()
            cb.exp_nepus_by_src_t[src] = thermal.exp_nepus.copy()
            cb.exp_grid_by_src_t[src] = thermal.exp_grid.copy()
    else:
        cb.del_grid_t = cb.used_epus_t.copy()

    for annual, series in [
        (cb.prod_by_src, cb.prod_by_src_t),
        (cb.prod_epus_by_src, cb.prod_epus_by_src_t),
        (cb.exp_nepus_by_src, cb.exp_nepus_by_src_t),
        (cb.exp_grid_by_src, cb.exp_grid_by_src_t),
    ]:
        annual.update({src: float(ser.sum()) for src, ser in series.items()})
    cb.del_grid = float(cb.del_grid_t.sum())
    return cb


def weight_carrier(
    cb: CarrierBalance, factors: WeightingFactors, k_exp: float
) -> CarrierBalance:
    """Computes the weighted energy of a carrier balance and splits it by service."""
    cr = cb.carrier
    we_del = _weighted(factors, cb.del_grid, cr, Source.RED, Dest.SUMINISTRO, Step.A)
    we_exp_a = RenNrenCo2()
    we_exp_ab = RenNrenCo2()
    for src, prod in cb.prod_by_src.items():
        fsrc = src.factor_source
        we_del = we_del + _weighted(factors, prod, cr, fsrc, Dest.SUMINISTRO, Step.A)
        for dest, amount in [
            (Dest.A_NEPB, cb.exp_nepus_by_src.get(src, 0.0)),
            (Dest.A_RED, cb.exp_grid_by_src.get(src, 0.0)),
        ]:
            exp_a = _weighted(factors, amount, cr, fsrc, dest, Step.A)
            exp_b = _weighted(factors, amount, cr, fsrc, dest, Step.B)
            we_exp_a = we_exp_a + exp_a
            we_exp_ab = we_exp_ab + (exp_b - exp_a)

    cb.we_del = we_del
    cb.we_exp_a = we_exp_a
    cb.we_exp_ab = we_exp_ab
    cb.we_a = we_del - we_exp_a
    cb.we_b = we_del - (we_exp_a + we_exp_ab * k_exp)

    # Reverse method: weighted energy is shared in proportion to the EPB use of each service
    total_use = cb.used_epus
    cb.we_a_by_srv = {}
    cb.we_b_by_srv = {}
    for srv, used in cb.used_epus_by_srv.items():
        share = hp.safe_div(used, total_use)
        cb.we_a_by_srv[srv] = cb.we_a * share
        cb.we_b_by_srv[srv] = cb.we_b * share
    assigned_share = hp.safe_div(sum(cb.used_epus_by_srv.values()), total_use)
    cb.we_a_unassigned = cb.we_a * (1.0 - assigned_share)
    cb.we_b_unassigned = cb.we_b * (1.0 - assigned_share)
    return cb


def weight(
    redistribution: Redistribution,
    allocation: Allocation,
    factors: WeightingFactors,
    config: BalanceConfig,
    carriers: Optional[List[Carrier]] = None,
) -> Dict[Carrier, CarrierBalance]:
    """Balance of every carrier used or produced in the building.

    Raises:
        MissingFactor: If a factor needed for a non zero energy amount is not defined.
    """
    table = redistribution.table
    if carriers is None:
        carriers = sorted(
            Carrier(c)
            for c in table.level_values("carrier", kind=[Kind.CONSUMPTION, Kind.PRODUCTION])
        )
    res = {}
    for carrier in carriers:
        cb = carrier_flows(carrier, redistribution, allocation)
        res[carrier] = weight_carrier(cb, factors, config.k_exp)
    return res


def _clamp_by_srv(
    by_srv: Dict[Service, RenNrenCo2], label: str
) -> Tuple[Dict[Service, RenNrenCo2], RenNrenCo2]:
    """Clamps negative values of each part (ren, nren, co2) and reallocates the deficit.

    Returns the clamped values and the part of the total they no longer hold, which is a
    negative total that could not be reallocated to any service.
    """
    parts = {}
    for part in ("ren", "nren", "co2"):
        parts[part] = hp.clamp_and_reallocate(
            {srv: getattr(v, part) for srv, v in by_srv.items()}, label=f"{label} {part}"
        )
    clamped = {
        srv: RenNrenCo2(parts["ren"][srv], parts["nren"][srv], parts["co2"][srv]) for srv in by_srv
    }
    rest = sum(by_srv.values(), RenNrenCo2()) - sum(clamped.values(), RenNrenCo2())
    if not rest.is_close(RenNrenCo2()):
        logger.info(f"Keeping negative {label} weighted energy ({rest}) as not assigned.")
    return clamped, rest


def aggregate_balance(
    balance_cr: Dict[Carrier, CarrierBalance], needs: Optional[Dict[Service, float]] = None
) -> Balance:
    """Adds up the carrier balances.

    Weighted energy by service is never negative: negative values are set to zero and the
    deficit is taken from the other services, or kept as not assigned if the total of the
    services is negative.
    """
    balance = Balance(needs=dict(needs or {}))
    for cb in balance_cr.values():
        balance.add_carrier(cb)
    balance.we_a_by_srv, rest_a = _clamp_by_srv(balance.we_a_by_srv, "step A")
    balance.we_b_by_srv, rest_b = _clamp_by_srv(balance.we_b_by_srv, "step B")
    balance.we_a_unassigned = balance.we_a_unassigned + rest_a
    balance.we_b_unassigned = balance.we_b_unassigned + rest_b
    return balance


def check_consistency(balance: Balance) -> List[Diagnostic]:
    """Checks that weighted energy by service and by carrier add up to the total."""
    diagnostics = []
    for step, total, by_srv, unassigned, by_cr in [
        ("A", balance.we_a, balance.we_a_by_srv, balance.we_a_unassigned, balance.we_a_by_cr),
        ("B", balance.we_b, balance.we_b_by_srv, balance.we_b_unassigned, balance.we_b_by_cr),
    ]:
        sum_srv = sum(by_srv.values(), RenNrenCo2()) + unassigned
        sum_cr = sum(by_cr.values(), RenNrenCo2())
        for what, value in [("services", sum_srv), ("carriers", sum_cr)]:
            if not value.is_close(total):
                detail = (
                    f"Step {step} weighted energy by {what} ({value}) does not add up to the"
                    f" total ({total})."
                )
                logger.warning(detail)
                diagnostics.append(Diagnostic("inconsistent_totals", detail))
    return diagnostics


def rer(we: RenNrenCo2) -> float:
    """Renewable energy ratio, clamped to [0, 1]."""
    return hp.clamp(we.rer) if we.tot != 0 else 0.0


def needs_of(table: FlowTable) -> Dict[Service, float]:
    return {
        Service(s): table.total(kind=Kind.DEMAND, service=s)
        for s in table.level_values("service", kind=Kind.DEMAND)
    }


def cogen_production(table: FlowTable) -> Tuple[float, float]:
    """Annual cogenerated electricity and cogeneration fuel."""
    return (
        table.total(kind=Kind.PRODUCTION, source=ProdSource.COGEN),
        table.total(kind=Kind.CONSUMPTION, service=Service.COGEN),
    )
