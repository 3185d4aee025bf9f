"""Weighting factors: conversion of final energy into renewable, non renewable primary energy
and CO2 emissions.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from epbd.conventions import NRBY, ONST, Carrier, Dest, Perimeter, Source, Step
from epbd.core.base_class import EpbdBaseClass
from epbd.core.errors import MissingFactor

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

FactorKey = Tuple[Carrier, Source, Dest, Step]

# Default factors of district heating networks.
RED1_DEFAULT = (0.0, 1.3, 0.3)
RED2_DEFAULT = (0.0, 1.3, 0.3)

# Carrier and source pairs whose production can be exported.
EXPORTABLE: Tuple[Tuple[Carrier, Source], ...] = (
    (Carrier.ELECTRICIDAD, Source.INSITU),
    (Carrier.EAMBIENTE, Source.INSITU),
    (Carrier.TERMOSOLAR, Source.INSITU),
)


@dataclass(frozen=True)
class RenNrenCo2:
    """Renewable and non renewable primary energy and CO2 emissions."""

    ren: float = 0.0
    nren: float = 0.0
    co2: float = 0.0

    @property
    def tot(self) -> float:
        return self.ren + self.nren

    @property
    def rer(self) -> float:
        """Renewable share of the total primary energy (0 if the total is 0)."""
        return self.ren / self.tot if self.tot != 0 else 0.0

    def __add__(self, other: "RenNrenCo2") -> "RenNrenCo2":
        return RenNrenCo2(self.ren + other.ren, self.nren + other.nren, self.co2 + other.co2)

    def __sub__(self, other: "RenNrenCo2") -> "RenNrenCo2":
        return RenNrenCo2(self.ren - other.ren, self.nren - other.nren, self.co2 - other.co2)

    def __mul__(self, k: float) -> "RenNrenCo2":
        return RenNrenCo2(self.ren * k, self.nren * k, self.co2 * k)

    __rmul__ = __mul__

    def __neg__(self) -> "RenNrenCo2":
        return self * -1.0

    def as_dict(self) -> Dict[str, float]:
        return dict(ren=self.ren, nren=self.nren, co2=self.co2)

    def is_close(self, other: "RenNrenCo2", rel_tol: float = 1e-6) -> bool:
        return all(
            abs(a - b) <= rel_tol * max(1.0, abs(a), abs(b))
            for a, b in zip(
                (self.ren, self.nren, self.co2), (other.ren, other.nren, other.co2)
            )
        )

    def __str__(self) -> str:
        return f"ren: {self.ren:.3f}, nren: {self.nren:.3f}, tot: {self.tot:.3f}, co2: {self.co2:.3f}"


@dataclass(frozen=True)
class Factor:
    """Weighting factor of one (carrier, source, destination, step) combination."""

    carrier: Carrier
    source: Source
    dest: Dest
    step: Step
    ren: float
    nren: float
    co2: float = 0.0
    comment: str = ""

    def __post_init__(self):
        for attr, cls in [("carrier", Carrier), ("source", Source), ("dest", Dest), ("step", Step)]:
            value = getattr(self, attr)
            if not isinstance(value, cls):
                object.__setattr__(self, attr, cls.parse(str(value)))

    @property
    def key(self) -> FactorKey:
        return (self.carrier, self.source, self.dest, self.step)

    @property
    def values(self) -> RenNrenCo2:
        return RenNrenCo2(self.ren, self.nren, self.co2)

    def with_values(self, values: RenNrenCo2, comment: Optional[str] = None) -> "Factor":
        return replace(
            self,
            ren=values.ren,
            nren=values.nren,
            co2=values.co2,
            comment=self.comment if comment is None else comment,
        )

    def __str__(self) -> str:
        line = (
            f"{self.carrier}, {self.source}, {self.dest}, {self.step}, "
            f"{self.ren:.3f}, {self.nren:.3f}, {self.co2:.3f}"
        )
        return f"{line} # {self.comment}" if self.comment else line


class WeightingFactors(EpbdBaseClass):
    """List of weighting factors with metadata and a lookup index.

    Objects are treated as immutable: all transformations return new objects. If a key is
    given more than once, the last factor wins.
    """

    def __init__(self, wdata: Iterable[Factor] = (), meta: Optional[Dict[str, str]] = None):
        index: Dict[FactorKey, Factor] = {}
        for f in wdata:
            if f.key in index:
                logger.info(f"Factor {f.key} is defined more than once. Using the last one.")
            index[f.key] = f
        self._index = index
        self.meta: Dict[str, str] = dict(meta or {})

    @property
    def wdata(self) -> List[Factor]:
        return list(self._index.values())

    def __repr__(self):
        layout = "{bullet}{name:<45} {ren:>7} {nren:>7} {co2:>7}\n"
        return self._build_repr(layout, which_metadata=["ren", "nren", "co2"])

    def _repr_rows(self) -> Dict[str, Dict]:
        return {
            ", ".join(str(k) for k in f.key): dict(
                ren=f"{f.ren:.3f}", nren=f"{f.nren:.3f}", co2=f"{f.co2:.3f}"
            )
            for f in self._index.values()
        }

    def __len__(self):
        return len(self._index)

    def __iter__(self):
        return iter(self._index.values())

    def __contains__(self, key: FactorKey) -> bool:
        return key in self._index

    def __str__(self) -> str:
        lines = [f"#META {k}: {v}" for k, v in self.meta.items()]
        lines += [str(f) for f in self._index.values()]
        return "\n".join(lines)

    @property
    def carriers(self) -> List[Carrier]:
        return sorted({f.carrier for f in self._index.values()})

    def get(
        self, carrier: Carrier, source: Source, dest: Dest, step: Step
    ) -> Optional[RenNrenCo2]:
        f = self._index.get((carrier, source, dest, step))
        return None if f is None else f.values

    def find(self, carrier: Carrier, source: Source, dest: Dest, step: Step) -> RenNrenCo2:
        """Returns the factor values.

        Raises:
            MissingFactor: If no factor is defined for the given key.
        """
        f = self._index.get((carrier, source, dest, step))
        if f is None:
            raise MissingFactor(
                f"Weighting factor not found for {carrier}, {source}, {dest}, {step}."
            )
        return f.values

    def updated(self, *factors: Factor) -> "WeightingFactors":
        """Returns a copy with the given factors added or replaced."""
        return WeightingFactors(list(self._index.values()) + list(factors), meta=self.meta)

    def _filtered(self, keep) -> "WeightingFactors":
        return WeightingFactors([f for f in self._index.values() if keep(f)], meta=self.meta)

    def with_user_factors(
        self,
        red1: Optional[RenNrenCo2] = None,
        red2: Optional[RenNrenCo2] = None,
    ) -> "WeightingFactors":
        """Sets the user defined supply factors of the district networks RED1 and RED2."""
        new = []
        for carrier, values in [(Carrier.RED1, red1), (Carrier.RED2, red2)]:
            if values is not None:
                new.append(
                    Factor(carrier, Source.RED, Dest.SUMINISTRO, Step.A, *_tuple(values), "Factor de usuario")
                )
        return self.updated(*new)

    def normalize(
        self,
        red1: Optional[RenNrenCo2] = None,
        red2: Optional[RenNrenCo2] = None,
    ) -> "WeightingFactors":
        """Completes the factor list with the factors that can be derived from others.

        - EAMBIENTE and TERMOSOLAR supply from INSITU and RED sources in step A default to
          (1, 0, 0).
        - ELECTRICIDAD INSITU supply in step A defaults to (1, 0, 0) if the list has
          electricity factors.
        - RED1 and RED2 supply factors default to the user values or (0, 1.3, 0.3).
        - Export factors of exportable productions (step A) default to the supply factor of
          the same source, and their step B factors to the grid supply factor of the carrier.

        Raises:
            MissingFactor: If a carrier has no grid supply factor in step A.
        """
        wf = self.with_user_factors(red1, red2)
        carriers = set(wf.carriers)

        new: List[Factor] = []

        def ensure(carrier, source, dest, step, values, comment):
            key = (carrier, source, dest, step)
            if key not in wf and key not in {f.key for f in new}:
                new.append(Factor(carrier, source, dest, step, *_tuple(values), comment))

        for carrier in (Carrier.EAMBIENTE, Carrier.TERMOSOLAR):
            ensure(carrier, Source.INSITU, Dest.SUMINISTRO, Step.A, (1.0, 0.0, 0.0),
                   "Recursos usados para obtener energía térmica in situ")
            ensure(carrier, Source.RED, Dest.SUMINISTRO, Step.A, (1.0, 0.0, 0.0),
                   "Recursos usados para obtener energía térmica in situ (red ficticia)")
        if Carrier.ELECTRICIDAD in carriers:
            ensure(Carrier.ELECTRICIDAD, Source.INSITU, Dest.SUMINISTRO, Step.A, (1.0, 0.0, 0.0),
                   "Recursos usados para generar electricidad in situ")
        ensure(Carrier.RED1, Source.RED, Dest.SUMINISTRO, Step.A, RED1_DEFAULT,
               "Recursos usados para suministrar energía de la red de distrito 1")
        ensure(Carrier.RED2, Source.RED, Dest.SUMINISTRO, Step.A, RED2_DEFAULT,
               "Recursos usados para suministrar energía de la red de distrito 2")
        wf = wf.updated(*new)

        missing = [
            str(c)
            for c in sorted(set(wf.carriers))
            if (c, Source.RED, Dest.SUMINISTRO, Step.A) not in wf
        ]
        if missing:
            raise MissingFactor(f"Grid supply factors (RED, SUMINISTRO, A) missing for {missing}.")

        new = []
        for carrier, source in EXPORTABLE:
            if carrier not in wf.carriers:
                continue
            input_a = wf.find(carrier, source, Dest.SUMINISTRO, Step.A)
            grid_a = wf.find(carrier, Source.RED, Dest.SUMINISTRO, Step.A)
            ensure(carrier, source, Dest.A_RED, Step.A, input_a,
                   "Recursos usados para producir la energía exportada a la red")
            ensure(carrier, source, Dest.A_NEPB, Step.A, input_a,
                   "Recursos usados para producir la energía exportada a usos no EPB")
            ensure(carrier, source, Dest.A_RED, Step.B, grid_a,
                   "Recursos ahorrados a la red por la energía exportada a la red")
            ensure(carrier, source, Dest.A_NEPB, Step.B, grid_a,
                   "Recursos ahorrados a la red por la energía exportada a usos no EPB")
        return wf.updated(*new)

    def strip(self, components) -> "WeightingFactors":
        """Removes the factors that are not used by the given components.

        Drops factors of carriers that do not appear, cogeneration factors without
        cogeneration, factors of exports to non EPB uses without non EPB uses and factors of
        on-site electricity without on-site production.
        """
        used = set(components.carriers)
        has_cogen = components.has_cogen
        has_nepb = components.has_nepb
        has_el_insitu = components.has_el_insitu
        return self._filtered(
            lambda f: f.carrier in used
            and (f.source != Source.COGEN or has_cogen)
            and (f.dest != Dest.A_NEPB or has_nepb)
            and not (
                f.carrier == Carrier.ELECTRICIDAD and f.source == Source.INSITU and not has_el_insitu
            )
        )

    def to_perimeter(self, perimeter: Perimeter) -> "WeightingFactors":
        """Returns the factors seen from a reduced assessment perimeter.

        The renewable part of grid supplied carriers outside the perimeter is counted as non
        renewable. This includes the step B factors of exported energy, which are those of the
        grid.
        """
        if perimeter == Perimeter.DISTANT:
            return self
        inside = NRBY if perimeter == Perimeter.NEARBY else ONST
        changed = []
        for f in self._index.values():
            from_grid = f.source == Source.RED or f.step == Step.B
            if from_grid and f.carrier not in inside:
                changed.append(replace(f, ren=0.0, nren=f.ren + f.nren))
            else:
                changed.append(f)
        return WeightingFactors(changed, meta=self.meta)

    def with_cogen_factors(self, cogen: RenNrenCo2) -> "WeightingFactors":
        """Sets the factors of cogenerated electricity.

        Supply and exports in step A take the given values, exports in step B the grid
        electricity factor. User defined cogeneration factors are replaced.
        """
        user = [f for f in self._index.values() if f.source == Source.COGEN]
        if user:
            logger.warning(
                f"Replacing {len(user)} user defined cogeneration factors with values derived"
                " from the cogeneration fuels."
            )
        grid = self.find(Carrier.ELECTRICIDAD, Source.RED, Dest.SUMINISTRO, Step.A)
        comment = "Factor de cogeneración calculado a partir del combustible"
        return self.updated(
            Factor(Carrier.ELECTRICIDAD, Source.COGEN, Dest.SUMINISTRO, Step.A, *_tuple(cogen), comment),
            Factor(Carrier.ELECTRICIDAD, Source.COGEN, Dest.A_RED, Step.A, *_tuple(cogen), comment),
            Factor(Carrier.ELECTRICIDAD, Source.COGEN, Dest.A_NEPB, Step.A, *_tuple(cogen), comment),
            Factor(Carrier.ELECTRICIDAD, Source.COGEN, Dest.A_RED, Step.B, *_tuple(grid),
                   "Recursos ahorrados a la red por la electricidad cogenerada"),
            Factor(Carrier.ELECTRICIDAD, Source.COGEN, Dest.A_NEPB, Step.B, *_tuple(grid),
                   "Recursos ahorrados a la red por la electricidad cogenerada"),
        )


def _tuple(values) -> Tuple[float, float, float]:
    if isinstance(values, RenNrenCo2):
        return (values.ren, values.nren, values.co2)
    ren, nren, *rest = values
    return (float(ren), float(nren), float(rest[0]) if rest else 0.0)
