"""Energy components: typed, immutable records of energy used, produced, delivered by systems,
used for auxiliary purposes and demanded by the building.

Every component carries the id of the system it belongs to (id <= 0 means a notional or
unassigned system), one value per calculation step in kWh and a free text comment.
"""

import logging
import math
from dataclasses import dataclass
from typing import ClassVar, Dict, FrozenSet, Iterable, Optional, Set, Tuple, Union

from epbd.conventions import (
    SERVICES_DEMAND,
    Carrier,
    Kind,
    ProdSource,
    Service,
)
from epbd.core.base_class import EpbdBaseClass
from epbd.core.errors import InconsistentStepCount, InvalidComponent

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

Values = Tuple[float, ...]


def _as_values(values: Iterable[float], what: str, allow_negative: bool = False) -> Values:
    try:
        vals = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise InvalidComponent(f"{what}: values must be numbers ({e}).") from e
    if not vals:
        raise InvalidComponent(f"{what}: at least one value is needed.")
    if not all(math.isfinite(v) for v in vals):
        raise InvalidComponent(f"{what}: values must be finite numbers.")
    if not allow_negative and any(v < 0 for v in vals):
        raise InvalidComponent(f"{what}: negative energy values are not allowed.")
    return vals


def _as_enum(enum_cls, tag, what: str):
    if isinstance(tag, enum_cls):
        return tag
    try:
        return enum_cls.parse(str(tag))
    except ValueError as e:
        raise InvalidComponent(f"{what}: {e}") from e


def _as_id(id, what: str) -> int:
    if isinstance(id, bool) or not isinstance(id, int):
        raise InvalidComponent(f"{what}: system id must be an integer, got {id!r}.")
    return id


class _ComponentMixin:
    kind: ClassVar[Kind]

    @property
    def num_steps(self) -> int:
        return len(self.values)

    @property
    def total(self) -> float:
        return float(sum(self.values))


@dataclass(frozen=True)
class Consumption(_ComponentMixin):
    """Energy used by system `id` with `carrier` for `service`.

    Service NEPB marks non EPB uses and COGEN the fuel burnt for cogeneration, which only
    feeds the derivation of the cogeneration weighting factors.
    """

    kind: ClassVar[Kind] = Kind.CONSUMPTION

    id: int
    carrier: Carrier
    service: Service
    values: Values
    comment: str = ""
    exclude_from_acs: bool = False

    def __post_init__(self):
        what = "Consumption"
        object.__setattr__(self, "id", _as_id(self.id, what))
        object.__setattr__(self, "carrier", _as_enum(Carrier, self.carrier, what))
        object.__setattr__(self, "service", _as_enum(Service, self.service, what))
        object.__setattr__(self, "values", _as_values(self.values, what))
        if self.service == Service.COGEN and (
            self.carrier == Carrier.ELECTRICIDAD or self.carrier.is_thermal_insitu
        ):
            raise InvalidComponent(f"{what}: {self.carrier} cannot be used as cogeneration fuel.")

    @property
    def is_epb(self) -> bool:
        return self.service.is_epb


@dataclass(frozen=True)
class Production(_ComponentMixin):
    """Energy produced by system `id`.

    INSITU and COGEN sources produce electricity; TERMOSOLAR and EAMBIENTE declare the thermal
    energy captured by the system, to be shared among the services of that system.
    """

    kind: ClassVar[Kind] = Kind.PRODUCTION

    id: int
    source: ProdSource
    values: Values
    comment: str = ""

    def __post_init__(self):
        what = "Production"
        object.__setattr__(self, "id", _as_id(self.id, what))
        object.__setattr__(self, "source", _as_enum(ProdSource, self.source, what))
        object.__setattr__(self, "values", _as_values(self.values, what))

    @property
    def carrier(self) -> Carrier:
        return self.source.carrier


@dataclass(frozen=True)
class Output(_ComponentMixin):
    """Energy delivered (positive) or absorbed (negative) by system `id` for `service`."""

    kind: ClassVar[Kind] = Kind.OUTPUT

    id: int
    service: Service
    values: Values
    comment: str = ""

    def __post_init__(self):
        what = "Output"
        object.__setattr__(self, "id", _as_id(self.id, what))
        object.__setattr__(self, "service", _as_enum(Service, self.service, what))
        object.__setattr__(self, "values", _as_values(self.values, what, allow_negative=True))
        if not self.service.is_epb:
            raise InvalidComponent(f"{what}: output must be given for an EPB service.")


@dataclass(frozen=True)
class Auxiliary(_ComponentMixin):
    """Auxiliary electricity of system `id`, shared later among the services of that system."""

    kind: ClassVar[Kind] = Kind.AUXILIARY

    id: int
    values: Values
    comment: str = ""
    exclude_from_acs: bool = False

    def __post_init__(self):
        what = "Auxiliary"
        object.__setattr__(self, "id", _as_id(self.id, what))
        object.__setattr__(self, "values", _as_values(self.values, what))

    @property
    def carrier(self) -> Carrier:
        return Carrier.ELECTRICIDAD


@dataclass(frozen=True)
class Demand(_ComponentMixin):
    """Energy need of the building for `service`."""

    kind: ClassVar[Kind] = Kind.DEMAND

    service: Service
    values: Values
    comment: str = ""
    id: int = 0

    def __post_init__(self):
        what = "Demand"
        object.__setattr__(self, "service", _as_enum(Service, self.service, what))
        object.__setattr__(self, "values", _as_values(self.values, what))
        object.__setattr__(self, "id", _as_id(self.id, what))
        if self.service not in SERVICES_DEMAND:
            raise InvalidComponent(
                f"{what}: service must be one of {[str(s) for s in SERVICES_DEMAND]}."
            )


Component = Union[Consumption, Production, Output, Auxiliary, Demand]
COMPONENT_TYPES = (Consumption, Production, Output, Auxiliary, Demand)


class Components(EpbdBaseClass):
    """Validated list of energy components of one computation, with metadata.

    Args:
        cdata: The components.
        meta: Free metadata, e.g. `{"CTE_AREAREF": "100.0"}`.
    """

    def __init__(self, cdata: Iterable[Component] = (), meta: Optional[Dict[str, str]] = None):
        self.cdata: Tuple[Component, ...] = tuple(cdata)
        self.meta: Dict[str, str] = dict(meta or {})
        for c in self.cdata:
            if not isinstance(c, COMPONENT_TYPES):
                raise InvalidComponent(f"Unknown component type {type(c).__name__}.")

    def __repr__(self):
        layout = "{bullet}{name:<14}{id:>4} {tag:<30} {total:>12}\n"
        return self._build_repr(layout, which_metadata=["id", "tag", "total"])

    def _repr_rows(self) -> Dict[str, Dict]:
        rows = {}
        for i, c in enumerate(self.cdata):
            tags = [str(getattr(c, a)) for a in ("carrier", "service", "source") if hasattr(c, a)]
            rows[f"{c.kind.value.lower()}[{i}]"] = dict(
                id=c.id, tag=", ".join(tags), total=f"{c.total:.2f}"
            )
        return rows

    def __len__(self):
        return len(self.cdata)

    def __iter__(self):
        return iter(self.cdata)

    @property
    def num_steps(self) -> int:
        """Returns the common number of calculation steps.

        Raises:
            InconsistentStepCount: If the components have different lengths.
            InvalidComponent: If there are no components, as a balance needs at least one step.
        """
        lengths = {c.num_steps for c in self.cdata}
        if len(lengths) > 1:
            raise InconsistentStepCount(
                f"Components have different number of steps: {sorted(lengths)}."
            )
        if not lengths:
            raise InvalidComponent("No components given, the number of steps is unknown.")
        return lengths.pop()

    def validate(self) -> "Components":
        """Checks the invariants shared by all components of a run and returns itself."""
        _ = self.num_steps
        aux_ids = {c.id for c in self.auxiliaries}
        served = self.services_by_system()
        for id in sorted(aux_ids):
            if not served.get(id):
                logger.warning(f"System {id} declares auxiliary energy but serves no EPB service.")
        return self

    def of_type(self, cls) -> Tuple:
        return tuple(c for c in self.cdata if isinstance(c, cls))

    @property
    def consumptions(self) -> Tuple[Consumption, ...]:
        return self.of_type(Consumption)

    @property
    def productions(self) -> Tuple[Production, ...]:
        return self.of_type(Production)

    @property
    def outputs(self) -> Tuple[Output, ...]:
        return self.of_type(Output)

    @property
    def auxiliaries(self) -> Tuple[Auxiliary, ...]:
        return self.of_type(Auxiliary)

    @property
    def demands(self) -> Tuple[Demand, ...]:
        return self.of_type(Demand)

    @property
    def carriers(self) -> FrozenSet[Carrier]:
        """Carriers used or produced by the components."""
        crs: Set[Carrier] = {c.carrier for c in self.consumptions}
        crs |= {c.carrier for c in self.productions}
        if self.auxiliaries:
            crs.add(Carrier.ELECTRICIDAD)
        return frozenset(crs)

    @property
    def has_cogen(self) -> bool:
        return any(c.source == ProdSource.COGEN for c in self.productions) or any(
            c.service == Service.COGEN for c in self.consumptions
        )

    @property
    def has_nepb(self) -> bool:
        return any(c.service == Service.NEPB for c in self.consumptions)

    @property
    def has_el_insitu(self) -> bool:
        return any(c.source == ProdSource.INSITU for c in self.productions)

    def services_by_system(self) -> Dict[int, FrozenSet[Service]]:
        """EPB services each system serves, from its consumption and output components."""
        res: Dict[int, Set[Service]] = {}
        for c in self.consumptions:
            if c.is_epb:
                res.setdefault(c.id, set()).add(c.service)
        for c in self.outputs:
            res.setdefault(c.id, set()).add(c.service)
        return {k: frozenset(v) for k, v in res.items()}

    def needs(self) -> Dict[Service, float]:
        """Annual building demand by service."""
        res: Dict[Service, float] = {}
        for d in self.demands:
            res[d.service] = res.get(d.service, 0.0) + d.total
        return res
