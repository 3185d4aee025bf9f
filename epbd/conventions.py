"""Naming conventions and closed category sets of the energy balance.

Categories are `str`-valued enums so that an unknown tag fails when it is parsed instead of
being silently miscategorized. Result entities are documented with `Alias` objects in the
classes at the bottom of this module.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple


@dataclass
class Alias:
    en: str
    es: str
    units: Optional[List] = None


class Carrier(str, Enum):
    """Energy carrier."""

    EAMBIENTE = "EAMBIENTE"
    BIOCARBURANTE = "BIOCARBURANTE"
    BIOMASA = "BIOMASA"
    BIOMASADENSIFICADA = "BIOMASADENSIFICADA"
    CARBON = "CARBON"
    ELECTRICIDAD = "ELECTRICIDAD"
    GASNATURAL = "GASNATURAL"
    GASOLEO = "GASOLEO"
    GLP = "GLP"
    RED1 = "RED1"
    RED2 = "RED2"
    TERMOSOLAR = "TERMOSOLAR"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "Carrier":
        try:
            return cls(tag.strip())
        except ValueError:
            raise ValueError(f"Unknown energy carrier '{tag}'.") from None

    @property
    def is_nearby(self) -> bool:
        """If the carrier belongs to the nearby perimeter."""
        return self in NRBY

    @property
    def is_onsite(self) -> bool:
        """If the carrier belongs to the on-site perimeter."""
        return self in ONST

    @property
    def is_thermal_insitu(self) -> bool:
        return self in THERMAL_INSITU

    @property
    def is_biomass(self) -> bool:
        return self in BIOMASS


NRBY: FrozenSet[Carrier] = frozenset(
    [
        Carrier.BIOMASA,
        Carrier.BIOMASADENSIFICADA,
        Carrier.RED1,
        Carrier.RED2,
        Carrier.EAMBIENTE,
        Carrier.TERMOSOLAR,
    ]
)
ONST: FrozenSet[Carrier] = frozenset([Carrier.EAMBIENTE, Carrier.TERMOSOLAR])
THERMAL_INSITU = ONST
BIOMASS: FrozenSet[Carrier] = frozenset([Carrier.BIOMASA, Carrier.BIOMASADENSIFICADA])


RETIRED_SERVICES = ("HU", "DHU", "BAC")


class Service(str, Enum):
    """End use of energy."""

    ACS = "ACS"
    CAL = "CAL"
    REF = "REF"
    VEN = "VEN"
    ILU = "ILU"
    NEPB = "NEPB"
    COGEN = "COGEN"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "Service":
        tag = tag.strip()
        if tag in RETIRED_SERVICES:
            raise ValueError(
                f"Service '{tag}' is no longer supported. Merge its energy into CAL, REF or"
                " auxiliary energy before computing the balance."
            )
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"Unknown service '{tag}'.") from None

    @property
    def is_epb(self) -> bool:
        return self not in (Service.NEPB, Service.COGEN)


SERVICES_EPB: Tuple[Service, ...] = (
    Service.ACS,
    Service.CAL,
    Service.REF,
    Service.VEN,
    Service.ILU,
)
SERVICES_DEMAND: Tuple[Service, ...] = (Service.ACS, Service.CAL, Service.REF)


class ProdSource(str, Enum):
    """Origin of produced energy.

    INSITU and COGEN produce electricity, TERMOSOLAR and EAMBIENTE are thermal captures of a
    system.
    """

    INSITU = "INSITU"
    COGEN = "COGEN"
    TERMOSOLAR = "TERMOSOLAR"
    EAMBIENTE = "EAMBIENTE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "ProdSource":
        tag = tag.strip()
        tag = {"EL_INSITU": "INSITU", "EL_COGEN": "COGEN"}.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"Unknown production source '{tag}'.") from None

    @property
    def carrier(self) -> Carrier:
        if self in (ProdSource.INSITU, ProdSource.COGEN):
            return Carrier.ELECTRICIDAD
        return Carrier(self.value)

    @property
    def factor_source(self) -> "Source":
        return Source.COGEN if self == ProdSource.COGEN else Source.INSITU


# Electricity sources sorted by priority of use.
PRIORITY: Tuple[ProdSource, ...] = (ProdSource.INSITU, ProdSource.COGEN)


class Source(str, Enum):
    """Origin of the energy a weighting factor applies to (RED is grid supply)."""

    RED = "RED"
    INSITU = "INSITU"
    COGEN = "COGEN"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "Source":
        tag = tag.strip()
        tag = {"COGENERACION": "COGEN", "SUMINISTRO": "RED"}.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"Unknown factor source '{tag}'.") from None


class Dest(str, Enum):
    """Destination of the energy a weighting factor applies to."""

    SUMINISTRO = "SUMINISTRO"
    A_RED = "A_RED"
    A_NEPB = "A_NEPB"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "Dest":
        try:
            return cls(tag.strip())
        except ValueError:
            raise ValueError(f"Unknown factor destination '{tag}'.") from None


class Step(str, Enum):
    """Calculation step: resource use (A) and with exported energy credit (B)."""

    A = "A"
    B = "B"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "Step":
        try:
            return cls(tag.strip())
        except ValueError:
            raise ValueError(f"Unknown calculation step '{tag}'.") from None


class Perimeter(str, Enum):
    DISTANT = "DISTANT"
    NEARBY = "NEARBY"
    ONSITE = "ONSITE"


class LoadMatching(str, Enum):
    CONSTANT = "CONSTANT"
    STATISTICAL = "STATISTICAL"


class AcsState(str, Enum):
    """State of the renewable fraction of the ACS demand."""

    NOT_APPLICABLE = "NOT_APPLICABLE"
    COMPUTABLE = "COMPUTABLE"
    COMPUTED_WITH_CAVEAT = "COMPUTED_WITH_CAVEAT"
    ERROR = "ERROR"

    def __str__(self) -> str:
        return self.value


# Key levels of aggregated flow tables
class Kind(str, Enum):
    CONSUMPTION = "CONSUMPTION"
    PRODUCTION = "PRODUCTION"
    AUXILIARY = "AUXILIARY"
    OUTPUT = "OUTPUT"
    DEMAND = "DEMAND"
    ALLOCATED = "ALLOCATED"

    def __str__(self) -> str:
        return self.value


# Legacy comment marker superseded by `exclude_from_acs`.
EXCLUDE_ACS_MARKER = "CTEEPBD_EXCLUYE_SCOP_ACS"


# fmt: off
class Etypes:
    # SORTING_START
    E = Alias(en="Energy", es="Energía", units=["kWh", "kWh/m²"])
    f = Alias(en="Factor", es="Factor", units=["", "kWh/kWh", "kgCO2e/kWh"])
    RER = Alias(en="Renewable energy ratio", es="Fracción de energía renovable", units=[""])
    we = Alias(en="Weighted energy", es="Energía ponderada", units=["kWh", "kWh/m²", "kgCO2e"])
    # SORTING_END


class Descs:
    # SORTING_START
    cgnus = Alias(en="Used for cogeneration", es="Consumida en cogeneración")
    del_grid = Alias(en="Delivered by the grid", es="Suministrada por la red")
    del_onst = Alias(en="Delivered on site", es="Suministrada in situ")
    epus = Alias(en="Used in EPB services", es="Consumida en servicios EPB")
    exp = Alias(en="Exported", es="Exportada")
    exp_grid = Alias(en="Exported to the grid", es="Exportada a la red")
    exp_nepus = Alias(en="Exported to non EPB uses", es="Exportada a usos no EPB")
    nepus = Alias(en="Used in non EPB services", es="Consumida en usos no EPB")
    prod = Alias(en="Produced", es="Producida")
    unassigned = Alias(en="Not assigned to a service", es="Sin asignar a un servicio")
    # SORTING_END
# fmt: on
