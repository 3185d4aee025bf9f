from dataclasses import dataclass
from typing import Dict

from epbd.conventions import Carrier

# fmt: off

# This file is ignored from the black formatter.
# Data entries are alphabetically sorted within the formatting routine.


@dataclass(frozen=True)
class RefDoc:
    url: str = ""
    doc: str = ""


@dataclass(frozen=True)
class FactorDat:
    """Grid supply factor of a carrier (RED, SUMINISTRO, A)."""
    carrier: Carrier
    ren: float
    nren: float
    co2: float
    doc: str = ""
    src: str = ""


class SRC:
    # SORTING_START
    IDAE_2016 =  RefDoc(doc="Factores de emisión de CO2 y coeficientes de paso a energía primaria, documento reconocido del RITE de 20/07/2014")
    # SORTING_END


class DataBase:
    # SORTING_START
    BIOCARBURANTE =       FactorDat(Carrier.BIOCARBURANTE, 1.028, 0.085, 0.018, doc="Biocarburante = biomasa densificada (pellets)", src="@IDAE_2016")
    BIOMASA =             FactorDat(Carrier.BIOMASA, 1.003, 0.034, 0.018, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    BIOMASADENSIFICADA =  FactorDat(Carrier.BIOMASADENSIFICADA, 1.028, 0.085, 0.018, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    CARBON =              FactorDat(Carrier.CARBON, 0.002, 1.082, 0.472, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    EAMBIENTE =           FactorDat(Carrier.EAMBIENTE, 1.000, 0.000, 0.000, doc="Recursos usados para suministrar energía térmica del medioambiente (red ficticia)")
    GASNATURAL =          FactorDat(Carrier.GASNATURAL, 0.005, 1.190, 0.252, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    GASOLEO =             FactorDat(Carrier.GASOLEO, 0.003, 1.179, 0.311, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    GLP =                 FactorDat(Carrier.GLP, 0.003, 1.201, 0.254, doc="Recursos usados para suministrar el vector desde la red", src="@IDAE_2016")
    TERMOSOLAR =          FactorDat(Carrier.TERMOSOLAR, 1.000, 0.000, 0.000, doc="Recursos usados para suministrar energía solar térmica (red ficticia)")
    # SORTING_END


ELECTRICITY_BY_LOC: Dict[str, FactorDat] = {
    # SORTING_START
    "BALEARES":      FactorDat(Carrier.ELECTRICIDAD, 0.082, 2.968, 0.932, doc="Recursos usados para suministrar electricidad (BALEARES) desde la red", src="@IDAE_2016"),
    "CANARIAS":      FactorDat(Carrier.ELECTRICIDAD, 0.070, 2.924, 0.776, doc="Recursos usados para suministrar electricidad (CANARIAS) desde la red", src="@IDAE_2016"),
    "CEUTAMELILLA":  FactorDat(Carrier.ELECTRICIDAD, 0.072, 2.718, 0.721, doc="Recursos usados para suministrar electricidad (CEUTA Y MELILLA) desde la red", src="@IDAE_2016"),
    "PENINSULA":     FactorDat(Carrier.ELECTRICIDAD, 0.414, 1.954, 0.331, doc="Recursos usados para suministrar electricidad (PENINSULA) desde la red", src="@IDAE_2016"),
    # SORTING_END
}
# fmt: on
