import logging
from typing import List, Optional

from epbd.conventions import Carrier, Dest, Source, Step
from epbd.core.factors import Factor, RenNrenCo2, WeightingFactors
from epbd.prep.data_base import ELECTRICITY_BY_LOC, SRC, DataBase, FactorDat

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

LOCATIONS = tuple(sorted(ELECTRICITY_BY_LOC))


def reference_factors() -> List[FactorDat]:
    """Grid supply factors of all carriers except electricity, which depends on the location."""
    return [v for v in vars(DataBase).values() if isinstance(v, FactorDat)]


def wfactors_from_loc(
    loc: str, red1: Optional[RenNrenCo2] = None, red2: Optional[RenNrenCo2] = None
) -> WeightingFactors:
    """Returns the normalized reference weighting factors of a location.

    Args:
        loc: One of PENINSULA, BALEARES, CANARIAS, CEUTAMELILLA.
        red1: User factors of the district network RED1.
        red2: User factors of the district network RED2.
    """
    if loc not in ELECTRICITY_BY_LOC:
        raise ValueError(f"Unknown location '{loc}'. Choose from {LOCATIONS}.")

    wdata = [
        Factor(fd.carrier, Source.RED, Dest.SUMINISTRO, Step.A, fd.ren, fd.nren, fd.co2, fd.doc)
        for fd in reference_factors() + [ELECTRICITY_BY_LOC[loc]]
    ]
    for carrier, comment in [
        (Carrier.EAMBIENTE, "Recursos usados para generar in situ energía térmica del medioambiente"),
        (Carrier.TERMOSOLAR, "Recursos usados para generar in situ energía solar térmica"),
        (Carrier.ELECTRICIDAD, "Recursos usados para producir electricidad in situ"),
    ]:
        wdata.append(Factor(carrier, Source.INSITU, Dest.SUMINISTRO, Step.A, 1.0, 0.0, 0.0, comment))

    meta = {
        "CTE_FUENTE": "RITE2014",
        "CTE_LOCALIZACION": loc,
        "CTE_FUENTE_COMENTARIO": SRC.IDAE_2016.doc,
    }
    logger.info(f"Using reference weighting factors for {loc}.")
    return WeightingFactors(wdata, meta=meta).normalize(red1=red1, red2=red2)
