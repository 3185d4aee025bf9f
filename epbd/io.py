"""Plain text interface: reading of components and weighting factors and a text summary of
the energy performance.

Component lines (the system id is optional and defaults to 0):

    1, CONSUMO, ACS, ELECTRICIDAD, 1.0, 2.0 # comment
    1, PRODUCCION, EL_INSITU, 1.0, 2.0
    2, AUX, 0.5, 0.5
    2, SALIDA, CAL, 3.0, 4.0
    DEMANDA, ACS, 10.0, 10.0

Factor lines:

    ELECTRICIDAD, RED, SUMINISTRO, A, 0.414, 1.954, 0.331 # comment

Metadata lines start with `#META` (e.g. `#META CTE_AREAREF: 100.5`), other lines starting
with `#` are ignored.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from epbd import helper as hp
from epbd.conventions import EXCLUDE_ACS_MARKER, Etypes
from epbd.core.balance import EnergyPerformance
from epbd.core.components import (
    Auxiliary,
    Component,
    Components,
    Consumption,
    Demand,
    Output,
    Production,
)
from epbd.core.errors import EpbdError, ParseError
from epbd.core.factors import Factor, WeightingFactors

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)


def _split_line(line: str) -> Tuple[List[str], str]:
    data, _, comment = line.partition("#")
    return [f.strip() for f in data.split(",")], comment.strip()


def _parse_meta(line: str, meta: Dict[str, str]) -> None:
    content = line[len("#META"):].strip()
    key, sep, value = content.partition(":")
    if not sep or not key.strip():
        raise ValueError(f"Metadata must be given as '#META key: value', got '{line}'.")
    meta[key.strip()] = value.strip()


def _values(fields: List[str]) -> List[float]:
    return [float(v) for v in fields]


def _parse_component(fields: List[str], comment: str) -> Component:
    id = 0
    try:
        id = int(fields[0])
        fields = fields[1:]
    except ValueError:
        pass

    ctype, *rest = fields
    excl = EXCLUDE_ACS_MARKER in comment
    if ctype == "CONSUMO":
        service, carrier, *vals = rest
        return Consumption(id, carrier, service, _values(vals), comment, exclude_from_acs=excl)
    if ctype == "PRODUCCION":
        source, *vals = rest
        return Production(id, source, _values(vals), comment)
    if ctype == "AUX":
        return Auxiliary(id, _values(rest), comment, exclude_from_acs=excl)
    if ctype == "SALIDA":
        service, *vals = rest
        return Output(id, service, _values(vals), comment)
    if ctype == "DEMANDA":
        service, *vals = rest
        return Demand(service, _values(vals), comment, id=id)
    raise ValueError(f"Unknown component type '{ctype}'.")


def read_components(text: str) -> Components:
    """Reads components from their plain text representation.

    The legacy comment marker `CTEEPBD_EXCLUYE_SCOP_ACS` sets `exclude_from_acs`.

    Raises:
        ParseError: If a line can't be read.
    """
    meta: Dict[str, str] = {}
    cdata: List[Component] = []
    for i, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        try:
            if line.startswith("#META"):
                _parse_meta(line, meta)
            elif line and not line.startswith("#"):
                cdata.append(_parse_component(*_split_line(line)))
        except (ValueError, EpbdError) as e:
            raise ParseError(f"Line {i}: {e}") from e
    logger.info(f"Read {len(cdata)} components.")
    return Components(cdata, meta=meta)


def read_factors(text: str) -> WeightingFactors:
    """Reads weighting factors from their plain text representation.

    Raises:
        ParseError: If a line can't be read.
    """
    meta: Dict[str, str] = {}
    wdata: List[Factor] = []
    for i, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        try:
            if line.startswith("#META"):
                _parse_meta(line, meta)
            elif line and not line.startswith("#") and not line.startswith("vector,"):
                fields, comment = _split_line(line)
                if len(fields) not in (6, 7):
                    raise ValueError(
                        "Factors need carrier, source, destination, step, ren, nren and"
                        f" optionally co2, got {len(fields)} fields."
                    )
                carrier, source, dest, step, *values = fields
                wdata.append(Factor(carrier, source, dest, step, *_values(values), comment=comment))
        except (ValueError, EpbdError) as e:
            raise ParseError(f"Line {i}: {e}") from e
    return WeightingFactors(wdata, meta=meta)


def load_components(path: Union[str, Path]) -> Components:
    return read_components(Path(path).read_text(encoding="utf-8"))


def load_factors(path: Union[str, Path]) -> WeightingFactors:
    return read_factors(Path(path).read_text(encoding="utf-8"))


def to_plain(ep: EnergyPerformance, per_m2: Optional[bool] = None) -> str:
    """Returns a plain text summary of the energy performance.

    Args:
        ep: Results of the balance computation.
        per_m2: If values are given per m² of reference area. Defaults to True if a reference
            area was given.
    """
    if per_m2 is None:
        per_m2 = ep.balance_m2 is not None
    if per_m2 and ep.balance_m2 is None:
        raise ValueError("Values per m² need a reference area.")
    b = ep.balance_m2 if per_m2 else ep.balance
    e_unit, we_unit, co2_unit = (
        (Etypes.E.units[1], Etypes.we.units[1], "kgCO2e/m²")
        if per_m2
        else (Etypes.E.units[0], Etypes.we.units[0], Etypes.we.units[2])
    )

    header = hp.bordered(
        f"Energy performance\n"
        f"Reference area [m²]: {ep.config.reference_area or '-'}\n"
        f"k_exp: {ep.config.k_exp:.2f}\n"
        f"Load matching: {ep.config.load_matching.value}"
    )
    lines = [header, ""]
    lines.append(f"Used energy [{e_unit}]")
    lines.append(f"  EPB services: {b.used_epus:.2f}")
    for srv, value in b.used_epus_by_srv.items():
        lines.append(f"    {srv}: {value:.2f}")
    if b.used_epus_unassigned:
        lines.append(f"    not assigned: {b.used_epus_unassigned:.2f}")
    lines.append(f"  Non EPB services: {b.used_nepus:.2f}")
    lines.append(f"  Cogeneration: {b.used_cgnus:.2f}")
    lines.append(f"Produced energy [{e_unit}]: {b.prod:.2f}")
    for src, value in b.prod_by_src.items():
        lines.append(f"  {src}: {value:.2f}")
    lines.append(f"Delivered energy [{e_unit}]: grid {b.del_grid:.2f}, on site {b.del_onst:.2f}")
    lines.append(
        f"Exported energy [{e_unit}]: {b.exp:.2f} (grid {b.exp_grid:.2f},"
        f" non EPB {b.exp_nepus:.2f})"
    )
    lines.append("")
    for step, we, by_srv in [("A", b.we_a, b.we_a_by_srv), ("B", b.we_b, b.we_b_by_srv)]:
        lines.append(
            f"Weighted energy, step {step} [{we_unit}]: ren {we.ren:.2f}, nren {we.nren:.2f},"
            f" tot {we.tot:.2f}, co2 {we.co2:.2f} [{co2_unit}]"
        )
        for srv, value in by_srv.items():
            lines.append(f"  {srv}: ren {value.ren:.2f}, nren {value.nren:.2f}, tot {value.tot:.2f}")
    lines.append("")
    lines.append(f"RER: {ep.rer:.3f}, RER_nrb: {ep.rer_nrb:.3f}, RER_onst: {ep.rer_onst:.3f}")
    lines.append(f"ACS renewable fraction (nearby): {ep.acs}")
    if ep.diagnostics:
        lines.append("")
        lines.append("Diagnostics:")
        lines.extend(f"  {d}" for d in ep.diagnostics)
    return "\n".join(lines)
