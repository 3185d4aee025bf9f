import pytest

from epbd.conventions import Carrier, Dest, ProdSource, Service, Source, Step
from epbd.core.balance import energy_performance
from epbd.core.components import Auxiliary, Consumption, Demand, Output, Production
from epbd.core.config import BalanceConfig
from epbd.core.errors import ParseError
from epbd.io import load_components, load_factors, read_components, read_factors, to_plain

COMPONENTS = """\
#META CTE_AREAREF: 100.5
#META CTE_COMENTARIO: vivienda
# Sistema 1
1, CONSUMO, ACS, ELECTRICIDAD, 1.0, 2.0 # bomba de calor
1, CONSUMO, ACS, EAMBIENTE, 3.0, 3.0 # CTEEPBD_EXCLUYE_SCOP_ACS
CONSUMO, CAL, GASNATURAL, 5, 5
0, PRODUCCION, EL_INSITU, 1.0, 2.0
2, AUX, 0.5, 0.5
2, SALIDA, CAL, 3.0, 4.0
DEMANDA, ACS, 10.0, 10.0
"""


@pytest.fixture
def components():
    return read_components(COMPONENTS)


def test_read_components(components):
    assert components.meta == {"CTE_AREAREF": "100.5", "CTE_COMENTARIO": "vivienda"}
    assert len(components) == 7
    c0, c1, c2, prod, aux, out, dem = components
    assert c0 == Consumption(1, Carrier.ELECTRICIDAD, Service.ACS, (1.0, 2.0), "bomba de calor")
    assert c1.exclude_from_acs
    assert not c0.exclude_from_acs
    assert c2.id == 0
    assert isinstance(prod, Production) and prod.source == ProdSource.INSITU
    assert isinstance(aux, Auxiliary) and aux.id == 2
    assert isinstance(out, Output) and out.values == (3.0, 4.0)
    assert isinstance(dem, Demand) and dem.total == 20.0


@pytest.mark.parametrize(
    "text, match",
    [
        ("1, CONSUMO, ACS, URANIO, 1.0", "Line 1"),
        ("1, CONSUMO, ACS, ELECTRICIDAD, 1.0\n1, GASTO, ACS, 1.0", "Line 2"),
        ("1, CONSUMO, HU, ELECTRICIDAD, 1.0", "no longer supported"),
        ("1, CONSUMO, ACS, ELECTRICIDAD, uno", "Line 1"),
        ("#META sin separador", "Line 1"),
    ],
)
def test_read_components_errors(text, match):
    with pytest.raises(ParseError, match=match):
        read_components(text)


FACTORS = """\
#META CTE_FUENTE: USUARIO
vector, fuente, uso, step, ren, nren, co2
ELECTRICIDAD, RED, SUMINISTRO, A, 0.414, 1.954, 0.331 # red peninsular
GASNATURAL, RED, SUMINISTRO, A, 0.005, 1.190
ELECTRICIDAD, COGENERACION, A_RED, A, 0.0, 2.5, 0.5
"""


def test_read_factors():
    wf = read_factors(FACTORS)
    assert wf.meta == {"CTE_FUENTE": "USUARIO"}
    assert len(wf) == 3
    el = wf.wdata[0]
    assert el.key == (Carrier.ELECTRICIDAD, Source.RED, Dest.SUMINISTRO, Step.A)
    assert el.comment == "red peninsular"
    assert wf.wdata[1].co2 == 0.0
    assert wf.wdata[2].source == Source.COGEN


@pytest.mark.parametrize(
    "text",
    [
        "ELECTRICIDAD, RED, SUMINISTRO, A, 0.414",
        "ELECTRICIDAD, RED, SUMINISTRO, C, 0.414, 1.954",
        "ELECTRICIDAD, RED, SUMINISTRO, A, 0.414, uno",
    ],
)
def test_read_factors_errors(text):
    with pytest.raises(ParseError, match="Line 1"):
        read_factors(text)


def test_factors_text_round_trip():
    wf = read_factors(FACTORS)
    assert read_factors(str(wf)).wdata == wf.wdata


def test_load_files(tmp_path):
    cpath = tmp_path / "components.csv"
    cpath.write_text(COMPONENTS, encoding="utf-8")
    fpath = tmp_path / "factors.csv"
    fpath.write_text(FACTORS, encoding="utf-8")
    assert len(load_components(cpath)) == 7
    assert len(load_factors(str(fpath))) == 3


def test_to_plain(testfp):
    comps = read_components(
        "1, CONSUMO, CAL, ELECTRICIDAD, 50, 50\n0, PRODUCCION, INSITU, 25, 25\nDEMANDA, CAL, 80, 80"
    )
    ep = energy_performance(comps, testfp, BalanceConfig(reference_area=2.0))
    text = to_plain(ep)
    assert text.startswith("┌")
    assert "Reference area [m²]: 2.0" in text
    assert "EPB services: 50.00" in text
    assert "Weighted energy, step B [kWh/m²]: ren 37.50, nren 50.00" in text
    assert "RER: 0.429" in text
    assert "error_acs" in text

    text = to_plain(ep, per_m2=False)
    assert "EPB services: 100.00" in text


def test_to_plain_needs_area(testfp):
    ep = energy_performance(read_components("1, CONSUMO, CAL, GASNATURAL, 10"), testfp)
    assert "Reference area [m²]: -" in to_plain(ep)
    with pytest.raises(ValueError):
        to_plain(ep, per_m2=True)
