import pytest

from epbd.conventions import Carrier, Dest, Source, Step
from epbd.core.factors import RenNrenCo2
from epbd.prep import LOCATIONS, DataBase, wfactors_from_loc
from epbd.prep.wfactors import reference_factors


def test_reference_factors():
    carriers = {fd.carrier for fd in reference_factors()}
    assert Carrier.ELECTRICIDAD not in carriers
    assert {Carrier.GASNATURAL, Carrier.BIOMASA, Carrier.GLP} <= carriers
    assert DataBase.GASNATURAL.src == "@IDAE_2016"


def test_locations():
    assert LOCATIONS == ("BALEARES", "CANARIAS", "CEUTAMELILLA", "PENINSULA")


@pytest.mark.parametrize("loc", LOCATIONS)
def test_wfactors_from_loc(loc):
    wf = wfactors_from_loc(loc)
    assert wf.meta["CTE_LOCALIZACION"] == loc
    assert (Carrier.ELECTRICIDAD, Source.RED, Dest.SUMINISTRO, Step.A) in wf
    assert (Carrier.ELECTRICIDAD, Source.INSITU, Dest.A_RED, Step.B) in wf
    assert wf.find(Carrier.EAMBIENTE, Source.INSITU, Dest.SUMINISTRO, Step.A) == RenNrenCo2(
        1.0, 0.0, 0.0
    )


def test_wfactors_from_loc_peninsula():
    wf = wfactors_from_loc("PENINSULA", red1=RenNrenCo2(0.2, 0.8, 0.1))
    assert wf.find(Carrier.ELECTRICIDAD, Source.RED, Dest.SUMINISTRO, Step.A) == RenNrenCo2(
        0.414, 1.954, 0.331
    )
    assert wf.find(Carrier.RED1, Source.RED, Dest.SUMINISTRO, Step.A) == RenNrenCo2(0.2, 0.8, 0.1)


def test_wfactors_from_loc_unknown():
    with pytest.raises(ValueError, match="Unknown location"):
        wfactors_from_loc("MARTE")
