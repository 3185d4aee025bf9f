import pytest

from epbd.conventions import (
    Carrier,
    Dest,
    Descs,
    Etypes,
    ProdSource,
    Service,
    Source,
    Step,
)


def test_carrier_parse():
    assert Carrier.parse(" GASNATURAL ") == Carrier.GASNATURAL
    assert str(Carrier.ELECTRICIDAD) == "ELECTRICIDAD"
    with pytest.raises(ValueError, match="Unknown energy carrier"):
        Carrier.parse("URANIO")


@pytest.mark.parametrize(
    "carrier, nearby, onsite",
    [
        (Carrier.ELECTRICIDAD, False, False),
        (Carrier.GASNATURAL, False, False),
        (Carrier.BIOMASA, True, False),
        (Carrier.RED1, True, False),
        (Carrier.EAMBIENTE, True, True),
        (Carrier.TERMOSOLAR, True, True),
    ],
)
def test_carrier_perimeters(carrier, nearby, onsite):
    assert carrier.is_nearby == nearby
    assert carrier.is_onsite == onsite


@pytest.mark.parametrize("tag", ["HU", "DHU", "BAC"])
def test_service_retired(tag):
    with pytest.raises(ValueError, match="no longer supported"):
        Service.parse(tag)


def test_service_is_epb():
    assert Service.ACS.is_epb
    assert not Service.NEPB.is_epb
    assert not Service.COGEN.is_epb


@pytest.mark.parametrize(
    "tag, expected, carrier",
    [
        ("INSITU", ProdSource.INSITU, Carrier.ELECTRICIDAD),
        ("EL_INSITU", ProdSource.INSITU, Carrier.ELECTRICIDAD),
        ("EL_COGEN", ProdSource.COGEN, Carrier.ELECTRICIDAD),
        ("TERMOSOLAR", ProdSource.TERMOSOLAR, Carrier.TERMOSOLAR),
        ("EAMBIENTE", ProdSource.EAMBIENTE, Carrier.EAMBIENTE),
    ],
)
def test_prod_source_parse(tag, expected, carrier):
    src = ProdSource.parse(tag)
    assert src == expected
    assert src.carrier == carrier


def test_prod_source_factor_source():
    assert ProdSource.COGEN.factor_source == Source.COGEN
    assert ProdSource.TERMOSOLAR.factor_source == Source.INSITU


@pytest.mark.parametrize(
    "tag, expected", [("RED", Source.RED), ("SUMINISTRO", Source.RED), ("COGENERACION", Source.COGEN)]
)
def test_source_parse(tag, expected):
    assert Source.parse(tag) == expected


def test_dest_and_step_parse():
    assert Dest.parse("A_NEPB") == Dest.A_NEPB
    assert Step.parse("B") == Step.B
    with pytest.raises(ValueError):
        Step.parse("C")


def test_aliases():
    assert Etypes.we.units[0] == "kWh"
    assert Descs.exp_grid.es == "Exportada a la red"
