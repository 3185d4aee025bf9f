import pytest

import epbd
from epbd.conventions import Carrier, Dest, ProdSource, Service, Source, Step
from epbd.core.balance import ACS_FRACTION_KEY, EnergyPerformance, energy_performance
from epbd.core.components import (
    Auxiliary,
    Components,
    Consumption,
    Demand,
    Output,
    Production,
)
from epbd.core.config import BalanceConfig
from epbd.core.errors import InconsistentStepCount, InvalidComponent, MissingFactor
from epbd.core.factors import Factor, RenNrenCo2, WeightingFactors


@pytest.fixture
def ep_grid(testfp) -> EnergyPerformance:
    comps = Components([Consumption(1, "ELECTRICIDAD", "CAL", [50.0, 50.0])])
    return energy_performance(comps, testfp, BalanceConfig(reference_area=1.0))


@pytest.fixture
def ep_pv(testfp) -> EnergyPerformance:
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [50.0, 50.0]),
            Production(0, "INSITU", [25.0, 25.0]),
        ]
    )
    return energy_performance(comps, testfp, BalanceConfig(reference_area=1.0))


def test_energy_performance___repr__(ep_grid):
    r = repr(ep_grid)
    assert r.startswith("<EnergyPerformance object> preview:")
    assert "Energy: Used in EPB services" in r
    assert "RER_nrb" in r


def test_energy_performance_get_all(ep_grid):
    assert {"balance", "balance_cr", "rer", "acs", "misc"} <= set(ep_grid.get_all())


def test_grid_electricity(ep_grid):
    b = ep_grid.balance
    assert b.we_a.is_close(RenNrenCo2(50.0, 200.0, 42.0))
    assert b.we_b.is_close(b.we_a)
    assert b.del_grid == 100.0
    assert b.used_epus_by_srv == {Service.CAL: 100.0}
    assert ep_grid.rer == pytest.approx(0.2)
    assert ep_grid.rer_nrb == 0.0
    assert ep_grid.diagnostics[0].kind == "error_acs"


def test_grid_and_pv(ep_pv):
    b = ep_pv.balance
    assert b.we_b.is_close(RenNrenCo2(75.0, 100.0, 21.0))
    assert b.prod_by_src == {ProdSource.INSITU: 50.0}
    assert b.del_onst == 50.0
    assert b.del_grid == 50.0
    assert ep_pv.rer == pytest.approx(75.0 / 175.0)
    assert ep_pv.rer_nrb == pytest.approx(50.0 / 175.0)
    assert ep_pv.rer_onst == pytest.approx(50.0 / 175.0)


def test_balance_m2(testfp):
    comps = Components([Consumption(1, "ELECTRICIDAD", "CAL", [100.0])])
    ep = energy_performance(comps, testfp, BalanceConfig(reference_area=200.0))
    assert ep.balance_m2.we_a.is_close(RenNrenCo2(0.25, 1.0, 0.21))
    assert energy_performance(comps, testfp).balance_m2 is None


@pytest.mark.parametrize("k_exp, we_b", [(1.0, (120.0, -80.0, -16.8)), (0.0, (100.0, 0.0, 0.0))])
def test_pv_excess(testfp, k_exp, we_b):
    comps = Components(
        [Consumption(1, "ELECTRICIDAD", "CAL", [100.0]), Production(0, "INSITU", [140.0])]
    )
    ep = energy_performance(comps, testfp, BalanceConfig(k_exp=k_exp))
    assert ep.balance.we_a.is_close(RenNrenCo2(100.0, 0.0, 0.0))
    assert ep.balance.we_b.is_close(RenNrenCo2(*we_b))
    assert ep.balance.exp_grid == 40.0
    assert ep.rer == 1.0
    assert ep.balance.we_b_by_srv[Service.CAL].is_close(RenNrenCo2(we_b[0], 0.0, 0.0))
    assert ep.balance.we_b_unassigned.is_close(RenNrenCo2(0.0, we_b[1], we_b[2]))
    assert "inconsistent_totals" not in [d.kind for d in ep.diagnostics]


def test_auxiliary_split(testfp):
    comps = Components(
        [
            Consumption(1, "GASNATURAL", "CAL", [80.0]),
            Consumption(1, "GASNATURAL", "ACS", [20.0]),
            Auxiliary(1, [5.0]),
            Output(1, "CAL", [8.0]),
            Output(1, "ACS", [2.0]),
        ]
    )
    ep = energy_performance(comps, testfp)
    el = ep.balance_cr[Carrier.ELECTRICIDAD]
    assert el.used_epus_by_srv[Service.CAL] == pytest.approx(4.0)
    assert el.used_epus_by_srv[Service.ACS] == pytest.approx(1.0)
    assert ep.balance.used_epus == pytest.approx(105.0)
    assert ep.balance.we_a_by_srv[Service.ACS].nren == pytest.approx(20 * 1.1 + 1 * 2.0)
    assert ep.balance.used_epus_unassigned == 0.0


def test_unassigned_auxiliary(testfp):
    comps = Components(
        [
            Consumption(1, "GASNATURAL", "CAL", [80.0]),
            Consumption(1, "GASNATURAL", "ACS", [20.0]),
            Auxiliary(1, [5.0]),
        ]
    )
    ep = energy_performance(comps, testfp)
    assert ep.balance.used_epus_unassigned == 5.0
    assert ep.balance.we_a_unassigned.is_close(RenNrenCo2(2.5, 10.0, 2.1))
    assert "error_aux" in [d.kind for d in ep.diagnostics]
    assert "inconsistent_totals" not in [d.kind for d in ep.diagnostics]


def test_nepb_use(testfp):
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [10.0]),
            Consumption(2, "ELECTRICIDAD", "NEPB", [20.0]),
            Production(0, "INSITU", [15.0]),
        ]
    )
    ep = energy_performance(comps, testfp, BalanceConfig(k_exp=1.0))
    b = ep.balance
    assert b.used_nepus == 20.0
    assert b.exp_nepus == 5.0
    assert b.exp_grid == 0.0
    assert b.del_grid == 0.0
    assert b.we_a.is_close(RenNrenCo2(10.0, 0.0, 0.0))
    assert b.we_b.is_close(RenNrenCo2(12.5, -10.0, -2.1))


def test_cogeneration(testfp):
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [100.0]),
            Consumption(2, "GASNATURAL", "COGEN", [100.0]),
            Production(2, "COGEN", [40.0]),
        ]
    )
    ep = energy_performance(comps, testfp)
    assert ep.factors.find(Carrier.ELECTRICIDAD, Source.COGEN, Dest.SUMINISTRO, Step.A).is_close(
        RenNrenCo2(0.0, 2.5, 0.5)
    )
    assert ep.balance.used_cgnus == 100.0
    assert ep.balance.we_a.is_close(RenNrenCo2(30.0, 220.0, 45.2))


def test_cogeneration_without_fuel(testfp):
    comps = Components(
        [Consumption(1, "ELECTRICIDAD", "CAL", [10.0]), Production(2, "COGEN", [4.0])]
    )
    with pytest.raises(MissingFactor, match="cogeneration"):
        energy_performance(comps, testfp)


def test_thermal_insitu(testfp):
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [25.0]),
            Consumption(1, "EAMBIENTE", "CAL", [75.0]),
            Consumption(2, "TERMOSOLAR", "ACS", [30.0]),
            Production(2, "TERMOSOLAR", [40.0]),
        ]
    )
    ep = energy_performance(comps, testfp, BalanceConfig(k_exp=1.0))
    b = ep.balance
    assert b.prod_by_src == {ProdSource.EAMBIENTE: 75.0, ProdSource.TERMOSOLAR: 40.0}
    assert b.exp_grid == 10.0
    assert b.del_onst == 105.0
    ts = ep.balance_cr[Carrier.TERMOSOLAR]
    assert ts.we_a.is_close(RenNrenCo2(30.0, 0.0, 0.0))
    assert ts.we_b.is_close(RenNrenCo2(30.0, 0.0, 0.0))
    assert ts.prod_by_src_t[ProdSource.TERMOSOLAR].tolist() == [40.0]
    assert ts.prod_epus_by_src_t[ProdSource.TERMOSOLAR].tolist() == [30.0]
    assert ts.exp_grid_t.tolist() == [10.0]
    assert ts.del_grid_t.tolist() == [0.0]
    assert ep.rer_onst == pytest.approx(105.0 / 167.5)


def test_missing_grid_factor():
    wf = WeightingFactors([Factor("ELECTRICIDAD", "RED", "SUMINISTRO", "A", 0.5, 2.0)])
    comps = Components([Consumption(1, "GASOLEO", "CAL", [10.0])])
    with pytest.raises(MissingFactor, match="GASOLEO"):
        energy_performance(comps, wf)


def test_inconsistent_steps(testfp):
    comps = Components(
        [Consumption(1, "ELECTRICIDAD", "CAL", [1.0]), Consumption(1, "GASNATURAL", "CAL", [1.0, 2.0])]
    )
    with pytest.raises(InconsistentStepCount):
        energy_performance(comps, testfp)


def test_empty_components(testfp):
    with pytest.raises(InvalidComponent):
        energy_performance(Components(), testfp)


def test_acs_fraction_in_misc(testfp):
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "ACS", [40.0]),
            Consumption(1, "EAMBIENTE", "ACS", [60.0]),
            Demand("ACS", [100.0]),
        ]
    )
    ep = energy_performance(comps, testfp)
    assert ep.misc[ACS_FRACTION_KEY] == "0.600"
    assert "error_acs" not in ep.misc


def test_package_api(testfp):
    comps = epbd.Components([epbd.Consumption(1, "ELECTRICIDAD", "ILU", [10.0])])
    ep = epbd.energy_performance(comps, testfp)
    assert isinstance(ep, epbd.EnergyPerformance)
    assert ep.balance.we_a.is_close(epbd.RenNrenCo2(5.0, 20.0, 4.2))


def test_same_inputs_same_results(testfp):
    comps = Components(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [10.0, 20.0]),
            Consumption(1, "GASNATURAL", "ACS", [5.0, 5.0]),
            Production(0, "INSITU", [15.0, 5.0]),
            Demand("ACS", [4.0, 4.0]),
        ]
    )
    ep1 = energy_performance(comps, testfp)
    ep2 = energy_performance(comps, testfp)
    assert ep1.balance == ep2.balance
    assert ep1.rer == ep2.rer
    assert ep1.acs == ep2.acs
