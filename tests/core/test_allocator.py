import numpy as np
import pytest

from epbd.conventions import LoadMatching, ProdSource
from epbd.core.aggregator import FlowKey, aggregate
from epbd.core.allocator import Allocation, allocate, statistical_f_match
from epbd.core.components import Auxiliary, Components, Consumption, Production
from epbd.core.config import BalanceConfig

INSITU, COGEN = ProdSource.INSITU, ProdSource.COGEN


def _allocate(cdata, **kwargs) -> Allocation:
    return allocate(aggregate(Components(cdata)), BalanceConfig(**kwargs))


@pytest.fixture
def allocation() -> Allocation:
    return _allocate(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [10.0, 10.0]),
            Consumption(2, "ELECTRICIDAD", "NEPB", [5.0, 5.0]),
            Production(0, "INSITU", [20.0, 4.0]),
        ]
    )


def test_allocate_epb_first(allocation):
    assert allocation.epus.tolist() == [10.0, 10.0]
    assert allocation.nepus.tolist() == [5.0, 5.0]
    assert allocation.used_epus[INSITU].tolist() == [10.0, 4.0]
    assert allocation.exp_nepus[INSITU].tolist() == [5.0, 0.0]
    assert allocation.exp_grid[INSITU].tolist() == [5.0, 0.0]
    assert allocation.exp(INSITU).tolist() == [10.0, 0.0]
    assert allocation.del_grid.tolist() == [0.0, 6.0]
    assert allocation.prod_total.tolist() == [20.0, 4.0]


def test_allocate_priority():
    al = _allocate(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [10.0]),
            Consumption(1, "GASNATURAL", "COGEN", [30.0]),
            Production(0, "COGEN", [8.0]),
            Production(0, "INSITU", [6.0]),
        ]
    )
    assert al.used_epus[INSITU].tolist() == [6.0]
    assert al.used_epus[COGEN].tolist() == [4.0]
    assert al.exp_grid[COGEN].tolist() == [4.0]
    assert al.used_epus_total.tolist() == [10.0]


def test_allocate_constant_f_match():
    al = _allocate(
        [Consumption(1, "ELECTRICIDAD", "CAL", [10.0]), Production(0, "INSITU", [10.0])],
        f_match=0.5,
    )
    assert al.f_match.tolist() == [0.5]
    assert al.used_epus[INSITU].tolist() == [5.0]
    assert al.exp_grid[INSITU].tolist() == [5.0]
    assert al.del_grid.tolist() == [5.0]


def test_allocate_statistical_f_match():
    al = _allocate(
        [Consumption(1, "ELECTRICIDAD", "CAL", [10.0]), Production(0, "INSITU", [10.0])],
        load_matching=LoadMatching.STATISTICAL,
    )
    assert al.f_match.iloc[0] == pytest.approx(2.0 - np.sqrt(2.0))
    assert al.used_epus[INSITU].iloc[0] == pytest.approx(10.0 * (2.0 - np.sqrt(2.0)))


def test_statistical_f_match():
    res = statistical_f_match(np.array([0.0, 10.0, 10.0, 1e-6]), np.array([5.0, 0.0, 10.0, 5.0]))
    assert res[0] == 1.0
    assert res[1] == 1.0
    assert res[2] == pytest.approx(2.0 - np.sqrt(2.0))
    assert 0.0 <= res[3] <= 1.0


def test_allocate_by_consumer():
    al = _allocate(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [6.0]),
            Auxiliary(1, [2.0]),
            Production(0, "INSITU", [4.0]),
        ]
    )
    cal = FlowKey("CONSUMPTION", 1, "CAL", "ELECTRICIDAD")
    aux = FlowKey("AUXILIARY", 1, "", "ELECTRICIDAD")
    assert al.epus.tolist() == [8.0]
    assert al.by_consumer[cal][INSITU].tolist() == [3.0]
    assert al.by_consumer[aux][INSITU].tolist() == [1.0]
    assert al.by_consumer[cal][COGEN].tolist() == [0.0]


def test_allocate_without_production():
    al = _allocate([Consumption(1, "ELECTRICIDAD", "ILU", [3.0, 1.0])])
    assert al.del_grid.tolist() == [3.0, 1.0]
    assert al.exp(INSITU).sum() == 0.0


@pytest.mark.parametrize("load_matching", [LoadMatching.CONSTANT, LoadMatching.STATISTICAL])
def test_allocated_never_exceeds_production(load_matching):
    al = _allocate(
        [
            Consumption(1, "ELECTRICIDAD", "CAL", [0.0, 5.0, 10.0, 30.0]),
            Auxiliary(1, [1.0, 0.0, 2.0, 0.0]),
            Consumption(2, "ELECTRICIDAD", "NEPB", [3.0, 3.0, 0.0, 3.0]),
            Production(0, "INSITU", [4.0, 0.0, 6.0, 10.0]),
            Production(0, "COGEN", [2.0, 2.0, 10.0, 0.0]),
            Consumption(3, "GASNATURAL", "COGEN", [10.0, 10.0, 10.0, 10.0]),
        ],
        load_matching=load_matching,
    )
    for src in (INSITU, COGEN):
        used = al.used_epus[src] + al.exp_nepus[src] + al.exp_grid[src]
        np.testing.assert_allclose(used, al.prod[src])
        assert (al.used_epus[src] <= al.prod[src] + 1e-12).all()
    assert (al.del_grid >= -1e-12).all()
