import pytest

from epbd.core.factors import WeightingFactors
from epbd.io import read_factors

TESTFP = """\
vector, fuente, uso, step, ren, nren, co2
ELECTRICIDAD, RED, SUMINISTRO, A, 0.5, 2.0, 0.42
ELECTRICIDAD, INSITU, SUMINISTRO, A, 1.0, 0.0, 0.0
ELECTRICIDAD, INSITU, A_RED, A, 1.0, 0.0, 0.0
ELECTRICIDAD, INSITU, A_NEPB, A, 1.0, 0.0, 0.0
ELECTRICIDAD, INSITU, A_RED, B, 0.5, 2.0, 0.42
ELECTRICIDAD, INSITU, A_NEPB, B, 0.5, 2.0, 0.42
GASNATURAL, RED, SUMINISTRO, A, 0.0, 1.1, 0.22
BIOCARBURANTE, RED, SUMINISTRO, A, 1.1, 0.1, 0.07
BIOMASA, RED, SUMINISTRO, A, 1.003, 0.034, 0.018
BIOMASADENSIFICADA, RED, SUMINISTRO, A, 1.028, 0.085, 0.018
EAMBIENTE, INSITU, SUMINISTRO, A, 1.0, 0.0, 0.0
EAMBIENTE, RED, SUMINISTRO, A, 1.0, 0.0, 0.0
TERMOSOLAR, INSITU, SUMINISTRO, A, 1.0, 0.0, 0.0
TERMOSOLAR, RED, SUMINISTRO, A, 1.0, 0.0, 0.0
"""


@pytest.fixture
def testfp() -> WeightingFactors:
    return read_factors(TESTFP)
