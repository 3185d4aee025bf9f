"""The epbd module computes the energy performance of buildings following the energy balance
of EN ISO 52000-1.
"""

__title__ = "EPBD"
__summary__ = "Energy performance of buildings (EN ISO 52000-1) balance engine"
__version__ = "0.1.0"

__author__ = "epbd contributors"

__license__ = "MIT"
__copyright__ = f"Copyright (C) 2026 {__author__}"

import logging

logging.basicConfig(
    level=logging.WARN,
    format="%(levelname)s:%(name)s:%(funcName)s():%(lineno)i:\n    %(message)s",
)

from epbd.core.balance import EnergyPerformance, energy_performance
from epbd.core.components import Auxiliary, Components, Consumption, Demand, Output, Production
from epbd.core.config import BalanceConfig
from epbd.core.errors import (
    Diagnostic,
    EpbdError,
    InconsistentStepCount,
    InvalidComponent,
    MissingFactor,
    ParseError,
)
from epbd.core.factors import Factor, RenNrenCo2, WeightingFactors
