"""Reference weighting factors."""
from epbd.prep.data_base import ELECTRICITY_BY_LOC, DataBase, FactorDat
from epbd.prep.wfactors import LOCATIONS, wfactors_from_loc
