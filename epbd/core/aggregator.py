"""Time series aggregation of energy components into a normalized flow table.

The flow table is a `pd.DataFrame` indexed by calculation step whose columns are a
`pd.MultiIndex` with the levels given in `KEY_LEVELS`. Missing key parts (e.g. the carrier of
an Output component) are stored as empty strings.
"""

import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Tuple

import numpy as np
import pandas as pd

from epbd import helper as hp
from epbd.core.base_class import EpbdBaseClass
from epbd.core.components import Component, Components
from epbd.core.errors import InconsistentStepCount

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

KEY_LEVELS = ["kind", "id", "service", "carrier", "source", "excl_acs"]


class FlowKey(NamedTuple):
    kind: str
    id: int
    service: str = ""
    carrier: str = ""
    source: str = ""
    excl_acs: bool = False

    def replace(self, **kwargs) -> "FlowKey":
        """Returns a copy with the given key parts replaced. Enum members are stored by value."""
        plain = {k: v if k in ("id", "excl_acs") else _tag(v) for k, v in kwargs.items()}
        return self._replace(**plain)


def _tag(value: Any) -> Any:
    """Returns the plain value of enum members and '' for None."""
    if value is None:
        return ""
    return getattr(value, "value", value)


def key_of(c: Component) -> FlowKey:
    return FlowKey(
        kind=_tag(c.kind),
        id=c.id,
        service=_tag(getattr(c, "service", None)),
        carrier=_tag(getattr(c, "carrier", None)),
        source=_tag(getattr(c, "source", None)),
        excl_acs=bool(getattr(c, "exclude_from_acs", False)),
    )


class FlowTable(EpbdBaseClass):
    """Step indexed energy series keyed by kind, system id, service, carrier, source and the
    exclusion from the ACS renewable calculation.
    """

    def __init__(self, frame: pd.DataFrame):
        self.frame = frame

    def __repr__(self):
        layout = "{bullet}{name:<55} {total:>12}\n"
        return self._build_repr(layout, which_metadata=["total"])

    def _repr_rows(self) -> Dict[str, Dict]:
        return {
            ", ".join(str(k) for k in key): dict(total=f"{self.frame[key].sum():.2f}")
            for key in self.frame.columns
        }

    @classmethod
    def from_series(cls, data: Dict[FlowKey, pd.Series], num_steps: int) -> "FlowTable":
        if data:
            frame = pd.DataFrame(
                np.column_stack([np.asarray(s, dtype=float) for s in data.values()]),
                columns=pd.MultiIndex.from_tuples(list(data.keys()), names=KEY_LEVELS),
            )
        else:
            frame = pd.DataFrame(
                index=hp.make_step_index(num_steps),
                columns=pd.MultiIndex.from_tuples([], names=KEY_LEVELS),
                dtype=float,
            )
        frame.index = hp.make_step_index(num_steps)
        return cls(frame)

    @property
    def num_steps(self) -> int:
        return len(self.frame.index)

    def keys(self, **filters) -> List[FlowKey]:
        return [FlowKey(*k) for k in self.select(**filters).columns]

    def _mask(self, **filters):
        cols = self.frame.columns
        mask = np.ones(len(cols), dtype=bool)
        for level, value in filters.items():
            if level not in KEY_LEVELS:
                raise ValueError(f"Unknown key level '{level}'. Choose from {KEY_LEVELS}.")
            level_values = cols.get_level_values(level)
            if isinstance(value, (list, tuple, set, frozenset)):
                mask = mask & level_values.isin([_tag(v) for v in value])
            else:
                mask = mask & (level_values == _tag(value))
        return mask

    def select(self, **filters) -> pd.DataFrame:
        """Returns the columns whose key levels match all filters.

        A filter value may be a single tag or a collection of accepted tags, e.g.
        `select(kind=Kind.CONSUMPTION, carrier=[Carrier.GASNATURAL, Carrier.BIOMASA])`.
        """
        if len(self.frame.columns) == 0:
            return self.frame
        return self.frame.loc[:, self._mask(**filters)]

    def series(self, **filters) -> pd.Series:
        """Returns the step series summed over all matching columns (zeros if none match)."""
        return self.select(**filters).sum(axis=1).reindex(
            hp.make_step_index(self.num_steps), fill_value=0.0
        ).astype(float)

    def total(self, **filters) -> float:
        return float(self.select(**filters).to_numpy().sum())

    def level_values(self, level: str, **filters) -> List:
        """Sorted unique values of a key level among the matching columns."""
        return sorted(set(self.select(**filters).columns.get_level_values(level)))

    def items(self, **filters) -> Iterable[Tuple[FlowKey, pd.Series]]:
        sub = self.select(**filters)
        for key in sub.columns:
            yield FlowKey(*key), sub[key]


def aggregate(components: Components) -> FlowTable:
    """Sums components with the same key into a flow table.

    Raises:
        InconsistentStepCount: If the components have different numbers of steps.
    """
    num_steps = components.num_steps
    data: Dict[FlowKey, pd.Series] = {}
    for c in components:
        if c.num_steps != num_steps:
            raise InconsistentStepCount(
                f"Expected {num_steps} steps, got {c.num_steps} for {c}."
            )
        key = key_of(c)
        ser = hp.to_series(c.values)
        data[key] = data[key] + ser if key in data else ser

    logger.info(f"Aggregated {len(components)} components into {len(data)} series.")
    return FlowTable.from_series(data, num_steps)
