import logging
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.WARN)

STEP_INDEX_NAME = "t"


def make_step_index(num_steps: int) -> pd.RangeIndex:
    return pd.RangeIndex(num_steps, name=STEP_INDEX_NAME)


def to_series(values: Union[Sequence[float], np.ndarray, pd.Series], name: Optional[str] = None) -> pd.Series:
    """Returns the values as float series indexed by calculation step."""
    arr = np.asarray(values, dtype=float)
    return pd.Series(arr, index=make_step_index(len(arr)), name=name)


def zeros(num_steps: int, name: Optional[str] = None) -> pd.Series:
    return pd.Series(0.0, index=make_step_index(num_steps), name=name)


def safe_div(num: Union[pd.Series, np.ndarray, float], den: Union[pd.Series, np.ndarray, float]):
    """Elementwise division that returns 0 where the denominator is 0."""
    num_arr = np.asarray(num, dtype=float)
    den_arr = np.asarray(den, dtype=float)
    out = np.zeros(np.broadcast(num_arr, den_arr).shape)
    np.divide(num_arr, den_arr, out=out, where=den_arr != 0)
    if isinstance(num, pd.Series):
        return pd.Series(out, index=num.index)
    if isinstance(den, pd.Series):
        return pd.Series(out, index=den.index)
    if out.ndim == 0:
        return float(out)
    return out


def clip_positive(ser: pd.Series) -> pd.Series:
    return ser.clip(lower=0.0)


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return float(min(max(value, lower), upper))


def vecsum(series: Iterable[pd.Series], num_steps: int) -> pd.Series:
    """Sums an iterable of step series. Returns zeros for an empty iterable."""
    total = zeros(num_steps)
    for ser in series:
        total = total.add(ser, fill_value=0.0)
    return total


def clamp_and_reallocate(values: Dict, label: str = "") -> Dict:
    """Sets negative values to zero and reallocates the deficit proportionally to the positive
    values.

    The sum is kept if it is non negative. Otherwise all values become zero and the caller
    has to keep the negative sum elsewhere.
    """
    negatives = {k: v for k, v in values.items() if v < 0}
    if not negatives:
        return dict(values)

    total = sum(values.values())
    positive_sum = sum(v for v in values.values() if v > 0)
    scale = max(total, 0.0) / positive_sum if positive_sum > 0 else 0.0
    logger.info(f"Clamping negative {label} values of {sorted(map(str, negatives))} to zero.")
    return {k: (v * scale if v > 0 else 0.0) for k, v in values.items()}


def is_close(a: float, b: float, rel_tol: float = 1e-6) -> bool:
    """Relative comparison with an absolute floor of `rel_tol` for values near zero."""
    return abs(a - b) <= rel_tol * max(1.0, abs(a), abs(b))


def bordered(text: str) -> str:
    """Adds a border around a given text."""
    lines = text.splitlines()
    width = max(len(s) for s in lines)
    res = [f"┌{'─' * width}┐"]
    for s in lines:
        res.append("│" + (s + " " * width)[:width] + "│")
    res.append(f"└{'─' * width}┘")
    return "\n".join(res)
