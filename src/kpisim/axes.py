"""
The five fixed performance axes.

Every per-axis structure in the package is a complete map over ``AXES``.
Matrices and arrays index axes in ``AXES`` order:

    0: GO  Go-to-Market
    1: EC  Economics
    2: PT  Product & Tech
    3: PF  Performance
    4: TO  Team & Org
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
import numpy as np
from numpy.typing import NDArray

from kpisim.exceptions import ConfigurationError


class Axis(str, Enum):
    """Performance axis identifier."""

    GO = "GO"
    EC = "EC"
    PT = "PT"
    PF = "PF"
    TO = "TO"

    @property
    def label(self) -> str:
        return AXIS_LABELS[self]


AXIS_LABELS = {
    Axis.GO: "Go-to-Market",
    Axis.EC: "Economics",
    Axis.PT: "Product & Tech",
    Axis.PF: "Performance",
    Axis.TO: "Team & Org",
}

AXES = (Axis.GO, Axis.EC, Axis.PT, Axis.PF, Axis.TO)
N_AXES = len(AXES)

AxisKey = Union[Axis, str]


def to_axis(key: AxisKey) -> Axis:
    """Coerce an ``Axis`` or its string value to ``Axis``."""
    try:
        return Axis(key)
    except ValueError:
        raise ConfigurationError(
            f"Unknown axis {key!r}. Expected one of {[a.value for a in AXES]}"
        ) from None


def axis_array(
    values: Mapping[AxisKey, float],
    defaults: Optional[Mapping[AxisKey, float]] = None,
    name: str = "values",
) -> NDArray[np.float64]:
    """
    Convert a per-axis mapping to an ordered array of shape (5,).

    Parameters
    ----------
    values : Mapping[AxisKey, float]
        Per-axis values. Keys may be ``Axis`` members or their string value.
    defaults : Mapping[AxisKey, float], optional
        Values used for axes missing from ``values``. If None, every axis
        must be present.
    name : str
        Name used in error messages.

    Returns
    -------
    NDArray[np.float64]
        Values in ``AXES`` order.

    Raises
    ------
    ConfigurationError
        If an axis is missing and no default covers it, or a key is unknown.
    """
    merged: Dict[Axis, float] = {}
    if defaults is not None:
        merged.update({to_axis(k): float(v) for k, v in defaults.items()})
    merged.update({to_axis(k): float(v) for k, v in values.items()})

    missing = [a.value for a in AXES if a not in merged]
    if missing:
        raise ConfigurationError(f"{name} must cover all axes. Missing {missing}")

    return np.array([merged[a] for a in AXES], dtype=np.float64)


def axis_dict(values: NDArray[np.float64]) -> Dict[Axis, float]:
    """Convert an ordered (5,) array back to a per-axis dict of floats."""
    return {axis: float(values[i]) for i, axis in enumerate(AXES)}


def to_plain(value: Any) -> Any:
    """
    Recursively convert to JSON-safe Python.

    Enum members (including ``Axis`` keys) become their value, numpy arrays
    become lists and numpy scalars become Python numbers.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {to_plain(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value
