import math
from typing import Any, Optional, Union

Number = Union[int, float]


def to_number(v: Any) -> Optional[Number]:
    """Return ints and floats untouched, parse numeric strings, reject everything else."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return v if math.isfinite(v) else None
    if isinstance(v, str):
        try:
            parsed = float(v)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_positive(v: Any) -> Optional[Number]:
    value = to_number(v)
    if value is None or value <= 0:
        return None
    return value


def first_present(*values: Any) -> Any:
    """Return the first truthy value, like ``a or b or c`` but defaulting to None."""
    for value in values:
        if value:
            return value
    return None
