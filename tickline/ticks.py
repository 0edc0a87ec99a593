from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from tickline.scales import Scale, ScaleType, from_millis, to_millis


# log10 fractional parts of the 1x, 2x and 5x marks within a decade
_LOG_KEEP_FRACTIONS = (0.0, 1.0, 0.30103, 0.69897)
_LOG_TOLERANCE = 0.001


def select_ticks(scale: Scale, explicit_ticks: Sequence[Any] | None = None, num_ticks: int | None = None) -> list[Any]:
    """Ordered tick domain values for `scale`.

    Priority: explicit values (thinned to `num_ticks`), then `num_ticks` values
    interpolated over the domain, then the scale's own ticks. Scale types
    outside `ScaleType` get no type-specific handling.
    """
    scale_type = _scale_kind(scale)
    if explicit_ticks is not None and len(explicit_ticks) > 0:
        return ticks_from_array_or_length(scale, explicit_ticks, num_ticks)
    if num_ticks is not None:
        return ticks_from_array_or_length(scale, None, num_ticks)
    if scale_type is ScaleType.ORDINAL:
        return list(scale.domain())
    if scale_type is ScaleType.LOG:
        return thin_log_ticks(scale.ticks(), scale.domain())
    return list(scale.ticks())


def ticks_from_array_or_length(scale: Scale, values: Sequence[Any] | None, num_ticks: int | None) -> list[Any]:
    scale_type = _scale_kind(scale)
    if scale_type is ScaleType.ORDINAL:
        values = scale.domain()
    if num_ticks is not None and num_ticks < 2:
        return []
    if values is not None:
        if num_ticks is None or len(values) <= num_ticks:
            return list(values)
        # Stride can skip the last element; kept as is.
        stride = len(values) // (num_ticks - 1)
        return list(values)[::stride]
    assert num_ticks is not None
    is_date = scale_type is not None and scale_type.is_date
    return interpolate_ticks(scale.domain(), num_ticks, is_date=is_date)


def interpolate_ticks(domain: Sequence[Any], num_ticks: int, *, is_date: bool = False) -> list[Any]:
    """`num_ticks` evenly spaced values from the first to the last domain value.

    A zero-width domain yields no ticks.
    """
    first, last = domain[0], domain[-1]
    if is_date:
        first, last = to_millis(first), to_millis(last)
    first, last = float(first), float(last)
    step = (last - first) / (num_ticks - 1)
    if step == 0.0:
        return []
    # Half a step past the end so float truncation cannot drop the last tick.
    values = [float(v) for v in np.arange(first, last + step * 0.5, step, dtype=np.float64)]
    if is_date:
        return [from_millis(v) for v in values]
    return values


def thin_log_ticks(ticks: Sequence[float], domain: Sequence[float]) -> list[float]:
    """Keep fewer log ticks as the domain spans more orders of magnitude."""
    oom = abs(math.log10(domain[-1] / domain[0]))
    if oom < 2 or len(ticks) == 0:
        return list(ticks)
    arr = np.asarray(ticks, dtype=np.float64)
    logs = np.log10(arr)
    if oom < 7:
        r = np.abs(np.fmod(logs, 1.0))
        keep = np.zeros(arr.shape, dtype=bool)
        for frac in _LOG_KEEP_FRACTIONS:
            keep |= np.abs(r - frac) < _LOG_TOLERANCE
    else:
        s = _round_half_up(oom / 10)
        r = np.abs(np.fmod(logs, s))
        keep = (np.abs(r) < _LOG_TOLERANCE) | (np.abs(r - s) < _LOG_TOLERANCE)
    return [t for t, k in zip(ticks, keep.tolist()) if k]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _scale_kind(scale: Scale) -> ScaleType | None:
    try:
        return ScaleType(scale.scale_type)
    except ValueError:
        return None
