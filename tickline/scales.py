from __future__ import annotations

import asyncio
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
import math
from typing import Any, Protocol, Sequence, runtime_checkable

import numpy as np

from tickline.errors import ScaleBindError
from tickline.events import Signal


class ScaleType(str, Enum):
    LINEAR = "linear"
    LOG = "log"
    ORDINAL = "ordinal"
    DATE = "date"
    COLOR_LINEAR = "color_linear"
    DATE_COLOR_LINEAR = "date_color_linear"

    @property
    def is_date(self) -> bool:
        return self in (ScaleType.DATE, ScaleType.DATE_COLOR_LINEAR)

    @property
    def is_continuous(self) -> bool:
        return self is not ScaleType.ORDINAL


SCALE_SIGNALS = ("domain_changed", "highlight_axis", "unhighlight_axis")

EPOCH = datetime(1970, 1, 1)
MS_SECOND = 1000.0
MS_MINUTE = 60 * MS_SECOND
MS_HOUR = 60 * MS_MINUTE
MS_DAY = 24 * MS_HOUR
MS_WEEK = 7 * MS_DAY
MS_MONTH = 30 * MS_DAY
MS_YEAR = 365 * MS_DAY


@runtime_checkable
class Scale(Protocol):
    scale_type: ScaleType

    def domain(self) -> list[Any]:
        ...

    def __call__(self, value: Any) -> float | None:
        ...

    def clamp(self, flag: bool = True) -> None:
        ...

    def set_range(self, pixel_range: Sequence[float]) -> None:
        ...

    def ticks(self, count: int = 10) -> list[Any]:
        ...

    @property
    def offset(self) -> float:
        ...

    def signal(self, name: str) -> Signal:
        ...


def to_millis(value: datetime) -> float:
    """Epoch milliseconds. Naive datetimes are read as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return (value - EPOCH) / timedelta(milliseconds=1)


def from_millis(ms: float) -> datetime:
    return EPOCH + timedelta(milliseconds=float(ms))


class _BaseScale:
    scale_type: ScaleType

    def __init__(self, domain: Sequence[Any], pixel_range: Sequence[float] = (0.0, 1.0)) -> None:
        self._signals = {name: Signal(name) for name in SCALE_SIGNALS}
        self._domain = self._coerce_domain(domain)
        self._range = _coerce_range(pixel_range)
        self._clamped = False

    def _coerce_domain(self, domain: Sequence[Any]) -> list[Any]:
        return list(domain)

    def domain(self) -> list[Any]:
        return list(self._domain)

    def set_domain(self, domain: Sequence[Any]) -> None:
        self._domain = self._coerce_domain(domain)
        self._signals["domain_changed"].emit()

    def pixel_range(self) -> tuple[float, float]:
        return self._range

    def set_range(self, pixel_range: Sequence[float]) -> None:
        self._range = _coerce_range(pixel_range)

    def clamp(self, flag: bool = True) -> None:
        self._clamped = bool(flag)

    @property
    def clamped(self) -> bool:
        return self._clamped

    @property
    def offset(self) -> float:
        return 0.0

    def signal(self, name: str) -> Signal:
        try:
            return self._signals[name]
        except KeyError:
            raise ValueError(f"unknown scale signal: {name}") from None

    def highlight(self) -> None:
        self._signals["highlight_axis"].emit()

    def unhighlight(self) -> None:
        self._signals["unhighlight_axis"].emit()


class LinearScale(_BaseScale):
    scale_type = ScaleType.LINEAR

    def _coerce_domain(self, domain: Sequence[Any]) -> list[Any]:
        values = [self._to_number(v) for v in domain]
        if len(values) != 2:
            raise ValueError("continuous scale domain must be a (min, max) pair")
        if not all(math.isfinite(v) for v in values):
            raise ValueError("continuous scale domain must be finite")
        return values

    def _to_number(self, value: Any) -> float:
        return float(value)

    def _position(self, value: float) -> float | None:
        return value

    def __call__(self, value: Any) -> float | None:
        if value is None:
            return None
        try:
            x = self._position(self._to_number(value))
        except (TypeError, ValueError):
            return None
        if x is None or not math.isfinite(x):
            return None
        p0 = self._position(self._domain[0])
        p1 = self._position(self._domain[1])
        assert p0 is not None and p1 is not None
        t = 0.5 if p1 == p0 else (x - p0) / (p1 - p0)
        if self._clamped:
            t = min(1.0, max(0.0, t))
        r0, r1 = self._range
        return r0 + t * (r1 - r0)

    def ticks(self, count: int = 10) -> list[Any]:
        return linear_ticks(self._domain[0], self._domain[1], count)


class ColorLinearScale(LinearScale):
    scale_type = ScaleType.COLOR_LINEAR


class LogScale(LinearScale):
    scale_type = ScaleType.LOG

    def _coerce_domain(self, domain: Sequence[Any]) -> list[Any]:
        values = super()._coerce_domain(domain)
        if min(values) <= 0:
            raise ValueError("log scale domain must be strictly positive")
        return values

    def _position(self, value: float) -> float | None:
        if value <= 0:
            return None
        return math.log10(value)

    def ticks(self, count: int = 10) -> list[Any]:
        return log_ticks(self._domain[0], self._domain[1])


class DateScale(LinearScale):
    scale_type = ScaleType.DATE

    def _to_number(self, value: Any) -> float:
        if isinstance(value, datetime):
            return to_millis(value)
        return float(value)

    def domain(self) -> list[Any]:
        return [from_millis(v) for v in self._domain]

    def ticks(self, count: int = 10) -> list[Any]:
        return date_ticks(self._domain[0], self._domain[1], count)


class DateColorLinearScale(DateScale):
    scale_type = ScaleType.DATE_COLOR_LINEAR


class OrdinalScale(_BaseScale):
    """Band scale: each domain value maps to the start of its band."""

    scale_type = ScaleType.ORDINAL

    def _coerce_domain(self, domain: Sequence[Any]) -> list[Any]:
        values = list(domain)
        self._index: dict[Any, int] = {}
        for i, value in enumerate(values):
            self._index.setdefault(value, i)
        return values

    def _band(self) -> float:
        if not self._domain:
            return 0.0
        r0, r1 = self._range
        return abs(r1 - r0) / len(self._domain)

    @property
    def offset(self) -> float:
        return self._band() / 2.0

    def __call__(self, value: Any) -> float | None:
        try:
            idx = self._index.get(value)
        except TypeError:
            return None
        if idx is None:
            return None
        r0, r1 = self._range
        band = self._band()
        if r1 < r0:
            # Reversed range: bands are laid out from r1 upwards, then reversed.
            return r1 + band * (len(self._domain) - 1 - idx)
        return r0 + band * idx

    def ticks(self, count: int = 10) -> list[Any]:
        return list(self._domain)


_SCALE_CLASSES: dict[ScaleType, type[_BaseScale]] = {
    ScaleType.LINEAR: LinearScale,
    ScaleType.LOG: LogScale,
    ScaleType.ORDINAL: OrdinalScale,
    ScaleType.DATE: DateScale,
    ScaleType.COLOR_LINEAR: ColorLinearScale,
    ScaleType.DATE_COLOR_LINEAR: DateColorLinearScale,
}


@dataclass(frozen=True)
class ScaleSpec:
    scale_type: ScaleType | str
    domain: Sequence[Any]
    pixel_range: tuple[float, float] = (0.0, 1.0)


def build_scale(spec: ScaleSpec) -> _BaseScale:
    try:
        scale_type = ScaleType(spec.scale_type)
    except ValueError:
        raise ScaleBindError(f"unsupported scale type: {spec.scale_type}") from None
    return _SCALE_CLASSES[scale_type](spec.domain, spec.pixel_range)


async def resolve_scale(descriptor: Any) -> Scale:
    """Default async scale factory: specs are built, ready scales pass through."""
    await asyncio.sleep(0)
    if isinstance(descriptor, ScaleSpec):
        return build_scale(descriptor)
    if isinstance(descriptor, Scale):
        return descriptor
    raise ScaleBindError(f"cannot build a scale from {type(descriptor).__name__}")


def tick_step(span: float, count: int) -> float:
    """Round step for `count` ticks over `span`: a power of ten times 1, 2 or 5."""
    if span <= 0 or count <= 0 or not math.isfinite(span):
        return 0.0
    step = 10 ** math.floor(math.log10(span / count))
    err = count / span * step
    if err <= 0.15:
        step *= 10
    elif err <= 0.35:
        step *= 5
    elif err <= 0.75:
        step *= 2
    return float(step)


def linear_ticks(start: float, stop: float, count: int = 10) -> list[float]:
    lo, hi = min(start, stop), max(start, stop)
    step = tick_step(hi - lo, count)
    if step == 0.0:
        return [float(start)]
    first = math.ceil(lo / step) * step
    last = math.floor(hi / step) * step
    ticks = np.arange(first, last + 0.5 * step, step, dtype=np.float64)
    # Drop floating-point drift so 0.30000000000000004 becomes 0.3.
    decimals = max(0, -int(math.floor(math.log10(step))))
    ticks = np.round(ticks, decimals)
    ticks[ticks == 0.0] = 0.0
    out = [float(v) for v in ticks]
    if stop < start:
        out.reverse()
    return out


def log_ticks(start: float, stop: float) -> list[float]:
    """All 1..9 multiples of each decade that fall inside the domain."""
    lo, hi = min(start, stop), max(start, stop)
    if lo <= 0:
        return []
    i = math.floor(math.log10(lo))
    j = math.ceil(math.log10(hi))
    ticks: list[float] = []
    for exp in range(i, j):
        for k in range(1, 10):
            ticks.append(float(f"{k}e{exp}"))
    ticks.append(float(f"1e{j}"))
    out = [t for t in ticks if lo <= t <= hi]
    if stop < start:
        out.reverse()
    return out


_DATE_STEPS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, MS_SECOND),
    ("second", 5, 5 * MS_SECOND),
    ("second", 15, 15 * MS_SECOND),
    ("second", 30, 30 * MS_SECOND),
    ("minute", 1, MS_MINUTE),
    ("minute", 5, 5 * MS_MINUTE),
    ("minute", 15, 15 * MS_MINUTE),
    ("minute", 30, 30 * MS_MINUTE),
    ("hour", 1, MS_HOUR),
    ("hour", 3, 3 * MS_HOUR),
    ("hour", 6, 6 * MS_HOUR),
    ("hour", 12, 12 * MS_HOUR),
    ("day", 1, MS_DAY),
    ("day", 2, 2 * MS_DAY),
    ("week", 1, MS_WEEK),
    ("month", 1, MS_MONTH),
    ("month", 3, 3 * MS_MONTH),
    ("year", 1, MS_YEAR),
)
_STEP_DURATIONS = [s[2] for s in _DATE_STEPS]
# 1970-01-04 is the first Sunday after the epoch.
_FIRST_SUNDAY_MS = 3 * MS_DAY


def date_ticks(start_ms: float, stop_ms: float, count: int = 10) -> list[datetime]:
    """Calendar-aligned ticks for a millisecond domain, roughly `count` of them."""
    lo, hi = min(start_ms, stop_ms), max(start_ms, stop_ms)
    if count <= 0 or hi == lo:
        return [from_millis(start_ms)]
    target = (hi - lo) / count
    i = bisect_right(_STEP_DURATIONS, target)
    if i == 0:
        out_ms = linear_ticks(lo, hi, count)
    elif i == len(_DATE_STEPS):
        out_ms = _year_ticks(lo, hi, count)
    else:
        if target / _STEP_DURATIONS[i - 1] < _STEP_DURATIONS[i] / target:
            i -= 1
        unit, step, duration = _DATE_STEPS[i]
        if unit == "month":
            out_ms = _month_ticks(lo, hi, step)
        elif unit == "year":
            out_ms = _year_ticks(lo, hi, count)
        elif unit == "week":
            out_ms = _fixed_ticks(lo, hi, duration, origin=_FIRST_SUNDAY_MS)
        else:
            out_ms = _fixed_ticks(lo, hi, duration)
    out = [from_millis(v) for v in out_ms]
    if stop_ms < start_ms:
        out.reverse()
    return out


def _fixed_ticks(lo: float, hi: float, size: float, *, origin: float = 0.0) -> list[float]:
    first = math.ceil((lo - origin) / size) * size + origin
    return [float(v) for v in np.arange(first, hi + 0.5, size, dtype=np.float64)]


def _month_ticks(lo: float, hi: float, step: int) -> list[float]:
    start = from_millis(lo)
    year, month = start.year, start.month
    if datetime(year, month, 1) < start:
        year, month = _next_month(year, month)
    out: list[float] = []
    while True:
        current = datetime(year, month, 1)
        ms = to_millis(current)
        if ms > hi:
            break
        if (month - 1) % step == 0:
            out.append(ms)
        year, month = _next_month(year, month)
    return out


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _year_ticks(lo: float, hi: float, count: int) -> list[float]:
    first_year = from_millis(lo).year
    last_year = from_millis(hi).year
    step = max(1, int(tick_step(max(1.0, (hi - lo) / MS_YEAR), count)))
    out: list[float] = []
    year = first_year + (-first_year % step)
    while year <= last_year:
        ms = to_millis(datetime(year, 1, 1))
        if lo <= ms <= hi:
            out.append(ms)
        year += step
    return out


def _coerce_range(pixel_range: Sequence[float]) -> tuple[float, float]:
    values = [float(v) for v in pixel_range]
    if len(values) != 2:
        raise ValueError("scale range must be a (start, stop) pair")
    return (values[0], values[1])
