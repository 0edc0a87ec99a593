from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import logging
import math
import re
from typing import Any, Callable, Sequence

from tickline.scales import ScaleType, from_millis, to_millis


LOGGER = logging.getLogger(__name__)

TickFormatter = Callable[[Any], str]
DatePredicate = Callable[[datetime], Any]
MultiFormat = list[tuple[str, DatePredicate]]

# precision sentinel: shortest round-trip rendering
NATURAL_PRECISION = -1
MAX_DIGITS = 6
LOG_HALF_DECADE = 0.3010

_PADDED_WIDTHS = {"d": 2, "H": 2, "I": 2, "j": 3, "m": 2, "M": 2, "S": 2, "U": 2, "w": 1, "W": 2, "y": 2, "Y": 4}

_TIME_DIRECTIVE = re.compile(r"%([-_0]?)([aAbBcdeHIjLmMpSUwWxXyYZ%])")
_TRAILING_ZEROS = re.compile(r"(\.[0-9]*?)0+$")
_INTEGER_SPEC_TYPES = frozenset("bcdoxXn")
# specs using the d3-only `$`, `~` or `s` go through the d3 renderer
_D3_EXTENSIONS = re.compile(r"[$~]|s$")
_D3_SPEC = re.compile(
    r"^(?:(?P<fill>.)?(?P<align>[<>=^]))?(?P<sign>[-+ ])?(?P<currency>\$)?(?P<alt>#)?(?P<zero>0)?"
    r"(?P<width>\d+)?(?P<comma>,)?(?:\.(?P<precision>\d+))?(?P<trim>~)?(?P<kind>[bcdeEfFgGnosxX%])?$"
)
_SI_PREFIXES = ("y", "z", "a", "f", "p", "n", "µ", "m", "", "k", "M", "G", "T", "P", "E", "Z", "Y")


def get_digits(number: float) -> int:
    """Digits before the decimal point; zero or negative for |number| < 1."""
    if number == 0:
        return 1
    return math.floor(math.log10(abs(number))) + 1


def replace_trailing_zeros(text: str) -> str:
    """Strip zeros after the decimal point, only in the mantissa for exponential text."""
    e_index = text.find("e")
    if e_index != -1:
        mantissa = _TRAILING_ZEROS.sub(r"\1", text[:e_index])
        return mantissa.removesuffix(".") + text[e_index:]
    return _TRAILING_ZEROS.sub(r"\1", text).removesuffix(".")


def format_func(precision: int) -> TickFormatter:
    if precision == 0:
        return lambda number: str(int(math.floor(float(number) + 0.5)))

    def fmt(number: Any) -> str:
        value = float(number)
        if precision == NATURAL_PRECISION:
            text = _js_string(value)
        else:
            text = _to_precision(value, precision)
        digits = re.sub(r"[-.eE]", "", text)
        if len(digits) < MAX_DIGITS:
            return replace_trailing_zeros(text)
        if precision == NATURAL_PRECISION:
            text = _to_exponential(value)
            if len(text) >= MAX_DIGITS + 1:
                # rounding pushed the shortest form over budget
                text = _to_exponential(value, MAX_DIGITS)
            return replace_trailing_zeros(text)
        return replace_trailing_zeros(_to_exponential(value, precision))

    return fmt


def linear_scale_precision(ticks: Sequence[float]) -> int:
    t0, t1 = _first_pair(ticks)
    diff = abs(t1 - t0)
    largest = max(abs(float(ticks[0])), abs(float(ticks[-1])))
    max_digits = get_digits(largest)
    diff_digits = get_digits(diff)
    precision = abs(max_digits - diff_digits)
    if max_digits >= 0 and diff_digits > 0:
        if max_digits <= MAX_DIGITS:
            return 0
        return min(precision, MAX_DIGITS) + 1
    if diff_digits <= 0:
        return min(abs(diff_digits) + max_digits, MAX_DIGITS) + 1
    return NATURAL_PRECISION


def log_scale_precision(ticks: Sequence[float]) -> int:
    t0, t1 = _first_pair(ticks)
    if t0 <= 0 or t1 <= 0:
        return NATURAL_PRECISION
    ratio = abs(math.log10(t1 / t0))
    if ratio >= LOG_HALF_DECADE:
        return NATURAL_PRECISION
    return 3


def linear_format(ticks: Sequence[float]) -> TickFormatter:
    return format_func(linear_scale_precision(ticks))


def log_format(ticks: Sequence[float]) -> TickFormatter:
    return format_func(log_scale_precision(ticks))


def date_multi_format(ticks: Sequence[Any]) -> MultiFormat:
    """Pick the (pattern, predicate) list for the gap between the first two ticks."""
    if len(ticks) < 2:
        diff = math.inf
    else:
        diff = abs(_millis(ticks[1]) - _millis(ticks[0]))
    div = 1000
    if diff < div:
        return [
            (".%L", lambda d: d.microsecond // 1000),
            (":%S", lambda d: d.second),
            ("%I:%M", lambda d: True),
        ]
    div *= 60
    if diff < div:
        return [(":%S", lambda d: d.second), ("%I:%M", lambda d: True)]
    div *= 60
    if diff < div:
        return [("%I:%M", lambda d: d.minute), ("%I %p", lambda d: True)]
    div *= 24
    if diff < div:
        return [("%I %p", lambda d: d.hour), ("%b %d", lambda d: True)]
    div *= 27
    if diff < div:
        return [("%b %d", lambda d: d.day != 1), ("%b %Y", lambda d: True)]
    div *= 12
    if diff < div:
        return [("%b %d", lambda d: d.day != 1), ("%b %Y", lambda d: True)]
    return [
        ("%b %d", lambda d: d.day != 1),
        ("%b %Y", lambda d: d.month - 1),
        ("%Y", lambda d: True),
    ]


def multi_time_format(formats: MultiFormat) -> TickFormatter:
    compiled = [(time_format(pattern), predicate) for pattern, predicate in formats]

    def fmt(value: Any) -> str:
        date = _as_datetime(value)
        for render, predicate in compiled:
            if predicate(date):
                return render(date)
        return compiled[-1][0](date)

    return fmt


def is_valid_time_format(fmt: str) -> bool:
    return _TIME_DIRECTIVE.search(fmt) is not None


def time_format(pattern: str) -> TickFormatter:
    """Date formatter over `datetime.strftime`.

    `%L` (milliseconds), `%e`, `%Z` and the `-`, `_`, `0` padding modifiers are
    rendered here so they behave the same on every platform.
    """

    def fmt(value: Any) -> str:
        date = _as_datetime(value)
        return _TIME_DIRECTIVE.sub(lambda m: _render_directive(date, m.group(2), m.group(1)), pattern)

    return fmt


def number_format(spec: str) -> TickFormatter:
    """Formatter for a format-spec string.

    Python's format-spec mini-language, extended with the d3 `$` currency
    symbol, `~` zero trimming and the `s` SI-prefix type.
    """
    try:
        render = _d3_renderer(spec) if _D3_EXTENSIONS.search(spec) else _spec_renderer(spec)
        render(0.0)
    except ValueError as exc:
        LOGGER.warning("unsupported number format %r (%s); falling back to plain labels", spec, exc)
        return identity_format

    def fmt(value: Any) -> str:
        try:
            return render(value)
        except (TypeError, ValueError):
            LOGGER.debug("number format %r cannot render %r", spec, value)
            return str(value)

    return fmt


def identity_format(value: Any) -> str:
    return str(value)


def make_tick_formatter(
    scale_type: ScaleType | str,
    tick_format: str | None = None,
    ticks: Sequence[Any] | None = None,
) -> TickFormatter:
    try:
        kind = ScaleType(scale_type)
    except ValueError:
        LOGGER.debug("no tick formatter for scale type %r", scale_type)
        return identity_format
    if kind is ScaleType.ORDINAL:
        if not tick_format:
            return identity_format
        if is_valid_time_format(tick_format):
            return time_format(tick_format)
        return number_format(tick_format)
    if kind.is_date:
        if tick_format:
            return time_format(tick_format)
        return multi_time_format(date_multi_format(ticks or []))
    if tick_format:
        return number_format(tick_format)
    return guess_tick_format(kind, ticks or [])


def guess_tick_format(scale_type: ScaleType, ticks: Sequence[Any]) -> TickFormatter:
    if scale_type.is_date:
        return multi_time_format(date_multi_format(ticks))
    if not ticks:
        return format_func(NATURAL_PRECISION)
    if scale_type in (ScaleType.LINEAR, ScaleType.COLOR_LINEAR):
        return linear_format([float(t) for t in ticks])
    if scale_type is ScaleType.LOG:
        return log_format([float(t) for t in ticks])
    return identity_format


def format_ticks(
    ticks: Sequence[Any],
    scale_type: ScaleType | str,
    tick_format: str | None = None,
) -> list[str]:
    fmt = make_tick_formatter(scale_type, tick_format, ticks)
    return [fmt(t) for t in ticks]


def _first_pair(ticks: Sequence[Any]) -> tuple[float, float]:
    t0 = float(ticks[0])
    t1 = float(ticks[1]) if len(ticks) > 1 else t0
    return t0, t1


def _millis(value: Any) -> float:
    if isinstance(value, datetime):
        return to_millis(value)
    return float(value)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return from_millis(float(value))


def _decompose(value: float) -> tuple[str, str, int]:
    """Sign, shortest significant digits, and decimal exponent of the first digit."""
    sign = "-" if value < 0 else ""
    d = Decimal(repr(abs(value))).normalize()
    _, digits, exp = d.as_tuple()
    text = "".join(str(x) for x in digits)
    assert isinstance(exp, int)
    return sign, text, len(text) - 1 + exp


def _js_string(value: float) -> str:
    """Shortest rendering, exponential only below 1e-6 or from 1e21."""
    if value == 0:
        return "0"
    if not math.isfinite(value):
        return str(value)
    sign, digits, exp = _decompose(value)
    if exp >= 21 or exp < -6:
        return sign + _exp_text(digits, exp)
    if exp < 0:
        return sign + "0." + "0" * (-exp - 1) + digits
    if len(digits) <= exp + 1:
        return sign + digits + "0" * (exp + 1 - len(digits))
    return sign + digits[: exp + 1] + "." + digits[exp + 1:]


def _to_precision(value: float, precision: int) -> str:
    if not math.isfinite(value):
        return str(value)
    mantissa, _, exp_text = f"{value:.{precision - 1}e}".partition("e")
    exp = int(exp_text)
    if value != 0 and (exp < -6 or exp >= precision):
        return mantissa + _exp_suffix(exp)
    return f"{value:.{max(0, precision - 1 - exp)}f}"


def _to_exponential(value: float, digits: int | None = None) -> str:
    if not math.isfinite(value):
        return str(value)
    if digits is None:
        if value == 0:
            return "0e+0"
        sign, text, exp = _decompose(value)
        return sign + _exp_text(text, exp)
    mantissa, _, exp_text = f"{value:.{digits}e}".partition("e")
    return mantissa + _exp_suffix(int(exp_text))


def _exp_text(digits: str, exp: int) -> str:
    mantissa = digits[0] if len(digits) == 1 else digits[0] + "." + digits[1:]
    return mantissa + _exp_suffix(exp)


def _exp_suffix(exp: int) -> str:
    return "e" + ("+" if exp >= 0 else "-") + str(abs(exp))


def _spec_renderer(spec: str) -> TickFormatter:
    def render(value: Any) -> str:
        return _format_number(value, spec)

    return render


def _format_number(value: Any, spec: str) -> str:
    if spec and spec[-1] in _INTEGER_SPEC_TYPES:
        number = float(value)
        if not number.is_integer():
            number = math.floor(number + 0.5)
        return format(int(number), spec)
    return format(float(value), spec)


def _d3_renderer(spec: str) -> TickFormatter:
    match = _D3_SPEC.match(spec)
    if match is None:
        raise ValueError(f"invalid format specifier {spec!r}")
    parts = match.groupdict()
    fill, align = parts["fill"] or " ", parts["align"] or ""
    if parts["zero"] and not align:
        fill, align = "0", "="
    align = align or ">"
    width = int(parts["width"] or 0)
    precision = int(parts["precision"]) if parts["precision"] is not None else None
    kind = parts["kind"] or ""
    symbol = "$" if parts["currency"] else ""
    inner = ("#" if parts["alt"] else "") + ("," if parts["comma"] else "")
    if precision is not None:
        inner += f".{precision}"
    inner += kind

    def render(value: Any) -> str:
        number = float(value)
        if kind == "s":
            body, suffix = _si_parts(abs(number), 6 if precision is None else max(1, precision))
        else:
            body, suffix = _format_number(abs(number), inner), ""
            if kind == "%":
                body, suffix = body[:-1], "%"
        if parts["trim"]:
            body = replace_trailing_zeros(body)
        if number < 0:
            sign = "-"
        else:
            sign = "" if parts["sign"] in (None, "-") else parts["sign"]
        head, tail = sign + symbol, body + suffix
        gap = width - len(head) - len(tail)
        if gap <= 0:
            return head + tail
        if align == "<":
            return head + tail + fill * gap
        if align == "^":
            return fill * (gap // 2) + head + tail + fill * (gap - gap // 2)
        if align == "=":
            return head + fill * gap + tail
        return fill * gap + head + tail

    return render


def _si_parts(magnitude: float, precision: int) -> tuple[str, str]:
    """Significant digits scaled to an SI prefix, e.g. (1.5, "k") for 1500."""
    if not math.isfinite(magnitude):
        return str(magnitude), ""
    mantissa, _, exp_text = f"{magnitude:.{precision - 1}e}".partition("e")
    digits = mantissa.replace(".", "")
    exponent = int(exp_text)
    power = max(-8, min(8, math.floor(exponent / 3)))
    # digits before the decimal point once scaled by the prefix
    whole = exponent - power * 3 + 1
    if whole >= len(digits):
        text = digits + "0" * (whole - len(digits))
    elif whole > 0:
        text = digits[:whole] + "." + digits[whole:]
    else:
        text = "0." + "0" * -whole + digits
    return text, _SI_PREFIXES[power + 8]


def _render_directive(date: datetime, code: str, pad: str) -> str:
    if code == "%":
        return "%"
    if code == "Z":
        return date.strftime("%z") or "+0000"
    if code == "L":
        number, width, fill = date.microsecond // 1000, 3, "0"
    elif code == "e":
        number, width, fill = date.day, 2, " "
    elif pad and code in _PADDED_WIDTHS:
        number, width, fill = int(date.strftime(f"%{code}")), _PADDED_WIDTHS[code], "0"
    else:
        return date.strftime(f"%{code}")
    if pad == "-":
        return str(number)
    if pad == "_":
        fill = " "
    elif pad == "0":
        fill = "0"
    return str(number).rjust(width, fill)
