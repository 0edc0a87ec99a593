from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any

from tickline.config import LabelConfig
from tickline.records import GridGeometry, LabelAttributes
from tickline.scales import Scale


DEFAULT_TICK_SIZE = 6.0
DASH_PATTERN = "5, 5"
LABEL_OFFSET_UNITS = ("em", "ex", "px")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Margin:
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float

    @classmethod
    def from_container(cls, width: float, height: float, margin: Margin) -> "Dimensions":
        return cls(
            width=float(width) - (margin.left + margin.right),
            height=float(height) - (margin.top + margin.bottom),
        )


@dataclass(frozen=True)
class OffsetBinding:
    scale: Scale
    value: Any

    def resolve(self) -> float | None:
        return self.scale(self.value)


def basic_transform(orientation: str, side: str, dims: Dimensions) -> float:
    if orientation == "vertical":
        return dims.width if side == "right" else 0.0
    return 0.0 if side == "top" else dims.height


def process_offset(orientation: str, side: str, dims: Dimensions, offset: OffsetBinding | None) -> float:
    if offset is None:
        return basic_transform(orientation, side, dims)
    pixel = offset.resolve()
    # None when the value is missing or outside an ordinal domain.
    if pixel is None:
        return basic_transform(orientation, side, dims)
    return offset.scale.offset + pixel


def axis_transform(orientation: str, side: str, dims: Dimensions, offset: OffsetBinding | None) -> str:
    shift = format_px(process_offset(orientation, side, dims, offset))
    if orientation == "vertical":
        return f"translate({shift}, 0)"
    return f"translate(0, {shift})"


def scale_ranges(orientation: str, dims: Dimensions) -> tuple[tuple[float, float], tuple[float, float]]:
    """Pixel ranges for the axis scale and the perpendicular offset scale."""
    if orientation == "vertical":
        return (dims.height, 0.0), (0.0, dims.width)
    return (0.0, dims.width), (dims.height, 0.0)


def grid_geometry(
    orientation: str,
    side: str,
    dims: Dimensions,
    grid_lines: str,
    offset: OffsetBinding | None,
) -> GridGeometry:
    is_x = orientation != "vertical"
    tick_size = -dims.height if is_x else -dims.width
    line_start: float | None = None

    pixel = offset.resolve() if offset is not None else None
    if pixel is not None:
        if side in ("bottom", "right"):
            tick_size = -pixel
            line_start = (dims.height if is_x else dims.width) - pixel
        else:
            tick_size += pixel
            line_start = -pixel

    if grid_lines == "none":
        return GridGeometry(
            inner_tick_size=DEFAULT_TICK_SIZE,
            outer_tick_size=DEFAULT_TICK_SIZE,
            line_start=None,
            dash=None,
            short=True,
        )
    return GridGeometry(
        inner_tick_size=tick_size,
        outer_tick_size=DEFAULT_TICK_SIZE,
        line_start=line_start,
        dash=DASH_PATTERN if grid_lines == "dashed" else None,
        short=False,
    )


def label_offset(orientation: str, side: str, offset: str | None) -> str:
    """Signed label distance; unit-suffixed values flip sign on top and left axes."""
    if not offset:
        offset = "4ex" if orientation == "vertical" else "2em"
    index = -1
    for unit in LABEL_OFFSET_UNITS:
        index = offset.find(unit)
        if index != -1:
            break
    if index == -1:
        return offset
    if side in ("top", "left"):
        match = _LEADING_INT.match(offset[:index])
        if match is None:
            return offset
        return f"{-int(match.group(1))}{offset[index:]}"
    return offset


def label_attributes(orientation: str, side: str, dims: Dimensions, label: LabelConfig) -> LabelAttributes:
    location = label.location
    color = label.color if label.color else None
    y = label_offset(orientation, side, label.offset)
    if orientation == "vertical":
        if location == "start":
            x = -dims.height
        elif location == "middle":
            x = -dims.height / 2
        else:
            x = 0.0
        return LabelAttributes(
            text=label.text,
            x=x,
            y=y,
            dx="0em",
            dy="1ex" if side == "right" else "0em",
            anchor=location,
            rotation=-90.0,
            color=color,
        )
    if location == "middle":
        x = dims.width / 2
    elif location == "end":
        x = dims.width
    else:
        x = 0.0
    return LabelAttributes(
        text=label.text,
        x=x,
        y=y,
        dx="0em",
        dy="0.75ex" if side == "top" else "0.25ex",
        anchor=location,
        rotation=0.0,
        color=color,
    )


def tick_transform(rotation: float) -> str:
    return f"rotate({format_px(rotation)}) "


def format_px(value: float) -> str:
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)
