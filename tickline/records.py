from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TickMark:
    value: Any
    pixel: float | None
    label: str


@dataclass(frozen=True)
class LabelAttributes:
    text: str
    x: float
    y: str
    dx: str
    dy: str
    anchor: str
    rotation: float
    color: str | None = None


@dataclass(frozen=True)
class GridGeometry:
    inner_tick_size: float
    outer_tick_size: float
    # Cross-axis start of each grid line; None keeps the renderer default.
    line_start: float | None
    dash: str | None
    short: bool


@dataclass(frozen=True)
class AxisRender:
    """Everything a renderer needs to draw one axis."""

    visible: bool
    orientation: str
    side: str
    transform: str
    ticks: tuple[TickMark, ...]
    grid: GridGeometry
    grid_color: str | None
    tick_transform: str
    tick_style: tuple[tuple[str, str], ...]
    line_color: str | None
    label: LabelAttributes
    highlighted: bool = False
    animation_duration: float = 0.0
    revision: int = field(default=0, compare=False)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(t.label for t in self.ticks)
