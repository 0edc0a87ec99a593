from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib
from typing import Any, Literal, Mapping

from tickline.errors import AxisConfigError


Orientation = Literal["horizontal", "vertical"]
Side = Literal["top", "bottom", "left", "right"]
GridLines = Literal["none", "solid", "dashed"]
LabelLocation = Literal["start", "middle", "end"]

ORIENTATIONS = ("horizontal", "vertical")
SIDES_BY_ORIENTATION: dict[str, tuple[str, ...]] = {
    "horizontal": ("bottom", "top"),
    "vertical": ("left", "right"),
}
GRID_LINE_STYLES = ("none", "solid", "dashed")
LABEL_LOCATIONS = ("start", "middle", "end")


@dataclass
class LabelConfig:
    text: str = ""
    location: LabelLocation = "middle"
    # Signed distance from the axis line, e.g. "2em"; positive points away from the plot.
    offset: str | None = None
    color: str | None = None


@dataclass
class OffsetSpec:
    value: Any = None
    scale: Any = None


@dataclass
class AxisConfig:
    """Host-owned axis settings. Mutate fields, then notify the view via `on_change`."""

    scale: Any = None
    orientation: Orientation = "horizontal"
    side: Side | None = None
    num_ticks: int | None = None
    tick_values: list[Any] | None = None
    tick_format: str | None = None
    tick_rotate: float = 0.0
    tick_style: dict[str, str] = field(default_factory=dict)
    grid_lines: GridLines = "solid"
    grid_color: str | None = None
    color: str | None = None
    label: LabelConfig = field(default_factory=LabelConfig)
    offset: OffsetSpec = field(default_factory=OffsetSpec)
    visible: bool = True

    def __post_init__(self) -> None:
        self.validate()

    @property
    def is_vertical(self) -> bool:
        return self.orientation == "vertical"

    @property
    def resolved_side(self) -> Side:
        if self.side is not None:
            return self.side
        return "left" if self.is_vertical else "bottom"

    def validate(self) -> None:
        if self.orientation not in ORIENTATIONS:
            raise AxisConfigError(f"unsupported orientation: {self.orientation}")
        if self.side is not None and self.side not in SIDES_BY_ORIENTATION[self.orientation]:
            raise AxisConfigError(f"side {self.side!r} is not valid for a {self.orientation} axis")
        if self.grid_lines not in GRID_LINE_STYLES:
            raise AxisConfigError(f"unsupported grid_lines: {self.grid_lines}")
        if self.label.location not in LABEL_LOCATIONS:
            raise AxisConfigError(f"unsupported label location: {self.label.location}")
        if self.num_ticks is not None and (isinstance(self.num_ticks, bool) or not isinstance(self.num_ticks, int)):
            raise AxisConfigError("num_ticks must be an integer or None")


def load_axis_config(path: str | Path, *, scales: Mapping[str, Any] | None = None) -> AxisConfig:
    """Read an `[axis]` table from a TOML file.

    `scale` and `offset.scale` entries are names looked up in `scales`.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"axis config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    try:
        table = raw["axis"]
    except KeyError as exc:
        raise AxisConfigError(f"axis config missing required table: {exc.args[0]}") from exc
    if not isinstance(table, dict):
        raise AxisConfigError("[axis] must be a table")
    return axis_config_from_mapping(table, scales=scales)


def axis_config_from_mapping(table: Mapping[str, Any], *, scales: Mapping[str, Any] | None = None) -> AxisConfig:
    known = scales or {}
    label_raw = _coerce_table(table.get("label", {}), "label")
    offset_raw = _coerce_table(table.get("offset", {}), "offset")
    label = LabelConfig(
        text=str(label_raw.get("text", "")),
        location=label_raw.get("location", "middle"),
        offset=_coerce_optional_str(label_raw.get("offset"), "label.offset"),
        color=_coerce_optional_str(label_raw.get("color"), "label.color"),
    )
    offset = OffsetSpec(
        value=offset_raw.get("value"),
        scale=_lookup_scale(offset_raw.get("scale"), known, "offset.scale"),
    )
    tick_values = table.get("tick_values")
    if tick_values is not None and not isinstance(tick_values, list):
        raise AxisConfigError("tick_values must be an array")
    tick_style = _coerce_table(table.get("tick_style", {}), "tick_style")
    return AxisConfig(
        scale=_lookup_scale(table.get("scale"), known, "scale"),
        orientation=table.get("orientation", "horizontal"),
        side=table.get("side"),
        num_ticks=table.get("num_ticks"),
        tick_values=tick_values,
        tick_format=_coerce_optional_str(table.get("tick_format"), "tick_format"),
        tick_rotate=float(table.get("tick_rotate", 0.0)),
        tick_style={str(k): str(v) for k, v in tick_style.items()},
        grid_lines=table.get("grid_lines", "solid"),
        grid_color=_coerce_optional_str(table.get("grid_color"), "grid_color"),
        color=_coerce_optional_str(table.get("color"), "color"),
        label=label,
        offset=offset,
        visible=bool(table.get("visible", True)),
    )


def _lookup_scale(name: Any, scales: Mapping[str, Any], field_name: str) -> Any:
    if name is None:
        return None
    if not isinstance(name, str):
        raise AxisConfigError(f"{field_name} must name a scale")
    try:
        return scales[name]
    except KeyError:
        raise AxisConfigError(f"{field_name} references unknown scale: {name}") from None


def _coerce_table(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise AxisConfigError(f"{field_name} must be a table")
    return value


def _coerce_optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise AxisConfigError(f"{field_name} must be a string")
    return value
