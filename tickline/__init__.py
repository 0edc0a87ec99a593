from tickline.binding import ScaleBinding
from tickline.config import AxisConfig, LabelConfig, OffsetSpec, load_axis_config
from tickline.coordinator import AxisView
from tickline.errors import AxisConfigError, ScaleBindError, TicklineError
from tickline.events import Signal, Subscription
from tickline.formatting import format_ticks, make_tick_formatter
from tickline.records import AxisRender, GridGeometry, LabelAttributes, TickMark
from tickline.scales import (
    DateScale,
    LinearScale,
    LogScale,
    OrdinalScale,
    Scale,
    ScaleSpec,
    ScaleType,
    resolve_scale,
)
from tickline.ticks import select_ticks
from tickline.transform import Dimensions, Margin, OffsetBinding

__all__ = [
    "AxisConfig",
    "AxisConfigError",
    "AxisRender",
    "AxisView",
    "DateScale",
    "Dimensions",
    "GridGeometry",
    "LabelAttributes",
    "LabelConfig",
    "LinearScale",
    "LogScale",
    "Margin",
    "OffsetBinding",
    "OffsetSpec",
    "OrdinalScale",
    "Scale",
    "ScaleBinding",
    "ScaleBindError",
    "ScaleSpec",
    "ScaleType",
    "Signal",
    "Subscription",
    "TickMark",
    "TicklineError",
    "format_ticks",
    "load_axis_config",
    "make_tick_formatter",
    "resolve_scale",
    "select_ticks",
]
