from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from tickline.binding import ScaleBinding, ScaleFactory
from tickline.config import AxisConfig
from tickline.events import Signal, Subscription, dispose_all
from tickline.formatting import TickFormatter, identity_format, make_tick_formatter
from tickline.records import AxisRender, GridGeometry, LabelAttributes, TickMark
from tickline.scales import Scale, resolve_scale
from tickline.ticks import select_ticks
from tickline.transform import (
    Dimensions,
    Margin,
    axis_transform,
    grid_geometry,
    label_attributes,
    scale_ranges,
    tick_transform,
)


LOGGER = logging.getLogger(__name__)

Renderer = Callable[[AxisRender], None]

LABEL_FIELDS = ("label", "label_text", "label_location", "label_offset", "label_color")
TICK_FIELDS = ("tick_values", "num_ticks")
STYLE_FIELDS = ("tick_rotate", "tick_style")
GRID_FIELDS = ("grid_lines", "grid_color")
DISPLAY_FIELDS = ("side", "orientation")


class Container(Protocol):
    width: float
    height: float
    margin: Margin
    scale_x: Scale | None
    scale_y: Scale | None
    animation_duration: float
    margin_updated: Signal


class AxisView:
    """Keeps one axis's render record in sync with its scale, config and container.

    Field changes are handled in arrival order behind a lock; each one reruns
    only the part of the pipeline it affects and hands a fresh `AxisRender` to
    the renderer.
    """

    def __init__(
        self,
        container: Container,
        config: AxisConfig,
        *,
        factory: ScaleFactory = resolve_scale,
        renderer: Renderer | None = None,
    ) -> None:
        self.container = container
        self.config = config
        self._renderer = renderer
        self._binding = ScaleBinding(
            factory,
            perpendicular=self._perpendicular_scale,
            on_domain_changed=self._on_domain_changed,
            on_highlight=self._on_highlight,
            on_unhighlight=self._on_unhighlight,
            on_offset_domain_changed=self._on_offset_domain_changed,
        )
        self._lock = asyncio.Lock()
        self._subs: list[Subscription] = []
        self._ready = False
        self._revision = 0
        self._dims = self._container_dimensions()

        self._tick_values: list[Any] = []
        self._formatter: TickFormatter = identity_format
        self._ticks: tuple[TickMark, ...] = ()
        self._transform = ""
        self._grid: GridGeometry | None = None
        self._grid_color: str | None = None
        self._label: LabelAttributes | None = None
        self._tick_transform = tick_transform(0.0)
        self._tick_style: tuple[tuple[str, str], ...] = ()
        self._line_color: str | None = None
        self._visible = True
        self._highlighted = False
        self._last: AxisRender | None = None

        handlers: dict[str, Callable[[], Awaitable[AxisRender | None]]] = {
            "scale": self._change_scale,
            "offset": self._change_offset,
            "tick_format": self._change_tick_format,
            "color": self._change_line_color,
            "visible": self._change_visibility,
        }
        handlers.update({name: self._change_ticks for name in TICK_FIELDS})
        handlers.update({name: self._change_tick_styling for name in STYLE_FIELDS})
        handlers.update({name: self._change_label for name in LABEL_FIELDS})
        handlers.update({name: self._change_grid for name in GRID_FIELDS})
        handlers.update({name: self._change_display for name in DISPLAY_FIELDS})
        self._handlers = handlers

    @property
    def binding(self) -> ScaleBinding:
        return self._binding

    @property
    def dimensions(self) -> Dimensions:
        return self._dims

    @property
    def last_render(self) -> AxisRender | None:
        return self._last

    @property
    def ready(self) -> bool:
        return self._ready

    async def render(self) -> AxisRender:
        """Bind both scales, then produce the first full record."""
        async with self._lock:
            await asyncio.gather(
                self._binding.bind(self.config.scale),
                self._binding.bind_offset(self.config.offset, self.config.orientation),
            )
            if not self._subs:
                self._subs.append(self.container.margin_updated.connect(self._on_margin_updated))
            self._ready = True
            return self._full_cascade(animate=False)

    async def on_change(self, field: str, old: Any = None, new: Any = None) -> AxisRender | None:
        """Apply a config change the host has already written to `self.config`."""
        handler = self._handlers.get(field)
        if handler is None:
            LOGGER.debug("ignoring change to unhandled axis field %s", field)
            return None
        async with self._lock:
            if not self._ready:
                LOGGER.debug("axis not rendered yet; change to %s deferred to first render", field)
                return None
            LOGGER.debug("axis field %s changed: %r -> %r", field, old, new)
            return await handler()

    def close(self) -> None:
        dispose_all(self._subs)
        self._binding.close()
        self._ready = False

    # change handlers

    async def _change_scale(self) -> AxisRender | None:
        applied = await self._binding.bind(self.config.scale)
        if not applied:
            return self._last
        return self._full_cascade(animate=False)

    async def _change_offset(self) -> AxisRender | None:
        applied = await self._binding.bind_offset(self.config.offset, self.config.orientation)
        if not applied:
            return self._last
        self._set_scales_range()
        self._update_transform()
        self._update_grid()
        return self._emit(animate=False)

    async def _change_ticks(self) -> AxisRender:
        self._update_ticks()
        self._update_tick_styling()
        return self._emit(animate=False)

    async def _change_tick_styling(self) -> AxisRender:
        self._update_tick_styling()
        return self._emit(animate=False)

    async def _change_tick_format(self) -> AxisRender:
        self._update_labels()
        return self._emit(animate=False)

    async def _change_label(self) -> AxisRender:
        self._update_label()
        return self._emit(animate=False)

    async def _change_line_color(self) -> AxisRender:
        self._line_color = self.config.color
        return self._emit(animate=False)

    async def _change_visibility(self) -> AxisRender:
        self._visible = bool(self.config.visible)
        return self._emit(animate=False)

    async def _change_grid(self) -> AxisRender:
        self._update_grid()
        return self._emit(animate=False)

    async def _change_display(self) -> AxisRender:
        self.config.validate()
        return self._full_cascade(animate=False)

    # signal callbacks

    def _on_domain_changed(self) -> None:
        if self._ready:
            self._full_cascade(animate=True)

    def _on_offset_domain_changed(self) -> None:
        if self._ready:
            self._update_transform()
            self._update_grid()
            self._emit(animate=False)

    def _on_margin_updated(self, *_: Any) -> None:
        self._dims = self._container_dimensions()
        if self._ready:
            self._full_cascade(animate=False)

    def _on_highlight(self) -> None:
        self._set_highlight(True)

    def _on_unhighlight(self) -> None:
        self._set_highlight(False)

    def _set_highlight(self, flag: bool) -> None:
        self._highlighted = flag
        if self._ready:
            self._emit(animate=False)

    # pipeline steps

    def _full_cascade(self, *, animate: bool) -> AxisRender:
        self._set_scales_range()
        self._update_ticks()
        self._update_transform()
        self._update_grid()
        self._update_label()
        self._update_tick_styling()
        self._line_color = self.config.color
        self._visible = bool(self.config.visible)
        return self._emit(animate=animate)

    def _set_scales_range(self) -> None:
        primary, perpendicular = scale_ranges(self.config.orientation, self._dims)
        self._binding.require_scale().set_range(primary)
        offset = self._binding.offset
        if offset is not None:
            offset.scale.set_range(perpendicular)

    def _update_ticks(self) -> None:
        scale = self._binding.require_scale()
        self._tick_values = select_ticks(scale, self.config.tick_values, self.config.num_ticks)
        self._update_labels()

    def _update_labels(self) -> None:
        scale = self._binding.require_scale()
        self._formatter = make_tick_formatter(scale.scale_type, self.config.tick_format, self._tick_values)
        self._ticks = tuple(
            TickMark(value=value, pixel=_tick_pixel(scale, value), label=self._formatter(value))
            for value in self._tick_values
        )

    def _update_transform(self) -> None:
        self._transform = axis_transform(
            self.config.orientation,
            self.config.resolved_side,
            self._dims,
            self._binding.offset,
        )

    def _update_grid(self) -> None:
        self._grid = grid_geometry(
            self.config.orientation,
            self.config.resolved_side,
            self._dims,
            self.config.grid_lines,
            self._binding.offset,
        )
        self._grid_color = self.config.grid_color or None

    def _update_label(self) -> None:
        self._label = label_attributes(
            self.config.orientation,
            self.config.resolved_side,
            self._dims,
            self.config.label,
        )

    def _update_tick_styling(self) -> None:
        self._tick_transform = tick_transform(self.config.tick_rotate)
        self._tick_style = tuple(sorted(self.config.tick_style.items()))

    def _emit(self, *, animate: bool) -> AxisRender:
        assert self._grid is not None and self._label is not None
        record = AxisRender(
            visible=self._visible,
            orientation=self.config.orientation,
            side=self.config.resolved_side,
            transform=self._transform,
            ticks=self._ticks,
            grid=self._grid,
            grid_color=self._grid_color,
            tick_transform=self._tick_transform,
            tick_style=self._tick_style,
            line_color=self._line_color,
            label=self._label,
            highlighted=self._highlighted,
            animation_duration=float(self.container.animation_duration) if animate else 0.0,
            revision=self._revision,
        )
        self._revision += 1
        self._last = record
        if self._renderer is not None:
            self._renderer(record)
        return record

    def _container_dimensions(self) -> Dimensions:
        return Dimensions.from_container(self.container.width, self.container.height, self.container.margin)

    def _perpendicular_scale(self, orientation: str) -> Scale | None:
        if orientation == "vertical":
            return self.container.scale_x
        return self.container.scale_y


def _tick_pixel(scale: Scale, value: Any) -> float | None:
    pixel = scale(value)
    if pixel is None:
        return None
    return pixel + scale.offset
