from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from tickline.config import OffsetSpec
from tickline.errors import ScaleBindError
from tickline.events import Subscription, dispose_all
from tickline.scales import Scale, ScaleType, resolve_scale
from tickline.transform import OffsetBinding


LOGGER = logging.getLogger(__name__)

ScaleFactory = Callable[[Any], Awaitable[Scale]]
PerpendicularLookup = Callable[[str], "Scale | None"]
Handler = Callable[[], None]


def _noop() -> None:
    return None


class ScaleBinding:
    """Owns the axis scale and the optional offset scale.

    Each bind takes a generation number; a construction that finishes after a
    newer bind started is dropped, so a slow stale bind never replaces a
    fresher one. State only changes once the new scale is in hand.
    """

    def __init__(
        self,
        factory: ScaleFactory = resolve_scale,
        *,
        perpendicular: PerpendicularLookup | None = None,
        on_domain_changed: Handler = _noop,
        on_highlight: Handler = _noop,
        on_unhighlight: Handler = _noop,
        on_offset_domain_changed: Handler = _noop,
    ) -> None:
        self._factory = factory
        self._perpendicular = perpendicular or (lambda orientation: None)
        self._on_domain_changed = on_domain_changed
        self._on_highlight = on_highlight
        self._on_unhighlight = on_unhighlight
        self._on_offset_domain_changed = on_offset_domain_changed
        self._scale: Scale | None = None
        self._offset: OffsetBinding | None = None
        self._scale_subs: list[Subscription] = []
        self._offset_subs: list[Subscription] = []
        self._generation = 0
        self._offset_generation = 0

    @property
    def scale(self) -> Scale | None:
        return self._scale

    @property
    def offset(self) -> OffsetBinding | None:
        return self._offset

    @property
    def generation(self) -> int:
        return self._generation

    def require_scale(self) -> Scale:
        if self._scale is None:
            raise ScaleBindError("axis has no bound scale")
        return self._scale

    async def bind(self, descriptor: Any) -> bool:
        """Build and attach a new axis scale. Returns False if a newer bind superseded it."""
        self._generation += 1
        generation = self._generation
        scale = await self._factory(descriptor)
        if generation != self._generation:
            LOGGER.debug("discarding stale scale bind generation=%d current=%d", generation, self._generation)
            return False
        _check_scale(scale)
        subs = [
            scale.signal("domain_changed").connect(self._on_domain_changed),
            scale.signal("highlight_axis").connect(self._on_highlight),
            scale.signal("unhighlight_axis").connect(self._on_unhighlight),
        ]
        dispose_all(self._scale_subs)
        self._scale = scale
        self._scale_subs.extend(subs)
        LOGGER.debug("bound %s scale generation=%d", scale.scale_type, generation)
        return True

    async def bind_offset(self, spec: OffsetSpec, orientation: str) -> bool:
        """Resolve the offset scale for `spec`. Returns False if superseded."""
        self._offset_generation += 1
        generation = self._offset_generation
        if spec.value is None:
            self._replace_offset(None, [])
            return True
        if spec.scale is None:
            scale = self._perpendicular(orientation)
            if scale is None:
                LOGGER.debug("no perpendicular scale for %s axis; offset ignored", orientation)
                self._replace_offset(None, [])
                return True
            self._replace_offset(OffsetBinding(scale=scale, value=spec.value), [])
            return True

        scale = await self._factory(spec.scale)
        if generation != self._offset_generation:
            LOGGER.debug("discarding stale offset bind generation=%d current=%d", generation, self._offset_generation)
            return False
        _check_scale(scale)
        if ScaleType(scale.scale_type).is_continuous:
            # Out-of-domain offsets land on the range edge instead of off the plot.
            scale.clamp(True)
        subs = [scale.signal("domain_changed").connect(self._on_offset_domain_changed)]
        self._replace_offset(OffsetBinding(scale=scale, value=spec.value), subs)
        return True

    def close(self) -> None:
        dispose_all(self._scale_subs)
        dispose_all(self._offset_subs)
        self._scale = None
        self._offset = None

    def _replace_offset(self, binding: OffsetBinding | None, subs: list[Subscription]) -> None:
        dispose_all(self._offset_subs)
        self._offset = binding
        self._offset_subs.extend(subs)


def _check_scale(scale: Any) -> None:
    if not isinstance(scale, Scale):
        raise ScaleBindError(f"scale factory returned {type(scale).__name__}, not a scale")
    try:
        ScaleType(scale.scale_type)
    except ValueError:
        raise ScaleBindError(f"unsupported scale type: {scale.scale_type}") from None
