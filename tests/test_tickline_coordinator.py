from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import unittest

from tickline.config import AxisConfig, LabelConfig, OffsetSpec
from tickline.coordinator import AxisView
from tickline.errors import AxisConfigError
from tickline.events import Signal
from tickline.records import AxisRender
from tickline.scales import LinearScale, OrdinalScale, Scale
from tickline.transform import Margin


@dataclass
class _Container:
    scale_x: Scale | None = None
    scale_y: Scale | None = None
    width: float = 500.0
    height: float = 400.0
    margin: Margin = field(default_factory=lambda: Margin(top=20, bottom=30, left=50, right=50))
    animation_duration: float = 300.0
    margin_updated: Signal = field(default_factory=lambda: Signal("margin_updated"))


class AxisViewTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.scale = LinearScale([0, 10])
        self.container = _Container(scale_x=self.scale, scale_y=LinearScale([0, 10]))
        self.config = AxisConfig(scale=self.scale)
        self.records: list[AxisRender] = []
        self.view = AxisView(self.container, self.config, renderer=self.records.append)

    async def test_first_render(self) -> None:
        record = await self.view.render()
        self.assertTrue(self.view.ready)
        self.assertEqual(record.labels, tuple(str(v) for v in range(11)))
        self.assertEqual(record.ticks[5].pixel, 200.0)
        self.assertEqual(record.transform, "translate(0, 350)")
        self.assertEqual(record.side, "bottom")
        self.assertEqual(record.grid.inner_tick_size, -350.0)
        self.assertEqual(record.tick_transform, "rotate(0) ")
        self.assertEqual(record.animation_duration, 0.0)
        self.assertEqual(record.revision, 0)
        self.assertEqual(self.records, [record])
        self.assertIs(self.view.last_render, record)

    async def test_full_cascade_is_idempotent(self) -> None:
        first = await self.view.render()
        again = await self.view.on_change("orientation", "horizontal", "horizontal")
        self.assertEqual(again, first)
        assert again is not None
        self.assertEqual(again.revision, first.revision + 1)

    async def test_changes_before_render_are_ignored(self) -> None:
        self.config.num_ticks = 3
        self.assertIsNone(await self.view.on_change("num_ticks", None, 3))
        self.assertEqual(self.records, [])

    async def test_unknown_field_is_ignored(self) -> None:
        await self.view.render()
        self.assertIsNone(await self.view.on_change("title", "a", "b"))
        self.assertEqual(len(self.records), 1)

    async def test_domain_change_redraws_with_animation(self) -> None:
        await self.view.render()
        self.scale.set_domain([0, 100])
        record = self.records[-1]
        self.assertEqual(record.labels[-1], "100")
        self.assertEqual(record.animation_duration, 300.0)
        self.assertEqual(record.revision, 1)

    async def test_num_ticks_change(self) -> None:
        await self.view.render()
        self.config.num_ticks = 3
        record = await self.view.on_change("num_ticks", None, 3)
        assert record is not None
        self.assertEqual(record.labels, ("0", "5", "10"))
        self.assertEqual([t.pixel for t in record.ticks], [0.0, 200.0, 400.0])

    async def test_explicit_tick_values(self) -> None:
        await self.view.render()
        self.config.tick_values = [1, 2, 3, 4, 5, 6, 7, 8, 9]
        self.config.num_ticks = 5
        record = await self.view.on_change("tick_values")
        assert record is not None
        self.assertEqual([t.value for t in record.ticks], [1, 3, 5, 7, 9])

    async def test_tick_format_change(self) -> None:
        await self.view.render()
        self.config.tick_format = ".1f"
        record = await self.view.on_change("tick_format", None, ".1f")
        assert record is not None
        self.assertEqual(record.labels[:3], ("0.0", "1.0", "2.0"))

    async def test_tick_styling_change(self) -> None:
        await self.view.render()
        self.config.tick_rotate = 45
        self.config.tick_style = {"font-size": "10px"}
        record = await self.view.on_change("tick_style")
        assert record is not None
        self.assertEqual(record.tick_transform, "rotate(45) ")
        self.assertEqual(record.tick_style, (("font-size", "10px"),))

    async def test_scale_change_releases_old_scale(self) -> None:
        await self.view.render()
        replacement = LinearScale([0, 50])
        self.config.scale = replacement
        record = await self.view.on_change("scale", self.scale, replacement)
        assert record is not None
        self.assertEqual(record.labels[-1], "50")
        count = len(self.records)
        self.scale.set_domain([0, 1])
        self.assertEqual(len(self.records), count)
        replacement.set_domain([0, 60])
        self.assertEqual(len(self.records), count + 1)

    async def test_offset_follows_perpendicular_scale(self) -> None:
        self.config.offset = OffsetSpec(value=5)
        record = await self.view.render()
        self.assertEqual(record.transform, "translate(0, 175)")
        self.assertEqual(record.grid.inner_tick_size, -175.0)
        self.assertEqual(record.grid.line_start, 175.0)

    async def test_offset_change_and_offset_domain_change(self) -> None:
        await self.view.render()
        offset_scale = LinearScale([0, 10])
        self.config.offset = OffsetSpec(value=5, scale=offset_scale)
        record = await self.view.on_change("offset")
        assert record is not None
        self.assertEqual(record.transform, "translate(0, 175)")
        offset_scale.set_domain([0, 20])
        self.assertEqual(self.records[-1].transform, "translate(0, 262.5)")
        self.assertEqual(self.records[-1].animation_duration, 0.0)

    async def test_margin_update_recomputes_dimensions(self) -> None:
        await self.view.render()
        self.container.margin = Margin()
        self.container.margin_updated.emit()
        self.assertEqual(self.records[-1].transform, "translate(0, 400)")
        self.assertEqual(self.records[-1].ticks[5].pixel, 250.0)

    async def test_highlight_flag(self) -> None:
        await self.view.render()
        self.scale.highlight()
        self.assertTrue(self.records[-1].highlighted)
        self.scale.unhighlight()
        self.assertFalse(self.records[-1].highlighted)

    async def test_side_change(self) -> None:
        await self.view.render()
        self.config.side = "top"
        record = await self.view.on_change("side", None, "top")
        assert record is not None
        self.assertEqual(record.transform, "translate(0, 0)")
        self.assertEqual(record.label.y, "-2em")

    async def test_invalid_side_change_raises(self) -> None:
        await self.view.render()
        self.config.side = "left"
        with self.assertRaises(AxisConfigError):
            await self.view.on_change("side", None, "left")

    async def test_label_grid_color_and_visibility(self) -> None:
        await self.view.render()
        self.config.label = LabelConfig(text="Time", location="end")
        record = await self.view.on_change("label")
        assert record is not None
        self.assertEqual((record.label.text, record.label.x), ("Time", 400.0))

        self.config.grid_lines = "dashed"
        self.config.grid_color = "#ccc"
        record = await self.view.on_change("grid_lines")
        assert record is not None
        self.assertEqual(record.grid.dash, "5, 5")
        self.assertEqual(record.grid_color, "#ccc")

        self.config.color = "red"
        record = await self.view.on_change("color")
        assert record is not None
        self.assertEqual(record.line_color, "red")

        self.config.visible = False
        record = await self.view.on_change("visible")
        assert record is not None
        self.assertFalse(record.visible)

    async def test_concurrent_changes_apply_in_order(self) -> None:
        await self.view.render()
        self.config.num_ticks = 3
        self.config.tick_format = ".2f"
        await asyncio.gather(
            self.view.on_change("num_ticks"),
            self.view.on_change("tick_format"),
        )
        self.assertEqual(self.records[-1].labels, ("0.00", "5.00", "10.00"))
        self.assertEqual([r.revision for r in self.records], [0, 1, 2])

    async def test_close_stops_updates(self) -> None:
        await self.view.render()
        self.view.close()
        self.scale.set_domain([0, 100])
        self.container.margin_updated.emit()
        self.assertEqual(len(self.records), 1)
        self.assertFalse(self.view.ready)


class OrdinalAxisViewTests(unittest.IsolatedAsyncioTestCase):
    async def test_vertical_ordinal_axis_centres_ticks_in_bands(self) -> None:
        scale = OrdinalScale(["a", "b", "c", "d"])
        container = _Container(scale_y=scale)
        view = AxisView(container, AxisConfig(scale=scale, orientation="vertical"))
        record = await view.render()
        self.assertEqual(record.labels, ("a", "b", "c", "d"))
        self.assertEqual(record.ticks[0].pixel, 306.25)
        self.assertEqual(record.ticks[-1].pixel, 43.75)
        self.assertEqual(record.transform, "translate(0, 0)")
        self.assertEqual(record.label.rotation, -90.0)


if __name__ == "__main__":
    unittest.main()
