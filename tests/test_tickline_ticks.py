from __future__ import annotations

from datetime import datetime
import unittest

import numpy as np

from tickline.formatting import format_ticks
from tickline.scales import DateScale, LinearScale, LogScale, OrdinalScale
from tickline.ticks import interpolate_ticks, select_ticks, thin_log_ticks


class _PolarScale(LinearScale):
    scale_type = "polar"  # type: ignore[assignment]


class TickSelectionTests(unittest.TestCase):
    def test_explicit_ticks_thinned_with_floor_stride(self) -> None:
        scale = LinearScale([0, 10])
        values = list(range(10))
        self.assertEqual(select_ticks(scale, values, 4), [0, 3, 6, 9])
        # stride 10 // 2 == 5 drops the last element
        self.assertEqual(select_ticks(scale, values, 3), [0, 5])

    def test_explicit_ticks_kept_when_count_not_smaller(self) -> None:
        scale = LinearScale([0, 10])
        self.assertEqual(select_ticks(scale, [1, 4, 9], None), [1, 4, 9])
        self.assertEqual(select_ticks(scale, [1, 4, 9], 3), [1, 4, 9])
        self.assertEqual(select_ticks(scale, [1, 4, 9], 8), [1, 4, 9])

    def test_num_ticks_below_two_yields_empty_for_every_scale_type(self) -> None:
        scales = [
            LinearScale([0, 10]),
            LogScale([1, 1000]),
            OrdinalScale(["a", "b", "c"]),
            DateScale([datetime(2020, 1, 1), datetime(2020, 2, 1)]),
        ]
        for scale in scales:
            for count in (1, 0, -3):
                with self.subTest(scale=scale.scale_type, count=count):
                    self.assertEqual(select_ticks(scale, None, count), [])
                    self.assertEqual(select_ticks(scale, [1, 2, 3], count), [])

    def test_num_ticks_interpolates_inclusive_domain(self) -> None:
        scale = LinearScale([0, 10])
        self.assertEqual(select_ticks(scale, None, 5), [0.0, 2.5, 5.0, 7.5, 10.0])

    def test_num_ticks_interpolation_survives_float_truncation(self) -> None:
        ticks = interpolate_ticks([0.0, 1.0], 4)
        self.assertEqual(len(ticks), 4)
        self.assertAlmostEqual(ticks[-1], 1.0, places=12)

    def test_num_ticks_on_zero_width_domain_yields_no_ticks(self) -> None:
        self.assertEqual(interpolate_ticks([5, 5], 3), [])
        self.assertEqual(select_ticks(LinearScale([5, 5]), None, 3), [])
        moment = datetime(2020, 1, 1)
        self.assertEqual(select_ticks(DateScale([moment, moment]), None, 4), [])

    def test_unknown_scale_type_falls_back_to_scale_ticks(self) -> None:
        scale = _PolarScale([0, 10])
        self.assertEqual(select_ticks(scale), [float(v) for v in range(11)])
        self.assertEqual(select_ticks(scale, None, 3), [0.0, 5.0, 10.0])
        self.assertEqual(select_ticks(scale, [1, 2, 3, 4, 5], 3), [1, 3, 5])

    def test_num_ticks_on_reversed_domain(self) -> None:
        scale = LinearScale([10, 0])
        self.assertEqual(select_ticks(scale, None, 3), [10.0, 5.0, 0.0])

    def test_date_interpolation_runs_in_epoch_milliseconds(self) -> None:
        scale = DateScale([datetime(2020, 1, 1), datetime(2020, 1, 5)])
        ticks = select_ticks(scale, None, 5)
        self.assertEqual(ticks, [datetime(2020, 1, day) for day in range(1, 6)])

    def test_ordinal_defaults_to_full_domain(self) -> None:
        scale = OrdinalScale(["a", "b", "c"])
        self.assertEqual(select_ticks(scale), ["a", "b", "c"])

    def test_ordinal_explicit_values_replaced_by_domain_then_thinned(self) -> None:
        scale = OrdinalScale(list("abcdef"))
        self.assertEqual(select_ticks(scale, ["x"], None), list("abcdef"))
        self.assertEqual(select_ticks(scale, None, 3), ["a", "d"])

    def test_linear_uses_natural_ticks(self) -> None:
        scale = LinearScale([0, 10])
        self.assertEqual(select_ticks(scale), [float(v) for v in range(11)])

    def test_log_keeps_all_ticks_below_two_decades(self) -> None:
        scale = LogScale([1, 50])
        ticks = select_ticks(scale)
        self.assertEqual(ticks, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0, 20.0, 30.0, 40.0, 50.0])

    def test_log_keeps_one_two_five_marks_for_mid_spans(self) -> None:
        scale = LogScale([1, 1000])
        ticks = select_ticks(scale)
        self.assertEqual(ticks, [1.0, 2.0, 5.0, 10.0, 20.0, 50.0, 100.0, 200.0, 500.0, 1000.0])

    def test_log_keeps_decades_for_seven_orders_of_magnitude(self) -> None:
        scale = LogScale([1, 1e7])
        ticks = select_ticks(scale)
        self.assertEqual(ticks, [10.0**k for k in range(8)])

    def test_log_keeps_every_other_decade_for_twenty_orders(self) -> None:
        ticks = [10.0**k for k in range(21)]
        kept = thin_log_ticks(ticks, [1.0, 1e20])
        self.assertEqual(kept, [10.0**k for k in range(0, 21, 2)])

    def test_labels_match_ticks_for_continuous_scales(self) -> None:
        scales = [
            LinearScale([-3.2, 17.9]),
            LogScale([0.01, 1e5]),
            DateScale([datetime(2021, 3, 1), datetime(2021, 9, 1)]),
        ]
        for scale in scales:
            for count in (None, 2, 7):
                with self.subTest(scale=scale.scale_type, count=count):
                    ticks = select_ticks(scale, None, count)
                    labels = format_ticks(ticks, scale.scale_type)
                    self.assertEqual(len(ticks), len(labels))

    def test_linear_natural_ticks_are_monotonic(self) -> None:
        scale = LinearScale([-7.5, 123.25])
        ticks = np.asarray(select_ticks(scale))
        self.assertTrue(np.all(np.diff(ticks) > 0))


if __name__ == "__main__":
    unittest.main()
