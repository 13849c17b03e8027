from __future__ import annotations

import random
import unittest

import fakes  # noqa: F401  (puts src/ on sys.path)

from famchart.curves import OrganicCurve, cubic
from famchart.models import Point


class OrganicCurveTests(unittest.TestCase):
    def test_sample_count_and_endpoints(self) -> None:
        curve = OrganicCurve(Point(100, 0), Point(300, 400), rng=random.Random(3))
        self.assertEqual(len(curve.points), 41)
        self.assertEqual(curve.points[0], Point(100, 0))
        self.assertAlmostEqual(curve.points[-1].x, 300)
        self.assertEqual(curve.points[-1].y, 400)

    def test_same_seed_same_shape(self) -> None:
        a = OrganicCurve(Point(0, 0), Point(200, 300), rng=random.Random(7))
        b = OrganicCurve(Point(0, 0), Point(200, 300), rng=random.Random(7))
        self.assertEqual(a.points, b.points)

    def test_jitter_only_moves_x(self) -> None:
        noisy = OrganicCurve(Point(0, 0), Point(200, 300), rng=random.Random(1))
        clean = OrganicCurve(Point(0, 0), Point(200, 300), jitter=0.0)
        self.assertEqual([p.y for p in noisy.points], [p.y for p in clean.points])
        self.assertNotEqual([p.x for p in noisy.points], [p.x for p in clean.points])

    def test_jitter_is_bounded_by_sine_envelope(self) -> None:
        noisy = OrganicCurve(Point(0, 0), Point(200, 300), jitter=20.0, rng=random.Random(5))
        clean = OrganicCurve(Point(0, 0), Point(200, 300), jitter=0.0)
        for i, (n, c) in enumerate(zip(noisy.points, clean.points)):
            self.assertLessEqual(abs(n.x - c.x), 10.0 + 1e-9, i)
        self.assertAlmostEqual(noisy.points[-1].x, clean.points[-1].x)

    def test_clean_curve_leaves_vertically_and_crosses_midpoint(self) -> None:
        curve = OrganicCurve(Point(0, 0), Point(200, 400), steps=2, jitter=0.0)
        # t = 0.5 of the symmetric cubic sits at the middle of both axes
        self.assertEqual(curve.points[1], Point(100.0, 200.0))

    def test_cubic_endpoints(self) -> None:
        self.assertEqual(cubic(1, 2, 3, 4, 0), 1)
        self.assertEqual(cubic(1, 2, 3, 4, 1), 4)

    def test_regenerate_keeps_point_count(self) -> None:
        curve = OrganicCurve(Point(0, 0), Point(100, 200), rng=random.Random(2))
        before = list(curve.points)
        curve.generate()
        self.assertEqual(len(curve.points), len(before))
        self.assertNotEqual(curve.points, before)


class RevealThresholdTests(unittest.TestCase):
    def setUp(self) -> None:
        self.curve = OrganicCurve(Point(50, 100), Point(250, 500), target_id="c", rng=random.Random(4))

    def test_curve_above_threshold_is_fully_drawn(self) -> None:
        # scroll 0 + viewport 600 + buffer 100
        points, reached = self.curve.visible_points(0 + 600 + 100)
        self.assertEqual(points, self.curve.points)
        self.assertTrue(reached)

    def test_curve_crossing_threshold_is_partial(self) -> None:
        points, reached = self.curve.visible_points(0 + 200 + 100)
        self.assertFalse(reached)
        self.assertGreater(len(points), 1)
        self.assertLess(len(points), len(self.curve.points))
        self.assertTrue(all(p.y < 300 for p in points[1:]))

    def test_final_point_on_threshold_is_not_reached(self) -> None:
        _, reached = self.curve.visible_points(500)
        self.assertFalse(reached)

    def test_nothing_drawn_when_first_sample_is_beyond(self) -> None:
        points, reached = self.curve.visible_points(100)
        self.assertEqual(points, [])
        self.assertFalse(reached)

    def test_no_threshold_draws_everything(self) -> None:
        points, reached = self.curve.visible_points(None)
        self.assertEqual(len(points), 41)
        self.assertTrue(reached)


if __name__ == "__main__":
    unittest.main()
