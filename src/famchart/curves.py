"""Jittered Bezier curves for parent-child connectors."""

import math
import random

from .models import Point


def cubic(a: float, b: float, c: float, d: float, t: float) -> float:
    """Evaluate one coordinate of a cubic Bezier at t."""
    return (1 - t) ** 3 * a + 3 * (1 - t) ** 2 * t * b + 3 * (1 - t) * t**2 * c + t**3 * d


class OrganicCurve:
    """
    A parent-to-child branch sampled along a cubic Bezier with horizontal noise.

    Control points are the start, (start.x, midY), (end.x, midY) and the end,
    so the curve leaves downward and arrives from above. Noise scales with
    sin(t * pi): none at either end, most in the middle. Points are generated
    once and reused until the curve is rebuilt.
    """

    def __init__(
        self,
        start: Point,
        end: Point,
        target_id: str | None = None,
        source_ids: tuple[str, ...] = (),
        steps: int = 40,
        jitter: float = 20.0,
        rng: random.Random | None = None,
    ):
        self.start = start
        self.end = end
        self.target_id = target_id
        self.source_ids = source_ids
        self.steps = steps
        self.jitter = jitter
        self.rng = rng or random.Random()
        self.points: list[Point] = []
        self.generate()

    def generate(self):
        self.points = [self.start]

        mid_y = (self.start.y + self.end.y) / 2
        p1 = Point(self.start.x, mid_y)
        p2 = Point(self.end.x, mid_y)

        for i in range(1, self.steps + 1):
            t = i / self.steps
            x = cubic(self.start.x, p1.x, p2.x, self.end.x, t)
            y = cubic(self.start.y, p1.y, p2.y, self.end.y, t)

            noise_scale = self.jitter * math.sin(t * math.pi)
            jitter_x = (self.rng.random() - 0.5) * noise_scale

            self.points.append(Point(x + jitter_x, y))

    def visible_points(self, threshold: float | None = None) -> tuple[list[Point], bool]:
        """
        The drawable prefix of the curve and whether it reaches the end point.

        Drawing stops at the first point whose y is at or below the threshold
        (screen coordinates grow downward). With no threshold the whole curve
        is drawable. A prefix holding only the start point draws nothing.
        """
        if len(self.points) < 2:
            return [], False
        if threshold is None:
            return list(self.points), True

        drawn = [self.points[0]]
        for p in self.points[1:]:
            if p.y >= threshold:
                break
            drawn.append(p)

        if len(drawn) < 2:
            return [], False
        return drawn, len(drawn) == len(self.points)
