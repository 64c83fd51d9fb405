# chatbot/regression.py
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from data_store import SeriesPoint

MIN_POINTS = 3


@dataclass(frozen=True)
class RegressionModel:
    slope: float
    intercept: float

    def predict(self, year: int) -> int:
        # half-up, so 2.5 -> 3 and -2.5 -> -2
        return int(math.floor(self.slope * year + self.intercept + 0.5))


def fit(points: Sequence[SeriesPoint]) -> Optional[RegressionModel]:
    """
    Closed-form least-squares line over (year, value).
    Returns None for fewer than three points or a degenerate x spread.
    """
    n = len(points)
    if n < MIN_POINTS:
        return None

    xs = [float(p.year) for p in points]
    ys = [float(p.value) for p in points]

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return RegressionModel(slope=slope, intercept=intercept)
