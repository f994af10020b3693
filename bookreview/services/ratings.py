"""Rating statistics computed over already-fetched review ratings.

Everything here is pure: callers load the ratings from the database and
pass them in, and an empty collection yields a zero-valued result rather
than an error.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class RatingBucket:
    rating: float
    count: int
    percentage: int | None = None


@dataclass(frozen=True)
class RatingSummary:
    count: int
    average: float
    minimum: float | None = None
    maximum: float | None = None
    distribution: list[RatingBucket] = field(default_factory=list)


def _to_decimal(value: float | int) -> Decimal:
    # str() first so 4.3 stays 4.3 rather than its binary expansion
    return Decimal(str(value))


def round_half_up(value: float | Decimal, places: int = 0) -> float:
    """Round with halves going away from zero (2.25 -> 2.3, 2.5 -> 3)."""
    if not isinstance(value, Decimal):
        value = _to_decimal(value)
    exponent = Decimal(1).scaleb(-places)
    return float(value.quantize(exponent, rounding=ROUND_HALF_UP))


def average_rating(ratings: Iterable[float]) -> float:
    values = [_to_decimal(r) for r in ratings]
    if not values:
        return 0.0
    return round_half_up(sum(values) / len(values), 1)


def rating_distribution(
    ratings: Iterable[float],
    descending: bool = True,
    with_percentage: bool = True,
) -> list[RatingBucket]:
    """Count reviews per distinct rating value.

    Percentages are rounded per bucket and are not normalised, so the sum
    can land a point or two away from 100.
    """
    counts = Counter(float(r) for r in ratings)
    total = sum(counts.values())
    buckets = []
    for rating in sorted(counts, reverse=descending):
        count = counts[rating]
        percentage = None
        if with_percentage:
            percentage = int(round_half_up(Decimal(count * 100) / Decimal(total)))
        buckets.append(RatingBucket(rating=rating, count=count, percentage=percentage))
    return buckets


def summarize_ratings(
    ratings: Iterable[float],
    descending: bool = True,
    with_percentage: bool = True,
) -> RatingSummary:
    values = [float(r) for r in ratings]
    if not values:
        return RatingSummary(count=0, average=0.0)
    return RatingSummary(
        count=len(values),
        average=average_rating(values),
        minimum=min(values),
        maximum=max(values),
        distribution=rating_distribution(values, descending=descending, with_percentage=with_percentage),
    )


def group_ratings(rows: Iterable[tuple[int, float]]) -> dict[int, list[float]]:
    """Collect (key, rating) rows into per-key rating lists."""
    grouped: dict[int, list[float]] = defaultdict(list)
    for key, rating in rows:
        grouped[key].append(rating)
    return grouped
