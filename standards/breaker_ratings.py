from bisect import bisect_left
from typing import List, Optional

from breaker_sizing.models import Standard

# NEC 240.6(A) - Standard Ampere Ratings for fuses and inverse time breakers
NEC_BREAKER_RATINGS = [
    15, 20, 25, 30, 35, 40, 45, 50, 60, 70, 80, 90, 100, 110, 125, 150, 175,
    200, 225, 250, 300, 350, 400, 450, 500, 600, 700, 800, 1000, 1200, 1600,
    2000, 2500, 3000, 4000,
]

# IEC 60898-1 (MCB) and IEC 60947-2 (MCCB/ACB) preferred rated currents
IEC_BREAKER_RATINGS = [
    6, 10, 13, 16, 20, 25, 32, 40, 50, 63, 80, 100, 125, 160, 200, 250, 315,
    400, 500, 630, 800, 1000, 1250, 1600, 2000, 2500, 3200, 4000,
]


def get_breaker_ratings(standard: Standard) -> List[int]:
    if standard is Standard.NEC:
        return list(NEC_BREAKER_RATINGS)
    return list(IEC_BREAKER_RATINGS)


def recommend_standard_breaker(minimum_amps: float, standard: Standard) -> Optional[int]:
    """Smallest standard rating >= minimum_amps, or None above the largest rating."""
    ratings = NEC_BREAKER_RATINGS if standard is Standard.NEC else IEC_BREAKER_RATINGS
    idx = bisect_left(ratings, minimum_amps)
    if idx == len(ratings):
        return None
    return ratings[idx]


def is_standard_rating(amps: float, standard: Standard) -> bool:
    return amps in get_breaker_ratings(standard)


def get_next_larger_rating(current_rating: float, standard: Standard) -> Optional[int]:
    ratings = NEC_BREAKER_RATINGS if standard is Standard.NEC else IEC_BREAKER_RATINGS
    for rating in ratings:
        if rating > current_rating:
            return rating
    return None
