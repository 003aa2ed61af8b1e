# wdtp/services/relevance.py
"""
Blend text match and proximity into one score in [0, 1].

    score = w_text * min(text_rank, 1) + w_prox * clamp(1 - d / R, 0, 1)

Works on any candidate exposing ``text_rank`` and ``distance_meters``
(internal rows and external POIs alike). A missing text rank counts as 0.5
and a missing distance as 0.
"""
from typing import Protocol

from ..core.config import settings

DEFAULT_TEXT_RANK = 0.5
TEXT_RANK_CAP = 1.0


class Scorable(Protocol):
    text_rank: float | None
    distance_meters: float | None


class RelevanceScorer:
    def __init__(self, text_weight: float | None = None, proximity_weight: float | None = None):
        self.text_weight = settings.relevance_text_weight if text_weight is None else text_weight
        self.proximity_weight = (
            settings.relevance_proximity_weight if proximity_weight is None else proximity_weight
        )

    def score(self, candidate: Scorable, max_radius_km: float) -> float:
        if max_radius_km <= 0:
            raise ValueError("max_radius_km must be positive")

        text_rank = getattr(candidate, "text_rank", None)
        if text_rank is None:
            text_rank = DEFAULT_TEXT_RANK
        distance = getattr(candidate, "distance_meters", None)
        if distance is None:
            distance = 0.0

        text_part = min(max(float(text_rank), 0.0), TEXT_RANK_CAP)
        proximity = 1.0 - float(distance) / (max_radius_km * 1000.0)
        proximity = max(0.0, min(1.0, proximity))

        return round(self.text_weight * text_part + self.proximity_weight * proximity, 2)


default_scorer = RelevanceScorer()


def score(candidate: Scorable, max_radius_km: float) -> float:
    return default_scorer.score(candidate, max_radius_km)
