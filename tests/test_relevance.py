"""Tests for the blended relevance score."""

from types import SimpleNamespace

import pytest

from wdtp.schemas.osm import OsmLocation
from wdtp.services.relevance import RelevanceScorer, score


def candidate(text_rank=None, distance_meters=None):
    return SimpleNamespace(text_rank=text_rank, distance_meters=distance_meters)


class TestBoundaryCases:
    def test_perfect_match_at_centre(self):
        assert score(candidate(1.0, 0), 10) == 1.0

    def test_perfect_match_at_radius(self):
        assert score(candidate(1.0, 10_000), 10) == 0.6

    def test_text_rank_capped(self):
        assert score(candidate(1.5, 2_500), 10) == score(candidate(1.0, 2_500), 10)

    def test_beyond_radius_never_negative(self):
        assert score(candidate(1.0, 25_000), 10) == 0.6
        assert score(candidate(0.0, 25_000), 10) == 0.0

    def test_halfway(self):
        # 0.6 * 0.5 + 0.4 * 0.5
        assert score(candidate(0.5, 5_000), 10) == 0.5

    def test_rounded_to_two_places(self):
        assert score(candidate(0.333, 1_234), 10) == round(0.6 * 0.333 + 0.4 * (1 - 1234 / 10000), 2)


class TestMissingSignals:
    def test_missing_text_rank_is_neutral(self):
        assert score(candidate(None, 0), 10) == 0.7

    def test_missing_distance_is_best_case(self):
        assert score(candidate(1.0, None), 10) == 1.0

    def test_object_without_attributes(self):
        assert score(object(), 10) == 0.7

    def test_external_poi_defaults(self):
        poi = OsmLocation(osm_id="node/1", osm_type="node", name="Cafe", latitude=0, longitude=0)
        assert score(poi.with_distance(0), 10) == 0.7


class TestScorer:
    def test_custom_weights(self):
        scorer = RelevanceScorer(text_weight=0.5, proximity_weight=0.5)
        assert scorer.score(candidate(1.0, 5_000), 10) == 0.75

    def test_non_positive_radius(self):
        with pytest.raises(ValueError):
            score(candidate(1.0, 0), 0)

    def test_same_formula_for_both_sources(self):
        poi = OsmLocation(
            osm_id="way/9", osm_type="way", name="Cafe", latitude=0, longitude=0, text_rank=0.8
        ).with_distance(3_000)
        assert score(poi, 10) == score(candidate(0.8, 3_000), 10)
