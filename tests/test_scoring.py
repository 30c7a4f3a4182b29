"""Tests for multi-factor confidence scoring."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from parcelmatch.core.config import ScoringConfig
from parcelmatch.geo.models import Coordinate
from parcelmatch.matching.scoring import NEUTRAL_ALTITUDE_SCORE, ConfidenceScorer

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
LAT = 39.7817
LNG = -89.6501


@pytest.fixture
def parcel(make_parcel):
    return make_parcel(LAT, LNG)


class TestSpatialFactors:
    def test_photo_on_reference_point_scores_full(self, scorer, parcel):
        factors = scorer.spatial(Coordinate(latitude=LAT, longitude=LNG), parcel)
        assert factors.coordinate_match
        assert factors.distance_match
        assert factors.bearing_match
        assert factors.centeredness == pytest.approx(1.0)
        assert factors.score == pytest.approx(1.0)

    def test_far_photo_loses_coordinate_and_distance(self, scorer, parcel):
        factors = scorer.spatial(Coordinate(latitude=LAT + 0.001, longitude=LNG), parcel)
        assert factors.coordinate_delta == pytest.approx(0.001)
        assert not factors.coordinate_match
        assert not factors.distance_match
        assert factors.distance_meters > 100
        assert factors.score < 0.5

    def test_bearing_away_from_heading(self, scorer, parcel):
        # ~5.5 m due south of the reference point
        factors = scorer.spatial(Coordinate(latitude=LAT - 0.00005, longitude=LNG), parcel)
        assert factors.coordinate_match
        assert factors.distance_match
        assert factors.bearing_degrees == pytest.approx(180.0)
        assert not factors.bearing_match
        assert factors.score == pytest.approx(0.85 + 0.05 * factors.centeredness, abs=1e-6)


class TestMetadataFactors:
    def test_timestamp_window(self, scorer):
        assert scorer.timestamp_valid(NOW - timedelta(days=1))
        assert scorer.timestamp_valid(NOW)
        assert not scorer.timestamp_valid(NOW + timedelta(hours=1))
        assert not scorer.timestamp_valid(NOW - timedelta(days=366))
        assert not scorer.timestamp_valid(None)

    def test_naive_timestamp_is_utc(self, scorer):
        assert scorer.timestamp_valid(datetime(2026, 5, 31, 12, 0))

    def test_altitude_score(self, scorer):
        assert scorer.altitude_score(None, 100.0) == NEUTRAL_ALTITUDE_SCORE
        assert scorer.altitude_score(100.0, None) == NEUTRAL_ALTITUDE_SCORE
        assert scorer.altitude_score(100.0, 100.0) == 1.0
        assert scorer.altitude_score(150.0, 100.0) == pytest.approx(0.5)
        assert scorer.altitude_score(250.0, 100.0) == 0.0

    def test_metadata_weights(self, scorer):
        factors = scorer.metadata(NOW - timedelta(days=1), 120.0, 120.0)
        assert factors.timestamp_valid
        assert factors.orientation_valid
        assert factors.score == pytest.approx(1.0)


class TestConfidence:
    def test_perfect_match_is_accepted(self, scorer, parcel):
        photo = Coordinate(latitude=LAT, longitude=LNG, altitude=120.0)
        report = scorer.score(photo, parcel, taken_at=NOW - timedelta(days=2), reference_altitude=120.0)
        assert report.within_boundary
        assert report.metadata is not None
        assert report.confidence == pytest.approx(1.0)
        assert report.accepted

    def test_spatial_only_when_metadata_missing(self, scorer, parcel):
        report = scorer.score(Coordinate(latitude=LAT, longitude=LNG), parcel)
        assert report.metadata is None
        assert report.confidence == report.spatial.score
        assert report.accepted

    def test_unknown_altitude_blocks_acceptance(self, scorer, parcel):
        photo = Coordinate(latitude=LAT, longitude=LNG)
        report = scorer.score(photo, parcel, taken_at=NOW - timedelta(days=2))
        assert report.metadata.altitude_score == NEUTRAL_ALTITUDE_SCORE
        # 0.7 * 1.0 + 0.3 * (0.5 + 0.3 * 0.5 + 0.2)
        assert report.confidence == pytest.approx(0.955)
        assert not report.accepted

    def test_small_offset_falls_below_threshold(self, scorer, parcel):
        report = scorer.score(Coordinate(latitude=LAT + 0.001, longitude=LNG), parcel)
        assert not report.within_boundary
        assert report.confidence < 0.99
        assert not report.accepted

    def test_outside_boundary_never_accepted(self, parcel):
        lenient = ConfidenceScorer(ScoringConfig(acceptance_threshold=0.0), now=lambda: NOW)
        report = lenient.score(Coordinate(latitude=LAT + 0.01, longitude=LNG), parcel)
        assert not report.within_boundary
        assert not report.accepted

    def test_threshold_is_configurable(self, parcel):
        lenient = ConfidenceScorer(ScoringConfig(acceptance_threshold=0.9), now=lambda: NOW)
        photo = Coordinate(latitude=LAT, longitude=LNG)
        report = lenient.score(photo, parcel, taken_at=NOW - timedelta(days=2))
        assert report.accepted

    def test_confidence_in_unit_interval(self, scorer, parcel):
        for dlat in (0.0, 0.00003, 0.00015, 0.0005):
            report = scorer.score(Coordinate(latitude=LAT + dlat, longitude=LNG), parcel)
            assert 0.0 <= report.confidence <= 1.0
