"""Tests for StageAnalyzer."""

import pytest

from cryptocouncil.engine.analyzer import (
    STAGE_SCORE_FLOORS,
    UNAVAILABLE_ANALYSIS,
    StageAnalyzer,
)
from cryptocouncil.engine.scoring import RandomScoringStrategy
from cryptocouncil.primitives.models import STAGE_NAMES, StageResult

EXPECTED_DETAIL_KEYS = {
    "On-chain Analysis": {"github", "transactions"},
    "Social Sentiment": {"twitter", "community"},
    "Market Insights": {"volume", "liquidity"},
    "Design and Art": {"branding", "website"},
    "Value Proposition": {"utility", "competition"},
}


@pytest.fixture
def analyzer():
    return StageAnalyzer(RandomScoringStrategy(seed=7))


class TestStageScores:
    @pytest.mark.parametrize("stage_name,lower", sorted(STAGE_SCORE_FLOORS.items()))
    def test_score_within_declared_range(self, analyzer, stage_name, lower):
        for _ in range(300):
            result = analyzer.analyze_stage(stage_name)
            assert lower <= result.score < 100

    def test_declared_floors(self):
        assert STAGE_SCORE_FLOORS == {
            "On-chain Analysis": 60,
            "Social Sentiment": 50,
            "Market Insights": 40,
            "Design and Art": 70,
            "Value Proposition": 55,
        }


class TestStageDetails:
    @pytest.mark.parametrize("stage_name", STAGE_NAMES)
    def test_detail_shape_follows_stage_name(self, analyzer, stage_name):
        result = analyzer.analyze_stage(stage_name)
        assert isinstance(result, StageResult)
        assert set(result.details) == EXPECTED_DETAIL_KEYS[stage_name]
        assert all(isinstance(v, str) and v for v in result.details.values())
        assert stage_name in result.analysis


class TestUnknownStage:
    def test_unknown_stage_degrades_to_zero(self, analyzer):
        result = analyzer.analyze_stage("Astrology")
        assert result.score == 0
        assert result.analysis == UNAVAILABLE_ANALYSIS == "Analysis unavailable"
        assert result.details == {}


class TestBatch:
    def test_analyze_all_in_canonical_order(self, analyzer):
        results = analyzer.analyze_all()
        assert len(results) == 5
        for name, result in zip(STAGE_NAMES, results):
            assert name in result.analysis
            assert result.score >= STAGE_SCORE_FLOORS[name]
