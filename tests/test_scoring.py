"""
Tests for Outcome Scoring, Authority Scoring and Action Plans
"""

import pytest

from src.database.models import PromptLayer
from src.scoring.outcome import (
    round_half_up,
    score_outcome,
    max_possible_score,
    normalize_score,
    status_label,
    rank_competitors,
    PromptOutcome,
    calculate_local_visibility_score,
    STATUS_NOT_MENTIONED,
    STATUS_OCCASIONAL,
    STATUS_FREQUENT,
)
from src.scoring.authority import AuthorityOutcome, compute_authority_score, COMPONENT_MAX
from src.scoring.recommendations import generate_recommendations, MAX_RECOMMENDATIONS


# =============================================================================
# OUTCOME POINTS
# =============================================================================

class TestScoreOutcome:
    """Tests for per-outcome points."""

    @pytest.mark.parametrize("mentioned,recommended,position,expected", [
        (False, False, None, 0),
        (True, False, None, 1),
        (True, False, 4, 1),
        (True, True, None, 2),
        (True, False, 2, 1.5),
        (True, True, 3, 2.5),
        (True, True, 1, 3),
        (True, False, 1, 2),
    ])
    def test_points(self, mentioned, recommended, position, expected):
        assert score_outcome(mentioned, recommended, position) == expected

    def test_never_exceeds_three(self):
        """Test the per-outcome cap."""
        for position in (None, 1, 2, 3, 4):
            assert score_outcome(True, True, position) <= 3

    def test_round_half_up(self):
        """Test that halves round up rather than to even."""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestFlatScore:
    """Tests for the flat visibility score."""

    def test_max_possible(self):
        assert max_possible_score(6, 3) == 54

    def test_normalize(self):
        assert normalize_score(27, 54) == 50
        assert normalize_score(0, 54) == 0
        assert normalize_score(54, 54) == 100
        assert normalize_score(80, 54) == 100
        assert normalize_score(5, 0) == 0

    @pytest.mark.parametrize("score,label", [
        (0, STATUS_NOT_MENTIONED),
        (29, STATUS_NOT_MENTIONED),
        (30, STATUS_OCCASIONAL),
        (69, STATUS_OCCASIONAL),
        (70, STATUS_FREQUENT),
        (100, STATUS_FREQUENT),
    ])
    def test_status_label_boundaries(self, score, label):
        assert status_label(score) == label

    def test_rank_competitors_ties_keep_first_seen(self):
        """Test ranking by count with stable ties."""
        ranked = rank_competitors([["B", "A"], ["A", "C"], ["C"]])
        assert ranked == [
            {"name": "A", "mentions": 2},
            {"name": "C", "mentions": 2},
            {"name": "B", "mentions": 1},
        ]

    def test_rank_competitors_limit(self):
        names = [[f"Comp {i}"] for i in range(8)]
        assert len(rank_competitors(names)) == 5

    def test_calculate_local_visibility_score(self):
        """Test raw, normalized and label for a small matrix."""
        outcomes = [
            PromptOutcome("p1", "ChatGPT", True, True, 1, ["Rival"]),
            PromptOutcome("p1", "Gemini", True, False, None, ["Rival", "Other"]),
            PromptOutcome("p2", "ChatGPT", False, False, None, []),
            PromptOutcome("p2", "Gemini", False, False, None, ["Other"]),
        ]
        result = calculate_local_visibility_score(outcomes, prompt_count=2, model_count=2)

        assert result.raw_score == 4
        assert result.max_possible_score == 12
        assert result.normalized_score == 33
        assert result.status_label == STATUS_OCCASIONAL
        assert result.top_competitors[0] == {"name": "Rival", "mentions": 2}
        assert result.to_dict()["prompt_results"][0]["score"] == 3


# =============================================================================
# AUTHORITY SCORE
# =============================================================================

def _outcome(layer=PromptLayer.GEO_CLUSTER, mentioned=True, position=1, competitors=None,
             location_match=True, strong=True, intent="best"):
    return AuthorityOutcome(
        layer=layer,
        intent_tag=intent,
        mentioned=mentioned,
        recommended=mentioned,
        position=position if mentioned else None,
        competitors=competitors or [],
        location_match=location_match,
        strong_association=strong,
    )


class TestAuthorityScore:
    """Tests for layered authority scoring."""

    def test_dominant_brand(self):
        """Test a brand that wins every geo prompt."""
        outcomes = [_outcome() for _ in range(10)]
        score = compute_authority_score(outcomes, total_calls=10)

        assert score.score_geo == 25
        assert score.score_implicit == 0
        assert score.score_association == 25
        # round(25 * 10 / 11) = 23, +2 for top-3 in every answer
        assert score.score_sov == 25
        assert score.score_total == 75
        assert score.breakdown["coverage"] == 100

    def test_invisible_brand(self):
        """Test a brand competitors beat everywhere."""
        outcomes = [
            _outcome(layer=layer, mentioned=False, competitors=["Rival"], location_match=False, strong=False)
            for layer in (PromptLayer.GEO_CLUSTER, PromptLayer.IMPLICIT, PromptLayer.RADIUS_NEIGHBORHOOD)
        ]
        score = compute_authority_score(outcomes, total_calls=3)

        assert score.score_total == 0
        assert score.score_implicit == 0
        assert score.score_sov == 0
        assert score.top_competitors == [{"name": "Rival", "mentions": 3}]

    def test_components_bounded(self):
        """Test each component stays within 0-25 and total within 0-100."""
        mixes = [
            [_outcome(layer=PromptLayer.IMPLICIT) for _ in range(5)],
            [_outcome(layer=PromptLayer.IMPLICIT, mentioned=False, competitors=["X"]) for _ in range(5)],
            [_outcome(), _outcome(mentioned=False, competitors=["X"]), _outcome(layer=PromptLayer.PROBLEM_INTENT)],
        ]
        for outcomes in mixes:
            score = compute_authority_score(outcomes, total_calls=len(outcomes))
            for component in (score.score_geo, score.score_implicit, score.score_association, score.score_sov):
                assert 0 <= component <= COMPONENT_MAX
            assert 0 <= score.score_total <= 100

    @pytest.mark.parametrize("total_calls,cap", [(30, 50), (15, 70)])
    def test_coverage_caps_total(self, total_calls, cap):
        """Test that low call coverage caps the total."""
        outcomes = [_outcome() for _ in range(10)]
        score = compute_authority_score(outcomes, total_calls=total_calls)
        assert score.score_total == min(75, cap)

    def test_no_geo_cluster_mention_penalty(self):
        """Test the share-of-voice penalty when geo prompts never mention the brand."""
        with_geo = [_outcome(layer=PromptLayer.PROBLEM_INTENT, position=None)] * 2 + [
            _outcome(layer=PromptLayer.GEO_CLUSTER, position=None)
        ]
        without_geo = [_outcome(layer=PromptLayer.PROBLEM_INTENT, position=None)] * 2 + [
            _outcome(layer=PromptLayer.GEO_CLUSTER, mentioned=False)
        ]
        a = compute_authority_score(with_geo, total_calls=3)
        b = compute_authority_score(without_geo, total_calls=3)
        assert b.score_sov < a.score_sov

    def test_more_mentions_never_lower_score(self):
        """Test monotonicity when one miss becomes a mention."""
        base = [_outcome(mentioned=False, competitors=["X"]) for _ in range(4)] + [_outcome()]
        better = [_outcome(mentioned=False, competitors=["X"]) for _ in range(3)] + [_outcome(), _outcome()]
        assert compute_authority_score(better, 5).score_total >= compute_authority_score(base, 5).score_total

    def test_intents(self):
        """Test winning and losing intent splits."""
        outcomes = [
            _outcome(intent="best"),
            _outcome(intent="best"),
            _outcome(intent="price", mentioned=False, competitors=["X"]),
        ]
        breakdown = compute_authority_score(outcomes, total_calls=3).breakdown

        assert [i["intent_tag"] for i in breakdown["winning_intents"]] == ["best"]
        assert [i["intent_tag"] for i in breakdown["losing_intents"]] == ["price"]
        assert breakdown["losing_intents"][0]["competitor_hit_rate"] == 100

    def test_empty_run(self):
        """Test that no outcomes scores zero without dividing by zero."""
        score = compute_authority_score([], total_calls=0)
        assert score.score_total == 0
        assert score.breakdown["coverage"] == 0


# =============================================================================
# RECOMMENDATIONS
# =============================================================================

class TestRecommendations:
    """Tests for action plan generation."""

    def test_weak_score_gets_every_bucket(self):
        outcomes = [
            _outcome(layer=PromptLayer.IMPLICIT, mentioned=False, competitors=["Rival"],
                     location_match=False, strong=False, intent="trust")
        ] * 4
        score = compute_authority_score(outcomes, total_calls=4)
        actions = generate_recommendations(score, "Austin", "TX")

        assert 0 < len(actions) <= MAX_RECOMMENDATIONS
        assert {a.bucket for a in actions} >= {"on_site", "citations", "content", "competitive"}
        assert actions[0].title == 'Add "Serving Austin" Language'
        assert any(a.title == 'Target "trust" Queries' for a in actions)

    def test_strong_score_gets_nothing(self):
        outcomes = [_outcome() for _ in range(5)] + [_outcome(layer=PromptLayer.IMPLICIT) for _ in range(5)]
        score = compute_authority_score(outcomes, total_calls=10)
        assert generate_recommendations(score, "Austin", "TX") == []

    def test_missing_location_placeholders(self):
        score = compute_authority_score([], total_calls=0)
        actions = generate_recommendations(score, "", "")
        assert 'Serving your city, your state' in actions[0].how
