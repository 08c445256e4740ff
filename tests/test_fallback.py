"""Tests for the rule-based fallback scorer."""

import pytest

from tests.conftest import START, make_request
from visit_analysis.scoring.fallback import (
    CONCERNS,
    FALLBACK_CONFIDENCE,
    NEXT_CONTACT_TIMING,
    OPPORTUNITIES,
    RECOMMENDED_ACTIONS,
)


class TestFallbackBaseline:
    def test_empty_visit_scores_neutral(self, fallback):
        result = fallback.score(make_request())
        assert result.purchase_probability == 0.5
        assert result.priority_ranking == 5
        assert result.sentiment_score == 0.0
        assert result.confidence_score == FALLBACK_CONFIDENCE

    def test_static_lists(self, fallback):
        result = fallback.score(make_request())
        assert result.recommended_actions == RECOMMENDED_ACTIONS
        assert result.concerns == CONCERNS
        assert result.opportunities == OPPORTUNITIES
        assert result.next_contact_timing == NEXT_CONTACT_TIMING
        assert len(result.recommended_actions) >= 3
        assert result.reasoning
        assert result.cultural_considerations

    def test_generated_at_from_clock(self, fallback):
        assert fallback.score(make_request()).generated_at == START


class TestFallbackRules:
    def test_budget_month_and_repeat_visitor(self, fallback):
        request = make_request(
            vehicle_interest={
                "budget_range": "25000-35000",
                "purchase_timeline": "within_month",
            },
            visit_history=2,
        )
        result = fallback.score(request)
        assert result.purchase_probability == 0.9
        assert result.priority_ranking == 9
        assert result.confidence_score == 0.6

    def test_week_timeline(self, fallback):
        result = fallback.score(make_request(
            vehicle_interest={"purchase_timeline": "within_week"},
        ))
        assert result.purchase_probability == 0.75
        assert result.priority_ranking == 8

    def test_week_takes_precedence_over_month(self, fallback):
        result = fallback.score(make_request(
            vehicle_interest={"purchase_timeline": "week or month"},
        ))
        assert result.purchase_probability == 0.75
        assert result.priority_ranking == 8

    def test_timeline_match_is_case_insensitive(self, fallback):
        result = fallback.score(make_request(
            vehicle_interest={"purchase_timeline": "Next MONTH"},
        ))
        assert result.priority_ranking == 7

    def test_unrecognised_timeline_has_no_effect(self, fallback):
        result = fallback.score(make_request(
            vehicle_interest={"purchase_timeline": "next_year"},
        ))
        assert result.purchase_probability == 0.5
        assert result.priority_ranking == 5

    def test_positive_notes_raise_sentiment(self, fallback):
        result = fallback.score(make_request(consultant_notes="Customer was EXCITED"))
        assert result.sentiment_score == 0.3
        assert result.purchase_probability == 0.6
        assert result.priority_ranking == 5

    def test_budget_notes(self, fallback):
        result = fallback.score(make_request(consultant_notes="Asked about the price"))
        assert result.purchase_probability == 0.55
        assert result.sentiment_score == 0.0

    def test_both_note_rules_apply(self, fallback):
        result = fallback.score(make_request(
            consultant_notes="Very interested, asked about price",
        ))
        assert result.purchase_probability == 0.65
        assert result.sentiment_score == 0.3

    def test_single_visit_history_has_no_effect(self, fallback):
        result = fallback.score(make_request(visit_history=1))
        assert result.purchase_probability == 0.5
        assert result.priority_ranking == 5

    def test_every_rule_clamps_to_bounds(self, fallback):
        request = make_request(
            vehicle_interest={
                "budget_range": "40000+",
                "purchase_timeline": "this week",
            },
            consultant_notes="interested and excited, budget approved, price ok",
            visit_history=5,
        )
        result = fallback.score(request)
        assert result.purchase_probability == 1.0
        assert result.priority_ranking == 10
        assert result.sentiment_score == 0.3

    @pytest.mark.parametrize("notes", [None, "", "Just looking"])
    def test_neutral_notes(self, fallback, notes):
        result = fallback.score(make_request(consultant_notes=notes))
        assert result.sentiment_score == 0.0
        assert result.purchase_probability == 0.5


class TestFallbackDeterminism:
    def test_same_input_same_output(self, fallback):
        request = make_request(
            vehicle_interest={"budget_range": "20000", "purchase_timeline": "month"},
            consultant_notes="interested",
        )
        assert fallback.score(request) == fallback.score(request)

    def test_scores_within_ranges(self, fallback):
        result = fallback.score(make_request(
            vehicle_interest={"budget_range": "x", "purchase_timeline": "week"},
            visit_history=3,
        ))
        assert 0.0 <= result.purchase_probability <= 1.0
        assert -1.0 <= result.sentiment_score <= 1.0
        assert 1 <= result.priority_ranking <= 10
        assert 0.0 <= result.confidence_score <= 1.0
