"""Tests for token affinity, relevance selection and Robinson combination."""

import math
import random

import pytest

from hawk_bayes.classifier.scoring import (
    NEUTRAL,
    TokenScore,
    affinity,
    combine,
    get_probability,
    rank,
    select_relevant,
)
from hawk_bayes.core import ContextAggregate, LookupKind, TokenLookup, TokenRecord


def aggregate(positive: int, negative: int) -> ContextAggregate:
    return ContextAggregate(positive_count=positive, negative_count=negative)


# ---------------------------------------------------------------------------
# Affinity
# ---------------------------------------------------------------------------

class TestAffinity:
    def test_formula(self):
        # total = 3; neg_p = 3/5, pos_p = 2/4
        expected = (3 / 5) / (3 / 5 + 2 / 4)
        assert affinity(1, 2, aggregate(1, 2)) == pytest.approx(expected)

    def test_positive_token_leans_low(self):
        assert affinity(1, 0, aggregate(1, 1)) == pytest.approx(1 / 3)

    def test_negative_token_leans_high(self):
        assert affinity(0, 1, aggregate(1, 1)) == pytest.approx(2 / 3)

    @pytest.mark.parametrize("count", [0, 1, 7, 1000])
    def test_equal_counts_are_neutral(self, count):
        assert affinity(count, count, aggregate(5, 5)) == pytest.approx(0.5)

    def test_strictly_inside_unit_interval(self):
        rng = random.Random(1234)
        for _ in range(500):
            positive = rng.randint(0, 50)
            negative = rng.randint(0, 50)
            if positive + negative == 0:
                continue
            value = affinity(rng.randint(0, 10_000), rng.randint(0, 10_000), aggregate(positive, negative))
            assert 0.0 < value < 1.0

    def test_extreme_counts_stay_inside(self):
        assert 0.0 < affinity(0, 10**9, aggregate(1, 1)) < 1.0
        assert 0.0 < affinity(10**9, 0, aggregate(1, 1)) < 1.0

    def test_empty_context_is_neutral(self):
        assert affinity(3, 0, aggregate(0, 0)) == NEUTRAL


# ---------------------------------------------------------------------------
# Lookup scoring
# ---------------------------------------------------------------------------

class TestGetProbability:
    def test_direct_record(self):
        lookup = TokenLookup("world", record=TokenRecord("world", pos=1, neg=0))
        score = get_probability(lookup, aggregate(1, 1))
        assert score.kind is LookupKind.DIRECT
        assert score.matched == "world"
        assert score.affinity == pytest.approx(1 / 3)

    def test_most_opinionated_variant_wins(self):
        lookup = TokenLookup("World", variants=[
            TokenRecord("world", pos=1, neg=1),     # neutral
            TokenRecord("WORLD", pos=0, neg=5),     # strongly negative
            TokenRecord("World!", pos=1, neg=0),    # mildly positive
        ])
        score = get_probability(lookup, aggregate(3, 3))
        assert score.kind is LookupKind.DEGENERATED
        assert score.matched == "WORLD"
        assert score.affinity == pytest.approx(affinity(0, 5, aggregate(3, 3)))

    def test_variant_tie_keeps_first(self):
        lookup = TokenLookup("word", variants=[
            TokenRecord("WORD", pos=0, neg=2),
            TokenRecord("Word", pos=0, neg=2),
        ])
        score = get_probability(lookup, aggregate(2, 2))
        assert score.matched == "WORD"

    def test_variants_are_not_averaged(self):
        lookup = TokenLookup("x", variants=[
            TokenRecord("X", pos=0, neg=4),
            TokenRecord("x!", pos=4, neg=0),
        ])
        score = get_probability(lookup, aggregate(4, 4))
        assert score.affinity != pytest.approx(0.5)

    def test_unknown_token_uses_rob_x(self):
        score = get_probability(TokenLookup("nothing"), aggregate(2, 2), rob_x=0.4)
        assert score.kind is LookupKind.UNKNOWN
        assert score.matched is None
        assert score.affinity == 0.4

    def test_unknown_token_default_is_neutral(self):
        score = get_probability(TokenLookup("nothing"), aggregate(2, 2))
        assert score.affinity == 0.5
        assert score.importance == 0.0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def score(token: str, value: float) -> TokenScore:
    return TokenScore(token, value, LookupKind.DIRECT, token)


class TestSelectRelevant:
    def test_rank_by_importance(self):
        scores = [score("a", 0.55), score("b", 0.1), score("c", 0.8)]
        assert [s.token for s in rank(scores)] == ["b", "c", "a"]

    def test_rank_is_stable_on_ties(self):
        scores = [score("a", 0.25), score("b", 0.75), score("c", 0.25)]
        assert [s.token for s in rank(scores)] == ["a", "b", "c"]

    def test_min_dev_filters_neutral_tokens(self):
        scores = [score("a", 0.505), score("b", 0.9)]
        relevant, used = select_relevant(scores, {"a": 1, "b": 1}, use_relevant=15, min_dev=0.01)
        assert relevant == [0.9]
        assert used == {"b"}

    def test_importance_must_exceed_min_dev(self):
        scores = [score("a", 0.6)]
        relevant, _ = select_relevant(scores, {"a": 1}, use_relevant=15, min_dev=0.1 + 1e-9)
        assert relevant == []

    def test_repeat_weighting(self):
        scores = [score("a", 0.9), score("b", 0.2)]
        relevant, _ = select_relevant(scores, {"a": 3, "b": 1}, use_relevant=15, min_dev=0.01)
        assert relevant == [0.9, 0.9, 0.9, 0.2]

    def test_cap_counts_distinct_tokens(self):
        scores = [score("a", 0.99), score("b", 0.9), score("c", 0.8)]
        relevant, used = select_relevant(
            scores, {"a": 2, "b": 1, "c": 1}, use_relevant=2, min_dev=0.01
        )
        assert used == {"a", "b"}
        assert relevant == [0.99, 0.99, 0.9]

    def test_fractional_cap_is_truncated(self):
        scores = [score("a", 0.99), score("b", 0.9)]
        _, used = select_relevant(scores, {"a": 1, "b": 1}, use_relevant=1.9, min_dev=0.01)
        assert used == {"a"}

    def test_fewer_tokens_than_cap(self):
        scores = [score("a", 0.9)]
        relevant, _ = select_relevant(scores, {"a": 1}, use_relevant=15, min_dev=0.01)
        assert relevant == [0.9]


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------

class TestCombine:
    def test_empty_is_neutral(self):
        assert combine([]) == 0.5

    def test_single_score(self):
        # H = 1 - s, S = s -> probability = 1 - s
        assert combine([1 / 3]) == pytest.approx(2 / 3)
        assert combine([0.9]) == pytest.approx(0.1)

    def test_neutral_scores(self):
        assert combine([0.5, 0.5, 0.5]) == pytest.approx(0.5)

    def test_matches_direct_formula(self):
        values = [0.2, 0.7, 0.95, 0.4]
        n = len(values)
        h = math.prod(1 - v for v in values) ** (1 / n)
        s = math.prod(values) ** (1 / n)
        expected = (1 + (h - s) / (h + s)) / 2
        assert combine(values) == pytest.approx(expected)

    def test_symmetry(self):
        values = [0.1, 0.3, 0.8]
        mirrored = [1 - v for v in values]
        assert combine(values) + combine(mirrored) == pytest.approx(1.0)

    def test_no_underflow_for_long_documents(self):
        # The raw product of 5000 small scores underflows to 0.0
        values = [0.01] * 5000
        assert math.prod(values) == 0.0
        result = combine(values)
        assert 0.0 <= result <= 1.0
        assert result == pytest.approx(0.99)

    def test_result_in_unit_interval(self):
        rng = random.Random(42)
        for _ in range(200):
            values = [rng.uniform(0.001, 0.999) for _ in range(rng.randint(1, 40))]
            assert 0.0 <= combine(values) <= 1.0
