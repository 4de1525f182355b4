# =============================================================================
# Token Scoring and Combination
# =============================================================================
# Turns learned counts into a document-level probability.
#
# How it works:
#   1. Every token gets an affinity from its counts and the context totals:
#        total   = negative_count + positive_count
#        neg_p   = (neg + 1) / (negative_count + total)
#        pos_p   = (pos + 1) / (positive_count + total)
#        affinity = neg_p / (neg_p + pos_p)
#      Tokens only known through degenerated variants take the variant that
#      deviates most from 0.5; unknown tokens get rob_x.
#   2. Tokens are ranked by importance = |0.5 - affinity| and the top
#      use_relevant of them are considered. Those deviating more than
#      min_dev enter the relevant list once per occurrence in the document.
#   3. The relevant affinities are combined with Robinson's geometric means:
#        H = (prod(1 - s)) ** (1/n)      S = (prod(s)) ** (1/n)
#        probability = (1 + (H - S) / (H + S)) / 2
#      The products are computed as sums of logs so that long documents
#      don't underflow.
# =============================================================================

import math
from dataclasses import dataclass

from hawk_bayes.core import ContextAggregate, LookupKind, TokenLookup, TokenRecord


# Returned when there is nothing to combine
NEUTRAL = 0.5


def affinity(pos: int, neg: int, aggregate: ContextAggregate) -> float:
    """
    Smoothed probability that a token belongs to the negative class.

    Args:
        pos: Positive-class count of the token.
        neg: Negative-class count of the token.
        aggregate: Context totals used as the prior.

    Returns:
        A value strictly between 0 and 1. A context with nothing learned
        gives 0.5.
    """
    total = aggregate.negative_count + aggregate.positive_count
    if total == 0:
        return NEUTRAL

    neg_prob = (neg + 1) / (aggregate.negative_count + total)
    pos_prob = (pos + 1) / (aggregate.positive_count + total)

    return neg_prob / (neg_prob + pos_prob)


@dataclass
class TokenScore:
    """Affinity of one document token and the record it came from."""
    token: str
    affinity: float
    kind: LookupKind
    matched: str | None = None

    @property
    def importance(self) -> float:
        return abs(NEUTRAL - self.affinity)


def get_probability(
    lookup: TokenLookup,
    aggregate: ContextAggregate,
    rob_x: float = NEUTRAL,
) -> TokenScore:
    """
    Score a token from its store lookup.

    A direct record wins. Otherwise the most opinionated variant wins
    (first one on ties). A token with no record at all scores rob_x.

    Args:
        lookup: What the store knows about the token.
        aggregate: Context totals.
        rob_x: Score for unknown tokens.

    Returns:
        The token's score.
    """
    if lookup.kind is LookupKind.UNKNOWN:
        return TokenScore(lookup.token, rob_x, LookupKind.UNKNOWN)

    if lookup.kind is LookupKind.DIRECT:
        record = lookup.record
        return TokenScore(
            lookup.token,
            affinity(record.pos, record.neg, aggregate),
            LookupKind.DIRECT,
            record.token,
        )

    best: TokenRecord | None = None
    best_score = NEUTRAL
    for variant in lookup.variants:
        score = affinity(variant.pos, variant.neg, aggregate)
        # Strictly greater keeps the first variant on ties
        if best is None or abs(NEUTRAL - score) > abs(NEUTRAL - best_score):
            best = variant
            best_score = score

    return TokenScore(lookup.token, best_score, LookupKind.DEGENERATED, best.token)


def rank(scores: list[TokenScore]) -> list[TokenScore]:
    """Order scores by descending importance, keeping input order on ties."""
    return sorted(scores, key=lambda s: s.importance, reverse=True)


def select_relevant(
    scores: list[TokenScore],
    token_counts: dict[str, int],
    use_relevant: int,
    min_dev: float,
) -> tuple[list[float], set[str]]:
    """
    Pick the affinities that take part in the combination.

    The use_relevant most important tokens are considered; those whose
    importance exceeds min_dev contribute their affinity once per
    occurrence in the document.

    Args:
        scores: One score per distinct document token.
        token_counts: Occurrences of each token in the document.
        use_relevant: How many top-ranked tokens to consider.
        min_dev: Minimum importance for a token to count.

    Returns:
        The relevant affinities and the set of tokens they came from.
    """
    relevant: list[float] = []
    used: set[str] = set()

    # Fewer candidates than the cap simply ends the loop early
    for score in rank(scores)[:int(use_relevant)]:
        if score.importance > min_dev:
            relevant.extend([score.affinity] * token_counts.get(score.token, 1))
            used.add(score.token)

    return relevant, used


def combine(affinities: list[float]) -> float:
    """
    Combine token affinities with Robinson's geometric-mean method.

    Args:
        affinities: Relevant affinities, each strictly inside (0, 1).

    Returns:
        A probability in [0, 1], or 0.5 for an empty list.
    """
    n = len(affinities)
    if n == 0:
        return NEUTRAL

    # Geometric means via mean of logs
    h = math.exp(math.fsum(math.log1p(-a) for a in affinities) / n)
    s = math.exp(math.fsum(math.log(a) for a in affinities) / n)

    indicator = (h - s) / (h + s)
    return (1 + indicator) / 2
