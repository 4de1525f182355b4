# =============================================================================
# Classifier Module
# =============================================================================
# Token-statistics learning and scoring engine.
#
# Unlike a plain Naive Bayes filter, this one:
#   - Scores each token from smoothed per-class counts
#   - Falls back to case/punctuation variants for unknown tokens
#   - Only combines the most informative tokens
#   - Merges them with Robinson's geometric-mean method
#
# Learning is incremental: every learn/unlearn adjusts stored counters.
# =============================================================================

from hawk_bayes.classifier.degenerator import Degenerator
from hawk_bayes.classifier.engine import Classifier
from hawk_bayes.classifier.learner import Learner
from hawk_bayes.classifier.lexer import Lexer

__all__ = ["Classifier", "Degenerator", "Learner", "Lexer"]
