# =============================================================================
# Hawk-Bayes: An Adaptive Two-Class Text Classifier
# =============================================================================
#
# Hawk-Bayes learns from texts labeled "probable" or "improbable" (ham or
# spam, in mail terms) and scores new texts with a probability.
#
# Features:
#   - Incremental learn / unlearn with per-context token statistics
#   - Case and punctuation "degeneration" for unseen tokens
#   - Relevance-based token selection and Robinson combination
#   - SQLite storage via aiosqlite
#   - XDG Base Directory compliant
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "hawk-bayes"

from hawk_bayes.classifier import Classifier
from hawk_bayes.config import Config, ConfigError
from hawk_bayes.core import Category, HawkBayesError
from hawk_bayes.storage import Database, StorageError, TokenStore

__all__ = [
    "Category",
    "Classifier",
    "Config",
    "ConfigError",
    "Database",
    "HawkBayesError",
    "StorageError",
    "TokenStore",
    "__version__",
    "__app_name__",
]
