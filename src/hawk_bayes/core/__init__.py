# =============================================================================
# Hawk-Bayes Core Module
# =============================================================================
# Core domain models for the classifier. These are pure Python dataclasses
# and enums with no external dependencies, so they can be imported from the
# classifier, the storage layer and the CLI without circular imports.
# =============================================================================

from hawk_bayes.core.models import (
    DEFAULT_CONTEXT,
    Action,
    Category,
    CategoryError,
    Classification,
    ContextAggregate,
    EmptyTextError,
    HawkBayesError,
    InputError,
    LearnResult,
    LookupKind,
    TextMissingError,
    TokenEvidence,
    TokenLookup,
    TokenOutcome,
    TokenRecord,
    TokenResult,
    UnknownContextError,
)

__all__ = [
    "DEFAULT_CONTEXT",
    "Action",
    "Category",
    "Classification",
    "ContextAggregate",
    "LearnResult",
    "LookupKind",
    "TokenEvidence",
    "TokenLookup",
    "TokenOutcome",
    "TokenRecord",
    "TokenResult",
    # Exceptions
    "HawkBayesError",
    "InputError",
    "TextMissingError",
    "EmptyTextError",
    "CategoryError",
    "UnknownContextError",
]
