# =============================================================================
# Classifier Domain Models
# =============================================================================
# Plain data containers shared by the classifier, the learner and the store.
#
#   - Category: The two classes of the affinity axis. "probable" is the
#               positive class (historically ham), "improbable" the negative
#               class (historically spam).
#   - TokenRecord: Per-token positive/negative counts within a context.
#   - ContextAggregate: Per-context totals ("internals") used as the prior.
#   - TokenLookup: What the store knows about a queried token: a direct
#                  record, records for its degenerated variants, or nothing.
#   - LearnResult / TokenResult: Outcome of a learn/unlearn batch.
#   - Classification / TokenEvidence: A probability plus how it was reached.
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum


# Name of the context that always exists
DEFAULT_CONTEXT = "default"


class Category(str, Enum):
    """
    The two classes a document can be learned as.

    PROBABLE is the positive class, IMPROBABLE the negative one. A token's
    affinity is its smoothed probability of belonging to IMPROBABLE.
    """
    PROBABLE = "probable"
    IMPROBABLE = "improbable"

    @property
    def is_positive(self) -> bool:
        return self is Category.PROBABLE

    @classmethod
    def parse(cls, value: "Category | str | None") -> "Category":
        """
        Convert user input into a Category.

        Accepts a Category, its value, or the historical aliases
        "ham" (probable) and "spam" (improbable), case-insensitively.

        Raises:
            CategoryError: If the value names no category.
        """
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            raise CategoryError(f"Category missing or not a string: {value!r}")

        key = value.strip().lower()
        key = _CATEGORY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise CategoryError(
                f"Unknown category {value!r}, expected 'probable' or 'improbable'"
            ) from None


_CATEGORY_ALIASES = {
    "ham": "probable",
    "spam": "improbable",
}


class Action(str, Enum):
    """Direction of a learner mutation."""
    LEARN = "learn"
    UNLEARN = "unlearn"


class LookupKind(str, Enum):
    """How a token was resolved against the store."""
    DIRECT = "direct"           # Exact token has a record
    DEGENERATED = "degenerated" # Only variants of the token have records
    UNKNOWN = "unknown"         # Nothing known about the token


@dataclass
class TokenRecord:
    """
    Learned counts for one token within a context.

    Attributes:
        token: The token string.
        pos: Learning weight attributed to the positive class.
        neg: Learning weight attributed to the negative class.
    """
    token: str
    pos: int = 0
    neg: int = 0

    @property
    def is_empty(self) -> bool:
        """A record with both counts at zero is treated as absent."""
        return self.pos == 0 and self.neg == 0


@dataclass
class ContextAggregate:
    """
    Per-context totals across all learned documents.

    Attributes:
        positive_count: Documents currently learned as positive.
        negative_count: Documents currently learned as negative.
        documents_learned: Total learn calls ever applied (never decreases).
        documents_unlearned: Total unlearn calls ever applied (never decreases).
    """
    positive_count: int = 0
    negative_count: int = 0
    documents_learned: int = 0
    documents_unlearned: int = 0

    @property
    def total(self) -> int:
        return self.positive_count + self.negative_count


@dataclass
class TokenLookup:
    """
    Result of resolving one token against the store.

    Exactly one of these holds:
        - record is set (direct hit)
        - variants is non-empty (hits for degenerated forms only)
        - neither (unknown token)

    Attributes:
        token: The queried token.
        record: Direct record for the token, if any.
        variants: Records found for degenerated variants, in variant order.
    """
    token: str
    record: TokenRecord | None = None
    variants: list[TokenRecord] = field(default_factory=list)

    @property
    def kind(self) -> LookupKind:
        if self.record is not None:
            return LookupKind.DIRECT
        if self.variants:
            return LookupKind.DEGENERATED
        return LookupKind.UNKNOWN


class TokenOutcome(str, Enum):
    """What a learn/unlearn did to a single token."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    SKIPPED = "skipped"     # Unlearn of a token that was never learned
    FAILED = "failed"       # Store write failed


@dataclass
class TokenResult:
    """Per-token entry of a LearnResult."""
    token: str
    outcome: TokenOutcome
    error: str | None = None


@dataclass
class LearnResult:
    """
    Outcome of a learn or unlearn call.

    Token updates are applied one by one and are not rolled back if a
    later one fails, so a result can be partial: check ``failed``.

    Attributes:
        action: LEARN or UNLEARN.
        category: Class the document was (un)learned as.
        context: Context that was mutated.
        success: True if the context aggregate update committed.
        tokens: Per-token outcomes, in processing order.
        error: Error text if the aggregate update failed.
    """
    action: Action
    category: Category
    context: str
    success: bool = False
    tokens: list[TokenResult] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> list[TokenResult]:
        return [t for t in self.tokens if t.outcome is TokenOutcome.FAILED]

    @property
    def complete(self) -> bool:
        """True if the aggregate and every token write committed."""
        return self.success and not self.failed

    def count(self, outcome: TokenOutcome) -> int:
        return sum(1 for t in self.tokens if t.outcome is outcome)

    def __bool__(self) -> bool:
        return self.success


@dataclass
class TokenEvidence:
    """
    How a single document token was scored.

    Attributes:
        token: Token as it appeared in the document.
        count: Occurrences in the document.
        affinity: Score in (0, 1); above 0.5 leans negative.
        importance: |0.5 - affinity|.
        kind: How the token was resolved against the store.
        matched: Token whose record produced the score (a variant for
                 degenerated lookups, None for unknown tokens).
        relevant: Whether the token made it into the combination.
    """
    token: str
    count: int
    affinity: float
    importance: float
    kind: LookupKind
    matched: str | None = None
    relevant: bool = False


@dataclass
class Classification:
    """
    A document-level probability together with its evidence.

    Attributes:
        probability: Combined value in [0, 1].
        context: Context the document was scored against.
        evidence: Every distinct token, most important first.
    """
    probability: float
    context: str
    evidence: list[TokenEvidence] = field(default_factory=list)

    @property
    def relevant(self) -> list[TokenEvidence]:
        return [e for e in self.evidence if e.relevant]


# =============================================================================
# Exceptions
# =============================================================================

class HawkBayesError(Exception):
    """Base exception for all hawk-bayes errors."""
    pass


class InputError(HawkBayesError):
    """Raised when a caller passes unusable input to classify/learn."""
    pass


class TextMissingError(InputError):
    """Raised when the text to classify or learn is missing or not a string."""
    pass


class EmptyTextError(InputError):
    """Raised when text to learn produces no tokens."""
    pass


class CategoryError(InputError):
    """Raised when a category is missing or unknown."""
    pass


class UnknownContextError(InputError):
    """Raised when an operation needs a context that does not exist."""
    pass
