# =============================================================================
# Classifier Engine
# =============================================================================
# Ties the lexer, degenerator, scorer, selector and learner together.
#
# Classification flow:
#   text -> Lexer -> token counts
#        -> store lookup of every token, then of the degenerated variants
#           of the tokens that had no direct record
#        -> per-token affinity -> relevance selection -> Robinson combination
#
# Learning flow:
#   text -> Lexer -> token counts -> Learner (tokens, then aggregate)
#
# The engine holds no state between calls apart from the degenerator's memo.
# Operations on one context must be serialized by the caller.
# =============================================================================

import logging
from typing import TYPE_CHECKING

from hawk_bayes.classifier.degenerator import Degenerator
from hawk_bayes.classifier.learner import Learner
from hawk_bayes.classifier.lexer import Lexer
from hawk_bayes.classifier.scoring import combine, get_probability, rank, select_relevant
from hawk_bayes.config import Config
from hawk_bayes.core import (
    DEFAULT_CONTEXT,
    Category,
    Classification,
    EmptyTextError,
    LearnResult,
    TextMissingError,
    TokenEvidence,
    TokenLookup,
    UnknownContextError,
)

if TYPE_CHECKING:
    from hawk_bayes.storage import TokenStore


logger = logging.getLogger(__name__)


class Classifier:
    """
    Adaptive two-class text classifier.

    Learns from documents labeled "probable" or "improbable" and scores new
    documents with a probability in [0, 1]. Documents whose tokens lean
    towards the probable class score above 0.5; a document with no
    relevant tokens scores exactly 0.5.

    Usage:
        >>> classifier = Classifier(store)
        >>> await classifier.learn("Hello, world!", "probable")
        >>> await classifier.learn("remove this words", "improbable")
        >>> await classifier.classify("world")
        0.666...

    Attributes:
        store: Token store holding the learned counts.
        config: Full configuration (classifier, lexer, degenerator sections).
        lexer: Tokenizer in use.
        degenerator: Degenerator in use (memoizes variants).
        learner: Learner applying token mutations.
    """

    def __init__(
        self,
        store: "TokenStore",
        config: Config | None = None,
        lexer: Lexer | None = None,
    ) -> None:
        """
        Initialize the classifier.

        Args:
            store: Token store (connected).
            config: Configuration. Uses defaults if None.
            lexer: Lexer instance. Built from config.lexer if None.
        """
        self.store = store
        self.config = config or Config()
        self.lexer = lexer or Lexer(self.config.lexer)
        self.degenerator = Degenerator(self.config.degenerator)
        self.learner = Learner(store)

    # =========================================================================
    # Classification
    # =========================================================================

    async def classify(self, text: str, context: str = DEFAULT_CONTEXT) -> float:
        """
        Score a text.

        Args:
            text: Raw text to classify.
            context: Context to score against.

        Returns:
            Probability in [0, 1]. Empty text scores 0.5.

        Raises:
            TextMissingError: If text is not a string.
            UnknownContextError: If the context doesn't exist.
            StorageError: If the store fails.
        """
        return await self.classify_tokens(self._tokenize(text), context)

    async def classify_tokens(
        self,
        token_counts: dict[str, int],
        context: str = DEFAULT_CONTEXT,
    ) -> float:
        """
        Score an already tokenized document.

        Args:
            token_counts: Token -> occurrences in the document.
            context: Context to score against.

        Returns:
            Probability in [0, 1].
        """
        classification = await self._score(token_counts, context)
        return classification.probability

    async def explain(self, text: str, context: str = DEFAULT_CONTEXT) -> Classification:
        """
        Score a text and report how each token contributed.

        Returns:
            Classification with per-token evidence, most important first.
        """
        return await self._score(self._tokenize(text), context)

    async def _score(self, token_counts: dict[str, int], context: str) -> Classification:
        aggregate = await self.store.get_aggregate(context)
        if aggregate is None:
            raise UnknownContextError(f"Context '{context}' does not exist")

        if not token_counts:
            return Classification(probability=0.5, context=context)

        lookups = await self._lookup(token_counts, context)
        rob_x = self.config.classifier.rob_x
        scores = [get_probability(lookups[token], aggregate, rob_x) for token in token_counts]

        relevant, used = select_relevant(
            scores,
            token_counts,
            self.config.classifier.use_relevant,
            self.config.classifier.min_dev,
        )
        probability = combine(relevant)

        logger.debug(
            f"Classified {len(token_counts)} tokens in '{context}': "
            f"{len(used)} relevant, probability {probability:.4f}"
        )

        evidence = [
            TokenEvidence(
                token=score.token,
                count=token_counts[score.token],
                affinity=score.affinity,
                importance=score.importance,
                kind=score.kind,
                matched=score.matched,
                relevant=score.token in used,
            )
            for score in rank(scores)
        ]
        return Classification(probability=probability, context=context, evidence=evidence)

    async def _lookup(self, token_counts: dict[str, int], context: str) -> dict[str, TokenLookup]:
        """Resolve every token directly, falling back to its variants."""
        direct = await self.store.get_token_counts(token_counts, context)

        unknown = [token for token in token_counts if token not in direct]
        variants = self.degenerator.degenerate(unknown)
        wanted = {v for token in unknown for v in variants[token]}
        found = await self.store.get_token_counts(wanted, context) if wanted else {}

        lookups: dict[str, TokenLookup] = {}
        for token in token_counts:
            if token in direct:
                lookups[token] = TokenLookup(token, record=direct[token])
            else:
                lookups[token] = TokenLookup(
                    token,
                    variants=[found[v] for v in variants[token] if v in found],
                )
        return lookups

    # =========================================================================
    # Learning
    # =========================================================================

    async def learn(
        self,
        text: str,
        category: Category | str,
        context: str = DEFAULT_CONTEXT,
    ) -> LearnResult:
        """
        Learn a text as belonging to a category.

        Args:
            text: Raw text to learn.
            category: "probable"/"improbable" (or "ham"/"spam").
            context: Context to learn in. Created if missing.

        Returns:
            The batch result; ``result.success`` tells whether the
            context aggregate was updated.

        Raises:
            TextMissingError: If text is not a string.
            EmptyTextError: If text produces no tokens.
            CategoryError: If the category is unknown.
        """
        category = Category.parse(category)
        return await self.learn_tokens(self._tokenize(text, required=True), category, context)

    async def unlearn(
        self,
        text: str,
        category: Category | str,
        context: str = DEFAULT_CONTEXT,
    ) -> LearnResult:
        """
        Undo a previous learn of the same text and category.

        Raises:
            TextMissingError: If text is not a string.
            EmptyTextError: If text produces no tokens.
            CategoryError: If the category is unknown.
            UnknownContextError: If the context doesn't exist.
        """
        category = Category.parse(category)
        return await self.unlearn_tokens(self._tokenize(text, required=True), category, context)

    async def learn_tokens(
        self,
        token_counts: dict[str, int],
        category: Category | str,
        context: str = DEFAULT_CONTEXT,
    ) -> LearnResult:
        """Learn an already tokenized document."""
        return await self.learner.learn(token_counts, Category.parse(category), context)

    async def unlearn_tokens(
        self,
        token_counts: dict[str, int],
        category: Category | str,
        context: str = DEFAULT_CONTEXT,
    ) -> LearnResult:
        """Unlearn an already tokenized document."""
        return await self.learner.unlearn(token_counts, Category.parse(category), context)

    def _tokenize(self, text: str, *, required: bool = False) -> dict[str, int]:
        if not isinstance(text, str):
            raise TextMissingError("Text is missing or not a string")
        tokens = self.lexer.tokenize(text)
        if required and not tokens:
            raise EmptyTextError("Text contains no usable tokens")
        return tokens
