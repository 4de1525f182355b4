# =============================================================================
# Learner
# =============================================================================
# Applies learn/unlearn mutations to the token store.
#
# For every distinct token with document count c:
#   - learn:   add c to the class side (pos or neg), creating the record
#              if the token is new
#   - unlearn: subtract c from the class side, clamped at zero; tokens that
#              were never learned are skipped
#   - a record whose counts both reach zero is deleted
#
# Afterwards the context aggregate is moved by one document for the class
# (never below zero), and the learned/unlearned counters are bumped.
#
# Updates are best-effort: a failed token write is recorded in the result
# and the batch carries on. Tokens already written are not rolled back.
# =============================================================================

import logging
from typing import TYPE_CHECKING

from hawk_bayes.core import (
    Action,
    Category,
    ContextAggregate,
    LearnResult,
    TokenOutcome,
    TokenRecord,
    TokenResult,
    UnknownContextError,
)
from hawk_bayes.storage import StorageError

if TYPE_CHECKING:
    from hawk_bayes.storage import TokenStore


logger = logging.getLogger(__name__)


class Learner:
    """
    Mutates token counts and context aggregates.

    Callers must serialize learn/unlearn/classify per context: the
    read-modify-write cycles here take no locks.

    Usage:
        >>> learner = Learner(store)
        >>> result = await learner.learn({"cheap": 2, "pills": 1}, Category.IMPROBABLE, "default")
        >>> result.success
        True

    Attributes:
        store: Token store to mutate.
    """

    def __init__(self, store: "TokenStore") -> None:
        self.store = store

    async def learn(
        self,
        tokens: dict[str, int],
        category: Category,
        context: str,
    ) -> LearnResult:
        """
        Learn a tokenized document. Creates the context on first use.

        Args:
            tokens: Token -> occurrence count.
            category: Class to attribute the document to.
            context: Context to learn in.

        Returns:
            The batch result.
        """
        if not await self.store.context_exists(context):
            await self.store.create_context(context)
        return await self._process(tokens, category, context, Action.LEARN)

    async def unlearn(
        self,
        tokens: dict[str, int],
        category: Category,
        context: str,
    ) -> LearnResult:
        """
        Remove a previously learned document.

        Raises:
            UnknownContextError: If the context doesn't exist.
        """
        if not await self.store.context_exists(context):
            raise UnknownContextError(f"Context '{context}' does not exist")
        return await self._process(tokens, category, context, Action.UNLEARN)

    async def _process(
        self,
        tokens: dict[str, int],
        category: Category,
        context: str,
        action: Action,
    ) -> LearnResult:
        result = LearnResult(action=action, category=category, context=context)
        existing = await self.store.get_token_counts(tokens, context)

        for token, count in tokens.items():
            record = existing.get(token)
            try:
                outcome = await self._apply(token, count, record, category, context, action)
            except StorageError as e:
                logger.warning(f"Failed to {action.value} token '{token}' in '{context}': {e}")
                result.tokens.append(TokenResult(token, TokenOutcome.FAILED, str(e)))
                continue
            result.tokens.append(TokenResult(token, outcome))

        try:
            aggregate = await self.store.get_aggregate(context)
            if aggregate is None:
                raise StorageError(f"Context '{context}' disappeared")
            await self.store.set_aggregate(context, _moved(aggregate, category, action))
        except StorageError as e:
            logger.error(f"Failed to update aggregate of '{context}': {e}")
            result.error = str(e)
            return result

        result.success = True
        logger.info(
            f"{action.value.capitalize()}ed {len(tokens)} tokens as {category.value} "
            f"in '{context}' ({len(result.failed)} failed)"
        )
        return result

    async def _apply(
        self,
        token: str,
        count: int,
        record: TokenRecord | None,
        category: Category,
        context: str,
        action: Action,
    ) -> TokenOutcome:
        """Apply one token update and report what happened."""
        delta = count if action is Action.LEARN else -count

        if record is None:
            if action is Action.UNLEARN:
                # Nothing to unlearn
                logger.debug(f"Skipping unknown token '{token}'")
                return TokenOutcome.SKIPPED
            record = TokenRecord(token)
            outcome = TokenOutcome.CREATED
        else:
            outcome = TokenOutcome.UPDATED

        if category.is_positive:
            record = TokenRecord(token, max(0, record.pos + delta), record.neg)
        else:
            record = TokenRecord(token, record.pos, max(0, record.neg + delta))

        if record.is_empty:
            await self.store.delete_token(token, context)
            return TokenOutcome.DELETED

        await self.store.set_token_counts(token, record.pos, record.neg, context)
        return outcome


def _moved(aggregate: ContextAggregate, category: Category, action: Action) -> ContextAggregate:
    """Return the aggregate after one document was (un)learned."""
    step = 1 if action is Action.LEARN else -1
    positive = aggregate.positive_count
    negative = aggregate.negative_count
    if category.is_positive:
        positive = max(0, positive + step)
    else:
        negative = max(0, negative + step)

    return ContextAggregate(
        positive_count=positive,
        negative_count=negative,
        documents_learned=aggregate.documents_learned + (action is Action.LEARN),
        documents_unlearned=aggregate.documents_unlearned + (action is Action.UNLEARN),
    )
