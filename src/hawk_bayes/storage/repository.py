# =============================================================================
# Token Store - Data Access Layer
# =============================================================================
# The storage adapter the classifier talks to.
#
# Every operation is scoped by a context name:
#   - Token counts:  get / set / delete (pos, neg) pairs per token
#   - Aggregates:    per-context positive/negative totals plus the
#                    learned/unlearned document counters
#   - Contexts:      existence check, creation, listing
#
# Each write is committed on its own, so a single token update is atomic
# but a batch of them is not. Any SQLite failure is re-raised as
# StorageError.
# =============================================================================

import logging
from collections.abc import AsyncIterator, Iterable
from typing import TYPE_CHECKING

import aiosqlite

from hawk_bayes.core import ContextAggregate, TokenRecord
from hawk_bayes.storage.database import StorageError

if TYPE_CHECKING:
    from hawk_bayes.storage.database import Database


logger = logging.getLogger(__name__)

# Stay well under SQLite's bound-parameter limit (999 on old builds)
MAX_QUERY_PARAMS = 500


class TokenStore:
    """
    Token count storage backed by SQLite.

    Usage:
        >>> store = TokenStore(database)
        >>> await store.set_token_counts("hello", 1, 0, "default")
        >>> await store.get_token_counts(["hello", "world"], "default")
        {'hello': TokenRecord(token='hello', pos=1, neg=0)}

    Attributes:
        db: Database instance for executing queries.
    """

    def __init__(self, db: "Database") -> None:
        """
        Initialize the store.

        Args:
            db: Connected Database instance.
        """
        self.db = db

    # =========================================================================
    # Token Operations
    # =========================================================================

    async def get_token_counts(
        self,
        tokens: Iterable[str],
        context: str,
    ) -> dict[str, TokenRecord]:
        """
        Get the records of several tokens.

        Args:
            tokens: Tokens to look up.
            context: Context to look in.

        Returns:
            Mapping of token -> record. Unknown tokens are absent.
        """
        wanted = list(dict.fromkeys(tokens))
        records: dict[str, TokenRecord] = {}

        for start in range(0, len(wanted), MAX_QUERY_PARAMS):
            chunk = wanted[start:start + MAX_QUERY_PARAMS]
            placeholders = ", ".join("?" for _ in chunk)
            query = (
                "SELECT token, pos, neg FROM tokens "
                f"WHERE context = ? AND token IN ({placeholders})"
            )
            try:
                async with self.db.conn.execute(query, (context, *chunk)) as cursor:
                    for row in await cursor.fetchall():
                        records[row[0]] = self._row_to_record(row)
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to read tokens in context '{context}': {e}") from e

        return records

    async def get_token(self, token: str, context: str) -> TokenRecord | None:
        """
        Get a single token record.

        Returns:
            The record if found, None otherwise.
        """
        records = await self.get_token_counts([token], context)
        return records.get(token)

    async def set_token_counts(self, token: str, pos: int, neg: int, context: str) -> None:
        """
        Insert or replace a token's counts.

        Args:
            token: Token to write.
            pos: Positive-class count.
            neg: Negative-class count.
            context: Context to write in.

        Raises:
            ValueError: If a count is negative.
            StorageError: If the write fails.
        """
        if pos < 0 or neg < 0:
            raise ValueError(f"Token counts must be non-negative, got ({pos}, {neg})")

        await self._write(
            "INSERT OR REPLACE INTO tokens (context, token, pos, neg) VALUES (?, ?, ?, ?)",
            (context, token, pos, neg),
            f"write token '{token}'",
        )

    async def delete_token(self, token: str, context: str) -> None:
        """
        Remove a token from a context. Deleting an absent token is a no-op.

        Raises:
            StorageError: If the delete fails.
        """
        await self._write(
            "DELETE FROM tokens WHERE context = ? AND token = ?",
            (context, token),
            f"delete token '{token}'",
        )

    async def count_tokens(self, context: str) -> int:
        """Number of distinct tokens stored in a context."""
        row = await self._fetchone(
            "SELECT COUNT(*) FROM tokens WHERE context = ?", (context,)
        )
        return row[0] if row else 0

    async def iter_tokens(self, context: str) -> AsyncIterator[TokenRecord]:
        """
        Iterate over every token record in a context, ordered by token.

        Yields:
            TokenRecord objects.
        """
        try:
            async with self.db.conn.execute(
                "SELECT token, pos, neg FROM tokens WHERE context = ? ORDER BY token",
                (context,)
            ) as cursor:
                async for row in cursor:
                    yield self._row_to_record(row)
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to list tokens in context '{context}': {e}") from e

    def _row_to_record(self, row) -> TokenRecord:
        """Convert a database row to a TokenRecord."""
        return TokenRecord(token=row[0], pos=row[1], neg=row[2])

    # =========================================================================
    # Context Operations
    # =========================================================================

    async def context_exists(self, context: str) -> bool:
        """Returns True if the context has been created."""
        row = await self._fetchone(
            "SELECT 1 FROM contexts WHERE name = ?", (context,)
        )
        return row is not None

    async def create_context(self, context: str) -> None:
        """
        Create a context with zeroed aggregates. Existing contexts are kept.

        Raises:
            StorageError: If the write fails.
        """
        await self._write(
            "INSERT OR IGNORE INTO contexts (name) VALUES (?)",
            (context,),
            f"create context '{context}'",
        )
        logger.info(f"Created context '{context}'")

    async def list_contexts(self) -> dict[str, ContextAggregate]:
        """
        Get all contexts with their aggregates.

        Returns:
            Mapping of context name -> aggregate, ordered by name.
        """
        try:
            async with self.db.conn.execute(
                "SELECT name, positive_count, negative_count, documents_learned, "
                "documents_unlearned FROM contexts ORDER BY name"
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to list contexts: {e}") from e

        return {row[0]: self._row_to_aggregate(row[1:]) for row in rows}

    async def get_aggregate(self, context: str) -> ContextAggregate | None:
        """
        Get a context's aggregate counters.

        Returns:
            The aggregate, or None if the context doesn't exist.
        """
        row = await self._fetchone(
            "SELECT positive_count, negative_count, documents_learned, "
            "documents_unlearned FROM contexts WHERE name = ?",
            (context,)
        )
        return self._row_to_aggregate(row) if row else None

    async def set_aggregate(self, context: str, aggregate: ContextAggregate) -> None:
        """
        Write a context's aggregate counters.

        Raises:
            ValueError: If a class count is negative.
            StorageError: If the write fails or the context doesn't exist.
        """
        if aggregate.positive_count < 0 or aggregate.negative_count < 0:
            raise ValueError(
                f"Aggregate counts must be non-negative, got "
                f"({aggregate.positive_count}, {aggregate.negative_count})"
            )

        changed = await self._write(
            """UPDATE contexts SET
               positive_count=?, negative_count=?,
               documents_learned=?, documents_unlearned=?
               WHERE name=?""",
            (aggregate.positive_count, aggregate.negative_count,
             aggregate.documents_learned, aggregate.documents_unlearned,
             context),
            f"update aggregate of context '{context}'",
        )
        if changed == 0:
            raise StorageError(f"Context '{context}' does not exist")

    def _row_to_aggregate(self, row) -> ContextAggregate:
        """Convert a database row to a ContextAggregate."""
        return ContextAggregate(
            positive_count=row[0],
            negative_count=row[1],
            documents_learned=row[2],
            documents_unlearned=row[3],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _fetchone(self, query: str, params: tuple):
        try:
            async with self.db.conn.execute(query, params) as cursor:
                return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Query failed: {e}") from e

    async def _write(self, query: str, params: tuple, what: str) -> int:
        """Execute and commit one write. Returns the number of changed rows."""
        try:
            cursor = await self.db.conn.execute(query, params)
            await self.db.conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to {what}: {e}") from e
        return cursor.rowcount
