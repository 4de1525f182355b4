"""Tests for the learner (learn/unlearn mutations)."""

import pytest

from hawk_bayes.classifier import Learner
from hawk_bayes.core import (
    DEFAULT_CONTEXT,
    Action,
    Category,
    ContextAggregate,
    TokenOutcome,
    TokenRecord,
    UnknownContextError,
)
from hawk_bayes.storage import StorageError, TokenStore


class FlakyStore(TokenStore):
    """TokenStore that fails writes for selected tokens or the aggregate."""

    def __init__(self, db, broken_tokens=(), broken_aggregate=False):
        super().__init__(db)
        self.broken_tokens = set(broken_tokens)
        self.broken_aggregate = broken_aggregate

    async def set_token_counts(self, token, pos, neg, context):
        if token in self.broken_tokens:
            raise StorageError(f"disk full while writing {token}")
        await super().set_token_counts(token, pos, neg, context)

    async def set_aggregate(self, context, aggregate):
        if self.broken_aggregate:
            raise StorageError("disk full")
        await super().set_aggregate(context, aggregate)


@pytest.fixture
def learner(store):
    return Learner(store)


async def snapshot(store, context=DEFAULT_CONTEXT):
    records = [record async for record in store.iter_tokens(context)]
    return records, await store.get_aggregate(context)


class TestLearn:
    async def test_new_tokens_are_created(self, learner, store):
        result = await learner.learn({"cheap": 2, "pills": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT)

        assert result.success
        assert result.complete
        assert result.action is Action.LEARN
        assert result.count(TokenOutcome.CREATED) == 2
        assert await store.get_token("cheap", DEFAULT_CONTEXT) == TokenRecord("cheap", 0, 2)
        assert await store.get_token("pills", DEFAULT_CONTEXT) == TokenRecord("pills", 0, 1)

    async def test_existing_tokens_are_updated(self, learner, store):
        await learner.learn({"hello": 1}, Category.PROBABLE, DEFAULT_CONTEXT)
        result = await learner.learn({"hello": 3}, Category.IMPROBABLE, DEFAULT_CONTEXT)

        assert result.count(TokenOutcome.UPDATED) == 1
        assert await store.get_token("hello", DEFAULT_CONTEXT) == TokenRecord("hello", 1, 3)

    async def test_aggregate_moves_by_one_document(self, learner, store):
        await learner.learn({"hello": 5, "world": 2}, Category.PROBABLE, DEFAULT_CONTEXT)
        await learner.learn({"spam": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT)
        await learner.learn({"again": 1}, Category.PROBABLE, DEFAULT_CONTEXT)

        aggregate = await store.get_aggregate(DEFAULT_CONTEXT)
        assert aggregate == ContextAggregate(
            positive_count=2, negative_count=1, documents_learned=3, documents_unlearned=0
        )

    async def test_creates_missing_context(self, learner, store):
        result = await learner.learn({"hello": 1}, Category.PROBABLE, "work")

        assert result.success
        assert result.context == "work"
        assert await store.context_exists("work")
        assert (await store.get_aggregate("work")).positive_count == 1
        # Other contexts untouched
        assert (await store.get_aggregate(DEFAULT_CONTEXT)).total == 0

    async def test_result_is_truthy_on_success(self, learner):
        assert await learner.learn({"hello": 1}, Category.PROBABLE, DEFAULT_CONTEXT)


class TestUnlearn:
    async def test_unlearn_restores_state(self, learner, store):
        await learner.learn({"hello": 1, "world": 1}, Category.PROBABLE, DEFAULT_CONTEXT)
        before = await snapshot(store)

        await learner.learn({"world": 2, "cheap": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT)
        await learner.unlearn({"world": 2, "cheap": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT)

        records, aggregate = await snapshot(store)
        assert records == before[0]
        assert aggregate.positive_count == before[1].positive_count
        assert aggregate.negative_count == before[1].negative_count
        assert aggregate.documents_learned == 2
        assert aggregate.documents_unlearned == 1

    async def test_emptied_token_is_deleted(self, learner, store):
        await learner.learn({"hello": 2}, Category.PROBABLE, DEFAULT_CONTEXT)
        result = await learner.unlearn({"hello": 2}, Category.PROBABLE, DEFAULT_CONTEXT)

        assert result.count(TokenOutcome.DELETED) == 1
        assert await store.get_token("hello", DEFAULT_CONTEXT) is None

    async def test_unknown_token_is_skipped(self, learner, store):
        result = await learner.unlearn({"never": 1}, Category.PROBABLE, DEFAULT_CONTEXT)

        assert result.success
        assert result.count(TokenOutcome.SKIPPED) == 1
        assert await store.get_token("never", DEFAULT_CONTEXT) is None

    async def test_counts_never_go_negative(self, learner, store):
        await learner.learn({"hello": 1}, Category.PROBABLE, DEFAULT_CONTEXT)
        await learner.learn({"hello": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT)

        # Over-unlearn the probable side
        await learner.unlearn({"hello": 5}, Category.PROBABLE, DEFAULT_CONTEXT)
        await learner.unlearn({"hello": 5}, Category.PROBABLE, DEFAULT_CONTEXT)

        assert await store.get_token("hello", DEFAULT_CONTEXT) == TokenRecord("hello", 0, 1)
        aggregate = await store.get_aggregate(DEFAULT_CONTEXT)
        assert aggregate.positive_count == 0
        assert aggregate.negative_count == 1

    async def test_unlearn_in_missing_context(self, learner):
        with pytest.raises(UnknownContextError):
            await learner.unlearn({"hello": 1}, Category.PROBABLE, "nowhere")


class TestPartialFailure:
    async def test_failed_token_is_recorded_and_batch_continues(self, database):
        store = FlakyStore(database, broken_tokens={"pills"})
        learner = Learner(store)

        result = await learner.learn(
            {"cheap": 1, "pills": 1, "now": 1}, Category.IMPROBABLE, DEFAULT_CONTEXT
        )

        assert result.success
        assert not result.complete
        assert [t.token for t in result.failed] == ["pills"]
        assert "disk full" in result.failed[0].error
        assert await store.get_token("cheap", DEFAULT_CONTEXT) is not None
        assert await store.get_token("now", DEFAULT_CONTEXT) is not None
        assert await store.get_token("pills", DEFAULT_CONTEXT) is None
        assert (await store.get_aggregate(DEFAULT_CONTEXT)).negative_count == 1

    async def test_aggregate_failure_reports_error(self, database):
        store = FlakyStore(database, broken_aggregate=True)
        learner = Learner(store)

        result = await learner.learn({"hello": 1}, Category.PROBABLE, DEFAULT_CONTEXT)

        assert not result.success
        assert not result
        assert "disk full" in result.error
        # Token writes that already committed are kept
        assert await store.get_token("hello", DEFAULT_CONTEXT) == TokenRecord("hello", 1, 0)
        assert (await store.get_aggregate(DEFAULT_CONTEXT)).total == 0

    async def test_existing_counts_read_failure_propagates(self, learner, store, monkeypatch):
        async def fail(tokens, context):
            raise StorageError("database is locked")

        monkeypatch.setattr(store, "get_token_counts", fail)
        with pytest.raises(StorageError):
            await learner.learn({"hello": 1}, Category.PROBABLE, DEFAULT_CONTEXT)

        monkeypatch.undo()
        assert (await store.get_aggregate(DEFAULT_CONTEXT)).total == 0
