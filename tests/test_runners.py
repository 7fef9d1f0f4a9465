import pytest

from record_dedupe import ConfigurationError, Deduplicator, KeySpec, MalformedRecordError
from record_dedupe.datasets import ACTIVE_STATUS_RULE
from record_dedupe.runners import LocalDedupeRunner, ShardedDedupeRunner, ShardStrategy, merge_partials
from record_dedupe.runners.sharded import Shard, reduce_shard
from record_dedupe.steps import FunctionalCleaner, casefold_text, strip_text


def test_local_runner_applies_cleaner_before_matching() -> None:
    records = [
        {"email": "Jane@Example.com ", "status": "pending"},
        {"email": "jane@example.com", "status": "active"},
        {"email": "alex@example.com", "status": "pending"},
    ]
    runner = LocalDedupeRunner(
        key_fn=KeySpec.from_fields("email"),
        priority_fn=ACTIVE_STATUS_RULE,
        cleaner=FunctionalCleaner(transforms={"email": casefold_text}),
    )

    result = runner.run(records)

    assert result.winner_positions == [1, 2]
    assert records[0]["email"] == "Jane@Example.com "


def test_cleaner_default_transform_skips_fields_with_explicit_transform() -> None:
    cleaner = FunctionalCleaner(transforms={"code": str.upper}, default_transform=strip_text)

    cleaned = cleaner.clean([{"code": " ab ", "name": "  Ann   Lee ", "n": 3}])

    assert cleaned == [{"code": " AB ", "name": "Ann Lee", "n": 3}]


def test_sharded_runner_orders_keys_by_original_index() -> None:
    records = [
        {"id": "b", "status": "pending"},
        {"id": "a", "status": "pending"},
        {"id": "b", "status": "active"},
        {"id": "a", "status": "active"},
        {"id": "c", "status": "pending"},
    ]
    runner = ShardedDedupeRunner(
        KeySpec.from_fields("id"),
        ACTIVE_STATUS_RULE,
        shard_size=2,
        strategy=ShardStrategy.ROUND_ROBIN,
    )

    result = runner.run(records)

    assert [record["id"] for record in result.records] == ["b", "a", "c"]
    assert result.winner_positions == [2, 3, 4]
    assert [group.positions for group in result.groups] == [[0, 2], [1, 3], [4]]


def test_merge_resolves_ties_to_lowest_original_index() -> None:
    key_fn = KeySpec.from_fields("id")
    later = reduce_shard(Shard(positions=[5], records=[{"id": 1, "status": "active"}]), key_fn, ACTIVE_STATUS_RULE)
    earlier = reduce_shard(Shard(positions=[2], records=[{"id": 1, "status": "active"}]), key_fn, ACTIVE_STATUS_RULE)

    merged = merge_partials([later, earlier], ACTIVE_STATUS_RULE)

    assert len(merged) == 1
    assert merged[0].best_index == 2
    assert merged[0].first_index == 2
    assert merged[0].positions == [2, 5]


def test_split_contiguous_and_round_robin() -> None:
    records = [{"id": i} for i in range(5)]
    key_fn = KeySpec.from_fields("id")

    contiguous = ShardedDedupeRunner(key_fn, shard_size=2).split(records)
    round_robin = ShardedDedupeRunner(key_fn, shard_size=2, strategy="round_robin").split(records)

    assert [shard.positions for shard in contiguous] == [[0, 1], [2, 3], [4]]
    assert [shard.positions for shard in round_robin] == [[0, 3], [1, 4], [2]]


def test_sharded_runner_propagates_malformed_records() -> None:
    runner = ShardedDedupeRunner(KeySpec.from_fields("id"), shard_size=2)

    with pytest.raises(MalformedRecordError) as excinfo:
        runner.run([{"id": 1}, {"id": 2}, {"name": "x"}])

    assert excinfo.value.position == 2


def test_sharded_runner_reports_the_same_malformed_record_as_single_pass() -> None:
    records = [{"id": 1}, {"id": 1, "status": "active"}, {"id": 2, "status": "pending"}, {"status": "active"}]
    key_fn = KeySpec.from_fields("id")

    with pytest.raises(MalformedRecordError) as single:
        Deduplicator(key_fn, ACTIVE_STATUS_RULE).run(records)
    for strategy in ShardStrategy:
        with pytest.raises(MalformedRecordError) as sharded:
            ShardedDedupeRunner(key_fn, ACTIVE_STATUS_RULE, shard_size=2, strategy=strategy).run(records)

        assert (sharded.value.position, sharded.value.field) == (single.value.position, single.value.field)
    assert (single.value.position, single.value.field) == (3, "id")


def test_sharded_runner_rejects_non_positive_shard_size() -> None:
    with pytest.raises(ConfigurationError):
        ShardedDedupeRunner(KeySpec.from_fields("id"), shard_size=0)


def test_sharded_runner_handles_empty_input() -> None:
    result = ShardedDedupeRunner(KeySpec.from_fields("id"), shard_size=3).run([])

    assert result.records == []
    assert result.groups == []
