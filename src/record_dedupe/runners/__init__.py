from record_dedupe.runners.local import LocalDedupeRunner
from record_dedupe.runners.sharded import ShardedDedupeRunner, ShardStrategy, merge_partials

__all__ = ["LocalDedupeRunner", "ShardedDedupeRunner", "ShardStrategy", "merge_partials"]
