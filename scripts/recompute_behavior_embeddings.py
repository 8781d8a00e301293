"""
Recompute behavior embeddings for all ACTIVE songs.

Runs once by default. With --schedule, blocks and runs daily at the time set
in the scheduler section of the config (only when scheduler.enabled is true).
"""

import argparse
import logging
import sys
from dataclasses import replace

from behavior_engine import (
    BehaviorEmbeddingRecomputer,
    BehaviorEmbeddingScheduler,
    BehaviorEngineError,
    RecomputeConfig,
    SchedulerConfig,
    SQLiteStore,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Run the recompute job from the command line."""
    parser = argparse.ArgumentParser(description="Recompute behavior embeddings")
    parser.add_argument(
        "--db", type=str, default="data/behavior_engine.db", help="SQLite database file"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config with recompute and scheduler sections (defaults if omitted)",
    )
    parser.add_argument(
        "--schedule", action="store_true", help="Run daily instead of once (needs scheduler.enabled)"
    )
    parser.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Skip songs with unparseable content vectors instead of aborting",
    )

    args = parser.parse_args()

    try:
        if args.config:
            recompute_config = RecomputeConfig.from_yaml(args.config)
            scheduler_config = SchedulerConfig.from_yaml(args.config)
        else:
            recompute_config = RecomputeConfig()
            scheduler_config = SchedulerConfig()
        if args.skip_malformed:
            recompute_config = replace(recompute_config, skip_malformed_vectors=True)

        store = SQLiteStore(args.db)
    except BehaviorEngineError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        recomputer = BehaviorEmbeddingRecomputer(store, recompute_config)
        scheduler = BehaviorEmbeddingScheduler(recomputer, scheduler_config)

        if args.schedule:
            scheduler.run_forever()
            return

        report = scheduler.trigger_once()
    except BehaviorEngineError as e:
        logger.error("Recompute failed, no songs were updated: %s", e)
        sys.exit(1)
    finally:
        store.close()

    print("\nRecompute Summary:")
    print(f"- Songs scanned: {report.total_songs_scanned:,}")
    print(f"- Songs updated: {report.songs_updated:,}")
    print(f"- History cutoff: {report.cutoff.isoformat()}")


if __name__ == "__main__":
    main()
