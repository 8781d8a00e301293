"""Print a summary of songs and recent listening history in the store."""

import argparse
from datetime import datetime, timedelta, timezone

from behavior_engine import SQLiteStore
from behavior_engine.frames import events_to_frame, songs_to_frame


def main():
    """Summarize the store contents."""
    parser = argparse.ArgumentParser(description="Inspect the behavior engine store")
    parser.add_argument(
        "--db", type=str, default="data/behavior_engine.db", help="SQLite database file"
    )
    parser.add_argument("--days", type=int, default=30, help="History window to summarize")

    args = parser.parse_args()

    store = SQLiteStore(args.db)
    try:
        songs_df = songs_to_frame(store.find_all_songs())
        cutoff = datetime.now(timezone.utc) - timedelta(days=args.days)
        history_df = events_to_frame(store.find_listening_history_since(cutoff))
    finally:
        store.close()

    print("Songs:")
    print(f"- Total: {len(songs_df):,}")
    if not songs_df.empty:
        for status, count in songs_df["status"].value_counts().items():
            print(f"- {status}: {count:,}")
        print(f"- With behavior vector: {int(songs_df['has_behavior'].sum()):,}")
        dims = songs_df.loc[songs_df["content_dim"] > 0, "content_dim"].unique()
        print(f"- Content vector dimensions: {sorted(int(d) for d in dims)}")

    print(f"\nListening history (last {args.days} days):")
    print(f"- Events: {len(history_df):,}")
    if not history_df.empty:
        print(f"- Users: {history_df['user_id'].nunique():,}")
        print(f"- Songs: {history_df['song_id'].nunique():,}")
        per_user = history_df.groupby("user_id").size()
        print(f"- Avg events per user: {per_user.mean():.1f}")
        print("\nMost played songs:")
        print(history_df["song_id"].value_counts().head(10).to_string())


if __name__ == "__main__":
    main()
