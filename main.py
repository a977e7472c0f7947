import argparse
from datetime import datetime, timezone
from pathlib import Path

from vocab_scheduler import word_store
from vocab_scheduler.intervals import load_interval_table
from vocab_scheduler.logging_config import configure_logging
from vocab_scheduler.review_service import build_session_queue, progress_snapshot
from vocab_scheduler.scheduler import Scheduler
from vocab_scheduler.settings import SETTINGS_FILE, load_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Show study progress and the next review session."
    )
    parser.add_argument("--words", type=Path, default=word_store.WORDS_FILE)
    parser.add_argument("--settings", type=Path, default=SETTINGS_FILE)
    parser.add_argument(
        "--session-size",
        type=int,
        default=None,
        help="Override the session size from the settings file.",
    )
    parser.add_argument(
        "--hard",
        action="store_true",
        help="Offer difficult words when nothing is due.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(json=False)
    settings = load_settings(args.settings)
    scheduler = Scheduler(load_interval_table(settings.interval_version))
    items = word_store.load_items(args.words)
    now = datetime.now(tz=timezone.utc)

    snapshot = progress_snapshot(items, now, scheduler=scheduler)
    print(
        f"Total: {snapshot.total}  Due: {snapshot.due}  "
        f"Difficult: {snapshot.hard}  Mastered: {snapshot.mastered}"
    )

    session_size = args.session_size if args.session_size is not None else settings.session_size
    queue = build_session_queue(
        items,
        now,
        session_size=session_size,
        scheduler=scheduler,
        fallback_to_hard=args.hard,
    )
    if not queue:
        print("Nothing to review right now.")
        return
    for position, item in enumerate(queue, start=1):
        print(f"{position:>2}. {item.term} [{item.difficulty.value}] {item.translation}")


if __name__ == "__main__":
    main()
