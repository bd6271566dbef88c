"""
Check rating prompts - list the contacts a subject would be asked to rate.

Useful for verifying the 24-48 hour prompt window against real data.
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.contact import ContactInteraction
from services.engine import build_engine


def _parse_now(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def print_candidates(subject_id: str, now: datetime, candidates: List[ContactInteraction]) -> None:
    print("=" * 60)
    print(f"RATING PROMPT CANDIDATES for {subject_id}")
    print(f"As of: {now.isoformat()}")
    print("=" * 60)

    if not candidates:
        print("No contacts need a rating prompt.")
        return

    for contact in candidates:
        hours_ago = (now - contact.contacted_at).total_seconds() / 3600
        print(
            f"{contact.id}  seller={contact.seller_id}  "
            f"request={contact.request_id or '-'}  contacted {hours_ago:.1f}h ago"
        )
    print("-" * 60)
    print(f"Total: {len(candidates)} (the first one is shown to the user)")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="List contacts eligible for a rating prompt",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Candidates for a subject right now
  python check_rating_prompts.py --subject user_1717000000000_abc123xyz

  # Candidates as of a specific time
  python check_rating_prompts.py --subject u1 --now 2025-01-02T06:00:00Z

  # Mark all candidates as prompted
  python check_rating_prompts.py --subject u1 --mark-prompted
        """
    )
    parser.add_argument("--subject", "-s", required=True, help="Subject (user) id")
    parser.add_argument("--now", help="ISO-8601 timestamp to evaluate the window at (default: now)")
    parser.add_argument(
        "--mark-prompted",
        action="store_true",
        help="Mark every listed candidate as prompted"
    )
    args = parser.parse_args(argv)

    now = _parse_now(args.now)
    scheduler = build_engine().prompt_scheduler()
    candidates = scheduler.find_prompt_candidates(args.subject, now)
    print_candidates(args.subject, now, candidates)

    if args.mark_prompted:
        for contact in candidates:
            scheduler.mark_prompted(contact.id, args.subject)
        print(f"Marked {len(candidates)} contact(s) as prompted.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
