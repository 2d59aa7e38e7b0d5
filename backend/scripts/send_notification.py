#!/usr/bin/env python3
"""Create a notification and deliver it to students from the command line.

Run from backend:
  python scripts/send_notification.py --title "Mid-sem schedule" --message "Posted on the portal" --all
  python scripts/send_notification.py --title "Lab moved" --message "Room 204" --branch <id> --semester 5 --priority high
  python scripts/send_notification.py --title "Hi" --message "..." --user <uuid> --user <uuid>
"""
import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from campusbell.core.constants import NOTIFICATION_PRIORITIES, NOTIFICATION_TYPES
from campusbell.core.errors import InvalidNotificationError
from campusbell.db.session import SessionLocal
from campusbell.services.notification_admin import create_and_deliver_notification


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Create and deliver a notification.")
    p.add_argument("--title", required=True)
    p.add_argument("--message", required=True)
    p.add_argument("--type", default="custom", choices=NOTIFICATION_TYPES)
    p.add_argument("--priority", default="normal", choices=NOTIFICATION_PRIORITIES)
    p.add_argument("--all", action="store_true", help="Target all users (narrow with --branch/--semester/--year)")
    p.add_argument("--branch", action="append", default=None, help="Branch id (repeatable)")
    p.add_argument("--semester", action="append", type=int, default=None)
    p.add_argument("--year", action="append", type=int, default=None)
    p.add_argument("--user", action="append", default=None, help="Specific user id (repeatable)")
    p.add_argument("--expires-in-hours", type=float, default=None)
    p.add_argument("--draft", action="store_true", help="Deliver unpublished (hidden until published)")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    expires_at = None
    if args.expires_in_hours:
        expires_at = datetime.now(timezone.utc) + timedelta(hours=args.expires_in_hours)
    db = SessionLocal()
    try:
        result = create_and_deliver_notification(
            db,
            title=args.title,
            message=args.message,
            type=args.type,
            priority=args.priority,
            target_all_users=args.all,
            target_branches=args.branch,
            target_semesters=args.semester,
            target_years=args.year,
            target_specific_users=args.user,
            expires_at=expires_at,
            is_published=not args.draft,
        )
        print(f"Notification {result['id']} delivered to {result['send_count']} users.")
    except InvalidNotificationError as e:
        print(f"Invalid notification: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
