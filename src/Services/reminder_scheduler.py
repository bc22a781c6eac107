# src/Services/reminder_scheduler.py

"""
Daily Journey Reminder

Every day at NOTIFY_HOUR:NOTIFY_MINUTE (07:00 America/Bogota by default)
field workers (ingenieros and inspectors) receive a push notification
asking whether they want to start their journey.

Key features:
- Runs in a daemon thread that sleeps until the next local run time.
- Opens its own database session per run; never takes a journey lock.
- Workers without a valid Expo token are logged and skipped.
- A failed delivery is logged and the loop continues with the next worker.
"""

import time
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from src.Core import log_ws
from src.Core.clock import Clock, as_utc, clock as default_clock
from src.Core.config import settings
from src.DB.session import SessionLocal
from src.Repositories.worker import get_notifiable_workers
from src.Services.push_notifier import ExpoPushNotifier, is_expo_token, push_notifier

# --------------------------
# Notification content
# --------------------------
REMINDER_TITLE = "Inicio de jornada"
REMINDER_BODY = "¿Deseas comenzar tu jornada laboral?"
REMINDER_DATA = {"tipo": "inicio_jornada"}


def next_run_after(
    now: datetime,
    clock: Clock = default_clock,
    hour: Optional[int] = None,
    minute: Optional[int] = None
) -> datetime:
    """
    Next local HH:MM strictly after ``now``, returned as aware UTC.

    Example:
        >>> # 06:59 Bogota -> 07:00 the same day
        >>> next_run_after(datetime(2025, 3, 10, 11, 59, tzinfo=timezone.utc))
        datetime.datetime(2025, 3, 10, 12, 0, tzinfo=datetime.timezone.utc)
    """
    hour = settings.NOTIFY_HOUR if hour is None else hour
    minute = settings.NOTIFY_MINUTE if minute is None else minute

    local_now = clock.to_local(now)
    candidate = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= local_now:
        candidate = candidate + timedelta(days=1)
    return as_utc(candidate)


def send_daily_reminders(
    db: Session,
    notifier: ExpoPushNotifier = push_notifier
) -> Dict[str, int]:
    """
    Send the start-of-journey reminder to every field worker.

    Returns:
        dict with counts: sent, skipped (no valid token), failed
    """
    counts = {"sent": 0, "skipped": 0, "failed": 0}

    for worker in get_notifiable_workers(db):
        if not is_expo_token(worker.push_token):
            print(f"[NOTIFY] Worker {worker.email} has no valid push token")
            counts["skipped"] += 1
            continue

        try:
            notifier.send(
                to=worker.push_token,
                title=REMINDER_TITLE,
                body=REMINDER_BODY,
                data=dict(REMINDER_DATA),
            )
            counts["sent"] += 1
        except Exception as e:
            counts["failed"] += 1
            log_ws.log_from_thread(
                f"[NOTIFY] Error sending reminder to {worker.email}: {e}", msg_type="error"
            )

    log_ws.log_from_thread(
        f"[NOTIFY] Daily reminders: {counts['sent']} sent, "
        f"{counts['skipped']} skipped, {counts['failed']} failed",
        msg_type="log"
    )
    return counts


# --------------------------
# Scheduler loop
# --------------------------
def run_reminder_loop(clock: Clock = default_clock):
    """
    Infinite loop: sleep until the next run time, then send the reminders.

    A failing run is logged; the loop always schedules the next one.
    """
    while True:
        now = clock.now()
        run_at = next_run_after(now, clock)
        wait_s = (run_at - now).total_seconds()
        print(f"[NOTIFY] Next daily reminder at {run_at.isoformat()} (in {wait_s:.0f} s)")
        time.sleep(max(wait_s, 0))

        db = SessionLocal()
        try:
            send_daily_reminders(db)
        except Exception as e:
            log_ws.log_from_thread(f"[NOTIFY] Error running daily reminders: {e}", msg_type="error")
        finally:
            db.close()


def start_reminder_scheduler() -> threading.Thread:
    """
    Launches the reminder loop in a daemon thread.

    Returns:
        threading.Thread: The background scheduler thread.
    """
    thread = threading.Thread(target=run_reminder_loop, daemon=True, name="Reminder-Scheduler")
    thread.start()

    print("[NOTIFY] Background reminder thread started")

    return thread
