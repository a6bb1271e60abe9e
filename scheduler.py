"""
Nexo Greencycle Background Scheduler

Runs periodic tasks:
- Send day-before pickup reminders (hourly)

Only starts when ENABLE_SCHEDULER=true to prevent running on multiple instances.
"""

import logging
from datetime import date, timedelta

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

REMINDABLE_STATUSES = ("pending", "accepted", "in_progress")


def _send_pickup_reminders(app, today=None):
    """Remind requesters whose pickup is scheduled for tomorrow.

    Each pickup is reminded once; ``reminder_sent_at`` marks it done.
    Returns the number of pickups reminded.
    """
    with app.app_context():
        from models import db, PickupRequest, User, utcnow
        from notifications import send_pickup_reminder_email, send_pickup_reminder_sms

        tomorrow = (today or date.today()) + timedelta(days=1)

        pickups = PickupRequest.query.filter(
            PickupRequest.status.in_(REMINDABLE_STATUSES),
            PickupRequest.preferred_date == tomorrow,
            PickupRequest.reminder_sent_at.is_(None),
        ).all()

        count = 0
        for pickup in pickups:
            try:
                user = db.session.get(User, pickup.user_id)
                if not user:
                    continue

                date_str = pickup.preferred_date.isoformat()
                send_pickup_reminder_email(
                    user.email, user.display_name, pickup.id, pickup.company_name,
                    pickup.location, date_str, pickup.preferred_time,
                )
                if user.phone:
                    send_pickup_reminder_sms(user.phone, pickup.company_name, date_str, pickup.preferred_time)

                pickup.reminder_sent_at = utcnow()
                count += 1
            except Exception:
                logger.exception("Failed to send reminder for pickup %s", pickup.id)

        if count:
            db.session.commit()
            logger.info("Scheduler: sent reminders for %d upcoming pickups", count)
        return count


def init_scheduler(app):
    """Initialize and start the background scheduler.

    Only runs if the ENABLE_SCHEDULER setting is true.
    """
    if not app.config.get("ENABLE_SCHEDULER"):
        logger.info("Scheduler disabled (set ENABLE_SCHEDULER=true to enable)")
        return None

    try:
        scheduler = BackgroundScheduler(daemon=True)

        scheduler.add_job(
            _send_pickup_reminders,
            "interval",
            hours=1,
            args=[app],
            id="send_pickup_reminders",
            name="Send day-before pickup reminders",
        )

        scheduler.start()
        logger.info("Background scheduler started")
        return scheduler
    except Exception:
        logger.exception("Failed to start scheduler")
        return None
