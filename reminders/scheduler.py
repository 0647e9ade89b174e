"""
Alarm scheduler
Computes fire instants and registers exact wakes with the host
"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from os_interfaces.base import ClockBase, WakeScheduler
from reminders.clock import Clock
from reminders.config import ReminderSettings
from reminders.models import ONE_SHOT_SLOT, AlarmSpec

logger = logging.getLogger(__name__)


def _millis(dt: datetime) -> int:
  return int(dt.timestamp() * 1000)


def next_fire_time(hour: int, minute: int, now: datetime) -> datetime:
  """Next `hour:minute:00.000` strictly after `now`, in `now`'s zone.

  The day is advanced on the calendar, not by 24h, so the wall-clock time is
  kept across DST transitions.
  """
  target = datetime.combine(now.date(), time(hour, minute), tzinfo=now.tzinfo)
  if _millis(target) <= _millis(now):
    target = datetime.combine(
      now.date() + timedelta(days=1), time(hour, minute), tzinfo=now.tzinfo
    )
  return target


class AlarmScheduler:
  """Registers one-shot and daily reminder wakes with the host."""

  def __init__(
    self,
    wakes: WakeScheduler,
    settings: Optional[ReminderSettings] = None,
    clock: Optional[Clock] = None,
  ):
    self.wakes = wakes
    self.settings = settings or ReminderSettings()
    self.clock = clock or Clock(self.settings.timezone)

  def next_fire_time(self, hour: int, minute: int) -> datetime:
    return next_fire_time(hour, minute, self.clock.now())

  def schedule_one_shot(self, delay_seconds: int) -> bool:
    """Fire once after `delay_seconds` on the boot-uptime clock.

    Uses the shared one-shot slot, so a pending one-shot alarm is replaced.
    """
    try:
      fire_at = self.wakes.uptime_millis() + delay_seconds * 1000
      self.wakes.register_exact_wake(
        ONE_SHOT_SLOT, fire_at, ClockBase.BOOT_UPTIME, {}
      )
    except Exception:
      logger.exception("Failed to schedule one-shot alarm")
      return False

    logger.info(f"Scheduled one-shot alarm in {delay_seconds}s (uptime {fire_at}ms)")
    return True

  def schedule_daily(self, spec: AlarmSpec) -> bool:
    """Arm the next occurrence of a daily reminder.

    Returns False without registering when exact alarms aren't permitted.
    """
    try:
      if not self.wakes.can_schedule_exact():
        logger.warning(
          f"Exact alarms not permitted, alarm {spec.alarm_id} not scheduled"
        )
        return False

      fire_at = self.next_fire_time(spec.hour, spec.minute)
      self.wakes.register_exact_wake(
        spec.alarm_id, _millis(fire_at), ClockBase.WALL_CLOCK, spec.to_extras()
      )
    except Exception:
      logger.exception(f"Failed to schedule daily alarm {spec.alarm_id}")
      return False

    logger.info(f"Scheduled daily alarm {spec.alarm_id} at {fire_at.isoformat()}")
    return True

  def cancel(self, alarm_id: int) -> bool:
    """Cancel a reminder; cancelling one that isn't registered succeeds."""
    try:
      pending = self.wakes.lookup_pending(alarm_id)
      if pending is None:
        logger.info(f"No pending alarm {alarm_id} to cancel")
        return True
      self.wakes.cancel(alarm_id)
      pending.cancel()
    except Exception:
      logger.exception(f"Failed to cancel alarm {alarm_id}")
      return False

    logger.info(f"Cancelled alarm {alarm_id}")
    return True
