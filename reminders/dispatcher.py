"""
Notification dispatcher
Runs when a reminder wake fires: shows the notification, then re-arms the alarm
"""

import logging
from typing import Any, Callable, Optional

from os_interfaces.base import NotificationButton, Notifier
from reminders.config import ReminderSettings
from reminders.models import ACTION_DRINK, ACTION_SKIP, AlarmSpec, NotificationAction
from reminders.scheduler import AlarmScheduler

logger = logging.getLogger(__name__)


class NotificationDispatcher:
  """Fire handler for reminder wakes"""

  def __init__(
    self,
    scheduler: AlarmScheduler,
    notifier: Notifier,
    on_action: Callable[[NotificationAction], Any],
    on_open: Optional[Callable[[], None]] = None,
    settings: Optional[ReminderSettings] = None,
  ):
    self.scheduler = scheduler
    self.notifier = notifier
    self.on_action = on_action
    self.on_open = on_open
    self.settings = settings or scheduler.settings

  def _action_callback(self, action_id: str, payload: str) -> Callable[[], None]:
    def callback() -> None:
      logger.info(f"Notification action {action_id} tapped")
      self.on_action(NotificationAction(action_id=action_id, payload=payload))

    return callback

  def _open_callback(self) -> Callable[[], None]:
    def callback() -> None:
      logger.info("Notification tapped, opening app")
      if self.on_open:
        self.on_open()

    return callback

  async def handle_wake(self, extras: dict[str, Any]) -> None:
    """Entry point for the host's fire delivery."""
    await self.on_fire(AlarmSpec.from_extras(extras, self.settings))

  async def on_fire(self, spec: AlarmSpec) -> None:
    """Show the reminder notification and arm the next day's occurrence.

    Re-arming runs even when rendering fails.
    """
    s = self.settings
    try:
      self.notifier.ensure_channel(
        s.channel_id, s.channel_importance, s.channel_name, s.channel_description
      )
      actions = [
        NotificationButton(s.drink_label, self._action_callback(ACTION_DRINK, spec.payload)),
        NotificationButton(s.skip_label, self._action_callback(ACTION_SKIP, spec.payload)),
      ]
      await self.notifier.post(
        spec.alarm_id,
        spec.title,
        spec.body,
        actions,
        self._open_callback(),
        channel_id=s.channel_id,
      )
      logger.info(f"Reminder notification {spec.alarm_id} shown")
    except Exception:
      logger.exception(f"Failed to show reminder notification {spec.alarm_id}")
    finally:
      if not self.scheduler.schedule_daily(spec):
        logger.error(f"Failed to re-arm daily alarm {spec.alarm_id}")
