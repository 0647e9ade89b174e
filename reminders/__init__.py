"""Daily hydration reminders: scheduling, notification dispatch, action routing"""

from .bridge import ActionBridge
from .config import ReminderSettings, load_settings
from .dispatcher import NotificationDispatcher
from .models import (
  ACTION_DRINK,
  ACTION_SKIP,
  ONE_SHOT_SLOT,
  AlarmSpec,
  NotificationAction,
)
from .runtime import ReminderRuntime, build_runtime
from .scheduler import AlarmScheduler, next_fire_time

__all__ = [
  "ACTION_DRINK",
  "ACTION_SKIP",
  "ONE_SHOT_SLOT",
  "ActionBridge",
  "AlarmScheduler",
  "AlarmSpec",
  "NotificationAction",
  "NotificationDispatcher",
  "ReminderRuntime",
  "ReminderSettings",
  "build_runtime",
  "load_settings",
  "next_fire_time",
]
