"""Wires the reminder components onto a set of host services"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from os_interfaces.base import OSImplementations
from reminders.bridge import ActionBridge, PendingActionFile
from reminders.clock import Clock
from reminders.config import ReminderSettings
from reminders.dispatcher import NotificationDispatcher
from reminders.models import NotificationAction
from reminders.scheduler import AlarmScheduler


@dataclass
class ReminderRuntime:
  settings: ReminderSettings
  os_impl: OSImplementations
  scheduler: AlarmScheduler
  dispatcher: NotificationDispatcher
  bridge: ActionBridge
  action_store: Optional[PendingActionFile] = None

  def restore_stored_action(self) -> None:
    """Move an action stored by a fire worker into the bridge's pending slot"""
    if self.action_store is None:
      return
    action = self.action_store.take()
    if action is not None:
      self.bridge.deliver(action)


def build_runtime(
  os_impl: OSImplementations,
  settings: Optional[ReminderSettings] = None,
  clock: Optional[Clock] = None,
  on_action: Optional[Callable[[NotificationAction], Any]] = None,
  action_store: Optional[PendingActionFile] = None,
) -> ReminderRuntime:
  """Build scheduler, dispatcher and bridge.

  Action taps go to `on_action` when given (e.g. a worker forwarding them to
  another process), otherwise into the runtime's bridge. `action_store` holds
  an action tapped while no backend was running.
  """
  settings = settings or ReminderSettings()
  bridge = ActionBridge()
  scheduler = AlarmScheduler(os_impl.wake_scheduler, settings, clock)
  dispatcher = NotificationDispatcher(
    scheduler,
    os_impl.notifier,
    on_action=on_action or bridge.deliver,
    on_open=os_impl.open_app,
    settings=settings,
  )
  return ReminderRuntime(
    settings=settings,
    os_impl=os_impl,
    scheduler=scheduler,
    dispatcher=dispatcher,
    bridge=bridge,
    action_store=action_store,
  )
