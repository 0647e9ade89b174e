"""In-memory host services shared by the reminder tests"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import pytest

from os_interfaces.base import (
  ClockBase,
  Importance,
  NotificationButton,
  Notifier,
  OSImplementations,
  PendingWake,
  WakeScheduler,
)
from reminders.config import ReminderSettings
from reminders.runtime import build_runtime


class FakeClock:
  def __init__(self, now: datetime):
    self.current = now

  def now(self) -> datetime:
    return self.current


class FakePendingWake(PendingWake):
  def __init__(self, key: int, host: "FakeWakeScheduler"):
    super().__init__(key)
    self.host = host

  def cancel(self) -> None:
    self.host.released.append(self.key)


class FakeWakeScheduler(WakeScheduler):
  """Alarm registry keyed like the host's: one registration per key"""

  def __init__(self):
    self.registered: dict[int, tuple[int, ClockBase, dict]] = {}
    self.history: list[tuple[int, int, ClockBase, dict]] = []
    self.cancelled: list[int] = []
    self.released: list[int] = []
    self.exact_allowed = True
    self.uptime = 5_000_000
    self.fail_with: Optional[Exception] = None

  def can_schedule_exact(self) -> bool:
    return self.exact_allowed

  def uptime_millis(self) -> int:
    return self.uptime

  def register_exact_wake(self, key, when_millis, clock_base, extras) -> None:
    if self.fail_with:
      raise self.fail_with
    self.registered[key] = (when_millis, clock_base, dict(extras))
    self.history.append((key, when_millis, clock_base, dict(extras)))

  def cancel(self, key: int) -> None:
    self.cancelled.append(key)
    self.registered.pop(key, None)

  def lookup_pending(self, key: int) -> Optional[PendingWake]:
    if key not in self.registered:
      return None
    return FakePendingWake(key, self)

  def take(self, key: int) -> dict:
    """Remove a registration as the host does when it fires; return its extras"""
    _, _, extras = self.registered.pop(key)
    return extras

  def fire(self, key: int):
    return self._deliver_fire(self.take(key))


@dataclass
class PostedNotification:
  notification_id: int
  title: str
  body: str
  actions: list[NotificationButton]
  tap_callback: Optional[Callable[[], None]]
  channel_id: Optional[str]


class FakeNotifier(Notifier):
  def __init__(self):
    self.channels: dict[str, tuple[Importance, str, str]] = {}
    self.shown: dict[int, PostedNotification] = {}
    self.posts: list[PostedNotification] = []
    self.cleared: list[int] = []
    self.fail_with: Optional[Exception] = None

  def ensure_channel(self, channel_id, importance, name, description) -> None:
    self.channels.setdefault(channel_id, (importance, name, description))

  async def post(
    self,
    notification_id,
    title,
    body,
    actions,
    tap_callback=None,
    channel_id=None,
  ) -> None:
    if self.fail_with:
      raise self.fail_with
    posted = PostedNotification(
      notification_id, title, body, list(actions), tap_callback, channel_id
    )
    self.shown[notification_id] = posted
    self.posts.append(posted)

  async def clear(self, notification_id) -> None:
    if self.shown.pop(notification_id, None) is not None:
      self.cleared.append(notification_id)


def local_datetime(millis: int) -> datetime:
  return datetime.fromtimestamp(millis / 1000)


@pytest.fixture
def settings():
  return ReminderSettings()


@pytest.fixture
def clock():
  return FakeClock(datetime(2025, 6, 10, 9, 5))


@pytest.fixture
def wakes():
  return FakeWakeScheduler()


@pytest.fixture
def notifier():
  return FakeNotifier()


@pytest.fixture
def runtime(wakes, notifier, settings, clock):
  os_impl = OSImplementations(notifier=notifier, wake_scheduler=wakes)
  return build_runtime(os_impl, settings, clock=clock)
