"""Abstract base classes for OS-specific interfaces"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

WakeExtras = dict[str, Any]
FireHandler = Callable[[WakeExtras], Any]


class ClockBase(str, Enum):
  """Clock a wake timestamp is expressed in"""

  WALL_CLOCK = "wall_clock"  # epoch millis, local calendar time
  BOOT_UPTIME = "boot_uptime"  # millis since boot, unaffected by clock changes


class Importance(str, Enum):
  LOW = "low"
  DEFAULT = "default"
  HIGH = "high"


@dataclass
class NotificationButton:
  label: str
  callback: Callable[[], None]


class PendingWake(ABC):
  """Handle to a wake registration that exists in the host's alarm registry"""

  def __init__(self, key: int):
    self.key = key

  @abstractmethod
  def cancel(self) -> None:
    """Release the registration handle itself"""
    raise NotImplementedError


class WakeScheduler(ABC):
  """Abstract base class for exact, doze-exempt host wake timers"""

  _fire_handler: Optional[FireHandler] = None

  def set_fire_handler(self, handler: Optional[FireHandler]) -> None:
    """Set the callable invoked with the wake extras when a wake fires.

    Hosts that deliver fires to another process (e.g. systemd running the
    fire worker) never call it.
    """
    self._fire_handler = handler

  def _deliver_fire(self, extras: WakeExtras) -> Any:
    if self._fire_handler is None:
      raise RuntimeError("Wake fired but no fire handler is set")
    return self._fire_handler(extras)

  @abstractmethod
  def can_schedule_exact(self) -> bool:
    """Whether the host currently permits exact alarms"""
    raise NotImplementedError

  @abstractmethod
  def uptime_millis(self) -> int:
    """Current value of the host's boot-uptime clock"""
    raise NotImplementedError

  @abstractmethod
  def register_exact_wake(
    self,
    key: int,
    when_millis: int,
    clock_base: ClockBase,
    extras: WakeExtras,
  ) -> None:
    """Register a one-shot exact wake, replacing any registration under `key`.

    Args:
      key: Registration key
      when_millis: Fire instant, in the clock given by `clock_base`
      clock_base: Clock `when_millis` is expressed in
      extras: Data handed back to the fire handler
    """
    raise NotImplementedError

  @abstractmethod
  def cancel(self, key: int) -> None:
    """Cancel the wake registered under `key` at the alarm-service level"""
    raise NotImplementedError

  @abstractmethod
  def lookup_pending(self, key: int) -> Optional[PendingWake]:
    """Find an existing registration without creating one"""
    raise NotImplementedError


class Notifier(ABC):
  """Abstract base class for notification management"""

  @abstractmethod
  def ensure_channel(
    self,
    channel_id: str,
    importance: Importance,
    name: str,
    description: str,
  ) -> None:
    """Create the notification channel; a no-op when it already exists"""
    raise NotImplementedError

  @abstractmethod
  async def post(
    self,
    notification_id: int,
    title: str,
    body: str,
    actions: list[NotificationButton],
    tap_callback: Optional[Callable[[], None]] = None,
    channel_id: Optional[str] = None,
  ) -> None:
    """Create and show a notification

    Args:
      notification_id: Id replacing any shown notification with the same id
      title: Notification title
      body: Notification body text
      actions: Action buttons, each with its own callback
      tap_callback: Optional callback when the notification itself is tapped
      channel_id: Channel the notification is posted to
    """
    raise NotImplementedError

  @abstractmethod
  async def clear(self, notification_id: int) -> None:
    """Remove a shown notification; a no-op when none is shown under the id"""
    raise NotImplementedError


@dataclass
class OSImplementations:
  """Host services injected into the platform entrypoints"""

  notifier: Notifier
  wake_scheduler: WakeScheduler
  open_app: Optional[Callable[[], None]] = None
