"""Linux-specific implementations of OS interfaces"""

import base64
import json
import logging
import shlex
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from desktop_notifier import Button, DesktopNotifier, Urgency
from pystemd.dbuslib import DBus
from pystemd.systemd1 import Manager

from .base import (
  ClockBase,
  Importance,
  NotificationButton,
  Notifier,
  PendingWake,
  WakeExtras,
  WakeScheduler,
)

logger = logging.getLogger(__name__)

_URGENCY = {
  Importance.LOW: Urgency.Low,
  Importance.DEFAULT: Urgency.Normal,
  Importance.HIGH: Urgency.Critical,
}


def encode_extras(extras: WakeExtras) -> str:
  """Pack wake extras into a single token safe inside a unit's ExecStart line"""
  raw = json.dumps(extras, separators=(",", ":")).encode()
  return base64.urlsafe_b64encode(raw).decode()


def decode_extras(token: str) -> WakeExtras:
  if not token:
    return {}
  return json.loads(base64.urlsafe_b64decode(token.encode()))


class LinuxNotifier(Notifier):
  """Linux notifier using desktop-notifier"""

  def __init__(self, app_name: str):
    self.notifier = DesktopNotifier(app_name=app_name)
    self.channels: dict[str, Importance] = {}
    self._shown: dict[int, Any] = {}

  def ensure_channel(
    self,
    channel_id: str,
    importance: Importance,
    name: str,
    description: str,
  ) -> None:
    """Desktop notifications have no channels; remember the urgency to post with"""
    if channel_id in self.channels:
      return
    self.channels[channel_id] = importance
    logger.debug(f"Registered channel {channel_id} ({name})")

  async def post(
    self,
    notification_id: int,
    title: str,
    body: str,
    actions: list[NotificationButton],
    tap_callback: Optional[Callable[[], None]] = None,
    channel_id: Optional[str] = None,
  ) -> None:
    await self.clear(notification_id)

    importance = self.channels.get(channel_id or "", Importance.DEFAULT)
    self._shown[notification_id] = await self.notifier.send(
      title=title,
      message=body,
      urgency=_URGENCY[importance],
      buttons=[Button(title=a.label, on_pressed=a.callback) for a in actions],
      on_clicked=tap_callback,
    )
    logger.info(f"Notification {notification_id} sent: {title}")

  async def clear(self, notification_id: int) -> None:
    """Clear a notification sent by this process.

    desktop-notifier only knows identifiers it issued itself, so a fire worker
    clears its own notification before exiting.
    """
    identifier = self._shown.pop(notification_id, None)
    if identifier is not None:
      await self.notifier.clear(identifier)
      logger.info(f"Notification {notification_id} cleared")


class _SystemdPendingWake(PendingWake):
  def __init__(self, key: int, scheduler: "LinuxWakeScheduler"):
    super().__init__(key)
    self.scheduler = scheduler

  def cancel(self) -> None:
    """Remove the unit files so the registration no longer exists"""
    self.scheduler._remove_units(self.key)


class LinuxWakeScheduler(WakeScheduler):
  """Exact wakes as systemd user timers that run the fire worker"""

  def __init__(self, app_name: str, fire_command: Optional[list[str]] = None):
    self.app_name = app_name
    self.fire_command = fire_command or [sys.executable, "-m", "notification.main"]

  # ---- helpers ----
  @contextmanager
  def _connect_systemd(self):
    with DBus(user_mode=True) as bus:
      manager = Manager(bus=bus)
      manager.load()
      yield manager

  def _user_unit_dir(self) -> Path:
    return Path.home() / ".config/systemd/user"

  def _write_unit(self, name: str, content: str) -> Path:
    d = self._user_unit_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = d / name
    p.write_text(content)
    return p

  def _unit_base(self, key: int) -> str:
    return f"{self.app_name}-alarm-{key}"

  def _list_unit_files(self, manager: Manager) -> list[bytes]:
    return [u[0] for u in manager.Manager.ListUnitFiles()]

  def _service_content(self, base: str, extras: WakeExtras) -> str:
    exec_line = shlex.join([*self.fire_command, "--extras", encode_extras(extras)])
    return (
      "[Unit]\n"
      f"Description={self.app_name} reminder {base}\n"
      "\n[Service]\n"
      "Type=oneshot\n"
      f"ExecStart={exec_line}\n"
    )

  def _timer_content(self, base: str, when_millis: int, clock_base: ClockBase) -> str:
    if clock_base == ClockBase.BOOT_UPTIME:
      trigger = f"OnBootSec={when_millis}ms\n"
    else:
      when = datetime.fromtimestamp(when_millis / 1000, tz=timezone.utc)
      trigger = f"OnCalendar={when.strftime('%Y-%m-%d %H:%M:%S')} UTC\nPersistent=true\n"
    return (
      "[Unit]\n"
      f"Description={self.app_name} timer {base}\n"
      "\n[Timer]\n"
      f"{trigger}"
      "AccuracySec=1ms\n"
      "WakeSystem=true\n"
      f"Unit={base}.service\n"
    )

  def _remove_units(self, key: int) -> None:
    base = self._unit_base(key)
    for suffix in (".timer", ".service"):
      (self._user_unit_dir() / f"{base}{suffix}").unlink(missing_ok=True)
    with self._connect_systemd() as m:
      m.Manager.Reload()
    logger.info(f"Removed units for {base}")

  # ---- public API ----
  def can_schedule_exact(self) -> bool:
    return True

  def uptime_millis(self) -> int:
    return int(time.clock_gettime(time.CLOCK_BOOTTIME) * 1000)

  def register_exact_wake(
    self,
    key: int,
    when_millis: int,
    clock_base: ClockBase,
    extras: WakeExtras,
  ) -> None:
    """Write the unit pair for `key` and (re)start its timer"""
    base = self._unit_base(key)
    service_txt = self._service_content(base, extras)
    timer_txt = self._timer_content(base, when_millis, clock_base)

    with self._connect_systemd() as m:
      self._write_unit(f"{base}.service", service_txt)
      self._write_unit(f"{base}.timer", timer_txt)
      m.Manager.Reload()
      m.Manager.RestartUnit(f"{base}.timer".encode(), b"replace")

    logger.info(f"Registered wake {base} at {when_millis} ({clock_base.value})")

  def lookup_pending(self, key: int) -> Optional[PendingWake]:
    timer = f"{self._unit_base(key)}.timer".encode()
    with self._connect_systemd() as m:
      files = self._list_unit_files(m)
    if not any(f.endswith(timer) for f in files):
      return None
    return _SystemdPendingWake(key, self)

  def cancel(self, key: int) -> None:
    """Stop the timer so it no longer fires"""
    timer = f"{self._unit_base(key)}.timer"
    with self._connect_systemd() as m:
      m.Manager.StopUnit(timer.encode(), b"replace")
    logger.info(f"Stopped timer {timer}")
