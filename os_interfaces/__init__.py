"""OS interface module - platform-specific implementations

Since we build separate executables for each platform,
import the appropriate implementation directly in the main entry points:
- entrypoints/aquabalance_linux.py imports from os_interfaces.linux
- entrypoints/aquabalance_android.py imports from os_interfaces.android
"""

from .base import (
  ClockBase,
  Importance,
  NotificationButton,
  Notifier,
  OSImplementations,
  PendingWake,
  WakeScheduler,
)

__all__ = [
  "ClockBase",
  "Importance",
  "NotificationButton",
  "Notifier",
  "OSImplementations",
  "PendingWake",
  "WakeScheduler",
]
