"""Linux entrypoint for the AquaBalance backend.

This entrypoint injects Linux OS interface implementations.
"""

from __future__ import annotations

from entrypoints.app_core import run_backend
from notification.main import open_app_on_click
from os_interfaces.base import OSImplementations
from os_interfaces.linux import LinuxNotifier, LinuxWakeScheduler
from reminders.config import APP_NAME, load_settings


def main() -> None:
  settings = load_settings()
  os_impl = OSImplementations(
    notifier=LinuxNotifier(app_name=APP_NAME),
    wake_scheduler=LinuxWakeScheduler(app_name=APP_NAME),
    open_app=lambda: open_app_on_click(settings.backend_url),
  )
  run_backend(os_impl=os_impl, settings=settings)


if __name__ == "__main__":
  main()
