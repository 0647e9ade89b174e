"""Android entrypoint for the packaged AquaBalance app.

Injects Android OS interfaces into the shared backend bootstrap. Wakes and
action taps are delivered to receivers registered in this process.
"""

from __future__ import annotations

from entrypoints.app_core import run_backend
from os_interfaces.android import AndroidNotifier, AndroidWakeScheduler, open_app
from os_interfaces.base import OSImplementations
from reminders.config import load_settings


def main() -> None:
  os_impl = OSImplementations(
    notifier=AndroidNotifier(),
    wake_scheduler=AndroidWakeScheduler(),
    open_app=open_app,
  )
  run_backend(os_impl=os_impl, settings=load_settings())


if __name__ == "__main__":
  main()
