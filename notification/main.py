"""
Reminder fire worker.

Started by the systemd timer of a reminder when it elapses. Shows the reminder
notification, re-arms the alarm for the next day, and forwards the user's
action tap to the running backend, or stores it for the backend's next start
when none is running.

Usage:
    python -m notification.main --extras <token>
"""

import argparse
import asyncio
import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

from os_interfaces.base import OSImplementations
from os_interfaces.linux import LinuxNotifier, LinuxWakeScheduler, decode_extras
from reminders.bridge import PendingActionFile
from reminders.config import APP_NAME, ReminderSettings, load_settings, pending_action_path
from reminders.models import AlarmSpec, NotificationAction
from reminders.runtime import build_runtime

logger = logging.getLogger(__name__)


def forward_action(action: NotificationAction, backend_url: str) -> bool:
  """POST an action tap to the backend's action endpoint.

  Returns:
      True if the backend accepted it
  """
  request = Request(
    f"{backend_url}/api/alarms/actions",
    data=json.dumps(action.model_dump()).encode(),
    headers={"Content-Type": "application/json"},
    method="POST",
  )
  try:
    with urlopen(request, timeout=5) as response:
      accepted = response.status < 300
  except (URLError, OSError) as e:
    logger.error(f"Failed to forward action {action.action_id}: {e}")
    return False

  logger.info(f"Forwarded action {action.action_id} to backend")
  return accepted


def open_app_on_click(backend_url: str) -> None:
  """Open the app UI served by the backend."""
  try:
    subprocess.Popen(
      ["xdg-open", backend_url],
      stdout=subprocess.DEVNULL,
      stderr=subprocess.DEVNULL,
    )
    logger.info("Opened app")
  except Exception as e:
    logger.error(f"Failed to open app: {e}")


async def run_wake(
  extras: dict[str, Any],
  settings: ReminderSettings,
  action_store: Optional[PendingActionFile] = None,
) -> None:
  """Dispatch one wake and wait for the user to interact with the notification.

  Args:
      extras: Wake extras the alarm was registered with
      settings: Reminder settings
      action_store: Where an action goes when the backend can't be reached
  """
  action_store = action_store or PendingActionFile(pending_action_path())
  done_event = asyncio.Event()

  def on_action(action: NotificationAction) -> None:
    if not forward_action(action, settings.backend_url):
      action_store.save(action)
    done_event.set()

  def on_open() -> None:
    open_app_on_click(settings.backend_url)
    done_event.set()

  os_impl = OSImplementations(
    notifier=LinuxNotifier(app_name=APP_NAME),
    wake_scheduler=LinuxWakeScheduler(app_name=APP_NAME),
    open_app=on_open,
  )
  runtime = build_runtime(os_impl, settings, on_action=on_action)
  spec = AlarmSpec.from_extras(extras, settings)

  await runtime.dispatcher.on_fire(spec)

  logger.info("Waiting for notification interaction...")
  try:
    await asyncio.wait_for(done_event.wait(), settings.interaction_timeout_seconds)
    logger.info("Notification interaction complete, exiting")
  except asyncio.TimeoutError:
    # The next fire runs in a new process that can't replace this notification
    logger.info("No interaction with the notification, clearing it and exiting")
    await os_impl.notifier.clear(spec.alarm_id)


def main(argv: list[str] | None = None) -> None:
  """Main entrypoint for the fire worker."""
  parser = argparse.ArgumentParser(
    description="Show a hydration reminder and re-arm it for the next day."
  )
  parser.add_argument(
    "--extras",
    default="",
    help="Encoded wake extras (empty for a one-shot alarm)",
  )
  parser.add_argument(
    "--config",
    type=Path,
    help="Path to reminder config file (default: ~/.config/aquabalance/reminders.yaml)",
  )
  args = parser.parse_args(argv)

  logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
  )

  settings = load_settings(args.config)
  asyncio.run(run_wake(decode_extras(args.extras), settings))


if __name__ == "__main__":
  main()
