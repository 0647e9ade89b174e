"""Platform-agnostic backend bootstrap.

The platform-specific entrypoints (Linux/Android) import this module and
provide the correct OS-interface implementations.

Contract:
- Inputs: an os-interface bundle `os_impl` and the reminder settings.
- Behavior: wires the reminder runtime and serves the FastAPI backend until stopped.
"""

from __future__ import annotations

import logging
import os

import uvicorn

from backend.main import configure_logging, create_app
from os_interfaces.base import OSImplementations
from reminders.bridge import PendingActionFile
from reminders.config import ReminderSettings, pending_action_path
from reminders.runtime import build_runtime

DEBUG = os.getenv("AQUABALANCE_DEBUG", "").strip().lower() in {"1", "true"}

logger = logging.getLogger(__name__)


def run_backend(*, os_impl: OSImplementations, settings: ReminderSettings) -> None:
  configure_logging(logging.DEBUG if DEBUG else logging.INFO)

  runtime = build_runtime(
    os_impl, settings, action_store=PendingActionFile(pending_action_path())
  )
  app = create_app(runtime)

  logger.info(
    "Starting AquaBalance backend on %s:%s", settings.backend_host, settings.backend_port
  )
  uvicorn.run(
    app,
    host=settings.backend_host,
    port=settings.backend_port,
    log_level="debug" if DEBUG else "info",
    access_log=True,
  )
