"""
AquaBalance backend - FastAPI server
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdFilter
from fastapi import FastAPI

from backend.api.alarms import router as alarms_router
from backend.middleware import ErrorHandlingMiddleware, setup_logging_middleware
from reminders.runtime import ReminderRuntime

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
  logging.basicConfig(
    level=level,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s",
  )
  # Add correlation ID filter to all handlers
  for handler in logging.root.handlers:
    handler.addFilter(CorrelationIdFilter(uuid_length=8, default_value="-"))


def create_app(runtime: ReminderRuntime) -> FastAPI:
  """Build the backend around a wired reminder runtime."""

  @asynccontextmanager
  async def lifespan(app: FastAPI):
    """Route host wake fires onto this event loop for the app's lifetime"""
    logger.info("Starting AquaBalance backend...")
    loop = asyncio.get_running_loop()
    wakes = runtime.os_impl.wake_scheduler

    def on_fire(extras):
      return asyncio.run_coroutine_threadsafe(
        runtime.dispatcher.handle_wake(extras), loop
      )

    wakes.set_fire_handler(on_fire)
    runtime.restore_stored_action()
    yield
    wakes.set_fire_handler(None)
    logger.info("Shutting down AquaBalance backend...")

  app = FastAPI(
    title="AquaBalance",
    description="Daily hydration reminders",
    version="0.1.0",
    lifespan=lifespan,
  )
  app.state.runtime = runtime

  # innermost
  app.add_middleware(ErrorHandlingMiddleware)

  # outermost
  setup_logging_middleware(app)

  app.include_router(alarms_router)

  @app.get("/health")
  async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "aquabalance-backend", "version": "0.1.0"}

  return app
