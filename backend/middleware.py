"""
ASGI middleware for the alarms backend
Uniform JSON errors, request/websocket logging and correlation ids
"""

import logging
import time
import traceback

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.types import ASGIApp, Receive, Scope, Send

from backend.exceptions import AppError, get_status_code

logger = logging.getLogger(__name__)


def _json_error(error: AppError, status_code: int) -> JSONResponse:
  return JSONResponse(status_code=status_code, content=error.to_response().model_dump())


def _describe(e: Exception) -> str:
  return f"{e.__class__.__name__}: {e}"


class ErrorHandlingMiddleware:
  """Turns exceptions escaping a route into an ErrorResponse body"""

  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    started = False

    async def track_start(message):
      nonlocal started
      if message["type"] == "http.response.start":
        started = True
      await send(message)

    try:
      await self.app(scope, receive, track_start)
    except Exception as e:
      if started:
        logger.error(f"Error after response started on {scope['path']}: {_describe(e)}")
        return
      await error_handler(e)(scope, receive, send)


def error_handler(exc: Exception) -> JSONResponse:
  """
  Map an exception onto an AppError response
  AppError keeps its own status; everything else is wrapped first.
  """
  match exc:
    case AppError() as e:
      logger.error(f"[{e.source}] {e.name}: {e.description}")
      return _json_error(e, get_status_code(e.source))

    case HTTPException() as e:
      logger.error(f"HTTP error {e.status_code}: {e.detail}")
      return _json_error(
        AppError(description=str(e.detail), name=f"HTTP_{e.status_code}", source="http"),
        e.status_code,
      )

    case ValidationError() as e:
      # Models built inside a handler, e.g. an alarm whose defaults don't validate
      logger.error(f"Invalid alarm data: {e.error_count()} error(s)")
      return _json_error(
        AppError(
          description="Alarm data failed validation",
          name="INVALID_ALARM",
          source="validation",
          caused_by=str(e),
        ),
        get_status_code("validation"),
      )

    case ValueError() as e:
      logger.error(f"Validation error: {e}")
      return _json_error(
        AppError(
          description=str(e),
          name="VALIDATION_ERROR",
          source="validation",
          caused_by=_describe(e),
        ),
        get_status_code("validation"),
      )

    case _:
      logger.error(f"Unhandled error: {exc}", exc_info=exc)
      return _json_error(
        AppError(
          description=str(exc),
          name="INTERNAL_ERROR",
          source="unknown",
          caused_by=f"{_describe(exc)}\n\nTraceback:\n{''.join(traceback.format_exception(exc))}",
        ),
        500,
      )


class LoggingMiddleware:
  """Logs each HTTP request and the lifetime of each websocket session"""

  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] not in ("http", "websocket"):
      await self.app(scope, receive, send)
      return

    path = scope["path"]
    client = (scope.get("client") or ("unknown", 0))[0]
    start = time.perf_counter()

    if scope["type"] == "websocket":
      logger.info(f"WebSocket {path} opened by {client}")
      try:
        await self.app(scope, receive, send)
      finally:
        logger.info(f"WebSocket {path} closed after {time.perf_counter() - start:.1f}s")
      return

    method = scope["method"]
    logger.info(f"Request: {method} {path} from {client}")
    status_code = None

    async def record_status(message):
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
      await send(message)

    await self.app(scope, receive, record_status)
    logger.info(
      f"Response: {status_code} for {method} {path} ({time.perf_counter() - start:.3f}s)"
    )


def setup_logging_middleware(app):
  """
  Add request logging and correlation ids; call after ErrorHandlingMiddleware

  Args:
    app: FastAPI application instance
  """
  app.add_middleware(LoggingMiddleware)
  # Added last so the id is set before LoggingMiddleware logs
  app.add_middleware(CorrelationIdMiddleware)
