"""
Alarms API endpoints
Command surface for reminder scheduling and the notification action event stream
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from backend.exceptions import AppError
from reminders.models import NotificationAction
from reminders.runtime import ReminderRuntime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alarms", tags=["alarms"])


class OneShotRequest(BaseModel):
  """Fire once after a delay; defaults to the configured delay"""

  seconds: Optional[int] = Field(default=None, ge=0)


class DailyRequest(BaseModel):
  """Daily reminder; every missing field takes the configured default"""

  alarm_id: Optional[int] = None
  hour: Optional[int] = Field(default=None, ge=0, le=23)
  minute: Optional[int] = Field(default=None, ge=0, le=59)
  title: Optional[str] = None
  body: Optional[str] = None
  payload: Optional[str] = None


class CancelRequest(BaseModel):
  alarm_id: Optional[int] = None


class CommandResult(BaseModel):
  success: bool


class NextFireResponse(BaseModel):
  hour: int
  minute: int
  fire_at: datetime


class DeliveryResult(BaseModel):
  """Whether the action reached a listener directly or was buffered"""

  delivered: bool


def _runtime_from_state(state) -> ReminderRuntime:
  runtime = getattr(state, "runtime", None)
  if runtime is None:
    raise AppError(
      description="Reminder runtime is not configured",
      name="ALARMS_NOT_READY",
      source="alarms",
    )
  return runtime


def get_runtime(request: Request) -> ReminderRuntime:
  return _runtime_from_state(request.app.state)


@router.post("/one-shot", response_model=CommandResult)
async def schedule_one_shot(
  request: Optional[OneShotRequest] = None,
  runtime: ReminderRuntime = Depends(get_runtime),
) -> CommandResult:
  """
  Schedule a one-shot alarm on the boot-uptime clock
  """
  request = request or OneShotRequest()
  seconds = (
    runtime.settings.one_shot_seconds if request.seconds is None else request.seconds
  )
  return CommandResult(success=runtime.scheduler.schedule_one_shot(seconds))


@router.post("/daily", response_model=CommandResult)
async def schedule_daily(
  request: Optional[DailyRequest] = None,
  runtime: ReminderRuntime = Depends(get_runtime),
) -> CommandResult:
  """
  Schedule a daily reminder
  """
  request = request or DailyRequest()
  spec = runtime.settings.daily_spec(**request.model_dump())
  return CommandResult(success=runtime.scheduler.schedule_daily(spec))


@router.post("/cancel", response_model=CommandResult)
async def cancel(
  request: Optional[CancelRequest] = None,
  runtime: ReminderRuntime = Depends(get_runtime),
) -> CommandResult:
  """
  Cancel a reminder; cancelling an unknown alarm succeeds
  """
  request = request or CancelRequest()
  alarm_id = (
    runtime.settings.default_alarm_id if request.alarm_id is None else request.alarm_id
  )
  return CommandResult(success=runtime.scheduler.cancel(alarm_id))


@router.get("/next-fire", response_model=NextFireResponse)
async def next_fire(
  hour: Optional[int] = Query(default=None, ge=0, le=23),
  minute: Optional[int] = Query(default=None, ge=0, le=59),
  runtime: ReminderRuntime = Depends(get_runtime),
) -> NextFireResponse:
  """
  When a daily reminder scheduled now would next fire
  """
  hour = runtime.settings.default_hour if hour is None else hour
  minute = runtime.settings.default_minute if minute is None else minute
  return NextFireResponse(
    hour=hour, minute=minute, fire_at=runtime.scheduler.next_fire_time(hour, minute)
  )


@router.post("/actions", response_model=DeliveryResult, status_code=202)
async def deliver_action(
  action: NotificationAction,
  runtime: ReminderRuntime = Depends(get_runtime),
) -> DeliveryResult:
  """
  Accept a notification action tap from a fire worker
  """
  return DeliveryResult(delivered=runtime.bridge.deliver(action))


@router.websocket("/events")
async def action_events(websocket: WebSocket) -> None:
  """
  Stream notification actions; a connected client is the ready application layer
  """
  runtime = _runtime_from_state(websocket.app.state)

  loop = asyncio.get_running_loop()
  queue: asyncio.Queue[NotificationAction] = asyncio.Queue()

  def listener(action: NotificationAction) -> None:
    # Host callbacks may arrive on a foreign thread
    loop.call_soon_threadsafe(queue.put_nowait, action)

  async def pump() -> None:
    while True:
      action = await queue.get()
      await websocket.send_json({"event": "notification_action", **action.model_dump()})

  # Attached before the handshake; a flushed action waits in the queue
  runtime.bridge.attach(listener)
  sender: Optional[asyncio.Task] = None
  try:
    await websocket.accept()
    sender = asyncio.create_task(pump())
    logger.info("Action listener attached")
    while True:
      await websocket.receive_text()
  except WebSocketDisconnect:
    logger.info("Action listener disconnected")
  finally:
    runtime.bridge.detach(listener)
    if sender:
      sender.cancel()
