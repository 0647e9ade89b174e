"""Android-specific implementations of OS interfaces."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from jnius import PythonJavaClass, autoclass, java_method  # type: ignore

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


# --- PyJNIus handles ---
PythonActivity = autoclass("org.kivy.android.PythonActivity")
Intent = autoclass("android.content.Intent")
IntentFilter = autoclass("android.content.IntentFilter")
PendingIntent = autoclass("android.app.PendingIntent")
NotificationManagerJava = autoclass("android.app.NotificationManager")
NotificationChannel = autoclass("android.app.NotificationChannel")
BuildVersion = autoclass("android.os.Build$VERSION")
NotificationCompatBuilder = autoclass("androidx.core.app.NotificationCompat$Builder")
NotificationCompat = autoclass("androidx.core.app.NotificationCompat")
AlarmManagerJava = autoclass("android.app.AlarmManager")
SystemClock = autoclass("android.os.SystemClock")
AndroidRDrawable = autoclass("android.R$drawable")
Context = autoclass("android.content.Context")
Uri = autoclass("android.net.Uri")

ACTION_ALARM_FIRE = "com.watertracking.aquabalance.ALARM_FIRED"
ACTION_NOTIFICATION_CALLBACK = "com.watertracking.aquabalance.NOTIFICATION_CALLBACK"

_INT_EXTRAS = ("alarmId", "hour", "minute")
_STR_EXTRAS = ("title", "body", "payload")

_IMPORTANCE = {
  Importance.LOW: NotificationManagerJava.IMPORTANCE_LOW,
  Importance.DEFAULT: NotificationManagerJava.IMPORTANCE_DEFAULT,
  Importance.HIGH: NotificationManagerJava.IMPORTANCE_HIGH,
}


def _context():
  return PythonActivity.mActivity.getApplicationContext()


def _flags(base: int | None = None) -> int:
  flags = (base or 0) | PendingIntent.FLAG_UPDATE_CURRENT
  if BuildVersion.SDK_INT >= 31:
    flags |= PendingIntent.FLAG_IMMUTABLE
  return flags


def _lookup_flags() -> int:
  flags = PendingIntent.FLAG_NO_CREATE
  if BuildVersion.SDK_INT >= 31:
    flags |= PendingIntent.FLAG_IMMUTABLE
  return flags


def _register_receiver(ctx, receiver, action: str) -> None:
  intent_filter = IntentFilter()
  intent_filter.addAction(action)
  if BuildVersion.SDK_INT >= 33:
    ctx.registerReceiver(receiver, intent_filter, Context.RECEIVER_NOT_EXPORTED)
  else:
    ctx.registerReceiver(receiver, intent_filter)


def _alarm_intent(ctx, extras: WakeExtras | None = None):
  intent = Intent(ACTION_ALARM_FIRE)
  intent.setPackage(ctx.getPackageName())
  for key, value in (extras or {}).items():
    intent.putExtra(key, value)
  return intent


def _read_extras(intent) -> WakeExtras:
  extras: WakeExtras = {}
  for key in _INT_EXTRAS:
    if intent.hasExtra(key):
      extras[key] = intent.getIntExtra(key, 0)
  for key in _STR_EXTRAS:
    value = intent.getStringExtra(key)
    if value is not None:
      extras[key] = value
  return extras


class _AlarmReceiver(PythonJavaClass):
  __javainterfaces__ = ["android/content/BroadcastReceiver"]
  __javacontext__ = "app"

  def __init__(self, scheduler: AndroidWakeScheduler):
    super().__init__()
    self.scheduler = scheduler

  @java_method("(Landroid/content/Context;Landroid/content/Intent;)V")
  def onReceive(self, _context, intent):
    try:
      self.scheduler._deliver_fire(_read_extras(intent))
    except Exception:
      logger.exception("Alarm fire handler failed")


class _CallbackReceiver(PythonJavaClass):
  """Runs the Python callback registered under an intent's data URI."""

  __javainterfaces__ = ["android/content/BroadcastReceiver"]
  __javacontext__ = "app"

  def __init__(self):
    super().__init__()
    self.callbacks: dict[str, Callable[[], None]] = {}

  @java_method("(Landroid/content/Context;Landroid/content/Intent;)V")
  def onReceive(self, _context, intent):
    key = intent.getDataString()
    callback = self.callbacks.get(key)
    if callback is None:
      logger.warning("No callback registered for %s", key)
      return
    try:
      callback()
    except Exception:
      logger.exception("Notification callback failed")


class _AndroidPendingWake(PendingWake):
  def __init__(self, key: int, pending_intent):
    super().__init__(key)
    self.pending_intent = pending_intent

  def cancel(self) -> None:
    self.pending_intent.cancel()


class AndroidWakeScheduler(WakeScheduler):
  """Exact, doze-exempt wakes via AlarmManager.setExactAndAllowWhileIdle."""

  def __init__(self):
    self.ctx = _context()
    self.alarm_manager = self.ctx.getSystemService(Context.ALARM_SERVICE)
    self.receiver = _AlarmReceiver(self)
    _register_receiver(self.ctx, self.receiver, ACTION_ALARM_FIRE)

  def can_schedule_exact(self) -> bool:
    if BuildVersion.SDK_INT >= 31:
      return bool(self.alarm_manager.canScheduleExactAlarms())
    return True

  def uptime_millis(self) -> int:
    return SystemClock.elapsedRealtime()

  def register_exact_wake(
    self,
    key: int,
    when_millis: int,
    clock_base: ClockBase,
    extras: WakeExtras,
  ) -> None:
    pending_intent = PendingIntent.getBroadcast(
      self.ctx, key, _alarm_intent(self.ctx, extras), _flags()
    )
    alarm_type = (
      AlarmManagerJava.ELAPSED_REALTIME_WAKEUP
      if clock_base == ClockBase.BOOT_UPTIME
      else AlarmManagerJava.RTC_WAKEUP
    )

    if BuildVersion.SDK_INT >= 23:
      self.alarm_manager.setExactAndAllowWhileIdle(
        alarm_type, when_millis, pending_intent
      )
    else:
      self.alarm_manager.setExact(alarm_type, when_millis, pending_intent)
    logger.info("Registered wake %s at %s (%s)", key, when_millis, clock_base.value)

  def _find(self, key: int):
    return PendingIntent.getBroadcast(
      self.ctx, key, _alarm_intent(self.ctx), _lookup_flags()
    )

  def lookup_pending(self, key: int) -> Optional[PendingWake]:
    pending_intent = self._find(key)
    if pending_intent is None:
      return None
    return _AndroidPendingWake(key, pending_intent)

  def cancel(self, key: int) -> None:
    pending_intent = self._find(key)
    if pending_intent is not None:
      self.alarm_manager.cancel(pending_intent)


class AndroidNotifier(Notifier):
  """Android notifier using PyJNIus NotificationCompat."""

  def __init__(self):
    self.ctx = _context()
    self.manager = self.ctx.getSystemService(Context.NOTIFICATION_SERVICE)
    self.receiver = _CallbackReceiver()
    _register_receiver(self.ctx, self.receiver, ACTION_NOTIFICATION_CALLBACK)

  def ensure_channel(
    self,
    channel_id: str,
    importance: Importance,
    name: str,
    description: str,
  ) -> None:
    if BuildVersion.SDK_INT < 26:
      return
    channel = NotificationChannel(channel_id, name, _IMPORTANCE[importance])
    channel.setDescription(description)
    channel.enableVibration(True)
    self.manager.createNotificationChannel(channel)

  def _callback_intent(
    self, notification_id: int, slot: int, callback: Callable[[], None]
  ):
    # The data URI keeps intents of different notifications distinct
    key = f"aquabalance://notification/{notification_id}/{slot}"
    self.receiver.callbacks[key] = callback
    intent = Intent(ACTION_NOTIFICATION_CALLBACK, Uri.parse(key))
    intent.setPackage(self.ctx.getPackageName())
    return PendingIntent.getBroadcast(self.ctx, notification_id + slot, intent, _flags())

  async def post(
    self,
    notification_id: int,
    title: str,
    body: str,
    actions: list[NotificationButton],
    tap_callback: Optional[Callable[[], None]] = None,
    channel_id: Optional[str] = None,
  ) -> None:
    icon = self.ctx.getApplicationInfo().icon or AndroidRDrawable.ic_dialog_info

    builder = (
      NotificationCompatBuilder(self.ctx, channel_id or "default")
      .setSmallIcon(icon)
      .setContentTitle(title)
      .setContentText(body)
      .setPriority(NotificationCompat.PRIORITY_HIGH)
      .setAutoCancel(True)
    )
    # Slot 0 is the tap, actions take 1, 2, ...
    for slot, action in enumerate(actions, start=1):
      pending_intent = self._callback_intent(notification_id, slot, action.callback)
      builder.addAction(0, action.label, pending_intent)
    if tap_callback:
      builder.setContentIntent(self._callback_intent(notification_id, 0, tap_callback))

    self.manager.notify(notification_id, builder.build())
    logger.info("Notification %s posted", notification_id)

  async def clear(self, notification_id: int) -> None:
    self.manager.cancel(notification_id)


def open_app() -> None:
  """Bring the app's launcher activity to the front."""
  ctx = _context()
  intent = ctx.getPackageManager().getLaunchIntentForPackage(ctx.getPackageName())
  if intent is None:
    logger.warning("No launch intent for %s", ctx.getPackageName())
    return
  intent.addFlags(Intent.FLAG_ACTIVITY_NEW_TASK | Intent.FLAG_ACTIVITY_SINGLE_TOP)
  ctx.startActivity(intent)
