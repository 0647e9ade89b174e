"""Reminder data model"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

if TYPE_CHECKING:
  from reminders.config import ReminderSettings

ACTION_DRINK = "action_drink"
ACTION_SKIP = "action_skip"

ActionId = Literal["action_drink", "action_skip"]

# Registration slot shared by every one-shot alarm
ONE_SHOT_SLOT = 0


class AlarmSpec(BaseModel):
  """One recurring daily reminder"""

  alarm_id: int
  hour: int = Field(ge=0, le=23)
  minute: int = Field(ge=0, le=59)
  title: str
  body: str
  payload: str = ""

  def to_extras(self) -> dict[str, Any]:
    """Wake extras handed to the host and back to the fire handler."""
    return {
      "alarmId": self.alarm_id,
      "hour": self.hour,
      "minute": self.minute,
      "title": self.title,
      "body": self.body,
      "payload": self.payload,
    }

  @classmethod
  def from_extras(cls, extras: dict[str, Any], settings: ReminderSettings) -> AlarmSpec:
    """Rebuild an alarm from wake extras.

    One-shot wakes carry no extras at all, so every key is optional and falls
    back to the configured defaults.
    """
    return settings.daily_spec(
      alarm_id=extras.get("alarmId"),
      hour=extras.get("hour"),
      minute=extras.get("minute"),
      title=extras.get("title"),
      body=extras.get("body"),
      payload=extras.get("payload"),
    )


class NotificationAction(BaseModel):
  """Emitted when the user taps one of the notification's action buttons"""

  action_id: ActionId
  payload: str = ""
