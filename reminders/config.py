"""
Reminder configuration
Defaults for every reminder command argument, optionally overridden by a YAML file
"""

import logging
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from platformdirs import user_config_dir, user_state_dir
from pydantic import BaseModel, Field, field_validator

from os_interfaces.base import Importance
from reminders.models import AlarmSpec

logger = logging.getLogger(__name__)

load_dotenv()

APP_NAME = "aquabalance"
CONFIG_ENV_VAR = "AQUABALANCE_CONFIG"
CONFIG_FILE_NAME = "reminders.yaml"
PENDING_ACTION_FILE_NAME = "pending_action.json"


class ReminderSettings(BaseModel):
  """Defaults for reminder scheduling and notification rendering"""

  default_alarm_id: int = 0
  default_hour: int = Field(default=9, ge=0, le=23)
  default_minute: int = Field(default=0, ge=0, le=59)
  default_title: str = "Time to Hydrate! 💧"
  default_body: str = "Remember to log your water intake and stay hydrated!"
  one_shot_seconds: int = Field(default=30, ge=0)

  channel_id: str = "water_reminder_channel"
  channel_name: str = "Water Reminders"
  channel_description: str = "Daily hydration reminder notifications"
  channel_importance: Importance = Importance.HIGH
  drink_label: str = "I Drank Water"
  skip_label: str = "Skip"

  timezone: Optional[str] = None

  backend_host: str = "127.0.0.1"
  backend_port: int = 8000
  interaction_timeout_seconds: float = Field(default=600.0, gt=0)

  @field_validator("timezone")
  @classmethod
  def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
    """Reject zone names the tz database doesn't know"""
    if v is None:
      return v
    try:
      ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError) as e:
      raise ValueError(f"Unknown timezone: {v}") from e
    return v

  @property
  def backend_url(self) -> str:
    return f"http://{self.backend_host}:{self.backend_port}"

  def daily_spec(
    self,
    alarm_id: Optional[int] = None,
    hour: Optional[int] = None,
    minute: Optional[int] = None,
    title: Optional[str] = None,
    body: Optional[str] = None,
    payload: Optional[str] = None,
  ) -> AlarmSpec:
    """Build an AlarmSpec, taking every missing argument from the defaults."""
    return AlarmSpec(
      alarm_id=self.default_alarm_id if alarm_id is None else alarm_id,
      hour=self.default_hour if hour is None else hour,
      minute=self.default_minute if minute is None else minute,
      title=self.default_title if title is None else title,
      body=self.default_body if body is None else body,
      payload="" if payload is None else payload,
    )


def default_config_path() -> Path:
  """Config location: $AQUABALANCE_CONFIG or the user config directory."""
  env_path = os.getenv(CONFIG_ENV_VAR)
  if env_path:
    return Path(env_path)
  return Path(user_config_dir(APP_NAME)) / CONFIG_FILE_NAME


def pending_action_path() -> Path:
  """Where a fire worker stores an action the backend couldn't take."""
  return Path(user_state_dir(APP_NAME)) / PENDING_ACTION_FILE_NAME


def load_settings(config_path: Path | str | None = None) -> ReminderSettings:
  """
  Load reminder settings from a YAML file

  Args:
      config_path: Path to the YAML file (default: see default_config_path)

  Returns:
      ReminderSettings; all defaults when the file doesn't exist

  Raises:
      yaml.YAMLError: If YAML is malformed
      ValueError: If the top level isn't a mapping
      pydantic.ValidationError: If a value doesn't match the schema
  """
  config_path = Path(config_path) if config_path else default_config_path()

  if not config_path.exists():
    logger.info(f"No reminder config at {config_path}, using defaults")
    return ReminderSettings()

  with open(config_path, "r") as f:
    raw_config = yaml.safe_load(f)

  if raw_config is None:
    return ReminderSettings()
  if not isinstance(raw_config, dict):
    raise ValueError(
      f"Reminder config must be a mapping, got {type(raw_config).__name__}"
    )

  settings = ReminderSettings(**raw_config)
  logger.info(f"Loaded reminder config from {config_path}")
  return settings
